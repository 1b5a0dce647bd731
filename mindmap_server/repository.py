"""
Mind map repository - JSON file persistence for the REST server.

One file per mind map under the data directory: ``<id>.json``. Records are
stored in the API's wire shape (camelCase timestamps, canvas nodes/edges) so
GET returns them unchanged.
"""

import json
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import structlog

from mindmap_core.errors import NotFound

logger = structlog.get_logger(__name__)

SUMMARY_FIELDS = ("id", "name", "description", "thumbnail", "createdAt", "updatedAt")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def generate_mindmap_id() -> str:
    return f"mm-{uuid.uuid4().hex[:12]}"


class MindMapRepository:
    """
    Stores mind map records as JSON files.

    Writes go to a temporary file first and are renamed into place, so a
    crash mid-write never leaves a truncated record behind.
    """

    def __init__(self, data_dir: str | Path):
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def _path(self, mindmap_id: str) -> Path:
        # Ids come from URLs; keep them inside the data directory
        if not mindmap_id or "/" in mindmap_id or "\\" in mindmap_id or mindmap_id.startswith("."):
            raise NotFound(f"Mind map not found: {mindmap_id}")
        return self.data_dir / f"{mindmap_id}.json"

    def _read(self, path: Path) -> dict:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)

    def _write(self, record: dict):
        path = self._path(record["id"])
        tmp = path.with_suffix(".json.tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(record, f, indent=2)
        tmp.replace(path)

    # --- Queries ---

    def list_for_owner(self, owner_id: str) -> list[dict]:
        """Summaries of an owner's mind maps, most recently updated first."""
        summaries = []
        for file in self.data_dir.glob("*.json"):
            try:
                record = self._read(file)
            except (OSError, json.JSONDecodeError):
                logger.warning("record_unreadable", path=str(file))
                continue
            if record.get("ownerId") != owner_id:
                continue
            summaries.append({key: record.get(key) for key in SUMMARY_FIELDS})

        summaries.sort(key=lambda s: s.get("updatedAt") or "", reverse=True)
        return summaries

    def get(self, mindmap_id: str) -> dict:
        path = self._path(mindmap_id)
        if not path.exists():
            raise NotFound(f"Mind map not found: {mindmap_id}")
        return self._read(path)

    # --- Commands ---

    def create(
        self,
        owner_id: str,
        name: str,
        nodes: list[dict[str, Any]],
        edges: list[dict[str, Any]],
        description: Optional[str] = None,
    ) -> dict:
        now = _now_iso()
        record = {
            "id": generate_mindmap_id(),
            "name": name,
            "description": description,
            "thumbnail": None,
            "nodes": nodes,
            "edges": edges,
            "ownerId": owner_id,
            "createdAt": now,
            "updatedAt": now,
        }
        with self._lock:
            self._write(record)
        logger.info("mindmap_created", mindmap_id=record["id"], owner_id=owner_id)
        return record

    def replace(
        self,
        mindmap_id: str,
        name: str,
        nodes: list[dict[str, Any]],
        edges: list[dict[str, Any]],
        description: Optional[str] = None,
    ) -> dict:
        """Full replace of the editable fields; owner and createdAt are kept."""
        with self._lock:
            record = self.get(mindmap_id)
            record.update({
                "name": name,
                "description": description,
                "nodes": nodes,
                "edges": edges,
                "updatedAt": _now_iso(),
            })
            self._write(record)
        logger.info("mindmap_replaced", mindmap_id=mindmap_id, nodes=len(nodes), edges=len(edges))
        return record

    def delete(self, mindmap_id: str):
        with self._lock:
            path = self._path(mindmap_id)
            if not path.exists():
                raise NotFound(f"Mind map not found: {mindmap_id}")
            path.unlink()
        logger.info("mindmap_deleted", mindmap_id=mindmap_id)
