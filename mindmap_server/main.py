"""
Mind Map Server - FastAPI Application

This is the persistence API the editor saves to. It provides:
- REST endpoints for mind map CRUD (/mindmaps)
- JSON error bodies: {"error": "..."} with 400 / 404 / 500
- CORS configuration for the web front end
"""
from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from mindmap_core.errors import NotFound, ValidationFailed
from mindmap_core.models import UNTITLED_NAME, Document
from mindmap_core.settings import Settings, get_settings
from mindmap_core.validation import ensure_valid

from .repository import MindMapRepository
from .schemas import CreateMindMapRequest, ReplaceMindMapRequest

logger = structlog.get_logger(__name__)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _normalize(name: str, nodes: list, edges: list, description: Optional[str]) -> Document:
    """Parse canvas nodes/edges into a Document and check its invariants."""
    try:
        document = Document.from_wire({
            "name": name,
            "description": description,
            "nodes": nodes,
            "edges": edges,
        })
    except (ValueError, KeyError, TypeError) as e:
        raise ValidationFailed(f"Malformed nodes or edges: {e}") from e
    return ensure_valid(document)


def create_app(
    repository: Optional[MindMapRepository] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """Build the application around a repository (tests pass a temporary one)."""
    settings = settings or get_settings()
    repo = repository or MindMapRepository(settings.data_dir)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("server_started", data_dir=str(repo.data_dir))
        yield
        logger.info("server_stopped")

    app = FastAPI(
        title="Mind Map API",
        description="Persistence API for the mind map editor",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.repository = repo

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- Error mapping ---

    @app.exception_handler(NotFound)
    async def not_found_handler(request: Request, exc: NotFound):
        return _error(404, str(exc))

    @app.exception_handler(ValidationFailed)
    async def validation_failed_handler(request: Request, exc: ValidationFailed):
        return _error(400, str(exc))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in exc.errors())
        return _error(400, f"Malformed request: {fields}")

    @app.exception_handler(Exception)
    async def internal_error_handler(request: Request, exc: Exception):
        logger.exception("request_failed", path=request.url.path, method=request.method)
        return _error(500, "Internal server error")

    # --- Health Check ---

    @app.get("/health")
    async def health_check():
        return {"status": "ok"}

    # --- Mind maps ---

    @app.get("/mindmaps")
    async def list_mindmaps(owner_id: Optional[str] = Query(default=None, alias="ownerId")):
        """List an owner's mind maps (no node/edge bodies)."""
        if not owner_id:
            return _error(400, "ownerId is required")
        return repo.list_for_owner(owner_id)

    @app.post("/mindmaps", status_code=201)
    async def create_mindmap(request: CreateMindMapRequest):
        """Store a new mind map."""
        if not request.owner_id:
            return _error(400, "ownerId is required")
        name = (request.name or "").strip() or UNTITLED_NAME
        document = _normalize(name, request.nodes, request.edges, request.description)
        wire = document.to_wire()
        return repo.create(
            owner_id=request.owner_id,
            name=name,
            nodes=wire["nodes"],
            edges=wire["edges"],
            description=request.description,
        )

    @app.get("/mindmaps/{mindmap_id}")
    async def get_mindmap(mindmap_id: str):
        """Get a full mind map."""
        return repo.get(mindmap_id)

    @app.put("/mindmaps/{mindmap_id}")
    async def replace_mindmap(mindmap_id: str, request: ReplaceMindMapRequest):
        """Replace a mind map with the request body."""
        name = request.name.strip() or UNTITLED_NAME
        document = _normalize(name, request.nodes, request.edges, request.description)
        wire = document.to_wire()
        return repo.replace(
            mindmap_id,
            name=name,
            nodes=wire["nodes"],
            edges=wire["edges"],
            description=request.description,
        )

    @app.delete("/mindmaps/{mindmap_id}")
    async def delete_mindmap(mindmap_id: str):
        repo.delete(mindmap_id)
        return {"message": "Mind map deleted"}

    return app


def run(settings: Optional[Settings] = None):
    """Run the server with uvicorn."""
    import uvicorn

    settings = settings or get_settings()
    uvicorn.run(create_app(settings=settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
