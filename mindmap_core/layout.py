"""
Automatic layout for mind maps.

The editor treats the layout engine as a black box:

    request  = {"nodes": [{"id", "width", "height"}], "edges": [{"id", "source", "target"}]}
    response = {"nodes": [{"id", "x", "y"}]}

LayoutAdapter builds the request from a document snapshot, awaits the engine,
and writes back positions only. A newer request supersedes an older one that
is still pending; the older response is dropped when it arrives.

LayeredLayoutEngine is the built-in engine: left-to-right layers by distance
from the source nodes.
"""

import asyncio
from collections import defaultdict, deque
from typing import TYPE_CHECKING, Optional, Protocol

import structlog

from .errors import LayoutUnavailable
from .mutations import ApplyPositions

if TYPE_CHECKING:
    from .document_model import DocumentModel
    from .models import Document


logger = structlog.get_logger(__name__)

# Size hints handed to the engine for every node
DEFAULT_NODE_WIDTH = 180
DEFAULT_NODE_HEIGHT = 60

# Built-in engine spacing
DEFAULT_SPACING_NODES = 80
DEFAULT_SPACING_LAYERS = 100
DEFAULT_START_X = 0
DEFAULT_START_Y = 0


class LayoutEngine(Protocol):
    """Anything that turns a layout request into node coordinates."""

    async def layout(self, request: dict) -> dict:
        ...


class LayeredLayoutEngine:
    """
    Arrange nodes in left-to-right layers based on edge directions.

    Nodes with no incoming edges start layer 0; every other node sits one
    layer after the first node that reaches it. Nodes on a cycle with no entry
    point, and disconnected nodes, also go to layer 0.
    """

    def __init__(
        self,
        spacing_nodes: float = DEFAULT_SPACING_NODES,
        spacing_layers: float = DEFAULT_SPACING_LAYERS,
        start_x: float = DEFAULT_START_X,
        start_y: float = DEFAULT_START_Y,
    ):
        self.spacing_nodes = spacing_nodes
        self.spacing_layers = spacing_layers
        self.start_x = start_x
        self.start_y = start_y

    async def layout(self, request: dict) -> dict:
        return self.compute(request)

    def compute(self, request: dict) -> dict:
        nodes = request.get("nodes", [])
        if not nodes:
            return {"nodes": []}

        sizes = {n["id"]: (n["width"], n["height"]) for n in nodes}

        # Build adjacency list (parent -> children)
        children: dict[str, list[str]] = {nid: [] for nid in sizes}
        has_parent: set[str] = set()
        for edge in request.get("edges", []):
            source, target = edge["source"], edge["target"]
            if source in children and target in children and source != target:
                children[source].append(target)
                has_parent.add(target)

        roots = [nid for nid in sizes if nid not in has_parent]
        if not roots:
            roots = [nodes[0]["id"]]

        # BFS to assign layers
        layers: dict[str, int] = {}
        queue = deque((r, 0) for r in roots)
        while queue:
            node_id, layer = queue.popleft()
            if node_id in layers:
                continue
            layers[node_id] = layer
            for child in children[node_id]:
                if child not in layers:
                    queue.append((child, layer + 1))

        for node_id in sizes:
            layers.setdefault(node_id, 0)

        # Layer x offsets: each layer starts after the widest node of the previous one
        layer_count = max(layers.values()) + 1
        layer_width = [0.0] * layer_count
        for node_id, layer in layers.items():
            layer_width[layer] = max(layer_width[layer], sizes[node_id][0])
        layer_x = []
        x = float(self.start_x)
        for width in layer_width:
            layer_x.append(x)
            x += width + self.spacing_layers

        cursor_y: dict[int, float] = defaultdict(lambda: float(self.start_y))
        placed = []
        for node in nodes:
            layer = layers[node["id"]]
            placed.append({"id": node["id"], "x": layer_x[layer], "y": cursor_y[layer]})
            cursor_y[layer] += node["height"] + self.spacing_nodes

        return {"nodes": placed}


class LayoutAdapter:
    """
    Translates documents to and from a layout engine.

    Keeps a generation counter: every run() takes the next number, and a
    response is applied only if no newer run() started while it was pending.
    """

    def __init__(
        self,
        engine: Optional[LayoutEngine] = None,
        node_width: float = DEFAULT_NODE_WIDTH,
        node_height: float = DEFAULT_NODE_HEIGHT,
    ):
        self.engine: LayoutEngine = engine or LayeredLayoutEngine()
        self.node_width = node_width
        self.node_height = node_height
        self._generation = 0

    def build_request(self, document: "Document") -> dict:
        """Every node once with its size hint, every edge as a source/target pair."""
        return {
            "nodes": [
                {"id": n.id, "width": self.node_width, "height": self.node_height}
                for n in document.nodes
            ],
            "edges": [
                {"id": e.id, "source": e.source, "target": e.target}
                for e in document.edges
            ],
        }

    def apply_response(self, document: "Document", response: dict) -> ApplyPositions:
        """
        Turn an engine response into a position-only mutation.

        Ids the engine left out keep their position; ids the document no longer
        has are dropped.
        """
        present = {n.id for n in document.nodes}
        positions: dict[str, tuple[float, float]] = {}
        for entry in response.get("nodes") or []:
            node_id = entry.get("id")
            if node_id not in present:
                continue
            try:
                positions[node_id] = (float(entry["x"]), float(entry["y"]))
            except (KeyError, TypeError, ValueError):
                logger.warning("layout_entry_malformed", node_id=node_id)
        return ApplyPositions(positions)

    async def run(self, model: "DocumentModel") -> bool:
        """
        Lay out the model's current document.

        Returns False when the response was superseded by a newer run() and
        therefore discarded, True when positions were applied.
        """
        self._generation += 1
        generation = self._generation
        request = self.build_request(model.document)

        try:
            response = await self.engine.layout(request)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if generation != self._generation:
                logger.info("layout_superseded", generation=generation, latest=self._generation)
                return False
            logger.warning("layout_failed", error=str(e), generation=generation)
            raise LayoutUnavailable(f"Layout engine failed: {e}") from e

        if generation != self._generation:
            logger.info("layout_superseded", generation=generation, latest=self._generation)
            return False

        if not isinstance(response, dict):
            raise LayoutUnavailable("Layout engine returned an invalid response")

        # Positions go onto the document as it is now, not the request snapshot
        moved = model.apply(self.apply_response(model.document, response))
        logger.debug("layout_applied", generation=generation, moved=moved)
        return True
