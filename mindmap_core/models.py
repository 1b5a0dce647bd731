"""
Core data models for mind map documents.

These models define the canonical schema for a document:
- Nodes with a kind-specific payload (text, image, code, audio, video)
- Edges connecting nodes (using source/target naming convention)
- The document itself, with timestamps for the remote store

All models are frozen. Mutations build new instances with model_copy(), so a
Document held by a consumer never changes underneath it.

Wire Format:
- Nodes and edges are stored in the flow-canvas shape the web editor writes:
  ``{id, type, position, data: {label, color, isRoot, ...}}``
- ``type: "custom"`` is the storage name of a text node
- Unknown keys inside ``data`` are ignored on input and never written back
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field
import uuid


ROOT_LABEL = "Central Topic"
PLACEHOLDER_LABEL = "New Node"
UNTITLED_NAME = "Untitled Mind Map"
DEFAULT_CODE = "// Enter code..."
DEFAULT_LANGUAGE = "javascript"
ROOT_COLOR = "#6366f1"
ROOT_POSITION = (400.0, 300.0)

# Colour palette for new branches
PALETTE = (
    "#3b82f6",
    "#10b981",
    "#f59e0b",
    "#ec4899",
    "#8b5cf6",
    "#06b6d4",
    "#ef4444",
)


class NodeKind(str, Enum):
    """Content kinds a node can hold."""
    TEXT = "text"
    IMAGE = "image"
    CODE = "code"
    AUDIO = "audio"
    VIDEO = "video"


# Storage "type" names used by the web canvas
_WIRE_TYPES = {
    NodeKind.TEXT: "custom",
    NodeKind.IMAGE: "image",
    NodeKind.CODE: "code",
    NodeKind.AUDIO: "audio",
    NodeKind.VIDEO: "video",
}
_KIND_BY_WIRE_TYPE = {v: k for k, v in _WIRE_TYPES.items()}

# data key holding the media reference, per media kind
_MEDIA_KEYS = {
    NodeKind.IMAGE: "imageUrl",
    NodeKind.AUDIO: "audioUrl",
    NodeKind.VIDEO: "videoUrl",
}


def generate_node_id() -> str:
    """Generate a unique node ID."""
    return f"n{uuid.uuid4().hex[:8]}"


def generate_edge_id() -> str:
    """Generate a unique edge ID."""
    return f"e{uuid.uuid4().hex[:8]}"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_object(value: Any, what: str) -> dict:
    """Return a wire value that must be a JSON object; None reads as empty."""
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"{what} must be an object, got {type(value).__name__}")
    return value


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


# --- Payload variants (tagged by kind) ---

class TextPayload(_Frozen):
    kind: Literal["text"] = "text"


class ImagePayload(_Frozen):
    kind: Literal["image"] = "image"
    url: Optional[str] = None  # URL or data URI


class AudioPayload(_Frozen):
    kind: Literal["audio"] = "audio"
    url: Optional[str] = None


class VideoPayload(_Frozen):
    kind: Literal["video"] = "video"
    url: Optional[str] = None


class CodePayload(_Frozen):
    kind: Literal["code"] = "code"
    source: str = DEFAULT_CODE
    language: str = DEFAULT_LANGUAGE


Payload = Annotated[
    Union[TextPayload, ImagePayload, CodePayload, AudioPayload, VideoPayload],
    Field(discriminator="kind"),
]

_PAYLOAD_TYPES = {
    NodeKind.TEXT: TextPayload,
    NodeKind.IMAGE: ImagePayload,
    NodeKind.CODE: CodePayload,
    NodeKind.AUDIO: AudioPayload,
    NodeKind.VIDEO: VideoPayload,
}


def default_payload(kind: NodeKind | str) -> Payload:
    """Return the empty payload for a node kind."""
    return _PAYLOAD_TYPES[NodeKind(kind)]()


# --- Graph elements ---

class Position(_Frozen):
    """Canvas coordinates of a node's top-left corner."""
    x: float = 0.0
    y: float = 0.0


class Node(_Frozen):
    """A node in the mind map."""
    id: str = Field(default_factory=generate_node_id)
    label: str = PLACEHOLDER_LABEL
    position: Position = Field(default_factory=Position)
    is_root: bool = False
    color: str = PALETTE[0]
    payload: Payload = Field(default_factory=TextPayload)

    @property
    def kind(self) -> NodeKind:
        return NodeKind(self.payload.kind)

    def to_wire(self) -> dict:
        """Convert to the flow-canvas JSON shape."""
        data: dict[str, Any] = {
            "label": self.label,
            "color": self.color,
            "isRoot": self.is_root,
        }
        payload = self.payload
        if isinstance(payload, CodePayload):
            data["code"] = payload.source
            data["language"] = payload.language
        elif isinstance(payload, (ImagePayload, AudioPayload, VideoPayload)):
            if payload.url is not None:
                data[_MEDIA_KEYS[self.kind]] = payload.url

        return {
            "id": self.id,
            "type": _WIRE_TYPES[self.kind],
            "position": {"x": self.position.x, "y": self.position.y},
            "data": data,
        }

    @classmethod
    def from_wire(cls, raw: dict) -> "Node":
        """Create a Node from the flow-canvas JSON shape."""
        raw = _as_object(raw, "Node")
        wire_type = raw.get("type") or "custom"
        if wire_type not in _KIND_BY_WIRE_TYPE:
            raise ValueError(f"Unknown node type: {wire_type}")
        kind = _KIND_BY_WIRE_TYPE[wire_type]

        data = _as_object(raw.get("data"), "Node data")
        if kind == NodeKind.CODE:
            payload: Payload = CodePayload(
                source=data.get("code", DEFAULT_CODE),
                language=data.get("language", DEFAULT_LANGUAGE),
            )
        elif kind in _MEDIA_KEYS:
            payload = _PAYLOAD_TYPES[kind](url=data.get(_MEDIA_KEYS[kind]))
        else:
            payload = TextPayload()

        position = _as_object(raw.get("position"), "Node position")
        return cls(
            id=str(raw["id"]),
            label=data.get("label", PLACEHOLDER_LABEL),
            position=Position(x=position.get("x", 0.0), y=position.get("y", 0.0)),
            is_root=bool(data.get("isRoot", False)),
            color=data.get("color", PALETTE[0]),
            payload=payload,
        )


class EdgeStyle(_Frozen):
    """Cosmetic edge properties. Never consulted by any operation."""
    color: str = "#94a3b8"
    width: float = 2.0
    animated: bool = True
    line_type: str = "smoothstep"


class Edge(_Frozen):
    """
    A directed edge connecting two nodes.

    Uses `source` and `target` as canonical field names.
    """
    id: str = Field(default_factory=generate_edge_id)
    source: str  # Source node ID
    target: str  # Target node ID
    style: EdgeStyle = Field(default_factory=EdgeStyle)

    def to_wire(self) -> dict:
        return {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "type": self.style.line_type,
            "animated": self.style.animated,
            "style": {"stroke": self.style.color, "strokeWidth": self.style.width},
        }

    @classmethod
    def from_wire(cls, raw: dict) -> "Edge":
        raw = _as_object(raw, "Edge")
        style = _as_object(raw.get("style"), "Edge style")
        defaults = EdgeStyle()
        return cls(
            id=str(raw["id"]),
            source=str(raw["source"]),
            target=str(raw["target"]),
            style=EdgeStyle(
                color=style.get("stroke", defaults.color),
                width=style.get("strokeWidth", defaults.width),
                animated=raw.get("animated", defaults.animated),
                line_type=raw.get("type") or defaults.line_type,
            ),
        )


class Document(_Frozen):
    """
    The complete mind map.
    This is what gets saved to/loaded from the remote store.
    """
    id: Optional[str] = None  # Assigned by the store on first create
    name: str = UNTITLED_NAME
    description: Optional[str] = None
    nodes: tuple[Node, ...] = ()
    edges: tuple[Edge, ...] = ()
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def new(cls, name: str = UNTITLED_NAME, root_label: str = ROOT_LABEL) -> "Document":
        """Create a fresh document holding only the root node."""
        root = Node(
            label=root_label,
            position=Position(x=ROOT_POSITION[0], y=ROOT_POSITION[1]),
            is_root=True,
            color=ROOT_COLOR,
        )
        return cls(name=name, nodes=(root,))

    @property
    def root(self) -> Optional[Node]:
        for node in self.nodes:
            if node.is_root:
                return node
        return None

    def node_map(self) -> dict[str, Node]:
        return {n.id: n for n in self.nodes}

    def get_node(self, node_id: str) -> Optional[Node]:
        """Get a node by ID."""
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def get_edge(self, edge_id: str) -> Optional[Edge]:
        """Get an edge by ID."""
        for edge in self.edges:
            if edge.id == edge_id:
                return edge
        return None

    def to_wire(self) -> dict:
        """Convert to the request body of a create/replace call."""
        body: dict[str, Any] = {
            "name": self.name,
            "nodes": [n.to_wire() for n in self.nodes],
            "edges": [e.to_wire() for e in self.edges],
        }
        if self.description is not None:
            body["description"] = self.description
        return body

    @classmethod
    def from_wire(cls, data: dict) -> "Document":
        """Create a Document from a store response."""
        data = _as_object(data, "Mind map")
        return cls(
            id=data.get("id"),
            name=data.get("name") or UNTITLED_NAME,
            description=data.get("description"),
            nodes=tuple(Node.from_wire(n) for n in data.get("nodes") or []),
            edges=tuple(Edge.from_wire(e) for e in data.get("edges") or []),
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
        )


class DocumentSummary(_Frozen):
    """List entry for a stored mind map (no node/edge bodies)."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    name: str
    description: Optional[str] = None
    thumbnail: Optional[str] = None
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")
