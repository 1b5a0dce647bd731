"""
Mutation operations on a Document.

Every operation is a small frozen dataclass whose apply() takes a Document and
returns an Applied(document, result) pair. apply() never modifies its input:
it either raises before building anything or returns a complete new Document.
DocumentModel.apply() swaps snapshots only on success, so a failed mutation
leaves the visible document exactly as it was.
"""

from collections import deque
from dataclasses import dataclass, field
import random
from typing import Any, Mapping, Optional

from .errors import Forbidden, NotFound, ValidationFailed
from .models import (
    PALETTE,
    PLACEHOLDER_LABEL,
    Document,
    Edge,
    EdgeStyle,
    Node,
    NodeKind,
    Payload,
    Position,
    default_payload,
)


# Placement of a new child relative to its parent
CHILD_OFFSET_X = 250.0
CHILD_JITTER_Y = 50.0


@dataclass(frozen=True)
class Applied:
    """Result of applying a mutation."""
    document: Document
    result: Any = None


class Mutation:
    """Base class: a pure Document -> Document transformation."""

    def apply(self, document: Document) -> Applied:
        raise NotImplementedError


def _require_node(document: Document, node_id: str) -> Node:
    node = document.get_node(node_id)
    if node is None:
        raise NotFound(f"Node not found: {node_id}")
    return node


def _replace_node(document: Document, node: Node) -> Document:
    nodes = tuple(node if n.id == node.id else n for n in document.nodes)
    return document.model_copy(update={"nodes": nodes})


@dataclass(frozen=True)
class AddChild(Mutation):
    """Create a node next to `parent_id` and an edge parent -> child."""
    parent_id: str
    kind: NodeKind = NodeKind.TEXT
    label: Optional[str] = None
    rng: Optional[random.Random] = field(default=None, compare=False)

    def apply(self, document: Document) -> Applied:
        parent = _require_node(document, self.parent_id)
        rng = self.rng or random

        label = (self.label or "").strip() or PLACEHOLDER_LABEL
        color = rng.choice(PALETTE)
        child = Node(
            label=label,
            position=Position(
                x=parent.position.x + CHILD_OFFSET_X,
                y=parent.position.y + rng.uniform(-CHILD_JITTER_Y, CHILD_JITTER_Y),
            ),
            color=color,
            payload=default_payload(self.kind),
        )
        edge = Edge(
            source=parent.id,
            target=child.id,
            style=EdgeStyle(color=color),
        )
        updated = document.model_copy(update={
            "nodes": document.nodes + (child,),
            "edges": document.edges + (edge,),
        })
        return Applied(updated, child.id)


@dataclass(frozen=True)
class RenameNode(Mutation):
    """Replace a node's label. Blank labels are ignored."""
    node_id: str
    label: str

    def apply(self, document: Document) -> Applied:
        node = _require_node(document, self.node_id)
        label = (self.label or "").strip()
        if not label:
            return Applied(document, False)
        return Applied(_replace_node(document, node.model_copy(update={"label": label})), True)


@dataclass(frozen=True)
class UpdatePayload(Mutation):
    """Replace the kind-specific payload of a node."""
    node_id: str
    payload: Payload

    def apply(self, document: Document) -> Applied:
        node = _require_node(document, self.node_id)
        if self.payload.kind != node.payload.kind:
            raise ValidationFailed(
                f"Cannot apply a {self.payload.kind} payload to "
                f"{node.payload.kind} node {node.id}"
            )
        return Applied(_replace_node(document, node.model_copy(update={"payload": self.payload})))


@dataclass(frozen=True)
class Connect(Mutation):
    """
    Add an edge source -> target.

    Self-loops and parallel edges are accepted.
    """
    source_id: str
    target_id: str
    style: Optional[EdgeStyle] = None

    def apply(self, document: Document) -> Applied:
        node_ids = {n.id for n in document.nodes}
        if self.source_id not in node_ids:
            raise NotFound(f"Source node not found: {self.source_id}")
        if self.target_id not in node_ids:
            raise NotFound(f"Target node not found: {self.target_id}")

        edge = Edge(
            source=self.source_id,
            target=self.target_id,
            style=self.style or EdgeStyle(),
        )
        return Applied(document.model_copy(update={"edges": document.edges + (edge,)}), edge.id)


def descendants(document: Document, node_id: str) -> set[str]:
    """
    Return node_id plus every node reachable from it via outgoing edges.

    Breadth-first over the source -> target adjacency with a visited set, so
    cycles and deep chains are handled without recursion.
    """
    children: dict[str, list[str]] = {}
    for edge in document.edges:
        children.setdefault(edge.source, []).append(edge.target)

    visited = {node_id}
    queue = deque([node_id])
    while queue:
        current = queue.popleft()
        for child in children.get(current, ()):
            if child not in visited:
                visited.add(child)
                queue.append(child)
    return visited


@dataclass(frozen=True)
class DeleteSubtree(Mutation):
    """Delete a node and every descendant, with all edges touching them."""
    node_id: str

    def apply(self, document: Document) -> Applied:
        node = _require_node(document, self.node_id)
        if node.is_root:
            raise Forbidden("The root node cannot be deleted")

        doomed = descendants(document, node.id)
        # A cycle back to the root must not take the root with it
        if any(n.is_root and n.id in doomed for n in document.nodes):
            raise Forbidden("Deleting this branch would remove the root node")

        updated = document.model_copy(update={
            "nodes": tuple(n for n in document.nodes if n.id not in doomed),
            "edges": tuple(
                e for e in document.edges
                if e.source not in doomed and e.target not in doomed
            ),
        })
        return Applied(updated, len(doomed))


@dataclass(frozen=True)
class RemoveEdge(Mutation):
    """Remove one edge; its endpoints stay."""
    edge_id: str

    def apply(self, document: Document) -> Applied:
        if document.get_edge(self.edge_id) is None:
            raise NotFound(f"Edge not found: {self.edge_id}")
        edges = tuple(e for e in document.edges if e.id != self.edge_id)
        return Applied(document.model_copy(update={"edges": edges}), True)


@dataclass(frozen=True)
class MoveNode(Mutation):
    """Set one node's position (manual drag)."""
    node_id: str
    x: float
    y: float

    def apply(self, document: Document) -> Applied:
        node = _require_node(document, self.node_id)
        moved = node.model_copy(update={"position": Position(x=self.x, y=self.y)})
        return Applied(_replace_node(document, moved))


@dataclass(frozen=True)
class ApplyPositions(Mutation):
    """
    Write back positions computed by the layout engine.

    Only `position` is touched, and only for nodes that still exist; ids that
    are unknown to the document are ignored.
    """
    positions: Mapping[str, tuple[float, float]]

    def apply(self, document: Document) -> Applied:
        moved = 0
        nodes = []
        for node in document.nodes:
            if node.id in self.positions:
                x, y = self.positions[node.id]
                node = node.model_copy(update={"position": Position(x=x, y=y)})
                moved += 1
            nodes.append(node)
        if not moved:
            return Applied(document, 0)
        return Applied(document.model_copy(update={"nodes": tuple(nodes)}), moved)


@dataclass(frozen=True)
class RenameDocument(Mutation):
    name: str

    def apply(self, document: Document) -> Applied:
        name = (self.name or "").strip()
        if not name:
            return Applied(document, False)
        return Applied(document.model_copy(update={"name": name}), True)


@dataclass(frozen=True)
class AssignDocumentId(Mutation):
    """Record the id the store assigned on first create."""
    document_id: str

    def apply(self, document: Document) -> Applied:
        return Applied(document.model_copy(update={"id": self.document_id}))
