"""
Document Model - Holds the current document snapshot for one open mind map.

This module implements:
- Single document state (one mind map open per model)
- Read-only snapshot access for rendering
- Transactional apply(): a mutation either produces a whole new snapshot or
  leaves the current one untouched
- Dirty tracking and change callbacks for re-rendering
"""

from typing import Any, Callable, Optional

import structlog

from .models import Document, Edge, Node, UNTITLED_NAME
from .mutations import Mutation

logger = structlog.get_logger(__name__)


class DocumentModel:
    """
    Owns the current Document of an editor view.

    The Document itself is immutable; every successful mutation replaces the
    snapshot in one assignment, so a consumer always sees either the state
    before or the state after a user action, never something in between.
    """

    def __init__(self, document: Optional[Document] = None):
        self._document: Document = document if document is not None else Document.new()
        self._dirty = False  # True if unsaved changes exist
        self._on_change_callbacks: list[Callable[[Document], None]] = []

    @classmethod
    def new(cls, name: str = UNTITLED_NAME) -> "DocumentModel":
        """Create a model holding a fresh document with a single root."""
        return cls(Document.new(name=name))

    # --- Properties ---

    @property
    def document(self) -> Document:
        """Get the current snapshot."""
        return self._document

    @property
    def nodes(self) -> tuple[Node, ...]:
        return self._document.nodes

    @property
    def edges(self) -> tuple[Edge, ...]:
        return self._document.edges

    @property
    def is_dirty(self) -> bool:
        """Check if there are unsaved changes."""
        return self._dirty

    @property
    def root_id(self) -> Optional[str]:
        root = self._document.root
        return root.id if root else None

    def get_node(self, node_id: str) -> Optional[Node]:
        return self._document.get_node(node_id)

    def get_edge(self, edge_id: str) -> Optional[Edge]:
        return self._document.get_edge(edge_id)

    def children_of(self, node_id: str) -> list[Node]:
        """Direct targets of a node's outgoing edges."""
        targets = {e.target for e in self._document.edges if e.source == node_id}
        return [n for n in self._document.nodes if n.id in targets]

    # --- Change Callbacks ---

    def on_change(self, callback: Callable[[Document], None]):
        """Register a callback for document changes."""
        self._on_change_callbacks.append(callback)

    def _notify_change(self):
        for callback in self._on_change_callbacks:
            try:
                callback(self._document)
            except Exception:
                logger.exception("change_callback_failed", document_id=self._document.id)

    # --- Updates ---

    def apply(self, mutation: Mutation) -> Any:
        """
        Apply a mutation and return its result.

        Errors raised by the mutation propagate; the snapshot is replaced only
        after the mutation returned a complete new document.
        """
        applied = mutation.apply(self._document)
        if applied.document is self._document:
            logger.debug("mutation_noop", mutation=type(mutation).__name__)
            return applied.result

        self._document = applied.document
        self._dirty = True
        logger.debug(
            "mutation_applied",
            mutation=type(mutation).__name__,
            nodes=len(self._document.nodes),
            edges=len(self._document.edges),
        )
        self._notify_change()
        return applied.result

    def load(self, document: Document):
        """Replace the whole snapshot with a hydrated document."""
        self._document = document
        self._dirty = False
        logger.info(
            "document_loaded",
            document_id=document.id,
            nodes=len(document.nodes),
            edges=len(document.edges),
        )
        self._notify_change()

    def mark_saved(self):
        """Clear the dirty flag after a successful save."""
        self._dirty = False

    def get_state(self) -> dict:
        """Get the current state for API/CLI responses."""
        return {
            "document": {"id": self._document.id, **self._document.to_wire()},
            "is_dirty": self._dirty,
        }
