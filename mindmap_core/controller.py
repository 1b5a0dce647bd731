"""
Interaction Controller - Binds user gestures to mutation operations.

Holds the view state that is not part of the document:
- the selected node (at most one)
- the draft for the next node (label + kind)
- the inline label editor (Viewing / Editing)
- dismissible notifications shown to the user

Structural edits (add/delete) are followed by an explicit layout pass; drags,
renames and payload edits are not, so auto layout never fights manual
placement.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

import structlog

from .document_model import DocumentModel
from .errors import LayoutUnavailable, MindMapError, PersistenceFailed
from .layout import LayoutAdapter
from .models import Document, NodeKind, Payload, utcnow
from .mutations import (
    AddChild,
    AssignDocumentId,
    Connect,
    DeleteSubtree,
    RemoveEdge,
    RenameDocument,
    RenameNode,
    UpdatePayload,
)
from .persistence import PersistenceAdapter

logger = structlog.get_logger(__name__)


class NotificationLevel(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass
class Notification:
    level: NotificationLevel
    message: str
    created_at: datetime = field(default_factory=utcnow)


class Notifications:
    """Queue of dismissible messages for the user."""

    def __init__(self, limit: int = 50):
        self._items: list[Notification] = []
        self._limit = limit

    def push(self, level: NotificationLevel, message: str) -> Notification:
        item = Notification(level, message)
        self._items.append(item)
        if len(self._items) > self._limit:
            self._items.pop(0)
        return item

    def dismiss(self, item: Notification) -> bool:
        if item in self._items:
            self._items.remove(item)
            return True
        return False

    def clear(self):
        self._items.clear()

    @property
    def items(self) -> list[Notification]:
        return list(self._items)

    @property
    def last(self) -> Optional[Notification]:
        return self._items[-1] if self._items else None


class EditState(str, Enum):
    VIEWING = "viewing"
    EDITING = "editing"


@dataclass
class NodeDraft:
    """The "new node" form: name and kind of the next explicit add."""
    label: str = ""
    kind: NodeKind = NodeKind.TEXT


class InteractionController:
    """
    Translates gestures and keyboard commands into mutations.

    The controller never writes document fields itself; every change goes
    through DocumentModel.apply() with a mutation addressed by id.
    """

    def __init__(
        self,
        model: DocumentModel,
        persistence: Optional[PersistenceAdapter] = None,
        layout: Optional[LayoutAdapter] = None,
        notifications: Optional[Notifications] = None,
    ):
        self.model = model
        self.persistence = persistence
        self.layout = layout
        self.notifications = notifications or Notifications()

        self.selected_node_id: Optional[str] = None
        self.draft = NodeDraft()

        self.edit_state = EditState.VIEWING
        self.editing_node_id: Optional[str] = None
        self.edit_text = ""

        self._save_in_flight = False

    # --- Helpers ---

    def _notify(self, level: NotificationLevel, message: str):
        self.notifications.push(level, message)

    def _label_of(self, node_id: str) -> str:
        node = self.model.get_node(node_id)
        return node.label if node else node_id

    @property
    def save_in_flight(self) -> bool:
        return self._save_in_flight

    async def _relayout(self):
        if self.layout is None:
            return
        try:
            await self.layout.run(self.model)
        except LayoutUnavailable as e:
            self._notify(NotificationLevel.WARNING, str(e))

    # --- Selection ---

    def click_node(self, node_id: str) -> bool:
        """Canvas click on a node."""
        if self.model.get_node(node_id) is None:
            self._notify(NotificationLevel.WARNING, f"Node not found: {node_id}")
            return False
        self.selected_node_id = node_id
        return True

    def clear_selection(self):
        self.selected_node_id = None

    # --- Draft ---

    def set_draft(self, label: Optional[str] = None, kind: Optional[NodeKind | str] = None):
        if label is not None:
            self.draft.label = label
        if kind is not None:
            self.draft.kind = NodeKind(kind)

    # --- Structural edits ---

    async def add_node(self) -> Optional[str]:
        """Explicit "add node": child of the selection, named from the draft."""
        if self.selected_node_id is None:
            self._notify(NotificationLevel.WARNING, "Select a parent node first")
            return None
        label = self.draft.label.strip()
        if not label:
            self._notify(NotificationLevel.WARNING, "Enter a node name")
            return None

        try:
            node_id = self.model.apply(AddChild(self.selected_node_id, self.draft.kind, label))
        except MindMapError as e:
            self._notify(NotificationLevel.ERROR, str(e))
            return None

        self.draft.label = ""
        logger.info("node_added", node_id=node_id, parent_id=self.selected_node_id)
        self._notify(NotificationLevel.SUCCESS, f"Added {self.draft.kind.value} node: {label}")
        await self._relayout()
        return node_id

    async def quick_add(self) -> Optional[str]:
        """Placeholder child of the selection, which then becomes the selection."""
        if self.selected_node_id is None:
            self._notify(NotificationLevel.WARNING, "Select a parent node first")
            return None

        try:
            node_id = self.model.apply(AddChild(self.selected_node_id, self.draft.kind))
        except MindMapError as e:
            self._notify(NotificationLevel.ERROR, str(e))
            return None

        logger.info("node_quick_added", node_id=node_id, parent_id=self.selected_node_id)
        self.selected_node_id = node_id
        self._notify(
            NotificationLevel.SUCCESS,
            f"Added {self.draft.kind.value} node, double-click to rename",
        )
        await self._relayout()
        return node_id

    async def delete_selected(self) -> int:
        """Delete the selection and its descendants. Returns the count removed."""
        if self.selected_node_id is None:
            self._notify(NotificationLevel.WARNING, "Select a node first")
            return 0
        if self.selected_node_id == self.model.root_id:
            self._notify(NotificationLevel.WARNING, "The central topic cannot be deleted")
            return 0

        label = self._label_of(self.selected_node_id)
        try:
            removed = self.model.apply(DeleteSubtree(self.selected_node_id))
        except MindMapError as e:
            self._notify(NotificationLevel.WARNING, str(e))
            return 0

        if self.editing_node_id is not None and self.model.get_node(self.editing_node_id) is None:
            self.cancel_edit()
        self.selected_node_id = None

        if removed > 1:
            message = f'Deleted "{label}" and {removed - 1} descendant node(s)'
        else:
            message = f'Deleted "{label}"'
        self._notify(NotificationLevel.SUCCESS, message)
        await self._relayout()
        return removed

    def connect(self, source_id: str, target_id: str) -> Optional[str]:
        """Drag from one node handle to another."""
        try:
            return self.model.apply(Connect(source_id, target_id))
        except MindMapError as e:
            self._notify(NotificationLevel.WARNING, str(e))
            return None

    def disconnect(self, edge_id: str) -> bool:
        try:
            return self.model.apply(RemoveEdge(edge_id))
        except MindMapError as e:
            self._notify(NotificationLevel.WARNING, str(e))
            return False

    def update_payload(self, node_id: str, payload: Payload) -> bool:
        """Media picked or code edited inside a node."""
        try:
            self.model.apply(UpdatePayload(node_id, payload))
        except MindMapError as e:
            self._notify(NotificationLevel.WARNING, str(e))
            return False
        return True

    def rename_document(self, name: str) -> bool:
        return self.model.apply(RenameDocument(name))

    async def auto_layout(self):
        """The explicit "auto layout" button."""
        await self._relayout()

    # --- Inline label editing ---

    def begin_edit(self, node_id: str) -> bool:
        """Double-click on a node label."""
        node = self.model.get_node(node_id)
        if node is None:
            return False
        self.edit_state = EditState.EDITING
        self.editing_node_id = node_id
        self.edit_text = node.label
        return True

    def set_edit_text(self, text: str):
        if self.edit_state == EditState.EDITING:
            self.edit_text = text

    def commit_edit(self) -> bool:
        """Blur or Enter: rename with the edited text, back to viewing."""
        if self.edit_state != EditState.EDITING:
            return False
        node_id, text = self.editing_node_id, self.edit_text
        self._reset_edit()
        try:
            renamed = self.model.apply(RenameNode(node_id, text))
        except MindMapError as e:
            self._notify(NotificationLevel.WARNING, str(e))
            return False
        if renamed:
            self._notify(NotificationLevel.SUCCESS, "Node renamed")
        return renamed

    def cancel_edit(self):
        """Escape: discard the edited text."""
        self._reset_edit()

    def _reset_edit(self):
        self.edit_state = EditState.VIEWING
        self.editing_node_id = None
        self.edit_text = ""

    # --- Save ---

    async def save(self) -> bool:
        """
        Save the document. A trigger while a save is pending is ignored.

        On failure the document stays as it is, unsaved, and the user is told
        so they can retry.
        """
        if self.persistence is None:
            self._notify(NotificationLevel.ERROR, "No storage configured")
            return False
        if self._save_in_flight:
            logger.debug("save_ignored_in_flight")
            return False

        self._save_in_flight = True
        snapshot = self.model.document
        try:
            saved = await self.persistence.save(snapshot)
        except PersistenceFailed as e:
            hint = " (retry)" if e.retryable else ""
            self._notify(NotificationLevel.ERROR, f"Save failed: {e.message}{hint}")
            return False
        except MindMapError as e:
            self._notify(NotificationLevel.ERROR, f"Save failed: {e}")
            return False
        finally:
            self._save_in_flight = False

        if snapshot.id is None and saved.id is not None:
            self.model.apply(AssignDocumentId(saved.id))
        if _same_content(self.model.document, snapshot):
            self.model.mark_saved()
        self._notify(NotificationLevel.SUCCESS, "Mind map saved")
        return True

    # --- Keyboard ---

    async def handle_key(
        self,
        key: str,
        ctrl: bool = False,
        meta: bool = False,
        in_text_input: bool = False,
    ) -> bool:
        """
        Dispatch a key press. Returns True if the key was handled.

        While a label edit is open only Enter/Escape are interpreted; while
        another text input has focus nothing is.
        """
        command = ctrl or meta

        if self.edit_state == EditState.EDITING:
            if key == "Enter":
                self.commit_edit()
                return True
            if key == "Escape":
                self.cancel_edit()
                return True
            return False

        if in_text_input:
            return False

        if command and key.lower() == "s":
            await self.save()
            return True
        if key in ("Tab", "Insert"):
            await self.quick_add()
            return True
        if command and key == "Enter":
            if self.draft.label.strip():
                await self.add_node()
            else:
                await self.quick_add()
            return True
        if key in ("Delete", "Backspace"):
            await self.delete_selected()
            return True
        return False


def _same_content(current: Document, saved: Document) -> bool:
    return (
        current.nodes == saved.nodes
        and current.edges == saved.edges
        and current.name == saved.name
        and current.description == saved.description
    )
