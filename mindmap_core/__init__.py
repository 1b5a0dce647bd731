"""
Mind Map Core - Document model, mutations, layout and persistence adapters.

This package holds the editing logic shared by the REST server and the CLI,
ensuring a single source of truth for all mind map rules.
"""

from .models import (
    # Enums
    NodeKind,
    # Payload variants
    TextPayload,
    ImagePayload,
    CodePayload,
    AudioPayload,
    VideoPayload,
    default_payload,
    # Core models
    Position,
    Node,
    EdgeStyle,
    Edge,
    Document,
    DocumentSummary,
)
from .errors import (
    MindMapError,
    NotFound,
    Forbidden,
    ValidationFailed,
    LayoutUnavailable,
    PersistenceFailed,
)
from .mutations import (
    Applied,
    Mutation,
    AddChild,
    RenameNode,
    UpdatePayload,
    Connect,
    DeleteSubtree,
    RemoveEdge,
    MoveNode,
    ApplyPositions,
    RenameDocument,
    AssignDocumentId,
    descendants,
)
from .document_model import DocumentModel
from .validation import validate_document, validation_summary, ValidationIssue, IssueSeverity
from .layout import LayoutAdapter, LayoutEngine, LayeredLayoutEngine
from .persistence import PersistenceAdapter
from .controller import InteractionController, Notifications, NotificationLevel, EditState

__all__ = [
    # Enums
    "NodeKind",
    # Payloads
    "TextPayload",
    "ImagePayload",
    "CodePayload",
    "AudioPayload",
    "VideoPayload",
    "default_payload",
    # Models
    "Position",
    "Node",
    "EdgeStyle",
    "Edge",
    "Document",
    "DocumentSummary",
    # Errors
    "MindMapError",
    "NotFound",
    "Forbidden",
    "ValidationFailed",
    "LayoutUnavailable",
    "PersistenceFailed",
    # Mutations
    "Applied",
    "Mutation",
    "AddChild",
    "RenameNode",
    "UpdatePayload",
    "Connect",
    "DeleteSubtree",
    "RemoveEdge",
    "MoveNode",
    "ApplyPositions",
    "RenameDocument",
    "AssignDocumentId",
    "descendants",
    # Model holder
    "DocumentModel",
    # Validation
    "validate_document",
    "validation_summary",
    "ValidationIssue",
    "IssueSeverity",
    # Layout
    "LayoutAdapter",
    "LayoutEngine",
    "LayeredLayoutEngine",
    # Persistence
    "PersistenceAdapter",
    # Controller
    "InteractionController",
    "Notifications",
    "NotificationLevel",
    "EditState",
]
