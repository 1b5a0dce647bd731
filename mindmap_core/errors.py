"""
Error kinds raised by the editing core.

Mutations raise NotFound / Forbidden / ValidationFailed before producing a
new document. Adapters raise LayoutUnavailable / PersistenceFailed; both are
reported to the user and never leave the document half-changed.
"""

from typing import Optional


class MindMapError(Exception):
    """Base class for all editor errors."""


class NotFound(MindMapError):
    """A referenced node, edge or document does not exist."""


class Forbidden(MindMapError):
    """The operation is never allowed (e.g. deleting the root node)."""


class ValidationFailed(MindMapError):
    """Malformed input, such as a payload of the wrong kind for a node."""


class LayoutUnavailable(MindMapError):
    """The layout engine call failed. Positions stay as they were."""


class PersistenceFailed(MindMapError):
    """A network or server error on save/load."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        retryable: bool = False,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.retryable = retryable
