"""
Pydantic request models for the mind map REST API.

Bodies use the camelCase keys of the web client (``ownerId``). Nodes and
edges are checked by parsing them into core models before anything is stored.
"""

from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field


class CreateMindMapRequest(BaseModel):
    """Request to store a new mind map."""
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    description: Optional[str] = None
    nodes: list[dict[str, Any]] = Field(default_factory=list)
    edges: list[dict[str, Any]] = Field(default_factory=list)
    owner_id: Optional[str] = Field(default=None, alias="ownerId")


class ReplaceMindMapRequest(BaseModel):
    """Request to replace a mind map (full document, last write wins)."""
    name: str
    description: Optional[str] = None
    nodes: list[dict[str, Any]]
    edges: list[dict[str, Any]]
