"""Mind map persistence API (FastAPI) backed by JSON files."""

from .main import create_app, run
from .repository import MindMapRepository

__all__ = ["create_app", "run", "MindMapRepository"]
