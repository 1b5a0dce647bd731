"""
Settings for the editor core, the REST server and the CLI.

Values come from init kwargs, then ``MINDMAP_*`` environment variables, then
the defaults below.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Unified settings object."""

    model_config = SettingsConfigDict(env_prefix="MINDMAP_", frozen=True)

    # Persistence API consumed by the adapter
    api_base_url: str = "http://127.0.0.1:8765"
    request_timeout: float = 30.0
    # Opaque identity supplied by the auth layer
    owner_id: str = "local-user"

    # REST server
    host: str = "127.0.0.1"
    port: int = 8765
    data_dir: Path = Field(default_factory=lambda: Path.home() / ".mindmaps")
    cors_origins: list[str] = Field(default_factory=lambda: [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ])

    # Layout size hints
    node_width: float = 180
    node_height: float = 60

    log_level: str = "INFO"
    log_json: bool = False


@lru_cache
def get_settings() -> Settings:
    return Settings()
