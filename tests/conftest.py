# tests/conftest.py
"""
Shared test fixtures.

Sample mind map:

        R --e1--> A --e3--> C
        R --e2--> B
"""
import httpx
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from mindmap_core.models import CodePayload, Document, Edge, ImagePayload, Node, Position
from mindmap_core.persistence import PersistenceAdapter
from mindmap_core.settings import Settings
from mindmap_server.main import create_app
from mindmap_server.repository import MindMapRepository


OWNER = "tester"


@pytest.fixture
def sample_document() -> Document:
    return Document(
        name="Sample",
        nodes=(
            Node(id="R", label="Root", position=Position(x=400, y=300), is_root=True),
            Node(id="A", label="Alpha", position=Position(x=650, y=280)),
            Node(id="B", label="Beta", position=Position(x=650, y=330),
                 payload=ImagePayload(url="https://example.com/b.png")),
            Node(id="C", label="Gamma", position=Position(x=900, y=280),
                 payload=CodePayload(source="print(1)", language="python")),
        ),
        edges=(
            Edge(id="e1", source="R", target="A"),
            Edge(id="e2", source="R", target="B"),
            Edge(id="e3", source="A", target="C"),
        ),
    )


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(data_dir=tmp_path / "data", owner_id=OWNER)


@pytest.fixture
def repository(settings) -> MindMapRepository:
    return MindMapRepository(settings.data_dir)


@pytest.fixture
def app(repository, settings):
    return create_app(repository=repository, settings=settings)


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest_asyncio.fixture
async def adapter(app):
    """Persistence adapter talking to the real server app in-process."""
    http = httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test")
    yield PersistenceAdapter(owner_id=OWNER, client=http)
    await http.aclose()
