# tests/test_server.py
"""Tests for the REST API (mindmap_server/main.py)."""
import pytest
from fastapi.testclient import TestClient

from conftest import OWNER


def _create(client, document, **extra):
    body = {**document.to_wire(), "ownerId": OWNER, **extra}
    return client.post("/mindmaps", json=body)


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_create_returns_201_with_timestamps(client, sample_document):
    response = _create(client, sample_document)

    assert response.status_code == 201
    body = response.json()
    assert body["id"]
    assert body["createdAt"] == body["updatedAt"]
    assert len(body["nodes"]) == 4


def test_create_requires_owner(client, sample_document):
    response = client.post("/mindmaps", json=sample_document.to_wire())
    assert response.status_code == 400
    assert "ownerId" in response.json()["error"]


def test_create_blank_name_gets_default(client, sample_document):
    body = _create(client, sample_document, name="  ").json()
    assert body["name"] == "Untitled Mind Map"


def test_create_rejects_dangling_edge(client, sample_document):
    wire = sample_document.to_wire()
    wire["edges"].append({"id": "bad", "source": "A", "target": "ghost"})
    response = client.post("/mindmaps", json={**wire, "ownerId": OWNER})

    assert response.status_code == 400
    assert "ghost" in response.json()["error"]


def test_create_rejects_malformed_nodes(client):
    response = client.post("/mindmaps", json={"ownerId": OWNER, "nodes": [{"data": {}}], "edges": []})
    assert response.status_code == 400


@pytest.mark.parametrize("field, value", [
    ("data", "oops"),
    ("position", [1, 2]),
])
def test_create_rejects_non_object_node_fields(client, sample_document, field, value):
    wire = sample_document.to_wire()
    wire["nodes"][1][field] = value

    response = client.post("/mindmaps", json={**wire, "ownerId": OWNER})

    assert response.status_code == 400
    assert "must be an object" in response.json()["error"]


def test_replace_rejects_non_object_edge(client, sample_document):
    created = _create(client, sample_document).json()
    wire = sample_document.to_wire()
    wire["edges"][0]["style"] = "dashed"

    response = client.put(f"/mindmaps/{created['id']}", json=wire)

    assert response.status_code == 400
    assert client.get(f"/mindmaps/{created['id']}").json()["edges"] == created["edges"]


def test_create_rejects_non_json_shape(client):
    response = client.post("/mindmaps", json={"ownerId": OWNER, "nodes": "lots"})
    assert response.status_code == 400
    assert "error" in response.json()


def test_list_requires_owner(client):
    response = client.get("/mindmaps")
    assert response.status_code == 400
    assert response.json()["error"] == "ownerId is required"


def test_list_has_no_bodies_and_newest_first(client, sample_document):
    first = _create(client, sample_document, name="First").json()
    second = _create(client, sample_document, name="Second").json()
    client.put(f"/mindmaps/{first['id']}", json={**sample_document.to_wire(), "name": "First again"})

    items = client.get("/mindmaps", params={"ownerId": OWNER}).json()

    assert [i["id"] for i in items] == [first["id"], second["id"]]
    assert "nodes" not in items[0]
    assert client.get("/mindmaps", params={"ownerId": "nobody"}).json() == []


def test_get_missing_is_404_with_error(client):
    response = client.get("/mindmaps/mm-nothing")
    assert response.status_code == 404
    assert "error" in response.json()


def test_put_replaces_document(client, sample_document):
    created = _create(client, sample_document).json()
    wire = sample_document.to_wire()
    wire["nodes"] = wire["nodes"][:1]
    wire["edges"] = []

    response = client.put(f"/mindmaps/{created['id']}", json={**wire, "name": "Trimmed"})

    assert response.status_code == 200
    body = response.json()
    assert body["name"] == "Trimmed"
    assert len(body["nodes"]) == 1
    assert body["createdAt"] == created["createdAt"]
    assert body["ownerId"] == OWNER


def test_put_missing_fields_is_400(client, sample_document):
    created = _create(client, sample_document).json()
    response = client.put(f"/mindmaps/{created['id']}", json={"name": "x"})
    assert response.status_code == 400


def test_put_unknown_is_404(client, sample_document):
    response = client.put("/mindmaps/mm-ghost", json=sample_document.to_wire())
    assert response.status_code == 404


def test_delete(client, sample_document):
    created = _create(client, sample_document).json()

    response = client.delete(f"/mindmaps/{created['id']}")

    assert response.json() == {"message": "Mind map deleted"}
    assert client.get(f"/mindmaps/{created['id']}").status_code == 404
    assert client.delete(f"/mindmaps/{created['id']}").status_code == 404


def test_stored_nodes_drop_unknown_data_keys(client, sample_document):
    wire = sample_document.to_wire()
    wire["nodes"][0]["data"]["onLabelChange"] = "[function]"
    created = client.post("/mindmaps", json={**wire, "ownerId": OWNER}).json()

    assert "onLabelChange" not in created["nodes"][0]["data"]


def test_internal_failure_is_500(app, repository, monkeypatch):
    def explode(mindmap_id):
        raise RuntimeError("disk on fire")

    monkeypatch.setattr(repository, "get", explode)
    client = TestClient(app, raise_server_exceptions=False)

    response = client.get("/mindmaps/mm-1")

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}
