"""HTTP surface of the document store."""

from __future__ import annotations

import pytest
from starlette.testclient import TestClient

from docstore.main import create_app

from conftest import make_settings


@pytest.fixture()
def client(settings, clock):
    with TestClient(create_app(settings=settings, clock=clock)) as client:
        yield client


@pytest.fixture()
def broken_client(broken_settings, clock):
    # startup must survive an unreachable database
    with TestClient(create_app(settings=broken_settings, clock=clock)) as client:
        yield client


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    assert data["database"] == "connected"
    assert data["timestamp"].endswith("Z")


def test_write_then_read_store(client):
    assert client.post("/api/bills", json={"id": "1", "title": "Budget"}).json() == {"success": True}
    assert client.post("/api/bills", json={"id": "2", "title": "Tax"}).json() == {"success": True}

    resp = client.get("/api/bills")
    assert resp.status_code == 200
    assert resp.json() == [{"id": "2", "title": "Tax"}, {"id": "1", "title": "Budget"}]


def test_read_unknown_store_is_empty(client):
    resp = client.get("/api/nothing-here")
    assert resp.status_code == 200
    assert resp.json() == []


def test_missing_id_is_bad_request(client):
    resp = client.post("/api/bills", json={"name": "x"})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Missing ID"}
    assert client.get("/api/bills").json() == []


def test_empty_body_is_bad_request(client):
    resp = client.post("/api/bills")
    assert resp.status_code == 400


def test_body_id_wins_over_path(client):
    client.post("/api/bills", json={"id": "from-body"})

    assert client.get("/api/bills/from-body").json() == {"id": "from-body"}


def test_point_read(client):
    client.post("/api/bills", json={"id": "1", "title": "Budget"})

    assert client.get("/api/bills/1").json() == {"id": "1", "title": "Budget"}
    resp = client.get("/api/members/1")
    assert resp.status_code == 404
    assert resp.json() == {"error": "Not Found"}


def test_delete_is_idempotent(client):
    client.post("/api/bills", json={"id": "1"})

    assert client.delete("/api/bills/1").json() == {"success": True}
    resp = client.delete("/api/bills/1")
    assert resp.status_code == 200
    assert resp.json() == {"success": True}
    assert client.get("/api/bills").json() == []


def test_export_snapshot(client):
    client.post("/api/bills", json={"id": "1"})
    client.post("/api/bills", json={"id": "2"})
    client.post("/api/members", json={"id": "m1"})

    resp = client.get("/api/system/export")
    assert resp.status_code == 200
    snapshot = resp.json()
    assert snapshot["version"] == "test-1"
    assert snapshot["recordCount"] == 3
    assert sorted(doc["id"] for doc in snapshot["data"]["bills"]) == ["1", "2"]
    assert snapshot["data"]["members"] == [{"id": "m1"}]


def test_system_routes_are_not_stores(client):
    client.post("/api/system", json={"id": "export"})

    resp = client.get("/api/system/export")
    assert "recordCount" in resp.json()


def test_import_snapshot(client):
    snapshot = {
        "version": "1.2-CLOUD-STABLE",
        "timestamp": "2026-01-01T00:00:00.000Z",
        "data": {"bills": [{"id": "1", "title": "Budget"}], "members": [{"id": "m1"}]},
        "recordCount": 2,
    }

    resp = client.post("/api/system/import", json=snapshot)
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "stores": 2, "recordCount": 2}
    assert client.get("/api/bills").json() == [{"id": "1", "title": "Budget"}]

    # exporting and re-importing gives the same state
    exported = client.get("/api/system/export").json()
    assert client.post("/api/system/import", json=exported).status_code == 200
    reexported = client.get("/api/system/export").json()

    def by_id(data):
        return {store: {doc["id"]: doc for doc in docs} for store, docs in data.items()}

    assert by_id(reexported["data"]) == by_id(exported["data"])


def test_import_rejects_documents_without_id(client):
    snapshot = {
        "version": "x",
        "timestamp": "2026-01-01T00:00:00.000Z",
        "data": {"bills": [{"id": "1"}, {"name": "no id"}]},
        "recordCount": 2,
    }

    resp = client.post("/api/system/import", json=snapshot)
    assert resp.status_code == 400
    assert "Missing ID" in resp.json()["error"]
    assert client.get("/api/bills").json() == []


def test_import_rejects_malformed_snapshot(client):
    resp = client.post("/api/system/import", json={"data": ["not", "a", "mapping"]})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid Snapshot"


def test_degraded_database(broken_client):
    resp = broken_client.get("/api/health")
    assert resp.status_code == 503
    assert resp.json()["status"] == "error"
    assert resp.json()["database"] == "disconnected"

    resp = broken_client.get("/api/bills")
    assert resp.status_code == 500
    assert resp.json() == {"error": "Read Error"}

    resp = broken_client.post("/api/bills", json={"id": "1"})
    assert resp.status_code == 500
    assert resp.json() == {"error": "Write Error"}

    resp = broken_client.delete("/api/bills/1")
    assert resp.status_code == 500
    assert resp.json() == {"error": "Delete Error"}

    resp = broken_client.get("/api/system/export")
    assert resp.status_code == 500
    body = resp.json()
    assert body["error"] == "Export Failed"
    assert "tip" in body and "reason" in body


def test_missing_id_checked_before_storage(broken_client):
    resp = broken_client.post("/api/bills", json={"title": "no id"})
    assert resp.status_code == 400


@pytest.fixture()
def frontend_client(tmp_path, clock):
    static_dir = tmp_path / "frontend"
    static_dir.mkdir()
    (static_dir / "index.html").write_text("<html>app shell</html>")
    (static_dir / "app.js").write_text("console.log('app');")
    settings = make_settings(
        f"sqlite+aiosqlite:///{tmp_path / 'docstore.db'}", static_dir=str(static_dir)
    )
    with TestClient(create_app(settings=settings, clock=clock)) as client:
        yield client


def test_frontend_routes_fall_back_to_index(frontend_client):
    resp = frontend_client.get("/bills/42/edit")
    assert resp.status_code == 200
    assert "app shell" in resp.text

    assert frontend_client.get("/").text == "<html>app shell</html>"
    assert "console.log" in frontend_client.get("/app.js").text


def test_missing_asset_is_not_found(frontend_client):
    assert frontend_client.get("/missing-logo.png").status_code == 404


def test_api_routes_win_over_frontend(frontend_client):
    frontend_client.post("/api/bills", json={"id": "1"})

    assert frontend_client.get("/api/bills").json() == [{"id": "1"}]
