"""API tests for the designer endpoints."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from flowdesigner.core.config import Settings
from flowdesigner.export.models import ExportState
from flowdesigner.web.app import create_app
from tests.conftest import sample_document


@pytest.fixture
def client() -> TestClient:
    app = create_app(settings=Settings())
    return TestClient(app)


def new_session(client: TestClient, **body) -> dict:
    resp = client.post("/api/designer/sessions", json={"projectId": 9, **body})
    assert resp.status_code == 200
    return resp.json()


class TestHealthAndPalette:
    def test_health(self, client: TestClient) -> None:
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "healthy"

    def test_palette_lists_every_node_type(self, client: TestClient) -> None:
        resp = client.get("/api/designer/palette")
        assert resp.status_code == 200
        types = [item["type"] for item in resp.json()]
        assert types[0] == "startNode"
        assert len(set(types)) == 8


class TestSessions:
    def test_create_session_bootstraps_default_diagram(self, client: TestClient) -> None:
        data = new_session(client)
        assert data["projectId"] == 9
        assert [n["id"] for n in data["document"]["nodes"]] == ["start", "end"]
        assert data["document"]["edges"][0]["markerEnd"] == {"type": "arrowclosed"}

    def test_create_session_with_flow_data(self, client: TestClient) -> None:
        data = new_session(client, flowData=sample_document().to_json_dict())
        assert len(data["document"]["nodes"]) == 3
        assert data["document"]["metadata"]["name"] == "Checkout"

    def test_create_session_with_invalid_flow_data(self, client: TestClient) -> None:
        resp = client.post(
            "/api/designer/sessions",
            json={"projectId": 9, "flowData": {"nodes": [{"id": "x"}]}},
        )
        assert resp.status_code == 400

    def test_get_session_not_found(self, client: TestClient) -> None:
        resp = client.get("/api/designer/sessions/nonexistent")
        assert resp.status_code == 404

    def test_close_session(self, client: TestClient) -> None:
        sid = new_session(client)["sessionId"]
        assert client.delete(f"/api/designer/sessions/{sid}").status_code == 200
        assert client.get(f"/api/designer/sessions/{sid}").status_code == 404
        assert client.delete(f"/api/designer/sessions/{sid}").status_code == 404


class TestEditing:
    def test_add_node(self, client: TestClient) -> None:
        sid = new_session(client)["sessionId"]
        resp = client.post(
            f"/api/designer/sessions/{sid}/nodes",
            json={"type": "stepNode", "label": "Pay", "position": {"x": 10, "y": 20}},
        )
        assert resp.status_code == 200
        node = resp.json()
        assert node["id"].startswith("stepNode_")
        assert node["position"] == {"x": 10.0, "y": 20.0}
        doc = client.get(f"/api/designer/sessions/{sid}").json()["document"]
        assert len(doc["nodes"]) == 3

    def test_add_node_invalid_type(self, client: TestClient) -> None:
        sid = new_session(client)["sessionId"]
        resp = client.post(f"/api/designer/sessions/{sid}/nodes", json={"type": "bogus", "label": "X"})
        assert resp.status_code == 400

    def test_patch_node(self, client: TestClient) -> None:
        sid = new_session(client)["sessionId"]
        resp = client.patch(
            f"/api/designer/sessions/{sid}/nodes/start",
            json={"data": {"label": "Begin", "description": "Entry point"}},
        )
        assert resp.status_code == 200
        start = resp.json()["nodes"][0]
        assert start["data"] == {"label": "Begin", "description": "Entry point"}

    def test_patch_unknown_node_leaves_document(self, client: TestClient) -> None:
        sid = new_session(client)["sessionId"]
        resp = client.patch(f"/api/designer/sessions/{sid}/nodes/ghost", json={"data": {"label": "X"}})
        assert resp.status_code == 200
        assert [n["data"]["label"] for n in resp.json()["nodes"]] == ["Start", "End"]

    def test_delete_node_removes_edges(self, client: TestClient) -> None:
        sid = new_session(client)["sessionId"]
        resp = client.delete(f"/api/designer/sessions/{sid}/nodes/start")
        assert resp.status_code == 200
        doc = resp.json()
        assert [n["id"] for n in doc["nodes"]] == ["end"]
        assert doc["edges"] == []

    def test_connect_ignores_duplicates(self, client: TestClient) -> None:
        sid = new_session(client)["sessionId"]
        resp = client.post(f"/api/designer/sessions/{sid}/edges", json={"source": "end", "target": "start"})
        assert len(resp.json()["edges"]) == 2
        resp = client.post(f"/api/designer/sessions/{sid}/edges", json={"source": "end", "target": "start"})
        assert len(resp.json()["edges"]) == 2

    def test_reset(self, client: TestClient) -> None:
        sid = new_session(client, flowData=sample_document().to_json_dict())["sessionId"]
        resp = client.post(f"/api/designer/sessions/{sid}/reset")
        assert resp.status_code == 200
        assert [n["id"] for n in resp.json()["nodes"]] == ["start", "end"]


class TestSaveAndExport:
    def test_save(self, client: TestClient) -> None:
        sid = new_session(client)["sessionId"]
        resp = client.post(f"/api/designer/sessions/{sid}/save", json={"name": "Flow A", "description": "First"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["lastSaved"] == {"name": "Flow A", "description": "First"}
        assert data["document"]["metadata"]["name"] == "Flow A"

    def test_save_requires_name(self, client: TestClient) -> None:
        sid = new_session(client)["sessionId"]
        resp = client.post(f"/api/designer/sessions/{sid}/save", json={"name": "  "})
        assert resp.status_code == 400

    def test_export_returns_pdf(self, client: TestClient) -> None:
        sid = new_session(client, flowData=sample_document().to_json_dict())["sessionId"]
        resp = client.post(f"/api/designer/sessions/{sid}/export")
        assert resp.status_code == 200
        assert resp.headers["content-type"] == "application/pdf"
        assert 'filename="Checkout.pdf"' in resp.headers["content-disposition"]
        assert resp.content.startswith(b"%PDF")

    def test_export_unknown_session(self, client: TestClient) -> None:
        resp = client.post("/api/designer/sessions/nope/export")
        assert resp.status_code == 404

    def test_export_while_exporting_conflicts(self, client: TestClient) -> None:
        sid = new_session(client, flowData=sample_document().to_json_dict())["sessionId"]
        exporter = client.app.state.session_manager.get_session(sid).designer.exporter
        exporter._state = ExportState.EXPORTING

        resp = client.post(f"/api/designer/sessions/{sid}/export")
        assert resp.status_code == 409

        exporter._state = ExportState.IDLE
        assert client.post(f"/api/designer/sessions/{sid}/export").status_code == 200

    def test_session_payload_lists_toasts(self, client: TestClient) -> None:
        data = new_session(client)
        assert data["toasts"] == []
