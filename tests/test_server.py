import pytest
from fastapi.testclient import TestClient

from fxns.config import EngineConfig
from fxns.server import create_app
from fxns.store import InMemoryToolStore
from fxns.version import __version__

from support import RecordingTransport, json_response, pricing_draft, tip_draft


@pytest.fixture
def client():
    app = create_app(
        store=InMemoryToolStore(),
        config=EngineConfig(ai_provider="dummy"),
        http_transport=RecordingTransport(json_response('{"rate": 2}')),
    )
    return TestClient(app)


def _body(wire):
    return {key: value for key, value in wire.items() if key != "id"}


def _publish(client, wire):
    draft_id = wire["id"]
    assert client.put(f"/api/drafts/{draft_id}", json=_body(wire)).status_code == 200
    assert client.post(f"/api/drafts/{draft_id}/status", json={"status": "testing"}).status_code == 200
    res = client.post(f"/api/drafts/{draft_id}/publish")
    assert res.status_code == 200
    return res.json()


def test_health(client):
    res = client.get("/health")
    assert res.status_code == 200
    assert res.json() == {"status": "ok", "version": __version__}


def test_routes_present(client):
    route_map = {route.path: route.methods for route in client.app.routes if hasattr(route, "methods")}
    expected = {
        ("/api/drafts/{draft_id}", "PUT"),
        ("/api/drafts/{draft_id}", "GET"),
        ("/api/drafts/{draft_id}/status", "POST"),
        ("/api/drafts/{draft_id}/test", "POST"),
        ("/api/drafts/{draft_id}/publish", "POST"),
        ("/api/tools/{tool_id}", "GET"),
        ("/api/tools/{tool_id}/run", "POST"),
        ("/api/metrics", "GET"),
    }
    for path, method in expected:
        assert path in route_map, f"{path} missing from app routes"
        assert method in route_map[path], f"{path} missing method {method}"


def test_save_and_load_draft(client):
    res = client.put("/api/drafts/tip", json=_body(tip_draft()))
    assert res.status_code == 200
    data = res.json()
    assert data["id"] == "tip"
    assert data["status"] == "draft"
    loaded = client.get("/api/drafts/tip").json()
    assert loaded["logicConfig"][0]["config"]["formula"] == "subtotal * tipPercentage / 100"


def test_invalid_definitions_are_rejected(client):
    wire = pricing_draft()
    wire["logicConfig"][2]["nextStepId"] = "check"
    res = client.put("/api/drafts/pricing", json=_body(wire))
    assert res.status_code == 422
    body = res.json()
    assert body["success"] is False
    assert body["errorType"] == "DefinitionError"
    assert any("cycle" in issue for issue in body["issues"])


def test_missing_draft_is_404(client):
    res = client.get("/api/drafts/ghost")
    assert res.status_code == 404
    assert res.json()["errorType"] == "ToolNotFoundError"


def test_bad_status_transition_is_409(client):
    client.put("/api/drafts/tip", json=_body(tip_draft()))
    res = client.post("/api/drafts/tip/publish")
    assert res.status_code == 409


def test_draft_test_run(client):
    client.put("/api/drafts/tip", json=_body(tip_draft()))
    res = client.post("/api/drafts/tip/test", json={"testData": {"subtotal": 3, "tipPercentage": 10}})
    assert res.status_code == 200
    data = res.json()
    assert data["success"] is True
    assert data["result"]["content"] == "0.3"
    assert data["executionTime"] == data["executionTimeMs"]
    assert [step["status"] for step in data["steps"]] == ["completed"]


def test_draft_test_run_reports_validation_problems(client):
    client.put("/api/drafts/tip", json=_body(tip_draft()))
    data = client.post("/api/drafts/tip/test", json={"testData": {"subtotal": 3}}).json()
    assert data["success"] is False
    assert data["errorType"] == "ValidationError"
    assert data["fields"][0]["fieldId"] == "tipPercentage"


def test_publish_and_run(client):
    tool = _publish(client, pricing_draft())
    assert client.get(f"/api/tools/{tool['id']}").json()["draftId"] == "pricing"

    premium = client.post(f"/api/tools/{tool['id']}/run", json={"input": {"amount": 150}}).json()
    assert premium["success"] is True
    assert premium["outputs"]["content"] == "150"
    assert "durationMs" in premium

    standard = client.post(f"/api/tools/{tool['id']}/run", json={"input": {"amount": 50}}).json()
    assert standard["outputs"]["content"] == "50"


def test_api_call_tool_uses_injected_transport(client):
    wire = {
        "id": "fx",
        "name": "FX",
        "logicConfig": [{"id": "rate", "type": "api_call", "config": {"url": "https://api.example.com/fx"}}],
        "outputConfig": {"format": "json"},
    }
    tool = _publish(client, wire)
    data = client.post(f"/api/tools/{tool['id']}/run", json={"input": {}}).json()
    assert data["outputs"]["data"] == {"rate": 2}


def test_unknown_tool_is_404(client):
    assert client.post("/api/tools/ghost/run", json={"input": {}}).status_code == 404


def test_metrics_endpoint(client):
    client.put("/api/drafts/tip", json=_body(tip_draft()))
    client.post("/api/drafts/tip/test", json={"testData": {"subtotal": 3, "tipPercentage": 10}})
    metrics = client.get("/api/metrics").json()["metrics"]
    assert metrics["runs"]["test"]["total_runs"] == 1
    assert metrics["steps"]["calculation"]["count"] == 1
