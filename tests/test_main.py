import pytest
from fastapi import status
from fastapi.testclient import TestClient
from prometheus_client import REGISTRY

from app.core.exceptions import DatabaseException
from app.main import app
from app.services.database import get_collection


def test_root(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "message": "Server is Live!"}


def test_healthz(client):
    assert client.get("/healthz").json() == {"status": "ok"}


def _request_count(endpoint, method="GET", http_status="200"):
    value = REGISTRY.get_sample_value(
        "http_requests_total",
        {"method": method, "endpoint": endpoint, "http_status": http_status}
    )
    return value or 0


def test_metrics_exposes_request_counter(client):
    before = _request_count("/healthz")
    client.get("/healthz")
    assert _request_count("/healthz") == before + 1

    resp = client.get("/metrics")
    assert resp.status_code == 200
    assert "http_requests_total" in resp.text


def test_metrics_label_keeps_router_prefix(client):
    before = _request_count("/api/credit/plan")
    client.get("/api/credit/plan")
    assert _request_count("/api/credit/plan") == before + 1


def test_unknown_path_is_counted_as_unmatched(client):
    before = _request_count("unmatched", http_status="404")
    client.get("/no-such-page")
    assert _request_count("unmatched", http_status="404") == before + 1


def test_unexpected_error_uses_error_envelope_and_refunds(client, make_user, make_chat, users, text_generator):
    user_id, headers = make_user(credits=5)
    chat_id = make_chat(user_id)
    text_generator.error = RuntimeError("boom")

    resp = client.post("/api/message/text", json={"chatId": chat_id, "prompt": "Hi"}, headers=headers)

    assert resp.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert resp.json() == {
        "success": False,
        "message": "Unexpected error: RuntimeError",
        "details": {"error": "boom"}
    }
    assert users.docs[user_id]["credits"] == 5


def test_collection_access_without_connection_fails():
    with pytest.raises(DatabaseException) as exc_info:
        get_collection("users")
    assert exc_info.value.status_code == 500


def test_route_without_database_returns_error_envelope(make_user):
    # no repository overrides, so the providers hit the unconnected database
    _, headers = make_user()
    resp = TestClient(app).get("/api/chat/get", headers=headers)
    assert resp.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert resp.json()["success"] is False
    assert resp.json()["message"] == "Database connection not established"
