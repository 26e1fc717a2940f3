"""Summary: API integration tests.

Importance: Validates FastAPI endpoints against the dashboard workflows.
Alternatives: Use manual curl testing only.
"""

from __future__ import annotations

from typing import Any

import pytest
from fastapi.testclient import TestClient

from opsdash.api import create_app
from opsdash.config import AppConfig
from opsdash.http import HttpResponse
from opsdash.storage.kv_store import MemoryKeyValueStore


def _build_config(api_key: str = "") -> AppConfig:
    """Summary: Build an AppConfig for API tests.

    Importance: Ensures tests never reach real provider endpoints.
    Alternatives: Load AppConfig from environment variables.
    """

    return AppConfig(
        storage_path="unused.db",
        ai_provider="mock",
        openai_api_key=None,
        openai_model="gpt-4o-mini",
        ollama_url="http://localhost:11434",
        ollama_model="llama3",
        api_host="127.0.0.1",
        api_port=8000,
        api_key=api_key,
        ads_base_url="https://graph.test/v1",
        messaging_base_url="https://graph.test/v1",
        analytics_token_url="https://token.test/token",
        analytics_base_url="https://data.test/v1",
        http_timeout=1.0,
    )


def _client(api_key: str = "") -> TestClient:
    return TestClient(create_app(_build_config(api_key), MemoryKeyValueStore()))


def test_health_and_connections() -> None:
    client = _client()
    assert client.get("/health").json() == {"status": "ok"}
    assert client.get("/connections").json() == {
        "ads": False,
        "analytics": False,
        "messaging": False,
    }


def test_save_and_disconnect_ads() -> None:
    """Summary: Verify credentials round-trip through the API.

    Importance: The setup forms depend on these endpoints.
    Alternatives: Write credentials to storage directly.
    """

    client = _client()
    response = client.put("/connections/ads", json={"account_id": "123", "access_token": "t"})
    assert response.status_code == 200
    assert response.json() == {"provider": "ads", "configured": True, "accountId": "act_123"}
    assert client.get("/connections").json()["ads"] is True
    assert client.delete("/connections/ads").json() == {"provider": "ads", "configured": False}
    assert client.delete("/connections/crm").status_code == 404


def test_missing_configuration_maps_to_conflict() -> None:
    client = _client()
    response = client.get("/ads/insights")
    assert response.status_code == 409
    body = response.json()
    assert body["kind"] == "ConfigurationMissingError"
    assert body["provider"] == "ads"


def test_auth_error_maps_to_unauthorized(monkeypatch: pytest.MonkeyPatch) -> None:
    client = _client()
    client.put("/connections/ads", json={"account_id": "123", "access_token": "t"})
    monkeypatch.setattr(
        "opsdash.ads.send_request",
        lambda *args, **kwargs: HttpResponse(400, {"error": {"message": "expired", "code": 190}}),
    )
    response = client.get("/ads/insights")
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid or expired access token."


def test_marketing_view(monkeypatch: pytest.MonkeyPatch) -> None:
    client = _client()
    rows = [
        {"adset_name": "A", "spend": "100", "actions": [{"action_type": "lead", "value": "4"}]},
        {"adset_name": "B", "spend": "30", "actions": [{"action_type": "purchase", "value": "3"}]},
    ]
    monkeypatch.setattr(
        "opsdash.ads.send_request", lambda *args, **kwargs: HttpResponse(200, {"data": rows})
    )
    response = client.post("/marketing/connect", json={"account_id": "1", "access_token": "t"})
    assert response.status_code == 200
    body = response.json()
    assert [item["name"] for item in body["adSets"]] == ["A", "B"]
    assert body["best"]["name"] == "B"
    assert body["worst"]["name"] == "A"
    assert body["strategy"]["scalingPotential"] == "low"
    assert client.get("/marketing").status_code == 200


def test_dashboard_without_analytics_is_empty() -> None:
    client = _client()
    assert client.get("/dashboard").json() == {"timeSeries": [], "leads": [], "insights": []}
    assert client.get("/analytics/report").json() == []


def test_messaging_flow(monkeypatch: pytest.MonkeyPatch) -> None:
    """Summary: Start a conversation, send, and read history.

    Importance: Mirrors the messaging view's main loop.
    Alternatives: Test the chat service only.
    """

    sent: list[dict[str, Any]] = []

    def fake_send(method: str, url: str, **kwargs: Any) -> HttpResponse:
        sent.append(kwargs["json_body"])
        return HttpResponse(200, {"messages": [{"id": "wamid.1"}]})

    monkeypatch.setattr("opsdash.messaging.send_request", fake_send)
    client = _client()
    client.put("/connections/messaging", json={"phone_number_id": "p", "access_token": "t"})
    contact = client.post("/messaging/contacts", json={"name": "Ana", "phone": "15551234567"}).json()
    assert contact["lastMessage"] == "Chat started"
    message = client.post("/messaging/send", json={"phone": "15551234567", "text": "Hello"}).json()
    assert message["status"] == "sent"
    assert sent[0]["to"] == "15551234567"
    history = client.get("/messaging/contacts/15551234567/history").json()
    assert [item["text"] for item in history] == ["Hello"]
    assert client.get("/messaging/contacts").json()[0]["lastMessage"] == "Hello"


def test_send_without_digits_is_bad_request() -> None:
    client = _client()
    client.put("/connections/messaging", json={"phone_number_id": "p", "access_token": "t"})
    response = client.post("/messaging/send", json={"phone": "abc", "text": "Hello"})
    assert response.status_code == 400


def test_api_key_required_when_configured() -> None:
    client = _client(api_key="secret")
    assert client.get("/connections").status_code == 401
    assert client.get("/connections", headers={"X-API-Key": "secret"}).status_code == 200
    assert client.get("/health").status_code == 200

