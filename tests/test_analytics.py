"""Summary: Tests for the analytics reporting adapter.

Importance: Ensures token reuse, the single retry on 401, and row mapping.
Alternatives: Verify against a live analytics property.
"""

from __future__ import annotations

from typing import Any

import pytest

from opsdash.analytics import AnalyticsReportingAdapter, format_date_label
from opsdash.credentials import CredentialStore
from opsdash.errors import AuthError, ProviderError
from opsdash.http import HttpResponse
from opsdash.models import AnalyticsConfig
from opsdash.storage.kv_store import MemoryKeyValueStore


CONFIG = AnalyticsConfig(
    property_id="999", client_id="client", client_secret="secret", refresh_token="refresh"
)

TIME_SERIES = {
    "rows": [
        {
            "dimensionValues": [{"value": "20240105"}],
            "metricValues": [{"value": "120"}, {"value": "7"}],
        },
        {
            "dimensionValues": [{"value": "20240106"}],
            "metricValues": [{"value": "80"}, {"value": "3.0"}],
        },
    ]
}


class FakeTokens:
    """Summary: Counts token exchanges and hands out numbered tokens."""

    def __init__(self) -> None:
        self.calls = 0

    def __call__(self, config: AnalyticsConfig, token_url: str, timeout: float) -> str:
        self.calls += 1
        return f"tok-{self.calls}"


def _adapter(monkeypatch: pytest.MonkeyPatch, configured: bool = True) -> tuple[AnalyticsReportingAdapter, FakeTokens]:
    tokens = FakeTokens()
    monkeypatch.setattr("opsdash.analytics.refresh_access_token", tokens)
    adapter = AnalyticsReportingAdapter(
        CredentialStore(MemoryKeyValueStore()), base_url="https://data.test/v1"
    )
    if configured:
        adapter.save_config(CONFIG)
    return adapter, tokens


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("20240105", "Jan 5"), ("20231231", "Dec 31"), ("bogus", "bogus"), ("", "")],
)
def test_format_date_label(raw: str, expected: str) -> None:
    assert format_date_label(raw) == expected


def test_not_configured_returns_empty(monkeypatch: pytest.MonkeyPatch) -> None:
    adapter, tokens = _adapter(monkeypatch, configured=False)
    assert adapter.fetch_time_series() == []
    assert adapter.fetch_lead_details() == []
    assert tokens.calls == 0


def test_time_series_maps_rows_and_reuses_token(monkeypatch: pytest.MonkeyPatch) -> None:
    """Summary: Two reports share one token exchange.

    Importance: Tokens are cached per adapter.
    Alternatives: Refresh before every request.
    """

    adapter, tokens = _adapter(monkeypatch)
    seen: list[dict[str, Any]] = []

    def fake_send(method: str, url: str, **kwargs: Any) -> HttpResponse:
        seen.append({"url": url, **kwargs})
        return HttpResponse(200, TIME_SERIES)

    monkeypatch.setattr("opsdash.analytics.send_request", fake_send)
    points = adapter.fetch_time_series()
    adapter.fetch_time_series()
    assert [point.to_dict() for point in points] == [
        {"name": "Jan 5", "traffic": 120, "conv": 7},
        {"name": "Jan 6", "traffic": 80, "conv": 3},
    ]
    assert tokens.calls == 1
    assert seen[0]["url"] == "https://data.test/v1/properties/999:runReport"
    assert seen[0]["headers"]["Authorization"] == "Bearer tok-1"


def test_lead_details_request_limit(monkeypatch: pytest.MonkeyPatch) -> None:
    adapter, _tokens = _adapter(monkeypatch)
    bodies: list[dict[str, Any]] = []
    row = {
        "dimensionValues": [
            {"value": "20240105"},
            {"value": "google"},
            {"value": "cpc"},
            {"value": "spring"},
        ],
        "metricValues": [{"value": "50"}, {"value": "40"}, {"value": "2"}],
    }

    def fake_send(method: str, url: str, **kwargs: Any) -> HttpResponse:
        bodies.append(kwargs["json_body"])
        return HttpResponse(200, {"rows": [row]})

    monkeypatch.setattr("opsdash.analytics.send_request", fake_send)
    leads = adapter.fetch_lead_details()
    assert bodies[0]["limit"] == 15
    assert leads[0].source == "google"
    assert leads[0].campaign == "spring"
    assert leads[0].sessions == 50
    assert leads[0].date == "Jan 5"


def test_unauthorized_refreshes_and_retries_once(monkeypatch: pytest.MonkeyPatch) -> None:
    """Summary: A 401 triggers exactly one refresh and retry.

    Importance: Expired tokens recover without user action.
    Alternatives: Surface every 401 to the user.
    """

    adapter, tokens = _adapter(monkeypatch)
    responses = [HttpResponse(401, {"error": {"message": "expired"}}), HttpResponse(200, TIME_SERIES)]
    auth_headers: list[str] = []

    def fake_send(method: str, url: str, **kwargs: Any) -> HttpResponse:
        auth_headers.append(kwargs["headers"]["Authorization"])
        return responses.pop(0)

    monkeypatch.setattr("opsdash.analytics.send_request", fake_send)
    points = adapter.fetch_time_series()
    assert len(points) == 2
    assert tokens.calls == 2
    assert auth_headers == ["Bearer tok-1", "Bearer tok-2"]


def test_second_unauthorized_raises_auth_error(monkeypatch: pytest.MonkeyPatch) -> None:
    adapter, tokens = _adapter(monkeypatch)
    calls = {"count": 0}

    def fake_send(method: str, url: str, **kwargs: Any) -> HttpResponse:
        calls["count"] += 1
        return HttpResponse(401, {"error": {"message": "Request had invalid credentials."}})

    monkeypatch.setattr("opsdash.analytics.send_request", fake_send)
    with pytest.raises(AuthError):
        adapter.fetch_time_series()
    assert calls["count"] == 2
    assert tokens.calls == 2


def test_other_failures_raise_provider_error(monkeypatch: pytest.MonkeyPatch) -> None:
    adapter, _tokens = _adapter(monkeypatch)
    monkeypatch.setattr(
        "opsdash.analytics.send_request", lambda *args, **kwargs: HttpResponse(500, {})
    )
    with pytest.raises(ProviderError, match="Analytics API error"):
        adapter.fetch_time_series()


def test_credential_changes_invalidate_token(monkeypatch: pytest.MonkeyPatch) -> None:
    adapter, tokens = _adapter(monkeypatch)
    monkeypatch.setattr(
        "opsdash.analytics.send_request", lambda *args, **kwargs: HttpResponse(200, {"rows": []})
    )
    adapter.fetch_time_series()
    assert adapter.tokens.is_valid
    adapter.save_config(CONFIG)
    assert not adapter.tokens.is_valid
    adapter.fetch_time_series()
    assert tokens.calls == 2
    adapter.clear_config()
    assert not adapter.tokens.is_valid
    assert adapter.fetch_time_series() == []
    assert tokens.calls == 2


def test_non_finite_metrics_read_as_zero(monkeypatch: pytest.MonkeyPatch) -> None:
    adapter, _tokens = _adapter(monkeypatch)
    row = {
        "dimensionValues": [{"value": "20240105"}],
        "metricValues": [{"value": "inf"}, {"value": "1e309"}],
    }
    monkeypatch.setattr(
        "opsdash.analytics.send_request", lambda *args, **kwargs: HttpResponse(200, {"rows": [row]})
    )
    point = adapter.fetch_time_series()[0]
    assert point.traffic == 0
    assert point.conversions == 0
