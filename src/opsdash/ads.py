"""Summary: Advertising insights adapter.

Importance: Turns raw ad-set insight rows into spend, conversion, and ROI metrics.
Alternatives: Use the facebook-business SDK.
"""

from __future__ import annotations

import logging
from typing import Any
import urllib.parse

from opsdash.credentials import ADS, CredentialStore
from opsdash.errors import AuthError, ConfigurationMissingError, EmptyResultError, ProviderError
from opsdash.http import send_request
from opsdash.models import AdsConfig, AdSetInsight


logger = logging.getLogger(__name__)

DEFAULT_GRAPH_URL = "https://graph.facebook.com/v21.0"
INSIGHT_FIELDS = "adset_name,spend,clicks,impressions,actions,action_values"

CONVERSION_ACTIONS = frozenset({"lead", "purchase", "offsite_conversion.fb_pixel_lead", "contact"})
VALUE_ACTIONS = frozenset({"lead", "purchase", "offsite_conversion.fb_pixel_lead"})

INVALID_TOKEN_CODE = 190
INVALID_PARAMETER_CODE = 100


class AdsInsightsAdapter:
    """Summary: Reads 30-day ad-set insights for the configured ad account.

    Importance: Feeds the marketing view and the ad strategy summarizer.
    Alternatives: Query campaign-level insights only.
    """

    def __init__(
        self, credentials: CredentialStore, base_url: str = DEFAULT_GRAPH_URL, timeout: float = 10
    ) -> None:
        self._credentials = credentials
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    def is_configured(self) -> bool:
        return self._credentials.is_configured(ADS)

    def save_config(self, config: AdsConfig) -> AdsConfig:
        return self._credentials.save(ADS, config)

    def clear_config(self) -> None:
        self._credentials.clear(ADS)

    def fetch_insights(self) -> list[AdSetInsight]:
        """Summary: Fetch and normalize ad-set insights for the last 30 days.

        Importance: Zero rows is reported as an error so the UI can explain the empty account.
        Alternatives: Return an empty list and let the UI decide.
        """

        config = self._credentials.get(ADS)
        if config is None or not self.is_configured():
            raise ConfigurationMissingError(
                "Credentials missing. Configure your ad account ID and access token.", ADS
            )
        params = {
            "level": "adset",
            "fields": INSIGHT_FIELDS,
            "date_preset": "last_30d",
            "access_token": config.access_token,
        }
        url = f"{self._base_url}/{config.account_id}/insights?" + urllib.parse.urlencode(params)
        response = send_request("GET", url, timeout=self._timeout, provider=ADS)
        if not response.ok:
            raise _translate_error(response.status, response.error_code(), response.error_message())
        rows = response.payload.get("data") or []
        insights = [build_insight(row) for row in rows]
        if not insights:
            raise EmptyResultError("No active ad sets found in the last 30 days.", ADS)
        logger.info("Fetched %s ad set insights.", len(insights))
        return insights


def build_insight(row: dict[str, Any]) -> AdSetInsight:
    """Summary: Map a raw insight row into an AdSetInsight.

    Importance: Only allow-listed action types count as conversions or conversion value.
    Alternatives: Sum every reported action.
    """

    conversions = _first_action_value(row.get("actions"), CONVERSION_ACTIONS)
    conversion_value = _first_action_value(row.get("action_values"), VALUE_ACTIONS)
    return AdSetInsight.from_counters(
        name=str(row.get("adset_name", "")),
        spend=_to_float(row.get("spend")),
        clicks=_to_int(row.get("clicks")),
        impressions=_to_int(row.get("impressions")),
        conversions=_to_int(conversions),
        conversion_value=_to_float(conversion_value),
    )


def _first_action_value(actions: Any, allowed: frozenset[str]) -> Any:
    for action in actions or []:
        if isinstance(action, dict) and action.get("action_type") in allowed:
            return action.get("value")
    return None


def _translate_error(status: int, code: int | None, message: str | None) -> Exception:
    logger.error("Ads insights request failed (%s, code %s): %s", status, code, message)
    if code == INVALID_TOKEN_CODE:
        return AuthError("Invalid or expired access token.", ADS)
    if code == INVALID_PARAMETER_CODE:
        return ProviderError("Invalid ad account identifier.", ADS, status=status, code=code)
    detail = f"Failed to connect to the ads provider: {message}" if message else (
        "Failed to connect to the ads provider."
    )
    return ProviderError(detail, ADS, status=status, code=code)


def _to_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _to_int(value: Any) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return 0
