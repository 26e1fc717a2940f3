"""Summary: Analytics reporting adapter.

Importance: Pulls daily traffic and lead channel breakdowns behind an OAuth refresh token.
Alternatives: Use the google-analytics-data client library.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, TypeVar

from opsdash.credentials import ANALYTICS, CredentialStore
from opsdash.errors import AuthError, ConfigurationMissingError, ProviderError
from opsdash.http import send_request
from opsdash.models import AnalyticsConfig, AnalyticsDataPoint, LeadDetail
from opsdash.oauth import DEFAULT_TOKEN_URL, TokenCache, refresh_access_token


logger = logging.getLogger(__name__)

DEFAULT_DATA_URL = "https://analyticsdata.googleapis.com/v1beta"
LEAD_DETAIL_LIMIT = 15
UNAUTHORIZED = 401

_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

T = TypeVar("T")


class AnalyticsReportingAdapter:
    """Summary: Runs analytics reports with a cached, self-refreshing access token.

    Importance: Owns its token cache so separate credential sets never collide.
    Alternatives: Share one process-wide token.
    """

    def __init__(
        self,
        credentials: CredentialStore,
        base_url: str = DEFAULT_DATA_URL,
        token_url: str = DEFAULT_TOKEN_URL,
        timeout: float = 10,
    ) -> None:
        self._credentials = credentials
        self._base_url = base_url.rstrip("/")
        self._token_url = token_url
        self._timeout = timeout
        self.tokens = TokenCache(self._exchange_token)
        credentials.add_listener(self._on_credentials_changed)

    def is_configured(self) -> bool:
        return self._credentials.is_configured(ANALYTICS)

    def save_config(self, config: AnalyticsConfig) -> AnalyticsConfig:
        return self._credentials.save(ANALYTICS, config)

    def clear_config(self) -> None:
        self._credentials.clear(ANALYTICS)

    def fetch_time_series(self) -> list[AnalyticsDataPoint]:
        """Summary: Daily active users and conversions for the last 30 days.

        Importance: Drives the traffic chart on the dashboard.
        Alternatives: Fetch weekly aggregates.
        """

        if not self.is_configured():
            return []
        body = {
            "dateRanges": [{"startDate": "30daysAgo", "endDate": "today"}],
            "dimensions": [{"name": "date"}],
            "metrics": [{"name": "activeUsers"}, {"name": "conversions"}],
            "orderBys": [{"dimension": {"dimensionName": "date"}, "desc": False}],
        }
        return self.run_report(body, _data_point)

    def fetch_lead_details(self) -> list[LeadDetail]:
        """Summary: Top sessions by date and acquisition channel.

        Importance: Shows where leads come from.
        Alternatives: Break down by source only.
        """

        if not self.is_configured():
            return []
        body = {
            "dateRanges": [{"startDate": "30daysAgo", "endDate": "today"}],
            "dimensions": [
                {"name": "date"},
                {"name": "sessionSource"},
                {"name": "sessionMedium"},
                {"name": "sessionCampaignName"},
            ],
            "metrics": [{"name": "sessions"}, {"name": "activeUsers"}, {"name": "conversions"}],
            "orderBys": [{"metric": {"metricName": "sessions"}, "desc": True}],
            "limit": LEAD_DETAIL_LIMIT,
        }
        return self.run_report(body, _lead_detail)

    def run_report(self, body: dict[str, Any], mapper: Callable[[dict[str, Any]], T]) -> list[T]:
        """Summary: Run a report, retrying once after an unauthorized response.

        Importance: Tokens expire silently; one forced refresh recovers without user action.
        Alternatives: Track token expiry and refresh ahead of time.
        """

        config = self._credentials.get(ANALYTICS)
        if config is None:
            raise ConfigurationMissingError("Analytics credentials missing.", ANALYTICS)
        url = f"{self._base_url}/properties/{config.property_id}:runReport"
        retried = False
        while True:
            token = self.tokens.ensure_token()
            response = send_request(
                "POST",
                url,
                headers={"Authorization": f"Bearer {token}"},
                json_body=body,
                timeout=self._timeout,
                provider=ANALYTICS,
            )
            if response.ok:
                rows = response.payload.get("rows") or []
                logger.info("Analytics report returned %s rows.", len(rows))
                return [mapper(row) for row in rows]
            if response.status == UNAUTHORIZED and not retried:
                logger.warning("Analytics token rejected; refreshing and retrying once.")
                self.tokens.invalidate(stale=token)
                retried = True
                continue
            message = response.error_message()
            logger.error("Analytics report failed (%s): %s", response.status, message)
            if response.status == UNAUTHORIZED:
                raise AuthError(message or "Analytics access token rejected.", ANALYTICS)
            raise ProviderError(
                message or "Analytics API error", ANALYTICS, status=response.status
            )

    def _exchange_token(self) -> str:
        config = self._credentials.get(ANALYTICS)
        if config is None:
            raise ConfigurationMissingError("Analytics credentials missing.", ANALYTICS)
        return refresh_access_token(config, self._token_url, self._timeout)

    def _on_credentials_changed(self, provider: str) -> None:
        if provider == ANALYTICS:
            self.tokens.invalidate()


def format_date_label(raw: str) -> str:
    """Summary: Turn a YYYYMMDD value into a short label such as "Jan 5".

    Importance: Chart consumers key off the label string.
    Alternatives: Return ISO dates and format in the UI.
    """

    try:
        parsed = datetime.strptime(raw, "%Y%m%d")
    except (TypeError, ValueError):
        return raw
    return f"{_MONTHS[parsed.month - 1]} {parsed.day}"


def _dimension(row: dict[str, Any], index: int) -> str:
    values = row.get("dimensionValues") or []
    if index < len(values):
        return str(values[index].get("value", ""))
    return ""


def _metric(row: dict[str, Any], index: int) -> int:
    values = row.get("metricValues") or []
    if index >= len(values):
        return 0
    try:
        return int(float(values[index].get("value")))
    except (TypeError, ValueError, OverflowError):
        return 0


def _data_point(row: dict[str, Any]) -> AnalyticsDataPoint:
    return AnalyticsDataPoint(
        label=format_date_label(_dimension(row, 0)),
        traffic=_metric(row, 0),
        conversions=_metric(row, 1),
    )


def _lead_detail(row: dict[str, Any]) -> LeadDetail:
    return LeadDetail(
        date=format_date_label(_dimension(row, 0)),
        source=_dimension(row, 1),
        medium=_dimension(row, 2),
        campaign=_dimension(row, 3),
        sessions=_metric(row, 0),
        users=_metric(row, 1),
        conversions=_metric(row, 2),
    )
