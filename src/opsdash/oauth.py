"""Summary: OAuth refresh-token exchange and access token caching.

Importance: Mints bearer tokens for the analytics reporting API on demand.
Alternatives: Use google-auth or another provider SDK.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable

from opsdash.errors import AuthError
from opsdash.http import send_request
from opsdash.models import AnalyticsConfig


logger = logging.getLogger(__name__)

DEFAULT_TOKEN_URL = "https://oauth2.googleapis.com/token"


def refresh_access_token(
    config: AnalyticsConfig, token_url: str = DEFAULT_TOKEN_URL, timeout: float = 10
) -> str:
    """Summary: Exchange a refresh token for a new access token.

    Importance: Analytics credentials only store the long-lived refresh token.
    Alternatives: Ask the user to paste short-lived access tokens.
    """

    response = send_request(
        "POST",
        token_url,
        form_body=_refresh_payload(config),
        timeout=timeout,
        provider="analytics",
    )
    if not response.ok:
        description = response.payload.get("error_description")
        if description:
            raise AuthError(str(description), "analytics")
        raise AuthError(
            "Auth refresh failed. Check your client ID, secret, and refresh token.", "analytics"
        )
    access_token = response.payload.get("access_token")
    if not access_token:
        raise AuthError("Token endpoint returned no access token.", "analytics")
    return str(access_token)


def _refresh_payload(config: AnalyticsConfig) -> dict[str, str]:
    """Summary: Build token request parameters for a refresh exchange.

    Importance: Ensures the payload carries every field the token endpoint requires.
    Alternatives: Assemble the payload inline in the exchange function.
    """

    _ensure_oauth_config(config)
    return {
        "client_id": config.client_id,
        "client_secret": config.client_secret,
        "refresh_token": config.refresh_token,
        "grant_type": "refresh_token",
    }


def _ensure_oauth_config(config: AnalyticsConfig) -> None:
    """Summary: Validate that OAuth credentials exist.

    Importance: Prevents confusing token exchange errors when credentials are missing.
    Alternatives: Allow requests to fail at the provider endpoint.
    """

    if not config.client_id or not config.client_secret or not config.refresh_token:
        raise AuthError("Missing OAuth client credentials for analytics", "analytics")


class TokenCache:
    """Summary: Holds one access token and refreshes it on demand.

    Importance: Each adapter owns its own cache so credential sets never share tokens.
    Alternatives: Keep a module-level token variable.
    """

    def __init__(self, exchange: Callable[[], str]) -> None:
        """Summary: Initialize an empty cache.

        Importance: The exchange callable reads the current credentials at refresh time.
        Alternatives: Pass credentials to every refresh call.
        """

        self._exchange = exchange
        self._token: str | None = None
        self._lock = threading.Lock()

    @property
    def token(self) -> str | None:
        return self._token

    @property
    def is_valid(self) -> bool:
        return self._token is not None

    def ensure_token(self) -> str:
        """Summary: Return the cached token, refreshing first when empty.

        Importance: A caller queued behind a refresh reuses its result instead of refreshing again.
        Alternatives: Refresh before every request.
        """

        with self._lock:
            if self._token is None:
                self._token = self._exchange()
                logger.info("Refreshed analytics access token.")
            return self._token

    def invalidate(self, stale: str | None = None) -> None:
        """Summary: Drop the cached token.

        Importance: With a stale token given, a token already replaced by another caller is kept.
        Alternatives: Always clear unconditionally.
        """

        with self._lock:
            if stale is None or self._token == stale:
                self._token = None
