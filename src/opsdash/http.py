"""Summary: Minimal JSON HTTP helper shared by provider adapters.

Importance: Keeps provider calls dependency-free while exposing status codes for error translation.
Alternatives: Use requests or a provider SDK.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
import http.client
from typing import Any
import urllib.error
import urllib.parse
import urllib.request

from opsdash.errors import NetworkError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HttpResponse:
    """Summary: Status code and decoded JSON body of a provider response.

    Importance: Lets adapters translate provider errors using both status and payload.
    Alternatives: Raise on every non-2xx response inside the helper.
    """

    status: int
    payload: dict[str, Any]

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def error_message(self) -> str | None:
        """Summary: Extract the provider error message when present.

        Importance: Graph and Google APIs both nest messages under an error object.
        Alternatives: Parse error bodies in each adapter.
        """

        error = self.payload.get("error")
        if isinstance(error, dict):
            message = error.get("message")
            return str(message) if message else None
        if isinstance(error, str):
            return error
        return None

    def error_code(self) -> int | None:
        error = self.payload.get("error")
        if isinstance(error, dict) and isinstance(error.get("code"), int):
            return error["code"]
        return None


def send_request(
    method: str,
    url: str,
    headers: dict[str, str] | None = None,
    json_body: dict[str, Any] | None = None,
    form_body: dict[str, str] | None = None,
    timeout: float = 10,
    provider: str | None = None,
) -> HttpResponse:
    """Summary: Send an HTTP request and decode the JSON response.

    Importance: Returns non-2xx responses instead of raising so adapters can map provider errors.
    Alternatives: Use a third-party HTTP client.
    """

    request_headers = dict(headers or {})
    data = None
    if json_body is not None:
        data = json.dumps(json_body).encode("utf-8")
        request_headers["Content-Type"] = "application/json"
    elif form_body is not None:
        data = urllib.parse.urlencode(form_body).encode("utf-8")
        request_headers["Content-Type"] = "application/x-www-form-urlencoded"
    request = urllib.request.Request(url, data=data, headers=request_headers, method=method)
    try:
        with urllib.request.urlopen(request, timeout=timeout) as response:
            return HttpResponse(status=response.status, payload=_decode(response.read()))
    except urllib.error.HTTPError as exc:
        return HttpResponse(status=exc.code, payload=_decode(exc.read()))
    except urllib.error.URLError as exc:
        logger.warning("Request to %s failed: %s", provider or "provider", exc.reason)
        raise NetworkError(f"Network error: {exc.reason}", provider) from exc
    except TimeoutError as exc:
        logger.warning("Request to %s timed out.", provider or "provider")
        raise NetworkError("Network error: request timed out", provider) from exc
    except (OSError, http.client.HTTPException) as exc:
        logger.warning("Connection to %s dropped: %s", provider or "provider", exc)
        raise NetworkError(f"Network error: {exc}", provider) from exc


def _decode(raw: bytes) -> dict[str, Any]:
    """Summary: Decode a response body into a JSON object.

    Importance: Error pages are not always JSON; treat them as an empty payload.
    Alternatives: Raise on malformed bodies.
    """

    if not raw:
        return {}
    try:
        payload = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        return {}
    return payload if isinstance(payload, dict) else {"data": payload}
