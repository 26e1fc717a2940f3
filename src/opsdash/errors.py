"""Summary: Error kinds raised by provider integrations.

Importance: Lets callers branch on the failure kind instead of matching message text.
Alternatives: Raise RuntimeError everywhere and inspect messages.
"""

from __future__ import annotations


class IntegrationError(RuntimeError):
    """Summary: Base class for provider integration failures.

    Importance: Gives the UI bridge one type to catch for every adapter failure.
    Alternatives: Catch each error kind separately at every call site.
    """

    def __init__(self, message: str, provider: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.provider = provider


class ConfigurationMissingError(IntegrationError):
    """Summary: Required credential fields are absent.

    Importance: Raised before any network attempt so callers can prompt for setup.
    Alternatives: Let the provider reject the request.
    """


class AuthError(IntegrationError):
    """Summary: A token exchange failed or a bearer token was rejected."""


class ProviderError(IntegrationError):
    """Summary: A provider answered with a non-2xx response.

    Importance: Carries the provider's own message along with the HTTP status and error code.
    Alternatives: Surface only a generic failure message.
    """

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        status: int | None = None,
        code: int | None = None,
    ) -> None:
        super().__init__(message, provider)
        self.status = status
        self.code = code


class EmptyResultError(IntegrationError):
    """Summary: A provider returned zero usable rows."""


class NetworkError(IntegrationError):
    """Summary: The request never produced a response.

    Importance: Separates transport faults from provider rejections.
    Alternatives: Let urllib errors propagate unchanged.
    """
