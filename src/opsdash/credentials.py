"""Summary: Provider-scoped credential persistence.

Importance: Every adapter reads its configuration through this store.
Alternatives: Read credentials from environment variables at call time.
"""

from __future__ import annotations

import logging
from typing import Callable

from opsdash.models import (
    AdsConfig,
    AnalyticsConfig,
    MessagingConfig,
    ProviderConfig,
    has_required_fields,
)
from opsdash.storage.kv_store import KeyValueStore, read_json, write_json


logger = logging.getLogger(__name__)

ADS = "ads"
ANALYTICS = "analytics"
MESSAGING = "messaging"

PROVIDERS = (ADS, ANALYTICS, MESSAGING)

_CONFIG_TYPES: dict[str, type] = {
    ADS: AdsConfig,
    ANALYTICS: AnalyticsConfig,
    MESSAGING: MessagingConfig,
}


def config_key(provider: str) -> str:
    """Summary: Resolve the storage key for a provider's config.

    Importance: Keeps one fixed logical key per provider.
    Alternatives: Store all provider configs under a single key.
    """

    _ensure_provider(provider)
    return f"opsdash.{provider}.config"


class CredentialStore:
    """Summary: Saves, loads, and clears provider configuration objects.

    Importance: Centralizes normalization and the "configured" capability check.
    Alternatives: Let each adapter manage its own storage key.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store
        self._listeners: list[Callable[[str], None]] = []

    def add_listener(self, callback: Callable[[str], None]) -> None:
        """Summary: Register a callback invoked after every save or clear.

        Importance: Lets token caches drop tokens minted for replaced credentials.
        Alternatives: Poll the stored config for changes before each call.
        """

        self._listeners.append(callback)

    def save(self, provider: str, config: ProviderConfig) -> ProviderConfig:
        """Summary: Normalize and persist a provider config.

        Importance: Returns the normalized value so callers display what was stored.
        Alternatives: Persist raw input and normalize on read.
        """

        expected = _CONFIG_TYPES[_ensure_provider(provider)]
        if not isinstance(config, expected):
            raise TypeError(f"{provider} expects {expected.__name__}, got {type(config).__name__}")
        normalized = config.normalized()
        write_json(self._store, config_key(provider), normalized.to_dict())
        logger.info("Saved %s credentials.", provider)
        self._notify(provider)
        return normalized

    def get(self, provider: str) -> ProviderConfig | None:
        """Summary: Load a provider config.

        Importance: Missing or unparsable values read as absent.
        Alternatives: Raise a corruption error on malformed storage.
        """

        payload = read_json(self._store, config_key(provider))
        if not isinstance(payload, dict):
            if payload is not None:
                logger.warning("Stored %s credentials are not an object; ignoring.", provider)
            return None
        return _CONFIG_TYPES[provider].from_dict(payload)

    def is_configured(self, provider: str) -> bool:
        config = self.get(provider)
        return config is not None and has_required_fields(config)

    def clear(self, provider: str) -> None:
        """Summary: Remove a provider config.

        Importance: Backs the disconnect action in the UI.
        Alternatives: Overwrite the config with empty values.
        """

        self._store.remove(config_key(provider))
        logger.info("Cleared %s credentials.", provider)
        self._notify(provider)

    def _notify(self, provider: str) -> None:
        for callback in self._listeners:
            callback(provider)


def _ensure_provider(provider: str) -> str:
    if provider not in _CONFIG_TYPES:
        raise ValueError(f"Unknown provider: {provider}")
    return provider
