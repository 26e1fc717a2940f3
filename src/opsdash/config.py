"""Summary: Application configuration for opsdash.

Importance: Centralizes environment, .env, and config defaults for consistent behavior.
Alternatives: Use a dedicated settings library like Pydantic Settings.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from dataclasses import dataclass


@dataclass(frozen=True)
class AppConfig:
    """Summary: Holds configuration values for providers and storage.

    Importance: Ensures all services derive settings from a single source of truth.
    Alternatives: Store settings in a shared config file and parse at startup.
    """

    storage_path: str
    ai_provider: str
    openai_api_key: str | None
    openai_model: str
    ollama_url: str
    ollama_model: str
    api_host: str
    api_port: int
    api_key: str
    ads_base_url: str
    messaging_base_url: str
    analytics_token_url: str
    analytics_base_url: str
    http_timeout: float

    @staticmethod
    def from_env() -> "AppConfig":
        """Summary: Build configuration from defaults, .env, and environment.

        Importance: Keeps all variables defined in config defaults while allowing overrides.
        Alternatives: Parse only environment variables without a defaults file.
        """

        defaults = load_defaults(Path("config") / "defaults.json")
        load_dotenv(Path(".env"))
        return AppConfig(
            storage_path=os.getenv("OPSDASH_STORAGE_PATH", defaults["storage_path"]),
            ai_provider=os.getenv("OPSDASH_AI_PROVIDER", defaults["ai_provider"]),
            openai_api_key=os.getenv("OPENAI_API_KEY") or defaults["openai_api_key"] or None,
            openai_model=os.getenv("OPENAI_MODEL", defaults["openai_model"]),
            ollama_url=os.getenv("OLLAMA_URL", defaults["ollama_url"]),
            ollama_model=os.getenv("OLLAMA_MODEL", defaults["ollama_model"]),
            api_host=os.getenv("OPSDASH_API_HOST", defaults["api_host"]),
            api_port=int(os.getenv("OPSDASH_API_PORT", defaults["api_port"])),
            api_key=os.getenv("OPSDASH_API_KEY", defaults["api_key"]),
            ads_base_url=os.getenv("OPSDASH_ADS_BASE_URL", defaults["ads_base_url"]),
            messaging_base_url=os.getenv(
                "OPSDASH_MESSAGING_BASE_URL", defaults["messaging_base_url"]
            ),
            analytics_token_url=os.getenv(
                "OPSDASH_ANALYTICS_TOKEN_URL", defaults["analytics_token_url"]
            ),
            analytics_base_url=os.getenv(
                "OPSDASH_ANALYTICS_BASE_URL", defaults["analytics_base_url"]
            ),
            http_timeout=float(os.getenv("OPSDASH_HTTP_TIMEOUT", defaults["http_timeout"])),
        )


def load_defaults(path: Path) -> dict[str, str]:
    """Summary: Load configuration defaults from JSON.

    Importance: Ensures all variables exist in a single config file.
    Alternatives: Inline defaults in the AppConfig initializer.
    """

    if not path.exists():
        raise FileNotFoundError(f"Defaults file not found: {path}")
    return json.loads(path.read_text(encoding="utf-8"))


def load_dotenv(path: Path) -> None:
    """Summary: Load key-value pairs from a .env file into the environment.

    Importance: Keeps secrets out of code while supporting local workflows.
    Alternatives: Use python-dotenv or OS-specific secret stores.
    """

    if not path.exists():
        return
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        os.environ.setdefault(key.strip(), value.strip())
