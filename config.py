"""
Runtime settings for the storefront catalog core.

Values come from environment variables so the CLI, the server and the
tests can share one place for upstream URLs, timeouts and display defaults.
"""

import os
from dataclasses import dataclass, field
from functools import lru_cache


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_list(name: str, default: list[str]) -> list[str]:
    raw = os.environ.get(name)
    if not raw:
        return list(default)
    return [item.strip() for item in raw.split(",") if item.strip()]


@dataclass
class Settings:
    """Storefront settings with environment overrides."""

    # Upstream catalog API (base URL without trailing slash)
    api_url: str = "http://localhost:8000/api"
    # Per-request timeout for the catalog API client (seconds)
    timeout: float = 10.0
    max_retries: int = 3
    # Per-product detail fetch timeout during listing expansion (seconds)
    fetch_timeout: float = 5.0

    currency: str = "JOD"
    placeholder_image: str = "/placeholder.svg"
    default_locale: str = "en"

    allowed_origins: list[str] = field(default_factory=lambda: ["http://localhost:3000"])

    @classmethod
    def from_env(cls) -> "Settings":
        defaults = cls()
        return cls(
            api_url=os.environ.get("STOREFRONT_API_URL", defaults.api_url).rstrip("/"),
            timeout=_env_float("STOREFRONT_TIMEOUT", defaults.timeout),
            max_retries=_env_int("STOREFRONT_MAX_RETRIES", defaults.max_retries),
            fetch_timeout=_env_float("STOREFRONT_FETCH_TIMEOUT", defaults.fetch_timeout),
            currency=os.environ.get("STOREFRONT_CURRENCY", defaults.currency),
            placeholder_image=os.environ.get("STOREFRONT_PLACEHOLDER_IMAGE", defaults.placeholder_image),
            default_locale=os.environ.get("STOREFRONT_DEFAULT_LOCALE", defaults.default_locale),
            allowed_origins=_env_list("STOREFRONT_ALLOWED_ORIGINS", defaults.allowed_origins),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
