"""Centralised settings for the pagescope service.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (one level up from this package)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)


def _env_bool(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Fetcher
    # ------------------------------------------------------------------
    scrape_timeout_ms: int = field(
        default_factory=lambda: int(os.environ.get("SCRAPE_TIMEOUT", "10000"))
    )
    max_redirects: int = field(
        default_factory=lambda: int(os.environ.get("MAX_REDIRECTS", "5"))
    )
    max_content_length: int = field(
        default_factory=lambda: int(
            os.environ.get("MAX_CONTENT_LENGTH", str(10 * 1024 * 1024))
        )
    )

    @property
    def request_timeout(self) -> float:
        """Fetch timeout in seconds, the unit httpx expects."""
        return self.scrape_timeout_ms / 1000.0

    # ------------------------------------------------------------------
    # URL admission
    # ------------------------------------------------------------------
    max_url_length: int = field(
        default_factory=lambda: int(os.environ.get("MAX_URL_LENGTH", "2048"))
    )

    # ------------------------------------------------------------------
    # Result cache
    # ------------------------------------------------------------------
    cache_ttl: float = field(
        default_factory=lambda: float(os.environ.get("CACHE_TTL", "600"))
    )
    cache_check_period: float = field(
        default_factory=lambda: float(os.environ.get("CACHE_CHECK_PERIOD", "120"))
    )

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------
    log_level: str = field(
        default_factory=lambda: os.environ.get("LOG_LEVEL", "INFO")
    )
    log_json: bool = field(default_factory=lambda: _env_bool("LOG_JSON"))

    # ------------------------------------------------------------------
    # API server
    # ------------------------------------------------------------------
    environment: str = field(
        default_factory=lambda: os.environ.get("APP_ENV", "development")
    )
    host: str = field(default_factory=lambda: os.environ.get("HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: int(os.environ.get("PORT", "3000")))

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"


# Module-level singleton — import this everywhere:
#   from pagescope.config import settings
settings = Settings()
