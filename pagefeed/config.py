"""Centralized configuration for the pagefeed backend.

Typed constants for the API, storage, retention, and outbound channels.
Environment variable overrides use safe defaults so the app starts without
extra env configuration. Secrets are read lazily through the getter
functions so tests can patch the environment after import.
"""

from __future__ import annotations

import os
from pathlib import Path

# --- App ---
APP_VERSION: str = "1.0.0"
ENV: str = os.getenv("PAGEFEED_ENV", "development")

# --- API ---
API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
API_PORT: int = int(os.getenv("API_PORT", "8000"))

# --- Database ---
PACKAGE_ROOT = Path(__file__).parent
DB_PATH: Path = Path(os.getenv("PAGEFEED_DB_PATH", str(PACKAGE_ROOT / "data" / "pagefeed.db")))
DB_CONNECT_TIMEOUT: float = float(os.getenv("PAGEFEED_DB_CONNECT_TIMEOUT", "30.0"))
DB_RETRY_MAX: int = int(os.getenv("PAGEFEED_DB_RETRY_MAX", "5"))
DB_RETRY_BASE_DELAY: float = float(os.getenv("PAGEFEED_DB_RETRY_BASE_DELAY", "0.1"))
DB_RETRY_MAX_DELAY: float = float(os.getenv("PAGEFEED_DB_RETRY_MAX_DELAY", "2.0"))
DB_RETRY_JITTER: float = float(os.getenv("PAGEFEED_DB_RETRY_JITTER", "0.1"))

# --- Retention ---
RETENTION_DAYS: int = 7

# --- Timestamps ---
# Stored timestamps always carry this offset (JST)
TIMESTAMP_UTC_OFFSET_HOURS: int = 9

# --- X (Twitter) ---
TWEET_MAX_LENGTH: int = 280
X_TWEET_ENDPOINT: str = "https://api.twitter.com/2/tweets"

# --- Outbound HTTP ---
HTTP_TIMEOUT_SECONDS: float = float(os.getenv("PAGEFEED_HTTP_TIMEOUT", "10"))


def require_registration() -> bool:
    """Whether webhook ids must be registered before they are accepted."""
    return os.getenv("PAGEFEED_REQUIRE_REGISTRATION", "true").lower() == "true"


def get_admin_api_key() -> str | None:
    return os.getenv("ADMIN_API_KEY")


def get_discord_webhook_url() -> str | None:
    return os.getenv("DISCORD_WEBHOOK_URL")


def get_x_credentials() -> dict[str, str | None]:
    """X API credentials (OAuth 1.0a user context)."""
    return {
        "api_key": os.getenv("API_KEY"),
        "api_key_secret": os.getenv("API_KEY_SECRET"),
        "access_token": os.getenv("ACCESS_TOKEN"),
        "access_token_secret": os.getenv("ACCESS_TOKEN_SECRET"),
    }
