"""Health check endpoint.

Liveness, environment, and which outbound channels are configured (presence only,
no API calls).
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter

from pagefeed.config import APP_VERSION, ENV, get_discord_webhook_url, get_x_credentials
from pagefeed.observability.telemetry import snapshot

router = APIRouter(tags=["health"])


@router.get("/health")
def health_check() -> dict[str, Any]:
    return {
        "status": "healthy",
        "service": "pagefeed",
        "version": APP_VERSION,
        "environment": ENV,
        "timestamp": datetime.now(UTC).isoformat(),
        "channels": {
            "Discord": bool(get_discord_webhook_url()),
            "X": all(get_x_credentials().values()),
        },
        "telemetry": snapshot(),
    }
