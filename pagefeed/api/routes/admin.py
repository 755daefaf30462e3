"""
Admin endpoints.

Webhook ids are generated server-side (UUID4) and registered here. The
caller proves it is an admin by sending ADMIN_API_KEY in the body.
"""

from __future__ import annotations

import secrets
import uuid

from fastapi import APIRouter, Depends, HTTPException, status

from pagefeed.api.dependencies import get_page_store
from pagefeed.api.models import RegisterWebhookRequest, RegisterWebhookResponse
from pagefeed.config import get_admin_api_key
from pagefeed.observability.logging import get_logger
from pagefeed.observability.telemetry import counter, log_event
from pagefeed.storage.page_store import PageStore

router = APIRouter(prefix="/api/admin", tags=["admin"])
logger = get_logger(__name__)


def verify_admin_key(api_key: str | None) -> None:
    """
    Check an admin key against ADMIN_API_KEY.

    Raises:
        HTTPException: 400 if no key was sent, 500 if ADMIN_API_KEY is unset,
            401 if the key does not match
    """
    if not api_key:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="apiKey is required")

    admin_key = get_admin_api_key()
    if not admin_key:
        logger.error("ADMIN_API_KEY environment variable is not set")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Server configuration error",
        )

    # Timing-safe comparison
    if not secrets.compare_digest(api_key.encode(), admin_key.encode()):
        counter("api.admin_auth_failures")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


@router.post(
    "/webhooks",
    response_model=RegisterWebhookResponse,
    status_code=status.HTTP_201_CREATED,
)
def register_webhook(
    body: RegisterWebhookRequest,
    store: PageStore = Depends(get_page_store),
) -> RegisterWebhookResponse:
    """
    Generate and register a new webhook id.

    Side Effects:
        - Writes a registration entry to the store
    """
    verify_admin_key(body.apiKey)

    webhook_id = str(uuid.uuid4())
    store.register(webhook_id)

    log_event("admin.webhook_registered", webhook_id=webhook_id)
    return RegisterWebhookResponse(webhookId=webhook_id)
