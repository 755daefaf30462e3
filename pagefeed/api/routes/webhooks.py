"""
Cosense webhook ingest.

Cosense posts Slack-compatible payloads to
``/api/webhooks/{webhook_id}/slack``; each attachment is one page edit.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from pagefeed.api.dependencies import ensure_registered, get_page_store
from pagefeed.api.models import CosenseWebhookRequest, WebhookReceivedResponse
from pagefeed.digest.pipeline import accept_updates
from pagefeed.observability.logging import get_logger
from pagefeed.observability.telemetry import counter
from pagefeed.storage.page_store import PageStore
from pagefeed.utils.validators import ValidationError, extract_project_name

router = APIRouter(prefix="/api/webhooks", tags=["webhooks"])
logger = get_logger(__name__)


@router.post("/{webhook_id}/slack", response_model=WebhookReceivedResponse)
def receive_cosense_webhook(
    webhook_id: str,
    body: CosenseWebhookRequest,
    store: PageStore = Depends(get_page_store),
) -> WebhookReceivedResponse:
    """
    Record the pages in a Cosense notification.

    The project name comes from the first attachment's page URL; Cosense
    sends one project per notification.

    Side Effects:
        - Upserts one page record per attachment
        - Evicts the webhook's pages older than the retention window
    """
    if not body.attachments:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No attachments")

    ensure_registered(store, webhook_id)

    try:
        project_name = extract_project_name(body.attachments[0].title_link)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from None

    updates = [attachment.to_update() for attachment in body.attachments]
    count = accept_updates(store, webhook_id, project_name, updates)

    counter("api.webhooks_received")
    logger.info("Received %d page updates for %s/%s", count, webhook_id, project_name)
    return WebhookReceivedResponse(count=count)
