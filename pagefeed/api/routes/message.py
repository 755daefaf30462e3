"""Digest send endpoint"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from pagefeed.api.dependencies import ensure_registered, get_page_store
from pagefeed.api.models import MessageSendRequest, MessageSentResponse
from pagefeed.digest.pipeline import collect_digest, deliver_digest
from pagefeed.observability.logging import get_logger
from pagefeed.storage.page_store import PageStore

router = APIRouter(prefix="/api", tags=["message"])
logger = get_logger(__name__)


@router.post("/message", response_model=MessageSentResponse)
def send_message(
    body: MessageSendRequest,
    store: PageStore = Depends(get_page_store),
) -> MessageSentResponse:
    """
    Build the digest of pages updated since `from_timestamp` and deliver it.

    An unparseable timestamp is a 400 (ValidationError handler). Delivery
    failures don't fail the request; `delivered` reports them.
    """
    ensure_registered(store, body.webhookId)

    digest = collect_digest(store, body.webhookId, body.from_timestamp, body.notification)
    result = deliver_digest(digest.messages, body.notification)

    logger.info(
        "Sent %s digest for %s: %d pages, delivered=%s",
        body.notification.value,
        body.webhookId,
        len(digest.records),
        result.delivered,
    )
    return MessageSentResponse(
        service=body.notification,
        pageCount=len(digest.records),
        messageCount=result.message_count,
        delivered=result.delivered,
    )
