"""Shared FastAPI dependencies"""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from pagefeed.config import require_registration
from pagefeed.storage.page_store import PageStore


def get_page_store(request: Request) -> PageStore:
    """The app's PageStore (set by create_app)."""
    return request.app.state.page_store


def ensure_registered(store: PageStore, webhook_id: str) -> None:
    """
    Reject unknown webhook ids when registration is required.

    Raises:
        HTTPException: 404 if the id is not registered
    """
    if require_registration() and not store.is_registered(webhook_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Webhook ID not registered",
        )
