"""pagefeed - Cosense page-update digests for Discord and X"""

from __future__ import annotations

__version__ = "1.0.0"


# Lazy imports so lightweight modules don't pull in FastAPI
def __getattr__(name: str):
    """
    Lazy imports to avoid loading the web stack when only the store or renderers are needed.
    """
    if name in ("PageRecord", "PageUpdate"):
        from pagefeed.storage import models

        if name == "PageRecord":
            return models.PageRecord
        if name == "PageUpdate":
            return models.PageUpdate

    if name == "PageStore":
        from pagefeed.storage.page_store import PageStore

        return PageStore

    if name == "Channel":
        from pagefeed.digest.channels import Channel

        return Channel

    if name == "create_app":
        from pagefeed.api.app import create_app

        return create_app

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)


__all__ = [
    "Channel",
    "PageRecord",
    "PageStore",
    "PageUpdate",
    "create_app",
]
