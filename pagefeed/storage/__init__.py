"""Storage - key-value backends, page records, retention"""

from __future__ import annotations

from pagefeed.storage.backend import InMemoryBackend, KeyValueBackend, StorageError
from pagefeed.storage.models import PageRecord, PageUpdate, TenantRegistration
from pagefeed.storage.page_store import PageStore

__all__ = [
    "InMemoryBackend",
    "KeyValueBackend",
    "PageRecord",
    "PageStore",
    "PageUpdate",
    "StorageError",
    "TenantRegistration",
]
