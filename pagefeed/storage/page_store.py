"""
Page Store - merge-on-write page records with age-based eviction.

Key layout in the backend:
    ("webhookId", <tenant>, "projectName", <project>, "pageName", <page>) -> PageRecord
    ("webhooks", <tenant>)                                                -> TenantRegistration

Merges are an unconditional read-then-write. Two concurrent upserts of the
same page can race and drop an author; callers that need strict merges must
wrap upsert_page in their own compare-and-swap loop.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime

from pydantic import ValidationError as ModelValidationError

from pagefeed.observability.logging import get_logger
from pagefeed.observability.telemetry import counter
from pagefeed.storage.backend import Key, KeyValueBackend, StorageError
from pagefeed.storage.models import PageRecord, TenantRegistration, dedupe_authors
from pagefeed.utils.timestamps import now_jst, parse_timestamp
from pagefeed.utils.validators import validate_identity_component, validate_page_identity

logger = get_logger(__name__)

PAGE_NAMESPACE = "webhookId"
REGISTRATION_NAMESPACE = "webhooks"


def page_key(tenant_id: str, project_name: str, page_name: str) -> Key:
    return (PAGE_NAMESPACE, tenant_id, "projectName", project_name, "pageName", page_name)


def tenant_prefix(tenant_id: str) -> Key:
    return (PAGE_NAMESPACE, tenant_id)


def registration_key(tenant_id: str) -> Key:
    return (REGISTRATION_NAMESPACE, tenant_id)


class PageStore:
    """
    Repository for page records, scoped by tenant (webhook id).

    Args:
        backend: Key-value backend; injected so tests get an isolated store
        clock: Returns "now"; defaults to the fixed-offset wall clock
    """

    def __init__(
        self,
        backend: KeyValueBackend,
        clock: Callable[[], datetime] = now_jst,
    ) -> None:
        self.backend = backend
        self._clock = clock

    def now(self) -> datetime:
        return parse_timestamp(self._clock())

    # ------------------------------------------------------------------
    # Page records
    # ------------------------------------------------------------------

    def upsert_page(self, tenant_id: str, project_name: str, record: PageRecord) -> PageRecord:
        """
        Write a page record, merging authors with any existing record.

        Args:
            tenant_id: Webhook id scoping the record
            project_name: Cosense project name
            record: Incoming record (its authors are the new edit's authors)

        Returns:
            The record as stored

        Raises:
            ValidationError: Empty or malformed identity components (nothing written)
            StorageError: Backend failure or corrupt existing value

        Side Effects:
            - Mutates record.authors, record.updated_at, record.tenant_id and
              record.project_name to the stored values
            - Writes one key to the backend
        """
        validate_page_identity(tenant_id, project_name, record.name)
        key = page_key(tenant_id, project_name, record.name)

        existing = self._decode(key, self._get(key))
        if existing is not None:
            record.authors = dedupe_authors(record.authors, existing.authors)
            counter("store.merges")

        record.tenant_id = tenant_id
        record.project_name = project_name
        record.updated_at = self.now()

        self._set(key, record.to_store_dict())
        logger.debug(
            "Saved page %r in %s/%s (authors=%d, merged=%s)",
            record.name,
            tenant_id,
            project_name,
            len(record.authors),
            existing is not None,
        )
        return record

    def get_page(self, tenant_id: str, project_name: str, page_name: str) -> PageRecord | None:
        validate_page_identity(tenant_id, project_name, page_name)
        key = page_key(tenant_id, project_name, page_name)
        return self._decode(key, self._get(key))

    def evict_older_than(self, tenant_id: str, cutoff: datetime) -> int:
        """
        Delete every record of the tenant whose updated_at is strictly before cutoff.

        Best-effort: the scan is a snapshot, so a record written while the
        sweep is running may survive until the next sweep.

        Returns:
            Number of records deleted

        Side Effects:
            - Deletes keys from the backend
        """
        validate_identity_component("tenant_id", tenant_id)
        cutoff = parse_timestamp(cutoff)

        deleted = 0
        for key, record in self._iter_records(tenant_id):
            if record.updated_at < cutoff:
                self._delete(key)
                deleted += 1

        if deleted:
            counter("store.evictions", deleted)
            logger.info("Evicted %d pages older than %s for %s", deleted, cutoff, tenant_id)
        return deleted

    def list_since(self, tenant_id: str, since: datetime) -> list[PageRecord]:
        """Return the tenant's records with updated_at >= since, in key order."""
        validate_identity_component("tenant_id", tenant_id)
        since = parse_timestamp(since)
        return [record for _, record in self._iter_records(tenant_id) if record.updated_at >= since]

    def list_pages(self, tenant_id: str) -> list[PageRecord]:
        validate_identity_component("tenant_id", tenant_id)
        return [record for _, record in self._iter_records(tenant_id)]

    def count_pages(self, tenant_id: str) -> int:
        validate_identity_component("tenant_id", tenant_id)
        return sum(1 for _ in self._iter_records(tenant_id))

    def oldest_update(self, tenant_id: str) -> datetime | None:
        validate_identity_component("tenant_id", tenant_id)
        return min((record.updated_at for _, record in self._iter_records(tenant_id)), default=None)

    # ------------------------------------------------------------------
    # Tenant registry
    # ------------------------------------------------------------------

    def is_registered(self, tenant_id: str) -> bool:
        if not tenant_id:
            return False
        value = self._get(registration_key(tenant_id))
        return value is not None and bool(value.get("registered", True))

    def register(self, tenant_id: str) -> TenantRegistration:
        validate_identity_component("tenant_id", tenant_id)
        registration = TenantRegistration(registered=True, created_at=self.now())
        self._set(registration_key(tenant_id), registration.model_dump(mode="json"))
        logger.info("Registered webhook id %s", tenant_id)
        return registration

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @contextmanager
    def _backend_call(self, operation: str, key: Key) -> Iterator[None]:
        """Surface any backend failure as StorageError."""
        try:
            yield
        except StorageError:
            raise
        except Exception as e:
            counter("storage.errors")
            logger.error("Backend %s failed for %r: %s", operation, key, e)
            raise StorageError(f"Backend {operation} failed: {e}") from e

    def _get(self, key: Key) -> dict | None:
        with self._backend_call("get", key):
            return self.backend.get(key)

    def _set(self, key: Key, value: dict) -> None:
        with self._backend_call("set", key):
            self.backend.set(key, value)

    def _delete(self, key: Key) -> None:
        with self._backend_call("delete", key):
            self.backend.delete(key)

    def _scan(self, prefix: Key) -> list[tuple[Key, dict]]:
        with self._backend_call("scan", prefix):
            return list(self.backend.scan(prefix))

    def _iter_records(self, tenant_id: str) -> Iterator[tuple[Key, PageRecord]]:
        for key, value in self._scan(tenant_prefix(tenant_id)):
            record = self._decode(key, value)
            if record is not None:
                yield key, record

    @staticmethod
    def _decode(key: Key, value: dict | None) -> PageRecord | None:
        if value is None:
            return None
        try:
            return PageRecord.from_store_dict(value)
        except ModelValidationError as e:
            counter("storage.corrupt_reads")
            raise StorageError(f"Corrupt page record at key {key!r}") from e
