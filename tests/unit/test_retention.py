"""
Tests for the retention sweep and CLI.

Validates:
1. 7-day retention policy deletes pages not updated within the window
2. Dry run counts without deleting
3. Stats are accurate
4. The CLI runs against a SQLite file
"""

from __future__ import annotations

from datetime import timedelta

from pagefeed.storage.page_store import PageStore
from pagefeed.storage.retention import (
    cleanup_stale_pages,
    get_retention_stats,
    main,
    retention_cutoff,
)
from pagefeed.storage.sqlite_backend import SqliteBackend

TENANT = "tenant-1"
PROJECT = "test-project"


def _seed(store, clock, make_record):
    """One page 8 days old, one 6 days old, relative to the final clock."""
    store.upsert_page(TENANT, PROJECT, make_record("OldPage", ["Alice"]))
    clock.advance(days=2)
    store.upsert_page(TENANT, PROJECT, make_record("RecentPage", ["Bob"]))
    clock.advance(days=6)


def test_retention_cutoff_is_seven_days(clock):
    assert clock.current - retention_cutoff(clock.current) == timedelta(days=7)


def test_cleanup_deletes_stale_pages(store, clock, make_record):
    _seed(store, clock, make_record)

    result = cleanup_stale_pages(store, TENANT)

    assert result["pages_deleted"] == 1
    assert result["dry_run"] is False
    assert result["cutoff"] == "2025-12-21T15:00:00+09:00"
    assert [r.name for r in store.list_pages(TENANT)] == ["RecentPage"]


def test_dry_run_does_not_delete(store, clock, make_record):
    _seed(store, clock, make_record)

    result = cleanup_stale_pages(store, TENANT, dry_run=True)

    assert result["pages_deleted"] == 1
    assert store.count_pages(TENANT) == 2


def test_custom_window(store, clock, make_record):
    _seed(store, clock, make_record)

    assert cleanup_stale_pages(store, TENANT, days=1)["pages_deleted"] == 2


def test_stats(store, clock, make_record):
    store.register(TENANT)
    _seed(store, clock, make_record)

    stats = get_retention_stats(store, TENANT)

    assert stats == {
        "tenant_id": TENANT,
        "registered": True,
        "total_pages": 2,
        "oldest_update": "2025-12-20T15:00:00+09:00",
        "stale_pages": 1,
    }


def test_stats_for_empty_tenant(store):
    stats = get_retention_stats(store, "nobody")

    assert stats["total_pages"] == 0
    assert stats["oldest_update"] is None
    assert stats["registered"] is False


def test_cli_cleanup_against_sqlite(tmp_path, make_record):
    db_path = tmp_path / "pagefeed.db"
    backend = SqliteBackend(db_path)
    store = PageStore(backend)
    record = make_record("AncientPage", ["Alice"])
    store.upsert_page(TENANT, PROJECT, record)
    # Backdate the stored record past the window
    stored = store.get_page(TENANT, PROJECT, "AncientPage")
    stored.updated_at = stored.updated_at - timedelta(days=30)
    backend.set(
        ("webhookId", TENANT, "projectName", PROJECT, "pageName", "AncientPage"),
        stored.to_store_dict(),
    )
    backend.close()

    assert main(["--db", str(db_path), "stats", "--tenant", TENANT]) == 0
    assert main(["--db", str(db_path), "cleanup", "--tenant", TENANT, "--dry-run"]) == 0
    assert main(["--db", str(db_path), "cleanup", "--tenant", TENANT]) == 0

    reopened = SqliteBackend(db_path)
    try:
        assert PageStore(reopened).count_pages(TENANT) == 0
    finally:
        reopened.close()
