"""
Data Retention Module

Page records are kept for RETENTION_DAYS (7) after their last update. The
webhook route sweeps a tenant after every delivery; this module exposes the
same sweep for manual or scheduled runs against the SQLite database.

Usage:
    # Evict one tenant's stale pages (run daily via cron if webhooks are quiet)
    python -m pagefeed.storage.retention cleanup --tenant <webhook-id> --days 7

    # Inspect what a sweep would do
    python -m pagefeed.storage.retention cleanup --tenant <webhook-id> --dry-run
    python -m pagefeed.storage.retention stats --tenant <webhook-id>
"""

from __future__ import annotations

import argparse
import sys
from datetime import datetime, timedelta
from typing import Any

from pagefeed.config import DB_PATH, RETENTION_DAYS
from pagefeed.observability.logging import get_logger
from pagefeed.observability.telemetry import log_event
from pagefeed.storage.page_store import PageStore
from pagefeed.utils.timestamps import format_timestamp

logger = get_logger(__name__)


def retention_cutoff(now: datetime, days: int = RETENTION_DAYS) -> datetime:
    """Oldest updated_at that survives a sweep at `now`."""
    return now - timedelta(days=days)


def cleanup_stale_pages(
    store: PageStore,
    tenant_id: str,
    days: int = RETENTION_DAYS,
    dry_run: bool = False,
) -> dict[str, Any]:
    """
    Delete a tenant's page records not updated within `days`.

    Args:
        store: Page store to sweep
        tenant_id: Webhook id to sweep
        days: Retention window in days
        dry_run: Count what would be deleted without deleting

    Returns:
        {"tenant_id", "cutoff", "pages_deleted", "dry_run"}

    Side Effects:
        - Deletes page records from the store (unless dry_run)
        - Emits a retention.cleanup telemetry event
    """
    cutoff = retention_cutoff(store.now(), days)
    cutoff_str = format_timestamp(cutoff)

    if dry_run:
        deleted = sum(1 for record in store.list_pages(tenant_id) if record.updated_at < cutoff)
        logger.info("[DRY RUN] %d pages older than %s for %s", deleted, cutoff_str, tenant_id)
    else:
        deleted = store.evict_older_than(tenant_id, cutoff)

    log_event(
        "retention.cleanup",
        tenant_id=tenant_id,
        cutoff=cutoff_str,
        pages_deleted=deleted,
        retention_policy_days=days,
        dry_run=dry_run,
    )

    return {
        "tenant_id": tenant_id,
        "cutoff": cutoff_str,
        "pages_deleted": deleted,
        "dry_run": dry_run,
    }


def get_retention_stats(store: PageStore, tenant_id: str, days: int = RETENTION_DAYS) -> dict[str, Any]:
    """
    Summarize a tenant's retained pages.

    Returns:
        {"tenant_id", "registered", "total_pages", "oldest_update", "stale_pages"}
    """
    cutoff = retention_cutoff(store.now(), days)
    records = store.list_pages(tenant_id)
    oldest = store.oldest_update(tenant_id)

    return {
        "tenant_id": tenant_id,
        "registered": store.is_registered(tenant_id),
        "total_pages": len(records),
        "oldest_update": format_timestamp(oldest) if oldest else None,
        "stale_pages": sum(1 for r in records if r.updated_at < cutoff),
    }


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pagefeed-retention", description=__doc__.splitlines()[1])
    parser.add_argument("--db", default=str(DB_PATH), help="SQLite database path")
    sub = parser.add_subparsers(dest="command", required=True)

    cleanup = sub.add_parser("cleanup", help="Evict stale pages for a tenant")
    cleanup.add_argument("--tenant", required=True, help="Webhook id")
    cleanup.add_argument("--days", type=int, default=RETENTION_DAYS)
    cleanup.add_argument("--dry-run", action="store_true")

    stats = sub.add_parser("stats", help="Show retention stats for a tenant")
    stats.add_argument("--tenant", required=True, help="Webhook id")
    stats.add_argument("--days", type=int, default=RETENTION_DAYS)
    return parser


def main(argv: list[str] | None = None) -> int:
    from pagefeed.storage.sqlite_backend import SqliteBackend

    args = build_parser().parse_args(argv)
    backend = SqliteBackend(args.db)
    store = PageStore(backend)

    try:
        if args.command == "cleanup":
            result = cleanup_stale_pages(store, args.tenant, days=args.days, dry_run=args.dry_run)
        else:
            result = get_retention_stats(store, args.tenant, days=args.days)
    finally:
        backend.close()

    for key, value in result.items():
        logger.info("%s: %s", key, value)
    return 0


if __name__ == "__main__":
    sys.exit(main())
