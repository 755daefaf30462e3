"""
Update and digest pipelines.

accept_updates: webhook items -> merged page records -> retention sweep
build_digest:   records since a timestamp -> channel-formatted messages
deliver_digest: messages -> channel transport
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta

from pagefeed.config import RETENTION_DAYS
from pagefeed.delivery import Transport, get_transport
from pagefeed.digest.channels import Channel, render_for_channel
from pagefeed.observability.logging import get_logger
from pagefeed.observability.telemetry import counter, log_event, time_block
from pagefeed.storage.models import PageRecord, PageUpdate
from pagefeed.storage.page_store import PageStore
from pagefeed.utils.timestamps import parse_timestamp
from pagefeed.utils.validators import validate_page_identity

logger = get_logger(__name__)


@dataclass(frozen=True)
class Digest:
    records: list[PageRecord]
    messages: list[str]


@dataclass(frozen=True)
class DeliveryResult:
    channel: Channel
    message_count: int
    delivered: bool


def accept_updates(
    store: PageStore,
    tenant_id: str,
    project_name: str,
    updates: Sequence[PageUpdate],
    now: datetime | None = None,
) -> int:
    """
    Merge a batch of page updates into the store, then sweep stale pages.

    Every item is validated before anything is written, so a bad item rejects
    the whole batch.

    Args:
        store: Page store
        tenant_id: Webhook id the updates arrived on
        project_name: Cosense project the pages belong to
        updates: One item per edited page
        now: Reference time for the retention sweep (default: store clock)

    Returns:
        Number of updates accepted

    Raises:
        ValidationError: An identity component is empty or malformed
        StorageError: Backend failure (earlier items may already be written)

    Side Effects:
        - Upserts one record per update
        - Deletes the tenant's records older than RETENTION_DAYS
    """
    for update in updates:
        validate_page_identity(tenant_id, project_name, update.page_name)

    with time_block("pipeline.accept_updates"):
        for update in updates:
            record = PageRecord(
                tenant_id=tenant_id,
                project_name=project_name,
                name=update.page_name,
                link=update.link,
                authors=[update.author_name] if update.author_name else [],
            )
            store.upsert_page(tenant_id, project_name, record)

        reference = parse_timestamp(now) if now is not None else store.now()
        evicted = store.evict_older_than(tenant_id, reference - timedelta(days=RETENTION_DAYS))

    counter("pipeline.updates_accepted", len(updates))
    log_event(
        "pipeline.accept_updates",
        tenant_id=tenant_id,
        project_name=project_name,
        accepted=len(updates),
        evicted=evicted,
    )
    return len(updates)


def collect_digest(
    store: PageStore,
    tenant_id: str,
    since: datetime | str,
    channel: Channel | str,
) -> Digest:
    """
    Read the tenant's pages updated at or after `since` and render them for `channel`.

    Zero matching pages renders the empty-state message.

    Raises:
        ValidationError: Bad tenant id or unparseable `since`
        ValueError: Unknown channel
        StorageError: Backend failure
    """
    channel = Channel(channel)
    since_dt = parse_timestamp(since)

    with time_block("pipeline.build_digest"):
        records = store.list_since(tenant_id, since_dt)
        messages = render_for_channel(channel, records)

    logger.info(
        "Built %s digest for %s: %d pages since %s",
        channel.value,
        tenant_id,
        len(records),
        since_dt.isoformat(),
    )
    return Digest(records=records, messages=messages)


def build_digest(
    store: PageStore,
    tenant_id: str,
    since: datetime | str,
    channel: Channel | str,
) -> list[str]:
    """Messages for the tenant's pages updated at or after `since` (see collect_digest)."""
    return collect_digest(store, tenant_id, since, channel).messages


def deliver_digest(
    messages: Sequence[str],
    channel: Channel | str,
    transport: Transport | None = None,
) -> DeliveryResult:
    """
    Send rendered messages through the channel's transport.

    Delivery is best effort; a failed send is reported in the result, not
    raised.
    """
    channel = Channel(channel)
    transport = transport or get_transport(channel)

    delivered = transport.send(list(messages))
    log_event(
        "pipeline.deliver_digest",
        channel=channel.value,
        message_count=len(messages),
        delivered=delivered,
    )
    return DeliveryResult(channel=channel, message_count=len(messages), delivered=delivered)
