"""
Fixed-offset timestamp conversion.

Every timestamp pagefeed stores is formatted with the same +09:00 offset
(JST) and second precision, e.g. ``2025-12-20T15:56:31+09:00``. The offset is
a constant, not a host time-zone lookup, so ordering comparisons behave the
same on every deployment.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from pagefeed.config import TIMESTAMP_UTC_OFFSET_HOURS
from pagefeed.utils.validators import ValidationError

STORE_TZ = timezone(timedelta(hours=TIMESTAMP_UTC_OFFSET_HOURS))


def to_store_tz(value: datetime) -> datetime:
    """Convert to the store offset, truncated to whole seconds.

    Naive datetimes are interpreted as already being in the store offset.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=STORE_TZ)
    return value.astimezone(STORE_TZ).replace(microsecond=0)


def format_timestamp(value: datetime) -> str:
    """Format as ISO-8601 with the explicit store offset."""
    return to_store_tz(value).isoformat()


def parse_timestamp(value: str | datetime) -> datetime:
    """
    Parse an ISO-8601 string into an aware datetime in the store offset.

    Accepts any explicit offset (including ``Z``); strings without an offset
    are read as store-offset local time.

    Raises:
        ValidationError: If the string is not ISO-8601
    """
    if isinstance(value, datetime):
        return to_store_tz(value)

    text = value.strip() if isinstance(value, str) else ""
    if not text:
        raise ValidationError("Timestamp is required")
    if text.endswith(("z", "Z")):
        text = text[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as e:
        raise ValidationError(
            f"Invalid timestamp {value!r}. Expected ISO 8601 format"
        ) from e

    return to_store_tz(parsed)


def now_jst() -> datetime:
    """Current wall-clock time in the store offset."""
    return datetime.now(STORE_TZ).replace(microsecond=0)
