"""
Message renderers for page digests.

Two formats:
    - Long-form: one block per page with project, authors, link and update
      time. No length limit (Discord).
    - Length-constrained: a compact list that never exceeds a weighted
      character budget (X, 280), ending with "+N more" when pages are left out.

Both are pure functions of the record list.
"""

from __future__ import annotations

from collections.abc import Sequence

from twitter_text import parse_tweet

from pagefeed.config import TWEET_MAX_LENGTH
from pagefeed.storage.models import PageRecord
from pagefeed.utils.timestamps import format_timestamp

EMPTY_MESSAGE = "No pages were updated."

# Authors listed by name in a compact entry before collapsing to "and N more"
MAX_LISTED_AUTHORS = 2


def weighted_length(text: str) -> int:
    """
    Length as X counts it (twitter-text weighting).

    URLs weigh 23 regardless of length; CJK characters and emoji weigh 2.
    """
    return parse_tweet(text).weightedLength


def format_authors(authors: Sequence[str], limit: int = MAX_LISTED_AUTHORS) -> str:
    """'a, b' for up to `limit` authors, then ' and N more' for the rest."""
    listed = ", ".join(authors[:limit])
    hidden = len(authors) - limit
    if hidden > 0:
        return f"{listed} and {hidden} more"
    return listed


def build_entry(record: PageRecord) -> str:
    """Compact entry: name, authors, link, blank line."""
    return f"{record.name}\nby {format_authors(record.authors)}\n{record.link}\n\n"


def render_long_form(records: Sequence[PageRecord]) -> str:
    """
    Render every record in input order, without truncation.

    Empty input renders EMPTY_MESSAGE.
    """
    if not records:
        return EMPTY_MESSAGE

    blocks = [f"📝 **Page updates** ({len(records)})"]
    for record in records:
        blocks.append(
            "\n".join(
                [
                    f"**{record.name}**",
                    f"📌 Project: {record.project_name}",
                    f"👤 Authors: {', '.join(record.authors)}",
                    f"🔗 {record.link}",
                    f"🕒 {format_timestamp(record.updated_at)}",
                ]
            )
        )
    return "\n\n".join(blocks)


def render_length_constrained(
    records: Sequence[PageRecord],
    budget: int = TWEET_MAX_LENGTH,
) -> str:
    """
    Render as many records as fit in `budget` weighted characters.

    Entries are appended greedily in input order. At the first entry that
    does not fit, packing stops and a "+R more" trailer is added, where R is
    the number of records not shown. If the trailer itself pushes the
    message over budget, committed entries are dropped from the end (R grows
    by one each time) until it fits. With nothing committed the result is the
    header plus a trailer for every record.

    Args:
        records: Records in the order they should appear
        budget: Maximum weighted length of the result

    Returns:
        A message with weighted_length(message) <= budget

    Raises:
        ValueError: If `budget` cannot hold the header and a trailer for
            every record
    """
    if not records:
        return EMPTY_MESSAGE

    total = len(records)
    header = f"📝 Page updates ({total})\n\n"
    minimum = weighted_length(f"{header.rstrip()}\n\n+{total} more")
    if minimum > budget:
        raise ValueError(f"Budget {budget} is below the minimum digest length {minimum}")

    committed: list[str] = []

    for record in records:
        entry = build_entry(record)
        candidate = header + "".join(committed) + entry
        if weighted_length(candidate.rstrip()) > budget:
            break
        committed.append(entry)
    else:
        return (header + "".join(committed)).rstrip()

    while True:
        body = (header + "".join(committed)).rstrip()
        message = f"{body}\n\n+{total - len(committed)} more"
        if weighted_length(message) <= budget or not committed:
            return message
        committed.pop()
