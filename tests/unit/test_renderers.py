"""
Tests for digest renderers.

Validates:
1. Weighted length follows X (URLs 23, CJK and emoji 2)
2. Long-form output covers every record in order
3. Length-constrained output never exceeds the budget and reports the
   number of pages left out
"""

from __future__ import annotations

import pytest
from twitter_text import parse_tweet

from pagefeed.digest.renderers import (
    EMPTY_MESSAGE,
    build_entry,
    format_authors,
    render_length_constrained,
    render_long_form,
    weighted_length,
)


def _records(make_record, count: int, authors: list[str] | None = None):
    return [make_record(f"Page-{i:02d}", authors or ["Alice"]) for i in range(count)]


class TestWeightedLength:
    def test_plain_text(self):
        assert weighted_length("hello") == 5

    def test_url_counts_fixed_weight(self):
        assert weighted_length("see https://scrapbox.io/project/SomeVeryLongPageName ok") == 4 + 23 + 3

    def test_multiple_urls(self):
        text = "https://scrapbox.io/a\nhttps://scrapbox.io/project/b"
        assert weighted_length(text) == 23 + 1 + 23

    def test_cjk_characters_weigh_two(self):
        assert weighted_length("更新") == 4
        assert weighted_length("ページ更新") == 10

    def test_emoji_weighs_two(self):
        assert weighted_length("📝") == 2


class TestEntries:
    def test_two_authors(self, make_record):
        entry = build_entry(make_record("TestPage", ["Alice", "Bob"]))
        assert entry == "TestPage\nby Alice, Bob\nhttps://scrapbox.io/test-project/TestPage\n\n"

    def test_more_than_two_authors_collapses(self, make_record):
        entry = build_entry(make_record("TestPage", ["Alice", "Bob", "Carol", "Dave"]))
        assert "\nby Alice, Bob and 2 more\n" in entry

    def test_no_authors(self, make_record):
        entry = build_entry(make_record("TestPage", []))
        assert entry.startswith("TestPage\nby \n")

    def test_format_authors_single(self):
        assert format_authors(["Alice"]) == "Alice"


class TestLongForm:
    def test_empty_state(self):
        assert render_long_form([]) == EMPTY_MESSAGE

    def test_lists_every_record_in_order(self, make_record):
        records = [
            make_record("Zeta", ["Alice", "Bob"]),
            make_record("Alpha", ["Carol"]),
        ]

        message = render_long_form(records)

        assert message.startswith("📝 **Page updates** (2)")
        assert message.index("**Zeta**") < message.index("**Alpha**")
        assert "👤 Authors: Alice, Bob" in message
        assert "📌 Project: test-project" in message
        assert "🔗 https://scrapbox.io/test-project/Alpha" in message
        assert "🕒 " in message

    def test_no_truncation(self, make_record):
        message = render_long_form(_records(make_record, 50))
        assert message.count("👤 Authors:") == 50


class TestLengthConstrained:
    def test_empty_state(self):
        assert render_length_constrained([]) == EMPTY_MESSAGE

    def test_single_record_fits_without_trailer(self, make_record):
        message = render_length_constrained([make_record("TestPage", ["Alice"])])

        assert message == (
            "📝 Page updates (1)\n\n"
            "TestPage\nby Alice\nhttps://scrapbox.io/test-project/TestPage"
        )

    def test_fifty_records_truncated_with_remaining_count(self, make_record):
        message = render_length_constrained(_records(make_record, 50))

        shown = message.count("\nby ")
        assert weighted_length(message) <= 280
        assert message.startswith("📝 Page updates (50)\n\n")
        assert message.endswith(f"\n\n+{50 - shown} more")
        assert 0 < shown < 50

    def test_trailer_backoff_drops_last_entry(self, make_record):
        # Six 42-weight entries fill 272 of 280; the trailer needs 10 more
        message = render_length_constrained(_records(make_record, 50))

        assert message.count("\nby ") == 5
        assert message.endswith("+45 more")

    def test_entries_keep_input_order(self, make_record):
        message = render_length_constrained(_records(make_record, 50))
        assert message.index("Page-00") < message.index("Page-01") < message.index("Page-04")

    def test_single_oversized_record(self, make_record):
        record = make_record("X" * 400, ["Alice"])

        message = render_length_constrained([record])

        assert message == "📝 Page updates (1)\n\n+1 more"

    def test_many_authors_in_compact_form(self, make_record):
        message = render_length_constrained([make_record("TestPage", ["A", "B", "C"])])
        assert "by A, B and 1 more" in message

    @pytest.mark.parametrize("count", [1, 2, 3, 5, 8, 13, 21, 34])
    @pytest.mark.parametrize("name_length", [3, 20, 60, 120])
    def test_never_exceeds_budget(self, make_record, count, name_length):
        records = [
            make_record(f"{i}-" + "n" * name_length, ["Alice", "Bob", "Carol"]) for i in range(count)
        ]

        message = render_length_constrained(records)

        assert weighted_length(message) <= 280
        if "more" not in message.rsplit("\n", 1)[-1]:
            assert message.count("\nby ") == count

    def test_custom_budget(self, make_record):
        message = render_length_constrained(_records(make_record, 3), budget=100)

        assert weighted_length(message) <= 100
        assert message.endswith("more")

    def test_budget_below_header_and_trailer_rejected(self, make_record):
        with pytest.raises(ValueError, match="below the minimum"):
            render_length_constrained(_records(make_record, 3), budget=10)

    def test_budget_exactly_header_and_trailer(self, make_record):
        minimum = weighted_length("📝 Page updates (3)\n\n+3 more")

        message = render_length_constrained(_records(make_record, 3), budget=minimum)

        assert message == "📝 Page updates (3)\n\n+3 more"


class TestLengthConstrainedCJK:
    """Page names in Japanese weigh 2 per character on X"""

    def test_long_cjk_name_is_left_out(self, make_record):
        message = render_length_constrained([make_record("更新" * 60, ["Alice"])])

        assert message == "📝 Page updates (1)\n\n+1 more"
        assert parse_tweet(message).valid

    @pytest.mark.parametrize("name_length", [1, 10, 40, 70, 100, 130])
    def test_cjk_names_stay_within_budget(self, make_record, name_length):
        records = [
            make_record(f"{i}-" + "更" * name_length, ["山田", "佐藤", "鈴木"]) for i in range(8)
        ]

        message = render_length_constrained(records)

        assert weighted_length(message) <= 280
        assert parse_tweet(message).valid

    def test_ascii_names_valid_at_every_length(self, make_record):
        for name_length in range(1, 260):
            message = render_length_constrained([make_record("a" * name_length, ["Alice"])])

            assert parse_tweet(message).valid, name_length
