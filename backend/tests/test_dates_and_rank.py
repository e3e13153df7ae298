"""Tests for date-range cutoffs and rank display helpers."""

from datetime import date, datetime, timezone

import pytest

from dota_scout.models.statistics import DateRangeSelection
from dota_scout.utils.dates import get_date_cutoffs, get_rolling_cutoffs, in_date_range, parse_iso
from dota_scout.utils.rank import format_rank, parse_rank

NOW = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


class TestDateRanges:
    """Tests for rolling and custom date ranges."""

    def test_all_has_no_cutoffs(self):
        assert get_date_cutoffs(DateRangeSelection(), NOW) == (None, None)
        assert in_date_range("not a date", DateRangeSelection(), NOW) is True

    def test_seven_day_start_is_inclusive(self):
        """A match exactly at the start cutoff is included."""
        selection = DateRangeSelection(type="7days")
        assert in_date_range("2024-03-08T00:00:00+00:00", selection, NOW) is True
        assert in_date_range("2024-03-07T23:59:59+00:00", selection, NOW) is False

    def test_rolling_range_ends_yesterday(self):
        selection = DateRangeSelection(type="7days")
        assert in_date_range("2024-03-14T23:59:59+00:00", selection, NOW) is True
        assert in_date_range("2024-03-15T00:00:00+00:00", selection, NOW) is False

    def test_match_list_cutoffs_roll_from_now(self):
        """Match-list filters start exactly N days before now and have no end bound."""
        selection = DateRangeSelection(type="7days")
        start, end = get_rolling_cutoffs(selection, NOW)
        assert start == datetime(2024, 3, 8, 12, 0, tzinfo=timezone.utc).timestamp()
        assert end is None
        assert in_date_range("2024-03-15T11:00:00+00:00", selection, NOW, rolling=True) is True
        assert in_date_range("2024-03-08T12:00:00+00:00", selection, NOW, rolling=True) is True
        assert in_date_range("2024-03-08T11:59:59+00:00", selection, NOW, rolling=True) is False

    def test_match_list_custom_range_matches_statistics(self):
        selection = DateRangeSelection(
            type="custom", custom_start=date(2024, 1, 1), custom_end=date(2024, 1, 31)
        )
        assert get_rolling_cutoffs(selection, NOW) == get_date_cutoffs(selection, NOW)

    def test_thirty_days(self):
        start, _ = get_date_cutoffs(DateRangeSelection(type="30days"), NOW)
        assert start == datetime(2024, 2, 14, tzinfo=timezone.utc).timestamp()

    def test_custom_range_covers_whole_days(self):
        selection = DateRangeSelection(
            type="custom", custom_start=date(2024, 1, 1), custom_end=date(2024, 1, 31)
        )
        assert in_date_range("2024-01-01T00:00:00Z", selection, NOW) is True
        assert in_date_range("2024-01-31T23:59:59Z", selection, NOW) is True
        assert in_date_range("2024-02-01T00:00:00Z", selection, NOW) is False

    def test_custom_range_with_open_end(self):
        selection = DateRangeSelection(type="custom", custom_start=date(2024, 1, 1))
        assert in_date_range("2030-01-01T00:00:00Z", selection, NOW) is True

    def test_unparseable_date_is_outside_bounded_range(self):
        assert in_date_range("garbage", DateRangeSelection(type="7days"), NOW) is False

    def test_naive_values_are_utc(self):
        assert parse_iso("2024-01-01T00:00:00").tzinfo == timezone.utc
        assert parse_iso("") is None
        assert parse_iso(42) is None


class TestRank:
    """Tests for rank formatting and parsing."""

    @pytest.mark.parametrize(
        "tier,leaderboard,expected",
        [
            (55, None, "Legend 5"),
            (10, None, "Herald"),
            (80, None, "Immortal"),
            (80, 12, "Immortal #12"),
            (0, None, ""),
            (None, None, ""),
            (95, None, "Immortal"),
        ],
    )
    def test_format_rank(self, tier, leaderboard, expected):
        assert format_rank(tier, leaderboard) == expected

    def test_parse_rank(self):
        assert parse_rank("Legend 5") == (55, None)
        assert parse_rank("Immortal #12") == (80, 12)
        assert parse_rank("Divine") == (70, None)
        assert parse_rank("Unknown") == (0, None)
        assert parse_rank("") == (0, None)
