"""
Tests for activity trend classification.
"""

import pytest

from retention.config import PredictionConfig
from retention.trend import classify_counts, classify_trend, window_counts

from conftest import NOW, days_ago


def ages(*days):
    return [days_ago(d) for d in days]


class TestWindowCounts:
    """Recent [now-30d, now) vs prior [now-60d, now-30d)."""

    def test_counts_split_by_window(self):
        recent, prior = window_counts(ages(1, 5, 29, 31, 59), NOW)

        assert (recent, prior) == (3, 2)

    def test_window_boundaries(self):
        """Window starts are inclusive, ends exclusive."""
        recent, prior = window_counts(ages(0, 30, 60, 60.5), NOW)

        assert recent == 1  # 30 days ago; "now" itself is excluded
        assert prior == 1   # exactly 60 days ago

    def test_accepts_strings_and_naive_datetimes(self):
        values = ["2026-03-14T09:00:00Z", days_ago(2).replace(tzinfo=None), "2026-02-01"]
        recent, prior = window_counts(values, NOW)

        assert (recent, prior) == (2, 1)

    def test_unparseable_timestamps_ignored(self):
        recent, prior = window_counts(["not a date", None, days_ago(1)], NOW)

        assert (recent, prior) == (1, 0)


class TestClassifyTrend:
    """Trend labels."""

    def test_empty_is_stable(self):
        assert classify_trend([], NOW) == "stable"

    def test_single_record_is_stable(self):
        assert classify_trend(ages(1), NOW) == "stable"

    def test_increasing(self):
        """5 recent vs 2 prior: 5 > 2.4."""
        assert classify_trend(ages(1, 2, 3, 4, 5, 40, 41), NOW) == "increasing"

    def test_declining(self):
        """1 recent vs 5 prior: 1 < 4."""
        assert classify_trend(ages(1, 35, 40, 45, 50, 55), NOW) == "declining"

    def test_growth_from_nothing_is_increasing(self):
        assert classify_trend(ages(1, 2), NOW) == "increasing"

    def test_only_old_activity_is_stable(self):
        """Both windows empty: 0 is neither above nor below 0."""
        assert classify_trend(ages(100, 140), NOW) == "stable"

    @pytest.mark.parametrize("recent,prior,expected", [
        (5, 5, "stable"),
        (6, 5, "stable"),       # 6 is not > 6.0
        (7, 5, "increasing"),
        (4, 5, "stable"),       # 4 is not < 4.0
        (3, 5, "declining"),
        (0, 1, "declining"),
    ])
    def test_ratio_band(self, recent, prior, expected):
        assert classify_counts(recent, prior) == expected

    def test_custom_window(self):
        config = PredictionConfig(trend_window_days=7)

        assert classify_trend(ages(1, 2, 3, 10), NOW, config) == "increasing"
