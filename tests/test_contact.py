"""
Tests for optimal contact time prediction.
"""

import pytest

from retention.config import PredictionConfig
from retention.contact import format_hour, predict_contact_time
from retention.records import ContactTime

from conftest import days_ago

# NOW is a Sunday, so days_ago(n) lands on: 1=Sat 2=Fri 3=Thu 4=Wed 5=Tue 6=Mon 7=Sun


class TestPredictContactTime:
    """Day and hour modes of a member's activity."""

    def test_fewer_than_five_records_uses_default(self, default_config):
        events = [days_ago(n, hour=19) for n in [4, 11, 18, 25]]

        assert predict_contact_time(events, default_config) == ContactTime("Tuesday", "10:00 AM")

    def test_no_activity_uses_default(self, default_config):
        assert predict_contact_time([], default_config) == ContactTime("Tuesday", "10:00 AM")

    def test_most_common_day_and_hour(self, default_config):
        events = [days_ago(n, hour=19) for n in [4, 11, 18]] + [days_ago(n, hour=8) for n in [2, 9]]

        assert predict_contact_time(events, default_config) == ContactTime("Wednesday", "7:00 PM")

    def test_day_and_hour_picked_independently(self, default_config):
        """The best hour need not occur on the best day."""
        events = (
            [days_ago(n, hour=7) for n in [4, 11, 18]]
            + [days_ago(n, hour=20) for n in [1, 2, 3, 8]]
        )

        assert predict_contact_time(events, default_config) == ContactTime("Wednesday", "8:00 PM")

    def test_ties_go_to_earliest_day_and_hour(self, default_config):
        events = [
            days_ago(6, hour=14), days_ago(13, hour=14),  # Monday
            days_ago(3, hour=9), days_ago(10, hour=9),    # Thursday
            days_ago(1, hour=22),                         # Saturday
        ]

        assert predict_contact_time(events, default_config) == ContactTime("Monday", "9:00 AM")

    def test_sunday_wins_ties_against_saturday(self, default_config):
        events = [days_ago(n, hour=10) for n in [7, 14, 1, 8, 6]]

        assert predict_contact_time(events, default_config).day_of_week == "Sunday"

    def test_unparseable_timestamps_do_not_count(self, default_config):
        events = [days_ago(n, hour=19) for n in [4, 11, 18, 25]] + ["garbage", None]

        assert predict_contact_time(events, default_config) == ContactTime("Tuesday", "10:00 AM")

    def test_configured_timezone(self):
        """02:00 UTC on Tuesdays is 21:00 Monday at UTC-5."""
        config = PredictionConfig(contact_timezone="Etc/GMT+5")
        events = [days_ago(n, hour=2) for n in [5, 12, 19, 26, 33]]

        assert predict_contact_time(events, config) == ContactTime("Monday", "9:00 PM")

    def test_custom_default_slot(self):
        config = PredictionConfig(default_contact_day="Thursday", default_contact_time="7:00 PM")

        assert predict_contact_time([], config) == ContactTime("Thursday", "7:00 PM")


class TestFormatHour:
    """12-hour clock labels."""

    @pytest.mark.parametrize("hour,label", [
        (0, "12:00 AM"),
        (1, "1:00 AM"),
        (11, "11:00 AM"),
        (12, "12:00 PM"),
        (13, "1:00 PM"),
        (23, "11:00 PM"),
    ])
    def test_format_hour(self, hour, label):
        assert format_hour(hour) == label
