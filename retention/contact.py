"""Optimal contact time from a member's activity rhythm."""

from .config import DEFAULT_CONFIG, PredictionConfig
from .frames import as_timestamps
from .records import ContactTime

DAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")


def format_hour(hour: int) -> str:
    """24-hour clock hour as "H:00 AM/PM" (0 -> 12 AM, 12 -> 12 PM)."""
    if hour < 12:
        return f"{12 if hour == 0 else hour}:00 AM"
    return f"{12 if hour == 12 else hour - 12}:00 PM"


def predict_contact_time(occurred_at, config: PredictionConfig = DEFAULT_CONFIG) -> ContactTime:
    """
    Most common day of week and hour of day of a member's activity.

    With fewer than `contact_min_records` events the default slot is
    returned. Day and hour modes are picked independently; on a tie the
    lowest day index (Sunday = 0) or hour wins.

    Args:
        occurred_at: Activity timestamps
        config: Minimum records, default slot and timezone

    Returns:
        ContactTime
    """
    ts = as_timestamps(occurred_at).dropna()
    if len(ts) < config.contact_min_records:
        return default_contact_time(config)

    local = ts.dt.tz_convert(config.contact_timezone)
    # pandas weekday is Monday=0
    day_index = (local.dt.dayofweek + 1) % 7
    hours = local.dt.hour

    best_day = int(day_index.value_counts().sort_index().idxmax())
    best_hour = int(hours.value_counts().sort_index().idxmax())
    return ContactTime(DAY_NAMES[best_day], format_hour(best_hour))


def default_contact_time(config: PredictionConfig = DEFAULT_CONFIG) -> ContactTime:
    return ContactTime(config.default_contact_day, config.default_contact_time)
