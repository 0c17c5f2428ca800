"""
Activity trend classification.

Compares two adjacent windows:
    recent = [now - w, now)
    prior  = [now - 2w, now - w)
and labels the direction increasing / declining / stable. The result is
total: anything with fewer than two observations is stable.
"""

import pandas as pd

from .config import DEFAULT_CONFIG, PredictionConfig
from .frames import as_timestamps, to_utc


def window_counts(occurred_at, now, window_days: int = DEFAULT_CONFIG.trend_window_days) -> tuple[int, int]:
    """
    Count events in the recent and prior windows.

    Returns:
        (recent, prior)
    """
    ts = as_timestamps(occurred_at)
    now = to_utc(now)
    window = pd.Timedelta(days=window_days)

    recent = ((ts >= now - window) & (ts < now)).sum()
    prior = ((ts >= now - 2 * window) & (ts < now - window)).sum()
    return int(recent), int(prior)


def classify_counts(recent: int, prior: int, config: PredictionConfig = DEFAULT_CONFIG) -> str:
    """Label a pair of window counts."""
    if recent > prior * config.trend_increase_ratio:
        return "increasing"
    if recent < prior * config.trend_decline_ratio:
        return "declining"
    return "stable"


def classify_trend(occurred_at, now, config: PredictionConfig = DEFAULT_CONFIG) -> str:
    """
    Classify a member's activity direction.

    Args:
        occurred_at: Activity timestamps (Series or any sequence)
        now: Reference time
        config: Window length and ratio thresholds

    Returns:
        "increasing", "declining" or "stable"
    """
    ts = as_timestamps(occurred_at)
    if len(ts) < 2:
        return "stable"
    recent, prior = window_counts(ts, now, config.trend_window_days)
    return classify_counts(recent, prior, config)
