"""
Revenue trend projection from donation history.

Month-over-month totals are compared for the two most recent months and
next month is projected with a damped linear extrapolation (half the
latest change rate by default) so one volatile month does not dominate.
"""

from typing import Iterable, Optional

import pandas as pd

from .activity import donation_frame
from .config import DEFAULT_CONFIG, PredictionConfig
from .frames import Diagnostics, round_half_up
from .records import DonationRecord, RevenueForecast


def monthly_totals(donations: pd.DataFrame) -> pd.Series:
    """Donation totals by calendar month (YYYY-MM, UTC), ascending."""
    if donations.empty:
        return pd.Series(dtype=float)
    months = donations["occurred_at"].dt.strftime("%Y-%m")
    return donations.groupby(months)["amount"].sum().sort_index()


def recurring_total(recurring: pd.DataFrame) -> float:
    """Sum of active recurring donation amounts."""
    if recurring.empty:
        return 0.0
    active = recurring[
        recurring["is_recurring"].fillna(False).astype(bool)
        & (recurring["status"] == "active")
    ]
    return float(active["amount"].sum())


def project_revenue(
    donations: Iterable[DonationRecord],
    recurring: Iterable[DonationRecord],
    config: PredictionConfig = DEFAULT_CONFIG,
    diagnostics: Optional[Diagnostics] = None,
) -> RevenueForecast:
    """
    Project next month's giving.

    Args:
        donations: Donations in the trailing revenue window
        recurring: Active recurring donations (any date)
        config: Damping factor
        diagnostics: Accumulator for skipped-record counts

    Returns:
        RevenueForecast
    """
    totals = monthly_totals(donation_frame(donations, diagnostics))

    last = float(totals.iloc[-1]) if len(totals) >= 1 else 0.0
    prev = float(totals.iloc[-2]) if len(totals) >= 2 else last

    if last > prev:
        trend = "increasing"
    elif last < prev:
        trend = "decreasing"
    else:
        trend = "stable"

    change_rate = (last - prev) / prev if prev > 0 else 0.0
    projected = round_half_up(last * (1 + change_rate * config.revenue_damping))

    return RevenueForecast(
        current_recurring_total=recurring_total(donation_frame(recurring, diagnostics)),
        last_month_total=last,
        projected_next_month=projected,
        trend=trend,
        change_percentage=round_half_up(change_rate * 100),
        monthly_history=[
            {"month": month, "total": float(total)} for month, total in totals.items()
        ],
    )
