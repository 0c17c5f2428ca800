"""
Activity aggregation: a member's recent history as a clean frame.

Reads are bounded, either by a record cap (most recent first) or by a
time window, and pure. A failed read surfaces as `DataUnavailable` so
callers never mistake an outage for a member with no activity.
"""

from dataclasses import dataclass
from typing import Optional

import pandas as pd

from .config import DEFAULT_CONFIG, PredictionConfig
from .errors import DataUnavailable
from .frames import Diagnostics, records_frame, to_utc
from .schemas import ACTIVITY_SCHEMA, DONATION_SCHEMA
from .storage import StoragePort

ACTIVITY_COLUMNS = ["member_id", "activity_type", "occurred_at"]
DONATION_COLUMNS = ["member_id", "amount", "occurred_at", "is_recurring", "status"]


@dataclass
class ActivitySnapshot:
    """
    A member's bounded activity history.

    Attributes:
        member_id: Owning member
        frame: Activity rows, most recent first
    """

    member_id: object
    frame: pd.DataFrame

    @property
    def occurred_at(self) -> pd.Series:
        return self.frame["occurred_at"]

    @property
    def count(self) -> int:
        return len(self.frame)

    @property
    def last_activity_at(self) -> Optional[pd.Timestamp]:
        if self.frame.empty:
            return None
        return self.frame["occurred_at"].max()

    def days_inactive(self, now, never_active_days: int = DEFAULT_CONFIG.never_active_days) -> int:
        """Whole days since the last activity."""
        last = self.last_activity_at
        if last is None:
            return never_active_days
        return max(0, (to_utc(now) - last).days)

    def engagement_areas(self) -> list[str]:
        """Distinct activity types, most recent first."""
        return list(self.frame["activity_type"].dropna().astype(str).unique())


def activity_frame(records, diagnostics: Optional[Diagnostics] = None) -> pd.DataFrame:
    """Clean activity records into a frame ordered most recent first."""
    df = records_frame(
        records,
        columns=ACTIVITY_COLUMNS,
        required=["member_id", "occurred_at"],
        schema=ACTIVITY_SCHEMA,
        source="activity",
        diagnostics=diagnostics,
    )
    return df.sort_values("occurred_at", ascending=False, kind="stable").reset_index(drop=True)


def donation_frame(records, diagnostics: Optional[Diagnostics] = None) -> pd.DataFrame:
    """Clean donation records; null/negative amounts are dropped."""
    return records_frame(
        records,
        columns=DONATION_COLUMNS,
        required=["amount", "occurred_at"],
        numeric=["amount"],
        non_negative=["amount"],
        schema=DONATION_SCHEMA,
        source="donation",
        diagnostics=diagnostics,
    )


def load_member_activity(
    storage: StoragePort,
    member_id,
    limit: int = DEFAULT_CONFIG.activity_limit,
    diagnostics: Optional[Diagnostics] = None,
) -> ActivitySnapshot:
    """
    Read a member's activity history.

    Args:
        storage: Storage adapter
        member_id: Member to read
        limit: Maximum records (most recent first)
        diagnostics: Accumulator for skipped-record counts

    Returns:
        ActivitySnapshot

    Raises:
        DataUnavailable: If the storage read fails
    """
    records = _read(lambda: storage.list_member_activity(member_id, limit), "activity", member_id)
    return ActivitySnapshot(member_id, activity_frame(records[:limit], diagnostics))


def load_member_activity_between(
    storage: StoragePort,
    member_id,
    start,
    end,
    diagnostics: Optional[Diagnostics] = None,
) -> ActivitySnapshot:
    """Every activity record in [start, end), without a record cap."""
    start, end = to_utc(start), to_utc(end)
    records = _read(
        lambda: storage.list_member_activity_between(member_id, start, end), "activity", member_id
    )
    frame = activity_frame(records, diagnostics)
    in_window = (frame["occurred_at"] >= start) & (frame["occurred_at"] < end)
    return ActivitySnapshot(member_id, frame[in_window].reset_index(drop=True))


def load_donation_status(
    storage: StoragePort,
    member_id,
    now,
    config: PredictionConfig = DEFAULT_CONFIG,
    diagnostics: Optional[Diagnostics] = None,
) -> str:
    """
    Classify a member as an active, lapsed or never donor.

    Lapsed when the most recent valid gift is older than
    `donation_lapse_days`. The last `donation_status_records` gifts are
    read so a malformed newest row does not hide an older valid one.
    """
    limit = config.donation_status_records
    records = _read(lambda: storage.list_member_donations(member_id, limit), "donations", member_id)
    donations = donation_frame(records[:limit], diagnostics)
    if donations.empty:
        return "never"
    days_since = (to_utc(now) - donations["occurred_at"].max()).days
    return "lapsed" if days_since > config.donation_lapse_days else "active"


def load_engagement_score(
    storage: StoragePort,
    member_id,
    recent_activity_count: int,
    config: PredictionConfig = DEFAULT_CONFIG,
    diagnostics: Optional[Diagnostics] = None,
) -> float:
    """
    Stored engagement score, or an estimate from recent activity volume.

    A stored value that is not a number is treated as absent and counted
    under "engagement_score" in diagnostics.
    """
    stored = _read(lambda: storage.get_engagement_score(member_id), "engagement score", member_id)
    score = None if stored is None else pd.to_numeric(stored, errors="coerce")
    if score is None or pd.isna(score):
        if diagnostics is not None and stored is not None and not pd.isna(stored):
            diagnostics.record_skipped("engagement_score", 1)
        score = recent_activity_count * config.engagement_estimate_per_activity
    return float(min(100.0, max(0.0, float(score))))


def _read(fetch, what: str, member_id):
    try:
        return fetch()
    except DataUnavailable:
        raise
    except (OSError, ConnectionError, TimeoutError) as e:
        raise DataUnavailable(f"Failed to read {what} for member {member_id}: {e}") from e
