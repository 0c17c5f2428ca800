"""
Storage port for the prediction engine.

The engine only reads. Adapters implement `StoragePort` over whatever
database holds members, activity, donations and search logs, and must
raise `DataUnavailable` when a read fails rather than returning nothing.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import pandas as pd
import yaml

from .errors import DataUnavailable
from .frames import to_utc
from .records import (
    ActivityRecord,
    ContentRecord,
    DonationRecord,
    Member,
    SearchLogRecord,
)

logger = logging.getLogger(__name__)


class StoragePort(ABC):
    """Read-only interface the engine needs from the storage layer."""

    @abstractmethod
    def list_members(self) -> list[Member]:
        """All members."""
        pass

    def get_member(self, member_id) -> Optional[Member]:
        """Single member by id, or None."""
        for member in self.list_members():
            if member.id == member_id:
                return member
        return None

    @abstractmethod
    def list_member_activity(self, member_id, limit: int) -> list[ActivityRecord]:
        """A member's activity, most recent first, at most `limit` records."""
        pass

    @abstractmethod
    def list_member_activity_between(self, member_id, start: datetime, end: datetime) -> list[ActivityRecord]:
        """
        All of a member's activity with start <= occurred_at < end, oldest first.

        Not capped. Records whose timestamp cannot be read follow the
        dated ones so the caller can count them as malformed.
        """
        pass

    @abstractmethod
    def list_member_donations(self, member_id, limit: int) -> list[DonationRecord]:
        """A member's donations, most recent first, at most `limit` records."""
        pass

    @abstractmethod
    def get_engagement_score(self, member_id) -> Optional[float]:
        """Externally maintained 0-100 engagement score, None if absent."""
        pass

    @abstractmethod
    def list_donations(self, start: datetime, end: datetime) -> list[DonationRecord]:
        """Donations with start <= occurred_at < end, oldest first, then undated ones."""
        pass

    @abstractmethod
    def list_active_recurring_donations(self) -> list[DonationRecord]:
        """Recurring donations whose status is active."""
        pass

    @abstractmethod
    def list_search_logs(self, start: datetime, end: datetime) -> list[SearchLogRecord]:
        """Search log entries with start <= occurred_at < end, then undated ones."""
        pass

    @abstractmethod
    def list_top_content(self, limit: int) -> list[ContentRecord]:
        """Content ordered by views, descending."""
        pass


def _sort_time(value) -> Optional[Any]:
    """UTC timestamp for ordering, None when unparseable."""
    if value is None:
        return None
    try:
        ts = to_utc(value)
    except (TypeError, ValueError):
        return None
    return None if pd.isna(ts) else ts


def _most_recent_first(records: list) -> list:
    # Unparseable timestamps sort last
    keyed = [(_sort_time(r.occurred_at), i, r) for i, r in enumerate(records)]
    dated = sorted((k for k in keyed if k[0] is not None), key=lambda k: (k[0], -k[1]), reverse=True)
    undated = [k for k in keyed if k[0] is None]
    return [r for _, _, r in dated + undated]


def _in_range(records: list, start: datetime, end: datetime) -> list:
    # Undated records are passed through last; the frame builders drop and count them
    start, end = to_utc(start), to_utc(end)
    dated, undated = [], []
    for record in records:
        ts = _sort_time(record.occurred_at)
        if ts is None:
            undated.append(record)
        elif start <= ts < end:
            dated.append((ts, record))
    dated.sort(key=lambda pair: pair[0])
    return [record for _, record in dated] + undated


class InMemoryStorage(StoragePort):
    """
    Storage adapter over an in-memory snapshot.

    Snapshot layout (dict or YAML file):
        members:            [{id, first_name, last_name, email, tier, created_at}]
        activity:           [{member_id, activity_type, occurred_at}]
        donations:          [{member_id, amount, occurred_at, is_recurring, status}]
        engagement_scores:  {member_id: score}
        search_logs:        [{query, results_count, occurred_at}]
        content:            [{id, title, views, completion_rate}]
    """

    def __init__(self, snapshot: Optional[dict] = None):
        snapshot = snapshot or {}
        self.members = [Member(**row) for row in snapshot.get("members", [])]
        self.activity = [ActivityRecord(**row) for row in snapshot.get("activity", [])]
        self.donations = [DonationRecord(**row) for row in snapshot.get("donations", [])]
        self.engagement_scores = dict(snapshot.get("engagement_scores") or {})
        self.search_logs = [SearchLogRecord(**row) for row in snapshot.get("search_logs", [])]
        self.content = [ContentRecord(**row) for row in snapshot.get("content", [])]

    @classmethod
    def from_yaml(cls, path: Path | str) -> "InMemoryStorage":
        """Load a snapshot from a YAML file."""
        path = Path(path)
        try:
            with open(path) as f:
                snapshot = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise DataUnavailable(f"Cannot read snapshot {path}: {e}") from e
        logger.info(
            "Loaded snapshot %s: %d members, %d activity records",
            path, len(snapshot.get("members", [])), len(snapshot.get("activity", [])),
        )
        return cls(snapshot)

    def list_members(self) -> list[Member]:
        return list(self.members)

    def list_member_activity(self, member_id, limit: int) -> list[ActivityRecord]:
        records = [r for r in self.activity if r.member_id == member_id]
        return _most_recent_first(records)[:limit]

    def list_member_activity_between(self, member_id, start: datetime, end: datetime) -> list[ActivityRecord]:
        return _in_range([r for r in self.activity if r.member_id == member_id], start, end)

    def list_member_donations(self, member_id, limit: int) -> list[DonationRecord]:
        records = [r for r in self.donations if r.member_id == member_id]
        return _most_recent_first(records)[:limit]

    def get_engagement_score(self, member_id) -> Optional[float]:
        return self.engagement_scores.get(member_id)

    def list_donations(self, start: datetime, end: datetime) -> list[DonationRecord]:
        return _in_range(self.donations, start, end)

    def list_active_recurring_donations(self) -> list[DonationRecord]:
        return [r for r in self.donations if r.is_recurring and r.status == "active"]

    def list_search_logs(self, start: datetime, end: datetime) -> list[SearchLogRecord]:
        return _in_range(self.search_logs, start, end)

    def list_top_content(self, limit: int) -> list[ContentRecord]:
        return sorted(self.content, key=lambda c: c.views or 0, reverse=True)[:limit]
