"""
Helpers for turning storage records into clean pandas frames.

Malformed records are dropped here, counted, and never reach the
analysis code.
"""

import logging
import math
import threading
from collections import Counter
from dataclasses import asdict
from typing import Iterable, Optional, Sequence

import pandas as pd
from pandera import DataFrameSchema

logger = logging.getLogger(__name__)


class Diagnostics:
    """Request-scoped counters of skipped records, keyed by source."""

    def __init__(self):
        self._skipped: Counter = Counter()
        self._lock = threading.Lock()

    def record_skipped(self, source: str, count: int) -> None:
        if count <= 0:
            return
        with self._lock:
            self._skipped[source] += count
        logger.debug("Skipped %d malformed %s record(s)", count, source)

    @property
    def skipped(self) -> dict[str, int]:
        with self._lock:
            return dict(self._skipped)

    @property
    def total_skipped(self) -> int:
        with self._lock:
            return sum(self._skipped.values())


def to_utc(value) -> pd.Timestamp:
    """Coerce a datetime/string to a UTC timestamp (naive values are UTC)."""
    ts = pd.Timestamp(value)
    if ts.tzinfo is None:
        return ts.tz_localize("UTC")
    return ts.tz_convert("UTC")


def as_timestamps(values) -> pd.Series:
    """Coerce a sequence of timestamps to a UTC datetime Series."""
    if isinstance(values, pd.Series) and isinstance(values.dtype, pd.DatetimeTZDtype):
        return values
    return pd.to_datetime(
        pd.Series(list(values), dtype=object), utc=True, errors="coerce", format="mixed"
    )


def round_half_up(value: float, digits: int = 0):
    """Round with halves going up (2.5 -> 3, -2.5 -> -2)."""
    if digits == 0:
        return int(math.floor(value + 0.5))
    scale = 10 ** digits
    return math.floor(value * scale + 0.5) / scale


def records_frame(
    records: Iterable,
    columns: Sequence[str],
    required: Sequence[str],
    numeric: Sequence[str] = (),
    non_negative: Sequence[str] = (),
    schema: Optional[DataFrameSchema] = None,
    source: str = "record",
    diagnostics: Optional[Diagnostics] = None,
) -> pd.DataFrame:
    """
    Build a validated frame from dataclass records.

    Args:
        records: Dataclass instances (ActivityRecord, DonationRecord, ...)
        columns: Columns to keep
        required: Columns that must be present and parseable
        numeric: Columns coerced to numbers (unparseable -> missing)
        non_negative: Numeric columns that must be >= 0
        schema: Optional pandera schema the cleaned frame must satisfy
        source: Label used when counting skipped records
        diagnostics: Accumulator for skipped-record counts

    Returns:
        Cleaned DataFrame; `occurred_at` (if present) is UTC datetime
    """
    df = pd.DataFrame([asdict(r) for r in records], columns=list(columns))

    if "occurred_at" in df.columns:
        df["occurred_at"] = as_timestamps(df["occurred_at"])
    for col in numeric:
        df[col] = pd.to_numeric(df[col], errors="coerce")

    valid = df[list(required)].notna().all(axis=1)
    for col in non_negative:
        valid &= df[col] >= 0

    skipped = int((~valid).sum())
    if diagnostics is not None:
        diagnostics.record_skipped(source, skipped)
    elif skipped:
        logger.debug("Skipped %d malformed %s record(s)", skipped, source)

    df = df[valid].reset_index(drop=True)
    if schema is not None:
        df = schema.validate(df)
    return df
