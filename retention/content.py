"""
Content gap detection from search logs.

A gap is a normalized query that members keep searching for and that
keeps returning almost nothing.
"""

from typing import Iterable, Optional

import pandas as pd

from .config import DEFAULT_CONFIG, PredictionConfig
from .frames import Diagnostics, records_frame, round_half_up, to_utc
from .records import ContentGap, SearchLogRecord
from .schemas import SEARCH_LOG_SCHEMA

SEARCH_LOG_COLUMNS = ["query", "results_count", "occurred_at"]


def search_log_frame(records: Iterable[SearchLogRecord], diagnostics: Optional[Diagnostics] = None) -> pd.DataFrame:
    """Clean search logs; null queries or counts are dropped."""
    return records_frame(
        records,
        columns=SEARCH_LOG_COLUMNS,
        required=["query", "results_count", "occurred_at"],
        numeric=["results_count"],
        non_negative=["results_count"],
        schema=SEARCH_LOG_SCHEMA,
        source="search_log",
        diagnostics=diagnostics,
    )


def detect_content_gaps(
    records: Iterable[SearchLogRecord],
    now,
    config: PredictionConfig = DEFAULT_CONFIG,
    diagnostics: Optional[Diagnostics] = None,
) -> list[ContentGap]:
    """
    Surface queries that consistently return few results.

    Queries are trimmed and lower-cased, only searches with fewer than
    `content_low_results` results count, and a query needs at least
    `content_min_searches` such searches to be reported.

    Args:
        records: Search log records
        now: End of the lookback window
        config: Window, thresholds and limit
        diagnostics: Accumulator for skipped-record counts

    Returns:
        ContentGap list, most searched first (ties keep first-seen order)
    """
    df = search_log_frame(records, diagnostics)
    now = to_utc(now)
    start = now - pd.Timedelta(days=config.content_window_days)
    df = df[(df["occurred_at"] >= start) & (df["occurred_at"] < now)]

    topics = df["query"].astype(str).str.strip().str.lower()
    misses = df.assign(topic=topics)
    misses = misses[(misses["topic"] != "") & (misses["results_count"] < config.content_low_results)]
    if misses.empty:
        return []

    grouped = (
        misses.groupby("topic", sort=False)["results_count"]
        .agg(search_count="count", avg_results="mean")
        .reset_index()
    )
    grouped = grouped[grouped["search_count"] >= config.content_min_searches]
    grouped = grouped.sort_values("search_count", ascending=False, kind="stable")

    return [
        ContentGap(
            topic=row.topic,
            search_count=int(row.search_count),
            avg_results=round_half_up(float(row.avg_results), 1),
        )
        for row in grouped.head(config.content_gap_limit).itertuples(index=False)
    ]


def recommend_content(gaps: list[ContentGap], limit: int = DEFAULT_CONFIG.content_recommendation_limit) -> list[dict]:
    """Turn the top gaps into content suggestions."""
    return [
        {
            "topic": gap.topic,
            "reason": f"{gap.search_count} members searched for this with few results",
            "suggested_type": "Teaching or Blog Post",
        }
        for gap in gaps[:limit]
    ]
