"""
Pytest fixtures for retention engine tests.
"""

import threading
from datetime import datetime, timedelta, timezone

import pandas as pd
import pytest

# Add package to path
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from retention.config import PredictionConfig
from retention.errors import NarrativeGenerationFailed
from retention.narrative import NarrativeClient, NarrativeGenerator
from retention.orchestrator import PredictionOrchestrator
from retention.scorer import ChurnScorer
from retention.storage import InMemoryStorage

# Sunday, noon UTC
NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


def days_ago(days: float, hour: int = None) -> datetime:
    """Timestamp `days` before NOW, optionally pinned to an hour of that day."""
    ts = NOW - timedelta(days=days)
    if hour is not None:
        ts = ts.replace(hour=hour, minute=0)
    return ts


class StaticClient(NarrativeClient):
    """Returns a fixed response and remembers the prompts it saw."""

    def __init__(self, text: str):
        self.text = text
        self.calls = []

    def complete(self, system_prompt, prompt, max_tokens, temperature, timeout):
        self.calls.append({"system": system_prompt, "prompt": prompt, "max_tokens": max_tokens})
        return self.text


class FailingClient(NarrativeClient):
    def __init__(self, exc: Exception = None):
        self.exc = exc or NarrativeGenerationFailed("service down", status_code=503)

    def complete(self, system_prompt, prompt, max_tokens, temperature, timeout):
        raise self.exc


class SlowClient(NarrativeClient):
    def __init__(self, delay: float):
        self.delay = delay
        self.released = threading.Event()

    def complete(self, system_prompt, prompt, max_tokens, temperature, timeout):
        self.released.wait(self.delay)
        return "Too late to matter."


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def default_config():
    """Default prediction configuration."""
    return PredictionConfig()


@pytest.fixture
def scorer(default_config):
    """ChurnScorer with default config."""
    return ChurnScorer(default_config)


@pytest.fixture
def member_snapshot():
    """
    Five members covering the main risk profiles.

    - ACTIVE: busy in both windows, growing, recurring giver
    - FADING: 45 days silent, declining, lapsed donor
    - GONE: 100 days silent, never gave, low stored score
    - NEWBIE: no activity at all, no stored score
    - STEADY: same volume in both windows, recent gift
    """
    members = [
        {"id": "ACTIVE", "first_name": "Grace", "last_name": "Hopper", "email": "grace@example.org", "tier": "partner"},
        {"id": "FADING", "first_name": "Ada", "last_name": "Lovelace", "email": "ada@example.org", "tier": None},
        {"id": "GONE", "first_name": "Alan", "last_name": "Turing", "email": "alan@example.org", "tier": "free"},
        {"id": "NEWBIE", "first_name": "Edsger", "last_name": "Dijkstra", "email": "ed@example.org", "tier": "free"},
        {"id": "STEADY", "first_name": "Barbara", "last_name": "Liskov", "email": "bl@example.org", "tier": "covenant"},
    ]

    activity = []
    # ACTIVE: 12 recent vs 4 prior, all Wednesdays-ish at 19:00
    for age in [1, 2, 3, 4, 5, 8, 10, 12, 15, 18, 21, 25]:
        activity.append({"member_id": "ACTIVE", "activity_type": "devotional_read", "occurred_at": days_ago(age, hour=19)})
    for age in [35, 40, 45, 50]:
        activity.append({"member_id": "ACTIVE", "activity_type": "teaching_viewed", "occurred_at": days_ago(age, hour=19)})
    # FADING: nothing recent, 6 prior
    for age in [45, 46, 48, 50, 52, 55]:
        activity.append({"member_id": "FADING", "activity_type": "prayer_submitted", "occurred_at": days_ago(age, hour=8)})
    # GONE: two old records
    for age in [100, 140]:
        activity.append({"member_id": "GONE", "activity_type": "event_checkin", "occurred_at": days_ago(age)})
    # STEADY: 5 and 5
    for age in [2, 7, 12, 17, 22, 32, 37, 42, 47, 52]:
        activity.append({"member_id": "STEADY", "activity_type": "teaching_viewed", "occurred_at": days_ago(age, hour=10)})

    donations = [
        {"member_id": "ACTIVE", "amount": 100.0, "occurred_at": days_ago(10), "is_recurring": True, "status": "active"},
        {"member_id": "FADING", "amount": 50.0, "occurred_at": days_ago(120), "is_recurring": False, "status": "completed"},
        {"member_id": "STEADY", "amount": 25.0, "occurred_at": days_ago(20), "is_recurring": False, "status": "completed"},
    ]

    return {
        "members": members,
        "activity": activity,
        "donations": donations,
        "engagement_scores": {"ACTIVE": 85, "FADING": 30, "GONE": 10, "STEADY": 55},
        "search_logs": [
            {"query": "Fasting", "results_count": 0, "occurred_at": days_ago(3)},
            {"query": "fasting ", "results_count": 1, "occurred_at": days_ago(5)},
            {"query": "grief", "results_count": 0, "occurred_at": days_ago(6)},
        ],
        "content": [
            {"id": "T1", "title": "Walking in Faith", "views": 900, "completion_rate": 0.7},
            {"id": "T2", "title": "Prayer Basics", "views": 1500, "completion_rate": 0.8},
        ],
    }


@pytest.fixture
def storage(member_snapshot):
    return InMemoryStorage(member_snapshot)


@pytest.fixture
def orchestrator(storage, default_config):
    """Orchestrator with fallback-only narratives and a fixed clock."""
    return PredictionOrchestrator(storage, config=default_config, clock=lambda: NOW)


@pytest.fixture
def factors_frame():
    """Scorecard input rows spanning the tiers."""
    return pd.DataFrame([
        # 40 + 25 + 20 + 15 = 100
        {"member_id": "HIGH", "days_inactive": 100, "activity_trend": "declining",
         "engagement_score": 15, "donation_status": "lapsed"},
        # 20 + 10 + 15 + 8 = 53
        {"member_id": "MEDIUM", "days_inactive": 40, "activity_trend": "stable",
         "engagement_score": 35, "donation_status": "never"},
        # 10 + 10 + 10 + 0 = 30
        {"member_id": "LOW", "days_inactive": 20, "activity_trend": "stable",
         "engagement_score": 50, "donation_status": "active"},
        # 0 + 0 + 0 + 0 = 0
        {"member_id": "SAFE", "days_inactive": 2, "activity_trend": "increasing",
         "engagement_score": 90, "donation_status": "active"},
    ])


@pytest.fixture
def static_generator(default_config):
    def build(text):
        client = StaticClient(text)
        return NarrativeGenerator(client, default_config), client
    return build
