"""
Record types read from storage and returned in reports.

Input records mirror what the storage layer hands back and may carry
missing or malformed values; the engine cleans them when it builds frames.
Output records are plain containers with a `to_dict()` for the JSON report.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Optional, Union

# Label vocabularies
TRENDS = ("increasing", "declining", "stable")
RISK_TIERS = ("low", "medium", "high")
DONATION_STATUSES = ("active", "lapsed", "never")

Timestamp = Union[datetime, str, None]


# === Inputs ===

@dataclass(frozen=True)
class Member:
    id: Any
    first_name: str = ""
    last_name: str = ""
    email: Optional[str] = None
    tier: Optional[str] = None
    created_at: Timestamp = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()


@dataclass(frozen=True)
class ActivityRecord:
    member_id: Any
    activity_type: Optional[str]
    occurred_at: Timestamp


@dataclass(frozen=True)
class DonationRecord:
    member_id: Any
    amount: Optional[float]
    occurred_at: Timestamp
    is_recurring: bool = False
    status: Optional[str] = "completed"


@dataclass(frozen=True)
class SearchLogRecord:
    query: Optional[str]
    results_count: Optional[int]
    occurred_at: Timestamp


@dataclass(frozen=True)
class ContentRecord:
    """Teaching/content item with engagement counters, passed through as-is."""
    id: Any
    title: str
    views: int = 0
    completion_rate: Optional[float] = None

    def to_dict(self) -> dict:
        return asdict(self)


# === Outputs ===

@dataclass
class ChurnRiskFactors:
    """Per-member signals feeding the churn scorecard. Never persisted."""
    days_inactive: int
    activity_trend: str
    engagement_score: float
    donation_status: str
    last_interaction_days: int

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ContactTime:
    day_of_week: str
    time_of_day: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ChurnAssessment:
    member_id: Any
    member_name: str
    email: Optional[str]
    tier: str
    probability: float
    risk_tier: str
    risk_factors: list[str]
    days_inactive: int
    engagement_score: float
    optimal_contact: ContactTime

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class EngagementForecast:
    member_id: Any
    current_score: float
    trend: str
    recent_activity_count: int
    projected_score: float
    confidence: float

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ContentGap:
    topic: str
    search_count: int
    avg_results: float

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class RevenueForecast:
    current_recurring_total: float
    last_month_total: float
    projected_next_month: int
    trend: str
    change_percentage: int
    monthly_history: list[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)
