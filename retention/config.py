"""
Prediction configuration for the retention engine.

All windows, thresholds, point values and report limits are defined here
so sensitivity can be tuned without code changes. The defaults reproduce
the production scorecard exactly:
- 30-day trend windows with a 20% band either side of "stable"
- Churn scorecard capped at 100 points
- Members below a 0.30 churn probability are not reported
"""

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import yaml


@dataclass
class PredictionConfig:
    """
    Configuration for all prediction components.

    Churn scorecard max: 100 points
    - Recency: 0-40
    - Activity Trend: 0-25
    - Engagement (inverse): 0-20
    - Donation Status: 0-15

    Load from YAML (any subset of fields):
        config = PredictionConfig.from_yaml("retention.yaml")
    """

    # === Activity Aggregation ===
    activity_limit: int = 100          # records read per member in a report scan
    member_activity_limit: int = 50    # records read for a single-member recommendation
    never_active_days: int = 999       # days_inactive when a member has no activity
    low_activity_records: int = 5      # fewer records than this = "Low overall engagement"
    donation_lapse_days: int = 90      # last gift older than this = lapsed donor
    donation_status_records: int = 10  # recent gifts read to find the newest valid one

    # === Trend Classification ===
    trend_window_days: int = 30
    trend_increase_ratio: float = 1.2  # recent > prior * 1.2 -> increasing
    trend_decline_ratio: float = 0.8   # recent < prior * 0.8 -> declining

    # === Recency (0-40 points) ===
    # Evaluated high-to-low, first match wins
    recency_thresholds: List[Tuple[int, int]] = field(default_factory=lambda: [
        (90, 40),  # >90 days: effectively gone
        (60, 30),  # >60 days
        (30, 20),  # >30 days
        (14, 10),  # >14 days: starting to drift
        # <=14 days: 0 points
    ])
    recency_default: int = 0

    # === Activity Trend (0-25 points) ===
    trend_points: Dict[str, int] = field(default_factory=lambda: {
        "declining": 25,
        "stable": 10,
        "increasing": 0,
    })
    trend_default: int = 0

    # === Engagement Score, inverse (0-20 points) ===
    engagement_thresholds: List[Tuple[float, int]] = field(default_factory=lambda: [
        (20, 20),  # <20: barely engaged
        (40, 15),
        (60, 10),
        (80, 5),
        # >=80: 0 points
    ])
    engagement_default: int = 0

    # === Donation Status (0-15 points) ===
    donation_points: Dict[str, int] = field(default_factory=lambda: {
        "lapsed": 15,
        "never": 8,
        "active": 0,
    })
    donation_default: int = 0

    # === Churn Probability & Tiers ===
    max_points: int = 100
    churn_floor: float = 0.30  # below this a member is not reported at all
    risk_tiers: Dict[str, float] = field(default_factory=lambda: {
        "high": 0.70,
        "medium": 0.50,
        "low": 0.30,
    })
    inactive_factor_days: int = 14    # "N days inactive" shown above this
    low_engagement_factor: float = 40  # "Low engagement score" shown below this

    # === Engagement Forecast ===
    forecast_growth_per_activity: int = 2
    forecast_growth_cap: int = 30
    forecast_decline_baseline: int = 30
    forecast_decline_cap: int = 25
    forecast_confidence: Dict[str, float] = field(default_factory=lambda: {
        "increasing": 80,
        "declining": 75,
        "stable": 85,
    })
    engagement_estimate_per_activity: int = 5  # used when no stored score exists

    # === Contact Time ===
    contact_min_records: int = 5
    default_contact_day: str = "Tuesday"
    default_contact_time: str = "10:00 AM"
    contact_timezone: str = "UTC"

    # === Content Gaps ===
    content_window_days: int = 30
    content_low_results: int = 3       # results_count below this is a miss
    content_min_searches: int = 2      # single misses are noise
    content_gap_limit: int = 10
    content_recommendation_limit: int = 5
    top_content_limit: int = 5

    # === Revenue ===
    revenue_window_days: int = 90
    revenue_damping: float = 0.5

    # === Report Limits ===
    churn_report_limit: int = 20
    engagement_list_limit: int = 10

    # === Concurrency ===
    max_workers: int = 8

    # === Narrative ===
    narrative_timeout: float = 15.0
    retention_max_tokens: int = 150
    strategy_max_tokens: int = 500
    narrative_temperature: float = 0.7
    max_recommendations: int = 5

    # === Metadata ===
    version: str = "1.0.0"

    def __post_init__(self):
        # YAML has no tuples
        self.recency_thresholds = [tuple(t) for t in self.recency_thresholds]
        self.engagement_thresholds = [tuple(t) for t in self.engagement_thresholds]
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")
        if self.max_points <= 0:
            raise ValueError(f"max_points must be positive, got {self.max_points}")

    def get_risk_tier(self, probability: float) -> Optional[str]:
        """Map churn probability to a risk tier, None below the churn floor."""
        if probability < self.churn_floor:
            return None
        for tier, minimum in self.risk_tiers.items():
            if probability >= minimum:
                return tier
        return "low"

    @classmethod
    def from_yaml(cls, path: Path | str) -> "PredictionConfig":
        """Load configuration from YAML file."""
        path = Path(path)
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        return cls(**data)

    def to_yaml(self, path: Path | str) -> None:
        """Save configuration to YAML file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.safe_dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)

    def to_dict(self) -> dict:
        """Convert to a plain (JSON/YAML-safe) dictionary."""
        return json.loads(json.dumps(asdict(self)))


# Default configuration instance
DEFAULT_CONFIG = PredictionConfig()
