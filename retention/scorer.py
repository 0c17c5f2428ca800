"""
ChurnScorer - combines scorecard components into a churn probability.

Usage:
    from retention import ChurnScorer, PredictionConfig

    scorer = ChurnScorer()
    result = scorer.score(factors_df)

    # Members worth reporting, highest risk first
    print(result.at_risk()[["member_id", "probability", "risk_tier"]])
    print(result.tier_counts())

The scorecard is additive and transparent: every risk factor shown to an
operator traces directly to points in the score.
"""

from dataclasses import dataclass
from typing import Optional, Union

import pandas as pd

from .components import DonationScorer, EngagementScorer, RecencyScorer, TrendScorer
from .config import DEFAULT_CONFIG, PredictionConfig
from .records import ChurnRiskFactors, RISK_TIERS
from .schemas import CHURN_FACTORS_SCHEMA, CHURN_SCORE_SCHEMA


def describe_risk_factors(
    days_inactive: int,
    activity_trend: str,
    engagement_score: float,
    donation_status: str,
    config: PredictionConfig = DEFAULT_CONFIG,
) -> list[str]:
    """Human-readable risk factors, in scorecard order."""
    factors = []
    if days_inactive > config.inactive_factor_days:
        factors.append(f"{days_inactive} days inactive")
    if activity_trend == "declining":
        factors.append("Declining engagement")
    if engagement_score < config.low_engagement_factor:
        factors.append("Low engagement score")
    if donation_status == "lapsed":
        factors.append("Lapsed donor")
    return factors


@dataclass
class ScoringResult:
    """
    Container for scoring results with component breakdown.

    Attributes:
        df: Input factors with points, probability, tier and risk factors added
        component_columns: List of component score column names
    """

    df: pd.DataFrame
    component_columns: list[str]

    def at_risk(self) -> pd.DataFrame:
        """
        Members at or above the churn floor, highest probability first.

        Ties keep input order.
        """
        material = self.df[self.df["risk_tier"].notna()]
        return material.sort_values("probability", ascending=False, kind="stable")

    def tier_counts(self) -> dict[str, int]:
        """Number of at-risk members per tier."""
        counts = self.df["risk_tier"].value_counts()
        return {tier: int(counts.get(tier, 0)) for tier in RISK_TIERS}

    def component_breakdown(self) -> pd.DataFrame:
        """
        Show average contribution of each component.

        Returns:
            DataFrame with component statistics
        """
        stats = {}
        for col in self.component_columns:
            component_name = col.replace("_points", "")
            stats[component_name] = {
                "mean": self.df[col].mean(),
                "max": self.df[col].max(),
                "min": self.df[col].min(),
            }
        return pd.DataFrame(stats).T.round(1)


class ChurnScorer:
    """
    Vectorized churn risk scorecard.

    Calculates component points independently using pandas operations,
    caps the total at max_points and scales it to a 0-1 probability.

    Components:
    - Recency (0-40): Based on days inactive
    - Activity Trend (0-25): Based on 30-day trend
    - Engagement (0-20): Based on inverse engagement score
    - Donation Status (0-15): Based on giving recency
    """

    REQUIRED_COLUMNS = [
        "member_id",
        "days_inactive",
        "activity_trend",
        "engagement_score",
        "donation_status",
    ]

    def __init__(self, config: Optional[PredictionConfig] = None):
        """
        Initialize scorer with configuration.

        Args:
            config: PredictionConfig instance. Uses DEFAULT_CONFIG if None.
        """
        self.config = config or DEFAULT_CONFIG
        self._init_components()

    def _init_components(self) -> None:
        """Initialize all scoring components."""
        self.components = {
            "recency": RecencyScorer(self.config),
            "trend": TrendScorer(self.config),
            "engagement": EngagementScorer(self.config),
            "donation": DonationScorer(self.config),
        }

    def validate_input(self, df: pd.DataFrame) -> None:
        """
        Validate required columns exist.

        Raises:
            ValueError: If required columns are missing
        """
        missing = set(self.REQUIRED_COLUMNS) - set(df.columns)
        if missing:
            raise ValueError(f"Missing required columns: {missing}")

    def score(self, df: pd.DataFrame) -> ScoringResult:
        """
        Calculate churn probability for every member.

        Args:
            df: DataFrame with one row of ChurnRiskFactors per member

        Returns:
            ScoringResult with points, probability, tier and risk factors

        Raises:
            ValueError: If required columns are missing
            pandera.errors.SchemaError: If factor values are out of domain
        """
        self.validate_input(df)
        result = CHURN_FACTORS_SCHEMA.validate(df.copy())

        component_cols = []
        for name, component in self.components.items():
            col_name = f"{name}_points"
            result[col_name] = component.score(result)
            component_cols.append(col_name)

        points = result[component_cols].sum(axis=1).clip(0, self.config.max_points)
        result["risk_points"] = points.astype(int)
        result["probability"] = result["risk_points"] / self.config.max_points
        result["risk_tier"] = [self.config.get_risk_tier(p) for p in result["probability"]]
        result["risk_factors"] = [
            describe_risk_factors(days, trend, engagement, donation, self.config)
            for days, trend, engagement, donation in zip(
                result["days_inactive"],
                result["activity_trend"],
                result["engagement_score"],
                result["donation_status"],
            )
        ]

        result = CHURN_SCORE_SCHEMA.validate(result)
        return ScoringResult(df=result, component_columns=component_cols)

    def score_single(self, factors: Union[ChurnRiskFactors, dict]) -> dict:
        """
        Score a single member (convenience method).

        Args:
            factors: ChurnRiskFactors or a dict with the same fields

        Returns:
            Dictionary with probability, tier, points and risk factors
        """
        data = factors.to_dict() if isinstance(factors, ChurnRiskFactors) else dict(factors)
        data.setdefault("member_id", "single")
        result = self.score(pd.DataFrame([data]))
        row = result.df.iloc[0]
        return {
            "probability": float(row["probability"]),
            "risk_tier": row["risk_tier"],
            "risk_points": int(row["risk_points"]),
            "risk_factors": list(row["risk_factors"]),
            "components": {
                col.replace("_points", ""): int(row[col])
                for col in result.component_columns
            },
        }
