"""
Engagement forecasting: project a member's score 30 days ahead.

Confidence is a fixed per-trend constant (the forecaster's self-assessed
reliability of each regime), not a statistical interval.
"""

from typing import Optional

import numpy as np
import pandas as pd

from .config import DEFAULT_CONFIG, PredictionConfig


class EngagementForecaster:
    """
    Vectorized engagement projection.

    Deltas by trend:
    - increasing: +min(30, recent_activity_count * 2)
    - declining:  -min(25, 30 - recent_activity_count)
    - stable:     0
    Projected score is clamped to 0-100.
    """

    REQUIRED_COLUMNS = ["current_score", "trend", "recent_activity_count"]

    def __init__(self, config: Optional[PredictionConfig] = None):
        self.config = config or DEFAULT_CONFIG

    def validate_input(self, df: pd.DataFrame) -> None:
        missing = set(self.REQUIRED_COLUMNS) - set(df.columns)
        if missing:
            raise ValueError(f"Missing required columns: {missing}")

    def forecast(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Add projected_score and confidence columns.

        Args:
            df: DataFrame with current_score, trend, recent_activity_count

        Returns:
            Copy of df with forecast columns added
        """
        self.validate_input(df)
        cfg = self.config
        result = df.copy()

        trend = result["trend"]
        count = result["recent_activity_count"].astype(float)
        current = result["current_score"].astype(float)

        growth = np.minimum(cfg.forecast_growth_cap, count * cfg.forecast_growth_per_activity)
        decline = -np.minimum(cfg.forecast_decline_cap, cfg.forecast_decline_baseline - count)
        delta = np.select(
            [trend == "increasing", trend == "declining"],
            [growth, decline],
            default=0.0,
        )

        result["projected_score"] = np.clip(current + delta, 0, 100)
        result["confidence"] = (
            trend.map(cfg.forecast_confidence)
            .fillna(cfg.forecast_confidence["stable"])
            .astype(float)
        )
        return result

    def forecast_single(self, current_score: float, trend: str, recent_activity_count: int) -> dict:
        """
        Forecast a single member (convenience method).

        Returns:
            {"projected_score": float, "confidence": float}
        """
        df = pd.DataFrame([{
            "current_score": current_score,
            "trend": trend,
            "recent_activity_count": recent_activity_count,
        }])
        row = self.forecast(df).iloc[0]
        return {
            "projected_score": float(row["projected_score"]),
            "confidence": float(row["confidence"]),
        }
