"""Activity trend scoring component."""

import pandas as pd

from .base import BaseScorer


class TrendScorer(BaseScorer):
    """
    Score based on the 30-day vs prior 30-day activity direction.

    A stable member still carries some risk; only growing activity
    earns zero points.

    Points:
    - declining: 25
    - stable: 10
    - increasing: 0
    """

    name = "trend"

    @property
    def required_columns(self) -> list[str]:
        return ["activity_trend"]

    @property
    def point_values(self) -> list[int]:
        return list(self.config.trend_points.values()) + [self.config.trend_default]

    def points(self, df: pd.DataFrame) -> pd.Series:
        return df["activity_trend"].map(self.config.trend_points).fillna(self.config.trend_default)
