"""Engagement score component (inverse)."""

import numpy as np
import pandas as pd

from .base import BaseScorer


class EngagementScorer(BaseScorer):
    """
    Score based on the externally maintained 0-100 engagement score.

    Points:
    - <20: 20
    - <40: 15
    - <60: 10
    - <80: 5
    - >=80: 0
    """

    name = "engagement"

    @property
    def required_columns(self) -> list[str]:
        return ["engagement_score"]

    @property
    def point_values(self) -> list[int]:
        return [points for _, points in self.config.engagement_thresholds] + [self.config.engagement_default]

    def points(self, df: pd.DataFrame) -> pd.Series:
        """Low engagement earns the most points."""
        engagement = df["engagement_score"]

        conditions = []
        choices = []
        for below, points in self.config.engagement_thresholds:
            conditions.append(engagement < below)
            choices.append(points)

        return pd.Series(
            np.select(conditions, choices, default=self.config.engagement_default),
            index=df.index,
        )
