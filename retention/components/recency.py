"""Recency scoring component."""

import numpy as np
import pandas as pd

from .base import BaseScorer


class RecencyScorer(BaseScorer):
    """
    Score based on days since the member's last activity.

    The longer a member has been silent, the more likely they have
    already drifted away.

    Points:
    - >90 days: 40
    - >60 days: 30
    - >30 days: 20
    - >14 days: 10
    - otherwise: 0
    """

    name = "recency"

    @property
    def required_columns(self) -> list[str]:
        return ["days_inactive"]

    @property
    def point_values(self) -> list[int]:
        return [points for _, points in self.config.recency_thresholds] + [self.config.recency_default]

    def points(self, df: pd.DataFrame) -> pd.Series:
        days = df["days_inactive"]

        # Thresholds run high-to-low (first match wins)
        conditions = [days > min_days for min_days, _ in self.config.recency_thresholds]
        choices = [points for _, points in self.config.recency_thresholds]

        return pd.Series(
            np.select(conditions, choices, default=self.config.recency_default),
            index=df.index,
        )
