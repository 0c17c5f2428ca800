"""Donation status scoring component."""

import pandas as pd

from .base import BaseScorer


class DonationScorer(BaseScorer):
    """
    Score based on giving history.

    A lapsed donor has stepped back from a commitment they once made,
    which weighs more than never having given.

    Points:
    - lapsed: 15
    - never: 8
    - active: 0
    """

    name = "donation"

    @property
    def required_columns(self) -> list[str]:
        return ["donation_status"]

    @property
    def point_values(self) -> list[int]:
        return list(self.config.donation_points.values()) + [self.config.donation_default]

    def points(self, df: pd.DataFrame) -> pd.Series:
        """Unknown statuses get the default."""
        return df["donation_status"].map(self.config.donation_points).fillna(self.config.donation_default)
