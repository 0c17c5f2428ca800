"""Base class for churn scorecard components."""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

import pandas as pd

if TYPE_CHECKING:
    from ..config import PredictionConfig


class BaseScorer(ABC):
    """
    A single scorecard signal turned into risk points.

    Subclasses map their input column(s) to points in `points()`. `score()`
    checks the columns are present and clips every result to
    [0, max_points], where max_points is the largest configured value.
    """

    name: str = "base"

    def __init__(self, config: "PredictionConfig"):
        self.config = config

    @property
    @abstractmethod
    def required_columns(self) -> list[str]:
        """Input columns this component reads."""
        pass

    @property
    @abstractmethod
    def point_values(self) -> list[int]:
        """Every point value the component can award, default included."""
        pass

    @abstractmethod
    def points(self, df: pd.DataFrame) -> pd.Series:
        """Raw points per row, before clipping."""
        pass

    @property
    def max_points(self) -> int:
        """Worst-case contribution of this component."""
        return max(0, max(self.point_values))

    def score(self, df: pd.DataFrame) -> pd.Series:
        """
        Risk points for every member row.

        Args:
            df: Risk factor frame

        Returns:
            Integer Series aligned to df.index

        Raises:
            ValueError: If a required column is missing
        """
        missing = set(self.required_columns) - set(df.columns)
        if missing:
            raise ValueError(f"{self.__class__.__name__} requires columns: {missing}")
        raw = pd.Series(self.points(df), index=df.index)
        return raw.clip(lower=0, upper=self.max_points).astype(int)
