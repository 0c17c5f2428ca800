"""Scorecard components for churn risk."""

from .base import BaseScorer
from .recency import RecencyScorer
from .activity_trend import TrendScorer
from .engagement import EngagementScorer
from .donation import DonationScorer

__all__ = [
    "BaseScorer",
    "RecencyScorer",
    "TrendScorer",
    "EngagementScorer",
    "DonationScorer",
]
