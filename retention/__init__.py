"""
Member Retention & Engagement Prediction Engine

Churn-risk scoring, engagement forecasting, contact-time inference,
content-gap detection and revenue projection over a read-only store.
"""

from .config import PredictionConfig, DEFAULT_CONFIG
from .errors import (
    DataUnavailable,
    NarrativeGenerationFailed,
    NotFound,
    PredictionError,
    ReportCancelled,
)
from .forecast import EngagementForecaster
from .narrative import NarrativeClient, NarrativeGenerator, OpenAIChatClient
from .orchestrator import PredictionOrchestrator, PredictionReport
from .sample import generate_sample_snapshot
from .scorer import ChurnScorer
from .storage import InMemoryStorage, StoragePort

__all__ = [
    "PredictionOrchestrator",
    "PredictionReport",
    "PredictionConfig",
    "DEFAULT_CONFIG",
    "ChurnScorer",
    "EngagementForecaster",
    "NarrativeClient",
    "NarrativeGenerator",
    "OpenAIChatClient",
    "InMemoryStorage",
    "StoragePort",
    "generate_sample_snapshot",
    "PredictionError",
    "DataUnavailable",
    "NotFound",
    "NarrativeGenerationFailed",
    "ReportCancelled",
]
__version__ = "1.0.0"
