"""
Tests for engagement forecasting.
"""

import pandas as pd
import pytest

from retention import EngagementForecaster


@pytest.fixture
def forecaster(default_config):
    return EngagementForecaster(default_config)


class TestForecastSingle:
    """Per-member projections."""

    def test_growth_is_capped_and_clamped(self, forecaster):
        """95 + min(30, 40) clamps to 100."""
        result = forecaster.forecast_single(95, "increasing", 20)

        assert result == {"projected_score": 100.0, "confidence": 80.0}

    def test_growth_per_activity(self, forecaster):
        result = forecaster.forecast_single(50, "increasing", 4)

        assert result["projected_score"] == 58.0

    def test_growth_cap(self, forecaster):
        assert forecaster.forecast_single(10, "increasing", 100)["projected_score"] == 40.0

    def test_decline_shrinks_with_recent_activity(self, forecaster):
        """-min(25, 30 - 10) = -20."""
        result = forecaster.forecast_single(50, "declining", 10)

        assert result == {"projected_score": 30.0, "confidence": 75.0}

    def test_decline_cap(self, forecaster):
        assert forecaster.forecast_single(50, "declining", 0)["projected_score"] == 25.0

    def test_decline_floors_at_zero(self, forecaster):
        assert forecaster.forecast_single(10, "declining", 0)["projected_score"] == 0.0

    def test_stable_is_unchanged(self, forecaster):
        result = forecaster.forecast_single(42, "stable", 7)

        assert result == {"projected_score": 42.0, "confidence": 85.0}


class TestForecastFrame:
    """Vectorized projection."""

    def test_forecast_adds_columns(self, forecaster):
        df = pd.DataFrame({
            "member_id": ["a", "b", "c"],
            "current_score": [95, 50, 42],
            "trend": ["increasing", "declining", "stable"],
            "recent_activity_count": [20, 10, 7],
        })
        result = forecaster.forecast(df)

        assert result["projected_score"].tolist() == [100.0, 30.0, 42.0]
        assert result["confidence"].tolist() == [80.0, 75.0, 85.0]
        assert "projected_score" not in df.columns

    def test_projection_stays_in_range(self, forecaster):
        df = pd.DataFrame({
            "current_score": [0, 100, 0, 100],
            "trend": ["declining", "increasing", "increasing", "declining"],
            "recent_activity_count": [0, 50, 0, 40],
        })
        result = forecaster.forecast(df)

        assert result["projected_score"].between(0, 100).all()

    def test_missing_column_raises_error(self, forecaster):
        with pytest.raises(ValueError, match="trend"):
            forecaster.forecast(pd.DataFrame({"current_score": [1], "recent_activity_count": [1]}))
