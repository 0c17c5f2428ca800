"""
Data schema definitions for the retention engine.

Uses Pandera for runtime validation of the frames built from storage
records and of the churn scorecard's input and output, so pipeline
errors surface before anything is scored.
"""

import pandera as pa
from pandera import Column, Check, DataFrameSchema

from .records import DONATION_STATUSES, RISK_TIERS, TRENDS


# Cleaned member activity
ACTIVITY_SCHEMA = DataFrameSchema(
    {
        "member_id": Column(nullable=False, description="Owning member"),
        "activity_type": Column(nullable=True, description="Free-form activity tag"),
        "occurred_at": Column(nullable=False, description="UTC event time"),
    },
    strict=False,
    description="Cleaned member activity records",
)


# Cleaned donations (member_id may be null for anonymous gifts)
DONATION_SCHEMA = DataFrameSchema(
    {
        "amount": Column(
            float,
            nullable=False,
            checks=Check.greater_than_or_equal_to(0),
            description="Donation amount",
        ),
        "occurred_at": Column(nullable=False),
        "is_recurring": Column(nullable=True, required=False),
    },
    strict=False,
    coerce=True,
    description="Cleaned donation records",
)


# Cleaned search logs
SEARCH_LOG_SCHEMA = DataFrameSchema(
    {
        "query": Column(str, nullable=False),
        "results_count": Column(
            int,
            nullable=False,
            checks=Check.greater_than_or_equal_to(0),
        ),
        "occurred_at": Column(nullable=False),
    },
    strict=False,
    coerce=True,
    description="Cleaned search log records",
)


# Churn scorecard input: one row per member
CHURN_FACTORS_SCHEMA = DataFrameSchema(
    {
        "member_id": Column(nullable=False, description="Member identifier"),
        "days_inactive": Column(
            int,
            nullable=False,
            checks=Check.greater_than_or_equal_to(0),
            description="Whole days since last activity",
        ),
        "activity_trend": Column(
            str,
            nullable=False,
            checks=Check.isin(list(TRENDS)),
        ),
        "engagement_score": Column(
            float,
            nullable=False,
            checks=Check.in_range(0, 100),
        ),
        "donation_status": Column(
            str,
            nullable=False,
            checks=Check.isin(list(DONATION_STATUSES)),
        ),
    },
    strict=False,  # Allow extra columns (last_interaction_days, names, ...)
    coerce=True,
    description="Schema for churn scorecard input factors",
)


# Churn scorecard output
CHURN_SCORE_SCHEMA = DataFrameSchema(
    {
        "member_id": Column(nullable=False),
        "risk_points": Column(
            int,
            nullable=False,
            checks=Check.in_range(0, 1000),  # Flexible upper bound
        ),
        "probability": Column(
            float,
            nullable=False,
            checks=Check.in_range(0.0, 1.0),
        ),
        "risk_tier": Column(
            nullable=True,  # Below the churn floor
            checks=Check.isin(list(RISK_TIERS)),
        ),
    },
    strict=False,  # Allow component columns
    description="Schema for churn scorecard output",
)

SchemaError = pa.errors.SchemaError
