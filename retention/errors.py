"""Exceptions raised by the prediction engine."""


class PredictionError(Exception):
    """Base exception for prediction engine errors."""
    pass


class DataUnavailable(PredictionError):
    """A read from the storage layer failed."""
    pass


class NotFound(PredictionError):
    """The requested member does not exist."""

    def __init__(self, member_id):
        super().__init__(f"Member not found: {member_id}")
        self.member_id = member_id


class NarrativeGenerationFailed(PredictionError):
    """
    The language-generation collaborator failed, timed out or returned nothing.

    Never leaves the narrative layer: callers always get the fallback text.
    """

    def __init__(self, message: str, status_code: int = 0):
        super().__init__(message)
        self.status_code = status_code


class ReportCancelled(PredictionError):
    """The caller cancelled the request before the report was complete."""
    pass
