"""
Error taxonomy shared by the scoring engines.

Only I/O steps raise these; the scoring functions themselves are pure.
"""

from __future__ import annotations


class ScoringError(Exception):
    """Base class for scoring service failures."""

    code = "scoring_error"
    status_code = 500
    retryable = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_payload(self) -> dict[str, str]:
        return {"error": self.code, "message": self.message}


class NotFound(ScoringError):
    """The subject (user profile or campaign) does not exist."""

    code = "not_found"
    status_code = 404


class InvalidInput(ScoringError):
    """Required content is missing or malformed."""

    code = "invalid_input"
    status_code = 400


class DataAccessError(ScoringError):
    """An upstream read failed. Callers may retry with backoff."""

    code = "data_access_error"
    status_code = 503
    retryable = True


class PersistenceError(ScoringError):
    """The result was computed but could not be durably written."""

    code = "persistence_error"
    status_code = 500
    retryable = True
