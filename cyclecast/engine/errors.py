"""Exception hierarchy for the prediction engine.

Out-of-bounds dates returned by an external provider are deliberately not
represented here: they are tolerated and surfaced as warnings on the
resulting prediction.
"""

from __future__ import annotations

from enum import Enum


class PredictionEngineError(Exception):
    """Base class for every error raised by the engine."""


class EmptyLogsError(PredictionEngineError):
    """Raised when a prediction is requested for an empty log list."""

    def __init__(self, message: str = "No event logs available for prediction") -> None:
        super().__init__(message)


class ExternalEstimationError(PredictionEngineError):
    """The external estimation capability failed or returned nothing usable.

    Attributes:
        reason: Short machine-readable cause ('timeout', 'provider_error',
                'empty_response', 'not_configured', 'disabled').
    """

    def __init__(self, message: str, reason: str = "provider_error") -> None:
        super().__init__(message)
        self.reason = reason


class ParseFailure(str, Enum):
    NO_JSON_FOUND = "no_json_found"
    MISSING_FIELD = "missing_field"


class ParseError(PredictionEngineError):
    """The provider's answer could not be turned into a prediction.

    Attributes:
        reason: Which step of the parse failed.
        field:  Name of the offending field for ``MISSING_FIELD``.
    """

    def __init__(self, reason: ParseFailure, field: str | None = None) -> None:
        self.reason = reason
        self.field = field
        if reason is ParseFailure.MISSING_FIELD:
            message = f"Provider response is missing or has an invalid '{field}'"
        else:
            message = "Provider response did not contain a JSON object"
        super().__init__(message)
