"""Canonical data models for the Cyclecast prediction engine.

Every engine component consumes EventLog lists and returns IntervalStatistics
or PredictionRecord instances.  These types are the single source of truth
shared by the orchestrator, the caller-side prediction service and the API
layer.  Both output types round-trip through ``to_dict()`` / ``from_dict()``
so the persistence collaborator can store them as plain maps.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from enum import Enum

# Days either side of the predicted date shown as the expected window
PREDICTION_WINDOW_DAYS = 2


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat a naive datetime as UTC; aware values are returned unchanged."""
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


def _parse_datetime(value: str | None) -> datetime | None:
    if value is None:
        return None
    return as_utc(datetime.fromisoformat(value))


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class RegularityClass(str, Enum):
    """Qualitative bucket derived from the standard deviation of intervals.

    Thresholds (inclusive upper bounds, configurable):
        VERY_REGULAR        <= 2 days
        REGULAR             <= 4 days
        SOMEWHAT_IRREGULAR  <= 7 days
        IRREGULAR            > 7 days
    """

    VERY_REGULAR = "very_regular"
    REGULAR = "regular"
    SOMEWHAT_IRREGULAR = "somewhat_irregular"
    IRREGULAR = "irregular"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()


# ---------------------------------------------------------------------------
# Event log
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EventLog:
    """One recorded cycle start date.

    Owned by the persistence collaborator; the engine only reads lists of
    them.  At most one log exists per ``(owner_key, start_date)``.

    Attributes:
        id:            Opaque identifier assigned by the store.
        start_date:    First day of the event (calendar date, no time of day).
        created_at:    UTC timestamp when the user logged the event.
        updated_at:    UTC timestamp of the last touch, if any.
        owner_key:     Identity of the owning user.
        duration_days: Optional length of the event in days.  Carried for
                       storage, never used by the engine.
    """

    id: str
    start_date: date
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime | None = None
    owner_key: str | None = None
    duration_days: int | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "start_date": self.start_date.isoformat(),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "owner_key": self.owner_key,
            "duration_days": self.duration_days,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "EventLog":
        return cls(
            id=str(data["id"]),
            start_date=date.fromisoformat(data["start_date"]),
            created_at=_parse_datetime(data["created_at"]),
            updated_at=_parse_datetime(data.get("updated_at")),
            owner_key=data.get("owner_key"),
            duration_days=data.get("duration_days"),
        )


# ---------------------------------------------------------------------------
# Interval statistics
# ---------------------------------------------------------------------------


@dataclass
class IntervalStatistics:
    """Descriptive statistics over the consecutive intervals of a log list.

    Attributes:
        average_length_days: Rounded mean interval length.
        min_length_days:     Shortest surviving interval.
        max_length_days:     Longest surviving interval.
        standard_deviation:  Population standard deviation around the
                             rounded mean.
        regularity_class:    Bucket derived from ``standard_deviation``.
        sample_count:        Number of intervals that survived filtering.
    """

    average_length_days: int
    min_length_days: int
    max_length_days: int
    standard_deviation: float
    regularity_class: RegularityClass
    sample_count: int

    def to_dict(self) -> dict:
        return {
            "average_length_days": self.average_length_days,
            "min_length_days": self.min_length_days,
            "max_length_days": self.max_length_days,
            "standard_deviation": self.standard_deviation,
            "regularity_class": self.regularity_class.value,
            "sample_count": self.sample_count,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "IntervalStatistics":
        return cls(
            average_length_days=int(data["average_length_days"]),
            min_length_days=int(data["min_length_days"]),
            max_length_days=int(data["max_length_days"]),
            standard_deviation=float(data["standard_deviation"]),
            regularity_class=RegularityClass(data["regularity_class"]),
            sample_count=int(data["sample_count"]),
        )


# ---------------------------------------------------------------------------
# Estimation config
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EstimationConfig:
    """Per-invocation settings supplied by the caller.

    Attributes:
        ai_eligible:           Caller-resolved eligibility for the external
                               estimator (identity allow-list, kill switch).
        ai_enabled:            The user's own opt-in.
        min_cycle_length_days: Lower sanity bound for an interval.
        max_cycle_length_days: Upper sanity bound (before slack).
        owner_identity:        Identity stamped onto the produced record.
    """

    ai_eligible: bool = False
    ai_enabled: bool = False
    min_cycle_length_days: int = 21
    max_cycle_length_days: int = 35
    owner_identity: str | None = None

    @property
    def use_external(self) -> bool:
        return self.ai_eligible and self.ai_enabled


# ---------------------------------------------------------------------------
# Predictions
# ---------------------------------------------------------------------------


@dataclass
class StructuredPrediction:
    """Validated payload recovered from an external provider's answer."""

    predicted_date: date
    average_cycle_length_days: int
    confidence: float
    reasoning: str
    warnings: list[str] = field(default_factory=list)


@dataclass
class PredictionRecord:
    """The single normalized prediction returned by the orchestrator.

    Attributes:
        predicted_date:            Best estimate for the next start date.
        average_cycle_length_days: Cycle length the estimate is based on.
        confidence:                0.0–1.0 trust in ``predicted_date``.
        calculated_at:             UTC timestamp of the computation.
        min_cycle_length_days:     Shortest observed interval, if known.
        max_cycle_length_days:     Longest observed interval, if known.
        reasoning:                 Human-readable explanation.
        owner_key:                 Identity the record belongs to.
        model_used:                'calendar_average', 'default_cycle' or
                                   'external_ai'.
        warnings:                  Anomaly flags raised during estimation.
    """

    predicted_date: date
    average_cycle_length_days: int
    confidence: float
    calculated_at: datetime
    min_cycle_length_days: int | None = None
    max_cycle_length_days: int | None = None
    reasoning: str | None = None
    owner_key: str | None = None
    model_used: str = "calendar_average"
    warnings: list[str] = field(default_factory=list)

    @property
    def earliest_date(self) -> date:
        return self.predicted_date - timedelta(days=PREDICTION_WINDOW_DAYS)

    @property
    def latest_date(self) -> date:
        return self.predicted_date + timedelta(days=PREDICTION_WINDOW_DAYS)

    @property
    def confidence_level(self) -> str:
        from cyclecast.engine.confidence import confidence_label

        return confidence_label(self.confidence)

    def is_within_window(self, day: date) -> bool:
        """Return True if ``day`` falls inside the expected start window."""
        return abs((day - self.predicted_date).days) <= PREDICTION_WINDOW_DAYS

    def days_until(self, today: date) -> int:
        """Signed whole days from ``today`` to the predicted date."""
        return (self.predicted_date - today).days

    def to_dict(self) -> dict:
        return {
            "predicted_date": self.predicted_date.isoformat(),
            "average_cycle_length_days": self.average_cycle_length_days,
            "confidence": self.confidence,
            "calculated_at": self.calculated_at.isoformat(),
            "min_cycle_length_days": self.min_cycle_length_days,
            "max_cycle_length_days": self.max_cycle_length_days,
            "reasoning": self.reasoning,
            "owner_key": self.owner_key,
            "model_used": self.model_used,
            "warnings": list(self.warnings),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PredictionRecord":
        return cls(
            predicted_date=date.fromisoformat(data["predicted_date"]),
            average_cycle_length_days=int(data["average_cycle_length_days"]),
            confidence=float(data["confidence"]),
            calculated_at=_parse_datetime(data["calculated_at"]),
            min_cycle_length_days=data.get("min_cycle_length_days"),
            max_cycle_length_days=data.get("max_cycle_length_days"),
            reasoning=data.get("reasoning"),
            owner_key=data.get("owner_key"),
            model_used=data.get("model_used", "calendar_average"),
            warnings=list(data.get("warnings") or []),
        )
