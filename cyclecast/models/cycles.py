"""Pydantic request/response schemas for the cycle prediction endpoints."""

from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import Field, field_validator, model_validator

from cyclecast.engine.base import (
    EventLog,
    IntervalStatistics,
    PredictionRecord,
    RegularityClass,
    utc_now,
)
from cyclecast.models.base import CyclecastBase


# ---------- Event logs ----------

class EventLogIn(CyclecastBase):
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    start_date: date
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime | None = None
    duration_days: int | None = Field(default=None, ge=1, le=14)

    def to_event_log(self, owner_key: str | None) -> EventLog:
        return EventLog(
            id=self.id,
            start_date=self.start_date,
            created_at=self.created_at,
            updated_at=self.updated_at,
            owner_key=owner_key,
            duration_days=self.duration_days,
        )


class LogsRequest(CyclecastBase):
    logs: list[EventLogIn]
    owner_identity: str | None = None
    min_cycle_length_days: int | None = Field(default=None, ge=1)
    max_cycle_length_days: int | None = Field(default=None, ge=1)

    @field_validator("logs")
    @classmethod
    def _one_log_per_day(cls, logs: list[EventLogIn]) -> list[EventLogIn]:
        seen: set[date] = set()
        for log in logs:
            if log.start_date in seen:
                raise ValueError(f"duplicate log for {log.start_date.isoformat()}")
            seen.add(log.start_date)
        return logs

    @model_validator(mode="after")
    def _bounds_ordered(self) -> "LogsRequest":
        lo, hi = self.min_cycle_length_days, self.max_cycle_length_days
        if lo is not None and hi is not None and hi < lo:
            raise ValueError("max_cycle_length_days must not be below min_cycle_length_days")
        return self

    def event_logs(self) -> list[EventLog]:
        return [log.to_event_log(self.owner_identity) for log in self.logs]


class StatisticsRequest(LogsRequest):
    pass


class PredictionRequest(LogsRequest):
    use_ai: bool = False


# ---------- Responses ----------

class StatisticsRead(CyclecastBase):
    average_length_days: int
    min_length_days: int
    max_length_days: int
    standard_deviation: float
    regularity_class: RegularityClass
    regularity_label: str
    sample_count: int

    @classmethod
    def from_statistics(cls, stats: IntervalStatistics) -> "StatisticsRead":
        return cls(
            **stats.to_dict(),
            regularity_label=stats.regularity_class.label,
        )


class StatisticsResponse(CyclecastBase):
    total_logs: int
    first_log_date: date | None
    last_log_date: date | None
    statistics: StatisticsRead | None


class PredictionRead(CyclecastBase):
    predicted_date: date
    earliest_date: date
    latest_date: date
    average_cycle_length_days: int
    confidence: float = Field(ge=0.0, le=1.0)
    confidence_level: str
    calculated_at: datetime
    min_cycle_length_days: int | None = None
    max_cycle_length_days: int | None = None
    reasoning: str | None = None
    owner_key: str | None = None
    model_used: str
    warnings: list[str] = Field(default_factory=list)

    @classmethod
    def from_record(cls, record: PredictionRecord) -> "PredictionRead":
        return cls(
            predicted_date=record.predicted_date,
            earliest_date=record.earliest_date,
            latest_date=record.latest_date,
            average_cycle_length_days=record.average_cycle_length_days,
            confidence=record.confidence,
            confidence_level=record.confidence_level,
            calculated_at=record.calculated_at,
            min_cycle_length_days=record.min_cycle_length_days,
            max_cycle_length_days=record.max_cycle_length_days,
            reasoning=record.reasoning,
            owner_key=record.owner_key,
            model_used=record.model_used,
            warnings=list(record.warnings),
        )


class AIStatusRead(CyclecastBase):
    configured: bool
    enabled: bool
    connected: bool
    model: str
