"""Shared fixtures and builders for the prediction engine tests."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from cyclecast.engine.base import EstimationConfig, EventLog
from cyclecast.engine.config_loader import EngineConfig, load_engine_config

# Fixed "now" used by every injected clock
FIXED_NOW = datetime(2025, 3, 1, 9, 30, tzinfo=timezone.utc)
TEST_OWNER = "owner@example.com"


def make_log(start: date, created_at: datetime | None = None, log_id: str | None = None) -> EventLog:
    return EventLog(
        id=log_id or start.isoformat(),
        start_date=start,
        created_at=created_at or datetime(start.year, start.month, start.day, 8, tzinfo=timezone.utc),
        owner_key=TEST_OWNER,
    )


def logs_from_intervals(start: date, intervals: list[int]) -> list[EventLog]:
    """Build logs starting at ``start`` separated by the given day gaps."""
    logs = [make_log(start)]
    current = start
    for gap in intervals:
        current += timedelta(days=gap)
        logs.append(make_log(current))
    return logs


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def engine_config() -> EngineConfig:
    """Load the bundled engine config for tests."""
    return load_engine_config()


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def local_config() -> EstimationConfig:
    return EstimationConfig(owner_identity=TEST_OWNER)


@pytest.fixture
def ai_config() -> EstimationConfig:
    return EstimationConfig(ai_eligible=True, ai_enabled=True, owner_identity=TEST_OWNER)


# ---------------------------------------------------------------------------
# Log fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def regular_logs() -> list[EventLog]:
    """Three logs 28 days apart: 2025-01-01, 2025-01-29, 2025-02-26."""
    return logs_from_intervals(date(2025, 1, 1), [28, 28])


@pytest.fixture
def irregular_logs() -> list[EventLog]:
    """Intervals 21, 35, 22, 40: mean 29.5, standard deviation ≈ 8.2."""
    return logs_from_intervals(date(2024, 9, 1), [21, 35, 22, 40])


@pytest.fixture
def provider_answer() -> str:
    """A typical provider answer: prose, a fenced JSON block, more prose."""
    return (
        "Sure! Here is my analysis of the cycle history.\n"
        "```json\n"
        '{"predicted_date":"2025-04-01","average_cycle_length":29,'
        '"confidence":0.9,"reasoning":"stable"}\n'
        "```\n"
        "Let me know if you need anything else."
    )
