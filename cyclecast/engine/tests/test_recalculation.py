"""Tests for the stored-prediction staleness policy."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from cyclecast.engine.base import PredictionRecord
from cyclecast.engine.config_loader import EngineConfig
from cyclecast.engine.recalculation import needs_recalculation
from cyclecast.engine.tests.conftest import make_log

NOW = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


def make_record(calculated_at: datetime, predicted: date = date(2025, 3, 26)) -> PredictionRecord:
    return PredictionRecord(
        predicted_date=predicted,
        average_cycle_length_days=28,
        confidence=0.85,
        calculated_at=calculated_at,
    )


@pytest.fixture
def old_logs():
    # All logged well before any prediction in these tests
    return [
        make_log(date(2025, 1, 1), created_at=datetime(2025, 1, 1, tzinfo=timezone.utc)),
        make_log(date(2025, 1, 29), created_at=datetime(2025, 1, 29, tzinfo=timezone.utc)),
    ]


class TestNeedsRecalculation:
    def test_missing_prediction(self, engine_config: EngineConfig, old_logs) -> None:
        assert needs_recalculation(None, old_logs, NOW, engine_config)

    def test_fresh_prediction_is_kept(self, engine_config: EngineConfig, old_logs) -> None:
        current = make_record(NOW - timedelta(seconds=5))
        assert not needs_recalculation(current, old_logs, NOW, engine_config)

    def test_stale_after_31_days(self, engine_config: EngineConfig, old_logs) -> None:
        current = make_record(NOW - timedelta(days=31), predicted=date(2025, 4, 1))
        assert needs_recalculation(current, old_logs, NOW, engine_config)

    def test_exactly_30_days_is_not_stale(self, engine_config: EngineConfig) -> None:
        current = make_record(NOW - timedelta(days=30), predicted=date(2025, 4, 1))
        assert not needs_recalculation(current, [], NOW, engine_config)

    def test_log_created_after_prediction(self, engine_config: EngineConfig, old_logs) -> None:
        current = make_record(NOW - timedelta(days=2))
        newer = make_log(date(2025, 2, 26), created_at=NOW - timedelta(days=1))
        assert needs_recalculation(current, [*old_logs, newer], NOW, engine_config)

    def test_backdated_log_entered_recently_still_triggers(self, engine_config: EngineConfig, old_logs) -> None:
        # start date is old, but the user only just logged it
        current = make_record(NOW - timedelta(days=2))
        backfilled = make_log(date(2024, 12, 4), created_at=NOW - timedelta(hours=1))
        assert needs_recalculation(current, [*old_logs, backfilled], NOW, engine_config)

    def test_elapsed_predicted_date(self, engine_config: EngineConfig, old_logs) -> None:
        current = make_record(NOW - timedelta(days=1), predicted=date(2025, 3, 9))
        assert needs_recalculation(current, old_logs, NOW, engine_config)

    def test_predicted_today_is_still_usable(self, engine_config: EngineConfig, old_logs) -> None:
        current = make_record(NOW - timedelta(days=1), predicted=NOW.date())
        assert not needs_recalculation(current, old_logs, NOW, engine_config)

    def test_no_logs_and_fresh_prediction(self, engine_config: EngineConfig) -> None:
        assert not needs_recalculation(make_record(NOW), [], NOW, engine_config)


class TestMixedTimezones:
    """Naive timestamps, e.g. restored from storage, are read as UTC."""

    def test_naive_stored_prediction(self, engine_config: EngineConfig, old_logs) -> None:
        current = PredictionRecord.from_dict(
            {
                "predicted_date": "2025-03-26",
                "average_cycle_length_days": 28,
                "confidence": 0.85,
                "calculated_at": "2025-03-09T12:00:00",
            }
        )
        assert not needs_recalculation(current, old_logs, NOW, engine_config)

    def test_naive_now_with_aware_prediction(self, engine_config: EngineConfig, old_logs) -> None:
        current = make_record(NOW - timedelta(days=1))
        naive_now = datetime(2025, 3, 10, 12, 0)
        assert not needs_recalculation(current, old_logs, naive_now, engine_config)

    def test_naive_prediction_with_default_clock(self, engine_config: EngineConfig) -> None:
        current = make_record(datetime(2025, 3, 1, 9, 0), predicted=date(2025, 3, 26))
        # defaults to the real clock, which is long past the predicted date
        assert needs_recalculation(current, [], None, engine_config)

    def test_naive_log_created_after_prediction(self, engine_config: EngineConfig, old_logs) -> None:
        current = make_record(NOW - timedelta(days=2))
        newer = make_log(date(2025, 2, 26), created_at=datetime(2025, 3, 9, 8, 0))
        assert needs_recalculation(current, [*old_logs, newer], NOW, engine_config)
