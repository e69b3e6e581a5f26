"""Local calendar-average prediction.

Predicts the next start date as the last logged start plus the mean
interval length.  When no interval survives outlier filtering (a single log,
or only implausible gaps) it falls back to a default 28-day cycle with low
confidence.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable, Sequence

from cyclecast.engine.base import (
    EstimationConfig,
    EventLog,
    IntervalStatistics,
    PredictionRecord,
    utc_now,
)
from cyclecast.engine.confidence import confidence_for
from cyclecast.engine.config_loader import EngineConfig, get_engine_config
from cyclecast.engine.statistics import compute_statistics, sort_logs

logger = logging.getLogger("cyclecast.engine.local_estimator")

DEFAULT_CYCLE_REASONING = (
    "Insufficient data, using default cycle. "
    "Log more periods for better accuracy."
)


class LocalEstimator:
    """Predict the next cycle start from logged history alone.

    Usage::

        estimator = LocalEstimator()
        record = estimator.estimate(logs, EstimationConfig())
        print(record.predicted_date, record.confidence)
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._config = config or get_engine_config()
        self._clock = clock or utc_now

    def estimate(
        self, logs: Sequence[EventLog], config: EstimationConfig
    ) -> PredictionRecord:
        """Build a prediction from ``logs``.

        Args:
            logs:   Non-empty list of event logs, any order.
            config: Per-call bounds and owner identity.

        Raises:
            ValueError: If ``logs`` is empty.
        """
        if not logs:
            raise ValueError("LocalEstimator.estimate requires at least one log")

        ordered = sort_logs(logs)
        last_start = ordered[-1].start_date

        stats = compute_statistics(
            ordered,
            config.min_cycle_length_days,
            config.max_cycle_length_days,
            self._config,
        )

        if stats is None:
            default = self._config.default_cycle
            logger.info(
                "Not enough usable intervals in %d log(s); using %d-day default cycle",
                len(ordered),
                default.length_days,
            )
            return PredictionRecord(
                predicted_date=last_start + timedelta(days=default.length_days),
                average_cycle_length_days=default.length_days,
                confidence=default.confidence,
                calculated_at=self._clock(),
                reasoning=DEFAULT_CYCLE_REASONING,
                owner_key=config.owner_identity,
                model_used="default_cycle",
            )

        predicted = last_start + timedelta(days=stats.average_length_days)
        confidence = confidence_for(stats.regularity_class, self._config)
        logger.info(
            "Local prediction: %s (avg %d days, %s, confidence %.2f)",
            predicted,
            stats.average_length_days,
            stats.regularity_class.label,
            confidence,
        )
        return PredictionRecord(
            predicted_date=predicted,
            average_cycle_length_days=stats.average_length_days,
            confidence=confidence,
            calculated_at=self._clock(),
            min_cycle_length_days=stats.min_length_days,
            max_cycle_length_days=stats.max_length_days,
            reasoning=build_local_reasoning(stats),
            owner_key=config.owner_identity,
            model_used="calendar_average",
        )


def build_local_reasoning(stats: IntervalStatistics) -> str:
    """Explain a calendar-average prediction in one or two sentences."""
    text = (
        f"Based on {stats.sample_count} cycle(s) averaging "
        f"{stats.average_length_days} days. "
        f"Your cycle is {stats.regularity_class.label}."
    )
    if stats.sample_count < 2:
        text += " Log at least 2 consecutive cycles for reliable predictions."
    return text
