"""Interval statistics over logged cycle start dates.

Pure functions: no I/O, no shared state.  The same input always yields the
same output because intervals are accumulated in chronological order.

Intervals outside ``[min_bound, max_bound + slack]`` are dropped before any
statistic is computed.  The slack absorbs legitimately long cycles while
still excluding obvious data-entry errors (a skipped month, a duplicate
entry a few days apart).
"""

from __future__ import annotations

import logging
import math
from typing import Sequence

from cyclecast.engine.base import EventLog, IntervalStatistics, RegularityClass
from cyclecast.engine.config_loader import EngineConfig, get_engine_config

logger = logging.getLogger("cyclecast.engine.statistics")


def sort_logs(logs: Sequence[EventLog]) -> list[EventLog]:
    """Return a new list of ``logs`` ordered by start date, oldest first."""
    return sorted(logs, key=lambda log: log.start_date)


def interval_lengths(logs: Sequence[EventLog]) -> list[int]:
    """Return the whole-day gaps between chronologically consecutive logs."""
    ordered = sort_logs(logs)
    return [
        (ordered[i].start_date - ordered[i - 1].start_date).days
        for i in range(1, len(ordered))
    ]


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def classify_regularity(
    std_dev: float, config: EngineConfig | None = None
) -> RegularityClass:
    """Bucket a standard deviation (days) into a regularity class."""
    thresholds = (config or get_engine_config()).regularity
    if std_dev <= thresholds.very_regular_max_std:
        return RegularityClass.VERY_REGULAR
    if std_dev <= thresholds.regular_max_std:
        return RegularityClass.REGULAR
    if std_dev <= thresholds.somewhat_irregular_max_std:
        return RegularityClass.SOMEWHAT_IRREGULAR
    return RegularityClass.IRREGULAR


def compute_statistics(
    logs: Sequence[EventLog],
    min_bound: int,
    max_bound: int,
    config: EngineConfig | None = None,
) -> IntervalStatistics | None:
    """Compute interval statistics for a list of event logs.

    Args:
        logs:      Event logs in any order.
        min_bound: Shortest plausible interval in days.
        max_bound: Longest plausible interval in days, before slack.
        config:    Engine config (defaults to the global singleton).

    Returns:
        IntervalStatistics, or None when fewer than two logs were given or
        every interval was discarded as an outlier.
    """
    if len(logs) < 2:
        return None

    cfg = config or get_engine_config()
    upper = max_bound + cfg.cycle_length.outlier_slack_days

    lengths = interval_lengths(logs)
    surviving = [d for d in lengths if min_bound <= d <= upper]
    dropped = len(lengths) - len(surviving)
    if dropped:
        logger.debug(
            "Discarded %d of %d intervals outside [%d, %d] days",
            dropped,
            len(lengths),
            min_bound,
            upper,
        )

    if not surviving:
        return None

    n = len(surviving)
    average = _round_half_up(sum(surviving) / n)

    squared = 0.0
    for d in surviving:
        squared += (d - average) ** 2
    std_dev = math.sqrt(squared / n)

    return IntervalStatistics(
        average_length_days=average,
        min_length_days=min(surviving),
        max_length_days=max(surviving),
        standard_deviation=std_dev,
        regularity_class=classify_regularity(std_dev, cfg),
        sample_count=n,
    )
