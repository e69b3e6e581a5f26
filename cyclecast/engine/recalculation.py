"""Decide whether a stored prediction can still be served."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Sequence

from cyclecast.engine.base import EventLog, PredictionRecord, as_utc, utc_now
from cyclecast.engine.config_loader import EngineConfig, get_engine_config

logger = logging.getLogger("cyclecast.engine.recalculation")


def needs_recalculation(
    current: PredictionRecord | None,
    logs: Sequence[EventLog],
    now: datetime | None = None,
    config: EngineConfig | None = None,
) -> bool:
    """Return True if ``current`` must be replaced by a fresh prediction.

    A prediction is stale when it does not exist, was computed more than
    ``staleness_days`` whole days ago, predates a newly logged event, or
    targets a day that has already passed.
    """
    if current is None:
        return True

    # naive timestamps are read as UTC
    now = as_utc(now or utc_now())
    calculated_at = as_utc(current.calculated_at)
    staleness_days = (config or get_engine_config()).staleness_days

    age_days = (now - calculated_at).days
    if age_days > staleness_days:
        logger.debug("Prediction is %d days old (limit %d)", age_days, staleness_days)
        return True

    if any(as_utc(log.created_at) > calculated_at for log in logs):
        logger.debug("New logs arrived after %s", calculated_at.isoformat())
        return True

    if current.predicted_date < now.date():
        logger.debug("Predicted date %s has passed", current.predicted_date)
        return True

    return False
