"""Caller-side prediction flow.

Wraps the stateless engine with the pieces it deliberately does not own:
loading logs and the current prediction from a store, consulting the
recalculation policy, resolving AI eligibility from settings, and saving the
fresh record.  The store itself is an external collaborator; only its
protocol lives here.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Callable, Protocol, Sequence

from cyclecast.config import Settings, get_settings
from cyclecast.engine.base import (
    EstimationConfig,
    EventLog,
    IntervalStatistics,
    PredictionRecord,
    utc_now,
)
from cyclecast.engine.config_loader import EngineConfig, get_engine_config
from cyclecast.engine.orchestrator import ExternalEstimator, PredictionOrchestrator
from cyclecast.engine.recalculation import needs_recalculation
from cyclecast.engine.statistics import compute_statistics, sort_logs

logger = logging.getLogger("cyclecast.services.predictions")


class PredictionStore(Protocol):
    """Persistence collaborator.  Implementations live outside this package."""

    async def list_logs_for_owner(self, owner_key: str) -> list[EventLog]: ...

    async def get_current_prediction(self, owner_key: str) -> PredictionRecord | None: ...

    async def save_prediction(self, owner_key: str, record: PredictionRecord) -> None: ...


def resolve_estimation_config(
    owner_identity: str | None,
    ai_opt_in: bool,
    settings: Settings | None = None,
    engine_config: EngineConfig | None = None,
    min_cycle_length_days: int | None = None,
    max_cycle_length_days: int | None = None,
) -> EstimationConfig:
    """Build the per-call EstimationConfig for an identity.

    Eligibility is membership in ``settings.ai_allowlist`` (case-insensitive).
    The global kill switch and API-key checks are left to the estimator so an
    eligible, opted-in user gets an explicit error instead of a silent
    downgrade.
    """
    settings = settings or get_settings()
    bounds = (engine_config or get_engine_config()).cycle_length
    allowed = {identity.strip().lower() for identity in settings.ai_allowlist}
    eligible = owner_identity is not None and owner_identity.strip().lower() in allowed
    return EstimationConfig(
        ai_eligible=eligible,
        ai_enabled=ai_opt_in,
        min_cycle_length_days=min_cycle_length_days or bounds.min_cycle_days,
        max_cycle_length_days=max_cycle_length_days or bounds.max_cycle_days,
        owner_identity=owner_identity,
    )


def summarize_logs(logs: Sequence[EventLog], stats: IntervalStatistics | None) -> dict:
    """Overview figures for a log list: count, first/last date, average cycle."""
    ordered = sort_logs(logs)
    return {
        "total_logs": len(ordered),
        "first_log_date": ordered[0].start_date if ordered else None,
        "last_log_date": ordered[-1].start_date if ordered else None,
        "average_cycle": stats.average_length_days if stats else None,
    }


class PredictionService:
    """Serve a current prediction per owner, recomputing only when needed.

    Usage::

        service = PredictionService(store, estimator=AnthropicEstimator())
        record = await service.current_prediction("user@example.com", ai_opt_in=True)
    """

    def __init__(
        self,
        store: PredictionStore,
        estimator: ExternalEstimator | None = None,
        orchestrator: PredictionOrchestrator | None = None,
        settings: Settings | None = None,
        engine_config: EngineConfig | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._estimator = estimator
        self._settings = settings or get_settings()
        self._engine_config = engine_config or get_engine_config()
        self._clock = clock or utc_now
        self._orchestrator = orchestrator or PredictionOrchestrator(
            self._engine_config, self._clock
        )

    async def current_prediction(
        self, owner_key: str, ai_opt_in: bool, force: bool = False
    ) -> PredictionRecord | None:
        """Return the owner's prediction, recalculating and saving if stale.

        Returns None when the owner has no logs yet.  Engine errors propagate
        so the caller can show "prediction unavailable" and decide on retries.
        """
        logs = await self._store.list_logs_for_owner(owner_key)
        if not logs:
            logger.info("Recalculation skipped for %s: no logs", owner_key)
            return None

        current = await self._store.get_current_prediction(owner_key)
        if not force and not needs_recalculation(
            current, logs, self._clock(), self._engine_config
        ):
            return current

        config = resolve_estimation_config(
            owner_key, ai_opt_in, self._settings, self._engine_config
        )
        record = await self._orchestrator.predict_next(logs, config, self._estimator)
        await self._store.save_prediction(owner_key, record)
        logger.info(
            "Saved new prediction for %s: %s (%s)",
            owner_key,
            record.predicted_date,
            record.model_used,
        )
        return record

    async def statistics(self, owner_key: str) -> IntervalStatistics | None:
        logs = await self._store.list_logs_for_owner(owner_key)
        bounds = self._engine_config.cycle_length
        return compute_statistics(
            logs, bounds.min_cycle_days, bounds.max_cycle_days, self._engine_config
        )

    async def overview(self, owner_key: str) -> dict:
        logs = await self._store.list_logs_for_owner(owner_key)
        bounds = self._engine_config.cycle_length
        stats = compute_statistics(
            logs, bounds.min_cycle_days, bounds.max_cycle_days, self._engine_config
        )
        return summarize_logs(logs, stats)

    async def days_until_next(self, owner_key: str, today: date) -> int | None:
        current = await self._store.get_current_prediction(owner_key)
        if current is None:
            return None
        return current.days_until(today)
