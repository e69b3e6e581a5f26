"""Top-level prediction entry point.

Chooses between the local calendar-average estimator and a delegated
external (AI) estimate, and returns one normalized PredictionRecord.

An eligible, opted-in user always gets either an AI-derived answer or an
explicit error.  Provider failures are never hidden behind a silent
downgrade to the local estimate; retry policy belongs to the caller.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from datetime import datetime
from typing import Awaitable, Callable, Sequence

from cyclecast.engine import ai_interpreter
from cyclecast.engine.base import (
    EstimationConfig,
    EventLog,
    PredictionRecord,
    utc_now,
)
from cyclecast.engine.config_loader import EngineConfig, get_engine_config
from cyclecast.engine.errors import EmptyLogsError, ExternalEstimationError
from cyclecast.engine.local_estimator import LocalEstimator
from cyclecast.engine.statistics import sort_logs

logger = logging.getLogger("cyclecast.engine.orchestrator")

# Injected capability: receives the sorted logs, returns the provider's raw text
ExternalEstimator = Callable[[Sequence[EventLog]], Awaitable[str]]


class PredictionOrchestrator:
    """Stateless prediction service, safe to share between concurrent callers.

    Usage::

        orchestrator = PredictionOrchestrator()
        record = await orchestrator.predict_next(
            logs,
            EstimationConfig(ai_eligible=True, ai_enabled=True, owner_identity="u1"),
            external_estimator=AnthropicEstimator(),
        )
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._config = config or get_engine_config()
        self._clock = clock or utc_now
        self._local = LocalEstimator(self._config, self._clock)

    async def predict_next(
        self,
        logs: Sequence[EventLog],
        config: EstimationConfig,
        external_estimator: ExternalEstimator | None = None,
    ) -> PredictionRecord:
        """Predict the next cycle start for one owner.

        Args:
            logs:               Event logs in any order.
            config:             Per-call eligibility, bounds and identity.
            external_estimator: Async capability used when the external path
                                is selected.  Never called otherwise.

        Raises:
            EmptyLogsError:          ``logs`` is empty.
            ExternalEstimationError: The external path failed or timed out.
            ParseError:              The provider's answer was unusable.
            asyncio.CancelledError:  The external call was cancelled.
        """
        if not logs:
            raise EmptyLogsError()

        ordered = sort_logs(logs)
        logger.info(
            "Predicting for %s from %d log(s)",
            config.owner_identity or "anonymous",
            len(ordered),
        )

        if config.use_external:
            record = await self._predict_external(ordered, config, external_estimator)
        else:
            record = self._local.estimate(ordered, config)

        return replace(
            record,
            owner_key=config.owner_identity,
            calculated_at=self._clock(),
        )

    async def _predict_external(
        self,
        ordered: list[EventLog],
        config: EstimationConfig,
        external_estimator: ExternalEstimator | None,
    ) -> PredictionRecord:
        if external_estimator is None:
            raise ExternalEstimationError(
                "AI prediction selected but no external estimator is configured",
                reason="not_configured",
            )

        logger.info("Using external estimator for %s", config.owner_identity)
        timeout = self._config.external_timeout_seconds
        try:
            raw_text = await asyncio.wait_for(external_estimator(ordered), timeout=timeout)
        except asyncio.TimeoutError as exc:
            raise ExternalEstimationError(
                f"External estimator timed out after {timeout:.0f}s", reason="timeout"
            ) from exc
        except ExternalEstimationError:
            raise
        except Exception as exc:
            raise ExternalEstimationError(
                f"External estimator failed: {exc}", reason="provider_error"
            ) from exc

        if not raw_text or not raw_text.strip():
            raise ExternalEstimationError(
                "External estimator returned an empty response", reason="empty_response"
            )

        parsed = ai_interpreter.interpret(
            raw_text,
            ordered[-1].start_date,
            config.min_cycle_length_days,
            config.max_cycle_length_days,
            self._config,
        )
        logger.info(
            "AI prediction: %s (avg %d days, confidence %.2f)",
            parsed.predicted_date,
            parsed.average_cycle_length_days,
            parsed.confidence,
        )
        return PredictionRecord(
            predicted_date=parsed.predicted_date,
            average_cycle_length_days=parsed.average_cycle_length_days,
            confidence=parsed.confidence,
            calculated_at=self._clock(),
            reasoning=parsed.reasoning,
            model_used="external_ai",
            warnings=parsed.warnings,
        )
