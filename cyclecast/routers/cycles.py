"""Cycle statistics and prediction endpoints.

Endpoints:
    POST /cycles/statistics  — Interval statistics and log overview
    POST /cycles/predictions — Next-cycle prediction (local or AI)
    GET  /cycles/ai/status   — External estimator configuration and ping

The endpoints are stateless: the caller sends the full log list with each
request and stores the returned prediction itself.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, HTTPException

from cyclecast.dependencies import AppSettings, EngineSettings, Estimator, Orchestrator
from cyclecast.engine.errors import EmptyLogsError, ExternalEstimationError, ParseError
from cyclecast.engine.statistics import compute_statistics
from cyclecast.models.base import ErrorDetail
from cyclecast.models.cycles import (
    AIStatusRead,
    PredictionRead,
    PredictionRequest,
    StatisticsRead,
    StatisticsRequest,
    StatisticsResponse,
)
from cyclecast.services.predictions import resolve_estimation_config, summarize_logs

logger = logging.getLogger("cyclecast.routers.cycles")

router = APIRouter(prefix="/cycles", tags=["cycles"])

PREDICTION_UNAVAILABLE = "Prediction unavailable, try again"


@router.post("/statistics", response_model=StatisticsResponse)
async def cycle_statistics(body: StatisticsRequest, engine_config: EngineSettings) -> Any:
    bounds = engine_config.cycle_length
    logs = body.event_logs()
    stats = compute_statistics(
        logs,
        body.min_cycle_length_days or bounds.min_cycle_days,
        body.max_cycle_length_days or bounds.max_cycle_days,
        engine_config,
    )
    summary = summarize_logs(logs, stats)
    return StatisticsResponse(
        total_logs=summary["total_logs"],
        first_log_date=summary["first_log_date"],
        last_log_date=summary["last_log_date"],
        statistics=StatisticsRead.from_statistics(stats) if stats else None,
    )


@router.post(
    "/predictions",
    response_model=PredictionRead,
    responses={503: {"model": ErrorDetail}},
)
async def predict_next_cycle(
    body: PredictionRequest,
    settings: AppSettings,
    engine_config: EngineSettings,
    orchestrator: Orchestrator,
    estimator: Estimator,
) -> Any:
    """Predict the next cycle start from the supplied logs.

    AI estimation is used only when the identity is on the allow-list and
    ``use_ai`` is set.  Provider and parse failures are reported as 503
    without internal details; they are never replaced by a local estimate.
    """
    config = resolve_estimation_config(
        body.owner_identity,
        body.use_ai,
        settings,
        engine_config,
        body.min_cycle_length_days,
        body.max_cycle_length_days,
    )
    try:
        record = await orchestrator.predict_next(body.event_logs(), config, estimator)
    except EmptyLogsError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except (ExternalEstimationError, ParseError) as exc:
        logger.warning(
            "Prediction failed for %s: %s", body.owner_identity or "anonymous", exc
        )
        raise HTTPException(status_code=503, detail=PREDICTION_UNAVAILABLE) from exc

    return PredictionRead.from_record(record)


@router.get("/ai/status", response_model=AIStatusRead)
async def ai_status(settings: AppSettings, estimator: Estimator) -> Any:
    connected = False
    if settings.ai_prediction_enabled and settings.anthropic_configured:
        connected = await estimator.test_connection()
    return AIStatusRead(
        configured=settings.anthropic_configured,
        enabled=settings.ai_prediction_enabled,
        connected=connected,
        model=settings.anthropic_model,
    )
