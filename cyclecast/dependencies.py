"""Shared FastAPI dependencies injected into route handlers."""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from cyclecast.config import Settings, get_settings
from cyclecast.engine.config_loader import EngineConfig, get_engine_config
from cyclecast.engine.orchestrator import PredictionOrchestrator
from cyclecast.services.llm import AnthropicEstimator


@lru_cache
def get_orchestrator() -> PredictionOrchestrator:
    return PredictionOrchestrator(get_engine_config())


@lru_cache
def get_estimator() -> AnthropicEstimator:
    return AnthropicEstimator(get_settings())


# Annotated shortcuts for route signatures
AppSettings = Annotated[Settings, Depends(get_settings)]
EngineSettings = Annotated[EngineConfig, Depends(get_engine_config)]
Orchestrator = Annotated[PredictionOrchestrator, Depends(get_orchestrator)]
Estimator = Annotated[AnthropicEstimator, Depends(get_estimator)]
