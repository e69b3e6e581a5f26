"""Cyclecast cycle prediction engine.

Turns a list of logged cycle start dates into interval statistics, a single
best-estimate prediction with confidence, and a staleness policy for stored
predictions.  All components are pure apart from the injected external
estimator call.

Modules:
    base             — EventLog, IntervalStatistics, PredictionRecord, EstimationConfig
    statistics       — Interval statistics and regularity classification
    confidence       — Regularity → confidence lookup
    local_estimator  — Calendar-average prediction with default-cycle fallback
    ai_interpreter   — Tolerant parsing of an external provider's answer
    prompt           — Prompt construction for the external provider
    orchestrator     — Strategy selection and record normalization
    recalculation    — Whether a stored prediction must be recomputed
    config_loader    — Load/validate/hot-reload engine_config.yaml
"""

from cyclecast.engine.base import (
    EstimationConfig,
    EventLog,
    IntervalStatistics,
    PredictionRecord,
    RegularityClass,
    StructuredPrediction,
)
from cyclecast.engine.config_loader import EngineConfig, get_engine_config
from cyclecast.engine.errors import (
    EmptyLogsError,
    ExternalEstimationError,
    ParseError,
    ParseFailure,
    PredictionEngineError,
)
from cyclecast.engine.orchestrator import PredictionOrchestrator
from cyclecast.engine.recalculation import needs_recalculation
from cyclecast.engine.statistics import compute_statistics

__all__ = [
    "EventLog",
    "IntervalStatistics",
    "PredictionRecord",
    "EstimationConfig",
    "RegularityClass",
    "StructuredPrediction",
    "EngineConfig",
    "get_engine_config",
    "PredictionEngineError",
    "EmptyLogsError",
    "ExternalEstimationError",
    "ParseError",
    "ParseFailure",
    "PredictionOrchestrator",
    "needs_recalculation",
    "compute_statistics",
]
