"""Confidence scoring for cycle predictions.

Confidence is a fixed lookup on the regularity class of the observed
intervals.  Anything that is not a known class (including ``None`` when no
statistics could be computed) gets the lowest score, so the function never
raises.

Default table (overridable in engine_config.yaml):
    very_regular        0.85
    regular             0.70
    somewhat_irregular  0.55
    irregular           0.40
    unknown             0.30
"""

from __future__ import annotations

from typing import Any

from cyclecast.engine.base import RegularityClass
from cyclecast.engine.config_loader import EngineConfig, get_engine_config


def confidence_for(regularity: Any, config: EngineConfig | None = None) -> float:
    """Return the confidence score for a regularity class.

    Args:
        regularity: A RegularityClass, its string value, or anything else.
        config:     Engine config (defaults to the global singleton).

    Returns:
        Score between 0.0 and 1.0.
    """
    table = (config or get_engine_config()).confidence
    try:
        key = RegularityClass(regularity).value
    except (TypeError, ValueError):
        key = None
    return table.for_class(key)


def confidence_label(score: float) -> str:
    """Human-readable band for a confidence score: High, Medium or Low."""
    if score >= 0.8:
        return "High"
    if score >= 0.5:
        return "Medium"
    return "Low"
