"""Load, validate, and hot-reload the engine configuration.

The config lives in ``engine_config.yaml`` alongside this module.  At startup
it is loaded once and cached.  Call ``reload_engine_config()`` to re-read from
disk after an admin update; no restart required.

Usage::

    from cyclecast.engine.config_loader import get_engine_config

    config = get_engine_config()
    config.cycle_length.outlier_slack_days       # 10
    config.confidence.for_class("regular")       # 0.70
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path

import yaml

logger = logging.getLogger("cyclecast.engine.config")

# Path to the YAML file sitting next to this module
_CONFIG_PATH = Path(__file__).parent / "engine_config.yaml"


# ---------------------------------------------------------------------------
# Typed config sections
# ---------------------------------------------------------------------------


@dataclass
class CycleLengthConfig:
    """Interval sanity bounds."""

    min_cycle_days: int = 21
    max_cycle_days: int = 35
    outlier_slack_days: int = 10


@dataclass
class DefaultCycleConfig:
    """Estimate used when no interval survives filtering."""

    length_days: int = 28
    confidence: float = 0.3


@dataclass
class RegularityConfig:
    """Standard deviation thresholds, inclusive upper bounds in days."""

    very_regular_max_std: float = 2.0
    regular_max_std: float = 4.0
    somewhat_irregular_max_std: float = 7.0


@dataclass
class ConfidenceTable:
    """Confidence score per regularity class."""

    very_regular: float = 0.85
    regular: float = 0.70
    somewhat_irregular: float = 0.55
    irregular: float = 0.40
    unknown: float = 0.30

    def for_class(self, key: str | None) -> float:
        if key in ("very_regular", "regular", "somewhat_irregular", "irregular"):
            return getattr(self, key)
        return self.unknown


@dataclass
class EngineConfig:
    """Complete, validated engine configuration.

    This is the single in-memory representation of engine_config.yaml.
    Statistics, estimators and the recalculation policy all read from it.
    """

    version: str
    cycle_length: CycleLengthConfig
    default_cycle: DefaultCycleConfig
    regularity: RegularityConfig
    confidence: ConfidenceTable
    staleness_days: int = 30
    external_timeout_seconds: float = 30.0


# ---------------------------------------------------------------------------
# Loader / validation
# ---------------------------------------------------------------------------


class ConfigValidationError(ValueError):
    """Raised when engine_config.yaml fails validation."""


def _load_yaml(path: Path) -> dict:
    """Read and parse a YAML file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigValidationError: If the YAML is malformed.
    """
    if not path.exists():
        raise FileNotFoundError(f"Engine config not found: {path}")

    with path.open("r", encoding="utf-8") as fh:
        try:
            return yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:
            raise ConfigValidationError(f"YAML parse error in {path}: {exc}") from exc


def _validate_and_build(raw: dict) -> EngineConfig:
    """Validate the raw YAML dict and construct an EngineConfig.

    Missing sections fall back to the built-in defaults; present values are
    type- and range-checked.

    Raises:
        ConfigValidationError: If any value is invalid.
    """
    errors: list[str] = []

    def _number(section: dict, key: str, default: float, path: str) -> float:
        val = section.get(key, default)
        try:
            return float(val)
        except (TypeError, ValueError):
            errors.append(f"{path}.{key} must be a number, got {val!r}")
            return default

    version = str(raw.get("version", "1.0"))

    # ── Cycle length ──
    cl_raw = raw.get("cycle_length") or {}
    cycle_length = CycleLengthConfig(
        min_cycle_days=int(_number(cl_raw, "min_cycle_days", 21, "cycle_length")),
        max_cycle_days=int(_number(cl_raw, "max_cycle_days", 35, "cycle_length")),
        outlier_slack_days=int(_number(cl_raw, "outlier_slack_days", 10, "cycle_length")),
    )
    if cycle_length.min_cycle_days <= 0:
        errors.append("cycle_length.min_cycle_days must be positive")
    if cycle_length.max_cycle_days < cycle_length.min_cycle_days:
        errors.append(
            f"cycle_length.max_cycle_days ({cycle_length.max_cycle_days}) is below "
            f"min_cycle_days ({cycle_length.min_cycle_days})"
        )
    if cycle_length.outlier_slack_days < 0:
        errors.append("cycle_length.outlier_slack_days must not be negative")

    # ── Default cycle ──
    dc_raw = raw.get("default_cycle") or {}
    default_cycle = DefaultCycleConfig(
        length_days=int(_number(dc_raw, "length_days", 28, "default_cycle")),
        confidence=_number(dc_raw, "confidence", 0.3, "default_cycle"),
    )
    if default_cycle.length_days <= 0:
        errors.append("default_cycle.length_days must be positive")

    # ── Regularity thresholds ──
    rg_raw = raw.get("regularity") or {}
    regularity = RegularityConfig(
        very_regular_max_std=_number(rg_raw, "very_regular_max_std", 2.0, "regularity"),
        regular_max_std=_number(rg_raw, "regular_max_std", 4.0, "regularity"),
        somewhat_irregular_max_std=_number(
            rg_raw, "somewhat_irregular_max_std", 7.0, "regularity"
        ),
    )
    if not (
        regularity.very_regular_max_std
        <= regularity.regular_max_std
        <= regularity.somewhat_irregular_max_std
    ):
        errors.append("regularity thresholds must be non-decreasing")

    # ── Confidence table ──
    cf_raw = raw.get("confidence") or {}
    confidence = ConfidenceTable(
        very_regular=_number(cf_raw, "very_regular", 0.85, "confidence"),
        regular=_number(cf_raw, "regular", 0.70, "confidence"),
        somewhat_irregular=_number(cf_raw, "somewhat_irregular", 0.55, "confidence"),
        irregular=_number(cf_raw, "irregular", 0.40, "confidence"),
        unknown=_number(cf_raw, "unknown", 0.30, "confidence"),
    )
    scores = [
        ("default_cycle.confidence", default_cycle.confidence),
        ("confidence.very_regular", confidence.very_regular),
        ("confidence.regular", confidence.regular),
        ("confidence.somewhat_irregular", confidence.somewhat_irregular),
        ("confidence.irregular", confidence.irregular),
        ("confidence.unknown", confidence.unknown),
    ]
    for name, score in scores:
        if not (0.0 <= score <= 1.0):
            errors.append(f"{name} = {score} is out of range [0.0, 1.0]")
    if not (
        confidence.very_regular
        >= confidence.regular
        >= confidence.somewhat_irregular
        >= confidence.irregular
    ):
        errors.append("confidence must not increase as regularity worsens")

    # ── Recalculation / external estimation ──
    rc_raw = raw.get("recalculation") or {}
    staleness_days = int(_number(rc_raw, "staleness_days", 30, "recalculation"))
    if staleness_days <= 0:
        errors.append("recalculation.staleness_days must be positive")

    ex_raw = raw.get("external_estimation") or {}
    timeout = _number(ex_raw, "timeout_seconds", 30.0, "external_estimation")
    if timeout <= 0:
        errors.append("external_estimation.timeout_seconds must be positive")

    if errors:
        raise ConfigValidationError(
            f"engine_config.yaml has {len(errors)} validation error(s):\n"
            + "\n".join(f"  • {e}" for e in errors)
        )

    return EngineConfig(
        version=version,
        cycle_length=cycle_length,
        default_cycle=default_cycle,
        regularity=regularity,
        confidence=confidence,
        staleness_days=staleness_days,
        external_timeout_seconds=timeout,
    )


def load_engine_config(path: Path | None = None) -> EngineConfig:
    """Load and validate the engine config from disk.

    Args:
        path: Override path to YAML. Uses the bundled engine_config.yaml by default.
    """
    target = path or _CONFIG_PATH
    raw = _load_yaml(target)
    config = _validate_and_build(raw)
    logger.info("Loaded engine config v%s from %s", config.version, target)
    return config


# ---------------------------------------------------------------------------
# Global singleton with hot-reload support
# ---------------------------------------------------------------------------

_config: EngineConfig | None = None
_config_lock = threading.Lock()


def get_engine_config() -> EngineConfig:
    """Return the global EngineConfig singleton, loading it on first call.

    Thread-safe.  Use ``reload_engine_config()`` to refresh after YAML changes.
    """
    global _config
    if _config is None:
        with _config_lock:
            if _config is None:  # double-checked locking
                _config = load_engine_config()
    return _config


def reload_engine_config(path: Path | None = None) -> EngineConfig:
    """Reload the engine config from disk and replace the global singleton.

    If validation fails, the old config is retained and the error is re-raised.

    Raises:
        ConfigValidationError: If the new config is invalid.
        FileNotFoundError:     If the config file is missing.
    """
    global _config
    new_config = load_engine_config(path)  # validate before acquiring lock
    with _config_lock:
        old_version = _config.version if _config else "none"
        _config = new_config
    logger.info("Reloaded engine config: %s → %s", old_version, new_config.version)
    return new_config
