"""Health check endpoint — public, no auth required."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter

from cyclecast.config import get_settings
from cyclecast.engine.config_loader import get_engine_config

router = APIRouter(tags=["system"])
logger = logging.getLogger("cyclecast.health")


@router.get("/health")
async def health_check() -> dict:
    """Liveness probe. Returns 200 if the API process is up.

    Also reports whether the engine config loaded cleanly.
    """
    settings = get_settings()
    config_version = None
    try:
        config_version = get_engine_config().version
    except (OSError, ValueError) as exc:
        logger.warning("Health check config probe failed: %s", exc)

    return {
        "status": "healthy" if config_version else "degraded",
        "version": settings.app_version,
        "environment": settings.environment,
        "engine_config": config_version or "unavailable",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
