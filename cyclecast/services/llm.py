"""Anthropic-backed external estimation capability.

Implements the ``ExternalEstimator`` contract expected by the orchestrator:
an awaitable that takes the sorted event logs and returns the model's raw
text.  Parsing and validation of that text happen in the engine, not here.
"""

from __future__ import annotations

import logging
from typing import Sequence

import anthropic

from cyclecast.config import Settings, get_settings
from cyclecast.engine.base import EventLog
from cyclecast.engine.errors import ExternalEstimationError
from cyclecast.engine.prompt import build_prediction_prompt

logger = logging.getLogger("cyclecast.services.llm")

_PING_PROMPT = "Respond with ONLY the word: SUCCESS"


class AnthropicEstimator:
    """Call Claude with a cycle-history prompt and return its raw answer.

    Usage::

        estimator = AnthropicEstimator()
        text = await estimator(sorted_logs)
    """

    def __init__(
        self,
        settings: Settings | None = None,
        client: anthropic.AsyncAnthropic | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._client = client

    def _get_client(self) -> anthropic.AsyncAnthropic:
        if self._client is None:
            self._client = anthropic.AsyncAnthropic(
                api_key=self._settings.anthropic_api_key,
                timeout=self._settings.anthropic_timeout_seconds,
            )
        return self._client

    def _check_available(self) -> None:
        if not self._settings.ai_prediction_enabled:
            raise ExternalEstimationError(
                "AI prediction is disabled. Enable it to get AI predictions.",
                reason="disabled",
            )
        if not self._settings.anthropic_configured:
            raise ExternalEstimationError(
                "Anthropic API key is not configured", reason="not_configured"
            )

    async def _complete(self, prompt: str, max_tokens: int) -> str:
        try:
            response = await self._get_client().messages.create(
                model=self._settings.anthropic_model,
                max_tokens=max_tokens,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APITimeoutError as exc:
            raise ExternalEstimationError(
                f"Anthropic request timed out: {exc}", reason="timeout"
            ) from exc
        except anthropic.APIError as exc:
            raise ExternalEstimationError(
                f"Anthropic request failed: {exc}", reason="provider_error"
            ) from exc

        text = "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        ).strip()
        if not text:
            raise ExternalEstimationError(
                "Anthropic returned an empty response", reason="empty_response"
            )
        return text

    async def __call__(self, logs: Sequence[EventLog]) -> str:
        """Request a prediction for ``logs`` and return the raw model text."""
        if not logs:
            raise ExternalEstimationError(
                "No logs available for AI prediction", reason="empty_response"
            )
        self._check_available()

        prompt = build_prediction_prompt(logs)
        logger.info(
            "Requesting AI prediction from %s for %d log(s)",
            self._settings.anthropic_model,
            len(logs),
        )
        text = await self._complete(prompt, self._settings.anthropic_max_tokens)
        logger.debug("Anthropic response: %s", text)
        return text

    async def test_connection(self) -> bool:
        """Return True if the provider answers a trivial ping correctly."""
        if not self._settings.anthropic_configured:
            logger.info("Anthropic API key not configured")
            return False
        try:
            text = await self._complete(_PING_PROMPT, 16)
        except ExternalEstimationError as exc:
            logger.warning("Anthropic connection test failed: %s", exc)
            return False
        ok = "SUCCESS" in text.upper()
        logger.info("Anthropic connection test result: %s (response: %r)", ok, text)
        return ok
