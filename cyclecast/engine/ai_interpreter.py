"""Interpret a free-form answer from an external estimation provider.

Providers are asked for a single JSON object but routinely wrap it in
markdown fences, prepend commentary, or emit slightly broken JSON (unescaped
quotes inside the reasoning, quoted numbers, trailing commas).  Rather than
``json.loads`` the payload, each field is recovered individually with a
field-anchored pattern, so one malformed value does not sink the rest.

Parsing steps:
  1. Strip surrounding whitespace.
  2. Remove every fenced code-block marker (with or without a language tag).
  3. Keep the span from the first ``{`` to the last ``}``.
  4. Extract ``predicted_date``, ``average_cycle_length``, ``confidence``
     and the optional ``reasoning``.

A predicted date that lands outside the sane interval bounds is kept as-is:
it is logged and flagged in ``warnings`` but never rejected.
"""

from __future__ import annotations

import logging
import re
from datetime import date

from cyclecast.engine.base import StructuredPrediction
from cyclecast.engine.config_loader import EngineConfig, get_engine_config
from cyclecast.engine.errors import ParseError, ParseFailure

logger = logging.getLogger("cyclecast.engine.ai_interpreter")

DEFAULT_AI_REASONING = "AI-generated prediction"

# ``` or ```json / ```JSON etc., wherever they appear
_FENCE_RE = re.compile(r"```[A-Za-z0-9_+-]*[ \t]*\n?")

_DATE_RE = re.compile(
    r'"predicted_date"\s*:\s*"?\s*(?P<value>\d{4}-\d{1,2}-\d{1,2})'
)
_CYCLE_RE = re.compile(
    r'"average_cycle_length"\s*:\s*"?\s*(?P<value>\d+(?:\.\d+)?)'
)
_CONFIDENCE_RE = re.compile(
    r'"confidence"\s*:\s*"?\s*(?P<value>-?(?:\d+(?:\.\d*)?|\.\d+))'
)
# Lazy match up to a quote that is followed by another "key": or the end of
# the object, so stray unescaped quotes inside the text are kept.
_REASONING_RE = re.compile(
    r'"reasoning"\s*:\s*"(?P<value>.*?)"\s*(?=,\s*"\w+"\s*:|,?\s*\}|$)',
    re.DOTALL,
)


def extract_json_span(raw_text: str) -> str:
    """Return the candidate JSON object embedded in ``raw_text``.

    Raises:
        ParseError: NO_JSON_FOUND if there is no ``{`` ... ``}`` pair.
    """
    cleaned = _FENCE_RE.sub("", raw_text.strip()).strip()
    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start == -1 or end == -1 or end < start:
        raise ParseError(ParseFailure.NO_JSON_FOUND)
    return cleaned[start : end + 1]


def _parse_date(span: str) -> date:
    match = _DATE_RE.search(span)
    if not match:
        raise ParseError(ParseFailure.MISSING_FIELD, "predicted_date")
    year, month, day = (int(p) for p in match.group("value").split("-"))
    try:
        return date(year, month, day)
    except ValueError as exc:
        raise ParseError(ParseFailure.MISSING_FIELD, "predicted_date") from exc


def _parse_cycle_length(span: str) -> int:
    match = _CYCLE_RE.search(span)
    if not match:
        raise ParseError(ParseFailure.MISSING_FIELD, "average_cycle_length")
    value = float(match.group("value"))
    if not value.is_integer():
        raise ParseError(ParseFailure.MISSING_FIELD, "average_cycle_length")
    return int(value)


def _parse_confidence(span: str) -> float:
    match = _CONFIDENCE_RE.search(span)
    if not match:
        raise ParseError(ParseFailure.MISSING_FIELD, "confidence")
    return float(match.group("value"))


def _parse_reasoning(span: str) -> str | None:
    match = _REASONING_RE.search(span)
    if not match:
        return None
    text = match.group("value").replace('\\"', '"').replace("\\n", "\n").strip()
    return text or None


def interpret(
    raw_text: str,
    last_event_date: date,
    min_bound: int,
    max_bound: int,
    config: EngineConfig | None = None,
) -> StructuredPrediction:
    """Parse and sanity-check a provider's answer.

    Args:
        raw_text:        Text returned by the provider.
        last_event_date: Most recent logged start date.
        min_bound:       Shortest plausible interval in days.
        max_bound:       Longest plausible interval in days, before slack.
        config:          Engine config (defaults to the global singleton).

    Returns:
        StructuredPrediction with confidence clamped to [0, 1].

    Raises:
        ParseError: NO_JSON_FOUND or MISSING_FIELD(name).
    """
    cfg = config or get_engine_config()
    span = extract_json_span(raw_text)
    logger.debug("Extracted provider JSON span: %s", span)

    predicted_date = _parse_date(span)
    cycle_length = _parse_cycle_length(span)
    raw_confidence = _parse_confidence(span)
    reasoning = _parse_reasoning(span) or DEFAULT_AI_REASONING

    warnings: list[str] = []
    upper = max_bound + cfg.cycle_length.outlier_slack_days
    days_since_last = (predicted_date - last_event_date).days
    if not (min_bound <= days_since_last <= upper):
        logger.warning(
            "Provider predicted %s, %d days after last start %s (sane range %d–%d); "
            "keeping provider result",
            predicted_date,
            days_since_last,
            last_event_date,
            min_bound,
            upper,
        )
        warnings.append(
            f"Predicted date is {days_since_last} days after the last logged start "
            f"(expected {min_bound}–{upper})"
        )

    confidence = min(max(raw_confidence, 0.0), 1.0)
    if confidence != raw_confidence:
        logger.info("Clamped provider confidence %.3f to %.2f", raw_confidence, confidence)

    return StructuredPrediction(
        predicted_date=predicted_date,
        average_cycle_length_days=cycle_length,
        confidence=confidence,
        reasoning=reasoning,
        warnings=warnings,
    )
