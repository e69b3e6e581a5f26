"""Prompt construction for the external estimation provider."""

from __future__ import annotations

from typing import Sequence

from cyclecast.engine.base import EventLog
from cyclecast.engine.statistics import interval_lengths, sort_logs

_PREDICTION_PROMPT = """\
You are a menstrual cycle prediction specialist with expertise in pattern \
recognition and health data analysis.

HISTORICAL PERIOD DATA:
{history}

ANALYSIS CONTEXT:
- Total periods logged: {count}
- Cycle lengths observed: {lengths}
- Average cycle length (preliminary): {average:.1f} days
- Last period start date: {last_start}

YOUR TASK:
Analyze this data and predict the start date of the NEXT period. Consider:
1. Overall cycle regularity and consistency
2. Any trend (cycles getting longer or shorter)
3. Outliers or irregular cycles (discount them if needed)
4. Statistical confidence in the prediction

RESPONSE FORMAT (a single JSON object, nothing else):
{{
  "predicted_date": "YYYY-MM-DD",
  "average_cycle_length": <integer>,
  "confidence": <float between 0.0 and 1.0>,
  "reasoning": "<one or two sentences explaining the prediction>"
}}

REQUIREMENTS:
- Return ONLY the JSON object, without markdown or code fences
- Use ISO 8601 dates (YYYY-MM-DD)
- predicted_date must be after the last period start date
- predicted_date should be roughly average_cycle_length days after the last period
- Regular cycles deserve higher confidence, irregular cycles lower confidence
"""


def build_prediction_prompt(logs: Sequence[EventLog]) -> str:
    """Render the prediction prompt for ``logs`` (any order, non-empty)."""
    ordered = sort_logs(logs)
    lengths = interval_lengths(ordered)

    lines = []
    for i, log in enumerate(ordered):
        line = f"Period {i + 1}: {log.start_date.isoformat()}"
        if i > 0:
            line += f" ({lengths[i - 1]} days from previous)"
        lines.append(line)

    average = sum(lengths) / len(lengths) if lengths else 28.0
    return _PREDICTION_PROMPT.format(
        history="\n".join(lines),
        count=len(ordered),
        lengths=", ".join(str(n) for n in lengths) + " days" if lengths else "N/A",
        average=average,
        last_start=ordered[-1].start_date.isoformat(),
    )
