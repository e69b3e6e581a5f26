"""Tests for parsing external provider answers."""

from __future__ import annotations

import logging
from datetime import date

import pytest

from cyclecast.engine.ai_interpreter import DEFAULT_AI_REASONING, extract_json_span, interpret
from cyclecast.engine.config_loader import EngineConfig
from cyclecast.engine.errors import ParseError, ParseFailure

LAST_START = date(2025, 3, 4)


class TestExtraction:
    def test_fenced_json_with_surrounding_prose(
        self, engine_config: EngineConfig, provider_answer: str
    ) -> None:
        result = interpret(provider_answer, LAST_START, 21, 35, engine_config)
        assert result.predicted_date == date(2025, 4, 1)
        assert result.average_cycle_length_days == 29
        assert result.confidence == pytest.approx(0.9)
        assert result.reasoning == "stable"
        assert result.warnings == []

    def test_fence_without_language_tag(self, engine_config: EngineConfig) -> None:
        text = '```\n{"predicted_date": "2025-04-01", "average_cycle_length": 28, "confidence": 0.7}\n```'
        result = interpret(text, LAST_START, 21, 35, engine_config)
        assert result.average_cycle_length_days == 28

    def test_bare_json(self, engine_config: EngineConfig) -> None:
        text = '{"predicted_date": "2025-04-02", "average_cycle_length": 29, "confidence": 0.8, "reasoning": "ok"}'
        result = interpret(text, LAST_START, 21, 35, engine_config)
        assert result.predicted_date == date(2025, 4, 2)

    def test_pretty_printed_json(self, engine_config: EngineConfig) -> None:
        text = """
        {
          "predicted_date": "2025-04-01",
          "average_cycle_length": 28,
          "confidence": 0.75,
          "reasoning": "Cycles have been consistent."
        }
        """
        result = interpret(text, LAST_START, 21, 35, engine_config)
        assert result.reasoning == "Cycles have been consistent."
        assert result.confidence == pytest.approx(0.75)

    def test_unescaped_quotes_in_reasoning(self, engine_config: EngineConfig) -> None:
        text = (
            '{"predicted_date": "2025-04-01", "average_cycle_length": 28, '
            '"confidence": 0.8, "reasoning": "Your cycles are "very" stable"}'
        )
        result = interpret(text, LAST_START, 21, 35, engine_config)
        assert result.reasoning == 'Your cycles are "very" stable'

    def test_quoted_list_in_reasoning(self, engine_config: EngineConfig) -> None:
        text = (
            '{"predicted_date": "2025-04-01", "average_cycle_length": 28, '
            '"confidence": 0.8, "reasoning": "Cycles were "28", "29" and 30 days"}'
        )
        result = interpret(text, LAST_START, 21, 35, engine_config)
        assert result.reasoning == 'Cycles were "28", "29" and 30 days'

    def test_quoted_list_in_reasoning_before_other_fields(self, engine_config: EngineConfig) -> None:
        text = (
            '{"reasoning": "Saw "short", "long" gaps", "predicted_date": "2025-04-01", '
            '"average_cycle_length": 28, "confidence": 0.8}'
        )
        result = interpret(text, LAST_START, 21, 35, engine_config)
        assert result.reasoning == 'Saw "short", "long" gaps'

    def test_reasoning_before_other_fields(self, engine_config: EngineConfig) -> None:
        text = (
            '{"reasoning": "Stable pattern", "predicted_date": "2025-04-01", '
            '"average_cycle_length": 28, "confidence": 0.8}'
        )
        result = interpret(text, LAST_START, 21, 35, engine_config)
        assert result.reasoning == "Stable pattern"

    def test_quoted_numbers_and_trailing_comma(self, engine_config: EngineConfig) -> None:
        text = '{"predicted_date": "2025-04-01", "average_cycle_length": "29", "confidence": "0.6",}'
        result = interpret(text, LAST_START, 21, 35, engine_config)
        assert result.average_cycle_length_days == 29
        assert result.confidence == pytest.approx(0.6)

    def test_datetime_value_truncated_to_date(self, engine_config: EngineConfig) -> None:
        text = '{"predicted_date": "2025-04-01T00:00:00Z", "average_cycle_length": 28, "confidence": 0.8}'
        result = interpret(text, LAST_START, 21, 35, engine_config)
        assert result.predicted_date == date(2025, 4, 1)

    def test_missing_reasoning_gets_placeholder(self, engine_config: EngineConfig) -> None:
        text = '{"predicted_date": "2025-04-01", "average_cycle_length": 28, "confidence": 0.8}'
        result = interpret(text, LAST_START, 21, 35, engine_config)
        assert result.reasoning == DEFAULT_AI_REASONING

    def test_extract_json_span_takes_first_and_last_brace(self) -> None:
        span = extract_json_span('noise {"a": {"b": 1}} trailing')
        assert span == '{"a": {"b": 1}}'


class TestParseErrors:
    @pytest.mark.parametrize(
        "text",
        ["", "I cannot predict this.", "predicted_date: 2025-04-01", "} backwards {"],
    )
    def test_no_json_found(self, engine_config: EngineConfig, text: str) -> None:
        with pytest.raises(ParseError) as exc_info:
            interpret(text, LAST_START, 21, 35, engine_config)
        assert exc_info.value.reason is ParseFailure.NO_JSON_FOUND

    @pytest.mark.parametrize(
        "text, field",
        [
            ('{"average_cycle_length": 28, "confidence": 0.8}', "predicted_date"),
            ('{"predicted_date": "2025-04-01", "confidence": 0.8}', "average_cycle_length"),
            ('{"predicted_date": "2025-04-01", "average_cycle_length": 28}', "confidence"),
            ('{"predicted_date": "next month", "average_cycle_length": 28, "confidence": 0.8}', "predicted_date"),
            ('{"predicted_date": "2025-13-45", "average_cycle_length": 28, "confidence": 0.8}', "predicted_date"),
            ('{"predicted_date": "2025-04-01", "average_cycle_length": 28.5, "confidence": 0.8}', "average_cycle_length"),
            ('{"predicted_date": "2025-04-01", "average_cycle_length": 28, "confidence": "high"}', "confidence"),
        ],
    )
    def test_missing_or_invalid_field(
        self, engine_config: EngineConfig, text: str, field: str
    ) -> None:
        with pytest.raises(ParseError) as exc_info:
            interpret(text, LAST_START, 21, 35, engine_config)
        assert exc_info.value.reason is ParseFailure.MISSING_FIELD
        assert exc_info.value.field == field


class TestValidation:
    def test_out_of_bounds_date_is_kept_and_flagged(
        self, engine_config: EngineConfig, caplog: pytest.LogCaptureFixture
    ) -> None:
        text = '{"predicted_date": "2025-03-10", "average_cycle_length": 28, "confidence": 0.8}'
        with caplog.at_level(logging.WARNING, logger="cyclecast.engine.ai_interpreter"):
            result = interpret(text, LAST_START, 21, 35, engine_config)
        assert result.predicted_date == date(2025, 3, 10)
        assert len(result.warnings) == 1
        assert "6 days" in result.warnings[0]
        assert any("keeping provider result" in r.getMessage() for r in caplog.records)

    def test_date_within_slack_not_flagged(self, engine_config: EngineConfig) -> None:
        # 45 days after the last start: max 35 + 10 slack
        text = '{"predicted_date": "2025-04-18", "average_cycle_length": 45, "confidence": 0.5}'
        result = interpret(text, LAST_START, 21, 35, engine_config)
        assert result.warnings == []

    @pytest.mark.parametrize("raw, clamped", [("1.4", 1.0), ("-0.2", 0.0), ("0", 0.0), ("1", 1.0)])
    def test_confidence_clamped(
        self, engine_config: EngineConfig, raw: str, clamped: float
    ) -> None:
        text = (
            '{"predicted_date": "2025-04-01", "average_cycle_length": 28, '
            f'"confidence": {raw}}}'
        )
        result = interpret(text, LAST_START, 21, 35, engine_config)
        assert result.confidence == pytest.approx(clamped)
