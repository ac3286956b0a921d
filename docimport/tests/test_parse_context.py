"""Tests for docimport.core.parse_context module.

Tests:
- VisionParseContext classification and guarded extraction
- TrackedParseContext logging and re-raise
- extract_result_metadata counts
"""

import logging

import pytest

from docimport.core.credits import CreditTransactionType
from docimport.core.parse_context import (
    TrackedParseContext,
    create_vision_parse_context,
    extract_result_metadata,
)
from docimport.pydantic_models import (
    ImportedBodyMeasurements,
    ImportedDay,
    ImportedExercise,
    ImportedWeek,
    ImportedWorkoutProgram,
)


class FailingContext:
    async def parse(self, content, media_type, prompt):
        raise RuntimeError("model unavailable")


class StaticContext:
    def __init__(self, result):
        self.result = result

    async def parse(self, content, media_type, prompt):
        return self.result


# =============================================================================
# VisionParseContext
# =============================================================================


class TestVisionParseContext:
    """Tests for VisionParseContext."""

    @pytest.mark.asyncio
    async def test_uses_category_for_media_type(
        self, config_source, ledger, scripted_client, measurements, user_id, models_config, encode
    ):
        client = scripted_client(measurements)
        context = create_vision_parse_context(
            ImportedBodyMeasurements, user_id, config_source, ledger, client=client
        )
        result = await context.parse(encode("date,weight\n"), "text/csv", "Extract.")

        assert result is measurements
        assert client.calls[0]["model"] == models_config.spreadsheet_model
        assert client.calls[0]["category"] == "spreadsheet"
        consumed = ledger.transactions_for(user_id, CreditTransactionType.CONSUMPTION)
        assert consumed[0].amount == -1


# =============================================================================
# TrackedParseContext
# =============================================================================


class TestTrackedParseContext:
    """Tests for TrackedParseContext."""

    @pytest.mark.asyncio
    async def test_logs_request_and_response(self, measurements, caplog):
        tracked = TrackedParseContext(StaticContext(measurements), "req-9", "user-1", "body-ai")
        with caplog.at_level(logging.INFO, logger="docimport"):
            result = await tracked.parse("QUJD", "application/pdf", "P")

        assert result is measurements
        assert "AI parse request" in caplog.text
        assert "AI parse response" in caplog.text
        assert "request_id=req-9" in caplog.text
        assert "measurements=2" in caplog.text

    @pytest.mark.asyncio
    async def test_logs_failure_and_reraises(self, caplog):
        tracked = TrackedParseContext(FailingContext(), "req-9", "user-1", "body-ai")
        with pytest.raises(RuntimeError, match="model unavailable"):
            await tracked.parse("QUJD", "application/pdf", "P")
        assert "AI parse failed" in caplog.text


# =============================================================================
# extract_result_metadata
# =============================================================================


class TestExtractResultMetadata:
    """Tests for extract_result_metadata."""

    def test_workout_nesting(self):
        program = ImportedWorkoutProgram(
            name="Block A",
            weeks=[
                ImportedWeek(week_number=1, days=[
                    ImportedDay(day_number=1, exercises=[ImportedExercise(name="Squat"), ImportedExercise(name="Bench")]),
                    ImportedDay(day_number=2, exercises=[ImportedExercise(name="Deadlift")]),
                ]),
                ImportedWeek(week_number=2, days=[
                    ImportedDay(day_number=1, exercises=[ImportedExercise(name="Squat")]),
                ]),
            ],
        )
        assert extract_result_metadata(program) == {"weeks": 2, "days": 3, "exercises": 4}

    def test_dict_lists(self):
        assert extract_result_metadata({"tasks": [1, 2], "habits": [], "name": "x"}) == {"tasks": 2, "habits": 0}

    def test_non_object(self):
        assert extract_result_metadata(None) == {}
        assert extract_result_metadata("text") == {}
