"""Tests for docimport.core.llm_client module.

Tests the LLMClient class with a mocked instructor client:
- complete_structured(): call arguments and returned object
- Timeout conversion
- Cost tracking integration
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from docimport.core.config import LLMConfig
from docimport.core.cost_tracker import CostTracker, usage_scope
from docimport.core.errors import ExtractionTimeoutError
from docimport.core.llm_client import LLMClient
from docimport.pydantic_models import ImportedBodyMeasurements


MESSAGES = [{"role": "user", "content": [{"type": "text", "text": "Extract."}]}]


@pytest.fixture
def mock_instructor(measurements):
    """Patch instructor.from_litellm and expose create_with_completion."""
    with patch("docimport.core.llm_client.instructor") as mock:
        create = AsyncMock(return_value=(
            measurements,
            MagicMock(usage=MagicMock(prompt_tokens=1200, completion_tokens=300)),
        ))
        mock.from_litellm.return_value.chat.completions.create_with_completion = create
        yield create


# =============================================================================
# LLMClient tests
# =============================================================================


class TestLLMClient:
    """Tests for LLMClient.complete_structured."""

    @pytest.mark.asyncio
    async def test_returns_validated_object(self, mock_instructor, measurements):
        client = LLMClient()
        result = await client.complete_structured(
            model="openrouter/google/gemini-2.5-flash",
            messages=MESSAGES,
            response_model=ImportedBodyMeasurements,
        )
        assert result is measurements

    @pytest.mark.asyncio
    async def test_call_arguments(self, mock_instructor):
        client = LLMClient(max_tokens=1000)
        await client.complete_structured(
            model="openrouter/openai/gpt-4o",
            messages=MESSAGES,
            response_model=ImportedBodyMeasurements,
            api_key="sk-test",
        )

        mock_instructor.assert_called_once()
        kwargs = mock_instructor.call_args.kwargs
        assert kwargs["model"] == "openrouter/openai/gpt-4o"
        assert kwargs["messages"] == MESSAGES
        assert kwargs["response_model"] is ImportedBodyMeasurements
        assert kwargs["api_key"] == "sk-test"
        assert kwargs["temperature"] == LLMConfig.TEMPERATURE
        assert kwargs["max_tokens"] == 1000
        assert kwargs["max_retries"] == LLMConfig.STRUCTURED_MAX_RETRIES
        assert kwargs["extra_headers"]["X-Title"] == LLMConfig.SITE_NAME

    @pytest.mark.asyncio
    async def test_none_result_passed_through(self, mock_instructor):
        mock_instructor.return_value = (None, MagicMock(usage=None))
        client = LLMClient()
        result = await client.complete_structured(
            model="m", messages=MESSAGES, response_model=ImportedBodyMeasurements,
        )
        assert result is None

    @pytest.mark.asyncio
    async def test_timeout_raises_extraction_timeout(self, mock_instructor):
        async def slow(**kwargs):
            await asyncio.sleep(1)

        mock_instructor.side_effect = slow
        client = LLMClient(timeout_seconds=0.01)
        with pytest.raises(ExtractionTimeoutError, match="timed out"):
            await client.complete_structured(
                model="m", messages=MESSAGES, response_model=ImportedBodyMeasurements,
            )

    @pytest.mark.asyncio
    async def test_provider_errors_propagate(self, mock_instructor):
        mock_instructor.side_effect = ConnectionError("reset by peer")
        client = LLMClient()
        with pytest.raises(ConnectionError):
            await client.complete_structured(
                model="m", messages=MESSAGES, response_model=ImportedBodyMeasurements,
            )


# =============================================================================
# Cost tracking integration tests
# =============================================================================


class TestCostTrackerIntegration:

    @pytest.mark.asyncio
    async def test_usage_recorded_in_scope(self, mock_instructor):
        tracker = CostTracker()
        client = LLMClient(cost_tracker=tracker)
        with usage_scope(request_id="req-1", user_id="user-1", attempt=1):
            await client.complete_structured(
                model="m", messages=MESSAGES, response_model=ImportedBodyMeasurements, category="pdf",
            )
        await client.complete_structured(
            model="m", messages=MESSAGES, response_model=ImportedBodyMeasurements, category="image",
        )
        assert tracker.call_count == 2
        assert tracker.total_tokens == 3000
        first, second = tracker.calls
        assert (first.scope.request_id, first.scope.attempt, first.scope.file_category) == ("req-1", 1, "pdf")
        assert (second.scope.request_id, second.scope.file_category) == (None, "image")

    @pytest.mark.asyncio
    async def test_missing_usage_not_recorded(self, mock_instructor, measurements):
        mock_instructor.return_value = (measurements, MagicMock(usage=None))
        tracker = CostTracker()
        await LLMClient(cost_tracker=tracker).complete_structured(
            model="m", messages=MESSAGES, response_model=ImportedBodyMeasurements,
        )
        assert tracker.call_count == 0
