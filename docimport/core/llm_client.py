"""Structured-generation client for the import pipeline.

Wraps litellm + Instructor behind one call that returns a validated
pydantic object:
- Provider routing and API keys via litellm
- Schema validation via Instructor
- A hard per-call timeout
- Optional token/cost tracking

Retry and model fallback are NOT handled here. guarded_extract owns them so
that credits, attempts and the fallback switch stay in one place.

Usage:
    client = LLMClient(cost_tracker=tracker)
    measurements = await client.complete_structured(
        model="openrouter/google/gemini-2.5-flash",
        messages=[{"role": "user", "content": "..."}],
        response_model=ImportedBodyMeasurements,
        api_key=api_key,
        category="pdf",
    )
"""

import asyncio
import logging
from typing import Any, Protocol, TypeVar

import instructor
import litellm

from docimport.core.config import ExtractionLimits, LLMConfig
from docimport.core.cost_tracker import CostTracker
from docimport.core.errors import ExtractionTimeoutError

logger = logging.getLogger(__name__)

# Suppress LiteLLM debug noise (done once at module load)
logging.getLogger("litellm").setLevel(logging.ERROR)
logging.getLogger("LiteLLM").setLevel(logging.ERROR)
logging.getLogger("httpx").setLevel(logging.ERROR)

T = TypeVar("T")


class StructuredClient(Protocol):
    """Anything that can turn messages into a validated response_model instance."""

    async def complete_structured(
        self,
        model: str,
        messages: list[dict[str, Any]],
        response_model: type[T],
        api_key: str | None = None,
        category: str = "",
    ) -> T | None: ...


class LLMClient:
    """Client for structured-generation calls through litellm.

    One client can be reused across attempts and imports; it holds no
    per-request state besides the optional cost tracker.
    """

    def __init__(
        self,
        cost_tracker: CostTracker | None = None,
        timeout_seconds: float = ExtractionLimits.TIMEOUT_SECONDS,
        max_tokens: int = ExtractionLimits.MAX_OUTPUT_TOKENS,
    ) -> None:
        """Initialize the client.

        Args:
            cost_tracker: Optional tracker for recording token usage.
            timeout_seconds: Upper bound for a single call.
            max_tokens: Completion token ceiling.
        """
        self.cost_tracker = cost_tracker
        self.timeout_seconds = timeout_seconds
        self.max_tokens = max_tokens

    async def complete_structured(
        self,
        model: str,
        messages: list[dict[str, Any]],
        response_model: type[T],
        api_key: str | None = None,
        category: str = "",
    ) -> T | None:
        """Make one call that returns a validated pydantic model.

        Args:
            model: litellm model identifier (e.g., "openrouter/openai/gpt-4o").
            messages: Chat messages; user content may mix text and inline files.
            response_model: Pydantic model class the output must satisfy.
            api_key: Provider key. None lets litellm read it from the environment.
            category: File category, recorded with the usage.

        Returns:
            Validated instance of response_model, or None if the model
            produced no object.

        Raises:
            ExtractionTimeoutError: If the call exceeds timeout_seconds.
            pydantic.ValidationError: If the output does not fit the schema.
            litellm exceptions: For provider and network errors.
        """
        instructor_client = instructor.from_litellm(litellm.acompletion)

        try:
            result, raw_completion = await asyncio.wait_for(
                instructor_client.chat.completions.create_with_completion(
                    model=model,
                    messages=messages,
                    response_model=response_model,
                    api_key=api_key,
                    temperature=LLMConfig.TEMPERATURE,
                    max_tokens=self.max_tokens,
                    max_retries=LLMConfig.STRUCTURED_MAX_RETRIES,
                    extra_headers={
                        "HTTP-Referer": LLMConfig.SITE_URL,
                        "X-Title": LLMConfig.SITE_NAME,
                    },
                ),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            raise ExtractionTimeoutError(self.timeout_seconds) from e

        if self.cost_tracker:
            self.cost_tracker.record(model, getattr(raw_completion, "usage", None), category=category)

        return result
