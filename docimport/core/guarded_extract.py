"""Guarded extraction - config, credits, retry and fallback around one extraction.

Flow for one request:
1. Resolve the model routing config for the file category (no cache).
2. Check credits; refuse without consuming if the user cannot pay.
3. Consume the credit cost once, up front.
4. Attempt extraction up to max_retries + 1 times. The first failure
   switches to the fallback model (once). Backoff doubles per attempt.
5. If every attempt failed, refund the cost once and re-raise the last error.
   A failed refund is logged; the extraction error is still the one raised.

Configuration and admission errors escape before any consumption.
"""

import asyncio
import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, Generic, TypeVar

from pydantic import BaseModel

from docimport.core.config import LLM_PROVIDER
from docimport.core.cost_tracker import usage_scope
from docimport.core.credits import CreditLedger, CreditTransactionType
from docimport.core.errors import AttemptLog, InsufficientCreditsError, attempt_failure
from docimport.core.extraction import extract_structured
from docimport.core.llm_client import LLMClient, StructuredClient
from docimport.core.model_config import ImportConfigSource, ModelRoutingConfig, resolve_model_config
from docimport.pydantic_models.import_models import FileCategory

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

ProgressCallback = Callable[[str, float], Any]
"""Receives (message, fraction). Failures are logged and ignored."""

_FIRST_ATTEMPT_PROGRESS = 0.3
_ATTEMPT_PROGRESS_STEP = 0.1
_MAX_ATTEMPT_PROGRESS = 0.95


@dataclass(frozen=True)
class ExtractionRequest(Generic[T]):
    """Everything needed for one guarded extraction (spans all retries).

    credit_cost, model_id and api_key override the resolved configuration
    when set. request_id labels the model usage of every attempt.
    """

    content_base64: str
    media_type: str
    prompt: str
    schema: type[T]
    user_id: str
    file_category: FileCategory
    request_id: str | None = None
    credit_cost: int | None = None
    model_id: str | None = None
    api_key: str | None = None
    on_progress: ProgressCallback | None = None


@dataclass(frozen=True)
class RetryState:
    """Position in the retry loop. Replaced, never mutated."""

    attempt: int
    current_model: str
    fallback_used: bool = False
    last_error: BaseException | None = None


def apply_overrides(config: ModelRoutingConfig, request: ExtractionRequest[Any]) -> ModelRoutingConfig:
    """Config with the request's cost, model and key overrides applied."""
    overrides: dict[str, Any] = {}
    if request.credit_cost is not None:
        overrides["credit_cost"] = request.credit_cost
    if request.model_id is not None:
        overrides["primary_model"] = request.model_id
    if request.api_key is not None:
        overrides["api_key"] = request.api_key
    return replace(config, **overrides) if overrides else config


def next_retry_state(state: RetryState, config: ModelRoutingConfig, error: BaseException) -> RetryState:
    """State after a failed attempt.

    Only a failure on attempt 0 can switch to the fallback model, and only
    when the current model is not already the fallback.
    """
    switch = (
        state.attempt == 0
        and not state.fallback_used
        and state.current_model != config.fallback_model
    )
    return RetryState(
        attempt=state.attempt + 1,
        current_model=config.fallback_model if switch else state.current_model,
        fallback_used=state.fallback_used or switch,
        last_error=error,
    )


def has_attempts_left(state: RetryState, config: ModelRoutingConfig) -> bool:
    return state.attempt <= config.max_retries


def backoff_delay_seconds(config: ModelRoutingConfig, attempt: int) -> float:
    """Delay after failed attempt `attempt`: base, 2*base, 4*base ..."""
    return config.retry_delay_base_ms * (2 ** attempt) / 1000


def attempt_progress(attempt: int) -> float:
    return min(_FIRST_ATTEMPT_PROGRESS + attempt * _ATTEMPT_PROGRESS_STEP, _MAX_ATTEMPT_PROGRESS)


def _notify(callback: ProgressCallback | None, message: str, fraction: float):
    if callback is None:
        return
    try:
        callback(message, fraction)
    except Exception as e:
        logger.warning(f"Progress callback failed: {type(e).__name__}: {e}")


async def guarded_extract(
    request: ExtractionRequest[T],
    *,
    config_source: ImportConfigSource,
    ledger: CreditLedger,
    client: StructuredClient | None = None,
) -> T:
    """Run a metered extraction with retry and a single fallback switch.

    Args:
        request: Payload, prompt, schema and caller identity.
        config_source: Source of model routing configuration.
        ledger: Credit ledger to check, consume and refund against.
        client: Structured-generation provider (defaults to LLMClient()).

    Returns:
        The validated schema instance from the first successful attempt.

    Raises:
        ConfigurationError: Configuration incomplete (nothing consumed).
        InsufficientCreditsError: User cannot pay (nothing consumed).
        The last extraction error once every attempt failed (cost refunded).
    """
    client = client or LLMClient()
    category = FileCategory(request.file_category)

    config = apply_overrides(await resolve_model_config(config_source, category), request)
    cost = config.credit_cost

    logger.info(
        f"Starting parse | user_id={request.user_id}, file_category={category.value}, "
        f"model={config.primary_model}, credit_cost={cost}"
    )

    if not await ledger.check_credits(request.user_id, cost):
        raise InsufficientCreditsError(cost)

    await ledger.consume_credits(
        request.user_id,
        cost,
        type=CreditTransactionType.CONSUMPTION,
        description=f"AI Vision: {category.value}",
        metadata={
            "operation": f"vision_parse_{category.value}",
            "provider": LLM_PROVIDER,
            "model": config.primary_model,
        },
    )

    state = RetryState(attempt=0, current_model=config.primary_model)
    attempts = AttemptLog()
    labels: dict[str, Any] = {"user_id": request.user_id, "file_category": category.value, "credit_cost": cost}
    if request.request_id is not None:
        labels["request_id"] = request.request_id

    while has_attempts_left(state, config):
        _notify(request.on_progress, f"Parsing with AI ({state.current_model})...", attempt_progress(state.attempt))
        try:
            with usage_scope(**labels, attempt=state.attempt, fallback=state.fallback_used):
                result = await extract_structured(
                    client,
                    request.content_base64,
                    request.media_type,
                    request.prompt,
                    request.schema,
                    model_id=state.current_model,
                    api_key=config.api_key,
                    category=category.value,
                )
        except Exception as e:
            failure = attempt_failure(e, state.current_model, state.attempt, category.value)
            attempts.add(failure)
            logger.warning(f"Attempt failed | {failure}")

            failed_attempt = state.attempt
            state = next_retry_state(state, config, e)
            if has_attempts_left(state, config):
                await asyncio.sleep(backoff_delay_seconds(config, failed_attempt))
            continue

        logger.info(f"Parse successful | user_id={request.user_id}, file_category={category.value}, attempts={state.attempt + 1}")
        _notify(request.on_progress, "Parsing completed", 1.0)
        return result

    try:
        await ledger.add_credits(
            request.user_id,
            cost,
            type=CreditTransactionType.REFUND,
            description="Refund for failed parsing",
            metadata={"operation": f"vision_parse_{category.value}", **attempts.summary()},
        )
    except Exception as e:
        logger.error(
            f"All attempts failed and the refund of {cost} credits failed | "
            f"user_id={request.user_id}, {type(e).__name__}: {e} | {attempts.summary()}"
        )
    else:
        logger.error(f"All attempts failed, refunded {cost} credits | {attempts.summary()}")

    raise state.last_error
