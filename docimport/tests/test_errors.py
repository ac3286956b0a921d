"""Tests for docimport.core.errors module.

Tests the error handling infrastructure:
- Exception families and their categories
- classify_error for library and builtin exceptions
- AttemptFailure and AttemptLog records
"""

import asyncio

import pytest
from pydantic import BaseModel, ValidationError

from docimport.core.errors import (
    AttemptFailure,
    AttemptLog,
    ConfigurationError,
    EmptyResponseError,
    ErrorCategory,
    ExtractionTimeoutError,
    ImportPipelineError,
    ImportValidationError,
    InsufficientCreditsError,
    UnsupportedMediaTypeError,
    attempt_failure,
    classify_error,
    error_message,
)


class _Strict(BaseModel):
    value: int


def _validation_error() -> ValidationError:
    with pytest.raises(ValidationError) as info:
        _Strict(value="not a number")
    return info.value


# =============================================================================
# Exceptions
# =============================================================================


class TestExceptions:
    """Tests for the exception classes."""

    def test_insufficient_credits_message(self):
        error = InsufficientCreditsError(3)
        assert str(error) == "Insufficient credits. Required: 3"
        assert error.required == 3

    def test_empty_response_default_message(self):
        assert str(EmptyResponseError()) == "AI returned empty response"

    def test_timeout_message(self):
        error = ExtractionTimeoutError(600.0)
        assert str(error) == "AI call timed out after 600s"
        assert error.timeout_seconds == 600.0

    def test_unsupported_media(self):
        error = UnsupportedMediaTypeError("audio/mpeg")
        assert "audio/mpeg" in str(error)

    @pytest.mark.parametrize("error_class", [
        ImportValidationError,
        ConfigurationError,
        EmptyResponseError,
    ])
    def test_all_are_pipeline_errors(self, error_class):
        assert issubclass(error_class, ImportPipelineError)


# =============================================================================
# classify_error
# =============================================================================


class TestClassifyError:
    """Tests for classify_error."""

    @pytest.mark.parametrize("error,category", [
        (ImportValidationError("x"), ErrorCategory.VALIDATION),
        (ConfigurationError("x"), ErrorCategory.CONFIGURATION),
        (InsufficientCreditsError(1), ErrorCategory.ADMISSION),
        (UnsupportedMediaTypeError("x/y"), ErrorCategory.UNSUPPORTED_MEDIA),
        (EmptyResponseError(), ErrorCategory.LLM_EMPTY),
        (ExtractionTimeoutError(1), ErrorCategory.TIMEOUT),
        (asyncio.TimeoutError(), ErrorCategory.TIMEOUT),
        (ConnectionError("reset"), ErrorCategory.LLM_API),
        (KeyError("x"), ErrorCategory.UNKNOWN),
    ])
    def test_categories(self, error, category):
        assert classify_error(error) == category

    def test_validation_error_is_parse_failure(self):
        assert classify_error(_validation_error()) == ErrorCategory.LLM_PARSE

    def test_error_message_falls_back_to_class_name(self):
        assert error_message(RuntimeError()) == "RuntimeError"
        assert error_message(RuntimeError("boom")) == "boom"


# =============================================================================
# Attempt records
# =============================================================================


class TestAttemptLog:
    """Tests for AttemptFailure and AttemptLog."""

    def test_attempt_failure_from_exception(self):
        original = ConnectionError("reset")
        failure = attempt_failure(original, model="primary", attempt=0, file_category="pdf")
        assert failure.category == ErrorCategory.LLM_API
        assert failure.message == "reset"
        assert failure.original_error is original
        assert str(failure) == "llm_api: reset | model=primary | attempt=1 | file_category=pdf"

    def test_to_dict_omits_original_error(self):
        failure = AttemptFailure(category=ErrorCategory.TIMEOUT, message="slow", model="m", attempt=2)
        data = failure.to_dict()
        assert data["category"] == "timeout"
        assert "original_error" not in data

    def test_summary(self):
        log = AttemptLog()
        log.add(attempt_failure(ConnectionError("a"), "primary", 0))
        log.add(attempt_failure(EmptyResponseError(), "fallback", 1))
        log.add(attempt_failure(ConnectionError("b"), "fallback", 2))

        assert log.failure_count == 3
        assert log.models_tried == ["primary", "fallback"]
        assert log.summary() == {
            "failed_attempts": 3,
            "models_tried": ["primary", "fallback"],
            "errors_by_category": {"llm_api": 2, "llm_empty": 1},
        }
        assert len(log.to_dict()["failures"]) == 3
