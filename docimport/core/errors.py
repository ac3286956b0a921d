"""Structured error types for the import pipeline.

Provides:
- Exception classes for each failure family (validation, configuration,
  admission, routing, extraction)
- AttemptFailure records for failed extraction attempts
- AttemptLog aggregate for one guarded extraction
"""

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import ValidationError


class ErrorCategory(Enum):
    """Categories of import errors."""
    VALIDATION = "validation"               # Rejected input files
    CONFIGURATION = "configuration"         # Missing model, fallback, cost or key
    ADMISSION = "admission"                 # Not enough credits
    UNSUPPORTED_MEDIA = "unsupported_media" # No handler for the media type
    LLM_API = "llm_api"                     # Provider/network errors
    LLM_PARSE = "llm_parse"                 # Output failed schema validation
    LLM_EMPTY = "llm_empty"                 # Model returned no object
    TIMEOUT = "timeout"                     # Model call exceeded the time limit
    UNKNOWN = "unknown"                     # Unclassified errors


class ImportPipelineError(Exception):
    """Base class for errors raised by the import pipeline."""

    category: ErrorCategory = ErrorCategory.UNKNOWN


class ImportValidationError(ImportPipelineError):
    """Input files rejected before any external call."""

    category = ErrorCategory.VALIDATION


class ConfigurationError(ImportPipelineError):
    """Model routing configuration is incomplete."""

    category = ErrorCategory.CONFIGURATION


class InsufficientCreditsError(ImportPipelineError):
    """The user cannot pay for the extraction."""

    category = ErrorCategory.ADMISSION

    def __init__(self, required: int):
        super().__init__(f"Insufficient credits. Required: {required}")
        self.required = required


class UnsupportedMediaTypeError(ImportPipelineError):
    """No router handler accepts the media type."""

    category = ErrorCategory.UNSUPPORTED_MEDIA

    def __init__(self, media_type: str):
        super().__init__(f"Unsupported media type: {media_type}")
        self.media_type = media_type


class EmptyResponseError(ImportPipelineError):
    """The model finished without producing a structured object."""

    category = ErrorCategory.LLM_EMPTY

    def __init__(self, message: str = "AI returned empty response"):
        super().__init__(message)


class ExtractionTimeoutError(ImportPipelineError):
    """A structured-generation call exceeded its time limit."""

    category = ErrorCategory.TIMEOUT

    def __init__(self, timeout_seconds: float):
        super().__init__(f"AI call timed out after {timeout_seconds:g}s")
        self.timeout_seconds = timeout_seconds


def classify_error(error: BaseException) -> ErrorCategory:
    """Map any exception raised during extraction to an ErrorCategory."""
    if isinstance(error, ImportPipelineError):
        return error.category
    if isinstance(error, ValidationError):
        return ErrorCategory.LLM_PARSE
    if isinstance(error, (asyncio.TimeoutError, TimeoutError)):
        return ErrorCategory.TIMEOUT
    if isinstance(error, (ConnectionError, OSError)) or type(error).__module__.startswith(
        ("litellm", "openai", "httpx", "instructor")
    ):
        return ErrorCategory.LLM_API
    return ErrorCategory.UNKNOWN


def error_message(error: BaseException) -> str:
    """User-facing message for an exception (falls back to the class name)."""
    return str(error) or type(error).__name__


@dataclass
class AttemptFailure:
    """One failed extraction attempt with context."""

    category: ErrorCategory
    message: str
    model: str
    attempt: int                   # 0-indexed
    file_category: str | None = None
    original_error: BaseException | None = None
    context: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        parts = [f"{self.category.value}: {self.message}", f"model={self.model}", f"attempt={self.attempt + 1}"]
        if self.file_category:
            parts.append(f"file_category={self.file_category}")
        return " | ".join(parts)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "category": self.category.value,
            "message": self.message,
            "model": self.model,
            "attempt": self.attempt,
            "file_category": self.file_category,
            "context": self.context,
        }


@dataclass
class AttemptLog:
    """Failed attempts collected across one guarded extraction."""

    failures: list[AttemptFailure] = field(default_factory=list)

    def add(self, failure: AttemptFailure):
        self.failures.append(failure)

    @property
    def failure_count(self) -> int:
        return len(self.failures)

    @property
    def models_tried(self) -> list[str]:
        """Distinct models in the order they were first tried."""
        seen: list[str] = []
        for failure in self.failures:
            if failure.model not in seen:
                seen.append(failure.model)
        return seen

    def summary(self) -> dict:
        """Get summary statistics."""
        by_category: dict[str, int] = {}
        for failure in self.failures:
            cat = failure.category.value
            by_category[cat] = by_category.get(cat, 0) + 1

        return {
            "failed_attempts": self.failure_count,
            "models_tried": self.models_tried,
            "errors_by_category": by_category,
        }

    def to_dict(self) -> dict:
        return {
            "failures": [f.to_dict() for f in self.failures],
            "summary": self.summary(),
        }


def attempt_failure(
    error: BaseException,
    model: str,
    attempt: int,
    file_category: str | None = None,
) -> AttemptFailure:
    """Create an AttemptFailure from a raised exception."""
    return AttemptFailure(
        category=classify_error(error),
        message=error_message(error),
        model=model,
        attempt=attempt,
        file_category=file_category,
        original_error=error,
    )
