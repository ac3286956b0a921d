"""Centralized configuration for the import pipeline.

All limits, timeouts and provider settings are documented here.
Each constant includes:
- What it controls
- Where it is used
"""

import os
from typing import Final


# =============================================================================
# LLM Provider Configuration
# =============================================================================
#
# Models are addressed through litellm, so any provider prefix litellm
# understands works. The default deployment routes everything through
# OpenRouter ("openrouter/<vendor>/<model>").
#
# LLM_PROVIDER and the site headers below are read once, at import.
#
# =============================================================================

LLM_PROVIDER: Final[str] = os.environ.get("LLM_PROVIDER", "openrouter")
"""Provider whose API key is used for structured-generation calls."""

API_KEY_ENV_VARS: Final[dict[str, str]] = {
    "openrouter": "OPENROUTER_API_KEY",
    "openai": "OPENAI_API_KEY",
    "azure": "AZURE_API_KEY",
}

API_KEY_ENV_VAR: Final[str] = API_KEY_ENV_VARS.get(LLM_PROVIDER, "OPENROUTER_API_KEY")
"""Environment variable holding the API key for LLM_PROVIDER."""

IMPORT_MODELS_FEATURE: Final[str] = "import_models"
"""Feature key under which the per-category import model configuration lives.

Used by: model_config.py:resolve_model_config()
"""


# Import Limits

class ImportLimits:
    """Limits enforced by the workflow before any external call.

    Used by: workflow.py:validate_files()
    """

    MAX_FILES: Final[int] = 5
    """Maximum files accepted by a single import request.

    Only the first file is parsed today; the rest are validated and ignored.
    """

    MAX_FILE_SIZE: Final[int] = 8 * 1024 * 1024
    """Maximum declared size of a single file, in bytes (8 MiB)."""

    DEFAULT_CREDIT_COST: Final[int] = 1
    """Credit cost used by configuration sources that omit a category cost."""


# Extraction Limits

class ExtractionLimits:
    """Constants for the extraction core.

    Used by: extraction.py, llm_client.py
    """

    MAX_TEXT_CHARS: Final[int] = 50_000
    """Characters of decoded text sent on the text path.

    Truncation is character based and may cut mid-word. Longer documents
    are clipped silently.
    """

    TIMEOUT_SECONDS: Final[float] = 600.0
    """Upper bound for a single structured-generation call (10 minutes).

    A timeout is an ordinary extraction failure and takes part in the
    retry/fallback loop.
    """

    MAX_OUTPUT_TOKENS: Final[int] = 65_000
    """Completion token ceiling passed to the model."""


# Retry Configuration

class RetryConfig:
    """Defaults for the guarded extraction loop.

    Backoff is exponential on the attempt index: base, 2*base, 4*base ...
    Configuration sources may override both values per deployment.

    Used by: model_config.py:resolve_model_config()
    """

    DEFAULT_MAX_RETRIES: Final[int] = 2
    """Retries after the first attempt (3 attempts in total)."""

    DEFAULT_RETRY_DELAY_MS: Final[int] = 1000
    """Base delay before the first retry, in milliseconds."""


# LLM Call Configuration

class LLMConfig:
    """Default parameters for structured-generation calls."""

    TEMPERATURE: Final[float] = 0.0
    """Sampling temperature. 0.0 keeps extractions reproducible."""

    STRUCTURED_MAX_RETRIES: Final[int] = 1
    """Attempts instructor makes per call.

    Retry and fallback are owned by guarded_extract, so instructor gets a
    single attempt.
    """

    SITE_URL: Final[str] = os.environ.get("OPENROUTER_SITE_URL", "https://docimport.local")
    """Sent as HTTP-Referer to OpenRouter for attribution."""

    SITE_NAME: Final[str] = os.environ.get("OPENROUTER_SITE_NAME", "docimport")
    """Sent as X-Title to OpenRouter for attribution."""


# Media Types

class MimeTypes:
    """Media type constants used for routing and path selection.

    Used by: content_router.py, extraction.py
    """

    PDF: Final[str] = "application/pdf"
    CSV: Final[str] = "text/csv"
    OCTET_STREAM: Final[str] = "application/octet-stream"

    SPREADSHEET: Final[tuple[str, ...]] = (
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",  # xlsx
        "application/vnd.ms-excel",  # xls
        "application/vnd.oasis.opendocument.spreadsheet",  # ods
    )
    """Canonical Office/OpenDocument spreadsheet MIME strings."""

    SPREADSHEET_HINTS: Final[tuple[str, ...]] = ("spreadsheet", "excel", "csv")
    """Substrings that mark a media type as spreadsheet-like."""

    SUPPORTED: Final[tuple[str, ...]] = (
        "image/jpeg",
        "image/png",
        "image/webp",
        "image/heic",
        "application/pdf",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",  # docx
        "application/msword",  # doc
        "application/vnd.oasis.opendocument.text",  # odt
        "text/csv",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",  # xlsx
        "application/vnd.ms-excel",  # xls
        "application/vnd.oasis.opendocument.spreadsheet",  # ods
    )
    """Media types the upload surface advertises. Routing does not reject others."""

    ZIP_SIGNATURE: Final[str] = "PK"
    """Leading characters of a ZIP local file header (xlsx, ods, docx)."""
