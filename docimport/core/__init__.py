"""Core of the import pipeline: routing, extraction, metering, progress."""

from docimport.core.config import (
    LLM_PROVIDER,
    API_KEY_ENV_VAR,
    API_KEY_ENV_VARS,
    IMPORT_MODELS_FEATURE,
    ImportLimits,
    ExtractionLimits,
    RetryConfig,
    LLMConfig,
    MimeTypes,
)
from docimport.core.errors import (
    ErrorCategory,
    ImportPipelineError,
    ImportValidationError,
    ConfigurationError,
    InsufficientCreditsError,
    UnsupportedMediaTypeError,
    EmptyResponseError,
    ExtractionTimeoutError,
    AttemptFailure,
    AttemptLog,
    attempt_failure,
    classify_error,
)
from docimport.core.content_router import (
    MimeRouter,
    MimeRouterHandlers,
    classify_media_type,
    create_mime_router,
    select_handler,
)
from docimport.core.cost_tracker import CostTracker, ImportUsage, ModelCall, UsageScope, usage_scope
from docimport.core.import_logger import ImportLogger, get_logger, reset_loggers
from docimport.core.llm_client import LLMClient, StructuredClient
from docimport.core.extraction import (
    extract_from_inline_content,
    extract_from_text,
    extract_structured,
)
from docimport.core.model_config import (
    EnvironmentConfigSource,
    ImportConfigSource,
    ImportModelsConfig,
    ModelRoutingConfig,
    StaticConfigSource,
    resolve_model_config,
)
from docimport.core.credits import (
    CreditLedger,
    CreditTransaction,
    CreditTransactionType,
    InMemoryCreditLedger,
)
from docimport.core.guarded_extract import (
    ExtractionRequest,
    RetryState,
    guarded_extract,
    next_retry_state,
)
from docimport.core.progress import (
    CallbackProgressSink,
    NullProgressSink,
    ProgressChannel,
    ProgressSink,
)
from docimport.core.parse_context import (
    ParseContext,
    TrackedParseContext,
    VisionParseContext,
    create_vision_parse_context,
)

__all__ = [
    # Config
    "LLM_PROVIDER",
    "API_KEY_ENV_VAR",
    "API_KEY_ENV_VARS",
    "IMPORT_MODELS_FEATURE",
    "ImportLimits",
    "ExtractionLimits",
    "RetryConfig",
    "LLMConfig",
    "MimeTypes",
    # Errors
    "ErrorCategory",
    "ImportPipelineError",
    "ImportValidationError",
    "ConfigurationError",
    "InsufficientCreditsError",
    "UnsupportedMediaTypeError",
    "EmptyResponseError",
    "ExtractionTimeoutError",
    "AttemptFailure",
    "AttemptLog",
    "attempt_failure",
    "classify_error",
    # Routing
    "MimeRouter",
    "MimeRouterHandlers",
    "classify_media_type",
    "create_mime_router",
    "select_handler",
    # Usage and logging
    "CostTracker",
    "ImportUsage",
    "ModelCall",
    "UsageScope",
    "usage_scope",
    "ImportLogger",
    "get_logger",
    "reset_loggers",
    # Extraction
    "LLMClient",
    "StructuredClient",
    "extract_from_inline_content",
    "extract_from_text",
    "extract_structured",
    # Model config
    "EnvironmentConfigSource",
    "ImportConfigSource",
    "ImportModelsConfig",
    "ModelRoutingConfig",
    "StaticConfigSource",
    "resolve_model_config",
    # Credits
    "CreditLedger",
    "CreditTransaction",
    "CreditTransactionType",
    "InMemoryCreditLedger",
    # Guarded extraction
    "ExtractionRequest",
    "RetryState",
    "guarded_extract",
    "next_retry_state",
    # Progress
    "CallbackProgressSink",
    "NullProgressSink",
    "ProgressChannel",
    "ProgressSink",
    # Parse contexts
    "ParseContext",
    "TrackedParseContext",
    "VisionParseContext",
    "create_vision_parse_context",
]
