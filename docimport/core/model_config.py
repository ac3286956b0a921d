"""Model routing configuration for guarded extraction.

A config source supplies, per deployment, the model for each file category,
one fallback model, a credit cost per category and optional retry settings.
resolve_model_config turns that into a ModelRoutingConfig for one file
category. It is resolved per request; nothing is cached between calls.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Protocol

from pydantic import BaseModel, Field

from docimport.core.config import (
    API_KEY_ENV_VARS,
    IMPORT_MODELS_FEATURE,
    LLM_PROVIDER,
    ImportLimits,
    RetryConfig,
)
from docimport.core.errors import ConfigurationError
from docimport.pydantic_models.import_models import FileCategory


class ImportModelsConfig(BaseModel):
    """Per-deployment import model configuration.

    Example:
        {
            "pdf_model": "openrouter/google/gemini-2.5-flash",
            "fallback_model": "openrouter/openai/gpt-4o",
            "credit_costs": {"image": 2, "pdf": 3, "document": 2, "spreadsheet": 1},
            "max_retries": 2
        }
    """

    image_model: str | None = None
    pdf_model: str | None = None
    document_model: str | None = None
    spreadsheet_model: str | None = None
    fallback_model: str | None = None
    credit_costs: dict[str, int] = Field(default_factory=dict)
    max_retries: int | None = Field(default=None, ge=0)
    retry_delay_base_ms: int | None = Field(default=None, ge=0)

    def model_for(self, category: FileCategory) -> str | None:
        return getattr(self, f"{FileCategory(category).value}_model")


class ImportConfigSource(Protocol):
    """Where import model configuration and provider keys come from."""

    async def get_config(self, feature_key: str) -> ImportModelsConfig | None: ...

    async def get_api_key(self, provider: str) -> str | None: ...


@dataclass(frozen=True)
class ModelRoutingConfig:
    """Resolved configuration for one file category.

    Fixed for the whole retry loop of one extraction request.
    """

    primary_model: str
    fallback_model: str
    api_key: str
    credit_cost: int
    max_retries: int = RetryConfig.DEFAULT_MAX_RETRIES
    retry_delay_base_ms: int = RetryConfig.DEFAULT_RETRY_DELAY_MS

    def __post_init__(self):
        if self.credit_cost < 0:
            raise ConfigurationError(f"Credit cost must be >= 0, got {self.credit_cost}")
        if self.max_retries < 0:
            raise ConfigurationError(f"max_retries must be >= 0, got {self.max_retries}")
        if self.retry_delay_base_ms < 0:
            raise ConfigurationError(f"retry_delay_base_ms must be >= 0, got {self.retry_delay_base_ms}")


async def resolve_model_config(
    config_source: ImportConfigSource,
    file_category: FileCategory,
    provider: str = LLM_PROVIDER,
) -> ModelRoutingConfig:
    """Resolve models, key, cost and retry settings for a file category.

    Raises:
        ConfigurationError: For a missing API key, missing import model
            configuration, missing category model, missing fallback model or
            missing category credit cost. Each has its own message.
    """
    category = FileCategory(file_category)

    api_key = await config_source.get_api_key(provider)
    if not api_key:
        raise ConfigurationError(f"API key for provider '{provider}' is not configured")

    config = await config_source.get_config(IMPORT_MODELS_FEATURE)
    if config is None:
        raise ConfigurationError("Import model configuration not found")

    model = config.model_for(category)
    if not model:
        raise ConfigurationError(f"No model configured for file type '{category.value}'")

    if not config.fallback_model:
        raise ConfigurationError("No fallback model configured")

    credit_cost = config.credit_costs.get(category.value)
    if credit_cost is None:
        raise ConfigurationError(f"No credit cost configured for file type '{category.value}'")

    return ModelRoutingConfig(
        primary_model=model,
        fallback_model=config.fallback_model,
        api_key=api_key,
        credit_cost=int(credit_cost),
        max_retries=(
            config.max_retries if config.max_retries is not None else RetryConfig.DEFAULT_MAX_RETRIES
        ),
        retry_delay_base_ms=(
            config.retry_delay_base_ms
            if config.retry_delay_base_ms is not None
            else RetryConfig.DEFAULT_RETRY_DELAY_MS
        ),
    )


class StaticConfigSource:
    """In-memory config source (tests, embedding, fixed deployments)."""

    def __init__(
        self,
        models: ImportModelsConfig | None = None,
        api_keys: Mapping[str, str] | None = None,
    ):
        self.models = models
        self.api_keys = dict(api_keys or {})

    async def get_config(self, feature_key: str) -> ImportModelsConfig | None:
        if feature_key != IMPORT_MODELS_FEATURE:
            return None
        return self.models

    async def get_api_key(self, provider: str) -> str | None:
        return self.api_keys.get(provider)


class EnvironmentConfigSource:
    """Config source reading DOCIMPORT_* variables and provider keys.

    Variables:
        DOCIMPORT_IMAGE_MODEL, DOCIMPORT_PDF_MODEL, DOCIMPORT_DOCUMENT_MODEL,
        DOCIMPORT_SPREADSHEET_MODEL, DOCIMPORT_FALLBACK_MODEL
        DOCIMPORT_CREDIT_COST_<IMAGE|PDF|DOCUMENT|SPREADSHEET>
            (defaults to ImportLimits.DEFAULT_CREDIT_COST)
        DOCIMPORT_MAX_RETRIES, DOCIMPORT_RETRY_DELAY_MS
        OPENROUTER_API_KEY (or the variable for the configured provider)

    The environment is read on every call, so values loaded later with
    python-dotenv are picked up. That does not hold for LLM_PROVIDER,
    API_KEY_ENV_VAR and the OpenRouter site headers (OPENROUTER_SITE_URL,
    OPENROUTER_SITE_NAME): docimport.core.config reads them once at import,
    and importing docimport imports it. Put those in the process
    environment, or call load_dotenv() before the first docimport import.
    """

    PREFIX = "DOCIMPORT_"

    def __init__(self, environ: Mapping[str, str] | None = None):
        self._environ = environ

    @property
    def environ(self) -> Mapping[str, str]:
        return self._environ if self._environ is not None else os.environ

    def _get(self, name: str) -> str | None:
        value = self.environ.get(f"{self.PREFIX}{name}")
        return value.strip() if value and value.strip() else None

    def _get_int(self, name: str) -> int | None:
        value = self._get(name)
        if value is None:
            return None
        try:
            return int(value)
        except ValueError as e:
            raise ConfigurationError(f"{self.PREFIX}{name} must be an integer, got {value!r}") from e

    async def get_config(self, feature_key: str) -> ImportModelsConfig | None:
        if feature_key != IMPORT_MODELS_FEATURE:
            return None

        models = {f"{c.value}_model": self._get(f"{c.value.upper()}_MODEL") for c in FileCategory}
        fallback = self._get("FALLBACK_MODEL")
        if fallback is None and not any(models.values()):
            return None

        credit_costs = {}
        for category in FileCategory:
            cost = self._get_int(f"CREDIT_COST_{category.value.upper()}")
            credit_costs[category.value] = cost if cost is not None else ImportLimits.DEFAULT_CREDIT_COST

        return ImportModelsConfig(
            **models,
            fallback_model=fallback,
            credit_costs=credit_costs,
            max_retries=self._get_int("MAX_RETRIES"),
            retry_delay_base_ms=self._get_int("RETRY_DELAY_MS"),
        )

    async def get_api_key(self, provider: str) -> str | None:
        env_var = API_KEY_ENV_VARS.get(provider, f"{provider.upper()}_API_KEY")
        return self.environ.get(env_var) or None
