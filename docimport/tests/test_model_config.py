"""Tests for docimport.core.model_config module.

Tests configuration resolution:
- Distinct ConfigurationError for each missing piece
- Retry defaults when the source omits them
- StaticConfigSource and EnvironmentConfigSource
"""

import pytest

from docimport.core.config import IMPORT_MODELS_FEATURE, LLM_PROVIDER, ImportLimits, RetryConfig
from docimport.core.errors import ConfigurationError
from docimport.core.model_config import (
    EnvironmentConfigSource,
    ImportModelsConfig,
    ModelRoutingConfig,
    StaticConfigSource,
    resolve_model_config,
)
from docimport.pydantic_models import FileCategory


# =============================================================================
# resolve_model_config
# =============================================================================


class TestResolveModelConfig:
    """Tests for resolve_model_config."""

    @pytest.mark.asyncio
    async def test_resolves_category(self, config_source, models_config):
        config = await resolve_model_config(config_source, FileCategory.PDF)
        assert config == ModelRoutingConfig(
            primary_model=models_config.pdf_model,
            fallback_model=models_config.fallback_model,
            api_key="sk-test",
            credit_cost=3,
            max_retries=2,
            retry_delay_base_ms=1000,
        )

    @pytest.mark.asyncio
    async def test_retry_defaults(self, models_config):
        source = StaticConfigSource(
            models=models_config.model_copy(update={"max_retries": None, "retry_delay_base_ms": None}),
            api_keys={LLM_PROVIDER: "sk"},
        )
        config = await resolve_model_config(source, FileCategory.IMAGE)
        assert config.max_retries == RetryConfig.DEFAULT_MAX_RETRIES
        assert config.retry_delay_base_ms == RetryConfig.DEFAULT_RETRY_DELAY_MS

    @pytest.mark.asyncio
    async def test_missing_api_key(self, models_config):
        source = StaticConfigSource(models=models_config)
        with pytest.raises(ConfigurationError, match="API key"):
            await resolve_model_config(source, FileCategory.PDF)

    @pytest.mark.asyncio
    async def test_missing_config(self):
        source = StaticConfigSource(models=None, api_keys={LLM_PROVIDER: "sk"})
        with pytest.raises(ConfigurationError, match="configuration not found"):
            await resolve_model_config(source, FileCategory.PDF)

    @pytest.mark.asyncio
    async def test_missing_category_model(self, models_config):
        source = StaticConfigSource(
            models=models_config.model_copy(update={"spreadsheet_model": None}),
            api_keys={LLM_PROVIDER: "sk"},
        )
        with pytest.raises(ConfigurationError, match="No model configured for file type 'spreadsheet'"):
            await resolve_model_config(source, FileCategory.SPREADSHEET)

    @pytest.mark.asyncio
    async def test_missing_fallback(self, models_config):
        source = StaticConfigSource(
            models=models_config.model_copy(update={"fallback_model": None}),
            api_keys={LLM_PROVIDER: "sk"},
        )
        with pytest.raises(ConfigurationError, match="fallback"):
            await resolve_model_config(source, FileCategory.PDF)

    @pytest.mark.asyncio
    async def test_missing_credit_cost(self, models_config):
        source = StaticConfigSource(
            models=models_config.model_copy(update={"credit_costs": {"image": 1}}),
            api_keys={LLM_PROVIDER: "sk"},
        )
        with pytest.raises(ConfigurationError, match="No credit cost configured for file type 'pdf'"):
            await resolve_model_config(source, FileCategory.PDF)

    @pytest.mark.asyncio
    async def test_zero_cost_is_valid(self, models_config):
        source = StaticConfigSource(
            models=models_config.model_copy(update={"credit_costs": {"pdf": 0}}),
            api_keys={LLM_PROVIDER: "sk"},
        )
        config = await resolve_model_config(source, FileCategory.PDF)
        assert config.credit_cost == 0

    def test_negative_values_rejected(self):
        with pytest.raises(ConfigurationError):
            ModelRoutingConfig(primary_model="a", fallback_model="b", api_key="k", credit_cost=-1)


# =============================================================================
# Config sources
# =============================================================================


class TestStaticConfigSource:
    """Tests for StaticConfigSource."""

    @pytest.mark.asyncio
    async def test_unknown_feature_returns_none(self, config_source):
        assert await config_source.get_config("other_feature") is None

    @pytest.mark.asyncio
    async def test_returns_models(self, config_source, models_config):
        assert await config_source.get_config(IMPORT_MODELS_FEATURE) is models_config


class TestEnvironmentConfigSource:
    """Tests for EnvironmentConfigSource."""

    @pytest.mark.asyncio
    async def test_reads_variables(self):
        source = EnvironmentConfigSource({
            "DOCIMPORT_PDF_MODEL": "openrouter/a",
            "DOCIMPORT_FALLBACK_MODEL": "openrouter/b",
            "DOCIMPORT_CREDIT_COST_PDF": "4",
            "DOCIMPORT_MAX_RETRIES": "1",
            "DOCIMPORT_RETRY_DELAY_MS": "250",
            "OPENROUTER_API_KEY": "sk-env",
        })
        config = await source.get_config(IMPORT_MODELS_FEATURE)
        assert config.pdf_model == "openrouter/a"
        assert config.image_model is None
        assert config.fallback_model == "openrouter/b"
        assert config.credit_costs["pdf"] == 4
        assert config.credit_costs["image"] == ImportLimits.DEFAULT_CREDIT_COST
        assert config.max_retries == 1
        assert config.retry_delay_base_ms == 250
        assert await source.get_api_key("openrouter") == "sk-env"

    @pytest.mark.asyncio
    async def test_no_models_means_no_config(self):
        source = EnvironmentConfigSource({"OPENROUTER_API_KEY": "sk"})
        assert await source.get_config(IMPORT_MODELS_FEATURE) is None

    @pytest.mark.asyncio
    async def test_bad_integer(self):
        source = EnvironmentConfigSource({
            "DOCIMPORT_PDF_MODEL": "openrouter/a",
            "DOCIMPORT_MAX_RETRIES": "many",
        })
        with pytest.raises(ConfigurationError, match="DOCIMPORT_MAX_RETRIES"):
            await source.get_config(IMPORT_MODELS_FEATURE)

    @pytest.mark.asyncio
    async def test_missing_key_is_none(self):
        assert await EnvironmentConfigSource({}).get_api_key("openrouter") is None

    @pytest.mark.asyncio
    async def test_reads_process_environment(self, monkeypatch):
        monkeypatch.setenv("DOCIMPORT_IMAGE_MODEL", "openrouter/img")
        config = await EnvironmentConfigSource().get_config(IMPORT_MODELS_FEATURE)
        assert config.image_model == "openrouter/img"

    @pytest.mark.asyncio
    async def test_variables_set_after_construction(self, monkeypatch):
        source = EnvironmentConfigSource()
        monkeypatch.setenv("DOCIMPORT_FALLBACK_MODEL", "openrouter/late")
        monkeypatch.setenv("OPENROUTER_API_KEY", "sk-late")
        config = await source.get_config(IMPORT_MODELS_FEATURE)
        assert config.fallback_model == "openrouter/late"
        assert await source.get_api_key("openrouter") == "sk-late"

    def test_models_config_lookup(self):
        config = ImportModelsConfig(document_model="openrouter/doc")
        assert config.model_for(FileCategory.DOCUMENT) == "openrouter/doc"
        assert config.model_for("pdf") is None
