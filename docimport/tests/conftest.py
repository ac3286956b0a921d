"""Pytest configuration and shared fixtures.

Provides reusable test fixtures for:
- Scripted structured-generation client
- Static model configuration and in-memory credit ledger
- Sample files and extraction results
"""

import base64
import os
from unittest.mock import AsyncMock, patch

import pytest

# Use litellm's bundled model cost map; the remote fetch hangs offline.
os.environ.setdefault("LITELLM_LOCAL_MODEL_COST_MAP", "True")

from docimport.core.config import LLM_PROVIDER
from docimport.core.credits import InMemoryCreditLedger
from docimport.core.import_logger import reset_loggers
from docimport.core.model_config import ImportModelsConfig, StaticConfigSource
from docimport.pydantic_models import ImportedBodyMeasurements, ImportedMeasurement, ImportFile

USER_ID = "user-1"
PRIMARY_PDF_MODEL = "openrouter/google/gemini-2.5-flash"
FALLBACK_MODEL = "openrouter/openai/gpt-4o"


def b64(data: bytes | str) -> str:
    if isinstance(data, str):
        data = data.encode("utf-8")
    return base64.b64encode(data).decode("ascii")


# =============================================================================
# Scripted structured client
# =============================================================================


class ScriptedClient:
    """StructuredClient that replays a script of results and exceptions.

    The last entry is repeated once the script runs out.
    """

    def __init__(self, *script):
        self.script = list(script)
        self.calls: list[dict] = []

    async def complete_structured(self, model, messages, response_model, api_key=None, category=""):
        self.calls.append({
            "model": model,
            "messages": messages,
            "response_model": response_model,
            "api_key": api_key,
            "category": category,
        })
        index = min(len(self.calls) - 1, len(self.script) - 1)
        outcome = self.script[index]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    @property
    def models(self) -> list[str]:
        return [c["model"] for c in self.calls]


@pytest.fixture
def scripted_client():
    """Factory for ScriptedClient instances."""
    return ScriptedClient


# =============================================================================
# Configuration and ledger
# =============================================================================


@pytest.fixture
def models_config():
    return ImportModelsConfig(
        image_model="openrouter/google/gemini-2.5-flash",
        pdf_model=PRIMARY_PDF_MODEL,
        document_model="openrouter/google/gemini-2.5-pro",
        spreadsheet_model="openrouter/openai/gpt-4o-mini",
        fallback_model=FALLBACK_MODEL,
        credit_costs={"image": 2, "pdf": 3, "document": 2, "spreadsheet": 1},
        max_retries=2,
        retry_delay_base_ms=1000,
    )


@pytest.fixture
def config_source(models_config):
    return StaticConfigSource(models=models_config, api_keys={LLM_PROVIDER: "sk-test"})


@pytest.fixture
def ledger():
    return InMemoryCreditLedger(balances={USER_ID: 10})


@pytest.fixture
def no_sleep():
    """Patch out retry backoff sleeps and expose the mock."""
    with patch("docimport.core.guarded_extract.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        yield mock_sleep


@pytest.fixture(autouse=True)
def _reset_loggers():
    yield
    reset_loggers()


# =============================================================================
# Sample data
# =============================================================================


@pytest.fixture
def measurements():
    return ImportedBodyMeasurements(
        source_name="InBody export",
        measurements=[
            ImportedMeasurement(date="2024-03-01", weight=80.5, body_fat=18.2),
            ImportedMeasurement(date="2024-03-08", weight=80.1, waist=84.0),
        ],
    )


@pytest.fixture
def pdf_file():
    return ImportFile(
        name="inbody_march.pdf",
        media_type="application/pdf",
        content=b64(b"%PDF-1.7\n%fake pdf body"),
        size=1024,
    )


@pytest.fixture
def csv_file():
    return ImportFile(
        name="measurements.csv",
        media_type="text/csv",
        content=b64("date,weight\n2024-03-01,80.5\n"),
        size=29,
    )


@pytest.fixture
def user_id():
    return USER_ID


@pytest.fixture
def encode():
    """base64-encode bytes or text."""
    return b64
