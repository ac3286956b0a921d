"""Parse contexts - the object the workflow hands each routed file to.

- VisionParseContext binds schema, user, config, ledger and client, and runs
  guarded_extract for each payload.
- TrackedParseContext wraps any context with request/response/failure logs
  carrying the (request_id, user_id) correlation pair.
"""

from typing import Any, Generic, Protocol, TypeVar

from pydantic import BaseModel

from docimport.core.content_router import classify_media_type
from docimport.core.credits import CreditLedger
from docimport.core.errors import error_message
from docimport.core.guarded_extract import ExtractionRequest, ProgressCallback, guarded_extract
from docimport.core.import_logger import get_logger
from docimport.core.llm_client import StructuredClient
from docimport.core.model_config import ImportConfigSource

T = TypeVar("T", bound=BaseModel)
T_co = TypeVar("T_co", covariant=True)


class ParseContext(Protocol[T_co]):
    async def parse(self, content: str, media_type: str, prompt: str) -> T_co: ...


class VisionParseContext(Generic[T]):
    """Parse context backed by guarded extraction."""

    def __init__(
        self,
        schema: type[T],
        user_id: str,
        config_source: ImportConfigSource,
        ledger: CreditLedger,
        client: StructuredClient | None = None,
        on_progress: ProgressCallback | None = None,
        credit_cost: int | None = None,
        model_id: str | None = None,
        request_id: str | None = None,
    ):
        self.schema = schema
        self.user_id = user_id
        self.config_source = config_source
        self.ledger = ledger
        self.client = client
        self.on_progress = on_progress
        self.credit_cost = credit_cost
        self.model_id = model_id
        self.request_id = request_id

    async def parse(self, content: str, media_type: str, prompt: str) -> T:
        request = ExtractionRequest(
            content_base64=content,
            media_type=media_type,
            prompt=prompt,
            schema=self.schema,
            user_id=self.user_id,
            file_category=classify_media_type(media_type),
            request_id=self.request_id,
            credit_cost=self.credit_cost,
            model_id=self.model_id,
            on_progress=self.on_progress,
        )
        return await guarded_extract(
            request,
            config_source=self.config_source,
            ledger=self.ledger,
            client=self.client,
        )


def create_vision_parse_context(
    schema: type[T],
    user_id: str,
    config_source: ImportConfigSource,
    ledger: CreditLedger,
    client: StructuredClient | None = None,
    on_progress: ProgressCallback | None = None,
    request_id: str | None = None,
) -> VisionParseContext[T]:
    return VisionParseContext(
        schema=schema,
        user_id=user_id,
        config_source=config_source,
        ledger=ledger,
        client=client,
        on_progress=on_progress,
        request_id=request_id,
    )


class TrackedParseContext(Generic[T]):
    """Logs every parse through a delegate context. Errors are re-raised."""

    def __init__(self, delegate: ParseContext[T], request_id: str, user_id: str, logger_name: str):
        self.delegate = delegate
        self.request_id = request_id
        self.user_id = user_id
        self.logger = get_logger(logger_name)

    async def parse(self, content: str, media_type: str, prompt: str) -> T:
        self.logger.info(
            "AI parse request",
            request_id=self.request_id,
            user_id=self.user_id,
            media_type=media_type,
            content_length=len(content) if content else 0,
        )
        try:
            result = await self.delegate.parse(content, media_type, prompt)
        except Exception as e:
            self.logger.warning(
                "AI parse failed",
                request_id=self.request_id,
                user_id=self.user_id,
                media_type=media_type,
                message=error_message(e),
            )
            raise

        self.logger.info(
            "AI parse response",
            request_id=self.request_id,
            user_id=self.user_id,
            media_type=media_type,
            **extract_result_metadata(result),
        )
        return result


def extract_result_metadata(result: Any) -> dict[str, int]:
    """Counts of list-valued top-level fields in a parse result.

    Week/day/exercise nesting is counted at every level, e.g.
    {"weeks": 4, "days": 12, "exercises": 60}.
    """
    if isinstance(result, BaseModel):
        data = result.model_dump()
    elif isinstance(result, dict):
        data = result
    else:
        return {}

    metadata: dict[str, int] = {}
    for key, value in data.items():
        if isinstance(value, list):
            metadata[key] = len(value)

    weeks = data.get("weeks")
    if isinstance(weeks, list):
        days = [d for w in weeks if isinstance(w, dict) for d in (w.get("days") or [])]
        metadata["days"] = len(days)
        metadata["exercises"] = sum(
            len(d.get("exercises") or []) for d in days if isinstance(d, dict)
        )
    return metadata
