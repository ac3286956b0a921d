"""Import workflow - validate, parse, process and persist one import request.

The fixed skeleton lives in ImportWorkflow. Domain behaviour is supplied by
an ImportStrategy composed into it:

    workflow = ImportWorkflow(
        strategy=BodyMeasurementsImportStrategy(repository),
        parse_context=parse_context,
        context=ImportContext(request_id="req-1", user_id="user-1"),
        progress=CallbackProgressSink(print),
    )
    result = await workflow.run(files, "user-1", ImportOptions(locale="it"))

run() never raises. Every failure becomes a result with success=False.
"""

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

from docimport.core.config import ImportLimits, MimeTypes
from docimport.core.content_router import MimeRouterHandlers, create_mime_router
from docimport.core.cost_tracker import usage_scope
from docimport.core.credits import CreditLedger
from docimport.core.errors import ImportValidationError, error_message
from docimport.core.guarded_extract import ProgressCallback
from docimport.core.import_logger import ImportRun, get_logger
from docimport.core.llm_client import StructuredClient
from docimport.core.model_config import ImportConfigSource
from docimport.core.parse_context import ParseContext, TrackedParseContext, create_vision_parse_context
from docimport.core.progress import ProgressSink, emit_safely
from docimport.pydantic_models.import_models import ImportFile, ImportOptions, ImportResult
from docimport.pydantic_models.progress import ImportProgressEvent, ImportProgressStep

TParsed = TypeVar("TParsed", bound=BaseModel)
TProcessed = TypeVar("TProcessed")

TOTAL_STEPS = 4

# Progress fraction per workflow step
STEP_PROGRESS: dict[ImportProgressStep, float] = {
    ImportProgressStep.VALIDATING: 0.1,
    ImportProgressStep.PARSING: 0.25,
    ImportProgressStep.MATCHING: 0.5,
    ImportProgressStep.PERSISTING: 0.75,
    ImportProgressStep.COMPLETED: 1.0,
    ImportProgressStep.ERROR: 0.0,
}

STEP_NUMBERS: dict[ImportProgressStep, int] = {
    ImportProgressStep.VALIDATING: 1,
    ImportProgressStep.PARSING: 2,
    ImportProgressStep.MATCHING: 3,
    ImportProgressStep.PERSISTING: 4,
}


@dataclass(frozen=True)
class ImportContext:
    """Correlation pair attached to every log line of a run."""

    user_id: str
    request_id: str = field(default_factory=lambda: uuid.uuid4().hex)


class ImportStrategy(ABC, Generic[TParsed, TProcessed]):
    """Domain hooks of the import workflow.

    Subclasses set:
        name: Logger name for the domain.
        schema: Pydantic model the extraction must produce.
        result_model: ImportResult subclass returned by the workflow.
    """

    name: str = "import"
    schema: type[TParsed]
    result_model: type[ImportResult] = ImportResult

    @abstractmethod
    def build_prompt(self, options: ImportOptions) -> str:
        """Instruction sent to the extraction model."""

    @abstractmethod
    async def process_parsed(self, parsed: TParsed, user_id: str, options: ImportOptions) -> TProcessed:
        """Normalize, filter or match the extracted object."""

    @abstractmethod
    async def persist(self, processed: TProcessed, user_id: str) -> dict[str, Any]:
        """Store processed data and return the domain fields of the result.

        A "warnings" entry, if present, is merged into the result warnings.
        """

    @abstractmethod
    def create_error_result(self, errors: list[str]) -> dict[str, Any]:
        """Domain fields of a failed result."""


def validate_files(files: list[ImportFile] | None) -> None:
    """Check count and declared sizes before any external call.

    Raises:
        ImportValidationError: Empty list, too many files, or a file too large.
    """
    if not files:
        raise ImportValidationError("At least one file is required")

    if len(files) > ImportLimits.MAX_FILES:
        raise ImportValidationError(f"At most {ImportLimits.MAX_FILES} files are allowed")

    for file in files:
        if file.size and file.size > ImportLimits.MAX_FILE_SIZE:
            max_mb = round(ImportLimits.MAX_FILE_SIZE / (1024 * 1024))
            raise ImportValidationError(f"File too large: {file.name} (max {max_mb}MB)")


def parsing_progress_callback(sink: ProgressSink | None) -> ProgressCallback:
    """Adapt guarded-extraction progress to parsing events.

    The attempt fraction is mapped into the parsing band, between the
    parsing and matching step values.
    """
    start = STEP_PROGRESS[ImportProgressStep.PARSING]
    span = STEP_PROGRESS[ImportProgressStep.MATCHING] - start

    def on_progress(message: str, fraction: float):
        emit_safely(
            sink,
            ImportProgressEvent(
                step=ImportProgressStep.PARSING,
                message=message,
                progress=start + span * max(0.0, min(fraction, 1.0)),
                metadata={"attempt_progress": fraction},
            ),
        )

    return on_progress


class ImportWorkflow(Generic[TParsed, TProcessed]):
    """Runs one strategy against a parse context."""

    def __init__(
        self,
        strategy: ImportStrategy[TParsed, TProcessed],
        parse_context: ParseContext[TParsed],
        context: ImportContext,
        progress: ProgressSink | None = None,
    ):
        self.strategy = strategy
        self.parse_context = parse_context
        self.context = context
        self.progress = progress
        self.logger = get_logger(strategy.name)

    def emit(self, step: ImportProgressStep, message: str, **metadata):
        step_number = STEP_NUMBERS.get(step)
        emit_safely(
            self.progress,
            ImportProgressEvent(
                step=step,
                message=message,
                progress=STEP_PROGRESS[step],
                step_number=step_number,
                total_steps=TOTAL_STEPS if step_number else None,
                metadata=metadata or None,
            ),
        )

    async def parse_files(self, files: list[ImportFile], options: ImportOptions) -> TParsed:
        """Route the first file to the parse context.

        Remaining files have been validated but are not parsed.
        """
        prompt = self.strategy.build_prompt(options)

        async def handler(content: str, media_type: str) -> TParsed:
            return await self.parse_context.parse(content, media_type, prompt)

        router = create_mime_router(MimeRouterHandlers.uniform(handler))

        file = files[0]
        if len(files) > 1:
            self.logger.debug(
                "Only the first file is parsed",
                request_id=self.context.request_id,
                parsed=file.name,
                ignored=[f.name for f in files[1:]],
            )
        return await router(file.content, file.media_type or MimeTypes.OCTET_STREAM)

    async def run(
        self,
        files: list[ImportFile],
        user_id: str,
        options: ImportOptions | None = None,
    ) -> ImportResult:
        """Run the import. Never raises."""
        options = options or ImportOptions()
        source = files[0].name if files else "import"
        run_log: ImportRun | None = None
        succeeded = False
        try:
            run_log = self.logger.start_import(source, request_id=self.context.request_id, user_id=user_id)
            self.emit(ImportProgressStep.VALIDATING, "Validating files...")
            validate_files(files)

            self.emit(ImportProgressStep.PARSING, "Parsing with AI...")
            with usage_scope(request_id=self.context.request_id, user_id=user_id):
                parsed = await self.parse_files(files, options)

            self.emit(ImportProgressStep.MATCHING, "Processing data...")
            processed = await self.strategy.process_parsed(parsed, user_id, options)

            self.emit(ImportProgressStep.PERSISTING, "Saving...")
            partial = dict(await self.strategy.persist(processed, user_id))

            warnings = list(partial.pop("warnings", None) or [])
            partial.pop("success", None)
            result = self.strategy.result_model(**partial, success=True, warnings=warnings)

            self.emit(ImportProgressStep.COMPLETED, "Import completed")
            succeeded = True
            return result
        except Exception as e:
            message = error_message(e)
            self.logger.error(
                "Import failed",
                exc=e,
                request_id=self.context.request_id,
                user_id=user_id,
            )
            errors = [message]
            self.emit(ImportProgressStep.ERROR, f"Error: {message}")
            return self._error_result(errors)
        finally:
            if run_log is not None:
                self.logger.end_import(run_log, success=succeeded)
            close = getattr(self.progress, "close", None)
            if callable(close):
                try:
                    close()
                except Exception as e:
                    self.logger.warning("Closing progress sink failed", error=error_message(e))

    def _error_result(self, errors: list[str]) -> ImportResult:
        try:
            partial = dict(self.strategy.create_error_result(errors))
            partial.pop("success", None)
            partial.pop("errors", None)
            return self.strategy.result_model(**partial, success=False, errors=errors)
        except Exception as e:
            self.logger.warning("Domain error result rejected, using base shape", error=error_message(e))
            return self.strategy.result_model(success=False, errors=errors)


def create_import_workflow(
    strategy: ImportStrategy[TParsed, TProcessed],
    user_id: str,
    *,
    config_source: ImportConfigSource,
    ledger: CreditLedger,
    client: StructuredClient | None = None,
    progress: ProgressSink | None = None,
    request_id: str | None = None,
) -> ImportWorkflow[TParsed, TProcessed]:
    """Wire a strategy to guarded extraction with tracked, progress-reporting parsing."""
    context = ImportContext(user_id=user_id, request_id=request_id or uuid.uuid4().hex)
    parse_context = TrackedParseContext(
        create_vision_parse_context(
            strategy.schema,
            user_id,
            config_source,
            ledger,
            client=client,
            on_progress=parsing_progress_callback(progress),
            request_id=context.request_id,
        ),
        request_id=context.request_id,
        user_id=user_id,
        logger_name=f"{strategy.name}-ai",
    )
    return ImportWorkflow(strategy, parse_context, context, progress=progress)
