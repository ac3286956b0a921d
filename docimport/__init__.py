"""AI-assisted document import pipeline.

Turns an uploaded file (image, PDF, spreadsheet, document) into a validated
domain object with a structured-extraction model, meters the credit cost,
retries across a fallback model, and hands the result to a domain strategy.

Architecture:
    core/       - routing, extraction, guarded extraction, credits, progress, logging
    prompts/    - domain prompt templates
    services/   - reference domains (body measurements, workout programs)
    workflow.py - ImportWorkflow + ImportStrategy

Usage:
    from docimport import create_import_workflow
    from docimport.services import BodyMeasurementsImportStrategy, InMemoryMeasurementRepository

    workflow = create_import_workflow(
        BodyMeasurementsImportStrategy(InMemoryMeasurementRepository()),
        user_id,
        config_source=EnvironmentConfigSource(),
        ledger=ledger,
    )
    result = await workflow.run(files, user_id)

CLI:
    docimport scan.pdf --user u1 --credits 10
"""

from docimport.workflow import (
    ImportContext,
    ImportStrategy,
    ImportWorkflow,
    create_import_workflow,
    validate_files,
)
from docimport.pydantic_models import (
    FileCategory,
    ImportFile,
    ImportOptions,
    ImportProgressEvent,
    ImportProgressStep,
    ImportResult,
)

__all__ = [
    # Workflow
    "ImportContext",
    "ImportStrategy",
    "ImportWorkflow",
    "create_import_workflow",
    "validate_files",
    # Models
    "FileCategory",
    "ImportFile",
    "ImportOptions",
    "ImportProgressEvent",
    "ImportProgressStep",
    "ImportResult",
]
