"""Pydantic models for the import pipeline.

Modules:
- import_models: ImportFile, ImportOptions, ImportResult, FileCategory
- progress: ImportProgressStep, ImportProgressEvent
- body_measurements: schema and result for the body measurements domain
- workout: schema and result for the workout program domain
"""

from docimport.pydantic_models.import_models import (
    FileCategory,
    ImportFile,
    ImportOptions,
    ImportResult,
)
from docimport.pydantic_models.progress import (
    ImportProgressEvent,
    ImportProgressStep,
)
from docimport.pydantic_models.body_measurements import (
    BodyMeasurementsImportResult,
    ImportedBodyMeasurements,
    ImportedMeasurement,
    MeasurementSourceMetadata,
)
from docimport.pydantic_models.workout import (
    ImportedDay,
    ImportedExercise,
    ImportedWeek,
    ImportedWorkoutProgram,
    WorkoutImportResult,
)

__all__ = [
    # Requests and results
    "FileCategory",
    "ImportFile",
    "ImportOptions",
    "ImportResult",
    # Progress
    "ImportProgressEvent",
    "ImportProgressStep",
    # Body measurements
    "BodyMeasurementsImportResult",
    "ImportedBodyMeasurements",
    "ImportedMeasurement",
    "MeasurementSourceMetadata",
    # Workout
    "ImportedDay",
    "ImportedExercise",
    "ImportedWeek",
    "ImportedWorkoutProgram",
    "WorkoutImportResult",
]
