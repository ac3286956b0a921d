"""Reference import domains built on ImportWorkflow."""

from docimport.services.body_measurements import (
    BodyMeasurementsImportStrategy,
    InMemoryMeasurementRepository,
    MeasurementRepository,
    StoredMeasurement,
)
from docimport.services.workout import (
    CatalogExercise,
    ExerciseCatalog,
    ExerciseMatcher,
    InMemoryExerciseCatalog,
    InMemoryProgramRepository,
    ProgramRepository,
    WorkoutImportStrategy,
)

__all__ = [
    # Body measurements
    "BodyMeasurementsImportStrategy",
    "InMemoryMeasurementRepository",
    "MeasurementRepository",
    "StoredMeasurement",
    # Workout
    "CatalogExercise",
    "ExerciseCatalog",
    "ExerciseMatcher",
    "InMemoryExerciseCatalog",
    "InMemoryProgramRepository",
    "ProgramRepository",
    "WorkoutImportStrategy",
]
