"""Intermediate schema for workout programs parsed from files.

Normalizes any source format (XLSX, CSV, DOCX, images) into one structure
before catalog matching and persistence.
"""

from pydantic import BaseModel, Field

from docimport.pydantic_models.import_models import ImportResult


class ImportedExercise(BaseModel):
    """One exercise as read from the document."""

    name: str = Field(description="Exercise name exactly as written")
    variant: str | None = None
    sets: int | None = Field(default=None, ge=0)
    reps: int | str | None = Field(default=None, description="Reps as a number or a range such as '8-10'")
    weight: float | str | None = Field(default=None, description="Load in kg, a number or a range")
    rest: int | None = Field(default=None, description="Rest in seconds")
    rpe: float | None = Field(default=None, ge=0, le=10)
    intensity_percent: float | None = Field(default=None, ge=0, le=100)
    tempo: str | None = None
    notes: str | None = None

    # Filled during catalog matching
    catalog_exercise_id: str | None = None
    match_confidence: float | None = Field(default=None, ge=0.0, le=1.0)
    not_found: bool = False


class ImportedDay(BaseModel):
    day_number: int = Field(ge=1)
    name: str | None = None
    exercises: list[ImportedExercise]
    notes: str | None = None


class ImportedWeek(BaseModel):
    week_number: int = Field(ge=1)
    name: str | None = None
    focus: str | None = None
    progression_notes: str | None = Field(
        default=None, description="How load or volume changes compared with the previous week"
    )
    days: list[ImportedDay]


class ImportedWorkoutProgram(BaseModel):
    """A complete program extracted from one document."""

    name: str = Field(description="Program name")
    description: str | None = None
    duration_weeks: int | None = Field(default=None, ge=1)
    weeks: list[ImportedWeek] = Field(min_length=1)

    def iter_exercises(self):
        for week in self.weeks:
            for day in week.days:
                yield from day.exercises


class WorkoutImportResult(ImportResult):
    program_id: str | None = None
    matched_exercises: int = 0
    unmatched_exercises: list[str] = Field(default_factory=list)
    needs_review: bool = Field(
        default=False, description="Review mode stopped before saving because some exercises were not matched"
    )
    suggestions: dict[str, list[str]] = Field(
        default_factory=dict, description="Closest catalog names for each unmatched exercise"
    )
