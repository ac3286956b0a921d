"""Workout program import - coach spreadsheets, documents, photos of plans.

After extraction, every exercise name is matched against the exercise
catalog with rapidfuzz. In review mode an import with unmatched exercises
stops before saving and returns suggestions instead.
"""

import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from rapidfuzz import fuzz, process, utils

from docimport.core.import_logger import get_logger
from docimport.prompts import build_workout_prompt
from docimport.pydantic_models.import_models import ImportOptions
from docimport.pydantic_models.workout import ImportedWorkoutProgram, WorkoutImportResult
from docimport.workflow import ImportStrategy

logger = logging.getLogger(__name__)

MAX_SUGGESTIONS = 3


@dataclass(frozen=True)
class CatalogExercise:
    id: str
    name: str
    aliases: tuple[str, ...] = ()


class ExerciseCatalog(ABC):
    @abstractmethod
    async def list_exercises(self, locale: str) -> list[CatalogExercise]:
        """Catalog entries with names in the given locale."""


class InMemoryExerciseCatalog(ExerciseCatalog):
    """Single-locale catalog backed by a list."""

    def __init__(self, exercises: list[CatalogExercise]):
        self.exercises = list(exercises)

    async def list_exercises(self, locale: str) -> list[CatalogExercise]:
        return list(self.exercises)


class ProgramRepository(ABC):
    @abstractmethod
    async def save(self, user_id: str, program: ImportedWorkoutProgram) -> str:
        """Store a program and return its id."""


class InMemoryProgramRepository(ProgramRepository):
    def __init__(self):
        self.programs: dict[str, tuple[str, ImportedWorkoutProgram]] = {}

    async def save(self, user_id: str, program: ImportedWorkoutProgram) -> str:
        program_id = uuid.uuid4().hex
        self.programs[program_id] = (user_id, program)
        return program_id


@dataclass(frozen=True)
class ExerciseMatch:
    name: str
    catalog_exercise_id: str | None
    confidence: float
    suggestions: list[str] = field(default_factory=list)

    @property
    def matched(self) -> bool:
        return self.catalog_exercise_id is not None


class ExerciseMatcher:
    """Fuzzy matcher over catalog names and aliases.

    Scores are rapidfuzz token_sort_ratio on normalized strings, scaled to
    0..1 and compared with the import's match_threshold.
    """

    def __init__(self, exercises: list[CatalogExercise]):
        self._choices: list[str] = []
        self._ids: list[str] = []
        for exercise in exercises:
            for label in (exercise.name, *exercise.aliases):
                self._choices.append(label)
                self._ids.append(exercise.id)

    def match(self, name: str, threshold: float) -> ExerciseMatch:
        if not self._choices:
            return ExerciseMatch(name=name, catalog_exercise_id=None, confidence=0.0)

        # Exact match first
        normalized = utils.default_process(name)
        for i, choice in enumerate(self._choices):
            if utils.default_process(choice) == normalized:
                return ExerciseMatch(name=name, catalog_exercise_id=self._ids[i], confidence=1.0)

        result = process.extractOne(
            name,
            self._choices,
            scorer=fuzz.token_sort_ratio,
            processor=utils.default_process,
        )
        if result is None:
            return ExerciseMatch(name=name, catalog_exercise_id=None, confidence=0.0)

        matched_value, score, idx = result
        confidence = score / 100
        if confidence >= threshold:
            logger.debug(f"Matched '{name}' -> '{matched_value}' (score={score:.0f})")
            return ExerciseMatch(name=name, catalog_exercise_id=self._ids[idx], confidence=confidence)

        suggestions = []
        for choice, _, _ in process.extract(
            name,
            self._choices,
            scorer=fuzz.token_sort_ratio,
            processor=utils.default_process,
            limit=MAX_SUGGESTIONS * 2,
        ):
            if choice not in suggestions:
                suggestions.append(choice)
        logger.debug(f"Best match '{matched_value}' scored {score:.0f}, below threshold {threshold:.2f}")
        return ExerciseMatch(
            name=name,
            catalog_exercise_id=None,
            confidence=confidence,
            suggestions=suggestions[:MAX_SUGGESTIONS],
        )


@dataclass
class ProcessedWorkout:
    program: ImportedWorkoutProgram
    matched_count: int
    unmatched: list[str]
    suggestions: dict[str, list[str]]
    needs_review: bool = False


class WorkoutImportStrategy(ImportStrategy[ImportedWorkoutProgram, ProcessedWorkout]):
    name = "workout-import"
    schema = ImportedWorkoutProgram
    result_model = WorkoutImportResult

    def __init__(self, catalog: ExerciseCatalog, repository: ProgramRepository):
        self.catalog = catalog
        self.repository = repository
        self.logger = get_logger(self.name)

    def build_prompt(self, options: ImportOptions) -> str:
        return build_workout_prompt(options.locale, options.preserve_progressions)

    async def process_parsed(
        self,
        parsed: ImportedWorkoutProgram,
        user_id: str,
        options: ImportOptions,
    ) -> ProcessedWorkout:
        program = parsed.model_copy(deep=True)

        if not options.preserve_progressions:
            for week in program.weeks:
                week.progression_notes = None

        matcher = ExerciseMatcher(await self.catalog.list_exercises(options.locale))
        matches: dict[str, ExerciseMatch] = {}
        matched_count = 0

        for exercise in program.iter_exercises():
            match = matches.get(exercise.name)
            if match is None:
                match = matcher.match(exercise.name, options.match_threshold)
                matches[exercise.name] = match

            exercise.catalog_exercise_id = match.catalog_exercise_id
            exercise.match_confidence = round(match.confidence, 4)
            exercise.not_found = not match.matched
            if match.matched:
                matched_count += 1

        unmatched = [name for name, m in matches.items() if not m.matched]
        self.logger.info(
            "Exercise matching done",
            user_id=user_id,
            matched=matched_count,
            unmatched=len(unmatched),
            threshold=options.match_threshold,
        )

        return ProcessedWorkout(
            program=program,
            matched_count=matched_count,
            unmatched=unmatched,
            suggestions={name: matches[name].suggestions for name in unmatched},
            needs_review=options.mode == "review" and bool(unmatched),
        )

    async def persist(self, processed: ProcessedWorkout, user_id: str) -> dict[str, Any]:
        summary = {
            "matched_exercises": processed.matched_count,
            "unmatched_exercises": processed.unmatched,
            "suggestions": processed.suggestions,
        }

        if processed.needs_review:
            return {
                **summary,
                "needs_review": True,
                "warnings": [f"{len(processed.unmatched)} exercises need review before saving"],
            }

        program_id = await self.repository.save(user_id, processed.program)
        self.logger.info("Program saved", user_id=user_id, program_id=program_id)
        return {
            **summary,
            "program_id": program_id,
            "warnings": [f"Exercise not found in catalog: {name}" for name in processed.unmatched],
        }

    def create_error_result(self, errors: list[str]) -> dict[str, Any]:
        return {"matched_exercises": 0, "unmatched_exercises": []}
