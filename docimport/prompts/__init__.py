"""Prompt templates for the import domains.

Each module holds the instruction text and a builder that adapts it to the
import options (locale).
"""

from docimport.prompts.body_measurements_prompt import (
    BODY_MEASUREMENTS_PROMPT,
    build_body_measurements_prompt,
)
from docimport.prompts.workout_prompt import WORKOUT_PROMPT, build_workout_prompt
from docimport.prompts.locale import language_instruction

__all__ = [
    # Body measurements
    "BODY_MEASUREMENTS_PROMPT",
    "build_body_measurements_prompt",
    # Workout
    "WORKOUT_PROMPT",
    "build_workout_prompt",
    # Shared
    "language_instruction",
]
