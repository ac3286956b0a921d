"""Prompt for extracting workout programs from spreadsheets, documents and images."""

from docimport.prompts.locale import language_instruction

WORKOUT_PROMPT = """You are reading a strength training program.
The source may be a coach's spreadsheet (one sheet or column block per week),
a document, or a photo of a printed plan.

Extract the full program as weeks -> days -> exercises.

RULES:
- Number weeks and days from 1 in the order they appear.
- Keep exercise names exactly as written, including abbreviations. Put
  equipment or grip details (e.g. "close grip", "DB") in variant.
- sets is an integer. reps may be a number or a range string such as "8-10".
- weight may be a number in kg or a string such as "70-75%" or "RPE 8".
- Put percentages of 1RM in intensity_percent and RPE values in rpe.
- Rest in seconds ("2'" -> 120, "90s" -> 90).
- If a week describes how load or volume changes from the previous week,
  copy that text into progression_notes.
- Leave a field empty when the source does not show it. Never invent exercises.
"""


def build_workout_prompt(locale: str = "en", preserve_progressions: bool = True) -> str:
    prompt = WORKOUT_PROMPT
    if not preserve_progressions:
        prompt += "- Ignore week-to-week progression notes.\n"
    return f"{prompt}\n{language_instruction(locale)}"
