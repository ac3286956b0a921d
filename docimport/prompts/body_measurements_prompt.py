"""Prompt for extracting body measurements from scans, exports and photos."""

from docimport.prompts.locale import language_instruction

BODY_MEASUREMENTS_PROMPT = """You are reading a body composition or body measurement record.
The source may be a smart-scale export, a body composition analyzer report
(InBody, Tanita), a spreadsheet kept by a coach, or a photo of handwritten notes.

Extract every dated measurement entry you can find.

RULES:
- One entry per measurement date. If the same date appears twice, merge the values.
- Dates as YYYY-MM-DD. If only day and month are given, infer the year from context.
- Use metric units: kg for weight, muscle and bone mass; cm for height and
  circumferences; percent for body fat and body water.
- Convert imperial values (lb, in) to metric and set measurement_unit to "metric".
- Leave a field empty when the source does not show it. Never guess a value.
- Put anything that does not fit a field in notes.
"""


def build_body_measurements_prompt(locale: str = "en") -> str:
    return f"{BODY_MEASUREMENTS_PROMPT}\n{language_instruction(locale)}"
