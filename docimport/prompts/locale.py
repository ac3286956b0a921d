"""Locale handling shared by the domain prompts."""

LANGUAGE_NAMES: dict[str, str] = {
    "en": "English",
    "it": "Italian",
    "es": "Spanish",
    "fr": "French",
    "de": "German",
    "pt": "Portuguese",
}


def language_instruction(locale: str) -> str:
    """Sentence telling the model which language to use for free text.

    Unknown locales are passed through as-is ("nl-BE" -> "nl-BE").
    """
    base = locale.split("-")[0].split("_")[0].lower()
    language = LANGUAGE_NAMES.get(base, locale)
    return (
        f"Write free-text fields (notes, descriptions) in {language}. "
        "Keep names exactly as written in the source."
    )
