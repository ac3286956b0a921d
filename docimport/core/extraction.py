"""Extraction core - one structured-generation call for one payload.

Two paths:
- Vision: the payload travels inline as a data URL next to the instruction
  (images as image_url parts, other binaries as file parts).
- Text: text/* and spreadsheet payloads are decoded and embedded in the
  prompt, truncated to ExtractionLimits.MAX_TEXT_CHARS characters.

A text-path payload that is not valid UTF-8, or that decodes to something
starting with "PK" (a zipped xlsx/ods mis-tagged as text), is re-routed to
the vision path. That re-route happens at most once per call.

No retry, fallback or metering here; see guarded_extract.
"""

import base64
import logging
import re
from typing import Any, TypeVar

from pydantic import BaseModel

from docimport.core.config import ExtractionLimits, MimeTypes
from docimport.core.content_router import is_image, is_spreadsheet
from docimport.core.errors import EmptyResponseError
from docimport.core.llm_client import StructuredClient

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

_DATA_URL_PREFIX = re.compile(r"^data:[^;]+;base64,")


def strip_data_url_prefix(content: str) -> str:
    """Return the bare base64 payload of a data URL (no-op for plain base64)."""
    return _DATA_URL_PREFIX.sub("", content, count=1)


def to_data_url(content_base64: str, media_type: str) -> str:
    return f"data:{media_type};base64,{strip_data_url_prefix(content_base64)}"


def uses_text_path(media_type: str) -> bool:
    """True for media types whose payload is embedded as text in the prompt."""
    return media_type.lower().startswith("text/") or is_spreadsheet(media_type)


def decode_base64_text(content_base64: str) -> str:
    """Decode a base64 payload as strict UTF-8.

    Raises:
        ValueError: If the payload is not base64 or not valid UTF-8
            (binascii.Error and UnicodeDecodeError are both ValueErrors).
    """
    raw = base64.b64decode(strip_data_url_prefix(content_base64))
    return raw.decode("utf-8", errors="strict")


def build_text_prompt(prompt: str, text: str) -> str:
    """Embed decoded text under the instruction, clipped to MAX_TEXT_CHARS."""
    return f"{prompt}\n\nDATA:\n```\n{text[:ExtractionLimits.MAX_TEXT_CHARS]}\n```"


def build_vision_messages(prompt: str, content_base64: str, media_type: str) -> list[dict[str, Any]]:
    """User message carrying the instruction and the inline payload."""
    data_url = to_data_url(content_base64, media_type)
    if is_image(media_type):
        file_part = {"type": "image_url", "image_url": {"url": data_url}}
    else:
        file_part = {"type": "file", "file": {"file_data": data_url}}
    return [
        {
            "role": "user",
            "content": [
                {"type": "text", "text": prompt},
                file_part,
            ],
        }
    ]


async def _complete(
    client: StructuredClient,
    messages: list[dict[str, Any]],
    schema: type[T],
    model_id: str,
    api_key: str | None,
    category: str,
) -> T:
    result = await client.complete_structured(
        model=model_id,
        messages=messages,
        response_model=schema,
        api_key=api_key,
        category=category,
    )
    if result is None:
        raise EmptyResponseError()
    return result


async def extract_from_inline_content(
    client: StructuredClient,
    content_base64: str,
    media_type: str,
    prompt: str,
    schema: type[T],
    model_id: str,
    api_key: str | None = None,
    category: str = "",
) -> T:
    """Vision path: send the payload inline and wait for the validated object."""
    messages = build_vision_messages(prompt, content_base64, media_type)
    return await _complete(client, messages, schema, model_id, api_key, category)


async def extract_from_text(
    client: StructuredClient,
    content_base64: str,
    media_type: str,
    prompt: str,
    schema: type[T],
    model_id: str,
    api_key: str | None = None,
    category: str = "",
) -> T:
    """Text path: decode, truncate and embed the payload in the prompt.

    Binary payloads (undecodable, or starting with the ZIP signature) go to
    the vision path with the original content and media type instead.
    """
    try:
        text = decode_base64_text(content_base64)
    except ValueError as e:
        logger.debug(f"Payload typed {media_type} is not UTF-8 text ({type(e).__name__}), using vision path")
        return await extract_from_inline_content(
            client, content_base64, media_type, prompt, schema, model_id, api_key, category
        )

    if text.startswith(MimeTypes.ZIP_SIGNATURE):
        logger.debug(f"Payload typed {media_type} is a ZIP container, using vision path")
        return await extract_from_inline_content(
            client, content_base64, media_type, prompt, schema, model_id, api_key, category
        )

    if len(text) > ExtractionLimits.MAX_TEXT_CHARS:
        logger.debug(f"Truncating {len(text)} characters to {ExtractionLimits.MAX_TEXT_CHARS}")

    messages = [{"role": "user", "content": build_text_prompt(prompt, text)}]
    return await _complete(client, messages, schema, model_id, api_key, category)


async def extract_structured(
    client: StructuredClient,
    content_base64: str,
    media_type: str,
    prompt: str,
    schema: type[T],
    model_id: str,
    api_key: str | None = None,
    category: str = "",
) -> T:
    """Extract a schema instance from one payload with one model.

    Args:
        client: Structured-generation provider.
        content_base64: Base64 payload, optionally a data URL.
        media_type: Declared media type; selects text or vision path.
        prompt: Domain instruction.
        schema: Pydantic model the output must validate against.
        model_id: Model to call.
        api_key: Provider key.
        category: File category, forwarded for usage tracking.

    Raises:
        EmptyResponseError: If the model produced no object.
        ExtractionTimeoutError: If the call timed out.
        Provider and validation errors propagate unchanged.
    """
    if uses_text_path(media_type):
        return await extract_from_text(
            client, content_base64, media_type, prompt, schema, model_id, api_key, category
        )
    return await extract_from_inline_content(
        client, content_base64, media_type, prompt, schema, model_id, api_key, category
    )
