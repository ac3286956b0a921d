"""Media type router - picks the handler for an uploaded payload.

Dispatch is a pure function of the media type and the set of configured
handlers. First match wins, comparison is case-insensitive:

1. image/*                      -> image
2. application/pdf              -> pdf
3. csv / excel / spreadsheet    -> spreadsheet
4. anything else                -> document, then fallback
5. no handler left              -> UnsupportedMediaTypeError
"""

from dataclasses import dataclass, fields
from typing import Awaitable, Callable, Generic, TypeVar

from docimport.core.config import MimeTypes
from docimport.core.errors import UnsupportedMediaTypeError
from docimport.pydantic_models.import_models import FileCategory

T = TypeVar("T")

MimeHandler = Callable[[str, str], Awaitable[T]]
"""Async handler receiving (content, media_type)."""


@dataclass(frozen=True)
class MimeRouterHandlers(Generic[T]):
    """The five optional handler slots."""

    image: MimeHandler | None = None
    pdf: MimeHandler | None = None
    spreadsheet: MimeHandler | None = None
    document: MimeHandler | None = None
    fallback: MimeHandler | None = None

    @classmethod
    def uniform(cls, handler: MimeHandler) -> "MimeRouterHandlers[T]":
        """Bind the same handler to every slot."""
        return cls(**{f.name: handler for f in fields(cls)})


def is_image(media_type: str) -> bool:
    return media_type.lower().startswith("image/")


def is_pdf(media_type: str) -> bool:
    return media_type.lower() == MimeTypes.PDF


def is_spreadsheet(media_type: str) -> bool:
    """True for CSV and Office/OpenDocument spreadsheet media types."""
    lowered = media_type.lower()
    if lowered == MimeTypes.CSV or lowered in MimeTypes.SPREADSHEET:
        return True
    return any(hint in lowered for hint in MimeTypes.SPREADSHEET_HINTS)


def classify_media_type(media_type: str) -> FileCategory:
    """Map a media type to the category used for model and credit selection."""
    if is_image(media_type):
        return FileCategory.IMAGE
    if is_pdf(media_type):
        return FileCategory.PDF
    if is_spreadsheet(media_type):
        return FileCategory.SPREADSHEET
    return FileCategory.DOCUMENT


def select_handler(handlers: MimeRouterHandlers[T], media_type: str) -> tuple[str, MimeHandler]:
    """Return (slot name, handler) for a media type without invoking it.

    Raises:
        UnsupportedMediaTypeError: If no configured slot accepts the type.
    """
    if is_image(media_type) and handlers.image:
        return "image", handlers.image
    if is_pdf(media_type) and handlers.pdf:
        return "pdf", handlers.pdf
    if is_spreadsheet(media_type) and handlers.spreadsheet:
        return "spreadsheet", handlers.spreadsheet
    if handlers.document:
        return "document", handlers.document
    if handlers.fallback:
        return "fallback", handlers.fallback
    raise UnsupportedMediaTypeError(media_type)


class MimeRouter(Generic[T]):
    """Callable router over a fixed handler set.

    Usage:
        router = create_mime_router(MimeRouterHandlers(pdf=parse_pdf, fallback=parse_any))
        parsed = await router(content_base64, "application/pdf")
    """

    def __init__(self, handlers: MimeRouterHandlers[T]):
        self.handlers = handlers

    def route(self, media_type: str) -> str:
        """Name of the slot that would handle media_type."""
        slot, _ = select_handler(self.handlers, media_type)
        return slot

    async def __call__(self, content: str, media_type: str) -> T:
        _, handler = select_handler(self.handlers, media_type)
        return await handler(content, media_type)


def create_mime_router(handlers: MimeRouterHandlers[T]) -> MimeRouter[T]:
    return MimeRouter(handlers)
