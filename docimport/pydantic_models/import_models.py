"""Request and result models shared by every import domain.

- ImportFile: one uploaded file (base64 content + declared metadata)
- ImportOptions: per-call options read by domain prompt builders/processors
- ImportResult: base result shape; domains subclass it
- FileCategory: the four categories used to pick model and credit cost
"""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class FileCategory(str, Enum):
    """File-type category used to select per-category model/credit configuration."""

    IMAGE = "image"
    PDF = "pdf"
    DOCUMENT = "document"
    SPREADSHEET = "spreadsheet"

    def __str__(self) -> str:
        return self.value


class ImportFile(BaseModel):
    """A single file supplied to an import call.

    Example:
        {
            "name": "inbody_march.pdf",
            "media_type": "application/pdf",
            "content": "JVBERi0xLjcK...",
            "size": 182044
        }
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Original file name")
    media_type: str | None = Field(
        default=None,
        description="Declared media type; routing treats a missing value as application/octet-stream",
    )
    content: str = Field(
        description="Base64 payload, optionally prefixed with a data:<mime>;base64, header"
    )
    size: int | None = Field(default=None, ge=0, description="Declared size in bytes")
    sheet_index: int | None = Field(
        default=None, ge=0, description="Advisory sheet index for spreadsheet payloads"
    )
    sheet_name: str | None = Field(
        default=None, description="Advisory sheet name for spreadsheet payloads"
    )


class ImportOptions(BaseModel):
    """Options for one import call.

    The core never reads these; they are passed through to the strategy's
    prompt builder and processor.
    """

    model_config = ConfigDict(frozen=True)

    mode: Literal["auto", "review"] = "auto"
    locale: str = "en"
    match_threshold: float = Field(default=0.8, ge=0.0, le=1.0)
    preserve_progressions: bool = True


class ImportResult(BaseModel):
    """Base result returned once per import run."""

    model_config = ConfigDict(frozen=True)

    success: bool
    errors: list[str] | None = None
    warnings: list[str] | None = None
