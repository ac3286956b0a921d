"""Progress events emitted while an import runs."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ImportProgressStep(str, Enum):
    """Workflow steps, in emission order."""

    VALIDATING = "validating"
    PARSING = "parsing"
    MATCHING = "matching"
    PERSISTING = "persisting"
    COMPLETED = "completed"
    ERROR = "error"

    def __str__(self) -> str:
        return self.value


class ImportProgressEvent(BaseModel):
    """A transient progress notification. Never persisted."""

    model_config = ConfigDict(frozen=True)

    step: ImportProgressStep
    message: str
    progress: float | None = Field(default=None, ge=0.0, le=1.0)
    step_number: int | None = None
    total_steps: int | None = None
    metadata: dict[str, Any] | None = None
