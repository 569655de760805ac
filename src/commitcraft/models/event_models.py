"""Progress events emitted to subscribers."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ProgressStage(str, Enum):
    ANALYSIS_STARTED = "analysis-started"
    ANALYSIS_COMPLETE = "analysis-complete"
    GENERATION_PROGRESS = "generation-progress"
    GENERATION_COMPLETE = "generation-complete"
    ENHANCEMENT_COMPLETE = "enhancement-complete"
    PERSISTED = "persisted"
    ERROR = "error"


TERMINAL_STAGES = frozenset({ProgressStage.PERSISTED, ProgressStage.ERROR})


class ProgressEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    stage: ProgressStage
    payload: dict[str, Any] = Field(default_factory=dict)
    sequence: int
    session_id: str

    @property
    def is_terminal(self) -> bool:
        return self.stage in TERMINAL_STAGES
