from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from commitcraft.models.analysis_models import DiffAnalysis
from commitcraft.models.record_models import CommitFormat


@dataclass(frozen=True)
class EnhancementContext:
    """Read-only inputs shared by every stage of one enhancement run."""

    preferred_format: CommitFormat = CommitFormat.CONVENTIONAL
    diff_text: str = ""
    analysis: DiffAnalysis | None = None


@dataclass
class StageOutput:
    message: str
    applied: bool = False
    warnings: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)


class EnhancementStage(ABC):
    """One pluggable step of the enhancement chain.

    A stage is a pure function from (message, context) to StageOutput. It
    may raise; the enhancer treats any exception as "no change".
    """

    #: Label recorded in post_processing_steps when the stage applies.
    name: str = ""
    #: Preferences attribute that toggles the stage.
    preference: str = ""

    @abstractmethod
    def apply(self, message: str, context: EnhancementContext) -> StageOutput:
        """Transform or classify the message."""
