"""History record and enhancement result models."""

import uuid
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from commitcraft.models.analysis_models import VersionBump


class FeedbackRating(str, Enum):
    GOOD = "good"
    BAD = "bad"
    EDITED = "edited"


class Sentiment(str, Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class Tone(str, Enum):
    FORMAL = "formal"
    INFORMAL = "informal"
    TECHNICAL = "technical"


class CommitFormat(str, Enum):
    CONVENTIONAL = "conventional"
    JIRA = "jira"
    SIMPLE = "simple"


def _new_record_id() -> str:
    return f"rec-{uuid.uuid4().hex[:12]}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EnhancementResult(BaseModel):
    """Output of the enhancement chain, merged into a CommitMessageRecord."""

    model_config = ConfigDict(frozen=True)

    message: str
    warnings: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
    applied_steps: list[str] = Field(default_factory=list)
    sentiment: Sentiment | None = None
    tone: Tone | None = None
    format_valid: bool | None = None  # None when format validation is disabled
    version_bump: VersionBump | None = None  # None when no analysis was available


class CommitMessageRecord(BaseModel):
    """One generated commit message.

    Append-only: raw_message and enhanced_message are fixed at creation.
    Only the feedback and edit fields change afterwards, always through
    model_copy().
    """

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    id: str = Field(default_factory=_new_record_id)
    created_at: datetime = Field(default_factory=_utcnow)
    session_id: str | None = None
    sequence: int | None = None

    raw_message: str
    enhanced_message: str

    diff_fingerprint: str
    model_id: str
    temperature: float | None = None
    generation_time_ms: int = 0
    cost_estimate_usd: float = 0.0
    prompt_truncated: bool = False

    post_processing_steps: list[str] = Field(default_factory=list)
    sentiment: Sentiment | None = None
    tone: Tone | None = None
    conventional_commit_valid: bool | None = None
    version_bump: VersionBump | None = None
    warnings: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)

    user_edited: bool = False
    edited_message: str | None = None  # The user's replacement for enhanced_message
    feedback: FeedbackRating | None = None
    feedback_comment: str | None = None

    @property
    def final_message(self) -> str:
        """The user's edit when there is one, else the enhanced message."""
        return self.edited_message if self.edited_message is not None else self.enhanced_message


class FeedbackAck(BaseModel):
    model_config = ConfigDict(frozen=True)

    record_id: str
    accepted: bool
    rating: FeedbackRating | None = None
    message: str = ""
