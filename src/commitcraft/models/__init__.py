"""Data models for commitcraft."""

from commitcraft.models.analysis_models import (
    CodeSmell,
    ComplexityTier,
    DiffAnalysis,
    PreflightChecks,
    RefactorSuggestion,
    SecurityFinding,
    Severity,
    VersionBump,
)
from commitcraft.models.diff_models import (
    DiffDocument,
    FileChange,
    FileStatus,
    LineChange,
    LineOp,
)
from commitcraft.models.event_models import ProgressEvent, ProgressStage
from commitcraft.models.llm_models import (
    BuiltPrompt,
    CostCoefficients,
    GenerationParameters,
    GenerationRequest,
    GenerationUsage,
    ModelConfig,
)
from commitcraft.models.record_models import (
    CommitFormat,
    CommitMessageRecord,
    EnhancementResult,
    FeedbackAck,
    FeedbackRating,
    Sentiment,
    Tone,
)

__all__ = [
    "BuiltPrompt",
    "CodeSmell",
    "CommitFormat",
    "CommitMessageRecord",
    "ComplexityTier",
    "CostCoefficients",
    "DiffAnalysis",
    "DiffDocument",
    "EnhancementResult",
    "FeedbackAck",
    "FeedbackRating",
    "FileChange",
    "FileStatus",
    "GenerationParameters",
    "GenerationRequest",
    "GenerationUsage",
    "LineChange",
    "LineOp",
    "ModelConfig",
    "PreflightChecks",
    "ProgressEvent",
    "ProgressStage",
    "RefactorSuggestion",
    "SecurityFinding",
    "Sentiment",
    "Severity",
    "Tone",
    "VersionBump",
]
