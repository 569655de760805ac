"""Post-generation enhancement chain."""

from commitcraft.enhancement.base import EnhancementContext, EnhancementStage, StageOutput
from commitcraft.enhancement.enhancer import MessageEnhancer
from commitcraft.enhancement.exceptions import EnhancementError
from commitcraft.enhancement.stages import (
    EmojiSuggestionStage,
    FormatValidationStage,
    GrammarCorrectionStage,
    SentimentStage,
    ToneStage,
    VersionBumpStage,
    classify_sentiment,
    classify_tone,
    default_stages,
)

__all__ = [
    "EmojiSuggestionStage",
    "EnhancementContext",
    "EnhancementError",
    "EnhancementStage",
    "FormatValidationStage",
    "GrammarCorrectionStage",
    "MessageEnhancer",
    "SentimentStage",
    "StageOutput",
    "ToneStage",
    "VersionBumpStage",
    "classify_sentiment",
    "classify_tone",
    "default_stages",
]
