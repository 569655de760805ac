"""Runs the enhancement stages over a generated commit message."""

import logging

from commitcraft.config import Preferences
from commitcraft.enhancement.base import EnhancementContext, EnhancementStage
from commitcraft.enhancement.exceptions import EnhancementError
from commitcraft.enhancement.stages import default_stages
from commitcraft.models.analysis_models import DiffAnalysis
from commitcraft.models.record_models import EnhancementResult

logger = logging.getLogger(__name__)


class MessageEnhancer:
    """Applies an ordered chain of stages to a commit message.

    Each stage is toggled by the Preferences attribute it names. A stage that
    raises is logged and treated as if it made no change, so enhancement
    never fails the whole generation.
    """

    def __init__(self, stages: list[EnhancementStage] | None = None) -> None:
        self.stages = default_stages() if stages is None else list(stages)

    def enhance(
        self,
        message: str,
        preferences: Preferences,
        diff_text: str = "",
        analysis: DiffAnalysis | None = None,
    ) -> EnhancementResult:
        """Run every enabled stage in order.

        Args:
            message: Raw text produced by the model.
            preferences: Stage toggles and preferred commit format.
            diff_text: Diff the message describes.
            analysis: Optional analysis of that diff.

        Returns:
            EnhancementResult. With every stage disabled the message is
            returned unchanged and applied_steps is empty.
        """
        context = EnhancementContext(
            preferred_format=preferences.preferred_format,
            diff_text=diff_text,
            analysis=analysis,
        )
        current = message
        warnings: list[str] = []
        suggestions: list[str] = []
        applied: list[str] = []
        metadata: dict = {}

        for stage in self.stages:
            if stage.preference and not getattr(preferences, stage.preference, True):
                continue
            try:
                output = stage.apply(current, context)
            except EnhancementError as exc:
                logger.warning("Enhancement stage '%s' failed: %s", stage.name, exc)
                continue
            except Exception:
                logger.exception("Enhancement stage '%s' raised unexpectedly", stage.name)
                continue

            current = output.message
            warnings.extend(output.warnings)
            suggestions.extend(output.suggestions)
            metadata.update(output.metadata)
            if output.applied:
                applied.append(stage.name)

        return EnhancementResult(
            message=current,
            warnings=warnings,
            suggestions=suggestions,
            applied_steps=applied,
            sentiment=metadata.get("sentiment"),
            tone=metadata.get("tone"),
            format_valid=metadata.get("format_valid"),
            version_bump=metadata.get("version_bump"),
        )
