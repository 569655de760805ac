"""Prompt construction."""

from commitcraft.prompting.prompt_builder import (
    DEFAULT_MAX_DIFF_CHARS,
    DEFAULT_PERSONA,
    PromptBuilder,
    strip_diff_noise,
)

__all__ = [
    "DEFAULT_MAX_DIFF_CHARS",
    "DEFAULT_PERSONA",
    "PromptBuilder",
    "strip_diff_noise",
]
