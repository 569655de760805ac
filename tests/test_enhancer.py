"""Tests for the enhancement stages and MessageEnhancer."""

import pytest

from commitcraft.analysis.diff_analyzer import DiffAnalyzer
from commitcraft.config import Preferences
from commitcraft.enhancement import (
    EmojiSuggestionStage,
    EnhancementContext,
    EnhancementError,
    EnhancementStage,
    FormatValidationStage,
    GrammarCorrectionStage,
    MessageEnhancer,
    SentimentStage,
    ToneStage,
    VersionBumpStage,
    classify_sentiment,
    classify_tone,
)
from commitcraft.models import CommitFormat, Sentiment, Tone, VersionBump

from conftest import BUTTON_RENAME_DIFF, MULTI_FILE_DIFF

GOOD_MESSAGE = "feat(ui): rename Button text prop to label"


class ExplodingStage(EnhancementStage):
    name = "exploding"
    preference = ""

    def apply(self, message, context):
        raise RuntimeError("stage bug")


class RejectingStage(EnhancementStage):
    name = "rejecting"
    preference = ""

    def apply(self, message, context):
        raise EnhancementError("cannot handle this message", self.name)


class TestFormatValidationStage:
    """Tests for FormatValidationStage."""

    def test_valid_conventional_subject(self):
        """Test that a well-formed conventional subject passes cleanly."""
        output = FormatValidationStage().apply(GOOD_MESSAGE, EnhancementContext())
        assert output.metadata["format_valid"] is True
        assert output.warnings == []
        assert output.message == GOOD_MESSAGE

    def test_non_conventional_subject(self):
        """Test that a free-form subject is flagged."""
        output = FormatValidationStage().apply("Updated the readme", EnhancementContext())
        assert output.metadata["format_valid"] is False
        assert any("conventional" in w for w in output.warnings)
        assert output.suggestions

    def test_long_subject_and_body_lines(self):
        """Test the subject and body length limits."""
        subject = "fix: " + "x" * 80
        body_line = "y" * 120
        output = FormatValidationStage().apply(f"{subject}\n\n{body_line}", EnhancementContext())
        assert output.metadata["format_valid"] is False
        assert f"Subject line is {len(subject)} characters (max 72)" in output.warnings
        assert "Line 3 is 120 characters (max 100)" in output.warnings

    def test_missing_blank_line_and_todo(self):
        """Test the body separator and TODO checks."""
        output = FormatValidationStage().apply("fix: parser\nTODO handle tabs", EnhancementContext())
        assert "Separate the subject from the body with a blank line" in output.warnings
        assert "Commit message contains a TODO" in output.warnings

    def test_jira_format(self):
        """Test validation against a ticket-key subject."""
        context = EnhancementContext(preferred_format=CommitFormat.JIRA)
        assert FormatValidationStage().apply("PROJ-123: add login", context).metadata["format_valid"] is True
        assert FormatValidationStage().apply(GOOD_MESSAGE, context).metadata["format_valid"] is False

    def test_unknown_format_raises(self):
        """Test that an unknown format is a stage error."""
        with pytest.raises(EnhancementError):
            FormatValidationStage().apply(GOOD_MESSAGE, EnhancementContext(preferred_format="haiku"))


class TestGrammarCorrectionStage:
    """Tests for GrammarCorrectionStage."""

    def test_spelling_and_imperative_mood(self):
        """Test that typos are fixed and a past-tense verb made imperative."""
        output = GrammarCorrectionStage().apply("Added retreive helper for teh cache", EnhancementContext())
        assert output.message == "Add retrieve helper for the cache"
        assert output.applied is True

    def test_imperative_after_type_prefix(self):
        """Test that the verb after `type(scope):` is rewritten."""
        output = GrammarCorrectionStage().apply("fix(api): fixed empty payloads", EnhancementContext())
        assert output.message == "fix(api): fix empty payloads"

    def test_clean_message_not_applied(self):
        """Test that an already-correct message reports no change."""
        output = GrammarCorrectionStage().apply(GOOD_MESSAGE, EnhancementContext())
        assert output.message == GOOD_MESSAGE
        assert output.applied is False

    def test_body_lines_untouched_by_mood_rewrite(self):
        """Test that only the subject verb is rewritten."""
        message = "fix: handle nulls\n\nAdded a guard clause."
        assert GrammarCorrectionStage().apply(message, EnhancementContext()).message == message


class TestEmojiSuggestionStage:
    """Tests for EmojiSuggestionStage."""

    def test_prefixes_type_emoji(self):
        """Test that the conventional type emoji is prefixed."""
        output = EmojiSuggestionStage().apply(GOOD_MESSAGE, EnhancementContext())
        assert output.message == f"✨ {GOOD_MESSAGE}"
        assert output.applied is True
        assert output.suggestions == ["Emoji suggestions: ✨"]

    def test_suggestions_from_diff_paths(self):
        """Test manifest and test-path candidates."""
        diff_text = "diff --git a/package.json b/package.json\ndiff --git a/tests/test_api.py b/tests/test_api.py\n"
        stage = EmojiSuggestionStage()
        assert stage.candidates("chore: bump deps", diff_text) == ["🧹", "📦", "🧪"]

    def test_no_double_prefix(self):
        """Test that a message already starting with an emoji is kept."""
        output = EmojiSuggestionStage().apply(f"🐛 {GOOD_MESSAGE}", EnhancementContext())
        assert output.message == f"🐛 {GOOD_MESSAGE}"
        assert output.applied is False

    def test_suggest_only(self):
        """Test that auto_prefix=False only suggests."""
        output = EmojiSuggestionStage(auto_prefix=False).apply(GOOD_MESSAGE, EnhancementContext())
        assert output.message == GOOD_MESSAGE
        assert output.suggestions

    def test_no_candidates(self):
        """Test a message with nothing to suggest."""
        output = EmojiSuggestionStage().apply("Tweak wording", EnhancementContext())
        assert output.applied is False
        assert output.suggestions == []


class TestClassifiers:
    """Tests for sentiment and tone classification."""

    def test_sentiment(self):
        """Test negative, positive and neutral messages."""
        assert classify_sentiment("fix: handle errors in parser") == Sentiment.NEGATIVE
        assert classify_sentiment("feat: add export") == Sentiment.POSITIVE
        assert classify_sentiment("chore: rename variable") == Sentiment.NEUTRAL

    def test_negative_sentiment_warns(self):
        """Test that SentimentStage warns on negative wording."""
        output = SentimentStage().apply("fix: tests failing on CI", EnhancementContext())
        assert output.metadata["sentiment"] == Sentiment.NEGATIVE
        assert len(output.warnings) == 1

    def test_tone(self):
        """Test formal, informal and technical messages."""
        assert classify_tone("fix: urgent patch for login") == Tone.FORMAL
        assert classify_tone("fix: gonna patch login") == Tone.INFORMAL
        assert classify_tone("fix: patch login") == Tone.TECHNICAL

    def test_tone_mismatch_warns_for_conventional(self):
        """Test the tone/format mismatch warning."""
        output = ToneStage().apply("fix: urgent patch for login", EnhancementContext())
        assert output.warnings == ["Formal tone does not match the conventional commit format"]
        simple = ToneStage().apply(
            "Urgent patch for login", EnhancementContext(preferred_format=CommitFormat.SIMPLE)
        )
        assert simple.warnings == []


def _analysis(diff):
    analyzer = DiffAnalyzer()
    return analyzer.analyze(analyzer.parse(diff))


class TestVersionBumpStage:
    """Tests for VersionBumpStage."""

    def test_message_type_wins(self):
        """Test that the subject's type sets the bump."""
        context = EnhancementContext(analysis=_analysis(BUTTON_RENAME_DIFF))
        output = VersionBumpStage().apply(GOOD_MESSAGE, context)
        assert output.applied is True
        assert output.message == GOOD_MESSAGE
        assert output.metadata["version_bump"] == VersionBump.MINOR
        assert output.suggestions == ["Suggested version bump: minor"]

    def test_falls_back_to_inferred_type(self):
        """Test a subject without a conventional prefix."""
        context = EnhancementContext(analysis=_analysis(BUTTON_RENAME_DIFF))
        output = VersionBumpStage().apply("Tweak wording", context)
        assert output.metadata["version_bump"] == VersionBump.PATCH

    def test_emoji_prefix_is_skipped(self):
        """Test that an emoji before the type does not hide it."""
        context = EnhancementContext(analysis=_analysis(MULTI_FILE_DIFF))
        output = VersionBumpStage().apply("🐛 fix(api): guard routes", context)
        assert output.metadata["version_bump"] == VersionBump.PATCH

    def test_declared_breaking_change(self):
        """Test that a bang subject forces a major bump."""
        context = EnhancementContext(analysis=_analysis(BUTTON_RENAME_DIFF))
        output = VersionBumpStage().apply("refactor(ui)!: rename Button prop", context)
        assert output.metadata["version_bump"] == VersionBump.MAJOR

    def test_no_bump_for_docs(self):
        """Test that docs changes suggest nothing."""
        context = EnhancementContext(analysis=_analysis(BUTTON_RENAME_DIFF))
        output = VersionBumpStage().apply("docs: explain the label prop", context)
        assert output.metadata["version_bump"] == VersionBump.NONE
        assert output.suggestions == []

    def test_no_analysis_is_a_no_op(self):
        output = VersionBumpStage().apply(GOOD_MESSAGE, EnhancementContext())
        assert output.applied is False
        assert output.metadata == {}


class TestMessageEnhancer:
    """Tests for MessageEnhancer.enhance()."""

    def test_full_chain(self):
        """Test every default stage on a good message."""
        result = MessageEnhancer().enhance(GOOD_MESSAGE, Preferences())
        assert result.message == f"✨ {GOOD_MESSAGE}"
        assert result.applied_steps == ["linted", "emoji-added", "sentiment-analyzed", "tone-analyzed"]
        assert result.format_valid is True
        assert result.sentiment == Sentiment.POSITIVE
        assert result.tone == Tone.TECHNICAL

    def test_all_stages_disabled_returns_message_unchanged(self):
        """Test that disabling every stage is the identity."""
        message = "Updated teh readme lol"
        result = MessageEnhancer().enhance(message, Preferences().all_stages_disabled())
        assert result.message == message
        assert result.applied_steps == []
        assert result.warnings == []
        assert result.format_valid is None
        assert result.sentiment is None

    def test_single_stage_toggle(self):
        """Test that a disabled stage is skipped and others still run."""
        preferences = Preferences(enable_emoji_suggestions=False)
        result = MessageEnhancer().enhance(GOOD_MESSAGE, preferences)
        assert result.message == GOOD_MESSAGE
        assert "emoji-added" not in result.applied_steps

    def test_failing_stages_are_absorbed(self):
        """Test that a raising stage counts as no change."""
        enhancer = MessageEnhancer([ExplodingStage(), RejectingStage(), SentimentStage()])
        result = enhancer.enhance(GOOD_MESSAGE, Preferences())
        assert result.message == GOOD_MESSAGE
        assert result.applied_steps == ["sentiment-analyzed"]

    def test_stages_see_previous_output(self):
        """Test that the chain threads each stage's message to the next."""
        enhancer = MessageEnhancer([GrammarCorrectionStage(), EmojiSuggestionStage()])
        result = enhancer.enhance("fix: fixed teh parser", Preferences())
        assert result.message == "🐛 fix: fix the parser"

    def test_analysis_adds_version_bump(self):
        """Test that the chain reports the bump when an analysis is given."""
        result = MessageEnhancer().enhance(
            GOOD_MESSAGE, Preferences(), BUTTON_RENAME_DIFF, _analysis(BUTTON_RENAME_DIFF),
        )
        assert result.applied_steps[-1] == "version-suggested"
        assert result.version_bump == VersionBump.MINOR
        assert "Suggested version bump: minor" in result.suggestions
