"""Tests for PromptBuilder."""

import pytest

from commitcraft.analysis.diff_parser import parse_diff
from commitcraft.prompting.prompt_builder import (
    DEFAULT_PERSONA,
    TRUNCATION_MARKER,
    PromptBuilder,
    strip_diff_noise,
)


class TestStripDiffNoise:
    """Tests for strip_diff_noise()."""

    def test_drops_path_and_index_lines(self, button_diff):
        """Test that header lines are removed and hunks kept."""
        cleaned = strip_diff_noise(button_diff)
        assert "diff --git" not in cleaned
        assert "index 3b18e51" not in cleaned
        assert "+++ b/" not in cleaned
        assert cleaned.startswith("@@ -1,7 +1,7 @@")
        assert "+  label: string;" in cleaned

    def test_keeps_hunk_lines_that_look_like_headers(self):
        """Test that "-- " and "++ " body lines survive while real headers go."""
        diff = (
            "diff --git a/db/schema.sql b/db/schema.sql\n"
            "index 1111111..2222222 100644\n"
            "--- a/db/schema.sql\n"
            "+++ b/db/schema.sql\n"
            "@@ -1,3 +1,3 @@\n"
            " CREATE TABLE users (id INT);\n"
            "--- drop legacy index\n"
            "+++ keep legacy index\n"
            " CREATE INDEX users_id ON users (id);\n"
        )
        cleaned = strip_diff_noise(diff)
        assert "--- drop legacy index" in cleaned
        assert "+++ keep legacy index" in cleaned
        assert "--- a/db/schema.sql" not in cleaned
        assert "+++ b/db/schema.sql" not in cleaned
        prompt = PromptBuilder().build(parse_diff(diff))
        assert "--- drop legacy index" in prompt.text
        assert "+++ keep legacy index" in prompt.text

    def test_second_file_header_after_hunk_is_stripped(self, multi_file_diff):
        """Test that headers following a finished hunk are still removed."""
        cleaned = strip_diff_noise(multi_file_diff)
        assert "+++ /dev/null" not in cleaned
        assert "--- a/docs/old.md" not in cleaned
        assert "+def handler():" in cleaned
        assert "-# Old docs" in cleaned


class TestPromptBuilder:
    """Tests for PromptBuilder.build()."""

    def test_includes_constraints_persona_and_files(self, button_diff):
        """Test the prompt sections."""
        prompt = PromptBuilder().build(parse_diff(button_diff))
        assert "imperative mood" in prompt.text
        assert "at most 72 characters" in prompt.text
        assert DEFAULT_PERSONA in prompt.text
        assert "- src/components/Button.tsx (modified, +1/-1)" in prompt.text
        assert prompt.truncated is False

    def test_custom_persona(self, button_diff):
        """Test that a custom persona replaces the default."""
        prompt = PromptBuilder().build(parse_diff(button_diff), persona="You write terse messages.")
        assert "You write terse messages." in prompt.text
        assert DEFAULT_PERSONA not in prompt.text

    def test_truncates_from_tail(self):
        """Test that an oversized diff body is cut at the budget and marked."""
        added = "".join(f"+line {i:04d}\n" for i in range(500))
        diff = f"--- a/big.txt\n+++ b/big.txt\n@@ -0,0 +1,500 @@\n{added}"
        prompt = PromptBuilder(max_diff_chars=200).build(parse_diff(diff))
        assert prompt.truncated is True
        assert prompt.diff_chars == 200
        assert TRUNCATION_MARKER in prompt.text
        assert "+line 0000" in prompt.text
        assert "+line 0499" not in prompt.text

    def test_per_call_budget_override(self, button_diff):
        """Test that max_diff_chars passed to build() wins."""
        prompt = PromptBuilder().build(parse_diff(button_diff), max_diff_chars=10)
        assert prompt.truncated is True

    def test_rejects_non_positive_budget(self):
        """Test constructor validation."""
        with pytest.raises(ValueError):
            PromptBuilder(max_diff_chars=0)
