"""Tests for conventional type/scope inference and version bump suggestions."""

from commitcraft.analysis import conventions
from commitcraft.analysis.diff_parser import parse_diff
from commitcraft.models import VersionBump

from conftest import AUTH_SECRET_DIFF, BUTTON_RENAME_DIFF, MULTI_FILE_DIFF

RENAMED_API_DIFF = """diff --git a/src/api/client.py b/src/api/client.py
index 1111111..2222222 100644
--- a/src/api/client.py
+++ b/src/api/client.py
@@ -1,2 +1,2 @@
-def fetch(url):
+def fetch_url(url):
     return url
"""

DOCS_ONLY_DIFF = """diff --git a/docs/guide.md b/docs/guide.md
index 1111111..2222222 100644
--- a/docs/guide.md
+++ b/docs/guide.md
@@ -1 +1,2 @@
 # Guide
+More words.
"""


class TestClassifyPath:
    """Tests for classify_path."""

    def test_non_source_kinds(self):
        """Test CI, build, test and docs paths."""
        assert conventions.classify_path(".github/workflows/ci.yml") == "ci"
        assert conventions.classify_path("pyproject.toml") == "build"
        assert conventions.classify_path("requirements-dev.txt") == "build"
        assert conventions.classify_path("tests/test_api.py") == "test"
        assert conventions.classify_path("README.md") == "docs"
        assert conventions.classify_path("docs/diagram.svg") == "docs"

    def test_source_path(self):
        """Test that ordinary code is source."""
        assert conventions.classify_path("src/components/Button.tsx") == "source"


class TestInferCommitType:
    """Tests for infer_commit_type."""

    def test_balanced_edit_is_refactor(self):
        """Test a one-for-one line swap."""
        assert conventions.infer_commit_type(parse_diff(BUTTON_RENAME_DIFF)) == "refactor"

    def test_net_additions_are_fix(self):
        """Test added lines without new definitions."""
        assert conventions.infer_commit_type(parse_diff(AUTH_SECRET_DIFF)) == "fix"

    def test_new_source_file_is_feat(self):
        """Test that an added source file wins over other changes."""
        assert conventions.infer_commit_type(parse_diff(MULTI_FILE_DIFF)) == "feat"

    def test_new_public_definition_is_feat(self):
        """Test a renamed public function."""
        assert conventions.infer_commit_type(parse_diff(RENAMED_API_DIFF)) == "feat"

    def test_docs_only(self):
        """Test a diff that only touches documentation."""
        assert conventions.infer_commit_type(parse_diff(DOCS_ONLY_DIFF)) == "docs"

    def test_empty_document(self):
        """Test the fallback type."""
        assert conventions.infer_commit_type(parse_diff("")) == conventions.DEFAULT_COMMIT_TYPE


class TestInferCommitScope:
    """Tests for infer_commit_scope."""

    def test_skips_generic_directories(self):
        """Test that src/ is not used as a scope."""
        assert conventions.infer_commit_scope(parse_diff(BUTTON_RENAME_DIFF)) == "components"
        assert conventions.infer_commit_scope(parse_diff(AUTH_SECRET_DIFF)) == "auth"

    def test_mixed_directories_have_no_scope(self):
        """Test files spread over several directories."""
        assert conventions.infer_commit_scope(parse_diff(MULTI_FILE_DIFF)) is None


class TestBreakingChanges:
    """Tests for detect_breaking_change and message_declares_breaking."""

    def test_removed_public_definition(self):
        """Test that dropping a public function is breaking."""
        assert conventions.detect_breaking_change(parse_diff(RENAMED_API_DIFF)) is True

    def test_plain_edits_are_not_breaking(self):
        """Test the fixture diffs."""
        assert conventions.detect_breaking_change(parse_diff(BUTTON_RENAME_DIFF)) is False
        assert conventions.detect_breaking_change(parse_diff(MULTI_FILE_DIFF)) is False

    def test_message_markers(self):
        """Test bang subjects and BREAKING CHANGE footers."""
        assert conventions.message_declares_breaking("feat(api)!: drop v1 routes")
        assert conventions.message_declares_breaking("feat: x\n\nBREAKING CHANGE: removed fetch")
        assert not conventions.message_declares_breaking("fix(api): handle empty payloads")


class TestSuggestVersionBump:
    """Tests for suggest_version_bump and format_prefix."""

    def test_bump_per_type(self):
        """Test the type to bump mapping."""
        assert conventions.suggest_version_bump("feat") == VersionBump.MINOR
        assert conventions.suggest_version_bump("fix") == VersionBump.PATCH
        assert conventions.suggest_version_bump("refactor") == VersionBump.PATCH
        assert conventions.suggest_version_bump("docs") == VersionBump.NONE

    def test_breaking_is_major(self):
        """Test that a breaking change overrides the type."""
        assert conventions.suggest_version_bump("fix", breaking=True) == VersionBump.MAJOR

    def test_format_prefix(self):
        assert conventions.format_prefix("fix", "auth") == "fix(auth)"
        assert conventions.format_prefix("chore", None) == "chore"
