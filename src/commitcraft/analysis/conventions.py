"""Conventional commit type/scope inference and version bump suggestions.

Pure functions of a parsed DiffDocument (or of a message), so the analyzer
can attach them to a DiffAnalysis and the enhancer can reuse them.
"""

import re
from pathlib import PurePosixPath

from commitcraft.analysis import detectors
from commitcraft.models.analysis_models import VersionBump
from commitcraft.models.diff_models import DiffDocument, FileChange, FileStatus, LineChange

DEFAULT_COMMIT_TYPE = "chore"

DOC_SUFFIXES = frozenset({".md", ".rst", ".adoc", ".txt"})
DOC_DIRS = frozenset({"docs", "doc"})
BUILD_FILES = frozenset({
    "package.json", "package-lock.json", "yarn.lock", "pnpm-lock.yaml",
    "pyproject.toml", "setup.cfg", "setup.py", "requirements.txt", "Pipfile",
    "Pipfile.lock", "poetry.lock", "Dockerfile", "Makefile", "go.mod", "go.sum",
    "Cargo.toml", "tsconfig.json",
})
CI_PATH_RE = re.compile(
    r"(^|/)(\.github/workflows/|\.circleci/)|(^|/)(\.gitlab-ci\.yml|Jenkinsfile|azure-pipelines\.yml)$"
)

# Directory names too generic to name a scope
GENERIC_SEGMENTS = frozenset({"src", "lib", "app", "apps", "packages", "pkg", "internal", "source"})

PUBLIC_DEF_RE = re.compile(
    r"^\s*(?:"
    r"export\s+(?:default\s+)?(?:async\s+)?(?:function|class|const|let|interface|type|enum)\s+"
    r"|(?:async\s+)?def\s+(?!_)"
    r"|class\s+(?!_)"
    r"|public\s+(?:static\s+)?[\w<>\[\],]+\s+"
    r"|func\s+(?=[A-Z])"
    r")(\w+)"
)
BREAKING_SUBJECT_RE = re.compile(r"^\W*[a-z]+(\([^)]*\))?!:")

_PATCH_TYPES = frozenset({"fix", "perf", "refactor"})


def classify_path(path: str) -> str:
    """Conventional type a change to this path implies on its own.

    Returns "ci", "build", "test", "docs" or "source".
    """
    if CI_PATH_RE.search(path):
        return "ci"
    name = PurePosixPath(path).name
    if name in BUILD_FILES or (name.startswith("requirements") and name.endswith(".txt")):
        return "build"
    if detectors.is_test_path(path):
        return "test"
    pure = PurePosixPath(path)
    if pure.suffix.lower() in DOC_SUFFIXES or DOC_DIRS & {part.lower() for part in pure.parts[:-1]}:
        return "docs"
    return "source"


def _definition_names(lines: list[LineChange]) -> set[str]:
    names = set()
    for line in lines:
        match = PUBLIC_DEF_RE.match(line.content)
        if match is not None:
            names.add(match.group(1))
    return names


def removed_public_names(file_change: FileChange) -> set[str]:
    """Public definitions deleted from a file and not re-added elsewhere in it."""
    removed = _definition_names(file_change.deleted_lines())
    if file_change.status == FileStatus.DELETED:
        return removed
    return removed - _definition_names(file_change.added_lines())


def _is_source(file_change: FileChange) -> bool:
    return (
        classify_path(file_change.path) == "source"
        and detectors.detect_language(file_change.path) in detectors.SOURCE_LANGUAGES
    )


def infer_commit_type(document: DiffDocument) -> str:
    """Most likely conventional commit type for the whole diff.

    A diff touching only one kind of non-source file takes that kind. With
    source changes, new files or new public definitions make it a feat,
    more additions than deletions a fix, and anything else a refactor.
    """
    if not document.files:
        return DEFAULT_COMMIT_TYPE

    kinds = {classify_path(fc.path) for fc in document.files}
    source_files = [fc for fc in document.files if _is_source(fc)]
    if not source_files:
        if len(kinds) == 1 and "source" not in kinds:
            return kinds.pop()
        return DEFAULT_COMMIT_TYPE

    if any(fc.status == FileStatus.ADDED for fc in source_files):
        return "feat"
    added_defs = set()
    for fc in source_files:
        added_defs |= _definition_names(fc.added_lines()) - _definition_names(fc.deleted_lines())
    if added_defs:
        return "feat"

    added = sum(len(fc.added_lines()) for fc in source_files)
    removed = sum(len(fc.deleted_lines()) for fc in source_files)
    if added > removed:
        return "fix"
    return "refactor"


def _path_scope(path: str) -> str | None:
    parts = [
        part for part in PurePosixPath(path).parts[:-1]
        if part.lower() not in GENERIC_SEGMENTS and not part.startswith(".")
    ]
    return parts[0].lower() if parts else None


def infer_commit_scope(document: DiffDocument) -> str | None:
    """First meaningful directory shared by every file, or None."""
    scopes = {_path_scope(fc.path) for fc in document.files}
    if len(scopes) == 1:
        return scopes.pop()
    return None


def detect_breaking_change(document: DiffDocument) -> bool:
    """True when a source file loses a public definition."""
    return any(
        removed_public_names(fc)
        for fc in document.files
        if _is_source(fc)
    )


def message_declares_breaking(message: str) -> bool:
    """`type!:` subjects and BREAKING CHANGE footers."""
    subject = message.split("\n", 1)[0]
    return bool(BREAKING_SUBJECT_RE.match(subject)) or "BREAKING CHANGE" in message


def suggest_version_bump(commit_type: str, breaking: bool = False) -> VersionBump:
    if breaking:
        return VersionBump.MAJOR
    if commit_type == "feat":
        return VersionBump.MINOR
    if commit_type in _PATCH_TYPES:
        return VersionBump.PATCH
    return VersionBump.NONE


def format_prefix(commit_type: str, scope: str | None) -> str:
    return f"{commit_type}({scope})" if scope else commit_type
