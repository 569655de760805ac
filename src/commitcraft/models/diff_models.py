"""Models for representing parsed diffs."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class LineOp(str, Enum):
    """Classification of a single diff body line."""

    ADD = "add"
    DELETE = "delete"
    UNCHANGED = "unchanged"


class FileStatus(str, Enum):
    """How a file was touched by the diff."""

    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"


class LineChange(BaseModel):
    """One classified line inside a hunk."""

    model_config = ConfigDict(frozen=True)

    op: LineOp
    line_number: int  # New-side number for add/unchanged, old-side for delete
    content: str  # Line text without the leading +/-/space marker


class FileChange(BaseModel):
    """All parsed hunks for a single file."""

    model_config = ConfigDict(frozen=True)

    path: str
    old_path: str | None = None
    status: FileStatus = FileStatus.MODIFIED
    lines: list[LineChange] = Field(default_factory=list)
    original_fingerprint: str = ""  # sha256 of the old-side hunk content
    new_fingerprint: str = ""  # sha256 of the new-side hunk content
    low_confidence: bool = False  # True when at least one hunk was skipped
    parse_errors: list[str] = Field(default_factory=list)

    def added_lines(self) -> list[LineChange]:
        return [line for line in self.lines if line.op == LineOp.ADD]

    def deleted_lines(self) -> list[LineChange]:
        return [line for line in self.lines if line.op == LineOp.DELETE]

    @property
    def added_text(self) -> str:
        """Added content joined with newlines (input to every sub-analyzer)."""
        return "\n".join(line.content for line in self.added_lines())


class DiffDocument(BaseModel):
    """A parsed diff, identified by the fingerprint of its raw text."""

    model_config = ConfigDict(frozen=True)

    fingerprint: str
    raw_text: str
    files: list[FileChange] = Field(default_factory=list)

    def changed_lines(self) -> list[LineChange]:
        """Every add/delete line across all files, in document order."""
        return [
            line
            for file_change in self.files
            for line in file_change.lines
            if line.op != LineOp.UNCHANGED
        ]

    def changed_text(self) -> str:
        """Re-concatenate the changed-line contents in document order."""
        return "\n".join(line.content for line in self.changed_lines())

    @property
    def low_confidence_paths(self) -> list[str]:
        return [f.path for f in self.files if f.low_confidence]
