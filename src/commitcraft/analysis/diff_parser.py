"""Unified diff tokenizer.

Turns raw `git diff` / `diff -u` text into a DiffDocument. A hunk ends when
its declared line counts are used up or when a new header starts, whichever
comes first, so a body shorter than its header is accepted as-is. A hunk
whose header cannot be read is skipped and its file flagged low-confidence.
"""

import hashlib
import logging
import re
from dataclasses import dataclass, field

from commitcraft.analysis.exceptions import ParseError
from commitcraft.models.diff_models import (
    DiffDocument,
    FileChange,
    FileStatus,
    LineChange,
    LineOp,
)

logger = logging.getLogger(__name__)

DEV_NULL = "/dev/null"
HUNK_HEADER_RE = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")
GIT_HEADER_RE = re.compile(r"^diff --git a/(.+?) b/(.+)$")

_BODY_MARKERS = {"+": LineOp.ADD, "-": LineOp.DELETE, " ": LineOp.UNCHANGED}


def fingerprint(text: str) -> str:
    """Deterministic sha256 hex digest of text."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def _strip_path(raw: str) -> str:
    # "--- a/src/x.py\t2024-01-01 ..." -> "src/x.py"
    path = raw.split("\t", 1)[0].strip()
    if path == DEV_NULL:
        return path
    if path.startswith(("a/", "b/")):
        return path[2:]
    return path


@dataclass
class _Hunk:
    old_line: int
    new_line: int
    old_remaining: int
    new_remaining: int

    @property
    def exhausted(self) -> bool:
        return self.old_remaining <= 0 and self.new_remaining <= 0


@dataclass
class _FileBuilder:
    path: str = ""
    old_path: str | None = None
    new_file: bool = False
    deleted_file: bool = False
    renamed: bool = False
    hunk_count: int = 0
    skipping: bool = False  # Inside the body of an unreadable hunk
    lines: list[LineChange] = field(default_factory=list)
    parse_errors: list[str] = field(default_factory=list)

    def flag(self, message: str) -> None:
        logger.warning("Low-confidence parse of %s: %s", self.path or "<unknown>", message)
        self.parse_errors.append(message)

    def status(self) -> FileStatus:
        if self.new_file or self.old_path == DEV_NULL:
            return FileStatus.ADDED
        if self.deleted_file or self.path == DEV_NULL:
            return FileStatus.DELETED
        if self.renamed or (self.old_path and self.old_path != self.path):
            return FileStatus.RENAMED
        return FileStatus.MODIFIED

    def build(self) -> FileChange:
        status = self.status()
        path = self.path
        old_path = self.old_path
        if status == FileStatus.DELETED and old_path and old_path != DEV_NULL:
            path = old_path
        if status != FileStatus.RENAMED:
            old_path = None

        old_side = [l.content for l in self.lines if l.op != LineOp.ADD]
        new_side = [l.content for l in self.lines if l.op != LineOp.DELETE]
        return FileChange(
            path=path,
            old_path=old_path,
            status=status,
            lines=list(self.lines),
            original_fingerprint=fingerprint("\n".join(old_side)),
            new_fingerprint=fingerprint("\n".join(new_side)),
            low_confidence=bool(self.parse_errors),
            parse_errors=list(self.parse_errors),
        )


def parse_hunk_header(header: str, file_path: str | None = None) -> _Hunk:
    """Read `@@ -a,b +c,d @@` into a hunk cursor.

    Raises:
        ParseError: If the header does not match the unified format.
    """
    match = HUNK_HEADER_RE.match(header)
    if match is None:
        raise ParseError(f"Malformed hunk header: {header[:80]!r}", file_path)
    old_start, old_count, new_start, new_count = match.groups()
    return _Hunk(
        old_line=int(old_start),
        new_line=int(new_start),
        old_remaining=int(old_count) if old_count is not None else 1,
        new_remaining=int(new_count) if new_count is not None else 1,
    )


def _consume_body_line(builder: _FileBuilder, hunk: _Hunk, line: str) -> None:
    if line.startswith("\\"):
        # "\ No newline at end of file"
        return
    # Some tools strip the single space from blank context lines
    op = _BODY_MARKERS.get(line[:1], LineOp.UNCHANGED)
    content = line[1:]
    if op == LineOp.ADD:
        builder.lines.append(LineChange(op=op, line_number=hunk.new_line, content=content))
        hunk.new_line += 1
        hunk.new_remaining -= 1
    elif op == LineOp.DELETE:
        builder.lines.append(LineChange(op=op, line_number=hunk.old_line, content=content))
        hunk.old_line += 1
        hunk.old_remaining -= 1
    else:
        builder.lines.append(LineChange(op=op, line_number=hunk.new_line, content=content))
        hunk.new_line += 1
        hunk.old_line += 1
        hunk.new_remaining -= 1
        hunk.old_remaining -= 1


def is_file_header(lines: list[str], idx: int) -> bool:
    """True when lines[idx:] start a `--- / +++ / @@` header block."""
    return (
        lines[idx].startswith("--- ")
        and idx + 2 < len(lines)
        and lines[idx + 1].startswith("+++ ")
        and lines[idx + 2].startswith("@@")
    )


def parse_diff(diff_text: str) -> DiffDocument:
    """Tokenize raw diff text into a DiffDocument.

    Args:
        diff_text: Unified diff text, with or without `diff --git` headers.

    Returns:
        Frozen DiffDocument whose fingerprint is the sha256 of diff_text.
        Files with skipped hunks carry low_confidence=True.
    """
    files: list[FileChange] = []
    current: _FileBuilder | None = None
    hunk: _Hunk | None = None

    lines = diff_text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()

    def finish() -> None:
        if current is not None and (current.path or current.old_path):
            files.append(current.build())

    idx = 0
    while idx < len(lines):
        line = lines[idx]
        header = line.rstrip("\r")

        if hunk is not None and not hunk.exhausted and current is not None:
            is_body = line == "" or line[:1] in _BODY_MARKERS or line.startswith("\\")
            if is_body and not is_file_header(lines, idx):
                _consume_body_line(current, hunk, line)
                idx += 1
                continue
            hunk = None

        git_header = GIT_HEADER_RE.match(header)
        if git_header is not None:
            finish()
            current = _FileBuilder(
                path=_strip_path("b/" + git_header.group(2)),
                old_path=_strip_path("a/" + git_header.group(1)),
            )
            hunk = None
        elif header.startswith("--- ") and idx + 1 < len(lines) and lines[idx + 1].startswith("+++ "):
            if current is None or current.hunk_count > 0:
                finish()
                current = _FileBuilder()
            current.old_path = _strip_path(header[4:])
            current.path = _strip_path(lines[idx + 1].rstrip("\r")[4:])
            hunk = None
            idx += 2
            continue
        elif header.startswith("@@"):
            if current is None:
                logger.warning("Skipping hunk with no file header: %r", header[:80])
            else:
                current.hunk_count += 1
                try:
                    hunk = parse_hunk_header(header, current.path)
                    current.skipping = False
                except ParseError as exc:
                    current.flag(str(exc))
                    current.skipping = True
                    hunk = None
        elif current is not None:
            if header.startswith("new file mode"):
                current.new_file = True
            elif header.startswith("deleted file mode"):
                current.deleted_file = True
            elif header.startswith("rename from "):
                current.renamed = True
                current.old_path = header[len("rename from "):]
            elif header.startswith("rename to "):
                current.renamed = True
                current.path = header[len("rename to "):]
            elif line[:1] in ("+", "-") and current.hunk_count > 0 and not current.skipping:
                current.flag(f"Line outside any readable hunk: {header[:80]!r}")

        idx += 1

    finish()
    return DiffDocument(fingerprint=fingerprint(diff_text), raw_text=diff_text, files=files)
