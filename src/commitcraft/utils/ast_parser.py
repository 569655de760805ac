"""AST smell detection for JavaScript/TypeScript using tree-sitter.

Diff hunks are fragments, so the parsed tree usually contains ERROR nodes.
tree-sitter still recovers the statements around them, which is enough to
find call expressions, debugger statements and type annotations.
"""

from pathlib import Path
from typing import NamedTuple

import tree_sitter_javascript as tsjs
import tree_sitter_typescript as tsts
from tree_sitter import Language, Parser, Query, QueryCursor, Tree

# Initialize language objects
JS_LANGUAGE = Language(tsjs.language())
TS_LANGUAGE = Language(tsts.language_typescript())
TSX_LANGUAGE = Language(tsts.language_tsx())

CONSOLE_METHODS = frozenset({"log", "debug", "info", "trace"})

_CONSOLE_QUERY = """
    (call_expression
        function: (member_expression
            object: (identifier) @object
            property: (property_identifier) @method)) @call
"""
_DEBUGGER_QUERY = "(debugger_statement) @stmt"
_PREDEFINED_TYPE_QUERY = "(predefined_type) @type"


class AstSmell(NamedTuple):
    rule_id: str
    line_index: int  # Zero-based row within the parsed source
    message: str


def get_language_for_file(file_path: str) -> str:
    """Map file extension to tree-sitter language name.

    Args:
        file_path: Path to the file

    Returns:
        Language name ("javascript", "typescript", "tsx")

    Raises:
        ValueError: If file extension is not supported
    """
    ext = Path(file_path).suffix
    mapping = {
        ".js": "javascript",
        ".jsx": "javascript",
        ".mjs": "javascript",
        ".cjs": "javascript",
        ".ts": "typescript",
        ".tsx": "tsx",
    }
    if ext not in mapping:
        raise ValueError(f"Unsupported file extension: {ext}")
    return mapping[ext]


def is_supported(file_path: str) -> bool:
    try:
        get_language_for_file(file_path)
    except ValueError:
        return False
    return True


def get_language(language: str) -> Language:
    if language == "javascript":
        return JS_LANGUAGE
    if language == "typescript":
        return TS_LANGUAGE
    if language == "tsx":
        return TSX_LANGUAGE
    raise ValueError(f"Unsupported language: {language}")


def get_parser(language: str) -> Parser:
    """Return a tree-sitter Parser for the given language name."""
    parser = Parser()
    parser.language = get_language(language)
    return parser


def parse_source(source: str, language: str) -> Tree:
    """Parse an in-memory source string."""
    return get_parser(language).parse(source.encode("utf-8"))


def find_smells(source: str, file_path: str) -> list[AstSmell]:
    """Find debug leftovers and loose typing in a JS/TS source fragment.

    Args:
        source: Source text, typically the added lines of one file.
        file_path: Path used to pick the grammar.

    Returns:
        AstSmell entries sorted by line, then rule id.

    Raises:
        ValueError: If the file extension is not a JS/TS one.
    """
    language_name = get_language_for_file(file_path)
    language = get_language(language_name)
    tree = parse_source(source, language_name)
    smells: set[AstSmell] = set()

    console_cursor = QueryCursor(Query(language, _CONSOLE_QUERY))
    for match in console_cursor.matches(tree.root_node):
        # match is a tuple: (pattern_index, captures_dict)
        _, captures = match
        if "object" not in captures or "method" not in captures:
            continue
        object_text = captures["object"][0].text
        method_text = captures["method"][0].text
        if object_text != b"console" or not method_text:
            continue
        if method_text.decode("utf-8") in CONSOLE_METHODS:
            call_node = captures["call"][0]
            smells.add(AstSmell("no-console", call_node.start_point[0], "Remove console.log"))

    debugger_cursor = QueryCursor(Query(language, _DEBUGGER_QUERY))
    for _, captures in debugger_cursor.matches(tree.root_node):
        for node in captures.get("stmt", []):
            smells.add(AstSmell("no-debugger", node.start_point[0], "Remove debugger statement"))

    # predefined_type only exists in the TypeScript grammars
    if language_name in ("typescript", "tsx"):
        type_cursor = QueryCursor(Query(language, _PREDEFINED_TYPE_QUERY))
        for _, captures in type_cursor.matches(tree.root_node):
            for node in captures.get("type", []):
                if node.text == b"any":
                    smells.add(AstSmell("no-explicit-any", node.start_point[0], "Avoid using `any` type"))

    return sorted(smells, key=lambda s: (s.line_index, s.rule_id))
