"""Per-file sub-analyzers.

Each detector is a pure function of one FileChange (added lines only) or of
plain text, so the analyzer can run them in any order and on any thread.
"""

import logging
import re
from pathlib import PurePosixPath

from commitcraft.models.analysis_models import (
    CodeSmell,
    RefactorSuggestion,
    SecurityFinding,
)
from commitcraft.models.diff_models import FileChange
from commitcraft.rules import LINT_RULES, SECURITY_RULES, evaluate_rules
from commitcraft.utils import ast_parser

logger = logging.getLogger(__name__)

UNKNOWN_LANGUAGE = "Unknown"

LANGUAGE_MAP = {
    "ts": "TypeScript",
    "tsx": "TypeScript",
    "js": "JavaScript",
    "jsx": "JavaScript",
    "mjs": "JavaScript",
    "cjs": "JavaScript",
    "py": "Python",
    "java": "Java",
    "css": "CSS",
    "scss": "SCSS",
    "html": "HTML",
    "json": "JSON",
    "md": "Markdown",
    "yml": "YAML",
    "yaml": "YAML",
    "go": "Go",
    "rb": "Ruby",
    "php": "PHP",
    "cpp": "C++",
    "c": "C",
    "cs": "C#",
    "vue": "Vue",
    "svelte": "Svelte",
}

# Languages that count as executable source for the tests-suggested check
SOURCE_LANGUAGES = frozenset({
    "TypeScript", "JavaScript", "Python", "Java", "Go", "Ruby", "PHP",
    "C++", "C", "C#", "Vue", "Svelte",
})

# (path token predicate, module name)
MODULE_RULES = [
    ({"auth", "authentication", "login", "session", "security"}, "Authentication & Security"),
    ({"ui", "components", "views", "pages", "styles", "frontend"}, "User Interface"),
    ({"service", "services", "api", "server", "backend", "routes"}, "Backend API"),
    ({"db", "database", "models", "migrations", "schema"}, "Data Layer"),
    ({"test", "tests", "__tests__", "spec"}, "Tests"),
]
DEFAULT_MODULE = "Core"

DOMAIN_KEYWORDS = {
    "Authentication": ("login", "logout", "auth", "oauth", "password", "session"),
    "Billing & E-commerce": ("payment", "billing", "invoice", "checkout", "subscription"),
    "Notifications": ("notification", "email", "webhook"),
}
DEFAULT_DOMAIN = "General Development"

TICKET_RE = re.compile(r"\b([A-Z][A-Z0-9]{1,9}-\d{1,7})\b")
NON_TICKET_PREFIXES = frozenset({"UTF", "SHA", "ISO", "RFC", "CVE", "TLS", "HTTP", "X"})

LARGE_COMPONENT_LINES = 50
LARGE_FILE_LINES = 300

_TEST_PATH_RE = re.compile(r"(^|/)(tests?|__tests__|spec)(/|$)|(\.|_)(test|spec)\.\w+$|(^|/)test_\w+\.py$")
_PATH_TOKEN_RE = re.compile(r"[/._\-]+")


def detect_language(path: str) -> str:
    suffix = PurePosixPath(path).suffix.lower().lstrip(".")
    return LANGUAGE_MAP.get(suffix, UNKNOWN_LANGUAGE)


def is_test_path(path: str) -> bool:
    return bool(_TEST_PATH_RE.search(path.lower()))


def detect_smells(file_change: FileChange, language: str) -> list[CodeSmell]:
    """Lint-style smells on added lines: regex rules plus tree-sitter for JS/TS."""
    added = file_change.added_lines()
    if not added:
        return []

    found: dict[tuple[str, int], CodeSmell] = {}
    numbered = [(line.line_number, line.content) for line in added]
    for match in evaluate_rules(LINT_RULES, numbered, language):
        found[(match.rule_id, match.line_number)] = CodeSmell(
            rule_id=match.rule_id,
            file_path=file_change.path,
            line_number=match.line_number,
            message=match.description,
            severity=match.severity,
        )

    if ast_parser.is_supported(file_change.path):
        try:
            ast_smells = ast_parser.find_smells(file_change.added_text, file_change.path)
        except Exception as exc:
            logger.warning("AST smell scan failed for %s: %s", file_change.path, exc)
            ast_smells = []
        for smell in ast_smells:
            if not 0 <= smell.line_index < len(added):
                continue
            line_number = added[smell.line_index].line_number
            found.setdefault((smell.rule_id, line_number), CodeSmell(
                rule_id=smell.rule_id,
                file_path=file_change.path,
                line_number=line_number,
                message=smell.message,
            ))

    return sorted(found.values(), key=lambda s: (s.line_number, s.rule_id))


def detect_security(file_change: FileChange, language: str) -> list[SecurityFinding]:
    numbered = [(line.line_number, line.content) for line in file_change.added_lines()]
    return [
        SecurityFinding(
            rule_id=match.rule_id,
            file_path=file_change.path,
            line_number=match.line_number,
            severity=match.severity,
            description=match.description,
            evidence=match.evidence,
        )
        for match in evaluate_rules(SECURITY_RULES, numbered, language)
    ]


def suggest_refactors(file_change: FileChange) -> list[RefactorSuggestion]:
    added_count = len(file_change.added_lines())
    text = file_change.added_text
    suggestions: list[RefactorSuggestion] = []
    if added_count > LARGE_COMPONENT_LINES and "useEffect" in text and "useState" in text:
        suggestions.append(RefactorSuggestion(
            file_path=file_change.path,
            suggestion=(
                "Consider splitting this component into smaller pieces; "
                "it mixes state and effects in a large change."
            ),
        ))
    if added_count > LARGE_FILE_LINES:
        suggestions.append(RefactorSuggestion(
            file_path=file_change.path,
            suggestion=f"Large addition ({added_count} lines); consider splitting into separate commits.",
        ))
    return suggestions


def infer_modules(path: str) -> set[str]:
    tokens = {token for token in _PATH_TOKEN_RE.split(path.lower()) if token}
    modules = {name for keywords, name in MODULE_RULES if tokens & keywords}
    # authService, authz, ...
    if any(token.startswith("auth") for token in tokens):
        modules.add("Authentication & Security")
    return modules or {DEFAULT_MODULE}


def infer_domains(text: str) -> set[str]:
    lowered = text.lower()
    return {
        domain
        for domain, keywords in DOMAIN_KEYWORDS.items()
        if any(keyword in lowered for keyword in keywords)
    }


def extract_ticket_ids(*texts: str | None) -> list[str]:
    """Ticket ids like PROJ-123, deduplicated in first-seen order."""
    seen: dict[str, None] = {}
    for text in texts:
        if not text:
            continue
        for ticket in TICKET_RE.findall(text):
            prefix = ticket.split("-", 1)[0]
            if prefix in NON_TICKET_PREFIXES:
                continue
            seen.setdefault(ticket, None)
    return list(seen)
