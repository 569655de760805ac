"""Lint-style smell rules applied to added lines."""

from commitcraft.models.analysis_models import Severity
from commitcraft.rules.rule_engine import PatternRule

JS_FAMILY = ["JavaScript", "TypeScript", "Vue", "Svelte"]

LINT_RULES = [
    # JS/TS: the AST checks in utils.ast_parser cover these for parseable
    # sources; the regex versions catch fragments tree-sitter cannot place.
    PatternRule(
        rule_id="no-console",
        category="Debug Leftovers",
        severity=Severity.LOW,
        description="Remove console.log",
        pattern=r"\bconsole\.(log|debug|info|trace)\s*\(",
        languages=JS_FAMILY,
    ),
    PatternRule(
        rule_id="no-debugger",
        category="Debug Leftovers",
        severity=Severity.MEDIUM,
        description="Remove debugger statement",
        pattern=r"^\s*debugger\s*;?\s*$",
        languages=JS_FAMILY,
    ),
    PatternRule(
        rule_id="no-explicit-any",
        category="Type Safety",
        severity=Severity.LOW,
        description="Avoid using `any` type",
        pattern=r":\s*any\b|<any>|\bas any\b",
        languages=["TypeScript"],
    ),
    PatternRule(
        rule_id="no-print",
        category="Debug Leftovers",
        severity=Severity.LOW,
        description="Remove print() debugging",
        pattern=r"^\s*print\s*\(",
        languages=["Python"],
    ),
    PatternRule(
        rule_id="no-breakpoint",
        category="Debug Leftovers",
        severity=Severity.MEDIUM,
        description="Remove breakpoint()/pdb call",
        pattern=r"\bbreakpoint\s*\(\)|\bpdb\.set_trace\s*\(",
        languages=["Python"],
    ),
    PatternRule(
        rule_id="bare-except",
        category="Error Handling",
        severity=Severity.MEDIUM,
        description="Avoid bare except clauses",
        pattern=r"^\s*except\s*:",
        languages=["Python"],
    ),
    PatternRule(
        rule_id="todo-comment",
        category="Maintenance",
        severity=Severity.INFO,
        description="Resolve TODO/FIXME before merging",
        pattern=r"(#|//|/\*|<!--)\s*(TODO|FIXME|XXX)\b",
    ),
]
