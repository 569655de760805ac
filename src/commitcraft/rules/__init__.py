"""Lint and security rule tables and the rule evaluation engine."""

from commitcraft.rules.lint_rules import LINT_RULES
from commitcraft.rules.rule_engine import PatternRule, RuleMatch, evaluate_rules
from commitcraft.rules.security_rules import SECURITY_RULES

__all__ = [
    "LINT_RULES",
    "PatternRule",
    "RuleMatch",
    "SECURITY_RULES",
    "evaluate_rules",
]
