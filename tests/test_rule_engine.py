"""Tests for rule engine, LINT_RULES and SECURITY_RULES."""

import pytest

from commitcraft.models import Severity
from commitcraft.rules import LINT_RULES, SECURITY_RULES, PatternRule, evaluate_rules


class TestRuleTables:
    """Tests for the built-in rule tables."""

    @pytest.mark.parametrize("rules", [LINT_RULES, SECURITY_RULES])
    def test_all_rule_ids_are_unique(self, rules):
        """Test that all rule IDs are unique within a table."""
        rule_ids = [rule.rule_id for rule in rules]
        assert len(rule_ids) == len(set(rule_ids)), "Duplicate rule IDs found"

    @pytest.mark.parametrize("rules", [LINT_RULES, SECURITY_RULES])
    def test_all_patterns_compile(self, rules):
        """Test that every rule has a compilable, non-empty pattern."""
        for rule in rules:
            assert rule.pattern.strip(), f"Rule {rule.rule_id} has empty pattern"
            assert rule.compiled is not None

    def test_security_rules_apply_to_every_language(self):
        """Test that security rules are not scoped by language."""
        assert all(rule.applies_to("Go") for rule in SECURITY_RULES)


class TestPatternRuleModel:
    """Tests for PatternRule Pydantic model."""

    def test_language_scope(self):
        """Test that languages restricts where a rule applies."""
        rule = PatternRule(
            rule_id="no-print",
            category="Debug Leftovers",
            severity=Severity.LOW,
            description="Remove print()",
            pattern=r"^\s*print\(",
            languages=["Python"],
        )
        assert rule.applies_to("Python") is True
        assert rule.applies_to("JavaScript") is False

    def test_ignore_case(self):
        """Test that ignore_case changes the compiled flags."""
        rule = PatternRule(
            rule_id="x", category="c", severity=Severity.LOW, description="d",
            pattern="select", ignore_case=True,
        )
        assert rule.compiled.search("SELECT 1")


class TestEvaluateRules:
    """Tests for evaluate_rules()."""

    def test_hardcoded_secret_is_critical(self):
        """Test that a committed key matches with trimmed evidence."""
        matches = evaluate_rules(SECURITY_RULES, [(2, '    API_KEY = "sk-live-0123456789abcdef"')], "Python")
        assert [(m.rule_id, m.severity, m.line_number) for m in matches] == [
            ("hardcoded-secret", Severity.CRITICAL, 2),
        ]
        assert matches[0].evidence == 'API_KEY = "sk-live-0123456789abcdef"'

    def test_results_in_line_then_rule_order(self):
        """Test match ordering across lines."""
        lines = [(5, "debugger;"), (3, "console.log(x)")]
        matches = evaluate_rules(LINT_RULES, lines, "JavaScript")
        assert [(m.line_number, m.rule_id) for m in matches] == [(5, "no-debugger"), (3, "no-console")]

    def test_scoped_rules_skipped_for_other_languages(self):
        """Test that JS rules do not fire on Python lines."""
        assert evaluate_rules(LINT_RULES, [(1, "console.log(x)")], "Python") == []

    def test_localhost_http_allowed(self):
        """Test that local URLs are not flagged."""
        lines = [(1, 'url = "http://localhost:8080"'), (2, 'url = "http://example.com"')]
        matches = evaluate_rules(SECURITY_RULES, lines, "Python")
        assert [(m.rule_id, m.line_number) for m in matches] == [("insecure-http", 2)]
