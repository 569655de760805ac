"""Tests for DiffAnalyzer and cache-backed single-flight analysis."""

import threading
from concurrent.futures import ThreadPoolExecutor

from commitcraft.analysis.diff_analyzer import DiffAnalyzer
from commitcraft.models import ComplexityTier, Severity, VersionBump
from commitcraft.store.cache import AnalysisCache


class TestDiffAnalyzer:
    """Tests for DiffAnalyzer.analyze()."""

    def test_button_rename_scenario(self, button_diff):
        """Test the small prop rename: one TS file, no findings, low complexity."""
        analyzer = DiffAnalyzer()
        analysis = analyzer.analyze(analyzer.parse(button_diff))
        assert analysis.total_files_changed == 1
        assert analysis.languages == {"TypeScript": 1}
        assert analysis.security_findings == []
        assert analysis.complexity == ComplexityTier.LOW
        assert analysis.total_lines_added == 1
        assert analysis.total_lines_removed == 1
        assert analysis.affected_modules == ["User Interface"]
        assert analysis.domain_contexts == ["General Development"]
        assert analysis.preflight.security_scan_passed is True

    def test_critical_secret_forces_high(self, secret_diff):
        """Test that a trivial diff with a committed key is high complexity."""
        analyzer = DiffAnalyzer()
        analysis = analyzer.analyze(analyzer.parse(secret_diff))
        assert analysis.complexity == ComplexityTier.HIGH
        assert analysis.has_critical_finding is True
        assert analysis.security_findings[0].severity == Severity.CRITICAL
        assert analysis.preflight.security_scan_passed is False
        assert "Authentication & Security" in analysis.affected_modules

    def test_multi_file_merge(self, multi_file_diff):
        """Test merged languages, smells and preflight across files."""
        analyzer = DiffAnalyzer(max_workers=3)
        analysis = analyzer.analyze(analyzer.parse(multi_file_diff))
        assert analysis.total_files_changed == 3
        assert analysis.languages == {"JavaScript": 1, "Markdown": 1, "Python": 1}
        assert [s.rule_id for s in analysis.code_smells] == ["no-console", "no-debugger"]
        assert analysis.preflight.lint_passed is False
        assert analysis.preflight.tests_suggested is True
        assert analysis.total_lines_removed == 2

    def test_info_smell_fails_lint(self):
        """Test that lint_passed is False for any smell, INFO included."""
        diff = (
            "--- a/src/jobs.py\n"
            "+++ b/src/jobs.py\n"
            "@@ -1,1 +1,2 @@\n"
            " def run():\n"
            "+    # TODO: retry on timeout\n"
        )
        analyzer = DiffAnalyzer()
        analysis = analyzer.analyze(analyzer.parse(diff))
        assert [(s.rule_id, s.severity) for s in analysis.code_smells] == [("todo-comment", Severity.INFO)]
        assert analysis.preflight.lint_passed is False

    def test_conventional_suggestions(self, button_diff, multi_file_diff):
        """Test the inferred type, scope and version bump."""
        analyzer = DiffAnalyzer()
        button = analyzer.analyze(analyzer.parse(button_diff))
        assert (button.suggested_type, button.suggested_scope) == ("refactor", "components")
        assert button.version_bump == VersionBump.PATCH
        assert button.breaking_change is False
        multi = analyzer.analyze(analyzer.parse(multi_file_diff))
        assert (multi.suggested_type, multi.suggested_scope) == ("feat", None)
        assert multi.version_bump == VersionBump.MINOR

    def test_result_independent_of_worker_count(self, multi_file_diff):
        """Test that one worker and many workers give identical analyses."""
        single = DiffAnalyzer(max_workers=1)
        many = DiffAnalyzer(max_workers=8)
        assert single.analyze(single.parse(multi_file_diff)) == many.analyze(many.parse(multi_file_diff))

    def test_narrative_adds_tickets_and_domains(self, button_diff):
        """Test that the narrative contributes ticket ids and domains."""
        analyzer = DiffAnalyzer()
        analysis = analyzer.analyze(
            analyzer.parse(button_diff),
            narrative="UI-42: rename prop used by the checkout page",
        )
        assert analysis.linked_tickets == ["UI-42"]
        assert "Billing & E-commerce" in analysis.domain_contexts


class TestSingleFlightAnalysis:
    """Concurrent analyze calls for one fingerprint share one computation."""

    def test_concurrent_callers_share_result(self, button_diff):
        """Test that N concurrent callers run exactly one computation."""
        analyzer = DiffAnalyzer()
        cache = AnalysisCache()
        document = analyzer.parse(button_diff)
        callers = 8
        barrier = threading.Barrier(callers)
        computations = []

        def compute():
            computations.append(1)
            return analyzer.analyze(document)

        def call():
            barrier.wait()
            return cache.get_or_compute(document.fingerprint, compute)

        with ThreadPoolExecutor(max_workers=callers) as pool:
            results = list(pool.map(lambda _: call(), range(callers)))

        assert len(computations) == 1
        assert cache.compute_count == 1
        assert all(result == results[0] for result in results)
