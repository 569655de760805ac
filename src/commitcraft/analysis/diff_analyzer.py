"""Diff analyzer: parse raw diffs and compute a deterministic DiffAnalysis."""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field

from commitcraft.analysis import conventions, detectors
from commitcraft.analysis.complexity import derive_complexity
from commitcraft.analysis.diff_parser import parse_diff
from commitcraft.models.analysis_models import (
    CodeSmell,
    DiffAnalysis,
    PreflightChecks,
    RefactorSuggestion,
    SecurityFinding,
    Severity,
)
from commitcraft.models.diff_models import DiffDocument, FileChange, FileStatus

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 4
BLOCKING_SEVERITIES = frozenset({Severity.CRITICAL, Severity.HIGH})


@dataclass
class _FileFindings:
    path: str
    language: str
    modules: set[str] = field(default_factory=set)
    domains: set[str] = field(default_factory=set)
    smells: list[CodeSmell] = field(default_factory=list)
    security: list[SecurityFinding] = field(default_factory=list)
    refactors: list[RefactorSuggestion] = field(default_factory=list)


class DiffAnalyzer:
    """Parses diffs and runs the per-file sub-analyzers in a thread pool."""

    def __init__(self, max_workers: int = DEFAULT_MAX_WORKERS) -> None:
        self.max_workers = max(1, max_workers)

    def parse(self, diff_text: str) -> DiffDocument:
        return parse_diff(diff_text)

    def analyze(self, document: DiffDocument, narrative: str | None = None) -> DiffAnalysis:
        """Compute the analysis for a parsed diff.

        Sub-analyzers only look at added lines. Their outputs are merged as
        set unions and then sorted, so the result is identical no matter
        which worker finishes first.

        Args:
            document: Parsed diff.
            narrative: Optional free-text description scanned for ticket ids
                and domain keywords. Advisory only.

        Returns:
            Frozen DiffAnalysis keyed by document.fingerprint.
        """
        per_file: list[_FileFindings] = []
        if document.files:
            workers = min(self.max_workers, len(document.files))
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="diff-analyzer") as pool:
                futures = [pool.submit(self._analyze_file, fc) for fc in document.files]
                for future in as_completed(futures):
                    per_file.append(future.result())

        languages: dict[str, int] = {}
        modules: set[str] = set()
        domains: set[str] = set()
        smells: set[CodeSmell] = set()
        security: set[SecurityFinding] = set()
        refactors: set[RefactorSuggestion] = set()
        for findings in per_file:
            languages[findings.language] = languages.get(findings.language, 0) + 1
            modules |= findings.modules
            domains |= findings.domains
            smells.update(findings.smells)
            security.update(findings.security)
            refactors.update(findings.refactors)

        if narrative:
            domains |= detectors.infer_domains(narrative)
        if not domains:
            domains.add(detectors.DEFAULT_DOMAIN)

        commit_type = conventions.infer_commit_type(document)
        breaking = conventions.detect_breaking_change(document)
        lines_added = sum(len(fc.added_lines()) for fc in document.files)
        lines_removed = sum(len(fc.deleted_lines()) for fc in document.files)
        sorted_security = sorted(security, key=lambda f: (f.file_path, f.line_number, f.rule_id))
        tier, score = derive_complexity(
            file_count=len(document.files),
            changed_lines=lines_added + lines_removed,
            module_count=len(modules),
            findings=sorted_security,
        )

        analysis = DiffAnalysis(
            fingerprint=document.fingerprint,
            total_files_changed=len(document.files),
            total_lines_added=lines_added,
            total_lines_removed=lines_removed,
            languages=dict(sorted(languages.items())),
            code_smells=sorted(smells, key=lambda s: (s.file_path, s.line_number, s.rule_id)),
            security_findings=sorted_security,
            affected_modules=sorted(modules),
            domain_contexts=sorted(domains),
            refactor_suggestions=sorted(refactors, key=lambda r: (r.file_path, r.suggestion)),
            complexity=tier,
            complexity_score=round(score, 4),
            linked_tickets=detectors.extract_ticket_ids(document.raw_text, narrative),
            preflight=self._preflight(document, smells, sorted_security),
            low_confidence_files=document.low_confidence_paths,
            suggested_type=commit_type,
            suggested_scope=conventions.infer_commit_scope(document),
            breaking_change=breaking,
            version_bump=conventions.suggest_version_bump(commit_type, breaking),
        )
        logger.debug(
            "Analyzed %s: files=%d complexity=%s findings=%d",
            document.fingerprint[:12],
            analysis.total_files_changed,
            analysis.complexity.value,
            len(analysis.security_findings),
        )
        return analysis

    def _analyze_file(self, file_change: FileChange) -> _FileFindings:
        language = detectors.detect_language(file_change.path)
        findings = _FileFindings(
            path=file_change.path,
            language=language,
            modules=detectors.infer_modules(file_change.path),
        )
        if file_change.status == FileStatus.DELETED:
            return findings

        findings.domains = detectors.infer_domains(f"{file_change.path}\n{file_change.added_text}")
        findings.smells = detectors.detect_smells(file_change, language)
        findings.security = detectors.detect_security(file_change, language)
        findings.refactors = detectors.suggest_refactors(file_change)
        return findings

    def _preflight(
        self,
        document: DiffDocument,
        smells: set[CodeSmell],
        security: list[SecurityFinding],
    ) -> PreflightChecks:
        touches_source = any(
            fc.status != FileStatus.DELETED
            and detectors.detect_language(fc.path) in detectors.SOURCE_LANGUAGES
            and not detectors.is_test_path(fc.path)
            for fc in document.files
        )
        touches_tests = any(detectors.is_test_path(fc.path) for fc in document.files)
        return PreflightChecks(
            lint_passed=not smells,
            tests_suggested=touches_source and not touches_tests,
            security_scan_passed=not any(f.severity in BLOCKING_SEVERITIES for f in security),
        )
