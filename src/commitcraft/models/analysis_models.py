"""Models produced by diff analysis."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Severity(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"


class ComplexityTier(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class VersionBump(str, Enum):
    MAJOR = "major"
    MINOR = "minor"
    PATCH = "patch"
    NONE = "none"


class CodeSmell(BaseModel):
    model_config = ConfigDict(frozen=True)

    rule_id: str                  # "no-console" | "no-debugger" | "no-explicit-any" | ...
    file_path: str
    line_number: int
    message: str
    severity: Severity = Severity.LOW


class SecurityFinding(BaseModel):
    model_config = ConfigDict(frozen=True)

    rule_id: str
    file_path: str
    line_number: int
    severity: Severity
    description: str
    evidence: str | None = None   # Offending line, truncated


class RefactorSuggestion(BaseModel):
    model_config = ConfigDict(frozen=True)

    file_path: str
    suggestion: str


class PreflightChecks(BaseModel):
    """Boolean gates surfaced next to the generated message."""

    model_config = ConfigDict(frozen=True)

    lint_passed: bool = True
    tests_suggested: bool = False
    security_scan_passed: bool = True


class DiffAnalysis(BaseModel):
    """Derived, immutable analysis of one DiffDocument.

    Keyed by the same fingerprint as the document it was computed from.
    Every list is sorted so that two analyses of the same document compare
    equal regardless of the order per-file workers finished in.
    """

    model_config = ConfigDict(frozen=True)

    fingerprint: str
    total_files_changed: int = 0
    total_lines_added: int = 0
    total_lines_removed: int = 0
    languages: dict[str, int] = Field(default_factory=dict)
    code_smells: list[CodeSmell] = Field(default_factory=list)
    security_findings: list[SecurityFinding] = Field(default_factory=list)
    affected_modules: list[str] = Field(default_factory=list)
    domain_contexts: list[str] = Field(default_factory=list)
    refactor_suggestions: list[RefactorSuggestion] = Field(default_factory=list)
    complexity: ComplexityTier = ComplexityTier.LOW
    complexity_score: float = 0.0
    linked_tickets: list[str] = Field(default_factory=list)
    preflight: PreflightChecks = Field(default_factory=PreflightChecks)
    low_confidence_files: list[str] = Field(default_factory=list)
    suggested_type: str = "chore"  # Conventional commit type inferred from the paths and lines
    suggested_scope: str | None = None
    breaking_change: bool = False
    version_bump: VersionBump = VersionBump.NONE

    @property
    def has_critical_finding(self) -> bool:
        return any(f.severity == Severity.CRITICAL for f in self.security_findings)
