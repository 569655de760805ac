"""Complexity tier derivation.

score = files + changed_lines / 25 + 1.5 * max(0, modules - 1)

The tier comes from fixed thresholds on that score, except that a single
critical security finding forces HIGH whatever the score.
"""

from commitcraft.models.analysis_models import ComplexityTier, SecurityFinding, Severity

LINES_PER_POINT = 25
MODULE_WEIGHT = 1.5
LOW_UPPER_BOUND = 4.0
MEDIUM_UPPER_BOUND = 10.0


def complexity_score(file_count: int, changed_lines: int, module_count: int) -> float:
    return (
        file_count
        + changed_lines / LINES_PER_POINT
        + MODULE_WEIGHT * max(0, module_count - 1)
    )


def derive_complexity(
    file_count: int,
    changed_lines: int,
    module_count: int,
    findings: list[SecurityFinding],
) -> tuple[ComplexityTier, float]:
    """Return (tier, heuristic score) for a diff.

    Args:
        file_count: Files touched by the diff.
        changed_lines: Added plus removed lines.
        module_count: Distinct affected modules.
        findings: Security findings; any CRITICAL one forces HIGH.

    Returns:
        Tuple of the tier and the unrounded heuristic score.
    """
    score = complexity_score(file_count, changed_lines, module_count)
    if any(finding.severity == Severity.CRITICAL for finding in findings):
        return ComplexityTier.HIGH, score
    if score < LOW_UPPER_BOUND:
        return ComplexityTier.LOW, score
    if score < MEDIUM_UPPER_BOUND:
        return ComplexityTier.MEDIUM, score
    return ComplexityTier.HIGH, score
