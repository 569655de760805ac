"""Rule engine for line-based lint and security checks."""

import re
from functools import lru_cache

from pydantic import BaseModel, ConfigDict, Field

from commitcraft.models.analysis_models import Severity

MAX_EVIDENCE_CHARS = 120


@lru_cache(maxsize=256)
def _compile(pattern: str, flags: int) -> re.Pattern[str]:
    return re.compile(pattern, flags)


class PatternRule(BaseModel):
    """A single regex rule evaluated against added lines."""

    model_config = ConfigDict(frozen=True)

    rule_id: str
    category: str
    severity: Severity
    description: str
    pattern: str
    ignore_case: bool = False
    languages: list[str] = Field(default_factory=list)  # Empty means every language

    @property
    def compiled(self) -> re.Pattern[str]:
        flags = re.IGNORECASE if self.ignore_case else 0
        return _compile(self.pattern, flags)

    def applies_to(self, language: str) -> bool:
        return not self.languages or language in self.languages


class RuleMatch(BaseModel):
    model_config = ConfigDict(frozen=True)

    rule_id: str
    severity: Severity
    description: str
    line_number: int
    evidence: str


def evaluate_rules(
    rules: list[PatternRule],
    lines: list[tuple[int, str]],
    language: str,
) -> list[RuleMatch]:
    """Run every applicable rule over numbered lines.

    Args:
        rules: Rules to evaluate.
        lines: (line_number, content) pairs, added lines only.
        language: Detected language of the file; rules scoped to other
            languages are skipped.

    Returns:
        One RuleMatch per (rule, line) hit, in line order then rule order.
    """
    active = [rule for rule in rules if rule.applies_to(language)]
    matches: list[RuleMatch] = []
    for line_number, content in lines:
        for rule in active:
            if rule.compiled.search(content):
                matches.append(RuleMatch(
                    rule_id=rule.rule_id,
                    severity=rule.severity,
                    description=rule.description,
                    line_number=line_number,
                    evidence=content.strip()[:MAX_EVIDENCE_CHARS],
                ))
    return matches
