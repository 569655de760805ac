"""Diff parsing and analysis."""

from commitcraft.analysis.complexity import derive_complexity
from commitcraft.analysis.diff_analyzer import DiffAnalyzer
from commitcraft.analysis.diff_parser import fingerprint, parse_diff
from commitcraft.analysis.exceptions import AnalysisError, ParseError

__all__ = [
    "AnalysisError",
    "DiffAnalyzer",
    "ParseError",
    "derive_complexity",
    "fingerprint",
    "parse_diff",
]
