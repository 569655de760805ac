"""Utilities for commitcraft."""

from commitcraft.utils.ast_parser import AstSmell, find_smells, is_supported
from commitcraft.utils.logging_setup import configure_logging

__all__ = [
    "AstSmell",
    "configure_logging",
    "find_smells",
    "is_supported",
]
