"""Exceptions for orchestrator operations."""


class OrchestratorError(Exception):
    """Base exception for all orchestrator operations."""


class GraphBuildError(OrchestratorError):
    """Raised when graph construction fails."""


class PipelineAbortedError(OrchestratorError):
    """Raised when a generation is cancelled before its record is persisted."""

    retryable = True
