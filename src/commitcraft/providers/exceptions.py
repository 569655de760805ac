"""Exceptions for model routing and provider calls.

Note: RateLimitExceeded is the only retryable kind; callers decide whether
to re-trigger, nothing in the pipeline retries automatically.
"""


class ProviderLayerError(Exception):
    """Base exception for all model routing operations."""

    retryable = False


class ConfigurationError(ProviderLayerError):
    """Raised when a model configuration or credential is missing or invalid."""


class ProviderError(ProviderLayerError):
    """Raised when the upstream provider fails to generate."""

    def __init__(self, message: str, partial_output: bool = False) -> None:
        super().__init__(message)
        self.partial_output = partial_output


class RateLimitExceeded(ProviderLayerError):
    """Raised when the per-model rate-limit gate cannot clear within its bound."""

    retryable = True

    def __init__(self, message: str, model_id: str | None = None, retry_after: float | None = None) -> None:
        super().__init__(message)
        self.model_id = model_id
        self.retry_after = retry_after


class UnsupportedProviderError(ProviderLayerError):
    """Raised when a model names a provider tag with no streaming backend."""
