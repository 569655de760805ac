"""Tests for the per-package exception hierarchies."""

from commitcraft.analysis.exceptions import AnalysisError, ParseError
from commitcraft.enhancement.exceptions import EnhancementError
from commitcraft.orchestrator.exceptions import GraphBuildError, OrchestratorError, PipelineAbortedError
from commitcraft.providers.exceptions import (
    ConfigurationError,
    ProviderError,
    ProviderLayerError,
    RateLimitExceeded,
    UnsupportedProviderError,
)
from commitcraft.store.exceptions import PersistenceError, RecordNotFoundError, StoreError


class TestProviderExceptions:
    """Tests for the provider exception hierarchy."""

    def test_all_inherit_from_provider_layer_error(self):
        """Test that every provider error shares one base."""
        for cls in (ConfigurationError, ProviderError, RateLimitExceeded, UnsupportedProviderError):
            assert issubclass(cls, ProviderLayerError)

    def test_only_rate_limit_is_retryable(self):
        """Test the retryable flag."""
        assert RateLimitExceeded("slow down").retryable is True
        assert ProviderError("boom").retryable is False
        assert ConfigurationError("no key").retryable is False

    def test_provider_error_partial_output(self):
        """Test that ProviderError carries partial_output."""
        assert ProviderError("boom").partial_output is False
        assert ProviderError("boom", partial_output=True).partial_output is True

    def test_rate_limit_attributes(self):
        """Test that RateLimitExceeded keeps its model and retry hint."""
        exc = RateLimitExceeded("slow down", model_id="gpt-4o-mini", retry_after=12.5)
        assert exc.model_id == "gpt-4o-mini"
        assert exc.retry_after == 12.5


class TestOtherExceptions:
    """Tests for analysis, enhancement, store and orchestrator errors."""

    def test_parse_error_is_analysis_error(self):
        """Test that ParseError keeps the file path."""
        exc = ParseError("bad hunk", file_path="a.py")
        assert isinstance(exc, AnalysisError)
        assert exc.file_path == "a.py"

    def test_enhancement_error_stage(self):
        """Test that EnhancementError records its stage."""
        assert EnhancementError("nope", stage="linted").stage == "linted"

    def test_store_errors(self):
        """Test the store hierarchy and record id."""
        exc = RecordNotFoundError("rec-1")
        assert isinstance(exc, StoreError)
        assert exc.record_id == "rec-1"
        assert "rec-1" in str(exc)
        assert issubclass(PersistenceError, StoreError)

    def test_orchestrator_errors(self):
        """Test the orchestrator hierarchy."""
        assert issubclass(GraphBuildError, OrchestratorError)
        assert issubclass(PipelineAbortedError, OrchestratorError)
        assert PipelineAbortedError("cancelled").retryable is True
