"""Tests for SlidingWindowRateLimiter."""

import time

import pytest

from commitcraft.providers.exceptions import ConfigurationError, RateLimitExceeded
from commitcraft.providers.rate_limiter import SlidingWindowRateLimiter


class FakeClock:
    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class TestSlidingWindowRateLimiter:
    """Tests for acquire(), remaining() and reset()."""

    def test_allows_up_to_limit(self):
        """Test that the first max_requests calls pass without waiting."""
        limiter = SlidingWindowRateLimiter(max_requests=3, window_seconds=60, max_wait_seconds=0)
        results = [limiter.acquire("gpt-4o-mini") for _ in range(3)]
        assert [r.reason for r in results] == ["ok", "ok", "ok"]
        assert [r.remaining for r in results] == [2, 1, 0]

    def test_fails_fast_when_slot_beyond_bound(self):
        """Test that an unreachable slot raises immediately, within the bound."""
        limiter = SlidingWindowRateLimiter(max_requests=1, window_seconds=60, max_wait_seconds=0.2)
        limiter.acquire("claude-sonnet-4-5")
        started = time.monotonic()
        with pytest.raises(RateLimitExceeded) as exc_info:
            limiter.acquire("claude-sonnet-4-5")
        assert time.monotonic() - started < 0.2
        assert exc_info.value.retryable is True
        assert exc_info.value.model_id == "claude-sonnet-4-5"
        assert exc_info.value.retry_after > 59

    def test_waits_for_window_to_clear(self):
        """Test that a slot freeing inside the bound is granted after a wait."""
        limiter = SlidingWindowRateLimiter(max_requests=1, window_seconds=0.1, max_wait_seconds=2)
        limiter.acquire("m")
        result = limiter.acquire("m")
        assert result.allowed is True
        assert result.reason == "waited"
        assert result.waited_s > 0

    def test_keys_are_independent(self):
        """Test that each model id has its own window."""
        limiter = SlidingWindowRateLimiter(max_requests=1, window_seconds=60, max_wait_seconds=0)
        limiter.acquire("a")
        assert limiter.acquire("b").allowed is True
        assert limiter.remaining("a") == 0
        assert limiter.remaining("unused") == 1

    def test_window_slides_with_clock(self):
        """Test pruning against an injected clock."""
        clock = FakeClock()
        limiter = SlidingWindowRateLimiter(max_requests=2, window_seconds=10, max_wait_seconds=0, clock=clock)
        limiter.acquire("m")
        limiter.acquire("m")
        assert limiter.remaining("m") == 0
        clock.advance(10)
        assert limiter.remaining("m") == 2

    def test_reset(self):
        """Test that reset() clears a key."""
        limiter = SlidingWindowRateLimiter(max_requests=1, window_seconds=60, max_wait_seconds=0)
        limiter.acquire("m")
        limiter.reset("m")
        assert limiter.acquire("m").reason == "ok"

    def test_invalid_configuration(self):
        """Test constructor validation."""
        with pytest.raises(ConfigurationError):
            SlidingWindowRateLimiter(max_requests=0, window_seconds=60, max_wait_seconds=1)
