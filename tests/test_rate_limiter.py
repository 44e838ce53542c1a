"""Tests for the sliding window rate limiter."""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from tools.rate_limiter import RateLimitDecision, SlidingWindowRateLimiter


class TestAdmission:
    """Test admission within and across windows."""

    def test_eleventh_request_in_window_is_rejected(self):
        limiter = SlidingWindowRateLimiter(max_requests=10, window_seconds=60)

        decisions = [limiter.admit("10.0.0.1", now=float(i)) for i in range(10)]
        assert all(d.allowed for d in decisions)

        rejected = limiter.admit("10.0.0.1", now=30.0)
        assert not rejected.allowed
        assert rejected.remaining == 0
        assert rejected.limit == 10

    def test_admission_resets_after_window_elapses(self):
        limiter = SlidingWindowRateLimiter(max_requests=10, window_seconds=60)

        for _ in range(10):
            assert limiter.admit("client", now=0.0).allowed
        assert not limiter.admit("client", now=59.9).allowed

        decision = limiter.admit("client", now=60.0)
        assert decision.allowed
        assert decision.remaining == 9

    def test_window_slides_with_oldest_requests(self):
        limiter = SlidingWindowRateLimiter(max_requests=4, window_seconds=60)

        assert limiter.admit("client", now=0.0).allowed
        assert limiter.admit("client", now=0.0).allowed
        assert limiter.admit("client", now=30.0).allowed
        assert limiter.admit("client", now=30.0).allowed
        assert not limiter.admit("client", now=59.0).allowed

        # Only the two requests from t=0 have left the window
        assert limiter.admit("client", now=60.0).allowed
        assert limiter.admit("client", now=60.0).allowed
        assert not limiter.admit("client", now=60.0).allowed

    def test_remaining_counts_down(self):
        limiter = SlidingWindowRateLimiter(max_requests=3, window_seconds=10)
        remaining = [limiter.admit("client", now=1.0).remaining for _ in range(3)]
        assert remaining == [2, 1, 0]

    def test_rejected_requests_are_not_counted(self):
        limiter = SlidingWindowRateLimiter(max_requests=2, window_seconds=10)
        limiter.admit("client", now=0.0)
        limiter.admit("client", now=0.0)

        for t in range(1, 9):
            assert not limiter.admit("client", now=float(t)).allowed

        assert limiter.admit("client", now=10.0).allowed

    def test_clients_are_independent(self):
        limiter = SlidingWindowRateLimiter(max_requests=1, window_seconds=60)
        assert limiter.admit("a", now=0.0).allowed
        assert not limiter.admit("a", now=1.0).allowed
        assert limiter.admit("b", now=1.0).allowed

    def test_reset_after_points_at_oldest_request(self):
        limiter = SlidingWindowRateLimiter(max_requests=2, window_seconds=60)
        limiter.admit("client", now=10.0)
        limiter.admit("client", now=20.0)

        decision = limiter.admit("client", now=25.0)
        assert not decision.allowed
        assert decision.reset_after == pytest.approx(45.0)
        assert decision.retry_after == 45

    def test_retry_after_is_at_least_one_second(self):
        decision = RateLimitDecision(allowed=False, limit=1, remaining=0, reset_after=0.2)
        assert decision.retry_after == 1

    def test_uses_monotonic_clock_by_default(self):
        limiter = SlidingWindowRateLimiter(max_requests=1, window_seconds=60)
        assert limiter.admit("client").allowed
        assert not limiter.admit("client").allowed

    @pytest.mark.parametrize("max_requests,window", [(0, 60), (-1, 60), (10, 0), (10, -5)])
    def test_invalid_configuration_is_rejected(self, max_requests, window):
        with pytest.raises(ValueError):
            SlidingWindowRateLimiter(max_requests=max_requests, window_seconds=window)


class TestConcurrency:
    """Test that concurrent admissions for one client never undercount."""

    def test_concurrent_requests_from_same_client(self):
        limiter = SlidingWindowRateLimiter(max_requests=10, window_seconds=60)
        barrier = threading.Barrier(20)

        def attempt(_):
            barrier.wait()
            return limiter.admit("shared", now=5.0).allowed

        with ThreadPoolExecutor(max_workers=20) as pool:
            results = list(pool.map(attempt, range(20)))

        assert results.count(True) == 10
        assert results.count(False) == 10

    def test_concurrent_requests_across_clients(self):
        limiter = SlidingWindowRateLimiter(max_requests=3, window_seconds=60)

        def attempt(i):
            return f"client-{i % 5}", limiter.admit(f"client-{i % 5}", now=1.0).allowed

        with ThreadPoolExecutor(max_workers=10) as pool:
            results = list(pool.map(attempt, range(50)))

        for n in range(5):
            allowed = [ok for key, ok in results if key == f"client-{n}"]
            assert allowed.count(True) == 3


class TestHousekeeping:
    """Test pruning of idle clients."""

    def test_prune_drops_idle_clients(self):
        limiter = SlidingWindowRateLimiter(max_requests=5, window_seconds=60)
        limiter.admit("old", now=0.0)
        limiter.admit("recent", now=50.0)
        assert len(limiter) == 2

        removed = limiter.prune(now=70.0)
        assert removed == 1
        assert len(limiter) == 1

    def test_pruned_client_starts_fresh(self):
        limiter = SlidingWindowRateLimiter(max_requests=1, window_seconds=60)
        limiter.admit("client", now=0.0)
        limiter.prune(now=61.0)
        assert limiter.admit("client", now=61.0).allowed

    def test_reset_forgets_everything(self):
        limiter = SlidingWindowRateLimiter(max_requests=1, window_seconds=60)
        limiter.admit("client", now=0.0)
        limiter.reset()
        assert len(limiter) == 0
        assert limiter.admit("client", now=1.0).allowed
