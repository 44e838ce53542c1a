"""
In-memory sliding window rate limiter.

Counts requests per client key over the trailing window. Counters live in
process memory only and reset on restart.
"""

import math
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Deque, Dict, Optional


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of a single admission check."""
    allowed: bool
    limit: int
    remaining: int
    reset_after: float

    @property
    def retry_after(self) -> int:
        """Whole seconds a rejected client should wait."""
        return max(1, math.ceil(self.reset_after))


class _Bucket:
    __slots__ = ("lock", "hits", "retired")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.hits: Deque[float] = deque()
        self.retired = False


class SlidingWindowRateLimiter:
    """
    Per-client sliding window limiter.

    Updates for the same client are serialized by that client's lock; the
    registry lock is held only while looking up or creating a bucket.
    """

    def __init__(self, max_requests: int = 10, window_seconds: float = 60.0):
        """
        Initialize the limiter.

        Args:
            max_requests: Requests admitted per client within one window
            window_seconds: Length of the window in seconds
        """
        if max_requests <= 0:
            raise ValueError("max_requests must be positive")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")

        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._buckets: Dict[str, _Bucket] = {}
        self._registry_lock = threading.Lock()

    def _bucket(self, client_key: str) -> _Bucket:
        with self._registry_lock:
            bucket = self._buckets.get(client_key)
            if bucket is None:
                bucket = self._buckets[client_key] = _Bucket()
            return bucket

    def _expire(self, hits: Deque[float], now: float) -> None:
        cutoff = now - self.window_seconds
        while hits and hits[0] <= cutoff:
            hits.popleft()

    def admit(self, client_key: str, now: Optional[float] = None) -> RateLimitDecision:
        """
        Admit or reject one request from ``client_key``.

        Rejected requests are not counted against the window.

        Args:
            client_key: Client identity, usually the remote address
            now: Monotonic timestamp in seconds (defaults to the current time)

        Returns:
            RateLimitDecision for this request
        """
        if now is None:
            now = time.monotonic()

        while True:
            bucket = self._bucket(client_key)
            with bucket.lock:
                # pruned between lookup and lock; fetch the replacement
                if bucket.retired:
                    continue
                return self._admit_locked(bucket, now)

    def _admit_locked(self, bucket: _Bucket, now: float) -> RateLimitDecision:
        self._expire(bucket.hits, now)

        if len(bucket.hits) >= self.max_requests:
            reset_after = bucket.hits[0] + self.window_seconds - now
            return RateLimitDecision(
                allowed=False,
                limit=self.max_requests,
                remaining=0,
                reset_after=reset_after,
            )

        bucket.hits.append(now)
        return RateLimitDecision(
            allowed=True,
            limit=self.max_requests,
            remaining=self.max_requests - len(bucket.hits),
            reset_after=bucket.hits[0] + self.window_seconds - now,
        )

    def prune(self, now: Optional[float] = None) -> int:
        """
        Drop clients with no requests inside the current window.

        Returns:
            Number of client keys removed
        """
        if now is None:
            now = time.monotonic()

        with self._registry_lock:
            removed = 0
            for key in list(self._buckets):
                bucket = self._buckets[key]
                with bucket.lock:
                    self._expire(bucket.hits, now)
                    if not bucket.hits:
                        bucket.retired = True
                        del self._buckets[key]
                        removed += 1
            return removed

    def reset(self) -> None:
        """Forget all counters."""
        with self._registry_lock:
            self._buckets.clear()

    def __len__(self) -> int:
        with self._registry_lock:
            return len(self._buckets)
