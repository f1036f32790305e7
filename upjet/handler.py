"""Queueing of rate-limited reconcile requests."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Hashable, Optional


@dataclass(frozen=True)
class _Request:
    namespace: str
    name: str


class RateLimiter:
    """Per-item exponential back-off combined with an overall token bucket.

    The delay for an item is the larger of the two limits.
    """

    def __init__(
        self,
        base_delay: float = 0.005,
        max_delay: float = 1000.0,
        qps: float = 10.0,
        burst: int = 100,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.qps = qps
        self.burst = burst
        self._clock = clock
        self._failures: Dict[Hashable, int] = {}
        self._tokens = float(burst)
        self._last = clock()
        self._lock = threading.Lock()

    def _bucket_delay(self) -> float:
        now = self._clock()
        elapsed = max(0.0, now - self._last)
        self._last = now
        self._tokens = min(float(self.burst), self._tokens + elapsed * self.qps)
        self._tokens -= 1
        if self._tokens >= 0:
            return 0.0
        return -self._tokens / self.qps

    def when(self, item: Hashable) -> float:
        """Record a requeue of ``item`` and return its delay in seconds."""
        with self._lock:
            exponent = self._failures.get(item, 0)
            self._failures[item] = exponent + 1
            backoff = self.base_delay * 2.0**exponent
            backoff = min(backoff, self.max_delay)
            return max(backoff, self._bucket_delay())

    def forget(self, item: Hashable) -> None:
        """Reset the back-off of ``item``."""
        with self._lock:
            self._failures.pop(item, None)

    def num_requeues(self, item: Hashable) -> int:
        """Return how often ``item`` was requeued since it was last forgotten."""
        with self._lock:
            return self._failures.get(item, 0)


class EventHandler:
    """Requeues reconcile requests by name through named rate limiters.

    The queue is any object with ``add_after(item, delay)``; it is set once
    with ``set_queue``.
    """

    def __init__(
        self,
        logger: Optional[logging.Logger] = None,
        rate_limiter_factory: Callable[[], RateLimiter] = RateLimiter,
    ) -> None:
        self.logger = logger or logging.getLogger(__name__)
        self.queue: Any = None
        self.rate_limiters: Dict[str, RateLimiter] = {}
        self._rate_limiter_factory = rate_limiter_factory
        self._lock = threading.RLock()

    def request_reconcile(
        self, rate_limiter_name: str, name: str, failure_limit: Optional[int] = None
    ) -> bool:
        """Queue a reconcile request for ``name``; return whether it was queued."""
        with self._lock:
            if self.queue is None:
                return False
            item = _Request("", name)
            limiter = self.rate_limiters.get(rate_limiter_name)
            if limiter is None:
                limiter = self._rate_limiter_factory()
                self.rate_limiters[rate_limiter_name] = limiter
            requeues = limiter.num_requeues(item)
            if failure_limit is not None and requeues > failure_limit:
                self.logger.info(
                    "Failure limit has been exceeded. name=%s failureLimit=%d "
                    "numRequeues=%d",
                    name,
                    failure_limit,
                    requeues,
                )
                return False
            delay = limiter.when(item)
            self.queue.add_after(item, delay)
            self.logger.debug(
                "Reconcile request has been requeued. name=%s rateLimiterName=%s "
                "when=%s",
                name,
                rate_limiter_name,
                delay,
            )
            return True

    def forget(self, rate_limiter_name: str, name: str) -> None:
        """Mark the retries of ``name`` under the given limiter as finished."""
        with self._lock:
            limiter = self.rate_limiters.get(rate_limiter_name)
            if limiter is not None:
                limiter.forget(_Request("", name))

    def set_queue(self, queue: Any) -> None:
        """Use ``queue`` for requeued requests unless one is set already."""
        with self._lock:
            if self.queue is None:
                self.queue = queue