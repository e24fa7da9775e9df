"""Fixed-window rate limiting.

Counters live behind the ``Counter`` protocol. The default ``InMemoryCounter``
is process-local and best-effort: with N instances the effective global limit
is ``limit * N``. A shared backend can be dropped in without touching callers.
"""

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Mapping, Optional, Protocol


@dataclass
class Bucket:
    count: int
    reset_at: float


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    remaining: int
    retry_after_seconds: int


class Counter(Protocol):
    """Increment-with-expiry counters keyed by string."""

    def now(self) -> float: ...

    def get(self, key: str) -> Optional[Bucket]:
        """Current bucket for ``key``, or None when absent or expired."""
        ...

    def increment(self, key: str, window_seconds: float) -> Bucket:
        """Add one, opening a fresh window when none is live."""
        ...

    def reset(self, key: str) -> None: ...


class InMemoryCounter:
    """Process-local counter map. Entries vanish on restart."""

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        sweep_interval: float = 60.0,
    ):
        self._clock = clock
        self._buckets: dict[str, Bucket] = {}
        self._lock = threading.Lock()
        self._sweep_interval = sweep_interval
        self._next_sweep = clock() + sweep_interval

    def size(self) -> int:
        with self._lock:
            return len(self._buckets)

    def _sweep(self, now: float) -> None:
        # Caller holds the lock.
        expired = [key for key, bucket in self._buckets.items() if bucket.reset_at <= now]
        for key in expired:
            del self._buckets[key]
        self._next_sweep = now + self._sweep_interval

    def now(self) -> float:
        return self._clock()

    def get(self, key: str) -> Optional[Bucket]:
        with self._lock:
            bucket = self._buckets.get(key)
            if bucket is None or bucket.reset_at <= self._clock():
                return None
            return Bucket(bucket.count, bucket.reset_at)

    def increment(self, key: str, window_seconds: float) -> Bucket:
        with self._lock:
            now = self._clock()
            if now >= self._next_sweep:
                self._sweep(now)
            bucket = self._buckets.get(key)
            if bucket is None or bucket.reset_at <= now:
                bucket = Bucket(count=1, reset_at=now + window_seconds)
                self._buckets[key] = bucket
            else:
                bucket.count += 1
            return Bucket(bucket.count, bucket.reset_at)

    def reset(self, key: str) -> None:
        with self._lock:
            self._buckets.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._buckets.clear()


class RateLimiter:
    """Fixed-window limiter over a ``Counter`` backend."""

    def __init__(self, counter: Counter | None = None):
        self.counter = counter or InMemoryCounter()

    def check(self, key: str, limit: int, window_seconds: float) -> RateLimitResult:
        """Count one request against ``key`` and decide whether it may proceed.

        Keys are composed by the caller, typically ``operation:ip:tenant``.
        """
        current = self.counter.get(key)

        if current is None:
            self.counter.increment(key, window_seconds)
            return RateLimitResult(
                allowed=True,
                remaining=max(0, limit - 1),
                retry_after_seconds=math.ceil(window_seconds),
            )

        retry_after = max(1, math.ceil(current.reset_at - self.counter.now()))
        if current.count >= limit:
            return RateLimitResult(allowed=False, remaining=0, retry_after_seconds=retry_after)

        updated = self.counter.increment(key, window_seconds)
        return RateLimitResult(
            allowed=True,
            remaining=max(0, limit - updated.count),
            retry_after_seconds=retry_after,
        )


_default_limiter = RateLimiter()


def get_rate_limiter() -> RateLimiter:
    return _default_limiter


def check_rate_limit(key: str, limit: int, window_seconds: float) -> RateLimitResult:
    """Check against the process-wide limiter."""
    return _default_limiter.check(key, limit, window_seconds)


def get_client_ip(headers: Mapping[str, str]) -> str:
    """Best-effort caller IP from proxy headers."""
    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return headers.get("x-real-ip") or "unknown"
