"""Failed-login lockout tracking, shared by admin and staff logins."""

import math
from dataclasses import dataclass
from typing import Optional

from vuelve_engine.auth.rate_limit import Counter, InMemoryCounter
from vuelve_engine.common.config import VuelveSettings


@dataclass(frozen=True)
class LockoutState:
    """Represents the lockout state for a subject."""

    locked: bool
    retry_after_seconds: Optional[int]
    remaining_attempts: int


class LoginLockout:
    """Blocks a subject after too many failures inside a window."""

    def __init__(
        self,
        counter: Counter | None = None,
        *,
        max_failures: int = 5,
        window_seconds: int = 600,
        block_seconds: int = 900,
    ):
        self.counter = counter or InMemoryCounter()
        self.max_failures = max_failures
        self.window_seconds = window_seconds
        self.block_seconds = block_seconds

    @classmethod
    def from_settings(cls, settings: VuelveSettings, counter: Counter | None = None) -> "LoginLockout":
        return cls(
            counter,
            max_failures=settings.login_max_failures,
            window_seconds=settings.login_failure_window,
            block_seconds=settings.login_block_seconds,
        )

    @staticmethod
    def _attempts_key(identifier: str) -> str:
        return f"auth:attempts:{identifier}"

    @staticmethod
    def _lock_key(identifier: str) -> str:
        return f"auth:lock:{identifier}"

    def _locked_state(self, reset_at: float) -> LockoutState:
        retry_after = max(1, math.ceil(reset_at - self.counter.now()))
        return LockoutState(locked=True, retry_after_seconds=retry_after, remaining_attempts=0)

    def get_state(self, identifier: str) -> LockoutState:
        """Retrieve the current lockout state for the identifier."""
        lock = self.counter.get(self._lock_key(identifier))
        if lock is not None:
            return self._locked_state(lock.reset_at)

        attempts = self.counter.get(self._attempts_key(identifier))
        used = attempts.count if attempts else 0
        return LockoutState(
            locked=False,
            retry_after_seconds=None,
            remaining_attempts=max(self.max_failures - used, 0),
        )

    def register_failure(self, identifier: str) -> LockoutState:
        """Record a failed login attempt and compute the new lockout state."""
        lock = self.counter.get(self._lock_key(identifier))
        if lock is not None:
            return self._locked_state(lock.reset_at)

        attempts = self.counter.increment(self._attempts_key(identifier), self.window_seconds)
        if attempts.count >= self.max_failures:
            self.counter.reset(self._attempts_key(identifier))
            lock = self.counter.increment(self._lock_key(identifier), self.block_seconds)
            return self._locked_state(lock.reset_at)

        return LockoutState(
            locked=False,
            retry_after_seconds=None,
            remaining_attempts=max(self.max_failures - attempts.count, 0),
        )

    def register_success(self, identifier: str) -> None:
        self.counter.reset(self._attempts_key(identifier))
        self.counter.reset(self._lock_key(identifier))
