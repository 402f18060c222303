from dataclasses import dataclass
from typing import Callable, Optional
import logging
import threading
import time

from ..errors import UpstreamUnavailable
from ..utils import PROGRAM_LOGGER


@dataclass
class FailureState:
    """Failure bookkeeping for one client instance, never persisted"""
    consecutive_failures: int = 0
    last_failure_at: Optional[float] = None


class CircuitBreaker:
    """Consecutive failure gate.

    Closed while failures stay under max_consecutive_failures. Once the limit
    is reached the breaker is open and allow() answers False until
    cooldown_period seconds have passed since the last failure, at which point
    the counter is reset and calls flow again.

    Counter updates are lock protected so concurrent batch fetches can report
    into the same instance.
    """

    def __init__(self, max_consecutive_failures: int = 5, cooldown_period: float = 60.0,
                 clock: Callable[[], float] = time.monotonic, logger: Optional[logging.Logger] = None):
        self.max_consecutive_failures = max_consecutive_failures
        self.cooldown_period = cooldown_period
        self.clock = clock
        self.logger = logger or logging.getLogger(f"{PROGRAM_LOGGER}.breaker")
        self.state = FailureState()
        self._lock = threading.Lock()

    def _cooldown_elapsed(self) -> bool:
        if self.state.last_failure_at is None:
            return True
        return self.clock() - self.state.last_failure_at >= self.cooldown_period

    def allow(self) -> bool:
        with self._lock:
            if self.state.consecutive_failures < self.max_consecutive_failures:
                return True
            if self._cooldown_elapsed():
                self.logger.progress("Cooldown period elapsed, resetting failure counter")
                self.state.consecutive_failures = 0
                return True
            return False

    def record_success(self) -> None:
        with self._lock:
            self.state.consecutive_failures = 0

    def record_failure(self) -> None:
        with self._lock:
            self.state.consecutive_failures += 1
            self.state.last_failure_at = self.clock()
            if self.state.consecutive_failures == self.max_consecutive_failures:
                self.logger.warning(
                    f"{self.state.consecutive_failures} consecutive failures, "
                    f"pausing requests for {self.cooldown_period}s"
                )

    @property
    def consecutive_failures(self) -> int:
        return self.state.consecutive_failures

    @property
    def is_open(self) -> bool:
        with self._lock:
            return (self.state.consecutive_failures >= self.max_consecutive_failures
                    and not self._cooldown_elapsed())

    def near_open(self) -> bool:
        '''One more failure would open the breaker'''
        return self.state.consecutive_failures >= self.max_consecutive_failures - 1

    def remaining_cooldown(self) -> float:
        with self._lock:
            if self.state.last_failure_at is None:
                return 0.0
            return max(0.0, self.cooldown_period - (self.clock() - self.state.last_failure_at))


@dataclass
class RetryPolicy:
    """Per-item retry schedule for single fetches.

    Only UpstreamUnavailable is retried. The wait grows with the attempt
    number and is capped lower for server errors than for rate limiting.
    """
    max_attempts: int = 3
    base_delay: float = 1.0
    rate_limit_delay_cap: float = 2.0
    server_error_delay_cap: float = 1.5
    rate_limit_statuses: tuple = (403, 429)

    def is_retryable(self, error: Exception) -> bool:
        return isinstance(error, UpstreamUnavailable)

    def delay_for(self, attempt: int, error: Exception) -> Optional[float]:
        """Seconds to wait after a failed attempt (1-based), or None to give up"""
        if attempt >= self.max_attempts or not self.is_retryable(error):
            return None
        status = getattr(error, 'status_code', None)
        if status in self.rate_limit_statuses:
            cap = self.rate_limit_delay_cap
        else:
            cap = self.server_error_delay_cap
        return min(self.base_delay * attempt, cap)
