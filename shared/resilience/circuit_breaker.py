"""
Circuit Breaker Pattern Implementation

Provides fault tolerance for calls into the product store by failing fast
while the store is unhealthy and letting it recover before trying again.
"""

import asyncio
import inspect
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any

import structlog

from shared.domain.exceptions import CircuitBreakerOpenError, ExternalServiceError

logger = structlog.get_logger(__name__)


class CircuitState(str, Enum):
    """Circuit breaker states."""

    CLOSED = "closed"  # Normal operation
    OPEN = "open"  # Failing, reject requests
    HALF_OPEN = "half_open"  # Testing if service recovered


@dataclass
class CircuitBreakerConfig:
    """Configuration for circuit breaker."""

    max_failures: int = 3  # Consecutive failures before opening
    call_timeout: float | None = 1.0  # Seconds before a call counts as failed
    reset_timeout: float = 5.0  # Seconds spent open before a half-open trial
    fallback_on_failure: bool = True  # Use the fallback on failures, not only when open

    def __post_init__(self):
        if self.max_failures < 1:
            raise ValueError("max_failures must be at least 1")
        if self.reset_timeout <= 0:
            raise ValueError("reset_timeout must be positive")


@dataclass
class CircuitBreakerStats:
    """Statistics for circuit breaker."""

    state: CircuitState = CircuitState.CLOSED
    failure_count: int = 0
    last_failure_time: datetime | None = None
    last_success_time: datetime | None = None
    total_requests: int = 0
    total_failures: int = 0
    total_successes: int = 0
    total_timeouts: int = 0
    total_rejections: int = 0
    opened_at: datetime | None = None


class CircuitBreaker:
    """
    Circuit breaker for calls into an external collaborator.

    - CLOSED: Normal operation, calls pass through
    - OPEN: Too many consecutive failures, calls are rejected immediately
    - HALF_OPEN: Reset timeout elapsed, a single trial call decides the next state
    """

    def __init__(
        self,
        name: str,
        config: CircuitBreakerConfig | None = None,
    ):
        """
        Initialize circuit breaker.

        Args:
            name: Name of the circuit breaker
            config: Circuit breaker configuration
        """
        self.name = name
        self.config = config or CircuitBreakerConfig()
        self.stats = CircuitBreakerStats()
        self._lock = asyncio.Lock()
        self._opened_monotonic: float | None = None
        self._trial_in_flight = False

    @property
    def state(self) -> CircuitState:
        return self.stats.state

    async def call(
        self,
        func: Callable[..., Any],
        *args: Any,
        fallback: Callable[[Exception], Any] | None = None,
        **kwargs: Any
    ) -> Any:
        """
        Execute function call with circuit breaker protection.

        Args:
            func: Async (or plain) function to call
            *args: Positional arguments
            fallback: Optional callable receiving the failure and returning a substitute result
            **kwargs: Keyword arguments

        Returns:
            Result from function call, or from the fallback

        Raises:
            CircuitBreakerOpenError: If circuit is open and no fallback is given
            ExternalServiceError: If the call timed out and no fallback is given
            Exception: Original exception from function call
        """
        async with self._lock:
            rejected = False
            if self.stats.state == CircuitState.OPEN:
                if self._reset_timeout_elapsed():
                    self._transition(CircuitState.HALF_OPEN)
                else:
                    rejected = True

            is_trial = False
            if self.stats.state == CircuitState.HALF_OPEN:
                if self._trial_in_flight:
                    rejected = True
                else:
                    self._trial_in_flight = True
                    is_trial = True

            if rejected:
                self.stats.total_rejections += 1
            else:
                self.stats.total_requests += 1

        if rejected:
            error = CircuitBreakerOpenError(service_name=self.name)
            if fallback is not None:
                return await self._run_fallback(fallback, error)
            raise error

        try:
            result = await self._invoke(func, *args, **kwargs)
        except asyncio.CancelledError:
            if is_trial:
                self._trial_in_flight = False
            raise
        except asyncio.TimeoutError as e:
            self.stats.total_timeouts += 1
            await self._record_failure(is_trial)
            error = ExternalServiceError(
                service_name=self.name,
                timeout=True,
                context={"call_timeout": self.config.call_timeout},
                cause=e,
            )
            if fallback is not None and self.config.fallback_on_failure:
                return await self._run_fallback(fallback, error)
            raise error from e
        except Exception as e:
            await self._record_failure(is_trial)
            if fallback is not None and self.config.fallback_on_failure:
                return await self._run_fallback(fallback, e)
            raise

        await self._record_success(is_trial)
        return result

    async def _invoke(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        if inspect.iscoroutinefunction(func):
            if self.config.call_timeout is None:
                return await func(*args, **kwargs)
            return await asyncio.wait_for(func(*args, **kwargs), timeout=self.config.call_timeout)
        return func(*args, **kwargs)

    @staticmethod
    async def _run_fallback(fallback: Callable[[Exception], Any], error: Exception) -> Any:
        result = fallback(error)
        if inspect.isawaitable(result):
            result = await result
        return result

    def _reset_timeout_elapsed(self) -> bool:
        if self._opened_monotonic is None:
            return True
        return time.monotonic() - self._opened_monotonic >= self.config.reset_timeout

    def _transition(self, new_state: CircuitState) -> None:
        old_state = self.stats.state
        self.stats.state = new_state

        if new_state == CircuitState.OPEN:
            self.stats.opened_at = datetime.now(UTC)
            self._opened_monotonic = time.monotonic()
            logger.warning(
                "Circuit breaker opened",
                circuit_name=self.name,
                previous_state=old_state.value,
                failure_count=self.stats.failure_count,
                max_failures=self.config.max_failures,
            )
        elif new_state == CircuitState.HALF_OPEN:
            self._trial_in_flight = False
            logger.info("Circuit breaker half-open", circuit_name=self.name)
        else:
            self.stats.failure_count = 0
            self.stats.opened_at = None
            self._opened_monotonic = None
            logger.info(
                "Circuit breaker closed",
                circuit_name=self.name,
                previous_state=old_state.value,
            )

    async def _record_success(self, is_trial: bool = False) -> None:
        """Record a successful call. Only the half-open trial closes the circuit."""
        async with self._lock:
            self.stats.total_successes += 1
            self.stats.last_success_time = datetime.now(UTC)

            if is_trial:
                self._trial_in_flight = False
                if self.stats.state == CircuitState.HALF_OPEN:
                    self._transition(CircuitState.CLOSED)
            elif self.stats.state == CircuitState.CLOSED:
                self.stats.failure_count = 0

    async def _record_failure(self, is_trial: bool = False) -> None:
        """Record a failed call. Calls admitted before the circuit opened only update totals."""
        async with self._lock:
            self.stats.total_failures += 1
            self.stats.last_failure_time = datetime.now(UTC)

            if is_trial:
                self._trial_in_flight = False
                self.stats.failure_count += 1
                if self.stats.state == CircuitState.HALF_OPEN:
                    self._transition(CircuitState.OPEN)
            elif self.stats.state == CircuitState.CLOSED:
                self.stats.failure_count += 1
                if self.stats.failure_count >= self.config.max_failures:
                    self._transition(CircuitState.OPEN)

    def get_stats(self) -> dict[str, Any]:
        """Get current circuit breaker statistics."""
        return {
            "name": self.name,
            "state": self.stats.state.value,
            "failure_count": self.stats.failure_count,
            "max_failures": self.config.max_failures,
            "call_timeout": self.config.call_timeout,
            "reset_timeout": self.config.reset_timeout,
            "total_requests": self.stats.total_requests,
            "total_failures": self.stats.total_failures,
            "total_successes": self.stats.total_successes,
            "total_timeouts": self.stats.total_timeouts,
            "total_rejections": self.stats.total_rejections,
            "last_failure_time": self.stats.last_failure_time.isoformat() if self.stats.last_failure_time else None,
            "last_success_time": self.stats.last_success_time.isoformat() if self.stats.last_success_time else None,
            "opened_at": self.stats.opened_at.isoformat() if self.stats.opened_at else None,
        }

    async def reset(self) -> None:
        """Manually reset circuit breaker to closed state."""
        async with self._lock:
            logger.info("Circuit breaker manually reset", circuit_name=self.name)
            self.stats = CircuitBreakerStats()
            self._opened_monotonic = None
            self._trial_in_flight = False


class CircuitBreakerManager:
    """Manages multiple named circuit breakers."""

    def __init__(self):
        self._breakers: dict[str, CircuitBreaker] = {}

    def get_breaker(
        self,
        name: str,
        config: CircuitBreakerConfig | None = None,
    ) -> CircuitBreaker:
        """
        Get or create a circuit breaker.

        The configuration is only applied when the breaker is first created.

        Args:
            name: Circuit breaker name
            config: Optional configuration

        Returns:
            Circuit breaker instance
        """
        if name not in self._breakers:
            self._breakers[name] = CircuitBreaker(name, config)
        return self._breakers[name]

    def get_all_stats(self) -> dict[str, dict[str, Any]]:
        """Get statistics for all circuit breakers."""
        return {
            name: breaker.get_stats()
            for name, breaker in self._breakers.items()
        }
