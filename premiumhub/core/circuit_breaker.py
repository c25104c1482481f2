"""
Circuit breaker for upstream provider hosts.

Each upstream host (source site, worker relay or JSON relay) gets its own
breaker. After a run of consecutive failures the breaker opens and the
fetcher refuses further requests to that host until the recovery timeout
elapses; the next request is then let through as a probe.

States:
- CLOSED: requests pass through
- OPEN: requests rejected with CircuitBreakerOpenError
- HALF_OPEN: probing whether the host recovered

Usage:
    breaker = get_circuit_breaker("www.fsiblog5.com")

    breaker.ensure_closed()
    try:
        response = await client.get(url)
    except httpx.HTTPError:
        await breaker.record_failure()
        raise
    await breaker.record_success()
"""

import asyncio
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

import structlog

from premiumhub.core.exceptions import CircuitBreakerOpenError
from premiumhub.monitoring.metrics import (
    record_circuit_breaker_failure,
    update_circuit_breaker_state,
)

logger = structlog.get_logger(__name__)


class CircuitState(Enum):
    """Circuit breaker states."""

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass
class CircuitBreaker:
    """
    Circuit breaker guarding one upstream host.

    Args:
        name: Identifier for this circuit, usually the upstream hostname
        failure_threshold: Consecutive failures before the circuit opens
        recovery_timeout: Seconds to wait before letting a probe through
        success_threshold: Probe successes needed to close the circuit again
    """

    name: str
    failure_threshold: int = 5
    recovery_timeout: float = 60.0
    success_threshold: int = 1

    _state: CircuitState = field(default=CircuitState.CLOSED, init=False)
    _failure_count: int = field(default=0, init=False)
    _success_count: int = field(default=0, init=False)
    _opened_at: Optional[float] = field(default=None, init=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False)

    @property
    def state(self) -> CircuitState:
        """Current state; an open circuit turns half-open once the timeout lapses."""
        if self._state == CircuitState.OPEN and self._opened_at is not None:
            if time.monotonic() - self._opened_at >= self.recovery_timeout:
                self._transition(CircuitState.HALF_OPEN)
        return self._state

    @property
    def failure_count(self) -> int:
        return self._failure_count

    def can_execute(self) -> bool:
        """Check if a request may be sent to the host."""
        return self.state != CircuitState.OPEN

    def time_until_recovery(self) -> float:
        """Seconds until an open circuit lets a probe through."""
        if self._state != CircuitState.OPEN or self._opened_at is None:
            return 0.0
        elapsed = time.monotonic() - self._opened_at
        return max(0.0, self.recovery_timeout - elapsed)

    def _transition(self, new_state: CircuitState) -> None:
        if new_state == self._state:
            return
        previous = self._state
        self._state = new_state
        if new_state == CircuitState.OPEN:
            self._opened_at = time.monotonic()
        if new_state == CircuitState.HALF_OPEN:
            self._success_count = 0
        if new_state == CircuitState.CLOSED:
            self._failure_count = 0
            self._success_count = 0
            self._opened_at = None
        update_circuit_breaker_state(self.name, new_state.value)
        logger.info(
            "circuit_breaker_transition",
            name=self.name,
            previous=previous.value,
            state=new_state.value,
        )

    async def record_success(self) -> None:
        """Record a successful upstream call."""
        async with self._lock:
            if self._state == CircuitState.HALF_OPEN:
                self._success_count += 1
                if self._success_count >= self.success_threshold:
                    self._transition(CircuitState.CLOSED)
            else:
                self._failure_count = 0

    async def record_failure(self) -> None:
        """Record a failed upstream call."""
        async with self._lock:
            self._failure_count += 1
            record_circuit_breaker_failure(self.name)

            if self._state == CircuitState.HALF_OPEN:
                self._transition(CircuitState.OPEN)
                logger.warning("circuit_breaker_reopened", name=self.name)
            elif (
                self._state == CircuitState.CLOSED
                and self._failure_count >= self.failure_threshold
            ):
                self._transition(CircuitState.OPEN)
                logger.warning(
                    "circuit_breaker_opened",
                    name=self.name,
                    failure_count=self._failure_count,
                    recovery_timeout=self.recovery_timeout,
                )

    def ensure_closed(self) -> None:
        """Raise CircuitBreakerOpenError when the circuit is open."""
        if not self.can_execute():
            raise CircuitBreakerOpenError(self.name, self.time_until_recovery())

    def reset(self) -> None:
        """Force the circuit back to closed."""
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._success_count = 0
        self._opened_at = None
        logger.info("circuit_breaker_reset", name=self.name)


# =============================================================================
# Global Circuit Breaker Registry
# =============================================================================


_circuit_breakers: dict[str, CircuitBreaker] = {}


def get_circuit_breaker(
    name: str,
    failure_threshold: int = 5,
    recovery_timeout: float = 60.0,
) -> CircuitBreaker:
    """
    Get or create a circuit breaker by name.

    Args:
        name: Unique identifier for the circuit
        failure_threshold: Failures before opening
        recovery_timeout: Seconds before recovery probe

    Returns:
        Circuit breaker instance (reused if already exists)
    """
    if name not in _circuit_breakers:
        _circuit_breakers[name] = CircuitBreaker(
            name=name,
            failure_threshold=failure_threshold,
            recovery_timeout=recovery_timeout,
        )
    return _circuit_breakers[name]


def get_all_circuit_breakers() -> dict[str, CircuitBreaker]:
    """Get all registered circuit breakers."""
    return _circuit_breakers.copy()


def reset_all_circuit_breakers() -> None:
    """Reset all circuit breakers to closed state."""
    for breaker in _circuit_breakers.values():
        breaker.reset()
