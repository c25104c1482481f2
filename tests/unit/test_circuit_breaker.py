"""Unit tests for the per-host circuit breaker."""

import pytest

from premiumhub.core.circuit_breaker import (
    CircuitBreaker,
    CircuitState,
    get_all_circuit_breakers,
    get_circuit_breaker,
    reset_all_circuit_breakers,
)
from premiumhub.core.exceptions import CircuitBreakerOpenError


class TestCircuitBreaker:
    """Test state transitions."""

    @pytest.fixture
    def breaker(self):
        return CircuitBreaker(name="upstream:test.host", failure_threshold=3, recovery_timeout=30.0)

    @pytest.mark.asyncio
    async def test_opens_after_threshold(self, breaker):
        for _ in range(2):
            await breaker.record_failure()
        assert breaker.state == CircuitState.CLOSED

        await breaker.record_failure()

        assert breaker.state == CircuitState.OPEN
        assert breaker.can_execute() is False

    @pytest.mark.asyncio
    async def test_success_resets_failure_count(self, breaker):
        await breaker.record_failure()
        await breaker.record_failure()
        await breaker.record_success()
        await breaker.record_failure()

        assert breaker.state == CircuitState.CLOSED
        assert breaker.failure_count == 1

    @pytest.mark.asyncio
    async def test_ensure_closed_raises_when_open(self, breaker):
        for _ in range(3):
            await breaker.record_failure()

        with pytest.raises(CircuitBreakerOpenError) as exc_info:
            breaker.ensure_closed()

        assert exc_info.value.service == "upstream:test.host"
        assert 0 < exc_info.value.recovery_time <= 30.0

    @pytest.mark.asyncio
    async def test_half_open_after_timeout_then_closes(self, breaker):
        for _ in range(3):
            await breaker.record_failure()

        breaker._opened_at -= breaker.recovery_timeout
        assert breaker.state == CircuitState.HALF_OPEN
        await breaker.record_success()

        assert breaker.state == CircuitState.CLOSED
        assert breaker.failure_count == 0

    @pytest.mark.asyncio
    async def test_half_open_failure_reopens(self, breaker):
        for _ in range(3):
            await breaker.record_failure()

        breaker._opened_at -= breaker.recovery_timeout + 1
        assert breaker.state == CircuitState.HALF_OPEN
        await breaker.record_failure()

        assert breaker.state == CircuitState.OPEN
        assert breaker.can_execute() is False

    @pytest.mark.asyncio
    async def test_reset(self, breaker):
        for _ in range(3):
            await breaker.record_failure()

        breaker.reset()

        assert breaker.state == CircuitState.CLOSED
        assert breaker.can_execute() is True


class TestCircuitBreakerRegistry:
    """Test the global breaker registry."""

    def test_same_name_same_breaker(self):
        first = get_circuit_breaker("upstream:registry.test")

        assert get_circuit_breaker("upstream:registry.test") is first
        assert "upstream:registry.test" in get_all_circuit_breakers()

    @pytest.mark.asyncio
    async def test_reset_all(self):
        breaker = get_circuit_breaker("upstream:reset-all.test", failure_threshold=1)
        await breaker.record_failure()
        assert breaker.state == CircuitState.OPEN

        reset_all_circuit_breakers()

        assert breaker.state == CircuitState.CLOSED
