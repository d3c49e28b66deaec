"""Tests for circuit breaker records and the per-name registry.

Covers:
- CircuitBreaker mutations and the opened_at ⇔ OPEN invariant
- CircuitBreakerRegistry lazy creation and per-name isolation
- is_open() derived predicate, including the half-open condition
- reset() / reset_all()
"""

from __future__ import annotations

from steward.resilience.circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerRegistry,
    CircuitState,
)

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# CircuitBreaker record
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class TestCircuitBreakerRecord:
    def test_initial_state_is_closed(self):
        cb = CircuitBreaker("hubspot_fetch")
        assert cb.state == CircuitState.CLOSED
        assert cb.consecutive_failures == 0
        assert cb.opened_at is None

    def test_failures_accumulate(self):
        cb = CircuitBreaker("test")
        cb.record_failure()
        cb.record_failure()
        assert cb.consecutive_failures == 2
        assert cb.state == CircuitState.CLOSED

    def test_trip_sets_opened_at(self):
        cb = CircuitBreaker("test")
        cb.trip(now=42.0)
        assert cb.state == CircuitState.OPEN
        assert cb.opened_at == 42.0

    def test_success_closes_and_clears(self):
        cb = CircuitBreaker("test")
        cb.record_failure()
        cb.trip(now=1.0)
        cb.record_success()
        assert cb.state == CircuitState.CLOSED
        assert cb.consecutive_failures == 0
        assert cb.opened_at is None

    def test_cooldown_remaining(self):
        cb = CircuitBreaker("test")
        assert cb.cooldown_remaining(300.0, now=10.0) == 0.0
        cb.trip(now=100.0)
        assert cb.cooldown_remaining(300.0, now=150.0) == 250.0
        assert cb.cooldown_remaining(300.0, now=500.0) == 0.0

    def test_snapshot_structure(self):
        cb = CircuitBreaker("my-op")
        snap = cb.snapshot()
        assert snap["name"] == "my-op"
        assert snap["state"] == "closed"
        assert snap["consecutive_failures"] == 0
        assert snap["opened_at"] is None
        assert snap["total_calls"] == 0


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# CircuitBreakerRegistry
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class TestCircuitBreakerRegistry:
    def test_creates_breakers_on_demand(self):
        reg = CircuitBreakerRegistry()
        cb = reg.get("avoma_sync")
        assert isinstance(cb, CircuitBreaker)
        assert cb.name == "avoma_sync"

    def test_returns_same_breaker_for_same_name(self):
        reg = CircuitBreakerRegistry()
        assert reg.get("a") is reg.get("a")

    def test_different_names_get_different_breakers(self):
        reg = CircuitBreakerRegistry()
        assert reg.get("a") is not reg.get("b")
        assert reg.get("a").lock is not reg.get("b").lock

    def test_all_snapshots(self):
        reg = CircuitBreakerRegistry()
        reg.get("a")
        reg.get("b")
        snaps = reg.all_snapshots()
        assert {s["name"] for s in snaps} == {"a", "b"}
        assert reg.names() == ["a", "b"]


class TestIsOpen:
    def test_unknown_name_is_closed(self):
        reg = CircuitBreakerRegistry()
        assert reg.is_open("never-seen", cooldown=300.0, now=0.0) is False
        assert reg.names() == []

    def test_closed_breaker_is_not_open(self):
        reg = CircuitBreakerRegistry()
        reg.get("a").record_failure()
        assert reg.is_open("a", cooldown=300.0, now=0.0) is False

    def test_open_within_cooldown(self):
        reg = CircuitBreakerRegistry()
        reg.get("a").trip(now=100.0)
        assert reg.is_open("a", cooldown=300.0, now=399.9) is True

    def test_half_open_after_cooldown(self):
        reg = CircuitBreakerRegistry()
        reg.get("a").trip(now=100.0)
        assert reg.is_open("a", cooldown=300.0, now=400.0) is False
        assert reg.get("a").state == CircuitState.OPEN


class TestReset:
    async def test_reset_returns_to_initial(self):
        reg = CircuitBreakerRegistry()
        cb = reg.get("a")
        cb.record_failure()
        cb.trip(now=5.0)
        cb.probe_in_flight = True
        await reg.reset("a")
        assert cb.state == CircuitState.CLOSED
        assert cb.consecutive_failures == 0
        assert cb.opened_at is None
        assert cb.probe_in_flight is False

    async def test_reset_all(self):
        reg = CircuitBreakerRegistry()
        reg.get("a").trip(now=1.0)
        reg.get("b").trip(now=1.0)
        await reg.reset_all()
        assert reg.get("a").state == CircuitState.CLOSED
        assert reg.get("b").state == CircuitState.CLOSED
