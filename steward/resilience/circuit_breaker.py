"""Per-operation circuit breaker state.

Two stored states:

    CLOSED  →  (threshold consecutive failures after a call)  →  OPEN
    OPEN    →  (probe succeeds)                                →  CLOSED
    OPEN    →  (probe fails)                                   →  OPEN (fresh opened_at)

"Half-open" is not stored.  It is the derived condition
``state == OPEN and now - opened_at >= cooldown``, in which the next
call is admitted as a single probe while ``state`` keeps reading OPEN.

Each operation name gets its own ``CircuitBreaker`` via
``CircuitBreakerRegistry``.  The registry only stores records; the
admission and transition rules live in ``ResilientExecutor``, which
holds ``breaker.lock`` for every read-check-write.
"""

from __future__ import annotations

import asyncio
from enum import Enum


class CircuitState(str, Enum):
    """Stored circuit breaker states."""

    CLOSED = "closed"
    OPEN = "open"


class CircuitBreaker:
    """Breaker record for a single operation name.

    Invariant: ``opened_at`` is set if and only if ``state`` is OPEN.

    Args:
        name: Operation name (for logging/errors).
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self.lock = asyncio.Lock()

        self._state = CircuitState.CLOSED
        self._consecutive_failures = 0
        self._opened_at: float | None = None
        self.probe_in_flight = False

        # Metrics
        self.total_calls = 0
        self.total_failures = 0
        self.total_rejections = 0
        self.total_successes = 0

    # ── Public properties ────────────────────────────────────────────

    @property
    def state(self) -> CircuitState:
        return self._state

    @property
    def consecutive_failures(self) -> int:
        return self._consecutive_failures

    @property
    def opened_at(self) -> float | None:
        return self._opened_at

    def cooldown_remaining(self, cooldown: float, now: float) -> float:
        """Seconds until a probe may be admitted (0 when CLOSED or elapsed)."""
        if self._opened_at is None:
            return 0.0
        return max(0.0, cooldown - (now - self._opened_at))

    # ── Mutations (caller holds ``lock``) ────────────────────────────

    def record_success(self) -> None:
        """Close the breaker and clear the failure tally."""
        self.total_successes += 1
        self._state = CircuitState.CLOSED
        self._consecutive_failures = 0
        self._opened_at = None

    def record_failure(self) -> None:
        self.total_failures += 1
        self._consecutive_failures += 1

    def trip(self, now: float) -> None:
        """Open (or re-open) the breaker with a fresh ``opened_at``."""
        self._state = CircuitState.OPEN
        self._opened_at = now

    def clear(self) -> None:
        self._state = CircuitState.CLOSED
        self._consecutive_failures = 0
        self._opened_at = None
        self.probe_in_flight = False

    def snapshot(self) -> dict:
        """Return a JSON-serializable snapshot for health/metrics."""
        return {
            "name": self.name,
            "state": self._state.value,
            "consecutive_failures": self._consecutive_failures,
            "opened_at": self._opened_at,
            "total_calls": self.total_calls,
            "total_failures": self.total_failures,
            "total_rejections": self.total_rejections,
            "total_successes": self.total_successes,
        }


class CircuitBreakerRegistry:
    """Owns the per-name ``CircuitBreaker`` records.

    Usage::

        registry = CircuitBreakerRegistry()
        cb = registry.get("hubspot_fetch")
        registry.is_open("hubspot_fetch", cooldown=300.0, now=clock.monotonic())
    """

    def __init__(self) -> None:
        self._breakers: dict[str, CircuitBreaker] = {}

    def get(self, name: str) -> CircuitBreaker:
        """Return (or create) the circuit breaker for *name*."""
        if name not in self._breakers:
            self._breakers[name] = CircuitBreaker(name)
        return self._breakers[name]

    def is_open(self, name: str, cooldown: float, now: float) -> bool:
        """True while *name* is OPEN and its cooldown has not elapsed.

        Unknown names are closed.  Once the cooldown has elapsed this
        returns False even though the stored state is still OPEN.
        """
        cb = self._breakers.get(name)
        if cb is None or cb.state is CircuitState.CLOSED or cb.opened_at is None:
            return False
        return now - cb.opened_at < cooldown

    async def reset(self, name: str) -> None:
        """Return *name*'s breaker to ``CLOSED, 0, None``."""
        cb = self.get(name)
        async with cb.lock:
            cb.clear()

    async def reset_all(self) -> None:
        """Reset every circuit breaker to CLOSED."""
        for name in list(self._breakers):
            await self.reset(name)

    def names(self) -> list[str]:
        return list(self._breakers)

    def all_snapshots(self) -> list[dict]:
        """Return snapshots for every registered breaker."""
        return [cb.snapshot() for cb in self._breakers.values()]
