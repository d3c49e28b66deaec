"""Resilience patterns — circuit breaker, retry and timeout for operations.

Provides per-operation circuit breakers and the ``ResilientExecutor``
that wraps any fallible async operation with timeout, exponential-backoff
retry and circuit breaking.
"""

from steward.resilience.circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerRegistry,
    CircuitState,
)
from steward.resilience.executor import FailureNotifier, ResilientExecutor

__all__ = [
    "CircuitBreaker",
    "CircuitBreakerRegistry",
    "CircuitState",
    "FailureNotifier",
    "ResilientExecutor",
]
