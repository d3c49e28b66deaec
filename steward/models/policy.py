"""OperationPolicy — per-call retry, timeout and circuit settings.

Supplied by the caller on every ``ResilientExecutor.execute()``; never
persisted.  Field constraints are enforced by pydantic.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from steward.core.config import Settings


class OperationPolicy(BaseModel):
    """Immutable execution policy for one call.

    Attributes:
        max_retries:          Total attempts, including the first (``1`` = no retry).
        backoff_base_seconds: Delay before the second attempt; doubles each retry.
        circuit_threshold:    Consecutive failures that open the breaker.
        timeout_seconds:      Per-attempt wait limit.
        cooldown_seconds:     How long an open breaker rejects calls before a probe.
    """

    model_config = ConfigDict(frozen=True)

    max_retries: int = Field(default=3, ge=1)
    backoff_base_seconds: float = Field(default=1.0, ge=0.0)
    circuit_threshold: int = Field(default=5, ge=1)
    timeout_seconds: float = Field(default=30.0, gt=0.0)
    cooldown_seconds: float = Field(default=300.0, gt=0.0)

    def backoff_for(self, attempt: int) -> float:
        """Delay after the 1-based *attempt* fails: ``base × 2^(attempt − 1)``."""
        return self.backoff_base_seconds * (2 ** (attempt - 1))

    @classmethod
    def from_settings(cls, settings: Settings) -> OperationPolicy:
        return cls(
            max_retries=settings.EXECUTOR_MAX_RETRIES,
            backoff_base_seconds=settings.EXECUTOR_BACKOFF_BASE_SECONDS,
            circuit_threshold=settings.CIRCUIT_BREAKER_THRESHOLD,
            timeout_seconds=settings.EXECUTOR_TIMEOUT_SECONDS,
            cooldown_seconds=settings.CIRCUIT_BREAKER_COOLDOWN_SECONDS,
        )
