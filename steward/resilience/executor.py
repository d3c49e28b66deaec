"""ResilientExecutor — timeout, retry with exponential backoff, circuit breaking.

Runs an arbitrary zero-argument async operation under an
``OperationPolicy``.  Every attempt races the operation against a clock
timer; failed attempts are retried after ``base × 2^(attempt − 1)``
seconds; the per-name circuit breaker is consulted before the first
attempt and updated after every outcome.

Timeouts only bound how long the executor *waits*.  A timed-out
operation keeps running in the background and its result is discarded.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Protocol, TypeVar

from steward.core.clock import Clock, SystemClock
from steward.core.errors import CircuitOpenError, OperationError, OperationTimeoutError
from steward.models.policy import OperationPolicy
from steward.observability.events import AttemptEvent, CallSummaryEvent
from steward.observability.sinks import BackgroundEmitter, EventSink, NullEventSink
from steward.resilience.circuit_breaker import CircuitBreaker, CircuitBreakerRegistry, CircuitState

logger = logging.getLogger(__name__)

T = TypeVar("T")

Operation = Callable[[], Awaitable[T]]


class FailureNotifier(Protocol):
    """The only thing the executor may ask of the notification side."""

    async def notify_failure(self, name: str, error: BaseException) -> None: ...


def _discard_late_result(task: asyncio.Future) -> None:
    """Consume the outcome of an operation whose attempt already timed out."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.debug("Discarded late failure from timed-out operation: %r", exc)


class ResilientExecutor:
    """Executes operations with timeout, retry and per-name circuit breaking.

    Args:
        registry:       Breaker records; a private registry is created if omitted.
        clock:          Time source for timers, backoff sleeps and ``opened_at``.
        sink:           Receives one ``AttemptEvent`` per attempt and one
                        ``CallSummaryEvent`` per call.
        notifier:       Told once about every permanent failure.
        default_policy: Used when ``execute()`` is called without a policy.
    """

    def __init__(
        self,
        registry: CircuitBreakerRegistry | None = None,
        clock: Clock | None = None,
        sink: EventSink | None = None,
        notifier: FailureNotifier | None = None,
        default_policy: OperationPolicy | None = None,
    ) -> None:
        self._registry = registry or CircuitBreakerRegistry()
        self._clock = clock or SystemClock()
        self._events = BackgroundEmitter(sink or NullEventSink())
        self._notifier = notifier
        self._default_policy = default_policy or OperationPolicy()

    @property
    def circuit_breakers(self) -> CircuitBreakerRegistry:
        """Expose circuit breaker registry for health/metrics endpoints."""
        return self._registry

    def health_status(self) -> list[dict]:
        return self._registry.all_snapshots()

    async def drain_events(self, timeout: float | None = None) -> None:
        """Wait for scheduled event emits (see ``BackgroundEmitter.drain``)."""
        await self._events.drain(timeout)

    # ── Core call wrapper ────────────────────────────────────────────

    async def execute(
        self,
        name: str,
        operation: Operation[T],
        policy: OperationPolicy | None = None,
    ) -> T:
        """Run *operation* under *policy*, protected by *name*'s breaker.

        Returns:
            Whatever the operation returned on its first successful attempt.

        Raises:
            CircuitOpenError: The breaker is open and its cooldown has not
                              elapsed, or another probe is already in flight.
                              The operation is not invoked.
            OperationError:   Every attempt failed.  ``cause`` holds the last
                              failure (possibly an ``OperationTimeoutError``).
        """
        policy = policy or self._default_policy
        cb = self._registry.get(name)
        started = self._clock.monotonic()

        try:
            is_probe = await self._admit(cb, policy)
        except CircuitOpenError:
            self._emit_summary(name, 0, started, "circuit_open")
            raise

        try:
            return await self._run_attempts(cb, operation, policy, is_probe, started)
        except asyncio.CancelledError:
            if is_probe:
                cb.probe_in_flight = False
            raise

    async def _admit(self, cb: CircuitBreaker, policy: OperationPolicy) -> bool:
        """Admit or reject a call; return True when it is the half-open probe."""
        async with cb.lock:
            now = self._clock.monotonic()
            if self._registry.is_open(cb.name, policy.cooldown_seconds, now):
                cb.total_rejections += 1
                raise CircuitOpenError(cb.name, cb.cooldown_remaining(policy.cooldown_seconds, now))

            if cb.state is CircuitState.OPEN:
                if cb.probe_in_flight:
                    cb.total_rejections += 1
                    raise CircuitOpenError(cb.name, 0.0)
                cb.probe_in_flight = True
                cb.total_calls += 1
                logger.info("Circuit half-open for %s — admitting probe", cb.name)
                return True

            cb.total_calls += 1
            return False

    async def _run_attempts(
        self,
        cb: CircuitBreaker,
        operation: Operation[T],
        policy: OperationPolicy,
        is_probe: bool,
        started: float,
    ) -> T:
        name = cb.name
        last_exc: Exception | None = None

        for attempt in range(1, policy.max_retries + 1):
            logger.debug("%s — attempt %d/%d", name, attempt, policy.max_retries)
            attempt_start = self._clock.monotonic()
            try:
                result = await self._run_with_timeout(name, operation, policy.timeout_seconds)
            except Exception as exc:
                last_exc = exc
                outcome = "timeout" if isinstance(exc, OperationTimeoutError) else "error"
                self._emit_attempt(name, attempt, attempt_start, outcome, exc)
                async with cb.lock:
                    cb.record_failure()
                if attempt < policy.max_retries:
                    await self._retry_delay(name, attempt, policy, exc)
                continue

            self._emit_attempt(name, attempt, attempt_start, "success")
            async with cb.lock:
                if cb.state is CircuitState.OPEN:
                    logger.info("Circuit CLOSED for %s — probe succeeded", name)
                cb.record_success()
                cb.probe_in_flight = False
            self._emit_summary(name, attempt, started, "success")
            return result

        assert last_exc is not None
        opened = await self._after_exhaustion(cb, policy, is_probe)
        logger.error(
            "%s permanently failed after %d attempts: %s",
            name,
            policy.max_retries,
            last_exc,
        )
        self._emit_summary(name, policy.max_retries, started, "failure", circuit_opened=opened)
        await self._notify_failure(name, last_exc)
        raise OperationError(name, last_exc) from last_exc

    async def _after_exhaustion(self, cb: CircuitBreaker, policy: OperationPolicy, is_probe: bool) -> bool:
        """Open the breaker when warranted; return True if it was (re-)opened."""
        async with cb.lock:
            cb.probe_in_flight = False
            if not is_probe and cb.consecutive_failures < policy.circuit_threshold:
                return False
            cb.trip(self._clock.monotonic())
            failures = cb.consecutive_failures
        if is_probe:
            logger.error("Circuit re-OPENED for %s — probe failed", cb.name)
        else:
            logger.error("Circuit OPEN for %s — %d consecutive failures", cb.name, failures)
        return True

    async def _run_with_timeout(self, name: str, operation: Operation[T], timeout: float) -> T:
        """Race one attempt against ``clock.after(timeout)``."""
        task = asyncio.ensure_future(operation())
        timer = asyncio.ensure_future(self._clock.after(timeout))
        try:
            await asyncio.wait({task, timer}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            timer.cancel()
            task.cancel()
            raise

        if timer.done() and not timer.cancelled():
            task.add_done_callback(_discard_late_result)
            raise OperationTimeoutError(name, timeout)

        timer.cancel()
        return task.result()

    async def _retry_delay(self, name: str, attempt: int, policy: OperationPolicy, exc: Exception) -> None:
        """Log a warning and sleep for exponential backoff."""
        delay = policy.backoff_for(attempt)
        logger.warning(
            "%s failed (attempt %d/%d): %s — retrying in %.1fs",
            name,
            attempt,
            policy.max_retries,
            exc,
            delay,
        )
        await self._clock.sleep(delay)

    # ── Fire-and-forget side channels ────────────────────────────────

    async def _notify_failure(self, name: str, error: BaseException) -> None:
        if self._notifier is None:
            return
        try:
            await self._notifier.notify_failure(name, error)
        except Exception:
            logger.warning("Failure notification for %s could not be sent", name, exc_info=True)

    def _emit_attempt(
        self,
        name: str,
        attempt: int,
        attempt_start: float,
        outcome: str,
        exc: Exception | None = None,
    ) -> None:
        duration_ms = (self._clock.monotonic() - attempt_start) * 1000
        event = AttemptEvent(
            name=name,
            attempt=attempt,
            outcome=outcome,
            duration_ms=round(duration_ms, 2),
            error=str(exc) if exc is not None else None,
        )
        self._events.emit(event)

    def _emit_summary(self, name: str, attempts: int, started: float, outcome: str, **extra: Any) -> None:
        elapsed_ms = (self._clock.monotonic() - started) * 1000
        event = CallSummaryEvent(
            name=name,
            attempts=attempts,
            elapsed_ms=round(elapsed_ms, 2),
            outcome=outcome,
            **extra,
        )
        self._events.emit(event)
