"""NotificationGate — dedup, quiet hours and daily rate caps for alerts.

Decision order for ``send()``:

1. ``(type, id)`` already delivered today   → SKIPPED_DUPLICATE
2. non-critical and inside quiet hours      → DEFERRED_QUIET_HOURS (morning queue)
3. today's count for ``type`` at its cap    → RATE_LIMITED (digest batch)
4. otherwise mark sent, count, deliver      → DELIVERED / DELIVERY_FAILED

Deferred and rate-limited notifications are *not* marked as sent, so
the same notification may still be delivered later the same day.  Only
``reset_daily()`` shrinks the dedup set and the counters.
"""

from __future__ import annotations

import asyncio
import logging

from steward.core.clock import Clock, SystemClock
from steward.models.notification import Notification, NotificationOutcome, Priority, QuietHoursWindow
from steward.notifications.channels import DeliveryChannel
from steward.notifications.queues import MemoryQueue, NotificationQueue
from steward.notifications.rate_caps import RateCapTable
from steward.observability.events import GateDecisionEvent
from steward.observability.sinks import BackgroundEmitter, EventSink, NullEventSink

_logger = logging.getLogger("steward.notifications")

# Telegram rejects messages longer than 4096 characters
_MAX_CONTENT_LEN = 4000
# Notification.id limit
_MAX_ID_LEN = 200


class NotificationGate:
    """Filters outbound notifications before they reach the channel.

    Args:
        channel:       Where delivered notifications go.
        rate_caps:     Daily cap table (built-in table if omitted).
        quiet_hours:   Local-hour window in which non-critical alerts wait.
        clock:         Source of the local hour.
        morning_queue: Receives notifications deferred by quiet hours.
        digest:        Receives notifications over their type's cap.
        sink:          Receives one ``GateDecisionEvent`` per decision.
    """

    def __init__(
        self,
        channel: DeliveryChannel,
        rate_caps: RateCapTable | None = None,
        quiet_hours: QuietHoursWindow | None = None,
        clock: Clock | None = None,
        morning_queue: NotificationQueue | None = None,
        digest: NotificationQueue | None = None,
        sink: EventSink | None = None,
    ) -> None:
        self._channel = channel
        self._caps = rate_caps or RateCapTable()
        self._quiet = quiet_hours or QuietHoursWindow()
        self._clock = clock or SystemClock()
        self._morning_queue = morning_queue or MemoryQueue("Morning queue")
        self._digest = digest or MemoryQueue("Digest batch")
        self._events = BackgroundEmitter(sink or NullEventSink())

        self._sent_today: set[tuple[str, str]] = set()
        self._counts: dict[str, int] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def _lock_for(self, notification_type: str) -> asyncio.Lock:
        if notification_type not in self._locks:
            self._locks[notification_type] = asyncio.Lock()
        return self._locks[notification_type]

    def is_quiet_hours(self) -> bool:
        return self._quiet.contains(self._clock.now().hour)

    async def send(self, notification: Notification) -> NotificationOutcome:
        """Route *notification*; see the module docstring for the order.

        Raises:
            ConfigurationError: strict cap table and unlisted type.
        """
        async with self._lock_for(notification.type):
            outcome = self._decide(notification)
            if outcome is NotificationOutcome.DELIVERED:
                self._sent_today.add(notification.key)
                self._counts[notification.type] = self._counts.get(notification.type, 0) + 1

        if outcome is NotificationOutcome.DEFERRED_QUIET_HOURS:
            await self._hand_off(self._morning_queue, notification)
        elif outcome is NotificationOutcome.RATE_LIMITED:
            await self._hand_off(self._digest, notification)
        elif outcome is NotificationOutcome.DELIVERED:
            outcome = await self._deliver(notification)

        self._events.emit(GateDecisionEvent(type=notification.type, id=notification.id, outcome=outcome.value))
        return outcome

    def _decide(self, notification: Notification) -> NotificationOutcome:
        label = f"{notification.type}:{notification.id}"
        if notification.key in self._sent_today:
            _logger.info("Skipping duplicate: %s", label)
            return NotificationOutcome.SKIPPED_DUPLICATE

        if notification.priority is not Priority.CRITICAL and self.is_quiet_hours():
            _logger.info("Queued for morning: %s", label)
            return NotificationOutcome.DEFERRED_QUIET_HOURS

        cap = self._caps.cap_for(notification.type)
        if self._counts.get(notification.type, 0) >= cap:
            _logger.info("Rate limited (%d/day): %s", cap, label)
            return NotificationOutcome.RATE_LIMITED

        return NotificationOutcome.DELIVERED

    async def _deliver(self, notification: Notification) -> NotificationOutcome:
        try:
            await self._channel.deliver(notification.content)
        except Exception as exc:
            _logger.error("Delivery failed for %s:%s: %s", notification.type, notification.id, exc)
            return NotificationOutcome.DELIVERY_FAILED
        return NotificationOutcome.DELIVERED

    async def _hand_off(self, queue: NotificationQueue, notification: Notification) -> None:
        try:
            await queue.put(notification)
        except Exception:
            _logger.error(
                "Could not hand off %s:%s to %s",
                notification.type,
                notification.id,
                type(queue).__name__,
                exc_info=True,
            )

    def reset_daily(self) -> None:
        """Clear the dedup set and every rate counter."""
        self._sent_today.clear()
        self._counts.clear()
        _logger.info("Daily notification counters reset")

    def stats(self) -> dict:
        return {"sent_today": len(self._sent_today), "counts": dict(self._counts)}

    async def drain_events(self, timeout: float | None = None) -> None:
        await self._events.drain(timeout)


class GateFailureNotifier:
    """``FailureNotifier`` that reports permanent operation failures via a gate.

    The notification id is the operation name, so repeated failures of
    the same operation reach the operator at most once per day.
    """

    def __init__(self, gate: NotificationGate, notification_type: str = "system_error") -> None:
        self._gate = gate
        self.notification_type = notification_type

    async def notify_failure(self, name: str, error: BaseException) -> None:
        content = f"⚠️ {name} failed permanently: {error}"
        outcome = await self._gate.send(
            Notification(
                type=self.notification_type,
                id=name[:_MAX_ID_LEN],
                priority=Priority.NORMAL,
                content=content[:_MAX_CONTENT_LEN],
            )
        )
        _logger.debug("Failure notification for %s: %s", name, outcome.value)
