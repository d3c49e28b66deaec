"""Assistant — composition root for the resilience and notification core.

Builds one explicitly owned ``NotificationGate`` and one
``ResilientExecutor`` from ``Settings`` and wires them together: the
executor only sees the gate through ``GateFailureNotifier``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TypeVar

from steward.core.clock import Clock, SystemClock
from steward.core.config import Settings
from steward.models.notification import Notification, NotificationOutcome, QuietHoursWindow
from steward.models.policy import OperationPolicy
from steward.notifications.channels import DeliveryChannel, build_channel
from steward.notifications.gate import GateFailureNotifier, NotificationGate
from steward.notifications.queues import JsonlQueue
from steward.notifications.rate_caps import RateCapTable
from steward.notifications.scheduler import DailyResetScheduler
from steward.observability.sinks import EventSink, build_event_sink
from steward.resilience.circuit_breaker import CircuitBreakerRegistry
from steward.resilience.executor import Operation, ResilientExecutor

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class Assistant:
    settings: Settings
    gate: NotificationGate
    executor: ResilientExecutor
    scheduler: DailyResetScheduler
    channel: DeliveryChannel

    async def notify(self, notification: Notification) -> NotificationOutcome:
        return await self.gate.send(notification)

    async def execute(self, name: str, operation: Operation[T], policy: OperationPolicy | None = None) -> T:
        return await self.executor.execute(name, operation, policy)

    def health(self) -> dict:
        return {
            "breakers": self.executor.health_status(),
            "notifications": self.gate.stats(),
        }

    async def start(self) -> None:
        if self.settings.DAILY_RESET_ENABLED:
            self.scheduler.start()
        logger.info("Steward ready")

    async def stop(self) -> None:
        await self.scheduler.stop()
        timeout = self.settings.EVENT_DRAIN_TIMEOUT_SECONDS
        await self.executor.drain_events(timeout)
        await self.gate.drain_events(timeout)
        close = getattr(self.channel, "close", None)
        if close is not None:
            await close()


def load_rate_caps(settings: Settings) -> RateCapTable:
    """YAML cap table if ``RATE_CAPS_PATH`` exists, else the built-in table."""
    path = Path(settings.RATE_CAPS_PATH) if settings.RATE_CAPS_PATH else None
    if path is not None and path.exists():
        logger.info("Loading rate caps from %s", path)
        return RateCapTable.from_yaml(path, default=settings.DEFAULT_RATE_CAP, strict=settings.NOTIFY_STRICT_TYPES)
    return RateCapTable(default=settings.DEFAULT_RATE_CAP, strict=settings.NOTIFY_STRICT_TYPES)


def build_assistant(
    settings: Settings,
    *,
    clock: Clock | None = None,
    channel: DeliveryChannel | None = None,
    sink: EventSink | None = None,
) -> Assistant:
    clock = clock or SystemClock(settings.TIMEZONE or None)
    sink = sink or build_event_sink(settings)

    channel = channel or build_channel(settings)
    gate = NotificationGate(
        channel=channel,
        rate_caps=load_rate_caps(settings),
        quiet_hours=QuietHoursWindow(settings.QUIET_HOURS_START, settings.QUIET_HOURS_END),
        clock=clock,
        morning_queue=JsonlQueue(settings.MORNING_QUEUE_PATH, label="Morning queue"),
        digest=JsonlQueue(settings.DIGEST_PATH, label="Digest batch"),
        sink=sink,
    )
    executor = ResilientExecutor(
        registry=CircuitBreakerRegistry(),
        clock=clock,
        sink=sink,
        notifier=GateFailureNotifier(gate),
        default_policy=OperationPolicy.from_settings(settings),
    )
    return Assistant(
        settings=settings,
        gate=gate,
        executor=executor,
        scheduler=DailyResetScheduler(gate, clock),
        channel=channel,
    )
