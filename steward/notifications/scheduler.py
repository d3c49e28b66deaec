"""Daily reset of the gate's dedup set and rate counters at local midnight."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, time, timedelta

from steward.core.clock import Clock, SystemClock
from steward.notifications.gate import NotificationGate

logger = logging.getLogger(__name__)


class DailyResetScheduler:
    """Calls ``gate.reset_daily()`` at every local day boundary."""

    def __init__(self, gate: NotificationGate, clock: Clock | None = None) -> None:
        self._gate = gate
        self._clock = clock or SystemClock()
        self._task: asyncio.Task | None = None

    def seconds_until_midnight(self) -> float:
        now = self._clock.now()
        midnight = datetime.combine(now.date() + timedelta(days=1), time.min, tzinfo=now.tzinfo)
        # timestamps, not datetime subtraction: same-zone arithmetic ignores DST changes
        return midnight.timestamp() - now.timestamp()

    async def run_once(self) -> None:
        delay = self.seconds_until_midnight()
        logger.info("Daily reset scheduled in %d minutes", int(delay // 60))
        await self._clock.sleep(delay)
        self._gate.reset_daily()

    async def run(self) -> None:
        while True:
            await self.run_once()

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run(), name="steward-daily-reset")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()
