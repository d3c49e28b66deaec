"""Clock abstraction — wall time, monotonic time, sleeping and timers.

The executor and the notification gate never touch ``time`` or
``asyncio.sleep`` directly.  ``SystemClock`` is used in production;
``ManualClock`` keeps virtual time so tests can simulate minutes of
backoff and cooldown without real delays.
"""

from __future__ import annotations

import asyncio
import time
from datetime import datetime, timedelta, tzinfo
from typing import Awaitable, Protocol
from zoneinfo import ZoneInfo


class Clock(Protocol):
    """What the core needs from time."""

    def monotonic(self) -> float: ...

    def now(self) -> datetime: ...

    async def sleep(self, seconds: float) -> None: ...

    def after(self, seconds: float) -> Awaitable[None]: ...


class SystemClock:
    """Real time.  ``now()`` is local time, or *timezone* if given."""

    def __init__(self, timezone: str | None = None) -> None:
        self._tz: tzinfo | None = ZoneInfo(timezone) if timezone else None

    def monotonic(self) -> float:
        return time.monotonic()

    def now(self) -> datetime:
        if self._tz is None:
            return datetime.now()
        return datetime.now(self._tz)

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)

    def after(self, seconds: float) -> Awaitable[None]:
        """Return an awaitable that completes once *seconds* have elapsed."""
        return asyncio.sleep(seconds)


class ManualClock:
    """Virtual clock driven by ``advance()`` and ``sleep()``.

    ``sleep()`` records the requested delay in ``sleeps``, moves virtual
    time forward by that amount and yields once to the event loop.
    Timers created with ``after()`` resolve as soon as virtual time
    reaches their deadline, whichever call moved it there.

    Args:
        start: Wall-clock time corresponding to virtual time zero.
    """

    def __init__(self, start: datetime | None = None) -> None:
        self._start = start or datetime(2024, 1, 1, 12, 0, 0)
        self._elapsed = 0.0
        self._timers: list[tuple[float, asyncio.Future]] = []
        self.sleeps: list[float] = []

    def monotonic(self) -> float:
        return self._elapsed

    def now(self) -> datetime:
        return self._start + timedelta(seconds=self._elapsed)

    def set_time(self, when: datetime) -> None:
        """Jump the wall clock to *when* (forwards only)."""
        delta = (when - self.now()).total_seconds()
        if delta < 0:
            raise ValueError("ManualClock cannot move backwards")
        self.advance(delta)

    def advance(self, seconds: float) -> None:
        """Move virtual time forward and fire any due timers."""
        self._elapsed += seconds
        due = [fut for deadline, fut in self._timers if deadline <= self._elapsed]
        self._timers = [(d, f) for d, f in self._timers if d > self._elapsed]
        for fut in due:
            if not fut.done():
                fut.set_result(None)

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.advance(seconds)
        await asyncio.sleep(0)

    def after(self, seconds: float) -> Awaitable[None]:
        fut: asyncio.Future = asyncio.get_running_loop().create_future()
        if seconds <= 0:
            fut.set_result(None)
        else:
            self._timers.append((self._elapsed + seconds, fut))
        return fut

    @property
    def pending_timers(self) -> int:
        return sum(1 for _, fut in self._timers if not fut.done())
