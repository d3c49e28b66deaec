"""Event sinks — where executor and gate events go.

Sinks are fire-and-forget from the caller's point of view.  The executor
and the gate hand events to a ``BackgroundEmitter``, which runs each
``emit_safely()`` call as a task: a slow or hung sink never delays a
result, and a broken one is logged and never changes an outcome.

``HttpEventForwarder`` POSTs events to a collector and falls back to a
local JSONL file when the collector is unavailable.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Protocol

import aiofiles
import httpx

from steward.core.config import Settings
from steward.observability.events import Event

_events_logger = logging.getLogger("steward.events")


class EventSink(Protocol):
    async def emit(self, event: Event) -> None: ...


async def emit_safely(sink: EventSink, event: Event) -> None:
    """Emit *event*; log and swallow any sink failure."""
    try:
        await sink.emit(event)
    except Exception:
        _events_logger.warning("Event sink %s failed for %s event", type(sink).__name__, event.kind, exc_info=True)


class BackgroundEmitter:
    """Schedules each emit as its own task so callers never wait on the sink.

    Pending tasks are held until they finish.  ``drain()`` waits for them
    and cancels whatever is still running after *timeout* seconds.
    """

    def __init__(self, sink: EventSink) -> None:
        self.sink = sink
        self._pending: set[asyncio.Task] = set()

    def emit(self, event: Event) -> None:
        task = asyncio.create_task(emit_safely(self.sink, event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self, timeout: float | None = None) -> None:
        if not self._pending:
            return
        _, still_running = await asyncio.wait(set(self._pending), timeout=timeout)
        if not still_running:
            return
        _events_logger.warning("Cancelling %d event emits still pending after drain", len(still_running))
        for task in still_running:
            task.cancel()
        await asyncio.gather(*still_running, return_exceptions=True)


class NullEventSink:
    """Discards every event."""

    async def emit(self, event: Event) -> None:
        return None


class MemoryEventSink:
    """Keeps events in a list; used by tests and the health view."""

    def __init__(self) -> None:
        self.events: list[Event] = []

    async def emit(self, event: Event) -> None:
        self.events.append(event)

    def of_kind(self, kind: str) -> list[Event]:
        return [e for e in self.events if e.kind == kind]


class JsonlEventSink:
    """Appends each event as one JSON line to *path*."""

    def __init__(self, path: str = "logs/events.jsonl") -> None:
        self.path = Path(path)

    async def emit(self, event: Event) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(self.path, "a") as f:
            await f.write(event.to_json() + "\n")


class HttpEventForwarder:
    """Forward events to a collector endpoint; JSONL fallback on failure."""

    def __init__(
        self,
        url: str,
        fallback_path: str = "logs/events_fallback.jsonl",
        timeout: float = 5.0,
    ) -> None:
        self.url = url.rstrip("/")
        self.timeout = timeout
        self._fallback = JsonlEventSink(fallback_path)

    async def emit(self, event: Event) -> None:
        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    f"{self.url}/events",
                    content=event.to_json(),
                    headers={"Content-Type": "application/json"},
                    timeout=self.timeout,
                )
                response.raise_for_status()
        except Exception:
            _events_logger.warning("Event collector unavailable — writing to fallback JSONL")
            await self._fallback.emit(event)


def build_event_sink(settings: Settings) -> EventSink:
    """Pick the sink for a deployment from *settings*."""
    if settings.EVENT_FORWARD_URL:
        fallback = str(Path(settings.EVENT_LOG_PATH).with_name("events_fallback.jsonl"))
        return HttpEventForwarder(settings.EVENT_FORWARD_URL, fallback_path=fallback)
    if settings.EVENT_LOG_PATH:
        return JsonlEventSink(settings.EVENT_LOG_PATH)
    return NullEventSink()
