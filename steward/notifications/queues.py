"""Hand-off targets for notifications the gate did not deliver now.

The gate puts quiet-hours notifications on a morning queue and
over-cap notifications on a digest batch.  What happens to them later
(morning flush, daily digest) belongs to whoever owns the queue.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Protocol

import aiofiles

from steward.models.notification import Notification

_logger = logging.getLogger("steward.notifications")


class NotificationQueue(Protocol):
    async def put(self, notification: Notification) -> None: ...


class MemoryQueue:
    def __init__(self, label: str = "queue") -> None:
        self.label = label
        self.items: list[Notification] = []

    async def put(self, notification: Notification) -> None:
        _logger.info("%s: %s:%s", self.label, notification.type, notification.id)
        self.items.append(notification)

    def drain(self) -> list[Notification]:
        """Return and forget everything queued so far."""
        items, self.items = self.items, []
        return items


class JsonlQueue:
    """Append-only JSONL file of deferred notifications."""

    def __init__(self, path: str, label: str = "queue") -> None:
        self.path = Path(path)
        self.label = label

    async def put(self, notification: Notification) -> None:
        _logger.info("%s: %s:%s", self.label, notification.type, notification.id)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(self.path, "a") as f:
            await f.write(notification.model_dump_json() + "\n")

    async def read_all(self) -> list[Notification]:
        if not self.path.exists():
            return []
        async with aiofiles.open(self.path) as f:
            lines = await f.readlines()
        return [Notification.model_validate(json.loads(line)) for line in lines if line.strip()]
