"""Notification input model, gate outcomes and the quiet-hours window."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, Field, field_validator


class Priority(str, Enum):
    """Notification priority.  Only ``CRITICAL`` bypasses quiet hours."""

    CRITICAL = "critical"
    NORMAL = "normal"


class NotificationOutcome(str, Enum):
    """What the gate did with a notification."""

    DELIVERED = "delivered"
    SKIPPED_DUPLICATE = "skipped_duplicate"
    DEFERRED_QUIET_HOURS = "deferred_quiet_hours"
    RATE_LIMITED = "rate_limited"
    DELIVERY_FAILED = "delivery_failed"


class Notification(BaseModel):
    """An outbound alert.  Identity for deduplication is ``(type, id)``."""

    type: str = Field(..., min_length=1, max_length=100)
    id: str = Field(default="", max_length=200)
    priority: Priority = Priority.NORMAL
    content: str = Field(..., min_length=1, max_length=4096)

    @field_validator("type", mode="before")
    @classmethod
    def strip_type(cls, v: str) -> str:
        if isinstance(v, str):
            return v.strip()
        return v

    @property
    def key(self) -> tuple[str, str]:
        return (self.type, self.id)


@dataclass(frozen=True)
class QuietHoursWindow:
    """Local-hour window ``[start_hour, end_hour)`` that may wrap midnight.

    ``start_hour > end_hour`` spans midnight (e.g. 23 → 7).  Equal hours
    describe an empty window.
    """

    start_hour: int = 23
    end_hour: int = 7

    def __post_init__(self) -> None:
        for hour in (self.start_hour, self.end_hour):
            if not 0 <= hour <= 23:
                raise ValueError(f"Quiet hour out of range 0-23: {hour}")

    def contains(self, hour: int) -> bool:
        if self.start_hour == self.end_hour:
            return False
        if self.start_hour > self.end_hour:
            return hour >= self.start_hour or hour < self.end_hour
        return self.start_hour <= hour < self.end_hour
