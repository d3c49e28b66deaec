"""Structured observability events emitted by the executor and the gate.

Each event is a dataclass with JSON serialization so any sink can write
it as one JSONL line.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime


def _utcnow() -> str:
    return datetime.now(UTC).isoformat()


@dataclass
class Event:
    def to_dict(self) -> dict:
        return {"event": self.kind, **asdict(self)}

    def to_json(self) -> str:
        """Serialize to a single-line JSON string (JSONL-safe)."""
        return json.dumps(self.to_dict(), separators=(",", ":"), default=str)

    @property
    def kind(self) -> str:
        raise NotImplementedError


@dataclass
class AttemptEvent(Event):
    """One attempt of one ``execute()`` call."""

    name: str
    attempt: int
    outcome: str  # success | error | timeout
    duration_ms: float
    error: str | None = None
    timestamp: str = field(default_factory=_utcnow)

    @property
    def kind(self) -> str:
        return "attempt"


@dataclass
class CallSummaryEvent(Event):
    """Summary of one ``execute()`` call."""

    name: str
    attempts: int
    elapsed_ms: float
    outcome: str  # success | failure | circuit_open
    circuit_opened: bool = False
    timestamp: str = field(default_factory=_utcnow)

    @property
    def kind(self) -> str:
        return "call"


@dataclass
class GateDecisionEvent(Event):
    """One ``NotificationGate.send()`` decision."""

    type: str
    id: str
    outcome: str
    timestamp: str = field(default_factory=_utcnow)

    @property
    def kind(self) -> str:
        return "notification"
