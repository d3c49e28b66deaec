"""Shared fixtures — virtual clock, in-memory sink and channel."""

from datetime import datetime

import pytest

from steward.core.clock import ManualClock
from steward.notifications.channels import LogChannel
from steward.observability.sinks import MemoryEventSink

NOON = datetime(2024, 3, 14, 12, 0, 0)


@pytest.fixture
def clock() -> ManualClock:
    """Virtual clock starting at noon (outside quiet hours)."""
    return ManualClock(start=NOON)


@pytest.fixture
def sink() -> MemoryEventSink:
    return MemoryEventSink()


@pytest.fixture
def channel() -> LogChannel:
    return LogChannel()
