"""HTTP response models for the steward service."""

from pydantic import BaseModel

from steward.models.notification import NotificationOutcome


class HealthResponse(BaseModel):
    """Response model for GET /health."""

    service: str
    version: str
    status: str
    uptime_seconds: float


class BreakerSnapshot(BaseModel):
    name: str
    state: str
    consecutive_failures: int
    opened_at: float | None
    total_calls: int
    total_failures: int
    total_rejections: int
    total_successes: int


class GateStats(BaseModel):
    sent_today: int
    counts: dict[str, int]


class ResilienceResponse(BaseModel):
    """Response model for GET /health/resilience."""

    breakers: list[BreakerSnapshot]
    notifications: GateStats


class NotifyResponse(BaseModel):
    """Response model for POST /notifications."""

    type: str
    id: str
    outcome: NotificationOutcome
