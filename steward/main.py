"""FastAPI application entrypoint.

Provides ``/health``, ``/health/resilience`` (breaker snapshots and
gate counters), ``POST /notifications`` and ``POST /notifications/reset``
on top of one ``Assistant`` owned by the app.
"""

import logging
import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from steward.assistant import Assistant, build_assistant
from steward.core.config import Settings
from steward.core.errors import StewardError, StructuredErrorResponse
from steward.models.notification import Notification
from steward.models.schemas import (
    BreakerSnapshot,
    GateStats,
    HealthResponse,
    NotifyResponse,
    ResilienceResponse,
)

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, assistant: Assistant | None = None) -> FastAPI:
    settings = settings or Settings()
    assistant = assistant or build_assistant(settings)
    start_time = time.monotonic()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await assistant.start()
        yield
        await assistant.stop()

    app = FastAPI(
        title=settings.SERVICE_NAME,
        version=settings.SERVICE_VERSION,
        lifespan=lifespan,
    )
    app.state.assistant = assistant

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next) -> Response:
        """Assign or preserve a unique request ID on every request."""
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    @app.exception_handler(StewardError)
    async def steward_error_handler(request: Request, exc: StewardError) -> JSONResponse:
        request_id = getattr(request.state, "request_id", "")
        body = StructuredErrorResponse.from_exception(exc, request_id)
        return JSONResponse(status_code=400, content=body.model_dump(), headers={"X-Request-ID": request_id})

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        """Return service health with name, version, status, and uptime."""
        return HealthResponse(
            service=settings.SERVICE_NAME,
            version=settings.SERVICE_VERSION,
            status="healthy",
            uptime_seconds=round(time.monotonic() - start_time, 2),
        )

    @app.get("/health/resilience", response_model=ResilienceResponse)
    async def resilience() -> ResilienceResponse:
        status = assistant.health()
        return ResilienceResponse(
            breakers=[BreakerSnapshot(**snap) for snap in status["breakers"]],
            notifications=GateStats(**status["notifications"]),
        )

    @app.post("/notifications", response_model=NotifyResponse)
    async def notify(notification: Notification) -> NotifyResponse:
        outcome = await assistant.notify(notification)
        return NotifyResponse(type=notification.type, id=notification.id, outcome=outcome)

    @app.post("/notifications/reset")
    async def reset_notifications() -> dict:
        assistant.gate.reset_daily()
        return {"status": "reset"}

    return app


app = create_app()
