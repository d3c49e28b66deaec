"""Structured errors for the steward core.

Custom exception hierarchy shared by the resilient executor and the
notification gate, plus ``StructuredErrorResponse`` for the HTTP edge.
"""

from pydantic import BaseModel


class StewardError(Exception):
    """Base exception for all steward errors."""


class OperationTimeoutError(StewardError):
    """Raised when a single attempt exceeds its configured timeout.

    The underlying operation is not cancelled; only its result is
    discarded.
    """

    def __init__(self, name: str, timeout_seconds: float) -> None:
        self.name = name
        self.timeout_seconds = timeout_seconds
        super().__init__(f"Operation '{name}' timed out after {timeout_seconds}s")


class OperationError(StewardError):
    """Raised when an operation has failed on every retry attempt.

    Attributes:
        name:  Operation name the call was executed under.
        cause: The last attempt's failure, attached verbatim.
    """

    def __init__(self, name: str, cause: BaseException) -> None:
        self.name = name
        self.cause = cause
        super().__init__(f"Operation '{name}' failed permanently: {cause}")


class CircuitOpenError(StewardError):
    """Raised when a circuit breaker is open and the call is rejected.

    The operation is never invoked.
    """

    def __init__(self, name: str, retry_after: float) -> None:
        self.name = name
        self.retry_after = max(0.0, retry_after)
        super().__init__(f"Circuit open for '{name}' — retry after {self.retry_after:.1f}s")


class ConfigurationError(StewardError):
    """Raised when a notification needs configuration that does not exist."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Configuration error: {detail}")


class DeliveryError(StewardError):
    """Raised by a delivery channel when the message could not be sent."""

    def __init__(self, channel: str, detail: str = "") -> None:
        self.channel = channel
        self.detail = detail
        msg = f"Delivery failed via {channel}"
        if detail:
            msg += f" — {detail}"
        super().__init__(msg)


class StructuredErrorResponse(BaseModel):
    """Structured error response.

    Returns ``{"error": str, "code": str, "request_id": str}`` — no stack traces.
    """

    error: str
    code: str
    request_id: str

    @classmethod
    def from_exception(cls, exc: Exception, request_id: str) -> "StructuredErrorResponse":
        """Create from an exception, mapping to machine-readable codes.

        Never leaks internal details for unhandled exceptions.
        """
        codes = (
            (CircuitOpenError, "CIRCUIT_OPEN"),
            (OperationTimeoutError, "OPERATION_TIMEOUT"),
            (OperationError, "OPERATION_FAILED"),
            (ConfigurationError, "CONFIGURATION_ERROR"),
            (DeliveryError, "DELIVERY_FAILED"),
            (StewardError, "STEWARD_ERROR"),
        )
        for exc_type, code in codes:
            if isinstance(exc, exc_type):
                return cls(error=str(exc), code=code, request_id=request_id)
        # Unhandled — never expose internal details
        return cls(
            error="An internal error occurred",
            code="INTERNAL_ERROR",
            request_id=request_id,
        )
