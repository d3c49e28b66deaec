"""Structured error tests — hierarchy, attributes and response mapping."""

import pytest

from steward.core.errors import (
    CircuitOpenError,
    ConfigurationError,
    DeliveryError,
    OperationError,
    OperationTimeoutError,
    StewardError,
    StructuredErrorResponse,
)


# ── Error hierarchy ────────────────────────────────────────────────────


class TestErrorHierarchy:
    """All custom errors inherit from StewardError."""

    @pytest.mark.parametrize(
        "exc_type",
        [CircuitOpenError, ConfigurationError, DeliveryError, OperationError, OperationTimeoutError],
    )
    def test_inherits_from_base(self, exc_type) -> None:
        assert issubclass(exc_type, StewardError)

    def test_timeout_is_not_builtin_timeout(self) -> None:
        assert not issubclass(OperationTimeoutError, TimeoutError)

    def test_operation_error_keeps_cause(self) -> None:
        cause = ValueError("bad payload")
        err = OperationError("hubspot_fetch", cause)
        assert err.cause is cause
        assert err.name == "hubspot_fetch"
        assert "bad payload" in str(err)

    def test_timeout_message(self) -> None:
        err = OperationTimeoutError("llm_summary", 30.0)
        assert "llm_summary" in str(err)
        assert err.timeout_seconds == 30.0

    def test_circuit_open_attributes(self) -> None:
        err = CircuitOpenError("avoma_sync", 25.5)
        assert err.name == "avoma_sync"
        assert err.retry_after == 25.5

    def test_circuit_open_negative_retry_clamped(self) -> None:
        assert CircuitOpenError("test", -5.0).retry_after == 0.0

    def test_delivery_error_message(self) -> None:
        err = DeliveryError("telegram", "HTTP 502")
        assert err.channel == "telegram"
        assert str(err) == "Delivery failed via telegram — HTTP 502"


# ── StructuredErrorResponse ────────────────────────────────────────────


class TestStructuredErrorResponse:
    @pytest.mark.parametrize(
        ("exc", "code"),
        [
            (CircuitOpenError("x", 1.0), "CIRCUIT_OPEN"),
            (OperationTimeoutError("x", 1.0), "OPERATION_TIMEOUT"),
            (OperationError("x", RuntimeError("boom")), "OPERATION_FAILED"),
            (ConfigurationError("no cap"), "CONFIGURATION_ERROR"),
            (DeliveryError("telegram"), "DELIVERY_FAILED"),
            (StewardError("generic"), "STEWARD_ERROR"),
        ],
    )
    def test_maps_codes(self, exc, code) -> None:
        resp = StructuredErrorResponse.from_exception(exc, "req-1")
        assert resp.code == code
        assert resp.request_id == "req-1"

    def test_unhandled_exception_hides_details(self) -> None:
        resp = StructuredErrorResponse.from_exception(KeyError("secret_token"), "req-2")
        assert resp.code == "INTERNAL_ERROR"
        assert "secret_token" not in resp.error
