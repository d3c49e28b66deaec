"""OperationPolicy tests — defaults, constraints, backoff schedule."""

import pytest
from pydantic import ValidationError

from steward.core.config import Settings
from steward.models.policy import OperationPolicy


class TestPolicyDefaults:
    def test_defaults(self) -> None:
        policy = OperationPolicy()
        assert policy.max_retries == 3
        assert policy.backoff_base_seconds == 1.0
        assert policy.circuit_threshold == 5
        assert policy.timeout_seconds == 30.0
        assert policy.cooldown_seconds == 300.0

    def test_from_settings(self) -> None:
        settings = Settings(
            EXECUTOR_MAX_RETRIES=4,
            EXECUTOR_BACKOFF_BASE_SECONDS=0.5,
            CIRCUIT_BREAKER_THRESHOLD=2,
            EXECUTOR_TIMEOUT_SECONDS=5.0,
            CIRCUIT_BREAKER_COOLDOWN_SECONDS=60.0,
        )
        policy = OperationPolicy.from_settings(settings)
        assert policy == OperationPolicy(
            max_retries=4,
            backoff_base_seconds=0.5,
            circuit_threshold=2,
            timeout_seconds=5.0,
            cooldown_seconds=60.0,
        )


class TestPolicyConstraints:
    @pytest.mark.parametrize(
        "kwargs",
        [
            {"max_retries": 0},
            {"backoff_base_seconds": -1.0},
            {"circuit_threshold": 0},
            {"timeout_seconds": 0.0},
            {"cooldown_seconds": 0.0},
        ],
    )
    def test_rejects_out_of_range(self, kwargs) -> None:
        with pytest.raises(ValidationError):
            OperationPolicy(**kwargs)

    def test_zero_backoff_allowed(self) -> None:
        assert OperationPolicy(backoff_base_seconds=0.0).backoff_for(3) == 0.0

    def test_is_immutable(self) -> None:
        policy = OperationPolicy()
        with pytest.raises(ValidationError):
            policy.max_retries = 10


class TestBackoffSchedule:
    def test_first_backoff_equals_base(self) -> None:
        assert OperationPolicy(backoff_base_seconds=1.0).backoff_for(1) == 1.0

    def test_doubles_per_attempt(self) -> None:
        policy = OperationPolicy(backoff_base_seconds=0.25)
        assert [policy.backoff_for(a) for a in (1, 2, 3, 4)] == [0.25, 0.5, 1.0, 2.0]
