"""Tests for the unified lifecycle exception taxonomy.

Verifies:
- Every domain exception inherits from ``LifecycleError``
- Category, stage and code defaults per failure kind
- ``to_error_dict()`` returns stable keys plus the failure-specific extras
- Retryable semantics
"""

from __future__ import annotations

import pytest

from remote_operations.clients.base import (
    ClientAuthError,
    ClientError,
    EstimationUnsupportedError,
)
from remote_operations.core.config import ConfigValidationError
from remote_operations.core.exceptions import (
    EngineFailure,
    EstimationError,
    LifecycleError,
    OperationFailedError,
    OperationTimeoutError,
    PermanentError,
    PollingExhaustedError,
    SetupValidationError,
    StartError,
    StatusRefreshError,
    TransientError,
    ValidationError,
)
from remote_operations.models.operation import (
    ModelValidationError,
    OperationStatus,
    Severity,
    ValidationEntry,
)

STABLE_KEYS = {
    "category",
    "code",
    "stage",
    "message",
    "retryable",
    "operation_id",
    "correlation_id",
}


# ---------------------------------------------------------------------------
# Hierarchy
# ---------------------------------------------------------------------------


class TestHierarchy:
    @pytest.mark.parametrize(
        "exc_cls",
        [
            ClientError,
            ClientAuthError,
            EstimationUnsupportedError,
            ConfigValidationError,
            ModelValidationError,
            SetupValidationError,
            EstimationError,
            StartError,
            StatusRefreshError,
            PollingExhaustedError,
            OperationTimeoutError,
            OperationFailedError,
        ],
    )
    def test_inherits_lifecycle_error(self, exc_cls: type) -> None:
        assert issubclass(exc_cls, LifecycleError)

    def test_model_validation_error_is_value_error(self) -> None:
        assert issubclass(ModelValidationError, ValueError)

    def test_engine_failures(self) -> None:
        for exc_cls in (
            SetupValidationError,
            EstimationError,
            StartError,
            StatusRefreshError,
            PollingExhaustedError,
            OperationTimeoutError,
            OperationFailedError,
        ):
            assert issubclass(exc_cls, EngineFailure)

    def test_client_errors_are_not_engine_failures(self) -> None:
        assert not issubclass(ClientError, EngineFailure)


# ---------------------------------------------------------------------------
# Categories and defaults
# ---------------------------------------------------------------------------


class TestCategories:
    def test_base_categories(self) -> None:
        assert ValidationError("x").category == "validation"
        assert TransientError("x").category == "transient"
        assert PermanentError("x").category == "permanent"

    def test_uncategorised_follows_retryable(self) -> None:
        assert LifecycleError("x", retryable=True).category == "transient"
        assert LifecycleError("x").category == "permanent"

    def test_setup_validation(self) -> None:
        err = SetupValidationError([ValidationEntry(Severity.ERROR, "bad")], [])
        assert err.category == "validation"
        assert err.stage == "check"
        assert err.code == "SETUP_VALIDATION_FAILED"
        assert err.retryable is False

    def test_polling_exhausted_is_transient_but_not_retried(self) -> None:
        err = PollingExhaustedError("gone quiet", failures=6)
        assert err.category == "transient"
        assert err.retryable is False
        assert err.stage == "poll"

    @pytest.mark.parametrize(
        ("exc", "stage", "code"),
        [
            (EstimationError("x"), "estimate", "ESTIMATION_FAILED"),
            (StartError("x"), "start", "START_FAILED"),
            (StatusRefreshError("x", status_code=404), "poll", "STATUS_REFRESH_FAILED"),
            (OperationTimeoutError("x", budget_s=10.0), "poll", "OPERATION_TIMEOUT"),
            (OperationFailedError(OperationStatus.FAILED), "poll", "OPERATION_FAILED"),
        ],
    )
    def test_permanent_failures(self, exc: LifecycleError, stage: str, code: str) -> None:
        assert exc.category == "permanent"
        assert exc.stage == stage
        assert exc.code == code
        assert exc.retryable is False

    def test_client_error_retryable_flag(self) -> None:
        assert ClientError("mesh", "x", retryable=True).category == "transient"
        assert ClientError("mesh", "x").category == "permanent"

    def test_client_error_str_names_client(self) -> None:
        assert str(ClientError("mesh", "boom")) == "[mesh] boom"

    def test_estimation_unsupported_defaults(self) -> None:
        err = EstimationUnsupportedError("mesh", "n/a", status_code=422)
        assert err.stage == "estimate"
        assert err.code == "ESTIMATION_UNSUPPORTED"
        assert isinstance(err, ClientError)

    def test_auth_error_never_retryable(self) -> None:
        err = ClientAuthError("mesh", "denied", status_code=401)
        assert err.retryable is False
        assert err.code == "CLIENT_AUTH_FAILED"


# ---------------------------------------------------------------------------
# Structured payloads
# ---------------------------------------------------------------------------


class TestErrorDict:
    def test_stable_keys(self) -> None:
        payload = LifecycleError(
            "x", stage="s", code="C", operation_id="op-1", correlation_id="corr-1"
        ).to_error_dict()
        assert set(payload) == STABLE_KEYS
        assert payload["operation_id"] == "op-1"
        assert payload["correlation_id"] == "corr-1"

    def test_engine_failure_adds_status_and_elapsed(self) -> None:
        payload = StartError("x").to_error_dict()
        assert payload["last_status"] == ""
        assert payload["elapsed_s"] == 0.0

    def test_timeout_payload(self) -> None:
        err = OperationTimeoutError(
            "too slow",
            budget_s=3600.0,
            operation_id="op-1",
            last_status=OperationStatus.RUNNING,
            elapsed_s=3630.12345,
        )
        payload = err.to_error_dict()
        assert payload["budget_s"] == 3600.0
        assert payload["last_status"] == "RUNNING"
        assert payload["elapsed_s"] == 3630.123

    def test_operation_failed_payload(self) -> None:
        err = OperationFailedError(OperationStatus.CANCELED, progress=0.25, operation_id="op-9")
        payload = err.to_error_dict()
        assert payload["last_status"] == "CANCELED"
        assert payload["progress"] == 0.25
        assert "op-9" in payload["message"]

    def test_client_error_payload_has_status_code(self) -> None:
        payload = ClientError("mesh", "x", status_code=404).to_error_dict()
        assert payload["status_code"] == 404
