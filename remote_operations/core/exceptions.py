"""Unified lifecycle exception taxonomy.

Provides a shared base exception hierarchy for the lifecycle engine and
the remote operation clients. Every domain exception inherits from
``LifecycleError`` and carries structured context fields that let callers
tell expected outcomes from true faults, log them consistently, and decide
whether a resubmission makes sense.

Taxonomy categories
-------------------
- ``ValidationError``   — setup/input violations, never retryable.
- ``TransientError``    — communication failures that may clear up later.
- ``PermanentError``    — unrecoverable failures of one operation run.

Every exception exposes ``to_error_dict()`` for a stable structured
error payload suitable for logging and display.

Caller-initiated cancellation is *not* an exception: it is reported as an
``Outcome`` in the ``CANCELED`` state (see ``remote_operations.models``).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from remote_operations.models.operation import (
        OperationStatus,
        ValidationEntry,
    )


class LifecycleError(Exception):
    """Base exception for all lifecycle-domain errors.

    Attributes:
        message: Human-readable error description.
        stage: Lifecycle stage where the error occurred
            (e.g. ``"check"``, ``"estimate"``, ``"poll"``).
        code: Machine-readable error code (e.g. ``"START_FAILED"``).
        retryable: Whether resubmitting the operation may succeed.
        operation_id: Remote operation identifier, when one was assigned.
        correlation_id: Caller-supplied correlation identifier.
    """

    #: Default stage for subclasses (override via class attribute or kwarg).
    default_stage: str = ""
    #: Default code for subclasses (override via class attribute or kwarg).
    default_code: str = ""

    def __init__(
        self,
        message: str = "",
        *,
        stage: str = "",
        code: str = "",
        retryable: bool = False,
        operation_id: str = "",
        correlation_id: str = "",
    ) -> None:
        self.message = message
        self.stage = stage or self.default_stage
        self.code = code or self.default_code
        self.retryable = retryable
        self.operation_id = operation_id
        self.correlation_id = correlation_id
        super().__init__(message)

    @property
    def category(self) -> str:
        """Return the error category based on concrete class."""
        if isinstance(self, ValidationError):
            return "validation"
        if isinstance(self, TransientError):
            return "transient"
        if isinstance(self, PermanentError):
            return "permanent"
        return "transient" if self.retryable else "permanent"

    def to_error_dict(self) -> dict[str, object]:
        """Return a structured error payload with stable keys."""
        return {
            "category": self.category,
            "code": self.code,
            "stage": self.stage,
            "message": self.message,
            "retryable": self.retryable,
            "operation_id": self.operation_id,
            "correlation_id": self.correlation_id,
        }


# ---------------------------------------------------------------------------
# Category base classes
# ---------------------------------------------------------------------------


class ValidationError(LifecycleError):
    """Setup or domain-model validation failure. Never retryable."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class TransientError(LifecycleError):
    """Temporary failure that may succeed on retry."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", True)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class PermanentError(LifecycleError):
    """Unrecoverable failure of one operation run. Not retryable."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Engine failures
# ---------------------------------------------------------------------------


class EngineFailure(LifecycleError):
    """Base for failures raised while an operation is in flight.

    Adds the last known remote status and the elapsed polling time so
    callers can log or display where the run stopped.
    """

    last_status: OperationStatus | None = None
    elapsed_s: float = 0.0

    def to_error_dict(self) -> dict[str, object]:
        payload = super().to_error_dict()
        payload["last_status"] = self.last_status.value if self.last_status else ""
        payload["elapsed_s"] = round(self.elapsed_s, 3)
        return payload


class SetupValidationError(ValidationError, EngineFailure):
    """The setup check returned one or more error-severity entries.

    Attributes:
        errors: The ERROR entries, in the order the service returned them.
        warnings: The WARNING entries returned by the same check.
        target: What was checked (``"operation"`` or a dependent label).
    """

    default_stage = "check"
    default_code = "SETUP_VALIDATION_FAILED"

    def __init__(
        self,
        errors: list[ValidationEntry],
        warnings: list[ValidationEntry],
        *,
        target: str = "operation",
        operation_id: str = "",
    ) -> None:
        self.errors = list(errors)
        self.warnings = list(warnings)
        self.target = target
        summary = "; ".join(e.message for e in self.errors)
        super().__init__(
            f"Setup check failed for {target} with {len(self.errors)} error(s): {summary}",
            operation_id=operation_id,
        )

    def to_error_dict(self) -> dict[str, object]:
        payload = super().to_error_dict()
        payload["errors"] = [e.message for e in self.errors]
        payload["warnings"] = [w.message for w in self.warnings]
        payload["target"] = self.target
        return payload


class EstimationError(PermanentError, EngineFailure):
    """The estimate call failed for a reason other than "unsupported"."""

    default_stage = "estimate"
    default_code = "ESTIMATION_FAILED"


class StartError(PermanentError, EngineFailure):
    """The single start call failed."""

    default_stage = "start"
    default_code = "START_FAILED"


class PollingExhaustedError(TransientError, EngineFailure):
    """Too many consecutive status refreshes returned no result.

    The remote operation may still be alive, so the error is categorised
    as transient, but the engine itself does not retry.
    """

    default_stage = "poll"
    default_code = "POLLING_EXHAUSTED"

    def __init__(
        self,
        message: str,
        *,
        failures: int,
        operation_id: str = "",
        last_status: OperationStatus | None = None,
        elapsed_s: float = 0.0,
    ) -> None:
        self.failures = failures
        self.last_status = last_status
        self.elapsed_s = elapsed_s
        super().__init__(message, retryable=False, operation_id=operation_id)


class StatusRefreshError(PermanentError, EngineFailure):
    """A status refresh failed definitively (unknown operation, auth).

    Attributes:
        status_code: HTTP status code of the failed refresh, if any.
    """

    default_stage = "poll"
    default_code = "STATUS_REFRESH_FAILED"

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        operation_id: str = "",
        last_status: OperationStatus | None = None,
        elapsed_s: float = 0.0,
    ) -> None:
        self.status_code = status_code
        self.last_status = last_status
        self.elapsed_s = elapsed_s
        super().__init__(message, operation_id=operation_id)

    def to_error_dict(self) -> dict[str, object]:
        payload = super().to_error_dict()
        payload["status_code"] = self.status_code
        return payload


class OperationTimeoutError(PermanentError, EngineFailure):
    """Elapsed polling time exceeded the computed timeout budget."""

    default_stage = "poll"
    default_code = "OPERATION_TIMEOUT"

    def __init__(
        self,
        message: str,
        *,
        budget_s: float,
        operation_id: str = "",
        last_status: OperationStatus | None = None,
        elapsed_s: float = 0.0,
    ) -> None:
        self.budget_s = budget_s
        self.last_status = last_status
        self.elapsed_s = elapsed_s
        super().__init__(message, operation_id=operation_id)

    def to_error_dict(self) -> dict[str, object]:
        payload = super().to_error_dict()
        payload["budget_s"] = self.budget_s
        return payload


class OperationFailedError(PermanentError, EngineFailure):
    """The remote service reported CANCELED or FAILED for the operation.

    Attributes:
        status: The terminal status the service reported.
        progress: Last known progress fraction, if any.
    """

    default_stage = "poll"
    default_code = "OPERATION_FAILED"

    def __init__(
        self,
        status: OperationStatus,
        *,
        progress: float | None = None,
        operation_id: str = "",
        elapsed_s: float = 0.0,
    ) -> None:
        self.status = status
        self.progress = progress
        self.last_status = status
        self.elapsed_s = elapsed_s
        super().__init__(
            f"Operation {operation_id!r} ended with status {status.value}",
            operation_id=operation_id,
        )

    def to_error_dict(self) -> dict[str, object]:
        payload = super().to_error_dict()
        payload["progress"] = self.progress
        return payload
