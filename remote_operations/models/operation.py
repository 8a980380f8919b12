"""Typed models for the remote operation lifecycle.

Defines the data structures exchanged between the engine and the remote
operation clients:

- ``OperationSpec``: What to submit (kind, project, context, payload)
- ``Operation``: One remote long-running unit of work and its last status
- ``StatusSnapshot``: Result of a single status refresh
- ``ValidationEntry``: One line item of a setup check
- ``DurationEstimate``: The service's duration interval for an operation
- ``TimeoutBudget``: Wall-clock budget computed before polling starts
- ``PollState``: Per-run polling bookkeeping (mutable, worker-private)
- ``Outcome`` / ``Completion``: What the engine hands back to callers

Design notes:
- Value objects are frozen dataclasses; an ``Operation`` only changes by
  being replaced with ``Operation.refreshed(snapshot)``.
- Explicit units on every numeric field (seconds, fractions in [0, 1]).
- No magic strings — statuses and severities are enums.
"""

from __future__ import annotations

import dataclasses
import enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from remote_operations.core.exceptions import LifecycleError

if TYPE_CHECKING:
    from collections.abc import Hashable


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class ModelValidationError(ValueError, LifecycleError):
    """Raised when a domain model is constructed with invalid field values.

    Attributes:
        model: Name of the model class that failed validation.
        field_name: The field that violated the invariant.
        value: The invalid value.
    """

    default_stage = "model_validation"
    default_code = "MODEL_VALIDATION_FAILED"

    def __init__(self, model: str, field_name: str, value: object, message: str) -> None:
        self.model = model
        self.field_name = field_name
        self.value = value
        formatted = f"{model}.{field_name}={value!r}: {message}"
        LifecycleError.__init__(self, formatted)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class OperationStatus(enum.Enum):
    """Status reported by the remote service for an operation.

    Values:
        READY:    Created and checked, not started yet.
        QUEUED:   Started, waiting for remote capacity.
        RUNNING:  Executing on the remote service.
        FINISHED: Completed successfully (terminal).
        CANCELED: Canceled on the remote side (terminal).
        FAILED:   Failed on the remote side (terminal).
    """

    READY = "READY"
    QUEUED = "QUEUED"
    RUNNING = "RUNNING"
    FINISHED = "FINISHED"
    CANCELED = "CANCELED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        """Whether the service will not transition out of this status."""
        return self in TERMINAL_STATUSES

    @classmethod
    def parse(cls, raw: str) -> OperationStatus:
        """Parse a status string case-insensitively.

        Raises:
            ModelValidationError: If *raw* names no known status.
        """
        try:
            return cls(str(raw).strip().upper())
        except ValueError:
            raise ModelValidationError(
                "OperationStatus", "value", raw, "unknown operation status"
            ) from None


TERMINAL_STATUSES: frozenset[OperationStatus] = frozenset(
    {OperationStatus.FINISHED, OperationStatus.CANCELED, OperationStatus.FAILED}
)


class Severity(enum.Enum):
    """Severity of a setup-check entry."""

    WARNING = "WARNING"
    ERROR = "ERROR"


class OutcomeState(enum.Enum):
    """How a completed engine run ended (failures are exceptions)."""

    SUCCEEDED = "succeeded"
    CANCELED = "canceled"


# ---------------------------------------------------------------------------
# Operation models
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class OperationSpec:
    """Request to submit one remote operation.

    Attributes:
        kind: Operation kind (``"mesh"``, ``"simulation_run"``,
            ``"geometry_import"`` or any registered extension).
        project_id: Identifier of the owning remote project.
        name: Display name given to the created operation.
        context: Identifiers needed to address the operation
            (e.g. ``geometry_id``, ``simulation_id``).
        payload: Kind-specific request body passed through to the client.
    """

    kind: str
    project_id: str
    name: str = ""
    context: dict[str, str] = field(default_factory=dict)
    payload: dict[str, object] = field(default_factory=dict)

    def __post_init__(self) -> None:
        _check_non_empty("OperationSpec", "kind", self.kind)
        _check_non_empty("OperationSpec", "project_id", self.project_id)

    @property
    def identity(self) -> Hashable:
        """Hashable key identifying "the same submission" for task caching."""
        return (self.kind, self.project_id, self.name, tuple(sorted(self.context.items())))


@dataclass(frozen=True, slots=True)
class StatusSnapshot:
    """Result of a single status refresh.

    Attributes:
        status: Status reported by the service.
        progress: Completion fraction in [0, 1], if reported.
        result: Identifiers produced by the operation (e.g. ``mesh_id``).
        message: Human-readable status message from the service.
    """

    status: OperationStatus
    progress: float | None = None
    result: dict[str, str] = field(default_factory=dict)
    message: str = ""

    def __post_init__(self) -> None:
        if self.progress is not None:
            _check_range("StatusSnapshot", "progress", self.progress, 0, 1)


@dataclass(frozen=True, slots=True)
class Operation:
    """One remote long-running unit of work.

    Attributes:
        operation_id: Identifier assigned by the remote service on creation.
        kind: Operation kind (see ``OperationSpec.kind``).
        project_id: Identifier of the owning remote project.
        context: Identifiers needed to address the operation.
        status: Last status obtained from the service.
        progress: Last reported completion fraction in [0, 1], if any.
        result: Identifiers produced by the operation, once available.
    """

    operation_id: str
    kind: str
    project_id: str
    context: dict[str, str] = field(default_factory=dict)
    status: OperationStatus = OperationStatus.READY
    progress: float | None = None
    result: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        _check_non_empty("Operation", "operation_id", self.operation_id)
        _check_non_empty("Operation", "kind", self.kind)
        if self.progress is not None:
            _check_range("Operation", "progress", self.progress, 0, 1)

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def refreshed(self, snapshot: StatusSnapshot) -> Operation:
        """Return a copy carrying the status, progress and result of *snapshot*."""
        return dataclasses.replace(
            self,
            status=snapshot.status,
            progress=snapshot.progress,
            result={**self.result, **snapshot.result},
        )


# ---------------------------------------------------------------------------
# Setup check
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ValidationEntry:
    """One line item returned by a setup check.

    Attributes:
        severity: ``WARNING`` or ``ERROR``.
        message: Human-readable diagnostic.
        code: Service-specific diagnostic code, if any.
    """

    severity: Severity
    message: str
    code: str = ""

    def __str__(self) -> str:
        prefix = f"{self.severity.value}"
        if self.code:
            prefix = f"{prefix} {self.code}"
        return f"{prefix}: {self.message}"


# ---------------------------------------------------------------------------
# Estimation and budget
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class DurationEstimate:
    """Duration interval estimated by the remote service.

    Attributes:
        lower_s: Lower bound of the interval in seconds, if provided.
        upper_s: Upper bound of the interval in seconds, if provided.
    """

    lower_s: float | None = None
    upper_s: float | None = None

    def __post_init__(self) -> None:
        if self.lower_s is not None:
            _check_min("DurationEstimate", "lower_s", self.lower_s, 0)
        if self.upper_s is not None:
            _check_min("DurationEstimate", "upper_s", self.upper_s, 0)
        if self.lower_s is not None and self.upper_s is not None and self.lower_s > self.upper_s:
            raise ModelValidationError(
                "DurationEstimate",
                "lower_s",
                self.lower_s,
                f"must be <= upper_s ({self.upper_s})",
            )


@dataclass(frozen=True, slots=True)
class TimeoutBudget:
    """Maximum wall-clock time to wait for a terminal status.

    Attributes:
        seconds: The budget in seconds.
        estimate_available: Whether the budget was derived from an estimate.
        upper_bound_s: The estimated upper bound it was derived from.
    """

    seconds: float
    estimate_available: bool = False
    upper_bound_s: float | None = None

    def __post_init__(self) -> None:
        _check_min("TimeoutBudget", "seconds", self.seconds, 0)


# ---------------------------------------------------------------------------
# Polling bookkeeping
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class PollState:
    """Transient per-run polling bookkeeping.

    Owned by exactly one worker; never shared, never persisted.
    """

    started_at: float
    consecutive_failures: int = 0
    poll_count: int = 0
    sleeps: int = 0

    def elapsed(self, now: float) -> float:
        return now - self.started_at

    def record_success(self) -> None:
        self.poll_count += 1
        self.consecutive_failures = 0

    def record_failure(self) -> int:
        """Count one empty refresh and return the current run length."""
        self.poll_count += 1
        self.consecutive_failures += 1
        return self.consecutive_failures


# ---------------------------------------------------------------------------
# Outcomes
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Outcome:
    """Terminal, non-failing result of one engine run.

    Attributes:
        state: ``SUCCEEDED`` or ``CANCELED`` (caller-initiated).
        operation: Last known snapshot of the operation; ``None`` when the
            run was canceled before the operation was created.
        warnings: Setup warnings and estimation notes, in order of discovery.
        budget: Timeout budget that applied to the run.
        elapsed_s: Seconds spent polling.
        poll_count: Number of status refreshes performed.
    """

    state: OutcomeState
    operation: Operation | None
    warnings: tuple[str, ...] = ()
    budget: TimeoutBudget | None = None
    elapsed_s: float = 0.0
    poll_count: int = 0

    @property
    def succeeded(self) -> bool:
        return self.state is OutcomeState.SUCCEEDED

    @property
    def canceled(self) -> bool:
        return self.state is OutcomeState.CANCELED


@dataclass(frozen=True, slots=True)
class Completion:
    """Single completion signal delivered by fire-and-forget runs.

    Exactly one of ``outcome`` and ``error`` is set.
    """

    outcome: Outcome | None = None
    error: BaseException | None = None

    def __post_init__(self) -> None:
        if (self.outcome is None) == (self.error is None):
            raise ModelValidationError(
                "Completion", "outcome", self.outcome, "exactly one of outcome/error must be set"
            )

    @property
    def succeeded(self) -> bool:
        return self.outcome is not None and self.outcome.succeeded


# ---------------------------------------------------------------------------
# Validation helpers (module-private)
# ---------------------------------------------------------------------------


def _check_range(model: str, field_name: str, value: float, lo: float, hi: float) -> None:
    """Raise `ModelValidationError` if *value* falls outside [lo, hi]."""
    if value < lo or value > hi:
        raise ModelValidationError(model, field_name, value, f"must be between {lo} and {hi}")


def _check_min(model: str, field_name: str, value: float | int, lo: float | int) -> None:
    """Raise `ModelValidationError` if *value* is below *lo*."""
    if value < lo:
        raise ModelValidationError(model, field_name, value, f"must be >= {lo}")


def _check_non_empty(model: str, field_name: str, value: str) -> None:
    """Raise `ModelValidationError` if *value* is empty or blank."""
    if not value or not value.strip():
        raise ModelValidationError(model, field_name, value, "must not be empty")
