"""Pydantic outcome record for logging and display.

Flattens either a completed ``Outcome`` or a ``LifecycleError`` into one
JSON-safe document with stable keys, so callers that only want to log or
show "what happened to operation X" do not have to branch on the result
type themselves.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from remote_operations.core.exceptions import EngineFailure, LifecycleError
from remote_operations.models.operation import Outcome

# Schema version for forward compatibility
SCHEMA_VERSION = "operation-outcome-v1"


class BudgetRecord(BaseModel):
    """Timeout budget section of an outcome record."""

    seconds: float = 0.0
    estimate_available: bool = False
    upper_bound_s: float | None = None


class OutcomeRecord(BaseModel):
    """Structured view of how one engine run ended.

    Attributes:
        schema_version: Record schema identifier.
        state: ``"succeeded"``, ``"canceled"`` or ``"failed"``.
        operation_id: Remote operation identifier (empty if never created).
        kind: Operation kind.
        status: Last known remote status.
        progress: Last known progress fraction.
        result: Identifiers produced by the operation.
        warnings: Accumulated warnings.
        budget: Timeout budget that applied.
        elapsed_s: Seconds spent polling.
        poll_count: Number of status refreshes.
        error: ``LifecycleError.to_error_dict()`` payload for failures.
    """

    schema_version: str = SCHEMA_VERSION
    state: Literal["succeeded", "canceled", "failed"]
    operation_id: str = ""
    kind: str = ""
    status: str = ""
    progress: float | None = None
    result: dict[str, str] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    budget: BudgetRecord | None = None
    elapsed_s: float = 0.0
    poll_count: int = 0
    error: dict[str, object] | None = None


def build_outcome_record(
    *,
    outcome: Outcome | None = None,
    error: BaseException | None = None,
) -> OutcomeRecord:
    """Build an ``OutcomeRecord`` from exactly one of *outcome* or *error*.

    Errors that are not ``LifecycleError`` instances are recorded with
    category ``"unexpected"`` and their ``repr`` as the message.

    Raises:
        ValueError: If both or neither of the arguments are given.
    """
    if (outcome is None) == (error is None):
        msg = "build_outcome_record requires exactly one of outcome/error"
        raise ValueError(msg)

    if outcome is not None:
        op = outcome.operation
        budget = None
        if outcome.budget is not None:
            budget = BudgetRecord(
                seconds=outcome.budget.seconds,
                estimate_available=outcome.budget.estimate_available,
                upper_bound_s=outcome.budget.upper_bound_s,
            )
        if op is None:
            return OutcomeRecord(
                state=outcome.state.value,
                warnings=list(outcome.warnings),
                budget=budget,
            )
        return OutcomeRecord(
            state=outcome.state.value,
            operation_id=op.operation_id,
            kind=op.kind,
            status=op.status.value,
            progress=op.progress,
            result=dict(op.result),
            warnings=list(outcome.warnings),
            budget=budget,
            elapsed_s=outcome.elapsed_s,
            poll_count=outcome.poll_count,
        )

    if isinstance(error, LifecycleError):
        status = ""
        elapsed = 0.0
        if isinstance(error, EngineFailure):
            status = error.last_status.value if error.last_status else ""
            elapsed = error.elapsed_s
        return OutcomeRecord(
            state="failed",
            operation_id=error.operation_id,
            status=status,
            elapsed_s=elapsed,
            error=error.to_error_dict(),
        )

    return OutcomeRecord(
        state="failed",
        error={
            "category": "unexpected",
            "code": type(error).__name__,
            "message": repr(error),
            "retryable": False,
        },
    )
