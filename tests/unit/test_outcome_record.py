"""Tests for the pydantic outcome record."""

from __future__ import annotations

import json

import pytest

from remote_operations.core.exceptions import OperationTimeoutError, SetupValidationError
from remote_operations.models.operation import (
    Operation,
    OperationStatus,
    Outcome,
    OutcomeState,
    Severity,
    TimeoutBudget,
    ValidationEntry,
)
from remote_operations.models.record import SCHEMA_VERSION, OutcomeRecord, build_outcome_record


def _finished_outcome() -> Outcome:
    return Outcome(
        state=OutcomeState.SUCCEEDED,
        operation=Operation(
            operation_id="op-1",
            kind="mesh",
            project_id="proj-1",
            status=OperationStatus.FINISHED,
            progress=1.0,
            result={"mesh_id": "mesh-7"},
        ),
        warnings=("WARNING: coarse mesh",),
        budget=TimeoutBudget(seconds=3600.0, estimate_available=True, upper_bound_s=900.0),
        elapsed_s=120.0,
        poll_count=5,
    )


class TestFromOutcome:
    def test_success_record(self) -> None:
        record = build_outcome_record(outcome=_finished_outcome())

        assert record.schema_version == SCHEMA_VERSION
        assert record.state == "succeeded"
        assert record.operation_id == "op-1"
        assert record.kind == "mesh"
        assert record.status == "FINISHED"
        assert record.result == {"mesh_id": "mesh-7"}
        assert record.warnings == ["WARNING: coarse mesh"]
        assert record.budget is not None
        assert record.budget.upper_bound_s == 900.0
        assert record.poll_count == 5
        assert record.error is None

    def test_json_round_trip(self) -> None:
        record = build_outcome_record(outcome=_finished_outcome())
        payload = json.loads(record.model_dump_json())
        assert payload["state"] == "succeeded"
        assert OutcomeRecord.model_validate(payload) == record

    def test_canceled_before_creation_record(self) -> None:
        record = build_outcome_record(
            outcome=Outcome(state=OutcomeState.CANCELED, operation=None)
        )

        assert record.state == "canceled"
        assert record.operation_id == ""
        assert record.status == ""
        assert record.result == {}
        assert record.error is None


class TestFromError:
    def test_engine_failure_record(self) -> None:
        err = OperationTimeoutError(
            "too slow",
            budget_s=3600.0,
            operation_id="op-2",
            last_status=OperationStatus.RUNNING,
            elapsed_s=3601.0,
        )

        record = build_outcome_record(error=err)

        assert record.state == "failed"
        assert record.operation_id == "op-2"
        assert record.status == "RUNNING"
        assert record.elapsed_s == 3601.0
        assert record.error is not None
        assert record.error["code"] == "OPERATION_TIMEOUT"

    def test_setup_failure_record(self) -> None:
        err = SetupValidationError(
            [ValidationEntry(Severity.ERROR, "no material")], [], operation_id="op-3"
        )
        record = build_outcome_record(error=err)
        assert record.error is not None
        assert record.error["errors"] == ["no material"]
        assert record.status == ""

    def test_unexpected_error_record(self) -> None:
        record = build_outcome_record(error=RuntimeError("boom"))
        assert record.state == "failed"
        assert record.error == {
            "category": "unexpected",
            "code": "RuntimeError",
            "message": "RuntimeError('boom')",
            "retryable": False,
        }


class TestArguments:
    def test_requires_exactly_one(self) -> None:
        with pytest.raises(ValueError, match="exactly one"):
            build_outcome_record()
        with pytest.raises(ValueError, match="exactly one"):
            build_outcome_record(outcome=_finished_outcome(), error=RuntimeError("x"))
