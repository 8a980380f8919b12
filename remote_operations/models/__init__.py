"""Data models and schemas.

Defines the data structures used throughout the lifecycle engine:
- OperationSpec / Operation / StatusSnapshot: what is submitted and tracked
- ValidationEntry / Severity: setup-check results
- DurationEstimate / TimeoutBudget: estimation and timeout policy
- Outcome / Completion: what the engine returns
- OutcomeRecord: JSON-safe view of an outcome or failure
"""

from remote_operations.models.operation import (
    TERMINAL_STATUSES,
    Completion,
    DurationEstimate,
    ModelValidationError,
    Operation,
    OperationSpec,
    OperationStatus,
    Outcome,
    OutcomeState,
    PollState,
    Severity,
    StatusSnapshot,
    TimeoutBudget,
    ValidationEntry,
)
from remote_operations.models.record import OutcomeRecord, build_outcome_record

__all__ = [
    "TERMINAL_STATUSES",
    "Completion",
    "DurationEstimate",
    "ModelValidationError",
    "Operation",
    "OperationSpec",
    "OperationStatus",
    "Outcome",
    "OutcomeRecord",
    "OutcomeState",
    "PollState",
    "Severity",
    "StatusSnapshot",
    "TimeoutBudget",
    "ValidationEntry",
    "build_outcome_record",
]
