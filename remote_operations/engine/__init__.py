"""Remote operation lifecycle engine.

- validation: setup check, fail fast on ERROR entries
- estimation: duration estimate → timeout budget
- polling: start + poll until terminal, timeout, or exhaustion
- lifecycle: the full create → check → estimate → start → poll sequence
- modes: blocking, fire-and-forget and cancellable execution
"""

from remote_operations.engine.estimation import compute_budget, estimate_budget
from remote_operations.engine.lifecycle import OperationLifecycle
from remote_operations.engine.modes import (
    CancellableRunner,
    OperationTask,
    run,
    run_async,
    run_cancellable,
)
from remote_operations.engine.polling import PollingEngine, PollResult, default_wait
from remote_operations.engine.validation import (
    DependentCheck,
    check_entries,
    partition_entries,
    validate_dependent,
    validate_setup,
)

__all__ = [
    "CancellableRunner",
    "DependentCheck",
    "OperationLifecycle",
    "OperationTask",
    "PollResult",
    "PollingEngine",
    "check_entries",
    "compute_budget",
    "default_wait",
    "estimate_budget",
    "partition_entries",
    "run",
    "run_async",
    "run_cancellable",
    "validate_dependent",
    "validate_setup",
]
