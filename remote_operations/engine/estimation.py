"""Duration estimation — turn a service estimate into a timeout budget.

Policy:
    - estimate with an upper bound → ``max(floor, multiplier * upper)``.
    - no duration available → the fixed fallback budget, plus a warning.
    - ``EstimationUnsupportedError`` → same as "no duration available".
    - any other client error → ``EstimationError`` (not retried).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from remote_operations.clients.base import ClientError, EstimationUnsupportedError
from remote_operations.core.exceptions import EstimationError
from remote_operations.models.operation import DurationEstimate, TimeoutBudget

if TYPE_CHECKING:
    from remote_operations.clients.base import RemoteOperationClient
    from remote_operations.core.config import LifecycleConfig
    from remote_operations.models.operation import Operation

logger = logging.getLogger("remote_operations.engine.estimation")


def compute_budget(estimate: DurationEstimate | None, config: LifecycleConfig) -> TimeoutBudget:
    """Compute the timeout budget for an (optional) duration estimate.

    The returned budget is never below ``config.timeout_floor_s``.
    """
    if estimate is None or estimate.upper_s is None:
        return TimeoutBudget(seconds=config.fallback_timeout_s, estimate_available=False)

    seconds = max(config.timeout_floor_s, config.timeout_multiplier * estimate.upper_s)
    return TimeoutBudget(
        seconds=seconds,
        estimate_available=True,
        upper_bound_s=estimate.upper_s,
    )


def estimate_budget(
    client: RemoteOperationClient,
    operation: Operation,
    config: LifecycleConfig,
) -> tuple[TimeoutBudget, list[str]]:
    """Request an estimate once and derive the timeout budget.

    Returns:
        ``(budget, warnings)`` — *warnings* holds one message when the
        fallback budget had to be used.

    Raises:
        EstimationError: If the estimate call failed for any reason other
            than "estimation not supported".
    """
    warnings: list[str] = []
    try:
        estimate = client.estimate(operation)
    except EstimationUnsupportedError as exc:
        logger.info(
            "Estimation unsupported | operation_id=%s | status_code=%s",
            operation.operation_id,
            exc.status_code,
        )
        estimate = None
        reason = "estimation not available"
    except ClientError as exc:
        msg = f"Estimate failed for operation {operation.operation_id!r}: {exc}"
        raise EstimationError(msg, operation_id=operation.operation_id) from exc
    else:
        reason = "estimated duration not available"

    budget = compute_budget(estimate, config)

    if budget.estimate_available:
        logger.info(
            "Timeout budget | operation_id=%s | upper_bound=%.0fs | budget=%.0fs",
            operation.operation_id,
            budget.upper_bound_s,
            budget.seconds,
        )
    else:
        message = (
            f"{operation.kind} {reason}, assuming max runtime of {budget.seconds:.0f} seconds"
        )
        logger.warning(
            "Timeout budget fallback | operation_id=%s | budget=%.0fs | reason=%s",
            operation.operation_id,
            budget.seconds,
            reason,
        )
        warnings.append(message)

    return budget, warnings
