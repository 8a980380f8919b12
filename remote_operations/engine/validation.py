"""Setup validation — fail fast on error-severity check entries.

Runs the client's setup check exactly once for an operation, partitions
the returned entries by severity and either raises
``SetupValidationError`` (any ERROR entry) or hands the WARNING subset
back to the caller.  Nothing is started on a failed check.

The same validator is reused for a *dependent* object (e.g. the
simulation that consumes a freshly generated mesh) through
``DependentCheck``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from remote_operations.core.exceptions import SetupValidationError
from remote_operations.models.operation import Severity, ValidationEntry

if TYPE_CHECKING:
    from remote_operations.clients.base import RemoteOperationClient
    from remote_operations.models.operation import Operation

logger = logging.getLogger("remote_operations.engine.validation")


@dataclass(frozen=True, slots=True)
class DependentCheck:
    """Setup check of an object that consumes a finished operation.

    Attributes:
        label: What is being checked, for logs and errors (e.g. ``"simulation"``).
        check: Called with the finished operation; attaches its result to the
            dependent object and returns that object's check entries.
    """

    label: str
    check: Callable[[Operation], list[ValidationEntry]]


def partition_entries(
    entries: list[ValidationEntry],
) -> tuple[list[ValidationEntry], list[ValidationEntry]]:
    """Split *entries* into ``(errors, warnings)``, preserving order."""
    errors = [e for e in entries if e.severity is Severity.ERROR]
    warnings = [e for e in entries if e.severity is Severity.WARNING]
    return errors, warnings


def check_entries(
    entries: list[ValidationEntry],
    *,
    target: str,
    operation_id: str = "",
) -> list[ValidationEntry]:
    """Raise on ERROR entries, otherwise return the WARNING entries.

    Raises:
        SetupValidationError: If *entries* contain at least one ERROR.
    """
    errors, warnings = partition_entries(entries)

    for warning in warnings:
        logger.warning(
            "Setup check warning | target=%s | operation_id=%s | %s",
            target,
            operation_id,
            warning,
        )

    if errors:
        for error in errors:
            logger.error(
                "Setup check error | target=%s | operation_id=%s | %s",
                target,
                operation_id,
                error,
            )
        raise SetupValidationError(errors, warnings, target=target, operation_id=operation_id)

    logger.info(
        "Setup check passed | target=%s | operation_id=%s | warnings=%d",
        target,
        operation_id,
        len(warnings),
    )
    return warnings


def validate_setup(client: RemoteOperationClient, operation: Operation) -> list[ValidationEntry]:
    """Run the setup check for *operation* and fail fast on errors.

    Args:
        client: Client for the operation's kind.
        operation: The created, not yet started operation.

    Returns:
        The WARNING entries (possibly empty).

    Raises:
        SetupValidationError: If the check returned any ERROR entry.
        ClientError: If the check call itself failed.
    """
    entries = client.check_setup(operation)
    return check_entries(entries, target=operation.kind, operation_id=operation.operation_id)


def validate_dependent(dependent: DependentCheck, operation: Operation) -> list[ValidationEntry]:
    """Run a dependent object's setup check against the finished *operation*."""
    entries = dependent.check(operation)
    return check_entries(entries, target=dependent.label, operation_id=operation.operation_id)
