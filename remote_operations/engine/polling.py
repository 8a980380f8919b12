"""Polling engine — start an operation and wait for a terminal status.

State machine (remote statuses): ``READY → QUEUED/RUNNING → {FINISHED,
CANCELED, FAILED}``.  Locally the engine is either polling or done; done
is reached on a terminal status, a timeout, a caller cancellation or a
fatal communication failure.

Algorithm:
    1. ``start`` once (a failure is fatal, never retried).
    2. Refresh once right away, so an operation that finishes instantly
       ends without a wait.
    3. Until terminal: check the budget, wait one poll interval, check
       for cancellation, refresh, report progress.
    4. ``FINISHED`` succeeds; ``CANCELED``/``FAILED`` raise
       ``OperationFailedError``.

Empty refreshes (``fetch_status`` returning ``None``) are counted; the run
fails with ``PollingExhaustedError`` once more than
``max_consecutive_failures`` of them happen in a row.  Any snapshot resets
the count.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from remote_operations.clients.base import ClientError
from remote_operations.core.config import LifecycleConfig
from remote_operations.core.exceptions import (
    OperationFailedError,
    OperationTimeoutError,
    PollingExhaustedError,
    StartError,
    StatusRefreshError,
)
from remote_operations.models.operation import (
    OperationStatus,
    OutcomeState,
    PollState,
)

if TYPE_CHECKING:
    from remote_operations.clients.base import RemoteOperationClient
    from remote_operations.models.operation import Operation, TimeoutBudget

logger = logging.getLogger("remote_operations.engine.polling")

ProgressCallback = Callable[["Operation"], None]
"""Receives the current operation snapshot after every refresh."""

WaitFn = Callable[[float, "threading.Event | None"], bool]
"""Waits up to *seconds*; returns ``True`` if the cancel event fired."""


def default_wait(seconds: float, cancel_event: threading.Event | None) -> bool:
    """Sleep for *seconds*, waking early when *cancel_event* is set."""
    if cancel_event is None:
        time.sleep(seconds)
        return False
    return cancel_event.wait(seconds)


@dataclass(frozen=True, slots=True)
class PollResult:
    """How a polling run ended without raising.

    Attributes:
        state: ``SUCCEEDED`` (remote ``FINISHED``) or ``CANCELED`` (caller).
        operation: Last known snapshot.
        elapsed_s: Seconds since polling started.
        poll_count: Status refreshes performed, including empty ones.
    """

    state: OutcomeState
    operation: Operation
    elapsed_s: float
    poll_count: int


class PollingEngine:
    """Drives one operation from start to a terminal status.

    The engine holds configuration only; all per-run state lives in a
    ``PollState`` local to ``run``, so one engine may serve many worker
    threads at once.

    Args:
        config: Polling policy; defaults to ``LifecycleConfig()``.
        clock: Monotonic clock in seconds.
        wait: Suspension function used between refreshes.
    """

    def __init__(
        self,
        config: LifecycleConfig | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
        wait: WaitFn = default_wait,
    ) -> None:
        self._config = config or LifecycleConfig()
        self._clock = clock
        self._wait = wait

    @property
    def config(self) -> LifecycleConfig:
        return self._config

    def run(
        self,
        client: RemoteOperationClient,
        operation: Operation,
        budget: TimeoutBudget,
        *,
        on_progress: ProgressCallback | None = None,
        cancel_event: threading.Event | None = None,
    ) -> PollResult:
        """Start *operation* and poll it until it is done.

        Raises:
            StartError: If the start call failed.
            OperationTimeoutError: If the budget ran out first.
            PollingExhaustedError: On too many consecutive empty refreshes.
            OperationFailedError: If the service reported CANCELED or FAILED.
            StatusRefreshError: If a refresh failed definitively.
        """
        operation_id = operation.operation_id

        try:
            client.start(operation)
        except ClientError as exc:
            msg = f"Start failed for operation {operation_id!r}: {exc}"
            raise StartError(msg, operation_id=operation_id) from exc

        logger.info(
            "Operation started | operation_id=%s | kind=%s | budget=%.0fs | interval=%.0fs",
            operation_id,
            operation.kind,
            budget.seconds,
            self._config.poll_interval_s,
        )

        state = PollState(started_at=self._clock())
        operation = self._refresh(client, operation, state)
        self._emit(on_progress, operation)
        state.started_at = self._clock()

        while not operation.is_terminal:
            elapsed = state.elapsed(self._clock())
            if elapsed > budget.seconds:
                logger.error(
                    "Poll timeout | operation_id=%s | budget=%.0fs | elapsed=%.0fs | polls=%d",
                    operation_id,
                    budget.seconds,
                    elapsed,
                    state.poll_count,
                )
                msg = (
                    f"Operation {operation_id!r} did not finish within "
                    f"{budget.seconds:.0f}s ({state.poll_count} polls)"
                )
                raise OperationTimeoutError(
                    msg,
                    budget_s=budget.seconds,
                    operation_id=operation_id,
                    last_status=operation.status,
                    elapsed_s=elapsed,
                )

            fired = self._wait(self._config.poll_interval_s, cancel_event)
            state.sleeps += 1
            if fired or (cancel_event is not None and cancel_event.is_set()):
                elapsed = state.elapsed(self._clock())
                logger.info(
                    "Polling canceled | operation_id=%s | status=%s | elapsed=%.0fs",
                    operation_id,
                    operation.status.value,
                    elapsed,
                )
                return PollResult(OutcomeState.CANCELED, operation, elapsed, state.poll_count)

            operation = self._refresh(client, operation, state)
            self._emit(on_progress, operation)

        elapsed = state.elapsed(self._clock())
        if operation.status is not OperationStatus.FINISHED:
            logger.error(
                "Operation ended unsuccessfully | operation_id=%s | status=%s | elapsed=%.0fs",
                operation_id,
                operation.status.value,
                elapsed,
            )
            raise OperationFailedError(
                operation.status,
                progress=operation.progress,
                operation_id=operation_id,
                elapsed_s=elapsed,
            )

        logger.info(
            "Operation finished | operation_id=%s | elapsed=%.0fs | polls=%d",
            operation_id,
            elapsed,
            state.poll_count,
        )
        return PollResult(OutcomeState.SUCCEEDED, operation, elapsed, state.poll_count)

    def _refresh(
        self,
        client: RemoteOperationClient,
        operation: Operation,
        state: PollState,
    ) -> Operation:
        """Refresh once; an empty result keeps the previous snapshot."""
        try:
            snapshot = client.fetch_status(operation)
        except ClientError as exc:
            elapsed = state.elapsed(self._clock())
            logger.error(
                "Status refresh failed | operation_id=%s | status=%s | code=%s | error=%s",
                operation.operation_id,
                operation.status.value,
                exc.code,
                exc,
            )
            msg = f"Status refresh failed for operation {operation.operation_id!r}: {exc}"
            raise StatusRefreshError(
                msg,
                status_code=exc.status_code,
                operation_id=operation.operation_id,
                last_status=operation.status,
                elapsed_s=elapsed,
            ) from exc

        if snapshot is None:
            failures = state.record_failure()
            limit = self._config.max_consecutive_failures
            logger.warning(
                "Status refresh returned nothing | operation_id=%s | consecutive=%d/%d",
                operation.operation_id,
                failures,
                limit,
            )
            if failures > limit:
                msg = (
                    f"Status refresh for operation {operation.operation_id!r} "
                    f"failed {failures} times in a row"
                )
                raise PollingExhaustedError(
                    msg,
                    failures=failures,
                    operation_id=operation.operation_id,
                    last_status=operation.status,
                    elapsed_s=state.elapsed(self._clock()),
                )
            return operation

        state.record_success()
        refreshed = operation.refreshed(snapshot)
        logger.info(
            "Poll result | operation_id=%s | status=%s | progress=%s | poll_count=%d",
            refreshed.operation_id,
            refreshed.status.value,
            "n/a" if refreshed.progress is None else f"{refreshed.progress:.0%}",
            state.poll_count,
        )
        return refreshed

    @staticmethod
    def _emit(on_progress: ProgressCallback | None, operation: Operation) -> None:
        if on_progress is None:
            return
        try:
            on_progress(operation)
        except Exception:
            logger.exception(
                "Progress callback raised | operation_id=%s", operation.operation_id
            )
