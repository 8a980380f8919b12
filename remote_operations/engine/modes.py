"""Execution modes — three ways to run the same lifecycle.

- ``run``               blocking; the calling thread does everything and
                        failures are raised directly.
- ``run_async``         fire-and-forget; a daemon worker runs the lifecycle
                        and calls ``on_complete`` exactly once with a
                        ``Completion``.  The callback runs on the worker
                        thread, so callers owning thread-bound state must
                        marshal it back themselves.
- ``run_cancellable``   blocking body of the task mode; stops at the next
                        iteration boundary once ``cancel_event`` is set.
                        ``CancellableRunner`` runs it on a thread pool and
                        de-duplicates in-flight submissions.

Only the task mode can be canceled; the other two run to completion or
to a fatal failure.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import TYPE_CHECKING

from remote_operations.core.exceptions import LifecycleError
from remote_operations.engine.lifecycle import OperationLifecycle
from remote_operations.models.operation import Completion, Outcome, OutcomeState

if TYPE_CHECKING:
    from collections.abc import Callable, Hashable

    from remote_operations.clients.base import RemoteOperationClient
    from remote_operations.core.config import LifecycleConfig
    from remote_operations.engine.polling import ProgressCallback
    from remote_operations.engine.validation import DependentCheck
    from remote_operations.models.operation import OperationSpec

logger = logging.getLogger("remote_operations.engine.modes")

DEFAULT_MAX_WORKERS = 4


# ---------------------------------------------------------------------------
# Blocking
# ---------------------------------------------------------------------------


def run(
    spec: OperationSpec,
    client: RemoteOperationClient,
    *,
    config: LifecycleConfig | None = None,
    on_progress: ProgressCallback | None = None,
    dependent: DependentCheck | None = None,
    lifecycle: OperationLifecycle | None = None,
) -> Outcome:
    """Run the full lifecycle on the calling thread.

    Raises:
        LifecycleError: Any fatal failure, unchanged.
    """
    lifecycle = lifecycle or OperationLifecycle(config)
    return lifecycle.execute(spec, client, on_progress=on_progress, dependent=dependent)


# ---------------------------------------------------------------------------
# Fire-and-forget
# ---------------------------------------------------------------------------


def run_async(
    spec: OperationSpec,
    client: RemoteOperationClient,
    on_complete: Callable[[Completion], None],
    *,
    config: LifecycleConfig | None = None,
    on_progress: ProgressCallback | None = None,
    dependent: DependentCheck | None = None,
    lifecycle: OperationLifecycle | None = None,
) -> threading.Thread:
    """Run the lifecycle on a background thread and report once.

    Returns:
        The started worker thread (daemon), mainly useful for ``join``
        in scripts and tests.
    """
    lifecycle = lifecycle or OperationLifecycle(config)

    def _worker() -> None:
        try:
            outcome = lifecycle.execute(
                spec, client, on_progress=on_progress, dependent=dependent
            )
        except LifecycleError as exc:
            logger.error(
                "Background run failed | kind=%s | project_id=%s | code=%s | error=%s",
                spec.kind,
                spec.project_id,
                exc.code,
                exc,
            )
            completion = Completion(error=exc)
        except Exception as exc:
            logger.exception(
                "Background run crashed | kind=%s | project_id=%s", spec.kind, spec.project_id
            )
            completion = Completion(error=exc)
        else:
            completion = Completion(outcome=outcome)

        try:
            on_complete(completion)
        except Exception:
            logger.exception(
                "Completion callback raised | kind=%s | project_id=%s",
                spec.kind,
                spec.project_id,
            )

    thread = threading.Thread(
        target=_worker,
        name=f"remote-op-{spec.kind}-{spec.project_id}",
        daemon=True,
    )
    thread.start()
    return thread


# ---------------------------------------------------------------------------
# Cancellable task
# ---------------------------------------------------------------------------


def run_cancellable(
    spec: OperationSpec,
    client: RemoteOperationClient,
    cancel_event: threading.Event,
    *,
    config: LifecycleConfig | None = None,
    on_progress: ProgressCallback | None = None,
    dependent: DependentCheck | None = None,
    lifecycle: OperationLifecycle | None = None,
) -> Outcome:
    """Run the lifecycle, stopping early once *cancel_event* is set.

    Returns:
        A ``CANCELED`` outcome when the event fired before a terminal
        status, otherwise the normal ``SUCCEEDED`` outcome.  An event
        that is already set yields ``CANCELED`` without touching *client*
        (the outcome then has no operation).

    Raises:
        LifecycleError: Any fatal failure.
    """
    if cancel_event.is_set():
        logger.info(
            "Canceled before submission | kind=%s | project_id=%s | name=%s",
            spec.kind,
            spec.project_id,
            spec.name,
        )
        return Outcome(state=OutcomeState.CANCELED, operation=None)

    lifecycle = lifecycle or OperationLifecycle(config)
    return lifecycle.execute(
        spec,
        client,
        on_progress=on_progress,
        cancel_event=cancel_event,
        dependent=dependent,
    )


class OperationTask:
    """Handle on one in-flight cancellable run.

    ``result()`` returns the ``Outcome`` or raises the run's failure.  A
    task canceled before its worker picked it up never submits anything;
    its worker still runs and ``result()`` returns a ``CANCELED`` outcome
    with no operation.
    """

    def __init__(
        self,
        identity: Hashable,
        future: Future[Outcome],
        cancel_event: threading.Event,
    ) -> None:
        self._identity = identity
        self._future = future
        self._cancel_event = cancel_event

    @property
    def identity(self) -> Hashable:
        return self._identity

    @property
    def cancel_requested(self) -> bool:
        return self._cancel_event.is_set()

    def cancel(self) -> None:
        """Request cooperative cancellation (idempotent)."""
        self._cancel_event.set()

    def done(self) -> bool:
        return self._future.done()

    def result(self, timeout: float | None = None) -> Outcome:
        return self._future.result(timeout=timeout)

    def add_done_callback(self, fn: Callable[[OperationTask], None]) -> None:
        self._future.add_done_callback(lambda _future: fn(self))


class CancellableRunner:
    """Thread-pool runner for cancellable operations.

    Submitting a spec whose ``identity`` matches a task that has not
    completed yet returns that task instead of submitting a duplicate.

    Usage::

        with CancellableRunner(config) as runner:
            task = runner.submit(spec, client, on_progress=print)
            ...
            task.cancel()
            outcome = task.result()
    """

    def __init__(
        self,
        config: LifecycleConfig | None = None,
        *,
        max_workers: int = DEFAULT_MAX_WORKERS,
        lifecycle: OperationLifecycle | None = None,
    ) -> None:
        self._lifecycle = lifecycle or OperationLifecycle(config)
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="remote-op"
        )
        self._tasks: dict[Hashable, OperationTask] = {}
        self._lock = threading.Lock()

    def submit(
        self,
        spec: OperationSpec,
        client: RemoteOperationClient,
        *,
        on_progress: ProgressCallback | None = None,
        dependent: DependentCheck | None = None,
    ) -> OperationTask:
        """Start (or join) the cancellable run for *spec*."""
        key = spec.identity
        with self._lock:
            existing = self._tasks.get(key)
            if existing is not None and not existing.done():
                logger.info(
                    "Reusing in-flight task | kind=%s | project_id=%s | name=%s",
                    spec.kind,
                    spec.project_id,
                    spec.name,
                )
                return existing

            cancel_event = threading.Event()
            future = self._executor.submit(
                run_cancellable,
                spec,
                client,
                cancel_event,
                on_progress=on_progress,
                dependent=dependent,
                lifecycle=self._lifecycle,
            )
            task = OperationTask(key, future, cancel_event)
            self._tasks[key] = task

        # Registered outside the lock: an already finished future runs the
        # callback immediately on this thread.
        task.add_done_callback(self._discard)
        return task

    def in_flight(self) -> list[Hashable]:
        """Return the identities of tasks that have not completed."""
        with self._lock:
            return [key for key, task in self._tasks.items() if not task.done()]

    def shutdown(self, *, wait: bool = True, cancel_pending: bool = False) -> None:
        """Stop accepting work; optionally cancel every in-flight task."""
        if cancel_pending:
            with self._lock:
                tasks = list(self._tasks.values())
            for task in tasks:
                task.cancel()
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> CancellableRunner:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown(cancel_pending=exc_info[0] is not None)

    def _discard(self, task: OperationTask) -> None:
        with self._lock:
            if self._tasks.get(task.identity) is task:
                del self._tasks[task.identity]
