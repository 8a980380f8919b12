"""Operation lifecycle — create, check, estimate, start, poll, finish.

``OperationLifecycle.execute`` is the single code path behind every
execution mode.  It owns the ``Operation`` for the duration of one run
and returns an ``Outcome`` (success or caller cancellation) or raises a
``LifecycleError``.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from remote_operations.core.config import LifecycleConfig
from remote_operations.engine.estimation import estimate_budget
from remote_operations.engine.polling import PollingEngine
from remote_operations.engine.validation import validate_dependent, validate_setup
from remote_operations.models.operation import Outcome, OutcomeState

if TYPE_CHECKING:
    from remote_operations.clients.base import RemoteOperationClient
    from remote_operations.engine.polling import ProgressCallback
    from remote_operations.engine.validation import DependentCheck
    from remote_operations.models.operation import OperationSpec

logger = logging.getLogger("remote_operations.engine.lifecycle")


class OperationLifecycle:
    """Runs one operation through its full remote lifecycle.

    Stateless between calls; safe to share across worker threads.
    """

    def __init__(
        self,
        config: LifecycleConfig | None = None,
        *,
        engine: PollingEngine | None = None,
    ) -> None:
        self._config = config or (engine.config if engine else LifecycleConfig())
        self._engine = engine or PollingEngine(self._config)

    @property
    def config(self) -> LifecycleConfig:
        return self._config

    def execute(
        self,
        spec: OperationSpec,
        client: RemoteOperationClient,
        *,
        on_progress: ProgressCallback | None = None,
        cancel_event: threading.Event | None = None,
        dependent: DependentCheck | None = None,
    ) -> Outcome:
        """Submit *spec* with *client* and wait for the operation to finish.

        Args:
            spec: What to submit.
            client: Client for ``spec.kind``.
            on_progress: Receives the operation after every status refresh.
            cancel_event: Cooperative cancellation signal (task mode only).
            dependent: Setup check of an object that consumes the result;
                run after the operation finishes.

        Returns:
            A ``SUCCEEDED`` outcome, or ``CANCELED`` if *cancel_event* fired.

        Raises:
            LifecycleError: Any fatal failure (see ``core.exceptions``).
        """
        logger.info(
            "Lifecycle started | kind=%s | project_id=%s | name=%s",
            spec.kind,
            spec.project_id,
            spec.name,
        )
        operation = client.create(spec)

        warnings: list[str] = [str(w) for w in validate_setup(client, operation)]

        budget, estimate_notes = estimate_budget(client, operation, self._config)
        warnings.extend(estimate_notes)

        if cancel_event is not None and cancel_event.is_set():
            logger.info(
                "Lifecycle canceled before start | operation_id=%s", operation.operation_id
            )
            return Outcome(
                state=OutcomeState.CANCELED,
                operation=operation,
                warnings=tuple(warnings),
                budget=budget,
            )

        result = self._engine.run(
            client,
            operation,
            budget,
            on_progress=on_progress,
            cancel_event=cancel_event,
        )

        if result.state is OutcomeState.SUCCEEDED and dependent is not None:
            warnings.extend(str(w) for w in validate_dependent(dependent, result.operation))

        outcome = Outcome(
            state=result.state,
            operation=result.operation,
            warnings=tuple(warnings),
            budget=budget,
            elapsed_s=result.elapsed_s,
            poll_count=result.poll_count,
        )
        logger.info(
            "Lifecycle completed | operation_id=%s | state=%s | warnings=%d | elapsed=%.0fs",
            result.operation.operation_id,
            outcome.state.value,
            len(outcome.warnings),
            outcome.elapsed_s,
        )
        return outcome
