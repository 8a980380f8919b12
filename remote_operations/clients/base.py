"""RemoteOperationClient abstract base class.

Defines the contract that every remote operation client must implement.
The lifecycle engine interacts exclusively with this interface — it never
knows (or cares) which operation kind or transport is behind it.

Lifecycle:
    1. ``create(spec)``            — submit the operation, get its identifier.
    2. ``check_setup(operation)``  — pre-flight validation entries.
    3. ``estimate(operation)``     — expected duration interval (may be absent).
    4. ``start(operation)``        — start remote execution.
    5. ``fetch_status(operation)`` — current status (``None`` on transient failure).

Each concrete client (``MeshOperationClient``, ``SimulationRunClient``,
``GeometryImportClient``, or a caller's own) implements these five methods
for one operation kind.  Implementations must be safe for concurrent use by
several in-flight operations: they may hold connection configuration but no
per-operation mutable state.
"""

from __future__ import annotations

import abc
from typing import TYPE_CHECKING

from remote_operations.core.exceptions import LifecycleError

if TYPE_CHECKING:
    from remote_operations.core.config import ClientSettings
    from remote_operations.models.operation import (
        DurationEstimate,
        Operation,
        OperationSpec,
        StatusSnapshot,
        ValidationEntry,
    )


class RemoteOperationClient(abc.ABC):
    """Abstract base class for remote operation clients.

    Example usage::

        client = get_client("mesh", settings)
        operation = client.create(spec)
        entries = client.check_setup(operation)
        estimate = client.estimate(operation)
        client.start(operation)
        snapshot = client.fetch_status(operation)
    """

    def __init__(self, settings: ClientSettings) -> None:
        self._settings = settings

    @property
    def name(self) -> str:
        """Return the client name from its settings."""
        return self._settings.name

    @property
    def settings(self) -> ClientSettings:
        """Return the client settings (read-only)."""
        return self._settings

    # ------------------------------------------------------------------
    # Abstract methods: every client must implement these
    # ------------------------------------------------------------------

    @abc.abstractmethod
    def create(self, spec: OperationSpec) -> Operation:
        """Create the remote operation described by *spec*.

        Returns:
            An ``Operation`` carrying the service-assigned identifier.

        Raises:
            ClientError: If the service rejects the request.
        """

    @abc.abstractmethod
    def check_setup(self, operation: Operation) -> list[ValidationEntry]:
        """Run the service's setup check for *operation*.

        Returns:
            All WARNING and ERROR entries, empty when the setup is clean.

        Raises:
            ClientError: If the check call itself fails.
        """

    @abc.abstractmethod
    def estimate(self, operation: Operation) -> DurationEstimate | None:
        """Request a duration estimate for *operation*.

        Returns:
            The estimated interval, or ``None`` when the service computed
            no duration for this operation shape.

        Raises:
            EstimationUnsupportedError: If estimation is not supported for
                this configuration.
            ClientError: On any other failure.
        """

    @abc.abstractmethod
    def start(self, operation: Operation) -> None:
        """Start remote execution of *operation*.

        Raises:
            ClientError: If the service refuses to start the operation.
        """

    @abc.abstractmethod
    def fetch_status(self, operation: Operation) -> StatusSnapshot | None:
        """Fetch the current status of *operation*.

        Returns:
            The current snapshot, or ``None`` when the refresh produced no
            definitive answer (connection reset, gateway error, throttling).

        Raises:
            ClientError: On a definitive error (unknown operation, auth).
        """


# ---------------------------------------------------------------------------
# Client exceptions
# ---------------------------------------------------------------------------


class ClientError(LifecycleError):
    """Base exception for remote operation client errors.

    Attributes:
        client: Name of the client that raised the error.
        message: Human-readable error description.
        status_code: HTTP (or transport-specific) status code, if any.
        retryable: Whether the caller should retry the call.
    """

    default_stage = "client"
    default_code = "CLIENT_ERROR"

    def __init__(
        self,
        client: str,
        message: str,
        *,
        status_code: int | None = None,
        retryable: bool = False,
        operation_id: str = "",
    ) -> None:
        self.client = client
        self.status_code = status_code
        super().__init__(
            message,
            retryable=retryable,
            code=self.default_code,
            stage=self.default_stage,
            operation_id=operation_id,
        )

    def __str__(self) -> str:
        return f"[{self.client}] {self.message}"

    def to_error_dict(self) -> dict[str, object]:
        payload = super().to_error_dict()
        payload["status_code"] = self.status_code
        return payload


class ClientAuthError(ClientError):
    """Authentication or authorisation failure with the remote API."""

    default_code = "CLIENT_AUTH_FAILED"

    def __init__(
        self,
        client: str,
        message: str,
        *,
        status_code: int | None = None,
        operation_id: str = "",
    ) -> None:
        super().__init__(
            client,
            message,
            status_code=status_code,
            retryable=False,
            operation_id=operation_id,
        )


class EstimationUnsupportedError(ClientError):
    """The service cannot estimate this operation configuration.

    A recognised degraded mode: the engine falls back to the conservative
    timeout budget instead of failing.
    """

    default_stage = "estimate"
    default_code = "ESTIMATION_UNSUPPORTED"
