"""HTTP clients for the remote simulation service.

One ``HttpOperationClient`` subclass per operation kind.  Each subclass
only declares *where* its verbs live (URL templates) and which response
fields carry the operation identifier and its results; request handling,
error mapping and transient-failure detection are shared.

Transport is ``httpx``: a single ``httpx.Client`` per client instance,
with the API key header and network timeout from ``ClientSettings``.
``httpx.Client`` is safe to share between threads, so one client instance
can serve every in-flight operation of its kind.

URL templates are formatted with ``project_id``, ``operation_id`` and
every key of the operation's ``context`` (e.g. ``simulation_id``).

Response shapes:
    create        ``{<id_field>: "..."}``
    check         ``{"entries": [{"severity": "WARNING", "message": "...", "code": "..."}]}``
    estimate      ``{"duration": {"intervalMin": "PT5M", "intervalMax": "PT20M"}}``
                  (``duration`` absent or null when not computed)
    status        ``{"status": "RUNNING", "progress": 40, "message": "...", ...}``
                  (``progress`` is divided by the client's ``progress_scale``)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, ClassVar

import httpx

from remote_operations.clients.base import (
    ClientAuthError,
    ClientError,
    EstimationUnsupportedError,
    RemoteOperationClient,
)
from remote_operations.core.constants import (
    API_KEY_HEADER,
    HTTP_FORBIDDEN,
    HTTP_TOO_MANY_REQUESTS,
    HTTP_UNAUTHORIZED,
    HTTP_UNPROCESSABLE,
)
from remote_operations.models.operation import (
    DurationEstimate,
    Operation,
    OperationStatus,
    Severity,
    StatusSnapshot,
    ValidationEntry,
)
from remote_operations.utils.durations import parse_iso8601_duration

if TYPE_CHECKING:
    from remote_operations.core.config import ClientSettings
    from remote_operations.models.operation import OperationSpec

logger = logging.getLogger("remote_operations.clients.http")


class HttpOperationClient(RemoteOperationClient):
    """Shared HTTP implementation of the five lifecycle verbs.

    Subclasses set the class-level URL templates.  A template of ``None``
    means the service has no such endpoint for this kind: ``check_setup``
    then returns no entries, ``estimate`` returns ``None`` and ``start``
    is a no-op (the operation starts on creation).
    """

    kind: ClassVar[str] = ""
    collection_template: ClassVar[str] = ""
    item_template: ClassVar[str] = ""
    check_template: ClassVar[str | None] = None
    estimate_template: ClassVar[str | None] = None
    start_template: ClassVar[str | None] = None
    id_field: ClassVar[str] = "id"
    #: Context keys sent as camelCase query parameters on check/start.
    query_context: ClassVar[tuple[str, ...]] = ()
    #: Response field → ``Operation.result`` key, copied on every refresh.
    result_fields: ClassVar[dict[str, str]] = {}
    #: Reported progress value meaning "complete" (``100.0`` for percentages).
    progress_scale: ClassVar[float] = 1.0

    def __init__(
        self,
        settings: ClientSettings,
        *,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        super().__init__(settings)
        if not settings.api_base_url:
            raise ClientError(settings.name, "api_base_url is required for HTTP clients")
        headers = {"Accept": "application/json"}
        if settings.api_key:
            headers[API_KEY_HEADER] = settings.api_key
        self._http = httpx.Client(
            base_url=settings.api_base_url,
            headers=headers,
            timeout=settings.request_timeout_s,
            transport=transport,
        )

    # ------------------------------------------------------------------
    # Resource management
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        self._http.close()

    def __enter__(self) -> HttpOperationClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Lifecycle verbs
    # ------------------------------------------------------------------

    def create(self, spec: OperationSpec) -> Operation:
        """POST the spec payload to the collection and wrap the new id."""
        url = self._format(self.collection_template, spec.project_id, "", spec.context)
        body: dict[str, Any] = {"name": spec.name or self.kind, **spec.payload}
        data = self._request("POST", url, stage="create", json=body)

        operation_id = str(data.get(self.id_field, "") or "")
        if not operation_id:
            msg = f"create response has no {self.id_field!r}: {data!r}"
            raise ClientError(self.name, msg)

        logger.info(
            "Operation created | client=%s | kind=%s | operation_id=%s",
            self.name,
            spec.kind,
            operation_id,
        )
        return Operation(
            operation_id=operation_id,
            kind=spec.kind,
            project_id=spec.project_id,
            context=dict(spec.context),
        )

    def check_setup(self, operation: Operation) -> list[ValidationEntry]:
        if self.check_template is None:
            return []
        url = self._item_url(self.check_template, operation)
        data = self._request(
            "POST",
            url,
            stage="check",
            operation_id=operation.operation_id,
            params=self._query(operation),
        )
        return _parse_entries(data.get("entries") or [])

    def estimate(self, operation: Operation) -> DurationEstimate | None:
        if self.estimate_template is None:
            return None
        url = self._item_url(self.estimate_template, operation)
        try:
            data = self._request("GET", url, stage="estimate", operation_id=operation.operation_id)
        except ClientError as exc:
            if exc.status_code == HTTP_UNPROCESSABLE:
                raise EstimationUnsupportedError(
                    self.name,
                    exc.message,
                    status_code=exc.status_code,
                    operation_id=operation.operation_id,
                ) from exc
            raise
        try:
            return _parse_estimate(data.get("duration"))
        except ValueError as exc:
            msg = f"estimate response has an unreadable duration: {exc}"
            raise ClientError(self.name, msg, operation_id=operation.operation_id) from exc

    def start(self, operation: Operation) -> None:
        if self.start_template is None:
            return
        url = self._item_url(self.start_template, operation)
        self._request(
            "POST",
            url,
            stage="start",
            operation_id=operation.operation_id,
            params=self._query(operation),
        )

    def fetch_status(self, operation: Operation) -> StatusSnapshot | None:
        """GET the operation; transport errors, 5xx and 429 yield ``None``."""
        url = self._item_url(self.item_template, operation)
        try:
            response = self._http.get(url)
        except httpx.TransportError as exc:
            logger.warning(
                "Status refresh transport error | client=%s | operation_id=%s | error=%s",
                self.name,
                operation.operation_id,
                exc,
            )
            return None

        if response.status_code >= 500 or response.status_code == HTTP_TOO_MANY_REQUESTS:
            logger.warning(
                "Status refresh unavailable | client=%s | operation_id=%s | http_status=%d",
                self.name,
                operation.operation_id,
                response.status_code,
            )
            return None

        self._raise_for_status(response, stage="poll", operation_id=operation.operation_id)

        try:
            data = response.json()
            return self._parse_status(data)
        except (ValueError, KeyError, TypeError) as exc:
            logger.warning(
                "Status refresh unreadable | client=%s | operation_id=%s | error=%s",
                self.name,
                operation.operation_id,
                exc,
            )
            return None

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _parse_status(self, data: dict[str, Any]) -> StatusSnapshot:
        status = OperationStatus.parse(data["status"])
        progress = data.get("progress")
        if progress is not None:
            progress = float(progress) / self.progress_scale
        result = {
            key: str(data[field_name])
            for field_name, key in self.result_fields.items()
            if data.get(field_name) is not None
        }
        return StatusSnapshot(
            status=status,
            progress=progress,
            result=result,
            message=str(data.get("message", "") or ""),
        )

    def _item_url(self, template: str, operation: Operation) -> str:
        return self._format(
            template, operation.project_id, operation.operation_id, operation.context
        )

    def _format(
        self,
        template: str,
        project_id: str,
        operation_id: str,
        context: dict[str, str],
    ) -> str:
        try:
            return template.format(project_id=project_id, operation_id=operation_id, **context)
        except KeyError as exc:
            msg = f"missing context key {exc.args[0]!r} for URL template {template!r}"
            raise ClientError(self.name, msg, operation_id=operation_id) from exc

    def _query(self, operation: Operation) -> dict[str, str]:
        return {
            _camel(key): operation.context[key]
            for key in self.query_context
            if key in operation.context
        }

    def _request(
        self,
        method: str,
        url: str,
        *,
        stage: str,
        operation_id: str = "",
        **kwargs: Any,
    ) -> dict[str, Any]:
        try:
            response = self._http.request(method, url, **kwargs)
        except httpx.TransportError as exc:
            msg = f"{stage} request failed: {exc}"
            raise ClientError(self.name, msg, retryable=True, operation_id=operation_id) from exc

        self._raise_for_status(response, stage=stage, operation_id=operation_id)
        if not response.content:
            return {}
        try:
            data = response.json()
        except ValueError as exc:
            msg = f"{stage} response is not valid JSON"
            raise ClientError(
                self.name, msg, status_code=response.status_code, operation_id=operation_id
            ) from exc
        return data if isinstance(data, dict) else {}

    def _raise_for_status(
        self,
        response: httpx.Response,
        *,
        stage: str,
        operation_id: str,
    ) -> None:
        if response.is_success:
            return
        code = response.status_code
        msg = f"{stage} returned HTTP {code}: {response.text[:200]}"
        if code in (HTTP_UNAUTHORIZED, HTTP_FORBIDDEN):
            raise ClientAuthError(self.name, msg, status_code=code, operation_id=operation_id)
        raise ClientError(
            self.name,
            msg,
            status_code=code,
            retryable=code >= 500 or code == HTTP_TOO_MANY_REQUESTS,
            operation_id=operation_id,
        )


# ---------------------------------------------------------------------------
# Concrete clients
# ---------------------------------------------------------------------------


class MeshOperationClient(HttpOperationClient):
    """Mesh generation operations, checked against their target simulation."""

    kind = "mesh"
    collection_template = "/projects/{project_id}/meshoperations"
    item_template = "/projects/{project_id}/meshoperations/{operation_id}"
    check_template = "/projects/{project_id}/meshoperations/{operation_id}/check"
    estimate_template = "/projects/{project_id}/meshoperations/{operation_id}/estimate"
    start_template = "/projects/{project_id}/meshoperations/{operation_id}/start"
    id_field = "meshOperationId"
    progress_scale = 100.0
    query_context = ("simulation_id",)
    result_fields = {"meshId": "mesh_id"}


class SimulationRunClient(HttpOperationClient):
    """Runs of an existing simulation; check and estimate apply to the simulation."""

    kind = "simulation_run"
    collection_template = "/projects/{project_id}/simulations/{simulation_id}/runs"
    item_template = "/projects/{project_id}/simulations/{simulation_id}/runs/{operation_id}"
    check_template = "/projects/{project_id}/simulations/{simulation_id}/check"
    estimate_template = "/projects/{project_id}/simulations/{simulation_id}/estimate"
    start_template = "/projects/{project_id}/simulations/{simulation_id}/runs/{operation_id}/start"
    id_field = "runId"
    progress_scale = 100.0


class GeometryImportClient(HttpOperationClient):
    """Geometry imports; the service starts them on creation."""

    kind = "geometry_import"
    collection_template = "/projects/{project_id}/geometryimports"
    item_template = "/projects/{project_id}/geometryimports/{operation_id}"
    id_field = "geometryImportId"
    progress_scale = 100.0
    result_fields = {"geometryId": "geometry_id"}


# ---------------------------------------------------------------------------
# Parsing helpers (module-private)
# ---------------------------------------------------------------------------


def _parse_entries(raw_entries: list[dict[str, Any]]) -> list[ValidationEntry]:
    entries: list[ValidationEntry] = []
    for raw in raw_entries:
        severity_raw = str(raw.get("severity", "")).upper()
        try:
            severity = Severity(severity_raw)
        except ValueError:
            logger.debug("Ignoring check entry | severity=%s | message=%s", severity_raw, raw)
            continue
        entries.append(
            ValidationEntry(
                severity=severity,
                message=str(raw.get("message", "")),
                code=str(raw.get("code", "") or ""),
            )
        )
    return entries


def _parse_estimate(duration: dict[str, Any] | None) -> DurationEstimate | None:
    if not duration:
        return None
    lower = duration.get("intervalMin")
    upper = duration.get("intervalMax")
    return DurationEstimate(
        lower_s=parse_iso8601_duration(lower) if lower else None,
        upper_s=parse_iso8601_duration(upper) if upper else None,
    )


def _camel(key: str) -> str:
    head, *rest = key.split("_")
    return head + "".join(part.title() for part in rest)
