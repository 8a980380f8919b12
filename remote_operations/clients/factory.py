"""Operation kind → client resolution.

Built-in kinds map to the HTTP clients by class name; the module holding
them (and with it httpx) is imported the first time one is resolved.
Callers can add kinds of their own, or shadow a built-in one with a test
double, through ``register_client``.

Usage::

    from remote_operations.clients.factory import client_for

    client = client_for(spec)          # settings from the environment
    outcome = run(spec, client)
"""

from __future__ import annotations

import importlib
import logging
import threading
from typing import TYPE_CHECKING

from remote_operations.clients.base import ClientError, RemoteOperationClient
from remote_operations.core.config import ClientSettings

if TYPE_CHECKING:
    from remote_operations.models.operation import OperationSpec

logger = logging.getLogger(__name__)

MESH = "mesh"
SIMULATION_RUN = "simulation_run"
GEOMETRY_IMPORT = "geometry_import"

_HTTP_MODULE = "remote_operations.clients.http"

_BUILTIN_CLIENTS: dict[str, str] = {
    MESH: "MeshOperationClient",
    SIMULATION_RUN: "SimulationRunClient",
    GEOMETRY_IMPORT: "GeometryImportClient",
}

_custom_clients: dict[str, type[RemoteOperationClient]] = {}
_custom_lock = threading.Lock()


def register_client(kind: str, client_cls: type[RemoteOperationClient]) -> None:
    """Serve *kind* with *client_cls*; replaces any earlier registration.

    Raises:
        ValueError: If *kind* is blank or *client_cls* is not a
            ``RemoteOperationClient`` subclass.
    """
    if not kind or not kind.strip():
        msg = "Operation kind must be non-empty"
        raise ValueError(msg)
    if not (isinstance(client_cls, type) and issubclass(client_cls, RemoteOperationClient)):
        msg = f"{client_cls!r} is not a RemoteOperationClient subclass"
        raise ValueError(msg)
    with _custom_lock:
        shadowed = kind in _custom_clients or kind in _BUILTIN_CLIENTS
        _custom_clients[kind] = client_cls
    logger.info(
        "Client registered | kind=%s | class=%s | replaces=%s",
        kind,
        client_cls.__name__,
        shadowed,
    )


def unregister_client(kind: str) -> bool:
    """Drop a registration; built-in kinds fall back to their HTTP client."""
    with _custom_lock:
        removed = _custom_clients.pop(kind, None) is not None
    if removed:
        logger.info("Client unregistered | kind=%s", kind)
    return removed


def list_clients() -> list[str]:
    """Return every operation kind that can be resolved, sorted."""
    with _custom_lock:
        return sorted(set(_BUILTIN_CLIENTS) | set(_custom_clients))


def get_client(kind: str, settings: ClientSettings | None = None) -> RemoteOperationClient:
    """Instantiate the client serving *kind*.

    Args:
        kind: Operation kind such as ``"mesh"``.
        settings: Connection settings issued for *kind*; read from the
            environment when omitted.

    Raises:
        ClientError: If no client serves *kind*, or *settings* were
            issued for another kind.
    """
    client_cls = _client_class(kind)
    client = client_cls(_settings_for(kind, settings))
    logger.info("Client created | kind=%s | class=%s", kind, client_cls.__name__)
    return client


def client_for(
    spec: OperationSpec, settings: ClientSettings | None = None
) -> RemoteOperationClient:
    """Instantiate the client serving ``spec.kind``."""
    return get_client(spec.kind, settings)


def _client_class(kind: str) -> type[RemoteOperationClient]:
    with _custom_lock:
        custom = _custom_clients.get(kind)
    if custom is not None:
        return custom

    class_name = _BUILTIN_CLIENTS.get(kind)
    if class_name is None:
        msg = f"No client serves operation kind {kind!r} (known kinds: {', '.join(list_clients())})"
        raise ClientError(client=kind, message=msg)
    return getattr(importlib.import_module(_HTTP_MODULE), class_name)


def _settings_for(kind: str, settings: ClientSettings | None) -> ClientSettings:
    if settings is None:
        return ClientSettings.from_env(kind)
    if settings.name != kind:
        msg = (
            f"Settings were issued for {settings.name!r} operations and cannot "
            f"configure a {kind!r} client"
        )
        raise ClientError(client=kind, message=msg)
    return settings
