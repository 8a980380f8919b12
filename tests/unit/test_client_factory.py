"""Tests for operation kind → client resolution.

Covers: built-in kinds, custom registration and shadowing, unknown kinds,
settings issued for another kind, environment-driven settings.
"""

from __future__ import annotations

import os
import unittest
from unittest.mock import patch

from remote_operations.clients.base import ClientError
from remote_operations.clients.factory import (
    GEOMETRY_IMPORT,
    MESH,
    SIMULATION_RUN,
    client_for,
    get_client,
    list_clients,
    register_client,
    unregister_client,
)
from remote_operations.clients.http import (
    GeometryImportClient,
    MeshOperationClient,
    SimulationRunClient,
)
from remote_operations.core.config import ClientSettings
from remote_operations.models.operation import OperationSpec, OperationStatus
from tests.fakes import ScriptedClient

BASE_URL = "https://api.example.test/v0"


class _ConfiguredScriptedClient(ScriptedClient):
    """Scripted client built the way the factory builds clients."""

    def __init__(self, settings: ClientSettings) -> None:
        super().__init__([OperationStatus.FINISHED])
        self.received = settings


class TestBuiltinKinds(unittest.TestCase):
    def test_each_kind_gets_its_http_client(self) -> None:
        expected = {
            MESH: MeshOperationClient,
            SIMULATION_RUN: SimulationRunClient,
            GEOMETRY_IMPORT: GeometryImportClient,
        }
        for kind, cls in expected.items():
            client = get_client(kind, ClientSettings(name=kind, api_base_url=BASE_URL))
            try:
                assert isinstance(client, cls)
                assert client.name == kind
            finally:
                client.close()  # type: ignore[attr-defined]

    def test_listed_sorted(self) -> None:
        kinds = list_clients()
        assert {MESH, SIMULATION_RUN, GEOMETRY_IMPORT} <= set(kinds)
        assert kinds == sorted(kinds)

    def test_client_for_spec_uses_its_kind(self) -> None:
        spec = OperationSpec(kind=SIMULATION_RUN, project_id="proj-1")
        client = client_for(spec, ClientSettings(name=SIMULATION_RUN, api_base_url=BASE_URL))
        try:
            assert isinstance(client, SimulationRunClient)
        finally:
            client.close()  # type: ignore[attr-defined]

    def test_settings_from_environment(self) -> None:
        env = {"REMOTE_API_BASE_URL": BASE_URL, "REMOTE_API_KEY": "key-1"}
        with patch.dict(os.environ, env, clear=False):
            client = get_client(MESH)
        try:
            assert client.settings.name == MESH
            assert client.settings.api_base_url == BASE_URL
            assert client.settings.api_key == "key-1"
        finally:
            client.close()  # type: ignore[attr-defined]

    def test_http_client_requires_base_url(self) -> None:
        with self.assertRaises(ClientError):
            get_client(MESH, ClientSettings(name=MESH))


class TestResolutionErrors(unittest.TestCase):
    def test_unknown_kind_lists_known_kinds(self) -> None:
        with self.assertRaises(ClientError) as ctx:
            get_client("thermal_report", ClientSettings(name="thermal_report"))
        assert "No client serves operation kind 'thermal_report'" in ctx.exception.message
        assert MESH in ctx.exception.message
        assert ctx.exception.client == "thermal_report"

    def test_settings_for_another_kind(self) -> None:
        with self.assertRaises(ClientError) as ctx:
            get_client(MESH, ClientSettings(name=SIMULATION_RUN, api_base_url=BASE_URL))
        message = ctx.exception.message
        assert repr(SIMULATION_RUN) in message
        assert repr(MESH) in message


class TestRegisterClient(unittest.TestCase):
    def tearDown(self) -> None:
        unregister_client("scripted")
        unregister_client(MESH)

    def test_custom_kind_is_resolved(self) -> None:
        register_client("scripted", _ConfiguredScriptedClient)

        client = get_client("scripted", ClientSettings(name="scripted"))

        assert "scripted" in list_clients()
        assert isinstance(client, _ConfiguredScriptedClient)
        assert client.received.name == "scripted"

    def test_registration_shadows_builtin_until_removed(self) -> None:
        register_client(MESH, _ConfiguredScriptedClient)
        assert isinstance(get_client(MESH, ClientSettings(name=MESH)), _ConfiguredScriptedClient)

        assert unregister_client(MESH) is True
        client = get_client(MESH, ClientSettings(name=MESH, api_base_url=BASE_URL))
        try:
            assert isinstance(client, MeshOperationClient)
        finally:
            client.close()  # type: ignore[attr-defined]

    def test_unregister_unknown_kind(self) -> None:
        assert unregister_client("never-registered") is False

    def test_blank_kind_rejected(self) -> None:
        for kind in ("", "   "):
            with self.assertRaises(ValueError):
                register_client(kind, _ConfiguredScriptedClient)

    def test_non_client_class_rejected(self) -> None:
        with self.assertRaises(ValueError):
            register_client("scripted", dict)  # type: ignore[arg-type]
