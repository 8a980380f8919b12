"""Shared pytest fixtures for the remote operations test suite."""

from __future__ import annotations

import pytest

from remote_operations.core.config import LifecycleConfig
from remote_operations.engine.lifecycle import OperationLifecycle
from remote_operations.engine.polling import PollingEngine
from remote_operations.models.operation import OperationSpec
from tests.fakes import FakeClock

# ---------------------------------------------------------------------------
# Clock and engine fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def fake_clock() -> FakeClock:
    """Return a clock whose waits complete instantly."""
    return FakeClock()


@pytest.fixture()
def config() -> LifecycleConfig:
    """Return the default polling policy."""
    return LifecycleConfig()


@pytest.fixture()
def engine(config: LifecycleConfig, fake_clock: FakeClock) -> PollingEngine:
    """Return a polling engine driven by the fake clock."""
    return PollingEngine(config, clock=fake_clock, wait=fake_clock.wait)


@pytest.fixture()
def lifecycle(config: LifecycleConfig, engine: PollingEngine) -> OperationLifecycle:
    """Return a lifecycle using the fake-clock engine."""
    return OperationLifecycle(config, engine=engine)


# ---------------------------------------------------------------------------
# Spec fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def mesh_spec() -> OperationSpec:
    """A mesh operation for geometry ``geo-1`` targeting simulation ``sim-1``."""
    return OperationSpec(
        kind="mesh",
        project_id="proj-1",
        name="APIMesh",
        context={"geometry_id": "geo-1", "simulation_id": "sim-1"},
        payload={"geometryId": "geo-1", "model": {"type": "SIMMETRIX_MESHING_SOLID"}},
    )


@pytest.fixture()
def run_spec() -> OperationSpec:
    """A simulation run of simulation ``sim-1``."""
    return OperationSpec(
        kind="simulation_run",
        project_id="proj-1",
        name="Run 1",
        context={"simulation_id": "sim-1"},
    )
