"""Remote operation clients.

Implements the operation-kind adapter pattern (Strategy pattern):
- RemoteOperationClient: Abstract base class defining the five lifecycle verbs
- MeshOperationClient: Mesh generation operations (HTTP)
- SimulationRunClient: Simulation runs (HTTP)
- GeometryImportClient: Geometry imports (HTTP)

The HTTP clients are imported on first resolution by the factory.
"""

from remote_operations.clients.base import (
    ClientAuthError,
    ClientError,
    EstimationUnsupportedError,
    RemoteOperationClient,
)
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

__all__ = [
    "GEOMETRY_IMPORT",
    "MESH",
    "SIMULATION_RUN",
    "ClientAuthError",
    "ClientError",
    "EstimationUnsupportedError",
    "RemoteOperationClient",
    "client_for",
    "get_client",
    "list_clients",
    "register_client",
    "unregister_client",
]
