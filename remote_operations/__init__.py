"""Remote long-running operation lifecycle engine.

Submits operations (mesh generation, simulation runs, geometry imports)
to a remote simulation service, validates their setup, derives a timeout
budget from the service's duration estimate, starts them and polls until
a terminal status, tolerating transient communication failures.
"""

__version__ = "0.1.0"
