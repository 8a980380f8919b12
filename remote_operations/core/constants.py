"""Shared lifecycle constants — single source of truth.

Centralises the polling policy defaults, environment variable names and
HTTP status codes that the engine, the configuration layer and the HTTP
clients all refer to.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Polling policy defaults
# ---------------------------------------------------------------------------

DEFAULT_POLL_INTERVAL_S: float = 30.0
"""Fixed wait between two status refreshes."""

DEFAULT_TIMEOUT_FLOOR_S: float = 3600.0
"""Hard lower bound of every timeout budget."""

DEFAULT_TIMEOUT_MULTIPLIER: float = 2.0
"""Factor applied to the estimated upper bound."""

DEFAULT_FALLBACK_TIMEOUT_S: float = 36_000.0
"""Budget used when the service provides no duration estimate."""

DEFAULT_MAX_CONSECUTIVE_FAILURES: int = 5
"""Consecutive empty refreshes tolerated before polling gives up."""

DEFAULT_REQUEST_TIMEOUT_S: float = 60.0
"""Network-level timeout for a single HTTP request."""

# ---------------------------------------------------------------------------
# Environment variable names
# ---------------------------------------------------------------------------

ENV_POLL_INTERVAL_S = "LIFECYCLE_POLL_INTERVAL_S"
ENV_TIMEOUT_FLOOR_S = "LIFECYCLE_TIMEOUT_FLOOR_S"
ENV_TIMEOUT_MULTIPLIER = "LIFECYCLE_TIMEOUT_MULTIPLIER"
ENV_FALLBACK_TIMEOUT_S = "LIFECYCLE_FALLBACK_TIMEOUT_S"
ENV_MAX_CONSECUTIVE_FAILURES = "LIFECYCLE_MAX_CONSECUTIVE_FAILURES"

ENV_API_BASE_URL = "REMOTE_API_BASE_URL"
ENV_API_KEY = "REMOTE_API_KEY"
ENV_REQUEST_TIMEOUT_S = "REMOTE_REQUEST_TIMEOUT_S"

# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------

API_KEY_HEADER = "X-API-KEY"

HTTP_UNAUTHORIZED = 401
HTTP_FORBIDDEN = 403
HTTP_UNPROCESSABLE = 422
"""Returned by estimate endpoints when no estimate exists for the setup."""
HTTP_TOO_MANY_REQUESTS = 429
