"""Lifecycle configuration loaded from environment variables.

All configuration values have defaults matching the observed polling
policy (30 s interval, 1 h floor, 2x multiplier, 10 h fallback, five
consecutive refresh failures). Environment variables override them.

Fail-fast validation:
    ``from_env()`` raises ``ConfigValidationError`` if any numeric
    value is out of its valid range, so a bad deployment setting is
    caught before the first operation is submitted.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from remote_operations.core.constants import (
    DEFAULT_FALLBACK_TIMEOUT_S,
    DEFAULT_MAX_CONSECUTIVE_FAILURES,
    DEFAULT_POLL_INTERVAL_S,
    DEFAULT_REQUEST_TIMEOUT_S,
    DEFAULT_TIMEOUT_FLOOR_S,
    DEFAULT_TIMEOUT_MULTIPLIER,
    ENV_API_BASE_URL,
    ENV_API_KEY,
    ENV_FALLBACK_TIMEOUT_S,
    ENV_MAX_CONSECUTIVE_FAILURES,
    ENV_POLL_INTERVAL_S,
    ENV_REQUEST_TIMEOUT_S,
    ENV_TIMEOUT_FLOOR_S,
    ENV_TIMEOUT_MULTIPLIER,
)
from remote_operations.core.exceptions import LifecycleError


class ConfigValidationError(LifecycleError):
    """Raised when configuration values are out of valid range.

    Attributes:
        key: The configuration key that failed validation.
        value: The invalid value.
        message: Human-readable description of the valid range.
    """

    default_stage = "config"
    default_code = "CONFIG_VALIDATION_FAILED"

    def __init__(self, key: str, value: object, message: str) -> None:
        self.key = key
        self.value = value
        super().__init__(f"Invalid configuration {key}={value!r}: {message}")


@dataclass(frozen=True, slots=True)
class LifecycleConfig:
    """Immutable polling policy.

    Built once by the caller and threaded through the engine; every
    value can be overridden per instance.

    Attributes:
        poll_interval_s: Seconds to wait between two status refreshes.
        timeout_floor_s: Minimum timeout budget in seconds.
        timeout_multiplier: Factor applied to the estimated upper bound.
        fallback_timeout_s: Budget used when no estimate is available.
        max_consecutive_failures: Empty refreshes tolerated in a row;
            one more than this fails the run.
    """

    poll_interval_s: float = DEFAULT_POLL_INTERVAL_S
    timeout_floor_s: float = DEFAULT_TIMEOUT_FLOOR_S
    timeout_multiplier: float = DEFAULT_TIMEOUT_MULTIPLIER
    fallback_timeout_s: float = DEFAULT_FALLBACK_TIMEOUT_S
    max_consecutive_failures: int = DEFAULT_MAX_CONSECUTIVE_FAILURES

    def __post_init__(self) -> None:
        _validate(self)

    @classmethod
    def from_env(cls) -> LifecycleConfig:
        """Load and validate configuration from environment variables.

        Raises:
            ConfigValidationError: If a numeric value is out of range.
            ValueError: If a numeric environment variable cannot be
                parsed (e.g. ``LIFECYCLE_POLL_INTERVAL_S=abc``).
        """
        return cls(
            poll_interval_s=float(os.getenv(ENV_POLL_INTERVAL_S, str(DEFAULT_POLL_INTERVAL_S))),
            timeout_floor_s=float(os.getenv(ENV_TIMEOUT_FLOOR_S, str(DEFAULT_TIMEOUT_FLOOR_S))),
            timeout_multiplier=float(
                os.getenv(ENV_TIMEOUT_MULTIPLIER, str(DEFAULT_TIMEOUT_MULTIPLIER))
            ),
            fallback_timeout_s=float(
                os.getenv(ENV_FALLBACK_TIMEOUT_S, str(DEFAULT_FALLBACK_TIMEOUT_S))
            ),
            max_consecutive_failures=int(
                os.getenv(ENV_MAX_CONSECUTIVE_FAILURES, str(DEFAULT_MAX_CONSECUTIVE_FAILURES))
            ),
        )


def _validate(config: LifecycleConfig) -> None:
    """Validate configuration ranges.  Raises ``ConfigValidationError``."""
    if config.poll_interval_s <= 0:
        raise ConfigValidationError(
            ENV_POLL_INTERVAL_S,
            config.poll_interval_s,
            "must be > 0 (seconds)",
        )

    if config.timeout_floor_s <= 0:
        raise ConfigValidationError(
            ENV_TIMEOUT_FLOOR_S,
            config.timeout_floor_s,
            "must be > 0 (seconds)",
        )

    if config.timeout_multiplier < 1:
        raise ConfigValidationError(
            ENV_TIMEOUT_MULTIPLIER,
            config.timeout_multiplier,
            "must be >= 1",
        )

    if config.fallback_timeout_s < config.timeout_floor_s:
        raise ConfigValidationError(
            ENV_FALLBACK_TIMEOUT_S,
            config.fallback_timeout_s,
            f"must be >= the timeout floor ({config.timeout_floor_s})",
        )

    if config.max_consecutive_failures < 0:
        raise ConfigValidationError(
            ENV_MAX_CONSECUTIVE_FAILURES,
            config.max_consecutive_failures,
            "must be >= 0",
        )


@dataclass(frozen=True, slots=True)
class ClientSettings:
    """Connection settings for one remote operation client.

    Attributes:
        name: Client identifier (must match the client registry key).
        api_base_url: Base URL of the remote service API.
        api_key: API key sent with every request (empty if no auth).
        request_timeout_s: Network-level timeout of one request.
        extra_params: Client-specific configuration parameters.
    """

    name: str
    api_base_url: str = ""
    api_key: str = field(default="", repr=False)
    request_timeout_s: float = DEFAULT_REQUEST_TIMEOUT_S
    extra_params: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ConfigValidationError("name", self.name, "must not be empty")
        if self.request_timeout_s <= 0:
            raise ConfigValidationError(
                ENV_REQUEST_TIMEOUT_S,
                self.request_timeout_s,
                "must be > 0 (seconds)",
            )

    @classmethod
    def from_env(cls, name: str) -> ClientSettings:
        """Build settings for client *name* from environment variables."""
        return cls(
            name=name,
            api_base_url=os.getenv(ENV_API_BASE_URL, ""),
            api_key=os.getenv(ENV_API_KEY, ""),
            request_timeout_s=float(
                os.getenv(ENV_REQUEST_TIMEOUT_S, str(DEFAULT_REQUEST_TIMEOUT_S))
            ),
        )
