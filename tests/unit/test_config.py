"""Tests for lifecycle configuration.

Covers:
- Default values match the observed polling policy
- Loading from environment variables
- Type coercion (string env vars → numeric fields)
- Fail-fast range validation
- Client connection settings
"""

from __future__ import annotations

import os
from unittest.mock import patch

import pytest

from remote_operations.core.config import ClientSettings, ConfigValidationError, LifecycleConfig


class TestLifecycleConfigDefaults:
    """Verify default configuration values."""

    def test_default_poll_interval(self) -> None:
        assert LifecycleConfig().poll_interval_s == 30.0

    def test_default_timeout_policy(self) -> None:
        cfg = LifecycleConfig()
        assert cfg.timeout_floor_s == 3600.0
        assert cfg.timeout_multiplier == 2.0
        assert cfg.fallback_timeout_s == 36_000.0

    def test_default_failure_bound(self) -> None:
        assert LifecycleConfig().max_consecutive_failures == 5

    def test_frozen(self) -> None:
        cfg = LifecycleConfig()
        with pytest.raises(AttributeError):
            cfg.poll_interval_s = 1.0  # type: ignore[misc]


class TestLifecycleConfigFromEnv:
    """Verify loading from environment variables."""

    def test_loads_from_environment(self) -> None:
        env = {
            "LIFECYCLE_POLL_INTERVAL_S": "5",
            "LIFECYCLE_TIMEOUT_FLOOR_S": "600",
            "LIFECYCLE_TIMEOUT_MULTIPLIER": "3.5",
            "LIFECYCLE_FALLBACK_TIMEOUT_S": "7200",
            "LIFECYCLE_MAX_CONSECUTIVE_FAILURES": "2",
        }
        with patch.dict(os.environ, env, clear=False):
            cfg = LifecycleConfig.from_env()

        assert cfg.poll_interval_s == 5.0
        assert cfg.timeout_floor_s == 600.0
        assert cfg.timeout_multiplier == 3.5
        assert cfg.fallback_timeout_s == 7200.0
        assert cfg.max_consecutive_failures == 2
        assert isinstance(cfg.max_consecutive_failures, int)

    def test_missing_env_uses_defaults(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            cfg = LifecycleConfig.from_env()
        assert cfg == LifecycleConfig()

    def test_non_numeric_value_raises(self) -> None:
        with (
            patch.dict(os.environ, {"LIFECYCLE_POLL_INTERVAL_S": "abc"}, clear=False),
            pytest.raises(ValueError, match="abc"),
        ):
            LifecycleConfig.from_env()

    def test_out_of_range_env_raises(self) -> None:
        with (
            patch.dict(os.environ, {"LIFECYCLE_POLL_INTERVAL_S": "0"}, clear=False),
            pytest.raises(ConfigValidationError) as excinfo,
        ):
            LifecycleConfig.from_env()
        assert excinfo.value.key == "LIFECYCLE_POLL_INTERVAL_S"


class TestLifecycleConfigValidation:
    """Fail-fast range validation."""

    @pytest.mark.parametrize(
        ("kwargs", "key"),
        [
            ({"poll_interval_s": 0.0}, "LIFECYCLE_POLL_INTERVAL_S"),
            ({"poll_interval_s": -1.0}, "LIFECYCLE_POLL_INTERVAL_S"),
            ({"timeout_floor_s": 0.0}, "LIFECYCLE_TIMEOUT_FLOOR_S"),
            ({"timeout_multiplier": 0.5}, "LIFECYCLE_TIMEOUT_MULTIPLIER"),
            ({"fallback_timeout_s": 60.0}, "LIFECYCLE_FALLBACK_TIMEOUT_S"),
            ({"max_consecutive_failures": -1}, "LIFECYCLE_MAX_CONSECUTIVE_FAILURES"),
        ],
    )
    def test_invalid_values_rejected(self, kwargs: dict[str, float], key: str) -> None:
        with pytest.raises(ConfigValidationError) as excinfo:
            LifecycleConfig(**kwargs)  # type: ignore[arg-type]
        assert excinfo.value.key == key
        assert excinfo.value.code == "CONFIG_VALIDATION_FAILED"
        assert excinfo.value.stage == "config"

    def test_zero_failures_allowed(self) -> None:
        assert LifecycleConfig(max_consecutive_failures=0).max_consecutive_failures == 0

    def test_fallback_equal_to_floor_allowed(self) -> None:
        cfg = LifecycleConfig(timeout_floor_s=600.0, fallback_timeout_s=600.0)
        assert cfg.fallback_timeout_s == 600.0


class TestClientSettings:
    """Connection settings for one client."""

    def test_defaults(self) -> None:
        settings = ClientSettings(name="mesh")
        assert settings.api_base_url == ""
        assert settings.api_key == ""
        assert settings.request_timeout_s == 60.0
        assert settings.extra_params == {}

    def test_api_key_not_in_repr(self) -> None:
        settings = ClientSettings(name="mesh", api_key="s3cret")
        assert "s3cret" not in repr(settings)

    @pytest.mark.parametrize("name", ["", "   "])
    def test_empty_name_rejected(self, name: str) -> None:
        with pytest.raises(ConfigValidationError):
            ClientSettings(name=name)

    def test_non_positive_timeout_rejected(self) -> None:
        with pytest.raises(ConfigValidationError) as excinfo:
            ClientSettings(name="mesh", request_timeout_s=0)
        assert excinfo.value.key == "REMOTE_REQUEST_TIMEOUT_S"

    def test_from_env(self) -> None:
        env = {
            "REMOTE_API_BASE_URL": "https://api.example.test/v0",
            "REMOTE_API_KEY": "key-1",
            "REMOTE_REQUEST_TIMEOUT_S": "15",
        }
        with patch.dict(os.environ, env, clear=False):
            settings = ClientSettings.from_env("simulation_run")

        assert settings.name == "simulation_run"
        assert settings.api_base_url == "https://api.example.test/v0"
        assert settings.api_key == "key-1"
        assert settings.request_timeout_s == 15.0
