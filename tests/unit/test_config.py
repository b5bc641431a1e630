"""Tests for configuration resolution."""

from __future__ import annotations

import pytest

from hellobench._internal.config import (
    HelloBenchConfig,
    ServerConfig,
    load_config,
    resolve_server_config,
)
from hellobench._internal.errors import ConfigError


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for var in (
        "HELLOBENCH_PORT",
        "PORT",
        "HELLOBENCH_HOST",
        "HELLOBENCH_BASE_URL",
        "HELLOBENCH_POOL_SIZE",
        "HELLOBENCH_TIMEOUT",
    ):
        monkeypatch.delenv(var, raising=False)
    return monkeypatch


class TestServerConfig:
    """Tests for resolve_server_config."""

    def test_explicit_port(self, clean_env: pytest.MonkeyPatch):
        config = resolve_server_config(port=8080)
        assert config == ServerConfig(port=8080, host="0.0.0.0")

    def test_port_string_from_argv(self, clean_env: pytest.MonkeyPatch):
        assert resolve_server_config(port="4949").port == 4949

    def test_argument_beats_environment(self, clean_env: pytest.MonkeyPatch):
        clean_env.setenv("HELLOBENCH_PORT", "9494")
        assert resolve_server_config(port=9944).port == 9944

    def test_hellobench_port_from_env(self, clean_env: pytest.MonkeyPatch):
        clean_env.setenv("HELLOBENCH_PORT", "9494")
        clean_env.setenv("PORT", "1234")
        assert resolve_server_config().port == 9494

    def test_generic_port_from_env(self, clean_env: pytest.MonkeyPatch):
        clean_env.setenv("PORT", "1234")
        assert resolve_server_config().port == 1234

    def test_missing_port_raises(self, clean_env: pytest.MonkeyPatch):
        with pytest.raises(ConfigError, match="No port configured"):
            resolve_server_config()

    def test_non_integer_port_raises(self, clean_env: pytest.MonkeyPatch):
        clean_env.setenv("HELLOBENCH_PORT", "eighty")
        with pytest.raises(ConfigError, match="HELLOBENCH_PORT must be an integer"):
            resolve_server_config()

    @pytest.mark.parametrize("port", [0, -1, 65536])
    def test_out_of_range_port_raises(self, clean_env: pytest.MonkeyPatch, port: int):
        with pytest.raises(ConfigError, match="between 1 and 65535"):
            resolve_server_config(port=port)

    def test_host_from_env(self, clean_env: pytest.MonkeyPatch):
        clean_env.setenv("HELLOBENCH_HOST", "127.0.0.1")
        assert resolve_server_config(port=80).host == "127.0.0.1"

    def test_host_argument_wins(self, clean_env: pytest.MonkeyPatch):
        clean_env.setenv("HELLOBENCH_HOST", "127.0.0.1")
        assert resolve_server_config(port=80, host="::1").host == "::1"

    def test_frozen(self):
        config = ServerConfig(port=8080)
        with pytest.raises(AttributeError):
            config.port = 9090  # type: ignore[misc]


class TestHelloBenchConfig:
    """Tests for the HelloBenchConfig dataclass."""

    def test_defaults(self):
        config = HelloBenchConfig()
        assert config.default_base_url == ""
        assert config.default_headers == {}
        assert config.connection_pool_size == 100
        assert config.request_timeout == 30.0


class TestLoadConfig:
    """Tests for the load_config function."""

    def test_defaults_from_env(self, clean_env: pytest.MonkeyPatch):
        config = load_config()
        assert config.default_base_url == ""
        assert config.connection_pool_size == 100
        assert config.request_timeout == 30.0

    def test_base_url_from_env(self, clean_env: pytest.MonkeyPatch):
        clean_env.setenv("HELLOBENCH_BASE_URL", "http://13.233.233.119")
        assert load_config().default_base_url == "http://13.233.233.119"

    def test_pool_size_from_env(self, clean_env: pytest.MonkeyPatch):
        clean_env.setenv("HELLOBENCH_POOL_SIZE", "50")
        assert load_config().connection_pool_size == 50

    def test_timeout_from_env(self, clean_env: pytest.MonkeyPatch):
        clean_env.setenv("HELLOBENCH_TIMEOUT", "10.5")
        assert load_config().request_timeout == 10.5

    def test_invalid_pool_size_raises_error(self, clean_env: pytest.MonkeyPatch):
        clean_env.setenv("HELLOBENCH_POOL_SIZE", "not_a_number")
        with pytest.raises(ConfigError, match="must be an integer"):
            load_config()

    def test_zero_pool_size_raises_error(self, clean_env: pytest.MonkeyPatch):
        clean_env.setenv("HELLOBENCH_POOL_SIZE", "0")
        with pytest.raises(ConfigError, match="must be >= 1"):
            load_config()

    def test_invalid_timeout_raises_error(self, clean_env: pytest.MonkeyPatch):
        clean_env.setenv("HELLOBENCH_TIMEOUT", "abc")
        with pytest.raises(ConfigError, match="must be a number"):
            load_config()

    def test_negative_timeout_raises_error(self, clean_env: pytest.MonkeyPatch):
        clean_env.setenv("HELLOBENCH_TIMEOUT", "-5.0")
        with pytest.raises(ConfigError, match="must be positive"):
            load_config()
