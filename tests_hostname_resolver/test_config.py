"""
Tests for hostname_resolver configuration utilities

Coverage includes:
- merge_config with defaults
- config_from_env overrides
- load_server_config from resolv.conf files and fallbacks
- with_servers validation
"""

import pytest

from hostname_resolver.config import (
    DEFAULT_SERVER_CONFIG,
    DEFAULT_TIMEOUT_SECONDS,
    ENV_RESOLV_CONF,
    ENV_TTL_SECONDS,
    config_from_env,
    load_server_config,
    merge_config,
    with_servers,
)
from hostname_resolver.errors import InvalidInputError
from hostname_resolver.types import ResolverConfig, ServerConfig


class TestMergeConfig:
    """Tests for merge_config function"""

    def test_merge_none(self):
        """Should return defaults when no config is given"""
        merged = merge_config(None)
        assert merged.id == "hostname-resolver"
        assert merged.default_ttl_seconds == 24 * 60 * 60
        assert merged.cleanup_interval_seconds == 3600.0
        assert merged.multicast_enabled is True

    def test_merge_returns_fresh_copy(self):
        """Should not share the defaults object between calls"""
        first = merge_config(None)
        first.default_ttl_seconds = 1.0
        assert merge_config(None).default_ttl_seconds == 24 * 60 * 60

    def test_merge_fills_invalid_fields(self):
        """Should replace empty or non-positive fields with defaults"""
        config = ResolverConfig(
            resolv_conf_path="",
            multicast_domain="",
            default_ttl_seconds=0,
            cleanup_interval_seconds=-1,
        )
        merged = merge_config(config)
        assert merged.resolv_conf_path == "/etc/resolv.conf"
        assert merged.multicast_domain == "local."
        assert merged.default_ttl_seconds == 24 * 60 * 60
        assert merged.cleanup_interval_seconds == 3600.0

    def test_merge_preserves_all_fields(self):
        """Should keep valid user values"""
        config = ResolverConfig(
            id="test",
            default_ttl_seconds=120.0,
            cleanup_interval_seconds=30.0,
            multicast_enabled=False,
            multicast_interfaces=["192.168.1.10"],
        )
        merged = merge_config(config)
        assert merged.id == "test"
        assert merged.default_ttl_seconds == 120.0
        assert merged.cleanup_interval_seconds == 30.0
        assert merged.multicast_enabled is False
        assert merged.multicast_interfaces == ["192.168.1.10"]


class TestConfigFromEnv:
    """Tests for config_from_env function"""

    def test_env_overrides(self, monkeypatch):
        """Should read the resolver file path and TTL from the environment"""
        monkeypatch.setenv(ENV_RESOLV_CONF, "/tmp/resolv.test")
        monkeypatch.setenv(ENV_TTL_SECONDS, "90")

        config = config_from_env()
        assert config.resolv_conf_path == "/tmp/resolv.test"
        assert config.default_ttl_seconds == 90.0

    def test_env_ignores_bad_ttl(self, monkeypatch):
        """Should keep the configured TTL when the variable is not numeric"""
        monkeypatch.delenv(ENV_RESOLV_CONF, raising=False)
        monkeypatch.setenv(ENV_TTL_SECONDS, "soon")

        config = config_from_env(ResolverConfig(default_ttl_seconds=45.0))
        assert config.default_ttl_seconds == 45.0

    def test_env_unset(self, monkeypatch):
        """Should leave the config alone without variables"""
        monkeypatch.delenv(ENV_RESOLV_CONF, raising=False)
        monkeypatch.delenv(ENV_TTL_SECONDS, raising=False)

        config = config_from_env()
        assert config.resolv_conf_path == "/etc/resolv.conf"


class TestLoadServerConfig:
    """Tests for load_server_config function"""

    def test_load_nameservers(self, tmp_path):
        """Should read name servers in file order"""
        path = tmp_path / "resolv.conf"
        path.write_text(
            "# test resolver\n"
            "search example.com\n"
            "nameserver 10.1.1.1\n"
            "nameserver 10.1.1.2\n"
            "options ndots:2\n"
        )

        config = load_server_config(str(path))
        assert config.servers == ("10.1.1.1", "10.1.1.2")
        assert config.ndots == 2
        assert config.port == "53"
        assert config.timeout_seconds == DEFAULT_TIMEOUT_SECONDS

    def test_missing_file_falls_back(self, tmp_path):
        """Should use the default servers when the file is missing"""
        config = load_server_config(str(tmp_path / "missing.conf"))
        assert config == DEFAULT_SERVER_CONFIG
        assert config.servers == ("8.8.8.8", "8.8.4.4")

    def test_file_without_nameserver_falls_back(self, tmp_path):
        """Should use the default servers when the file lists none"""
        path = tmp_path / "resolv.conf"
        path.write_text("search example.com\n")

        assert load_server_config(str(path)) == DEFAULT_SERVER_CONFIG

    def test_default_server_config(self):
        """Should expose the documented fallback values"""
        assert DEFAULT_SERVER_CONFIG.port == "53"
        assert DEFAULT_SERVER_CONFIG.attempts == 3
        assert DEFAULT_SERVER_CONFIG.ndots == 1
        assert DEFAULT_SERVER_CONFIG.timeout_seconds == 5


class TestWithServers:
    """Tests for with_servers function"""

    def test_override(self):
        """Should replace servers, attempts and timeout and keep the rest"""
        base = ServerConfig(servers=("10.0.0.1",), port="5353", ndots=3)
        config = with_servers(base, ["10.0.0.9", "10.0.0.8"], 4, 2)

        assert config.servers == ("10.0.0.9", "10.0.0.8")
        assert config.attempts == 4
        assert config.timeout_seconds == 2
        assert config.port == "5353"
        assert config.ndots == 3
        assert base.servers == ("10.0.0.1",)

    @pytest.mark.parametrize(
        "servers,attempts,timeout",
        [
            ([], 1, 1),
            (["10.0.0.9"], 0, 1),
            (["10.0.0.9"], 1, 0),
        ],
    )
    def test_invalid_arguments(self, servers, attempts, timeout):
        """Should reject empty servers and non-positive limits"""
        with pytest.raises(InvalidInputError):
            with_servers(DEFAULT_SERVER_CONFIG, servers, attempts, timeout)
