"""
Unit tests for ConnectionConfig.
"""

import typing

import pytest

from tcpconn import Client, ConnectionConfig, Server


class TestDefaults:

    def test_defaults(self):
        config = ConnectionConfig()

        assert config.host == "127.0.0.1"
        assert config.port == 8081
        assert config.backlog == 50
        assert config.buffer_size == 2880
        assert config.connect_timeout is None
        config.validate()


class TestFromEnv:
    """Tests for environment loading."""

    def test_reads_variables(self, monkeypatch):
        monkeypatch.setenv("TCP_HOST", "10.0.0.5")
        monkeypatch.setenv("TCP_PORT", "9000")
        monkeypatch.setenv("TCP_BACKLOG", "10")
        monkeypatch.setenv("TCP_BUFFER_SIZE", "1024")
        monkeypatch.setenv("TCP_CONNECT_TIMEOUT", "2.5")
        monkeypatch.setenv("TCP_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("TCP_LOG_FORMAT", "json")

        config = ConnectionConfig.from_env()

        assert config.host == "10.0.0.5"
        assert config.port == 9000
        assert config.backlog == 10
        assert config.buffer_size == 1024
        assert config.connect_timeout == 2.5
        assert config.log_level == "DEBUG"
        assert config.log_format == "json"

    def test_missing_variables_use_defaults(self, monkeypatch):
        for name in ("TCP_HOST", "TCP_PORT", "TCP_CONNECT_TIMEOUT"):
            monkeypatch.delenv(name, raising=False)

        config = ConnectionConfig.from_env()

        assert config.host == "127.0.0.1"
        assert config.port == 8081
        assert config.connect_timeout is None


class TestValidate:
    """Tests for fail-fast validation."""

    @pytest.mark.parametrize("port", [-1, 65536])
    def test_port_range(self, port):
        with pytest.raises(ValueError, match="port"):
            ConnectionConfig(port=port).validate()

    @pytest.mark.parametrize("port", [0, 1, 65535])
    def test_port_bounds_accepted(self, port):
        ConnectionConfig(port=port).validate()

    @pytest.mark.parametrize("host", ["localhost", "256.1.1.1", "::1", "1.2.3"])
    def test_rejects_non_ipv4(self, host):
        with pytest.raises(ValueError, match="IPv4"):
            ConnectionConfig(host=host).validate()

    @pytest.mark.parametrize("host", ["", "0.0.0.0", "192.168.1.10"])
    def test_accepts_ipv4_and_any(self, host):
        ConnectionConfig(host=host).validate()

    def test_connect_timeout_positive(self):
        with pytest.raises(ValueError):
            ConnectionConfig(connect_timeout=0).validate()

    def test_log_format(self):
        with pytest.raises(ValueError):
            ConnectionConfig(log_format="xml").validate()


class TestFromConfig:
    """Server/Client built from a config."""

    def test_server(self):
        config = ConnectionConfig(host="", port=9001, buffer_size=512)
        server = Server.from_config(config)

        assert server.address == ""
        assert server.port == 9001
        assert server.connection.buffer_size == 512

    def test_client(self):
        config = ConnectionConfig(port=9002, connect_timeout=1.0)
        client = Client.from_config(config)

        assert client.address == "127.0.0.1"
        assert client.port == 9002
        assert client.connect_timeout == 1.0

    @pytest.mark.parametrize("cls", [Server, Client])
    def test_config_parameter_is_annotated(self, cls):
        hints = typing.get_type_hints(
            cls.from_config, localns={"ConnectionConfig": ConnectionConfig}
        )

        assert hints["config"] is ConnectionConfig
        assert hints["return"] is cls
