"""
Unit tests for the error hierarchy.
"""

import errno
import socket

import pytest

from tcpconn.errors import (
    AlreadyClosedError,
    BindError,
    ConnectError,
    InvalidStateError,
    NotConnectedError,
    ReadError,
    SocketOperationError,
    TCPError,
)


class TestHierarchy:
    """Tests for exception inheritance."""

    @pytest.mark.parametrize("cls", [NotConnectedError, AlreadyClosedError])
    def test_state_errors(self, cls):
        assert issubclass(cls, InvalidStateError)
        assert issubclass(cls, TCPError)

    @pytest.mark.parametrize("cls", [BindError, ConnectError, ReadError])
    def test_operation_errors(self, cls):
        assert issubclass(cls, SocketOperationError)
        assert issubclass(cls, TCPError)


class TestSocketOperationError:
    """Tests for the metadata carried by OS-level failures."""

    def test_attributes(self):
        cause = OSError(errno.EADDRINUSE, "Address already in use")
        error = BindError("bind", cause, "127.0.0.1", 8081)

        assert error.operation == "bind"
        assert error.errno == errno.EADDRINUSE
        assert error.address == "127.0.0.1"
        assert error.port == 8081

    def test_message_names_operation_and_target(self):
        cause = OSError(errno.EADDRINUSE, "Address already in use")
        message = str(BindError("bind", cause, "127.0.0.1", 8081))

        assert message.startswith("bind to 127.0.0.1:8081 failed")
        assert "Address already in use" in message

    def test_any_address_shown_as_star(self):
        error = BindError("bind", OSError(errno.EACCES, "Permission denied"), "", 80)
        assert "*:80" in str(error)


class TestConnectErrorReason:
    """Tests for ConnectError.reason classification."""

    @pytest.mark.parametrize("code, reason", [
        (errno.ECONNREFUSED, "refused"),
        (errno.ETIMEDOUT, "timed out"),
        (errno.ENETUNREACH, "unreachable"),
        (errno.EHOSTUNREACH, "unreachable"),
        (errno.EACCES, "failed"),
    ])
    def test_errno_mapping(self, code, reason):
        error = ConnectError("connect", OSError(code, "boom"), "127.0.0.1", 1)
        assert error.reason == reason

    def test_socket_timeout(self):
        """A connect timeout carries no errno but is still 'timed out'."""
        error = ConnectError("connect", socket.timeout("timed out"), "10.255.255.1", 80)

        assert error.errno is None
        assert error.reason == "timed out"

    def test_socket_timeout_not_a_timeout_error(self, monkeypatch):
        """Before 3.10 socket.timeout is a plain OSError subclass."""

        class PlainSocketTimeout(OSError):
            pass

        monkeypatch.setattr(socket, "timeout", PlainSocketTimeout)
        error = ConnectError("connect", PlainSocketTimeout("timed out"), "10.255.255.1", 80)

        assert error.errno is None
        assert error.reason == "timed out"
