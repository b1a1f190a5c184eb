"""
Unit tests for the lifecycle state machine.
"""

import pytest

from tcpconn.core.state import (
    CONNECTION_TRANSITIONS,
    LISTENER_TRANSITIONS,
    ConnectionState,
    ListenerState,
    Role,
    Status,
    check_transition,
    status_flags,
)
from tcpconn.errors import InvalidStateError


class TestConnectionTransitions:
    """Tests for the data-socket transition table."""

    def test_forward_path(self):
        """INITIALIZED → SOCKET_OPEN → CONNECTED is allowed."""
        state = ConnectionState.INITIALIZED
        state = check_transition(state, ConnectionState.SOCKET_OPEN, CONNECTION_TRANSITIONS)
        state = check_transition(state, ConnectionState.CONNECTED, CONNECTION_TRANSITIONS)
        assert state is ConnectionState.CONNECTED

    def test_connected_requires_socket_open(self):
        """CONNECTED cannot be reached straight from INITIALIZED."""
        with pytest.raises(InvalidStateError) as exc_info:
            check_transition(
                ConnectionState.INITIALIZED,
                ConnectionState.CONNECTED,
                CONNECTION_TRANSITIONS,
            )

        assert exc_info.value.state is ConnectionState.INITIALIZED
        assert "initialized -> connected" in str(exc_info.value)

    def test_close_returns_to_initialized(self):
        """Both open states can be reset."""
        for state in (ConnectionState.SOCKET_OPEN, ConnectionState.CONNECTED):
            assert check_transition(
                state, ConnectionState.INITIALIZED, CONNECTION_TRANSITIONS
            ) is ConnectionState.INITIALIZED

    def test_cannot_reopen_while_connected(self):
        with pytest.raises(InvalidStateError):
            check_transition(
                ConnectionState.CONNECTED,
                ConnectionState.SOCKET_OPEN,
                CONNECTION_TRANSITIONS,
            )


class TestListenerTransitions:
    """Tests for the listening-socket transition table."""

    def test_listening_requires_open(self):
        """LISTENING is only reachable from OPEN."""
        with pytest.raises(InvalidStateError):
            check_transition(
                ListenerState.INITIALIZED,
                ListenerState.LISTENING,
                LISTENER_TRANSITIONS,
            )

        assert check_transition(
            ListenerState.OPEN, ListenerState.LISTENING, LISTENER_TRANSITIONS
        ) is ListenerState.LISTENING

    def test_cannot_open_twice(self):
        with pytest.raises(InvalidStateError):
            check_transition(ListenerState.OPEN, ListenerState.OPEN, LISTENER_TRANSITIONS)


class TestStatusFlags:
    """Tests for the derived bitmask view."""

    def test_flag_values(self):
        """Flag values match the documented bitmask."""
        assert Status.INITIALIZED == 0x0000
        assert Status.SERVER == 0x0001
        assert Status.CLIENT == 0x0002
        assert Status.SOCKET_OPEN == 0x0010
        assert Status.LISTENER_OPEN == 0x0020
        assert Status.LISTENING == 0x0200
        assert Status.CONNECTED == 0x1000

    def test_fresh_client(self):
        flags = status_flags(Role.CLIENT, ConnectionState.INITIALIZED)
        assert flags == Status.CLIENT

    def test_connected_client(self):
        flags = status_flags(Role.CLIENT, ConnectionState.CONNECTED)
        assert flags == Status.CLIENT | Status.SOCKET_OPEN | Status.CONNECTED

    def test_listening_server_without_client(self):
        flags = status_flags(Role.SERVER, ConnectionState.INITIALIZED, ListenerState.LISTENING)

        assert flags & Status.LISTENING
        assert flags & Status.LISTENER_OPEN
        assert not flags & Status.CONNECTED
        assert not flags & Status.CLIENT

    def test_connected_implies_socket_open(self):
        """No combination of states yields CONNECTED without SOCKET_OPEN."""
        for role in Role:
            for conn in ConnectionState:
                for listener in ListenerState:
                    flags = status_flags(role, conn, listener)
                    if flags & Status.CONNECTED:
                        assert flags & Status.SOCKET_OPEN
                    if flags & Status.LISTENING:
                        assert flags & Status.LISTENER_OPEN
