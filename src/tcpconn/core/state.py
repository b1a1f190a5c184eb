"""
=============================================================================
CONNECTION LIFECYCLE STATE MACHINE
=============================================================================

A TCP endpoint is only allowed to do certain things in certain states.
You cannot recv() on a socket that was never connected, and you cannot
accept() on a socket that is not listening. This module spells those rules
out as two small state machines.

=============================================================================
DATA SOCKET (shared by Server and Client)
=============================================================================

    INITIALIZED ──socket()/accept()──► SOCKET_OPEN ──connect()──► CONNECTED
         ▲                                  │                         │
         │                                  │                         │
         └─────────────── close() ──────────┴─────────────────────────┘

    A server's accept() returns a socket that is already connected, so it
    passes through SOCKET_OPEN and CONNECTED in one step.

=============================================================================
LISTENING SOCKET (Server only)
=============================================================================

    INITIALIZED ──socket()+bind()──► OPEN ──listen()──► LISTENING
         ▲                            │                    │
         └──────── close_listener() ──┴────────────────────┘

=============================================================================
STATUS FLAGS
=============================================================================

Older socket wrappers track state as a bitmask of independent flags. We
keep the enums above as the source of truth and derive a Status flag value
from them for callers that want the bitmask view:

    ┌──────────────────┬─────────┐
    │ Flag             │ Value   │
    ├──────────────────┼─────────┤
    │ INITIALIZED      │ 0x0000  │
    │ SERVER           │ 0x0001  │
    │ CLIENT           │ 0x0002  │
    │ SOCKET_OPEN      │ 0x0010  │
    │ LISTENER_OPEN    │ 0x0020  │
    │ LISTENING        │ 0x0200  │
    │ CONNECTED        │ 0x1000  │
    └──────────────────┴─────────┘

=============================================================================
"""

from enum import Enum, IntFlag
from typing import Dict, FrozenSet

from ..errors import InvalidStateError


class Role(Enum):
    """Which side of the conversation an endpoint is on."""
    SERVER = "server"
    CLIENT = "client"


class ConnectionState(Enum):
    """Lifecycle of the data socket."""
    INITIALIZED = "initialized"  # No socket yet (or released)
    SOCKET_OPEN = "socket_open"  # Descriptor exists, not connected
    CONNECTED = "connected"      # Peer attached, read/write allowed


class ListenerState(Enum):
    """Lifecycle of a server's listening socket."""
    INITIALIZED = "initialized"  # No listening socket
    OPEN = "open"                # Created and bound
    LISTENING = "listening"      # Accepting connections


class Status(IntFlag):
    """Bitmask view of an endpoint's state."""
    INITIALIZED = 0x0000
    SERVER = 0x0001
    CLIENT = 0x0002
    SOCKET_OPEN = 0x0010
    LISTENER_OPEN = 0x0020
    LISTENING = 0x0200
    CONNECTED = 0x1000


# =============================================================================
# TRANSITION TABLES
# =============================================================================
# Each entry lists the states reachable from the key. Anything not listed
# is illegal and raises InvalidStateError.

CONNECTION_TRANSITIONS: Dict[ConnectionState, FrozenSet[ConnectionState]] = {
    ConnectionState.INITIALIZED: frozenset({ConnectionState.SOCKET_OPEN}),
    ConnectionState.SOCKET_OPEN: frozenset({
        ConnectionState.CONNECTED,
        ConnectionState.INITIALIZED,
    }),
    ConnectionState.CONNECTED: frozenset({ConnectionState.INITIALIZED}),
}

LISTENER_TRANSITIONS: Dict[ListenerState, FrozenSet[ListenerState]] = {
    ListenerState.INITIALIZED: frozenset({ListenerState.OPEN}),
    ListenerState.OPEN: frozenset({
        ListenerState.LISTENING,
        ListenerState.INITIALIZED,
    }),
    ListenerState.LISTENING: frozenset({ListenerState.INITIALIZED}),
}


def check_transition(current: Enum, target: Enum, table: Dict) -> Enum:
    """
    Validate a state change against a transition table.

    Args:
        current: The state we are in.
        target: The state we want to move to.
        table: CONNECTION_TRANSITIONS or LISTENER_TRANSITIONS.

    Returns:
        ``target``, so callers can write ``self._state = check_transition(...)``.

    Raises:
        InvalidStateError: If ``target`` is not reachable from ``current``.
    """
    if target not in table.get(current, frozenset()):
        raise InvalidStateError(
            f"Illegal transition {current.value} -> {target.value}",
            state=current,
        )
    return target


def status_flags(
    role: Role,
    connection: ConnectionState,
    listener: ListenerState = ListenerState.INITIALIZED,
) -> Status:
    """Derive the Status bitmask from the lifecycle enums."""
    flags = Status.SERVER if role is Role.SERVER else Status.CLIENT

    if connection is not ConnectionState.INITIALIZED:
        flags |= Status.SOCKET_OPEN
    if connection is ConnectionState.CONNECTED:
        flags |= Status.CONNECTED

    if listener is not ListenerState.INITIALIZED:
        flags |= Status.LISTENER_OPEN
    if listener is ListenerState.LISTENING:
        flags |= Status.LISTENING

    return flags
