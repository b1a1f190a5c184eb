"""
=============================================================================
CORE COMPONENTS
=============================================================================

The socket layer of tcpconn. Three public types, one shared state object:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                             SERVER                                   │
    │  ─────────────────────────────────────────────────────────────────  │
    │  • Owns the listening socket (open → listen)                        │
    │  • accept() swaps in a new client, releasing the old one first     │
    │  • Serves exactly one client at a time                              │
    └─────────────────────────────────────────────────────────────────────┘
                                    │ composes
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │                           CONNECTION                                 │
    │  ─────────────────────────────────────────────────────────────────  │
    │  • Owns the data socket                                             │
    │  • Lifecycle: INITIALIZED → SOCKET_OPEN → CONNECTED                 │
    │  • read / write / partial_read / close                              │
    └─────────────────────────────────────────────────────────────────────┘
                                    ▲ composes
                                    │
    ┌─────────────────────────────────────────────────────────────────────┐
    │                             CLIENT                                   │
    │  ─────────────────────────────────────────────────────────────────  │
    │  • connect() creates and connects the data socket                   │
    │  • Failed connect leaves nothing open                               │
    └─────────────────────────────────────────────────────────────────────┘

Server and Client do not share a base class. Each HOLDS a Connection and
forwards its I/O calls to it.

=============================================================================
"""

from .connection import ANY, BUFSIZE, DEFAULT_ADDRESS, Connection
from .server import BACKLOG, Server
from .client import Client
from .state import ConnectionState, ListenerState, Role, Status

__all__ = [
    "Server",           # Listening socket + one client at a time
    "Client",           # Connects to a server
    "Connection",       # Shared data-socket state
    "ConnectionState",  # INITIALIZED / SOCKET_OPEN / CONNECTED
    "ListenerState",    # INITIALIZED / OPEN / LISTENING
    "Role",             # SERVER / CLIENT
    "Status",           # Bitmask view of the state
    "ANY",
    "BACKLOG",
    "BUFSIZE",
    "DEFAULT_ADDRESS",
]
