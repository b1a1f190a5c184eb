"""
=============================================================================
TCPCONN - A Small, Strict Wrapper Around TCP Sockets
=============================================================================

tcpconn gives you a Server and a Client that open, bind, listen, accept,
connect, read, write and close TCP sockets, with a lifecycle state machine
that refuses operations which make no sense in the current state.

=============================================================================
PROJECT OVERVIEW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        TCPCONN AT A GLANCE                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   1. LIFECYCLE STATE MACHINE                                        │
    │      - INITIALIZED → SOCKET_OPEN → CONNECTED                        │
    │      - Server listener: INITIALIZED → OPEN → LISTENING              │
    │      - read/write before CONNECTED raises NotConnectedError         │
    │                                                                      │
    │   2. TYPED ERRORS, NEVER EXIT                                       │
    │      - BindError, ListenError, AcceptError, ConnectError, ...       │
    │      - Each carries the failed operation and errno                  │
    │                                                                      │
    │   3. GUARANTEED RELEASE                                             │
    │      - Context managers close every owned descriptor                │
    │      - accept() releases the previous client first                  │
    │                                                                      │
    │   4. RAW STREAM I/O                                                 │
    │      - No framing; short reads and short writes are normal          │
    │      - partial_read() polls once without blocking                   │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    tcpconn/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m tcpconn)
    ├── config.py            # ConnectionConfig dataclass
    ├── errors.py            # Exception hierarchy
    ├── log.py               # setup_logging(), JSONFormatter
    ├── echo.py              # Echo server loop and echo client
    └── core/
        ├── state.py         # Lifecycle enums and transition tables
        ├── connection.py    # Connection (shared data-socket state)
        ├── server.py        # Server
        └── client.py        # Client

=============================================================================
QUICK START
=============================================================================

    from tcpconn import Server, Client

    # Terminal 1
    with Server(8081, "127.0.0.1") as server:
        server.bind_and_listen()
        server.accept()
        server.write_all(server.read())

    # Terminal 2
    with Client(8081, "127.0.0.1") as client:
        client.connect()
        client.write_all(b"hello")
        print(client.read())

=============================================================================
"""

__version__ = "1.0.0"

from .core import (
    ANY,
    BACKLOG,
    BUFSIZE,
    Client,
    Connection,
    ConnectionState,
    ListenerState,
    Role,
    Server,
    Status,
)
from .config import ConnectionConfig
from .errors import (
    AcceptError,
    AlreadyClosedError,
    AlreadyConnectedError,
    BindError,
    ConnectError,
    InvalidStateError,
    ListenError,
    NotConnectedError,
    NotListeningError,
    ReadError,
    SocketCreationError,
    SocketOperationError,
    TCPError,
    WriteError,
)

__all__ = [
    "Server",
    "Client",
    "Connection",
    "ConnectionConfig",
    "ConnectionState",
    "ListenerState",
    "Role",
    "Status",
    "ANY",
    "BACKLOG",
    "BUFSIZE",
    "TCPError",
    "InvalidStateError",
    "NotConnectedError",
    "NotListeningError",
    "AlreadyConnectedError",
    "AlreadyClosedError",
    "SocketOperationError",
    "SocketCreationError",
    "BindError",
    "ListenError",
    "AcceptError",
    "ConnectError",
    "ReadError",
    "WriteError",
    "__version__",
]
