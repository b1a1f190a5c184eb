"""
=============================================================================
TCP SERVER
=============================================================================

Server owns TWO sockets:

                    ┌───────────────────────┐
                    │   Listening Socket    │ ◄── Created once by open()
                    │   (listener)          │     Bound to ADDRESS:PORT
                    └───────────┬───────────┘     Never sends/receives data
                                │
                                │ accept()
                                ▼
                    ┌───────────────────────┐
                    │   Data Socket         │ ◄── One per client, held in
                    │   (self.connection)   │     the composed Connection
                    └───────────────────────┘     Replaced on every accept()

SOCKET LIFECYCLE (Server Side):
────────────────────────────────

    1. socket()    Create the listening descriptor       ┐
    2. setsockopt  SO_REUSEADDR                          ├─ open()
    3. bind()      Reserve ADDRESS:PORT                  ┘
    4. listen()    Start queueing connections (backlog)  ── listen()
    5. accept()    BLOCK until a client connects         ── accept()
                   └─ Returns a NEW socket for that client
    6. close()     Release the client's data socket      ── close()
                   └─ Listener keeps listening; loop back to 5

One client is served at a time. accept() releases the previous data socket
before waiting for the next one, so calling accept() in a loop never leaks
descriptors even if the caller forgot to close().

=============================================================================
SO_REUSEADDR
=============================================================================

After a server stops, TCP keeps its port in TIME_WAIT for up to a couple of
minutes to catch delayed packets. Without SO_REUSEADDR a restart during
that window fails with "Address already in use".

    server.close_listener()
    server.open()  # Works immediately with SO_REUSEADDR

=============================================================================
"""

import socket
import logging
from typing import TYPE_CHECKING, Optional, Tuple, Union

from .connection import BUFSIZE, DEFAULT_ADDRESS, Connection
from .state import (
    LISTENER_TRANSITIONS,
    ConnectionState,
    ListenerState,
    Role,
    Status,
    check_transition,
    status_flags,
)
from ..errors import (
    AcceptError,
    BindError,
    ListenError,
    NotListeningError,
    SocketCreationError,
)

if TYPE_CHECKING:
    from ..config import ConnectionConfig


logger = logging.getLogger(__name__)


BACKLOG = 50
"""Pending connections the OS queues before refusing new ones."""


class Server:
    """
    A TCP server that serves one client at a time.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         Server Internals                            │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │    __init__()        Store port/address, nothing opened yet          │
    │        │                                                             │
    │    bind_and_listen()                                                 │
    │        ├──► open()       socket() + SO_REUSEADDR + bind()            │
    │        └──► listen()     listen(backlog)                             │
    │                                                                      │
    │    accept()          Release old data socket, block for a client     │
    │        └──► self.connection is CONNECTED                             │
    │                                                                      │
    │    read()/write()/partial_read()/close()                             │
    │        └──► delegated to self.connection                             │
    │                                                                      │
    │    close_listener()  Release the listening socket                    │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

    Both sockets are also released when the Server is garbage collected.

    Usage:
        with Server(8081, "127.0.0.1") as server:
            server.bind_and_listen()
            while True:
                server.accept()
                data = server.read()
                while data:
                    server.write_all(data)
                    data = server.read()
                server.close()
    """

    def __init__(
        self,
        port: int,
        address: Optional[str] = DEFAULT_ADDRESS,
        buffer_size: int = BUFSIZE,
    ):
        """
        Initialize the server.

        Args:
            port: Port to bind. 0 lets the OS pick one (see bound_address).
            address: IPv4 address to bind. None means 127.0.0.1;
                     ANY ("") binds every interface.
            buffer_size: Default read size for the data socket.

        Note: This does NOT create any socket. Call open()/listen() or
              bind_and_listen().
        """
        self._port = port
        self._address = DEFAULT_ADDRESS if address is None else address
        self._listener: Optional[socket.socket] = None
        self._listener_state = ListenerState.INITIALIZED

        self.connection = Connection(
            port=port,
            address=self._address,
            role=Role.SERVER,
            buffer_size=buffer_size,
        )

    @classmethod
    def from_config(cls, config: "ConnectionConfig") -> "Server":
        """Build a server from a ConnectionConfig."""
        return cls(config.port, config.host, buffer_size=config.buffer_size)

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def port(self) -> int:
        return self._port

    @property
    def address(self) -> str:
        return self._address

    @property
    def role(self) -> Role:
        return Role.SERVER

    @property
    def listener_state(self) -> ListenerState:
        return self._listener_state

    @property
    def state(self) -> ConnectionState:
        """State of the current data socket."""
        return self.connection.state

    @property
    def status(self) -> Status:
        return status_flags(Role.SERVER, self.connection.state, self._listener_state)

    @property
    def is_listening(self) -> bool:
        return self._listener_state is ListenerState.LISTENING

    @property
    def is_connected(self) -> bool:
        return self.connection.is_connected

    @property
    def fileno(self) -> int:
        """Descriptor of the current data socket, or -1."""
        return self.connection.fileno

    @property
    def listener_fileno(self) -> int:
        """Descriptor of the listening socket, or -1."""
        if self._listener is None:
            return -1
        return self._listener.fileno()

    @property
    def bound_address(self) -> Tuple[str, int]:
        """
        The (ip, port) the listener is bound to.

        Differs from (address, port) when port 0 was requested.
        """
        if self._listener is None:
            return (self._address, self._port)
        return self._listener.getsockname()

    # =========================================================================
    # LISTENING SOCKET
    # =========================================================================

    def open(self) -> None:
        """
        Create the listening socket and bind it.

        INITIALIZED → OPEN. If bind fails the half-made socket is closed
        and the server stays INITIALIZED, so open() can be retried.

        Raises:
            InvalidStateError: If the listener is already open.
            SocketCreationError: If socket() fails.
            BindError: If setsockopt() or bind() fails.
        """
        target = check_transition(
            self._listener_state, ListenerState.OPEN, LISTENER_TRANSITIONS
        )

        try:
            sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        except OSError as e:
            logger.error(f"Failed to create listening socket: {e}")
            raise SocketCreationError("socket", e, self._address, self._port) from e

        try:
            # ─────────────────────────────────────────────────────────────
            # SO_REUSEADDR before bind(), or a restart inside TIME_WAIT fails
            # ─────────────────────────────────────────────────────────────
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

            # ─────────────────────────────────────────────────────────────
            # BIND: "" means INADDR_ANY
            # ─────────────────────────────────────────────────────────────
            sock.bind((self._address, self._port))
        except OSError as e:
            sock.close()
            logger.error(f"Failed to bind to {self._address or '*'}:{self._port}: {e}")
            raise BindError("bind", e, self._address, self._port) from e

        self._listener = sock
        self._listener_state = target
        logger.debug(f"Listener bound to {self._format_bound()}")

    def listen(self, backlog: int = BACKLOG) -> None:
        """
        Start listening for connections. OPEN → LISTENING.

        Args:
            backlog: How many pending connections the OS queues.

        Raises:
            InvalidStateError: If the listener is not OPEN.
            ListenError: If listen() fails.
        """
        target = check_transition(
            self._listener_state, ListenerState.LISTENING, LISTENER_TRANSITIONS
        )

        try:
            self._listener.listen(backlog)
        except OSError as e:
            logger.error(f"Failed to listen on {self._format_bound()}: {e}")
            raise ListenError("listen", e, self._address, self._port) from e

        self._listener_state = target
        logger.info(f"Server listening on {self._format_bound()}")

    def bind_and_listen(self, backlog: int = BACKLOG) -> None:
        """
        open() then listen().

        If listen() fails the listener is released again.
        """
        self.open()
        try:
            self.listen(backlog)
        except ListenError:
            self.close_listener()
            raise

    def close_listener(self) -> bool:
        """
        Release the listening socket. Safe to call more than once.

        Returns:
            True if a socket was released.
        """
        if self._listener is None:
            return False

        sock, self._listener = self._listener, None
        try:
            sock.close()
        except OSError:
            pass  # Already closed

        self._listener_state = ListenerState.INITIALIZED
        logger.info(f"Listener on {self._address or '*'}:{self._port} closed")
        return True

    # =========================================================================
    # ACCEPT
    # =========================================================================

    def accept(self) -> Connection:
        """
        Wait for a client and make it the current data socket.

        ┌─────────────────────────────────────────────────────────────────┐
        │                        accept() Flow                             │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │   Listening?  ── no ──► NotListeningError                        │
        │       │                                                          │
        │   Previous data socket open? ── yes ──► release it               │
        │       │                                                          │
        │   accept()  BLOCKS until a client connects                       │
        │       │                                                          │
        │   Connection: INITIALIZED → SOCKET_OPEN → CONNECTED              │
        │                                                                  │
        └─────────────────────────────────────────────────────────────────┘

        Returns:
            The composed Connection, now CONNECTED to the new client.

        Raises:
            NotListeningError: If listen() has not succeeded.
            AcceptError: If accept() fails.
        """
        if self._listener_state is not ListenerState.LISTENING:
            raise NotListeningError(
                "Cannot accept: server is not listening",
                self._listener_state,
            )

        if self.connection.release():
            logger.debug(f"[{self.connection.id}] Released previous client before accept")

        try:
            client_socket, client_address = self._listener.accept()
        except OSError as e:
            logger.error(f"Accept error on {self._format_bound()}: {e}")
            raise AcceptError("accept", e, self._address, self._port) from e

        logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")

        self.connection.attach(client_socket)
        self.connection.mark_connected(client_address)
        return self.connection

    # =========================================================================
    # DATA SOCKET I/O (delegated)
    # =========================================================================

    def read(self, max_bytes: Optional[int] = None) -> bytes:
        return self.connection.read(max_bytes)

    def read_into(self, buffer: Union[bytearray, memoryview], max_bytes: int = 0) -> int:
        return self.connection.read_into(buffer, max_bytes)

    def partial_read(self, max_bytes: Optional[int] = None) -> Optional[bytes]:
        return self.connection.partial_read(max_bytes)

    def write(self, data: bytes) -> int:
        return self.connection.write(data)

    def write_all(self, data: bytes) -> int:
        return self.connection.write_all(data)

    def set_blocking(self) -> None:
        self.connection.set_blocking()

    def set_nonblocking(self) -> None:
        self.connection.set_nonblocking()

    def close(self) -> None:
        """
        Close the current client's data socket. The listener stays open.

        Raises:
            AlreadyClosedError: If no client is connected.
        """
        self.connection.close()

    def _format_bound(self) -> str:
        host, port = self.bound_address
        return f"{host or '*'}:{port}"

    # =========================================================================
    # CONTEXT MANAGER
    # =========================================================================

    def __enter__(self) -> "Server":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Release the data socket and the listener."""
        self.connection.release()
        self.close_listener()
        return False

    def __del__(self):
        # Missing if __init__ raised
        if getattr(self, "connection", None) is not None:
            self.connection.release()
        if getattr(self, "_listener", None) is not None:
            self.close_listener()

    def __repr__(self) -> str:
        return (
            f"Server(address={self._address!r}, port={self._port}, "
            f"listener={self._listener_state.value}, "
            f"connection={self.connection.state.value})"
        )
