"""
=============================================================================
TCP CLIENT
=============================================================================

A client needs only ONE socket: it creates it, connects it to the server,
and then reads and writes on it.

SOCKET LIFECYCLE (Client Side):
────────────────────────────────

    1. socket()     Create the descriptor           INITIALIZED → SOCKET_OPEN
    2. setsockopt   SO_REUSEADDR
    3. connect()    3-way handshake, BLOCKS         SOCKET_OPEN → CONNECTED
    4. read/write   Stream I/O
    5. close()      Release                         → INITIALIZED

If connect() fails the socket from step 1 is released immediately and the
client goes back to INITIALIZED. No half-open state is left behind, so the
same Client can simply try again later.

    client = Client(8081, "127.0.0.1")
    try:
        client.connect()
    except ConnectError as e:
        if e.reason == "refused":
            ...  # Nobody listening yet

=============================================================================
"""

import socket
import logging
from typing import TYPE_CHECKING, Optional, Union

from .connection import BUFSIZE, DEFAULT_ADDRESS, Connection
from .state import ConnectionState, Role, Status
from ..errors import AlreadyConnectedError, ConnectError, SocketCreationError

if TYPE_CHECKING:
    from ..config import ConnectionConfig


logger = logging.getLogger(__name__)


class Client:
    """
    A TCP client.

    The socket is released when the Client is garbage collected, as well
    as by close() and on leaving a with block.

    Usage:
        with Client(8081, "127.0.0.1") as client:
            client.connect()
            client.write_all(b"hello")
            reply = client.read()
    """

    def __init__(
        self,
        port: int,
        address: Optional[str] = DEFAULT_ADDRESS,
        buffer_size: int = BUFSIZE,
        connect_timeout: Optional[float] = None,
    ):
        """
        Initialize the client.

        Args:
            port: Server port.
            address: Server IPv4 address. None means 127.0.0.1.
            buffer_size: Default read size.
            connect_timeout: Seconds to wait for connect(). None blocks
                             until the OS gives up. The socket is back in
                             blocking mode once connected.
        """
        self._port = port
        self._address = DEFAULT_ADDRESS if address is None else address
        self.connect_timeout = connect_timeout

        self.connection = Connection(
            port=port,
            address=self._address,
            role=Role.CLIENT,
            buffer_size=buffer_size,
        )

    @classmethod
    def from_config(cls, config: "ConnectionConfig") -> "Client":
        """Build a client from a ConnectionConfig."""
        return cls(
            config.port,
            config.host,
            buffer_size=config.buffer_size,
            connect_timeout=config.connect_timeout,
        )

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
        return Role.CLIENT

    @property
    def state(self) -> ConnectionState:
        return self.connection.state

    @property
    def status(self) -> Status:
        return self.connection.status

    @property
    def is_connected(self) -> bool:
        return self.connection.is_connected

    @property
    def fileno(self) -> int:
        return self.connection.fileno

    # =========================================================================
    # CONNECT
    # =========================================================================

    def connect(self) -> Connection:
        """
        Open a socket and connect it to (address, port).

        Returns:
            The composed Connection, now CONNECTED.

        Raises:
            AlreadyConnectedError: If a socket is already open.
            SocketCreationError: If socket() fails.
            ConnectError: If the connection cannot be established. The
                ``reason`` attribute says why ("refused", "timed out",
                "unreachable", "failed").
        """
        if self.connection.state is not ConnectionState.INITIALIZED:
            raise AlreadyConnectedError(
                "Cannot connect: a socket is already open",
                self.connection.state,
            )

        # ─────────────────────────────────────────────────────────────────
        # STEP 1: Create the socket, THEN set options on it
        # ─────────────────────────────────────────────────────────────────
        try:
            sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        except OSError as e:
            logger.error(f"Failed to create socket: {e}")
            raise SocketCreationError("socket", e, self._address, self._port) from e

        self.connection.attach(sock)

        # ─────────────────────────────────────────────────────────────────
        # STEP 2: Connect (blocks for the 3-way handshake)
        # ─────────────────────────────────────────────────────────────────
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            if self.connect_timeout is not None:
                sock.settimeout(self.connect_timeout)
            sock.connect((self._address, self._port))
            sock.setblocking(True)
        except OSError as e:
            # Leave nothing half-open behind
            self.connection.release()
            logger.error(f"Failed to connect to {self._address}:{self._port}: {e}")
            raise ConnectError("connect", e, self._address, self._port) from e

        self.connection.mark_connected((self._address, self._port))
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
        Close the connection. The client can connect() again afterwards.

        Raises:
            AlreadyClosedError: If not connected.
        """
        self.connection.close()

    # =========================================================================
    # CONTEXT MANAGER
    # =========================================================================

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.connection.release()
        return False

    def __del__(self):
        # Missing if __init__ raised
        if getattr(self, "connection", None) is not None:
            self.connection.release()

    def __repr__(self) -> str:
        return (
            f"Client(address={self._address!r}, port={self._port}, "
            f"connection={self.connection.state.value})"
        )
