"""
=============================================================================
CONNECTION: THE SHARED DATA-SOCKET STATE
=============================================================================

Both ends of a TCP conversation end up holding the same thing: one
connected socket they read from and write to. Connection is that thing.
Server and Client each own one and hand their I/O calls straight to it.

=============================================================================
TCP IS A BYTE STREAM, NOT A MESSAGE PROTOCOL!
=============================================================================

TCP guarantees that bytes arrive IN ORDER and INTACT. It does NOT
guarantee that they arrive in the same chunks they were sent in.

    Peer sends:
        write(b"Hello")
        write(b"World")

    We might read ANY of these:
        read() → b"HelloWorld"     (both combined)
        read() → b"Hel"            (partial)
        read() → b"loWorld"        (rest of first + second)

This layer imposes no framing. read() returns whatever the kernel has,
write() reports how much the kernel took. Callers that need an exact
count loop (or use write_all()).

=============================================================================
BLOCKING VS NON-BLOCKING READS
=============================================================================

    ┌─────────────────────────────────────────────────────────────────┐
    │  read()            BLOCKS until ≥1 byte arrives or peer closes  │
    │                    → bytes (b"" means the peer closed)          │
    │                                                                  │
    │  partial_read()    Flips the socket to non-blocking, tries ONE  │
    │                    recv(), flips it back.                        │
    │                    → bytes, b"" on close, None if nothing ready │
    └─────────────────────────────────────────────────────────────────┘

A typical pattern is one blocking read() to wait for the reply, then
partial_read() in a loop to drain whatever else is already buffered
without stalling:

    data = conn.read()
    more = conn.partial_read()
    while more:
        data += more
        more = conn.partial_read()

=============================================================================
"""

import socket
import logging
import uuid
from dataclasses import dataclass, field
from typing import Optional, Tuple, Union

from .state import (
    CONNECTION_TRANSITIONS,
    ConnectionState,
    Role,
    Status,
    check_transition,
    status_flags,
)
from ..errors import (
    AlreadyClosedError,
    InvalidStateError,
    NotConnectedError,
    ReadError,
    WriteError,
)


logger = logging.getLogger(__name__)


BUFSIZE = 2880
"""Default number of bytes requested per read."""

DEFAULT_ADDRESS = "127.0.0.1"

ANY = ""
"""Bind to every local interface (INADDR_ANY)."""


@dataclass
class Connection:
    """
    State of one data socket.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    Connection Responsibilities                       │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │  1. OWNERSHIP                                                        │
    │     └── Exactly one socket at a time, never shared                   │
    │     └── Released on close(), release() or leaving a with-block       │
    │                                                                      │
    │  2. STATE GUARDS                                                     │
    │     └── read/write only when CONNECTED                               │
    │     └── Checked BEFORE any syscall                                   │
    │                                                                      │
    │  3. STREAM I/O                                                       │
    │     └── Blocking read/write with short-read/short-write semantics    │
    │     └── One-shot non-blocking partial_read                           │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

    Attributes:
        port: Port number this endpoint was constructed with.
        address: IPv4 address string (or ANY for a server).
        role: Role.SERVER or Role.CLIENT.
        buffer_size: Default read size in bytes.
        id: Short identifier used in log lines.
        peer_address: (ip, port) of the remote end while connected.
    """

    port: int
    address: str = DEFAULT_ADDRESS
    role: Role = Role.CLIENT
    buffer_size: int = BUFSIZE

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    peer_address: Optional[Tuple[str, int]] = None

    _socket: Optional[socket.socket] = field(default=None, repr=False)
    _state: ConnectionState = field(default=ConnectionState.INITIALIZED, repr=False)

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def status(self) -> Status:
        """Bitmask view of the current state."""
        return status_flags(self.role, self._state)

    @property
    def is_connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED

    @property
    def fileno(self) -> int:
        """The socket descriptor, or -1 if no socket is open."""
        if self._socket is None:
            return -1
        return self._socket.fileno()

    # =========================================================================
    # LIFECYCLE: driven by Server.accept() and Client.connect()
    # =========================================================================

    def attach(self, sock: socket.socket) -> None:
        """
        Take ownership of a freshly created socket.

        Moves INITIALIZED → SOCKET_OPEN. The socket is always put in
        blocking mode; partial_read() is the only place that changes it.
        """
        self._state = check_transition(
            self._state, ConnectionState.SOCKET_OPEN, CONNECTION_TRANSITIONS
        )
        sock.setblocking(True)
        self._socket = sock

    def mark_connected(self, peer: Optional[Tuple[str, int]] = None) -> None:
        """Record that the socket now has a peer. SOCKET_OPEN → CONNECTED."""
        self._state = check_transition(
            self._state, ConnectionState.CONNECTED, CONNECTION_TRANSITIONS
        )
        self.peer_address = peer
        logger.debug(f"[{self.id}] Connected to {self._format_peer()}")

    def release(self) -> bool:
        """
        Close the socket if one is open. Never raises.

        This is the guaranteed-cleanup path used by context managers,
        by Server.accept() before replacing the data socket, and by
        Client.connect() when the connect fails.

        Returns:
            True if a socket was released, False if there was nothing to do.
        """
        if self._socket is None:
            self._state = ConnectionState.INITIALIZED
            return False

        sock, self._socket = self._socket, None

        try:
            # Send FIN so the peer sees EOF even if a dup of the fd survives
            sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass  # Peer already gone or never connected

        try:
            sock.close()
        except OSError:
            pass

        logger.debug(f"[{self.id}] Released socket ({self._format_peer()})")
        self._state = ConnectionState.INITIALIZED
        self.peer_address = None
        return True

    def close(self) -> None:
        """
        Close the data socket.

        Clears exactly the socket-open and connected state; nothing else
        about the endpoint changes.

        Raises:
            AlreadyClosedError: If no connection was established. A second
                close() lands here instead of releasing anything twice.
        """
        if self._state is ConnectionState.INITIALIZED:
            logger.debug(f"[{self.id}] close() with nothing open")
            raise AlreadyClosedError("Connection is not established", self._state)
        self.release()

    # =========================================================================
    # BLOCKING MODE
    # =========================================================================

    def set_nonblocking(self) -> None:
        """Put the active socket in non-blocking mode. Idempotent."""
        self._require_socket("set_nonblocking").setblocking(False)

    def set_blocking(self) -> None:
        """Put the active socket back in blocking mode. Idempotent."""
        self._require_socket("set_blocking").setblocking(True)

    # =========================================================================
    # READING
    # =========================================================================

    def read(self, max_bytes: Optional[int] = None) -> bytes:
        """
        Receive up to ``max_bytes`` bytes, blocking until some arrive.

        Args:
            max_bytes: Upper bound on the bytes returned. Defaults to
                       buffer_size.

        Returns:
            The received bytes. ``b""`` means the peer closed its side.

        Raises:
            NotConnectedError: If not connected. No syscall is made.
            ReadError: If the OS reports an error.
        """
        sock = self._require_connected("read")
        try:
            return sock.recv(max_bytes or self.buffer_size)
        except OSError as e:
            raise self._read_error(e) from e

    def read_into(
        self,
        buffer: Union[bytearray, memoryview],
        max_bytes: int = 0,
    ) -> int:
        """
        Receive into a writable buffer, blocking until some bytes arrive.

        Args:
            buffer: Destination buffer.
            max_bytes: Upper bound on bytes read; 0 means len(buffer).

        Returns:
            Number of bytes written into ``buffer``. 0 means the peer closed.
        """
        sock = self._require_connected("read_into")
        try:
            return sock.recv_into(buffer, max_bytes)
        except OSError as e:
            raise self._read_error(e) from e

    def partial_read(self, max_bytes: Optional[int] = None) -> Optional[bytes]:
        """
        Try one read without blocking.

        The socket is switched to non-blocking mode for exactly one recv()
        and switched back afterwards, whatever happens.

        Returns:
            bytes if data was waiting, ``b""`` if the peer closed, or
            None if nothing was available right now.

        Raises:
            NotConnectedError: If not connected.
            ReadError: If the OS reports an error other than would-block.
        """
        sock = self._require_connected("partial_read")
        sock.setblocking(False)
        try:
            return sock.recv(max_bytes or self.buffer_size)
        except BlockingIOError:
            return None
        except OSError as e:
            raise self._read_error(e) from e
        finally:
            sock.setblocking(True)

    # =========================================================================
    # WRITING
    # =========================================================================

    def write(self, data: bytes) -> int:
        """
        Send bytes, blocking until the kernel accepts at least some.

        This may be a SHORT WRITE: the return value can be less than
        len(data). That is stream-socket behavior, not an error. Use
        write_all() if every byte must go out.

        Returns:
            Number of bytes the kernel accepted.

        Raises:
            NotConnectedError: If not connected. No syscall is made.
            WriteError: If the OS reports an error (e.g. broken pipe).
        """
        sock = self._require_connected("write")
        try:
            return sock.send(data)
        except OSError as e:
            raise self._write_error(e) from e

    def write_all(self, data: bytes) -> int:
        """
        Send every byte of ``data``, looping over short writes.

        Returns:
            len(data).
        """
        view = memoryview(data)
        total = 0
        while total < len(view):
            total += self.write(view[total:])
        return total

    # =========================================================================
    # GUARDS AND HELPERS
    # =========================================================================

    def _require_connected(self, operation: str) -> socket.socket:
        if self._state is not ConnectionState.CONNECTED or self._socket is None:
            logger.debug(f"[{self.id}] {operation}() while {self._state.value}")
            raise NotConnectedError(
                f"Cannot {operation}: connection is not established",
                self._state,
            )
        return self._socket

    def _require_socket(self, operation: str) -> socket.socket:
        if self._socket is None:
            raise InvalidStateError(f"Cannot {operation}: no socket is open", self._state)
        return self._socket

    def _read_error(self, cause: OSError) -> ReadError:
        logger.error(f"[{self.id}] Read from {self._format_peer()} failed: {cause}")
        return ReadError("recv", cause, self.address, self.port)

    def _write_error(self, cause: OSError) -> WriteError:
        logger.error(f"[{self.id}] Write to {self._format_peer()} failed: {cause}")
        return WriteError("send", cause, self.address, self.port)

    def _format_peer(self) -> str:
        if self.peer_address is None:
            return "no peer"
        return f"{self.peer_address[0]}:{self.peer_address[1]}"

    # =========================================================================
    # CONTEXT MANAGER: guaranteed release on every exit path
    # =========================================================================

    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()
        return False  # Don't suppress exceptions
