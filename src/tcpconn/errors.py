"""
=============================================================================
ERROR TAXONOMY
=============================================================================

Every failure in tcpconn is reported as an exception derived from TCPError.
Nothing in the library calls sys.exit(): the caller decides whether to
retry, log, or abort.

    TCPError
    ├── InvalidStateError         Operation not legal in the current state
    │   ├── NotConnectedError     read/write before a connection exists
    │   ├── NotListeningError     accept before listen
    │   ├── AlreadyConnectedError connect while a socket is already open
    │   └── AlreadyClosedError    close with nothing to close
    │
    └── SocketOperationError      The kernel said no (wraps OSError)
        ├── SocketCreationError   socket()
        ├── BindError             bind()
        ├── ListenError           listen()
        ├── AcceptError           accept()
        ├── ConnectError          connect()
        ├── ReadError             recv()
        └── WriteError            send()

=============================================================================
TWO KINDS OF FAILURE
=============================================================================

STATE ERRORS are programming mistakes caught before any syscall is made.
They never touch a descriptor, so the object stays usable.

OPERATION ERRORS come back from the OS. They carry the errno and the name
of the failed call so a log line says exactly what went wrong:

    BindError: bind to 127.0.0.1:8081 failed: [Errno 98] Address already in use

=============================================================================
"""

import errno as errno_codes
import socket
from typing import Optional


class TCPError(Exception):
    """Base class for every error raised by tcpconn."""


# =============================================================================
# STATE ERRORS
# =============================================================================


class InvalidStateError(TCPError):
    """
    Raised when an operation is not legal in the current lifecycle state.

    Carries the state the object was in so the message explains itself.
    """

    def __init__(self, message: str, state: Optional[object] = None):
        super().__init__(message)
        self.state = state


class NotConnectedError(InvalidStateError):
    """read/write attempted before the connection was established."""


class NotListeningError(InvalidStateError):
    """accept attempted on a server that is not listening."""


class AlreadyConnectedError(InvalidStateError):
    """connect attempted while a socket is already open."""


class AlreadyClosedError(InvalidStateError):
    """close called with no established connection."""


# =============================================================================
# OPERATION ERRORS
# =============================================================================


class SocketOperationError(TCPError):
    """
    An OS-level socket call failed.

    Attributes:
        operation: Name of the failed call ("bind", "connect", ...).
        errno: The OS error number, or None if unavailable.
        address: Address involved in the call, if any.
        port: Port involved in the call, if any.
    """

    def __init__(
        self,
        operation: str,
        cause: Optional[OSError] = None,
        address: Optional[str] = None,
        port: Optional[int] = None,
    ):
        self.operation = operation
        self.errno = cause.errno if cause is not None else None
        self.address = address
        self.port = port

        target = ""
        if port is not None:
            target = f" to {address or '*'}:{port}"
        super().__init__(f"{operation}{target} failed: {cause}")


class SocketCreationError(SocketOperationError):
    pass


class BindError(SocketOperationError):
    pass


class ListenError(SocketOperationError):
    pass


class AcceptError(SocketOperationError):
    pass


class ReadError(SocketOperationError):
    pass


class WriteError(SocketOperationError):
    pass


class ConnectError(SocketOperationError):
    """
    connect() failed.

    The ``reason`` attribute classifies the errno into the handful of
    outcomes a caller actually branches on:

        ECONNREFUSED               → "refused"     (nobody listening)
        ETIMEDOUT / socket.timeout → "timed out"
        ENETUNREACH / EHOSTUNREACH → "unreachable"
        anything else              → "failed"
    """

    _REASONS = {
        errno_codes.ECONNREFUSED: "refused",
        errno_codes.ETIMEDOUT: "timed out",
        errno_codes.ENETUNREACH: "unreachable",
        errno_codes.EHOSTUNREACH: "unreachable",
    }

    def __init__(
        self,
        operation: str,
        cause: Optional[OSError] = None,
        address: Optional[str] = None,
        port: Optional[int] = None,
    ):
        super().__init__(operation, cause, address, port)
        if isinstance(cause, socket.timeout) and self.errno is None:
            self.reason = "timed out"
        else:
            self.reason = self._REASONS.get(self.errno, "failed")
