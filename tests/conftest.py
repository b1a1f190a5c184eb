"""
pytest configuration and fixtures.
"""

import os
import socket
import threading
from typing import Callable, Generator, List, Optional, Tuple

import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from tcpconn import Connection, Role, Server
from tcpconn.echo import EchoStats, serve_echo


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


@pytest.fixture
def closed_port() -> int:
    """A port with nothing listening on it."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        port = s.getsockname()[1]
    return port


@pytest.fixture
def connected_pair() -> Generator[Tuple[Connection, Connection], None, None]:
    """Two CONNECTED Connections joined by a socketpair (no network)."""
    left_sock, right_sock = socket.socketpair()

    left = Connection(port=0, role=Role.SERVER)
    right = Connection(port=0, role=Role.CLIENT)
    left.attach(left_sock)
    left.mark_connected(("local", 0))
    right.attach(right_sock)
    right.mark_connected(("local", 0))

    yield left, right

    left.release()
    right.release()


@pytest.fixture
def fd_count() -> Callable[[], int]:
    """Counts descriptors open in this process (Linux only)."""
    if not os.path.isdir("/proc/self/fd"):
        pytest.skip("descriptor counting needs /proc/self/fd")
    return lambda: len(os.listdir("/proc/self/fd"))


class EchoServerThread:
    """Echo server that runs serve_echo() in a background thread."""

    def __init__(self, port: int = 0, max_sessions: int = 1):
        self.server = Server(port, "127.0.0.1")
        self.max_sessions = max_sessions
        self.sessions: List[EchoStats] = []
        self.error: Optional[BaseException] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def port(self) -> int:
        return self.server.bound_address[1]

    def start(self) -> "EchoServerThread":
        """Listen in this thread, serve in the background."""
        self.server.bind_and_listen()
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()
        return self

    def _run(self):
        try:
            self.sessions = serve_echo(self.server, max_sessions=self.max_sessions)
        except BaseException as e:
            self.error = e

    def join(self, timeout: float = 5.0) -> List[EchoStats]:
        """Wait for all sessions to finish and return their stats."""
        self._thread.join(timeout)
        assert not self._thread.is_alive(), "echo server did not finish"
        if self.error is not None:
            raise self.error
        return self.sessions

    def stop(self):
        self.server.connection.release()
        self.server.close_listener()


@pytest.fixture
def echo_server_factory():
    """Build EchoServerThreads; every one built is stopped at teardown."""
    built: List[EchoServerThread] = []

    def factory(port: int = 0, max_sessions: int = 1) -> EchoServerThread:
        srv = EchoServerThread(port, max_sessions)
        built.append(srv)
        return srv

    yield factory

    for srv in built:
        srv.stop()


@pytest.fixture
def echo_server() -> Generator[EchoServerThread, None, None]:
    """A listening echo server serving one client."""
    srv = EchoServerThread().start()
    yield srv
    srv.stop()
