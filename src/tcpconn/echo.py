"""
=============================================================================
ECHO DEMONSTRATION
=============================================================================

Two small programs that exercise the whole public contract: accept,
connect, read, partial_read, write and close.

    ┌──────────────┐                                   ┌──────────────┐
    │ echo client  │ ── "A" ─────────────────────────► │ echo server  │
    │              │ ◄──────────────────────────── "A" │              │
    │              │ ── "AB" ────────────────────────► │              │
    │              │ ◄─────────────────────────── "AB" │              │
    │              │            ...                    │              │
    │              │ ── "ABC...N" ───────────────────► │              │
    │              │ ◄────────────────────── "ABC...N" │              │
    │   close()    │ ── FIN ─────────────────────────► │ read() → b"" │
    └──────────────┘                                   │   close()    │
                                                       │   accept()...│
                                                       └──────────────┘

The client sends successive prefixes of an alphanumeric string. Because TCP
is a stream, an echo can come back split across several reads, so the
client keeps reading (one blocking read, then a partial_read drain) until
everything it sent in that round is back.

The server serves one client at a time: it echoes until the peer closes,
closes its side, and loops back to accept().

=============================================================================
"""

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from .core.client import Client
from .core.server import Server
from .errors import ReadError, WriteError


logger = logging.getLogger(__name__)


ALNUM = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789"


@dataclass
class EchoStats:
    """
    Byte totals for one echo session.

    For the client, ``sent`` is what it wrote and ``received`` what came
    back. For the server, ``received`` is what it read and ``sent`` what
    it echoed.
    """

    sent: int = 0
    received: int = 0
    peer: Optional[Tuple[str, int]] = None

    def to_dict(self) -> dict:
        return {
            "sent": self.sent,
            "received": self.received,
            "peer": f"{self.peer[0]}:{self.peer[1]}" if self.peer else None,
        }

    def to_text(self) -> str:
        peer = f"{self.peer[0]}:{self.peer[1]}" if self.peer else "-"
        return f"{peer} total {self.received} bytes read, {self.sent} bytes sent"


# =============================================================================
# CLIENT
# =============================================================================


def run_echo_client(
    client: Client,
    count: int = 1,
    payload: str = ALNUM,
    on_echo: Optional[Callable[[bytes], None]] = None,
) -> EchoStats:
    """
    Connect, send ``count`` growing prefixes of ``payload``, read each echo.

    Args:
        client: An unconnected Client.
        count: Number of rounds; capped at len(payload).
        payload: Characters to send prefixes of.
        on_echo: Called with the bytes echoed back in each round.

    Returns:
        EchoStats with the client's totals.

    Raises:
        ConnectError: If the server cannot be reached.
    """
    count = max(0, min(count, len(payload)))
    client.connect()
    stats = EchoStats(peer=(client.address, client.port))

    for i in range(1, count + 1):
        # ─────────────────────────────────────────────────────────────────
        # SEND: the first i characters
        # ─────────────────────────────────────────────────────────────────
        written = client.write_all(payload[:i].encode("ascii"))
        stats.sent += written
        logger.debug(f"{written} bytes written")

        # ─────────────────────────────────────────────────────────────────
        # RECEIVE: block for the first chunk, then drain without blocking
        # ─────────────────────────────────────────────────────────────────
        echoed = b""
        while len(echoed) < written:
            chunk = client.read()
            if not chunk:
                logger.warning(f"Server closed after {len(echoed)}/{written} bytes")
                break
            echoed += chunk

            more = client.partial_read()
            while more:
                echoed += more
                more = client.partial_read()

        stats.received += len(echoed)
        if on_echo is not None:
            on_echo(echoed)

        if len(echoed) < written:
            break

    client.close()
    logger.info(f"total {stats.sent} bytes sent, {stats.received} bytes read")
    return stats


# =============================================================================
# SERVER
# =============================================================================


def serve_echo(
    server: Server,
    max_sessions: Optional[int] = None,
    on_data: Optional[Callable[[bytes], None]] = None,
    on_session: Optional[Callable[[EchoStats], None]] = None,
) -> List[EchoStats]:
    """
    Accept clients one at a time and echo everything they send.

    The server must already be listening.

    Args:
        server: A listening Server.
        max_sessions: Stop after this many clients. None loops forever.
        on_data: Called with every chunk read before it is echoed.
        on_session: Called with each session's totals once it ends.

    Returns:
        One EchoStats per served client.

    Raises:
        NotListeningError: If the server is not listening.
        AcceptError: If accept() fails.
    """
    sessions: List[EchoStats] = []

    while max_sessions is None or len(sessions) < max_sessions:
        conn = server.accept()
        stats = EchoStats(peer=conn.peer_address)

        try:
            data = server.read()
            while data:
                stats.received += len(data)
                if on_data is not None:
                    on_data(data)
                stats.sent += server.write_all(data)
                data = server.read()
        except (ReadError, WriteError) as e:
            # Client vanished mid-session; serve the next one
            logger.warning(f"[{conn.id}] Session ended early: {e}")

        server.close()
        logger.info(stats.to_text())
        sessions.append(stats)
        if on_session is not None:
            on_session(stats)

    return sessions
