"""
=============================================================================
CONNECTION CONFIGURATION
=============================================================================

Centralized settings for the echo server and client.

The socket layer itself only needs a port and an address; everything else
here (backlog, buffer size, connect timeout, logging) has a sensible default
and exists so the CLI and the environment can tune it.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── python -m tcpconn server --port 9000                      │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── TCP_PORT=9000 python -m tcpconn server                    │
    │                                                                      │
    │   3. Default values (in this dataclass)                            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

import os
import ipaddress
from dataclasses import dataclass
from typing import Optional

from .core.connection import ANY, BUFSIZE
from .core.server import BACKLOG


@dataclass
class ConnectionConfig:
    """
    Configuration for a Server or Client.

    Development:
        ConnectionConfig(host="127.0.0.1", port=8081, log_level="DEBUG")

    Accept from every interface:
        ConnectionConfig(host="", port=8081)
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """
    IPv4 address to bind (server) or connect to (client).
    "" or "0.0.0.0" binds every interface (servers only).
    """

    port: int = 8081
    """Port number. 0 lets the OS pick one for a server."""

    backlog: int = BACKLOG
    """Pending connections queued by the OS before it refuses new ones."""

    buffer_size: int = BUFSIZE
    """Bytes requested per read."""

    connect_timeout: Optional[float] = None
    """
    Seconds a client waits for connect().
    None = block until the OS gives up.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """Logging level (DEBUG, INFO, WARNING, ERROR)."""

    log_format: str = "text"
    """'text' for humans, 'json' for log aggregators."""

    @classmethod
    def from_env(cls) -> "ConnectionConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        TCP_HOST             Address (default: 127.0.0.1)
        TCP_PORT             Port (default: 8081)
        TCP_BACKLOG          Listen backlog (default: 50)
        TCP_BUFFER_SIZE      Read size in bytes (default: 2880)
        TCP_CONNECT_TIMEOUT  Client connect timeout in seconds (default: none)
        TCP_LOG_LEVEL        Logging level (default: INFO)
        TCP_LOG_FORMAT       text or json (default: text)

        =====================================================================
        """
        timeout = os.getenv("TCP_CONNECT_TIMEOUT")
        return cls(
            host=os.getenv("TCP_HOST", "127.0.0.1"),
            port=int(os.getenv("TCP_PORT", "8081")),
            backlog=int(os.getenv("TCP_BACKLOG", str(BACKLOG))),
            buffer_size=int(os.getenv("TCP_BUFFER_SIZE", str(BUFSIZE))),
            connect_timeout=float(timeout) if timeout else None,
            log_level=os.getenv("TCP_LOG_LEVEL", "INFO"),
            log_format=os.getenv("TCP_LOG_FORMAT", "text"),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Fail fast at startup rather than on the first socket call.

        Raises:
            ValueError: On the first invalid setting.
        """
        if not 0 <= self.port <= 65535:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.host != ANY:
            try:
                ipaddress.IPv4Address(self.host)
            except ValueError:
                raise ValueError(f"Invalid IPv4 address: {self.host!r}")

        if self.backlog < 0:
            raise ValueError("backlog must be >= 0")

        if self.buffer_size < 1:
            raise ValueError("buffer_size must be >= 1")

        if self.connect_timeout is not None and self.connect_timeout <= 0:
            raise ValueError("connect_timeout must be > 0")

        if self.log_format not in ("text", "json"):
            raise ValueError(f"log_format must be 'text' or 'json', not {self.log_format!r}")
