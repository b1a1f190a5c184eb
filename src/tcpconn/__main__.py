"""
=============================================================================
TCPCONN CLI ENTRY POINT
=============================================================================

Runs the echo demonstration from the command line.

=============================================================================
USAGE
=============================================================================

    # Terminal 1: echo server on 127.0.0.1:8081, serves clients forever
    python -m tcpconn server

    # Terminal 2: send "A", "AB", "ABC", ... "ABCDEFGHIJ"
    python -m tcpconn client --count 10

    # Listen on every interface, stop after 3 clients
    python -m tcpconn server --host "" --max-sessions 3

    # Settings can also come from the environment
    TCP_PORT=9000 TCP_LOG_LEVEL=DEBUG python -m tcpconn server

=============================================================================
"""

import argparse
import sys
from typing import List, Optional

from . import __version__
from .config import ConnectionConfig
from .core import Client, Server
from .echo import run_echo_client, serve_echo
from .errors import TCPError
from .log import setup_logging


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with ``server`` and ``client`` commands."""
    parser = argparse.ArgumentParser(
        prog="tcpconn",
        description="TCP echo server and client",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m tcpconn server                   # Echo server on 127.0.0.1:8081
  python -m tcpconn client --count 10        # Send 10 growing prefixes
  python -m tcpconn server --host ""         # Listen on all interfaces
        """,
    )

    # ─────────────────────────────────────────────────────────────────────
    # SHARED ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────
    # Defaults are None so unset flags fall back to the environment

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--host", "-H",
        default=None,
        help='Address to bind/connect (default: 127.0.0.1, "" for all interfaces)',
    )
    common.add_argument(
        "--port", "-p",
        type=int,
        default=None,
        help="Port (default: 8081)",
    )
    common.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: INFO)",
    )
    common.add_argument(
        "--log-format",
        choices=["text", "json"],
        default=None,
        help="Log output format (default: text)",
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"tcpconn {__version__}",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    # ─────────────────────────────────────────────────────────────────────
    # SERVER
    # ─────────────────────────────────────────────────────────────────────
    server_cmd = commands.add_parser("server", parents=[common], help="Run the echo server")
    server_cmd.add_argument(
        "--max-sessions", "-n",
        type=int,
        default=None,
        help="Exit after serving this many clients (default: run forever)",
    )

    # ─────────────────────────────────────────────────────────────────────
    # CLIENT
    # ─────────────────────────────────────────────────────────────────────
    client_cmd = commands.add_parser("client", parents=[common], help="Run the echo client")
    client_cmd.add_argument(
        "--count", "-c",
        type=int,
        default=1,
        help="Number of prefixes to send, 1-62 (default: 1)",
    )

    return parser


def load_config(args: argparse.Namespace) -> ConnectionConfig:
    """Environment first, then any flags given on the command line."""
    config = ConnectionConfig.from_env()
    if args.host is not None:
        config.host = args.host
    if args.port is not None:
        config.port = args.port
    if args.log_level is not None:
        config.log_level = args.log_level
    if args.log_format is not None:
        config.log_format = args.log_format
    config.validate()
    return config


def run_server(config: ConnectionConfig, max_sessions: Optional[int]) -> int:
    def show(data: bytes) -> None:
        print(data.decode("ascii", errors="replace"))

    def summary(stats) -> None:
        print(f"total {stats.received} bytes read.")

    with Server.from_config(config) as server:
        server.bind_and_listen(config.backlog)
        try:
            serve_echo(server, max_sessions=max_sessions, on_data=show, on_session=summary)
        except KeyboardInterrupt:
            pass  # Ctrl+C
    return 0


def run_client(config: ConnectionConfig, count: int) -> int:
    def show(data: bytes) -> None:
        print(data.decode("ascii", errors="replace"))

    with Client.from_config(config) as client:
        stats = run_echo_client(client, count=count, on_echo=show)

    print(f"total {stats.sent} bytes sent.")
    print(f"total {stats.received} bytes read.")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Returns:
        Process exit status. Library errors are printed to stderr and
        turned into status 1 here; the library itself never exits.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args)
    except ValueError as e:
        parser.error(str(e))

    setup_logging(config.log_level, config.log_format)

    try:
        if args.command == "server":
            return run_server(config, args.max_sessions)
        return run_client(config, args.count)
    except TCPError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


# =============================================================================
# ENTRY POINT
# =============================================================================

if __name__ == "__main__":
    sys.exit(main())
