"""
=============================================================================
LOGGING SETUP
=============================================================================

Every module logs through a namespaced logger:

    logger = logging.getLogger(__name__)    # e.g. "tcpconn.core.server"

so the whole package can be tuned from one place:

    logging.getLogger("tcpconn").setLevel(logging.DEBUG)

The library never configures handlers on import. Applications (and the
CLI) call setup_logging() once at startup.

=============================================================================
LOG FORMATS
=============================================================================

    TEXT (default):
    ┌─────────────────────────────────────────────────────────────────────┐
    │ 2026-01-01 12:00:00 [INFO] tcpconn.core.server: Server listening on │
    │ 127.0.0.1:8081                                                      │
    └─────────────────────────────────────────────────────────────────────┘

    JSON (one object per line, for log aggregators):
    ┌─────────────────────────────────────────────────────────────────────┐
    │ {"timestamp": "...", "level": "INFO", "logger": "tcpconn.core...",  │
    │  "message": "Server listening on 127.0.0.1:8081"}                   │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

import json
import logging
from typing import Optional


TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class JSONFormatter(logging.Formatter):
    """Render each record as a single JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": self.formatTime(record, DATE_FORMAT),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def setup_logging(
    level: str = "INFO",
    log_format: str = "text",
    handler: Optional[logging.Handler] = None,
) -> logging.Logger:
    """
    Configure the ``tcpconn`` logger.

    Args:
        level: Level name (DEBUG, INFO, WARNING, ERROR).
        log_format: "text" or "json".
        handler: Where to send records. Defaults to stderr.

    Returns:
        The configured ``tcpconn`` logger.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    if handler is None:
        handler = logging.StreamHandler()

    if log_format == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT, datefmt=DATE_FORMAT))

    # Configure root logger (no-op if the application already did)
    logging.basicConfig(level=numeric_level, handlers=[handler])

    # Set tcpconn logger level
    package_logger = logging.getLogger("tcpconn")
    package_logger.setLevel(numeric_level)
    return package_logger
