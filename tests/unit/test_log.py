"""
Unit tests for logging setup.
"""

import json
import logging

from tcpconn.log import JSONFormatter, setup_logging


def make_record(message: str, level: int = logging.INFO) -> logging.LogRecord:
    return logging.LogRecord(
        name="tcpconn.core.server",
        level=level,
        pathname=__file__,
        lineno=1,
        msg=message,
        args=(),
        exc_info=None,
    )


class TestJSONFormatter:

    def test_one_object_per_record(self):
        line = JSONFormatter().format(make_record("Server listening on 127.0.0.1:8081"))
        entry = json.loads(line)

        assert entry["level"] == "INFO"
        assert entry["logger"] == "tcpconn.core.server"
        assert entry["message"] == "Server listening on 127.0.0.1:8081"
        assert "timestamp" in entry

    def test_includes_exception(self):
        try:
            raise ValueError("bad")
        except ValueError:
            import sys
            record = make_record("failed", logging.ERROR)
            record.exc_info = sys.exc_info()

        entry = json.loads(JSONFormatter().format(record))
        assert "ValueError: bad" in entry["exception"]


class TestSetupLogging:

    def test_sets_package_level(self):
        package_logger = setup_logging("DEBUG", "json")

        assert package_logger.name == "tcpconn"
        assert package_logger.level == logging.DEBUG

        setup_logging("WARNING")
        assert logging.getLogger("tcpconn").level == logging.WARNING

    def test_unknown_level_falls_back_to_info(self):
        assert setup_logging("CHATTY").level == logging.INFO
