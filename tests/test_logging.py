import logging

import pytest
import structlog

from redisq.logging import debug_enabled, setup_logging


@pytest.mark.parametrize(
    ("value", "expected"),
    [("1", True), ("true", True), ("yes", True), ("0", False), ("false", False), ("", False)],
)
def test_debug_enabled_reads_environment(monkeypatch, value, expected):
    monkeypatch.setenv("REDISQ_DEBUG", value)

    assert debug_enabled() is expected


def test_setup_logging_sets_package_level(monkeypatch):
    logger = logging.getLogger("redisq")
    previous = logger.level
    try:
        monkeypatch.setenv("REDISQ_DEBUG", "1")
        setup_logging()
        assert logger.level == logging.DEBUG

        setup_logging(debug=False)
        assert logger.level == logging.WARNING
    finally:
        logger.setLevel(previous)


def test_setup_logging_configures_structlog_processors():
    setup_logging(debug=False)

    processors = structlog.get_config()["processors"]

    assert processors[0] is structlog.contextvars.merge_contextvars
    assert structlog.stdlib.add_log_level in processors
    assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)
