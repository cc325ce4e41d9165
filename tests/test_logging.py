"""Tests for logging utilities."""

import logging
from io import StringIO

import pytest

from questkit import EngineConfig, Session
from questkit.errors import InvalidTransaction
from questkit.logging import (
    configure_logging,
    get_logger,
    set_log_level,
)


@pytest.fixture
def captured():
    stream = StringIO()
    configure_logging(level=logging.DEBUG, stream=stream)
    try:
        yield stream
    finally:
        configure_logging(level=logging.WARNING)


def test_get_logger_prefixes_namespace():
    logger = get_logger("test_module")
    assert isinstance(logger, logging.Logger)
    assert logger.name == "questkit.test_module"


def test_get_logger_keeps_package_names():
    assert get_logger("questkit.session").name == "questkit.session"
    assert get_logger().name == "questkit"


def test_get_logger_caching():
    assert get_logger("test_module") is get_logger("test_module")


def test_get_logger_different_modules():
    logger1 = get_logger("module1")
    logger2 = get_logger("module2")
    assert logger1 is not logger2


def test_logger_does_not_propagate():
    assert get_logger("test_module").propagate is False


def test_set_log_level_int_and_string():
    logger = get_logger("test_module")
    try:
        set_log_level(logging.INFO)
        assert logger.level == logging.INFO
        set_log_level("error")
        assert logger.level == logging.ERROR
        assert all(h.level == logging.ERROR for h in logger.handlers)
    finally:
        set_log_level(logging.WARNING)


def test_configure_logging_redirects_output(captured):
    logger = get_logger("test_module")
    logger.debug("Debug message")
    output = captured.getvalue()
    assert "[DEBUG] questkit.test_module: Debug message" in output


def test_loggers_created_later_use_configured_stream(captured):
    get_logger("created_after_configure").info("late logger")
    assert "late logger" in captured.getvalue()


def test_custom_format():
    stream = StringIO()
    try:
        configure_logging(level=logging.INFO, format_string="%(levelname)s|%(message)s", stream=stream)
        get_logger("fmt").info("hello")
        assert "INFO|hello" in stream.getvalue()
    finally:
        configure_logging(
            level=logging.WARNING, format_string="[%(levelname)s] %(name)s: %(message)s"
        )


def test_session_logs_lifecycle_and_rejections(captured):
    with Session(EngineConfig()) as session:
        session.execute_transaction(b"abc", b"alice")
        with pytest.raises(InvalidTransaction):
            session.execute_transaction(b"", b"alice")
    output = captured.getvalue()
    assert "Session opened" in output
    assert "Transaction on 5 qubits" in output
    assert "[WARNING] questkit.transaction.mapper" in output
    assert "Session closed" in output
