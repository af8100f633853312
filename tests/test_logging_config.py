"""Tests for logging setup and request-id propagation into log records."""

import logging
from logging.handlers import RotatingFileHandler

import pytest

from app_engine.logging_config import _PlainFormatter, configure_logging
from app_engine.middleware import RequestIDFilter, request_id_var


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    saved = (root.level, list(root.handlers))
    yield root
    root.handlers[:] = saved[1]
    root.setLevel(saved[0])


def _record(msg: str = "hello") -> logging.LogRecord:
    return logging.LogRecord("app_engine.services.project_service", logging.INFO, __file__, 1, msg, None, None)


def test_filter_copies_request_id():
    token = request_id_var.set("abc123")
    try:
        record = _record()
        assert RequestIDFilter().filter(record) is True
        assert record.request_id == "abc123"
    finally:
        request_id_var.reset(token)


def test_filter_outside_request():
    record = _record()
    RequestIDFilter().filter(record)
    assert record.request_id == "-"


def test_plain_formatter_line():
    record = _record("Created project")
    record.request_id = "req-1"
    line = _PlainFormatter().format(record)
    assert f"pid={record.process}" in line
    assert "req=req-1" in line
    assert "[     project_service]" in line
    assert line.endswith("Created project")


def test_configure_logging_console_only(restore_root_logger):
    configure_logging("debug")
    root = restore_root_logger
    assert root.level == logging.DEBUG
    assert len(root.handlers) == 1
    assert logging.getLogger("httpx").level == logging.WARNING


def test_configure_logging_with_file(restore_root_logger, tmp_path):
    log_file = tmp_path / "logs" / "app-engine.log"
    configure_logging("INFO", str(log_file))

    handlers = restore_root_logger.handlers
    file_handlers = [h for h in handlers if isinstance(h, RotatingFileHandler)]
    assert len(file_handlers) == 1
    assert log_file.parent.is_dir()

    logging.getLogger("app_engine.test").warning("written to file")
    file_handlers[0].flush()
    assert "written to file" in log_file.read_text(encoding="utf-8")
    file_handlers[0].close()


def test_unknown_level_falls_back_to_info(restore_root_logger):
    configure_logging("chatty")
    assert restore_root_logger.level == logging.INFO
