from __future__ import annotations

import logging
from io import StringIO

from work_import.logging.init import (
    LOGGER_NAME,
    SUMMARY_LEVEL,
    LabeledFormatter,
    get_logger,
    log_summary,
    reset_logging,
    set_level,
    setup_logging,
)


def test_setup_logging_creates_logger_with_labeled_formatter():
    logger = setup_logging()
    assert logger.name == LOGGER_NAME == "work_import"
    assert logger.level == logging.INFO
    assert len(logger.handlers) == 1
    assert isinstance(logger.handlers[0].formatter, LabeledFormatter)
    assert logger.propagate is False


def test_setup_logging_is_idempotent():
    first = setup_logging()
    second = setup_logging()
    assert first is second
    assert len(second.handlers) == 1
    assert get_logger() is first


def test_labeled_prefixes():
    captured = StringIO()
    logger = logging.getLogger("test_work_import_labels")
    logger.setLevel(logging.INFO)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
    logging.addLevelName(SUMMARY_LEVEL, "SUMMARY")
    handler = logging.StreamHandler(captured)
    handler.setFormatter(LabeledFormatter())
    logger.addHandler(handler)
    logger.propagate = False

    logger.info("Test info message")
    logger.warning("Test warning message")
    logger.error("Test error message")
    logger.log(SUMMARY_LEVEL, "mode=preview rows=2")

    lines = captured.getvalue().strip().splitlines()
    assert lines == [
        "INFO Test info message",
        "WARN Test warning message",
        "ERROR Test error message",
        "SUMMARY mode=preview rows=2",
    ]


def test_module_loggers_reach_the_application_handler(capsys):
    setup_logging()
    logging.getLogger("work_import.services.engine").info("from a module")
    assert "INFO from a module" in capsys.readouterr().out


def test_log_summary(capsys):
    setup_logging()
    log_summary("mode=commit kind=materials rows=1")
    assert "SUMMARY mode=commit kind=materials rows=1" in capsys.readouterr().out


def test_reset_logging_removes_handlers():
    logger = setup_logging()
    reset_logging()
    assert logger.handlers == []
    assert setup_logging() is not None


def test_custom_stream_and_debug_level():
    buf = StringIO()
    setup_logging(stream=buf)
    child = logging.getLogger("work_import.sources.ocr")
    child.debug("hidden")
    set_level(logging.DEBUG)
    child.debug("shown")
    assert buf.getvalue() == "DEBUG shown\n"
