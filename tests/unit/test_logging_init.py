from __future__ import annotations

import logging

from matka_chart.logging.init import (
    LOGGER_NAME,
    SUMMARY_LEVEL,
    LabeledFormatter,
    get_logger,
    log_summary,
    setup_logging,
)


def test_setup_is_idempotent():
    a = setup_logging()
    b = setup_logging()
    assert a is b
    assert a.name == LOGGER_NAME
    assert len(a.handlers) == 1
    assert a.propagate is False


def test_labels(capsys):
    logger = setup_logging()
    logger.info("hello")
    logger.warning("careful")
    logger.debug("hidden")
    log_summary("charts=1/1")
    out = capsys.readouterr().out.splitlines()
    assert out == ["INFO hello", "WARN careful", "SUMMARY charts=1/1"]


def test_debug_mode(capsys):
    setup_logging()
    logger = setup_logging(debug=True)
    logger.debug("visible")
    assert "DEBUG visible" in capsys.readouterr().out


def test_module_loggers_share_handler(capsys):
    setup_logging()
    logging.getLogger("matka_chart.services.cache").warning("child")
    assert "WARN child" in capsys.readouterr().out


def test_formatter_unknown_level():
    record = logging.LogRecord("x", 15, __file__, 1, "msg", None, None)
    assert LabeledFormatter().format(record) == "Level 15 msg"
    record = logging.LogRecord("x", SUMMARY_LEVEL, __file__, 1, "done", None, None)
    assert LabeledFormatter().format(record) == "SUMMARY done"


def test_get_logger_sets_up_on_demand():
    assert get_logger().name == LOGGER_NAME
