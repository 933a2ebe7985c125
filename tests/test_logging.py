"""Tests for propdoc.logging."""

from __future__ import annotations

import logging
from pathlib import Path

from propdoc.logging import ROOT_LOGGER, configure_logging, get_logger


def test_get_logger_builds_child_names() -> None:
    assert get_logger().name == "propdoc"
    assert get_logger("parser").name == "propdoc.parser"


def test_console_records_carry_child_logger_name() -> None:
    root = configure_logging()
    record = logging.LogRecord("propdoc.source", logging.WARNING, __file__, 1, "Skipping %s", ("a.ts",), None)

    assert root.level == logging.INFO
    assert root.handlers[0].format(record) == "WARNING propdoc.source: Skipping a.ts"


def test_reconfiguring_replaces_handlers(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "propdoc.log"

    configure_logging(verbose=True)
    root = configure_logging(verbose=True, log_file=log_file)
    get_logger("cli").debug("Parsing %d source files", 3)
    for handler in root.handlers:
        handler.flush()

    assert root is logging.getLogger(ROOT_LOGGER)
    assert root.level == logging.DEBUG
    assert len(root.handlers) == 2
    assert "DEBUG propdoc.cli [MainThread]: Parsing 3 source files" in log_file.read_text(encoding="utf-8")

    configure_logging()
