from __future__ import annotations

import logging
from pathlib import Path

from audit_dashboard.logging_config import configure_logging


def test_configure_logging_adds_stream_handler() -> None:
    # Ensure configuring logging doesn't raise and attaches a StreamHandler
    configure_logging(None)
    root = logging.getLogger()
    assert any(isinstance(h, logging.StreamHandler) for h in root.handlers)


def test_configure_logging_accepts_level_name_and_file(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "audit.log"
    configure_logging(log_file, "debug")
    root = logging.getLogger()
    assert root.level == logging.DEBUG
    assert any(isinstance(h, logging.FileHandler) for h in root.handlers)
    assert logging.getLogger("pymongo").level == logging.WARNING
    configure_logging(None)
