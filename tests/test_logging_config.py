"""Tests for audit run logging."""

import logging
from pathlib import Path

import pytest

from affiliate_audit.logging_config import QUIET_LOGGERS, audit_log_path, setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    saved_handlers = list(root.handlers)
    saved_level = root.level
    yield root
    for handler in list(root.handlers):
        if handler not in saved_handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in saved_handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(saved_level)


class TestAuditLogPath:
    """Tests for audit_log_path."""

    def test_named_after_sites_and_mode(self, tmp_path):
        path = audit_log_path(str(tmp_path), ["casino.com.ro", "supercazino"], "crawl", "2026-01-05T09-30-00Z")
        assert path == tmp_path / "casino.com.ro-supercazino_crawl_2026-01-05T09-30-00Z.log"

    def test_default_timestamp_matches_report_format(self, tmp_path):
        path = audit_log_path(str(tmp_path), ["jocpacanele"], "smoke")
        assert path.parent == tmp_path
        assert path.name.startswith("jocpacanele_smoke_")
        assert path.suffix == ".log"


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_file_handler_created_with_parent_dirs(self, tmp_path, restore_root_logger):
        log_file = tmp_path / "logs" / "nested" / "run.log"

        handlers = setup_logging("DEBUG", log_file=str(log_file))
        logging.getLogger("affiliate_audit.test").info("LINK #1 passed")
        for handler in handlers:
            handler.flush()

        assert restore_root_logger.level == logging.DEBUG
        assert len(handlers) == 2
        assert "LINK #1 passed" in log_file.read_text(encoding="utf-8")

    def test_driver_loggers_quieted(self, restore_root_logger):
        setup_logging("DEBUG")
        for name in QUIET_LOGGERS:
            assert logging.getLogger(name).level == logging.WARNING
        assert "playwright" in QUIET_LOGGERS

    def test_unknown_level_falls_back_to_info(self, restore_root_logger):
        handlers = setup_logging("chatty")
        assert restore_root_logger.level == logging.INFO
        assert len(handlers) == 1
