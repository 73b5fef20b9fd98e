"""
Tests for logging setup.
"""

import logging
from logging.handlers import TimedRotatingFileHandler

import pytest

from scannamer.logging_config import configure_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    level = root.level
    handlers = list(root.handlers)
    yield root
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_console_only(self, restore_root_logger):
        handlers = configure_logging(level="DEBUG")
        assert len(handlers) == 1
        assert restore_root_logger.level == logging.DEBUG
        assert handlers[0] in restore_root_logger.handlers

    def test_rotating_files(self, restore_root_logger, tmp_path):
        log_dir = tmp_path / "logs"
        handlers = configure_logging(level=logging.INFO, log_directory=log_dir, retention_days=7)

        files = [h for h in handlers if isinstance(h, TimedRotatingFileHandler)]
        assert len(files) == 2
        main_file, error_file = files
        assert main_file.backupCount == 7
        assert error_file.backupCount == 21
        assert error_file.level == logging.WARNING

        logging.getLogger("scannamer.test").info("renamed one file")
        logging.getLogger("scannamer.test").error("rename failed")
        for handler in handlers:
            handler.flush()

        main_text = (log_dir / "scannamer.log").read_text(encoding="utf-8")
        error_text = (log_dir / "errors.log").read_text(encoding="utf-8")
        assert "renamed one file" in main_text
        assert "[scannamer.test]" in main_text
        assert "rename failed" in error_text
        assert "renamed one file" not in error_text

    def test_third_party_loggers_quieted(self, restore_root_logger):
        configure_logging(level="DEBUG")
        assert logging.getLogger("pdfminer").level == logging.WARNING
        assert logging.getLogger("watchdog").level == logging.WARNING
