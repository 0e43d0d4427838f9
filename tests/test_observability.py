"""
Tests for logging configuration — level resolution and handler setup.
"""

import logging
from pathlib import Path

from devboot.core.observability.logging_config import (
    resolve_log_level,
    setup_logging,
)


class TestResolveLogLevel:
    def test_default(self):
        assert resolve_log_level(env={}) == "WARNING"

    def test_env(self):
        assert resolve_log_level(env={"DEVBOOT_LOG_LEVEL": "INFO"}) == "INFO"

    def test_flags_beat_env(self):
        env = {"DEVBOOT_LOG_LEVEL": "INFO"}
        assert resolve_log_level(debug=True, env=env) == "DEBUG"
        assert resolve_log_level(verbose=True, env=env) == "INFO"
        assert resolve_log_level(quiet=True, env=env) == "ERROR"

    def test_debug_beats_quiet(self):
        assert resolve_log_level(debug=True, quiet=True, env={}) == "DEBUG"


class TestSetupLogging:
    def test_console_level(self, restore_root_logger):
        setup_logging("INFO")
        root = restore_root_logger
        assert root.level == logging.INFO
        assert len(root.handlers) == 1

    def test_console_format_follows_level(self, restore_root_logger):
        setup_logging("DEBUG")
        assert "%(lineno)d" in restore_root_logger.handlers[0].formatter._fmt

        setup_logging("WARNING")
        assert restore_root_logger.handlers[0].formatter._fmt == "%(message)s"

    def test_unknown_level_falls_back(self, restore_root_logger):
        setup_logging("CHATTY")
        assert restore_root_logger.level == logging.WARNING

    def test_file_handler_level(self, restore_root_logger, tmp_path: Path):
        log_file = tmp_path / "devboot.log"
        setup_logging("WARNING", log_file=str(log_file), log_file_level="DEBUG")

        root = restore_root_logger
        assert root.level == logging.DEBUG
        logging.getLogger("devboot.test").debug("to the file only")
        for handler in root.handlers:
            handler.flush()
        assert "to the file only" in log_file.read_text()

    def test_noisy_loggers_quieted(self, restore_root_logger):
        setup_logging("INFO")
        assert logging.getLogger("asyncio").level == logging.WARNING
