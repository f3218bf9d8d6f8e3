"""Unit tests for logging configuration module.

Tests verify that the logging configuration functions work correctly with different
scenarios including various log levels, formats, and file logging options.
"""

import logging
from pathlib import Path
from unittest.mock import patch

import pytest

from agentrun_controller.core.logging_config import (
    DETAILED_FORMAT,
    JSON_FORMAT,
    MODULE_LOG_LEVELS,
    SIMPLE_FORMAT,
    get_logger,
    setup_logging,
)


@pytest.fixture(autouse=True)
def restore_root_handlers():
    root_logger = logging.getLogger()
    handlers = root_logger.handlers[:]
    level = root_logger.level
    yield
    for handler in root_logger.handlers[:]:
        if handler not in handlers:
            root_logger.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root_logger.handlers:
            root_logger.addHandler(handler)
    root_logger.setLevel(level)


def _console_handler() -> logging.Handler:
    root_logger = logging.getLogger()
    handler = next(
        (
            h
            for h in root_logger.handlers
            if isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
        ),
        None,
    )
    assert handler is not None
    return handler


class TestSetupLoggingLogLevels:
    """Test setup_logging with different log levels."""

    @pytest.mark.parametrize(
        "log_level,expected_level",
        [
            ("DEBUG", logging.DEBUG),
            ("INFO", logging.INFO),
            ("WARNING", logging.WARNING),
            ("ERROR", logging.ERROR),
            ("debug", logging.DEBUG),  # Test lowercase
        ],
    )
    def test_setup_logging_with_different_levels(self, log_level, expected_level):
        """Test setup_logging configures correct log level."""
        setup_logging(log_level=log_level, enable_file=False)

        assert _console_handler().level == expected_level

    def test_setup_logging_root_logger_level_is_debug(self):
        """Test root logger is set to DEBUG to capture all levels."""
        setup_logging(log_level="WARNING", enable_file=False)

        assert logging.getLogger().level == logging.DEBUG


class TestSetupLoggingFormats:
    """Test setup_logging with different log formats."""

    @pytest.mark.parametrize(
        "log_format,expected_format",
        [
            ("simple", SIMPLE_FORMAT),
            ("detailed", DETAILED_FORMAT),
            ("json", JSON_FORMAT),
            ("unknown", DETAILED_FORMAT),
        ],
    )
    def test_setup_logging_with_different_formats(self, log_format, expected_format):
        """Test setup_logging configures correct format."""
        setup_logging(log_format=log_format, enable_file=False)

        handler = _console_handler()
        assert handler.formatter._fmt == expected_format
        assert handler.formatter.datefmt == "%Y-%m-%d %H:%M:%S"


class TestSetupLoggingFileHandling:
    """Test setup_logging file logging functionality."""

    def test_file_logging_is_disabled_by_default(self):
        """The agent Pod has a read-only root filesystem; no file handler unless asked."""
        setup_logging()

        assert not any(isinstance(h, logging.FileHandler) for h in logging.getLogger().handlers)

    def test_setup_logging_with_file_enabled(self, tmp_path: Path):
        """Test setup_logging creates the log directory and a DEBUG file handler."""
        log_dir = tmp_path / "new_logs"
        with patch("agentrun_controller.core.logging_config.LOG_FILE_DIR", str(log_dir)):
            setup_logging(log_level="ERROR", enable_file=True)

        file_handler = next(
            (h for h in logging.getLogger().handlers if isinstance(h, logging.FileHandler)),
            None,
        )
        assert file_handler is not None
        assert file_handler.level == logging.DEBUG
        assert Path(file_handler.baseFilename) == log_dir / "agentrun_controller.log"


class TestSetupLoggingHandlerManagement:
    """Test setup_logging handler management."""

    def test_setup_logging_removes_existing_handlers(self):
        """Calling setup_logging twice leaves a single console handler."""
        setup_logging(enable_file=False)
        setup_logging(enable_file=False)

        assert len(logging.getLogger().handlers) == 1


class TestSetupLoggingModuleSpecificLevels:
    """Test module-specific log level configuration."""

    @pytest.mark.parametrize(
        "module_name,expected_level",
        [
            ("agentrun_controller", logging.INFO),
            ("agentrun_controller.agent", logging.DEBUG),
            ("agentrun_controller.reconciler", logging.DEBUG),
            ("agentrun_controller.kube", logging.INFO),
            ("httpx", logging.WARNING),
            ("httpcore", logging.WARNING),
        ],
    )
    def test_module_specific_log_levels(self, module_name, expected_level):
        """Test module-specific log levels are configured correctly."""
        setup_logging(enable_file=False)

        assert logging.getLogger(module_name).level == expected_level

    def test_all_module_log_levels_configured(self):
        """Test all modules in MODULE_LOG_LEVELS are configured."""
        setup_logging(enable_file=False)

        for module_name, expected_level_str in MODULE_LOG_LEVELS.items():
            assert logging.getLogger(module_name).level == getattr(logging, expected_level_str)


class TestGetLogger:
    def test_get_logger_returns_named_logger(self):
        logger = get_logger("agentrun_controller.reconciler.agentrun")

        assert isinstance(logger, logging.Logger)
        assert logger.name == "agentrun_controller.reconciler.agentrun"
        assert logger is logging.getLogger("agentrun_controller.reconciler.agentrun")
