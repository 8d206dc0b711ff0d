"""Tests for logging module."""

import logging
import re

import pytest

from faaah.config import Config
from faaah.logging import console_level, parse_level, reset_logging, setup_logging


def console_handler(logger):
    return next(h for h in logger.handlers if not isinstance(h, logging.FileHandler))


class TestLevels:
    """Level names and the console threshold."""

    @pytest.mark.parametrize(
        "name,expected",
        [("debug", logging.DEBUG), ("WARNING", logging.WARNING), ("LOUD", logging.INFO)],
    )
    def test_parse_level(self, name, expected):
        assert parse_level(name) == expected

    @pytest.mark.parametrize(
        "verbosity,expected",
        [(0, logging.WARNING), (1, logging.INFO), (2, logging.DEBUG), (5, logging.DEBUG)],
    )
    def test_console_level_from_verbosity(self, verbosity, expected):
        assert console_level(Config(), verbosity) == expected

    def test_quiet_config_raises_console_threshold(self):
        assert console_level(Config(log_level="ERROR")) == logging.ERROR


class TestSetupLogging:
    """Test logging setup."""

    def test_setup_logging_returns_logger(self):
        """Setup returns the package logger."""
        logger = setup_logging(Config())

        assert isinstance(logger, logging.Logger)
        assert logger.name == "faaah"
        assert logger.propagate is False

    def test_console_quiet_by_default(self, capsys):
        logger = setup_logging(Config())

        logger.info("routine message")
        logger.warning("something odd")

        captured = capsys.readouterr()
        assert captured.out == ""
        assert "routine message" not in captured.err
        assert "faaah: WARNING: something odd" in captured.err

    def test_verbose_console_shows_debug(self, capsys):
        logger = setup_logging(Config(), verbosity=2)

        logging.getLogger("faaah.engine").debug("engine detail")

        assert "engine detail" in capsys.readouterr().err
        assert logger.level == logging.DEBUG

    def test_module_loggers_inherit_handlers(self, tmp_path):
        """Loggers of submodules write through the package logger."""
        log_file = tmp_path / "faaah.log"
        setup_logging(Config(log_file=str(log_file)))

        logging.getLogger("faaah.signals.dispatcher").info("dispatcher message")

        assert "faaah.signals.dispatcher: dispatcher message" in log_file.read_text()

    def test_file_gets_configured_level_while_console_stays_quiet(self, tmp_path, capsys):
        log_file = tmp_path / "faaah.log"
        logger = setup_logging(Config(log_file=str(log_file), log_level="DEBUG"))

        logger.debug("debug message")

        assert "debug message" in log_file.read_text()
        assert "debug message" not in capsys.readouterr().err

    def test_setup_logging_creates_log_directory(self, tmp_path):
        """Logging setup creates log directory if needed."""
        log_file = tmp_path / "subdir" / "faaah.log"

        setup_logging(Config(log_file=str(log_file))).warning("test message")

        assert log_file.exists()

    def test_log_levels_respected(self, tmp_path):
        """Only logs at configured level and above."""
        log_file = tmp_path / "faaah.log"
        logger = setup_logging(Config(log_file=str(log_file), log_level="WARNING"))

        logger.debug("debug message")
        logger.info("info message")
        logger.warning("warning message")

        content = log_file.read_text()
        assert "debug message" not in content
        assert "info message" not in content
        assert "warning message" in content

    def test_log_file_format_includes_timestamp(self, tmp_path):
        """File entries have timestamp, level, logger and message."""
        log_file = tmp_path / "faaah.log"
        setup_logging(Config(log_file=str(log_file))).info("test message")

        pattern = r"\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2} \[INFO\] faaah: test message"
        assert re.search(pattern, log_file.read_text())

    def test_setup_again_replaces_handlers(self, tmp_path):
        """Repeated setup doesn't duplicate handlers and applies new verbosity."""
        config = Config(log_file=str(tmp_path / "faaah.log"))

        logger1 = setup_logging(config)
        handlers = len(logger1.handlers)
        logger2 = setup_logging(config, verbosity=1)

        assert logger1 is logger2
        assert len(logger2.handlers) == handlers
        assert console_handler(logger2).level == logging.INFO

    def test_reset_logging(self):
        logger = setup_logging(Config())

        reset_logging()

        assert logger.handlers == []
        assert logger.propagate is True
        assert logger.level == logging.NOTSET
