"""Tests for logging configuration."""

import logging

from rich.logging import RichHandler

from graphgen.logging_config import LOGGER_NAME, configure_logging, get_logger


class TestLogging:
    def teardown_method(self):
        logger = logging.getLogger(LOGGER_NAME)
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
        logger.setLevel(logging.NOTSET)
        logger.propagate = True

    def test_get_logger_nests_under_package(self):
        assert get_logger("graphgen.codegen.parser").name == "graphgen.codegen.parser"
        assert get_logger("plugins.extra").name == "graphgen.plugins.extra"

    def test_configure_installs_single_rich_handler(self):
        configure_logging("DEBUG")
        logger = configure_logging("INFO")
        assert logger.level == logging.INFO
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], RichHandler)
        assert not logger.propagate

    def test_environment_default(self, monkeypatch):
        monkeypatch.setenv("GRAPHGEN_LOG_LEVEL", "ERROR")
        assert configure_logging().level == logging.ERROR

    def test_unknown_level_falls_back_to_warning(self):
        assert configure_logging("LOUD").level == logging.WARNING
