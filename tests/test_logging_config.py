"""Tests for logging_config.py utility functions."""

import io
import os
import sys
import logging
from unittest.mock import patch
from imgproxy_optimizer.core.logging_config import (
    setup_logger,
    get_logger,
    redirect_to_stderr,
    logger,
)


class TestSetupLogger:
    """Tests for setup_logger function."""

    def test_setup_logger_default_parameters(self):
        """Test setup_logger with default parameters."""
        test_logger = setup_logger()
        assert test_logger.name == "imgproxy-optimizer"
        assert len(test_logger.handlers) == 1
        assert not test_logger.propagate

    def test_setup_logger_custom_level_by_parameter(self):
        """Test setup_logger with custom level via parameter."""
        test_logger = setup_logger(name="test-param-level", level="DEBUG")
        assert test_logger.level == logging.DEBUG

    def test_setup_logger_custom_level_by_env_var(self):
        """Test setup_logger with custom level via environment variable."""
        with patch.dict(os.environ, {"LOG_LEVEL": "WARNING"}):
            test_logger = setup_logger(name="test-env-level")
            assert test_logger.level == logging.WARNING

    def test_setup_logger_invalid_level_defaults_to_info(self):
        """Test setup_logger with invalid level defaults to INFO."""
        test_logger = setup_logger(name="test-invalid-level", level="INVALID_LEVEL")
        assert test_logger.level == logging.INFO

    def test_setup_logger_structured_format(self):
        """Test setup_logger with structured format."""
        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop("LOG_FORMAT", None)
            test_logger = setup_logger(name="test-structured", format_type="structured")
        format_string = test_logger.handlers[0].formatter._fmt
        assert "%(filename)s" in format_string
        assert "%(lineno)d" in format_string
        assert "%(funcName)s" in format_string

    def test_setup_logger_env_format_override(self):
        """Test setup_logger format override via environment variable."""
        with patch.dict(os.environ, {"LOG_FORMAT": "simple"}):
            test_logger = setup_logger(name="test-env-format", format_type="structured")
            format_string = test_logger.handlers[0].formatter._fmt
            assert "%(filename)s" not in format_string

    def test_setup_logger_no_duplicate_handlers(self):
        """Test that setup_logger doesn't add duplicate handlers."""
        test_logger1 = setup_logger(name="test-no-duplicates")
        test_logger2 = setup_logger(name="test-no-duplicates")

        assert test_logger1 is test_logger2
        assert len(test_logger1.handlers) == 1

    def test_setup_logger_handler_uses_stdout(self):
        """Test that logger handler uses stdout."""
        test_logger = setup_logger(name="test-stdout")
        assert test_logger.handlers[0].stream is sys.stdout


class TestGetLogger:
    """Tests for get_logger function."""

    def test_get_logger_custom_name(self):
        """Test get_logger with custom name."""
        test_logger = get_logger(name="test-get-logger")
        assert test_logger.name == "test-get-logger"

    def test_get_logger_returns_configured_logger(self):
        """Test that get_logger returns a properly configured logger."""
        test_logger = get_logger(name="test-configured")
        assert len(test_logger.handlers) == 1
        assert not test_logger.propagate


class TestRedirectToStderr:
    """Tests for redirect_to_stderr."""

    def test_handlers_move_to_stderr(self):
        """Test the CLI helper points handlers at stderr."""
        test_logger = setup_logger(name="test-redirect")

        redirect_to_stderr("test-redirect")

        assert len(test_logger.handlers) == 1
        assert test_logger.handlers[0].stream is sys.stderr

    def test_closed_stream_is_not_flushed(self):
        """Test a handler whose stream was closed is replaced quietly."""
        stale = io.StringIO()
        test_logger = setup_logger(name="test-redirect-stale", stream=stale)
        stale.close()

        redirect_to_stderr("test-redirect-stale")

        assert len(test_logger.handlers) == 1
        assert test_logger.handlers[0].stream is sys.stderr

    def test_setup_logger_custom_stream(self):
        """Test a new handler can be bound to a given stream."""
        stream = io.StringIO()
        test_logger = setup_logger(name="test-custom-stream", stream=stream)

        test_logger.info("hello")

        assert "hello" in stream.getvalue()


class TestDefaultLogger:
    """Tests for default logger instance."""

    def test_default_logger_exists(self):
        """Test that default logger instance is created."""
        assert isinstance(logger, logging.Logger)
        assert logger.name == "imgproxy-optimizer"
        assert not logger.propagate
