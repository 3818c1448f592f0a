"""Tests for the logging service."""

import json
import logging
import os
import tempfile
from io import StringIO
from pathlib import Path
from unittest.mock import patch

import pytest
import structlog

from serverhop.services.logging import LoggingService, setup_logging


@pytest.fixture(autouse=True)
def reset_logging():
    """Restore structlog and root logger state after each test."""
    yield
    structlog.reset_defaults()
    logging.getLogger().handlers.clear()


class TestLoggingService:
    """Test cases for LoggingService."""

    def test_development_logging_format(self) -> None:
        """Development logging is human-readable and goes to stderr."""
        with patch.dict(os.environ, {"ENVIRONMENT": "development"}):
            with patch("sys.stderr", new_callable=StringIO) as mock_stderr:
                service = LoggingService(log_level="INFO")
                service.configure()

                logger = service.get_logger("test")
                logger.info("test message", key="value")

                output = mock_stderr.getvalue()

        assert "test message" in output
        assert not output.strip().startswith("{")

    def test_production_logging_format(self) -> None:
        """Production logging renders JSON."""
        with patch.dict(os.environ, {"ENVIRONMENT": "production"}):
            with patch("sys.stderr", new_callable=StringIO) as mock_stderr:
                service = LoggingService(log_level="INFO")
                service.configure()

                logger = service.get_logger("test")
                logger.info("test message", key="value")
                output = mock_stderr.getvalue()

        lines = [line for line in output.strip().split("\n") if line.strip()]
        assert lines
        parsed = json.loads(lines[-1])
        assert parsed["event"] == "test message"
        assert parsed["key"] == "value"
        assert "timestamp" in parsed
        assert "level" in parsed

    def test_stdout_stays_clean(self) -> None:
        with patch.dict(os.environ, {"ENVIRONMENT": "production"}):
            with patch("sys.stdout", new_callable=StringIO) as mock_stdout, \
                    patch("sys.stderr", new_callable=StringIO):
                service = LoggingService(log_level="DEBUG")
                service.configure()
                service.get_logger("test").warning("something happened")

        assert mock_stdout.getvalue() == ""

    def test_file_logging_setup(self) -> None:
        """Log files are created and hold JSON lines."""
        with tempfile.TemporaryDirectory() as temp_dir:
            log_dir = Path(temp_dir)
            with patch.dict(os.environ, {"ENVIRONMENT": "production"}):
                with patch("sys.stderr", new_callable=StringIO):
                    service = LoggingService(log_level="INFO", log_dir=log_dir)
                    service.configure()

                    logger = service.get_logger("test")
                    logger.info("test file message", data="test")
                    logger.error("test error message")

            for handler in logging.getLogger().handlers:
                handler.flush()

            app_log = log_dir / "app.log"
            error_log = log_dir / "error.log"
            assert app_log.exists()
            assert error_log.exists()

            app_lines = app_log.read_text(encoding="utf-8").strip().split("\n")
            assert json.loads(app_lines[0])["event"] == "test file message"
            error_text = error_log.read_text(encoding="utf-8")
            assert "test error message" in error_text
            assert "test file message" not in error_text

            for handler in logging.getLogger().handlers:
                handler.close()
            logging.getLogger().handlers.clear()

    @pytest.mark.parametrize("level", ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
    def test_log_level_applied(self, level: str) -> None:
        with patch("sys.stderr", new_callable=StringIO):
            service = LoggingService(log_level=level.lower())
            service.configure()

        assert logging.getLogger().level == getattr(logging, level)

    def test_setup_logging_sets_environment(self) -> None:
        with patch.dict(os.environ, {}, clear=False):
            with patch("sys.stderr", new_callable=StringIO):
                service = setup_logging(log_level="INFO", environment="production")

            assert os.environ["ENVIRONMENT"] == "production"
            assert not service.is_development
