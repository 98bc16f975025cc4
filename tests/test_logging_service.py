"""Tests for the logging service."""

import json
import logging
import os
import tempfile
from io import StringIO
from pathlib import Path
from unittest.mock import patch

import structlog
from hypothesis import given, settings, strategies as st

from vndb_provider.services.logging import LoggingService, setup_logging


class TestLoggingService:
    """Test cases for LoggingService."""

    def test_development_logging_format(self) -> None:
        """Development logging is human-readable and goes to stderr."""
        with patch.dict(os.environ, {"ENVIRONMENT": "development"}):
            with patch("sys.stderr", new_callable=StringIO) as mock_stderr:
                service = LoggingService(log_level="INFO")
                service.configure()

                logger = structlog.stdlib.get_logger("test")
                logger.info("test message", key="value")

                output = mock_stderr.getvalue()

        assert "test message" in output
        assert not output.strip().startswith("{")

    def test_production_logging_format(self) -> None:
        """Production logging emits one JSON object per event."""
        with patch.dict(os.environ, {"ENVIRONMENT": "production"}):
            with patch("sys.stderr", new_callable=StringIO) as mock_stderr:
                service = LoggingService(log_level="INFO")
                service.configure()

                logger = structlog.stdlib.get_logger("test")
                logger.info("test message", key="value")

                output = mock_stderr.getvalue()

        parsed = json.loads(output.strip().splitlines()[0])
        assert parsed["event"] == "test message"
        assert parsed["key"] == "value"
        assert parsed["level"] == "info"
        assert "timestamp" in parsed

    def test_console_can_be_disabled(self, tmp_path: Path) -> None:
        with patch("sys.stderr", new_callable=StringIO) as mock_stderr:
            service = LoggingService(log_level="INFO", log_dir=tmp_path, console=False)
            service.configure()
            structlog.stdlib.get_logger("test").warning("file only")

            assert mock_stderr.getvalue() == ""
        assert "file only" in (tmp_path / "app.log").read_text()

    def test_file_logging_setup(self) -> None:
        """Log files are created and contain JSON."""
        with tempfile.TemporaryDirectory() as temp_dir:
            log_dir = Path(temp_dir)
            with patch.dict(os.environ, {"ENVIRONMENT": "production"}):
                service = LoggingService(log_level="INFO", log_dir=log_dir, console=False)
                service.configure()

                structlog.stdlib.get_logger("test").info("test file message", data="test")

                assert (log_dir / "app.log").exists()
                assert (log_dir / "error.log").exists()

                parsed = json.loads((log_dir / "app.log").read_text().strip())
                assert parsed["event"] == "test file message"
                assert parsed["data"] == "test"

    def test_error_file_logging(self) -> None:
        """Errors are also written to the error log."""
        with tempfile.TemporaryDirectory() as temp_dir:
            log_dir = Path(temp_dir)
            with patch.dict(os.environ, {"ENVIRONMENT": "production"}):
                service = LoggingService(log_level="DEBUG", log_dir=log_dir, console=False)
                service.configure()

                structlog.stdlib.get_logger("test").error("upstream failed", status_code=500)

                parsed = json.loads((log_dir / "error.log").read_text().strip())
                assert parsed["event"] == "upstream failed"
                assert parsed["status_code"] == 500
                assert parsed["level"] == "error"

    def test_setup_logging_sets_environment(self) -> None:
        with patch.dict(os.environ, {}, clear=False):
            service = setup_logging(log_level="debug", environment="production", console=False)

            assert os.environ["ENVIRONMENT"] == "production"
            assert service.log_level == "DEBUG"
            assert service.is_development is False

    def test_set_level_keeps_handlers(self, tmp_path: Path) -> None:
        """Raising the level to DEBUG lets debug events through to existing handlers."""
        with patch.dict(os.environ, {"ENVIRONMENT": "production"}):
            with patch("sys.stderr", new_callable=StringIO) as mock_stderr:
                service = LoggingService(log_level="WARNING", log_dir=tmp_path)
                service.configure()
                structlog.stdlib.get_logger("test").debug("dropped")

                service.set_level("debug")
                structlog.stdlib.get_logger("test").debug("kept")

                output = mock_stderr.getvalue()

        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger("httpx").level == logging.WARNING
        assert "dropped" not in output
        assert json.loads(output.strip().splitlines()[0])["event"] == "kept"
        assert "kept" in (tmp_path / "app.log").read_text()
        assert (tmp_path / "error.log").read_text() == ""


class TestStructuredLoggingProperties:
    """Property-based tests for structured logging consistency."""

    @given(
        log_level=st.sampled_from(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
        logger_name=st.text(min_size=1, max_size=30).filter(lambda x: x.isidentifier()),
        message=st.text(min_size=1, max_size=100),
        context_data=st.dictionaries(
            keys=st.text(min_size=1, max_size=20).filter(
                lambda x: x.isidentifier()
                and not x.startswith("_")
                and x not in {"event", "level", "logger", "timestamp", "exc_info", "stack_info", "exception", "positional_args"}
            ),
            values=st.one_of(st.text(max_size=50), st.integers(), st.booleans()),
            max_size=5,
        ),
    )
    @settings(deadline=None)
    def test_structured_logging_consistency(
        self,
        log_level: str,
        logger_name: str,
        message: str,
        context_data: dict[str, str | int | bool],
    ) -> None:
        """Every event is recorded with its level, logger name and context."""
        with patch.dict(os.environ, {"ENVIRONMENT": "production"}):
            with patch("sys.stderr", new_callable=StringIO) as mock_stderr:
                service = LoggingService(log_level="DEBUG")
                service.configure()

                getattr(structlog.stdlib.get_logger(logger_name), log_level.lower())(message, **context_data)

                output = mock_stderr.getvalue()

        parsed = json.loads(output.strip().splitlines()[0])
        assert parsed["event"] == message
        assert parsed["level"].upper() == log_level.upper()
        assert parsed["logger"] == logger_name
        for key, value in context_data.items():
            assert parsed[key] == value
