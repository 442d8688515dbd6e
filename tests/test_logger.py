"""
Tests for logger functionality.
"""

import pytest
from pathlib import Path

from storekit.config import StoreConfig
from storekit.context import Context
from storekit.logger import (
    ContextLogger,
    NullLogger,
    StructuredLogger,
    get_logger,
    log_failure,
    logger_from_config,
    reset_logger,
)


@pytest.fixture
def structured(tmp_path):
    logger = StructuredLogger(name="test", log_dir=tmp_path, enable_console=False)
    yield logger
    logger.close()


class TestStructuredLogger:
    """Test structured logging functionality."""

    def test_logger_creation(self, structured):
        """Logger should be created with default settings."""
        assert structured.logger.name == "test"
        assert structured.metrics["operations_failed"] == 0

    def test_log_methods(self, structured):
        """All log level methods should work."""
        structured.debug("Debug message")
        structured.info("Info message")
        structured.warning("Warning message")
        structured.error("Error message")
        structured.critical("Critical message")

    def test_log_with_non_json_context(self, structured, tmp_path):
        """Context values that are not JSON serializable are stringified."""
        structured.error("Failure", error=ValueError("bad value"), path=Path("x"))
        structured.close()

        content = next(tmp_path.glob("*.log")).read_text()
        assert "bad value" in content
        assert '"path": "x"' in content

    def test_failure_metrics(self, structured):
        """Failures should be counted by type and by entity/operation."""
        structured.record_failure("User", "create", "IntegrityError")
        structured.record_failure("User", "create", "IntegrityError")
        structured.record_failure("User", "list", "OperationalError")
        structured.record_failure("Order", "tx delete", "OperationalError")

        metrics = structured.get_metrics()

        assert metrics["operations_failed"] == 4
        assert metrics["errors_by_type"] == {"IntegrityError": 2, "OperationalError": 2}
        assert metrics["failures_by_entity"]["User"] == {"create": 2, "list": 1}
        assert metrics["failures_by_entity"]["Order"] == {"tx delete": 1}

    def test_get_metrics_returns_copy(self, structured):
        structured.record_failure("User", "get", "OperationalError")
        metrics = structured.get_metrics()
        metrics["failures_by_entity"]["User"]["get"] = 100
        assert structured.get_metrics()["failures_by_entity"]["User"]["get"] == 1

    def test_metrics_summary(self, structured, tmp_path):
        structured.record_failure("User", "create", "IntegrityError")
        structured.log_metrics_summary()
        structured.close()

        content = next(tmp_path.glob("*.log")).read_text()
        assert "Failed operations: 1" in content
        assert "User: create=1" in content

    def test_log_file_creation(self, structured, tmp_path):
        """Log file should be created in specified directory."""
        structured.info("Test message")

        log_files = list(tmp_path.glob("*.log"))
        assert len(log_files) == 1
        assert log_files[0].name.startswith("test_")
        assert "Test message" in log_files[0].read_text()


class TestFailureLoggers:
    """Test the repository-facing failure loggers."""

    def test_null_logger_accepts_anything(self):
        NullLogger().error(None, "ignored", entity="User", error=ValueError("x"))

    def test_context_logger_merges_context(self, structured, tmp_path):
        ctx = Context(request_id="req-42", fields={"tenant": "acme"})
        ContextLogger(structured).error(
            ctx, "User get failed", entity="User", operation="get", error_type="OperationalError"
        )
        structured.close()

        content = next(tmp_path.glob("*.log")).read_text()
        assert "User get failed" in content
        assert "req-42" in content
        assert "acme" in content
        assert structured.get_metrics()["failures_by_entity"]["User"]["get"] == 1

    def test_context_logger_without_context(self, structured):
        ContextLogger(structured).error(None, "failed")
        assert structured.get_metrics()["errors_by_type"] == {"unknown": 1}

    def test_log_failure_fields(self):
        records = []

        class Sink:
            def error(self, ctx, message, **fields):
                records.append((ctx, message, fields))

        log_failure(Sink(), None, "User", "count", ValueError("broken"))

        assert records == [(
            None,
            "User count failed",
            {"entity": "User", "operation": "count", "error": "broken", "error_type": "ValueError"},
        )]

    def test_log_failure_never_raises(self):
        class Broken:
            def error(self, ctx, message, **fields):
                raise OSError("disk full")

        log_failure(Broken(), None, "User", "create", ValueError("x"))


class TestGlobalLogger:
    """Test global logger singleton."""

    def test_get_logger_singleton(self, tmp_path):
        """get_logger should return same instance."""
        reset_logger()

        logger1 = get_logger(log_dir=tmp_path, enable_console=False)
        logger2 = get_logger()

        assert logger1 is logger2
        reset_logger()

    def test_reset_logger(self, tmp_path):
        """reset_logger should create new instance."""
        reset_logger()

        logger1 = get_logger(log_dir=tmp_path, enable_console=False)
        logger1.record_failure("User", "create", "IntegrityError")

        reset_logger()

        logger2 = get_logger(log_dir=tmp_path, enable_console=False)

        assert logger2 is not logger1
        assert logger2.metrics["operations_failed"] == 0
        reset_logger()

    def test_context_logger_defaults_to_global(self, tmp_path):
        reset_logger()
        global_logger = get_logger(log_dir=tmp_path, enable_console=False)
        assert ContextLogger().logger is global_logger
        reset_logger()

    def test_logger_from_config(self, tmp_path):
        config = StoreConfig(log_level="debug", log_dir=str(tmp_path / "logs"), log_to_console=False)

        logger = logger_from_config(config)

        assert logger is get_logger()
        assert logger.logger.level == 10
        assert (tmp_path / "logs").is_dir()
        reset_logger()
