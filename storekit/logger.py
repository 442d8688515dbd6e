"""
Structured logging for storekit.

Provides a centralized logger with console and file outputs and failure
metrics, plus the failure-logging capability the repository calls into.
"""

import logging
import sys
from pathlib import Path
from typing import Any, Optional
from datetime import datetime
import json

from .context import Context


class StructuredLogger:
    """
    Centralized logger with support for console and file outputs.
    Tracks metrics about failed repository operations.
    """

    def __init__(
        self,
        name: str = "storekit",
        level: str = "INFO",
        log_dir: Optional[Path] = None,
        enable_file: bool = True,
        enable_console: bool = True,
    ):
        """
        Initialize the structured logger.

        Args:
            name: Logger name
            level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_dir: Directory for log files (default: logs/)
            enable_file: Write logs to file
            enable_console: Output logs to console
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, level.upper()))
        self.logger.handlers.clear()

        self.metrics = {
            "operations_failed": 0,
            "errors_by_type": {},
            "failures_by_entity": {},
        }

        if enable_console:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(getattr(logging, level.upper()))
            console_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            console_handler.setFormatter(console_formatter)
            self.logger.addHandler(console_handler)

        if enable_file:
            if log_dir is None:
                log_dir = Path("logs")
            log_dir = Path(log_dir)
            log_dir.mkdir(parents=True, exist_ok=True)

            log_file = log_dir / f"{name}_{datetime.now().strftime('%Y%m%d')}.log"
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)
            file_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            file_handler.setFormatter(file_formatter)
            self.logger.addHandler(file_handler)

    def debug(self, message: str, **kwargs):
        """Log debug message with optional context."""
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs):
        """Log info message with optional context."""
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs):
        """Log warning message with optional context."""
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs):
        """Log error message with optional context."""
        self._log(logging.ERROR, message, kwargs)

    def critical(self, message: str, **kwargs):
        """Log critical message with optional context."""
        self._log(logging.CRITICAL, message, kwargs)

    def _log(self, level: int, message: str, context: dict):
        if context:
            # exceptions and other non-JSON values are rendered with str()
            message = f"{message} | Context: {json.dumps(context, default=str)}"
        self.logger.log(level, message)

    def close(self):
        """Detach and close all handlers."""
        for handler in list(self.logger.handlers):
            handler.close()
            self.logger.removeHandler(handler)

    # Metric tracking methods

    def record_failure(self, entity: str, operation: str, error_type: str):
        """Record a failed repository operation."""
        self.metrics["operations_failed"] += 1

        errors = self.metrics["errors_by_type"]
        errors[error_type] = errors.get(error_type, 0) + 1

        per_entity = self.metrics["failures_by_entity"].setdefault(entity, {})
        per_entity[operation] = per_entity.get(operation, 0) + 1

    def get_metrics(self) -> dict:
        """Return a copy of current metrics."""
        return {
            "operations_failed": self.metrics["operations_failed"],
            "errors_by_type": dict(self.metrics["errors_by_type"]),
            "failures_by_entity": {
                entity: dict(ops) for entity, ops in self.metrics["failures_by_entity"].items()
            },
        }

    def log_metrics_summary(self):
        """Log a summary of current metrics."""
        metrics = self.get_metrics()

        self.info("=== Repository Failure Metrics ===")
        self.info(f"Failed operations: {metrics['operations_failed']}")

        if metrics["failures_by_entity"]:
            self.info("Failures by entity:")
            for entity, ops in metrics["failures_by_entity"].items():
                detail = ", ".join(f"{op}={count}" for op, count in sorted(ops.items()))
                self.info(f"  {entity}: {detail}")

        if metrics["errors_by_type"]:
            self.info("Error Types:")
            for error_type, count in metrics["errors_by_type"].items():
                self.info(f"  {error_type}: {count}")


class NullLogger:
    """Failure logger that discards everything. Repository default."""

    def error(self, ctx: Optional[Context], message: str, **fields: Any) -> None:
        pass


class ContextLogger:
    """
    Repository failure logger backed by a StructuredLogger.

    Adds the request id and fields carried by the caller's Context to each
    record and counts the failure in the logger's metrics.
    """

    def __init__(self, logger: Optional[StructuredLogger] = None):
        self.logger = logger if logger is not None else get_logger()

    def error(self, ctx: Optional[Context], message: str, **fields: Any) -> None:
        record = {}
        if ctx is not None:
            record.update(ctx.fields)
            if ctx.request_id:
                record["request_id"] = ctx.request_id
        record.update(fields)

        self.logger.record_failure(
            str(record.get("entity", "unknown")),
            str(record.get("operation", "unknown")),
            str(record.get("error_type", "unknown")),
        )
        self.logger.error(message, **record)


# Global logger instance
_global_logger: Optional[StructuredLogger] = None


def get_logger(
    name: str = "storekit",
    level: str = "INFO",
    **kwargs
) -> StructuredLogger:
    """
    Get or create the global logger instance.

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        **kwargs: Additional arguments passed to StructuredLogger

    Returns:
        StructuredLogger instance
    """
    global _global_logger

    if _global_logger is None:
        _global_logger = StructuredLogger(name=name, level=level, **kwargs)

    return _global_logger


def logger_from_config(config) -> StructuredLogger:
    """Create the global logger from a StoreConfig."""
    reset_logger()
    return get_logger(
        level=config.log_level,
        log_dir=Path(config.log_dir),
        enable_file=config.log_to_file,
        enable_console=config.log_to_console,
    )


def reset_logger():
    """Reset the global logger (useful for testing)."""
    global _global_logger
    if _global_logger is not None:
        _global_logger.close()
    _global_logger = None


_fallback_log = logging.getLogger(__name__)


def log_failure(logger, ctx: Optional[Context], entity_type: str, operation: str, exc: BaseException) -> None:
    """
    Forward a failed operation to a repository failure logger.

    Never raises: a logger that fails is reported through the standard
    logging module and otherwise ignored.
    """
    try:
        logger.error(
            ctx,
            f"{entity_type} {operation} failed",
            entity=entity_type,
            operation=operation,
            error=str(exc),
            error_type=type(exc).__name__,
        )
    except Exception:
        _fallback_log.warning(
            "failure logger raised while reporting %s %s", entity_type, operation, exc_info=True
        )
