"""
Structured logging for jobboard.

Console output goes to stderr so command output on stdout stays
machine-readable. A daily log file is added when a log directory is
configured. The logger also keeps per-operation counters for the
repository layer.
"""

import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _handler(handler: logging.Handler, level: int, fmt: str) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=fmt, datefmt=DATE_FORMAT))
    return handler


class StructuredLogger:
    """
    Wraps a stdlib logger; keyword arguments passed to the log methods are
    appended to the message as JSON context.

    Metrics layout::

        {
            "queries_executed": int,
            "operations": {name: {"calls": int, "failures": int}},
            "errors_by_type": {error class name: int},
        }
    """

    def __init__(
        self,
        name: str = "jobboard",
        level: str = "INFO",
        log_dir: Optional[Path] = None,
        enable_file: bool = True,
        enable_console: bool = True,
    ):
        """
        Args:
            name: Logger name
            level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_dir: Directory for log files; no file output when None
            enable_file: Write logs to file (requires log_dir)
            enable_console: Output logs to stderr
        """
        numeric_level = getattr(logging, level.upper())
        self.logger = logging.getLogger(name)
        self.logger.setLevel(numeric_level)
        self.logger.handlers.clear()

        if enable_console:
            self.logger.addHandler(
                _handler(logging.StreamHandler(sys.stderr), numeric_level, CONSOLE_FORMAT)
            )

        if enable_file and log_dir is not None:
            log_dir.mkdir(parents=True, exist_ok=True)
            log_file = log_dir / f"jobboard_{datetime.now():%Y%m%d}.log"
            # file gets everything regardless of console level
            self.logger.addHandler(
                _handler(logging.FileHandler(log_file, encoding="utf-8"), logging.DEBUG, FILE_FORMAT)
            )

        self.metrics: Dict[str, Any] = {
            "queries_executed": 0,
            "operations": {},
            "errors_by_type": {},
        }

    def debug(self, message: str, **context):
        self._log(logging.DEBUG, message, context)

    def info(self, message: str, **context):
        self._log(logging.INFO, message, context)

    def warning(self, message: str, **context):
        self._log(logging.WARNING, message, context)

    def error(self, message: str, **context):
        self._log(logging.ERROR, message, context)

    def critical(self, message: str, **context):
        self._log(logging.CRITICAL, message, context)

    def _log(self, level: int, message: str, context: dict):
        if context:
            # driver values such as Decimal are rendered with str()
            message = f"{message} | Context: {json.dumps(context, default=str)}"
        self.logger.log(level, message)

    # Metrics

    def _operation_stats(self, operation: str) -> Dict[str, int]:
        return self.metrics["operations"].setdefault(operation, {"calls": 0, "failures": 0})

    def record_query(self):
        self.metrics["queries_executed"] += 1

    def record_operation(self, operation: str):
        self._operation_stats(operation)["calls"] += 1

    def record_failure(self, operation: str, error_type: str):
        """Count a failed call of ``operation`` and the error class behind it."""
        self._operation_stats(operation)["failures"] += 1
        errors = self.metrics["errors_by_type"]
        errors[error_type] = errors.get(error_type, 0) + 1

    def get_metrics(self) -> dict:
        """Return a deep copy of current metrics."""
        return {
            "queries_executed": self.metrics["queries_executed"],
            "operations": {
                name: dict(stats) for name, stats in self.metrics["operations"].items()
            },
            "errors_by_type": dict(self.metrics["errors_by_type"]),
        }

    def log_metrics_summary(self):
        metrics = self.get_metrics()
        operations = metrics["operations"]
        calls = sum(stats["calls"] for stats in operations.values())
        failures = sum(stats["failures"] for stats in operations.values())

        self.info("=== Repository Metrics ===")
        self.info(f"Queries: {metrics['queries_executed']}")
        self.info(f"Operations: {calls} ({failures} failed)")
        for name in sorted(operations):
            stats = operations[name]
            self.info(f"  {name}: {stats['calls']} calls, {stats['failures']} failed")
        for error_type, count in sorted(metrics["errors_by_type"].items()):
            self.info(f"  {error_type}: {count}")


_global_logger: Optional[StructuredLogger] = None


def get_logger(name: str = "jobboard", level: str = "INFO", **kwargs) -> StructuredLogger:
    """
    Get or create the process-wide logger.

    Arguments only apply on first creation; call reset_logger() to
    reconfigure.
    """
    global _global_logger

    if _global_logger is None:
        _global_logger = StructuredLogger(name=name, level=level, **kwargs)

    return _global_logger


def reset_logger():
    """Drop the process-wide logger (useful for testing)."""
    global _global_logger
    _global_logger = None
