"""
Structured logging for dkronjob.

Console and optional file output, plus counters for the API calls made
against the Dkron server so a run can end with a short health summary.
"""

import copy
import json
import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional


class StructuredLogger:
    """
    Centralized logger with support for console and file outputs.
    Tracks metrics for every API operation attempted.
    """

    def __init__(
        self,
        name: str = "dkronjob",
        level: str = "INFO",
        log_dir: Optional[Path] = None,
        enable_file: bool = False,
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
        self.logger.propagate = False

        self.metrics = {
            "api_calls": 0,
            "operations_attempted": 0,
            "operations_successful": 0,
            "operations_failed": 0,
            "errors_by_type": {},
            "operation_success_rate": {},
        }

        if enable_console:
            console_handler = logging.StreamHandler(sys.stderr)
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
            log_dir.mkdir(parents=True, exist_ok=True)

            log_file = log_dir / f"dkronjob_{datetime.now().strftime('%Y%m%d')}.log"
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)  # file always gets everything
            file_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            file_handler.setFormatter(file_formatter)
            self.logger.addHandler(file_handler)

    def debug(self, message: str, **kwargs):
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs):
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs):
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs):
        self._log(logging.ERROR, message, kwargs)

    def _log(self, level: int, message: str, context: dict):
        if context:
            message = f"{message} | Context: {json.dumps(context, default=str)}"
        self.logger.log(level, message)

    # Metric tracking

    def record_api_call(self):
        self.metrics["api_calls"] += 1

    def record_operation_attempt(self, operation: str):
        """Record an attempted API operation (create, read, delete...)."""
        self.metrics["operations_attempted"] += 1
        stats = self.metrics["operation_success_rate"].setdefault(
            operation, {"attempts": 0, "successes": 0}
        )
        stats["attempts"] += 1

    def record_operation_success(self, operation: str):
        self.metrics["operations_successful"] += 1
        if operation in self.metrics["operation_success_rate"]:
            self.metrics["operation_success_rate"][operation]["successes"] += 1

    def record_operation_failure(self, operation: str, error_type: str):
        self.metrics["operations_failed"] += 1
        errors = self.metrics["errors_by_type"]
        errors[error_type] = errors.get(error_type, 0) + 1

    def get_metrics(self) -> dict:
        """Return current metrics with success rates filled in."""
        metrics_copy = copy.deepcopy(self.metrics)
        for stats in metrics_copy["operation_success_rate"].values():
            if stats["attempts"] > 0:
                stats["success_rate"] = round(
                    stats["successes"] / stats["attempts"], 3
                )
        return metrics_copy

    def log_metrics_summary(self):
        metrics = self.get_metrics()

        total_attempts = metrics["operations_attempted"]
        total_successes = metrics["operations_successful"]
        overall_rate = 0
        if total_attempts > 0:
            overall_rate = round(total_successes / total_attempts * 100, 1)

        self.info("=== Dkron API Metrics ===")
        self.info(f"API Calls: {metrics['api_calls']}")
        self.info(f"Operations: {total_successes}/{total_attempts} ({overall_rate}% success)")

        if metrics["operation_success_rate"]:
            self.info("Operation Success Rates:")
            for operation, stats in metrics["operation_success_rate"].items():
                rate = stats.get("success_rate", 0) * 100
                self.info(f"  {operation}: {stats['successes']}/{stats['attempts']} ({rate:.1f}%)")

        if metrics["errors_by_type"]:
            self.info("Error Types:")
            for error_type, count in metrics["errors_by_type"].items():
                self.info(f"  {error_type}: {count}")


_global_logger: Optional[StructuredLogger] = None


def get_logger(
    name: str = "dkronjob",
    level: Optional[str] = None,
    **kwargs
) -> StructuredLogger:
    """
    Get or create the global logger instance.

    Level defaults to DKRON_LOG_LEVEL (or INFO). When DKRON_LOG_DIR is set
    and no explicit file settings are passed, a file log is written there.
    """
    global _global_logger

    if _global_logger is None:
        level = level or os.getenv("DKRON_LOG_LEVEL", "INFO")
        log_dir = os.getenv("DKRON_LOG_DIR")
        if log_dir and "log_dir" not in kwargs and "enable_file" not in kwargs:
            kwargs["log_dir"] = Path(log_dir)
            kwargs["enable_file"] = True
        _global_logger = StructuredLogger(name=name, level=level, **kwargs)

    return _global_logger


def reset_logger():
    """Reset the global logger (useful for testing)."""
    global _global_logger
    _global_logger = None
