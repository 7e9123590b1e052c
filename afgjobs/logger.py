"""
Structured logging system for afgjobs.

Provides centralized logging with console and file outputs, plus
in-process metrics for monitoring storage health (reads, writes,
quota failures) and the outcomes of store operations.
"""

import logging
import sys
from pathlib import Path
from typing import Optional
from datetime import datetime
import json


class StructuredLogger:
    """
    Centralized logger with support for console and file outputs.
    Tracks storage and operation metrics.
    """

    def __init__(
        self,
        name: str = "afgjobs",
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
        self.logger.propagate = False

        self.metrics = {
            "reads": 0,
            "writes_attempted": 0,
            "writes_successful": 0,
            "writes_failed": 0,
            "errors_by_type": {},
            "key_write_stats": {},
            "outcomes": {},
        }

        # Console goes to stderr so command output on stdout stays clean
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

            log_file = log_dir / f"afgjobs_{datetime.now().strftime('%Y%m%d')}.log"
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)  # Always log everything to file
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
            message = f"{message} | Context: {json.dumps(context, default=str)}"
        self.logger.log(level, message)

    # Metric tracking methods

    def record_read(self):
        """Increment storage read counter."""
        self.metrics["reads"] += 1

    def record_write_attempt(self, key: str):
        """Record a write attempt against a storage key."""
        self.metrics["writes_attempted"] += 1
        if key not in self.metrics["key_write_stats"]:
            self.metrics["key_write_stats"][key] = {
                "attempts": 0,
                "successes": 0
            }
        self.metrics["key_write_stats"][key]["attempts"] += 1

    def record_write_success(self, key: str):
        """Record successful write."""
        self.metrics["writes_successful"] += 1
        if key in self.metrics["key_write_stats"]:
            self.metrics["key_write_stats"][key]["successes"] += 1

    def record_write_failure(self, key: str, error_type: str):
        """Record failed write."""
        self.metrics["writes_failed"] += 1

        if error_type not in self.metrics["errors_by_type"]:
            self.metrics["errors_by_type"][error_type] = 0
        self.metrics["errors_by_type"][error_type] += 1

    def record_outcome(self, operation: str, outcome: str):
        """Count an operation outcome, e.g. ("delete", "not-owner")."""
        per_op = self.metrics["outcomes"].setdefault(operation, {})
        per_op[outcome] = per_op.get(outcome, 0) + 1

    def get_metrics(self) -> dict:
        """Return current metrics."""
        metrics_copy = self.metrics.copy()
        for key, stats in metrics_copy["key_write_stats"].items():
            if stats["attempts"] > 0:
                stats["success_rate"] = round(
                    stats["successes"] / stats["attempts"], 3
                )

        return metrics_copy

    def log_metrics_summary(self):
        """Log a summary of current metrics."""
        metrics = self.get_metrics()

        total_attempts = metrics["writes_attempted"]
        total_successes = metrics["writes_successful"]
        overall_rate = 0
        if total_attempts > 0:
            overall_rate = round(total_successes / total_attempts * 100, 1)

        self.info("=== Storage Session Metrics ===")
        self.info(f"Reads: {metrics['reads']}")
        self.info(f"Writes: {total_successes}/{total_attempts} ({overall_rate}% success)")

        if metrics["key_write_stats"]:
            self.info("Writes by key:")
            for key, stats in metrics["key_write_stats"].items():
                rate = stats.get("success_rate", 0) * 100
                self.info(f"  {key}: {stats['successes']}/{stats['attempts']} ({rate:.1f}%)")

        if metrics["errors_by_type"]:
            self.info("Error Types:")
            for error_type, count in metrics["errors_by_type"].items():
                self.info(f"  {error_type}: {count}")

        if metrics["outcomes"]:
            self.info("Outcomes:")
            for operation, counts in metrics["outcomes"].items():
                summary = ", ".join(f"{k}={v}" for k, v in sorted(counts.items()))
                self.info(f"  {operation}: {summary}")


# Global logger instance
_global_logger: Optional[StructuredLogger] = None


def get_logger(
    name: str = "afgjobs",
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


def reset_logger():
    """Reset the global logger (useful for testing)."""
    global _global_logger
    _global_logger = None
