"""
Structured logging for the job tracker.

Provides centralized logging with console and file outputs, plus counters
for store activity (mutations, imports, exports, storage failures).
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
    Tracks metrics for store activity.
    """

    def __init__(
        self,
        name: str = "jobtracker",
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
            "jobs_created": 0,
            "jobs_updated": 0,
            "jobs_deleted": 0,
            "updates_missed": 0,
            "imports_succeeded": 0,
            "imports_failed": 0,
            "records_imported": 0,
            "duplicates_skipped": 0,
            "exports": 0,
            "storage_errors": 0,
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

    def close(self):
        """Close and detach all handlers."""
        for handler in list(self.logger.handlers):
            handler.close()
            self.logger.removeHandler(handler)

    # Metric tracking methods

    def record_mutation(self, event: str):
        """Count a successful created/updated/deleted event."""
        key = f"jobs_{event}"
        if key in self.metrics:
            self.metrics[key] += 1

    def record_missed_update(self):
        """Count an update whose id matched nothing."""
        self.metrics["updates_missed"] += 1

    def record_import(self, added: int, skipped: int):
        """Record a successful import."""
        self.metrics["imports_succeeded"] += 1
        self.metrics["records_imported"] += added
        self.metrics["duplicates_skipped"] += skipped

    def record_import_failure(self):
        self.metrics["imports_failed"] += 1

    def record_export(self):
        self.metrics["exports"] += 1

    def record_storage_error(self):
        self.metrics["storage_errors"] += 1

    def get_metrics(self) -> dict:
        """Return a copy of current metrics, with the import success rate."""
        metrics_copy = self.metrics.copy()
        attempts = metrics_copy["imports_succeeded"] + metrics_copy["imports_failed"]
        if attempts > 0:
            metrics_copy["import_success_rate"] = round(
                metrics_copy["imports_succeeded"] / attempts, 3
            )
        return metrics_copy

    def log_metrics_summary(self):
        """Log a summary of current metrics."""
        metrics = self.get_metrics()

        self.info("=== Job Store Session Metrics ===")
        self.info(
            f"Mutations: created={metrics['jobs_created']} "
            f"updated={metrics['jobs_updated']} deleted={metrics['jobs_deleted']} "
            f"missed-updates={metrics['updates_missed']}"
        )

        attempts = metrics["imports_succeeded"] + metrics["imports_failed"]
        if attempts:
            rate = metrics["import_success_rate"] * 100
            self.info(f"Imports: {metrics['imports_succeeded']}/{attempts} ({rate:.1f}% success)")
            self.info(
                f"  records added: {metrics['records_imported']}, "
                f"duplicates skipped: {metrics['duplicates_skipped']}"
            )

        self.info(f"Exports: {metrics['exports']}")
        if metrics["storage_errors"]:
            self.warning(f"Storage read errors: {metrics['storage_errors']}")


# Global logger instance
_global_logger: Optional[StructuredLogger] = None


def get_logger(
    name: str = "jobtracker",
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
    if _global_logger is not None:
        _global_logger.close()
    _global_logger = None
