"""Logging configuration for idscope.

This module defines the logging infrastructure:
- Standard application logging with rotation
- Structured JSON logging for machine parsing
- Audit logging of every identity search
- Performance logging for search timings

Entry points (CLI, API) should call ``configure_logging`` or
``configure_comprehensive_logging`` once at startup.
"""

import json
import logging
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Tuple

AUDIT_LOGGER_NAME = "idscope.audit"
PERFORMANCE_LOGGER_NAME = "idscope.performance"


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON.

        Args:
            record: Log record to format

        Returns:
            JSON-formatted log string
        """
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "extra_fields"):
            log_data.update(record.extra_fields)

        return json.dumps(log_data, default=str)


def _rotating_json_handler(log_file: Path, backup_count: int) -> RotatingFileHandler:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_file,
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=backup_count,
    )
    handler.setFormatter(JSONFormatter())
    return handler


class AuditLogger:
    """Dedicated audit logger recording who searched for what."""

    def __init__(self, log_file: Optional[Path] = None):
        """Initialize audit logger.

        Args:
            log_file: Path to audit log file
        """
        self.logger = logging.getLogger(AUDIT_LOGGER_NAME)
        self.logger.setLevel(logging.INFO)
        self.logger.propagate = False

        if log_file is not None:
            self.logger.addHandler(_rotating_json_handler(log_file, backup_count=10))

    def log_search(
        self,
        client: str,
        query: str,
        *,
        location: Optional[str] = None,
        platforms: Optional[int] = None,
        results_count: int = 0,
        failed_tasks: int = 0,
        success: bool = True,
    ) -> None:
        """Log an identity search.

        Args:
            client: Caller identity (remote address, ``cli``)
            query: Identity query text
            location: Location filter, if any
            platforms: Number of platforms probed
            results_count: Number of published results
            failed_tasks: Number of probe tasks that failed or timed out
            success: Whether the search completed without an engine failure
        """
        self.logger.info(
            "Search performed",
            extra={
                "extra_fields": {
                    "event_type": "search",
                    "client": client,
                    "query": query,
                    "location": location,
                    "platforms": platforms,
                    "results_count": results_count,
                    "failed_tasks": failed_tasks,
                    "success": success,
                }
            },
        )


class PerformanceLogger:
    """Logger for search timings."""

    def __init__(self, log_file: Optional[Path] = None):
        """Initialize performance logger.

        Args:
            log_file: Path to performance log file
        """
        self.logger = logging.getLogger(PERFORMANCE_LOGGER_NAME)
        self.logger.setLevel(logging.INFO)
        self.logger.propagate = False

        if log_file is not None:
            self.logger.addHandler(_rotating_json_handler(log_file, backup_count=5))

    def log_operation(
        self,
        operation: str,
        duration_ms: float,
        success: bool,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Log an operation's performance.

        Args:
            operation: Name of the operation
            duration_ms: Duration in milliseconds
            success: Whether the operation succeeded
            metadata: Additional metadata
        """
        log_data: Dict[str, Any] = {
            "event_type": "performance",
            "operation": operation,
            "duration_ms": round(duration_ms, 2),
            "success": success,
        }
        if metadata:
            log_data.update(metadata)

        self.logger.info(
            f"Operation completed: {operation}",
            extra={"extra_fields": log_data},
        )


@contextmanager
def log_performance(operation: str, logger: Optional[logging.Logger] = None) -> Iterator[None]:
    """Context manager for logging operation performance.

    Args:
        operation: Name of the operation
        logger: Logger to use (default: root logger)

    Example:
        with log_performance("identity_search"):
            report = await orchestrator.search(query)
    """
    if logger is None:
        logger = logging.getLogger()

    start_time = time.perf_counter()
    success = False
    try:
        yield
        success = True
    finally:
        duration_ms = (time.perf_counter() - start_time) * 1000
        logger.info(f"{operation} completed in {duration_ms:.2f}ms (success={success})")


def configure_logging(
    log_file: Optional[Path] = None,
    level: int = logging.INFO,
    max_bytes: int = 5 * 1024 * 1024,
    backup_count: int = 3,
    use_json: bool = False,
    console_output: bool = True,
) -> None:
    """Configure root logging handlers with optional JSON formatting.

    Parameters
    ----------
    log_file: Path, optional
        If provided, logs will be written to this file with rotation.  The
        directory will be created if it does not exist.
    level: int
        Logging level (e.g. ``logging.INFO`` or ``logging.DEBUG``).
    max_bytes: int
        Maximum size of each log file before rotation.
    backup_count: int
        Number of rotated log files to keep.
    use_json: bool
        If True, use JSON structured logging format.
    console_output: bool
        If True, enable console output handler.
    """
    # Prevent duplicate handlers if configure_logging is called multiple times
    root = logging.getLogger()
    if root.handlers:
        return

    root.setLevel(level)

    if use_json:
        formatter: logging.Formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    if console_output:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))


def configure_comprehensive_logging(
    log_dir: Path = Path("logs"),
    level: int = logging.INFO,
    use_json: bool = False,
    console_output: bool = True,
) -> Tuple[AuditLogger, PerformanceLogger]:
    """Configure all logging subsystems for idscope.

    Args:
        log_dir: Base directory for log files
        level: Logging level for application logs
        use_json: Use JSON structured logging
        console_output: Enable console output

    Returns:
        Tuple of (audit_logger, performance_logger)
    """
    main_log = log_dir / "idscope.log"
    configure_logging(
        log_file=main_log,
        level=level,
        use_json=use_json,
        console_output=console_output,
    )

    audit_logger = AuditLogger(log_dir / "audit.log")
    performance_logger = PerformanceLogger(log_dir / "performance.log")

    logging.getLogger(__name__).info(
        f"Logging configured: main={main_log}, "
        f"audit={log_dir / 'audit.log'}, perf={log_dir / 'performance.log'}"
    )

    return audit_logger, performance_logger
