"""Error taxonomy and partial-result collection for idscope.

A search fans out into many independent (platform, vector) tasks.  Failures
inside one task are recorded here as :class:`SearchError` values so that the
remaining tasks still contribute results.  Nothing in this module retries: a
failed probe is final for the lifetime of the request.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional

if TYPE_CHECKING:
    from idscope.core.data_models import SearchResult

logger = logging.getLogger(__name__)


class QueryValidationError(ValueError):
    """Raised when a search request is rejected before any work is done."""


class ErrorSeverity(Enum):
    """Severity levels for errors."""

    LOW = "low"  # Minor issue, can continue
    MEDIUM = "medium"  # Notable issue, degraded results
    HIGH = "high"  # Major issue, partial failure
    CRITICAL = "critical"  # Complete failure


_LOG_LEVELS = {
    ErrorSeverity.LOW: logging.DEBUG,
    ErrorSeverity.MEDIUM: logging.WARNING,
    ErrorSeverity.HIGH: logging.ERROR,
    ErrorSeverity.CRITICAL: logging.CRITICAL,
}


@dataclass
class SearchError:
    """Represents an error that occurred inside one search task."""

    task: str
    query: str
    error_type: str
    message: str
    severity: ErrorSeverity = ErrorSeverity.MEDIUM
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    details: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_exception(
        cls,
        task: str,
        query: str,
        exception: BaseException,
        severity: Optional[ErrorSeverity] = None,
    ) -> "SearchError":
        error_type = type(exception).__name__
        return cls(
            task=task,
            query=query,
            error_type=error_type,
            message=str(exception) or error_type,
            severity=severity or classify_error(exception),
            details={"exception_class": type(exception).__module__ + "." + error_type},
        )

    def log(self, log: Optional[logging.Logger] = None) -> None:
        (log or logger).log(
            _LOG_LEVELS.get(self.severity, logging.ERROR),
            "Search task %s failed for query '%s': %s (%s)",
            self.task,
            self.query,
            self.message,
            self.error_type,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "task": self.task,
            "query": self.query,
            "error_type": self.error_type,
            "message": self.message,
            "severity": self.severity.value,
            "timestamp": self.timestamp.isoformat(),
            "details": self.details,
        }


@dataclass
class PartialSearchResult:
    """Result of a search that may have partial failures."""

    query: str
    results: List["SearchResult"] = field(default_factory=list)
    errors: List[SearchError] = field(default_factory=list)
    tasks_completed: List[str] = field(default_factory=list)
    tasks_failed: List[str] = field(default_factory=list)
    start_time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    end_time: Optional[datetime] = None

    @property
    def is_complete(self) -> bool:
        """Check if all tasks completed without errors."""
        return len(self.tasks_failed) == 0

    @property
    def is_partial(self) -> bool:
        """Check if some tasks failed but we have some results."""
        return len(self.tasks_failed) > 0 and len(self.results) > 0

    @property
    def success_rate(self) -> float:
        """Calculate success rate of tasks."""
        total = len(self.tasks_completed) + len(self.tasks_failed)
        if total == 0:
            return 0.0
        return len(self.tasks_completed) / total

    @property
    def elapsed_seconds(self) -> float:
        """Calculate elapsed time."""
        end = self.end_time or datetime.now(timezone.utc)
        return (end - self.start_time).total_seconds()

    def mark_complete(self) -> None:
        """Mark the search as complete."""
        self.end_time = datetime.now(timezone.utc)

    def add_results(self, results: List["SearchResult"], task: str) -> None:
        """Add results from a finished task."""
        self.results.extend(results)
        if task not in self.tasks_completed:
            self.tasks_completed.append(task)

    def add_error(self, error: SearchError) -> None:
        """Add an error."""
        self.errors.append(error)
        if error.task not in self.tasks_failed:
            self.tasks_failed.append(error.task)

    def get_errors_by_severity(self, severity: ErrorSeverity) -> List[SearchError]:
        """Get errors of a specific severity."""
        return [e for e in self.errors if e.severity == severity]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "query": self.query,
            "result_count": len(self.results),
            "error_count": len(self.errors),
            "tasks_completed": self.tasks_completed,
            "tasks_failed": self.tasks_failed,
            "is_complete": self.is_complete,
            "is_partial": self.is_partial,
            "success_rate": self.success_rate,
            "elapsed_seconds": self.elapsed_seconds,
            "errors": [e.to_dict() for e in self.errors],
        }


def classify_error(exception: BaseException) -> ErrorSeverity:
    """Classify an exception by severity.

    Args:
        exception: The exception to classify

    Returns:
        ErrorSeverity level
    """
    error_type = type(exception).__name__

    # Deadline expiry is an expected outcome
    if isinstance(exception, TimeoutError) or "Timeout" in error_type:
        return ErrorSeverity.LOW

    # Network-related errors
    network_errors = {"ConnectError", "ConnectionError", "RemoteProtocolError", "HTTPStatusError"}
    if error_type in network_errors:
        return ErrorSeverity.MEDIUM

    # Anything else is a programming or parsing error
    return ErrorSeverity.HIGH
