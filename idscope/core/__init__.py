"""Core functionality for idscope.

This package contains the engine's building blocks: data models, handle
variations, evidence scoring, deduplication, the platform registry, the HTTP
client, configuration, logging and the orchestrator that wires them together.
"""

from .data_models import (  # noqa: F401
    AgeRange,
    Platform,
    PlatformCategory,
    SearchQuery,
    SearchResult,
)
from .http_client import AsyncHTTPClient  # noqa: F401
from .logging_setup import configure_logging  # noqa: F401
from .variant_generator import generate_variations  # noqa: F401
from .config import Config, get_config, ValidationResult  # noqa: F401
from .deduplication import rank_results, ResultDeduplicator  # noqa: F401
from .platforms import PlatformRegistry  # noqa: F401
from .scoring import EvidenceScorer  # noqa: F401
from .error_recovery import (  # noqa: F401
    PartialSearchResult,
    QueryValidationError,
    SearchError,
    ErrorSeverity,
)

__all__ = [
    # Models
    "AgeRange",
    "Platform",
    "PlatformCategory",
    "SearchQuery",
    "SearchResult",
    # Engine
    "AsyncHTTPClient",
    "generate_variations",
    "EvidenceScorer",
    "rank_results",
    "ResultDeduplicator",
    "PlatformRegistry",
    # Config
    "Config",
    "get_config",
    "ValidationResult",
    "configure_logging",
    # Error Recovery
    "PartialSearchResult",
    "QueryValidationError",
    "SearchError",
    "ErrorSeverity",
]
