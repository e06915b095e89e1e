"""Central orchestrator for idscope.

This module defines the ``Orchestrator`` class responsible for running one
identity search end to end: it validates the query, generates handle
variations, wires the prober, fetcher, discovery client and scorer around a
shared HTTP client, runs the probe coordinator and ranks what comes back.
It exposes a single high-level coroutine used by the CLI and the HTTP API.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from idscope.core.config import Config, get_config
from idscope.core.data_models import SearchQuery, SearchResult
from idscope.core.deduplication import rank_results
from idscope.core.error_recovery import ErrorSeverity, PartialSearchResult, QueryValidationError
from idscope.core.http_client import AsyncHTTPClient
from idscope.core.logging_setup import PerformanceLogger, log_performance
from idscope.core.platforms import PlatformRegistry
from idscope.core.scoring import EvidenceScorer
from idscope.core.variant_generator import generate_variations
from idscope.search.coordinator import ProbeCoordinator
from idscope.search.discovery import DiscoveryClient
from idscope.search.profile import ProfileFetcher
from idscope.search.prober import ExistenceProber


@dataclass
class SearchReport:
    """Outcome of one identity search."""

    query: SearchQuery
    results: List[SearchResult]
    variations: List[str] = field(default_factory=list)
    platforms_searched: int = 0
    partial: Optional[PartialSearchResult] = None

    @property
    def failed_tasks(self) -> List[str]:
        return list(self.partial.tasks_failed) if self.partial else []

    def to_dict(self) -> Dict[str, Any]:
        """Wire form returned by the HTTP API."""
        return {
            "status": "success",
            "results": [result.to_dict() for result in self.results],
            "query": self.query.to_dict(),
        }


class Orchestrator:
    """Coordinates one identity search across every configured platform."""

    def __init__(
        self,
        config: Optional[Config] = None,
        registry: Optional[PlatformRegistry] = None,
        *,
        performance_logger: Optional[PerformanceLogger] = None,
    ) -> None:
        self.config = config or get_config()
        self.registry = registry or PlatformRegistry.from_config(
            self.config.get_section("platforms")
        )
        self.performance_logger = performance_logger
        self.logger = logging.getLogger(self.__class__.__name__)

    async def search(
        self,
        query: SearchQuery,
        *,
        deadline: Optional[float] = None,
    ) -> SearchReport:
        """Run an identity search and return ranked results.

        Parameters
        ----------
        query: SearchQuery
            The validated search request.
        deadline: float, optional
            Overall budget in seconds, defaults to ``search.deadline_seconds``.

        Raises
        ------
        QueryValidationError
            If the query is not a ``SearchQuery`` or its platform filter
            matches no known platform.
        """
        if not isinstance(query, SearchQuery):
            raise QueryValidationError("Identity query required")

        platforms = self.registry.select(query.platform_filter)
        if not platforms:
            raise QueryValidationError("No known platforms selected")

        cfg = self.config
        if deadline is None:
            deadline = cfg.get_float("search.deadline_seconds", 45.0)
        variations = generate_variations(
            query.raw_text, cfg.get_int("search.max_variations", 12)
        )

        self.logger.info(
            "Orchestrator: searching for '%s' across %d platforms (location=%s)",
            query.raw_text,
            len(platforms),
            query.location,
        )

        api_key = cfg.get_api_key("serpapi") if cfg.get_bool("discovery.enabled", True) else None
        fetch_timeout = cfg.get_float("search.fetch_timeout_seconds", 8.0)

        with log_performance(f"identity search '{query.raw_text}'", self.logger):
            async with AsyncHTTPClient(
                timeout=fetch_timeout,
                user_agent=cfg.get("search.user_agent") or None,
                max_connections=cfg.get_int("search.max_concurrent_requests", 10),
            ) as client:
                coordinator = ProbeCoordinator(
                    platforms,
                    prober=ExistenceProber(
                        client, timeout=cfg.get_float("search.probe_timeout_seconds", 6.0)
                    ),
                    fetcher=ProfileFetcher(client, timeout=fetch_timeout),
                    discovery=DiscoveryClient(
                        client,
                        api_key,
                        max_results=cfg.get_int("discovery.max_results", 3),
                        timeout=cfg.get_float("discovery.timeout_seconds", 10.0),
                    ),
                    scorer=EvidenceScorer(link_domains=self.registry.link_domains()),
                    concurrency=cfg.get_int("search.max_concurrent_requests", 10),
                    probe_variations=cfg.get_int("search.probe_variations", 3),
                )
                partial = await coordinator.run(query, variations, deadline=deadline)
                http_stats = client.stats

        unexpected = partial.get_errors_by_severity(ErrorSeverity.HIGH)
        if unexpected:
            self.logger.warning(
                "%d task(s) failed unexpectedly: %s",
                len(unexpected),
                ", ".join(error.task for error in unexpected),
            )

        results = rank_results(
            partial.results,
            min_confidence=cfg.get_int("search.min_confidence", 30),
            limit=cfg.get_int("search.max_results", 35),
        )

        if self.performance_logger is not None:
            self.performance_logger.log_operation(
                "identity_search",
                partial.elapsed_seconds * 1000,
                success=True,
                metadata={
                    "platforms": len(platforms),
                    "candidates": len(partial.results),
                    "published": len(results),
                    "failed_tasks": len(partial.tasks_failed),
                    "http_requests": http_stats["request_count"],
                    "http_errors": http_stats["error_count"],
                },
            )

        return SearchReport(
            query=query,
            results=results,
            variations=variations,
            platforms_searched=len(platforms),
            partial=partial,
        )
