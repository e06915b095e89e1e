"""Concurrent probing across platforms and discovery vectors.

For every platform two independent discovery vectors run as separate tasks:

* ``direct``: probe the first few handle variations and fetch the ones that
  exist;
* ``dork``: ask the discovery client for candidate URLs and fetch each one.

All outbound requests share one semaphore, which bounds the number of
concurrent calls against third-party hosts.  The coordinator waits for every
task, up to an optional overall deadline; tasks still running at the deadline
are cancelled and reported as errors, while finished tasks keep their results.
A failure inside one task never affects the others.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional, Sequence, Tuple

from idscope.core.data_models import Platform, SearchQuery, SearchResult
from idscope.core.error_recovery import ErrorSeverity, PartialSearchResult, SearchError
from idscope.core.scoring import EvidenceScorer
from idscope.search.discovery import DiscoveryClient
from idscope.search.profile import ProfileFetcher
from idscope.search.prober import ExistenceProber
from idscope.utils.parsers import extract_username

VECTOR_DIRECT = "direct"
VECTOR_DORK = "dork"


class ProbeCoordinator:
    """Runs both discovery vectors for every platform concurrently."""

    def __init__(
        self,
        platforms: Sequence[Platform],
        *,
        prober: ExistenceProber,
        fetcher: ProfileFetcher,
        discovery: DiscoveryClient,
        scorer: EvidenceScorer,
        concurrency: int = 10,
        probe_variations: int = 3,
    ) -> None:
        self.platforms = tuple(platforms)
        self.prober = prober
        self.fetcher = fetcher
        self.discovery = discovery
        self.scorer = scorer
        self.concurrency = max(1, concurrency)
        self.probe_variations = max(1, probe_variations)
        self.logger = logging.getLogger(self.__class__.__name__)

    async def run(
        self,
        query: SearchQuery,
        variations: Sequence[str],
        *,
        deadline: Optional[float] = None,
    ) -> PartialSearchResult:
        """Probe every platform and collect found, scored results.

        Parameters
        ----------
        query: SearchQuery
            The search being answered.
        variations: Sequence[str]
            Candidate handles, primary guess first.
        deadline: float, optional
            Overall budget in seconds.  ``None`` waits for every task.
        """
        outcome = PartialSearchResult(query=query.raw_text)
        if not self.platforms:
            outcome.mark_complete()
            return outcome

        semaphore = asyncio.Semaphore(self.concurrency)
        tasks: Dict[asyncio.Task, Tuple[Platform, str]] = {}
        for platform in self.platforms:
            tasks[asyncio.create_task(self._direct(platform, query, variations, semaphore))] = (
                platform,
                VECTOR_DIRECT,
            )
            tasks[asyncio.create_task(self._dork(platform, query, variations, semaphore))] = (
                platform,
                VECTOR_DORK,
            )

        self.logger.debug(
            "Dispatched %d tasks across %d platforms (deadline=%s)",
            len(tasks),
            len(self.platforms),
            deadline,
        )
        try:
            done, pending = await asyncio.wait(tasks, timeout=deadline)
        finally:
            # Cancellation of run() itself must not orphan in-flight requests
            for task in tasks:
                if not task.done():
                    task.cancel()

        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
            self.logger.warning(
                "Deadline of %.1fs reached with %d tasks still running", deadline, len(pending)
            )

        for task, (platform, vector) in tasks.items():
            label = f"{platform.name}:{vector}"
            if task in pending or task.cancelled():
                outcome.add_error(
                    SearchError(
                        task=label,
                        query=query.raw_text,
                        error_type="DeadlineExceeded",
                        message="cancelled at request deadline",
                        severity=ErrorSeverity.LOW,
                    )
                )
                continue
            exc = task.exception()
            if exc is not None:
                error = SearchError.from_exception(label, query.raw_text, exc)
                error.log(self.logger)
                outcome.add_error(error)
                continue
            outcome.add_results(task.result(), label)

        outcome.mark_complete()
        self.logger.info(
            "Probing finished for '%s': %d results, %d failed tasks",
            query.raw_text,
            len(outcome.results),
            len(outcome.tasks_failed),
        )
        return outcome

    async def _direct(
        self,
        platform: Platform,
        query: SearchQuery,
        variations: Sequence[str],
        semaphore: asyncio.Semaphore,
    ) -> List[SearchResult]:
        candidates = [v for v in variations[: self.probe_variations] if v]
        found = await asyncio.gather(
            *(self._probe_and_fetch(platform, query, handle, semaphore) for handle in candidates)
        )
        return [result for result in found if result is not None]

    async def _probe_and_fetch(
        self,
        platform: Platform,
        query: SearchQuery,
        handle: str,
        semaphore: asyncio.Semaphore,
    ) -> Optional[SearchResult]:
        url = platform.build_url(handle)
        async with semaphore:
            probe = await self.prober.probe(url, method=platform.probe_method)
        if not probe.exists:
            self.logger.debug("%s: no profile at %s (status=%s)", platform.name, url, probe.http_status)
            return None
        return await self._fetch_and_score(platform, query, url, handle, semaphore)

    async def _dork(
        self,
        platform: Platform,
        query: SearchQuery,
        variations: Sequence[str],
        semaphore: asyncio.Semaphore,
    ) -> List[SearchResult]:
        if not self.discovery.enabled:
            return []
        async with semaphore:
            urls = await self.discovery.discover(platform.domain, query.raw_text)
        primary = variations[0] if variations else query.raw_text
        found = await asyncio.gather(
            *(
                self._fetch_and_score(
                    platform, query, url, extract_username(url) or primary, semaphore
                )
                for url in urls
            )
        )
        return [result for result in found if result is not None]

    async def _fetch_and_score(
        self,
        platform: Platform,
        query: SearchQuery,
        url: str,
        handle: str,
        semaphore: asyncio.Semaphore,
    ) -> Optional[SearchResult]:
        async with semaphore:
            profile = await self.fetcher.fetch(platform, url, handle)
        if not profile.found:
            return None
        score = self.scorer.score_profile(profile, query, exclude_domain=platform.domain)
        return SearchResult.from_profile(profile, platform, score)
