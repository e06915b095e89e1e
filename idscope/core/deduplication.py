"""Result deduplication and ranking for idscope.

Both discovery vectors can land on the same profile, sometimes under slightly
different URLs (trailing slash, tracking parameters, host casing).  This
module merges results by canonical URL, keeps the highest-confidence
instance, drops anything below the publish threshold and orders the rest.
Everything here is pure: the output depends only on the input multiset.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Tuple
from urllib.parse import urlparse

from idscope.core.data_models import SearchResult

MIN_PUBLISH_CONFIDENCE = 30
DEFAULT_RESULT_LIMIT = 35


def canonical_url(url: Optional[str]) -> str:
    """Normalize a URL for comparison.

    Lowercases, drops query string and fragment, strips trailing slashes and
    a leading ``www.``.
    """
    if not url:
        return ""

    try:
        parsed = urlparse(url.lower().strip())
        host = parsed.netloc[4:] if parsed.netloc.startswith("www.") else parsed.netloc
        path = parsed.path.rstrip("/")
        return f"{parsed.scheme}://{host}{path}"
    except ValueError:
        return url.lower().strip()


def _preference(result: SearchResult) -> Tuple[int, int, str, str]:
    # Highest confidence wins; the remaining keys only make ties deterministic
    return (result.confidence, len(result.match_reasons), result.url, result.username)


class ResultDeduplicator:
    """Deduplicates and ranks search results."""

    def __init__(
        self,
        min_confidence: int = MIN_PUBLISH_CONFIDENCE,
        limit: Optional[int] = DEFAULT_RESULT_LIMIT,
    ) -> None:
        """Initialize the deduplicator.

        Args:
            min_confidence: Results below this confidence are never published
            limit: Maximum number of results returned, ``None`` for no cap
        """
        self.min_confidence = min_confidence
        self.limit = limit
        self.logger = logging.getLogger(self.__class__.__name__)

    def deduplicate(self, results: Iterable[SearchResult]) -> Dict[str, SearchResult]:
        """Merge results by canonical URL, keeping the best instance of each."""
        best: Dict[str, SearchResult] = {}
        for result in results:
            key = canonical_url(result.url)
            current = best.get(key)
            if current is None or _preference(result) > _preference(current):
                best[key] = result
        return best

    def rank(self, results: Iterable[SearchResult]) -> List[SearchResult]:
        """Deduplicate, filter and order results.

        The strategy:
        1. Group by canonical URL, keeping the highest confidence
        2. Drop not-found results and anything below ``min_confidence``
        3. Sort by confidence descending, URL ascending
        4. Cap at ``limit``

        Args:
            results: Results from every platform and vector

        Returns:
            Ranked list of unique results
        """
        results = list(results)
        merged = self.deduplicate(results)
        published = [
            r for r in merged.values() if r.found and r.confidence >= self.min_confidence
        ]
        published.sort(key=lambda r: (-r.confidence, r.url))
        if self.limit is not None:
            published = published[: self.limit]

        self.logger.info(
            "Ranked %d results to %d unique published results",
            len(results),
            len(published),
        )
        return published


def rank_results(
    results: Iterable[SearchResult],
    *,
    min_confidence: int = MIN_PUBLISH_CONFIDENCE,
    limit: Optional[int] = DEFAULT_RESULT_LIMIT,
) -> List[SearchResult]:
    """Convenience function to deduplicate and rank results.

    Args:
        results: Results to rank
        min_confidence: Publish threshold
        limit: Maximum number of results, ``None`` for no cap

    Returns:
        Ranked list of unique results
    """
    return ResultDeduplicator(min_confidence=min_confidence, limit=limit).rank(results)
