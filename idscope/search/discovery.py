"""Search-engine assisted profile discovery.

:class:`DiscoveryClient` asks SerpApi's Google engine for pages on one
platform whose title mentions the query, using a dork that excludes search
and login noise.  It is an optional collaborator: without an API key it is
disabled and simply returns no candidates, and any provider failure degrades
to the same empty answer.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional, Tuple

import httpx

from idscope.core.http_client import AsyncHTTPClient
from idscope.utils.parsers import URLParser

SERPAPI_URL = "https://serpapi.com/search.json"

NON_PROFILE_PATH_PATTERNS: Tuple[str, ...] = (
    "/search",
    "/login",
    "/signup",
    "/explore",
    "/hashtag",
    "/tags/",
    "/status/",
    "/p/",
    "/watch",
)

MIN_RESULTS = 2
MAX_RESULTS = 5


class DiscoveryClient:
    """Turns ``(platform domain, query)`` into candidate profile URLs."""

    def __init__(
        self,
        client: AsyncHTTPClient,
        api_key: Optional[str] = None,
        *,
        max_results: int = 3,
        timeout: float = 10.0,
        engine: str = "google",
    ) -> None:
        self.client = client
        self.api_key = api_key or None
        self.max_results = max(MIN_RESULTS, min(MAX_RESULTS, max_results))
        self.timeout = timeout
        self.engine = engine
        self.logger = logging.getLogger(self.__class__.__name__)

    @property
    def enabled(self) -> bool:
        return self.api_key is not None

    @staticmethod
    def build_dork(domain: str, query_text: str) -> str:
        query_text = query_text.replace('"', "").strip()
        return f'site:{domain} intitle:"{query_text}" -inurl:search -inurl:login'

    async def discover(self, domain: str, query_text: str) -> List[str]:
        """Return up to ``max_results`` candidate URLs hosted on ``domain``."""
        if not self.enabled:
            self.logger.debug("Discovery disabled (no API key); skipping %s", domain)
            return []

        params: Dict[str, Any] = {
            "engine": self.engine,
            "q": self.build_dork(domain, query_text),
            "api_key": self.api_key,
            "num": MAX_RESULTS,
        }
        try:
            response = await asyncio.wait_for(
                self.client.get(SERPAPI_URL, params=params, timeout=self.timeout),
                self.timeout,
            )
            if response.status_code != 200:
                self.logger.warning(
                    "Discovery provider returned %d for %s", response.status_code, domain
                )
                return []
            payload = response.json()
        except asyncio.TimeoutError:
            self.logger.warning("Discovery timed out for %s", domain)
            return []
        except (httpx.HTTPError, ValueError) as exc:
            self.logger.warning("Discovery failed for %s: %s", domain, exc)
            return []

        return self.extract_candidates(payload, domain)

    def extract_candidates(self, payload: Any, domain: str) -> List[str]:
        """Filter a SerpApi payload down to profile-looking URLs on ``domain``."""
        if not isinstance(payload, dict):
            self.logger.warning("Malformed discovery payload for %s", domain)
            return []
        if payload.get("error"):
            self.logger.warning("Discovery provider error for %s: %s", domain, payload["error"])
            return []

        organic = payload.get("organic_results") or []
        candidates: List[str] = []
        for item in organic:
            link = item.get("link") if isinstance(item, dict) else None
            if not isinstance(link, str) or not URLParser.belongs_to(link, domain):
                continue
            if self._is_non_profile(link) or link in candidates:
                continue
            candidates.append(link)
            if len(candidates) >= self.max_results:
                break

        self.logger.debug("Discovery found %d candidates on %s", len(candidates), domain)
        return candidates

    @staticmethod
    def _is_non_profile(url: str) -> bool:
        lowered = url.lower()
        return any(pattern in lowered for pattern in NON_PROFILE_PATH_PATTERNS)
