"""Profile page fetching and identity signal extraction.

:class:`ProfileFetcher` downloads a candidate profile page and reduces it to a
:class:`ScrapedProfile`.  Signals are taken in priority order:

1. JSON-LD ``description``/``about`` (structured data)
2. ``og:description``
3. ``description`` meta tag

A soft-404 check runs on every 200 response, because many platforms render
"user not found" pages with a success status.  Network and parse failures are
reported as ``found=False``; the fetcher never raises.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Tuple

import httpx

from idscope.core.data_models import Platform, ScrapedProfile
from idscope.core.http_client import AsyncHTTPClient
from idscope.utils.parsers import HTMLParser

RESTRICTED_BIO = "[Private/Restricted Profile]"
RESTRICTED_STATUSES = frozenset({401, 403})
MAX_BIO_LENGTH = 250
SOFT_404_TEXT_WINDOW = 1000

SOFT_404_MARKERS: Tuple[str, ...] = (
    "page not found",
    "user not found",
    "profile not found",
    "account not found",
    "doesn't exist",
    "does not exist",
    "couldn't find",
    "could not find",
    "isn't available",
    "is not available",
    "404 not found",
)


class ProfileFetcher:
    """Retrieves a profile page and extracts its identity signals."""

    def __init__(self, client: AsyncHTTPClient, *, timeout: float = 8.0) -> None:
        self.client = client
        self.timeout = timeout
        self.logger = logging.getLogger(self.__class__.__name__)

    async def fetch(self, platform: Platform, url: str, username: str) -> ScrapedProfile:
        """Fetch ``url`` and classify it.

        Parameters
        ----------
        platform: Platform
            Platform the URL belongs to.
        url: str
            Candidate profile URL.
        username: str
            Handle the URL was built or discovered for.
        """
        try:
            response = await asyncio.wait_for(self.client.get(url, timeout=self.timeout), self.timeout)
        except asyncio.TimeoutError:
            self.logger.debug("Fetch timed out after %.1fs: %s", self.timeout, url)
            return ScrapedProfile.not_found(platform.name, url, username)
        except httpx.HTTPError as exc:
            self.logger.debug("Fetch failed for %s: %s", url, exc)
            return ScrapedProfile.not_found(platform.name, url, username)
        except Exception:  # noqa: BLE001
            self.logger.warning("Unexpected fetch failure for %s", url, exc_info=True)
            return ScrapedProfile.not_found(platform.name, url, username)

        status = response.status_code
        if status == 404:
            return ScrapedProfile.not_found(platform.name, url, username)

        if status in RESTRICTED_STATUSES:
            self.logger.debug("Restricted profile (%d): %s", status, url)
            return ScrapedProfile(
                platform=platform.name,
                url=url,
                username=username,
                found=True,
                bio=RESTRICTED_BIO,
                restricted=True,
            )

        if status != 200:
            self.logger.debug("Unexpected status %d for %s", status, url)
            return ScrapedProfile.not_found(platform.name, url, username)

        try:
            return self.parse(platform, url, username, response.text)
        except Exception:  # noqa: BLE001
            self.logger.warning("Failed to parse profile page %s", url, exc_info=True)
            return ScrapedProfile.not_found(platform.name, url, username)

    def parse(self, platform: Platform, url: str, username: str, html: str) -> ScrapedProfile:
        """Extract identity signals from a 200 response body."""
        meta = HTMLParser.extract_meta(html)
        title = HTMLParser.extract_title(html) or meta.get("og:title", "")

        structured_bio = HTMLParser.structured_description(html)
        bio = (
            structured_bio
            or meta.get("og:description")
            or meta.get("description")
            or ""
        )
        image = meta.get("og:image") or meta.get("twitter:image") or meta.get("twitter:image:src")

        if self.is_soft_404(html, title, bio, meta.get("robots", "")):
            self.logger.debug("Soft 404 detected: %s", url)
            return ScrapedProfile.not_found(platform.name, url, username)

        return ScrapedProfile(
            platform=platform.name,
            url=url,
            username=username,
            found=True,
            title=title,
            bio=bio[:MAX_BIO_LENGTH],
            profile_image=image or None,
            has_structured_data=structured_bio is not None,
        )

    @staticmethod
    def is_soft_404(html: str, title: str, bio: str, robots: Optional[str] = "") -> bool:
        """Whether a 200 page is really a missing-profile page."""
        if robots and "noindex" in robots.lower() and not bio:
            return True
        window = HTMLParser.extract_text(html)[:SOFT_404_TEXT_WINDOW]
        haystack = f"{title}\n{window}".lower()
        return any(marker in haystack for marker in SOFT_404_MARKERS)
