"""Existence probing for candidate profile URLs.

The prober answers one question as cheaply as possible: does anything live at
this URL?  It prefers ``HEAD`` and only downloads a body when the platform
asks for ``GET`` or the server rejects ``HEAD``.  A body, when present, is
checked for a login or signup wall, since several platforms answer unknown
handles with a 200 login page.

Every failure mode is folded into a :class:`ProbeOutcome` with
``exists=False``; the prober never raises.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Tuple
from urllib.parse import urlparse

import httpx

from idscope.core.data_models import ProbeOutcome
from idscope.core.http_client import AsyncHTTPClient

LOGIN_WALL_MARKERS: Tuple[str, ...] = ("login", "log in", "sign in", "signup", "sign up")
LOGIN_PATH_MARKERS: Tuple[str, ...] = ("login", "signin", "sign_in", "signup", "sign_up", "accounts/login")

# Servers that do not implement HEAD
HEAD_UNSUPPORTED = frozenset({405, 501})


class ExistenceProber:
    """Lightweight existence check for a URL."""

    def __init__(self, client: AsyncHTTPClient, *, timeout: float = 6.0) -> None:
        self.client = client
        self.timeout = timeout
        self.logger = logging.getLogger(self.__class__.__name__)

    async def probe(self, url: str, *, method: str = "HEAD") -> ProbeOutcome:
        """Check whether ``url`` resolves to an existing page.

        Parameters
        ----------
        url: str
            Candidate profile URL.
        method: str
            ``HEAD`` (default) or ``GET``.

        Returns
        -------
        ProbeOutcome
            ``exists`` is True only for a 2xx/3xx final status with no login
            wall detected.
        """
        try:
            return await asyncio.wait_for(self._probe(url, method.upper()), self.timeout)
        except asyncio.TimeoutError:
            self.logger.debug("Probe timed out after %.1fs: %s", self.timeout, url)
        except httpx.HTTPError as exc:
            self.logger.debug("Probe failed for %s: %s", url, exc)
        except Exception:  # noqa: BLE001
            self.logger.warning("Unexpected probe failure for %s", url, exc_info=True)
        return ProbeOutcome(url=url, exists=False, http_status=None)

    async def _probe(self, url: str, method: str) -> ProbeOutcome:
        response = await self.client.request(method, url, timeout=self.timeout)
        if method == "HEAD" and response.status_code in HEAD_UNSUPPORTED:
            self.logger.debug("HEAD unsupported (%d), retrying as GET: %s", response.status_code, url)
            method = "GET"
            response = await self.client.request(method, url, timeout=self.timeout)

        status = response.status_code
        if not 200 <= status < 400:
            return ProbeOutcome(url=url, exists=False, http_status=status)

        if self._redirected_to_login(url, str(response.url)):
            self.logger.debug("Redirected to login wall: %s -> %s", url, response.url)
            return ProbeOutcome(url=url, exists=False, http_status=status)

        body = response.text if method == "GET" else None
        if body is not None and self.looks_like_login_wall(body):
            self.logger.debug("Login wall detected in body: %s", url)
            return ProbeOutcome(url=url, exists=False, http_status=status)

        return ProbeOutcome(url=url, exists=True, http_status=status)

    @staticmethod
    def looks_like_login_wall(body: str) -> bool:
        lowered = body.lower()
        return any(marker in lowered for marker in LOGIN_WALL_MARKERS)

    @staticmethod
    def _redirected_to_login(requested: str, final: Optional[str]) -> bool:
        if not final or final == requested:
            return False
        path = urlparse(final).path.lower()
        return any(marker in path for marker in LOGIN_PATH_MARKERS)
