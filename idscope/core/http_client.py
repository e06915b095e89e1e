"""Asynchronous HTTP client helper.

This module provides a wrapper around the ``httpx`` asynchronous client used
by the prober, fetcher and discovery client.  It centralises the browser user
agent, redirect handling and timeouts, and keeps simple request statistics.
One client instance is shared by every task of a request so connections are
pooled.

The client never retries.  A failed request is reported to the caller once;
deciding what a failure means is the caller's job.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional

import httpx

BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

DEFAULT_HEADERS = {
    "User-Agent": BROWSER_USER_AGENT,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}


class AsyncHTTPClient:
    """A thin async HTTP client with shared defaults and request statistics."""

    def __init__(
        self,
        timeout: float = 10.0,
        *,
        user_agent: Optional[str] = None,
        max_connections: int = 20,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize the HTTP client.

        Parameters
        ----------
        timeout : float
            Default request timeout in seconds.
        user_agent : str, optional
            Overrides the default browser user agent.
        max_connections : int
            Connection pool size.
        transport : httpx.AsyncBaseTransport, optional
            Custom transport, mainly for tests.
        """
        self._timeout = timeout
        self._headers = dict(DEFAULT_HEADERS)
        if user_agent:
            self._headers["User-Agent"] = user_agent
        self._limits = httpx.Limits(max_connections=max_connections)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self.logger = logging.getLogger(self.__class__.__name__)
        self._request_count = 0
        self._error_count = 0
        self._total_request_time = 0.0

    async def __aenter__(self) -> "AsyncHTTPClient":
        self._client = httpx.AsyncClient(
            timeout=self._timeout,
            headers=self._headers,
            follow_redirects=True,
            limits=self._limits,
            transport=self._transport,
        )
        self.logger.debug("HTTP client initialized (timeout=%.1fs)", self._timeout)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            if self._request_count > 0:
                avg_time = self._total_request_time / self._request_count
                self.logger.debug(
                    "HTTP client closed (requests=%d, errors=%d, avg_time=%.2fms)",
                    self._request_count,
                    self._error_count,
                    avg_time * 1000,
                )

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> httpx.Response:
        """Make a single HTTP request.

        Parameters
        ----------
        method : str
            HTTP method (GET, HEAD, ...).
        url : str
            The URL to request.
        headers : dict, optional
            Extra HTTP headers.
        params : dict, optional
            Query parameters.
        timeout : float, optional
            Per-request timeout override in seconds.

        Returns
        -------
        httpx.Response
            The HTTP response, whatever its status code.

        Raises
        ------
        RuntimeError
            If the client is not used as a context manager.
        httpx.HTTPError
            On timeouts and transport failures.
        """
        if self._client is None:
            raise RuntimeError("AsyncHTTPClient must be used as an async context manager")

        start_time = time.perf_counter()
        try:
            response = await self._client.request(
                method,
                url,
                headers=headers,
                params=params,
                timeout=timeout if timeout is not None else self._timeout,
            )
        except httpx.HTTPError as exc:
            self._error_count += 1
            self.logger.debug("%s %s failed: %s", method, url[:100], exc)
            raise
        finally:
            self._request_count += 1
            self._total_request_time += time.perf_counter() - start_time

        self.logger.debug(
            "%s %s -> %d (%.2fms)",
            method,
            url[:100],
            response.status_code,
            (time.perf_counter() - start_time) * 1000,
        )
        return response

    async def get(
        self,
        url: str,
        *,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> httpx.Response:
        """Make a GET request."""
        return await self.request("GET", url, headers=headers, params=params, timeout=timeout)

    @property
    def stats(self) -> Dict[str, Any]:
        """Get request statistics.

        Returns
        -------
        dict
            Statistics including request count and average time.
        """
        return {
            "request_count": self._request_count,
            "error_count": self._error_count,
            "total_time_ms": self._total_request_time * 1000,
            "avg_time_ms": (
                (self._total_request_time / self._request_count * 1000)
                if self._request_count > 0
                else 0
            ),
        }
