"""Tests for the existence prober."""

from __future__ import annotations

import httpx
import pytest

from idscope.core.http_client import AsyncHTTPClient
from idscope.search.prober import ExistenceProber

URL = "https://mock.local/jane"


@pytest.mark.asyncio
async def test_probe_existing_profile(httpx_mock):
    httpx_mock.add_response(method="HEAD", url=URL, status_code=200)

    async with AsyncHTTPClient() as client:
        outcome = await ExistenceProber(client).probe(URL)

    assert outcome.exists is True
    assert outcome.http_status == 200
    assert outcome.url == URL


@pytest.mark.asyncio
async def test_probe_404_is_absent(httpx_mock):
    httpx_mock.add_response(method="HEAD", url=URL, status_code=404)

    async with AsyncHTTPClient() as client:
        outcome = await ExistenceProber(client).probe(URL)

    assert outcome.exists is False
    assert outcome.http_status == 404


@pytest.mark.asyncio
async def test_probe_server_error_is_absent(httpx_mock):
    httpx_mock.add_response(method="HEAD", url=URL, status_code=503)

    async with AsyncHTTPClient() as client:
        outcome = await ExistenceProber(client).probe(URL)

    assert outcome.exists is False


@pytest.mark.asyncio
async def test_head_not_allowed_falls_back_to_get(httpx_mock):
    httpx_mock.add_response(method="HEAD", url=URL, status_code=405)
    httpx_mock.add_response(method="GET", url=URL, status_code=200, text="<h1>Jane</h1>")

    async with AsyncHTTPClient() as client:
        outcome = await ExistenceProber(client).probe(URL)

    assert outcome.exists is True
    assert [r.method for r in httpx_mock.get_requests()] == ["HEAD", "GET"]


@pytest.mark.asyncio
async def test_get_probe_detects_login_wall(httpx_mock):
    httpx_mock.add_response(
        method="GET", url=URL, status_code=200, text="<form>Log in to continue</form>"
    )

    async with AsyncHTTPClient() as client:
        outcome = await ExistenceProber(client).probe(URL, method="GET")

    assert outcome.exists is False
    assert outcome.http_status == 200


@pytest.mark.asyncio
async def test_redirect_to_login_is_absent(httpx_mock):
    httpx_mock.add_response(
        method="HEAD",
        url=URL,
        status_code=302,
        headers={"Location": "https://mock.local/accounts/login/"},
    )
    httpx_mock.add_response(method="HEAD", url="https://mock.local/accounts/login/", status_code=200)

    async with AsyncHTTPClient() as client:
        outcome = await ExistenceProber(client).probe(URL)

    assert outcome.exists is False


@pytest.mark.asyncio
async def test_network_error_is_absent(httpx_mock):
    httpx_mock.add_exception(httpx.ConnectError("connection refused"))

    async with AsyncHTTPClient() as client:
        outcome = await ExistenceProber(client).probe(URL)

    assert outcome.exists is False
    assert outcome.http_status is None


@pytest.mark.asyncio
async def test_timeout_is_absent(httpx_mock):
    httpx_mock.add_exception(httpx.ReadTimeout("timed out"))

    async with AsyncHTTPClient() as client:
        outcome = await ExistenceProber(client, timeout=1.0).probe(URL)

    assert outcome.exists is False
    assert outcome.http_status is None


@pytest.mark.asyncio
async def test_probe_never_raises():
    """Even misuse of the client is folded into an absent outcome."""
    client = AsyncHTTPClient()
    outcome = await ExistenceProber(client).probe(URL)
    assert outcome.exists is False


@pytest.mark.parametrize(
    "body,expected",
    [
        ("Please Sign In", True),
        ("signup today", True),
        ("<h1>Jane Doe</h1><p>Designer</p>", False),
    ],
)
def test_looks_like_login_wall(body, expected):
    assert ExistenceProber.looks_like_login_wall(body) is expected
