"""Tests for profile fetching and signal extraction."""

from __future__ import annotations

import httpx
import pytest

from idscope.core.data_models import Platform, PlatformCategory
from idscope.core.http_client import AsyncHTTPClient
from idscope.search.profile import MAX_BIO_LENGTH, RESTRICTED_BIO, ProfileFetcher

URL = "https://mock.local/jane"
PLATFORM = Platform("Mock", "https://mock.local/{username}", PlatformCategory.SOCIAL)


def page(head: str = "", body: str = "") -> str:
    return f"<html><head>{head}</head><body>{body}</body></html>"


async def fetch(html: str = "", status_code: int = 200, httpx_mock=None):
    if httpx_mock is not None:
        httpx_mock.add_response(url=URL, status_code=status_code, text=html)
    async with AsyncHTTPClient() as client:
        return await ProfileFetcher(client).fetch(PLATFORM, URL, "jane")


@pytest.mark.asyncio
async def test_structured_data_takes_priority(httpx_mock):
    html = page(
        '<title>Jane Doe</title>'
        '<meta property="og:description" content="OG bio">'
        '<meta name="description" content="Meta bio">'
        '<meta property="og:image" content="https://cdn.mock/jane.png">'
        '<script type="application/ld+json">{"@type": "Person", "description": "LD bio"}</script>',
        "<p>Jane's page</p>",
    )
    profile = await fetch(html, httpx_mock=httpx_mock)

    assert profile.found is True
    assert profile.bio == "LD bio"
    assert profile.has_structured_data is True
    assert profile.title == "Jane Doe"
    assert profile.profile_image == "https://cdn.mock/jane.png"
    assert profile.platform == "Mock"
    assert profile.username == "jane"


@pytest.mark.asyncio
async def test_open_graph_then_meta_description(httpx_mock):
    html = page('<meta name="description" content="Meta bio"><meta property="og:description" content="OG bio">')
    profile = await fetch(html, httpx_mock=httpx_mock)
    assert profile.bio == "OG bio"
    assert profile.has_structured_data is False


@pytest.mark.asyncio
async def test_meta_description_fallback_and_twitter_image(httpx_mock):
    html = page(
        '<meta name="description" content="Meta bio">'
        '<meta name="twitter:image" content="https://cdn.mock/tw.png">'
    )
    profile = await fetch(html, httpx_mock=httpx_mock)
    assert profile.bio == "Meta bio"
    assert profile.profile_image == "https://cdn.mock/tw.png"


@pytest.mark.asyncio
async def test_bio_truncated(httpx_mock):
    html = page(f'<meta property="og:description" content="{"a" * 400}">')
    profile = await fetch(html, httpx_mock=httpx_mock)
    assert len(profile.bio) == MAX_BIO_LENGTH


@pytest.mark.asyncio
async def test_soft_404_title(httpx_mock):
    """A 200 page titled "Page Not Found" is not a profile."""
    profile = await fetch(page("<title>Page Not Found</title>"), httpx_mock=httpx_mock)
    assert profile.found is False
    assert profile.bio == ""


@pytest.mark.asyncio
async def test_soft_404_body_text(httpx_mock):
    html = page("<title>Mock</title>", "<h1>Sorry, this user doesn't exist.</h1>")
    profile = await fetch(html, httpx_mock=httpx_mock)
    assert profile.found is False


@pytest.mark.asyncio
async def test_noindex_with_empty_bio_is_soft_404(httpx_mock):
    html = page('<title>Mock</title><meta name="robots" content="noindex, nofollow">')
    profile = await fetch(html, httpx_mock=httpx_mock)
    assert profile.found is False


@pytest.mark.asyncio
async def test_noindex_with_bio_is_kept(httpx_mock):
    html = page(
        '<title>Jane</title><meta name="robots" content="noindex">'
        '<meta property="og:description" content="Painter">'
    )
    profile = await fetch(html, httpx_mock=httpx_mock)
    assert profile.found is True


@pytest.mark.asyncio
async def test_404_not_found(httpx_mock):
    profile = await fetch("gone", status_code=404, httpx_mock=httpx_mock)
    assert profile.found is False


@pytest.mark.asyncio
@pytest.mark.parametrize("status_code", [401, 403])
async def test_restricted_profile(httpx_mock, status_code):
    profile = await fetch("", status_code=status_code, httpx_mock=httpx_mock)
    assert profile.found is True
    assert profile.restricted is True
    assert profile.bio == RESTRICTED_BIO


@pytest.mark.asyncio
async def test_other_status_not_found(httpx_mock):
    profile = await fetch("", status_code=500, httpx_mock=httpx_mock)
    assert profile.found is False


@pytest.mark.asyncio
async def test_network_error_not_found(httpx_mock):
    httpx_mock.add_exception(httpx.ConnectError("refused"))
    profile = await fetch()
    assert profile.found is False
    assert profile.url == URL


@pytest.mark.asyncio
async def test_invalid_url_not_found():
    """A URL httpx refuses to build is reported as not found."""
    bad_url = "https://mock.local/ja\x00ne"
    transport = httpx.MockTransport(lambda request: httpx.Response(200, text=page()))
    async with AsyncHTTPClient(transport=transport) as client:
        profile = await ProfileFetcher(client).fetch(PLATFORM, bad_url, "ja\x00ne")
    assert profile.found is False
    assert profile.url == bad_url


@pytest.mark.asyncio
async def test_unopened_client_not_found():
    profile = await ProfileFetcher(AsyncHTTPClient()).fetch(PLATFORM, URL, "jane")
    assert profile.found is False


def test_is_soft_404_markers():
    assert ProfileFetcher.is_soft_404("", "User not found", "", "")
    assert not ProfileFetcher.is_soft_404("<p>Jane</p>", "Jane", "bio", "")
