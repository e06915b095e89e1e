"""Parsing utilities for idscope.

Provides lightweight, dependency-free parsers for:
- profile page HTML (title, meta tags, JSON-LD blocks, visible text)
- profile URLs (host matching, handle extraction)
"""

import html as html_lib
import json
import logging
import re
from typing import Any, Optional
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

_TAG_ATTR = re.compile(r"""([a-zA-Z_:][-a-zA-Z0-9_:.]*)\s*=\s*("[^"]*"|'[^']*'|[^\s"'>]+)""")
_META_TAG = re.compile(r"<meta\b([^>]*)>", re.IGNORECASE)
_TITLE_TAG = re.compile(r"<title[^>]*>(.*?)</title>", re.IGNORECASE | re.DOTALL)
_JSON_LD = re.compile(
    r"""<script[^>]+type\s*=\s*["']application/ld\+json["'][^>]*>(.*?)</script>""",
    re.IGNORECASE | re.DOTALL,
)

# Path segments that never name a profile
NON_PROFILE_SEGMENTS = frozenset(
    {
        "home",
        "explore",
        "search",
        "settings",
        "about",
        "help",
        "login",
        "signup",
        "hashtag",
        "tags",
        "p",
        "post",
        "status",
        "watch",
    }
)
PROFILE_PREFIX_SEGMENTS = frozenset({"user", "users", "u", "in", "id", "profile", "add"})


def _parse_attributes(raw: str) -> dict[str, str]:
    attrs = {}
    for name, value in _TAG_ATTR.findall(raw):
        if value[:1] in ("'", '"'):
            value = value[1:-1]
        attrs[name.lower()] = html_lib.unescape(value)
    return attrs


class HTMLParser:
    """Simple HTML content parser."""

    @staticmethod
    def extract_text(html: str) -> str:
        """Extract plain text from HTML.

        Args:
            html: HTML content

        Returns:
            Plain text
        """
        if not html:
            return ""

        # Remove script, style and head elements
        html = re.sub(r"<script[^>]*>.*?</script>", "", html, flags=re.DOTALL | re.IGNORECASE)
        html = re.sub(r"<style[^>]*>.*?</style>", "", html, flags=re.DOTALL | re.IGNORECASE)
        html = re.sub(r"<head[^>]*>.*?</head>", "", html, flags=re.DOTALL | re.IGNORECASE)

        # Replace common block elements with newlines
        html = re.sub(r"<(p|div|br|h[1-6]|li|tr)[^>]*>", "\n", html, flags=re.IGNORECASE)

        # Remove all remaining tags
        html = re.sub(r"<[^>]+>", "", html)
        html = html_lib.unescape(html)

        # Clean up whitespace
        html = re.sub(r"\n\s*\n", "\n\n", html)
        html = re.sub(r"[ \t]+", " ", html)

        return html.strip()

    @staticmethod
    def extract_title(html: str) -> str:
        """Extract the document ``<title>``, or an empty string."""
        if not html:
            return ""
        match = _TITLE_TAG.search(html)
        if not match:
            return ""
        return re.sub(r"\s+", " ", html_lib.unescape(match.group(1))).strip()

    @staticmethod
    def extract_meta(html: str) -> dict[str, str]:
        """Extract meta tags from HTML.

        Both ``name=`` and ``property=`` keyed tags are collected, in any
        attribute order.  Keys are lowercased; the first occurrence wins.

        Args:
            html: HTML content

        Returns:
            Dictionary of meta tag name/content pairs
        """
        if not html:
            return {}

        meta: dict[str, str] = {}
        for raw in _META_TAG.findall(html):
            attrs = _parse_attributes(raw)
            key = attrs.get("property") or attrs.get("name")
            content = attrs.get("content")
            if key is None or content is None:
                continue
            meta.setdefault(key.lower(), content.strip())
        return meta

    @staticmethod
    def extract_json_ld(html: str) -> list[Any]:
        """Extract parsed JSON-LD blocks.

        Blocks that are not valid JSON are skipped.  ``@graph`` containers
        and top-level arrays are flattened.
        """
        if not html:
            return []

        blocks: list[Any] = []
        for raw in _JSON_LD.findall(html):
            try:
                data = json.loads(raw.strip())
            except ValueError:
                logger.debug("Skipping malformed JSON-LD block")
                continue
            stack = data if isinstance(data, list) else [data]
            for item in stack:
                if isinstance(item, dict) and isinstance(item.get("@graph"), list):
                    blocks.extend(item["@graph"])
                else:
                    blocks.append(item)
        return blocks

    @staticmethod
    def structured_description(html: str) -> Optional[str]:
        """First ``description``/``about`` text found in JSON-LD blocks."""
        for block in HTMLParser.extract_json_ld(html):
            if not isinstance(block, dict):
                continue
            for key in ("description", "about"):
                value = block.get(key)
                if isinstance(value, dict):
                    value = value.get("description") or value.get("name")
                if isinstance(value, str) and value.strip():
                    return value.strip()
            main = block.get("mainEntity")
            if isinstance(main, dict):
                for key in ("description", "about"):
                    value = main.get(key)
                    if isinstance(value, str) and value.strip():
                        return value.strip()
        return None


class URLParser:
    """Parses and analyzes profile URLs."""

    @staticmethod
    def hostname(url: str) -> str:
        """Lowercased host of ``url`` without a leading ``www.``."""
        if not url:
            return ""
        if "://" not in url:
            url = "https://" + url
        host = (urlparse(url).hostname or "").lower()
        return host[4:] if host.startswith("www.") else host

    @classmethod
    def belongs_to(cls, url: str, domain: str) -> bool:
        """Whether ``url`` is hosted on ``domain`` or one of its subdomains."""
        host = cls.hostname(url)
        domain = domain.lower()
        return bool(host) and (host == domain or host.endswith("." + domain))

    @staticmethod
    def extract_username_from_url(url: str) -> Optional[str]:
        """Extract a handle from a social media profile URL.

        Args:
            url: Social media profile URL

        Returns:
            Username or None
        """
        if not url:
            return None
        parsed = urlparse(url if "://" in url else "https://" + url)
        parts = [p for p in parsed.path.split("/") if p]

        # Subdomain handles: name.tumblr.com
        if not parts:
            labels = (parsed.hostname or "").split(".")
            if len(labels) > 2 and labels[0] != "www":
                return labels[0]
            return None

        first = parts[0]
        if first.lower() in PROFILE_PREFIX_SEGMENTS and len(parts) >= 2:
            first = parts[1]
        elif first.lower() in NON_PROFILE_SEGMENTS:
            return None

        handle = first.lstrip("@")
        return handle or None


def extract_username(url: str) -> Optional[str]:
    """Extract username from social media URL."""
    return URLParser.extract_username_from_url(url)
