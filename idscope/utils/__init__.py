"""Utility modules for idscope."""

from idscope.utils.parsers import (
    HTMLParser,
    URLParser,
    extract_username,
)

__all__ = [
    "URLParser",
    "HTMLParser",
    "extract_username",
]
