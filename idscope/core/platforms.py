"""Platform registry for idscope.

The registry is an ordered, immutable collection of :class:`Platform` records.
It is loaded once at process start (built-in defaults, optionally replaced by
the ``platforms`` configuration section) and passed into the engine as a
value.  Nothing in the engine mutates it.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

from idscope.core.data_models import Platform, PlatformCategory

logger = logging.getLogger(__name__)

_S = PlatformCategory.SOCIAL
_P = PlatformCategory.PROFESSIONAL
_G = PlatformCategory.GAMING
_C = PlatformCategory.CREATIVE
_O = PlatformCategory.OTHER

# Login-walled hosts answer HEAD with 200 for any handle; GET exposes the wall.
DEFAULT_PLATFORMS: Tuple[Platform, ...] = (
    # Social
    Platform("Instagram", "https://www.instagram.com/{username}/", _S, "GET"),
    Platform("Twitter/X", "https://twitter.com/{username}", _S, "GET"),
    Platform("Facebook", "https://www.facebook.com/{username}", _S, "GET"),
    Platform("TikTok", "https://www.tiktok.com/@{username}", _S),
    Platform("Reddit", "https://www.reddit.com/user/{username}", _S),
    Platform("Pinterest", "https://www.pinterest.com/{username}/", _S),
    Platform("Tumblr", "https://{username}.tumblr.com/", _S),
    Platform("Snapchat", "https://www.snapchat.com/add/{username}", _S),
    Platform("Threads", "https://www.threads.net/@{username}", _S, "GET"),
    Platform("Bluesky", "https://bsky.app/profile/{username}", _S),
    # Professional
    Platform("LinkedIn", "https://www.linkedin.com/in/{username}", _P, "GET"),
    Platform("GitHub", "https://github.com/{username}", _P),
    Platform("GitLab", "https://gitlab.com/{username}", _P),
    Platform("Medium", "https://medium.com/@{username}", _P),
    Platform("Dev.to", "https://dev.to/{username}", _P),
    Platform("StackOverflow", "https://stackoverflow.com/users/{username}", _P),
    # Gaming
    Platform("Twitch", "https://www.twitch.tv/{username}", _G),
    Platform("Steam", "https://steamcommunity.com/id/{username}", _G),
    Platform("Xbox", "https://www.xboxgamertag.com/search/{username}", _G),
    Platform("PlayStation", "https://psnprofiles.com/{username}", _G),
    # Creative
    Platform("YouTube", "https://www.youtube.com/@{username}", _C),
    Platform("SoundCloud", "https://soundcloud.com/{username}", _C),
    Platform("Spotify", "https://open.spotify.com/user/{username}", _C),
    Platform("Behance", "https://www.behance.net/{username}", _C),
    Platform("Dribbble", "https://dribbble.com/{username}", _C),
    Platform("Vimeo", "https://vimeo.com/{username}", _C),
    Platform("Last.fm", "https://www.last.fm/user/{username}", _C),
    # Other
    Platform("Linktree", "https://linktr.ee/{username}", _O),
    Platform("Patreon", "https://www.patreon.com/{username}", _O),
    Platform("Telegram", "https://t.me/{username}", _O),
    Platform("Letterboxd", "https://letterboxd.com/{username}/", _O),
    Platform("Mastodon", "https://mastodon.social/@{username}", _O),
)

# Link shorteners and aliases that identify a platform without matching its
# registry domain.
EXTRA_LINK_DOMAINS: Tuple[str, ...] = ("t.co", "x.com", "youtu.be", "fb.com", "linkedin.com")


class PlatformRegistry:
    """Ordered, read-only set of platforms."""

    def __init__(self, platforms: Iterable[Platform]) -> None:
        ordered: List[Platform] = []
        seen = set()
        for platform in platforms:
            if platform.name in seen:
                logger.warning("Duplicate platform %r ignored", platform.name)
                continue
            seen.add(platform.name)
            ordered.append(platform)
        self._platforms: Tuple[Platform, ...] = tuple(ordered)

    @classmethod
    def default(cls) -> "PlatformRegistry":
        return cls(DEFAULT_PLATFORMS)

    @classmethod
    def from_config(cls, entries: Optional[Sequence[Mapping[str, Any]]]) -> "PlatformRegistry":
        """Build a registry from the ``platforms`` configuration section.

        An empty or missing section yields the built-in defaults.  Invalid
        entries are skipped with a warning.
        """
        if not entries:
            return cls.default()

        platforms: List[Platform] = []
        for entry in entries:
            try:
                platforms.append(Platform.from_dict(entry))
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping invalid platform entry %r: %s", entry, exc)
        if not platforms:
            logger.warning("No valid platforms configured, falling back to defaults")
            return cls.default()
        return cls(platforms)

    def __iter__(self) -> Iterator[Platform]:
        return iter(self._platforms)

    def __len__(self) -> int:
        return len(self._platforms)

    def __contains__(self, name: object) -> bool:
        return any(p.name == name for p in self._platforms)

    @property
    def platforms(self) -> Tuple[Platform, ...]:
        return self._platforms

    def get(self, name: str) -> Optional[Platform]:
        for platform in self._platforms:
            if platform.name == name:
                return platform
        return None

    def select(self, names: Optional[Iterable[str]] = None) -> Tuple[Platform, ...]:
        """Return the platforms named in ``names`` in registry order.

        ``None`` selects every platform.  Unknown names are ignored.
        """
        if names is None:
            return self._platforms
        wanted = set(names)
        unknown = wanted - {p.name for p in self._platforms}
        if unknown:
            logger.debug("Ignoring unknown platforms: %s", ", ".join(sorted(unknown)))
        return tuple(p for p in self._platforms if p.name in wanted)

    def link_domains(self) -> Tuple[str, ...]:
        """Domains whose appearance in a bio counts as a cross-platform link."""
        domains = {p.domain for p in self._platforms if p.domain}
        domains.update(EXTRA_LINK_DOMAINS)
        return tuple(sorted(domains))
