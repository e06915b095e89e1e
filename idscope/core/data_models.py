"""Data models used throughout idscope.

Every record in this module lives for the duration of a single search request,
with the exception of :class:`Platform`, which is loaded once from the
platform registry and never mutated.  The models are deliberately fixed-shape
so that "not found" and "scored" are representable values rather than loose
dictionaries.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional, Tuple
from urllib.parse import urlparse

from idscope.core.error_recovery import QueryValidationError

logger = logging.getLogger(__name__)

USERNAME_PLACEHOLDER = "{username}"


class PlatformCategory(str, Enum):
    """Broad grouping of a platform, echoed back to callers."""

    SOCIAL = "social"
    PROFESSIONAL = "professional"
    GAMING = "gaming"
    CREATIVE = "creative"
    OTHER = "other"


class AnchorKind(str, Enum):
    """Categories of corroborating evidence used by the scorer."""

    HANDLE = "handle"
    GEOGRAPHIC = "geographic"
    CROSS_PLATFORM = "cross_platform"
    KEYWORD = "keyword"


@dataclass(frozen=True)
class Platform:
    """A profile host the engine knows how to address.

    Attributes
    ----------
    name: str
        Human readable platform name (``"GitHub"``).
    url_template: str
        Profile URL containing exactly one ``{username}`` placeholder.
    category: PlatformCategory
        Grouping used by front ends.
    probe_method: str
        HTTP method used by the existence prober.  ``HEAD`` is cheap; some
        servers only answer ``GET`` correctly or hide a login wall behind it.
    """

    name: str
    url_template: str
    category: PlatformCategory = PlatformCategory.OTHER
    probe_method: str = "HEAD"

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("platform name cannot be empty")
        if self.url_template.count(USERNAME_PLACEHOLDER) != 1:
            raise ValueError(
                f"url_template for {self.name!r} must contain exactly one "
                f"{USERNAME_PLACEHOLDER} placeholder"
            )
        # Frozen dataclass: normalise through object.__setattr__
        object.__setattr__(self, "category", PlatformCategory(self.category))
        object.__setattr__(self, "probe_method", self.probe_method.upper())

    def build_url(self, username: str) -> str:
        return self.url_template.replace(USERNAME_PLACEHOLDER, username)

    @property
    def domain(self) -> str:
        """Registrable host of the platform, without the handle or ``www.``."""
        host = urlparse(self.url_template).netloc.lower()
        labels = [label for label in host.split(".") if USERNAME_PLACEHOLDER not in label]
        if labels and labels[0] == "www":
            labels = labels[1:]
        return ".".join(labels)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Platform":
        return cls(
            name=data["name"],
            url_template=data.get("url_template") or data["url"],
            category=PlatformCategory(data.get("category", "other")),
            probe_method=data.get("probe_method", "HEAD"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "url": self.url_template,
            "category": self.category.value,
        }


@dataclass(frozen=True)
class AgeRange:
    """Inclusive age bracket supplied with a query."""

    min: Optional[int] = None
    max: Optional[int] = None

    def __post_init__(self) -> None:
        if self.min is not None and self.min < 0:
            raise QueryValidationError("ageRange.min cannot be negative")
        if self.min is not None and self.max is not None and self.min > self.max:
            raise QueryValidationError("ageRange.min cannot exceed ageRange.max")

    def to_dict(self) -> Dict[str, Optional[int]]:
        return {"min": self.min, "max": self.max}


@dataclass(frozen=True)
class SearchQuery:
    """Immutable description of one identity search.

    Attributes
    ----------
    raw_text: str
        The name or handle exactly as supplied by the caller.
    location: Optional[str]
        Free-text location used by the geographic anchor.
    age_range: Optional[AgeRange]
        Echoed metadata, not used for scoring.
    gender: Optional[str]
        Echoed metadata, not used for scoring.
    platform_filter: Optional[FrozenSet[str]]
        Restrict the search to these platform names.
    """

    raw_text: str
    location: Optional[str] = None
    age_range: Optional[AgeRange] = None
    gender: Optional[str] = None
    platform_filter: Optional[FrozenSet[str]] = None

    def __post_init__(self) -> None:
        if self.raw_text is None or not str(self.raw_text).strip():
            raise QueryValidationError("Identity query required")
        object.__setattr__(self, "raw_text", str(self.raw_text).strip())
        if self.location is not None:
            object.__setattr__(self, "location", self.location.strip() or None)
        if self.gender is not None:
            object.__setattr__(self, "gender", self.gender.strip() or None)
        if self.platform_filter is not None:
            object.__setattr__(self, "platform_filter", frozenset(self.platform_filter))

    @classmethod
    def build(
        cls,
        query: Optional[str],
        *,
        location: Optional[str] = None,
        age_range: Optional[AgeRange] = None,
        gender: Optional[str] = None,
        platforms: Optional[Iterable[str]] = None,
    ) -> "SearchQuery":
        """Create a query from loosely-typed caller input."""
        return cls(
            raw_text=query or "",
            location=location,
            age_range=age_range,
            gender=gender,
            platform_filter=frozenset(platforms) if platforms else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Echo the query metadata in wire form."""
        return {
            "query": self.raw_text,
            "location": self.location,
            "ageRange": self.age_range.to_dict() if self.age_range else None,
            "gender": self.gender,
            "platforms": sorted(self.platform_filter) if self.platform_filter else None,
        }


@dataclass(frozen=True)
class ProbeOutcome:
    """Result of a lightweight existence check.

    ``http_status`` is ``None`` when no response was received at all.
    """

    url: str
    exists: bool
    http_status: Optional[int] = None


@dataclass(frozen=True)
class ScrapedProfile:
    """Identity signal extracted from one candidate profile page."""

    platform: str
    url: str
    username: str
    found: bool
    title: str = ""
    bio: str = ""
    profile_image: Optional[str] = None
    has_structured_data: bool = False
    restricted: bool = False

    @classmethod
    def not_found(cls, platform: str, url: str, username: str) -> "ScrapedProfile":
        return cls(platform=platform, url=url, username=username, found=False)


@dataclass(frozen=True)
class EvidenceScore:
    """Confidence value with the anchors that produced it."""

    value: int
    reasons: Tuple[str, ...] = ()
    anchors_satisfied: FrozenSet[AnchorKind] = frozenset()

    @classmethod
    def zero(cls) -> "EvidenceScore":
        return cls(value=0)


@dataclass
class SearchResult:
    """The unit returned to callers for each candidate profile.

    Attributes
    ----------
    platform: str
        Name of the platform the profile lives on.
    url: str
        Profile URL that was fetched.
    username: str
        Handle the profile was resolved for.
    found: bool
        Whether the profile exists.
    category: str
        Platform category value.
    confidence: int
        Evidence score in ``[0, 100]``.
    match_reasons: List[str]
        Human readable anchors that contributed to ``confidence``.
    scraped_bio: str
        Extracted bio, truncated.
    profile_image: Optional[str]
        Representative image URL if one was advertised.
    """

    platform: str
    url: str
    username: str
    found: bool
    category: str
    confidence: int = 0
    match_reasons: Tuple[str, ...] = ()
    scraped_bio: str = ""
    profile_image: Optional[str] = None

    def __post_init__(self) -> None:
        if not 0 <= self.confidence <= 100:
            clamped = max(0, min(100, self.confidence))
            logger.warning(
                "Confidence %s clamped to %s for %s", self.confidence, clamped, self.url
            )
            self.confidence = clamped
        self.match_reasons = tuple(self.match_reasons)

    @classmethod
    def from_profile(
        cls, profile: ScrapedProfile, platform: Platform, score: EvidenceScore
    ) -> "SearchResult":
        return cls(
            platform=platform.name,
            url=profile.url,
            username=profile.username,
            found=profile.found,
            category=platform.category.value,
            confidence=score.value,
            match_reasons=score.reasons,
            scraped_bio=profile.bio,
            profile_image=profile.profile_image or None,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialise to the wire shape consumed by front ends."""
        data: Dict[str, Any] = {
            "platform": self.platform,
            "url": self.url,
            "username": self.username,
            "found": self.found,
            "category": self.category,
            "confidence": self.confidence,
            "matchReasons": list(self.match_reasons),
            "scrapedBio": self.scraped_bio,
        }
        if self.profile_image:
            data["profileImage"] = self.profile_image
        return data

    def __repr__(self) -> str:
        return (
            f"SearchResult(platform={self.platform!r}, url={self.url!r}, "
            f"confidence={self.confidence})"
        )
