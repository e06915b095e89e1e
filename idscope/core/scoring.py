"""Weighted evidence scoring for candidate profiles.

Each candidate is scored against a fixed table of *anchors*: independent
categories of corroborating evidence, each carrying a weight.  The score is
the share of applicable weight that was satisfied, expressed as a percentage.

Two rules sit on top of the ratio:

* anchor promotion: when two or more distinct anchors are fully satisfied the
  score is raised to at least :data:`PROMOTION_FLOOR`;
* a floor of :data:`FOUND_FLOOR` for any profile that exists, so that ``0``
  keeps meaning "not found".

The handle anchor always counts towards the total weight.  The location
anchor counts only when the query carries a location, and the link and
keyword anchors only when the bio carries that signal.  Queries with little
metadata are therefore normalised against a smaller total, which lets a lone
handle match score highly.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Pattern, Sequence, Set, Tuple

from idscope.core.data_models import AnchorKind, EvidenceScore, ScrapedProfile, SearchQuery

HANDLE_WEIGHT = 40
GEOGRAPHIC_WEIGHT = 25
CROSS_PLATFORM_WEIGHT = 20
KEYWORD_WEIGHT = 15

# Graded handle correlation, as awarded points out of HANDLE_WEIGHT
HANDLE_EXACT = 40
HANDLE_CONTAINMENT = 35
HANDLE_TOKEN = 25
HANDLE_BASELINE = 10

PROMOTION_FLOOR = 90
FOUND_FLOOR = 15

DEFAULT_LINK_DOMAINS: Tuple[str, ...] = (
    "twitter.com",
    "t.co",
    "x.com",
    "facebook.com",
    "linkedin.com",
    "github.com",
    "youtube.com",
    "instagram.com",
)

DEFAULT_KEYWORDS: Tuple[str, ...] = (
    "engineer",
    "developer",
    "creator",
    "founder",
    "student",
    "artist",
    "writer",
    "designer",
    "photographer",
    "musician",
)

REASON_HANDLE_EXACT = "Exact Identity Handle Match"
REASON_HANDLE_CONTAINMENT = "Identity Handle Correspondence"
REASON_HANDLE_TOKEN = "Partial Handle Token Overlap"
REASON_HANDLE_BASELINE = "Unverified Platform Presence"
REASON_GEOGRAPHIC = "Geographic Entity Match"
REASON_CROSS_PLATFORM = "Cross-Platform Identity Links Detected"
REASON_KEYWORD = "Professional Context Match"

_SEPARATORS = re.compile(r"[\s._\-@]+")
_MIN_TOKEN_LENGTH = 3


def _compact(value: str) -> str:
    return _SEPARATORS.sub("", value.lower())


def _tokens(value: str) -> Set[str]:
    return {t for t in _SEPARATORS.split(value.lower()) if len(t) >= _MIN_TOKEN_LENGTH}


@dataclass(frozen=True)
class HandleMatch:
    """Graded outcome of comparing a candidate handle with the query."""

    points: int
    reason: str
    satisfied: bool


def correlate_handle(candidate: str, query: str) -> HandleMatch:
    """Grade how closely ``candidate`` corresponds to ``query``.

    Exact comparison is on the lowercased, trimmed strings.  Containment
    compares the separator-free forms in either direction.  Token overlap
    looks for any shared token of at least three characters.  Anything else
    still earns the baseline.
    """
    cand = (candidate or "").lower().strip()
    text = (query or "").lower().strip()

    if cand and cand == text:
        return HandleMatch(HANDLE_EXACT, REASON_HANDLE_EXACT, True)

    compact_cand, compact_query = _compact(cand), _compact(text)
    if compact_cand and compact_query and (
        compact_cand in compact_query or compact_query in compact_cand
    ):
        return HandleMatch(HANDLE_CONTAINMENT, REASON_HANDLE_CONTAINMENT, True)

    query_tokens = _tokens(text)
    cand_tokens = _tokens(cand)
    if query_tokens & cand_tokens or any(t in compact_cand for t in query_tokens):
        return HandleMatch(HANDLE_TOKEN, REASON_HANDLE_TOKEN, False)

    return HandleMatch(HANDLE_BASELINE, REASON_HANDLE_BASELINE, False)


class EvidenceScorer:
    """Converts extracted profile signals into an :class:`EvidenceScore`."""

    def __init__(
        self,
        link_domains: Optional[Iterable[str]] = None,
        keywords: Optional[Sequence[str]] = None,
    ) -> None:
        domains = sorted({d.lower() for d in (link_domains or DEFAULT_LINK_DOMAINS) if d})
        self.link_domains: Tuple[str, ...] = tuple(domains)
        self.keywords: Tuple[str, ...] = tuple(k.lower() for k in (keywords or DEFAULT_KEYWORDS))
        self._link_patterns: List[Tuple[str, Pattern[str]]] = [
            (domain, re.compile(r"(?<![\w-])" + re.escape(domain) + r"(?![\w-])"))
            for domain in self.link_domains
        ]
        self.logger = logging.getLogger(self.__class__.__name__)

    def score(
        self,
        candidate_handle: str,
        query: SearchQuery,
        scraped_bio: str,
        page_title: str,
        *,
        exclude_domain: Optional[str] = None,
    ) -> EvidenceScore:
        """Score one found profile.

        Parameters
        ----------
        candidate_handle: str
            Handle the profile was resolved for.
        query: SearchQuery
            The search, including optional location metadata.
        scraped_bio: str
            Bio text extracted from the page.
        page_title: str
            Title of the page.
        exclude_domain: str, optional
            The profile's own platform domain, which never counts as a
            cross-platform link.
        """
        bio = (scraped_bio or "").lower()
        title = (page_title or "").lower()

        total_weight = 0
        raw_score = 0
        reasons: List[str] = []
        satisfied: Set[AnchorKind] = set()

        # Handle correlation always applies and always contributes
        total_weight += HANDLE_WEIGHT
        handle = correlate_handle(candidate_handle, query.raw_text)
        raw_score += handle.points
        reasons.append(handle.reason)
        if handle.satisfied:
            satisfied.add(AnchorKind.HANDLE)

        if query.location:
            total_weight += GEOGRAPHIC_WEIGHT
            location = query.location.lower()
            if location in bio or location in title:
                raw_score += GEOGRAPHIC_WEIGHT
                reasons.append(REASON_GEOGRAPHIC)
                satisfied.add(AnchorKind.GEOGRAPHIC)

        # Content anchors only enter the total when the bio carries the signal
        if self._has_cross_platform_link(bio, exclude_domain):
            total_weight += CROSS_PLATFORM_WEIGHT
            raw_score += CROSS_PLATFORM_WEIGHT
            reasons.append(REASON_CROSS_PLATFORM)
            satisfied.add(AnchorKind.CROSS_PLATFORM)

        if any(keyword in bio for keyword in self.keywords):
            total_weight += KEYWORD_WEIGHT
            raw_score += KEYWORD_WEIGHT
            reasons.append(REASON_KEYWORD)
            satisfied.add(AnchorKind.KEYWORD)

        value = int(100 * raw_score / total_weight + 0.5)
        value = max(0, min(100, value))
        if len(satisfied) >= 2:
            value = max(value, PROMOTION_FLOOR)
        value = max(value, FOUND_FLOOR)

        self.logger.debug(
            "Scored %r: raw=%d total=%d final=%d anchors=%s",
            candidate_handle,
            raw_score,
            total_weight,
            value,
            sorted(a.value for a in satisfied),
        )
        return EvidenceScore(
            value=value,
            reasons=tuple(reasons),
            anchors_satisfied=frozenset(satisfied),
        )

    def score_profile(
        self,
        profile: ScrapedProfile,
        query: SearchQuery,
        *,
        exclude_domain: Optional[str] = None,
    ) -> EvidenceScore:
        """Score a scraped profile; absent profiles always score zero."""
        if not profile.found:
            return EvidenceScore.zero()
        return self.score(
            profile.username,
            query,
            profile.bio,
            profile.title,
            exclude_domain=exclude_domain,
        )

    def _has_cross_platform_link(self, bio: str, exclude_domain: Optional[str]) -> bool:
        if not bio:
            return False
        own = (exclude_domain or "").lower()
        for domain, pattern in self._link_patterns:
            if own and (domain == own or domain.endswith("." + own)):
                continue
            if pattern.search(bio):
                return True
        return False
