"""Tests for evidence scoring."""

from __future__ import annotations

import pytest

from idscope.core.data_models import AnchorKind, ScrapedProfile, SearchQuery
from idscope.core.scoring import (
    FOUND_FLOOR,
    HANDLE_BASELINE,
    HANDLE_CONTAINMENT,
    HANDLE_EXACT,
    HANDLE_TOKEN,
    PROMOTION_FLOOR,
    REASON_CROSS_PLATFORM,
    REASON_GEOGRAPHIC,
    REASON_HANDLE_BASELINE,
    REASON_HANDLE_CONTAINMENT,
    REASON_HANDLE_EXACT,
    REASON_KEYWORD,
    EvidenceScorer,
    correlate_handle,
)


@pytest.fixture
def scorer() -> EvidenceScorer:
    return EvidenceScorer()


class TestCorrelateHandle:
    """Tests for graded handle correlation."""

    def test_exact(self):
        match = correlate_handle("JohnDoe", " johndoe ")
        assert match.points == HANDLE_EXACT
        assert match.reason == REASON_HANDLE_EXACT
        assert match.satisfied

    def test_containment_after_removing_separators(self):
        match = correlate_handle("johndoe", "john doe")
        assert match.points == HANDLE_CONTAINMENT
        assert match.reason == REASON_HANDLE_CONTAINMENT
        assert match.satisfied

    def test_containment_either_direction(self):
        assert correlate_handle("thejohndoe", "john doe").points == HANDLE_CONTAINMENT
        assert correlate_handle("john", "john doe").points == HANDLE_CONTAINMENT

    def test_token_overlap_is_not_full_satisfaction(self):
        match = correlate_handle("doe_family", "john doe")
        assert match.points == HANDLE_TOKEN
        assert not match.satisfied

    def test_short_tokens_ignored(self):
        assert correlate_handle("jo_xx", "jo smith").points == HANDLE_BASELINE

    def test_baseline(self):
        match = correlate_handle("xyz123", "john doe")
        assert match.points == HANDLE_BASELINE
        assert match.reason == REASON_HANDLE_BASELINE
        assert not match.satisfied


class TestEvidenceScorer:
    """Tests for EvidenceScorer."""

    def test_handle_only_exact_match(self, scorer):
        """A lone exact handle match is normalised against the handle weight only."""
        score = scorer.score("johndoe", SearchQuery("johndoe"), "", "")
        assert score.value == 100
        assert score.reasons == (REASON_HANDLE_EXACT,)
        assert score.anchors_satisfied == frozenset({AnchorKind.HANDLE})

    def test_handle_and_location_promoted(self, scorer):
        query = SearchQuery("john doe", location="London")
        score = scorer.score("johndoe", query, "Living in London", "")
        # 60 / 65 rounds to 92, then promotion guarantees at least 90
        assert score.value == 92
        assert score.value >= PROMOTION_FLOOR
        assert REASON_GEOGRAPHIC in score.reasons
        assert score.anchors_satisfied == frozenset({AnchorKind.HANDLE, AnchorKind.GEOGRAPHIC})

    def test_unrelated_handle_gets_baseline(self, scorer):
        score = scorer.score("xyz123", SearchQuery("john doe"), "", "")
        assert score.value == 25
        assert score.reasons == (REASON_HANDLE_BASELINE,)

    def test_unmatched_location_lowers_score(self, scorer):
        query = SearchQuery("xyz123", location="Paris")
        score = scorer.score("xyz123", query, "Based in Tokyo", "")
        # 40 / 65
        assert score.value == 62
        assert REASON_GEOGRAPHIC not in score.reasons

    def test_location_matches_title(self, scorer):
        query = SearchQuery("jane", location="Berlin")
        score = scorer.score("jane", query, "", "Jane (Berlin)")
        assert REASON_GEOGRAPHIC in score.reasons

    def test_cross_platform_link(self, scorer):
        score = scorer.score("xyz", SearchQuery("john doe"), "more at github.com/xyz", "")
        assert REASON_CROSS_PLATFORM in score.reasons
        # (10 + 20) / 60
        assert score.value == 50

    def test_own_domain_is_not_a_cross_link(self, scorer):
        score = scorer.score(
            "xyz",
            SearchQuery("john doe"),
            "see github.com/xyz",
            "",
            exclude_domain="github.com",
        )
        assert REASON_CROSS_PLATFORM not in score.reasons

    def test_link_domain_needs_boundary(self, scorer):
        score = scorer.score("xyz", SearchQuery("john doe"), "my-x.company site", "")
        assert REASON_CROSS_PLATFORM not in score.reasons

    def test_keyword_match(self, scorer):
        score = scorer.score("xyz", SearchQuery("john doe"), "Software Engineer", "")
        assert REASON_KEYWORD in score.reasons

    def test_two_content_anchors_promote(self, scorer):
        score = scorer.score(
            "xyz123", SearchQuery("john doe"), "Engineer. Also on linkedin.com", ""
        )
        assert score.anchors_satisfied == frozenset(
            {AnchorKind.CROSS_PLATFORM, AnchorKind.KEYWORD}
        )
        assert score.value >= PROMOTION_FLOOR

    def test_half_points_round_up(self, scorer):
        score = scorer.score("doe_family", SearchQuery("john doe"), "", "")
        # 25 / 40 is exactly 62.5
        assert score.value == 63

    def test_token_overlap_does_not_promote(self, scorer):
        query = SearchQuery("john doe", location="Nowhere")
        score = scorer.score("doe_family", query, "", "")
        assert len(score.anchors_satisfied) == 0
        assert score.value < PROMOTION_FLOOR

    def test_floor_for_found_profiles(self, scorer):
        query = SearchQuery("john doe", location="London")
        score = scorer.score("xyz123", query, "", "")
        # 10 / 65 rounds to 15
        assert score.value == FOUND_FLOOR

    def test_custom_keywords(self):
        scorer = EvidenceScorer(keywords=["astronaut"])
        score = scorer.score("xyz", SearchQuery("john doe"), "Astronaut and engineer", "")
        assert REASON_KEYWORD in score.reasons

    @pytest.mark.parametrize(
        "handle,bio,location",
        [
            ("johndoe", "", None),
            ("x", "", "Rome"),
            ("johndoe", "engineer in Rome, github.com/jd", "Rome"),
            ("zzz", "nothing here", "Oslo"),
        ],
    )
    def test_found_score_range(self, scorer, handle, bio, location):
        score = scorer.score(handle, SearchQuery("john doe", location=location), bio, "")
        assert FOUND_FLOOR <= score.value <= 100


class TestScoreProfile:
    """Tests for scoring scraped profiles."""

    def test_not_found_scores_zero(self, scorer):
        profile = ScrapedProfile.not_found("GitHub", "https://github.com/johndoe", "johndoe")
        score = scorer.score_profile(profile, SearchQuery("johndoe"))
        assert score.value == 0
        assert score.reasons == ()

    def test_found_profile_uses_bio_and_title(self, scorer):
        profile = ScrapedProfile(
            platform="GitHub",
            url="https://github.com/johndoe",
            username="johndoe",
            found=True,
            title="John Doe",
            bio="Developer from Lisbon",
        )
        score = scorer.score_profile(profile, SearchQuery("johndoe", location="Lisbon"))
        assert score.value == 100
        assert REASON_KEYWORD in score.reasons
