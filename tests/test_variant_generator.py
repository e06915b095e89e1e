"""Tests for handle variation generation."""

import pytest

from idscope.core.variant_generator import MAX_VARIATIONS, MIN_VARIATIONS, generate_variations


class TestGenerateVariations:
    """Tests for generate_variations."""

    def test_joined_form_first(self):
        """The separator-free joined form is the primary guess."""
        variations = generate_variations("John Doe")
        assert variations[0] == "johndoe"

    def test_separator_joins_follow(self):
        variations = generate_variations("John Doe")
        assert variations[1:4] == ["john.doe", "john_doe", "john-doe"]

    def test_prefixes_and_suffixes(self):
        variations = generate_variations("jane", max_variations=12)
        assert "thejane" in variations
        assert "realjane" in variations
        assert "janeofficial" in variations
        assert "janedev" in variations

    def test_respects_maximum(self):
        assert len(generate_variations("John Ronald Doe", max_variations=12)) <= 12

    @pytest.mark.parametrize("requested", [1, 3, 50])
    def test_limit_is_clamped(self, requested):
        variations = generate_variations("John Doe", max_variations=requested)
        assert MIN_VARIATIONS <= len(variations) <= MAX_VARIATIONS

    def test_unique(self):
        variations = generate_variations("real official")
        assert len(variations) == len(set(variations))

    def test_deterministic(self):
        assert generate_variations("Ada Lovelace") == generate_variations("Ada Lovelace")

    def test_case_and_whitespace_insensitive(self):
        assert generate_variations("  JOHN   doe ") == generate_variations("john doe")

    def test_stylized_handle_rejoined(self):
        """An already-stylized handle yields its plain and re-joined forms."""
        variations = generate_variations("john_doe")
        assert variations[0] == "john_doe"
        assert "johndoe" in variations
        assert "john.doe" in variations
        assert "john-doe" in variations

    def test_empty_query(self):
        assert generate_variations("") == [""]

    def test_whitespace_query(self):
        assert generate_variations("   ") == [""]
