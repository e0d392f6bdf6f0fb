"""
Unit tests for name similarity scores.
"""

import pytest

from chief_of_staff.matching.similarity import (
    levenshtein_distance,
    phonetic_similarity,
    string_similarity,
)


class TestLevenshtein:
    """Tests for levenshtein_distance."""

    @pytest.mark.parametrize("a,b,expected", [
        ("kitten", "sitting", 3),
        ("", "abc", 3),
        ("abc", "", 3),
        ("same", "same", 0),
        ("flaw", "lawn", 2),
    ])
    def test_distance(self, a, b, expected):
        assert levenshtein_distance(a, b) == expected


class TestStringSimilarity:
    """Tests for string_similarity."""

    def test_two_empty_strings(self):
        """Test that two empty strings are identical."""
        assert string_similarity("", "") == 1.0

    def test_case_insensitive(self):
        assert string_similarity("Priya", "priya") == 1.0

    def test_ratio(self):
        """Test 1 - distance / longer length."""
        assert string_similarity("kitten", "sitting") == pytest.approx(1 - 3 / 7)


class TestPhoneticSimilarity:
    """Tests for phonetic_similarity."""

    def test_exact_after_normalization(self):
        """Test that case and punctuation are ignored."""
        assert phonetic_similarity("O'Neil", "oneil") == 1.0

    def test_containment_scores_length_ratio(self):
        """Test nickname containment."""
        assert phonetic_similarity("jon", "jonathan") == pytest.approx(3 / 8)

    def test_doubled_vowel_variant(self):
        """Test that anaya and anaaya reduce to the same key."""
        assert phonetic_similarity("anaya", "anaaya") == 0.9

    def test_ph_variant(self):
        assert phonetic_similarity("philip", "filip") == 0.9

    def test_doubled_consonant_variant(self):
        assert phonetic_similarity("mathew", "matthew") == 0.9

    def test_unrelated_names_score_low(self):
        assert phonetic_similarity("anaya", "priya") < 0.7
