"""Fuzzy matching of staff names and project text."""

from .resolver import EntityResolver, StaffMatch
from .similarity import levenshtein_distance, phonetic_similarity, string_similarity

__all__ = [
    "EntityResolver",
    "StaffMatch",
    "levenshtein_distance",
    "phonetic_similarity",
    "string_similarity",
]
