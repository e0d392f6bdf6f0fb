"""
Unit tests for the entity resolver.

Tests the staff name cascade (exact, substring, first token, last token,
similarity, single-character deletion), candidate lookup and project
text matching.
"""

import pytest
from unittest.mock import AsyncMock

from chief_of_staff.matching import EntityResolver
from chief_of_staff.store import Collection, InMemoryRecordStore
from tests.conftest import staff_row


def resolver_for(names, **kwargs):
    store = InMemoryRecordStore(seed={
        Collection.STAFF: [staff_row(name, name.lower().replace(" ", ".") + "@example.com") for name in names],
    })
    options = dict(phonetic_threshold=0.7, deletion_fallback=True, min_first_token=3, min_last_token=3)
    options.update(kwargs)
    return EntityResolver(store, **options)


class TestStaffCascade:
    """Tests for resolve_staff_match / resolve_staff_by_name."""

    @pytest.mark.asyncio
    async def test_exact_match_case_insensitive(self, resolver):
        match = await resolver.resolve_staff_match("  JOHN carter ")
        assert match.email == "john@example.com"
        assert match.strategy == "exact"

    @pytest.mark.asyncio
    async def test_substring_match(self, resolver):
        """Test that a partial name inside a staff name matches."""
        match = await resolver.resolve_staff_match("priya")
        assert match.email == "priya@example.com"
        assert match.strategy == "substring"

    @pytest.mark.asyncio
    async def test_first_token_match(self, resolver):
        match = await resolver.resolve_staff_match("John Smith")
        assert match.email == "john@example.com"
        assert match.strategy == "first_token"

    @pytest.mark.asyncio
    async def test_last_token_match(self, resolver):
        match = await resolver.resolve_staff_match("Ms Sharma")
        assert match.email == "priya@example.com"
        assert match.strategy == "last_token"

    @pytest.mark.asyncio
    async def test_phonetic_match_for_misspelling(self, resolver):
        """Test that "anaya" resolves to Anaaya Udhas through the similarity stage."""
        match = await resolver.resolve_staff_match("anaya")
        assert match.email == "anaaya@example.com"
        assert match.strategy == "phonetic"
        assert match.score > 0.7

    @pytest.mark.asyncio
    async def test_short_query_never_matches_by_first_token(self, resolver):
        """Test that "jo" is too short for the first-token stage."""
        match = await resolver.resolve_staff_match("jo")
        assert match is not None
        assert match.strategy != "first_token"

    @pytest.mark.asyncio
    async def test_first_token_guard(self):
        """Test that a two-letter first token is skipped even on an exact first name."""
        resolver = resolver_for(["Jo Malone"], phonetic_threshold=1.01, deletion_fallback=False)
        assert await resolver.resolve_staff_match("jo smith") is None

        relaxed = resolver_for(["Jo Malone"], phonetic_threshold=1.01, deletion_fallback=False, min_first_token=2)
        match = await relaxed.resolve_staff_match("jo smith")
        assert match.strategy == "first_token"

    @pytest.mark.asyncio
    async def test_deletion_fallback(self):
        """Test the single-character deletion stage when similarity is too strict."""
        resolver = resolver_for(["Anaaya"], phonetic_threshold=0.95)
        match = await resolver.resolve_staff_match("anaya")
        assert match.email == "anaaya@example.com"
        assert match.strategy == "deletion"

    @pytest.mark.asyncio
    async def test_deletion_tries_query_positions_in_order(self):
        """Test that the earliest deletion position wins over store order."""
        resolver = resolver_for(["Kara", "Krla"], phonetic_threshold=1.01)
        match = await resolver.resolve_staff_match("karla")
        assert match.email == "krla@example.com"
        assert match.strategy == "deletion"

    @pytest.mark.asyncio
    async def test_deletion_fallback_disabled(self):
        resolver = resolver_for(["Anaaya"], phonetic_threshold=0.95, deletion_fallback=False)
        assert await resolver.resolve_staff_match("anaya") is None

    @pytest.mark.asyncio
    async def test_stage_order_prefers_earlier_match(self):
        """Test that an exact match wins over a substring match earlier in the sheet."""
        resolver = resolver_for(["Sam Lee Jones", "Sam Lee"])
        match = await resolver.resolve_staff_match("sam lee")
        assert match.name == "Sam Lee"
        assert match.strategy == "exact"

    @pytest.mark.asyncio
    async def test_no_match_returns_none(self, resolver):
        assert await resolver.resolve_staff_by_name("Zebediah Quartermaine") is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", ["", "   ", None])
    async def test_empty_query(self, resolver, query):
        assert await resolver.resolve_staff_by_name(query) is None

    @pytest.mark.asyncio
    async def test_empty_staff(self):
        resolver = EntityResolver(InMemoryRecordStore())
        assert await resolver.resolve_staff_by_name("anyone") is None

    @pytest.mark.asyncio
    async def test_store_error_returns_none(self, store):
        """Test that store failures never escape the resolver."""
        store.find = AsyncMock(side_effect=ConnectionError("sheet unavailable"))
        resolver = EntityResolver(store)
        assert await resolver.resolve_staff_by_name("Priya") is None

    @pytest.mark.asyncio
    async def test_wrapper_returns_email(self, resolver):
        assert await resolver.resolve_staff_by_name("anaya") == "anaaya@example.com"


class TestFindStaffCandidates:
    """Tests for find_staff_candidates."""

    @pytest.mark.asyncio
    async def test_shared_first_name(self):
        """Test that everyone sharing a first name is returned."""
        resolver = resolver_for(["Alex Kim", "Alex Moreno", "Priya Sharma"])
        rows = await resolver.find_staff_candidates("Alex")
        assert [r["Name"] for r in rows] == ["Alex Kim", "Alex Moreno"]

    @pytest.mark.asyncio
    async def test_exact_and_phonetic(self, resolver):
        rows = await resolver.find_staff_candidates("Anaya Udhas")
        assert [r["Email"] for r in rows] == ["anaaya@example.com"]

    @pytest.mark.asyncio
    async def test_empty_name(self, resolver):
        assert await resolver.find_staff_candidates("") == []


class TestProjectResolution:
    """Tests for resolve_project_by_text."""

    @pytest.mark.asyncio
    async def test_exact_name(self, resolver):
        assert await resolver.resolve_project_by_text("Alpha Website Redesign") == "ALPHA"

    @pytest.mark.asyncio
    async def test_name_inside_text(self, resolver):
        assert await resolver.resolve_project_by_text("the beta mobile app launch") == "BETA"

    @pytest.mark.asyncio
    async def test_exact_tag(self, resolver):
        assert await resolver.resolve_project_by_text("ops") == "OPS"

    @pytest.mark.asyncio
    async def test_word_match(self, resolver):
        assert await resolver.resolve_project_by_text("mobile release checklist") == "BETA"

    @pytest.mark.asyncio
    async def test_short_words_ignored(self, resolver):
        assert await resolver.resolve_project_by_text("an of") is None

    @pytest.mark.asyncio
    async def test_no_match(self, resolver):
        assert await resolver.resolve_project_by_text("quarterly taxes") is None
