"""
Entity resolver.

Maps free-text names (as dictated or typed by the boss) onto staff emails
and project tags. Strategies run in a fixed order and the first hit wins;
only the similarity stage uses a score.

Staff cascade:
1. exact full name (case-insensitive)
2. substring either direction
3. first token, when the query's first token is long enough
4. last token, when both sides have at least two tokens
5. best similarity score above the threshold
6. one character deleted from either name
"""

import logging
from dataclasses import dataclass
from typing import Optional, List, Dict, Any, Set

from config import settings
from ..store.base import Collection, RecordStore
from .similarity import phonetic_similarity, string_similarity

logger = logging.getLogger(__name__)


@dataclass
class StaffMatch:
    """A resolved staff member and how it was found."""
    email: str
    name: str
    strategy: str
    score: float = 1.0


def _deletions(text: str) -> Set[str]:
    return {text[:i] + text[i + 1:] for i in range(len(text))}


class EntityResolver:
    """Resolves names to staff emails and free text to project tags."""

    def __init__(
        self,
        store: RecordStore,
        phonetic_threshold: Optional[float] = None,
        deletion_fallback: Optional[bool] = None,
        min_first_token: Optional[int] = None,
        min_last_token: Optional[int] = None,
        min_project_word: Optional[int] = None,
    ):
        self.store = store
        self.phonetic_threshold = (
            settings.resolver_phonetic_threshold if phonetic_threshold is None else phonetic_threshold
        )
        self.deletion_fallback = (
            settings.resolver_deletion_fallback if deletion_fallback is None else deletion_fallback
        )
        self.min_first_token = settings.resolver_min_first_token if min_first_token is None else min_first_token
        self.min_last_token = settings.resolver_min_last_token if min_last_token is None else min_last_token
        self.min_project_word = (
            settings.resolver_min_project_word if min_project_word is None else min_project_word
        )

    async def _named_staff(self) -> List[Dict[str, Any]]:
        rows = await self.store.all(Collection.STAFF)
        return [row for row in rows if str(row.get("Name") or "").strip()]

    # ==================== STAFF ====================

    async def resolve_staff_by_name(self, query: str) -> Optional[str]:
        """Return the staff email for a name, or None. Never raises."""
        match = await self.resolve_staff_match(query)
        return match.email if match else None

    async def resolve_staff_match(self, query: str) -> Optional[StaffMatch]:
        """Run the staff cascade and report which strategy matched. Never raises."""
        if not query or not str(query).strip():
            return None

        try:
            staff = await self._named_staff()
        except Exception as e:
            logger.error(f"Error loading staff for name match: {e}")
            return None

        if not staff:
            logger.info("Staff collection is empty, cannot match name")
            return None

        try:
            match = self._match_staff(str(query).strip().lower(), staff)
        except Exception as e:
            logger.error(f"Error resolving staff name '{query}': {e}", exc_info=True)
            return None

        if match:
            logger.info(f'{match.strategy} match: "{query}" -> {match.email} ({match.score:.2f})')
        else:
            logger.info(f'No staff match found for name: "{query}"')
        return match

    def _match_staff(self, query: str, staff: List[Dict[str, Any]]) -> Optional[StaffMatch]:
        def found(row: Dict[str, Any], strategy: str, score: float = 1.0) -> StaffMatch:
            return StaffMatch(
                email=str(row.get("Email", "")).strip(),
                name=str(row.get("Name", "")).strip(),
                strategy=strategy,
                score=score,
            )

        names = [(row, str(row["Name"]).strip().lower()) for row in staff]
        tokens = query.split()

        for row, name in names:
            if name == query:
                return found(row, "exact")

        for row, name in names:
            if query in name or name in query:
                return found(row, "substring")

        first = tokens[0]
        if len(first) >= self.min_first_token:
            for row, name in names:
                if name.split()[0] == first:
                    return found(row, "first_token")

        if len(tokens) > 1 and len(tokens[-1]) >= self.min_last_token:
            for row, name in names:
                parts = name.split()
                if len(parts) > 1 and parts[-1] == tokens[-1]:
                    return found(row, "last_token")

        scored = []
        for row, name in names:
            score = max(
                phonetic_similarity(query, name),
                phonetic_similarity(first, name.split()[0]),
                string_similarity(query, name),
            )
            scored.append((score, row))
        # sort is stable, so ties keep store order
        scored.sort(key=lambda pair: pair[0], reverse=True)
        if scored and scored[0][0] > self.phonetic_threshold:
            return found(scored[0][1], "phonetic", scored[0][0])

        if self.deletion_fallback:
            # Deletion positions of the query come first, store order second
            name_variants = [_deletions(name) for _, name in names]
            for i in range(len(query)):
                variant = query[:i] + query[i + 1:]
                for (row, name), variants in zip(names, name_variants):
                    if name == variant or query in variants:
                        return found(row, "deletion", string_similarity(query, name))

        return None

    async def find_staff_candidates(self, name: str) -> List[Dict[str, Any]]:
        """
        All staff a name could refer to.

        Used when several people share a name and the boss has to pick an
        email. Matches exact name, first token or a phonetic score above
        the threshold. Never raises.
        """
        if not name or not str(name).strip():
            return []

        try:
            staff = await self._named_staff()
            query = str(name).strip().lower()
            first = query.split()[0]

            matches = []
            for row in staff:
                staff_name = str(row["Name"]).strip().lower()
                staff_first = staff_name.split()[0]
                if staff_name == query:
                    matches.append(row)
                elif staff_first == first and len(first) >= self.min_first_token:
                    matches.append(row)
                elif max(
                    phonetic_similarity(query, staff_name),
                    phonetic_similarity(first, staff_first),
                ) > self.phonetic_threshold:
                    matches.append(row)
            return matches

        except Exception as e:
            logger.error(f"Error finding staff candidates for '{name}': {e}")
            return []

    # ==================== PROJECTS ====================

    async def resolve_project_by_text(self, text: str) -> Optional[str]:
        """Return the project tag mentioned in free text, or None. Never raises."""
        if not text or not str(text).strip():
            return None

        try:
            projects = await self.store.all(Collection.PROJECTS)
        except Exception as e:
            logger.error(f"Error loading projects for match: {e}")
            return None

        if not projects:
            logger.info("Projects collection is empty, cannot match project")
            return None

        search = str(text).strip().lower()
        rows = [
            (str(p.get("Project_Tag") or "").strip(), str(p.get("Project_Name") or "").strip().lower())
            for p in projects
        ]
        rows = [(tag, name) for tag, name in rows if tag]

        strategies = (
            ("exact", lambda tag, name: bool(name) and name == search),
            ("substring", lambda tag, name: bool(name) and (search in name or name in search)),
            ("tag", lambda tag, name: tag.lower() == search),
        )
        for strategy, matches in strategies:
            for tag, name in rows:
                if matches(tag, name):
                    logger.info(f'{strategy} project match: "{text}" -> {tag}')
                    return tag

        words = [w for w in search.split() if len(w) >= self.min_project_word]
        if words:
            for tag, name in rows:
                if name and any(word in name for word in words):
                    logger.info(f'word project match: "{text}" -> {tag}')
                    return tag

        logger.info(f'No project match found for: "{text}"')
        return None
