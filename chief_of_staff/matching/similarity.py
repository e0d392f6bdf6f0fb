"""
String similarity scores used by the entity resolver.

All scores are in [0, 1], higher meaning more alike.
"""

import re

# Applied in order, before doubled letters are collapsed
PHONETIC_REDUCTIONS = (
    ("aa", "a"),
    ("ee", "e"),
    ("ii", "i"),
    ("oo", "o"),
    ("uu", "u"),
    ("ph", "f"),
    ("ck", "k"),
    ("qu", "kw"),
)

_NON_LETTERS = re.compile(r"[^a-z]")
_DOUBLED = re.compile(r"(.)\1+")


def levenshtein_distance(a: str, b: str) -> int:
    """Edit distance with unit cost insert, delete and substitute."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            if ca == cb:
                current.append(previous[j - 1])
            else:
                current.append(min(previous[j], current[j - 1], previous[j - 1]) + 1)
        previous = current
    return previous[-1]


def string_similarity(a: str, b: str) -> float:
    """1 - distance / longer length, case-insensitive. Two empty strings score 1.0."""
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return 1 - levenshtein_distance(a.lower(), b.lower()) / longest


def _phonetic_key(text: str) -> str:
    for pattern, replacement in PHONETIC_REDUCTIONS:
        text = text.replace(pattern, replacement)
    return _DOUBLED.sub(r"\1", text)


def phonetic_similarity(a: str, b: str) -> float:
    """
    Sound-alike score for names.

    Handles spelling variants such as anaya/anaaya or philip/filip: exact
    letters score 1.0, containment scores by length ratio, equal phonetic
    keys score 0.9, anything else falls back to edit similarity of the keys.
    """
    n1 = _NON_LETTERS.sub("", a.lower())
    n2 = _NON_LETTERS.sub("", b.lower())

    if n1 == n2:
        return 1.0

    if n1 in n2 or n2 in n1:
        return min(len(n1), len(n2)) / max(len(n1), len(n2))

    k1 = _phonetic_key(n1)
    k2 = _phonetic_key(n2)
    if k1 == k2:
        return 0.9

    return string_similarity(k1, k2)
