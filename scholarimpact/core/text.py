"""
name normalization and levenshtein similarity.
used to rank author search candidates against the typed query.
"""

import math
import re
from typing import Iterable, Optional

_NON_ALNUM = re.compile(r"[^a-z0-9\s]")
_WHITESPACE = re.compile(r"\s+")


def normalize(value: Optional[str]) -> str:
    """lowercase, drop punctuation, collapse whitespace."""
    value = (value or "").lower()
    value = _NON_ALNUM.sub("", value)
    value = _WHITESPACE.sub(" ", value)
    return value.strip()


def edit_distance(a: str, b: str) -> int:
    """
    classic levenshtein distance (unit cost insert/delete/substitute).
    keeps two rows of the dp table.
    """
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)

    previous = list(range(len(a) + 1))
    for j in range(1, len(b) + 1):
        current = [j] + [0] * len(a)
        for i in range(1, len(a) + 1):
            cost = 0 if a[i - 1] == b[j - 1] else 1
            current[i] = min(
                current[i - 1] + 1,       # insert
                previous[i] + 1,          # delete
                previous[i - 1] + cost    # substitute
            )
        previous = current

    return previous[len(a)]


def similarity(a: str, b: str) -> float:
    """1 - distance / longest length; 0 when either side is empty."""
    if not a or not b:
        return 0.0
    return 1 - edit_distance(a, b) / max(len(a), len(b))


def round_half_up(value: float) -> int:
    # python's round() is banker's rounding; scores round .5 up
    return int(math.floor(value + 0.5))


def name_match_score(query: str, name: str, aliases: Optional[Iterable[str]] = None) -> int:
    """
    score 0-100 for how well query matches an author name or any alias.
    an exact match after normalization is always 100.
    """
    q = normalize(query)
    n = normalize(name)

    best = similarity(q, n)
    for alias in aliases or []:
        best = max(best, similarity(q, normalize(alias)))

    if q == n:
        best = 1.0

    return round_half_up(best * 100)
