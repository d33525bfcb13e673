"""Fuzzy matching utilities.

A query matches if all its characters appear in the text in order (not
necessarily consecutively). Lower score = better match.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, TypeVar

T = TypeVar("T")

_WORD_BOUNDARY_RE = re.compile(r"[\s\-_./:]")


@dataclass
class FuzzyMatch:
    matches: bool
    score: float


def fuzzy_match(query: str, text: str) -> FuzzyMatch:
    query_lower = query.lower()
    text_lower = text.lower()

    if not query_lower:
        return FuzzyMatch(matches=True, score=0)
    if len(query_lower) > len(text_lower):
        return FuzzyMatch(matches=False, score=0)

    query_index = 0
    score: float = 0
    last_match_index = -1
    consecutive_matches = 0

    for i, ch in enumerate(text_lower):
        if query_index >= len(query_lower):
            break
        if ch != query_lower[query_index]:
            continue

        if last_match_index == i - 1:
            consecutive_matches += 1
            score -= consecutive_matches * 5
        else:
            consecutive_matches = 0
            if last_match_index >= 0:
                score += (i - last_match_index - 1) * 2

        if i == 0 or _WORD_BOUNDARY_RE.match(text_lower[i - 1]):
            score -= 10

        score += i * 0.1
        last_match_index = i
        query_index += 1

    if query_index < len(query_lower):
        return FuzzyMatch(matches=False, score=0)
    return FuzzyMatch(matches=True, score=score)


def fuzzy_filter(items: list[T], query: str, get_text: Callable[[T], str]) -> list[T]:
    """Filter and sort items by fuzzy match quality (best matches first).

    Items whose text starts with the query rank ahead of all other matches.
    """
    query = query.strip()
    if not query:
        return list(items)

    results: list[tuple[bool, float, T]] = []
    for item in items:
        text = get_text(item)
        match = fuzzy_match(query, text)
        if match.matches:
            is_prefix = text.lower().startswith(query.lower())
            results.append((not is_prefix, match.score, item))

    results.sort(key=lambda r: (r[0], r[1]))
    return [r[2] for r in results]
