"""Local tag heuristic and tag merging."""

from __future__ import annotations

from collections.abc import Iterable

from notebridge.constants import BASELINE_TAGS, KEYWORD_TAGS


def heuristic_tags(text: str) -> list[str]:
    """Deterministic tags: the baseline tags plus keyword matches.

    Keywords are matched case-insensitively as substrings of ``text``.
    """
    tags = list(BASELINE_TAGS)
    lowered = (text or "").lower()
    for keywords, tag in KEYWORD_TAGS:
        if tag not in tags and any(keyword in lowered for keyword in keywords):
            tags.append(tag)
    return tags


def merge_tags(primary: Iterable[str], secondary: Iterable[str]) -> list[str]:
    """Concatenate two tag lists, dropping case-insensitive duplicates.

    The first spelling seen wins, so ``primary`` keeps its casing and order.
    """
    merged: list[str] = []
    seen: set[str] = set()
    for tag in (*primary, *secondary):
        cleaned = tag.strip()
        key = cleaned.casefold()
        if not cleaned or key in seen:
            continue
        seen.add(key)
        merged.append(cleaned)
    return merged
