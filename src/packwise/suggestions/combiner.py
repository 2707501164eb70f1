"""Merge local and external suggestions, local first."""

from __future__ import annotations

from itertools import islice
from typing import Iterable, List, Set

from .external import MAX_EXTERNAL_SUGGESTIONS
from .local import MAX_LOCAL_SUGGESTIONS

MAX_COMBINED_SUGGESTIONS = MAX_LOCAL_SUGGESTIONS + MAX_EXTERNAL_SUGGESTIONS


def _take_unique(items: Iterable[str], seen: Set[str], limit: int) -> List[str]:
    taken: List[str] = []
    for item in islice(items, limit):
        key = item.lower()
        if key in seen:
            continue
        seen.add(key)
        taken.append(item)
    return taken


def combine(local: Iterable[str], external: Iterable[str]) -> List[str]:
    """Return local suggestions followed by unseen external ones.

    Duplicates are detected case-insensitively and the first spelling wins.
    """

    seen: Set[str] = set()
    combined = _take_unique(local, seen, MAX_LOCAL_SUGGESTIONS)
    combined.extend(_take_unique(external, seen, MAX_EXTERNAL_SUGGESTIONS))
    return combined[:MAX_COMBINED_SUGGESTIONS]


__all__ = ["MAX_COMBINED_SUGGESTIONS", "combine"]
