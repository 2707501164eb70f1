"""Offline keyword/category scoring of event titles into suggested items."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date
from enum import IntEnum
from itertools import zip_longest
from typing import List, Sequence, Tuple

MAX_LOCAL_SUGGESTIONS = 8
TOP_CATEGORIES = 3

KEYWORD_SUBSTRING_SCORE = 2.0
CONTEXT_SUBSTRING_SCORE = 1.0
KEYWORD_WORD_SCORE = 3.0
CONTEXT_WORD_SCORE = 1.5

_WORD_RE = re.compile(r"[^\W_]+")


class Priority(IntEnum):
    LOW = 1
    MEDIUM = 2
    HIGH = 3


@dataclass(frozen=True)
class EventCategory:
    name: str
    keywords: Tuple[str, ...]
    context_words: Tuple[str, ...]
    items: Tuple[str, ...]
    priority: Priority = field(default=Priority.MEDIUM)


CATEGORIES: Tuple[EventCategory, ...] = (
    EventCategory(
        name="academic",
        keywords=("orientation", "freshman", "college", "university", "school", "academic",
                  "semester", "graduation", "exam", "study"),
        context_words=("new", "student", "first", "welcome", "intro"),
        items=("notebook", "pens", "folder", "backpack", "student ID", "schedule", "map",
               "water bottle", "snacks"),
        priority=Priority.HIGH,
    ),
    EventCategory(
        name="professional",
        keywords=("meeting", "conference", "presentation", "interview", "workshop", "seminar",
                  "training"),
        context_words=("business", "work", "professional", "corporate", "office"),
        items=("laptop", "charger", "notebook", "pen", "business cards", "portfolio",
               "formal attire", "water bottle"),
        priority=Priority.HIGH,
    ),
    EventCategory(
        name="travel",
        keywords=("trip", "travel", "vacation", "journey", "adventure", "explore"),
        context_words=("weekend", "holiday", "getaway", "visit", "tour"),
        items=("suitcase", "passport", "tickets", "camera", "charger", "travel adapter",
               "sunglasses", "comfortable shoes"),
        priority=Priority.HIGH,
    ),
    EventCategory(
        name="outdoor",
        keywords=("camping", "hiking", "outdoor", "nature", "wilderness", "trail"),
        context_words=("mountain", "forest", "park", "adventure", "explore"),
        items=("tent", "sleeping bag", "flashlight", "first aid kit", "water bottle",
               "trail mix", "hiking boots", "map"),
        priority=Priority.HIGH,
    ),
    EventCategory(
        name="beach",
        keywords=("beach", "swimming", "pool", "water", "surf", "ocean", "lake"),
        context_words=("summer", "vacation", "relax", "sun"),
        items=("swimsuit", "sunscreen", "beach towel", "flip flops", "water bottle", "snacks",
               "umbrella", "goggles"),
        priority=Priority.HIGH,
    ),
    EventCategory(
        name="social",
        keywords=("party", "celebration", "birthday", "anniversary", "social", "gathering"),
        context_words=("friends", "family", "fun", "celebrate"),
        items=("gifts", "decorations", "snacks", "drinks", "music playlist", "camera",
               "party supplies"),
        priority=Priority.HIGH,
    ),
    EventCategory(
        name="fitness",
        keywords=("gym", "workout", "exercise", "fitness", "sports", "training", "run", "yoga"),
        context_words=("health", "active", "physical", "strength"),
        items=("water bottle", "towel", "workout clothes", "sneakers", "headphones",
               "fitness tracker"),
        priority=Priority.HIGH,
    ),
    EventCategory(
        name="food",
        keywords=("dinner", "lunch", "breakfast", "meal", "restaurant", "cooking", "bbq", "picnic"),
        context_words=("food", "eat", "taste", "delicious"),
        items=("reservation", "wallet", "nice outfit", "appetite", "napkins", "utensils"),
        priority=Priority.MEDIUM,
    ),
    EventCategory(
        name="entertainment",
        keywords=("movie", "concert", "show", "theater", "entertainment", "performance"),
        context_words=("watch", "listen", "enjoy", "fun"),
        items=("tickets", "comfortable clothes", "snacks", "phone", "cash", "earplugs"),
        priority=Priority.MEDIUM,
    ),
    EventCategory(
        name="home",
        keywords=("cleaning", "organizing", "home", "house", "maintenance", "repair"),
        context_words=("tidy", "fix", "improve", "organize"),
        items=("cleaning supplies", "gloves", "trash bags", "tools", "vacuum", "paper towels"),
        priority=Priority.MEDIUM,
    ),
)

SEASONAL_TRIGGERS = ("outdoor", "trip", "vacation", "beach", "camping", "hiking", "picnic", "festival")

SEASONAL_ITEMS: dict[str, Tuple[str, ...]] = {
    "winter": ("coat", "gloves", "scarf", "boots", "warm clothes"),
    "spring": ("light jacket", "umbrella", "allergy medicine", "flowers"),
    "summer": ("sunscreen", "hat", "shorts", "sandals", "water bottle"),
    "fall": ("jacket", "boots", "warm drinks", "sweater"),
}


def season_for(day: date) -> str:
    month = day.month
    if month in (12, 1, 2):
        return "winter"
    if month in (3, 4, 5):
        return "spring"
    if month in (6, 7, 8):
        return "summer"
    return "fall"


def tokenize(title: str) -> List[str]:
    """Split on whitespace and punctuation into lowercase words."""

    return [word.lower() for word in _WORD_RE.findall(title)]


def score_category(title: str, category: EventCategory) -> float:
    """Score ``category`` against a lowercased title.

    Substring matches and whole-word matches are counted independently, so a keyword that
    appears as its own word earns both bonuses.
    """

    score = 0.0
    for keyword in category.keywords:
        if keyword in title:
            score += KEYWORD_SUBSTRING_SCORE
    for context_word in category.context_words:
        if context_word in title:
            score += CONTEXT_SUBSTRING_SCORE

    for word in tokenize(title):
        if word in category.keywords:
            score += KEYWORD_WORD_SCORE
        if word in category.context_words:
            score += CONTEXT_WORD_SCORE
    return score


def wants_seasonal_items(title: str) -> bool:
    return any(trigger in title for trigger in SEASONAL_TRIGGERS)


class LocalSuggestionScorer:
    """Deterministic mapping from an event title and date to at most eight items."""

    def __init__(
        self,
        categories: Sequence[EventCategory] = CATEGORIES,
        *,
        limit: int = MAX_LOCAL_SUGGESTIONS,
    ) -> None:
        self._categories = tuple(categories)
        self._limit = limit

    def rank_categories(self, title: str) -> List[Tuple[EventCategory, float]]:
        lowered = title.lower()
        matched = [
            (category, score)
            for category in self._categories
            if (score := score_category(lowered, category)) > 0
        ]
        matched.sort(key=lambda pair: (pair[0].priority, pair[1]), reverse=True)
        return matched

    def suggest(self, title: str, day: date) -> List[str]:
        lowered = title.strip().lower()
        if not lowered:
            return []

        sources: List[Sequence[str]] = [
            category.items for category, _ in self.rank_categories(lowered)[:TOP_CATEGORIES]
        ]
        if wants_seasonal_items(lowered):
            sources.append(SEASONAL_ITEMS[season_for(day)])

        # Interleave the sources so each matched category leads with its first items.
        pool = [item for row in zip_longest(*sources) for item in row if item is not None]
        return list(dict.fromkeys(pool))[: self._limit]


__all__ = [
    "CATEGORIES",
    "EventCategory",
    "LocalSuggestionScorer",
    "Priority",
    "SEASONAL_ITEMS",
    "score_category",
    "season_for",
    "tokenize",
]
