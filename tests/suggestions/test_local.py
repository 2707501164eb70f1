"""Tests for keyword/category item suggestions."""

from __future__ import annotations

from datetime import date

import pytest

from packwise.suggestions.local import (
    CATEGORIES,
    LocalSuggestionScorer,
    score_category,
    season_for,
    tokenize,
)

CATEGORY = {category.name: category for category in CATEGORIES}


def test_weekend_camping_trip_includes_core_outdoor_gear():
    items = LocalSuggestionScorer().suggest("Weekend camping trip", date(2026, 10, 17))

    assert "tent" in items
    assert "sleeping bag" in items
    assert len(items) == 8
    assert len(set(items)) == len(items)


def test_substring_and_word_bonuses_stack():
    # "camping" matches as a substring (+2) and as a whole word (+3).
    assert score_category("camping", CATEGORY["outdoor"]) == 5.0
    # Only the substring bonus applies when the keyword is glued to another word.
    assert score_category("campingtrip", CATEGORY["travel"]) == 2.0
    # Context words stack the same way: +1 substring, +1.5 whole word.
    assert score_category("weekend", CATEGORY["travel"]) == 2.5


def test_tokenize_splits_on_punctuation():
    assert tokenize("Pool-party, BBQ!") == ["pool", "party", "bbq"]


def test_high_priority_categories_rank_before_medium():
    ranked = LocalSuggestionScorer().rank_categories("dinner meeting")
    assert [category.name for category, _ in ranked] == ["professional", "food"]


def test_seasonal_items_require_a_trigger_word():
    scorer = LocalSuggestionScorer()

    beach = scorer.suggest("Beach trip", date(2026, 7, 4))
    assert "hat" in beach

    meeting = scorer.suggest("Team meeting", date(2026, 7, 4))
    assert "hat" not in meeting
    assert "sunscreen" not in meeting
    assert meeting[0] == "laptop"


def test_unknown_or_empty_titles_yield_nothing():
    scorer = LocalSuggestionScorer()
    assert scorer.suggest("", date(2026, 1, 1)) == []
    assert scorer.suggest("   ", date(2026, 1, 1)) == []
    assert scorer.suggest("xyzzy", date(2026, 1, 1)) == []


def test_suggestions_are_deterministic_and_capped():
    scorer = LocalSuggestionScorer()
    first = scorer.suggest("Summer beach vacation trip", date(2026, 8, 1))
    second = scorer.suggest("Summer beach vacation trip", date(2026, 8, 1))
    assert first == second
    assert len(first) <= 8


@pytest.mark.parametrize(
    ("month", "season"),
    [(1, "winter"), (2, "winter"), (4, "spring"), (7, "summer"), (10, "fall"), (12, "winter")],
)
def test_season_for_month(month, season):
    assert season_for(date(2026, month, 15)) == season
