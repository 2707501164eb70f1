"""Tests for the JSON encoding of persisted collections."""

from __future__ import annotations

import json
from datetime import datetime

import pytest

from packwise.db.codec import (
    decode_events,
    decode_inventory,
    decode_shopping_lists,
    decode_status,
    encode_events,
    encode_shopping_lists,
    encode_status,
)
from packwise.models.event import Event
from packwise.models.shopping import Completed, InProgress, NotStarted, ShoppingList


@pytest.mark.parametrize(
    "status",
    [NotStarted(), InProgress(), InProgress(checked_items=frozenset({"tent", "rope"})), Completed()],
)
def test_status_survives_encoding(status):
    assert decode_status(json.loads(json.dumps(encode_status(status)))) == status


def test_in_progress_encodes_sorted_checked_items():
    encoded = encode_status(InProgress(checked_items=frozenset({"tent", "map"})))
    assert encoded == {"type": "inProgress", "checkedItems": ["map", "tent"]}


@pytest.mark.parametrize("payload", [{"type": "paused"}, {}])
def test_unknown_status_tag_is_not_started(payload, caplog):
    with caplog.at_level("WARNING", logger="packwise.db.codec"):
        assert decode_status(payload) == NotStarted()
    assert "Unknown shopping list status" in caplog.text


def test_events_and_lists_keep_their_fields():
    event = Event(
        title="Camping",
        date=datetime(2026, 10, 17, 9, 0),
        items=["tent", "lantern"],
        details="Lake site",
        is_completed=True,
        completed_date=datetime(2026, 10, 16, 20, 0),
    )
    shopping = ShoppingList(
        event_ids=[event.id],
        items=["lantern", "tent"],
        status=InProgress(checked_items=frozenset({"tent"})),
        created_date=datetime(2026, 10, 14, 9, 0),
    )

    assert decode_events(encode_events([event])) == [event]
    assert decode_shopping_lists(encode_shopping_lists([shopping])) == [shopping]


def test_non_list_payloads_are_rejected():
    with pytest.raises(ValueError):
        decode_inventory(b'{"tent": true}')
    with pytest.raises(ValueError):
        decode_events(b"not json")
