"""Tests for the entity store and its consistency guarantees."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError

from packwise.core.store import EntityStore
from packwise.db.blobs import EVENTS_SLOT, INVENTORY_SLOT, SHOPPING_LISTS_SLOT, MemoryBlobStore
from packwise.db.codec import decode_events, decode_inventory, decode_shopping_lists
from packwise.models.event import Event
from packwise.models.shopping import Completed, InProgress, NotStarted

FIXED_NOW = datetime(2026, 10, 14, 9, 0)


def _event(title="Camping", items=None, days=3, **kwargs) -> Event:
    return Event(
        title=title,
        date=FIXED_NOW + timedelta(days=days),
        items=items if items is not None else ["tent", "lantern"],
        **kwargs,
    )


def test_adding_items_completes_events_and_persists(store, blob_store):
    event = store.add_event(_event())
    assert not event.is_completed

    store.add_item("tent")
    assert not store.get_event(event.id).is_completed

    store.add_item("lantern")
    completed = store.get_event(event.id)
    assert completed.is_completed
    assert completed.completed_date == FIXED_NOW

    persisted = decode_events(blob_store.read(EVENTS_SLOT))
    assert persisted[0].is_completed
    assert decode_inventory(blob_store.read(INVENTORY_SLOT)) == ["tent", "lantern"]

    assert store.remove_item("tent") is True
    reopened = store.get_event(event.id)
    assert not reopened.is_completed
    assert reopened.completed_date is None


def test_add_event_reconciles_against_existing_inventory(store):
    store.add_items(["tent", "lantern"])
    event = store.add_event(_event())
    assert event.is_completed


def test_add_event_rejects_duplicate_ids(store):
    event = store.add_event(_event())
    with pytest.raises(ValueError):
        store.add_event(event)


def test_update_event_rechecks_completion(store):
    store.add_item("tent")
    event = store.add_event(_event(items=["tent", "stove"]))
    assert not event.is_completed

    updated = store.update_event(event.model_copy(update={"items": ["tent"]}))
    assert updated.is_completed


def test_manual_completion_only_sticks_without_items(store):
    no_items = store.add_event(_event(title="Call mom", items=[]))
    with_items = store.add_event(_event())

    toggled = store.set_event_completed(no_items.id, True)
    assert toggled.is_completed
    assert toggled.completed_date == FIXED_NOW
    assert not store.set_event_completed(no_items.id, False).is_completed

    assert not store.set_event_completed(with_items.id, True).is_completed


def test_unknown_ids_raise_not_found(store):
    with pytest.raises(ValueError, match="not found"):
        store.delete_event(uuid4())
    with pytest.raises(ValueError, match="not found"):
        store.complete_shopping_list(uuid4())
    with pytest.raises(ValueError, match="not found"):
        store.create_shopping_list([uuid4()])


def test_inventory_normalizes_and_deduplicates(store):
    assert store.add_item("  rope ") is True
    assert store.add_item("rope") is False
    assert store.add_items(["rope", "", "map", "map"]) == ["map"]
    assert store.list_inventory() == ["map", "rope"]
    assert store.has_item(" map")
    with pytest.raises(ValueError):
        store.add_item("   ")
    assert store.remove_item("compass") is False


def test_clear_inventory_reopens_events(store):
    event = store.add_event(_event(items=["tent"]))
    store.add_item("tent")
    assert store.get_event(event.id).is_completed

    store.clear_inventory()

    assert store.list_inventory() == []
    assert not store.get_event(event.id).is_completed


def test_event_queries(store):
    past = store.add_event(_event(title="Old hike", items=[], days=-5))
    today = store.add_event(
        Event(title="Gym session", date=FIXED_NOW.replace(hour=18), items=["towel"])
    )
    later = store.add_event(_event(title="Beach day", items=["sunscreen"], days=10))
    store.add_item("sunscreen")

    assert [event.id for event in store.list_events()] == [later.id, today.id, past.id]
    assert [event.id for event in store.todays_events()] == [today.id]
    assert [event.id for event in store.upcoming_events()] == [today.id]
    assert [event.id for event in store.upcoming_events(limit=1)] == [today.id]
    assert [event.id for event in store.completed_events()] == [later.id]
    assert [event.id for event in store.events_on(date(2026, 10, 9))] == [past.id]
    assert [event.id for event in store.search_events("SUNSCREEN")] == [later.id]
    assert len(store.search_events("  ")) == 3

    stats = store.statistics()
    assert (stats.total, stats.today, stats.upcoming, stats.completed) == (3, 1, 1, 1)
    assert stats.completion_rate == pytest.approx(1 / 3)


def test_shopping_list_aggregates_and_prechecks_owned_items(store):
    camping = store.add_event(_event(items=["tent", "lantern"]))
    hiking = store.add_event(_event(title="Hike", items=["lantern", "boots"]))
    store.add_item("boots")

    shopping_list = store.create_shopping_list([camping.id, hiking.id])

    assert shopping_list.items == ["tent", "lantern", "boots"]
    assert isinstance(shopping_list.status, InProgress)
    assert shopping_list.checked_items == frozenset({"boots"})
    assert store.active_shopping_lists() == [shopping_list]


def test_shopping_list_rejects_empty_selection(store):
    no_items = store.add_event(_event(items=[]))
    with pytest.raises(ValueError):
        store.create_shopping_list([])
    with pytest.raises(ValueError):
        store.create_shopping_list([no_items.id])


def test_toggling_items_drives_inventory_and_events(store, blob_store):
    event = store.add_event(_event(items=["tent", "lantern"]))
    shopping_list = store.create_shopping_list([event.id])
    assert isinstance(shopping_list.status, NotStarted)

    store.toggle_shopping_item(shopping_list.id, "tent")
    updated = store.toggle_shopping_item(shopping_list.id, "lantern")

    assert updated.checked_items == frozenset({"tent", "lantern"})
    assert store.has_item("tent") and store.has_item("lantern")
    assert store.get_event(event.id).is_completed

    unchecked = store.toggle_shopping_item(shopping_list.id, "tent")
    assert isinstance(unchecked.status, InProgress)
    assert unchecked.checked_items == frozenset({"lantern"})
    assert not store.has_item("tent")
    assert not store.get_event(event.id).is_completed

    persisted = decode_shopping_lists(blob_store.read(SHOPPING_LISTS_SLOT))
    assert persisted[0].checked_items == frozenset({"lantern"})

    with pytest.raises(ValueError):
        store.toggle_shopping_item(shopping_list.id, "stove")


def test_completed_shopping_list_is_archived_and_frozen(store):
    event = store.add_event(_event(items=["tent", "lantern", "rope"]))
    shopping_list = store.create_shopping_list([event.id])
    store.toggle_shopping_item(shopping_list.id, "tent")

    completed = store.complete_shopping_list(shopping_list.id)

    assert isinstance(completed.status, Completed)
    assert completed.completed_items_count == 1
    assert completed.completed_date == FIXED_NOW
    assert store.active_shopping_lists() == []
    assert store.completed_shopping_lists() == [completed]

    with pytest.raises(ValueError):
        store.toggle_shopping_item(shopping_list.id, "rope")
    with pytest.raises(ValueError):
        store.complete_shopping_list(shopping_list.id)

    store.remove_item("tent")
    assert isinstance(store.get_shopping_list(shopping_list.id).status, Completed)

    store.delete_shopping_list(shopping_list.id)
    assert store.list_shopping_lists() == []


def test_store_reloads_persisted_collections(blob_store, clock):
    first = EntityStore(blob_store, clock=clock)
    event = first.add_event(_event(items=["tent"]))
    first.add_item("tent")
    shopping_list = first.create_shopping_list([event.id])

    second = EntityStore(blob_store, clock=clock)

    assert second.get_event(event.id).is_completed
    assert second.list_inventory() == ["tent"]
    assert second.get_shopping_list(shopping_list.id).checked_items == frozenset({"tent"})


def test_store_starts_empty_when_stored_data_is_corrupt(blob_store, clock):
    blob_store.write(EVENTS_SLOT, b"{not json")
    blob_store.write(INVENTORY_SLOT, b'{"an": "object"}')

    store = EntityStore(blob_store, clock=clock)

    assert store.list_events() == []
    assert store.list_inventory() == []


def test_completion_date_uses_injected_clock(blob_store):
    moment = datetime(2027, 1, 2, 3, 4)
    store = EntityStore(blob_store, clock=lambda: moment)
    event = store.add_event(_event(items=["tent"]))
    store.add_item("tent")
    assert store.get_event(event.id).completed_date == moment


def test_offset_aware_dates_are_stored_as_local_time(store):
    store.add_event(_event(title="Naive"))
    moment = datetime(2026, 10, 17, 10, 0, tzinfo=timezone.utc)
    aware = store.add_event(Event(title="Aware", date=moment, items=["tent"]))

    assert aware.date.tzinfo is None
    assert aware.date == moment.astimezone().replace(tzinfo=None)
    assert {event.title for event in store.list_events()} == {"Naive", "Aware"}
    assert store.statistics().total == 2
    assert len(store.upcoming_events()) == 2


class FailingBlobStore(MemoryBlobStore):
    """Memory store whose writes can be switched to fail like a locked database."""

    def __init__(self) -> None:
        super().__init__()
        self.fail = False

    def write(self, slot: str, data: bytes) -> None:
        if self.fail:
            raise OperationalError("UPDATE blob_slots", {}, Exception("database is locked"))
        super().write(slot, data)


def test_failed_writes_leave_collections_unchanged(clock):
    blobs = FailingBlobStore()
    store = EntityStore(blobs, clock=clock)
    event = store.add_event(_event(items=["tent"]))
    shopping_list = store.create_shopping_list([event.id])
    blobs.fail = True

    with pytest.raises(OperationalError):
        store.add_item("tent")
    with pytest.raises(OperationalError):
        store.add_event(_event(title="Hiking"))
    with pytest.raises(OperationalError):
        store.toggle_shopping_item(shopping_list.id, "tent")
    with pytest.raises(OperationalError):
        store.delete_event(event.id)

    assert store.list_inventory() == []
    assert [entry.title for entry in store.list_events()] == ["Camping"]
    assert not store.get_event(event.id).is_completed
    assert store.get_shopping_list(shopping_list.id).status == NotStarted()

    blobs.fail = False
    store.add_item("tent")
    assert store.get_event(event.id).is_completed
