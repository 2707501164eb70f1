"""Authoritative in-memory collections of events, inventory items and shopping lists."""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from datetime import date, datetime
from typing import Callable, Iterable, Iterator, List, Optional, TypeVar
from uuid import UUID

from packwise.db.blobs import EVENTS_SLOT, INVENTORY_SLOT, SHOPPING_LISTS_SLOT, BlobStore
from packwise.db.codec import (
    decode_events,
    decode_inventory,
    decode_shopping_lists,
    encode_events,
    encode_inventory,
    encode_shopping_lists,
)
from packwise.models.event import Event, EventStatistics
from packwise.models.shopping import Completed, ShoppingList, transition

from .consistency import Clock, ConsistencyEngine

logger = logging.getLogger(__name__)

T = TypeVar("T")


def normalize_item_name(name: str) -> str:
    return str(name).strip()


def _unique_in_order(values: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(values))


class EntityStore:
    """Owns the three collections and keeps them consistent.

    Every mutation runs the consistency pass and persists the touched collections before
    returning. A re-entrant lock serializes mutations so the pass never interleaves with
    another writer.
    """

    def __init__(
        self,
        blob_store: BlobStore,
        *,
        engine: Optional[ConsistencyEngine] = None,
        clock: Clock = datetime.now,
    ) -> None:
        self._blobs = blob_store
        self._clock = clock
        self._engine = engine or ConsistencyEngine(clock=clock)
        self._lock = threading.RLock()

        self._events: List[Event] = self._load(EVENTS_SLOT, decode_events)
        self._inventory: List[str] = _unique_in_order(
            name
            for name in (normalize_item_name(raw) for raw in self._load(INVENTORY_SLOT, decode_inventory))
            if name
        )
        self._shopping_lists: List[ShoppingList] = self._load(
            SHOPPING_LISTS_SLOT, decode_shopping_lists
        )

    # ------------------------------------------------------------------ persistence

    def _load(self, slot: str, decoder: Callable[[bytes], List[T]]) -> List[T]:
        data = self._blobs.read(slot)
        if data is None:
            return []
        try:
            return decoder(data)
        except (ValueError, KeyError, TypeError):
            logger.exception("Failed to decode stored %s; starting empty", slot)
            return []

    def _save_events(self) -> None:
        self._blobs.write(EVENTS_SLOT, encode_events(self._events))

    def _save_inventory(self) -> None:
        self._blobs.write(INVENTORY_SLOT, encode_inventory(self._inventory))

    def _save_shopping_lists(self) -> None:
        self._blobs.write(SHOPPING_LISTS_SLOT, encode_shopping_lists(self._shopping_lists))

    @contextmanager
    def _transaction(self) -> Iterator[None]:
        """Restore the in-memory collections when a mutation or its persistence fails."""

        events = list(self._events)
        inventory = list(self._inventory)
        shopping_lists = list(self._shopping_lists)
        try:
            yield
        except Exception:
            self._events = events
            self._inventory = inventory
            self._shopping_lists = shopping_lists
            raise

    def _inventory_set(self) -> frozenset[str]:
        return frozenset(self._inventory)

    def _reconcile_after_inventory_change(self) -> None:
        """Run the full pass over events and open lists, then persist all collections."""

        inventory = self._inventory_set()
        self._events = self._engine.reconcile_all(self._events, inventory)
        self._shopping_lists = self._engine.reconcile_shopping_lists(self._shopping_lists, inventory)
        self._save_inventory()
        self._save_events()
        self._save_shopping_lists()

    def _event_index(self, event_id: UUID) -> int:
        for index, event in enumerate(self._events):
            if event.id == event_id:
                return index
        raise ValueError(f"Event {event_id} not found")

    def _shopping_list_index(self, list_id: UUID) -> int:
        for index, entry in enumerate(self._shopping_lists):
            if entry.id == list_id:
                return index
        raise ValueError(f"Shopping list {list_id} not found")

    # ------------------------------------------------------------------ events

    def list_events(self) -> List[Event]:
        """Return all events, latest date first."""

        with self._lock:
            return sorted(self._events, key=lambda event: event.date, reverse=True)

    def get_event(self, event_id: UUID) -> Optional[Event]:
        with self._lock:
            return next((event for event in self._events if event.id == event_id), None)

    def add_event(self, event: Event) -> Event:
        with self._lock, self._transaction():
            if any(existing.id == event.id for existing in self._events):
                raise ValueError(f"Event {event.id} already exists")
            reconciled = self._engine.reconcile(event, self._inventory_set())
            self._events.append(reconciled)
            self._save_events()
            logger.info("Added event %s (%s)", reconciled.id, reconciled.title)
            return reconciled

    def update_event(self, event: Event) -> Event:
        with self._lock, self._transaction():
            index = self._event_index(event.id)
            reconciled = self._engine.reconcile(event, self._inventory_set())
            self._events[index] = reconciled
            self._save_events()
            return reconciled

    def delete_event(self, event_id: UUID) -> None:
        with self._lock, self._transaction():
            index = self._event_index(event_id)
            del self._events[index]
            self._save_events()

    def set_event_completed(self, event_id: UUID, completed: bool) -> Event:
        """Manually toggle completion; events with items are then re-derived from inventory."""

        with self._lock, self._transaction():
            index = self._event_index(event_id)
            current = self._events[index]
            toggled = current.model_copy(
                update={
                    "is_completed": completed,
                    "completed_date": (current.completed_date or self._clock()) if completed else None,
                }
            )
            reconciled = self._engine.reconcile(toggled, self._inventory_set())
            self._events[index] = reconciled
            self._save_events()
            return reconciled

    def search_events(self, query: str) -> List[Event]:
        term = query.strip().lower()
        if not term:
            return self.list_events()
        with self._lock:
            matches = [
                event
                for event in self._events
                if term in event.title.lower()
                or term in event.details.lower()
                or any(term in item.lower() for item in event.items)
            ]
        return sorted(matches, key=lambda event: event.date, reverse=True)

    def events_on(self, day: date) -> List[Event]:
        with self._lock:
            matches = [event for event in self._events if event.date.date() == day]
        return sorted(matches, key=lambda event: event.date)

    def upcoming_events(self, limit: Optional[int] = None) -> List[Event]:
        now = self._clock()
        with self._lock:
            upcoming = [
                event for event in self._events if event.is_upcoming(now) and not event.is_completed
            ]
        upcoming.sort(key=lambda event: event.date)
        if limit is not None:
            return upcoming[:limit]
        return upcoming

    def todays_events(self) -> List[Event]:
        return self.events_on(self._clock().date())

    def completed_events(self) -> List[Event]:
        with self._lock:
            completed = [event for event in self._events if event.is_completed]
        return sorted(completed, key=lambda event: event.completed_date, reverse=True)

    def statistics(self) -> EventStatistics:
        now = self._clock()
        with self._lock:
            events = list(self._events)
        return EventStatistics(
            total=len(events),
            today=sum(1 for event in events if event.is_today(now)),
            upcoming=sum(1 for event in events if event.is_upcoming(now) and not event.is_completed),
            completed=sum(1 for event in events if event.is_completed),
        )

    # ------------------------------------------------------------------ inventory

    def list_inventory(self) -> List[str]:
        with self._lock:
            return sorted(self._inventory)

    def has_item(self, name: str) -> bool:
        with self._lock:
            return normalize_item_name(name) in self._inventory

    def add_item(self, name: str) -> bool:
        """Add one item; returns False when it was already owned."""

        item = normalize_item_name(name)
        if not item:
            raise ValueError("Item name must not be empty")
        return bool(self.add_items([item]))

    def add_items(self, names: Iterable[str]) -> List[str]:
        """Add several items with a single consistency pass; returns the newly added names."""

        with self._lock, self._transaction():
            added: List[str] = []
            for raw in names:
                item = normalize_item_name(raw)
                if not item or item in self._inventory:
                    continue
                self._inventory.append(item)
                added.append(item)
            if added:
                self._reconcile_after_inventory_change()
                logger.info("Added %s inventory item(s): %s", len(added), added)
            return added

    def remove_item(self, name: str) -> bool:
        item = normalize_item_name(name)
        with self._lock, self._transaction():
            if item not in self._inventory:
                return False
            self._inventory.remove(item)
            self._reconcile_after_inventory_change()
            logger.info("Removed inventory item %s", item)
            return True

    def clear_inventory(self) -> None:
        with self._lock, self._transaction():
            self._inventory.clear()
            self._reconcile_after_inventory_change()
            logger.info("Cleared inventory")

    # ------------------------------------------------------------------ shopping lists

    def list_shopping_lists(self) -> List[ShoppingList]:
        with self._lock:
            return sorted(self._shopping_lists, key=lambda entry: entry.created_date, reverse=True)

    def get_shopping_list(self, list_id: UUID) -> Optional[ShoppingList]:
        with self._lock:
            return next((entry for entry in self._shopping_lists if entry.id == list_id), None)

    def active_shopping_lists(self) -> List[ShoppingList]:
        return [entry for entry in self.list_shopping_lists() if not entry.is_completed]

    def completed_shopping_lists(self) -> List[ShoppingList]:
        with self._lock:
            completed = [entry for entry in self._shopping_lists if entry.is_completed]
        return sorted(
            completed,
            key=lambda entry: entry.completed_date or entry.created_date,
            reverse=True,
        )

    def create_shopping_list(self, event_ids: Iterable[UUID]) -> ShoppingList:
        """Aggregate the distinct items of the selected events into a new list."""

        with self._lock, self._transaction():
            selected_ids = list(dict.fromkeys(event_ids))
            if not selected_ids:
                raise ValueError("Select at least one event to shop for")
            events = [self._events[self._event_index(event_id)] for event_id in selected_ids]
            items = _unique_in_order(item for event in events for item in event.items)
            if not items:
                raise ValueError("Selected events have no items to shop for")

            shopping_list = ShoppingList(
                event_ids=selected_ids,
                items=items,
                created_date=self._clock(),
            )
            shopping_list = self._engine.reconcile_shopping_list(shopping_list, self._inventory_set())
            self._shopping_lists.append(shopping_list)
            self._save_shopping_lists()
            logger.info(
                "Created shopping list %s for %s event(s) with %s item(s)",
                shopping_list.id,
                len(selected_ids),
                len(items),
            )
            return shopping_list

    def toggle_shopping_item(self, list_id: UUID, item: str) -> ShoppingList:
        """Check an item (adding it to inventory) or uncheck it (removing it)."""

        name = normalize_item_name(item)
        with self._lock, self._transaction():
            index = self._shopping_list_index(list_id)
            shopping_list = self._shopping_lists[index]
            if shopping_list.is_completed:
                raise ValueError(f"Shopping list {list_id} is already completed")
            if name not in shopping_list.items:
                raise ValueError(f"Item '{name}' is not on shopping list {list_id}")

            if name in self._inventory:
                self._inventory.remove(name)
            else:
                self._inventory.append(name)
            self._reconcile_after_inventory_change()
            return self._shopping_lists[index]

    def complete_shopping_list(self, list_id: UUID) -> ShoppingList:
        with self._lock, self._transaction():
            index = self._shopping_list_index(list_id)
            shopping_list = self._shopping_lists[index]
            checked_count = shopping_list.checked_items_count
            status = transition(shopping_list.status, Completed())
            completed = shopping_list.model_copy(
                update={
                    "status": status,
                    "completed_date": self._clock(),
                    "completed_items_count": checked_count,
                }
            )
            self._shopping_lists[index] = completed
            self._save_shopping_lists()
            logger.info(
                "Completed shopping list %s with %s/%s item(s) collected",
                list_id,
                checked_count,
                len(completed.items),
            )
            return completed

    def delete_shopping_list(self, list_id: UUID) -> None:
        with self._lock, self._transaction():
            index = self._shopping_list_index(list_id)
            del self._shopping_lists[index]
            self._save_shopping_lists()


__all__ = ["EntityStore", "normalize_item_name"]
