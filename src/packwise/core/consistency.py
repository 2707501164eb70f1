"""Recompute event completion and shopping-list progress from the inventory."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import AbstractSet, Callable, Iterable, List

from packwise import metrics
from packwise.models.event import Event
from packwise.models.shopping import Completed, InProgress, NotStarted, ShoppingList

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class ConsistencyEngine:
    """Stateless reconciliation pass run after every mutation.

    An event with at least one required item is completed exactly when every item is
    in the inventory. Events without items keep whatever completion the user gave them.
    Open shopping lists mirror the inventory: an item is checked while it is owned.
    """

    def __init__(self, clock: Clock = datetime.now) -> None:
        self._clock = clock

    def reconcile(self, event: Event, inventory: AbstractSet[str]) -> Event:
        if not event.items:
            return event

        has_all_items = all(item in inventory for item in event.items)
        if has_all_items and not event.is_completed:
            logger.debug("Event %s has all items; marking completed", event.id)
            metrics.COMPLETION_FLIPS.labels(direction="completed").inc()
            return event.model_copy(update={"is_completed": True, "completed_date": self._clock()})
        if not has_all_items and event.is_completed:
            logger.debug("Event %s is missing items; reopening", event.id)
            metrics.COMPLETION_FLIPS.labels(direction="reopened").inc()
            return event.model_copy(update={"is_completed": False, "completed_date": None})
        return event

    def reconcile_all(self, events: Iterable[Event], inventory: AbstractSet[str]) -> List[Event]:
        return [self.reconcile(event, inventory) for event in events]

    def reconcile_shopping_list(
        self, shopping_list: ShoppingList, inventory: AbstractSet[str]
    ) -> ShoppingList:
        status = shopping_list.status
        if isinstance(status, Completed):
            return shopping_list

        checked = frozenset(item for item in shopping_list.items if item in inventory)
        if isinstance(status, NotStarted):
            if not checked:
                return shopping_list
            new_status = InProgress(checked_items=checked)
        elif status.checked_items == checked:
            return shopping_list
        else:
            new_status = InProgress(checked_items=checked)

        return shopping_list.model_copy(update={"status": new_status})

    def reconcile_shopping_lists(
        self, shopping_lists: Iterable[ShoppingList], inventory: AbstractSet[str]
    ) -> List[ShoppingList]:
        return [self.reconcile_shopping_list(entry, inventory) for entry in shopping_lists]


__all__ = ["Clock", "ConsistencyEngine"]
