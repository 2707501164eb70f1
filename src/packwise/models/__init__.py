"""Pydantic models defining shared data contracts."""

from packwise.models.draft import EventDraft
from packwise.models.event import Event, EventStatistics, EventStatus
from packwise.models.shopping import (
    Completed,
    InProgress,
    NotStarted,
    ShoppingList,
    ShoppingListStatus,
)

__all__ = [
    "Event",
    "EventDraft",
    "EventStatistics",
    "EventStatus",
    "Completed",
    "InProgress",
    "NotStarted",
    "ShoppingList",
    "ShoppingListStatus",
]
