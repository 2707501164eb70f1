"""Event models."""

from __future__ import annotations

from datetime import datetime, time
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class EventStatus(str, Enum):
    """Display status derived from completion, date and items."""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    OVERDUE = "overdue"


def clean_item_names(items: list[str]) -> list[str]:
    """Trim item names and drop blank entries, keeping order and duplicates."""

    cleaned: list[str] = []
    for item in items:
        name = str(item).strip()
        if name:
            cleaned.append(name)
    return cleaned


def to_local_naive(value: datetime) -> datetime:
    """Convert an offset-aware datetime to naive local time; naive values pass through."""

    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


class Event(BaseModel):
    """A planned activity with a date and the items it requires."""

    id: UUID = Field(default_factory=uuid4)
    title: str
    date: datetime
    items: list[str] = Field(default_factory=list)
    details: str = Field(default="")
    is_completed: bool = Field(default=False)
    completed_date: Optional[datetime] = Field(default=None)

    model_config = ConfigDict(frozen=True)

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, value: str) -> str:
        title = value.strip()
        if not title:
            raise ValueError("Event title must not be empty")
        return title

    @field_validator("date", "completed_date")
    @classmethod
    def _local_naive(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_local_naive(value) if value is not None else None

    @field_validator("items")
    @classmethod
    def _clean_items(cls, value: list[str]) -> list[str]:
        return clean_item_names(value)

    @model_validator(mode="after")
    def _completion_consistent(self) -> "Event":
        if self.is_completed != (self.completed_date is not None):
            raise ValueError("completed_date must be set if and only if is_completed is true")
        return self

    def is_today(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now()
        return self.date.date() == now.date()

    def is_past(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now()
        return self.date < datetime.combine(now.date(), time.min)

    def is_upcoming(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now()
        return self.date > now

    def status(self, now: Optional[datetime] = None) -> EventStatus:
        if self.is_completed:
            return EventStatus.COMPLETED
        if self.is_past(now):
            return EventStatus.OVERDUE
        if not self.items:
            return EventStatus.NOT_STARTED
        return EventStatus.IN_PROGRESS


class EventStatistics(BaseModel):
    """Dashboard counters over the event collection."""

    total: int
    today: int
    upcoming: int
    completed: int

    model_config = ConfigDict(frozen=True)

    @property
    def completion_rate(self) -> float:
        if self.total == 0:
            return 0.0
        return self.completed / self.total


__all__ = ["Event", "EventStatistics", "EventStatus", "clean_item_names", "to_local_naive"]
