"""Event drafts produced from free-form text."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .event import Event

MAX_DRAFT_ITEMS = 8


class EventDraft(BaseModel):
    """Structured event proposal awaiting user confirmation."""

    title: str
    details: str = Field(default="")
    items: list[str] = Field(default_factory=list, max_length=MAX_DRAFT_ITEMS)
    suggested_date: datetime

    model_config = ConfigDict(frozen=True)

    @property
    def is_valid(self) -> bool:
        return bool(self.title.strip())

    def to_event(self) -> Event:
        return Event(
            title=self.title,
            date=self.suggested_date,
            items=list(self.items),
            details=self.details,
        )


__all__ = ["EventDraft", "MAX_DRAFT_ITEMS"]
