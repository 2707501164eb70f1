"""Shopping list models."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal, Optional, Union
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator


class NotStarted(BaseModel):
    """No item on the list has been collected yet."""

    kind: Literal["notStarted"] = "notStarted"

    model_config = ConfigDict(frozen=True)


class InProgress(BaseModel):
    """Shopping has started; ``checked_items`` holds the collected item names."""

    kind: Literal["inProgress"] = "inProgress"
    checked_items: frozenset[str] = Field(default_factory=frozenset)

    model_config = ConfigDict(frozen=True)


class Completed(BaseModel):
    """Shopping finished; the list is archived."""

    kind: Literal["completed"] = "completed"

    model_config = ConfigDict(frozen=True)


ShoppingListStatus = Annotated[
    Union[NotStarted, InProgress, Completed],
    Field(discriminator="kind"),
]


def transition(current: ShoppingListStatus, target: ShoppingListStatus) -> ShoppingListStatus:
    """Return ``target`` when moving there from ``current`` is allowed.

    Lists only move forward: NotStarted -> InProgress -> Completed, or NotStarted ->
    Completed. Staying in the same state (with a different checked set) is allowed except
    for Completed, which is final.
    """

    if isinstance(current, Completed):
        raise ValueError("Completed shopping lists cannot change status")
    if isinstance(current, InProgress) and isinstance(target, NotStarted):
        raise ValueError("Shopping lists in progress cannot return to not started")
    return target


class ShoppingList(BaseModel):
    """Aggregated items needed for one or more events."""

    id: UUID = Field(default_factory=uuid4)
    event_ids: list[UUID] = Field(default_factory=list)
    items: list[str] = Field(default_factory=list)
    status: ShoppingListStatus = Field(default_factory=NotStarted)
    created_date: datetime = Field(default_factory=datetime.now)
    completed_date: Optional[datetime] = Field(default=None)
    completed_items_count: Optional[int] = Field(default=None, ge=0)

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _checked_subset_of_items(self) -> "ShoppingList":
        if isinstance(self.status, InProgress):
            unknown = self.status.checked_items - set(self.items)
            if unknown:
                raise ValueError(f"Checked items not on the list: {sorted(unknown)}")
        return self

    @property
    def is_completed(self) -> bool:
        return isinstance(self.status, Completed)

    @property
    def checked_items(self) -> frozenset[str]:
        if isinstance(self.status, InProgress):
            return self.status.checked_items
        if isinstance(self.status, Completed):
            return frozenset(self.items)
        return frozenset()

    @property
    def checked_items_count(self) -> int:
        return len(self.checked_items)

    @property
    def progress(self) -> float:
        if not self.items:
            return 0.0
        return self.checked_items_count / len(self.items)

    @property
    def display_status(self) -> str:
        if isinstance(self.status, InProgress):
            return f"{len(self.status.checked_items)}/{len(self.items)} items"
        if isinstance(self.status, Completed):
            return "Completed"
        return "Not Started"


__all__ = [
    "Completed",
    "InProgress",
    "NotStarted",
    "ShoppingList",
    "ShoppingListStatus",
    "transition",
]
