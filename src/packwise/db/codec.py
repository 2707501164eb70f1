"""JSON encoding of the persisted collections."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Iterable, List, Optional

from packwise.models.event import Event
from packwise.models.shopping import (
    Completed,
    InProgress,
    NotStarted,
    ShoppingList,
    ShoppingListStatus,
)

logger = logging.getLogger(__name__)

STATUS_NOT_STARTED = "notStarted"
STATUS_IN_PROGRESS = "inProgress"
STATUS_COMPLETED = "completed"


def _datetime_or_none(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromisoformat(str(value))


def encode_status(status: ShoppingListStatus) -> dict[str, Any]:
    """Encode a status as an explicit ``type`` tag plus its payload."""

    if isinstance(status, InProgress):
        return {"type": STATUS_IN_PROGRESS, "checkedItems": sorted(status.checked_items)}
    if isinstance(status, Completed):
        return {"type": STATUS_COMPLETED}
    if isinstance(status, NotStarted):
        return {"type": STATUS_NOT_STARTED}
    raise TypeError(f"Unsupported shopping list status: {status!r}")


def decode_status(payload: dict[str, Any]) -> ShoppingListStatus:
    tag = payload.get("type")
    if tag == STATUS_IN_PROGRESS:
        return InProgress(checked_items=frozenset(payload.get("checkedItems") or []))
    if tag == STATUS_COMPLETED:
        return Completed()
    if tag != STATUS_NOT_STARTED:
        logger.warning("Unknown shopping list status tag %r; treating as not started", tag)
    return NotStarted()


def _event_to_dict(event: Event) -> dict[str, Any]:
    return {
        "id": str(event.id),
        "title": event.title,
        "date": event.date.isoformat(),
        "items": list(event.items),
        "details": event.details,
        "is_completed": event.is_completed,
        "completed_date": _datetime_or_none(event.completed_date),
    }


def _event_from_dict(payload: dict[str, Any]) -> Event:
    return Event.model_validate(
        {
            "id": payload["id"],
            "title": payload["title"],
            "date": _parse_datetime(payload["date"]),
            "items": payload.get("items") or [],
            "details": payload.get("details") or "",
            "is_completed": bool(payload.get("is_completed", False)),
            "completed_date": _parse_datetime(payload.get("completed_date")),
        }
    )


def _shopping_list_to_dict(shopping_list: ShoppingList) -> dict[str, Any]:
    return {
        "id": str(shopping_list.id),
        "event_ids": [str(event_id) for event_id in shopping_list.event_ids],
        "items": list(shopping_list.items),
        "status": encode_status(shopping_list.status),
        "created_date": shopping_list.created_date.isoformat(),
        "completed_date": _datetime_or_none(shopping_list.completed_date),
        "completed_items_count": shopping_list.completed_items_count,
    }


def _shopping_list_from_dict(payload: dict[str, Any]) -> ShoppingList:
    return ShoppingList.model_validate(
        {
            "id": payload["id"],
            "event_ids": payload.get("event_ids") or [],
            "items": payload.get("items") or [],
            "status": decode_status(payload.get("status") or {}),
            "created_date": _parse_datetime(payload["created_date"]),
            "completed_date": _parse_datetime(payload.get("completed_date")),
            "completed_items_count": payload.get("completed_items_count"),
        }
    )


def _dump(payload: Any) -> bytes:
    return json.dumps(payload, ensure_ascii=False).encode("utf-8")


def _load_list(data: bytes) -> list[Any]:
    decoded = json.loads(data.decode("utf-8"))
    if not isinstance(decoded, list):
        raise ValueError(f"Expected a JSON array, got {type(decoded).__name__}")
    return decoded


def encode_events(events: Iterable[Event]) -> bytes:
    return _dump([_event_to_dict(event) for event in events])


def decode_events(data: bytes) -> List[Event]:
    return [_event_from_dict(entry) for entry in _load_list(data)]


def encode_inventory(items: Iterable[str]) -> bytes:
    return _dump(list(items))


def decode_inventory(data: bytes) -> List[str]:
    return [str(entry) for entry in _load_list(data)]


def encode_shopping_lists(lists: Iterable[ShoppingList]) -> bytes:
    return _dump([_shopping_list_to_dict(entry) for entry in lists])


def decode_shopping_lists(data: bytes) -> List[ShoppingList]:
    return [_shopping_list_from_dict(entry) for entry in _load_list(data)]


__all__ = [
    "encode_status",
    "decode_status",
    "encode_events",
    "decode_events",
    "encode_inventory",
    "decode_inventory",
    "encode_shopping_lists",
    "decode_shopping_lists",
]
