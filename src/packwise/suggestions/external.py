"""Best-effort item suggestions from an external text-generation service."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Sequence

from packwise import metrics
from packwise.config import Settings, get_settings
from packwise.llm.client import build_llm_client
from packwise.llm.interface import TextGenerator

logger = logging.getLogger(__name__)

MAX_EXTERNAL_SUGGESTIONS = 5
MAX_PARSED_ITEMS = 8
SUGGESTION_MAX_TOKENS = 150
SUGGESTION_TEMPERATURE = 0.7

SUGGESTION_SYSTEM_PROMPT = (
    "You are a helpful assistant that suggests items needed for events. "
    "Return only a JSON array of item names, maximum 8 items."
)

_ARRAY_REGION_RE = re.compile(r"\[([^\]]+)\]")


@dataclass(frozen=True)
class EventContext:
    """Coarse reading of what the user will be doing at the event."""

    primary_activity: str
    location_type: str
    user_role: str


def analyze_event_context(title: str) -> EventContext:
    lowered = title.lower()
    if any(word in lowered for word in ("grocery", "shopping", "buy")):
        return EventContext("shopping/purchasing", "store/market", "shopper")
    if any(word in lowered for word in ("coffee", "chat", "meeting")):
        return EventContext("meeting/discussion", "café/office", "participant")
    if any(word in lowered for word in ("cooking", "meal prep", "recipe")):
        return EventContext("cooking/preparation", "kitchen/home", "cook")
    if any(word in lowered for word in ("dinner", "restaurant", "dining")):
        return EventContext("dining out", "restaurant", "diner")
    if any(word in lowered for word in ("travel", "trip", "vacation")):
        return EventContext("traveling", "various", "traveler")
    return EventContext("general activity", "to be determined", "participant")


def build_suggestion_prompt(title: str, day: date, context: EventContext) -> str:
    return f"""Event: "{title}"
Date: {day.isoformat()}
Activity: {context.primary_activity}
Location type: {context.location_type}
My role: {context.user_role}

Suggest the items I should bring to this event.

Rules:
- ONLY items I personally bring or carry with me.
- Do NOT include things the venue, host or store already provides.
- Shopping trips: ingredients or products to buy, bags, wallet.
- Meetings: notebook, pen, business cards, phone.
- Cooking: ingredients, utensils, recipe.
- Dining out: wallet, reservation confirmation, nice clothes.
- Travel: luggage, documents, comfort items.

Return ONLY a valid JSON array of 3-8 specific items, for example ["item one", "item two"]."""


def _string_items(values: object) -> Optional[List[str]]:
    if not isinstance(values, list):
        return None
    return [str(value).strip() for value in values if str(value).strip()]


def parse_suggestion_response(content: str) -> List[str]:
    """Read an item list out of a model reply.

    The reply is tried as a JSON array, then the first bracketed region is tried as a JSON
    array, and finally the text is split on commas.
    """

    text = content.strip()
    if not text:
        return []

    try:
        items = _string_items(json.loads(text))
    except (ValueError, RecursionError):
        items = None
    if items is not None:
        return items

    match = _ARRAY_REGION_RE.search(text)
    if match:
        try:
            items = _string_items(json.loads(match.group(0)))
        except (ValueError, RecursionError):
            items = None
        if items is not None:
            return items

    logger.info("Suggestion reply was not JSON; splitting on commas")
    cleaned = text.replace("[", "").replace("]", "").replace('"', "")
    return [part.strip() for part in cleaned.split(",") if len(part.strip()) > 1]


_EXCLUDED_BY_ACTIVITY = {
    "shopping/purchasing": ("reservation", "nice outfit", "formal attire", "dress", "suit"),
    "meeting/discussion": ("coffee", "coffee machine", "beans", "menu", "table"),
    "dining out": ("ingredients", "recipe", "cooking utensils", "stove", "pan"),
}
_EXCLUDED_BY_DEFAULT = ("venue", "location", "host", "service", "staff", "menu", "table", "chair")


def filter_for_context(items: Sequence[str], context: EventContext) -> List[str]:
    """Drop items the venue provides or that belong to a different kind of outing."""

    excluded = _EXCLUDED_BY_ACTIVITY.get(context.primary_activity, _EXCLUDED_BY_DEFAULT)
    kept = [item for item in items if not any(word in item.lower() for word in excluded)]
    return kept[:MAX_PARSED_ITEMS]


class ExternalSuggestionAdapter:
    """Ask a text generator for items; any failure yields an empty list."""

    def __init__(
        self,
        generator: Optional[TextGenerator],
        settings: Optional[Settings] = None,
        *,
        limit: int = MAX_EXTERNAL_SUGGESTIONS,
    ) -> None:
        self._generator = generator
        self._settings = settings or get_settings()
        self._limit = limit

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "ExternalSuggestionAdapter":
        """Wire the configured text-generation client, or none when cloud calls are off."""

        settings = settings or get_settings()
        client = build_llm_client(settings)
        if client is not None:
            client = client.with_options(
                system_prompt=SUGGESTION_SYSTEM_PROMPT,
                timeout=settings.suggestion_timeout,
            )
        return cls(client, settings)

    @property
    def available(self) -> bool:
        return self._generator is not None and self._settings.has_valid_credential

    def suggest(self, title: str, day: date) -> List[str]:
        cleaned = title.strip()
        if not cleaned or not self.available:
            return []

        context = analyze_event_context(cleaned)
        prompt = build_suggestion_prompt(cleaned, day, context)
        try:
            content = self._generator.generate(
                prompt,
                max_tokens=SUGGESTION_MAX_TOKENS,
                temperature=SUGGESTION_TEMPERATURE,
            )
        except Exception:
            logger.warning("External suggestion request failed for %r", cleaned, exc_info=True)
            metrics.EXTERNAL_CALLS.labels(operation="suggest", result="error").inc()
            return []

        items = filter_for_context(parse_suggestion_response(content), context)
        result = "ok" if items else "empty"
        metrics.EXTERNAL_CALLS.labels(operation="suggest", result=result).inc()
        logger.debug("External suggestions for %r: %s", cleaned, items)
        return items[: self._limit]


__all__ = [
    "EventContext",
    "ExternalSuggestionAdapter",
    "SUGGESTION_SYSTEM_PROMPT",
    "analyze_event_context",
    "build_suggestion_prompt",
    "filter_for_context",
    "parse_suggestion_response",
]
