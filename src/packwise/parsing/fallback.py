"""Pure parsing helpers turning model replies or raw utterances into event drafts."""

from __future__ import annotations

import json
import logging
import re
import string
from datetime import datetime, timedelta
from typing import List, Optional

from packwise.models.draft import MAX_DRAFT_ITEMS, EventDraft

logger = logging.getLogger(__name__)

DEFAULT_DRAFT_TITLE = "New Event"
MAX_LOCAL_ITEMS = 6
MIN_LOCAL_WORDS = 3
MAX_WORDS_PER_ITEM = 3
SATURDAY = 5

_FALLBACK_ITEMS_RE = re.compile(r"\[(.*?)\]", re.DOTALL)
_GOING_TO_RE = re.compile(r"going (?:for|to) (?:a |an )?(\w+(?:\s+\w+)?)", re.IGNORECASE)
_STRUCTURED_FIELDS = ("title", "details", "items", "suggestedDate")

ACTIVITY_KEYWORDS = (
    "hiking", "trip", "meeting", "party", "dinner", "shopping", "interview", "chat",
    "vacation", "camping", "workout", "gym", "run", "walk", "bike", "swim",
)
ACTIVITY_TITLES = {
    "hiking": "Hiking Trip",
    "trip": "Trip",
    "meeting": "Meeting",
    "party": "Party",
    "dinner": "Dinner",
    "shopping": "Shopping",
    "workout": "Workout",
    "gym": "Workout",
}
ACTION_VERBS = frozenset(
    {"bring", "need", "get", "buy", "pack", "prepare", "take", "grab", "purchase", "kit"}
)
STOP_WORDS = frozenset(
    {"for", "to", "at", "on", "in", "and", "or", "but", "because", "so", "when", "where",
     "i", "i'm", "going"}
)

HIKING_ITEMS = ("hiking boots", "backpack", "water bottle", "trail snacks", "first aid kit", "map",
                "flashlight", "rain jacket")
CAMPING_ITEMS = ("tent", "sleeping bag", "camping stove", "food supplies", "water", "flashlight",
                 "matches")
OUTDOOR_TRIP_ITEMS = ("outdoor gear", "weather protection", "navigation tools", "emergency supplies")
WORKOUT_ITEMS = ("workout clothes", "water bottle", "towel", "protein shake")
SHOPPING_ITEMS = ("shopping list", "reusable bags", "wallet")
MEETING_ITEMS = ("notebook", "pen", "laptop", "documents")


def title_case(text: str) -> str:
    return " ".join(word.capitalize() for word in text.split())


# ---------------------------------------------------------------------------
# Structured JSON replies


def extract_json_object(text: str) -> Optional[str]:
    """Return the first balanced ``{...}`` region, ignoring braces inside strings."""

    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start : index + 1]
    return None


def parse_structured_draft(content: str) -> Optional[EventDraft]:
    """Decode a reply carrying ``title``, ``details``, ``items`` and ``suggestedDate``.

    Returns ``None`` when the reply holds no usable JSON object so the caller can fall back
    to text parsing.
    """

    region = extract_json_object(content)
    if region is None:
        logger.info("No JSON object found in event reply")
        return None
    try:
        payload = json.loads(region)
    except (ValueError, RecursionError):
        logger.info("Event reply JSON could not be decoded")
        return None
    if not isinstance(payload, dict) or any(key not in payload for key in _STRUCTURED_FIELDS):
        logger.info("Event reply JSON is missing required fields")
        return None

    title, details, items, raw_date = (payload[key] for key in _STRUCTURED_FIELDS)
    if not isinstance(title, str) or not title.strip():
        return None
    if not isinstance(details, str) or not isinstance(items, list) or not isinstance(raw_date, str):
        return None
    try:
        suggested_date = datetime.strptime(raw_date.strip(), "%Y-%m-%d")
    except ValueError:
        logger.info("Event reply date %r is not YYYY-MM-DD", raw_date)
        return None

    names = [str(item).strip() for item in items if str(item).strip()]
    return EventDraft(
        title=title.strip(),
        details=details,
        items=names[:MAX_DRAFT_ITEMS],
        suggested_date=suggested_date,
    )


# ---------------------------------------------------------------------------
# Free-text replies


def parse_text_fallback(content: str, now: datetime) -> EventDraft:
    """Best-effort draft from a reply that is not the expected JSON."""

    title = DEFAULT_DRAFT_TITLE
    for line in content.splitlines():
        lowered = line.lower()
        if "title" not in lowered and "event" not in lowered:
            continue
        cleaned = line.replace('"', "").replace("title:", "").replace("Title:", "").strip()
        if len(cleaned) > 2:
            title = cleaned
            break

    items: List[str] = []
    match = _FALLBACK_ITEMS_RE.search(content)
    if match:
        items = [part.strip().replace('"', "") for part in match.group(1).split(",")]
        items = [item for item in items if item]

    return EventDraft(
        title=title,
        details=content,
        items=items[:MAX_DRAFT_ITEMS],
        suggested_date=now + timedelta(days=1),
    )


# ---------------------------------------------------------------------------
# Local heuristics


def _strip_punctuation(word: str) -> str:
    return word.strip(string.punctuation + "’")


def local_title(text: str, words: List[str]) -> str:
    lowered = text.lower()
    for keyword in ACTIVITY_KEYWORDS:
        if keyword in lowered:
            title = ACTIVITY_TITLES.get(keyword, keyword.capitalize())
            if "next week" in lowered:
                return f"Next Week {title}"
            if "weekend" in lowered:
                return f"Weekend {title}"
            return title

    match = _GOING_TO_RE.search(text)
    if match:
        return title_case(match.group(1))
    return title_case(" ".join(words[:MIN_LOCAL_WORDS]))


def template_items(title: str, text: str) -> List[str]:
    title_lower = title.lower()
    lowered = text.lower()
    if "hiking" in title_lower or "hiking" in lowered or "outside" in lowered:
        return list(HIKING_ITEMS)
    if "camping" in title_lower or "camping" in lowered:
        return list(CAMPING_ITEMS)
    if "trip" in title_lower and "outside" in lowered:
        return list(OUTDOOR_TRIP_ITEMS)
    if "workout" in title_lower or "gym" in lowered:
        return list(WORKOUT_ITEMS)
    if "shopping" in title_lower:
        return list(SHOPPING_ITEMS)
    if "meeting" in title_lower:
        return list(MEETING_ITEMS)
    return []


def mentioned_items(words: List[str]) -> List[str]:
    """Collect up to three words after each action verb, stopping at a stop word."""

    tokens = [_strip_punctuation(word) for word in words]
    phrases: List[str] = []
    for index, token in enumerate(tokens):
        if token.lower() not in ACTION_VERBS:
            continue
        collected: List[str] = []
        for following in tokens[index + 1 :]:
            if following.lower() in STOP_WORDS or len(collected) >= MAX_WORDS_PER_ITEM:
                break
            if following:
                collected.append(following)
        if collected:
            phrases.append(" ".join(collected))
    return phrases


def local_date(text: str, now: datetime) -> datetime:
    lowered = text.lower()
    if "today" in lowered:
        return now
    if "tomorrow" in lowered:
        return now + timedelta(days=1)
    if "next week" in lowered:
        return now + timedelta(days=7)
    if "weekend" in lowered:
        return now + timedelta(days=(SATURDAY - now.weekday()) % 7)
    if "this week" in lowered:
        return now + timedelta(days=3)
    return now + timedelta(days=1)


def parse_locally(text: str, now: datetime) -> Optional[EventDraft]:
    """Keyword heuristics used when no cloud reply is available.

    Returns ``None`` for utterances shorter than three words.
    """

    words = text.split()
    if len(words) < MIN_LOCAL_WORDS:
        return None

    title = local_title(text, words).strip()
    items = template_items(title, text)
    for phrase in mentioned_items(words):
        if phrase not in items:
            items.append(phrase)

    return EventDraft(
        title=title,
        details=text,
        items=items[:MAX_LOCAL_ITEMS],
        suggested_date=local_date(text, now),
    )


__all__ = [
    "DEFAULT_DRAFT_TITLE",
    "extract_json_object",
    "local_date",
    "local_title",
    "mentioned_items",
    "parse_locally",
    "parse_structured_draft",
    "parse_text_fallback",
    "template_items",
    "title_case",
]
