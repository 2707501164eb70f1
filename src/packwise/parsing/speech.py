"""Turn a transcribed utterance into an event draft."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from packwise import metrics
from packwise.config import Settings, get_settings
from packwise.llm.client import build_llm_client
from packwise.llm.interface import TextGenerator
from packwise.models.draft import EventDraft

from .fallback import parse_locally, parse_structured_draft, parse_text_fallback

logger = logging.getLogger(__name__)

PARSE_MAX_TOKENS = 300
PARSE_TEMPERATURE = 0.3

PARSE_SYSTEM_PROMPT = (
    "You are an expert at parsing event descriptions and extracting structured information. "
    "Always return valid JSON."
)


def build_parse_prompt(utterance: str, now: datetime) -> str:
    tomorrow = (now + timedelta(days=1)).strftime("%Y-%m-%d")
    return f"""Parse this event description and extract structured information:

"{utterance}"

Extract:
1. Event title (concise, 2-5 words)
2. Event details (what, when, where, why)
3. Items needed (things to bring/prepare)
4. Suggested date (if mentioned, otherwise use today + 1 day)

Return ONLY this JSON format:
{{
  "title": "Event Title",
  "details": "Detailed description of the event",
  "items": ["item1", "item2", "item3"],
  "suggestedDate": "{tomorrow}"
}}

Rules:
- Title should be short and descriptive
- Details should capture the essence and context
- Items should be things the person needs to bring/prepare
- Date format: YYYY-MM-DD
- Maximum 8 items"""


class SpeechEventParser:
    """Parse free text with the cloud model when allowed, otherwise with local heuristics.

    Stages, first success wins: structured JSON from the model, a loose reading of a
    non-JSON model reply, and keyword heuristics. The local stage also runs whenever the
    model call fails, times out or comes back empty.
    """

    def __init__(
        self,
        generator: Optional[TextGenerator] = None,
        settings: Optional[Settings] = None,
        *,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._generator = generator
        self._settings = settings or get_settings()
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "SpeechEventParser":
        settings = settings or get_settings()
        client = build_llm_client(settings)
        if client is not None:
            client = client.with_options(
                system_prompt=PARSE_SYSTEM_PROMPT,
                timeout=settings.speech_timeout,
            )
        return cls(client, settings)

    @property
    def uses_cloud(self) -> bool:
        return self._generator is not None and self._settings.cloud_enabled

    def parse(self, utterance: str, now: Optional[datetime] = None) -> Optional[EventDraft]:
        """Return a draft, or ``None`` when the text is too short to make sense of."""

        text = utterance.strip()
        if not text:
            raise ValueError("Utterance must not be empty")
        now = now or self._clock()

        if self.uses_cloud:
            content = self._ask_model(text, now)
            if content:
                draft = parse_structured_draft(content)
                if draft is not None:
                    metrics.DRAFT_PARSES.labels(stage="structured").inc()
                    return draft
                logger.info("Model reply was not the expected JSON; using text fallback")
                metrics.DRAFT_PARSES.labels(stage="text").inc()
                return parse_text_fallback(content, now)

        draft = parse_locally(text, now)
        metrics.DRAFT_PARSES.labels(stage="local" if draft else "unparseable").inc()
        if draft is None:
            logger.info("Utterance too short to parse: %r", text)
        return draft

    def _ask_model(self, text: str, now: datetime) -> str:
        try:
            content = self._generator.generate(
                build_parse_prompt(text, now),
                max_tokens=PARSE_MAX_TOKENS,
                temperature=PARSE_TEMPERATURE,
            )
        except Exception:
            logger.warning("Event parsing request failed; using local heuristics", exc_info=True)
            metrics.EXTERNAL_CALLS.labels(operation="parse", result="error").inc()
            return ""

        content = (content or "").strip()
        metrics.EXTERNAL_CALLS.labels(operation="parse", result="ok" if content else "empty").inc()
        return content


__all__ = ["PARSE_SYSTEM_PROMPT", "SpeechEventParser", "build_parse_prompt"]
