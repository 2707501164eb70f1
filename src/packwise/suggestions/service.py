"""Suggestion calling policy and keystroke debouncing."""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Callable, List, Optional, Set

from packwise import metrics
from packwise.config import MIN_DEBOUNCE_SECONDS, Settings, get_settings

from .combiner import combine
from .external import ExternalSuggestionAdapter
from .local import MAX_LOCAL_SUGGESTIONS, LocalSuggestionScorer

logger = logging.getLogger(__name__)

Deliver = Callable[[List[str]], None]


class SuggestionService:
    """Decides when the external adapter is consulted and what gets delivered.

    Local suggestions are always delivered first. The external adapter is only asked when
    cloud calls are enabled and the local scorer came up short, and its result is only
    delivered when merging it actually adds items.
    """

    def __init__(
        self,
        local: Optional[LocalSuggestionScorer] = None,
        external: Optional[ExternalSuggestionAdapter] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._local = local or LocalSuggestionScorer()
        self._external = external or ExternalSuggestionAdapter(None, self._settings)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "SuggestionService":
        settings = settings or get_settings()
        return cls(
            LocalSuggestionScorer(),
            ExternalSuggestionAdapter.from_settings(settings),
            settings,
        )

    @property
    def settings(self) -> Settings:
        return self._settings

    def local_suggestions(self, title: str, day: date) -> List[str]:
        return self._local.suggest(title, day)

    def external_suggestions(self, title: str, day: date) -> List[str]:
        return self._external.suggest(title, day)

    def wants_external(self, title: str, local: List[str]) -> bool:
        if not title.strip():
            return False
        if not self._settings.cloud_enabled or not self._external.available:
            return False
        return len(local) < MAX_LOCAL_SUGGESTIONS

    def suggest(self, title: str, day: date, deliver: Optional[Deliver] = None) -> List[str]:
        """Run the full policy synchronously and return the last list delivered."""

        local = self.local_suggestions(title, day)
        _deliver(deliver, local, source="local")
        if not self.wants_external(title, local):
            return local

        combined = combine(local, self.external_suggestions(title, day))
        if len(combined) > len(local):
            _deliver(deliver, combined, source="combined")
            return combined
        return local


def _deliver(deliver: Optional[Deliver], items: List[str], *, source: str) -> None:
    metrics.SUGGESTION_DELIVERIES.labels(source=source).inc()
    if deliver is not None:
        deliver(list(items))


class SuggestionDebouncer:
    """Feed title keystrokes into a :class:`SuggestionService` from an event loop.

    Each change delivers local suggestions at once. The external request waits until the
    title has been stable for the settle time; a newer keystroke cancels a request that has
    not been sent yet. Requests already on the wire run to completion and their result is
    dropped when the title has changed in the meantime.
    """

    def __init__(
        self,
        service: SuggestionService,
        deliver: Deliver,
        *,
        delay: Optional[float] = None,
    ) -> None:
        requested = service.settings.suggestion_debounce if delay is None else delay
        self._delay = max(MIN_DEBOUNCE_SECONDS, requested)
        self._service = service
        self._deliver = deliver
        self._current_title = ""
        self._pending: Optional[asyncio.Task[None]] = None
        self._tasks: Set[asyncio.Task[None]] = set()

    @property
    def delay(self) -> float:
        return self._delay

    @property
    def current_title(self) -> str:
        return self._current_title

    def title_changed(self, title: str, day: date) -> List[str]:
        """Record a keystroke; must be called from the running event loop."""

        self._current_title = title
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None

        local = self._service.local_suggestions(title, day)
        _deliver(self._deliver, local, source="local")
        if self._service.wants_external(title, local):
            task = asyncio.get_running_loop().create_task(self._request(title, day, local))
            self._pending = task
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
        return local

    async def _request(self, title: str, day: date, local: List[str]) -> None:
        await asyncio.sleep(self._delay)
        if self._pending is asyncio.current_task():
            self._pending = None

        external = await asyncio.to_thread(self._service.external_suggestions, title, day)
        if title != self._current_title:
            logger.debug("Discarding stale suggestions for %r", title)
            metrics.SUGGESTION_DELIVERIES.labels(source="stale").inc()
            return

        combined = combine(local, external)
        if len(combined) > len(local):
            _deliver(self._deliver, combined, source="combined")

    async def wait_idle(self) -> None:
        """Wait for every scheduled or in-flight request to settle."""

        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


__all__ = ["Deliver", "SuggestionDebouncer", "SuggestionService"]
