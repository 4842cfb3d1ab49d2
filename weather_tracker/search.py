# ABOUTME: Debounced geocoding suggestions for the add-location search box.
# ABOUTME: Restarts a cancellable timer per keystroke and deduplicates results by (name, country).

import asyncio
import logging
from collections.abc import Awaitable, Callable

import httpx

from weather_tracker import config
from weather_tracker.errors import FetchError
from weather_tracker.models import Suggestion
from weather_tracker.weather_service import GeocodeClient

logger = logging.getLogger(__name__)

SuggestionListener = Callable[[list[Suggestion]], None]


class ScheduledCall:
    """A coroutine function scheduled to run after a delay, revocable until it finishes."""

    def __init__(self, delay: float, func: Callable[[], Awaitable[None]]):
        self._task = asyncio.get_running_loop().create_task(self._run(delay, func))

    @staticmethod
    async def _run(delay: float, func: Callable[[], Awaitable[None]]) -> None:
        await asyncio.sleep(delay)
        await func()

    def cancel(self) -> None:
        self._task.cancel()

    @property
    def cancelled(self) -> bool:
        return self._task.cancelled()

    def done(self) -> bool:
        return self._task.done()

    async def wait(self) -> None:
        """Wait until the call has run or been cancelled."""
        await asyncio.wait([self._task])


def dedupe_suggestions(suggestions: list[Suggestion]) -> list[Suggestion]:
    """Keep the first suggestion per (name, country), preserving order."""
    seen: dict[tuple[str, str], Suggestion] = {}
    for s in suggestions:
        seen.setdefault(s.dedup_key, s)
    return list(seen.values())


class SuggestionSearch:
    def __init__(
        self,
        geocoder: GeocodeClient,
        quiet_period: float = config.SEARCH_DEBOUNCE_SECONDS,
        limit: int = config.SUGGESTION_LIMIT,
        min_length: int = config.MIN_QUERY_LENGTH,
    ):
        self._geocoder = geocoder
        self._quiet_period = quiet_period
        self._limit = limit
        self._min_length = min_length
        self._pending: ScheduledCall | None = None
        self._listeners: list[SuggestionListener] = []
        self.query = ""
        self.suggestions: list[Suggestion] = []

    def subscribe(self, listener: SuggestionListener) -> None:
        self._listeners.append(listener)

    def update(self, text: str) -> None:
        """Feed the current contents of the search box."""
        self.query = text
        query = text.strip()
        self._cancel_pending()
        if len(query) < self._min_length:
            self._publish([])
            return
        self._pending = ScheduledCall(self._quiet_period, lambda: self._lookup(query))

    def clear(self) -> None:
        self.query = ""
        self._cancel_pending()
        self._publish([])

    async def wait(self) -> None:
        """Wait for the pending lookup, if any, to run or be cancelled."""
        if self._pending is not None:
            await self._pending.wait()

    def _cancel_pending(self) -> None:
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None

    async def _lookup(self, query: str) -> None:
        try:
            candidates = await self._geocoder.lookup(query, limit=self._limit)
        except (FetchError, httpx.HTTPError, ValueError) as e:
            logger.info("No suggestions for %r: %s", query, e)
            self._publish([])
            return
        self._publish(dedupe_suggestions([Suggestion.from_candidate(c) for c in candidates]))

    def _publish(self, suggestions: list[Suggestion]) -> None:
        self.suggestions = suggestions
        for listener in list(self._listeners):
            listener(suggestions)
