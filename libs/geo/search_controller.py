"""Live search over keystrokes: debounce, supersede, drop stale results.

Everything runs on one event loop. Each resolution carries the generation
number current when it was issued; a result whose generation is no longer
current is discarded. Superseded tasks are also cancelled so their network
requests stop early.
"""
from __future__ import annotations
import asyncio
import logging
from typing import Callable, List, Optional

from prometheus_client import Counter

from .classify import Classification, InputKind
from .extract import looks_like_coordinate_pair
from .resolver import LocationResolver
from .types import Resolution, SearchSuggestion

logger = logging.getLogger("libs.geo.search_controller")

STALE_RESULTS = Counter("locator_stale_results_dropped_total", "Resolutions dropped because newer input superseded them")
RESOLUTIONS = Counter("locator_resolutions_total", "Resolutions started", ["trigger"])

DEFAULT_QUIET_PERIOD_SEC = 0.5


class DebouncedSearchController:
    def __init__(
        self,
        resolver: LocationResolver,
        on_resolved: Callable[[Resolution], None],
        on_not_found: Callable[[], None],
        on_suggestions: Optional[Callable[[List[SearchSuggestion]], None]] = None,
        quiet_period: float = DEFAULT_QUIET_PERIOD_SEC,
        min_query_length: int = 2,
    ):
        self.resolver = resolver
        self.on_resolved = on_resolved
        self.on_not_found = on_not_found
        self.on_suggestions = on_suggestions
        self.quiet_period = quiet_period
        self.min_query_length = min_query_length
        self.suggestions: List[SearchSuggestion] = []
        self._generation = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def busy(self) -> bool:
        """True while a resolution is scheduled or in flight."""
        return self._task is not None and not self._task.done()

    @property
    def generation(self) -> int:
        return self._generation

    def _supersede(self) -> int:
        self._generation += 1
        if self.busy:
            self._task.cancel()
        self._task = None
        return self._generation

    def _is_current(self, token: int) -> bool:
        if token != self._generation:
            STALE_RESULTS.inc()
            logger.debug("Dropping stale result for generation %s (current %s)", token, self._generation)
            return False
        return True

    def _set_suggestions(self, suggestions: List[SearchSuggestion]):
        self.suggestions = list(suggestions)
        if self.on_suggestions:
            self.on_suggestions(self.suggestions)

    def _report(self, resolution: Optional[Resolution]):
        if resolution is None:
            self.on_not_found()
        else:
            self.on_resolved(resolution)

    def on_input(self, text: Optional[str]) -> None:
        """Handle a change of the search field's value."""
        token = self._supersede()
        trimmed = (text or "").strip()
        if len(trimmed) < self.min_query_length:
            self._set_suggestions([])
            return
        c = self.resolver.classify(trimmed)
        if c.coordinate is not None:
            RESOLUTIONS.labels(trigger="instant").inc()
            self._set_suggestions([])
            self._report(Resolution(c.coordinate, c.coordinate.to_string(), source=c.kind.value))
            return
        if looks_like_coordinate_pair(trimmed):
            # out-of-range pair: nothing to resolve, never a place name
            self._set_suggestions([])
            return
        self._task = asyncio.get_running_loop().create_task(self._debounced(c, token))

    def on_paste(self, text: Optional[str]) -> None:
        trimmed = (text or "").strip()
        c = self.resolver.classify(trimmed)
        if c.coordinate is not None or "http" in trimmed:
            self._supersede()
            self._task = asyncio.get_running_loop().create_task(self._run(c, self._generation, explicit=True))
        else:
            self.on_input(text)

    async def _debounced(self, c: Classification, token: int):
        await asyncio.sleep(self.quiet_period)
        if not self._is_current(token):
            return
        RESOLUTIONS.labels(trigger="debounced").inc()
        await self._run(c, token, explicit=False)

    async def _run(self, c: Classification, token: int, explicit: bool) -> Optional[Resolution]:
        if c.kind is InputKind.FREE_TEXT and not explicit:
            suggestions = await self.resolver.search(c.text)
            if not self._is_current(token):
                return None
            self._set_suggestions(suggestions)
            if not suggestions:
                self.on_not_found()
            return None

        resolution = await self.resolver.resolve_classified(c)
        if not self._is_current(token):
            return None
        self._set_suggestions([])
        self._report(resolution)
        return resolution

    async def submit(self, text: Optional[str]) -> Optional[Resolution]:
        """Resolve now, ignoring the quiet period. Empty input does nothing."""
        self._supersede()
        c = self.resolver.classify(text)
        if c.kind is InputKind.INVALID:
            return None
        RESOLUTIONS.labels(trigger="submit").inc()
        task = asyncio.get_running_loop().create_task(self._run(c, self._generation, explicit=True))
        self._task = task
        await asyncio.wait({task})
        if task.cancelled():
            return None
        return task.result()

    def select(self, suggestion: SearchSuggestion) -> Resolution:
        """The user picked one of the offered suggestions."""
        self._supersede()
        self._set_suggestions([])
        resolution = Resolution(suggestion.coordinate, suggestion.label, source="suggestion")
        self.on_resolved(resolution)
        return resolution

    def cancel(self) -> None:
        self._supersede()

    async def wait_idle(self) -> None:
        """Wait for whatever is scheduled or in flight to finish."""
        while self.busy:
            await asyncio.wait({self._task})
