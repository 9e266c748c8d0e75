"""Debounced search-as-you-type over characters and locations."""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from .errors import FetchFailure
from .models import SearchResult

logger = logging.getLogger(__name__)

SearchFn = Callable[[str, int], Awaitable[list[SearchResult]]]


class SearchDebouncer:
    """Collects keystrokes and runs one lookup per pause in typing.

    Every keystroke restarts the timer. Lookups are not cancelled once
    sent; each carries a sequence number and only the lookup for the
    latest query may publish results.
    """

    def __init__(self, search: SearchFn, *, delay: float = 0.3, limit: int = 10):
        self._search = search
        self._delay = delay
        self._limit = limit
        self._timer: asyncio.TimerHandle | None = None
        self._tasks: set[asyncio.Task] = set()
        self._seq = 0

        self.query = ""
        self.results: list[SearchResult] = []
        self.dropdown_visible = False
        self.loading = False
        self.error: str | None = None
        self.calls = 0

    def on_query_change(self, text: str) -> None:
        """Call on every edit of the search box. Must run inside the event loop."""
        self._seq += 1
        self.query = text
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

        query = text.strip()
        if not query:
            self.results = []
            self.dropdown_visible = False
            self.loading = False
            self.error = None
            return

        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self._delay, self._fire, self._seq, query)

    def _fire(self, seq: int, query: str) -> None:
        self._timer = None
        task = asyncio.ensure_future(self._lookup(seq, query))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _lookup(self, seq: int, query: str) -> None:
        self.calls += 1
        self.loading = True
        try:
            results = await self._search(query, self._limit)
        except FetchFailure as e:
            if seq == self._seq:
                logger.error(f"Search for {query!r} failed: {e}")
                self.error = str(e)
                self.results = []
                self.dropdown_visible = False
                self.loading = False
            return

        if seq != self._seq:
            logger.debug(f"Dropping results for superseded query {query!r}")
            return
        self.results = results
        self.error = None
        self.dropdown_visible = True
        self.loading = False

    async def settle(self) -> None:
        """Wait until no timer is pending and every lookup has finished."""
        while self._timer is not None or self._tasks:
            if self._tasks:
                await asyncio.gather(*list(self._tasks), return_exceptions=True)
            else:
                await asyncio.sleep(max(self._delay / 4, 0.001))

    async def aclose(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
