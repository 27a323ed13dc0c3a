"""Per-city weather cache: fetches current conditions only when stale."""

import asyncio
import logging

from weatherboard.ingest.provider import ProviderError, WeatherProvider
from weatherboard.ingest.staleness import is_stale
from weatherboard.models.common import epoch_ms_now
from weatherboard.models.weather import CacheEntry

logger = logging.getLogger(__name__)

DEFAULT_FRESHNESS_WINDOW_MS = 60_000


class WeatherCache:
    """Latest snapshot per city plus the time it was fetched.

    A failed fetch is stored as an empty entry stamped with the attempt time,
    so the city is not asked for again until the window elapses. At most one
    provider call per city is in flight; concurrent callers share its result.
    """

    def __init__(
        self,
        provider: WeatherProvider,
        freshness_window_ms: int = DEFAULT_FRESHNESS_WINDOW_MS,
    ):
        self.provider = provider
        self.freshness_window_ms = freshness_window_ms
        self._entries: dict[str, CacheEntry] = {}
        self._in_flight: dict[str, asyncio.Task[CacheEntry]] = {}

    async def ensure_fresh(
        self,
        city: str,
        now: int | None = None,
        freshness_window_ms: int | None = None,
    ) -> CacheEntry:
        """Return the entry for `city`, fetching it first if missing or stale."""
        pending = self._in_flight.get(city)
        if pending is not None:
            return await asyncio.shield(pending)

        if now is None:
            now = epoch_ms_now()
        if freshness_window_ms is None:
            freshness_window_ms = self.freshness_window_ms

        entry = self._entries.get(city)
        if entry is not None and not is_stale(entry.fetched_at_ms, freshness_window_ms, now):
            return entry

        task = asyncio.ensure_future(self._fetch(city, now))
        self._in_flight[city] = task
        task.add_done_callback(lambda t: self._clear_in_flight(city, t))
        return await asyncio.shield(task)

    def get(self, city: str) -> CacheEntry | None:
        return self._entries.get(city)

    def cities(self) -> list[str]:
        return list(self._entries)

    def in_flight(self, city: str) -> bool:
        return city in self._in_flight

    async def drain(self) -> None:
        """Wait for every pending fetch to store its entry."""
        if self._in_flight:
            await asyncio.gather(*self._in_flight.values(), return_exceptions=True)

    async def _fetch(self, city: str, now: int) -> CacheEntry:
        previous = self._entries.get(city)
        fetched_at = max(now, previous.fetched_at_ms) if previous else now
        try:
            snapshot = await self.provider.get_current_weather(city)
            entry = CacheEntry(snapshot=snapshot, fetched_at_ms=fetched_at)
        except ProviderError as e:
            logger.warning("Weather fetch failed for %s: %s", city, e)
            entry = CacheEntry(snapshot=None, fetched_at_ms=fetched_at, error=str(e))
        except Exception as e:
            logger.exception("Unexpected error fetching weather for %s", city)
            entry = CacheEntry(snapshot=None, fetched_at_ms=fetched_at, error=repr(e))
        self._entries[city] = entry
        return entry

    def _clear_in_flight(self, city: str, task: asyncio.Task[CacheEntry]) -> None:
        if self._in_flight.get(city) is task:
            del self._in_flight[city]
