"""Dashboard controller: the single owner of tracked cities, cache and preferences.

Every consumer-facing operation goes through this object. Consumers that need
to redraw subscribe to change notifications instead of polling.
"""

import asyncio
import logging
from collections.abc import Callable

from weatherboard.config.schema import DashboardConfig
from weatherboard.forecast.aggregator import build_daily_forecast, build_hourly_series
from weatherboard.ingest.openweather_client import OpenWeatherClient
from weatherboard.ingest.provider import ProviderError, WeatherProvider
from weatherboard.ingest.weather_cache import WeatherCache
from weatherboard.models.common import TemperatureUnit, epoch_ms_now
from weatherboard.models.preferences import CityView, Preferences
from weatherboard.models.weather import (
    CacheEntry,
    ForecastDay,
    HourlyPoint,
    TimelinePoint,
    WeatherSnapshot,
)
from weatherboard.scheduler import RefreshScheduler
from weatherboard.state.city_registry import CityRegistry
from weatherboard.state.preference_store import PreferenceStore
from weatherboard.storage.database import connect, run_migrations
from weatherboard.units import to_display

logger = logging.getLogger(__name__)

EVENT_CITIES = "cities"
EVENT_SNAPSHOT = "snapshot"
EVENT_FAVORITES = "favorites"
EVENT_UNIT = "unit"

Listener = Callable[[str, str | None], None]


class DashboardController:
    def __init__(
        self,
        provider: WeatherProvider,
        preferences: PreferenceStore,
        config: DashboardConfig | None = None,
        scheduler: RefreshScheduler | None = None,
    ):
        self.config = config or DashboardConfig()
        self.provider = provider
        self.preferences = preferences
        self.registry = CityRegistry()
        self.cache = WeatherCache(
            provider, freshness_window_ms=self.config.cache.freshness_window_ms
        )
        self.scheduler = scheduler or RefreshScheduler()
        self.last_refresh_ms: int | None = None
        self._stopped = False
        self._listeners: list[Listener] = []

    # --- Lifecycle ---

    async def start(self) -> None:
        """Track the default cities, fetch them and start periodic refresh."""
        for city in self.config.default_cities:
            self.registry.add(city)
        await self.refresh_now()
        self.scheduler.start(self.refresh_now, self.config.scheduler.interval_ms)

    async def stop(self) -> None:
        """Stop refreshing, let pending fetches land, then release the provider and DB.

        Sweeps that begin after this call keep the cached entries as they are.
        """
        self._stopped = True
        self.scheduler.stop()
        await self.scheduler.drain()
        await self.cache.drain()
        close = getattr(self.provider, "aclose", None)
        if close is not None:
            await close()
        self.preferences.close()

    # --- Cities and current conditions ---

    async def add_city(self, name: str) -> list[str]:
        """Track a city and make sure its snapshot is fresh.

        Only surrounding whitespace is trimmed; an empty name is ignored.
        """
        city = name.strip()
        if not city:
            return self.registry.list()
        known = city in self.registry
        cities = self.registry.add(city)
        if not known:
            self._notify(EVENT_CITIES, city)
        await self._ensure_fresh(city, epoch_ms_now())
        return cities

    def cities(self) -> list[str]:
        return self.registry.list()

    async def refresh_now(self) -> None:
        """Bring every tracked city up to date, concurrently."""
        if self._stopped:
            return
        now = epoch_ms_now()
        await asyncio.gather(*(self._ensure_fresh(c, now) for c in self.registry.list()))
        self.last_refresh_ms = now

    def get_snapshot(self, city: str) -> WeatherSnapshot | None:
        entry = self.cache.get(city)
        return entry.snapshot if entry is not None else None

    def get_entry(self, city: str) -> CacheEntry | None:
        return self.cache.get(city)

    # --- Detailed view ---

    async def get_daily_forecast(self, city: str) -> list[ForecastDay]:
        return build_daily_forecast(await self._timeline(city))

    async def get_hourly_series(self, city: str) -> list[HourlyPoint]:
        return build_hourly_series(await self._timeline(city))

    # --- Preferences ---

    def load_preferences(self) -> Preferences:
        return self.preferences.load()

    def toggle_favorite(self, city: str) -> frozenset[str]:
        favorites = self.preferences.toggle_favorite(city)
        self._notify(EVENT_FAVORITES, city)
        return favorites

    def toggle_unit(self) -> TemperatureUnit:
        unit = self.preferences.toggle_unit()
        self._notify(EVENT_UNIT, None)
        return unit

    def is_favorite(self, city: str) -> bool:
        return city in self.preferences.load().favorites

    def favorites(self) -> list[str]:
        """Tracked favorites in registry order."""
        favs = self.preferences.load().favorites
        return [c for c in self.registry.list() if c in favs]

    def convert(self, temp_c: float) -> int | float:
        return to_display(temp_c, self.preferences.load().unit)

    def dashboard(self) -> list[CityView]:
        """Cities with a snapshot, favorites first, otherwise in tracking order."""
        prefs = self.preferences.load()
        views = []
        for city in self.registry.list():
            snapshot = self.get_snapshot(city)
            if snapshot is None:
                continue
            views.append(
                CityView(
                    city=city,
                    snapshot=snapshot,
                    display_temperature=to_display(snapshot.temperature, prefs.unit),
                    unit=prefs.unit,
                    favorite=city in prefs.favorites,
                )
            )
        # sorted() is stable, so tracking order holds within each group
        return sorted(views, key=lambda v: not v.favorite)

    # --- Notifications ---

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener. Returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, event: str, city: str | None) -> None:
        for listener in list(self._listeners):
            try:
                listener(event, city)
            except Exception:
                logger.exception("Listener failed on %s event for %s", event, city)

    async def _ensure_fresh(self, city: str, now: int) -> CacheEntry | None:
        before = self.cache.get(city)
        if self._stopped:
            logger.debug("Controller stopped, not refreshing %s", city)
            return before
        entry = await self.cache.ensure_fresh(
            city, now, self.config.cache.freshness_window_ms
        )
        if entry is not before:
            self._notify(EVENT_SNAPSHOT, city)
        return entry

    async def _timeline(self, city: str) -> list[TimelinePoint]:
        try:
            return await self.provider.get_forecast_timeline(city)
        except ProviderError as e:
            logger.warning("Forecast fetch failed for %s: %s", city, e)
        except Exception:
            logger.exception("Unexpected error fetching forecast for %s", city)
        return []


def build_controller(config: DashboardConfig) -> DashboardController:
    """Wire the OpenWeather client and SQLite-backed preferences from config."""
    conn = connect(config.storage.db_path)
    run_migrations(conn)
    return DashboardController(
        provider=OpenWeatherClient.from_config(config.provider),
        preferences=PreferenceStore(conn),
        config=config,
    )
