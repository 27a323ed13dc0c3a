"""Persisted favorites and display unit, backed by the preferences table."""

import json
import logging
import sqlite3

from weatherboard.models.common import TemperatureUnit
from weatherboard.models.preferences import Preferences
from weatherboard.storage import preferences_repo
from weatherboard.storage.preferences_repo import FAVORITE_CITIES_KEY, TEMP_UNIT_KEY

logger = logging.getLogger(__name__)


class PreferenceStore:
    """Reads preferences lazily and writes each toggle through to SQLite.

    Every toggle commits before returning, so a crash right after a toggle
    never loses it.
    """

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn
        self._prefs: Preferences | None = None

    def load(self) -> Preferences:
        """Return current preferences, materializing defaults if nothing is stored."""
        if self._prefs is None:
            self._prefs = Preferences(
                unit=self._read_unit(),
                favorites=self._read_favorites(),
            )
        return self._prefs

    def toggle_favorite(self, city: str) -> frozenset[str]:
        prefs = self.load()
        if city in prefs.favorites:
            favorites = prefs.favorites - {city}
        else:
            favorites = prefs.favorites | {city}
        preferences_repo.set_preference(
            self.conn, FAVORITE_CITIES_KEY, json.dumps(sorted(favorites))
        )
        self._prefs = Preferences(unit=prefs.unit, favorites=favorites)
        return favorites

    def toggle_unit(self) -> TemperatureUnit:
        prefs = self.load()
        unit = prefs.unit.toggled()
        preferences_repo.set_preference(self.conn, TEMP_UNIT_KEY, unit.value)
        self._prefs = Preferences(unit=unit, favorites=prefs.favorites)
        return unit

    def close(self) -> None:
        """Close the underlying connection. Preferences already loaded stay readable."""
        self.conn.close()

    def _read_unit(self) -> TemperatureUnit:
        raw = preferences_repo.get_preference(self.conn, TEMP_UNIT_KEY)
        if raw is None:
            return TemperatureUnit.CELSIUS
        try:
            return TemperatureUnit(raw)
        except ValueError:
            logger.warning("Ignoring unknown stored unit %r, using celsius", raw)
            return TemperatureUnit.CELSIUS

    def _read_favorites(self) -> frozenset[str]:
        raw = preferences_repo.get_preference(self.conn, FAVORITE_CITIES_KEY)
        if raw is None:
            return frozenset()
        try:
            cities = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Ignoring corrupt stored favorites %r", raw)
            return frozenset()
        if not isinstance(cities, list) or not all(isinstance(c, str) for c in cities):
            logger.warning("Ignoring malformed stored favorites %r", raw)
            return frozenset()
        return frozenset(cities)
