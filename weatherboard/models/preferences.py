"""User preference and dashboard view models."""

from dataclasses import dataclass, field

from weatherboard.models.common import TemperatureUnit
from weatherboard.models.weather import WeatherSnapshot


@dataclass(frozen=True)
class Preferences:
    unit: TemperatureUnit = TemperatureUnit.CELSIUS
    favorites: frozenset[str] = field(default_factory=frozenset)


@dataclass(frozen=True)
class CityView:
    city: str
    snapshot: WeatherSnapshot
    display_temperature: int
    unit: TemperatureUnit
    favorite: bool
