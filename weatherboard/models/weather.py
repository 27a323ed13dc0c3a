"""Weather snapshot, cache and forecast data models."""

from dataclasses import dataclass
from datetime import date, datetime


@dataclass(frozen=True)
class WeatherSnapshot:
    city: str
    temperature: int  # °C
    condition: str
    humidity: int
    wind_speed_kph: int
    pressure_hpa: int
    visibility_km: int
    uv_index: int
    dew_point_c: int


@dataclass(frozen=True)
class CacheEntry:
    snapshot: WeatherSnapshot | None
    fetched_at_ms: int
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.snapshot is not None


@dataclass(frozen=True)
class TimelinePoint:
    timestamp: datetime  # tz-aware, provider-local
    temperature: float
    condition: str
    precipitation_probability: float | None
    wind_speed_ms: float


@dataclass(frozen=True)
class ForecastDay:
    date: date
    temperature: int
    condition: str
    precipitation_percent: int


@dataclass(frozen=True)
class HourlyPoint:
    time_label: str
    temperature: int
    wind_speed_kph: int
