"""Shared test fixtures."""

import sqlite3
from datetime import UTC, datetime, timedelta
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from weatherboard.config.schema import DashboardConfig
from weatherboard.ingest.openweather_client import OpenWeatherClient
from weatherboard.models.weather import TimelinePoint, WeatherSnapshot
from weatherboard.state.preference_store import PreferenceStore
from weatherboard.storage.database import connect, run_migrations


def make_snapshot(city: str = "London", temperature: int = 15, **overrides) -> WeatherSnapshot:
    fields = dict(
        city=city,
        temperature=temperature,
        condition="Clouds",
        humidity=70,
        wind_speed_kph=12,
        pressure_hpa=1013,
        visibility_km=10,
        uv_index=0,
        dew_point_c=temperature - 6,
    )
    fields.update(overrides)
    return WeatherSnapshot(**fields)


def make_timeline(
    points: int,
    start: datetime = datetime(2026, 10, 19, 0, 0, tzinfo=UTC),
    step_hours: int = 3,
) -> list[TimelinePoint]:
    """Evenly spaced timeline; temperature and wind encode the point index."""
    return [
        TimelinePoint(
            timestamp=start + timedelta(hours=step_hours * i),
            temperature=10.0 + i,
            condition="Rain" if i % 2 else "Clear",
            precipitation_probability=(i % 10) / 10,
            wind_speed_ms=float(i),
        )
        for i in range(points)
    ]


def forecast_payload(points: int, tz_offset: int = 0, start_dt: int = 1760832000) -> dict:
    """OpenWeather /forecast body with `points` 3-hourly items."""
    return {
        "cod": "200",
        "message": 0,
        "cnt": points,
        "list": [
            {
                "dt": start_dt + i * 3 * 3600,
                "main": {"temp": 10.4 + i, "humidity": 60},
                "weather": [{"main": "Clouds"}],
                "wind": {"speed": 2.5},
                "pop": 0.35 if i % 2 else 0,
            }
            for i in range(points)
        ],
        "city": {"name": "London", "timezone": tz_offset},
    }


@pytest.fixture
def tmp_db(tmp_path: Path) -> sqlite3.Connection:
    """Temporary SQLite database with all migrations applied."""
    conn = connect(tmp_path / "test.db")
    run_migrations(conn)
    yield conn
    conn.close()


@pytest.fixture
def prefs(tmp_db: sqlite3.Connection) -> PreferenceStore:
    return PreferenceStore(tmp_db)


@pytest.fixture
def provider() -> MagicMock:
    """Provider double; spec=OpenWeatherClient makes its async methods AsyncMocks."""
    mock = MagicMock(spec=OpenWeatherClient)
    mock.get_current_weather.side_effect = lambda city: make_snapshot(city)
    mock.get_forecast_timeline.return_value = make_timeline(40)
    return mock


@pytest.fixture
def default_config() -> DashboardConfig:
    return DashboardConfig(default_cities=["London", "Tokyo"])


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"
