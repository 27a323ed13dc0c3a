"""Aggregates a raw forecast timeline into daily and hourly views."""

from collections.abc import Iterable
from datetime import date

from weatherboard.models.common import MS_TO_KPH, round_half_up
from weatherboard.models.weather import ForecastDay, HourlyPoint, TimelinePoint

MAX_DAYS = 7
MAX_HOURLY_POINTS = 8  # 24h at 3-hour steps
TIME_LABEL_FORMAT = "%I:%M %p"


def build_daily_forecast(
    timeline: Iterable[TimelinePoint], max_days: int = MAX_DAYS
) -> list[ForecastDay]:
    """One entry per calendar date, taken from the first point seen on that date.

    Dates come from each point's own (provider-local) timestamp. Stops after
    `max_days` distinct dates.
    """
    days: list[ForecastDay] = []
    seen: set[date] = set()

    for point in timeline:
        if len(days) >= max_days:
            break
        day = point.timestamp.date()
        if day in seen:
            continue
        seen.add(day)
        pop = point.precipitation_probability
        days.append(
            ForecastDay(
                date=day,
                temperature=round_half_up(point.temperature),
                condition=point.condition,
                precipitation_percent=round_half_up(pop * 100) if pop else 0,
            )
        )

    return days


def build_hourly_series(
    timeline: Iterable[TimelinePoint], max_points: int = MAX_HOURLY_POINTS
) -> list[HourlyPoint]:
    """The first `max_points` timeline points, regardless of date boundaries."""
    series: list[HourlyPoint] = []
    for point in timeline:
        if len(series) >= max_points:
            break
        series.append(
            HourlyPoint(
                time_label=point.timestamp.strftime(TIME_LABEL_FORMAT),
                temperature=round_half_up(point.temperature),
                wind_speed_kph=round_half_up(point.wind_speed_ms * MS_TO_KPH),
            )
        )
    return series
