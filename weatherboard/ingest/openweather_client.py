"""OpenWeatherMap client implementing the WeatherProvider capability."""

import asyncio
import logging
from datetime import UTC, datetime, timedelta, timezone
from typing import Any

import httpx

from weatherboard.config.schema import OPENWEATHER_BASE_URL, ProviderConfig
from weatherboard.ingest.provider import (
    MalformedResponse,
    ProviderError,
    ProviderRejected,
    ProviderUnavailable,
)
from weatherboard.models.common import MS_TO_KPH, round_half_up
from weatherboard.models.weather import TimelinePoint, WeatherSnapshot

logger = logging.getLogger(__name__)


class OpenWeatherClient:
    def __init__(
        self,
        api_key: str,
        base_url: str = OPENWEATHER_BASE_URL,
        timeout: float = 30.0,
        max_retries: int = 0,
        retry_base_delay: float = 5.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_base_delay = retry_base_delay
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_config(cls, config: ProviderConfig) -> "OpenWeatherClient":
        return cls(
            api_key=config.api_key,
            base_url=config.base_url,
            timeout=config.timeout,
            max_retries=config.max_retries,
            retry_base_delay=config.retry_base_delay,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get_current_weather(self, city: str) -> WeatherSnapshot:
        data = await self._get_json("/weather", city)
        try:
            main = data["main"]
            temp = float(main["temp"])
            humidity = int(main["humidity"])
            return WeatherSnapshot(
                city=str(data.get("name") or city),
                temperature=round_half_up(temp),
                condition=str(data["weather"][0]["main"]),
                humidity=humidity,
                wind_speed_kph=round_half_up(float(data["wind"]["speed"]) * MS_TO_KPH),
                pressure_hpa=int(main["pressure"]),
                visibility_km=round_half_up(float(data.get("visibility", 0)) / 1000),
                uv_index=0,  # needs a separate endpoint
                dew_point_c=round_half_up(temp - (100 - humidity) / 5),
            )
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise MalformedResponse(
                f"Unexpected current-weather payload for {city!r}: {e!r}"
            ) from e

    async def get_forecast_timeline(self, city: str) -> list[TimelinePoint]:
        """Fetch the 3-hourly forecast timeline, timestamps in the city's local zone."""
        data = await self._get_json("/forecast", city)
        try:
            offset = int((data.get("city") or {}).get("timezone", 0))
            tz = timezone(timedelta(seconds=offset)) if offset else UTC
            return [_parse_timeline_item(item, tz) for item in data["list"]]
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise MalformedResponse(
                f"Unexpected forecast payload for {city!r}: {e!r}"
            ) from e

    async def _get_json(self, endpoint: str, city: str) -> dict[str, Any]:
        """GET an endpoint for a city. Retries on 503/429 with exponential backoff."""
        url = f"{self.base_url}{endpoint}"
        params = {"q": city, "appid": self.api_key, "units": "metric"}

        last_error: ProviderError | None = None
        for attempt in range(self.max_retries + 1):
            try:
                resp = await self._client.get(url, params=params, timeout=self.timeout)
            except httpx.RequestError as e:
                last_error = ProviderUnavailable(f"OpenWeather unreachable: {e}")
                if attempt < self.max_retries:
                    delay = self.retry_base_delay * (2**attempt)
                    logger.warning(
                        "OpenWeather request error, retrying in %.1fs: %s", delay, e
                    )
                    await asyncio.sleep(delay)
                    continue
                raise last_error from e

            if resp.status_code in (503, 429) and attempt < self.max_retries:
                delay = self.retry_base_delay * (2**attempt)
                logger.warning(
                    "OpenWeather %s returned %d, retrying in %.1fs (attempt %d/%d)",
                    endpoint, resp.status_code, delay, attempt + 1, self.max_retries,
                )
                await asyncio.sleep(delay)
                continue
            return _decode(resp, city)

        assert last_error is not None
        raise last_error


def _decode(resp: httpx.Response, city: str) -> dict[str, Any]:
    try:
        data = resp.json()
    except ValueError as e:
        if resp.status_code >= 400:
            raise ProviderRejected(
                f"OpenWeather {resp.status_code} for {city!r}", resp.status_code
            ) from e
        raise MalformedResponse(f"Non-JSON response for {city!r}") from e

    if not isinstance(data, dict):
        raise MalformedResponse(f"Expected a JSON object for {city!r}")

    # "cod" is an int on /weather and a string on /forecast
    cod = str(data.get("cod", resp.status_code))
    if resp.status_code >= 400 or cod != "200":
        status = resp.status_code if resp.status_code >= 400 else _as_int(cod)
        raise ProviderRejected(
            f"OpenWeather rejected {city!r}: {data.get('message', cod)}", status
        )
    return data


def _parse_timeline_item(item: dict[str, Any], tz: timezone) -> TimelinePoint:
    pop = item.get("pop")
    return TimelinePoint(
        timestamp=datetime.fromtimestamp(int(item["dt"]), tz=tz),
        temperature=float(item["main"]["temp"]),
        condition=str(item["weather"][0]["main"]),
        precipitation_probability=float(pop) if pop is not None else None,
        wind_speed_ms=float(item["wind"]["speed"]),
    )


def _as_int(value: str) -> int | None:
    try:
        return int(value)
    except ValueError:
        return None
