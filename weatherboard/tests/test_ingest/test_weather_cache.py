"""Tests for the per-city weather cache with a mocked provider."""

import asyncio
from unittest.mock import MagicMock

from weatherboard.ingest.openweather_client import OpenWeatherClient
from weatherboard.ingest.provider import (
    MalformedResponse,
    ProviderRejected,
    ProviderUnavailable,
)
from weatherboard.ingest.weather_cache import WeatherCache
from weatherboard.tests.conftest import make_snapshot


def _provider(side_effect) -> MagicMock:
    mock = MagicMock(spec=OpenWeatherClient)
    mock.get_current_weather.side_effect = side_effect
    return mock


class TestEnsureFresh:
    def test_first_call_fetches(self, provider):
        cache = WeatherCache(provider)
        entry = asyncio.run(cache.ensure_fresh("London", now=0))

        assert entry.snapshot == make_snapshot("London")
        assert entry.fetched_at_ms == 0
        assert entry.error is None
        provider.get_current_weather.assert_awaited_once_with("London")

    def test_within_window_no_refetch(self, provider):
        cache = WeatherCache(provider)

        async def run():
            first = await cache.ensure_fresh("London", now=0, freshness_window_ms=60_000)
            second = await cache.ensure_fresh("London", now=30_000, freshness_window_ms=60_000)
            return first, second

        first, second = asyncio.run(run())
        assert provider.get_current_weather.await_count == 1
        assert second is first

    def test_after_window_refetches(self, provider):
        cache = WeatherCache(provider)

        async def run():
            await cache.ensure_fresh("London", now=0)
            return await cache.ensure_fresh("London", now=60_001)

        entry = asyncio.run(run())
        assert provider.get_current_weather.await_count == 2
        assert entry.fetched_at_ms == 60_001

    def test_uses_default_window(self, provider):
        cache = WeatherCache(provider, freshness_window_ms=1_000)

        async def run():
            await cache.ensure_fresh("London", now=0)
            await cache.ensure_fresh("London", now=1_500)

        asyncio.run(run())
        assert provider.get_current_weather.await_count == 2

    def test_failure_consumes_window(self):
        provider = _provider(ProviderUnavailable("down"))
        cache = WeatherCache(provider)

        async def run():
            failed = await cache.ensure_fresh("Tokyo", now=0)
            again = await cache.ensure_fresh("Tokyo", now=10_000)
            return failed, again

        failed, again = asyncio.run(run())
        assert failed.snapshot is None
        assert failed.fetched_at_ms == 0
        assert "down" in failed.error
        assert again is failed
        assert provider.get_current_weather.await_count == 1

        asyncio.run(cache.ensure_fresh("Tokyo", now=61_000))
        assert provider.get_current_weather.await_count == 2

    def test_failure_clears_previous_snapshot(self):
        provider = _provider([make_snapshot("Tokyo"), ProviderRejected("nope", 404)])
        cache = WeatherCache(provider)

        async def run():
            await cache.ensure_fresh("Tokyo", now=0)
            return await cache.ensure_fresh("Tokyo", now=70_000)

        entry = asyncio.run(run())
        assert entry.snapshot is None
        assert cache.get("Tokyo") is entry

    def test_malformed_and_unexpected_errors_downgraded(self):
        provider = _provider([MalformedResponse("bad shape"), RuntimeError("boom")])
        cache = WeatherCache(provider)

        async def run():
            a = await cache.ensure_fresh("A", now=0)
            b = await cache.ensure_fresh("B", now=0)
            return a, b

        a, b = asyncio.run(run())
        assert a.snapshot is None and a.error == "bad shape"
        assert b.snapshot is None and "boom" in b.error

    def test_fetched_at_never_goes_backwards(self, provider):
        cache = WeatherCache(provider)

        async def run():
            await cache.ensure_fresh("London", now=100_000)
            # a sweep stamped before the stored fetch completes afterwards
            return await cache._fetch("London", 50_000)

        entry = asyncio.run(run())
        assert entry.fetched_at_ms == 100_000

    def test_cities_are_independent(self):
        def fetch(city):
            if city == "Tokyo":
                raise ProviderUnavailable("timeout")
            return make_snapshot(city)

        cache = WeatherCache(_provider(fetch))

        async def run():
            await asyncio.gather(
                cache.ensure_fresh("London", now=0),
                cache.ensure_fresh("Tokyo", now=0),
            )

        asyncio.run(run())
        assert cache.get("London").snapshot == make_snapshot("London")
        assert cache.get("Tokyo").snapshot is None
        assert cache.cities() == ["London", "Tokyo"]


class TestInFlightDedup:
    def test_concurrent_callers_share_one_fetch(self):
        release = asyncio.Event()
        calls = []

        async def slow_fetch(city):
            calls.append(city)
            await release.wait()
            return make_snapshot(city)

        provider = MagicMock(spec=OpenWeatherClient)
        provider.get_current_weather.side_effect = slow_fetch
        cache = WeatherCache(provider)

        async def run():
            first = asyncio.ensure_future(cache.ensure_fresh("London", now=0))
            second = asyncio.ensure_future(cache.ensure_fresh("London", now=5))
            await asyncio.sleep(0)
            assert cache.in_flight("London")
            release.set()
            return await first, await second

        first, second = asyncio.run(run())
        assert calls == ["London"]
        assert first is second
        assert not cache.in_flight("London")

    def test_later_response_cannot_be_overwritten(self):
        # The scheduler and a user refresh overlap; only one fetch happens,
        # so there is no slow earlier response to win last.
        release = asyncio.Event()
        count = 0

        async def fetch(city):
            nonlocal count
            count += 1
            await release.wait()
            return make_snapshot(city, temperature=count)

        provider = MagicMock(spec=OpenWeatherClient)
        provider.get_current_weather.side_effect = fetch
        cache = WeatherCache(provider)

        async def run():
            tasks = [
                asyncio.ensure_future(cache.ensure_fresh("Paris", now=t))
                for t in (0, 1, 2)
            ]
            await asyncio.sleep(0)
            release.set()
            return await asyncio.gather(*tasks)

        results = asyncio.run(run())
        assert count == 1
        assert {r.snapshot.temperature for r in results} == {1}


class TestGet:
    def test_get_does_not_fetch(self, provider):
        cache = WeatherCache(provider)
        assert cache.get("London") is None
        provider.get_current_weather.assert_not_called()
