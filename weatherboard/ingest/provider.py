"""Weather provider capability and its error taxonomy."""

from typing import Protocol

from weatherboard.models.weather import TimelinePoint, WeatherSnapshot


class ProviderError(Exception):
    """Raised when the weather provider cannot deliver a usable result."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ProviderUnavailable(ProviderError):
    """Network or transport failure before a response was received."""


class ProviderRejected(ProviderError):
    """Provider answered with a non-success status (e.g. unknown city)."""


class MalformedResponse(ProviderError):
    """Provider answered, but the payload does not have the expected shape."""


class WeatherProvider(Protocol):
    async def get_current_weather(self, city: str) -> WeatherSnapshot: ...

    async def get_forecast_timeline(self, city: str) -> list[TimelinePoint]: ...
