"""Cities tracked on a fresh dashboard."""

DEFAULT_CITIES: list[str] = ["London", "New York", "Tokyo", "Paris"]
