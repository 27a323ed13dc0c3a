"""Ordered, deduplicated set of tracked cities."""


class CityRegistry:
    def __init__(self, cities: list[str] | None = None):
        self._cities: list[str] = []
        for city in cities or []:
            self.add(city)

    def add(self, city: str) -> list[str]:
        """Track a city if it is not already tracked. Returns the ordered cities.

        Identifiers are compared exactly: "paris" and "Paris" are two cities.
        """
        if city not in self._cities:
            self._cities.append(city)
        return self.list()

    def list(self) -> list[str]:
        return list(self._cities)

    def __contains__(self, city: object) -> bool:
        return city in self._cities

    def __len__(self) -> int:
        return len(self._cities)
