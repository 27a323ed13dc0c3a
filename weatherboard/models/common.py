"""Common types and helpers shared across models."""

import math
import time
from enum import StrEnum

MS_TO_KPH = 3.6


class TemperatureUnit(StrEnum):
    CELSIUS = "celsius"
    FAHRENHEIT = "fahrenheit"

    def toggled(self) -> "TemperatureUnit":
        if self is TemperatureUnit.CELSIUS:
            return TemperatureUnit.FAHRENHEIT
        return TemperatureUnit.CELSIUS


def epoch_ms_now() -> int:
    return int(time.time() * 1000)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties toward +infinity (2.5 -> 3, -2.5 -> -2)."""
    return math.floor(value + 0.5)
