"""Temperature conversion for display."""

from weatherboard.models.common import TemperatureUnit, round_half_up


def to_display(temp_c: float, unit: TemperatureUnit) -> int | float:
    """Convert a Celsius reading into the display unit.

    Celsius passes through untouched; Fahrenheit is rounded to a whole degree.
    """
    if unit == TemperatureUnit.FAHRENHEIT:
        return round_half_up(temp_c * 9 / 5 + 32)
    return temp_c
