"""Unit systems and the conversions used for threshold comparisons."""
from __future__ import annotations

from enum import Enum

MPH_TO_KMH = 1.60934


class UnitSystem(str, Enum):
    """Display unit system requested by the caller."""
    METRIC = "metric"
    IMPERIAL = "imperial"

    @classmethod
    def parse(cls, value: str | None) -> "UnitSystem":
        """Anything other than "imperial" is treated as metric."""
        if value and value.strip().lower() == cls.IMPERIAL.value:
            return cls.IMPERIAL
        return cls.METRIC

    @property
    def temp_symbol(self) -> str:
        return "°F" if self is UnitSystem.IMPERIAL else "°C"

    @property
    def wind_label(self) -> str:
        return "mph" if self is UnitSystem.IMPERIAL else "km/h"

    @property
    def api_temperature_unit(self) -> str:
        """Open-Meteo `temperature_unit` parameter."""
        return "fahrenheit" if self is UnitSystem.IMPERIAL else "celsius"

    @property
    def api_wind_unit(self) -> str:
        """Open-Meteo `wind_speed_unit` parameter."""
        return "mph" if self is UnitSystem.IMPERIAL else "kmh"


def to_celsius(value: float, symbol: str) -> float:
    """Return `value` in Celsius; unknown symbols pass through unchanged."""
    if symbol == "°F":
        return (value - 32) * 5 / 9
    return value


def to_kmh(value: float, label: str) -> float:
    """Return `value` in km/h; unknown labels pass through unchanged."""
    if label == "mph":
        return value * MPH_TO_KMH
    return value
