"""WMO weather-code lookup table and small display classifiers."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class WeatherCondition:
    """A decoded WMO weather code."""
    code: int
    description: str
    icon: str


UNKNOWN_DESCRIPTION = "Unknown"
UNKNOWN_ICON = "wi-na"

# (first code, last code inclusive) -> (description, icon key)
_CODE_TABLE: list[tuple[tuple[int, int], tuple[str, str]]] = [
    ((0, 0), ("Clear sky", "wi-day-sunny")),
    ((1, 1), ("Mainly clear", "wi-day-sunny-overcast")),
    ((2, 2), ("Partly cloudy", "wi-day-cloudy")),
    ((3, 3), ("Overcast", "wi-cloudy")),
    ((45, 45), ("Fog", "wi-fog")),
    ((48, 48), ("Fog", "wi-fog")),
    ((51, 53), ("Light drizzle", "wi-sprinkle")),
    ((55, 55), ("Dense drizzle", "wi-rain-mix")),
    ((61, 61), ("Slight rain", "wi-rain-mix")),
    ((63, 63), ("Moderate rain", "wi-rain")),
    ((65, 65), ("Heavy rain", "wi-rain-wind")),
    ((71, 71), ("Slight snow", "wi-snow")),
    ((73, 73), ("Moderate snow", "wi-snow")),
    ((75, 75), ("Heavy snow", "wi-snow-wind")),
    ((77, 77), ("Snow grains", "wi-snowflake-cold")),
    ((80, 82), ("Rain showers", "wi-showers")),
    ((85, 86), ("Snow showers", "wi-snow")),
    ((95, 95), ("Thunderstorm", "wi-thunderstorm")),
    ((96, 96), ("Thunderstorm with hail", "wi-storm-showers")),
    ((99, 99), ("Thunderstorm with hail", "wi-storm-showers")),
]

_COMPASS_POINTS = ("N", "NE", "E", "SE", "S", "SW", "W", "NW")


def describe(code: int | None) -> WeatherCondition:
    """Decode a WMO code; unrecognized or missing codes land in the unknown bucket."""
    if code is None:
        return WeatherCondition(code=-1, description=UNKNOWN_DESCRIPTION, icon=UNKNOWN_ICON)
    code = int(code)
    for (low, high), (description, icon) in _CODE_TABLE:
        if low <= code <= high:
            return WeatherCondition(code=code, description=description, icon=icon)
    return WeatherCondition(code=code, description=UNKNOWN_DESCRIPTION, icon=UNKNOWN_ICON)


def wind_compass(degrees: float) -> str:
    """Map a wind direction in degrees to an 8-point compass label."""
    return _COMPASS_POINTS[int((degrees % 360 + 22.5) // 45) % 8]


def uv_level(uv: float) -> str:
    if uv < 3:
        return "Low"
    if uv < 6:
        return "Moderate"
    if uv < 8:
        return "High"
    if uv < 11:
        return "Very High"
    return "Extreme"


def uv_advice(uv: float) -> str:
    """Sun-protection advice for a UV index, on the same bands as `uv_level`."""
    if uv < 3:
        return "No protection needed. Enjoy the sun safely."
    if uv < 6:
        return "Wear sunscreen SPF 30+. Hat recommended."
    if uv < 8:
        return "SPF 50+ sunscreen, hat and sunglasses. Seek shade 11am-3pm."
    if uv < 11:
        return "SPF 50+ and protective clothing essential. Minimize sun exposure."
    return "Extreme UV. Stay indoors if possible. Full protection required."
