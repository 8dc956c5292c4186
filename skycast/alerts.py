"""Rule table turning a finished report into severity-ordered weather alerts."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, List

from skycast.units import to_celsius, to_kmh

if TYPE_CHECKING:
    from skycast.forecast_service import Report


class AlertLevel(str, Enum):
    DANGER = "danger"
    WARNING = "warning"
    INFO = "info"


@dataclass(frozen=True)
class Alert:
    level: AlertLevel
    icon: str
    title: str
    message: str


_THUNDER_ICONS = {"wi-thunderstorm", "wi-storm-showers"}


def evaluate_alerts(report: "Report") -> List[Alert]:
    """Return triggered alerts, danger first, then warning, then info."""
    cur = report.current
    temp_c = to_celsius(cur.temperature, report.temp_unit)
    feels = cur.feels_like if cur.feels_like is not None else cur.temperature
    feels_c = to_celsius(feels, report.temp_unit)
    wind_kmh = to_kmh(cur.wind_speed or 0.0, report.wind_unit)
    humidity = cur.humidity or 0

    alerts: List[Alert] = []

    # danger
    if cur.icon in _THUNDER_ICONS:
        alerts.append(Alert(AlertLevel.DANGER, "wi-thunderstorm", "THUNDERSTORM ACTIVE",
                            "Lightning risk. Stay indoors. Unplug electronics. Avoid open areas."))
    if feels_c <= -15:
        alerts.append(Alert(AlertLevel.DANGER, "wi-snowflake-cold", "EXTREME COLD",
                            "Dangerously cold. Risk of frostbite in under 30 minutes. Limit time outdoors."))
    if feels_c >= 40:
        alerts.append(Alert(AlertLevel.DANGER, "wi-hot", "EXTREME HEAT",
                            "Heat index critical. Risk of heat stroke. Stay in the shade and hydrate constantly."))
    if wind_kmh >= 118:
        alerts.append(Alert(AlertLevel.DANGER, "wi-strong-wind", "HURRICANE-FORCE WIND",
                            "Extremely dangerous winds. Take shelter immediately. Do not drive."))

    # warning
    if cur.icon == "wi-rain-wind":
        alerts.append(Alert(AlertLevel.WARNING, "wi-rain-wind", "HEAVY RAIN",
                            "Reduced visibility and possible flash flooding. Drive carefully."))
    if cur.icon == "wi-snow-wind":
        alerts.append(Alert(AlertLevel.WARNING, "wi-snow-wind", "HEAVY SNOW",
                            "Roads may be impassable. Allow extra travel time and check road conditions."))
    if -15 < temp_c < 0:
        alerts.append(Alert(AlertLevel.WARNING, "wi-thermometer-exterior", "FREEZING CONDITIONS",
                            "Black ice possible on roads. Wrap up warm and watch your step."))
    if 35 <= feels_c < 40:
        alerts.append(Alert(AlertLevel.WARNING, "wi-day-sunny", "HEATWAVE WARNING",
                            "Dangerously warm. Drink water, avoid peak sun hours (11am-3pm), "
                            "check on vulnerable people."))
    if 62 <= wind_kmh < 118:
        alerts.append(Alert(AlertLevel.WARNING, "wi-strong-wind", "STRONG WIND WARNING",
                            "Gale-force winds. Secure loose outdoor objects. Drive with care."))

    # info
    if cur.icon == "wi-fog":
        alerts.append(Alert(AlertLevel.INFO, "wi-fog", "FOG ADVISORY",
                            "Low visibility on roads. Use fog lights and reduce speed."))
    if humidity >= 85:
        alerts.append(Alert(AlertLevel.INFO, "wi-humidity", "HIGH HUMIDITY",
                            "Air feels heavy and muggy. Stay hydrated and take it easy outdoors."))
    if 39 <= wind_kmh < 62:
        alerts.append(Alert(AlertLevel.INFO, "wi-windy", "WINDY CONDITIONS",
                            "Fresh to strong breeze. Hold onto your hat, literally."))

    return alerts
