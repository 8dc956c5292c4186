"""Helpers for fetching and decoding Open-Meteo forecast payloads."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from skycast.config import Settings, settings as default_settings
from skycast.data_sources.gateway import UpstreamGateway
from skycast.data_sources.geocoder import Location
from skycast.errors import ErrorKind, GatewayError
from skycast.units import UnitSystem
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="data_sources/open_meteo_client")

CURRENT_VARS = [
    "temperature_2m",
    "apparent_temperature",
    "relative_humidity_2m",
    "weather_code",
    "cloud_cover",
    "wind_speed_10m",
    "wind_direction_10m",
    "pressure_msl",
    "dew_point_2m",
    "uv_index",
]

HOURLY_VARS = [
    "temperature_2m",
    "precipitation_probability",
    "weather_code",
    "wind_speed_10m",
]

DAILY_VARS = [
    "weather_code",
    "temperature_2m_max",
    "temperature_2m_min",
    "wind_speed_10m_max",
    "precipitation_probability_max",
    "sunrise",
    "sunset",
]

MODEL_CURRENT_VARS = [
    "temperature_2m",
    "relative_humidity_2m",
    "wind_speed_10m",
    "pressure_msl",
    "weather_code",
]


@dataclass
class CurrentBlock:
    """Decoded `current` block; optional numerics are None when upstream sent null."""
    time: str
    temperature: float
    apparent_temperature: Optional[float]
    relative_humidity: Optional[float]
    weather_code: Optional[int]
    cloud_cover: Optional[float]
    wind_speed: Optional[float]
    wind_direction: Optional[float]
    pressure: Optional[float]
    dew_point: Optional[float]
    uv_index: Optional[float]


@dataclass
class HourlyRow:
    """One hour of the `hourly` block."""
    time: str
    temperature: Optional[float]
    precipitation_prob: Optional[float]
    weather_code: Optional[int]
    wind_speed: Optional[float]


@dataclass
class DailyRow:
    """One day of the `daily` block."""
    date: str
    weather_code: Optional[int]
    temperature_max: Optional[float]
    temperature_min: Optional[float]
    wind_speed_max: Optional[float]
    precipitation_prob_max: Optional[float]
    sunrise: Optional[str]
    sunset: Optional[str]


@dataclass
class ForecastPayload:
    """Primary-model forecast: current conditions plus zipped hourly/daily rows."""
    current: CurrentBlock
    hourly: List[HourlyRow] = field(default_factory=list)
    daily: List[DailyRow] = field(default_factory=list)


def _zip_columns(block: Optional[Dict[str, Any]], columns: List[str]) -> List[Dict[str, Any]]:
    """Turn a block of parallel arrays into per-index records keyed by column.

    The `time` array defines the row count; any column shorter than it (or
    missing altogether) reads as None beyond its own length.
    """
    if not block:
        return []
    times = block.get("time") or []
    rows: List[Dict[str, Any]] = []
    for i, t in enumerate(times):
        row: Dict[str, Any] = {"time": t}
        for col in columns:
            values = block.get(col) or []
            row[col] = values[i] if i < len(values) else None
        rows.append(row)
    return rows


def _as_int(value: Any) -> Optional[int]:
    return None if value is None else int(value)


def _as_float(value: Any) -> Optional[float]:
    return None if value is None else float(value)


def decode_current(current: Optional[Dict[str, Any]], *, url: str) -> CurrentBlock:
    """Decode the `current` block; `time` and temperature are mandatory."""
    if not current or current.get("time") is None or current.get("temperature_2m") is None:
        raise GatewayError(ErrorKind.DECODE, "decode failed: current block is incomplete", url=url)
    try:
        return CurrentBlock(
            time=str(current["time"]),
            temperature=float(current["temperature_2m"]),
            apparent_temperature=_as_float(current.get("apparent_temperature")),
            relative_humidity=_as_float(current.get("relative_humidity_2m")),
            weather_code=_as_int(current.get("weather_code")),
            cloud_cover=_as_float(current.get("cloud_cover")),
            wind_speed=_as_float(current.get("wind_speed_10m")),
            wind_direction=_as_float(current.get("wind_direction_10m")),
            pressure=_as_float(current.get("pressure_msl")),
            dew_point=_as_float(current.get("dew_point_2m")),
            uv_index=_as_float(current.get("uv_index")),
        )
    except (TypeError, ValueError) as exc:
        raise GatewayError(ErrorKind.DECODE, f"decode failed: {exc}", url=url) from exc


def decode_hourly(block: Optional[Dict[str, Any]]) -> List[HourlyRow]:
    return [
        HourlyRow(
            time=row["time"],
            temperature=_as_float(row["temperature_2m"]),
            precipitation_prob=_as_float(row["precipitation_probability"]),
            weather_code=_as_int(row["weather_code"]),
            wind_speed=_as_float(row["wind_speed_10m"]),
        )
        for row in _zip_columns(block, HOURLY_VARS)
    ]


def decode_daily(block: Optional[Dict[str, Any]]) -> List[DailyRow]:
    return [
        DailyRow(
            date=row["time"],
            weather_code=_as_int(row["weather_code"]),
            temperature_max=_as_float(row["temperature_2m_max"]),
            temperature_min=_as_float(row["temperature_2m_min"]),
            wind_speed_max=_as_float(row["wind_speed_10m_max"]),
            precipitation_prob_max=_as_float(row["precipitation_probability_max"]),
            sunrise=row["sunrise"],
            sunset=row["sunset"],
        )
        for row in _zip_columns(block, DAILY_VARS)
    ]


def build_forecast_params(location: Location, units: UnitSystem, *, forecast_days: int) -> Dict[str, Any]:
    """Query parameters for the combined current + hourly + daily request."""
    return {
        "latitude": f"{location.latitude:.4f}",
        "longitude": f"{location.longitude:.4f}",
        "current": ",".join(CURRENT_VARS),
        "hourly": ",".join(HOURLY_VARS),
        "daily": ",".join(DAILY_VARS),
        "temperature_unit": units.api_temperature_unit,
        "wind_speed_unit": units.api_wind_unit,
        "timezone": location.timezone,
        "forecast_days": forecast_days,
    }


def fetch_forecast(
    gateway: UpstreamGateway,
    location: Location,
    units: UnitSystem,
    settings: Settings | None = None,
) -> ForecastPayload:
    """Fetch and decode the primary model's forecast for `location`."""
    settings = settings or default_settings
    url = settings.forecast_url
    params = build_forecast_params(location, units, forecast_days=settings.forecast_days)

    logger.info(
        "Fetching forecast",
        extra={
            "latitude": location.latitude,
            "longitude": location.longitude,
            "tz": location.timezone,
            "units": units.value,
        },
    )
    data = gateway.fetch_json(url, params=params)

    try:
        payload = ForecastPayload(
            current=decode_current(data.get("current"), url=url),
            hourly=decode_hourly(data.get("hourly")),
            daily=decode_daily(data.get("daily")),
        )
    except (TypeError, ValueError) as exc:
        raise GatewayError(ErrorKind.DECODE, f"decode failed: {exc}", url=url) from exc

    logger.debug(
        "Decoded forecast",
        extra={"hourly_rows": len(payload.hourly), "daily_rows": len(payload.daily)},
    )
    return payload


def fetch_model_current(
    gateway: UpstreamGateway,
    latitude: float,
    longitude: float,
    *,
    timezone: str,
    model: str,
    temperature_unit: str,
    wind_speed_unit: str,
    settings: Settings | None = None,
) -> Dict[str, Any]:
    """Fetch the raw `current` block for one named forecast model."""
    settings = settings or default_settings
    params = {
        "latitude": f"{latitude:.4f}",
        "longitude": f"{longitude:.4f}",
        "current": ",".join(MODEL_CURRENT_VARS),
        "temperature_unit": temperature_unit,
        "wind_speed_unit": wind_speed_unit,
        "timezone": timezone,
        "models": model,
    }
    data = gateway.fetch_json(settings.forecast_url, params=params)
    current = data.get("current")
    return current if isinstance(current, dict) else {}
