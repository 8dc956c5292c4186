"""Assemble a full weather report for a place name.

Geocoding and the primary forecast fetch are fatal when they fail. The rest
(sun position, hourly slice, model consensus) degrades to absent or empty
fields instead of aborting the report.
"""
from __future__ import annotations

import dataclasses
import datetime as dt
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from skycast.astronomy import SunPosition, compute_sun_position, parse_local, resolve_timezone
from skycast.config import Settings, settings as default_settings
from skycast.consensus import ConsensusEngine, ConsensusSummary
from skycast.data_sources.gateway import UpstreamGateway
from skycast.data_sources.geocoder import Geocoder, Location
from skycast.data_sources.open_meteo_client import (
    CurrentBlock,
    DailyRow,
    ForecastPayload,
    HourlyRow,
    fetch_forecast,
)
from skycast.errors import ErrorKind, WeatherServiceError
from skycast.outfit import OutfitAdvice, build_outfit
from skycast.units import UnitSystem
from skycast.wmo import describe, uv_advice, uv_level, wind_compass
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="forecast_service")


@dataclass(frozen=True)
class CurrentConditions:
    """Current conditions from the primary model; None means upstream sent null."""
    time: str
    temperature: float
    feels_like: Optional[float]
    humidity: Optional[int]
    cloud_cover: Optional[int]
    wind_speed: Optional[float]
    wind_direction: Optional[int]
    pressure: Optional[float]
    dew_point: Optional[float]
    uv_index: Optional[float]
    weather_code: int
    description: str
    icon: str

    @property
    def wind_compass(self) -> Optional[str]:
        return wind_compass(self.wind_direction) if self.wind_direction is not None else None

    @property
    def uv_level(self) -> Optional[str]:
        return uv_level(self.uv_index) if self.uv_index is not None else None

    @property
    def uv_advice(self) -> Optional[str]:
        return uv_advice(self.uv_index) if self.uv_index is not None else None


@dataclass(frozen=True)
class DailyForecastEntry:
    """One calendar day of the forecast."""
    date: str
    weather_code: int
    description: str
    icon: str
    temp_max: float
    temp_min: float
    wind_max: float
    precip_prob: int


@dataclass(frozen=True)
class HourlyPoint:
    """One hour of the forecast, labelled with local HH:MM."""
    time: str
    temperature: float
    precip_prob: int
    weather_code: int
    description: str
    icon: str
    wind_speed: float


@dataclass(frozen=True)
class Report:
    """Aggregate weather report for one (place, units) request. Never mutated."""
    city_name: str
    country: str
    country_code: str
    latitude: float
    longitude: float
    timezone: str
    units: UnitSystem
    temp_unit: str
    wind_unit: str
    current: CurrentConditions
    forecast: Tuple[DailyForecastEntry, ...] = field(default_factory=tuple)
    hourly: Tuple[HourlyPoint, ...] = field(default_factory=tuple)
    sun: Optional[SunPosition] = None
    consensus: Optional[ConsensusSummary] = None
    outfit: Optional[OutfitAdvice] = None

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready representation, including derived display fields."""
        data = dataclasses.asdict(self)
        data["units"] = self.units.value
        data["current"]["wind_compass"] = self.current.wind_compass
        data["current"]["uv_level"] = self.current.uv_level
        data["current"]["uv_advice"] = self.current.uv_advice
        return data


def _to_int(value: Optional[float]) -> Optional[int]:
    return None if value is None else int(round(value))


def build_current(block: CurrentBlock) -> CurrentConditions:
    condition = describe(block.weather_code)
    return CurrentConditions(
        time=block.time,
        temperature=block.temperature,
        feels_like=block.apparent_temperature,
        humidity=_to_int(block.relative_humidity),
        cloud_cover=_to_int(block.cloud_cover),
        wind_speed=block.wind_speed,
        wind_direction=_to_int(block.wind_direction),
        pressure=block.pressure,
        dew_point=block.dew_point,
        uv_index=block.uv_index,
        weather_code=condition.code,
        description=condition.description,
        icon=condition.icon,
    )


def build_daily(rows: List[DailyRow], limit: int) -> Tuple[DailyForecastEntry, ...]:
    """Build the chronological day list.

    Stops at the first day that lacks a weather code or a max temperature;
    other missing values read as 0.
    """
    days: List[DailyForecastEntry] = []
    for row in rows[:limit]:
        if row.weather_code is None or row.temperature_max is None:
            logger.debug("Daily block shorter than expected; truncating", extra={"day_count": len(days)})
            break
        condition = describe(row.weather_code)
        days.append(
            DailyForecastEntry(
                date=row.date,
                weather_code=condition.code,
                description=condition.description,
                icon=condition.icon,
                temp_max=row.temperature_max,
                temp_min=row.temperature_min if row.temperature_min is not None else 0.0,
                wind_max=row.wind_speed_max if row.wind_speed_max is not None else 0.0,
                precip_prob=_to_int(row.precipitation_prob_max) or 0,
            )
        )
    return tuple(days)


def build_hourly(rows: List[HourlyRow], now: str, timezone: str, limit: int) -> Tuple[HourlyPoint, ...]:
    """Return up to `limit` hours at or after `now`, strictly increasing in time.

    Rows with unparseable timestamps are skipped; an unparseable `now` yields
    an empty slice.
    """
    tz = resolve_timezone(timezone)
    try:
        now_dt = parse_local(now, tz)
    except (TypeError, ValueError):
        logger.warning("Unparseable current time; hourly slice omitted", extra={"current_time": now})
        return ()

    points: List[HourlyPoint] = []
    last: Optional[dt.datetime] = None
    for row in rows:
        try:
            t = parse_local(row.time, tz)
        except (TypeError, ValueError):
            continue
        if t < now_dt or (last is not None and t <= last):
            continue
        if len(points) >= limit:
            break
        condition = describe(row.weather_code)
        points.append(
            HourlyPoint(
                time=t.strftime("%H:%M"),
                temperature=row.temperature if row.temperature is not None else 0.0,
                precip_prob=_to_int(row.precipitation_prob) or 0,
                weather_code=condition.code,
                description=condition.description,
                icon=condition.icon,
                wind_speed=row.wind_speed if row.wind_speed is not None else 0.0,
            )
        )
        last = t
    return tuple(points)


def build_sun(payload: ForecastPayload, timezone: str) -> Optional[SunPosition]:
    """Sun position for today, or None when sunrise/sunset are missing or malformed."""
    if not payload.daily:
        return None
    today = payload.daily[0]
    if not today.sunrise or not today.sunset:
        return None
    try:
        return compute_sun_position(payload.current.time, today.sunrise, today.sunset, timezone)
    except (TypeError, ValueError) as exc:
        logger.warning("Could not compute sun position: %s", exc)
        return None


class WeatherService:
    """Geocode -> primary forecast -> derived fields + concurrent consensus."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        gateway: Optional[UpstreamGateway] = None,
        geocoder: Optional[Geocoder] = None,
        consensus: Optional[ConsensusEngine] = None,
    ) -> None:
        self.settings = settings or default_settings
        self.gateway = gateway or UpstreamGateway(self.settings)
        self.geocoder = geocoder or Geocoder(self.gateway, self.settings)
        self.consensus = consensus or ConsensusEngine(self.settings)
        self._executor = ThreadPoolExecutor(
            max_workers=self.settings.consensus_job_workers, thread_name_prefix="consensus-job"
        )

    def validate_place(self, place: str | None) -> str:
        """Strip and length-check a caller-supplied place name."""
        cleaned = (place or "").strip()
        if not cleaned:
            raise WeatherServiceError(ErrorKind.VALIDATION, "place name is required")
        if len(cleaned) > self.settings.max_place_chars:
            raise WeatherServiceError(
                ErrorKind.VALIDATION,
                f"place name is too long (max {self.settings.max_place_chars} characters)",
            )
        return cleaned

    def _fetch_consensus(self, location: Location, units: UnitSystem) -> ConsensusSummary:
        return self.consensus.fetch_consensus(
            location.latitude,
            location.longitude,
            location.timezone,
            units.api_temperature_unit,
            units.api_wind_unit,
        )

    @staticmethod
    def _join_consensus(future: Future) -> Optional[ConsensusSummary]:
        try:
            return future.result()
        except Exception as exc:
            logger.warning("Consensus unavailable: %s", exc, exc_info=True)
            return None

    def get_weather(self, place: str, units: UnitSystem | str = UnitSystem.METRIC) -> Report:
        """Build the report for `place`; raises WeatherServiceError on fatal failures."""
        units = units if isinstance(units, UnitSystem) else UnitSystem.parse(units)
        place = self.validate_place(place)

        location = self.geocoder.geocode(place)
        payload = fetch_forecast(self.gateway, location, units, self.settings)

        consensus_future = self._executor.submit(self._fetch_consensus, location, units)

        current = build_current(payload.current)
        daily = build_daily(payload.daily, self.settings.forecast_days)
        sun = build_sun(payload, location.timezone)
        hourly = build_hourly(payload.hourly, payload.current.time, location.timezone, self.settings.hourly_points)

        report = Report(
            city_name=location.name,
            country=location.country,
            country_code=location.country_code,
            latitude=location.latitude,
            longitude=location.longitude,
            timezone=location.timezone,
            units=units,
            temp_unit=units.temp_symbol,
            wind_unit=units.wind_label,
            current=current,
            forecast=daily,
            hourly=hourly,
            sun=sun,
            consensus=self._join_consensus(consensus_future),
        )
        report = dataclasses.replace(report, outfit=build_outfit(report))

        logger.info(
            "Built weather report",
            extra={
                "place": place,
                "days": len(report.forecast),
                "hours": len(report.hourly),
                "consensus_models": report.consensus.avail_count if report.consensus else 0,
            },
        )
        return report

    def reverse_geocode(self, latitude: float, longitude: float) -> str:
        return self.geocoder.reverse_geocode(latitude, longitude)

    def close(self) -> None:
        """Drain in-flight consensus jobs, then release the HTTP sessions they use."""
        self._executor.shutdown(wait=True, cancel_futures=True)
        self.consensus.close()
        self.gateway.close()
