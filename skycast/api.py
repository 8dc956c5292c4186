"""HTTP API for weather reports and reverse geocoding."""

import dataclasses
from typing import Dict, List, NoReturn, Optional

from fastapi import APIRouter, HTTPException, Query, Request, status
from pydantic import BaseModel

from .alerts import AlertLevel, evaluate_alerts
from .errors import ErrorKind, WeatherServiceError
from .forecast_service import Report, WeatherService
from .quotes import advice, quote_from_icon
from .report_cache import ReportStore, cache_key
from .units import UnitSystem
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="skycast/api")

router = APIRouter()

ERROR_STATUS: Dict[ErrorKind, int] = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.NO_MATCH: status.HTTP_404_NOT_FOUND,
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NETWORK: status.HTTP_504_GATEWAY_TIMEOUT,
    ErrorKind.UPSTREAM: status.HTTP_502_BAD_GATEWAY,
    ErrorKind.DECODE: status.HTTP_502_BAD_GATEWAY,
}

ERROR_GUIDANCE: Dict[ErrorKind, str] = {
    ErrorKind.NOT_FOUND: "No place matched that name. Check the spelling or try a nearby city.",
    ErrorKind.NO_MATCH: "No named place was found at those coordinates.",
    ErrorKind.VALIDATION: "Enter a non-empty place name of reasonable length.",
    ErrorKind.NETWORK: "Could not reach the weather service. Please check your connection and try again.",
    ErrorKind.UPSTREAM: "The weather service returned an error. Please try again later.",
    ErrorKind.DECODE: "The weather service sent a response we could not read. Please try again later.",
}


class ReverseResponse(BaseModel):
    """Display name for a coordinate pair."""
    place: str


class HealthResponse(BaseModel):
    status: str
    cached_reports: int


class CurrentConditionsResponse(BaseModel):
    """Current conditions plus their derived display labels."""
    time: str
    temperature: float
    feels_like: Optional[float] = None
    humidity: Optional[int] = None
    cloud_cover: Optional[int] = None
    wind_speed: Optional[float] = None
    wind_direction: Optional[int] = None
    pressure: Optional[float] = None
    dew_point: Optional[float] = None
    uv_index: Optional[float] = None
    weather_code: int
    description: str
    icon: str
    wind_compass: Optional[str] = None
    uv_level: Optional[str] = None
    uv_advice: Optional[str] = None


class DailyForecastResponse(BaseModel):
    date: str
    weather_code: int
    description: str
    icon: str
    temp_max: float
    temp_min: float
    wind_max: float
    precip_prob: int


class HourlyPointResponse(BaseModel):
    time: str
    temperature: float
    precip_prob: int
    weather_code: int
    description: str
    icon: str
    wind_speed: float


class SunPositionResponse(BaseModel):
    sunrise_time: str
    sunset_time: str
    current_time: str
    sun_position_pct: float
    is_day: bool
    daylight_hours: str
    moon_phase: float
    moon_phase_name: str


class ModelReadingResponse(BaseModel):
    model: str
    temperature: float
    humidity: int
    wind_speed: float
    pressure: float
    weather_code: int
    available: bool
    error: str


class ConsensusResponse(BaseModel):
    """Cross-model agreement; `models` keeps the configured order."""
    models: List[ModelReadingResponse] = []
    avail_count: int
    avg_temp: float
    avg_humidity: int
    avg_wind: float
    avg_pressure: float
    min_temp: float
    max_temp: float
    spread: float
    agreement: str
    agree_pct: int


class OutfitItemResponse(BaseModel):
    icon: str
    label: str
    note: str
    color: str


class OutfitResponse(BaseModel):
    headline: str
    temp_tier: str
    items: List[OutfitItemResponse] = []


class AlertResponse(BaseModel):
    level: AlertLevel
    icon: str
    title: str
    message: str


class WeatherResponse(BaseModel):
    """Full report for one place, with alerts and the one-liners shown beside it."""
    city_name: str
    country: str
    country_code: str
    latitude: float
    longitude: float
    timezone: str
    units: UnitSystem
    temp_unit: str
    wind_unit: str
    current: CurrentConditionsResponse
    forecast: List[DailyForecastResponse] = []
    hourly: List[HourlyPointResponse] = []
    sun: Optional[SunPositionResponse] = None
    consensus: Optional[ConsensusResponse] = None
    outfit: Optional[OutfitResponse] = None
    alerts: List[AlertResponse] = []
    quote: str
    advice: str


def _service(request: Request) -> WeatherService:
    return request.app.state.weather_service


def _cache(request: Request) -> ReportStore:
    return request.app.state.report_cache


def _raise_http(exc: WeatherServiceError) -> NoReturn:
    """Translate a service error into an HTTPException with a stable body."""
    code = ERROR_STATUS[exc.kind]
    if code >= 500:
        logger.error("Upstream failure", extra={"kind": exc.kind.value, "error": exc.message})
    else:
        logger.info("Request rejected", extra={"kind": exc.kind.value, "error": exc.message})
    raise HTTPException(
        status_code=code,
        detail={"kind": exc.kind.value, "message": exc.message, "guidance": ERROR_GUIDANCE[exc.kind]},
    ) from exc


def _report_body(report: Report) -> WeatherResponse:
    body = report.to_dict()
    body["alerts"] = [dataclasses.asdict(a) for a in evaluate_alerts(report)]
    cur = report.current
    body["quote"] = quote_from_icon(cur.icon)
    body["advice"] = advice(cur.feels_like if cur.feels_like is not None else cur.temperature, report.temp_unit)
    return WeatherResponse.model_validate(body)


@router.get("/weather", response_model=WeatherResponse)
def get_weather(
    request: Request,
    place: str = Query(default="", description="Free-text place name"),
    units: str = Query(default="metric", description="'metric' or 'imperial'"),
):
    """Return the full report for a place, served from the cache when fresh."""
    unit_system = UnitSystem.parse(units)
    service = _service(request)
    cache = _cache(request)

    try:
        cleaned = service.validate_place(place)
    except WeatherServiceError as exc:
        _raise_http(exc)

    key = cache_key(cleaned, unit_system)
    report = cache.get(key)
    if report is not None:
        logger.debug("Cache hit", extra={"cache_key": key})
        return _report_body(report)

    logger.info("Cache miss; building report", extra={"cache_key": key})
    try:
        report = service.get_weather(cleaned, unit_system)
    except WeatherServiceError as exc:
        _raise_http(exc)

    cache.set(key, report)
    return _report_body(report)


@router.get("/reverse", response_model=ReverseResponse)
def reverse(
    request: Request,
    lat: float = Query(..., ge=-90, le=90),
    lon: float = Query(..., ge=-180, le=180),
):
    """Return a human-readable locality name for coordinates."""
    try:
        name = _service(request).reverse_geocode(lat, lon)
    except WeatherServiceError as exc:
        _raise_http(exc)
    return ReverseResponse(place=name)


@router.get("/health", response_model=HealthResponse)
def health(request: Request):
    return HealthResponse(status="ok", cached_reports=len(_cache(request)))
