"""Multi-model consensus: fetch current conditions from several forecast models
concurrently and measure how closely they agree.

A model that fails (network, HTTP status, undecodable or incomplete payload)
is recorded as unavailable with a diagnostic string; it never fails the
consensus as a whole. With zero available models the summary is all zeros and
still lists every configured model.
"""
from __future__ import annotations

import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Iterable, Optional, Tuple

from skycast.config import Settings, settings as default_settings
from skycast.data_sources.gateway import UpstreamGateway
from skycast.data_sources.open_meteo_client import fetch_model_current
from skycast.errors import WeatherServiceError
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="consensus")

# Each full degree of cross-model spread costs this many agreement points.
AGREEMENT_PENALTY_PER_DEGREE = 12
HIGH_AGREEMENT_PCT = 80
MODERATE_AGREEMENT_PCT = 50


@dataclass(frozen=True)
class ModelReading:
    """Current conditions reported by one forecast model."""
    model: str
    temperature: float = 0.0
    humidity: int = 0
    wind_speed: float = 0.0
    pressure: float = 0.0
    weather_code: int = 0
    available: bool = False
    error: str = ""


@dataclass(frozen=True)
class ConsensusSummary:
    """Agreement statistics over the available model readings."""
    models: Tuple[ModelReading, ...] = field(default_factory=tuple)
    avail_count: int = 0
    avg_temp: float = 0.0
    avg_humidity: int = 0
    avg_wind: float = 0.0
    avg_pressure: float = 0.0
    min_temp: float = 0.0
    max_temp: float = 0.0
    spread: float = 0.0
    agreement: str = "Low"
    agree_pct: int = 0


def round1(value: float) -> float:
    """Round to one decimal, halves away from zero."""
    return math.copysign(math.floor(abs(value) * 10 + 0.5), value) / 10


def agreement_label(pct: int) -> str:
    if pct >= HIGH_AGREEMENT_PCT:
        return "High"
    if pct >= MODERATE_AGREEMENT_PCT:
        return "Moderate"
    return "Low"


def summarize_readings(readings: Iterable[ModelReading]) -> ConsensusSummary:
    """Compute averages, spread and agreement over the available readings."""
    readings = tuple(readings)
    available = [r for r in readings if r.available]
    if not available:
        return ConsensusSummary(models=readings)

    count = len(available)
    temps = [r.temperature for r in available]
    min_temp = round1(min(temps))
    max_temp = round1(max(temps))
    spread = round1(max_temp - min_temp)
    agree_pct = max(0, min(100, 100 - int(spread * AGREEMENT_PENALTY_PER_DEGREE)))

    return ConsensusSummary(
        models=readings,
        avail_count=count,
        avg_temp=round1(sum(temps) / count),
        avg_humidity=sum(r.humidity for r in available) // count,
        avg_wind=round1(sum(r.wind_speed for r in available) / count),
        avg_pressure=round1(sum(r.pressure for r in available) / count),
        min_temp=min_temp,
        max_temp=max_temp,
        spread=spread,
        agreement=agreement_label(agree_pct),
        agree_pct=agree_pct,
    )


class ConsensusEngine:
    """Fan out one request per configured model and join on all of them."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        gateway: Optional[UpstreamGateway] = None,
    ) -> None:
        self.settings = settings or default_settings
        # Separate gateway so a slow model is bounded by the shorter timeout.
        self.gateway = gateway or UpstreamGateway(
            self.settings, timeout=self.settings.consensus_timeout_seconds
        )
        self.models = dict(self.settings.consensus_models)

    def fetch_model(
        self,
        name: str,
        model_id: str,
        latitude: float,
        longitude: float,
        timezone: str,
        temperature_unit: str,
        wind_speed_unit: str,
    ) -> ModelReading:
        """Fetch one model's current conditions; failures become an unavailable reading."""
        try:
            current = fetch_model_current(
                self.gateway,
                latitude,
                longitude,
                timezone=timezone,
                model=model_id,
                temperature_unit=temperature_unit,
                wind_speed_unit=wind_speed_unit,
                settings=self.settings,
            )
        except WeatherServiceError as exc:
            logger.warning(
                "Model fetch failed",
                extra={"model": name, "error_kind": exc.kind.value},
            )
            return ModelReading(model=name, error=str(exc))

        temp = current.get("temperature_2m")
        humidity = current.get("relative_humidity_2m")
        if temp is None or humidity is None:
            return ModelReading(model=name, error="incomplete data")

        try:
            return ModelReading(
                model=name,
                temperature=float(temp),
                humidity=int(humidity),
                wind_speed=float(current.get("wind_speed_10m") or 0.0),
                pressure=float(current.get("pressure_msl") or 0.0),
                weather_code=int(current.get("weather_code") or 0),
                available=True,
            )
        except (TypeError, ValueError) as exc:
            return ModelReading(model=name, error=f"invalid data: {exc}")

    def fetch_consensus(
        self,
        latitude: float,
        longitude: float,
        timezone: str,
        temperature_unit: str,
        wind_speed_unit: str,
    ) -> ConsensusSummary:
        """Fetch every configured model concurrently and summarize agreement.

        Waits for all model calls to finish; each is bounded only by the
        gateway timeout and its single retry.
        """
        if not self.models:
            return ConsensusSummary()

        with ThreadPoolExecutor(max_workers=len(self.models), thread_name_prefix="consensus") as executor:
            futures = [
                executor.submit(
                    self.fetch_model,
                    name,
                    model_id,
                    latitude,
                    longitude,
                    timezone,
                    temperature_unit,
                    wind_speed_unit,
                )
                for name, model_id in self.models.items()
            ]
            readings = [f.result() for f in futures]

        summary = summarize_readings(readings)
        logger.info(
            "Computed model consensus",
            extra={
                "available": summary.avail_count,
                "configured": len(readings),
                "spread": summary.spread,
                "agreement": summary.agreement,
            },
        )
        return summary

    def close(self) -> None:
        self.gateway.close()
