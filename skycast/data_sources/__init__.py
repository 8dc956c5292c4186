"""Upstream data sources: HTTP gateway, geocoding and Open-Meteo forecasts."""

from .gateway import UpstreamGateway, build_session
from .geocoder import Geocoder, Location
from .open_meteo_client import ForecastPayload, fetch_forecast, fetch_model_current
from .resolver import ResilientDNSAdapter, ResilientResolver

__all__ = [
    "UpstreamGateway",
    "build_session",
    "Geocoder",
    "Location",
    "ForecastPayload",
    "fetch_forecast",
    "fetch_model_current",
    "ResilientDNSAdapter",
    "ResilientResolver",
]
