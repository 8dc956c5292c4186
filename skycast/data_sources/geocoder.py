"""Forward (Open-Meteo) and reverse (Nominatim) geocoding."""
from __future__ import annotations

from dataclasses import dataclass

from skycast.config import Settings, settings as default_settings
from skycast.data_sources.gateway import UpstreamGateway
from skycast.errors import ErrorKind, GatewayError, WeatherServiceError
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="data_sources/geocoder")

# Most specific first.
REVERSE_NAME_FIELDS = ("city", "town", "village", "municipality", "county")


@dataclass(frozen=True)
class Location:
    """A resolved place, immutable once produced by the geocoder."""
    name: str
    latitude: float
    longitude: float
    country: str
    country_code: str
    timezone: str

    @classmethod
    def from_result(cls, result: dict) -> "Location":
        """Build a Location from one Open-Meteo geocoding result."""
        return cls(
            name=result.get("name") or "",
            latitude=float(result["latitude"]),
            longitude=float(result["longitude"]),
            country=result.get("country") or "",
            country_code=result.get("country_code") or "",
            timezone=result.get("timezone") or "UTC",
        )


class Geocoder:
    """Resolve place names to Locations and coordinates back to place names."""

    def __init__(self, gateway: UpstreamGateway, settings: Settings | None = None) -> None:
        self.gateway = gateway
        self.settings = settings or default_settings

    def geocode(self, place: str) -> Location:
        """Return the top-ranked match for `place`.

        Raises WeatherServiceError(NOT_FOUND) on an empty result set; gateway
        failures propagate with their own kind.
        """
        params = {"name": place, "count": 1, "language": "en", "format": "json"}
        data = self.gateway.fetch_json(self.settings.geocoding_url, params=params)
        results = data.get("results") or []
        if not results:
            raise WeatherServiceError(ErrorKind.NOT_FOUND, f"place {place!r} not found")
        try:
            location = Location.from_result(results[0])
        except (KeyError, TypeError, ValueError) as exc:
            raise WeatherServiceError(
                ErrorKind.UPSTREAM, f"geocoding result for {place!r} is missing coordinates"
            ) from exc
        logger.info(
            "Geocoded place",
            extra={"place": place, "resolved": location.name, "tz": location.timezone},
        )
        return location

    def reverse_geocode(self, latitude: float, longitude: float) -> str:
        """Return the most specific administrative name at the given coordinates.

        Nominatim's usage policy requires an identifying User-Agent, so the
        request carries custom headers; it still goes through the gateway's
        session, DNS policy and retry.
        """
        params = {
            "lat": f"{latitude:.6f}",
            "lon": f"{longitude:.6f}",
            "format": "json",
            "zoom": 10,
            "addressdetails": 1,
        }
        headers = {"User-Agent": self.settings.user_agent, "Accept-Language": "en"}
        try:
            data = self.gateway.fetch_json(self.settings.reverse_geocoding_url, params=params, headers=headers)
        except GatewayError as exc:
            logger.warning("Reverse geocode failed", extra={"error_kind": exc.kind.value})
            raise

        address = data.get("address") or {}
        for field in REVERSE_NAME_FIELDS:
            candidate = address.get(field)
            if candidate:
                return candidate

        display_name = data.get("display_name") or ""
        if display_name:
            return display_name.split(",", 1)[0]

        raise WeatherServiceError(
            ErrorKind.NO_MATCH,
            f"no place name found for coordinates {latitude:.4f},{longitude:.4f}",
        )
