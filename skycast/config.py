"""Application configuration pulled from environment variables via pydantic."""
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from utils.logging_utils import get_tagged_logger
logger = get_tagged_logger(__name__, tag="config")


DEFAULT_CONSENSUS_MODELS = {
    "ECMWF": "ecmwf_ifs025",
    "ICON": "icon_seamless",
    "Météo-France": "meteofrance_seamless",
    "MET Norway": "metno_seamless",
}


class Settings(BaseSettings):
    """Environment-driven configuration for the skycast weather service."""
    model_config = SettingsConfigDict(env_prefix="SKYCAST_", extra="ignore")

    geocoding_url: str = "https://geocoding-api.open-meteo.com/v1/search"
    forecast_url: str = "https://api.open-meteo.com/v1/forecast"
    reverse_geocoding_url: str = "https://nominatim.openstreetmap.org/reverse"
    user_agent: str = "SkycastWeather/1.0"

    request_timeout_seconds: float = 30.0
    consensus_timeout_seconds: float = 6.0
    retry_backoff_seconds: float = 1.0
    error_body_limit: int = 512

    dns_servers: list[str] = Field(default_factory=lambda: ["8.8.8.8", "1.1.1.1", "8.8.4.4"])
    dns_timeout_seconds: float = 5.0

    forecast_days: int = 5
    hourly_points: int = 24
    max_place_chars: int = 100
    consensus_models: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_CONSENSUS_MODELS))
    consensus_job_workers: int = Field(default=8, ge=1)

    cache_ttl_seconds: int = 600
    cache_max_entries: int = 200
    cache_sweep_interval_seconds: int = 300

    log_level: str = "INFO"

    @field_validator("geocoding_url", "forecast_url", "reverse_geocoding_url", mode="after")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize base URLs to avoid double slashes."""
        return str(v).rstrip("/")


settings = Settings()


if __name__ == "__main__":
    logger.logger.setLevel("DEBUG")
    logger.debug(f"Loaded settings: {settings.model_dump_json(indent=4)}")
