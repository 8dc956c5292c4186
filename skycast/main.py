"""FastAPI application setup for Skycast."""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from .api import router as api_router
from .config import settings
from .forecast_service import WeatherService
from .report_cache import InMemoryReportCache
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="skycast/main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Own the service and cache for the lifetime of the process."""
    service = WeatherService(settings)
    cache = InMemoryReportCache(
        ttl_seconds=settings.cache_ttl_seconds,
        max_entries=settings.cache_max_entries,
        sweep_interval_seconds=settings.cache_sweep_interval_seconds,
    )
    cache.start()
    app.state.weather_service = service
    app.state.report_cache = cache
    logger.info("Skycast started", extra={"models": list(settings.consensus_models)})
    try:
        yield
    finally:
        cache.stop()
        service.close()
        logger.info("Skycast stopped")


app = FastAPI(title="Skycast Weather", lifespan=lifespan)

# API routes
app.include_router(api_router, prefix="/v1")
