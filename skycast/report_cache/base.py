"""Shared protocol and types for report cache backends."""

from dataclasses import dataclass
from typing import Optional, Protocol

from skycast.forecast_service import Report
from skycast.units import UnitSystem


@dataclass(frozen=True)
class CacheEntry:
    """A cached report with its creation and absolute expiry times (cache clock seconds)."""
    report: Report
    created_at: float
    expires_at: float


def cache_key(place: str, units: UnitSystem | str) -> str:
    """Cache key for a (place, units) request: lowercase place joined with the unit label."""
    label = units.value if isinstance(units, UnitSystem) else str(units)
    return f"{place.strip().lower()}|{label}"


class ReportStore(Protocol):
    """Protocol for report cache backends."""

    def get(self, key: str) -> Optional[Report]:
        """Return the cached report, or None if missing or expired."""

    def set(self, key: str, report: Report) -> None:
        """Store (or overwrite) a report, refreshing its expiry."""

    def sweep(self) -> int:
        """Remove expired entries, returning how many were removed."""

    def clear(self) -> None:
        """Drop every entry."""

    def __len__(self) -> int:
        """Number of physically stored entries, expired or not."""
