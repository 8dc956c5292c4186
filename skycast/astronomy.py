"""Sun position within the daylight window and lunar phase.

Everything here is a closed-form function of its inputs. Unknown timezone
names fall back to UTC; the only failure is a malformed timestamp string,
which surfaces as ValueError from `parse_local`.
"""
from __future__ import annotations

import datetime as dt
import math
from dataclasses import dataclass
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="astronomy")

LOCAL_TIME_LAYOUT = "%Y-%m-%dT%H:%M"
SYNODIC_MONTH_DAYS = 29.530589
REFERENCE_NEW_MOON = dt.datetime(2000, 1, 6, 18, 14, tzinfo=dt.timezone.utc)

# Upper bound (exclusive) of each phase bucket; New Moon wraps around 0/1.
_PHASE_NAMES = (
    (0.034, "New Moon"),
    (0.216, "Waxing Crescent"),
    (0.284, "First Quarter"),
    (0.466, "Waxing Gibbous"),
    (0.534, "Full Moon"),
    (0.716, "Waning Gibbous"),
    (0.784, "Last Quarter"),
    (0.966, "Waning Crescent"),
)


@dataclass(frozen=True)
class SunPosition:
    """Daylight progress and moon phase for one report."""
    sunrise_time: str
    sunset_time: str
    current_time: str
    sun_position_pct: float  # 0-100, clamped
    is_day: bool
    daylight_hours: str
    moon_phase: float  # [0, 1), 0 = new moon
    moon_phase_name: str


def resolve_timezone(tz_name: str | None) -> dt.tzinfo:
    """Return the named zone, or UTC when the name is unknown."""
    if not tz_name:
        return dt.timezone.utc
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone; using UTC", extra={"tz_name": tz_name})
        return dt.timezone.utc


def parse_local(value: str, tz: dt.tzinfo) -> dt.datetime:
    """Interpret an upstream local timestamp (YYYY-MM-DDTHH:MM) as wall time in `tz`.

    Anything that is not a timestamp string, including null and epoch numbers,
    raises ValueError.
    """
    if not isinstance(value, str):
        raise ValueError(f"expected a local timestamp string, got {type(value).__name__}")
    naive = dt.datetime.fromisoformat(value)
    if naive.tzinfo is not None:
        return naive.astimezone(tz)
    return naive.replace(tzinfo=tz)


def compute_lunar_phase(instant: dt.datetime) -> float:
    """Return the lunar phase fraction in [0, 1) for `instant` (naive means UTC)."""
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=dt.timezone.utc)
    days = (instant - REFERENCE_NEW_MOON).total_seconds() / 86400.0
    phase = math.fmod(days, SYNODIC_MONTH_DAYS) / SYNODIC_MONTH_DAYS
    if phase < 0:
        phase += 1.0
    if phase >= 1.0:
        phase = 0.0
    return phase


def lunar_phase_name(phase: float) -> str:
    if phase >= _PHASE_NAMES[-1][0]:
        return "New Moon"
    for upper, name in _PHASE_NAMES:
        if phase < upper:
            return name
    return "New Moon"


def _elapsed_minutes(start: dt.datetime, end: dt.datetime) -> float:
    """Real elapsed minutes between two aware datetimes, across DST changes."""
    return (end.astimezone(dt.timezone.utc) - start.astimezone(dt.timezone.utc)).total_seconds() / 60.0


def _as_local(value: dt.datetime | str, tz: dt.tzinfo) -> dt.datetime:
    if isinstance(value, dt.datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=tz)
    return parse_local(value, tz)


def compute_sun_position(
    now: dt.datetime | str,
    sunrise: dt.datetime | str,
    sunset: dt.datetime | str,
    timezone: str | None,
) -> SunPosition:
    """Locate `now` within the [sunrise, sunset) window.

    String arguments are parsed as local wall time in `timezone` (UTC when the
    zone is unknown). The position percent is clamped to [0, 100] and is 0
    when the daylight window is empty or negative.
    """
    tz = resolve_timezone(timezone)
    now_dt = _as_local(now, tz)
    sunrise_dt = _as_local(sunrise, tz)
    sunset_dt = _as_local(sunset, tz)

    daylight_mins = _elapsed_minutes(sunrise_dt, sunset_dt)
    whole_mins = int(daylight_mins)
    hours, minutes = divmod(abs(whole_mins), 60)
    if whole_mins < 0:
        hours, minutes = -hours, -minutes

    is_day = sunrise_dt <= now_dt < sunset_dt

    position_pct = 0.0
    if daylight_mins > 0:
        position_pct = _elapsed_minutes(sunrise_dt, now_dt) / daylight_mins * 100.0
        position_pct = max(0.0, min(100.0, position_pct))

    phase = compute_lunar_phase(now_dt)
    return SunPosition(
        sunrise_time=sunrise_dt.astimezone(tz).strftime("%H:%M"),
        sunset_time=sunset_dt.astimezone(tz).strftime("%H:%M"),
        current_time=now_dt.astimezone(tz).strftime("%H:%M"),
        sun_position_pct=position_pct,
        is_day=is_day,
        daylight_hours=f"{hours}h {minutes}m",
        moon_phase=phase,
        moon_phase_name=lunar_phase_name(phase),
    )
