"""Outfit recommendation derived from a finished report."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Tuple

from skycast.units import MPH_TO_KMH, to_celsius, to_kmh

if TYPE_CHECKING:
    from skycast.forecast_service import Report

MAX_ITEMS = 6

HEADLINES = {
    "freezing": "Bundle up, it's freezing out there",
    "cold": "Dress warm, it's a cold one",
    "cool": "A jacket will do nicely today",
    "mild": "Perfect weather, dress easy",
    "warm": "Light layers, you'll be comfortable",
    "hot": "Stay cool, it's scorching",
}


@dataclass(frozen=True)
class OutfitItem:
    icon: str
    label: str
    note: str
    color: str


@dataclass(frozen=True)
class OutfitAdvice:
    """What to wear: a headline, a temperature tier and at most six items."""
    headline: str
    temp_tier: str
    items: Tuple[OutfitItem, ...] = field(default_factory=tuple)


def temp_tier(feels_c: float) -> str:
    if feels_c < 0:
        return "freezing"
    if feels_c < 8:
        return "cold"
    if feels_c < 15:
        return "cool"
    if feels_c < 22:
        return "mild"
    if feels_c < 29:
        return "warm"
    return "hot"


def _wind_text(kmh: float, unit: str) -> str:
    if unit == "mph":
        return f"{int(kmh / MPH_TO_KMH)} mph"
    return f"{int(kmh)} km/h"


def build_outfit(report: "Report") -> OutfitAdvice:
    """Pick clothing items from feels-like temperature, wind, rain chance and UV."""
    cur = report.current
    feels = cur.feels_like if cur.feels_like is not None else cur.temperature
    feels_c = to_celsius(feels, report.temp_unit)
    wind_kmh = to_kmh(cur.wind_speed or 0.0, report.wind_unit)
    precip = report.forecast[0].precip_prob if report.forecast else 0
    uv = cur.uv_index or 0.0
    tier = temp_tier(feels_c)

    items: List[OutfitItem] = []

    if tier == "freezing":
        items.append(OutfitItem("thermal", "Thermal Base", "Moisture-wicking thermals keep heat in", "oi-blue"))
    elif tier == "cold":
        items.append(OutfitItem("sweater", "Thick Sweater", "Wool or fleece sweater recommended", "oi-blue"))
    elif tier == "cool":
        items.append(OutfitItem("longsleeve", "Long Sleeve", "A long-sleeve shirt is enough inside", "oi-sky"))
    elif tier == "mild":
        items.append(OutfitItem("tshirt", "T-Shirt", "Any casual top works great", "oi-green"))
    else:
        items.append(OutfitItem("tshirt", "Light Top", "Breathable, light-coloured fabric is best", "oi-orange"))

    if tier == "freezing":
        items.append(OutfitItem("coat", "Heavy Coat", "Insulated or down-filled coat essential", "oi-indigo"))
    elif tier == "cold":
        items.append(OutfitItem("coat", "Winter Coat", "Lined coat with hood recommended", "oi-indigo"))
    elif tier == "cool":
        items.append(OutfitItem("jacket", "Light Jacket", "Zip-up or denim jacket keeps the chill off", "oi-sky"))

    if wind_kmh >= 30 and tier not in ("freezing", "cold"):
        items.append(
            OutfitItem(
                "windbreaker",
                "Windbreaker",
                f"Gusts up to {_wind_text(wind_kmh, report.wind_unit)}, block the wind",
                "oi-teal",
            )
        )

    if precip >= 60:
        items.append(OutfitItem("umbrella", "Umbrella", f"Rain likely today ({precip}% chance)", "oi-blue"))
    elif precip >= 30:
        items.append(OutfitItem("raincoat", "Rain Jacket", f"Pack one just in case ({precip}% chance)", "oi-sky"))

    if uv >= 8:
        items.append(OutfitItem("sunscreen", "SPF 50+", "UV is very high, reapply every 2 hours", "oi-orange"))
        items.append(OutfitItem("sunglasses", "Sunglasses", f"Protect your eyes from UV {int(uv)} index", "oi-amber"))
    elif uv >= 5:
        items.append(OutfitItem("sunscreen", "Sunscreen", f"UV {int(uv)}, SPF 30 before heading out", "oi-amber"))

    if tier == "freezing":
        items.append(OutfitItem("beanie", "Beanie + Gloves", "Extremities lose heat fast in freezing temps", "oi-indigo"))
    elif uv >= 6:
        items.append(OutfitItem("hat", "Sun Hat", "Wide brim hat shields face and neck", "oi-amber"))

    if precip >= 50 or tier == "freezing":
        items.append(OutfitItem("boots", "Waterproof Boots", "Keep feet dry on wet ground", "oi-teal"))
    elif tier == "hot":
        items.append(OutfitItem("sandals", "Sandals", "Let your feet breathe in the heat", "oi-orange"))

    return OutfitAdvice(headline=HEADLINES[tier], temp_tier=tier, items=tuple(items[:MAX_ITEMS]))
