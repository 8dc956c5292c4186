"""Light-hearted one-liners keyed by sky condition and feels-like temperature."""
from __future__ import annotations

import random
from typing import Dict, List, Optional, Tuple

from skycast.units import to_celsius

_POOLS: Dict[str, Tuple[str, ...]] = {
    "clear": (
        "Sun's out, bad decisions are out too.",
        "Perfect weather to pretend you're a lizard on a rock.",
        "The sky is blue. Your excuses are not.",
        "Vitamin D loading... please wait.",
        "It's so sunny even your shadow needs sunglasses.",
    ),
    "mainly_clear": (
        "Mostly clear, like your schedule should be.",
        "A few clouds, just enough to keep the sky humble.",
        "The sun is trying its best. Same energy.",
    ),
    "partly_cloudy": (
        "Partly cloudy, fully indecisive.",
        "The weather can't make up its mind. Neither can you. Perfect match.",
        "Clouds auditioning for a role in your afternoon plans.",
    ),
    "overcast": (
        "Overcast. Great day to feel dramatically misunderstood.",
        "Zero sun, maximum brooding potential.",
        "The sky is wearing a grey blanket. Take notes.",
        "Overcast skies: nature's way of saying 'meh'.",
    ),
    "fog": (
        "Fog warning: if you can't see your problems, do they even exist?",
        "It's foggy. Perfect alibi weather.",
        "Visibility low. Mystery high.",
        "Great day to dramatically disappear into the mist.",
    ),
    "drizzle": (
        "Drizzle. Nature's way of passive-aggressively watering your plans.",
        "It's not raining, it's misting. Like a fancy spa you didn't ask for.",
        "Light drizzle: too wet to ignore, too weak to respect.",
    ),
    "slight_rain": (
        "Slight rain. A solid excuse not to go jogging.",
        "Rain check? The sky literally issued one.",
        "Nature is crying. Relatable.",
    ),
    "rain": (
        "Moderate rain. Your hair has accepted its fate.",
        "It's raining. Cancel everything and make soup.",
        "Rain: nature's way of doing your car wash for free.",
    ),
    "heavy_rain": (
        "Heavy rain. You ARE the soup now.",
        "It's pouring. Even the ducks are impressed.",
        "Biblical rain detected. Start building something.",
        "Congratulations, you're basically underwater.",
    ),
    "snow": (
        "Snow! Nature said 'let me delete everything and start fresh'.",
        "It's snowing. Time to question every life choice that led you here.",
        "Snow: beautiful from inside. Terrible from outside.",
        "White stuff everywhere. And it's not sugar.",
    ),
    "snow_grains": (
        "Snow grains. Tiny frozen disappointments falling from the sky.",
        "Snow grains: the economy-sized version of hail.",
    ),
    "showers": (
        "Rain showers incoming. The sky has commitment issues.",
        "On-and-off rain. Like a bad situationship.",
        "Showers: enough rain to ruin your day, not enough to cancel plans.",
    ),
    "snow_showers": (
        "Snow showers. Nature's confetti, but colder.",
        "It's snowing intermittently, like inspiration.",
    ),
    "thunderstorm": (
        "Thunderstorm. Nature is having a moment.",
        "Lightning detected. Unplug your WiFi router and panic.",
        "Thor is upset about something. As usual.",
        "Great day to feel small and insignificant. Nature's doing the work.",
    ),
    "hail": (
        "Thunderstorm with hail. Nature said 'not today'.",
        "Hail + lightning. Your car's worst nightmare.",
        "The sky is literally throwing rocks at you. Take the hint and stay inside.",
    ),
    "unknown": (
        "Weather: it exists. Outside: also exists. You: reading this.",
        "Conditions unknown. Like your weekend plans.",
    ),
}

# (first code, last code inclusive) -> pool
_CODE_BUCKETS: List[Tuple[Tuple[int, int], str]] = [
    ((0, 0), "clear"),
    ((1, 1), "mainly_clear"),
    ((2, 2), "partly_cloudy"),
    ((3, 3), "overcast"),
    ((45, 45), "fog"),
    ((48, 48), "fog"),
    ((51, 55), "drizzle"),
    ((61, 61), "slight_rain"),
    ((63, 63), "rain"),
    ((65, 65), "heavy_rain"),
    ((71, 75), "snow"),
    ((77, 77), "snow_grains"),
    ((80, 82), "showers"),
    ((85, 86), "snow_showers"),
    ((95, 95), "thunderstorm"),
    ((96, 96), "hail"),
    ((99, 99), "hail"),
]

# First match wins: (substrings that must all appear, substrings that must not) -> pool
_ICON_RULES: List[Tuple[Tuple[str, ...], Tuple[str, ...], str]] = [
    (("sunny",), ("overcast",), "clear"),
    (("sunny-overcast",), (), "mainly_clear"),
    (("cloudy", "day"), (), "partly_cloudy"),
    (("cloudy",), (), "overcast"),
    (("fog",), (), "fog"),
    (("sprinkle",), (), "drizzle"),
    (("rain-mix",), (), "drizzle"),
    (("rain-wind",), (), "heavy_rain"),
    (("rain",), (), "rain"),
    (("snow-wind",), (), "snow"),
    (("snowflake",), (), "snow_grains"),
    (("snow",), (), "snow"),
    (("storm-showers",), (), "hail"),
    (("showers",), (), "showers"),
    (("thunderstorm",), (), "thunderstorm"),
]

# Upper bound (inclusive, Celsius) of each feels-like band.
_ADVICE_BANDS: List[Tuple[float, str]] = [
    (-20, "It feels arctic out there. Wrap up like a burrito."),
    (-10, "Dangerously cold. Only go outside if your name is a penguin."),
    (0, "Below freezing. Every exposed inch of skin will regret this."),
    (5, "Heavy coat mandatory. Your nose will run regardless."),
    (10, "Jacket weather. The kind that makes you question the seasons."),
    (15, "A light jacket will do. Maybe two. Bring both."),
    (20, "Comfortable. Wear what you want, nobody's judging."),
    (25, "T-shirt weather. Go enjoy it, you earned this."),
    (30, "Warm. Stay hydrated and pretend you love summer."),
    (35, "Hot. Ice cream is not optional at this point."),
    (40, "Dangerously hot. You are now a human crouton."),
]
_OVEN_ADVICE = "It's basically an oven outside. Stay in. Order food."


def quote_pool(code: Optional[int]) -> Tuple[str, ...]:
    """All quotes that may be shown for a WMO code."""
    if code is not None:
        for (low, high), bucket in _CODE_BUCKETS:
            if low <= code <= high:
                return _POOLS[bucket]
    return _POOLS["unknown"]


def icon_pool(icon: Optional[str]) -> Tuple[str, ...]:
    """All quotes that may be shown for a weather-icons class name."""
    icon = icon or ""
    for required, forbidden, bucket in _ICON_RULES:
        if all(s in icon for s in required) and not any(s in icon for s in forbidden):
            return _POOLS[bucket]
    return _POOLS["unknown"]


def quote(code: Optional[int], rng: Optional[random.Random] = None) -> str:
    """Pick a random quote for a WMO code."""
    return (rng or random).choice(quote_pool(code))


def quote_from_icon(icon: Optional[str], rng: Optional[random.Random] = None) -> str:
    """Pick a random quote from the condition bucket an icon class belongs to."""
    return (rng or random).choice(icon_pool(icon))


def advice(feels_like: float, unit: str) -> str:
    """One line on how the feels-like temperature will treat you.

    `unit` is the display symbol ("°C" or "°F"); bands are compared in Celsius.
    """
    feels_c = to_celsius(feels_like, unit)
    for upper, text in _ADVICE_BANDS:
        if feels_c <= upper:
            return text
    return _OVEN_ADVICE
