import dataclasses
import unittest

import pytest

from skycast.forecast_service import CurrentConditions, DailyForecastEntry, Report
from skycast.outfit import MAX_ITEMS, build_outfit, temp_tier
from skycast.units import UnitSystem


def _make_report(units=UnitSystem.METRIC, *, feels_like=20.0, wind=10.0, uv=2.0, precip=10):
    current = CurrentConditions(
        time="2024-06-01T12:00",
        temperature=feels_like,
        feels_like=feels_like,
        humidity=50,
        cloud_cover=20,
        wind_speed=wind,
        wind_direction=180,
        pressure=1013.0,
        dew_point=8.0,
        uv_index=uv,
        weather_code=1,
        description="Mainly clear",
        icon="wi-day-sunny-overcast",
    )
    today = DailyForecastEntry(
        date="2024-06-01",
        weather_code=1,
        description="Mainly clear",
        icon="wi-day-sunny-overcast",
        temp_max=feels_like + 3,
        temp_min=feels_like - 5,
        wind_max=wind,
        precip_prob=precip,
    )
    return Report(
        city_name="Testville",
        country="Nowhere",
        country_code="NW",
        latitude=0.0,
        longitude=0.0,
        timezone="UTC",
        units=units,
        temp_unit=units.temp_symbol,
        wind_unit=units.wind_label,
        current=current,
        forecast=(today,),
    )


def _labels(advice):
    return [item.label for item in advice.items]


class TestBuildOutfit(unittest.TestCase):
    def test_mild_day_is_minimal(self):
        advice = build_outfit(_make_report())
        self.assertEqual(advice.temp_tier, "mild")
        self.assertEqual(advice.headline, "Perfect weather, dress easy")
        self.assertEqual(_labels(advice), ["T-Shirt"])

    def test_freezing_wet_day(self):
        advice = build_outfit(_make_report(feels_like=-5.0, wind=40.0, uv=0.0, precip=70))
        self.assertEqual(advice.temp_tier, "freezing")
        self.assertEqual(
            _labels(advice),
            ["Thermal Base", "Heavy Coat", "Umbrella", "Beanie + Gloves", "Waterproof Boots"],
        )

    def test_item_list_is_capped(self):
        advice = build_outfit(_make_report(feels_like=32.0, wind=35.0, uv=9.0, precip=65))
        self.assertEqual(len(advice.items), MAX_ITEMS)
        self.assertEqual(
            _labels(advice),
            ["Light Top", "Windbreaker", "Umbrella", "SPF 50+", "Sunglasses", "Sun Hat"],
        )

    def test_imperial_report_uses_converted_thresholds(self):
        # 50 °F is 10 °C (cool); 20 mph is about 32 km/h.
        advice = build_outfit(_make_report(UnitSystem.IMPERIAL, feels_like=50.0, wind=20.0))
        self.assertEqual(advice.temp_tier, "cool")
        self.assertEqual(_labels(advice), ["Long Sleeve", "Light Jacket", "Windbreaker"])
        self.assertIn("mph", advice.items[2].note)

    def test_rain_jacket_band(self):
        advice = build_outfit(_make_report(precip=30))
        self.assertIn("Rain Jacket", _labels(advice))
        self.assertNotIn("Umbrella", _labels(advice))

    def test_hot_day_gets_sandals(self):
        advice = build_outfit(_make_report(feels_like=30.0))
        self.assertEqual(_labels(advice), ["Light Top", "Sandals"])

    def test_no_forecast_means_no_rain_gear(self):
        report = _make_report(precip=90)
        report = dataclasses.replace(report, forecast=())
        self.assertNotIn("Umbrella", _labels(build_outfit(report)))


@pytest.mark.parametrize(
    "feels,tier",
    [(-0.1, "freezing"), (0.0, "cold"), (7.9, "cold"), (8.0, "cool"), (15.0, "mild"),
     (22.0, "warm"), (28.9, "warm"), (29.0, "hot")],
)
def test_temp_tier_boundaries(feels, tier):
    assert temp_tier(feels) == tier


if __name__ == "__main__":
    unittest.main()
