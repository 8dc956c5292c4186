import unittest

import pytest

from skycast.config import Settings
from skycast.data_sources.geocoder import Geocoder, Location
from skycast.errors import ErrorKind, GatewayError, WeatherServiceError


class StubGateway:
    """Returns a canned payload (or raises) and records each call."""

    def __init__(self, payload):
        self.payload = payload
        self.calls = []

    def fetch_json(self, url, params=None, headers=None):
        self.calls.append({"url": url, "params": params, "headers": headers})
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


LONDON = {
    "name": "London",
    "latitude": 51.50853,
    "longitude": -0.12574,
    "country": "United Kingdom",
    "country_code": "GB",
    "timezone": "Europe/London",
}


class TestGeocode(unittest.TestCase):
    def setUp(self):
        self.settings = Settings()

    def test_top_result_becomes_location(self):
        gw = StubGateway({"results": [LONDON, {**LONDON, "name": "London, Ontario"}]})
        loc = Geocoder(gw, self.settings).geocode("London")
        self.assertEqual(
            loc,
            Location("London", 51.50853, -0.12574, "United Kingdom", "GB", "Europe/London"),
        )
        call = gw.calls[0]
        self.assertEqual(call["url"], self.settings.geocoding_url)
        self.assertEqual(call["params"], {"name": "London", "count": 1, "language": "en", "format": "json"})

    def test_empty_results_is_not_found(self):
        for payload in ({"results": []}, {}, {"generationtime_ms": 0.4}):
            with self.assertRaises(WeatherServiceError) as ctx:
                Geocoder(StubGateway(payload), self.settings).geocode("Atlantis")
            self.assertIs(ctx.exception.kind, ErrorKind.NOT_FOUND)
            self.assertIn("Atlantis", ctx.exception.message)

    def test_missing_timezone_defaults_to_utc(self):
        result = {k: v for k, v in LONDON.items() if k != "timezone"}
        loc = Geocoder(StubGateway({"results": [result]}), self.settings).geocode("London")
        self.assertEqual(loc.timezone, "UTC")

    def test_result_without_coordinates_is_upstream_error(self):
        result = {"name": "Nowhere"}
        with self.assertRaises(WeatherServiceError) as ctx:
            Geocoder(StubGateway({"results": [result]}), self.settings).geocode("Nowhere")
        self.assertIs(ctx.exception.kind, ErrorKind.UPSTREAM)

    def test_gateway_errors_propagate(self):
        err = GatewayError(ErrorKind.NETWORK, "down", url="http://geo")
        with self.assertRaises(GatewayError) as ctx:
            Geocoder(StubGateway(err), self.settings).geocode("London")
        self.assertIs(ctx.exception.kind, ErrorKind.NETWORK)


class TestReverseGeocode(unittest.TestCase):
    def setUp(self):
        self.settings = Settings(user_agent="SkycastTest/0.1")

    def test_request_shape(self):
        gw = StubGateway({"address": {"city": "Paris"}})
        Geocoder(gw, self.settings).reverse_geocode(48.8566, 2.3522)
        call = gw.calls[0]
        self.assertEqual(call["url"], self.settings.reverse_geocoding_url)
        self.assertEqual(call["params"]["lat"], "48.856600")
        self.assertEqual(call["params"]["lon"], "2.352200")
        self.assertEqual(call["params"]["zoom"], 10)
        self.assertEqual(call["headers"]["User-Agent"], "SkycastTest/0.1")
        self.assertEqual(call["headers"]["Accept-Language"], "en")

    def test_most_specific_field_wins(self):
        gw = StubGateway({"address": {"county": "Kent", "town": "Dover", "village": "River"}})
        self.assertEqual(Geocoder(gw, self.settings).reverse_geocode(51.1, 1.3), "Dover")

    def test_display_name_fallback(self):
        gw = StubGateway({"address": {"road": "A2"}, "display_name": "Somewhere Road, Kent, England"})
        self.assertEqual(Geocoder(gw, self.settings).reverse_geocode(51.1, 1.3), "Somewhere Road")

    def test_no_name_is_no_match(self):
        gw = StubGateway({"address": {}, "display_name": ""})
        with self.assertRaises(WeatherServiceError) as ctx:
            Geocoder(gw, self.settings).reverse_geocode(0.0, -160.0)
        self.assertIs(ctx.exception.kind, ErrorKind.NO_MATCH)


@pytest.mark.parametrize("field", ["city", "town", "village", "municipality", "county"])
def test_each_name_field_is_accepted(field):
    gw = StubGateway({"address": {field: "Name"}})
    assert Geocoder(gw, Settings()).reverse_geocode(1.0, 2.0) == "Name"


if __name__ == "__main__":
    unittest.main()
