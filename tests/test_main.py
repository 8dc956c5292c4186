import unittest

from fastapi.testclient import TestClient

from skycast.forecast_service import WeatherService
from skycast.main import app
from skycast.report_cache import InMemoryReportCache


class TestAppLifespan(unittest.TestCase):
    def test_lifespan_wires_state_and_stops_sweeper(self):
        with TestClient(app) as client:
            service = app.state.weather_service
            cache = app.state.report_cache
            self.assertIsInstance(service, WeatherService)
            self.assertIsInstance(cache, InMemoryReportCache)
            self.assertTrue(cache.running)

            resp = client.get("/v1/health")
            self.assertEqual(resp.status_code, 200)
            self.assertEqual(resp.json(), {"status": "ok", "cached_reports": 0})

        self.assertFalse(cache.running)

    def test_routes_are_versioned(self):
        paths = {route.path for route in app.routes}
        self.assertTrue({"/v1/weather", "/v1/reverse", "/v1/health"} <= paths)


if __name__ == "__main__":
    unittest.main()
