import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from fastapi.testclient import TestClient

from monmon.config.settings import Settings, get_settings
from monmon.errors import UpstreamError
from monmon.main import app, create_app
from monmon.schemas.energy import Quote
from monmon.services.energy_data import EnergyDataService
from monmon.services.snapshot_cache import SnapshotCache


class StubQuoteClient:
    def __init__(self) -> None:
        self.calls = 0
        self.fail = False

    def get_quote(self, ticker: str) -> Quote:
        self.calls += 1
        if self.fail:
            raise UpstreamError(ticker, "timeout")
        return Quote.from_prices(70.0, 69.0, source="yahoo")


class EnergyApiTest(unittest.TestCase):
    def setUp(self):
        self.original_service = getattr(app.state, "energy_data_service", None)
        self.quote_client = StubQuoteClient()

    def tearDown(self):
        app.state.energy_data_service = self.original_service

    def _install_service(self, symbols):
        app.state.energy_data_service = EnergyDataService(
            snapshot_cache=SnapshotCache(),
            quote_client=self.quote_client,
            symbols=symbols,
            cache_ttl_sec=300,
            refresh_cooldown_sec=0,
        )
        return TestClient(app)

    def test_energy_data_returns_dashboard_payload(self):
        client = self._install_service({"wti": "CL=F", "brent": "BZ=F"})

        response = client.get("/api/energy-data")

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertIn("timestamp", body)
        self.assertEqual(body["wti"]["price"], 70.0)
        self.assertEqual(body["wti"]["previousClose"], 69.0)
        self.assertEqual(body["wti"]["source"], "yahoo")
        self.assertEqual(body["fo05"]["source"], "estimate")
        self.assertIn("changePercent", body["brent"])
        self.assertEqual(body["spreads"]["brent_wti"], 0.0)
        self.assertIn("crack_fo05", body["spreads"])

    def test_second_request_is_served_from_cache(self):
        client = self._install_service({"wti": "CL=F"})

        first = client.get("/api/energy-data").json()
        second = client.get("/api/energy-data").json()

        self.assertEqual(first, second)
        self.assertEqual(self.quote_client.calls, 1)

    def test_no_snapshot_and_refresh_failure_returns_500(self):
        self.quote_client.fail = True
        client = self._install_service({"jet": "JET=F"})

        response = client.get("/api/energy-data")

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"error": "Failed to fetch energy data"})

    def test_metrics_and_health(self):
        client = self._install_service({"wti": "CL=F"})

        self.assertEqual(client.get("/api/health").json(), {"status": "ok", "cache_state": "EMPTY"})
        client.get("/api/energy-data")

        metrics = client.get("/api/metrics/energy-data").json()
        self.assertEqual(metrics["cache_state"], "FRESH")
        self.assertEqual(metrics["refreshes"], 1)
        self.assertEqual(metrics["last_live_count"], 1)
        self.assertEqual(client.get("/api/health").json()["cache_state"], "FRESH")

    def test_static_dashboard_is_mounted_when_configured(self):
        with tempfile.TemporaryDirectory() as tmp:
            Path(tmp, "index.html").write_text("<h1>MonMon</h1>", encoding="utf-8")
            static_app = create_app(Settings(MONMON_STATIC_DIR=tmp))
            static_app.state.energy_data_service.quote_client = self.quote_client

            with TestClient(static_app) as client:
                page = client.get("/")
                data = client.get("/api/energy-data")

        self.assertEqual(page.status_code, 200)
        self.assertIn("MonMon", page.text)
        self.assertEqual(data.status_code, 200)

    def test_app_import_does_not_read_env_until_startup(self):
        get_settings.cache_clear()
        try:
            with patch.dict(os.environ, {"PORT": "not-a-port"}, clear=True):
                lazy_app = create_app()
            self.assertIsNone(getattr(lazy_app.state, "energy_data_service", None))

            with patch.dict(os.environ, {"CACHE_TTL_SEC": "60"}, clear=True):
                with TestClient(lazy_app) as client:
                    service = lazy_app.state.energy_data_service
                    health = client.get("/api/health")

            self.assertEqual(service.cache_ttl_sec, 60)
            self.assertEqual(health.json(), {"status": "ok", "cache_state": "EMPTY"})
        finally:
            get_settings.cache_clear()


if __name__ == "__main__":
    unittest.main()
