"""Tests for the FastAPI wrapper."""

from __future__ import annotations

from collections.abc import Generator

import pytest
import responses
from fastapi.testclient import TestClient

from quake_monitor.api import app
from conftest import DETAIL_URL, FEED_URL


@pytest.fixture
def client(monkeypatch: pytest.MonkeyPatch) -> Generator[TestClient, None, None]:
    """TestClient with lifespan entered and the startup fetch disabled."""
    monkeypatch.setenv("QUAKE_MONITOR_AUTO_REFRESH", "false")
    with TestClient(app) as c:
        yield c


def _mock_feed(feed: dict, status: int = 200) -> None:
    responses.add(responses.GET, FEED_URL, json=feed, status=status)


class TestHealthEndpoint:
    def test_returns_ok(self, client: TestClient) -> None:
        resp = client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ok"
        assert "version" in data
        assert "uptime_seconds" in data
        assert data["refresh_count"] == 0
        assert data["auto_refresh"] is False
        assert data["last_refresh"] is None

    @responses.activate
    def test_degraded_after_failed_refresh(self, client: TestClient) -> None:
        responses.add(responses.GET, FEED_URL, status=500)
        client.post("/refresh")
        data = client.get("/health").json()
        assert data["status"] == "degraded"
        assert "HTTP 500" in data["last_error"]


class TestLegendEndpoint:
    def test_returns_five_rows(self, client: TestClient) -> None:
        resp = client.get("/legend")
        assert resp.status_code == 200
        rows = resp.json()
        assert len(rows) == 5
        assert rows[0]["color"] == "#dc2626"


class TestEarthquakesEndpoint:
    @responses.activate
    def test_json_format_default(self, client: TestClient, sample_feed_response: dict) -> None:
        """GET /earthquakes returns the derived view as JSON by default."""
        _mock_feed(sample_feed_response)
        resp = client.get("/earthquakes")
        assert resp.status_code == 200
        data = resp.json()
        assert data["stats"] == {
            "total": 5,
            "significant": 2,
            "tsunami_warnings": 1,
            "average_magnitude": "3.16",
        }
        assert [e["id"] for e in data["events"]] == [
            "ci40000001",
            "us7000aaa2",
            "us7000aaa1",
            "nc75000001",
            "ak0230001",
        ]
        assert data["events"][2]["marker"]["tier"] == "critical"
        assert data["viewport"]["south"] == -30.2
        assert data["viewport"]["east"] == 142.3

    @responses.activate
    def test_feed_fetched_once_across_requests(
        self, client: TestClient, sample_feed_response: dict
    ) -> None:
        _mock_feed(sample_feed_response)
        client.get("/earthquakes")
        client.get("/earthquakes?format=csv")
        assert len(responses.calls) == 1

    @responses.activate
    def test_html_format(self, client: TestClient, sample_feed_response: dict) -> None:
        _mock_feed(sample_feed_response)
        resp = client.get("/earthquakes?format=html")
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/html")
        assert "leaflet" in resp.text.lower()
        assert "us7000aaa1" in resp.text

    @responses.activate
    def test_csv_format(self, client: TestClient, sample_feed_response: dict) -> None:
        _mock_feed(sample_feed_response)
        resp = client.get("/earthquakes?format=csv")
        assert resp.status_code == 200
        lines = resp.text.strip().splitlines()
        assert lines[0].startswith("id,time_utc,magnitude,tier")
        assert len(lines) == 6

    @responses.activate
    def test_geojson_format(self, client: TestClient, sample_feed_response: dict) -> None:
        _mock_feed(sample_feed_response)
        resp = client.get("/earthquakes?format=geojson")
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("application/geo+json")
        assert len(resp.json()["features"]) == 5

    def test_invalid_format_rejected(self, client: TestClient) -> None:
        resp = client.get("/earthquakes?format=xml")
        assert resp.status_code == 422

    @responses.activate
    def test_feed_failure_is_retryable_503(self, client: TestClient) -> None:
        responses.add(responses.GET, FEED_URL, status=500)
        resp = client.get("/earthquakes")
        assert resp.status_code == 503
        data = resp.json()
        assert data["retryable"] is True
        assert data["retry"] == {"method": "POST", "path": "/refresh"}


class TestRefreshEndpoint:
    @responses.activate
    def test_manual_refresh(self, client: TestClient, sample_feed_response: dict) -> None:
        _mock_feed(sample_feed_response)
        resp = client.post("/refresh")
        assert resp.status_code == 200
        data = resp.json()
        assert data["trigger"] == "manual"
        assert data["message"] == "Fetching latest earthquake information..."
        assert data["event_count"] == 5
        assert data["applied"] is True

    @responses.activate
    def test_failure_keeps_previous_collection(
        self, client: TestClient, sample_feed_response: dict
    ) -> None:
        _mock_feed(sample_feed_response)
        client.post("/refresh")

        responses.replace(responses.GET, FEED_URL, status=500)
        resp = client.post("/refresh")
        assert resp.status_code == 502
        data = resp.json()
        assert data["detail"] == "Failed to fetch data from USGS. Please try again."
        assert data["retryable"] is True

        overview = client.get("/earthquakes").json()
        assert overview["stats"]["total"] == 5


class TestEarthquakeDetailEndpoint:
    @responses.activate
    def test_resolved_detail(
        self,
        client: TestClient,
        sample_feed_response: dict,
        sample_detail_response: dict,
    ) -> None:
        _mock_feed(sample_feed_response)
        responses.add(responses.GET, DETAIL_URL, json=sample_detail_response, status=200)
        resp = client.get("/earthquakes/us7000aaa1")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "resolved"
        assert data["summary"]["magnitude"] == 6.2
        assert data["event"]["magnitude"] == 6.3
        assert data["extended"]["alert_level"] == "yellow"
        labels = [row["label"] for row in data["rows"]]
        assert "Felt Reports" in labels
        assert "Vertical Error" not in labels

    @responses.activate
    def test_unavailable_detail_keeps_summary(
        self, client: TestClient, sample_feed_response: dict
    ) -> None:
        _mock_feed(sample_feed_response)
        responses.add(responses.GET, DETAIL_URL, status=500)
        resp = client.get("/earthquakes/us7000aaa1")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "unavailable"
        assert data["summary"]["id"] == "us7000aaa1"
        assert data["event"]["magnitude"] == 6.2
        assert "extended" not in data

    @responses.activate
    def test_unknown_id_is_404_without_detail_request(
        self, client: TestClient, sample_feed_response: dict
    ) -> None:
        _mock_feed(sample_feed_response)
        resp = client.get("/earthquakes/doesnotexist")
        assert resp.status_code == 404
        data = resp.json()
        assert data["detail"] == "Earthquake not found"
        assert data["back"] == "/earthquakes"
        assert len(responses.calls) == 1
