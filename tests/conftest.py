"""Shared fixtures for quake_monitor tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from quake_monitor.config import QuakeMonitorConfig, feed_url_for
from quake_monitor.models import EventCollection, EventRecord

FIXTURES_DIR = Path(__file__).parent / "fixtures"

FEED_URL = feed_url_for("all_day")
DETAIL_URL = "https://earthquake.usgs.gov/earthquakes/feed/v1.0/detail/us7000aaa1.geojson"


def make_event(
    event_id: str,
    magnitude: float,
    time_ms: int = 1700000000000,
    latitude: float = 35.0,
    longitude: float = 140.0,
    depth_km: float = 10.0,
    tsunami: bool = False,
    detail_url: str | None = None,
) -> EventRecord:
    return EventRecord(
        id=event_id,
        magnitude=magnitude,
        place=f"Somewhere near {event_id}",
        time_ms=time_ms,
        longitude=longitude,
        latitude=latitude,
        depth_km=depth_km,
        tsunami=tsunami,
        significance=100,
        title=f"M {magnitude} - {event_id}",
        url=f"https://earthquake.usgs.gov/earthquakes/eventpage/{event_id}",
        detail_url=(
            detail_url
            if detail_url is not None
            else f"https://earthquake.usgs.gov/earthquakes/feed/v1.0/detail/{event_id}.geojson"
        ),
    )


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES_DIR


@pytest.fixture
def sample_feed_response() -> dict:
    return json.loads((FIXTURES_DIR / "feed_sample.json").read_text())


@pytest.fixture
def sample_detail_response() -> dict:
    return json.loads((FIXTURES_DIR / "detail_sample.json").read_text())


@pytest.fixture
def sample_events() -> list[EventRecord]:
    """Three events with magnitudes 6.2, 4.0 and 1.0."""
    return [
        make_event("us2025abc1", 6.2, time_ms=1700000000000, latitude=38.3,
                   longitude=141.5, tsunami=True),
        make_event("us2025abc2", 4.0, time_ms=1700100000000, latitude=-33.4,
                   longitude=-70.6),
        make_event("us2025abc3", 1.0, time_ms=1700200000000, latitude=61.2,
                   longitude=-149.9),
    ]


@pytest.fixture
def sample_collection(sample_events: list[EventRecord]) -> EventCollection:
    return EventCollection(
        generated_ms=1700300000000,
        title="Test feed",
        events=tuple(sample_events),
    )


@pytest.fixture
def default_config(tmp_path: Path) -> QuakeMonitorConfig:
    """Config with defaults and auto-refresh off, writing to tmp_path."""
    return QuakeMonitorConfig(
        output_file=tmp_path / "output.html",
        auto_refresh=False,
    )
