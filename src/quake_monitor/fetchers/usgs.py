"""USGS summary feed fetcher and parser."""

from __future__ import annotations

import logging
import math
from typing import Any

from requests import Session

from quake_monitor.errors import TransportError
from quake_monitor.http import create_session, get_json
from quake_monitor.models import EventCollection, EventRecord

logger = logging.getLogger(__name__)


def _as_float(value: Any) -> float:
    """Coerce a number to float, NaN when missing or unparseable."""
    if value is None or isinstance(value, bool):
        return math.nan
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


def _as_text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _as_significance(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    try:
        return max(int(value or 0), 0)
    except (TypeError, ValueError, OverflowError):
        return 0


def point_coordinates(geometry: Any) -> tuple[Any, Any, Any]:
    """(longitude, latitude, depth) of a Point geometry; None for anything missing."""
    coords = geometry.get("coordinates") if isinstance(geometry, dict) else None
    if not isinstance(coords, (list, tuple)):
        coords = []
    lon, lat, depth = (list(coords) + [None, None, None])[:3]
    return lon, lat, depth


def parse_event(feature: dict[str, Any]) -> EventRecord | None:
    """Parse one GeoJSON feature into an EventRecord.

    Returns None when the feature has no id, no finite magnitude or no time.
    Missing coordinates become NaN: the record is kept and simply cannot be
    placed on the map.
    """
    event_id = feature.get("id")
    props = feature.get("properties") or {}
    if not event_id or not isinstance(props, dict):
        return None

    magnitude = _as_float(props.get("mag"))
    time_ms = props.get("time")
    if not math.isfinite(magnitude) or not math.isfinite(_as_float(time_ms)):
        logger.debug("Skipping feature %s without magnitude or time", event_id)
        return None

    lon, lat, depth = point_coordinates(feature.get("geometry"))

    return EventRecord(
        id=str(event_id),
        magnitude=magnitude,
        place=_as_text(props.get("place")),
        time_ms=int(_as_float(time_ms)),
        longitude=_as_float(lon),
        latitude=_as_float(lat),
        depth_km=_as_float(depth),
        tsunami=props.get("tsunami") == 1,
        significance=_as_significance(props.get("sig")),
        event_type=_as_text(props.get("type")) or "earthquake",
        title=_as_text(props.get("title")),
        url=_as_text(props.get("url")),
        detail_url=_as_text(props.get("detail")),
    )


def parse_collection(document: dict[str, Any]) -> EventCollection:
    """Parse a full USGS GeoJSON FeatureCollection.

    Duplicate ids keep their first occurrence; later copies are logged and
    listed in ``duplicate_ids``.
    """
    metadata = document.get("metadata")
    if not isinstance(metadata, dict):
        metadata = {}
    events: list[EventRecord] = []
    seen: set[str] = set()
    duplicates: list[str] = []

    for feature in document["features"]:
        if not isinstance(feature, dict):
            continue
        event = parse_event(feature)
        if event is None:
            continue
        if event.id in seen:
            logger.warning("Duplicate event id %s in feed, keeping first occurrence", event.id)
            duplicates.append(event.id)
            continue
        seen.add(event.id)
        events.append(event)

    generated = _as_float(metadata.get("generated"))
    return EventCollection(
        generated_ms=int(generated) if math.isfinite(generated) else None,
        title=_as_text(metadata.get("title")),
        events=tuple(events),
        duplicate_ids=tuple(duplicates),
    )


def fetch_collection(
    url: str,
    timeout: float = 30,
    session: Session | None = None,
) -> EventCollection:
    """Fetch and parse a USGS summary feed.

    Raises TransportError on network failure, non-200 status or a body that
    is not a GeoJSON FeatureCollection.
    """
    if session is None:
        session = create_session()

    document = get_json(session, url, timeout)
    if not isinstance(document, dict) or not isinstance(document.get("features"), list):
        raise TransportError(url, "response is not a GeoJSON FeatureCollection")

    collection = parse_collection(document)
    logger.info("Parsed %d events from %s", len(collection), url)
    return collection
