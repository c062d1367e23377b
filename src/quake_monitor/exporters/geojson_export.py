"""GeoJSON exporter for the derived overview."""

from __future__ import annotations

import json
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from quake_monitor.models import DerivedView, EventRecord, Marker


def _make_event_feature(event: EventRecord, marker: Marker) -> dict[str, Any]:
    """Create a GeoJSON Feature for one plottable event."""
    return {
        "type": "Feature",
        "id": event.id,
        "geometry": {
            "type": "Point",
            "coordinates": [event.longitude, event.latitude, event.depth_km],
        },
        "properties": {
            "magnitude": event.magnitude,
            "place": event.place,
            "time": event.time_ms,
            "tsunami": event.tsunami,
            "significance": event.significance,
            "event_type": event.event_type,
            "title": event.title,
            "url": event.url,
            "tier": marker.tier,
            "marker_color": marker.color,
            "marker_size": marker.size,
        },
    }


def export_geojson(
    view: DerivedView,
    output_path: Path,
) -> Path:
    """Export the overview as a GeoJSON FeatureCollection.

    Events without usable coordinates are counted in the metadata but
    produce no feature. GeoJSON coordinates are [longitude, latitude, depth].
    """
    features = [
        _make_event_feature(event, view.markers[event.id])
        for event in view.events
        if event.has_valid_coordinates
    ]

    viewport = view.viewport
    geojson: dict[str, Any] = {
        "type": "FeatureCollection",
        "metadata": {
            "generated": datetime.now(tz=timezone.utc).isoformat(),
            "feed_generated": view.generated_ms,
            "source": "quake-monitor",
            "title": view.title,
            "stats": asdict(view.stats),
            "unplotted_count": len(view.events) - len(features),
        },
        "features": features,
    }
    if viewport is not None:
        geojson["bbox"] = [viewport.west, viewport.south, viewport.east, viewport.north]

    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(geojson, f, indent=2, ensure_ascii=False)

    return output_path
