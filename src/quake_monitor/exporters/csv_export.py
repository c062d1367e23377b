"""CSV exporter for the derived overview."""

from __future__ import annotations

import csv
import math
from pathlib import Path

from quake_monitor.formatting import format_time_ms
from quake_monitor.models import DerivedView

FIELDNAMES = [
    "id",
    "time_utc",
    "magnitude",
    "tier",
    "place",
    "latitude",
    "longitude",
    "depth_km",
    "tsunami",
    "significance",
    "event_type",
    "url",
]


def _cell(value: float) -> float | str:
    return value if math.isfinite(value) else ""


def export_csv(
    view: DerivedView,
    output_path: Path,
) -> Path:
    """Export the overview as a flat CSV with one row per event, newest first."""
    with open(output_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=FIELDNAMES)
        writer.writeheader()

        for event in view.events:
            writer.writerow({
                "id": event.id,
                "time_utc": format_time_ms(event.time_ms),
                "magnitude": event.magnitude,
                "tier": view.markers[event.id].tier,
                "place": event.place,
                "latitude": _cell(event.latitude),
                "longitude": _cell(event.longitude),
                "depth_km": _cell(event.depth_km),
                "tsunami": "yes" if event.tsunami else "no",
                "significance": event.significance,
                "event_type": event.event_type,
                "url": event.url,
            })

    return output_path
