"""Display formatting shared by the CLI, exporters and API."""

from __future__ import annotations

import math
from datetime import datetime, timezone

from quake_monitor.models import EventDetail, EventRecord

# Extended detail field -> (label, format). Fields missing from a detail are
# not listed at all.
DETAIL_LABELS: dict[str, tuple[str, str]] = {
    "status": ("Status", "{}"),
    "magnitude_type": ("Magnitude Type", "{}"),
    "magnitude_error": ("Magnitude Error", "±{:.2f}"),
    "alert_level": ("Alert Level", "{}"),
    "felt_reports": ("Felt Reports", "{}"),
    "cdi": ("Community Intensity (CDI)", "{:.1f}"),
    "mmi": ("Modified Mercalli Intensity", "{:.1f}"),
    "depth_type": ("Depth Type", "{}"),
    "stations_used": ("Stations Used", "{}"),
    "phases_used": ("Phases Used", "{}"),
    "azimuthal_gap_deg": ("Azimuthal Gap", "{:.1f}°"),
    "standard_error_sec": ("Standard Error", "{:.2f} s"),
    "horizontal_error_km": ("Horizontal Error", "{:.2f} km"),
    "vertical_error_km": ("Vertical Error", "{:.2f} km"),
    "minimum_distance_deg": ("Min Distance", "{:.2f}°"),
    "review_status": ("Review Status", "{}"),
}


def format_time_ms(time_ms: int | None) -> str:
    if time_ms is None:
        return "-"
    return datetime.fromtimestamp(time_ms / 1000, tz=timezone.utc).strftime(
        "%Y-%m-%d %H:%M:%S UTC"
    )


def format_depth(depth_km: float, digits: int = 1) -> str:
    if not math.isfinite(depth_km):
        return "unknown"
    return f"{depth_km:.{digits}f} km"


def format_coordinates(event: EventRecord) -> str:
    if not event.has_valid_coordinates:
        return "unknown"
    return f"{event.latitude:.4f}°, {event.longitude:.4f}°"


def format_magnitude(magnitude: float) -> str:
    return f"M {magnitude:.1f}"


def detail_rows(detail: EventDetail) -> list[tuple[str, str]]:
    """(label, value) rows for the extended fields that are present."""
    rows = []
    for name, (label, fmt) in DETAIL_LABELS.items():
        if name in detail.extended:
            rows.append((label, fmt.format(detail.extended[name])))
    return rows
