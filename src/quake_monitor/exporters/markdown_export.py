"""Markdown exporter for the derived overview."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from quake_monitor.classify import legend
from quake_monitor.formatting import format_depth, format_magnitude, format_time_ms
from quake_monitor.models import DerivedView


def export_markdown(
    view: DerivedView,
    output_path: Path,
    *,
    limit: int | None = None,
) -> Path:
    """Export the overview as Markdown: stats, legend and the recent-events table."""
    timestamp = datetime.now(tz=timezone.utc).strftime("%Y-%m-%d %H:%M UTC")
    stats = view.stats
    lines: list[str] = [
        "# Seismic Monitor",
        f"Generated: {timestamp}",
        f"Feed updated: {format_time_ms(view.generated_ms)}",
        "",
        "## Summary",
        "",
        "| Total Events | Significant (M≥4.5) | Tsunami Warnings | Avg Magnitude |",
        "|-------------:|--------------------:|-----------------:|--------------:|",
        f"| {stats.total} | {stats.significant} | {stats.tsunami_warnings}"
        f" | {stats.average_magnitude} |",
        "",
        "## Magnitude Scale",
        "",
    ]
    for row in legend():
        lines.append(f"- **{row['label']}**: {row['description']}")

    events = view.events if limit is None else view.events[:limit]
    lines.extend([
        "",
        "## Recent Earthquakes",
        "",
        f"{stats.total} events in this feed.",
        "",
        "| Magnitude | Tier | Place | Time | Depth | Tsunami |",
        "|----------:|:-----|:------|:-----|------:|:--------|",
    ])
    for event in events:
        marker = view.markers[event.id]
        place = event.place.replace("|", "\\|") or "-"
        if event.url:
            place = f"[{place}]({event.url})"
        lines.append(
            f"| {format_magnitude(event.magnitude)} | {marker.tier.capitalize()}"
            f" | {place}"
            f" | {format_time_ms(event.time_ms)}"
            f" | {format_depth(event.depth_km)}"
            f" | {'Yes' if event.tsunami else 'No'} |"
        )

    lines.extend([
        "",
        "---",
        "",
        "Data provided by the [USGS Earthquake Hazards Program](https://earthquake.usgs.gov/).",
        "",
    ])

    with open(output_path, "w", encoding="utf-8") as f:
        f.write("\n".join(lines))

    return output_path
