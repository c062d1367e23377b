"""Collection deriver: recency sort, statistics and viewport fitting."""

from __future__ import annotations

import math

from quake_monitor.classify import marker_for
from quake_monitor.models import (
    DerivedView,
    EventCollection,
    EventRecord,
    EventStats,
    Viewport,
)

SIGNIFICANT_MAGNITUDE = 4.5
DEFAULT_PADDING_PX = 50


def sort_by_recency(events: tuple[EventRecord, ...] | list[EventRecord]) -> tuple[EventRecord, ...]:
    """Newest first. Events with equal times keep their feed order."""
    return tuple(sorted(events, key=lambda e: e.time_ms, reverse=True))


def compute_stats(events: tuple[EventRecord, ...] | list[EventRecord]) -> EventStats:
    """Aggregate counts and the two-decimal average magnitude.

    An empty collection averages to ``"0.00"``. Non-finite magnitudes are
    counted in ``total`` but left out of the average.
    """
    magnitudes = [e.magnitude for e in events if math.isfinite(e.magnitude)]
    average = sum(magnitudes) / len(magnitudes) if magnitudes else 0.0

    return EventStats(
        total=len(events),
        significant=sum(1 for e in events if e.magnitude >= SIGNIFICANT_MAGNITUDE),
        tsunami_warnings=sum(1 for e in events if e.tsunami),
        average_magnitude=f"{average:.2f}",
    )


def compute_viewport(
    events: tuple[EventRecord, ...] | list[EventRecord],
    padding_px: int = DEFAULT_PADDING_PX,
) -> Viewport | None:
    """Bounding box over every plottable epicenter, or None if there are none."""
    plottable = [e for e in events if e.has_valid_coordinates]
    if not plottable:
        return None

    lats = [e.latitude for e in plottable]
    lons = [e.longitude for e in plottable]
    return Viewport(
        south=min(lats),
        west=min(lons),
        north=max(lats),
        east=max(lons),
        padding_px=padding_px,
    )


def derive_view(
    collection: EventCollection,
    padding_px: int = DEFAULT_PADDING_PX,
) -> DerivedView:
    """Derive the overview page from one collection. Never raises on content."""
    events = sort_by_recency(collection.events)
    return DerivedView(
        events=events,
        stats=compute_stats(events),
        viewport=compute_viewport(events, padding_px),
        markers={e.id: marker_for(e) for e in events},
        generated_ms=collection.generated_ms,
        title=collection.title,
    )
