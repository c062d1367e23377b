"""Data models for the earthquake monitor."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum


@dataclass(frozen=True)
class EventRecord:
    """A single seismic event from a USGS summary feed."""

    id: str
    magnitude: float
    place: str
    time_ms: int
    longitude: float
    latitude: float
    depth_km: float
    tsunami: bool = False
    significance: int = 0
    event_type: str = "earthquake"
    title: str = ""
    url: str = ""
    detail_url: str = ""
    updated_ms: int | None = None

    @property
    def has_valid_coordinates(self) -> bool:
        """True when the epicenter can be placed on a map."""
        return (
            math.isfinite(self.longitude)
            and math.isfinite(self.latitude)
            and math.isfinite(self.depth_km)
            and -180.0 <= self.longitude <= 180.0
            and -90.0 <= self.latitude <= 90.0
        )


@dataclass(frozen=True)
class EventCollection:
    """Result of one feed fetch. Replaced wholesale on every refresh."""

    generated_ms: int | None = None
    title: str = ""
    events: tuple[EventRecord, ...] = ()
    duplicate_ids: tuple[str, ...] = ()

    def __len__(self) -> int:
        return len(self.events)

    def get(self, event_id: str) -> EventRecord | None:
        for event in self.events:
            if event.id == event_id:
                return event
        return None


@dataclass(frozen=True)
class DetailRecord:
    """Extended fields for one event, from its detail document.

    Every field other than ``id`` is optional. ``None`` means upstream did
    not send the field (or sent something unparseable) and it must be
    presented as unknown, never as zero or false.
    """

    id: str
    # Overrides for the summary-level counterparts.
    magnitude: float | None = None
    place: str | None = None
    time_ms: int | None = None
    updated_ms: int | None = None
    tsunami: bool | None = None
    significance: int | None = None
    event_type: str | None = None
    title: str | None = None
    url: str | None = None
    longitude: float | None = None
    latitude: float | None = None
    depth_km: float | None = None
    # Detail-only fields.
    status: str | None = None
    magnitude_type: str | None = None
    magnitude_error: float | None = None
    alert_level: str | None = None
    felt_reports: int | None = None
    cdi: float | None = None
    mmi: float | None = None
    stations_used: int | None = None
    phases_used: int | None = None
    azimuthal_gap_deg: float | None = None
    standard_error_sec: float | None = None
    horizontal_error_km: float | None = None
    vertical_error_km: float | None = None
    minimum_distance_deg: float | None = None
    depth_type: str | None = None
    review_status: str | None = None


@dataclass(frozen=True)
class EventStats:
    """Aggregate statistics over one collection."""

    total: int
    significant: int
    tsunami_warnings: int
    average_magnitude: str


@dataclass(frozen=True)
class Viewport:
    """Bounding region covering every plottable epicenter.

    ``padding_px`` is the screen-space inset the renderer applies when
    fitting the map; it is passed through, not folded into the bounds.
    """

    south: float
    west: float
    north: float
    east: float
    padding_px: int = 50

    def as_leaflet_bounds(self) -> list[list[float]]:
        return [[self.south, self.west], [self.north, self.east]]


@dataclass(frozen=True)
class Marker:
    """Map/list presentation for one event."""

    event_id: str
    tier: str
    color: str
    size: float
    badge: str
    severity_label: str


@dataclass(frozen=True)
class DerivedView:
    """Everything a renderer needs for the overview page."""

    events: tuple[EventRecord, ...]
    stats: EventStats
    viewport: Viewport | None
    markers: dict[str, Marker] = field(default_factory=dict)
    generated_ms: int | None = None
    title: str = ""


class DetailStatus(str, Enum):
    """States of the detail-resolution state machine."""

    NOT_FOUND = "not_found"
    PENDING = "pending"
    RESOLVED = "resolved"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class EventDetail:
    """A summary record merged with its detail record."""

    event: EventRecord
    record: DetailRecord
    extended: dict[str, object] = field(default_factory=dict)


@dataclass(frozen=True)
class DetailView:
    """One snapshot of the detail view for a selected event id."""

    event_id: str
    status: DetailStatus
    summary: EventRecord | None = None
    detail: EventDetail | None = None
    error: str | None = None

    @property
    def event(self) -> EventRecord | None:
        """Best known event: merged when resolved, summary otherwise."""
        if self.detail is not None:
            return self.detail.event
        return self.summary
