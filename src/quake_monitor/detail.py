"""Detail resolution: summary lookup, detail fetch, merge and selection."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import fields, replace

from quake_monitor.errors import TransportError
from quake_monitor.models import (
    DetailRecord,
    DetailStatus,
    DetailView,
    EventCollection,
    EventDetail,
    EventRecord,
)

logger = logging.getLogger(__name__)

DetailFetcher = Callable[[str, str], Awaitable[DetailRecord]]

# DetailRecord field -> EventRecord field it overrides when present.
OVERRIDES: dict[str, str] = {
    "magnitude": "magnitude",
    "place": "place",
    "time_ms": "time_ms",
    "updated_ms": "updated_ms",
    "tsunami": "tsunami",
    "significance": "significance",
    "event_type": "event_type",
    "title": "title",
    "url": "url",
    "longitude": "longitude",
    "latitude": "latitude",
    "depth_km": "depth_km",
}

EXTENDED_FIELDS: tuple[str, ...] = tuple(
    f.name for f in fields(DetailRecord) if f.name != "id" and f.name not in OVERRIDES
)


def merge_detail(summary: EventRecord, detail: DetailRecord) -> EventDetail:
    """Overlay a detail record on its summary.

    Each DetailRecord field that is present replaces its EventRecord
    counterpart. Absent fields leave the summary value alone. Extended fields
    appear in ``extended`` only when present.
    """
    overrides = {
        target: getattr(detail, source)
        for source, target in OVERRIDES.items()
        if getattr(detail, source) is not None
    }
    extended = {
        name: getattr(detail, name)
        for name in EXTENDED_FIELDS
        if getattr(detail, name) is not None
    }
    return EventDetail(
        event=replace(summary, **overrides),
        record=detail,
        extended=extended,
    )


def lookup(event_id: str, collection: EventCollection) -> DetailView:
    """Synchronous first step: NOT_FOUND, or PENDING with the summary."""
    summary = collection.get(event_id)
    if summary is None:
        return DetailView(event_id=event_id, status=DetailStatus.NOT_FOUND)
    return DetailView(event_id=event_id, status=DetailStatus.PENDING, summary=summary)


async def complete(pending: DetailView, fetch_detail: DetailFetcher) -> DetailView:
    """Asynchronous second step: fetch the detail for a PENDING view."""
    summary = pending.summary
    if summary is None:
        raise ValueError(f"No summary to complete for {pending.event_id}")

    if not summary.detail_url:
        return replace(pending, status=DetailStatus.UNAVAILABLE, error="no detail URL")

    try:
        record = await fetch_detail(summary.detail_url, summary.id)
    except TransportError as exc:
        logger.warning("Detail for %s unavailable: %s", summary.id, exc)
        return replace(pending, status=DetailStatus.UNAVAILABLE, error=str(exc))

    return replace(
        pending,
        status=DetailStatus.RESOLVED,
        detail=merge_detail(summary, record),
    )


async def resolve_detail(
    event_id: str,
    collection: EventCollection,
    fetch_detail: DetailFetcher,
) -> DetailView:
    """Resolve an event id against a collection.

    An id missing from the collection is NOT_FOUND and no request is made.
    A failed detail fetch is UNAVAILABLE with the summary still attached.
    """
    view = lookup(event_id, collection)
    if view.status is DetailStatus.NOT_FOUND:
        return view
    return await complete(view, fetch_detail)


class DetailSelection:
    """The single detail slot a viewer is looking at.

    ``current`` is only ever written by the most recent ``select`` call, so
    a slow response for an earlier selection cannot overwrite a later one.
    """

    def __init__(self, fetch_detail: DetailFetcher) -> None:
        self._fetch_detail = fetch_detail
        self._generation = 0
        self.current: DetailView | None = None

    @property
    def selected_id(self) -> str | None:
        return self.current.event_id if self.current is not None else None

    async def select(self, event_id: str, collection: EventCollection) -> DetailView:
        """Select ``event_id`` and resolve it.

        ``current`` switches to NOT_FOUND or PENDING before the first await.
        The returned view is the outcome of this request even when a newer
        selection has since taken over ``current``.
        """
        self._generation += 1
        generation = self._generation

        view = lookup(event_id, collection)
        self.current = view
        if view.status is DetailStatus.NOT_FOUND:
            return view

        result = await complete(view, self._fetch_detail)
        if generation != self._generation:
            logger.debug("Discarding stale detail response for %s", event_id)
            return result

        self.current = result
        return result

    def clear(self) -> None:
        """Close the view; outstanding requests will not be applied."""
        self._generation += 1
        self.current = None
