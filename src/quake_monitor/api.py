"""FastAPI service exposing the derived overview and detail views."""

from __future__ import annotations

import logging
import tempfile
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Annotated, Any

from fastapi import FastAPI, Query
from fastapi.responses import JSONResponse, Response

from quake_monitor import __version__
from quake_monitor.classify import legend
from quake_monitor.config import OutputFormat, QuakeMonitorConfig
from quake_monitor.detail import resolve_detail
from quake_monitor.exporters import (
    export_csv,
    export_geojson,
    export_html,
    export_markdown,
    view_to_dict,
)
from quake_monitor.exporters.json_export import json_safe
from quake_monitor.formatting import detail_rows
from quake_monitor.models import DerivedView, DetailStatus, DetailView
from quake_monitor.monitor import QuakeMonitor

logger = logging.getLogger(__name__)

_CONTENT_TYPES: dict[str, str] = {
    "json": "application/json",
    "geojson": "application/geo+json",
    "html": "text/html; charset=utf-8",
    "csv": "text/csv; charset=utf-8",
    "markdown": "text/markdown; charset=utf-8",
}

_SUFFIX: dict[str, str] = {
    "geojson": ".geojson",
    "html": ".html",
    "csv": ".csv",
    "markdown": ".md",
}

_EXPORTERS: dict[str, Any] = {
    "geojson": export_geojson,
    "html": export_html,
    "csv": export_csv,
    "markdown": export_markdown,
}

OVERVIEW_PATH = "/earthquakes"


@asynccontextmanager
async def lifespan(application: FastAPI) -> AsyncGenerator[None, None]:
    """Create the monitor; with auto-refresh on, load the feed and start the timer."""
    config = QuakeMonitorConfig()
    monitor = QuakeMonitor(config)
    application.state.start_time = datetime.now(tz=timezone.utc)
    application.state.monitor = monitor
    if config.auto_refresh:
        await monitor.activate()
    try:
        yield
    finally:
        await monitor.deactivate()


app = FastAPI(
    title="Quake Monitor API",
    description="Near-real-time earthquake overview derived from the USGS feeds.",
    version=__version__,
    lifespan=lifespan,
)


def _monitor() -> QuakeMonitor:
    return app.state.monitor  # type: ignore[no-any-return]


def _export(view: DerivedView, fmt: OutputFormat) -> Response:
    """Serialize the derived view into the requested format."""
    if fmt == "json":
        return JSONResponse(content=view_to_dict(view))

    exporter = _EXPORTERS[fmt]
    suffix = _SUFFIX[fmt]

    with tempfile.NamedTemporaryFile(suffix=suffix, delete=False) as tmp:
        tmp_path = Path(tmp.name)
    try:
        exporter(view, tmp_path)
        content = tmp_path.read_text(encoding="utf-8")
    finally:
        tmp_path.unlink(missing_ok=True)

    return Response(content=content, media_type=_CONTENT_TYPES[fmt])


def _detail_payload(view: DetailView) -> dict[str, Any]:
    event = view.event
    payload: dict[str, Any] = {
        "id": view.event_id,
        "status": view.status.value,
        "summary": json_safe(asdict(view.summary)) if view.summary else None,
        "event": json_safe(asdict(event)) if event else None,
    }
    if view.detail is not None:
        payload["extended"] = view.detail.extended
        payload["rows"] = [
            {"label": label, "value": value} for label, value in detail_rows(view.detail)
        ]
    return payload


@app.get("/health")
def health() -> dict[str, Any]:
    """Server health check with uptime, version and refresh state."""
    now = datetime.now(tz=timezone.utc)
    gateway = _monitor().gateway
    return {
        "status": "ok" if gateway.last_error is None else "degraded",
        "version": __version__,
        "uptime_seconds": round((now - app.state.start_time).total_seconds(), 1),
        "last_refresh": gateway.last_refresh.isoformat() if gateway.last_refresh else None,
        "refresh_count": gateway.refresh_count,
        "auto_refresh": _monitor().auto_refreshing,
        "last_error": str(gateway.last_error) if gateway.last_error else None,
    }


@app.get("/legend")
def get_legend() -> list[dict[str, str]]:
    """Magnitude-scale legend rows."""
    return legend()


@app.get(OVERVIEW_PATH)
async def get_earthquakes(
    format: Annotated[
        OutputFormat, Query(description="Output format."),
    ] = "json",
) -> Response:
    """Return the overview derived from the last-known-good collection.

    When nothing has been loaded yet the feed is fetched first; if that
    fails the response is a retryable 503.
    """
    monitor = _monitor()
    await monitor.ensure_loaded()
    if not monitor.gateway.loaded:
        return JSONResponse(
            status_code=503,
            content={
                "detail": "Failed to load earthquake data",
                "error": str(monitor.gateway.last_error),
                "retryable": True,
                "retry": {"method": "POST", "path": "/refresh"},
            },
        )
    return _export(monitor.view, format)


@app.post("/refresh")
async def post_refresh() -> Response:
    """Manually refresh the feed.

    A refresh overtaken by a newer one reports ``applied: false`` instead of
    its own result.
    """
    outcome = await _monitor().refresh(manual=True)
    if not outcome.ok and outcome.applied:
        return JSONResponse(
            status_code=502,
            content={
                "detail": outcome.message,
                "error": outcome.error,
                "retryable": True,
            },
        )
    return JSONResponse(
        content={
            "trigger": outcome.trigger,
            "message": outcome.message,
            "event_count": outcome.event_count,
            "applied": outcome.applied,
        }
    )


@app.get(OVERVIEW_PATH + "/{event_id}")
async def get_earthquake(event_id: str) -> Response:
    """Detail view for one event of the currently loaded collection."""
    monitor = _monitor()
    await monitor.ensure_loaded()
    view = await resolve_detail(
        event_id, monitor.gateway.collection, monitor.gateway.fetch_detail
    )
    if view.status is DetailStatus.NOT_FOUND:
        return JSONResponse(
            status_code=404,
            content={
                "detail": "Earthquake not found",
                "id": event_id,
                "back": OVERVIEW_PATH,
            },
        )
    return JSONResponse(content=_detail_payload(view))
