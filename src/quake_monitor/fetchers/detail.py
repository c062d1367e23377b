"""USGS per-event detail fetcher and parser."""

from __future__ import annotations

import logging
import math
from typing import Any

from requests import Session

from quake_monitor.fetchers.usgs import point_coordinates
from quake_monitor.http import create_session, get_json
from quake_monitor.models import DetailRecord

logger = logging.getLogger(__name__)


def _opt_float(value: Any) -> float | None:
    """Parse a number that may arrive as a string. Unparseable means absent."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    return result if math.isfinite(result) else None


def _opt_int(value: Any) -> int | None:
    result = _opt_float(value)
    if result is None or not result.is_integer():
        return None
    return int(result)


def _opt_count(value: Any) -> int | None:
    """Non-negative integer, or None."""
    result = _opt_int(value)
    return result if result is not None and result >= 0 else None


def _opt_str(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def _origin_properties(props: dict[str, Any]) -> dict[str, Any]:
    """Properties of the preferred origin product, or an empty dict."""
    try:
        origin = props["products"]["origin"][0]["properties"]
    except (KeyError, IndexError, TypeError):
        return {}
    return origin if isinstance(origin, dict) else {}


def _first(*values: Any) -> Any:
    """First value that is not None."""
    for value in values:
        if value is not None:
            return value
    return None


def parse_detail(document: dict[str, Any], event_id: str) -> DetailRecord:
    """Parse a USGS event detail document into a DetailRecord.

    Fields missing from the document, or present but unparseable, are left
    as None. Origin-product values take precedence over the top-level
    properties they duplicate.
    """
    props = document.get("properties") or {}
    if not isinstance(props, dict):
        props = {}
    origin = _origin_properties(props)

    lon, lat, depth = point_coordinates(document.get("geometry"))
    longitude = _opt_float(lon)
    latitude = _opt_float(lat)
    if longitude is not None and not -180.0 <= longitude <= 180.0:
        longitude = None
    if latitude is not None and not -90.0 <= latitude <= 90.0:
        latitude = None

    tsunami = props.get("tsunami")

    return DetailRecord(
        id=_opt_str(document.get("id")) or event_id,
        magnitude=_opt_float(props.get("mag")),
        place=_opt_str(props.get("place")),
        time_ms=_opt_int(props.get("time")),
        updated_ms=_opt_int(props.get("updated")),
        tsunami=tsunami == 1 if tsunami in (0, 1) else None,
        significance=_opt_count(props.get("sig")),
        event_type=_opt_str(props.get("type")),
        title=_opt_str(props.get("title")),
        url=_opt_str(props.get("url")),
        longitude=longitude,
        latitude=latitude,
        depth_km=_opt_float(depth),
        status=_opt_str(props.get("status")),
        magnitude_type=_opt_str(props.get("magType")),
        magnitude_error=_opt_float(origin.get("magnitude-error")),
        alert_level=_opt_str(props.get("alert")),
        felt_reports=_opt_count(props.get("felt")),
        cdi=_opt_float(props.get("cdi")),
        mmi=_opt_float(props.get("mmi")),
        stations_used=_first(
            _opt_count(origin.get("num-stations-used")), _opt_count(props.get("nst"))
        ),
        phases_used=_opt_count(origin.get("num-phases-used")),
        azimuthal_gap_deg=_first(
            _opt_float(origin.get("azimuthal-gap")), _opt_float(props.get("gap"))
        ),
        standard_error_sec=_first(
            _opt_float(origin.get("standard-error")), _opt_float(props.get("rms"))
        ),
        horizontal_error_km=_opt_float(origin.get("horizontal-error")),
        vertical_error_km=_opt_float(origin.get("vertical-error")),
        minimum_distance_deg=_first(
            _opt_float(origin.get("minimum-distance")), _opt_float(props.get("dmin"))
        ),
        depth_type=_opt_str(origin.get("depth-type")),
        review_status=_opt_str(origin.get("review-status")),
    )


def fetch_detail(
    url: str,
    event_id: str,
    timeout: float = 30,
    session: Session | None = None,
) -> DetailRecord:
    """Fetch and parse one event detail document.

    Raises TransportError on network failure or non-200 status.
    """
    if session is None:
        session = create_session()

    document = get_json(session, url, timeout)
    if not isinstance(document, dict):
        document = {}
    detail = parse_detail(document, event_id)
    logger.debug("Fetched detail for %s (status=%s)", event_id, detail.status)
    return detail
