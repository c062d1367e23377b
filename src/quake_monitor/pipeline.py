"""One-shot pipeline: fetch -> parse -> derive."""

from __future__ import annotations

import logging

from requests import Session

from quake_monitor.config import QuakeMonitorConfig
from quake_monitor.derive import derive_view
from quake_monitor.fetchers.usgs import fetch_collection
from quake_monitor.http import create_session
from quake_monitor.models import DerivedView

logger = logging.getLogger(__name__)


def run_pipeline(
    config: QuakeMonitorConfig,
    session: Session | None = None,
) -> DerivedView:
    """Fetch the configured feed once and derive the overview.

    Raises TransportError when the feed cannot be fetched.
    """
    session = session or create_session()

    logger.info("Fetching USGS feed %s...", config.resolved_feed_url)
    collection = fetch_collection(
        config.resolved_feed_url,
        timeout=config.request_timeout,
        session=session,
    )
    if collection.duplicate_ids:
        logger.warning("Feed contained %d duplicate ids", len(collection.duplicate_ids))

    view = derive_view(collection, config.viewport_padding_px)
    if view.viewport is None:
        logger.warning("No plottable events; map viewport left unchanged.")
    logger.info(
        "Derived %d events (%d significant, avg M%s)",
        view.stats.total,
        view.stats.significant,
        view.stats.average_magnitude,
    )
    return view
