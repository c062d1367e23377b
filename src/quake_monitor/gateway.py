"""Data source gateway: async feed/detail fetches, refresh and auto-refresh.

The blocking ``requests`` calls run in a worker via ``asyncio.to_thread``;
all state held here is only written from the event loop.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Literal

from requests import Session

from quake_monitor.config import QuakeMonitorConfig
from quake_monitor.errors import TransportError
from quake_monitor.fetchers.detail import fetch_detail
from quake_monitor.fetchers.usgs import fetch_collection
from quake_monitor.http import create_session
from quake_monitor.models import DetailRecord, EventCollection

logger = logging.getLogger(__name__)

RefreshTrigger = Literal["manual", "auto"]

MANUAL_REFRESH_MESSAGE = "Fetching latest earthquake information..."
REFRESH_FAILED_MESSAGE = "Failed to fetch data from USGS. Please try again."


@dataclass(frozen=True)
class RefreshOutcome:
    """Result of one refresh, as reported to whoever triggered it."""

    trigger: RefreshTrigger
    ok: bool
    event_count: int
    applied: bool = True
    error: str | None = None
    message: str | None = None


class FeedGateway:
    """Owns the last-known-good collection and every upstream request."""

    def __init__(
        self,
        config: QuakeMonitorConfig,
        session: Session | None = None,
    ) -> None:
        self.config = config
        self.session = session or create_session()
        self.collection = EventCollection()
        self.loaded = False
        self.last_error: TransportError | None = None
        self.last_refresh: datetime | None = None
        self.refresh_count = 0
        self._generation = 0

    async def fetch_collection(self) -> EventCollection:
        """Fetch the feed. Raises TransportError."""
        return await asyncio.to_thread(
            fetch_collection,
            self.config.resolved_feed_url,
            self.config.request_timeout,
            self.session,
        )

    async def fetch_detail(self, url: str, event_id: str) -> DetailRecord:
        """Fetch one event's detail document. Raises TransportError."""
        return await asyncio.to_thread(
            fetch_detail,
            url,
            event_id,
            self.config.request_timeout,
            self.session,
        )

    async def refresh(self, *, manual: bool = False) -> RefreshOutcome:
        """Re-fetch the feed and, if still the latest refresh, replace the collection.

        A failed refresh keeps the previous collection and records the error.
        Manual and automatic refreshes fetch identically; only the outcome
        message differs.
        """
        trigger: RefreshTrigger = "manual" if manual else "auto"
        self._generation += 1
        generation = self._generation
        logger.info("Refreshing feed (%s)", trigger)

        try:
            collection = await self.fetch_collection()
        except TransportError as exc:
            if generation != self._generation:
                logger.debug("Ignoring failure of superseded %s refresh", trigger)
                return RefreshOutcome(trigger, False, len(self.collection), applied=False, error=str(exc))
            logger.warning("Feed refresh failed: %s", exc)
            self.last_error = exc
            return RefreshOutcome(
                trigger,
                False,
                len(self.collection),
                error=str(exc),
                message=REFRESH_FAILED_MESSAGE,
            )

        if generation != self._generation:
            logger.debug("Discarding superseded %s refresh", trigger)
            return RefreshOutcome(
                trigger,
                True,
                len(self.collection),
                applied=False,
                message=MANUAL_REFRESH_MESSAGE if manual else None,
            )

        self.collection = collection
        self.loaded = True
        self.last_error = None
        self.last_refresh = datetime.now(tz=timezone.utc)
        self.refresh_count += 1
        return RefreshOutcome(
            trigger,
            True,
            len(collection),
            message=MANUAL_REFRESH_MESSAGE if manual else None,
        )


RefreshListener = Callable[[RefreshOutcome], Awaitable[None] | None]

# Process-wide auto-refresh timer. At most one task exists at a time.
_timer_task: asyncio.Task[None] | None = None


async def _auto_refresh_loop(
    gateway: FeedGateway,
    interval: float,
    listener: RefreshListener | None,
) -> None:
    while True:
        await asyncio.sleep(interval)
        try:
            outcome = await gateway.refresh(manual=False)
            if listener is not None:
                result = listener(outcome)
                if asyncio.iscoroutine(result):
                    await result
        except Exception:
            logger.exception("Auto-refresh cycle failed; will retry in %.0fs", interval)


def start_auto_refresh(
    gateway: FeedGateway,
    interval: float | None = None,
    listener: RefreshListener | None = None,
) -> bool:
    """Start the auto-refresh timer. Returns False if one is already running."""
    global _timer_task
    if is_auto_refresh_running():
        logger.debug("Auto-refresh already running")
        return False

    seconds = interval if interval is not None else gateway.config.refresh_interval_seconds
    _timer_task = asyncio.create_task(_auto_refresh_loop(gateway, seconds, listener))
    logger.info("Auto-refresh every %.0fs", seconds)
    return True


async def stop_auto_refresh() -> None:
    """Cancel the auto-refresh timer if it is running."""
    global _timer_task
    task, _timer_task = _timer_task, None
    if task is None or task.done():
        return
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass
    logger.info("Auto-refresh stopped")


def is_auto_refresh_running() -> bool:
    return _timer_task is not None and not _timer_task.done()
