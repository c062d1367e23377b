"""Monitor session: the overview view and its detail selection."""

from __future__ import annotations

import logging

from requests import Session

from quake_monitor.config import QuakeMonitorConfig
from quake_monitor.derive import derive_view
from quake_monitor.detail import DetailSelection
from quake_monitor.gateway import (
    FeedGateway,
    RefreshListener,
    RefreshOutcome,
    is_auto_refresh_running,
    start_auto_refresh,
    stop_auto_refresh,
)
from quake_monitor.models import DerivedView, DetailView

logger = logging.getLogger(__name__)


class QuakeMonitor:
    """Ties the gateway, the derived overview and the detail slot together.

    Renderers read ``view`` and ``selection.current``; they change state only
    through ``refresh`` and ``select``.
    """

    def __init__(
        self,
        config: QuakeMonitorConfig | None = None,
        session: Session | None = None,
    ) -> None:
        self.config = config or QuakeMonitorConfig()
        self.gateway = FeedGateway(self.config, session=session)
        self.selection = DetailSelection(self.gateway.fetch_detail)
        self.active = False
        self.owns_timer = False

    @property
    def view(self) -> DerivedView:
        """Overview derived from the last-known-good collection."""
        return derive_view(self.gateway.collection, self.config.viewport_padding_px)

    async def activate(self, listener: RefreshListener | None = None) -> RefreshOutcome:
        """Load the feed and start auto-refresh (when enabled)."""
        self.active = True
        outcome = await self.gateway.refresh()
        if self.config.auto_refresh and self.active:
            if start_auto_refresh(self.gateway, listener=listener):
                self.owns_timer = True
        return outcome

    async def deactivate(self) -> None:
        """Close the detail view and stop the timer if this monitor started it."""
        self.active = False
        self.selection.clear()
        if self.owns_timer:
            self.owns_timer = False
            await stop_auto_refresh()

    @property
    def auto_refreshing(self) -> bool:
        return is_auto_refresh_running()

    async def refresh(self, *, manual: bool = True) -> RefreshOutcome:
        return await self.gateway.refresh(manual=manual)

    async def ensure_loaded(self) -> None:
        """Fetch once if no collection has been loaded yet."""
        if not self.gateway.loaded:
            await self.gateway.refresh()

    async def select(self, event_id: str) -> DetailView:
        """Open the detail view for ``event_id`` against the current collection."""
        return await self.selection.select(event_id, self.gateway.collection)
