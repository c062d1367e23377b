"""Configuration model for the earthquake monitor."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings

FeedName = Literal[
    "significant_hour", "significant_day", "significant_week", "significant_month",
    "4.5_hour", "4.5_day", "4.5_week", "4.5_month",
    "2.5_hour", "2.5_day", "2.5_week", "2.5_month",
    "1.0_hour", "1.0_day", "1.0_week", "1.0_month",
    "all_hour", "all_day", "all_week", "all_month",
]
OutputFormat = Literal["json", "geojson", "html", "csv", "markdown"]

FEED_BASE_URL = "https://earthquake.usgs.gov/earthquakes/feed/v1.0/summary"


def feed_url_for(feed: str) -> str:
    """Return the USGS summary feed URL for a feed name such as ``all_day``."""
    return f"{FEED_BASE_URL}/{feed}.geojson"


class QuakeMonitorConfig(BaseSettings):
    """All configurable parameters for the earthquake monitor.

    Values can be set via constructor arguments, environment variables
    prefixed with QUAKE_MONITOR_, or defaults.
    """

    model_config = {"env_prefix": "QUAKE_MONITOR_"}

    feed: FeedName = Field(
        default="all_day", description="USGS summary feed to follow."
    )
    feed_url: str | None = Field(
        default=None,
        description="Explicit feed URL. Overrides `feed` when set.",
    )
    request_timeout: int = Field(
        default=30, ge=1, le=300, description="HTTP request timeout in seconds."
    )
    refresh_interval_seconds: float = Field(
        default=300.0, gt=0.0, description="Auto-refresh cadence in seconds."
    )
    auto_refresh: bool = Field(
        default=True, description="Start the auto-refresh timer when the monitor activates."
    )
    viewport_padding_px: int = Field(
        default=50, ge=0, description="Screen-space inset applied when fitting the map."
    )
    output_file: Path = Field(
        default=Path("earthquakes.html"), description="Output file path."
    )
    output_format: OutputFormat = Field(
        default="html", description="Output format: json, geojson, html, csv, or markdown."
    )

    @property
    def resolved_feed_url(self) -> str:
        return self.feed_url or feed_url_for(self.feed)
