"""CLI interface using Typer."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from quake_monitor import __version__
from quake_monitor.classify import legend
from quake_monitor.config import FeedName, OutputFormat, QuakeMonitorConfig
from quake_monitor.errors import TransportError
from quake_monitor.exporters import (
    export_csv,
    export_geojson,
    export_html,
    export_json,
    export_markdown,
)
from quake_monitor.formatting import (
    detail_rows,
    format_coordinates,
    format_depth,
    format_magnitude,
    format_time_ms,
)
from quake_monitor.gateway import RefreshOutcome
from quake_monitor.models import DerivedView, DetailStatus, DetailView
from quake_monitor.monitor import QuakeMonitor
from quake_monitor.pipeline import run_pipeline

Exporter = Callable[[DerivedView, Path], Path]

EXPORTERS: dict[str, Exporter] = {
    "json": export_json,
    "geojson": export_geojson,
    "html": export_html,
    "csv": export_csv,
    "markdown": export_markdown,
}

# Rich styles per tier.
TIER_STYLES: dict[str, str] = {
    "critical": "bold red",
    "high": "dark_orange",
    "medium": "yellow",
    "low": "cyan",
    "minimal": "green",
}

app = typer.Typer(
    name="quake-monitor",
    help="Near-real-time earthquake monitor for the USGS feeds.",
    add_completion=False,
)
console = Console()


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"quake-monitor {__version__}")
        raise typer.Exit()


def _setup_logging(verbose: bool) -> None:
    log_level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        handlers=[logging.StreamHandler()],
    )


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=_version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """Quake Monitor: near-real-time earthquake overview from USGS."""


def _stats_line(view: DerivedView) -> str:
    stats = view.stats
    return (
        f"Total events: [bold]{stats.total}[/bold]  "
        f"Significant (M≥4.5): [bold]{stats.significant}[/bold]  "
        f"Tsunami warnings: [bold]{stats.tsunami_warnings}[/bold]  "
        f"Avg magnitude: [bold]{stats.average_magnitude}[/bold]"
    )


def _events_table(view: DerivedView, limit: int) -> Table:
    table = Table(title="Recent Earthquakes")
    table.add_column("Mag", justify="right")
    table.add_column("Place", style="bold")
    table.add_column("Time (UTC)", style="dim")
    table.add_column("Depth", justify="right")
    table.add_column("Tsunami")
    table.add_column("ID", style="dim")

    for event in view.events[:limit]:
        style = TIER_STYLES[view.markers[event.id].tier]
        table.add_row(
            f"[{style}]{format_magnitude(event.magnitude)}[/{style}]",
            escape(event.place or "-"),
            format_time_ms(event.time_ms),
            format_depth(event.depth_km),
            "[red]Yes[/red]" if event.tsunami else "-",
            event.id,
        )
    return table


def _print_overview(view: DerivedView, limit: int) -> None:
    console.print()
    console.print(_events_table(view, limit))
    console.print(_stats_line(view))
    if len(view.events) > limit:
        console.print(f"[dim]... {len(view.events) - limit} more events not shown[/dim]")
    console.print(f"[dim]Last updated: {format_time_ms(view.generated_ms)}[/dim]")


def _config(feed: str, feed_url: str | None, **kwargs: object) -> QuakeMonitorConfig:
    return QuakeMonitorConfig(feed=feed, feed_url=feed_url, **kwargs)


@app.command()
def run(
    feed: Annotated[
        FeedName,
        typer.Option("--feed", help="USGS summary feed, e.g. all_day or 4.5_week."),
    ] = "all_day",
    feed_url: Annotated[
        str | None,
        typer.Option("--feed-url", help="Explicit feed URL (overrides --feed)."),
    ] = None,
    output: Annotated[
        Path,
        typer.Option("--output", "-o", help="Output file path."),
    ] = Path("earthquakes.html"),
    output_format: Annotated[
        OutputFormat,
        typer.Option("--format", "-f", help="Output format: json, geojson, html, csv, markdown."),
    ] = "html",
    limit: Annotated[
        int,
        typer.Option("--limit", "-n", help="Rows to show in the console table."),
    ] = 20,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose logging."),
    ] = False,
) -> None:
    """Fetch the feed once, export the overview and print a summary."""
    _setup_logging(verbose)
    config = _config(feed, feed_url, output_file=output, output_format=output_format)

    try:
        view = run_pipeline(config)
    except TransportError as exc:
        console.print(f"[red]Failed to load earthquake data:[/red] {exc}")
        raise typer.Exit(code=1) from None

    exporter = EXPORTERS[config.output_format]
    exporter(view, config.output_file)

    _print_overview(view, limit)
    console.print(
        f"\n{config.output_format.upper()} written to [bold]{config.output_file}[/bold]"
    )


def _print_detail(view: DetailView) -> None:
    event = view.event
    if event is None:
        return

    table = Table(show_header=False, box=None)
    table.add_column("Field", style="dim")
    table.add_column("Value")
    table.add_row("Magnitude", format_magnitude(event.magnitude))
    table.add_row("Location", escape(event.place or "-"))
    table.add_row("Coordinates", format_coordinates(event))
    table.add_row("Depth", format_depth(event.depth_km, digits=2))
    table.add_row("Type", event.event_type)
    table.add_row("Event Time", format_time_ms(event.time_ms))
    if event.updated_ms is not None:
        table.add_row("Last Updated", format_time_ms(event.updated_ms))
    table.add_row("Tsunami Warning", "[red]Yes[/red]" if event.tsunami else "No")
    table.add_row("Significance", str(event.significance))

    if view.detail is not None:
        for label, value in detail_rows(view.detail):
            table.add_row(label, value)

    console.print(Panel(table, title=escape(event.title or event.id), subtitle=escape(event.url)))
    if view.status is DetailStatus.UNAVAILABLE:
        console.print("[dim]Technical details are unavailable for this event.[/dim]")


@app.command()
def show(
    event_id: Annotated[str, typer.Argument(help="USGS event id, e.g. us7000abcd.")],
    feed: Annotated[
        FeedName,
        typer.Option("--feed", help="USGS summary feed to look the event up in."),
    ] = "all_day",
    feed_url: Annotated[
        str | None,
        typer.Option("--feed-url", help="Explicit feed URL (overrides --feed)."),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose logging."),
    ] = False,
) -> None:
    """Show the detail view for one event of the current feed."""
    _setup_logging(verbose)
    monitor = QuakeMonitor(_config(feed, feed_url, auto_refresh=False))

    async def _resolve() -> tuple[RefreshOutcome, DetailView | None]:
        outcome = await monitor.refresh(manual=False)
        if not outcome.ok:
            return outcome, None
        return outcome, await monitor.select(event_id)

    outcome, view = asyncio.run(_resolve())
    if view is None:
        console.print(f"[red]Failed to load earthquake data:[/red] {outcome.error}")
        raise typer.Exit(code=1)

    if view.status is DetailStatus.NOT_FOUND:
        console.print(f"[yellow]Earthquake {event_id} not found in the {feed} feed.[/yellow]")
        console.print("Run [bold]quake-monitor run[/bold] to list current events.")
        raise typer.Exit(code=1)

    _print_detail(view)


@app.command()
def watch(
    feed: Annotated[
        FeedName,
        typer.Option("--feed", help="USGS summary feed to follow."),
    ] = "all_day",
    feed_url: Annotated[
        str | None,
        typer.Option("--feed-url", help="Explicit feed URL (overrides --feed)."),
    ] = None,
    interval: Annotated[
        float,
        typer.Option("--interval", "-i", help="Seconds between automatic refreshes."),
    ] = 300.0,
    limit: Annotated[
        int,
        typer.Option("--limit", "-n", help="Rows to show in the console table."),
    ] = 20,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose logging."),
    ] = False,
) -> None:
    """Keep the overview up to date, refreshing on a fixed interval."""
    _setup_logging(verbose)
    monitor = QuakeMonitor(
        _config(feed, feed_url, refresh_interval_seconds=interval, auto_refresh=True)
    )

    def _on_refresh(outcome: RefreshOutcome) -> None:
        if outcome.ok:
            _print_overview(monitor.view, limit)
        else:
            console.print(f"[red]Refresh failed, showing last data:[/red] {outcome.error}")

    async def _watch() -> None:
        outcome = await monitor.activate(listener=_on_refresh)
        _on_refresh(outcome)
        try:
            await asyncio.Event().wait()
        finally:
            await monitor.deactivate()

    try:
        asyncio.run(_watch())
    except KeyboardInterrupt:
        console.print("\nStopped.")


@app.command(name="legend")
def show_legend() -> None:
    """Print the magnitude-scale legend."""
    table = Table(title="Magnitude Scale")
    table.add_column("Range")
    table.add_column("Tier")
    for row in legend():
        style = TIER_STYLES[row["tier"]]
        table.add_row(row["label"], f"[{style}]{row['description']}[/{style}]")
    console.print(table)
