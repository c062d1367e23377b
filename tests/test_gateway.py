"""Tests for feed refresh and the auto-refresh timer."""

from __future__ import annotations

import asyncio

import pytest
import responses

from quake_monitor.errors import TransportError
from quake_monitor.gateway import (
    MANUAL_REFRESH_MESSAGE,
    REFRESH_FAILED_MESSAGE,
    FeedGateway,
    is_auto_refresh_running,
    start_auto_refresh,
    stop_auto_refresh,
)
from quake_monitor.models import EventCollection
from quake_monitor.monitor import QuakeMonitor
from conftest import FEED_URL, make_event


def _collection(*event_ids: str) -> EventCollection:
    return EventCollection(events=tuple(make_event(e, 3.0) for e in event_ids))


class ScriptedFeed:
    """Stands in for FeedGateway.fetch_collection; returns or raises in order."""

    def __init__(self, *results) -> None:
        self.results = list(results)
        self.calls = 0

    async def __call__(self) -> EventCollection:
        self.calls += 1
        result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if isinstance(result, Exception):
            raise result
        return result


class TestRefresh:
    @pytest.mark.asyncio
    async def test_success_replaces_collection(self, default_config):
        gateway = FeedGateway(default_config)
        gateway.fetch_collection = ScriptedFeed(_collection("a", "b"))
        outcome = await gateway.refresh()
        assert outcome.ok is True
        assert outcome.trigger == "auto"
        assert outcome.event_count == 2
        assert outcome.message is None
        assert gateway.loaded is True
        assert gateway.refresh_count == 1
        assert gateway.last_refresh is not None
        assert [e.id for e in gateway.collection.events] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_manual_refresh_reports_message(self, default_config):
        gateway = FeedGateway(default_config)
        gateway.fetch_collection = ScriptedFeed(_collection("a"))
        outcome = await gateway.refresh(manual=True)
        assert outcome.trigger == "manual"
        assert outcome.message == MANUAL_REFRESH_MESSAGE

    @pytest.mark.asyncio
    async def test_failure_keeps_last_known_good(self, default_config):
        gateway = FeedGateway(default_config)
        error = TransportError(FEED_URL, "HTTP 503", status_code=503)
        gateway.fetch_collection = ScriptedFeed(_collection("a", "b"), error)
        await gateway.refresh()

        outcome = await gateway.refresh(manual=True)
        assert outcome.ok is False
        assert outcome.message == REFRESH_FAILED_MESSAGE
        assert outcome.event_count == 2
        assert gateway.last_error is error
        assert [e.id for e in gateway.collection.events] == ["a", "b"]
        assert gateway.refresh_count == 1

    @pytest.mark.asyncio
    async def test_success_clears_last_error(self, default_config):
        gateway = FeedGateway(default_config)
        gateway.fetch_collection = ScriptedFeed(
            TransportError(FEED_URL, "HTTP 500", status_code=500), _collection("a"),
        )
        await gateway.refresh()
        assert gateway.loaded is False
        assert gateway.last_error is not None
        await gateway.refresh()
        assert gateway.last_error is None
        assert gateway.loaded is True

    @pytest.mark.asyncio
    async def test_superseded_refresh_not_applied(self, default_config):
        gateway = FeedGateway(default_config)
        gate = asyncio.Event()

        async def slow_fetch() -> EventCollection:
            await gate.wait()
            return _collection("old")

        gateway.fetch_collection = slow_fetch
        slow = asyncio.create_task(gateway.refresh())
        await asyncio.sleep(0)

        gateway.fetch_collection = ScriptedFeed(_collection("new"))
        fresh = await gateway.refresh(manual=True)
        assert fresh.applied is True

        gate.set()
        stale = await slow
        assert stale.ok is True
        assert stale.applied is False
        assert [e.id for e in gateway.collection.events] == ["new"]
        assert gateway.refresh_count == 1

    @pytest.mark.asyncio
    async def test_superseded_manual_refresh_still_acknowledged(self, default_config):
        gateway = FeedGateway(default_config)
        gate = asyncio.Event()

        async def slow_fetch() -> EventCollection:
            await gate.wait()
            return _collection("old", "older")

        gateway.fetch_collection = slow_fetch
        slow = asyncio.create_task(gateway.refresh(manual=True))
        await asyncio.sleep(0)

        gateway.fetch_collection = ScriptedFeed(_collection("new"))
        await gateway.refresh()

        gate.set()
        stale = await slow
        assert stale.applied is False
        assert stale.message == MANUAL_REFRESH_MESSAGE
        assert stale.event_count == 1

    @pytest.mark.asyncio
    @responses.activate
    async def test_fetches_configured_feed_over_http(self, default_config, sample_feed_response):
        responses.add(responses.GET, FEED_URL, json=sample_feed_response, status=200)
        gateway = FeedGateway(default_config)
        outcome = await gateway.refresh()
        assert outcome.ok is True
        assert outcome.event_count == 5
        assert responses.calls[0].request.url == FEED_URL


class TestAutoRefresh:
    @pytest.mark.asyncio
    async def test_timer_refreshes_and_notifies_listener(self, default_config):
        gateway = FeedGateway(default_config)
        feed = ScriptedFeed(_collection("a"))
        gateway.fetch_collection = feed
        seen = asyncio.Event()
        outcomes = []

        async def listener(outcome):
            outcomes.append(outcome)
            seen.set()

        try:
            assert start_auto_refresh(gateway, interval=0.01, listener=listener) is True
            await asyncio.wait_for(seen.wait(), timeout=2)
        finally:
            await stop_auto_refresh()

        assert outcomes[0].trigger == "auto"
        assert outcomes[0].message is None
        assert feed.calls >= 1
        assert is_auto_refresh_running() is False

    @pytest.mark.asyncio
    async def test_second_start_is_ignored(self, default_config):
        gateway = FeedGateway(default_config)
        try:
            assert start_auto_refresh(gateway, interval=60) is True
            assert start_auto_refresh(gateway, interval=60) is False
            assert is_auto_refresh_running() is True
        finally:
            await stop_auto_refresh()
        assert is_auto_refresh_running() is False

    @pytest.mark.asyncio
    async def test_stop_without_timer_is_noop(self):
        await stop_auto_refresh()
        assert is_auto_refresh_running() is False

    @pytest.mark.asyncio
    async def test_timer_survives_unexpected_errors(self, default_config, caplog):
        gateway = FeedGateway(default_config)
        gateway.fetch_collection = ScriptedFeed(AttributeError("malformed feed"), _collection("a"))
        outcomes = []

        def listener(outcome):
            outcomes.append(outcome)
            raise RuntimeError("listener blew up")

        try:
            start_auto_refresh(gateway, interval=0.01, listener=listener)
            for _ in range(200):
                if len(outcomes) >= 2:
                    break
                await asyncio.sleep(0.01)
            assert is_auto_refresh_running() is True
        finally:
            await stop_auto_refresh()
        assert len(outcomes) >= 2
        assert outcomes[0].ok is True
        assert gateway.loaded is True
        assert "Auto-refresh cycle failed" in caplog.text

    @pytest.mark.asyncio
    async def test_timer_survives_failed_refresh(self, default_config):
        gateway = FeedGateway(default_config)
        gateway.fetch_collection = ScriptedFeed(TransportError(FEED_URL, "HTTP 502"))
        outcomes = []

        def listener(outcome):
            outcomes.append(outcome)

        try:
            start_auto_refresh(gateway, interval=0.01, listener=listener)
            for _ in range(200):
                if len(outcomes) >= 2:
                    break
                await asyncio.sleep(0.01)
            assert is_auto_refresh_running() is True
        finally:
            await stop_auto_refresh()
        assert len(outcomes) >= 2
        assert all(not o.ok for o in outcomes)


class TestQuakeMonitor:
    @pytest.mark.asyncio
    async def test_activate_starts_single_timer(self, default_config):
        config = default_config.model_copy(update={"auto_refresh": True})
        first = QuakeMonitor(config)
        second = QuakeMonitor(config)
        first.gateway.fetch_collection = ScriptedFeed(_collection("a"))
        second.gateway.fetch_collection = ScriptedFeed(_collection("b"))
        try:
            outcome = await first.activate()
            await second.activate()
            assert outcome.ok is True
            assert first.owns_timer is True
            assert second.owns_timer is False

            await second.deactivate()
            assert is_auto_refresh_running() is True
        finally:
            await first.deactivate()
        assert is_auto_refresh_running() is False

    @pytest.mark.asyncio
    async def test_reactivate_keeps_timer_ownership(self, default_config):
        config = default_config.model_copy(update={"auto_refresh": True})
        monitor = QuakeMonitor(config)
        monitor.gateway.fetch_collection = ScriptedFeed(_collection("a"))
        try:
            await monitor.activate()
            await monitor.activate()
            assert monitor.owns_timer is True
        finally:
            await monitor.deactivate()
        assert is_auto_refresh_running() is False

    @pytest.mark.asyncio
    async def test_activate_without_auto_refresh(self, default_config):
        monitor = QuakeMonitor(default_config)
        monitor.gateway.fetch_collection = ScriptedFeed(_collection("a"))
        await monitor.activate()
        assert monitor.auto_refreshing is False
        assert monitor.view.stats.total == 1
        await monitor.deactivate()

    @pytest.mark.asyncio
    async def test_ensure_loaded_fetches_once(self, default_config):
        monitor = QuakeMonitor(default_config)
        feed = ScriptedFeed(_collection("a"))
        monitor.gateway.fetch_collection = feed
        await monitor.ensure_loaded()
        await monitor.ensure_loaded()
        assert feed.calls == 1

    @pytest.mark.asyncio
    async def test_deactivate_clears_selection(self, default_config):
        monitor = QuakeMonitor(default_config)
        monitor.gateway.fetch_collection = ScriptedFeed(_collection("a"))
        await monitor.refresh()
        view = await monitor.select("missing")
        assert monitor.selection.current is view
        await monitor.deactivate()
        assert monitor.selection.current is None
