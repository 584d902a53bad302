"""Tests for the reclassification scheduler and the dashboard view."""

import asyncio
from datetime import date, datetime

import pytest

from reservation_dashboard.configuration import Configuration
from reservation_dashboard.dashboard import Dashboard, build_provider
from reservation_dashboard.providers import MockProvider, SheetProvider
from reservation_dashboard.scheduler import RefreshScheduler
from reservation_dashboard.schemas import Lateness
from reservation_dashboard.store import REFRESH_ERROR, ReservationStore


class Clock:
    """Settable clock for the dashboard."""

    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


class TestRefreshScheduler:
    """Test the periodic reclassification trigger."""

    def test_ticks_until_stopped(self):
        """Test the callback fires repeatedly and stops cleanly."""
        ticks = []

        async def scenario():
            scheduler = RefreshScheduler(lambda: ticks.append(1), interval=0.01)
            scheduler.start()
            await asyncio.sleep(0.1)
            await scheduler.stop()
            count = len(ticks)
            await asyncio.sleep(0.05)
            return scheduler, count

        scheduler, count = asyncio.run(scenario())
        assert count >= 2
        assert len(ticks) == count
        assert not scheduler.running

    def test_start_is_idempotent(self):
        async def scenario():
            scheduler = RefreshScheduler(lambda: None, interval=60)
            scheduler.start()
            task = scheduler._task
            scheduler.start()
            assert scheduler._task is task
            await scheduler.stop()
            assert task.cancelled()

        asyncio.run(scenario())

    def test_context_manager_leaves_no_task(self):
        """Test leaving the context cancels the timer task."""

        async def scenario():
            async with RefreshScheduler(lambda: None, interval=60) as scheduler:
                assert scheduler.running
            assert not scheduler.running
            pending = [t for t in asyncio.all_tasks() if t is not asyncio.current_task()]
            assert pending == []

        asyncio.run(scenario())

    def test_failing_tick_does_not_stop_schedule(self):
        """Test an exception in the callback is logged and ticking continues."""
        calls = []

        def on_tick():
            calls.append(1)
            raise RuntimeError("render failed")

        async def scenario():
            async with RefreshScheduler(on_tick, interval=0.01):
                await asyncio.sleep(0.1)

        asyncio.run(scenario())
        assert len(calls) >= 2

    def test_stop_without_start(self):
        asyncio.run(RefreshScheduler(lambda: None).stop())

    def test_interval_must_be_positive(self):
        with pytest.raises(ValueError):
            RefreshScheduler(lambda: None, interval=0)


class TestDashboard:
    """Test the memoized dashboard view."""

    @pytest.fixture
    def clock(self):
        return Clock(datetime(2024, 3, 10, 13, 5))

    @pytest.fixture
    def dashboard(self, mock_provider, clock):
        dashboard = Dashboard(ReservationStore(mock_provider), interval=60, clock=clock)
        asyncio.run(dashboard.store.refresh())
        return dashboard

    def test_view_buckets(self, dashboard):
        """Test the view splits reservations and classifies them."""
        view = dashboard.view()
        assert view.today == date(2024, 3, 10)
        assert [c.reservation.id for c in view.today_lunch] == ["1"]
        assert [c.reservation.id for c in view.today_dinner] == ["2"]
        assert [c.reservation.id for c in view.future] == ["3"]
        assert view.today_lunch[0].lateness == Lateness.ON_TIME
        assert view.today_dinner[0].lateness == Lateness.ARRIVED
        assert view.future[0].lateness == Lateness.ON_TIME

    def test_view_is_memoized_until_tick(self, dashboard, clock):
        """Test lateness only advances when the scheduler ticks."""
        first = dashboard.view()
        clock.now = datetime(2024, 3, 10, 13, 16)
        second = dashboard.view()
        assert second.today_lunch is first.today_lunch
        assert second.today_lunch[0].lateness == Lateness.ON_TIME

        dashboard.invalidate()
        third = dashboard.view()
        assert third.today_lunch[0].lateness == Lateness.LATE_CRITICAL

    def test_store_change_invalidates_view(self, dashboard):
        """Test an optimistic update shows up without waiting for a tick."""
        assert dashboard.view().today_lunch[0].lateness == Lateness.ON_TIME

        async def scenario():
            dashboard.store.set_arrived("1", True)
            view = dashboard.view()
            await dashboard.store.drain()
            return view

        view = asyncio.run(scenario())
        assert view.today_lunch[0].lateness == Lateness.ARRIVED

    def test_explicit_now_bypasses_memo(self, dashboard):
        view = dashboard.view(now=datetime(2024, 3, 10, 13, 11))
        assert view.today_lunch[0].lateness == Lateness.LATE_WARN

    def test_view_reports_error(self, dashboard, mock_provider):
        """Test loading and error status are always current."""
        mock_provider.fail_next()
        asyncio.run(dashboard.store.refresh())
        view = dashboard.view()
        assert view.error == REFRESH_ERROR
        assert view.is_loading is False
        assert len(view.today_lunch) == 1

    def test_start_and_stop(self, mock_provider, clock):
        """Test the dashboard loads on start and tears the timer down on stop."""
        dashboard = Dashboard(ReservationStore(mock_provider), interval=0.01, clock=clock)

        async def scenario():
            await dashboard.start()
            assert dashboard.scheduler.running
            await asyncio.sleep(0.05)
            await dashboard.stop()

        asyncio.run(scenario())
        assert len(dashboard.store.reservations) == 3
        assert dashboard.tick >= 1
        assert not dashboard.scheduler.running
        assert mock_provider.calls == ["list_reservations"]


class TestBuildProvider:
    """Test provider selection from configuration."""

    def test_sheet_provider(self):
        config = Configuration(RESERVATIONS_PROVIDER="sheet", SHEET_APP_URL="https://example.com/exec")
        assert isinstance(build_provider(config), SheetProvider)

    def test_mock_provider(self):
        config = Configuration(RESERVATIONS_PROVIDER="MOCK")
        assert isinstance(build_provider(config), MockProvider)

    def test_unknown_provider(self):
        with pytest.raises(ValueError, match="Unknown"):
            build_provider(Configuration(RESERVATIONS_PROVIDER="postgres"))

    def test_from_environment(self, monkeypatch):
        """Test configuration is read from environment variables."""
        monkeypatch.setenv("RESERVATIONS_PROVIDER", "mock")
        monkeypatch.setenv("REFRESH_INTERVAL_SECONDS", "30")
        dashboard = Dashboard.from_configuration()
        assert isinstance(dashboard.store._provider, MockProvider)
        assert dashboard.scheduler._interval == 30
