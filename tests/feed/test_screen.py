"""Tests for remark.feed.screen."""

from datetime import date

import pytest

from remark.core.config import Config
from remark.core.events import SCREEN_MOUNTED, SCREEN_UNMOUNTED, SUBSCRIPTION_FAILED, VIEW_MODE_CHANGED, EventBus
from remark.core.exceptions import InvalidDayIdError
from remark.feed.models import ViewMode, Window
from remark.feed.screen import FeedScreen


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
async def screen(store, tmp_config_file, clock, bus):
    screen = FeedScreen(store, Config(config_file=tmp_config_file, env_prefix=""), today=clock, bus=bus)
    await screen.mount()
    yield screen
    await screen.unmount()


class TestLifecycle:
    async def test_grid_mode_keeps_trailing_window_live(self, screen):
        assert screen.mode is ViewMode.GRID
        assert screen.engine.window == Window("2024-06-16", "2024-07-15")
        assert len(screen.engine.data) == 10

    async def test_mount_and_unmount_events(self, store, tmp_config_file, clock, bus):
        names = []
        bus.on_all(lambda e: names.append(e.name))
        async with FeedScreen(store, Config(config_file=tmp_config_file, env_prefix=""), today=clock, bus=bus):
            pass
        assert SCREEN_MOUNTED in names
        assert names[-1] == SCREEN_UNMOUNTED

    async def test_unmount_removes_resubscribe_hook(self, store, tmp_config_file, clock, bus):
        screen = FeedScreen(store, Config(config_file=tmp_config_file, env_prefix=""), today=clock, bus=bus)
        assert bus.listener_count(SUBSCRIPTION_FAILED) == 0

        await screen.mount()
        await screen.mount()
        assert bus.listener_count(SUBSCRIPTION_FAILED) == 1

        await screen.unmount()
        assert bus.listener_count(SUBSCRIPTION_FAILED) == 0

        await screen.mount()
        try:
            store.fail_subscriptions(OSError("stream closed"))
            await screen.engine.drain()
            assert screen.engine.synchronizer.active
        finally:
            await screen.unmount()

    async def test_default_config(self, store, clock):
        async with FeedScreen(store, today=clock) as screen:
            assert screen.engine.window == Window("2024-03-18", "2024-07-15")
            assert len(screen.month_list) == 12


class TestViewModes:
    async def test_cycle_through_modes(self, screen, bus):
        changes = []
        bus.on(VIEW_MODE_CHANGED, lambda e: changes.append((e.payload["from"], e.payload["to"])))

        assert screen.view_button_label == "List"
        assert screen.cycle_view_mode() is ViewMode.LIST
        assert screen.view_button_label == "Calendar"
        assert screen.cycle_view_mode() is ViewMode.CALENDAR
        await screen.engine.drain()

        assert changes == [("GRID", "LIST"), ("LIST", "CALENDAR")]
        # Calendar keeps every displayed month live
        assert screen.engine.window == Window("2024-06-01", "2024-07-31")
        assert screen.engine.get("2024-06-01") is not None

    async def test_pinch_out_to_calendar(self, screen):
        screen.gesture.touch_move([(0, 0), (0, 200)])
        assert screen.gesture.touch_move([(0, 0), (0, 150)]) is ViewMode.CALENDAR
        await screen.engine.drain()
        assert screen.engine.window == screen.months.window()

    async def test_initial_mode_from_config(self, store, tmp_config_file, clock):
        config = Config(config_file=tmp_config_file, env_prefix="")
        config.set("view.initial_mode", "calendar")
        async with FeedScreen(store, config, today=clock) as screen:
            assert screen.mode is ViewMode.CALENDAR
            assert screen.engine.window == Window("2024-06-01", "2024-07-31")


class TestCalendar:
    async def test_load_more_months_widens_live_window(self, screen):
        screen.cycle_view_mode()
        screen.cycle_view_mode()
        await screen.engine.drain()

        added = screen.load_more_months()
        await screen.engine.drain()

        assert len(added) == 6
        assert screen.month_list[0].label == "December 2023"
        assert screen.engine.window.start == "2023-12-01"
        assert screen.engine.get_cover("2023-12-25") == "thumb/1225.jpg"

    async def test_widened_window_drops_day_deleted_after_point_read(self, screen, store):
        screen.engine.on_viewable_items_changed(["2023-12-25"])
        await screen.engine.settle()
        assert screen.engine.get_title("2023-12-25") == "Christmas"

        await store.delete("2023-12-25")
        screen.gesture.set_mode(ViewMode.CALENDAR)
        screen.load_more_months()
        await screen.engine.drain()

        assert screen.engine.window.start == "2023-12-01"
        assert screen.engine.get("2023-12-25") is None
        december = screen.month_list[0]
        cells = {c.iso: c for c in screen.calendar_cells(december)}
        assert cells["2023-12-25"].cover_ref is None

    async def test_load_more_months_in_grid_keeps_window(self, screen):
        window = screen.engine.window
        screen.load_more_months()
        await screen.engine.drain()
        assert screen.engine.window == window

    async def test_calendar_cells(self, screen):
        july = screen.month_list[-1]
        cells = {c.iso: c for c in screen.calendar_cells(july)}

        assert cells["2024-07-14"].cover_ref == "thumb/0714.jpg"
        assert cells["2024-07-15"].is_today
        assert not cells["2024-07-16"].navigable
        assert not cells["2024-06-30"].in_current_month

    async def test_refresh_today_rolls_calendar_over(self, screen, clock):
        screen.cycle_view_mode()
        screen.cycle_view_mode()
        await screen.engine.drain()

        assert screen.refresh_today() is False
        clock.today = date(2024, 8, 1)
        assert screen.refresh_today() is True
        await screen.engine.drain()

        assert screen.month_list[-1].label == "August 2024"
        assert screen.engine.window.end == "2024-08-31"


class TestNavigation:
    async def test_open_day(self, screen):
        assert screen.open_day("2024-07-14") == "2024-07-14"
        assert screen.open_day("2024-07-15") == "2024-07-15"
        assert screen.open_day("2024-07-16") is None
        with pytest.raises(InvalidDayIdError):
            screen.open_day("tomorrow")


class TestResubscribe:
    async def test_lost_subscription_is_reestablished(self, screen, store):
        store.fail_subscriptions(OSError("stream closed"))
        await screen.engine.drain()

        assert screen.engine.synchronizer.active
        assert store.subscription_count == 1

    async def test_gives_up_after_repeated_failures(self, screen, store):
        screen.engine.synchronizer.consecutive_failures = screen.max_resubscribe_attempts
        store.fail_subscriptions(OSError("stream closed"))
        await screen.engine.drain()

        assert not screen.engine.synchronizer.active
        assert store.subscription_count == 0
