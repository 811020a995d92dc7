"""Tests for the dashboard media player entity (no Remote attached)."""

from __future__ import annotations

import asyncio

import pytest
import ucapi
from ucapi import StatusCodes

from uc_intg_nasahub.config import Config
from uc_intg_nasahub.dashboard import PageResult
from uc_intg_nasahub.media_player import DashboardMediaPlayer

Attributes = ucapi.media_player.Attributes
Commands = ucapi.media_player.Commands
States = ucapi.media_player.States


class StubDashboard:
    """Records page loads. With ``hold`` every load stays pending until cancelled."""

    def __init__(self, page_ids, hold=False):
        self.page_ids = page_ids
        self.hold = hold
        self.loads: list[str] = []
        self.started = asyncio.Event()

    async def load_page(self, page_id):
        self.loads.append(page_id)
        self.started.set()
        if self.hold:
            await asyncio.sleep(3600)
        return PageResult(page_id=page_id)


@pytest.fixture
def hub_config(tmp_path):
    return Config(str(tmp_path / "config.json"))


@pytest.fixture
def make_player(hub_config):
    """Player bound to a stub dashboard over the real page catalog."""

    def _make(hold=False):
        dashboard = StubDashboard(list(hub_config.pages), hold=hold)
        return DashboardMediaPlayer(hub_config, dashboard), dashboard

    return _make


async def _settle():
    await asyncio.sleep(0.05)


class TestSelectSource:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("params", [None, {}, {"page": "Mars Rover"}])
    async def test_missing_source_is_bad_request(self, params, make_player):
        player, dashboard = make_player()

        status = await player._handle_command(player, Commands.SELECT_SOURCE, params)

        assert status == StatusCodes.BAD_REQUEST
        assert dashboard.loads == []

    @pytest.mark.asyncio
    async def test_unknown_source_is_not_found(self, make_player):
        player, dashboard = make_player()

        status = await player._handle_command(player, Commands.SELECT_SOURCE, {"source": "Pluto Base"})

        assert status == StatusCodes.NOT_FOUND
        assert player.current_page == "apod"
        assert dashboard.loads == []

    @pytest.mark.asyncio
    async def test_known_source_loads_and_renders(self, make_player):
        player, dashboard = make_player()

        status = await player._handle_command(player, Commands.SELECT_SOURCE, {"source": "Exoplanet Explorer"})
        await _settle()

        assert status == StatusCodes.OK
        assert player.current_page == "exoplanets"
        assert dashboard.loads == ["exoplanets"]
        assert player.attributes[Attributes.SOURCE] == "Exoplanet Explorer"
        assert player.attributes[Attributes.STATE] == States.PLAYING
        assert player.attributes[Attributes.MEDIA_TITLE] == "Nothing to show"

        await player.shutdown()


class TestPageStepping:
    @pytest.mark.asyncio
    async def test_previous_wraps_to_last_page(self, make_player, hub_config):
        player, _ = make_player()

        await player._handle_command(player, Commands.PREVIOUS)

        assert player.current_page == list(hub_config.pages)[-1]
        await _settle()
        await player.shutdown()

    @pytest.mark.asyncio
    async def test_next_wraps_to_first_page(self, make_player, hub_config):
        player, _ = make_player()
        page_ids = list(hub_config.pages)

        for _ in page_ids:
            await player._handle_command(player, Commands.NEXT)

        assert player.current_page == page_ids[0]
        await _settle()
        await player.shutdown()

    @pytest.mark.asyncio
    async def test_media_commands_are_ignored(self, make_player):
        player, dashboard = make_player()

        assert await player._handle_command(player, Commands.PLAY_PAUSE) == StatusCodes.OK
        assert dashboard.loads == []


class TestUpdateLifecycle:
    @pytest.mark.asyncio
    async def test_off_stops_refresh_loop_and_loads(self, make_player, monkeypatch):
        player, dashboard = make_player(hold=True)
        monkeypatch.setattr(player, "_refresh_seconds", lambda: 0)

        player._start_refresh_loop()
        refresh_task = player._refresh_task
        await asyncio.wait_for(dashboard.started.wait(), 1)

        status = await asyncio.wait_for(player._handle_command(player, Commands.OFF), 1)

        assert status == StatusCodes.OK
        assert refresh_task.done()
        assert player._page_loads == {}
        assert player.attributes[Attributes.STATE] == States.OFF

        loads = list(dashboard.loads)
        await _settle()
        assert dashboard.loads == loads

    @pytest.mark.asyncio
    async def test_on_starts_one_refresh_loop(self, make_player):
        player, dashboard = make_player()

        await player._handle_command(player, Commands.ON)
        first = player._refresh_task
        await player._handle_command(player, Commands.ON)
        await _settle()

        assert player._refresh_task is first
        assert not first.done()
        assert set(dashboard.loads) == {"apod"}

        await player.shutdown()
        assert first.done()

    @pytest.mark.asyncio
    async def test_shutdown_cancels_pending_page_load(self, make_player):
        player, dashboard = make_player(hold=True)

        await player._show_page("space_weather")
        await asyncio.wait_for(dashboard.started.wait(), 1)
        load_task = player._page_loads["space_weather"]

        await player.shutdown()

        assert load_task.cancelled()
        assert player.attributes[Attributes.STATE] == States.BUFFERING


class TestUseDashboard:
    @pytest.mark.asyncio
    async def test_in_flight_load_is_redone_on_new_dashboard(self, make_player, hub_config):
        player, old = make_player(hold=True)
        await player._show_page("mars_rover")
        await asyncio.wait_for(old.started.wait(), 1)
        old_load = player._page_loads["mars_rover"]

        new = StubDashboard(list(hub_config.pages))
        await player.use_dashboard(new)
        await _settle()

        assert old_load.cancelled()
        assert new.loads == ["mars_rover"]
        assert player.attributes[Attributes.MEDIA_TITLE] == "Nothing to show"
        await player.shutdown()

    @pytest.mark.asyncio
    async def test_idle_player_does_not_reload(self, make_player, hub_config):
        player, _ = make_player()
        new = StubDashboard(list(hub_config.pages))

        await player.use_dashboard(new)
        await _settle()

        assert new.loads == []
