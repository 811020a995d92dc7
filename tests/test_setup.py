"""Tests for the setup flow (the API key check is stubbed)."""

from __future__ import annotations

import pytest
import ucapi

from uc_intg_nasahub.config import Config
from uc_intg_nasahub.models import ApodRecord
from uc_intg_nasahub.result import FeedResult
from uc_intg_nasahub.setup import DashboardSetup

SETTINGS = {
    "api_key": "abc123",
    "rover": "Spirit",
    "sol": "77",
    "media_query": " apollo 11 ",
    "refresh_interval": "30",
}


class StubFetcher:
    def __init__(self, result):
        self.result = result
        self.fetched: list[str] = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def fetch(self, feed, request=None):
        self.fetched.append(feed.feed_id)
        return self.result


class SetupHarness:
    """DashboardSetup wired to a stub fetcher factory and a counting callback."""

    def __init__(self, config, result):
        self.result = result
        self.keys: list[str] = []
        self.completed = 0
        self.setup = DashboardSetup(config, self._on_complete, fetcher_factory=self._factory)

    def _factory(self, api_key):
        self.keys.append(api_key)
        return StubFetcher(self.result)

    async def _on_complete(self):
        self.completed += 1


@pytest.fixture
def hub_config(tmp_path, monkeypatch):
    monkeypatch.delenv("NASA_API_KEY", raising=False)
    return Config(str(tmp_path / "config.json"))


@pytest.fixture
def harness(hub_config):
    def _make(result=None):
        return SetupHarness(hub_config, result or FeedResult.with_data("apod", ApodRecord(title="Pillars")))

    return _make


class TestApplySettings:
    @pytest.mark.asyncio
    async def test_valid_key_completes_and_saves(self, harness, hub_config):
        h = harness()

        action = await h.setup._apply_settings(dict(SETTINGS))

        assert isinstance(action, ucapi.SetupComplete)
        assert h.keys == ["abc123"]
        assert h.completed == 1
        assert hub_config.rover == "spirit"
        assert hub_config.sol == 77
        assert hub_config.media_query == "apollo 11"
        assert hub_config.refresh_interval == 30

    @pytest.mark.asyncio
    async def test_rejected_key_shows_form_with_warning(self, harness):
        h = harness(FeedResult.failure("apod", "API Error: 403 Forbidden - An invalid api_key was supplied."))

        action = await h.setup._apply_settings(dict(SETTINGS))

        assert isinstance(action, ucapi.RequestUserInput)
        key_field = action.settings[0]
        assert key_field["id"] == "api_key"
        assert "An invalid api_key was supplied." in key_field["label"]["en"]
        assert h.completed == 0

    @pytest.mark.asyncio
    async def test_force_setup_skips_key_check(self, harness):
        h = harness(FeedResult.failure("apod", "API Error: 503 Service Unavailable"))

        action = await h.setup._apply_settings({**SETTINGS, "force_setup": "true"})

        assert isinstance(action, ucapi.SetupComplete)
        assert h.keys == []
        assert h.completed == 1

    @pytest.mark.asyncio
    async def test_blank_key_completes_without_check(self, harness, hub_config):
        h = harness()

        action = await h.setup._apply_settings({**SETTINGS, "api_key": "  "})

        assert isinstance(action, ucapi.SetupComplete)
        assert h.keys == []
        assert hub_config.api_key == ""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("overrides", [
        {"refresh_interval": "1"},
        {"refresh_interval": "90"},
        {"refresh_interval": "hourly"},
        {"sol": "-3"},
    ])
    async def test_out_of_range_values_fail(self, overrides, harness, hub_config):
        h = harness()

        action = await h.setup._apply_settings({**SETTINGS, **overrides})

        assert isinstance(action, ucapi.SetupError)
        assert h.keys == []
        assert h.completed == 0
        assert hub_config.refresh_interval == 60


class TestSetupHandler:
    @pytest.mark.asyncio
    async def test_first_request_shows_form(self, harness):
        h = harness()

        action = await h.setup.setup_handler(ucapi.DriverSetupRequest(reconfigure=False, setup_data={}))

        assert isinstance(action, ucapi.RequestUserInput)
        assert [field["id"] for field in action.settings] == [
            "api_key", "rover", "sol", "media_query", "refresh_interval", "force_setup"
        ]

    @pytest.mark.asyncio
    async def test_user_data_response_applies_settings(self, harness):
        h = harness()

        action = await h.setup.setup_handler(ucapi.UserDataResponse(input_values=dict(SETTINGS)))

        assert isinstance(action, ucapi.SetupComplete)
        assert h.keys == ["abc123"]
