"""
Setup flow for NASA Data Hub integration.

:copyright: (c) 2025 by Meir Miyara.
:license: MPL-2.0, see LICENSE for more details.
"""

import logging
from typing import Any, Awaitable, Callable, Dict

import ucapi

from uc_intg_nasahub import feeds
from uc_intg_nasahub.client import FeedFetcher
from uc_intg_nasahub.config import ROVERS, Config

_LOG = logging.getLogger(__name__)

FetcherFactory = Callable[[str], FeedFetcher]


class DashboardSetup:
    """Setup handler: collects the API key and page options, then validates the key."""

    def __init__(
        self,
        config: Config,
        setup_complete_callback: Callable[[], Awaitable[None]],
        fetcher_factory: FetcherFactory = FeedFetcher,
    ):
        """Initialize setup handler."""
        self._config = config
        self._setup_complete_callback = setup_complete_callback
        self._fetcher_factory = fetcher_factory

    async def setup_handler(self, driver_setup_request: ucapi.SetupDriver) -> ucapi.SetupAction:
        """
        Handle driver setup requests.

        :param driver_setup_request: setup request from the Remote
        :return: setup action response
        """
        _LOG.debug("Setup handler called: %s", type(driver_setup_request).__name__)

        if isinstance(driver_setup_request, ucapi.DriverSetupRequest):
            if driver_setup_request.setup_data and "api_key" in driver_setup_request.setup_data:
                return await self._apply_settings(driver_setup_request.setup_data)
            return self._settings_form()
        elif isinstance(driver_setup_request, ucapi.UserDataResponse):
            return await self._apply_settings(driver_setup_request.input_values)
        elif isinstance(driver_setup_request, ucapi.UserConfirmationResponse):
            _LOG.debug("User confirmation: %s", driver_setup_request.confirm)
            if driver_setup_request.confirm:
                return ucapi.SetupComplete()
            return ucapi.SetupError(ucapi.IntegrationSetupError.OTHER)
        elif isinstance(driver_setup_request, ucapi.AbortDriverSetup):
            _LOG.debug("Setup aborted: %s", driver_setup_request.error)
            return ucapi.SetupError(driver_setup_request.error)
        else:
            _LOG.error("Unknown setup request type: %s", type(driver_setup_request))
            return ucapi.SetupError(ucapi.IntegrationSetupError.OTHER)

    def _settings_form(self, warning: str = "") -> ucapi.RequestUserInput:
        key_label = "NASA API Key (free at api.nasa.gov; DEMO_KEY works with a 30 req/hour limit)"
        if warning:
            key_label = f"⚠️ {warning}\n\n{key_label}"

        return ucapi.RequestUserInput(
            title="NASA Data Hub Configuration",
            settings=[
                {
                    "id": "api_key",
                    "label": {"en": key_label},
                    "field": {"text": {"value": self._config.get("api_key", ""), "placeholder": "Get free key at api.nasa.gov"}},
                },
                {
                    "id": "rover",
                    "label": {"en": "Mars rover"},
                    "field": {"dropdown": {
                        "value": self._config.rover,
                        "items": [{"id": rover, "label": {"en": rover.title()}} for rover in ROVERS],
                    }},
                },
                {
                    "id": "sol",
                    "label": {"en": "Martian sol for rover photos"},
                    "field": {"number": {"value": self._config.sol, "min": 0, "max": 5000, "steps": 1}},
                },
                {
                    "id": "media_query",
                    "label": {"en": "NASA media search"},
                    "field": {"text": {"value": self._config.media_query, "placeholder": "e.g. nebula"}},
                },
                {
                    "id": "refresh_interval",
                    "label": {"en": "Page refresh interval (minutes)"},
                    "field": {"number": {"value": self._config.refresh_interval, "min": 5, "max": 60, "steps": 5}},
                },
                {
                    "id": "force_setup",
                    "label": {"en": "Finish setup even if the API key check fails"},
                    "field": {"checkbox": {"value": False}},
                }
            ]
        )

    async def _apply_settings(self, values: Dict[str, Any]) -> ucapi.SetupAction:
        """Save submitted settings, validate the key, and finish or re-ask."""
        _LOG.debug("Received settings: %s", list(values.keys()))

        try:
            refresh_interval = int(values.get("refresh_interval", 60))
            sol = int(values.get("sol", 1000))
        except (TypeError, ValueError) as ex:
            _LOG.error("Invalid setup values: %s", ex)
            return ucapi.SetupError(ucapi.IntegrationSetupError.OTHER)

        if refresh_interval < 5 or refresh_interval > 60 or sol < 0:
            return ucapi.SetupError(ucapi.IntegrationSetupError.OTHER)

        api_key = str(values.get("api_key", "")).strip()
        force_setup = str(values.get("force_setup", False)).lower() == "true"

        self._config.update({
            "api_key": api_key,
            "rover": str(values.get("rover", "curiosity")).strip().lower(),
            "sol": sol,
            "media_query": str(values.get("media_query", "")).strip(),
            "refresh_interval": refresh_interval,
        })

        if force_setup:
            _LOG.info("🔧 Setup forced by user - skipping API key check")
        elif self._config.api_key:
            error = await self._check_api_key(self._config.api_key)
            if error:
                _LOG.warning("⚠️ API key check failed: %s", error)
                return self._settings_form(error)
        else:
            _LOG.info("No API key configured; only keyless pages will load")

        await self._setup_complete_callback()
        return ucapi.SetupComplete()

    async def _check_api_key(self, api_key: str) -> str:
        """Fetch APOD once with the key; return an error message, or '' on success."""
        async with self._fetcher_factory(api_key) as fetcher:
            result = await fetcher.fetch(feeds.APOD)

        if result.is_error:
            return result.error or "NASA API key check failed"
        _LOG.info("✅ API key check passed")
        return ""
