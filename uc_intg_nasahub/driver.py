#!/usr/bin/env python3
"""
NASA Data Hub integration driver.

:copyright: (c) 2025 by Meir Miyara.
:license: MPL-2.0, see LICENSE for more details.
"""
import asyncio
import logging
import os
import signal
from typing import Optional

import ucapi

from uc_intg_nasahub.client import FeedFetcher
from uc_intg_nasahub.config import Config
from uc_intg_nasahub.dashboard import Dashboard
from uc_intg_nasahub.media_player import DashboardMediaPlayer
from uc_intg_nasahub.setup import DashboardSetup

_LOG = logging.getLogger(__name__)

api: Optional[ucapi.IntegrationAPI] = None
fetcher: Optional[FeedFetcher] = None
dashboard: Optional[Dashboard] = None
hub_config: Optional[Config] = None
media_player: Optional[DashboardMediaPlayer] = None


def configure_logging() -> None:
    logging.basicConfig(
        level=os.environ.get("UC_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s | %(levelname)8s | %(name)s | %(message)s"
    )
    logging.getLogger("aiohttp").setLevel(logging.WARNING)


async def _rebuild_fetcher() -> None:
    """Replace the fetcher so it carries the currently configured API key."""
    global fetcher, dashboard

    old_fetcher = fetcher
    fetcher = FeedFetcher(hub_config.api_key)
    dashboard = Dashboard(hub_config, fetcher)

    if media_player:
        await media_player.use_dashboard(dashboard)

    if old_fetcher:
        await old_fetcher.close()

    if not fetcher.has_api_key:
        _LOG.warning("No NASA API key configured; key-based pages will show a configuration error")


async def on_setup_complete():
    """Callback executed when driver setup is complete."""
    global media_player
    _LOG.info("Setup complete. Creating entities...")

    if not api or not hub_config:
        _LOG.error("Cannot create entities: API or configuration not initialized.")
        return

    try:
        await _rebuild_fetcher()

        if not media_player:
            _LOG.info("Creating NASA Data Hub media player entity")
            media_player = DashboardMediaPlayer(hub_config, dashboard)
            media_player.attach(api)
            api.available_entities.add(media_player)
            _LOG.info("Added media player entity: %s", media_player.id)

        await api.set_device_state(ucapi.DeviceStates.CONNECTED)

    except Exception as ex:
        _LOG.error("Error creating entities: %s", ex, exc_info=True)
        await api.set_device_state(ucapi.DeviceStates.ERROR)


async def on_r2_connect():
    """Handle Remote connection."""
    _LOG.info("Remote connected.")

    if api and media_player:
        await api.set_device_state(ucapi.DeviceStates.CONNECTED)
    else:
        _LOG.info("Integration not configured yet.")


async def on_disconnect():
    """Handle Remote disconnection."""
    _LOG.info("Remote disconnected.")

    if media_player:
        await media_player.shutdown()


async def on_subscribe_entities(entity_ids: list[str]):
    """Handle entity subscription."""
    _LOG.info("Entities subscribed: %s", entity_ids)

    for entity_id in entity_ids:
        if media_player and entity_id == media_player.id:
            try:
                await media_player.push_initial_state()
                _LOG.info("NASA Data Hub media player ready")
            except Exception as ex:
                _LOG.error("Error initializing media player: %s", ex, exc_info=True)


async def on_unsubscribe_entities(entity_ids: list[str]):
    """Handle entity unsubscription from Remote."""
    _LOG.info("Remote unsubscribed from entities: %s", entity_ids)

    for entity_id in entity_ids:
        if media_player and entity_id == media_player.id:
            await media_player.shutdown()


def _find_driver_json() -> str:
    project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    for candidate in (os.path.join(project_root, "driver.json"), "driver.json"):
        if os.path.exists(candidate):
            return candidate
    raise FileNotFoundError("driver.json not found")


async def init_integration(loop: asyncio.AbstractEventLoop):
    """Initialize the integration objects and API."""
    global api, hub_config

    driver_json_path = _find_driver_json()
    _LOG.info("Using driver.json from: %s", driver_json_path)

    api = ucapi.IntegrationAPI(loop)

    config_path = os.path.join(api.config_dir_path, "config.json")
    _LOG.info("Using config file: %s", config_path)
    hub_config = Config(config_path)

    setup_handler = DashboardSetup(hub_config, on_setup_complete)

    await api.init(driver_json_path, setup_handler.setup_handler)

    api.add_listener(ucapi.Events.CONNECT, on_r2_connect)
    api.add_listener(ucapi.Events.DISCONNECT, on_disconnect)
    api.add_listener(ucapi.Events.SUBSCRIBE_ENTITIES, on_subscribe_entities)
    api.add_listener(ucapi.Events.UNSUBSCRIBE_ENTITIES, on_unsubscribe_entities)

    _LOG.info("Integration API initialized successfully")


async def main(loop: asyncio.AbstractEventLoop):
    """Main entry point."""
    _LOG.info("Starting NASA Data Hub Integration Driver")

    try:
        await init_integration(loop)
        await on_setup_complete()
        _LOG.info("Integration is running. Press Ctrl+C to stop.")

    except Exception as ex:
        _LOG.error("Failed to start integration: %s", ex, exc_info=True)
        if api:
            await api.set_device_state(ucapi.DeviceStates.ERROR)
        raise


async def cleanup(loop: asyncio.AbstractEventLoop):
    """Close the HTTP session, stop the entity and cancel remaining tasks."""
    try:
        if media_player:
            _LOG.info("Shutting down media player...")
            await media_player.shutdown()

        if fetcher:
            _LOG.info("Closing feed fetcher...")
            await fetcher.close()

        tasks = [t for t in asyncio.all_tasks(loop) if t is not asyncio.current_task()]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    except Exception as ex:
        _LOG.error("Error during cleanup: %s", ex)
    finally:
        _LOG.info("Stopping event loop...")
        loop.stop()


def run():
    """Run the driver until interrupted."""
    configure_logging()

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    def shutdown_handler(signum, frame):
        _LOG.warning("Received signal %s. Shutting down...", signum)
        loop.call_soon_threadsafe(lambda: loop.create_task(cleanup(loop)))

    signal.signal(signal.SIGINT, shutdown_handler)
    signal.signal(signal.SIGTERM, shutdown_handler)

    try:
        loop.run_until_complete(main(loop))
        loop.run_forever()
    except (KeyboardInterrupt, asyncio.CancelledError):
        _LOG.info("Driver stopped.")
    finally:
        if not loop.is_closed():
            _LOG.info("Closing event loop...")
            loop.close()


if __name__ == "__main__":
    run()
