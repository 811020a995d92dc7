"""
NASA Data Hub media player: one dashboard page per source.

:copyright: (c) 2025 by Meir Miyara.
:license: MPL-2.0, see LICENSE for more details.
"""

import asyncio
import base64
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Optional

import ucapi
from ucapi import StatusCodes

from uc_intg_nasahub.config import Config
from uc_intg_nasahub.dashboard import Dashboard
from uc_intg_nasahub.render import render_page

_LOG = logging.getLogger(__name__)

CommandHandler = Callable[[ucapi.Entity, str, dict[str, Any] | None], Awaitable[StatusCodes]]

SUPPRESS_MEDIA_COMMANDS = [
    ucapi.media_player.Commands.PLAY_PAUSE,
    ucapi.media_player.Commands.SHUFFLE,
    ucapi.media_player.Commands.REPEAT,
    ucapi.media_player.Commands.STOP,
    ucapi.media_player.Commands.FAST_FORWARD,
    ucapi.media_player.Commands.REWIND,
    ucapi.media_player.Commands.SEEK,
    ucapi.media_player.Commands.MUTE_TOGGLE,
    ucapi.media_player.Commands.VOLUME_UP,
    ucapi.media_player.Commands.VOLUME_DOWN
]

MIN_REFRESH_MINUTES = 5

PAGE_ICONS = {
    "apod": ("🌌", "#1a1a2e"),
    "mars_rover": ("🔴", "#cd5c5c"),
    "exoplanets": ("🪐", "#4b0082"),
    "launch_tracker": ("🚀", "#2f4f4f"),
    "space_weather": ("☀️", "#b8860b"),
    "earth_from_space": ("🌍", "#0077be"),
    "nasa_media": ("🎞️", "#333333"),
}


class PageIcons:
    """SVG placeholder icons for pages whose feeds carry no image."""

    def __init__(self, config: Config):
        self._config = config
        self._cache: Dict[str, str] = {}

    def get(self, page_id: str) -> str:
        if page_id not in self._cache:
            emoji, color = PAGE_ICONS.get(page_id, ("⭐", "#1a1a2e"))
            page = self._config.get_page_data(page_id) or {"name": "NASA Data Hub"}
            self._cache[page_id] = self._create_svg_icon(emoji, color, page["name"])
        return self._cache[page_id]

    @staticmethod
    def _create_svg_icon(emoji: str, color: str, text: str) -> str:
        """Create SVG icon as base64 data URL."""
        svg_content = f'''<svg width="400" height="300" xmlns="http://www.w3.org/2000/svg">
            <rect width="100%" height="100%" fill="{color}"/>
            <text x="50%" y="35%" font-family="Arial" font-size="60" fill="#fff" text-anchor="middle" dy=".3em">{emoji}</text>
            <text x="50%" y="70%" font-family="Arial" font-size="24" fill="#fff" text-anchor="middle" dy=".3em">{text}</text>
        </svg>'''

        b64_svg = base64.b64encode(svg_content.encode('utf-8')).decode('utf-8')
        return f"data:image/svg+xml;base64,{b64_svg}"


class DashboardMediaPlayer(ucapi.MediaPlayer):
    """Media player entity that renders the selected dashboard page."""

    def __init__(
        self,
        config: Config,
        dashboard: Dashboard,
        cmd_handler: CommandHandler | None = None,
    ):
        """Initialize the dashboard media player entity."""
        self._config = config
        self._dashboard = dashboard
        self._current_page = "apod"
        self._refresh_task: Optional[asyncio.Task] = None
        self._page_loads: Dict[str, asyncio.Task] = {}
        self._api: Optional[ucapi.IntegrationAPI] = None
        self._last_push_time = 0.0
        self._icons = PageIcons(config)

        features = [
            ucapi.media_player.Features.SELECT_SOURCE,
            ucapi.media_player.Features.MEDIA_IMAGE_URL,
            ucapi.media_player.Features.MEDIA_TITLE,
            ucapi.media_player.Features.MEDIA_ARTIST,
            ucapi.media_player.Features.ON_OFF,
            ucapi.media_player.Features.NEXT,
            ucapi.media_player.Features.PREVIOUS
        ]

        attributes = {
            ucapi.media_player.Attributes.STATE: ucapi.media_player.States.BUFFERING,
            ucapi.media_player.Attributes.SOURCE_LIST: config.get_page_list(),
            ucapi.media_player.Attributes.SOURCE: config.get_page_data(self._current_page)["name"],
            ucapi.media_player.Attributes.MEDIA_IMAGE_URL: self._icons.get(self._current_page),
            ucapi.media_player.Attributes.MEDIA_TITLE: "NASA Data Hub",
            ucapi.media_player.Attributes.MEDIA_ARTIST: "Connecting to NASA data feeds..."
        }

        super().__init__(
            identifier=config.device_id,
            name=config.device_name,
            features=features,
            attributes=attributes,
            device_class=ucapi.media_player.DeviceClasses.STREAMING_BOX,
            cmd_handler=cmd_handler or self._handle_command,
        )

        _LOG.info("NASA Data Hub media player initialized")

    @property
    def current_page(self) -> str:
        return self._current_page

    def attach(self, api: ucapi.IntegrationAPI) -> None:
        """Attach the integration API used to push attribute updates."""
        self._api = api

    async def use_dashboard(self, dashboard: Dashboard) -> None:
        """Swap in a new dashboard; loads still running on the old one are cancelled and redone."""
        self._dashboard = dashboard
        if await self._cancel_page_loads():
            asyncio.create_task(self._load_page_background(self._current_page))

    async def _handle_command(self, entity: ucapi.Entity, cmd_id: str, params: dict[str, Any] | None = None) -> StatusCodes:
        """Handle media player commands."""
        _LOG.debug("COMMAND: %s", cmd_id)

        try:
            if cmd_id == ucapi.media_player.Commands.ON:
                return await self._cmd_on()
            elif cmd_id == ucapi.media_player.Commands.OFF:
                return await self._cmd_off()
            elif cmd_id == ucapi.media_player.Commands.SELECT_SOURCE:
                return await self._cmd_select_source(params)
            elif cmd_id == ucapi.media_player.Commands.NEXT:
                return await self._cmd_step_page(1)
            elif cmd_id == ucapi.media_player.Commands.PREVIOUS:
                return await self._cmd_step_page(-1)
            elif cmd_id in SUPPRESS_MEDIA_COMMANDS:
                _LOG.debug("Ignoring command '%s'", cmd_id)
                return StatusCodes.OK
            else:
                _LOG.warning("Unexpected command: %s", cmd_id)
                return StatusCodes.NOT_IMPLEMENTED

        except Exception as ex:
            _LOG.error("Error handling command %s: %s", cmd_id, ex, exc_info=True)
            return StatusCodes.SERVER_ERROR

    async def _cmd_on(self) -> StatusCodes:
        """Turn on and reload the current page."""
        self.attributes[ucapi.media_player.Attributes.STATE] = ucapi.media_player.States.PLAYING
        await self._push_update_throttled()
        self._start_refresh_loop()
        asyncio.create_task(self._load_page_background(self._current_page))
        return StatusCodes.OK

    async def _cmd_off(self) -> StatusCodes:
        """Turn off."""
        self.attributes[ucapi.media_player.Attributes.STATE] = ucapi.media_player.States.OFF
        await self._stop_all_updates()
        await self._push_update_throttled()
        return StatusCodes.OK

    async def _cmd_select_source(self, params: dict[str, Any] | None = None) -> StatusCodes:
        """Switch to the page named by the source parameter."""
        if not params or "source" not in params:
            return StatusCodes.BAD_REQUEST

        page_id = self._config.get_page_by_name(params["source"])
        if not page_id:
            return StatusCodes.NOT_FOUND

        await self._show_page(page_id)
        return StatusCodes.OK

    async def _cmd_step_page(self, step: int) -> StatusCodes:
        """Move to the next or previous page."""
        page_ids = self._dashboard.page_ids
        index = page_ids.index(self._current_page)
        await self._show_page(page_ids[(index + step) % len(page_ids)])
        return StatusCodes.OK

    async def _show_page(self, page_id: str) -> None:
        page_name = self._config.get_page_data(page_id)["name"]
        self._current_page = page_id

        _LOG.info("SWITCHING TO: %s (%s)", page_name, page_id)

        self.attributes.update({
            ucapi.media_player.Attributes.SOURCE: page_name,
            ucapi.media_player.Attributes.STATE: ucapi.media_player.States.BUFFERING,
            ucapi.media_player.Attributes.MEDIA_IMAGE_URL: self._icons.get(page_id),
            ucapi.media_player.Attributes.MEDIA_TITLE: f"Loading {page_name}...",
            ucapi.media_player.Attributes.MEDIA_ARTIST: "Fetching live NASA data..."
        })

        await self._push_update_throttled()
        asyncio.create_task(self._load_page_background(page_id))

    async def _load_page_background(self, page_id: str) -> None:
        """Load a page in the background, superseding an earlier load of the same page."""
        if page_id in self._page_loads:
            self._page_loads[page_id].cancel()

        load_task = asyncio.create_task(self._load_and_render(page_id))
        self._page_loads[page_id] = load_task

        try:
            await load_task
        except asyncio.CancelledError:
            if asyncio.current_task().cancelling():
                raise
            _LOG.debug("Load of %s was superseded", page_id)
        except Exception as ex:
            _LOG.error("Background load error for %s: %s", page_id, ex)
        finally:
            if self._page_loads.get(page_id) is load_task:
                self._page_loads.pop(page_id, None)

    async def _load_and_render(self, page_id: str) -> None:
        """Fetch a page's feeds and show the rendered result if it is still selected."""
        page = await self._dashboard.load_page(page_id)
        if self._current_page != page_id:
            return

        view = render_page(page)
        _LOG.info("TITLE: %s", view.title)
        _LOG.info("DESC: %s", view.description[:50])

        self.attributes.update({
            ucapi.media_player.Attributes.STATE: ucapi.media_player.States.PLAYING,
            ucapi.media_player.Attributes.MEDIA_IMAGE_URL: view.image_url or self._icons.get(page_id),
            ucapi.media_player.Attributes.MEDIA_TITLE: view.title or "Unknown",
            ucapi.media_player.Attributes.MEDIA_ARTIST: view.description or "No description available"
        })

        await self._push_update_force()

    def _start_refresh_loop(self) -> None:
        if self._refresh_task is None or self._refresh_task.done():
            self._refresh_task = asyncio.create_task(self._refresh_loop())

    def _refresh_seconds(self) -> float:
        return max(MIN_REFRESH_MINUTES, self._config.refresh_interval) * 60

    async def _refresh_loop(self) -> None:
        """Reload the current page every refresh interval."""
        while True:
            await asyncio.sleep(self._refresh_seconds())
            _LOG.debug("Refreshing page %s", self._current_page)
            await self._load_page_background(self._current_page)

    async def _push_update_throttled(self) -> None:
        """Push update with throttling."""
        now = time.time()

        if now - self._last_push_time < 0.2:
            return

        self._last_push_time = now
        await self._push_update()

    async def _push_update(self) -> None:
        """Push state update to the remote."""
        if self._api and self._api.configured_entities.contains(self.id):
            self._api.configured_entities.update_attributes(self.id, self.attributes)

    async def _push_update_force(self) -> None:
        """Force push state update."""
        if self._api and self._api.configured_entities.contains(self.id):
            _LOG.info("UPDATE: %s -> %s",
                      self.attributes[ucapi.media_player.Attributes.SOURCE],
                      self.attributes[ucapi.media_player.Attributes.MEDIA_TITLE])
            self._api.configured_entities.update_attributes(self.id, self.attributes)

    async def push_initial_state(self) -> None:
        """Push initial state and load the first page."""
        _LOG.debug("Pushing initial state to remote")
        await self._push_update()
        self._start_refresh_loop()
        asyncio.create_task(self._load_page_background(self._current_page))

    async def _cancel_page_loads(self) -> bool:
        """Cancel running page loads and wait for them; True if any was running."""
        tasks = [task for task in self._page_loads.values() if not task.done()]
        self._page_loads.clear()

        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        return bool(tasks)

    async def _stop_all_updates(self) -> None:
        """Stop all running load and refresh tasks."""
        refresh_task, self._refresh_task = self._refresh_task, None
        if refresh_task and not refresh_task.done():
            refresh_task.cancel()

        await self._cancel_page_loads()

        if refresh_task:
            await asyncio.gather(refresh_task, return_exceptions=True)

    async def shutdown(self) -> None:
        """Shutdown the media player and cleanup."""
        _LOG.debug("Shutting down NASA Data Hub media player")
        await self._stop_all_updates()
