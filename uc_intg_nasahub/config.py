"""
Configuration management for NASA Data Hub integration.

:copyright: (c) 2025 by Meir Miyara.
:license: MPL-2.0, see LICENSE for more details.
"""

import json
import logging
import os
from typing import Any, Dict, Optional

_LOG = logging.getLogger(__name__)

API_KEY_ENV = "NASA_API_KEY"

DEFAULT_CONFIG = {
    "api_key": "",
    "refresh_interval": 60,
    "rover": "curiosity",
    "sol": 1000,
    "media_query": "nebula",
    "device_id": "nasa_data_hub",
    "device_name": "NASA Data Hub"
}

ROVERS = ("curiosity", "opportunity", "spirit", "perseverance")

DASHBOARD_PAGES = {
    "apod": {
        "name": "Daily Universe",
        "description": "Astronomy Picture of the Day"
    },
    "mars_rover": {
        "name": "Mars Rover",
        "description": "Rover photos by sol"
    },
    "exoplanets": {
        "name": "Exoplanet Explorer",
        "description": "Confirmed planets beyond our solar system"
    },
    "launch_tracker": {
        "name": "Launches & ISS",
        "description": "Upcoming launches and the International Space Station"
    },
    "space_weather": {
        "name": "Space Weather",
        "description": "Solar flares, CMEs and geomagnetic storms"
    },
    "earth_from_space": {
        "name": "Earth from Space",
        "description": "Full-disc Earth imagery from DSCOVR/EPIC"
    },
    "nasa_media": {
        "name": "NASA Media",
        "description": "NASA Image and Video Library search"
    }
}


class Config:
    """Configuration management for NASA Data Hub integration."""

    def __init__(self, config_file_path: str):
        """Initialize configuration."""
        self._config_file_path = config_file_path
        self._config: Dict[str, Any] = {}
        self.load()

    @property
    def config_file_path(self) -> str:
        return self._config_file_path

    def load(self) -> None:
        """Load configuration from file."""
        try:
            if os.path.exists(self._config_file_path):
                with open(self._config_file_path, "r", encoding="utf-8") as file:
                    self._config = {**DEFAULT_CONFIG, **json.load(file)}
                    _LOG.info("Configuration loaded from %s", self._config_file_path)
            else:
                _LOG.info("Configuration file not found, using defaults")
                self._config = DEFAULT_CONFIG.copy()
        except (OSError, ValueError, TypeError) as ex:
            _LOG.error("Failed to load configuration: %s", ex)
            self._config = DEFAULT_CONFIG.copy()

    def save(self) -> None:
        """Save configuration to file."""
        try:
            directory = os.path.dirname(self._config_file_path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(self._config_file_path, "w", encoding="utf-8") as file:
                json.dump(self._config, file, indent=2)
                _LOG.info("Configuration saved to %s", self._config_file_path)
        except OSError as ex:
            _LOG.error("Failed to save configuration: %s", ex)

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value."""
        return self._config.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Set configuration value."""
        self._config[key] = value

    def update(self, data: Dict[str, Any]) -> None:
        """Update configuration with new data."""
        self._config.update(data)
        self.save()

    @property
    def api_key(self) -> str:
        """NASA API key from setup, falling back to the environment."""
        api_key = (self._config.get("api_key") or "").strip()
        return api_key or os.environ.get(API_KEY_ENV, "").strip()

    @property
    def refresh_interval(self) -> int:
        """Get refresh interval in minutes."""
        return int(self._config.get("refresh_interval", 60))

    @property
    def rover(self) -> str:
        rover = str(self._config.get("rover") or "curiosity").strip().lower()
        return rover if rover in ROVERS else "curiosity"

    @property
    def sol(self) -> int:
        try:
            return max(0, int(self._config.get("sol", 1000)))
        except (TypeError, ValueError):
            return 1000

    @property
    def media_query(self) -> str:
        return str(self._config.get("media_query") or "").strip()

    @property
    def device_id(self) -> str:
        """Get device ID."""
        return self._config.get("device_id", "nasa_data_hub")

    @property
    def device_name(self) -> str:
        """Get device name."""
        return self._config.get("device_name", "NASA Data Hub")

    @property
    def pages(self) -> Dict[str, Dict[str, Any]]:
        """Get dashboard page catalog."""
        return DASHBOARD_PAGES

    def get_page_list(self) -> list[str]:
        """Get list of page names for media player sources."""
        return [page["name"] for page in DASHBOARD_PAGES.values()]

    def get_page_by_name(self, name: str) -> Optional[str]:
        """Get page ID by display name."""
        for page_id, page in DASHBOARD_PAGES.items():
            if page["name"] == name:
                return page_id
        return None

    def get_page_data(self, page_id: str) -> Optional[Dict[str, Any]]:
        """Get page catalog entry."""
        return DASHBOARD_PAGES.get(page_id)
