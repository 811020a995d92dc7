"""
Feed fetcher: one HTTP client for every NASA data feed.

:copyright: (c) 2025 by Meir Miyara.
:license: MPL-2.0, see LICENSE for more details.
"""

import asyncio
import json
import logging
import ssl
from typing import Any, Optional

import aiohttp
import certifi

from uc_intg_nasahub.feeds import Feed, FeedRequest
from uc_intg_nasahub.result import (
    ConfigurationError,
    FeedError,
    FeedHTTPError,
    FeedResult,
    FeedShapeError,
)

_LOG = logging.getLogger(__name__)

ERROR_DETAIL_LIMIT = 100


class FeedFetcher:
    """Fetch a feed and hand back a FeedResult; never raises past ``fetch``."""

    def __init__(self, api_key: str = "", session: Optional[aiohttp.ClientSession] = None):
        """Initialize fetcher with an explicit API key and optional shared session."""
        self._api_key = (api_key or "").strip()
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self):
        """Async context manager entry."""
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    @property
    def has_api_key(self) -> bool:
        return bool(self._api_key)

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure aiohttp session exists with certificate-verified SSL."""
        if self._session is None or self._session.closed:
            ssl_context = ssl.create_default_context(cafile=certifi.where())
            ssl_context.check_hostname = True
            ssl_context.verify_mode = ssl.CERT_REQUIRED

            connector = aiohttp.TCPConnector(
                ssl=ssl_context,
                limit=10,
                limit_per_host=5,
                ttl_dns_cache=300,
                use_dns_cache=True,
                keepalive_timeout=30,
                enable_cleanup_closed=True
            )

            headers = {
                'User-Agent': 'Mozilla/5.0 (Unfolded Circle NASA Data Hub) AppleWebKit/537.36',
                'Accept': 'application/json, text/plain, */*',
                'Accept-Language': 'en-US,en;q=0.9',
                'Accept-Encoding': 'gzip, deflate',
            }

            self._session = aiohttp.ClientSession(connector=connector, headers=headers)
            self._owns_session = True

            _LOG.info("🌐 NASA Data Hub HTTP session created with SSL verification")

        return self._session

    async def close(self) -> None:
        """Close the HTTP session if this fetcher created it."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    async def fetch(self, feed: Feed, request: Optional[FeedRequest] = None) -> FeedResult:
        """Fetch and normalize one feed."""
        request = request or FeedRequest()

        missing = feed.missing_query(request)
        if missing:
            _LOG.debug("Skipping %s: no value for %s", feed.name, ", ".join(missing))
            return FeedResult.empty(feed.feed_id)

        try:
            payload = await self._get_json(feed, request)
            data = self._normalize(feed, request, payload)
        except ConfigurationError as ex:
            _LOG.error("Cannot fetch %s: %s", feed.name, ex)
            return FeedResult.failure(feed.feed_id, str(ex), ex.kind)
        except FeedError as ex:
            _LOG.warning("Failed to fetch %s: %s", feed.name, ex)
            return FeedResult.failure(feed.feed_id, str(ex), ex.kind)

        if data is None or (isinstance(data, list) and not data):
            _LOG.info("%s returned no items", feed.name)
            return FeedResult.empty(feed.feed_id, feed.notice_for(request))

        if isinstance(data, list):
            _LOG.info("%s fetched: %d items", feed.name, len(data))
        else:
            _LOG.info("%s fetched", feed.name)
        return FeedResult.with_data(feed.feed_id, data)

    def _normalize(self, feed: Feed, request: FeedRequest, payload: Any) -> Any:
        try:
            return feed.normalize(payload, request, self._api_key)
        except FeedError:
            raise
        except (AttributeError, IndexError, KeyError, TypeError, ValueError) as ex:
            raise FeedShapeError(f"Unexpected {feed.name} response: {ex}") from ex

    async def _get_json(self, feed: Feed, request: FeedRequest) -> Any:
        """Single GET with status and JSON validation; no retries."""
        if feed.requires_key and not self._api_key:
            raise ConfigurationError(
                "NASA API key is missing. Add it in the integration setup "
                "or set the NASA_API_KEY environment variable."
            )

        url = feed.build_url(request, self._api_key)
        session = await self._ensure_session()

        _LOG.debug("Requesting %s from %s%s", feed.name, feed.base_url, feed.path)
        try:
            async with session.get(url) as response:
                _LOG.debug("Response: HTTP %s for %s", response.status, feed.name)

                if not 200 <= response.status < 300:
                    detail = await self._error_detail(response)
                    raise FeedHTTPError(response.status, response.reason, detail)

                try:
                    text = await response.text()
                except UnicodeDecodeError as ex:
                    raise FeedError(f"Failed to fetch {feed.name}: invalid JSON response") from ex

        except asyncio.TimeoutError as ex:
            raise FeedError(f"Failed to fetch {feed.name}: request timed out") from ex
        except aiohttp.ClientError as ex:
            raise FeedError(f"Failed to fetch {feed.name}: {ex}") from ex

        if not text.strip() and feed.allow_blank:
            return None

        try:
            return json.loads(text)
        except json.JSONDecodeError as ex:
            _LOG.debug("Invalid JSON from %s: %s", feed.name, text[:100])
            raise FeedError(f"Failed to fetch {feed.name}: invalid JSON response") from ex

    @staticmethod
    async def _error_detail(response: aiohttp.ClientResponse) -> Optional[str]:
        """Best-effort error detail from a failed response: JSON first, then raw text."""
        try:
            body = (await response.text()).strip()
        except (aiohttp.ClientError, UnicodeDecodeError) as ex:
            _LOG.debug("Could not read error body: %s", ex)
            return None

        if not body:
            return None

        try:
            parsed = json.loads(body)
        except json.JSONDecodeError:
            return _truncate(body)

        return _detail_from_json(parsed) or _truncate(body)


def _detail_from_json(parsed: Any) -> Optional[str]:
    if not isinstance(parsed, dict):
        return None

    if parsed.get("msg"):
        return str(parsed["msg"])

    error = parsed.get("error")
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    if isinstance(error, str) and error:
        return error

    if parsed.get("errors"):
        return json.dumps(parsed["errors"])

    if parsed.get("detail"):
        return str(parsed["detail"])

    return None


def _truncate(text: str) -> str:
    if len(text) <= ERROR_DETAIL_LIMIT:
        return text
    return f"{text[:ERROR_DETAIL_LIMIT]}..."
