"""
Dashboard pages: which feeds each page shows, fetched side by side.

:copyright: (c) 2025 by Meir Miyara.
:license: MPL-2.0, see LICENSE for more details.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from uc_intg_nasahub import feeds
from uc_intg_nasahub.client import FeedFetcher
from uc_intg_nasahub.config import Config
from uc_intg_nasahub.feeds import Feed, FeedRequest
from uc_intg_nasahub.result import FeedResult

_LOG = logging.getLogger(__name__)


@dataclass
class PageResult:
    """Results of one page load, keyed by feed id in display order."""

    page_id: str
    results: Dict[str, FeedResult] = field(default_factory=dict)

    @property
    def all_failed(self) -> bool:
        return bool(self.results) and all(r.is_error for r in self.results.values())


class Dashboard:
    """Maps dashboard pages to feed requests and loads them."""

    def __init__(self, config: Config, fetcher: FeedFetcher):
        self._config = config
        self._fetcher = fetcher

    @property
    def page_ids(self) -> List[str]:
        return list(self._config.pages.keys())

    def page_requests(self, page_id: str) -> List[Tuple[Feed, FeedRequest]]:
        """Feed requests for a page, built from current configuration."""
        if page_id == "apod":
            return [(feeds.APOD, FeedRequest())]
        if page_id == "mars_rover":
            return [(feeds.MARS_ROVER_PHOTOS, feeds.rover_photos_request(self._config.rover, self._config.sol))]
        if page_id == "exoplanets":
            return [(feeds.EXOPLANETS, FeedRequest())]
        if page_id == "launch_tracker":
            return [(feeds.LAUNCHES, FeedRequest()), (feeds.ISS_POSITION, FeedRequest())]
        if page_id == "space_weather":
            window = feeds.space_weather_request()
            return [(feeds.DONKI_FLR, window), (feeds.DONKI_CME, window), (feeds.DONKI_GST, window)]
        if page_id == "earth_from_space":
            return [(feeds.EPIC, FeedRequest())]
        if page_id == "nasa_media":
            return [(feeds.MEDIA_SEARCH, feeds.media_search_request(self._config.media_query))]
        raise KeyError(f"Unknown dashboard page: {page_id}")

    async def load_page(self, page_id: str) -> PageResult:
        """Fetch every feed on the page concurrently; each result stands alone."""
        requests = self.page_requests(page_id)
        _LOG.info("Loading page %s (%d feeds)", page_id, len(requests))

        results = await asyncio.gather(
            *(self._fetcher.fetch(feed, request) for feed, request in requests)
        )

        page = PageResult(page_id=page_id)
        for (feed, _), result in zip(requests, results):
            page.results[feed.feed_id] = result

        if page.all_failed:
            _LOG.warning("Every feed on page %s failed", page_id)
        return page
