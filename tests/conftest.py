"""Shared test fixtures."""

from __future__ import annotations

import json

import pytest

from uc_intg_nasahub.client import FeedFetcher


class StubResponse:
    """Stands in for aiohttp.ClientResponse inside ``async with``."""

    def __init__(self, status=200, body="", reason="OK"):
        self.status = status
        self.reason = reason
        self._body = body if isinstance(body, (str, bytes)) else json.dumps(body)

    async def text(self):
        if isinstance(self._body, bytes):
            return self._body.decode("utf-8")
        return self._body

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class StubSession:
    """Records every GET and answers with canned responses.

    ``routes`` maps a URL substring to a StubResponse; ``default`` answers
    anything unmatched. ``error`` is raised from every call instead.
    """

    def __init__(self, routes=None, default=None, error=None):
        self.routes = routes or {}
        self.default = default
        self.error = error
        self.calls: list[str] = []
        self.closed = False

    def get(self, url, **kwargs):
        self.calls.append(url)
        if self.error:
            raise self.error
        for fragment, response in self.routes.items():
            if fragment in url:
                return response
        if self.default is None:
            raise AssertionError(f"Unexpected request: {url}")
        return self.default

    async def close(self):
        self.closed = True


@pytest.fixture
def stub_session():
    """Factory for stub sessions."""

    def _make(routes=None, default=None, error=None):
        return StubSession(routes=routes, default=default, error=error)

    return _make


@pytest.fixture
def json_response():
    """Factory for JSON responses."""

    def _make(body, status=200, reason="OK"):
        return StubResponse(status=status, body=body, reason=reason)

    return _make


@pytest.fixture
def raw_response():
    """Factory for responses whose body is sent as-is (text or undecodable bytes)."""

    def _make(body="", status=200, reason="OK"):
        return StubResponse(status=status, body=body, reason=reason)

    return _make


@pytest.fixture
def make_fetcher():
    """Fetcher bound to a stub session with a test API key."""

    def _make(session, api_key="test-nasa-key"):
        return FeedFetcher(api_key, session=session)

    return _make


@pytest.fixture
def exoplanet_rows():
    return [
        {"pl_name": "Kepler-22 b", "discoverymethod": "Transit", "pl_orbper": 289.86, "pl_bmassj": None,
         "pl_radj": 0.21, "pl_dens": None, "sy_dist": 195.0, "st_teff": 5596},
        {"pl_name": "51 Peg b", "discoverymethod": "Radial Velocity", "pl_orbper": 4.23, "pl_bmassj": 0.46,
         "pl_radj": None, "pl_dens": None, "sy_dist": 15.47, "st_teff": 5758},
        {"pl_name": "", "discoverymethod": "Imaging", "pl_orbper": None, "pl_bmassj": 7.0,
         "pl_radj": 1.2, "pl_dens": None, "sy_dist": 40.0, "st_teff": 4000},
        {"pl_name": "TRAPPIST-1 e", "discoverymethod": "Transit", "pl_orbper": 6.1, "pl_bmassj": 0.0024,
         "pl_radj": 0.082, "pl_dens": 5.65, "sy_dist": 12.43, "st_teff": 2566},
    ]


@pytest.fixture
def cme_events():
    return [
        {
            "activityID": "2024-10-03T12:48:00-CME-001",
            "startTime": "2024-10-03T12:48Z",
            "catalog": "M2M_CATALOG",
            "sourceLocation": "S15W03",
            "activeRegionNum": 13842,
            "instruments": [{"displayName": "SOHO: LASCO/C2"}, {"displayName": "SOHO: LASCO/C3"}],
            "cmeAnalyses": [
                {"time21_5": "2024-10-03T16:20Z", "speed": 620, "halfAngle": 30, "isMostAccurate": False},
                {"time21_5": "2024-10-03T15:54Z", "speed": 850, "halfAngle": 42, "isMostAccurate": True},
            ],
            "linkedEvents": [{"activityID": "2024-10-03T12:08:00-FLR-001"}],
            "note": "Bright halo CME",
        }
    ]
