"""
Feed descriptors: where each NASA feed lives and how its JSON is normalized.

A ``Feed`` pairs a static endpoint with a normalization function. The
fetcher in :mod:`uc_intg_nasahub.client` runs every feed the same way; only
the descriptor differs.

:copyright: (c) 2025 by Meir Miyara.
:license: MPL-2.0, see LICENSE for more details.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from types import MappingProxyType
from typing import Any, Callable, List, Mapping, Optional, Tuple
from urllib.parse import quote, urlencode

from uc_intg_nasahub.formatting import (
    DISPLAY_DATE,
    LONG_DATE,
    date_range,
    epic_archive_path,
    format_epoch,
    format_timestamp,
)
from uc_intg_nasahub.models import (
    ApodRecord,
    CmeAnalysis,
    CmeEvent,
    EpicImage,
    Exoplanet,
    GeomagneticStorm,
    IssPosition,
    Launch,
    MediaItem,
    RoverPhoto,
    SolarFlare,
)
from uc_intg_nasahub.result import ConfigurationError, FeedShapeError

_LOG = logging.getLogger(__name__)

NASA_API_BASE = "https://api.nasa.gov"
EXOPLANET_ARCHIVE_BASE = "https://exoplanetarchive.ipac.caltech.edu"
LAUNCH_LIBRARY_BASE = "https://ll.thespacedevs.com"
OPEN_NOTIFY_BASE = "http://api.open-notify.org"
NASA_IMAGES_BASE = "https://images-api.nasa.gov"
NASA_IMAGES_DETAILS = "https://images.nasa.gov/details"

EXOPLANET_QUERY = (
    "select pl_name,discoverymethod,pl_orbper,pl_bmassj,pl_radj,pl_dens,sy_dist,st_teff "
    "from pscomppars where pl_controv_flag = 0 limit 100"
)
SPACE_WEATHER_DAYS = 30


@dataclass(frozen=True)
class FeedRequest:
    """Per-call parameters for one feed. The API key is not part of it."""

    path_params: Mapping[str, Any] = field(default_factory=dict)
    query_params: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "path_params", MappingProxyType(dict(self.path_params)))
        object.__setattr__(self, "query_params", MappingProxyType(dict(self.query_params)))


Normalizer = Callable[[Any, FeedRequest, str], Any]


@dataclass(frozen=True)
class Feed:
    """Static description of one remote feed."""

    feed_id: str
    name: str
    base_url: str
    path: str
    normalize: Normalizer
    static_query: Mapping[str, str] = field(default_factory=dict)
    requires_key: bool = False
    required_query: Tuple[str, ...] = ()
    empty_notice: Optional[str] = None
    allow_blank: bool = False

    def build_url(self, request: FeedRequest, api_key: str = "") -> str:
        try:
            path = self.path.format(
                **{key: quote(str(value), safe="") for key, value in request.path_params.items()}
            )
        except KeyError as ex:
            raise ConfigurationError(f"Missing path parameter {ex} for {self.name}") from ex

        params = dict(self.static_query)
        params.update(request.query_params)
        if self.requires_key:
            params["api_key"] = api_key

        query = urlencode(params, quote_via=quote)
        return f"{self.base_url}{path}?{query}" if query else f"{self.base_url}{path}"

    def missing_query(self, request: FeedRequest) -> List[str]:
        """Required query parameters that are absent or blank."""
        return [
            key for key in self.required_query
            if not str(request.query_params.get(key) or "").strip()
        ]

    def notice_for(self, request: FeedRequest) -> Optional[str]:
        if not self.empty_notice:
            return None
        params = {**request.query_params, **request.path_params}
        try:
            return self.empty_notice.format(**params)
        except KeyError:
            return self.empty_notice


def _dig(obj: Any, *keys: str) -> Any:
    for key in keys:
        if not isinstance(obj, dict):
            return None
        obj = obj.get(key)
    return obj


def _expect_dict(payload: Any, what: str) -> dict:
    if not isinstance(payload, dict):
        raise FeedShapeError(f"Unexpected {what} response: expected an object")
    return payload


def _expect_list(payload: Any, what: str) -> list:
    if payload is None:
        return []
    if not isinstance(payload, list):
        raise FeedShapeError(f"Unexpected {what} response: expected a list")
    return payload


def _instrument_names(entry: dict) -> List[str]:
    return [
        inst.get("displayName") for inst in entry.get("instruments") or []
        if isinstance(inst, dict) and inst.get("displayName")
    ]


def _linked_events(entry: dict) -> List[str]:
    return [
        event.get("activityID") for event in entry.get("linkedEvents") or []
        if isinstance(event, dict) and event.get("activityID")
    ]


def normalize_apod(payload: Any, request: FeedRequest, api_key: str) -> Optional[ApodRecord]:
    data = _expect_dict(payload, "APOD")
    if not data.get("title"):
        _LOG.debug("APOD response without a title")
        return None

    return ApodRecord(
        title=data["title"],
        date=data.get("date", ""),
        display_date=format_timestamp(data.get("date"), LONG_DATE),
        explanation=data.get("explanation", ""),
        url=data.get("url"),
        hdurl=data.get("hdurl"),
        thumbnail_url=data.get("thumbnail_url"),
        media_type=data.get("media_type", "image"),
        copyright=(data.get("copyright") or "").strip() or None,
    )


def normalize_rover_photos(payload: Any, request: FeedRequest, api_key: str) -> List[RoverPhoto]:
    data = _expect_dict(payload, "Mars rover")
    if "photos" not in data:
        raise FeedShapeError("Unexpected Mars rover response: no photos field")

    photos = []
    for entry in _expect_list(data["photos"], "Mars rover"):
        if not isinstance(entry, dict) or entry.get("id") is None or not entry.get("img_src"):
            continue
        photos.append(RoverPhoto(
            id=entry["id"],
            img_src=entry["img_src"],
            sol=entry.get("sol"),
            earth_date=entry.get("earth_date", ""),
            display_date=format_timestamp(entry.get("earth_date"), LONG_DATE),
            camera_name=_dig(entry, "camera", "name") or "",
            camera_full_name=_dig(entry, "camera", "full_name") or "",
            rover_name=_dig(entry, "rover", "name") or "",
            rover_status=_dig(entry, "rover", "status") or "",
        ))
    return photos


def normalize_exoplanets(payload: Any, request: FeedRequest, api_key: str) -> List[Exoplanet]:
    planets = []
    for entry in _expect_list(payload, "exoplanet"):
        if not isinstance(entry, dict) or not entry.get("pl_name"):
            continue
        planets.append(Exoplanet(
            name=entry["pl_name"],
            discovery_method=entry.get("discoverymethod"),
            orbital_period_days=entry.get("pl_orbper"),
            mass_jupiter=entry.get("pl_bmassj"),
            radius_jupiter=entry.get("pl_radj"),
            density=entry.get("pl_dens"),
            distance_pc=entry.get("sy_dist"),
            star_temp_k=entry.get("st_teff"),
        ))
    return planets


def normalize_launches(payload: Any, request: FeedRequest, api_key: str) -> List[Launch]:
    data = _expect_dict(payload, "launch")
    launches = []
    for entry in _expect_list(data.get("results"), "launch"):
        if not isinstance(entry, dict) or not entry.get("id"):
            continue
        image = entry.get("image")
        if isinstance(image, dict):
            image = image.get("image_url")
        launches.append(Launch(
            id=str(entry["id"]),
            name=entry.get("name") or "",
            net=entry.get("net") or "",
            display_net=format_timestamp(entry.get("net")),
            status=_dig(entry, "status", "name") or "",
            image=image,
            webcast_live=bool(entry.get("webcast_live")),
            mission_description=_dig(entry, "mission", "description") or "",
            provider=_dig(entry, "launch_service_provider", "name") or "",
            rocket=_dig(entry, "rocket", "configuration", "full_name") or "",
            pad=_dig(entry, "pad", "name") or "",
            location=_dig(entry, "pad", "location", "name") or "",
        ))
    return launches


def normalize_iss_position(payload: Any, request: FeedRequest, api_key: str) -> IssPosition:
    data = _expect_dict(payload, "ISS")
    if data.get("message") != "success":
        raise FeedShapeError(f"ISS position unavailable: {data.get('message') or 'no status'}")

    position = data.get("iss_position") or {}
    timestamp = data.get("timestamp")
    return IssPosition(
        latitude=float(position["latitude"]),
        longitude=float(position["longitude"]),
        timestamp=timestamp,
        display_time=format_epoch(timestamp),
    )


def normalize_cmes(payload: Any, request: FeedRequest, api_key: str) -> List[CmeEvent]:
    events = []
    for entry in _expect_list(payload, "CME"):
        if not isinstance(entry, dict):
            continue
        activity_id = entry.get("activityID") or entry.get("cmeID")
        if not activity_id:
            continue

        analyses = [
            CmeAnalysis(
                speed=analysis.get("speed"),
                half_angle=analysis.get("halfAngle"),
                kp_index=analysis.get("kp_index"),
                arrival_time=format_timestamp(analysis.get("time21_5")),
                is_most_accurate=True,
            )
            for analysis in entry.get("cmeAnalyses") or []
            if isinstance(analysis, dict) and analysis.get("isMostAccurate")
        ]
        events.append(CmeEvent(
            activity_id=activity_id,
            start_time=format_timestamp(entry.get("startTime")),
            catalog=entry.get("catalog") or "",
            source_location=entry.get("sourceLocation") or "",
            active_region=entry.get("activeRegionNum"),
            instruments=_instrument_names(entry),
            analyses=analyses,
            linked_events=_linked_events(entry),
            note=entry.get("note") or "",
        ))
    return events


def normalize_storms(payload: Any, request: FeedRequest, api_key: str) -> List[GeomagneticStorm]:
    storms = []
    for entry in _expect_list(payload, "geomagnetic storm"):
        if not isinstance(entry, dict) or not entry.get("gstID"):
            continue
        kp_indices = [
            reading["kpIndex"] for reading in entry.get("allKpIndex") or []
            if isinstance(reading, dict) and reading.get("kpIndex") is not None
        ]
        storms.append(GeomagneticStorm(
            gst_id=entry["gstID"],
            start_time=format_timestamp(entry.get("startTime")),
            kp_indices=kp_indices,
            linked_events=_linked_events(entry),
            link=entry.get("link"),
        ))
    return storms


def normalize_flares(payload: Any, request: FeedRequest, api_key: str) -> List[SolarFlare]:
    flares = []
    for entry in _expect_list(payload, "solar flare"):
        if not isinstance(entry, dict) or not entry.get("flrID"):
            continue
        flares.append(SolarFlare(
            flr_id=entry["flrID"],
            class_type=entry.get("classType") or "",
            begin_time=format_timestamp(entry.get("beginTime")),
            peak_time=format_timestamp(entry.get("peakTime")),
            end_time=format_timestamp(entry.get("endTime")),
            source_location=entry.get("sourceLocation") or "",
            active_region=entry.get("activeRegionNum"),
            instruments=_instrument_names(entry),
            linked_events=_linked_events(entry),
            note=entry.get("note") or "",
            link=entry.get("link"),
        ))
    return flares


def normalize_epic(payload: Any, request: FeedRequest, api_key: str) -> Optional[EpicImage]:
    images = [
        entry for entry in _expect_list(payload, "EPIC")
        if isinstance(entry, dict) and entry.get("image") and entry.get("date")
    ]
    if not images:
        return None

    latest = images[0]
    archive_path = epic_archive_path(latest["date"])
    url = f"{NASA_API_BASE}/EPIC/archive/natural/{archive_path}/png/{latest['image']}.png"
    if api_key:
        url = f"{url}?{urlencode({'api_key': api_key}, quote_via=quote)}"

    coords = latest.get("centroid_coordinates") or {}
    return EpicImage(
        image=latest["image"],
        date=latest["date"],
        url=url,
        archive_path=archive_path,
        caption=latest.get("caption") or "",
        latitude=coords.get("lat"),
        longitude=coords.get("lon"),
    )


def normalize_media_search(payload: Any, request: FeedRequest, api_key: str) -> List[MediaItem]:
    data = _expect_dict(payload, "NASA media")
    items = []
    for entry in _expect_list(_dig(data, "collection", "items"), "NASA media"):
        if not isinstance(entry, dict):
            continue
        details = (entry.get("data") or [{}])[0]
        if not isinstance(details, dict) or not details.get("nasa_id"):
            continue

        thumbnail = next(
            (link.get("href") for link in entry.get("links") or []
             if isinstance(link, dict) and link.get("rel") == "preview"),
            None,
        )
        items.append(MediaItem(
            nasa_id=details["nasa_id"],
            title=details.get("title") or "",
            description=details.get("description") or "",
            center=details.get("center") or "",
            media_type=details.get("media_type") or "",
            date_created=format_timestamp(details.get("date_created"), DISPLAY_DATE),
            keywords=list(details.get("keywords") or []),
            thumbnail=thumbnail,
            details_url=f"{NASA_IMAGES_DETAILS}/{quote(details['nasa_id'], safe='')}",
        ))
    return items


APOD = Feed(
    feed_id="apod",
    name="Astronomy Picture of the Day",
    base_url=NASA_API_BASE,
    path="/planetary/apod",
    normalize=normalize_apod,
    requires_key=True,
)

MARS_ROVER_PHOTOS = Feed(
    feed_id="mars_photos",
    name="Mars Rover photos",
    base_url=NASA_API_BASE,
    path="/mars-photos/api/v1/rovers/{rover}/photos",
    normalize=normalize_rover_photos,
    requires_key=True,
    empty_notice="No photos found for {rover} on sol {sol}. Try a different sol or rover.",
)

EXOPLANETS = Feed(
    feed_id="exoplanets",
    name="exoplanets",
    base_url=EXOPLANET_ARCHIVE_BASE,
    path="/TAP/sync",
    normalize=normalize_exoplanets,
    static_query={"query": EXOPLANET_QUERY, "format": "json"},
)

LAUNCHES = Feed(
    feed_id="launches",
    name="upcoming launches",
    base_url=LAUNCH_LIBRARY_BASE,
    path="/2.2.0/launch/upcoming/",
    normalize=normalize_launches,
    static_query={"limit": "10"},
    empty_notice="No upcoming launches scheduled.",
)

ISS_POSITION = Feed(
    feed_id="iss",
    name="ISS position",
    base_url=OPEN_NOTIFY_BASE,
    path="/iss-now.json",
    normalize=normalize_iss_position,
)

DONKI_CME = Feed(
    feed_id="donki_cme",
    name="CMEs",
    base_url=NASA_API_BASE,
    path="/DONKI/CME",
    normalize=normalize_cmes,
    requires_key=True,
    empty_notice="No CMEs reported in the last 30 days.",
    allow_blank=True,
)

DONKI_GST = Feed(
    feed_id="donki_gst",
    name="Geomagnetic Storms",
    base_url=NASA_API_BASE,
    path="/DONKI/GST",
    normalize=normalize_storms,
    requires_key=True,
    empty_notice="No geomagnetic storms reported in the last 30 days.",
    allow_blank=True,
)

DONKI_FLR = Feed(
    feed_id="donki_flr",
    name="Solar Flares",
    base_url=NASA_API_BASE,
    path="/DONKI/FLR",
    normalize=normalize_flares,
    requires_key=True,
    empty_notice="No solar flares reported in the last 30 days.",
    allow_blank=True,
)

EPIC = Feed(
    feed_id="epic",
    name="EPIC Earth imagery",
    base_url=NASA_API_BASE,
    path="/EPIC/api/natural/images",
    normalize=normalize_epic,
    requires_key=True,
    empty_notice="No EPIC images available yet.",
)

MEDIA_SEARCH = Feed(
    feed_id="media_search",
    name="NASA media",
    base_url=NASA_IMAGES_BASE,
    path="/search",
    normalize=normalize_media_search,
    static_query={"media_type": "image,video"},
    required_query=("q",),
    empty_notice="No results found for '{q}'.",
)

ALL_FEEDS = {
    feed.feed_id: feed
    for feed in (
        APOD, MARS_ROVER_PHOTOS, EXOPLANETS, LAUNCHES, ISS_POSITION,
        DONKI_CME, DONKI_GST, DONKI_FLR, EPIC, MEDIA_SEARCH,
    )
}


def rover_photos_request(rover: str = "curiosity", sol: int = 1000) -> FeedRequest:
    return FeedRequest(path_params={"rover": rover.strip().lower()}, query_params={"sol": int(sol)})


def space_weather_request(days: int = SPACE_WEATHER_DAYS, today: Optional[date] = None) -> FeedRequest:
    start, end = date_range(days, today)
    return FeedRequest(query_params={"startDate": start, "endDate": end})


def media_search_request(query: str) -> FeedRequest:
    return FeedRequest(query_params={"q": (query or "").strip()})
