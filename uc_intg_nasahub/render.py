"""
Turn feed results into display text for the media player.

Every result goes through one of three branches: error, empty or populated.

:copyright: (c) 2025 by Meir Miyara.
:license: MPL-2.0, see LICENSE for more details.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from uc_intg_nasahub.dashboard import PageResult
from uc_intg_nasahub.feeds import ALL_FEEDS
from uc_intg_nasahub.result import FeedResult, ResultStatus

Summary = Tuple[str, str, Optional[str]]


@dataclass(frozen=True)
class FeedView:
    feed_id: str
    status: ResultStatus
    title: str
    description: str
    image_url: Optional[str] = None
    count: int = 0


@dataclass(frozen=True)
class PageView:
    title: str
    description: str
    image_url: Optional[str] = None


def _plural(count: int, word: str, plural: Optional[str] = None) -> str:
    if count == 1:
        return f"1 {word}"
    return f"{count} {plural or word + 's'}"


def _summarize_apod(items: list) -> Summary:
    apod = items[0]
    description = apod.display_date or apod.date
    if apod.copyright:
        description = f"{description} • © {apod.copyright}"
    return apod.title, description, apod.image_url


def _summarize_rover(items: list) -> Summary:
    first = items[0]
    cameras = sorted({photo.camera_name for photo in items if photo.camera_name})
    camera_summary = f"{len(cameras)} cameras" if len(cameras) > 1 else (cameras[0] if cameras else "camera unknown")
    rover = first.rover_name or "Rover"
    title = f"{rover} Sol {first.sol} • {_plural(len(items), 'image')}"
    return title, f"{camera_summary} • {first.display_date or first.earth_date}", first.img_src


def _summarize_exoplanets(items: list) -> Summary:
    names = ", ".join(planet.name for planet in items[:3])
    return _plural(len(items), "confirmed exoplanet"), names, None


def _summarize_launches(items: list) -> Summary:
    launch = items[0]
    parts = [part for part in (launch.display_net, launch.provider, launch.status) if part]
    if launch.webcast_live:
        parts.append("LIVE")
    return f"Next launch: {launch.name or launch.id}", " • ".join(parts), launch.image


def _summarize_iss(items: list) -> Summary:
    iss = items[0]
    title = f"ISS {iss.region} • {iss.latitude:.2f}°, {iss.longitude:.2f}°"
    return title, iss.display_time, None


def _summarize_flares(items: list) -> Summary:
    latest = items[-1]
    description = f"Latest: {latest.class_type or 'flare'} peak {latest.peak_time or latest.begin_time}"
    return _plural(len(items), "solar flare"), description, None


def _summarize_cmes(items: list) -> Summary:
    latest = items[-1]
    description = f"Latest: {latest.start_time}"
    analysis = latest.most_accurate
    if analysis and analysis.speed is not None:
        description = f"{description} • {analysis.speed:g} km/s"
    return _plural(len(items), "CME"), description, None


def _summarize_storms(items: list) -> Summary:
    peaks = [storm.max_kp for storm in items if storm.max_kp is not None]
    description = f"Max Kp {max(peaks):g}" if peaks else f"Latest: {items[-1].start_time}"
    return _plural(len(items), "geomagnetic storm"), description, None


def _summarize_epic(items: list) -> Summary:
    image = items[0]
    title = f"Earth • {image.caption}" if image.caption else "Earth full-disc imagery"
    description = image.date
    if image.latitude is not None and image.longitude is not None:
        description = f"{description} • Center: {image.latitude:.1f}°, {image.longitude:.1f}°"
    return title, description, image.url


def _summarize_media(items: list) -> Summary:
    first = items[0]
    thumbnail = next((item.thumbnail for item in items if item.thumbnail), None)
    description = f"{first.title} ({first.date_created})" if first.date_created else first.title
    return _plural(len(items), "result"), description, thumbnail


SUMMARIZERS: Dict[str, Callable[[list], Summary]] = {
    "apod": _summarize_apod,
    "mars_photos": _summarize_rover,
    "exoplanets": _summarize_exoplanets,
    "launches": _summarize_launches,
    "iss": _summarize_iss,
    "donki_flr": _summarize_flares,
    "donki_cme": _summarize_cmes,
    "donki_gst": _summarize_storms,
    "epic": _summarize_epic,
    "media_search": _summarize_media,
}


def render_result(result: FeedResult) -> FeedView:
    """Render one feed result through its error / empty / populated branch."""
    feed = ALL_FEEDS.get(result.feed_id)
    name = feed.name if feed else result.feed_id

    if result.is_error:
        return FeedView(result.feed_id, result.status, f"{name[:1].upper()}{name[1:]} unavailable", result.error or "")

    if result.is_empty:
        return FeedView(result.feed_id, result.status, f"No {name}", result.notice or "Nothing to show right now")

    items = result.items
    summarize = SUMMARIZERS.get(result.feed_id)
    if summarize is None:
        return FeedView(result.feed_id, result.status, name, _plural(len(items), "item"), count=len(items))

    title, description, image_url = summarize(items)
    return FeedView(result.feed_id, result.status, title, description, image_url, len(items))


def render_page(page: PageResult) -> PageView:
    """Combine a page's feed views; failed feeds never hide the ones that loaded."""
    views: List[FeedView] = [render_result(result) for result in page.results.values()]
    if not views:
        return PageView("Nothing to show", "")

    if len(views) == 1:
        view = views[0]
        return PageView(view.title, view.description, view.image_url)

    title = " • ".join(view.title for view in views)
    description = " | ".join(view.description for view in views if view.description)
    image_url = next((view.image_url for view in views if view.image_url), None)
    return PageView(title, description, image_url)
