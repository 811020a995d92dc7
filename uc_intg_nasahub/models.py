"""
Display records produced by the feed normalizers.

Remote APIs evolve, so nearly every field is optional.

:copyright: (c) 2025 by Meir Miyara.
:license: MPL-2.0, see LICENSE for more details.
"""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class ApodRecord:
    """Astronomy Picture of the Day."""

    title: str
    date: str = ""
    display_date: str = ""
    explanation: str = ""
    url: Optional[str] = None
    hdurl: Optional[str] = None
    thumbnail_url: Optional[str] = None
    media_type: str = "image"
    copyright: Optional[str] = None

    @property
    def image_url(self) -> Optional[str]:
        if self.media_type == "video":
            return self.thumbnail_url
        return self.hdurl or self.url


@dataclass
class RoverPhoto:
    id: int
    img_src: str
    sol: Optional[int] = None
    earth_date: str = ""
    display_date: str = ""
    camera_name: str = ""
    camera_full_name: str = ""
    rover_name: str = ""
    rover_status: str = ""


@dataclass
class Exoplanet:
    name: str
    discovery_method: Optional[str] = None
    orbital_period_days: Optional[float] = None
    mass_jupiter: Optional[float] = None
    radius_jupiter: Optional[float] = None
    density: Optional[float] = None
    distance_pc: Optional[float] = None
    star_temp_k: Optional[float] = None


@dataclass
class Launch:
    id: str
    name: str = ""
    net: str = ""
    display_net: str = ""
    status: str = ""
    image: Optional[str] = None
    webcast_live: bool = False
    mission_description: str = ""
    provider: str = ""
    rocket: str = ""
    pad: str = ""
    location: str = ""


@dataclass
class IssPosition:
    latitude: float
    longitude: float
    timestamp: Optional[int] = None
    display_time: str = ""

    @property
    def region(self) -> str:
        """Rough description of what the station is flying over."""
        lat, lon = self.latitude, self.longitude
        if -30 < lat < 30:
            if -20 < lon < 60:
                return "over Africa"
            elif 60 < lon < 150:
                return "over Asia"
            elif 150 < lon or lon < -150:
                return "over Pacific"
            elif -150 < lon < -50:
                return "over Americas"
            else:
                return "over Atlantic"
        elif lat > 30:
            if -150 < lon < -50:
                return "over N.America"
            elif -50 < lon < 60:
                return "over Europe"
            else:
                return "over N.Asia"
        else:
            if -80 < lon < 20:
                return "over S.America"
            elif 20 < lon < 150:
                return "over S.Africa"
            else:
                return "over Oceania"


@dataclass
class CmeAnalysis:
    speed: Optional[float] = None
    half_angle: Optional[float] = None
    kp_index: Optional[str] = None
    arrival_time: str = ""
    is_most_accurate: bool = False


@dataclass
class CmeEvent:
    """Coronal mass ejection; ``analyses`` holds only the most accurate ones."""

    activity_id: str
    start_time: str = ""
    catalog: str = ""
    source_location: str = ""
    active_region: Optional[int] = None
    instruments: List[str] = field(default_factory=list)
    analyses: List[CmeAnalysis] = field(default_factory=list)
    linked_events: List[str] = field(default_factory=list)
    note: str = ""

    @property
    def most_accurate(self) -> Optional[CmeAnalysis]:
        return self.analyses[0] if self.analyses else None


@dataclass
class GeomagneticStorm:
    gst_id: str
    start_time: str = ""
    kp_indices: List[float] = field(default_factory=list)
    linked_events: List[str] = field(default_factory=list)
    link: Optional[str] = None

    @property
    def max_kp(self) -> Optional[float]:
        return max(self.kp_indices) if self.kp_indices else None


@dataclass
class SolarFlare:
    flr_id: str
    class_type: str = ""
    begin_time: str = ""
    peak_time: str = ""
    end_time: str = ""
    source_location: str = ""
    active_region: Optional[int] = None
    instruments: List[str] = field(default_factory=list)
    linked_events: List[str] = field(default_factory=list)
    note: str = ""
    link: Optional[str] = None


@dataclass
class EpicImage:
    """Most recent natural-colour Earth image from DSCOVR/EPIC."""

    image: str
    date: str
    url: str
    archive_path: str = ""
    caption: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None


@dataclass
class MediaItem:
    """One hit from the NASA Image and Video Library."""

    nasa_id: str
    title: str = ""
    description: str = ""
    center: str = ""
    media_type: str = ""
    date_created: str = ""
    keywords: List[str] = field(default_factory=list)
    thumbnail: Optional[str] = None
    details_url: str = ""
