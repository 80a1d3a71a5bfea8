"""
Data models for the tracking engine.

Request-scoped results (positions, passes, visibility) are pydantic models so
the HTTP layer can serialise them directly; field aliases follow the camelCase
keys the browser client reads.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from config import STALE_TLE_HOURS
from tracking_service.errors import MissingElements


class CamelModel(BaseModel):
    """Base model serialising with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_response(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class OrbitalElementSet(BaseModel):
    """Latest TLE pair for one satellite and when it was acquired"""

    model_config = ConfigDict(frozen=True)

    name: str
    norad_id: Optional[int] = None
    line1: Optional[str] = None
    line2: Optional[str] = None
    acquired_at: Optional[datetime] = None
    # Libration-point and other missions that do not orbit Earth
    non_orbiting: bool = False

    def require_lines(self) -> Tuple[str, str]:
        """Return the stripped TLE lines or raise MissingElements."""
        line1 = (self.line1 or "").strip()
        line2 = (self.line2 or "").strip()
        if not line1 or not line2:
            raise MissingElements(self.name)
        return line1, line2

    def age_hours(self, now: Optional[datetime] = None) -> float:
        now = now or datetime.now(timezone.utc)
        acquired = self.acquired_at or now
        if acquired.tzinfo is None:
            acquired = acquired.replace(tzinfo=timezone.utc)
        return (now - acquired).total_seconds() / 3600.0

    def status(self, now: Optional[datetime] = None) -> str:
        return "stale" if self.age_hours(now) > STALE_TLE_HOURS else "fresh"


class ObserverPoint(CamelModel):
    """Named geographic point used as an elevation probe"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    name: str
    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)
    altitude_m: float = 0.0


class RegionPolygon(BaseModel):
    """
    Containment boundary as rings of (longitude, latitude) vertices.

    Only the first (outer) ring is evaluated; holes are not subtracted.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    rings: List[List[Tuple[float, float]]]

    @property
    def outer_ring(self) -> List[Tuple[float, float]]:
        return self.rings[0] if self.rings else []


class PositionSample(CamelModel):
    latitude: float
    longitude: float
    altitude_km: float
    timestamp: datetime


class GroundTrackPoint(CamelModel):
    latitude: float
    longitude: float


class PassWindow(CamelModel):
    """
    Contiguous above-horizon interval.

    truncated is set when the window was still open at the last scanned step,
    in which case end_time is only the last time the object was seen up.
    """

    start_time: datetime
    end_time: datetime
    duration_seconds: float
    max_elevation_deg: float
    day_night: Optional[str] = None
    best_observer: Optional[ObserverPoint] = None
    truncated: bool = False


class VisibilityResult(CamelModel):
    visible: bool
    elevation_visible: bool
    center_elevation_deg: float
    city_visible: bool
    matched_city: Optional[ObserverPoint] = None
    matched_city_elevation_deg: Optional[float] = None
    in_region_polygon: bool


class CacheEntry(BaseModel):
    key: str
    computed_at: float
    response: Dict[str, Any]
