"""
Position Resolver

Turns ephemeris output into a sanity-checked current position and a ground
track suitable for plotting.

The altitude band check is the main guard against stale or corrupted
elements: SGP4 will happily propagate a decayed or mistyped TLE into a
position hundreds of kilometres underground, and such values must never
reach the map as if they were real.
"""

import math
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from config import (
    EARTH_RADIUS_KM,
    GROUND_TRACK_PERIOD_MINUTES,
    GROUND_TRACK_STEP_SECONDS,
    MAX_PLAUSIBLE_ALTITUDE_KM,
    MIN_PLAUSIBLE_ALTITUDE_KM,
)
from logging_config import get_logger
from tracking_service.ephemeris import EphemerisService
from tracking_service.errors import ImplausibleAltitude, InvalidEphemerisOutput
from tracking_service.models import GroundTrackPoint, OrbitalElementSet, PositionSample

logger = get_logger(__name__)

# Reference observer for the height query
_REFERENCE_LAT = 0.0
_REFERENCE_LON = 0.0


class PositionResolver:
    def __init__(self, ephemeris: EphemerisService):
        self.ephemeris = ephemeris

    def current_position(
        self, elements: OrbitalElementSet, now: Optional[datetime] = None
    ) -> PositionSample:
        """
        Resolve the sub-satellite point and altitude at now.

        Raises:
            MissingElements: If the TLE lines are absent
            EphemerisError: If the propagator rejects the elements
            InvalidEphemerisOutput: If latitude/longitude are not finite
            ImplausibleAltitude: If altitude is outside [100, 2000] km
        """
        now = now or datetime.now(timezone.utc)
        elements.require_lines()

        sub = self.ephemeris.propagate(elements, now)
        if not (math.isfinite(sub.latitude) and math.isfinite(sub.longitude)):
            raise InvalidEphemerisOutput(
                f"TLE produced invalid coordinates (NaN or Infinity) for {elements.name}"
            )

        altitude_km = self._resolve_altitude(elements, now)

        if (
            not math.isfinite(altitude_km)
            or altitude_km < MIN_PLAUSIBLE_ALTITUDE_KM
            or altitude_km > MAX_PLAUSIBLE_ALTITUDE_KM
        ):
            logger.warning(
                "altitude_rejected",
                satellite=elements.name,
                altitude_km=altitude_km,
                tle_age_hours=round(elements.age_hours(now), 2),
            )
            raise ImplausibleAltitude(altitude_km, elements.name)

        return PositionSample(
            latitude=sub.latitude,
            longitude=sub.longitude,
            altitude_km=round(altitude_km, 2),
            timestamp=now,
        )

    def _resolve_altitude(self, elements: OrbitalElementSet, now: datetime) -> float:
        """Height from the reference observer, else range minus Earth radius."""
        angles = self.ephemeris.observe(elements, now, _REFERENCE_LAT, _REFERENCE_LON, 0.0)

        height = angles.height_km
        if height is not None and math.isfinite(height) and height > 0:
            return height

        range_km = angles.range_km
        if range_km is not None and math.isfinite(range_km):
            return max(0.0, range_km - EARTH_RADIUS_KM)

        return float("nan")

    def ground_track(
        self, elements: OrbitalElementSet, now: Optional[datetime] = None
    ) -> List[GroundTrackPoint]:
        """
        Sample one representative orbital period ahead of now.

        Points that fail to propagate are skipped. Longitudes are unwrapped
        so consecutive points never differ by more than 180 degrees.
        """
        if elements.non_orbiting:
            return []

        now = now or datetime.now(timezone.utc)
        elements.require_lines()

        max_points = (GROUND_TRACK_PERIOD_MINUTES * 60) // GROUND_TRACK_STEP_SECONDS
        track: List[GroundTrackPoint] = []
        prev_lon = None

        for i in range(max_points):
            timestamp = now + timedelta(seconds=i * GROUND_TRACK_STEP_SECONDS)
            try:
                sub = self.ephemeris.propagate(elements, timestamp)
            except Exception as e:
                logger.debug("ground_track_point_skipped", satellite=elements.name, error=str(e))
                continue

            if not (math.isfinite(sub.latitude) and math.isfinite(sub.longitude)):
                continue

            longitude = unwrap_longitude(sub.longitude, prev_lon)
            track.append(GroundTrackPoint(latitude=sub.latitude, longitude=longitude))
            prev_lon = longitude

        return track


def unwrap_longitude(longitude: float, previous: Optional[float]) -> float:
    """Shift longitude by whole turns until it is within 180 degrees of previous."""
    if previous is None:
        return longitude
    while longitude - previous > 180.0:
        longitude -= 360.0
    while longitude - previous < -180.0:
        longitude += 360.0
    return longitude
