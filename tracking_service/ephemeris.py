"""
Ephemeris Service

Stateless geometry queries on top of the sgp4 library: the sub-satellite point
at an instant, and the look angles (elevation, azimuth, slant range) from a
ground observer.

Frames:
    SGP4 returns TEME position vectors. These are rotated into ECEF with the
    Greenwich sidereal angle, then converted to WGS-84 geodetic coordinates.
    Look angles come from the ECEF range vector expressed in the observer's
    local East-North-Up frame.

Failures:
    Malformed element sets and non-zero SGP4 error codes raise EphemerisError.
    A numeric sentinel is never returned in place of a failure.
"""

import math
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import NamedTuple, Tuple

import numpy as np
from sgp4.api import jday

from config import WGS84_A_KM, WGS84_F
from tracking_service.errors import EphemerisError
from tracking_service.models import OrbitalElementSet
from tracking_service.tle_parser import load_satrec


# SGP4 error code meanings
SGP4_ERROR_CODES = {
    0: "No error",
    1: "Mean eccentricity < 0.0 or > 1.0",
    2: "Mean motion < 0.0",
    3: "Perturbed eccentricity < 0.0 or > 1.0",
    4: "Semi-latus rectum < 0.0",
    5: "Satellite has decayed",
    6: "Satellite has decayed (low altitude)",
}

_E2 = 2.0 * WGS84_F - WGS84_F * WGS84_F
_B_KM = WGS84_A_KM * (1.0 - WGS84_F)
_EP2 = _E2 / (1.0 - _E2)


class SubPoint(NamedTuple):
    latitude: float
    longitude: float
    height_km: float


class LookAngles(NamedTuple):
    elevation_deg: float
    azimuth_deg: float
    range_km: float
    height_km: float


class EphemerisService(ABC):
    """Interface the engine consumes for all orbital geometry."""

    @abstractmethod
    def propagate(self, elements: OrbitalElementSet, timestamp: datetime) -> SubPoint:
        """Sub-satellite latitude/longitude (degrees) and height (km) at timestamp."""

    @abstractmethod
    def observe(
        self,
        elements: OrbitalElementSet,
        timestamp: datetime,
        observer_lat: float,
        observer_lon: float,
        observer_alt_m: float = 0.0,
    ) -> LookAngles:
        """Look angles from a ground observer at timestamp."""


class Sgp4Ephemeris(EphemerisService):
    """EphemerisService backed by sgp4's Satrec propagator."""

    def propagate(self, elements: OrbitalElementSet, timestamp: datetime) -> SubPoint:
        r_ecef = self._ecef_position(elements, timestamp)
        return SubPoint(*ecef_to_geodetic(r_ecef))

    def observe(
        self,
        elements: OrbitalElementSet,
        timestamp: datetime,
        observer_lat: float,
        observer_lon: float,
        observer_alt_m: float = 0.0,
    ) -> LookAngles:
        r_ecef = self._ecef_position(elements, timestamp)
        _, _, height_km = ecef_to_geodetic(r_ecef)
        elevation, azimuth, range_km = look_angles(
            r_ecef, observer_lat, observer_lon, observer_alt_m / 1000.0
        )
        return LookAngles(elevation, azimuth, range_km, height_km)

    def _ecef_position(self, elements: OrbitalElementSet, timestamp: datetime) -> np.ndarray:
        line1, line2 = elements.require_lines()
        satellite = load_satrec(line1, line2)

        jd, fr = datetime_to_jd_fr(timestamp)
        error, r_teme, _ = satellite.sgp4(jd, fr)

        if error != 0:
            raise EphemerisError(
                f"SGP4 error {error}: {SGP4_ERROR_CODES.get(error, f'Unknown error code {error}')}",
                error_code=error,
            )

        return teme_to_ecef(np.asarray(r_teme), jd, fr)


def datetime_to_jd_fr(dt: datetime) -> Tuple[float, float]:
    """
    Convert datetime to Julian date and fraction.

    Naive datetimes are taken to be UTC.
    """
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)
    seconds = dt.second + dt.microsecond / 1e6
    return jday(dt.year, dt.month, dt.day, dt.hour, dt.minute, seconds)


def teme_to_ecef(r_teme: np.ndarray, jd: float, fr: float) -> np.ndarray:
    """
    Rotate a TEME position vector into ECEF about the z axis.

    Args:
        r_teme: Position vector in TEME coordinates [x, y, z] (km)
        jd, fr: Julian date split as returned by sgp4.api.jday

    Returns:
        Position vector in ECEF coordinates (km)
    """
    # Julian centuries from J2000
    T = (jd - 2451545.0 + fr) / 36525.0

    gmst_sec = (
        67310.54841
        + (876600.0 * 3600.0 + 8640184.812866) * T
        + 0.093104 * T * T
        - 6.2e-6 * T * T * T
    )
    gmst_rad = (gmst_sec % 86400.0) * (2.0 * math.pi / 86400.0)

    cos_g = math.cos(gmst_rad)
    sin_g = math.sin(gmst_rad)

    return np.array([
        cos_g * r_teme[0] + sin_g * r_teme[1],
        -sin_g * r_teme[0] + cos_g * r_teme[1],
        r_teme[2],
    ])


def ecef_to_geodetic(r_ecef: np.ndarray) -> Tuple[float, float, float]:
    """
    ECEF to geodetic conversion using Bowring's method.

    Returns:
        Tuple of (latitude_deg, longitude_deg, altitude_km)
    """
    x, y, z = r_ecef
    lon = math.atan2(y, x)
    p = math.hypot(x, y)

    # Pole cases
    if p < 1e-10:
        lat = math.pi / 2.0 if z > 0 else -math.pi / 2.0
        return math.degrees(lat), math.degrees(lon), abs(z) - _B_KM

    theta = math.atan2(z * WGS84_A_KM, p * _B_KM)
    lat = theta
    for _ in range(5):
        sin_t = math.sin(theta)
        cos_t = math.cos(theta)
        lat = math.atan2(
            z + _EP2 * _B_KM * sin_t ** 3,
            p - _E2 * WGS84_A_KM * cos_t ** 3,
        )
        sin_lat = math.sin(lat)
        N = WGS84_A_KM / math.sqrt(1.0 - _E2 * sin_lat * sin_lat)
        new_theta = math.atan2(z + _E2 * N * sin_lat, p)
        if abs(new_theta - theta) < 1e-12:
            break
        theta = new_theta

    sin_lat = math.sin(lat)
    cos_lat = math.cos(lat)
    N = WGS84_A_KM / math.sqrt(1.0 - _E2 * sin_lat * sin_lat)
    if cos_lat > 1e-10:
        alt = p / cos_lat - N
    else:
        alt = z / sin_lat - N * (1.0 - _E2)

    return math.degrees(lat), math.degrees(lon), alt


def geodetic_to_ecef(lat_deg: float, lon_deg: float, alt_km: float = 0.0) -> np.ndarray:
    """Observer position on the WGS-84 ellipsoid in ECEF (km)."""
    lat = math.radians(lat_deg)
    lon = math.radians(lon_deg)
    sin_lat = math.sin(lat)
    cos_lat = math.cos(lat)
    N = WGS84_A_KM / math.sqrt(1.0 - _E2 * sin_lat * sin_lat)
    return np.array([
        (N + alt_km) * cos_lat * math.cos(lon),
        (N + alt_km) * cos_lat * math.sin(lon),
        (N * (1.0 - _E2) + alt_km) * sin_lat,
    ])


def look_angles(
    r_ecef: np.ndarray, lat_deg: float, lon_deg: float, alt_km: float = 0.0
) -> Tuple[float, float, float]:
    """
    Elevation, azimuth (degrees) and slant range (km) of r_ecef seen from a
    geodetic observer.
    """
    rho = r_ecef - geodetic_to_ecef(lat_deg, lon_deg, alt_km)
    lat = math.radians(lat_deg)
    lon = math.radians(lon_deg)
    sin_lat, cos_lat = math.sin(lat), math.cos(lat)
    sin_lon, cos_lon = math.sin(lon), math.cos(lon)

    east = -sin_lon * rho[0] + cos_lon * rho[1]
    north = -sin_lat * cos_lon * rho[0] - sin_lat * sin_lon * rho[1] + cos_lat * rho[2]
    up = cos_lat * cos_lon * rho[0] + cos_lat * sin_lon * rho[1] + sin_lat * rho[2]

    range_km = float(np.linalg.norm(rho))
    if not math.isfinite(range_km) or range_km == 0.0:
        return float("nan"), float("nan"), range_km
    elevation = math.degrees(math.asin(max(-1.0, min(1.0, up / range_km))))
    azimuth = math.degrees(math.atan2(east, north)) % 360.0
    return elevation, azimuth, range_km
