"""
Tracking Service Configuration and Constants

This module contains the physical constants, scan defaults and fallback TLE
data used throughout the pass-prediction and visibility engine, plus the
environment-driven service configuration.

Constants:
    EARTH_RADIUS_KM is the mean Earth radius used for the range-based altitude
    fallback. The WGS-84 ellipsoid values are used for frame conversions.

Fallback TLE Data:
    Hardcoded ISS TLE data for demonstrations and testing when no element
    catalogue is configured.

    IMPORTANT: Elements older than STALE_TLE_HOURS are reported as stale.
    Positions propagated from stale elements may fail the altitude sanity
    check and are rejected rather than clamped.

    Sources for updated TLEs:
    - Space-Track.org (requires free registration)
    - CelesTrak.org (public access)
"""

import os
from typing import Dict, Any

# Mean Earth radius (km), used when the ephemeris gives range but no height
EARTH_RADIUS_KM: float = 6371.0

# WGS-84 ellipsoid
WGS84_A_KM: float = 6378.137
WGS84_F: float = 1.0 / 298.257223563

# Altitude sanity band (km)
MIN_PLAUSIBLE_ALTITUDE_KM: float = 100.0
MAX_PLAUSIBLE_ALTITUDE_KM: float = 2000.0

# TLE freshness
STALE_TLE_HOURS: float = 168.0

# Ground track: one representative LEO period sampled every minute
GROUND_TRACK_STEP_SECONDS: int = 60
GROUND_TRACK_PERIOD_MINUTES: int = 100

# Single-observer pass scan
PASS_LOOKAHEAD_HOURS: float = 6.0
PASS_STEP_SECONDS: int = 30

# Best-observer pass scan
BEST_PASS_LOOKAHEAD_MINUTES: int = 60
BEST_PASS_STEP_SECONDS: int = 30

# Upper bound on a caller-requested best-pass lookahead (one day)
MAX_LOOKAHEAD_MINUTES: int = 1440

# Civil twilight threshold for day/night classification (degrees)
TWILIGHT_SOLAR_ALTITUDE_DEG: float = -6.0

# Position cache
POSITION_CACHE_TTL_SECONDS: float = 5.0

# Fallback ISS TLE for demonstrations and testing
FALLBACK_ISS_TLE: Dict[str, Any] = {
    'name': 'ISS (ZARYA)',
    'norad_id': 25544,
    'line1': '1 25544U 98067A   23259.57580000  .00012022  00000-0  21844-3 0  9995',
    'line2': '2 25544  51.6416 220.9944 0004263 122.0101 312.2755 15.49541986415598',
    'acquired_at': '2023-09-16T13:49:09Z',
}


class TrackingServiceConfig:
    """Service settings read from the environment."""

    def __init__(self, environ=None):
        env = os.environ if environ is None else environ
        self.REDIS_URL = env.get('REDIS_URL', 'redis://localhost:6379')
        self.POSITION_CACHE_BACKEND = env.get('POSITION_CACHE_BACKEND', 'memory').lower()
        self.POSITION_CACHE_TTL = float(
            env.get('POSITION_CACHE_TTL', str(POSITION_CACHE_TTL_SECONDS))
        )
        self.MAX_LOOKAHEAD_MINUTES = int(
            env.get('MAX_LOOKAHEAD_MINUTES', str(MAX_LOOKAHEAD_MINUTES))
        )
        self.OPENWEATHER_API_KEY = env.get('OPENWEATHER_API_KEY', '')
        self.SKYFIELD_DATA_DIR = env.get('SKYFIELD_DATA_DIR', os.path.expanduser('~/.skyfield'))
        self.REGION_DATA_PATH = env.get('REGION_DATA_PATH') or None
        self.SATELLITE_CATALOG_PATH = env.get('SATELLITE_CATALOG_PATH') or None
        self.LOG_LEVEL = env.get('LOG_LEVEL', 'INFO').upper()
        self.JSON_LOGS = env.get('JSON_LOGS', 'false').lower() == 'true'
