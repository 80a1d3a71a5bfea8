"""
Astronomical almanac: solar altitude and day/night classification.

The skyfield almanac needs the JPL DE421 ephemeris; it is loaded on first use
from the configured data directory (downloaded there if absent).
"""

import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone

from skyfield.api import Loader, wgs84

from config import TWILIGHT_SOLAR_ALTITUDE_DEG
from logging_config import get_logger

logger = get_logger(__name__)

DAYLIGHT = "Daylight"
NIGHT = "Night"


class Almanac(ABC):
    @abstractmethod
    def solar_altitude(self, timestamp: datetime, latitude: float, longitude: float) -> float:
        """Apparent altitude of the Sun in degrees for a ground observer."""


class SkyfieldAlmanac(Almanac):
    """Almanac backed by skyfield and the DE421 planetary ephemeris."""

    def __init__(self, data_dir: str, ephemeris_file: str = "de421.bsp"):
        self._loader = Loader(data_dir, verbose=False)
        self._ephemeris_file = ephemeris_file
        self._lock = threading.Lock()
        self._ts = None
        self._earth = None
        self._sun = None

    def _load(self):
        with self._lock:
            if self._sun is None:
                logger.info("loading_planetary_ephemeris", file=self._ephemeris_file)
                planets = self._loader(self._ephemeris_file)
                self._ts = self._loader.timescale()
                self._earth = planets["earth"]
                self._sun = planets["sun"]

    def solar_altitude(self, timestamp: datetime, latitude: float, longitude: float) -> float:
        if self._sun is None:
            self._load()
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=timezone.utc)

        t = self._ts.from_datetime(timestamp)
        observer = self._earth + wgs84.latlon(latitude, longitude)
        alt, _, _ = observer.at(t).observe(self._sun).apparent().altaz()
        return alt.degrees


def day_night_phase(
    almanac: Almanac,
    timestamp: datetime,
    latitude: float,
    longitude: float,
    threshold_deg: float = TWILIGHT_SOLAR_ALTITUDE_DEG,
) -> str:
    """Daylight while the Sun is above the civil-twilight threshold."""
    altitude = almanac.solar_altitude(timestamp, latitude, longitude)
    return DAYLIGHT if altitude > threshold_deg else NIGHT
