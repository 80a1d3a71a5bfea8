"""
Pass Scanner

Fixed-step forward search for the next contiguous interval during which a
satellite is above an observer's horizon.

The window logic is a fold over a lazy stream of step samples, shared with the
multi-observer selector. A sample whose elevation is None carries no signal
for that step and counts as "not above the horizon".
"""

import math
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, Iterator, NamedTuple, Optional

from config import PASS_LOOKAHEAD_HOURS, PASS_STEP_SECONDS
from logging_config import get_logger
from tracking_service.almanac import Almanac, day_night_phase
from tracking_service.ephemeris import EphemerisService
from tracking_service.errors import MalformedElements, MissingElements
from tracking_service.models import ObserverPoint, OrbitalElementSet, PassWindow

logger = get_logger(__name__)


class StepSample(NamedTuple):
    timestamp: datetime
    elevation_deg: Optional[float]
    observer: Optional[ObserverPoint] = None


class ScanResult(NamedTuple):
    start_time: datetime
    end_time: datetime
    max_elevation_deg: float
    peak_observer: Optional[ObserverPoint]
    truncated: bool


def step_times(start: datetime, horizon_seconds: float, step_seconds: float) -> Iterator[datetime]:
    """Yield start, start + step, ... up to and including the last step inside the horizon."""
    if step_seconds <= 0:
        raise ValueError("step_seconds must be positive")
    total_steps = int(horizon_seconds // step_seconds)
    for i in range(total_steps + 1):
        yield start + timedelta(seconds=i * step_seconds)


def scan_first_window(samples: Iterable[StepSample]) -> Optional[ScanResult]:
    """
    Fold samples into the first contiguous above-horizon window.

    The window opens at the first sample with elevation > 0 and closes at the
    next sample that is not above the horizon. Consumption stops there, so
    later windows are never evaluated. A window still open when the samples
    run out is reported with its last seen end time and truncated=True.
    """
    start = end = None
    peak = -90.0
    peak_observer = None

    for sample in samples:
        elevation = sample.elevation_deg
        if elevation is not None and elevation > 0:
            if start is None:
                start = sample.timestamp
            end = sample.timestamp
            if elevation > peak:
                peak = elevation
                peak_observer = sample.observer
        elif start is not None:
            return ScanResult(start, end, peak, peak_observer, False)

    if start is None:
        return None
    return ScanResult(start, end, peak, peak_observer, True)


class PassScanner:
    """Next-pass search for a single observer."""

    def __init__(self, ephemeris: EphemerisService, almanac: Almanac):
        self.ephemeris = ephemeris
        self.almanac = almanac

    def compute_next_pass(
        self,
        elements: OrbitalElementSet,
        observer_lat: float,
        observer_lon: float,
        now: Optional[datetime] = None,
        lookahead_hours: float = PASS_LOOKAHEAD_HOURS,
        step_seconds: float = PASS_STEP_SECONDS,
        observer_alt_m: float = 0.0,
    ) -> Optional[PassWindow]:
        """
        Find the next pass over (observer_lat, observer_lon).

        Returns:
            The first PassWindow within the lookahead, or None if the object
            never rises above the horizon

        Raises:
            MissingElements: If the TLE lines are absent
            MalformedElements: If the TLE cannot be parsed
        """
        now = now or datetime.now(timezone.utc)
        elements.require_lines()

        def elevation_at(timestamp: datetime) -> Optional[float]:
            return self._elevation(elements, timestamp, observer_lat, observer_lon, observer_alt_m)

        samples = (
            StepSample(ts, elevation_at(ts))
            for ts in step_times(now, lookahead_hours * 3600.0, step_seconds)
        )
        result = scan_first_window(samples)
        if result is None:
            return None

        return PassWindow(
            start_time=result.start_time,
            end_time=result.end_time,
            duration_seconds=(result.end_time - result.start_time).total_seconds(),
            max_elevation_deg=result.max_elevation_deg,
            day_night=self._day_night(result.start_time, observer_lat, observer_lon),
            truncated=result.truncated,
        )

    def _elevation(
        self,
        elements: OrbitalElementSet,
        timestamp: datetime,
        lat: float,
        lon: float,
        alt_m: float,
    ) -> Optional[float]:
        return sample_elevation(
            lambda: self.ephemeris.observe(elements, timestamp, lat, lon, alt_m).elevation_deg
        )

    def _day_night(self, timestamp: datetime, lat: float, lon: float) -> Optional[str]:
        try:
            return day_night_phase(self.almanac, timestamp, lat, lon)
        except Exception as e:
            logger.warning("day_night_unavailable", error=str(e))
            return None


def sample_elevation(query: Callable[[], float]) -> Optional[float]:
    """
    Run one elevation query, mapping per-step failures to None.

    Missing or malformed elements are not per-step conditions and propagate.
    """
    try:
        elevation = query()
    except (MissingElements, MalformedElements):
        raise
    except Exception as e:
        logger.debug("elevation_sample_failed", error=str(e))
        return None

    if elevation is None or not math.isfinite(elevation):
        return None
    return elevation
