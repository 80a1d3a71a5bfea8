"""
Best-Observer Pass Selector

Generalises the single-observer pass search to the whole observer registry
plus the region centre: at each step the highest elevation across all
observers is taken, and the window logic runs on that per-step maximum.
"""

from datetime import datetime, timezone
from typing import NamedTuple, Optional

from config import BEST_PASS_LOOKAHEAD_MINUTES, BEST_PASS_STEP_SECONDS
from tracking_service.ephemeris import EphemerisService
from tracking_service.models import ObserverPoint, OrbitalElementSet, PassWindow
from tracking_service.observers import ObserverRegistry
from tracking_service.pass_scanner import StepSample, sample_elevation, scan_first_window, step_times


class ObserverSample(NamedTuple):
    """
    Elevation of the satellite for one observer at one step.

    elevation_deg is None when the observer produced no signal for the step.
    """

    observer: Optional[ObserverPoint]
    elevation_deg: Optional[float]

    @property
    def has_signal(self) -> bool:
        return self.elevation_deg is not None


NO_SIGNAL = ObserverSample(None, None)


class BestObserverPassSelector:
    def __init__(self, ephemeris: EphemerisService, registry: ObserverRegistry):
        self.ephemeris = ephemeris
        self.registry = registry
        self._probes = registry.with_center()

    def sample_observer(
        self, elements: OrbitalElementSet, observer: ObserverPoint, timestamp: datetime
    ) -> ObserverSample:
        elevation = sample_elevation(
            lambda: self.ephemeris.observe(
                elements, timestamp, observer.latitude, observer.longitude, observer.altitude_m
            ).elevation_deg
        )
        if elevation is None:
            return NO_SIGNAL
        return ObserverSample(observer, elevation)

    def best_sample(self, elements: OrbitalElementSet, timestamp: datetime) -> ObserverSample:
        """Highest elevation across observers and centre; earlier observers win ties."""
        best = NO_SIGNAL
        for observer in self._probes:
            sample = self.sample_observer(elements, observer, timestamp)
            if sample.has_signal and (not best.has_signal or sample.elevation_deg > best.elevation_deg):
                best = sample
        return best

    def get_best_next_pass(
        self,
        elements: OrbitalElementSet,
        lookahead_minutes: float = BEST_PASS_LOOKAHEAD_MINUTES,
        step_seconds: float = BEST_PASS_STEP_SECONDS,
        now: Optional[datetime] = None,
    ) -> Optional[PassWindow]:
        """
        Find the first window in which any observer sees the satellite.

        The reported best_observer is whichever observer held the per-step
        maximum at the step of peak elevation.

        Raises:
            MissingElements: If the TLE lines are absent
            MalformedElements: If the TLE cannot be parsed
        """
        now = now or datetime.now(timezone.utc)
        elements.require_lines()

        def step(timestamp: datetime) -> StepSample:
            best = self.best_sample(elements, timestamp)
            return StepSample(timestamp, best.elevation_deg, best.observer)

        result = scan_first_window(
            step(ts) for ts in step_times(now, lookahead_minutes * 60.0, step_seconds)
        )
        if result is None or result.max_elevation_deg <= 0:
            return None

        return PassWindow(
            start_time=result.start_time,
            end_time=result.end_time,
            duration_seconds=(result.end_time - result.start_time).total_seconds(),
            max_elevation_deg=round(result.max_elevation_deg, 2),
            best_observer=result.peak_observer,
            truncated=result.truncated,
        )
