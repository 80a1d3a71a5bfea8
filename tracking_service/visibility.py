"""
Hybrid Visibility Evaluator

A satellite counts as visible to the region when any of three independent
signals fires:

1. its elevation from the region centre is above the horizon,
2. the first registered city observer that sees it above the horizon,
3. its sub-satellite point lies inside the region polygon.

All three signals are returned with their evidence, not just the aggregate.
"""

from datetime import datetime, timezone
from typing import Optional

from tracking_service.best_observer import NO_SIGNAL, BestObserverPassSelector, ObserverSample
from tracking_service.ephemeris import EphemerisService
from tracking_service.models import OrbitalElementSet, PositionSample, VisibilityResult
from tracking_service.observers import ObserverRegistry

# Elevation reported when the centre query yields no signal
BELOW_HORIZON_DEG = -90.0


class HybridVisibilityEvaluator:
    def __init__(self, ephemeris: EphemerisService, registry: ObserverRegistry):
        self.registry = registry
        self._sampler = BestObserverPassSelector(ephemeris, registry)

    def center_elevation(self, elements: OrbitalElementSet, now: datetime) -> float:
        sample = self._sampler.sample_observer(elements, self.registry.center, now)
        return sample.elevation_deg if sample.has_signal else BELOW_HORIZON_DEG

    def first_visible_observer(self, elements: OrbitalElementSet, now: datetime) -> ObserverSample:
        """First observer in registration order with elevation > 0, else NO_SIGNAL."""
        for observer in self.registry.observers:
            sample = self._sampler.sample_observer(elements, observer, now)
            if sample.has_signal and sample.elevation_deg > 0:
                return sample
        return NO_SIGNAL

    def evaluate(
        self,
        elements: OrbitalElementSet,
        position: PositionSample,
        now: Optional[datetime] = None,
    ) -> VisibilityResult:
        now = now or position.timestamp or datetime.now(timezone.utc)
        elements.require_lines()

        center_elevation = self.center_elevation(elements, now)
        elevation_visible = center_elevation > 0

        city = self.first_visible_observer(elements, now)
        city_visible = city.has_signal

        in_polygon = self.registry.contains(position.latitude, position.longitude)

        return VisibilityResult(
            visible=elevation_visible or city_visible or in_polygon,
            elevation_visible=elevation_visible,
            center_elevation_deg=center_elevation,
            city_visible=city_visible,
            matched_city=city.observer,
            matched_city_elevation_deg=city.elevation_deg,
            in_region_polygon=in_polygon,
        )
