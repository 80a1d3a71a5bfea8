"""
Tracking engine facade.

Wires the ephemeris service, almanac, observer registry and position cache
into the operations the web application calls.
"""

from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from config import (
    BEST_PASS_LOOKAHEAD_MINUTES,
    BEST_PASS_STEP_SECONDS,
    TrackingServiceConfig,
)
from logging_config import get_logger
from tracking_service.almanac import Almanac, SkyfieldAlmanac
from tracking_service.best_observer import BestObserverPassSelector
from tracking_service.ephemeris import EphemerisService, Sgp4Ephemeris
from tracking_service.errors import MalformedElements, MissingElements, TrackingError
from tracking_service.models import (
    GroundTrackPoint,
    OrbitalElementSet,
    PassWindow,
    PositionSample,
    VisibilityResult,
)
from tracking_service.observers import ObserverRegistry, load_registry
from tracking_service.pass_scanner import PassScanner
from tracking_service.position_cache import InMemoryStore, PositionCache, RedisStore
from tracking_service.position_resolver import PositionResolver
from tracking_service.tle_parser import element_metadata
from tracking_service.visibility import HybridVisibilityEvaluator

logger = get_logger(__name__)


def isoformat_utc(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def satellite_summary(elements: OrbitalElementSet, now: datetime) -> Dict[str, Any]:
    """
    Identity of the satellite plus the derived freshness of its elements.

    TLE epoch and orbital period are included when the satellite has lines.
    """
    summary = {
        "name": elements.name,
        "norad_id": elements.norad_id,
        "tle_age_hours": round(elements.age_hours(now), 2),
        "tle_status": elements.status(now),
    }
    try:
        line1, line2 = elements.require_lines()
    except MissingElements:
        return summary

    metadata = element_metadata(line1, line2)
    summary["tle_epoch"] = isoformat_utc(metadata.epoch)
    summary["period_minutes"] = (
        round(metadata.period_minutes, 2) if metadata.period_minutes is not None else None
    )
    return summary


class TrackingEngine:
    def __init__(
        self,
        ephemeris: Optional[EphemerisService] = None,
        almanac: Optional[Almanac] = None,
        registry: Optional[ObserverRegistry] = None,
        cache: Optional[PositionCache] = None,
    ):
        self.ephemeris = ephemeris or Sgp4Ephemeris()
        self.almanac = almanac or SkyfieldAlmanac(TrackingServiceConfig().SKYFIELD_DATA_DIR)
        self.registry = registry or load_registry()
        self.cache = cache or PositionCache()

        self.resolver = PositionResolver(self.ephemeris)
        self.scanner = PassScanner(self.ephemeris, self.almanac)
        self.selector = BestObserverPassSelector(self.ephemeris, self.registry)
        self.visibility = HybridVisibilityEvaluator(self.ephemeris, self.registry)

    @classmethod
    def from_config(cls, config: TrackingServiceConfig) -> "TrackingEngine":
        if config.POSITION_CACHE_BACKEND == "redis":
            store = RedisStore.from_url(config.REDIS_URL)
        else:
            store = InMemoryStore()
        return cls(
            almanac=SkyfieldAlmanac(config.SKYFIELD_DATA_DIR),
            registry=load_registry(config.REGION_DATA_PATH),
            cache=PositionCache(store, ttl_seconds=config.POSITION_CACHE_TTL),
        )

    def compute_next_pass(
        self,
        elements: OrbitalElementSet,
        observer_lat: float,
        observer_lon: float,
        now: Optional[datetime] = None,
    ) -> Optional[PassWindow]:
        return self.scanner.compute_next_pass(elements, observer_lat, observer_lon, now=now)

    def get_current_position(
        self, elements: OrbitalElementSet, now: Optional[datetime] = None
    ) -> PositionSample:
        return self.resolver.current_position(elements, now)

    def get_ground_track(
        self, elements: OrbitalElementSet, now: Optional[datetime] = None
    ) -> List[GroundTrackPoint]:
        return self.resolver.ground_track(elements, now)

    def get_hybrid_visibility(
        self,
        elements: OrbitalElementSet,
        position: PositionSample,
        now: Optional[datetime] = None,
    ) -> VisibilityResult:
        return self.visibility.evaluate(elements, position, now)

    def get_best_next_pass(
        self,
        elements: OrbitalElementSet,
        lookahead_minutes: float = BEST_PASS_LOOKAHEAD_MINUTES,
        step_seconds: float = BEST_PASS_STEP_SECONDS,
        now: Optional[datetime] = None,
    ) -> Optional[PassWindow]:
        return self.selector.get_best_next_pass(elements, lookahead_minutes, step_seconds, now)

    def get_cached_current_state(
        self, satellite_key: str, compute_fn: Callable[[], Dict[str, Any]]
    ) -> Tuple[Dict[str, Any], bool]:
        return self.cache.get_cached_current_state(satellite_key, compute_fn)

    def build_current_state(
        self,
        elements: OrbitalElementSet,
        lookahead_minutes: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """
        Assemble position, ground track, visibility and optionally the next
        multi-observer pass into one response.

        Position failures propagate. A failing next-pass search only drops
        the next_pass field.
        """
        now = now or datetime.now(timezone.utc)

        position = self.get_current_position(elements, now)
        orbit_path = self.get_ground_track(elements, now)
        visibility = self.get_hybrid_visibility(elements, position, now)

        response = {
            "satellite": satellite_summary(elements, now),
            "currentPosition": position.to_response(),
            "orbitPath": [point.to_response() for point in orbit_path],
            "is_visible_from_region": visibility.visible,
            "visibility_details": visibility.to_response(),
            "timestamp": isoformat_utc(now),
            "cached": False,
        }

        if lookahead_minutes is not None and lookahead_minutes > 0:
            try:
                next_pass = self.get_best_next_pass(elements, lookahead_minutes, BEST_PASS_STEP_SECONDS, now)
            except (MissingElements, MalformedElements):
                raise
            except TrackingError as e:
                logger.warning("next_pass_failed", satellite=elements.name, error=str(e))
                next_pass = None
            if next_pass is not None:
                response["next_pass"] = next_pass.to_response()

        return response

    def current_state(
        self, elements: OrbitalElementSet, lookahead_minutes: Optional[int] = None
    ) -> Tuple[Dict[str, Any], bool]:
        """Cached current state keyed by satellite identity."""
        key = str(elements.norad_id if elements.norad_id is not None else elements.name)
        return self.get_cached_current_state(
            key, lambda: self.build_current_state(elements, lookahead_minutes)
        )
