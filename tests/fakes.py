"""
Deterministic collaborators for engine tests.

ScriptedEphemeris answers every query from plain functions of time (seconds
since a fixed start) and observer, so pass windows and visibility signals can
be laid out exactly.
"""

from datetime import datetime, timezone

from tracking_service.almanac import Almanac
from tracking_service.ephemeris import EphemerisService, LookAngles, SubPoint
from tracking_service.models import ObserverPoint, OrbitalElementSet, RegionPolygon
from tracking_service.observers import ObserverRegistry

T0 = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)

ISS_LINE1 = "1 25544U 98067A   23259.57580000  .00012022  00000-0  21844-3 0  9995"
ISS_LINE2 = "2 25544  51.6416 220.9944 0004263 122.0101 312.2755 15.49541986415598"
ISS_EPOCH = datetime(2023, 9, 16, 13, 49, 9, tzinfo=timezone.utc)


def make_elements(name="TESTSAT", **kwargs) -> OrbitalElementSet:
    fields = dict(
        name=name,
        norad_id=25544,
        line1=ISS_LINE1,
        line2=ISS_LINE2,
        acquired_at=T0,
    )
    fields.update(kwargs)
    return OrbitalElementSet(**fields)


class ScriptedEphemeris(EphemerisService):
    """
    elevation(t, observer_name) -> degrees, or raises to simulate a failure.
    subpoint(t) -> (lat, lon, height_km).
    """

    def __init__(self, elevation=None, subpoint=None, range_km=None, start=T0, names=None):
        self.elevation = elevation or (lambda t, name: -10.0)
        self.subpoint = subpoint or (lambda t: (22.0, 78.0, 420.0))
        self.range_km = range_km
        self.start = start
        self.names = names or {}
        self.observe_calls = 0
        self.propagate_calls = 0

    def _t(self, timestamp):
        return (timestamp - self.start).total_seconds()

    def propagate(self, elements, timestamp):
        self.propagate_calls += 1
        elements.require_lines()
        return SubPoint(*self.subpoint(self._t(timestamp)))

    def observe(self, elements, timestamp, observer_lat, observer_lon, observer_alt_m=0.0):
        self.observe_calls += 1
        elements.require_lines()
        t = self._t(timestamp)
        name = self.names.get((observer_lat, observer_lon))
        lat, lon, height = self.subpoint(t)
        range_km = self.range_km(t) if self.range_km else 1000.0
        return LookAngles(self.elevation(t, name), 0.0, range_km, height)


class FixedAlmanac(Almanac):
    def __init__(self, altitude=30.0):
        self.altitude = altitude
        self.calls = []

    def solar_altitude(self, timestamp, latitude, longitude):
        self.calls.append((timestamp, latitude, longitude))
        return self.altitude


class ManualClock:
    def __init__(self, now=1_700_000_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


SQUARE = RegionPolygon(
    name="Square",
    rings=[[(70.0, 10.0), (90.0, 10.0), (90.0, 30.0), (70.0, 30.0), (70.0, 10.0)]],
)

CITY_A = ObserverPoint(name="City A", latitude=28.0, longitude=77.0)
CITY_B = ObserverPoint(name="City B", latitude=19.0, longitude=73.0)
CITY_C = ObserverPoint(name="City C", latitude=13.0, longitude=80.0)
CENTER = ObserverPoint(name="Region Center", latitude=22.0, longitude=78.0)


def make_registry(observers=(CITY_A, CITY_B, CITY_C), center=CENTER, polygon=SQUARE):
    return ObserverRegistry(observers, center, polygon)


def names_for(registry):
    """Map (lat, lon) back to observer names for ScriptedEphemeris."""
    return {(o.latitude, o.longitude): o.name for o in registry.with_center()}
