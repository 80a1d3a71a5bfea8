"""
Error taxonomy for the tracking engine.

Precondition and implausibility failures are raised to the caller, which
turns them into user-facing messages. A scan that finds no pass returns
None instead of raising, and per-observer failures inside a scan are
represented as a no-signal sample (see best_observer.ObserverSample).
"""


class TrackingError(Exception):
    """Base class for all engine failures."""


class MissingElements(TrackingError):
    """Raised when a satellite has no usable TLE lines."""

    def __init__(self, satellite_name: str):
        self.satellite_name = satellite_name
        super().__init__(f"Satellite {satellite_name} is missing TLE data")


class EphemerisError(TrackingError):
    """Raised by the ephemeris service for malformed elements or SGP4 failures."""

    def __init__(self, message: str, error_code: int = -1):
        self.error_code = error_code
        super().__init__(message)


class InvalidEphemerisOutput(TrackingError):
    """Raised when the propagator returns non-finite geometry."""


class ImplausibleAltitude(TrackingError):
    """Raised when the resolved altitude falls outside the plausible band."""

    def __init__(self, altitude_km: float, satellite_name: str = ""):
        self.altitude_km = altitude_km
        self.satellite_name = satellite_name
        super().__init__(
            f"Invalid altitude from TLE: TLE likely stale or corrupt. "
            f"Altitude: {altitude_km} km"
        )


class MalformedElements(EphemerisError):
    """Raised when a TLE pair cannot be parsed at all."""
