"""
Satellite Pass-Prediction and Visibility Package

This package predicts the next above-horizon pass of a satellite for one or
many observers, resolves its current sub-satellite position and ground track,
and classifies whether it is visible to a region using a hybrid of elevation,
city-observer and polygon-containment signals.

Modules:
    models: Pydantic models for element sets, observers and results
    errors: Engine exception hierarchy
    tle_parser: TLE validation and metadata extraction
    ephemeris: SGP4-backed ephemeris service (sub-points and look angles)
    almanac: Solar altitude and day/night classification
    observers: Observer registry, region centre and region polygon
    position_resolver: Current position and antimeridian-safe ground track
    pass_scanner: Single-observer next-pass search
    best_observer: Multi-observer next-pass search
    visibility: Hybrid region visibility
    position_cache: Short-TTL cache for the current-state response
    element_store: Read-only satellite catalogue
    weather: OpenWeather viewing-conditions annotation
    engine: Facade wiring the components together
    app: Flask HTTP surface
"""

__version__ = "1.0.0"
