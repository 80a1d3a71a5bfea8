"""
Observer registry and region geometry.

The registry is static configuration: an ordered list of named ground
observers, the region's centre point and its boundary polygon. It is loaded
once at start-up and treated as immutable afterwards.
"""

import json
import math
from importlib import resources
from typing import List, Optional, Sequence, Tuple

from tracking_service.models import ObserverPoint, RegionPolygon


class ObserverRegistry:
    """Ordered observers plus the region centre and polygon."""

    def __init__(
        self,
        observers: Sequence[ObserverPoint],
        center: ObserverPoint,
        polygon: RegionPolygon,
    ):
        self._observers = tuple(observers)
        self.center = center
        self.polygon = polygon

    @property
    def observers(self) -> Tuple[ObserverPoint, ...]:
        """Named observers in registration order (centre excluded)."""
        return self._observers

    def with_center(self) -> Tuple[ObserverPoint, ...]:
        """Named observers followed by the region centre."""
        return self._observers + (self.center,)

    def contains(self, latitude: float, longitude: float) -> bool:
        return point_in_polygon(longitude, latitude, self.polygon)

    @classmethod
    def from_dict(cls, data: dict) -> "ObserverRegistry":
        polygon = data["polygon"]
        rings = polygon["coordinates"] if isinstance(polygon, dict) else polygon
        return cls(
            observers=[ObserverPoint(**o) for o in data.get("observers", [])],
            center=ObserverPoint(**data["center"]),
            polygon=RegionPolygon(
                name=data.get("name", "region"),
                rings=[[(float(lon), float(lat)) for lon, lat in ring] for ring in rings],
            ),
        )


def load_registry(path: Optional[str] = None) -> ObserverRegistry:
    """
    Load the registry from a JSON file, or the bundled region data when no
    path is given.
    """
    if path:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    else:
        text = resources.files("tracking_service").joinpath("data/region.json").read_text("utf-8")
        data = json.loads(text)
    return ObserverRegistry.from_dict(data)


def point_in_polygon(longitude: float, latitude: float, polygon: RegionPolygon) -> bool:
    """
    Even-odd ray cast of (longitude, latitude) against the polygon's outer ring.

    Holes are not subtracted. Degenerate rings and non-finite points are
    outside.
    """
    if not (math.isfinite(longitude) and math.isfinite(latitude)):
        return False

    ring: List[Tuple[float, float]] = polygon.outer_ring
    if len(ring) < 3:
        return False

    inside = False
    j = len(ring) - 1
    for i in range(len(ring)):
        xi, yi = ring[i]
        xj, yj = ring[j]
        if (yi > latitude) != (yj > latitude):
            x_cross = (xj - xi) * (latitude - yi) / (yj - yi) + xi
            if longitude < x_cross:
                inside = not inside
        j = i

    return inside
