"""
Read-only access to the latest orbital elements per satellite.

The engine never mutates element sets; keeping them current is the job of
the external refresh process that writes the catalogue.
"""

import json
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from config import FALLBACK_ISS_TLE
from logging_config import get_logger
from tracking_service.errors import MalformedElements
from tracking_service.models import OrbitalElementSet
from tracking_service.tle_parser import element_metadata

logger = get_logger(__name__)

# Name fragments of missions parked at libration points rather than in orbit
NON_ORBITING_MARKERS = ("Aditya", "L1")


def is_non_orbiting(record: dict) -> bool:
    if "non_orbiting" in record:
        return bool(record["non_orbiting"])
    if str(record.get("orbit_class", "")).lower() in ("libration", "lagrange", "heliocentric"):
        return True
    name = record.get("name", "")
    return any(marker in name for marker in NON_ORBITING_MARKERS)


def element_set_from_record(record: dict) -> OrbitalElementSet:
    """
    Build an OrbitalElementSet from a catalogue record.

    Records without an acquisition time take the epoch of their TLE.
    """
    line1 = record.get("line1") or record.get("tle_line1")
    line2 = record.get("line2") or record.get("tle_line2")

    acquired_at = record.get("acquired_at") or record.get("tle_updated_at")
    if isinstance(acquired_at, str):
        acquired_at = datetime.fromisoformat(acquired_at.replace("Z", "+00:00"))
    elif acquired_at is None and line1 and line2:
        try:
            acquired_at = element_metadata(line1.strip(), line2.strip()).epoch
        except MalformedElements as e:
            logger.warning("tle_epoch_unreadable", satellite=record["name"], error=str(e))

    return OrbitalElementSet(
        name=record["name"],
        norad_id=record.get("norad_id"),
        line1=line1,
        line2=line2,
        acquired_at=acquired_at,
        non_orbiting=is_non_orbiting(record),
    )


class ElementStore(ABC):
    @abstractmethod
    def get(self, identifier) -> Optional[OrbitalElementSet]:
        """Look up a satellite by NORAD id or name."""

    @abstractmethod
    def all(self) -> List[OrbitalElementSet]:
        pass


class InMemoryElementStore(ElementStore):
    def __init__(self, element_sets: Iterable[OrbitalElementSet]):
        self._by_name: Dict[str, OrbitalElementSet] = {}
        self._by_norad: Dict[int, OrbitalElementSet] = {}
        for elements in element_sets:
            self._by_name[elements.name] = elements
            if elements.norad_id is not None:
                self._by_norad[elements.norad_id] = elements

    def get(self, identifier) -> Optional[OrbitalElementSet]:
        if identifier is None:
            return None
        try:
            found = self._by_norad.get(int(identifier))
            if found is not None:
                return found
        except (TypeError, ValueError):
            pass
        return self._by_name.get(str(identifier))

    def all(self) -> List[OrbitalElementSet]:
        return list(self._by_name.values())

    @classmethod
    def from_json(cls, path: str) -> "InMemoryElementStore":
        with open(path, "r", encoding="utf-8") as f:
            records = json.load(f)
        store = cls(element_set_from_record(r) for r in records)
        logger.info("element_catalogue_loaded", path=path, satellites=len(store.all()))
        return store

    @classmethod
    def with_fallback(cls) -> "InMemoryElementStore":
        return cls([element_set_from_record(FALLBACK_ISS_TLE)])
