"""
TLE Parser Module

Validates Two-Line Element (TLE) sets and builds the SGP4 satellite records
the ephemeris service propagates. Also derives the element metadata the
engine reports alongside a satellite: epoch and orbital period.

Parsed Satrec objects are memoised per line pair, since a single pass scan
queries the same elements hundreds of times.
"""

import math
from datetime import datetime, timezone
from functools import lru_cache
from typing import NamedTuple, Optional

from sgp4.api import Satrec
from sgp4.conveniences import sat_epoch_datetime

from tracking_service.errors import MalformedElements


@lru_cache(maxsize=256)
def load_satrec(line1: str, line2: str) -> Satrec:
    """
    Build (or reuse) the SGP4 satellite record for a TLE pair.

    Raises:
        MalformedElements: If the lines are not a well-formed TLE pair
    """
    TLEParser.validate_lines(line1, line2)
    try:
        return Satrec.twoline2rv(line1, line2)
    except (ValueError, IndexError) as e:
        raise MalformedElements(f"Malformed TLE: {e}")


class ElementMetadata(NamedTuple):
    norad_id: int
    epoch: datetime
    inclination_deg: float
    mean_motion_rev_per_day: float
    period_minutes: Optional[float]


def element_metadata(line1: str, line2: str) -> ElementMetadata:
    """
    Catalogue number, epoch and period of a TLE pair.

    Raises:
        MalformedElements: If the lines are not a well-formed TLE pair
    """
    satellite = load_satrec(line1, line2)

    # no_kozai is in rad/min
    rev_per_day = satellite.no_kozai * 1440.0 / (2.0 * math.pi)

    return ElementMetadata(
        norad_id=satellite.satnum,
        epoch=sat_epoch_datetime(satellite).astimezone(timezone.utc),
        inclination_deg=math.degrees(satellite.inclo),
        mean_motion_rev_per_day=rev_per_day,
        period_minutes=1440.0 / rev_per_day if rev_per_day > 0 else None,
    )


class TLEParser:
    """Structural checks for TLE line pairs."""

    @staticmethod
    def validate_lines(line1: str, line2: str) -> None:
        """
        Check the structure of a TLE pair.

        Raises:
            MalformedElements: On wrong line numbers, short lines, mismatched
                catalogue numbers or bad checksums
        """
        if len(line1) < 64 or len(line2) < 64:
            raise MalformedElements("Malformed TLE: lines are too short")
        if not line1.startswith("1 ") or not line2.startswith("2 "):
            raise MalformedElements("Malformed TLE: lines must start with '1 ' and '2 '")
        if line1[2:7].strip() != line2[2:7].strip():
            raise MalformedElements("Malformed TLE: catalogue numbers do not match")

        for line in (line1, line2):
            if len(line) >= 69 and line[68].isdigit():
                if int(line[68]) != TLEParser._checksum(line):
                    raise MalformedElements(f"Malformed TLE: checksum mismatch on line {line[0]}")

    @staticmethod
    def _checksum(line: str) -> int:
        """Calculate TLE checksum."""
        checksum = 0
        for char in line[:68]:
            if char.isdigit():
                checksum += int(char)
            elif char == "-":
                checksum += 1
        return checksum % 10
