# Model/annotations.py
from dataclasses import dataclass
from typing import Iterable, Optional

from .locations import Coordinate, Location


@dataclass
class PointAnnotation:
    # A plain pin on the map. Mutable like every annotation the map view owns.
    coordinate: Coordinate
    title: Optional[str] = None
    subtitle: Optional[str] = None


@dataclass
class UserLocationAnnotation:
    # Added by the map view itself while "show user location" is on
    coordinate: Coordinate
    title: str = "My Location"
    horizontal_accuracy: float = -1.0  # metres, negative = unknown


def make_annotations(locations: Iterable[Location]) -> list[PointAnnotation]:
    # 1:1 - no filtering, no dedup
    return [PointAnnotation(coordinate=loc.coordinate, title=loc.title) for loc in locations]
