# Model/locations.py
from dataclasses import dataclass


@dataclass(frozen=True)
class Coordinate:
    latitude: float
    longitude: float

    def as_tuple(self) -> tuple[float, float]:
        return self.latitude, self.longitude


@dataclass(frozen=True)
class Location:
    title: str
    coordinate: Coordinate


# Fixed catalog - the screen reverse-geocodes index 2, so keep at least 3 entries
_LOCATIONS: tuple[Location, ...] = (
    Location("Pursuit", Coordinate(40.74296, -73.94140)),
    Location("Central Park", Coordinate(40.78286, -73.96536)),
    Location("Brooklyn Museum", Coordinate(40.67120, -73.96360)),
    Location("Statue of Liberty", Coordinate(40.68925, -74.04450)),
    Location("Flushing Meadows Corona Park", Coordinate(40.74003, -73.84070)),
)


def get_locations() -> tuple[Location, ...]:
    return _LOCATIONS
