import os

# No display in CI - must be set before Qt creates the application
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from geopy.location import Location as GeoLocation
from PyQt6.QtWidgets import QApplication

from Model.geocoding import GeocodingSession
from Model.settings import GeocoderSettings


@pytest.fixture(scope="session")
def qapp():
    app = QApplication.instance() or QApplication([])
    yield app


# Stands in for QThreadPool: runs every task right away on the calling thread
class InlinePool:

    def __init__(self):
        self.started = []

    def start(self, task):
        self.started.append(task)
        task.run()


class FakeGeocoder:
    def __init__(self, reverse_answer=None, geocode_answer=None, error=None):
        self.reverse_answer = reverse_answer
        self.geocode_answer = geocode_answer
        self.error = error
        self.calls = []

    def reverse(self, query, exactly_one=True, timeout=None):
        self.calls.append(("reverse", query))
        if self.error is not None:
            raise self.error
        return self.reverse_answer

    def geocode(self, query, exactly_one=True, timeout=None):
        self.calls.append(("geocode", query))
        if self.error is not None:
            raise self.error
        return self.geocode_answer


BROOKLYN_MUSEUM = GeoLocation(
    "Brooklyn Museum, 200, Eastern Parkway, Brooklyn, Kings County, New York, 11238, United States",
    (40.6712, -73.9636),
    {"name": "Brooklyn Museum", "place_id": 1},
)
PURSUIT = GeoLocation(
    "Pursuit, 47-10, Austell Place, Long Island City, Queens, New York, 11101, United States",
    (40.74296, -73.9414),
    {"name": "Pursuit", "place_id": 2},
)


@pytest.fixture
def inline_pool():
    return InlinePool()


@pytest.fixture
def fake_geocoder():
    return FakeGeocoder(reverse_answer=BROOKLYN_MUSEUM, geocode_answer=[PURSUIT])


@pytest.fixture
def session(qapp, fake_geocoder, inline_pool):
    return GeocodingSession(geocoder=fake_geocoder, settings=GeocoderSettings(), pool=inline_pool)
