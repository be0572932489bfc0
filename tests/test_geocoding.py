import pytest
from geopy.exc import GeocoderTimedOut, GeocoderUnavailable
from geopy.geocoders import Nominatim
from PyQt6.QtCore import QCoreApplication, QThreadPool

from conftest import BROOKLYN_MUSEUM, PURSUIT, FakeGeocoder
from Model.geocoding import (
    BadQueryError,
    GeocodeCandidate,
    GeocodingServiceError,
    GeocodingSession,
    NoMatchError,
    Placemark,
)
from Model.locations import Coordinate, get_locations
from Model.settings import GeocoderSettings

DEMO_COORD = get_locations()[2].coordinate


def _session(geocoder, pool):
    return GeocodingSession(geocoder=geocoder, settings=GeocoderSettings(timeout=2.0), pool=pool)


# ---------- blocking lookups ----------
def test_reverse_returns_placemark(session, fake_geocoder):
    placemarks = session.reverse(DEMO_COORD)
    assert fake_geocoder.calls == [("reverse", (DEMO_COORD.latitude, DEMO_COORD.longitude))]
    assert len(placemarks) == 1
    pm = placemarks[0]
    assert isinstance(pm, Placemark)
    assert pm.name == "Brooklyn Museum"
    assert pm.coordinate == Coordinate(40.6712, -73.9636)
    assert pm.description().startswith("Brooklyn Museum, 200, Eastern Parkway")
    assert "+40.67120000" in pm.description()


def test_placemark_description_adds_missing_name():
    pm = Placemark(name="Pursuit", address="47-10 Austell Place", coordinate=Coordinate(1.0, 2.0))
    assert pm.description() == "Pursuit, 47-10 Austell Place @ <+1.00000000,+2.00000000>"


def test_reverse_without_answer_is_no_match(qapp, inline_pool):
    s = _session(FakeGeocoder(reverse_answer=None), inline_pool)
    with pytest.raises(NoMatchError):
        s.reverse(DEMO_COORD)


def test_geocode_returns_candidates(session):
    candidates = session.geocode("pursuit, queens")
    assert len(candidates) == 1
    assert isinstance(candidates[0], GeocodeCandidate)
    assert candidates[0].coordinate == Coordinate(40.74296, -73.9414)
    assert candidates[0].display_name.startswith("Pursuit")


def test_geocode_blank_address_skips_network(session, fake_geocoder):
    with pytest.raises(NoMatchError):
        session.geocode("   ")
    assert fake_geocoder.calls == []


def test_geocode_empty_result_is_no_match(qapp, inline_pool):
    s = _session(FakeGeocoder(geocode_answer=[]), inline_pool)
    with pytest.raises(NoMatchError):
        s.geocode("nowhere at all")


@pytest.mark.parametrize("error", [GeocoderTimedOut("timed out"), GeocoderUnavailable("down")])
def test_geopy_errors_become_service_errors(qapp, inline_pool, error):
    s = _session(FakeGeocoder(error=error), inline_pool)
    with pytest.raises(GeocodingServiceError) as exc:
        s.geocode("pursuit, queens")
    assert exc.value.__cause__ is error
    with pytest.raises(GeocodingServiceError):
        s.reverse(DEMO_COORD)


# ---------- fire-and-forget ----------
def _geo_lines(capsys):
    return [line for line in capsys.readouterr().out.splitlines() if line.startswith("[GEO]")]


def test_place_name_logs_coordinate(session, inline_pool, capsys):
    found = []
    failed = []
    session.coordinatesFound.connect(lambda q, res: found.append((q, res)))
    session.lookupFailed.connect(lambda q, msg: failed.append(q))

    assert session.convert_place_name_to_coordinate("pursuit, queens") is None
    assert len(inline_pool.started) == 1

    lines = _geo_lines(capsys)
    assert lines == ["[GEO] 'pursuit, queens' -> 40.742960, -73.941400"]
    assert found and found[0][0] == "pursuit, queens"
    assert failed == []


def test_coordinate_logs_description(session, capsys):
    found = []
    session.placemarksFound.connect(lambda c, res: found.append(res))

    session.convert_coordinate_to_placemark(DEMO_COORD)

    lines = _geo_lines(capsys)
    assert len(lines) == 1
    assert "Brooklyn Museum" in lines[0]
    assert len(found) == 1 and found[0][0].name == "Brooklyn Museum"


def test_failed_lookup_logs_error_only(qapp, inline_pool, capsys):
    s = _session(FakeGeocoder(error=GeocoderUnavailable("network unreachable")), inline_pool)
    failed = []
    s.lookupFailed.connect(lambda q, msg: failed.append((q, msg)))

    s.convert_place_name_to_coordinate("pursuit, queens")
    s.convert_coordinate_to_placemark(DEMO_COORD)

    lines = _geo_lines(capsys)
    assert len(lines) == 2
    assert all("failed" in line for line in lines)
    assert "network unreachable" in lines[0]
    assert [q for q, _ in failed] == ["pursuit, queens", f"{DEMO_COORD.latitude}, {DEMO_COORD.longitude}"]


def test_no_match_logs_error(qapp, inline_pool, capsys):
    s = _session(FakeGeocoder(geocode_answer=None), inline_pool)
    s.convert_place_name_to_coordinate("pursuit, queens")
    lines = _geo_lines(capsys)
    assert lines == ["[GEO] Geocoding failed for 'pursuit, queens': No match for 'pursuit, queens'"]


def test_worker_pool_delivers_on_gui_thread(qapp, capsys):
    pool = QThreadPool()
    s = _session(FakeGeocoder(geocode_answer=[PURSUIT], reverse_answer=BROOKLYN_MUSEUM), pool)
    found = []
    s.coordinatesFound.connect(lambda q, res: found.append(q))

    s.convert_place_name_to_coordinate("pursuit, queens")
    assert pool.waitForDone(5000)
    QCoreApplication.processEvents()

    assert found == ["pursuit, queens"]
    assert len(_geo_lines(capsys)) == 1


# ---------- unexpected failures stay non-fatal ----------
def test_value_error_becomes_bad_query(qapp, inline_pool):
    s = _session(FakeGeocoder(error=ValueError("Must be a coordinate pair or Point")), inline_pool)
    with pytest.raises(BadQueryError) as exc:
        s.reverse(DEMO_COORD)
    assert isinstance(exc.value.__cause__, ValueError)


def test_out_of_range_latitude_logs_one_failure(qapp, inline_pool, capsys):
    # geopy rejects the point itself, no request goes out
    s = _session(Nominatim(user_agent="location-map-demo-tests"), inline_pool)
    failed = []
    s.lookupFailed.connect(lambda q, msg: failed.append(msg))

    s.convert_coordinate_to_placemark(Coordinate(95.0, 0.0))

    lines = _geo_lines(capsys)
    assert len(lines) == 1
    assert "Reverse geocoding failed for 95.0, 0.0" in lines[0]
    assert len(failed) == 1


def test_unexpected_exception_is_reported(qapp, inline_pool, capsys):
    s = _session(FakeGeocoder(error=RuntimeError("geocoder exploded")), inline_pool)
    s.convert_place_name_to_coordinate("pursuit, queens")
    lines = _geo_lines(capsys)
    assert lines == ["[GEO] Geocoding failed for 'pursuit, queens': RuntimeError: geocoder exploded"]


def test_unexpected_exception_on_worker_thread(qapp, capsys):
    pool = QThreadPool()
    s = _session(FakeGeocoder(error=RuntimeError("geocoder exploded")), pool)
    failed = []
    s.lookupFailed.connect(lambda q, msg: failed.append(msg))

    s.convert_place_name_to_coordinate("pursuit, queens")
    assert pool.waitForDone(5000)
    QCoreApplication.processEvents()

    assert failed == ["RuntimeError: geocoder exploded"]
    assert len(_geo_lines(capsys)) == 1
