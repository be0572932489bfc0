# Model/geocoding.py
# Coordinate -> placemark and place name -> coordinate via a geopy geocoder.
# The convert_* calls are fire-and-forget: the lookup runs on a QThreadPool worker,
# the result comes back to the GUI thread through a queued signal and is only printed.
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional

from PyQt6.QtCore import QObject, QRunnable, QThreadPool, pyqtSignal
from geopy.exc import GeopyError
from geopy.geocoders import Nominatim

from .locations import Coordinate
from .settings import GeocoderSettings


class GeocodingError(Exception):
    pass


class NoMatchError(GeocodingError):
    pass


class GeocodingServiceError(GeocodingError):
    # network down, timeout, rate limited, bad credentials ...
    pass


class BadQueryError(GeocodingError):
    # rejected before it reaches the service, e.g. latitude out of range
    pass


@dataclass(frozen=True)
class Placemark:
    name: Optional[str]
    address: str
    coordinate: Coordinate
    raw: dict = field(default_factory=dict, compare=False, repr=False)

    def description(self) -> str:
        c = self.coordinate
        head = self.address or (self.name or "")
        if self.name and not head.startswith(self.name):
            head = f"{self.name}, {head}"
        return f"{head} @ <{c.latitude:+.8f},{c.longitude:+.8f}>"


@dataclass(frozen=True)
class GeocodeCandidate:
    display_name: str
    coordinate: Coordinate
    raw: dict = field(default_factory=dict, compare=False, repr=False)


def _coordinate_of(loc) -> Coordinate:
    return Coordinate(float(loc.latitude), float(loc.longitude))


def _as_list(answer) -> list:
    if not answer:
        return []
    if isinstance(answer, (list, tuple)):
        return list(answer)
    return [answer]


# Worker infrastructure: the runnable does the blocking call in the pool,
# the signal object carries the result back to the GUI thread (queued connection).
class _LookupSignal(QObject):
    finished = pyqtSignal(str, object, object)  # kind, query, results
    failed = pyqtSignal(str, object, str)  # kind, query, message


class _LookupTask(QRunnable):
    def __init__(self, kind: str, query, fn, sig: _LookupSignal):
        super().__init__()
        self.kind = kind  # "reverse" | "forward"
        self.query = query  # Coordinate or address string
        self.fn = fn  # blocking lookup
        self.sig = sig

    def run(self):
        try:
            results = self.fn(self.query)
        except GeocodingError as e:
            self.sig.failed.emit(self.kind, self.query, str(e))
            return
        except Exception as e:
            # an exception escaping QRunnable.run aborts the process
            self.sig.failed.emit(self.kind, self.query, f"{type(e).__name__}: {e}")
            return
        self.sig.finished.emit(self.kind, self.query, results)


class GeocodingSession(QObject):
    placemarksFound = pyqtSignal(object, list)  # coordinate, [Placemark]
    coordinatesFound = pyqtSignal(str, list)  # address, [GeocodeCandidate]
    lookupFailed = pyqtSignal(str, str)  # query as text, message

    def __init__(self, geocoder=None, settings: GeocoderSettings | None = None, pool=None, parent=None):
        super().__init__(parent)
        self.settings = settings or GeocoderSettings.from_env()
        self.geocoder = geocoder if geocoder is not None else self._default_geocoder(self.settings)
        self.pool = pool if pool is not None else QThreadPool.globalInstance()

        self.sig = _LookupSignal()
        self.sig.finished.connect(self._on_lookup_finished)
        self.sig.failed.connect(self._on_lookup_failed)

    @staticmethod
    def _default_geocoder(settings: GeocoderSettings):
        if settings.has_default_user_agent:
            print(f"[GEO] Using placeholder user agent {settings.user_agent!r}; Nominatim may refuse requests")
        return Nominatim(user_agent=settings.user_agent, domain=settings.domain, timeout=settings.timeout)

    # ---------- blocking lookups ----------
    def reverse(self, coordinate: Coordinate) -> list[Placemark]:
        try:
            answer = self.geocoder.reverse(
                (coordinate.latitude, coordinate.longitude),
                exactly_one=True,
                timeout=self.settings.timeout,
            )
        except GeopyError as e:
            raise GeocodingServiceError(f"{type(e).__name__}: {e}") from e
        except ValueError as e:
            raise BadQueryError(str(e)) from e

        placemarks = []
        for loc in _as_list(answer):
            raw = dict(loc.raw or {})
            placemarks.append(Placemark(
                name=raw.get("name") or None,
                address=loc.address or "",
                coordinate=_coordinate_of(loc),
                raw=raw,
            ))
        if not placemarks:
            raise NoMatchError(f"No placemark for {coordinate.latitude}, {coordinate.longitude}")
        return placemarks

    def geocode(self, address: str) -> list[GeocodeCandidate]:
        query = (address or "").strip()
        if not query:
            raise NoMatchError("Empty address")
        try:
            answer = self.geocoder.geocode(query, exactly_one=False, timeout=self.settings.timeout)
        except GeopyError as e:
            raise GeocodingServiceError(f"{type(e).__name__}: {e}") from e
        except ValueError as e:
            raise BadQueryError(str(e)) from e

        candidates = [
            GeocodeCandidate(display_name=loc.address or "", coordinate=_coordinate_of(loc), raw=dict(loc.raw or {}))
            for loc in _as_list(answer)
        ]
        if not candidates:
            raise NoMatchError(f"No match for {query!r}")
        return candidates

    # ---------- fire-and-forget ----------
    def convert_coordinate_to_placemark(self, coordinate: Coordinate) -> None:
        self.pool.start(_LookupTask("reverse", coordinate, self.reverse, self.sig))

    def convert_place_name_to_coordinate(self, address_string: str) -> None:
        self.pool.start(_LookupTask("forward", address_string, self.geocode, self.sig))

    # ---------- completion, GUI thread ----------
    def _on_lookup_finished(self, kind: str, query, results):
        if kind == "reverse":
            print(f"[GEO] {results[0].description()}")
            self.placemarksFound.emit(query, list(results))
        else:
            best = results[0].coordinate
            print(f"[GEO] {query!r} -> {best.latitude:.6f}, {best.longitude:.6f}")
            self.coordinatesFound.emit(query, list(results))

    def _on_lookup_failed(self, kind: str, query, message: str):
        if kind == "reverse":
            label = f"{query.latitude}, {query.longitude}"
            print(f"[GEO] Reverse geocoding failed for {label}: {message}")
        else:
            label = str(query)
            print(f"[GEO] Geocoding failed for {label!r}: {message}")
        self.lookupFailed.emit(label, message)
