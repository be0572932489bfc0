from __future__ import annotations
from PyQt6.QtCore import QObject

from Controller.enums import ScreenState
from Model.annotations import PointAnnotation, make_annotations
from Model.geocoding import GeocodingSession
from Model.locations import get_locations
from View.map_view import MapViewDelegate, PinAnnotationView

# Hardcoded demo lookups
DEMO_LOCATION_INDEX = 2
DEMO_ADDRESS = "pursuit, queens"
PIN_REUSE_IDENTIFIER = "locationAnnotation"


# --- Controller ---
class MapController(QObject, MapViewDelegate):
    def __init__(self, view, session: GeocodingSession | None = None):
        super().__init__()
        self.view = view  # the screen widget, owns mapView and the panel toolbar
        self.location_session = session if session is not None else GeocodingSession(parent=self)
        self.state = ScreenState.UNLOADED
        self._annotations: list[PointAnnotation] = []

        self._wire_view()

    def _wire_view(self):
        btn = self.view.mapPanel.get_button("Show All")
        if btn is not None:
            btn.clicked.connect(self.show_all)

    @property
    def map_view(self):
        return self.view.mapView

    # One-shot: UNLOADED -> LOADED
    def view_did_load(self):
        if self.state is ScreenState.LOADED:
            return
        self.state = ScreenState.LOADED

        # Both lookups only print - setup does not wait for them
        self._convert_coordinate_to_placemark()
        self._convert_place_name_to_coordinate()

        # attempt to show the user's current location
        self.map_view.set_shows_user_location(True)
        self.map_view.set_delegate(self)

        self._load_map_view()

    def show_all(self):
        if self._annotations:
            self.map_view.show_annotations(self._annotations, animated=True)

    def _make_annotations(self) -> list[PointAnnotation]:
        return make_annotations(get_locations())

    def _load_map_view(self):
        self._annotations = self._make_annotations()
        self.map_view.show_annotations(self._annotations, animated=True)

    def _convert_coordinate_to_placemark(self):
        location = get_locations()[DEMO_LOCATION_INDEX]
        self.location_session.convert_coordinate_to_placemark(location.coordinate)

    def _convert_place_name_to_coordinate(self):
        self.location_session.convert_place_name_to_coordinate(DEMO_ADDRESS)

    # ---------- MapViewDelegate ----------
    def map_view_did_select(self, map_view, view):
        print("didSelect")

    def map_view_view_for_annotation(self, map_view, annotation):
        if not isinstance(annotation, PointAnnotation):
            return None
        # try to dequeue and reuse a pin view
        pin = map_view.dequeue_reusable_annotation_view(PIN_REUSE_IDENTIFIER)
        if isinstance(pin, PinAnnotationView):
            pin.annotation = annotation
            return pin
        pin = PinAnnotationView(annotation, reuse_identifier=PIN_REUSE_IDENTIFIER)
        pin.can_show_callout = True
        return pin

    def map_view_callout_accessory_control_tapped(self, map_view, view, control):
        print("calloutAccessoryControlTapped")
