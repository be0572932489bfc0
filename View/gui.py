from PyQt6.QtWidgets import QWidget, QVBoxLayout, QPushButton
from Controller.MapController import MapController
from .map_view import MapView
from .panel import Panel


class LocationMapGUI(QWidget):
    def __init__(self, session=None, position_source_factory=None):
        super().__init__()
        self.setWindowTitle("LocationMapDemo")
        self._init_ui(position_source_factory)
        self.controller = MapController(self, session=session)
        self.controller.view_did_load()

    def _init_ui(self, position_source_factory):
        self.setMinimumSize(640, 480)

        self.mapPanel = Panel("Map")
        self.mapPanel.add_toolbar_buttons({
            "Show All": self._btn("Show All"),
        })
        self.mapPanel.get_button("Show All").setToolTip("Zoom the map so that every location pin is visible.")

        self.mapView = MapView(position_source_factory=position_source_factory)
        self.mapPanel.set_content(self.mapView)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.addWidget(self.mapPanel)

    @staticmethod
    def _btn(text: str) -> QPushButton:
        btn = QPushButton(text)
        btn.setMinimumHeight(32)
        return btn
