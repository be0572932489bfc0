from PyQt6.QtWidgets import (
    QFrame, QWidget, QVBoxLayout, QHBoxLayout,
    QLabel, QSizePolicy, QPushButton, QToolButton
)
from PyQt6.QtCore import Qt

class Panel(QFrame):
    # Titled frame: title row, toolbar row, content widget filling the rest
    def __init__(self, title: str):
        super().__init__()
        self.setFrameShape(QFrame.Shape.StyledPanel)
        self.setFrameShadow(QFrame.Shadow.Raised)

        # Title
        self.titleLabel = QLabel(title)
        self.titleLabel.setContentsMargins(4, 4, 4, 4)
        self.titleLabel.setFixedHeight(24)
        self.titleLabel.setAlignment(Qt.AlignmentFlag.AlignVCenter | Qt.AlignmentFlag.AlignLeft)

        # Toolbar
        self.toolbar = QWidget()
        self.toolbar.setFixedHeight(44)
        self._tbLayout = QHBoxLayout(self.toolbar)
        self._tbLayout.setContentsMargins(8, 4, 8, 4)
        self._tbLayout.setSpacing(8)
        self._tbLayout.addStretch(1)

        # Placeholder until set_content() is called
        self.contentArea = QWidget()
        self.contentArea.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Expanding)

        v = QVBoxLayout(self)
        v.setContentsMargins(0, 0, 0, 0)
        v.setSpacing(0)
        v.addWidget(self.titleLabel)
        v.addWidget(self.toolbar)
        v.addWidget(self.contentArea)

        self.toolbarButtons: dict[str, QPushButton | QToolButton] = {}

    # ---------- Public API ---------
    def add_toolbar_buttons(self, buttons: dict[str, QPushButton | QToolButton]):
        # keep the stretch as the last layout item so buttons stay left-aligned
        stretch_item = self._tbLayout.takeAt(self._tbLayout.count() - 1)
        for key, btn in buttons.items():
            self._tbLayout.addWidget(btn)
            self.toolbarButtons[key] = btn
        self._tbLayout.addItem(stretch_item)

    def set_content(self, widget: QWidget):
        layout = self.layout()
        layout.removeWidget(self.contentArea)
        self.contentArea.deleteLater()
        self.contentArea = widget
        self.contentArea.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Expanding)
        layout.addWidget(self.contentArea)

    def get_button(self, key: str):
        return self.toolbarButtons.get(key)
