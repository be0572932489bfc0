# main.py
import sys
from PyQt6.QtWidgets import QApplication

from View.gui import LocationMapGUI

def main():
    app = QApplication(sys.argv)
    app.setApplicationName("LocationMapDemo")

    win = LocationMapGUI()
    win.resize(1024, 768)
    win.show()
    sys.exit(app.exec())

if __name__ == "__main__":
    main()
