"""
Main window for the GPS tracker.
"""
import logging
from datetime import datetime

import numpy as np
from PyQt5 import QtCore
from PyQt5.QtWidgets import (
    QMainWindow,
    QWidget,
    QVBoxLayout,
    QHBoxLayout,
    QLabel,
    QPushButton,
    QGroupBox,
    QTextEdit,
)

from ui.canvases import TrackMapCanvas, TimeSeriesCanvas
from ui.styles import DARK_STYLESHEET, TEXT_COLOR_DARK

logger = logging.getLogger(__name__)

# Trail points kept for the map and speed plot
MAX_TRAIL_POINTS = 600


class MainWindow(QMainWindow):
    """
    Tracker dashboard.

    Displays:
    - Location map with speed-colored trail
    - Filtered speed history
    - Current fix, connection state and queued packet count
    - Status transcript
    """

    start_requested = QtCore.pyqtSignal()
    stop_requested = QtCore.pyqtSignal()

    def __init__(self, config):
        super().__init__()

        self.config = config
        self.running = False

        self.setWindowTitle(f"GPS Tracker - {config.imei}")
        self.resize(1200, 750)

        # Trail buffers
        self.t0 = None
        self.times = []
        self.lats = []
        self.lons = []
        self.speeds = []

        central = QWidget()
        self.setCentralWidget(central)

        root_layout = QHBoxLayout()
        root_layout.setContentsMargins(8, 8, 8, 8)
        root_layout.setSpacing(10)
        central.setLayout(root_layout)

        root_layout.addLayout(self._build_left_column(), 3)    # Map + speed
        root_layout.addLayout(self._build_right_column(), 2)   # Status + transcript

        self.setStyleSheet(DARK_STYLESHEET)

    def _build_left_column(self):
        left_col = QVBoxLayout()
        left_col.setSpacing(10)

        map_group = QGroupBox("Location Map")
        map_layout = QVBoxLayout()
        map_group.setLayout(map_layout)
        self.track_canvas = TrackMapCanvas(self, width=5, height=4, dpi=100)
        map_layout.addWidget(self.track_canvas)

        self.speed_canvas = TimeSeriesCanvas("Speed [km/h]", self)

        left_col.addWidget(map_group, 3)
        left_col.addWidget(self.speed_canvas, 1)
        return left_col

    def _build_right_column(self):
        right_col = QVBoxLayout()
        right_col.setSpacing(10)

        device_group = QGroupBox("Device")
        device_layout = QVBoxLayout()
        device_layout.setSpacing(2)
        device_group.setLayout(device_layout)

        device_layout.addWidget(QLabel(f"IMEI: {self.config.imei}"))
        device_layout.addWidget(QLabel(f"Plate: {self.config.plate}"))
        device_layout.addWidget(
            QLabel(f"Server: {self.config.server_host}:{self.config.server_port}")
        )

        device_layout.addWidget(QLabel("─" * 30))

        self.connection_label = QLabel("Connection: 🔴 DISCONNECTED")
        self.queue_label = QLabel("Queued packets: 0")
        device_layout.addWidget(self.connection_label)
        device_layout.addWidget(self.queue_label)

        device_layout.addWidget(QLabel("─" * 30))

        self.lat_label = QLabel("Latitude: --")
        self.lon_label = QLabel("Longitude: --")
        self.alt_label = QLabel("Altitude: -- m")
        self.speed_label = QLabel("Speed: -- km/h")
        self.sats_label = QLabel("Satellites: --")

        for label in (self.lat_label, self.lon_label, self.alt_label,
                      self.speed_label, self.sats_label):
            device_layout.addWidget(label)

        self.start_button = QPushButton("▶ Start")
        self.start_button.clicked.connect(self._on_start_clicked)
        device_layout.addWidget(self.start_button)

        device_layout.addStretch()

        status_group = QGroupBox("Status Transcript")
        status_layout = QVBoxLayout()
        status_group.setLayout(status_layout)

        self.status_text = QTextEdit()
        self.status_text.setReadOnly(True)
        self.status_text.setPlaceholderText("Connection and packet events will appear here...")
        status_layout.addWidget(self.status_text)

        right_col.addWidget(device_group)
        right_col.addWidget(status_group)
        return right_col

    # ==========================================================================
    # Controls
    # ==========================================================================

    def _on_start_clicked(self):
        if self.running:
            self.start_button.setEnabled(False)
            self.stop_requested.emit()
        else:
            self.running = True
            self.start_button.setText("■ Stop")
            self.start_requested.emit()

    def set_stopped(self):
        """Return the controls to their idle state once the pipeline ended."""
        self.running = False
        self.start_button.setText("▶ Start")
        self.start_button.setEnabled(True)

    # ==========================================================================
    # Data Update Methods
    # ==========================================================================

    def update_location(self, snapshot, display_speed_kmh: float = 0.0):
        """
        Add one fix to the trail and refresh labels and plots.

        Args:
            snapshot: TelemetrySnapshot with the latest fix
            display_speed_kmh: Filtered speed for display
        """
        now = datetime.now().timestamp()
        if self.t0 is None:
            self.t0 = now

        self.times.append(now - self.t0)
        self.lats.append(snapshot.latitude)
        self.lons.append(snapshot.longitude)
        self.speeds.append(display_speed_kmh)

        if len(self.times) > MAX_TRAIL_POINTS:
            del self.times[0], self.lats[0], self.lons[0], self.speeds[0]

        self.lat_label.setText(f"Latitude: {snapshot.latitude:.6f}")
        self.lon_label.setText(f"Longitude: {snapshot.longitude:.6f}")
        self.alt_label.setText(f"Altitude: {snapshot.altitude:.0f} m")
        self.speed_label.setText(f"Speed: {display_speed_kmh:.1f} km/h")
        self.sats_label.setText(f"Satellites: {snapshot.satellites}")

        speeds = np.array(self.speeds, dtype=float)
        self.track_canvas.plot_trail(
            np.array(self.lons, dtype=float), np.array(self.lats, dtype=float), speeds
        )
        self.speed_canvas.update_data(np.array(self.times, dtype=float), speeds)

    def set_connection_state(self, connected: bool):
        if connected:
            self.connection_label.setText("Connection: 🟢 CONNECTED")
        else:
            self.connection_label.setText("Connection: 🔴 DISCONNECTED")

    def set_queue_depth(self, size: int):
        self.queue_label.setText(f"Queued packets: {size}")

    def append_status(self, message: str):
        timestamp = datetime.now().strftime("%H:%M:%S")
        self.status_text.append(
            f"<span style='color: {TEXT_COLOR_DARK};'>[{timestamp}]</span> {message}"
        )

        # Auto-scroll to bottom
        cursor = self.status_text.textCursor()
        cursor.movePosition(cursor.End)
        self.status_text.setTextCursor(cursor)
