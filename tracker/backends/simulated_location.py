"""
Simulated GPS source
Drives a vehicle around a circular route and feeds the LocationService
"""
import logging
import threading
import time

import numpy as np
from PyQt5 import QtCore

logger = logging.getLogger(__name__)

METERS_PER_DEGREE = 111320.0


class SimulatedLocationWorker(QtCore.QThread):
    """Background thread that produces one GPS fix per period along a circular route"""
    location_updated = QtCore.pyqtSignal(object)   # TelemetrySnapshot
    status_update = QtCore.pyqtSignal(str)

    def __init__(self, location_service, center_lat=-25.4284, center_lon=-49.2733,
                 radius_m=200.0, speed_mps=12.0, altitude_m=934.0,
                 period_s=1.0, seed=None, parent=None):
        super().__init__(parent)
        self.location_service = location_service
        self.center_lat = center_lat
        self.center_lon = center_lon
        self.radius_m = radius_m
        self.speed_mps = speed_mps
        self.altitude_m = altitude_m
        self.period_s = period_s
        self.rng = np.random.default_rng(seed)
        self._stop_event = threading.Event()

        self.angle = 0.0

    def run(self):
        logger.info(f"Simulated GPS started around ({self.center_lat}, {self.center_lon})")
        self.status_update.emit("Simulated GPS running")
        self.location_service.set_listener(self.location_updated.emit)

        try:
            while not self._stop_event.is_set():
                self.step(time.time())
                if self._stop_event.wait(self.period_s):
                    break
        finally:
            self.location_service.set_listener(None)
            self.status_update.emit("Simulated GPS stopped")

    def step(self, fix_time_s: float):
        """Advance the vehicle by one period and publish the new fix."""
        lat, lon = self._position(self.angle)

        # Small jitter so the filtered speed is not perfectly flat
        speed = max(0.0, self.speed_mps + float(self.rng.normal(0.0, 0.5)))
        altitude = self.altitude_m + float(self.rng.normal(0.0, 1.0))

        self.location_service.update_satellites(int(self.rng.integers(6, 13)))
        self.location_service.update_fix(lat, lon, altitude, speed, fix_time_s)

        self.angle = (self.angle + speed * self.period_s / self.radius_m) % (2 * np.pi)

    def _position(self, angle):
        """Circular route approximation in degrees"""
        north_m = self.radius_m * np.sin(angle)
        east_m = self.radius_m * np.cos(angle)
        lat = self.center_lat + north_m / METERS_PER_DEGREE
        lon = self.center_lon + east_m / (METERS_PER_DEGREE * np.cos(np.radians(self.center_lat)))
        return float(lat), float(lon)

    def stop(self):
        """Stop the GPS worker"""
        self._stop_event.set()
