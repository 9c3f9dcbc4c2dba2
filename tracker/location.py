# tracker/location.py
import logging
import threading
import time
from typing import Callable, Optional

from .model import TelemetrySnapshot
from .speed_filter import GpsFix, GpsSpeedFilter

logger = logging.getLogger(__name__)

LocationListener = Callable[[TelemetrySnapshot], None]


class LocationService:
    """
    Latest known position, fed by a GPS source and read by the saving worker.

    All values are 0 until the first fix arrives. Sources call update_fix()
    and update_satellites(); readers use the accessors or snapshot().
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._latitude = 0.0
        self._longitude = 0.0
        self._altitude = 0.0
        self._speed = 0.0
        self._satellites = 0
        self._display_speed_kmh = 0.0
        self._speed_filter = GpsSpeedFilter()
        self._listener: Optional[LocationListener] = None

    def set_listener(self, listener: Optional[LocationListener]):
        self._listener = listener

    # ------------------ Source side ------------------ #

    def update_fix(
        self,
        latitude: float,
        longitude: float,
        altitude: float,
        speed: float,
        fix_time_s: Optional[float] = None,
    ):
        if fix_time_s is None:
            fix_time_s = time.time()

        with self._lock:
            self._latitude = float(latitude)
            self._longitude = float(longitude)
            self._altitude = float(altitude)
            self._speed = float(speed)
            self._display_speed_kmh = self._speed_filter.filtered_speed_kmh(
                GpsFix(self._latitude, self._longitude, self._speed, fix_time_s)
            )
            snapshot = self._snapshot_locked()

        if self._listener is not None:
            self._listener(snapshot)

    def update_satellites(self, satellites: int):
        with self._lock:
            self._satellites = int(satellites)

    # ------------------ Reader side ------------------ #

    @property
    def latitude(self) -> float:
        with self._lock:
            return self._latitude

    @property
    def longitude(self) -> float:
        with self._lock:
            return self._longitude

    @property
    def altitude(self) -> float:
        with self._lock:
            return self._altitude

    @property
    def speed(self) -> float:
        with self._lock:
            return self._speed

    @property
    def satellites(self) -> int:
        with self._lock:
            return self._satellites

    @property
    def display_speed_kmh(self) -> float:
        with self._lock:
            return self._display_speed_kmh

    def snapshot(self) -> TelemetrySnapshot:
        with self._lock:
            return self._snapshot_locked()

    def _snapshot_locked(self) -> TelemetrySnapshot:
        return TelemetrySnapshot(
            latitude=self._latitude,
            longitude=self._longitude,
            altitude=self._altitude,
            speed=self._speed,
            satellites=self._satellites,
        )
