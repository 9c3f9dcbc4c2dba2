# tracker/speed_filter.py
from collections import deque
from dataclasses import dataclass
from typing import Deque, Optional

import numpy as np

EARTH_RADIUS_M = 6371000.0


@dataclass(frozen=True)
class GpsFix:
    latitude: float     # degrees
    longitude: float    # degrees
    speed: float        # m/s as reported by the receiver
    time_s: float       # fix time, seconds


def distance_m(a: GpsFix, b: GpsFix) -> float:
    """Great-circle (haversine) distance between two fixes."""
    lat1, lon1, lat2, lon2 = np.radians([a.latitude, a.longitude, b.latitude, b.longitude])
    h = np.sin((lat2 - lat1) / 2) ** 2 + np.cos(lat1) * np.cos(lat2) * np.sin((lon2 - lon1) / 2) ** 2
    return float(2 * EARTH_RADIUS_M * np.arcsin(np.sqrt(h)))


class GpsSpeedFilter:
    """
    Smooths receiver speed for display.

    Readings are zeroed when the vehicle barely moved since the previous
    fix (< MIN_DISTANCE_M or same second) or when below MIN_SPEED_MPS, then
    averaged over the last WINDOW readings. Output is km/h.
    """

    MIN_SPEED_MPS = 1.0
    MIN_DISTANCE_M = 5.0
    WINDOW = 5

    def __init__(self):
        self._speeds: Deque[float] = deque(maxlen=self.WINDOW)
        self._last_fix: Optional[GpsFix] = None

    def filtered_speed_kmh(self, fix: GpsFix) -> float:
        if self._last_fix is None:
            self._last_fix = fix
            return 0.0

        speed = fix.speed
        time_delta = int(fix.time_s - self._last_fix.time_s)
        if time_delta == 0 or distance_m(self._last_fix, fix) < self.MIN_DISTANCE_M:
            speed = 0.0
        if speed < self.MIN_SPEED_MPS:
            speed = 0.0

        self._speeds.append(speed)
        self._last_fix = fix
        return float(np.mean(self._speeds)) * 3.6

    def reset(self):
        self._speeds.clear()
        self._last_fix = None
