# tracker/model.py
from dataclasses import dataclass


@dataclass(frozen=True)
class TelemetrySnapshot:
    latitude: float     # decimal degrees
    longitude: float    # decimal degrees
    altitude: float     # meters
    speed: float        # m/s, float32 precision on the wire
    satellites: int     # satellites in view
