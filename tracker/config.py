# tracker/config.py
import os
from dataclasses import dataclass, fields
from typing import Mapping, Optional

ENV_PREFIX = "TRACKER_"


@dataclass
class TrackerConfig:
    # Server endpoint
    server_host: str = "179.131.10.90"
    server_port: int = 20018

    # Device identity
    imei: str = "357138166785014"
    cpf: str = "12565696908"
    plate: str = "ACC1D23"
    hardware_version: int = 0x82
    firmware_version: int = 0x15

    # The consumer's reconnect handshake identifies itself with this literal
    reconnect_imei: str = "IMEI"

    # Timing (seconds)
    save_interval_s: float = 10.0
    send_interval_s: float = 2.0
    retry_delay_s: float = 5.0
    connect_timeout_s: float = 10.0
    read_timeout_s: float = 15.0

    # 0 = unbounded
    queue_max_packets: int = 0

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "TrackerConfig":
        """
        Build a config from TRACKER_* variables, e.g. TRACKER_SERVER_HOST,
        TRACKER_SAVE_INTERVAL_S. Unset variables keep their defaults.
        """
        if environ is None:
            environ = os.environ

        values = {}
        for f in fields(cls):
            key = ENV_PREFIX + f.name.upper()
            raw = environ.get(key)
            if raw is None or raw.strip() == "":
                continue
            try:
                if f.type in (int, "int"):
                    values[f.name] = int(raw, 0)
                elif f.type in (float, "float"):
                    values[f.name] = float(raw)
                else:
                    values[f.name] = raw.strip()
            except ValueError:
                raise ValueError(f"Invalid value for {key}: {raw!r}")

        return cls(**values)
