# tracker/connection.py
import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class ConnectionState:
    """
    Connected/disconnected flag shared by the startup handshake and both workers.

    The only write is record_attempt(), called once per delivery attempt with
    its outcome. on_change fires (outside the lock) when the flag flips.
    """

    def __init__(self, on_change: Optional[Callable[[bool], None]] = None):
        self._connected = False
        self._lock = threading.Lock()
        self.on_change = on_change

    @property
    def is_connected(self) -> bool:
        with self._lock:
            return self._connected

    def record_attempt(self, success: bool) -> bool:
        """Set the flag to the attempt outcome. Returns True if it changed."""
        success = bool(success)
        with self._lock:
            changed = self._connected != success
            self._connected = success

        if changed:
            logger.info(f"Connection state: {'CONNECTED' if success else 'DISCONNECTED'}")
            if self.on_change is not None:
                self.on_change(success)
        return changed
