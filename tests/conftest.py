import os
import sys
import threading

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from PyQt5 import QtCore  # noqa: E402

from tracker.model import TelemetrySnapshot  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def qt_app():
    """QThread and signal emission need a Qt application object."""
    app = QtCore.QCoreApplication.instance() or QtCore.QCoreApplication([])
    yield app


class RecordingEvent(threading.Event):
    """Stop event whose wait() returns at once and remembers each timeout."""

    def __init__(self, stop_after_waits=None):
        super().__init__()
        self.waits = []
        self.stop_after_waits = stop_after_waits

    def wait(self, timeout=None):
        self.waits.append(timeout)
        if self.stop_after_waits is not None and len(self.waits) >= self.stop_after_waits:
            self.set()
        return self.is_set()


class FakeTransport:
    """Scripted transport: pops one outcome per delivery, then uses `default`."""

    def __init__(self, outcomes=(), default=True):
        self.outcomes = list(outcomes)
        self.default = default
        self.sent = []
        self._lock = threading.Lock()

    def deliver(self, packet):
        with self._lock:
            self.sent.append(packet)
            if self.outcomes:
                return self.outcomes.pop(0)
            return self.default


class FakeLocationService:
    def __init__(self, snapshot=None):
        self._snapshot = snapshot or TelemetrySnapshot(
            latitude=-25.4284, longitude=-49.2733, altitude=934.0, speed=12.5, satellites=9
        )

    def snapshot(self):
        return self._snapshot


@pytest.fixture
def recording_event():
    return RecordingEvent()


@pytest.fixture
def location_service():
    return FakeLocationService()
