#!/usr/bin/env python3
"""
GPS Tracker - Main Entry Point

Samples a (simulated) GPS source, encodes Galileosky-style telemetry packets
and delivers them to the tracking server, buffering while the link is down.

Usage:
    python main.py                  # Dashboard window
    python main.py --headless       # No window, logs only (Ctrl+C to stop)
    python main.py --mock-server    # Deliver to a local acknowledging server
    python main.py --debug          # Verbose logging (packet hex dumps)

Settings come from TRACKER_* environment variables or a .env file.
"""
import sys
import signal
import logging
from PyQt5 import QtCore, QtWidgets

# Configure logging FIRST - before any other imports
logging.basicConfig(
    level=logging.DEBUG if "--debug" in sys.argv else logging.INFO,
    format='[%(levelname)s] %(name)s: %(message)s',
    stream=sys.stdout
)

# Load environment variables from .env file
from dotenv import load_dotenv
load_dotenv()

from tracker.config import TrackerConfig
from tracker.location import LocationService
from tracker.mock_server import MockTrackerServer
from tracker.simulator import GalileoskySimulator
from tracker.workers import StartupWorker
from tracker.backends.simulated_location import SimulatedLocationWorker

logger = logging.getLogger("main")


class TrackerSession:
    """One start/stop cycle: a fresh simulator plus the worker that starts it."""

    def __init__(self, config: TrackerConfig, location_service: LocationService):
        self.config = config
        self.simulator = GalileoskySimulator(location_service, config)
        self.startup = StartupWorker(self.simulator, config.imei, config.cpf, config.plate)

    def start(self):
        self.startup.start()

    def stop(self):
        self.simulator.shutdown()
        self.startup.wait()


def run_headless(config: TrackerConfig) -> int:
    app = QtCore.QCoreApplication(sys.argv)

    location_service = LocationService()
    gps_thread = SimulatedLocationWorker(location_service)
    session = TrackerSession(config, location_service)

    session.simulator.status_update.connect(lambda msg: print(f"[Status] {msg}"))
    session.startup.startup_finished.connect(
        lambda ok: None if ok else app.quit()
    )

    # Ctrl+C quits the event loop; the timer lets Python run its signal handlers
    signal.signal(signal.SIGINT, lambda *_: app.quit())
    tick = QtCore.QTimer()
    tick.timeout.connect(lambda: None)
    tick.start(200)

    gps_thread.start()
    session.start()

    print("\n" + "="*60)
    print(f"✅ TRACKER RUNNING (headless) - sending to {config.server_host}:{config.server_port}")
    print("="*60 + "\n")

    result = app.exec_()

    print("\n🛑 Shutting down...")
    session.stop()
    gps_thread.stop()
    gps_thread.wait()
    return result


def run_dashboard(config: TrackerConfig) -> int:
    from ui.main_window import MainWindow

    print("🔧 Creating Qt application...")
    app = QtWidgets.QApplication(sys.argv)

    print("🖥️  Creating main window...")
    window = MainWindow(config)

    location_service = LocationService()
    gps_thread = SimulatedLocationWorker(location_service)
    gps_thread.location_updated.connect(
        lambda snapshot: window.update_location(snapshot, location_service.display_speed_kmh)
    )
    gps_thread.status_update.connect(window.append_status)

    sessions = []

    def start_session():
        session = TrackerSession(config, location_service)
        session.simulator.connection_changed.connect(window.set_connection_state)
        session.simulator.queue_size_changed.connect(window.set_queue_depth)
        session.simulator.status_update.connect(window.append_status)
        session.simulator.saving_worker.status_update.connect(window.append_status)
        session.simulator.sending_worker.status_update.connect(window.append_status)
        session.startup.startup_finished.connect(
            lambda ok: None if ok else window.set_stopped()
        )
        sessions.append(session)
        session.start()

    def stop_session():
        while sessions:
            sessions.pop().stop()
        window.set_connection_state(False)
        window.set_stopped()

    window.start_requested.connect(start_session)
    window.stop_requested.connect(stop_session)

    print("🚀 Starting GPS worker thread...")
    gps_thread.start()

    print("🪟 Showing UI window...")
    window.show()

    print("\n" + "="*60)
    print("✅ TRACKER READY - press Start to connect")
    print("="*60 + "\n")

    result = app.exec_()

    print("\n🛑 Shutting down...")
    stop_session()
    gps_thread.stop()
    gps_thread.wait()
    return result


def main(headless: bool = False, use_mock_server: bool = False):
    """
    Entry point for the tracker.

    Args:
        headless: Run without a window
        use_mock_server: Start a local acknowledging server and send to it
    """
    config = TrackerConfig.from_env()

    mock_server = None
    if use_mock_server:
        mock_server = MockTrackerServer("127.0.0.1", 0).start()
        config.server_host, config.server_port = mock_server.address
        print(f"📡 Local mock server on port {config.server_port}")

    print(f"\n📋 IMEI {config.imei} -> {config.server_host}:{config.server_port}")

    try:
        if headless:
            return run_headless(config)
        return run_dashboard(config)
    finally:
        if mock_server is not None:
            mock_server.stop()


if __name__ == "__main__":
    print("="*60)
    print("🚀 GPS TRACKER STARTING...")
    print("="*60)
    print(f"🎯 Command line args: {sys.argv}")

    try:
        result = main(
            headless="--headless" in sys.argv,
            use_mock_server="--mock-server" in sys.argv,
        )
    except Exception as e:
        print("\n" + "="*60)
        print("❌ FATAL ERROR:")
        print("="*60)
        logger.exception(f"{type(e).__name__}: {e}")
        print("="*60)
        sys.exit(1)

    print("👋 Goodbye!")
    sys.exit(result)
