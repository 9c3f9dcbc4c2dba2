"""
Background workers for the telemetry pipeline.

PacketSavingWorker samples the location service on a fixed period and
queues encoded telemetry packets. PacketSendingWorker drains the queue
head-first, reconnecting when the link is down. StartupWorker runs the
blocking initial handshake off the UI thread.

All waits go through the simulator's shared stop event, so a shutdown
wakes every worker immediately.
"""
import logging
import threading

from PyQt5 import QtCore

from .identity import CPFConverter
from .protocol import build_telemetry_packet, bytes_to_hex

logger = logging.getLogger(__name__)


class PacketSavingWorker(QtCore.QThread):
    """Producer: builds one telemetry packet per period and appends it to the queue"""

    packet_saved = QtCore.pyqtSignal(int)   # queue size after the append
    status_update = QtCore.pyqtSignal(str)

    def __init__(self, simulator, location_service, stop_event: threading.Event,
                 interval_s: float = 10.0, parent=None):
        super().__init__(parent)
        self.simulator = simulator
        self.location_service = location_service
        self.stop_event = stop_event
        self.interval_s = interval_s
        self.cpf_converter = CPFConverter
        self.imei = ""
        self.cpf = ""

    def configure(self, imei: str, cpf: str):
        self.imei = imei
        self.cpf = cpf

    def run(self):
        logger.info(f"Packet saving worker started (every {self.interval_s:g}s)")
        self.status_update.emit("Packet saving started")

        # wait() returns True once the stop event is set
        while not self.stop_event.wait(self.interval_s):
            try:
                self.save_packet()
            except Exception as e:
                logger.error(f"Error building telemetry packet: {e}", exc_info=True)
                self.status_update.emit(f"Error building packet: {e}")

        logger.info("Packet saving worker finished")
        self.status_update.emit("Packet saving stopped")

    def save_packet(self) -> bytes:
        """Sample the location service once and queue the resulting packet."""
        snapshot = self.location_service.snapshot()
        logger.info(
            f"Location updated - Lat: {snapshot.latitude}, Long: {snapshot.longitude}, "
            f"Alt: {snapshot.altitude}, Vel: {snapshot.speed}, Sats: {snapshot.satellites}"
        )

        packet = build_telemetry_packet(self.imei, snapshot, self.cpf_converter.compress(self.cpf))
        queue_size = self.simulator.add_data_packet(packet)
        logger.debug(f"Packet content: {bytes_to_hex(packet)}")

        self.packet_saved.emit(queue_size)
        return packet

    def stop(self):
        self.stop_event.set()


class PacketSendingWorker(QtCore.QThread):
    """Consumer: delivers the queue head, removing it only once the server confirms it"""

    packet_sent = QtCore.pyqtSignal(int)    # queue size after the removal
    status_update = QtCore.pyqtSignal(str)

    def __init__(self, simulator, stop_event: threading.Event,
                 interval_s: float = 2.0, parent=None):
        super().__init__(parent)
        self.simulator = simulator
        self.stop_event = stop_event
        self.interval_s = interval_s

    def run(self):
        logger.info("Packet sending worker started")
        self.status_update.emit("Packet sending started")

        while not self.stop_event.is_set():
            try:
                self.process_once()
            except Exception as e:
                logger.error(f"Error sending packet: {e}", exc_info=True)
                self.status_update.emit(f"Error sending packet: {e}")

            if self.stop_event.wait(self.interval_s):
                break

        logger.info("Packet sending worker finished")
        self.status_update.emit("Packet sending stopped")

    def process_once(self) -> bool:
        """
        One consumer iteration (without the trailing wait).

        Returns:
            True if the head packet was delivered and removed.
        """
        if self.stop_event.is_set():
            return False

        if not self.simulator.is_connected:
            logger.info("Not connected to server. Trying to reconnect...")
            self.status_update.emit("Connection lost, reconnecting...")
            if self.simulator.reconnect_until_connected():
                self.status_update.emit("Reconnected to server")
            return False

        packet = self.simulator.packet_queue.peek()
        if packet is None:
            logger.debug("No data packet available")
            return False

        if not self.simulator.send_packet(packet):
            logger.info("Failed to send packet, keeping it in the queue")
            return False

        queue_size = self.simulator.remove_delivered_packet(packet)
        logger.info(f"Packet delivered and removed from queue ({queue_size} left)")
        self.packet_sent.emit(queue_size)
        return True

    def stop(self):
        self.stop_event.set()


class StartupWorker(QtCore.QThread):
    """Runs GalileoskySimulator.send_coordinates() without blocking the caller"""

    startup_finished = QtCore.pyqtSignal(bool)
    status_update = QtCore.pyqtSignal(str)

    def __init__(self, simulator, imei: str, cpf: str, plate: str, parent=None):
        super().__init__(parent)
        self.simulator = simulator
        self.imei = imei
        self.cpf = cpf
        self.plate = plate

    def run(self):
        try:
            started = self.simulator.send_coordinates(self.imei, self.cpf, self.plate)
        except Exception as e:
            logger.error(f"Startup failed: {e}", exc_info=True)
            self.status_update.emit(f"Startup failed: {e}")
            started = False

        if started:
            logger.info("Initial connection established")
        else:
            logger.info("Failed to establish the initial connection")
        self.startup_finished.emit(started)
