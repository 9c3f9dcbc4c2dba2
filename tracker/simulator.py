"""
Galileosky tracker simulator: owns the packet queue, the connection state
and the two pipeline workers, and runs the startup handshake.
"""
import logging
import threading
from typing import Optional

from PyQt5 import QtCore

from .config import TrackerConfig
from .connection import ConnectionState
from .identity import CarPlateEncoder
from .packet_queue import PacketQueue
from .protocol import build_handshake_packet
from .retry import RetryPolicy
from .transport import TcpTransport
from .workers import PacketSavingWorker, PacketSendingWorker

logger = logging.getLogger(__name__)


class GalileoskySimulator(QtCore.QObject):
    """
    Telemetry pipeline for one fixed server endpoint.

    Lifecycle: send_coordinates() blocks until the first handshake is
    confirmed, then starts the saving and sending workers. shutdown() stops
    both (idempotent); it also aborts a handshake still waiting to retry.

    Signals:
        connection_changed(bool) - connection flag flipped
        queue_size_changed(int) - packet queue grew or shrank
        status_update(str) - human readable progress
    """

    connection_changed = QtCore.pyqtSignal(bool)
    queue_size_changed = QtCore.pyqtSignal(int)
    status_update = QtCore.pyqtSignal(str)

    def __init__(
        self,
        location_service,
        config: Optional[TrackerConfig] = None,
        transport=None,
        stop_event: Optional[threading.Event] = None,
        parent=None,
    ):
        """
        Args:
            location_service: Source of TelemetrySnapshot (LocationService)
            config: Tracker settings; defaults to TrackerConfig()
            transport: Object with deliver(packet) -> bool; defaults to TcpTransport
            stop_event: Cancellation token shared by every wait in the pipeline
        """
        super().__init__(parent)

        self.config = config or TrackerConfig()
        self.location_service = location_service
        self.packet_queue = PacketQueue(self.config.queue_max_packets or None)
        self.connection = ConnectionState(on_change=self.connection_changed.emit)
        self.transport = transport or TcpTransport(
            self.config.server_host,
            self.config.server_port,
            connect_timeout=self.config.connect_timeout_s,
            read_timeout=self.config.read_timeout_s,
        )
        self.stop_event = stop_event if stop_event is not None else threading.Event()

        self.handshake_policy = RetryPolicy(self.config.retry_delay_s, name="Initial connection")
        self.reconnect_policy = RetryPolicy(self.config.retry_delay_s, name="Reconnect")

        self.saving_worker = PacketSavingWorker(
            self, location_service, self.stop_event, self.config.save_interval_s
        )
        self.sending_worker = PacketSendingWorker(
            self, self.stop_event, self.config.send_interval_s
        )

        self.plate_code: Optional[int] = None
        self._start_lock = threading.Lock()

    # ------------------ State ------------------ #

    @property
    def is_connected(self) -> bool:
        return self.connection.is_connected

    @property
    def is_running(self) -> bool:
        return self.saving_worker.isRunning() or self.sending_worker.isRunning()

    # ------------------ Delivery ------------------ #

    def send_packet(self, packet: bytes, is_handshake: bool = False) -> bool:
        """
        Deliver one packet and record the outcome as the connection state.

        A failed non-handshake packet is put back at the tail of the queue
        unless an identical packet is already queued.
        """
        if self.stop_event.is_set():
            logger.debug("Shutdown requested, packet not sent")
            return False

        success = self.transport.deliver(packet)
        self.connection.record_attempt(success)

        if not success and not is_handshake:
            if self.packet_queue.append_if_absent(packet):
                logger.info("Packet stored in buffer")
                self.queue_size_changed.emit(len(self.packet_queue))
            else:
                logger.debug("Packet already in buffer, not adding again")
        return success

    def add_data_packet(self, packet: bytes) -> int:
        self.packet_queue.append(packet)
        size = len(self.packet_queue)
        logger.debug(f"Packet queue size: {size}")
        self.queue_size_changed.emit(size)
        return size

    def remove_delivered_packet(self, packet: bytes) -> int:
        self.packet_queue.remove_head(packet)
        size = len(self.packet_queue)
        self.queue_size_changed.emit(size)
        return size

    # ------------------ Connection management ------------------ #

    def send_coordinates(self, imei: str, cpf: str, plate: str) -> bool:
        """
        Connect to the server and start the pipeline.

        Retries the handshake every retry_delay_s until the server confirms it.

        Returns:
            True once the workers are running, False if shutdown interrupted
            the handshake.
        """
        with self._start_lock:
            if self.is_running:
                logger.warning("Pipeline already running, ignoring start request")
                return True

            first_packet = build_handshake_packet(
                imei, self.config.hardware_version, self.config.firmware_version
            )
            self.plate_code = self._encode_plate(plate)

            logger.info("Trying to send the first packet to the server...")
            self.status_update.emit(
                f"Connecting to {self.config.server_host}:{self.config.server_port}..."
            )

            result = self.handshake_policy.run(
                lambda: self.send_packet(first_packet, is_handshake=True),
                self.stop_event,
                on_failure=lambda attempts: self.status_update.emit(
                    f"Initial connection failed (attempt {attempts}), "
                    f"retrying in {self.config.retry_delay_s:g}s..."
                ),
            )

            if not result.succeeded or self.stop_event.is_set():
                logger.error("Initial connection aborted")
                self.status_update.emit("Initial connection aborted")
                return False

            logger.info("Connection established with the server")
            self.status_update.emit("Connected to server")

            self.saving_worker.configure(imei, cpf)
            self.saving_worker.start()
            self.sending_worker.start()
            return True

    def reconnect_to_server(self) -> bool:
        """Single reconnect attempt with a fresh handshake packet."""
        first_packet = build_handshake_packet(
            self.config.reconnect_imei, self.config.hardware_version, self.config.firmware_version
        )
        logger.info("Trying to reconnect to the server...")
        if self.send_packet(first_packet, is_handshake=True):
            logger.info("Reconnected successfully")
            return True
        logger.info("Failed to reconnect")
        return False

    def reconnect_until_connected(self) -> bool:
        """Retry reconnect_to_server() until it succeeds or shutdown is requested."""
        return self.reconnect_policy.run(self.reconnect_to_server, self.stop_event).succeeded

    # ------------------ Shutdown ------------------ #

    def shutdown(self, timeout_ms: int = 5000):
        """Stop both workers and wake any pending wait. Safe to call repeatedly."""
        if not self.stop_event.is_set():
            logger.info("Stopping packet workers...")
            self.stop_event.set()

        for worker in (self.saving_worker, self.sending_worker):
            if worker.isRunning() and not worker.wait(timeout_ms):
                logger.warning(f"{type(worker).__name__} did not stop within {timeout_ms} ms")

    stop_threads = shutdown

    def _encode_plate(self, plate: str) -> Optional[int]:
        # Not sent yet; kept for a future tag
        try:
            return CarPlateEncoder.encode(plate)
        except ValueError as e:
            logger.warning(f"Plate not encoded: {e}")
            return None
