"""
Local acknowledging server for development and tests.

Reads one frame per connection, validates it with PacketParser and replies
with 0x02 followed by the frame's two CRC bytes, which is what
TcpTransport.validate_response() expects.

    python -m tracker.mock_server --port 20018
"""
import logging
import socketserver
import sys
import threading
from typing import List

from .protocol import PacketParser, bytes_to_hex

logger = logging.getLogger(__name__)

ACK_HEADER = 0x02


class _FrameHandler(socketserver.BaseRequestHandler):

    def handle(self):
        server: MockTrackerServer = self.server
        server.on_connection()

        frame = self._read_frame()
        if frame is None:
            logger.info("Connection closed before a full frame arrived")
            return

        if server.should_drop():
            logger.info(f"Dropping connection from {self.client_address[0]} without reply")
            return

        try:
            decoded = PacketParser.parse(frame)
        except ValueError as e:
            logger.warning(f"Rejected frame: {e}")
            return

        server.record(frame, decoded)
        logger.info(f"Frame accepted: {bytes_to_hex(frame)}")

        crc = frame[-2:]
        if server.bad_crc:
            crc = bytes(b ^ 0xFF for b in crc)
        self.request.sendall(bytes([ACK_HEADER]) + crc)

    def _read_frame(self):
        header = self._read_exact(3)
        if header is None:
            return None
        rest = self._read_exact(PacketParser.frame_size(header) - 3)
        if rest is None:
            return None
        return header + rest

    def _read_exact(self, size):
        data = bytearray()
        while len(data) < size:
            try:
                chunk = self.request.recv(size - len(data))
            except OSError:
                return None
            if not chunk:
                return None
            data.extend(chunk)
        return bytes(data)


class MockTrackerServer(socketserver.ThreadingTCPServer):
    """
    Threaded TCP server that acknowledges valid tracker frames.

    Args:
        drop_first: Close this many connections without replying before
                    acknowledging anything
        bad_crc: Reply with an inverted CRC so every delivery is rejected
    """

    allow_reuse_address = True
    daemon_threads = True

    def __init__(self, host: str = "127.0.0.1", port: int = 0,
                 drop_first: int = 0, bad_crc: bool = False, timeout: float = 5.0):
        self.drop_first = drop_first
        self.bad_crc = bad_crc
        self.request_timeout = timeout
        self.connections = 0
        self.frames: List[bytes] = []
        self.decoded: List[dict] = []
        self._lock = threading.Lock()
        self._thread = None
        super().__init__((host, port), _FrameHandler)

    @property
    def address(self):
        return self.server_address[0], self.server_address[1]

    def get_request(self):
        sock, addr = super().get_request()
        sock.settimeout(self.request_timeout)
        return sock, addr

    def on_connection(self):
        with self._lock:
            self.connections += 1

    def should_drop(self) -> bool:
        with self._lock:
            if self.drop_first > 0:
                self.drop_first -= 1
                return True
            return False

    def record(self, frame: bytes, decoded: dict):
        with self._lock:
            self.frames.append(frame)
            self.decoded.append(decoded)

    def received(self) -> List[bytes]:
        with self._lock:
            return list(self.frames)

    def start(self):
        """Serve from a daemon thread; returns immediately."""
        self._thread = threading.Thread(target=self.serve_forever, daemon=True)
        self._thread.start()
        logger.info(f"Mock server listening on {self.address[0]}:{self.address[1]}")
        return self

    def stop(self):
        if self._thread is not None:
            self.shutdown()
            self._thread.join()
            self._thread = None
        self.server_close()

    def __enter__(self):
        return self.start()

    def __exit__(self, exc_type, exc, tb):
        self.stop()


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    logging.basicConfig(
        level=logging.DEBUG if "--debug" in argv else logging.INFO,
        format='[%(levelname)s] %(name)s: %(message)s',
        stream=sys.stdout,
    )

    port = 20018
    if "--port" in argv:
        port = int(argv[argv.index("--port") + 1])

    server = MockTrackerServer("0.0.0.0", port)
    print(f"📡 Mock tracking server on port {server.address[1]} (Ctrl+C to stop)")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        print("\n👋 Shutting down mock server...")
    finally:
        server.server_close()


if __name__ == "__main__":
    main()
