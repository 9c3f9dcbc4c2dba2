"""
TCP transport to the tracking server.

One connection per packet: open, write the whole frame, read a single
response (up to 1024 bytes), close. The server acknowledges a frame by
echoing its CRC in response bytes 1-2.
"""
import logging
import socket

from .protocol import bytes_to_hex

logger = logging.getLogger(__name__)

RESPONSE_BUFFER_SIZE = 1024


class TcpTransport:
    """Delivers one packet per call and reports whether the server confirmed it"""

    def __init__(
        self,
        host: str,
        port: int,
        connect_timeout: float = 10.0,
        read_timeout: float = 15.0,
    ):
        self.host = host
        self.port = int(port)
        self.connect_timeout = connect_timeout
        self.read_timeout = read_timeout

    def deliver(self, packet: bytes) -> bool:
        """
        Send one packet on a fresh connection and validate the response.

        Network errors (refused, reset, timeout) and an empty response count
        as failure; nothing is raised. The socket is closed on every path.
        """
        success = False
        try:
            with socket.create_connection((self.host, self.port), timeout=self.connect_timeout) as sock:
                sock.settimeout(self.read_timeout)

                logger.debug(f"Sending {len(packet)} bytes to {self.host}:{self.port}")
                sock.sendall(packet)

                response = sock.recv(RESPONSE_BUFFER_SIZE)
                if response:
                    logger.debug(f"Server response: {bytes_to_hex(response)}")
                    success = self.validate_response(packet, response)
                    if success:
                        logger.debug("CRC valid, server response accepted")
                    else:
                        logger.info("CRC mismatch, server response rejected")
                else:
                    logger.info("No response from server")
        except OSError as e:
            logger.warning(f"Error sending packet to {self.host}:{self.port}: {e}")

        return success

    @staticmethod
    def validate_response(packet: bytes, response: bytes) -> bool:
        """
        Compare response bytes 1-2 with the packet's trailing CRC bytes.

        Both pairs are read big-endian, so the check is a byte-for-byte match
        of the CRC as written on the wire (low byte first).
        """
        if len(packet) < 2 or len(response) < 3:
            return False
        crc_local = int.from_bytes(packet[-2:], "big")
        crc_server = int.from_bytes(response[1:3], "big")
        return crc_local == crc_server
