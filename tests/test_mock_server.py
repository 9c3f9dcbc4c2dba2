import socket

from tracker.mock_server import MockTrackerServer
from tracker.protocol import build_handshake_packet


def exchange(address, payload):
    with socket.create_connection(address, timeout=2.0) as sock:
        sock.sendall(payload)
        return sock.recv(1024)


def test_acknowledges_with_crc_echo():
    packet = build_handshake_packet("IMEI")

    with MockTrackerServer() as server:
        response = exchange(server.address, packet)

    assert response == b"\x02" + packet[-2:]
    assert server.decoded[0]["imei"] == "IMEI"


def test_no_reply_for_invalid_frame():
    packet = bytearray(build_handshake_packet("IMEI"))
    packet[-1] ^= 0xFF

    with MockTrackerServer() as server:
        response = exchange(server.address, bytes(packet))

    assert response == b""
    assert server.received() == []


def test_frame_split_across_writes():
    packet = build_handshake_packet("123456789012345")

    with MockTrackerServer() as server:
        with socket.create_connection(server.address, timeout=2.0) as sock:
            sock.sendall(packet[:2])
            sock.sendall(packet[2:10])
            sock.sendall(packet[10:])
            response = sock.recv(1024)

    assert response == b"\x02" + packet[-2:]


def test_counts_connections():
    packet = build_handshake_packet("IMEI")

    with MockTrackerServer(drop_first=1) as server:
        exchange(server.address, packet)
        exchange(server.address, packet)

        assert server.connections == 2
        assert len(server.received()) == 1
