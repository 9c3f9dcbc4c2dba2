import hashlib
import struct

import pytest

from tracker.model import TelemetrySnapshot
from tracker.protocol import (
    TELEMETRY_TAIL_SIZE,
    PacketParser,
    Tag,
    build_handshake_packet,
    build_telemetry_packet,
    bytes_to_hex,
    crc16_modbus,
    encode_altitude,
    encode_location,
    encode_speed,
    encode_timestamp,
)

IMEI = "123456789012345"
DIGEST = hashlib.sha256(b"12565696908").digest()[:4]


def make_snapshot(**overrides):
    values = dict(latitude=1.5, longitude=-2.25, altitude=934.0, speed=7.9, satellites=9)
    values.update(overrides)
    return TelemetrySnapshot(**values)


# ===================== CRC =====================

def test_crc16_modbus_check_value():
    assert crc16_modbus(b"123456789") == 0x4B37


def test_crc16_modbus_single_zero_byte():
    assert crc16_modbus(b"\x00") == 0x40BF


def test_crc16_modbus_empty_input_is_initial_value():
    assert crc16_modbus(b"") == 0xFFFF


def test_bytes_to_hex_is_uppercase_and_spaced():
    assert bytes_to_hex(b"\x01\xab\x00") == "01 AB 00"


# ===================== HANDSHAKE =====================

def test_handshake_layout():
    packet = build_handshake_packet(IMEI)

    assert packet[:8] == bytes([0x01, 0x14, 0x00, 0x01, 0x82, 0x02, 0x15, 0x03])
    assert packet[8:23] == IMEI.encode("ascii")
    assert len(packet) == 3 + 20 + 2


def test_handshake_crc_covers_header_length_and_body():
    packet = build_handshake_packet(IMEI)

    assert struct.unpack("<H", packet[-2:])[0] == crc16_modbus(packet[:-2])


def test_handshake_uses_given_versions():
    packet = build_handshake_packet("IMEI", hardware_version=0x11, firmware_version=0x22)

    assert packet[3:8] == bytes([0x01, 0x11, 0x02, 0x22, 0x03])
    assert packet[8:12] == b"IMEI"


def test_handshake_rejects_non_ascii_imei():
    with pytest.raises(ValueError):
        build_handshake_packet("35713816678501é")


# ===================== TELEMETRY =====================

def test_telemetry_length_for_15_digit_imei():
    packet = build_telemetry_packet(IMEI, make_snapshot(), DIGEST, timestamp=0)

    length = struct.unpack_from("<H", packet, 1)[0]
    assert length == 16 + TELEMETRY_TAIL_SIZE == 44
    assert len(packet) == 3 + 44 + 2


def test_telemetry_tag_order():
    packet = build_telemetry_packet(IMEI, make_snapshot(), DIGEST, timestamp=0x01020304)
    body = packet[3:-2]

    assert body[0] == Tag.IMEI
    assert body[16] == Tag.TIMESTAMP
    assert body[17:21] == bytes([0x04, 0x03, 0x02, 0x01])
    assert body[21] == Tag.LOCATION
    assert body[31] == Tag.SPEED
    assert body[36] == Tag.ALTITUDE
    assert body[39] == Tag.IDENTITY
    assert body[40:44] == DIGEST


def test_telemetry_rejects_wrong_digest_size():
    with pytest.raises(ValueError):
        build_telemetry_packet(IMEI, make_snapshot(), b"\x00\x01", timestamp=0)


def test_telemetry_uses_current_time_when_no_timestamp(monkeypatch):
    monkeypatch.setattr("tracker.protocol.time.time", lambda: 1700000000.7)

    packet = build_telemetry_packet(IMEI, make_snapshot(), DIGEST)

    assert PacketParser.parse(packet)["timestamp"] == 1700000000


def test_parse_telemetry_packet():
    packet = build_telemetry_packet(IMEI, make_snapshot(), DIGEST, timestamp=1700000000)

    decoded = PacketParser.parse(packet)

    assert decoded["imei"] == IMEI
    assert decoded["timestamp"] == 1700000000
    assert decoded["satellites"] == 9
    assert decoded["latitude"] == pytest.approx(1.5)
    assert decoded["longitude"] == pytest.approx(-2.25)
    assert decoded["speed"] == 70
    assert decoded["altitude"] == 934
    assert decoded["identity"] == DIGEST


def test_parse_handshake_packet():
    decoded = PacketParser.parse(build_handshake_packet(IMEI))

    assert decoded["hardware_version"] == 0x82
    assert decoded["firmware_version"] == 0x15
    assert decoded["imei"] == IMEI
    assert decoded["length"] == 20


def test_parse_rejects_corrupted_crc():
    packet = bytearray(build_handshake_packet(IMEI))
    packet[-1] ^= 0xFF

    with pytest.raises(ValueError, match="CRC"):
        PacketParser.parse(bytes(packet))


def test_parse_rejects_bad_header():
    packet = bytearray(build_handshake_packet(IMEI))
    packet[0] = 0x02

    with pytest.raises(ValueError, match="header"):
        PacketParser.parse(bytes(packet))


def test_parse_rejects_length_mismatch():
    packet = build_handshake_packet(IMEI)

    with pytest.raises(ValueError, match="Length"):
        PacketParser.parse(packet[:-3] + packet[-2:])


def test_frame_size_from_header():
    packet = build_handshake_packet(IMEI)

    assert PacketParser.frame_size(packet[:3]) == len(packet)
    assert PacketParser.frame_size(packet[:2]) is None


# ===================== VALUE ENCODERS =====================

def test_location_truncates_toward_zero():
    encoded = encode_location(7, 0.0000015, -0.0000015)

    satellites, lat, lon = struct.unpack("<Bii", encoded)
    assert satellites == 7
    assert lat == 1
    assert lon == -1


def test_location_exact_microdegrees():
    _, lat, lon = struct.unpack("<Bii", encode_location(0, 1.5, -2.25))

    assert (lat, lon) == (1500000, -2250000)


@pytest.mark.parametrize("speed, expected", [(7.9, 70), (0.5, 0), (0.0, 0), (-3.7, -30)])
def test_speed_truncates_before_scaling(speed, expected):
    assert struct.unpack("<i", encode_speed(speed))[0] == expected


def test_altitude_low_byte_first():
    assert encode_altitude(934.7) == bytes([0xA6, 0x03])


def test_altitude_wraps_to_16_bits():
    assert encode_altitude(-1) == b"\xff\xff"
    assert encode_altitude(70000) == struct.pack("<H", 70000 & 0xFFFF)


def test_timestamp_is_little_endian_uint32():
    assert encode_timestamp(1) == b"\x01\x00\x00\x00"
