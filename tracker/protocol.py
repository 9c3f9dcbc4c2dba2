"""
Galileosky-style tag protocol used by the tracker.

Frame layout (little-endian unless noted):

    [0x01 header][uint16 length][tag fields ...][uint16 CRC16-Modbus]

`length` counts the tag field bytes only (not the header, the length
field itself or the CRC). Each tag field is one tag byte followed by a
fixed-size value; the IMEI value has no size prefix and is as long as
the identifier string.
"""
import math
import struct
import time
from enum import IntEnum
from typing import Any, Dict, Optional

import numpy as np

from .model import TelemetrySnapshot


HEADER = 0x01
HARDWARE_VERSION = 0x82
FIRMWARE_VERSION = 0x15
IDENTITY_DIGEST_SIZE = 4

INT32_MIN = -(2 ** 31)
INT32_MAX = 2 ** 31 - 1


# ===================== TAGS =====================

class Tag(IntEnum):
    HARDWARE_VERSION = 0x01
    FIRMWARE_VERSION = 0x02
    IMEI = 0x03
    TIMESTAMP = 0x20
    LOCATION = 0x30
    SPEED = 0x33
    ALTITUDE = 0x34
    IDENTITY = 0x90


# Value sizes for every tag except IMEI
TAG_SIZES = {
    Tag.HARDWARE_VERSION: 1,
    Tag.FIRMWARE_VERSION: 1,
    Tag.TIMESTAMP: 4,
    Tag.LOCATION: 9,
    Tag.SPEED: 4,
    Tag.ALTITUDE: 2,
    Tag.IDENTITY: IDENTITY_DIGEST_SIZE,
}

# Bytes following the IMEI value in a telemetry frame body
TELEMETRY_TAIL_SIZE = sum(
    1 + TAG_SIZES[tag]
    for tag in (Tag.TIMESTAMP, Tag.LOCATION, Tag.SPEED, Tag.ALTITUDE, Tag.IDENTITY)
)


# ===================== CHECKSUM =====================

def crc16_modbus(data: bytes) -> int:
    """CRC16 Modbus: init 0xFFFF, reflected polynomial 0xA001."""
    crc = 0xFFFF
    for b in data:
        crc ^= b
        for _ in range(8):
            if crc & 0x0001:
                crc = (crc >> 1) ^ 0xA001
            else:
                crc >>= 1
    return crc


def bytes_to_hex(data: bytes) -> str:
    return " ".join(f"{b:02X}" for b in data)


# ===================== VALUE ENCODERS =====================

def _to_int32(value: float) -> int:
    """Truncate toward zero, saturating at the int32 range (NaN -> 0)."""
    if math.isnan(value):
        return 0
    if value >= INT32_MAX:
        return INT32_MAX
    if value <= INT32_MIN:
        return INT32_MIN
    return int(value)


def _wrap_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value > INT32_MAX else value


def encode_imei(imei: str) -> bytes:
    try:
        return imei.encode("ascii")
    except UnicodeEncodeError as e:
        raise ValueError(f"IMEI must be ASCII: {imei!r}") from e


def encode_location(satellites: int, latitude: float, longitude: float) -> bytes:
    """Satellite count byte, then latitude and longitude in microdegrees."""
    return struct.pack(
        "<Bii",
        int(satellites) & 0xFF,
        _to_int32(latitude * 1e6),
        _to_int32(longitude * 1e6),
    )


def encode_speed(speed: float) -> bytes:
    # Truncate to whole m/s first, then scale: 7.9 -> 7 -> 70
    speed = float(np.float32(speed))
    return struct.pack("<i", _wrap_int32(_to_int32(speed) * 10))


def encode_altitude(altitude: float) -> bytes:
    # Truncated to 16 bits, low byte first
    return struct.pack("<H", _to_int32(altitude) & 0xFFFF)


def encode_timestamp(timestamp: Optional[int] = None) -> bytes:
    if timestamp is None:
        timestamp = int(time.time())
    return struct.pack("<I", int(timestamp) & 0xFFFFFFFF)


# ===================== PACKET BUILDERS =====================

def _frame(body: bytes) -> bytes:
    if len(body) > 0xFFFF:
        raise ValueError(f"Packet body too large for length field: {len(body)} bytes")
    packet = bytearray()
    packet.append(HEADER)
    packet.extend(struct.pack("<H", len(body)))
    packet.extend(body)
    packet.extend(struct.pack("<H", crc16_modbus(packet)))
    return bytes(packet)


def build_handshake_packet(
    imei: str,
    hardware_version: int = HARDWARE_VERSION,
    firmware_version: int = FIRMWARE_VERSION,
) -> bytes:
    """Build the first packet of a session: versions + IMEI."""
    body = bytearray()
    body.append(Tag.HARDWARE_VERSION)
    body.append(hardware_version & 0xFF)
    body.append(Tag.FIRMWARE_VERSION)
    body.append(firmware_version & 0xFF)
    body.append(Tag.IMEI)
    body.extend(encode_imei(imei))
    return _frame(bytes(body))


def build_telemetry_packet(
    imei: str,
    snapshot: TelemetrySnapshot,
    identity_digest: bytes,
    timestamp: Optional[int] = None,
) -> bytes:
    """Build a telemetry packet carrying one location snapshot."""
    if len(identity_digest) != IDENTITY_DIGEST_SIZE:
        raise ValueError(
            f"Identity digest must be {IDENTITY_DIGEST_SIZE} bytes, got {len(identity_digest)}"
        )

    body = bytearray()
    body.append(Tag.IMEI)
    body.extend(encode_imei(imei))

    body.append(Tag.TIMESTAMP)
    body.extend(encode_timestamp(timestamp))

    body.append(Tag.LOCATION)
    body.extend(encode_location(snapshot.satellites, snapshot.latitude, snapshot.longitude))

    body.append(Tag.SPEED)
    body.extend(encode_speed(snapshot.speed))

    body.append(Tag.ALTITUDE)
    body.extend(encode_altitude(snapshot.altitude))

    body.append(Tag.IDENTITY)
    body.extend(identity_digest)

    return _frame(bytes(body))


# ===================== PACKET PARSER =====================

class PacketParser:
    """Decodes tracker frames back into tag values"""

    @staticmethod
    def frame_size(header: bytes) -> Optional[int]:
        """Total frame size announced by the first 3 bytes, or None if too short."""
        if len(header) < 3:
            return None
        length = struct.unpack_from("<H", header, 1)[0]
        return 3 + length + 2

    @staticmethod
    def parse(data: bytes, imei_length: Optional[int] = None) -> Dict[str, Any]:
        """
        Parse and validate one complete frame.

        Args:
            data: Frame bytes including header and CRC
            imei_length: IMEI size; inferred from the frame layout when None

        Returns:
            Dict with "length", "crc" and one entry per decoded tag.
        """
        if len(data) < 5:
            raise ValueError(f"Frame too short: {len(data)} bytes")
        if data[0] != HEADER:
            raise ValueError(f"Bad header byte: 0x{data[0]:02X}")

        length = struct.unpack_from("<H", data, 1)[0]
        if len(data) != 3 + length + 2:
            raise ValueError(f"Length field says {length} body bytes, frame has {len(data) - 5}")

        crc = struct.unpack_from("<H", data, len(data) - 2)[0]
        expected = crc16_modbus(data[:-2])
        if crc != expected:
            raise ValueError(f"CRC mismatch: frame 0x{crc:04X}, computed 0x{expected:04X}")

        body = data[3:-2]
        result: Dict[str, Any] = {"length": length, "crc": crc}
        offset = 0

        while offset < len(body):
            try:
                tag = Tag(body[offset])
            except ValueError:
                raise ValueError(f"Unknown tag 0x{body[offset]:02X} at offset {offset}")
            offset += 1

            if tag == Tag.IMEI:
                size = imei_length if imei_length is not None else PacketParser._imei_size(body, offset)
            else:
                size = TAG_SIZES[tag]

            if size < 0 or offset + size > len(body):
                raise ValueError(f"Truncated value for tag {tag.name}")

            value = body[offset:offset + size]
            offset += size
            PacketParser._decode_value(tag, value, result)

        return result

    @staticmethod
    def _imei_size(body: bytes, offset: int) -> int:
        remaining = len(body) - offset
        # Telemetry frames start with the IMEI; handshakes end with it
        if body[0] == Tag.IMEI:
            return remaining - TELEMETRY_TAIL_SIZE
        return remaining

    @staticmethod
    def _decode_value(tag: Tag, value: bytes, result: Dict[str, Any]):
        if tag == Tag.HARDWARE_VERSION:
            result["hardware_version"] = value[0]
        elif tag == Tag.FIRMWARE_VERSION:
            result["firmware_version"] = value[0]
        elif tag == Tag.IMEI:
            result["imei"] = value.decode("ascii", errors="replace")
        elif tag == Tag.TIMESTAMP:
            result["timestamp"] = struct.unpack("<I", value)[0]
        elif tag == Tag.LOCATION:
            satellites, lat, lon = struct.unpack("<Bii", value)
            result["satellites"] = satellites
            result["latitude"] = lat / 1e6
            result["longitude"] = lon / 1e6
        elif tag == Tag.SPEED:
            result["speed"] = struct.unpack("<i", value)[0]
        elif tag == Tag.ALTITUDE:
            result["altitude"] = struct.unpack("<h", value)[0]
        elif tag == Tag.IDENTITY:
            result["identity"] = bytes(value)
