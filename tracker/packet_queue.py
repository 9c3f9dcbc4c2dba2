# tracker/packet_queue.py
import logging
import threading
from collections import deque
from typing import Deque, List, Optional

logger = logging.getLogger(__name__)


class PacketQueue:
    """
    Thread-safe FIFO of encoded packets shared by the saving and sending workers.

    Insertion order is send order. The sending worker peeks the head and only
    removes it once the server has confirmed it, so an unconfirmed packet keeps
    blocking everything behind it.

    If max_packets is set the queue drops its oldest packet when full;
    by default it grows without bound.
    """

    def __init__(self, max_packets: Optional[int] = None):
        if max_packets is not None and max_packets < 1:
            raise ValueError(f"max_packets must be positive, got {max_packets}")
        self.max_packets = max_packets
        self._packets: Deque[bytes] = deque()
        self._lock = threading.Lock()

    def append(self, packet: bytes) -> None:
        """Append unconditionally (producer path)."""
        with self._lock:
            self._append_locked(packet)

    def append_if_absent(self, packet: bytes) -> bool:
        """Append unless an identical packet is already queued (failure path)."""
        with self._lock:
            if packet in self._packets:
                return False
            self._append_locked(packet)
            return True

    def peek(self) -> Optional[bytes]:
        with self._lock:
            return self._packets[0] if self._packets else None

    def remove_head(self, packet: bytes) -> bool:
        """Remove the head only if it is still the given packet."""
        with self._lock:
            if self._packets and self._packets[0] == packet:
                self._packets.popleft()
                return True
            return False

    def snapshot(self) -> List[bytes]:
        with self._lock:
            return list(self._packets)

    def clear(self) -> int:
        with self._lock:
            dropped = len(self._packets)
            self._packets.clear()
            return dropped

    def _append_locked(self, packet: bytes) -> None:
        if self.max_packets is not None and len(self._packets) >= self.max_packets:
            self._packets.popleft()
            logger.warning(f"Packet queue full ({self.max_packets}), dropped oldest packet")
        self._packets.append(bytes(packet))

    def __len__(self) -> int:
        with self._lock:
            return len(self._packets)

    def __contains__(self, packet: bytes) -> bool:
        with self._lock:
            return packet in self._packets
