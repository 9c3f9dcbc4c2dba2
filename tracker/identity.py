"""
Identity helpers: CPF digest and license-plate bit packing.
"""
import hashlib
import logging
import re
import threading
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class CPFConverter:
    """
    Compresses a CPF into a 4-byte digest (first 4 bytes of its SHA-256).

    The digest is not reversible by itself; decompress() only answers for
    CPFs compressed earlier in the same process.
    """

    DIGEST_SIZE = 4

    _lock = threading.Lock()
    _cpf_to_digest: Dict[str, bytes] = {}
    _digest_to_cpf: Dict[bytes, str] = {}

    @classmethod
    def compress(cls, cpf: str) -> bytes:
        digest = hashlib.sha256(cpf.encode("utf-8")).digest()[:cls.DIGEST_SIZE]
        with cls._lock:
            cls._cpf_to_digest[cpf] = digest
            cls._digest_to_cpf[digest] = cpf
        logger.debug(f"CPF compressed: {digest.hex()}")
        return digest

    @classmethod
    def decompress(cls, digest: bytes) -> Optional[str]:
        with cls._lock:
            return cls._digest_to_cpf.get(bytes(digest))


class CarPlateEncoder:
    """
    Packs a Mercosul plate (LLLNLNN, e.g. "ACC1D23") into a 32-bit integer.

    Bit layout, high to low: letter1(5) letter2(5) letter3(5) digit1(4)
    letter4(5) digit2(4) digit3(4).
    """

    PLATE_RE = re.compile(r"^[A-Z]{3}[0-9][A-Z][0-9]{2}$")

    @staticmethod
    def encode(plate: str) -> int:
        if plate is None or not CarPlateEncoder.PLATE_RE.match(plate):
            raise ValueError(f"Invalid plate: {plate!r}")

        l1, l2, l3 = (ord(c) - ord("A") for c in plate[0:3])
        l4 = ord(plate[4]) - ord("A")
        n1, n2, n3 = (ord(plate[i]) - ord("0") for i in (3, 5, 6))

        encoded = (l1 << 27) | (l2 << 22) | (l3 << 17) | (n1 << 13) | (l4 << 8) | (n2 << 4) | n3
        logger.debug(f"Plate {plate} encoded: {encoded}")
        return encoded

    @staticmethod
    def decode(encoded: int) -> str:
        l1 = (encoded >> 27) & 0x1F
        l2 = (encoded >> 22) & 0x1F
        l3 = (encoded >> 17) & 0x1F
        n1 = (encoded >> 13) & 0xF
        l4 = (encoded >> 8) & 0x1F
        n2 = (encoded >> 4) & 0xF
        n3 = encoded & 0xF

        letter = lambda v: chr(v + ord("A"))
        digit = lambda v: chr(v + ord("0"))
        return letter(l1) + letter(l2) + letter(l3) + digit(n1) + letter(l4) + digit(n2) + digit(n3)
