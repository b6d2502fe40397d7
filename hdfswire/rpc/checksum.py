"""Chunk checksums used by the data transfer protocol."""

from __future__ import annotations

import enum
import zlib


def _make_table(polynomial: int) -> tuple[int, ...]:
    table = []
    for byte in range(256):
        crc = byte
        for _ in range(8):
            crc = (crc >> 1) ^ polynomial if crc & 1 else crc >> 1
        table.append(crc)
    return tuple(table)


_CASTAGNOLI_TABLE = _make_table(0x82F63B78)


def crc32c(data: bytes) -> int:
    """Return the CRC-32C (Castagnoli) checksum of data."""
    crc = 0xFFFFFFFF
    for byte in bytes(data):
        crc = _CASTAGNOLI_TABLE[(crc ^ byte) & 0xFF] ^ (crc >> 8)
    return crc ^ 0xFFFFFFFF


class ChecksumType(enum.IntEnum):
    """Checksum algorithms a datanode may use for block chunks."""

    CRC32 = 1
    CRC32C = 2

    def compute(self, data: bytes) -> int:
        """Return the 32-bit checksum of data under this algorithm."""
        if self is ChecksumType.CRC32:
            return zlib.crc32(data) & 0xFFFFFFFF
        return crc32c(data)