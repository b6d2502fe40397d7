"""Reading the packet stream of a single block from a single datanode."""

from __future__ import annotations

import math
import struct
from typing import BinaryIO

from hdfswire.rpc.checksum import ChecksumType
from hdfswire.rpc.packet import PacketHeader

_CHECKSUM_SIZE = 4
_PREFIX = struct.Struct(">IH")


class InvalidChecksumError(ValueError):
    """Raised when a chunk of block data does not match its checksum."""

    def __init__(self) -> None:
        super().__init__("invalid checksum")


def _read_exact(reader: BinaryIO, size: int) -> bytes:
    data = bytearray()
    while len(data) < size:
        chunk = reader.read(size - len(data))
        if not chunk:
            raise EOFError(f"expected {size} bytes, got {len(data)}")
        data += chunk
    return bytes(data)


class BlockReadStream:
    """Reads and verifies the data packets of one block."""

    def __init__(self, reader: BinaryIO, chunk_size: int, checksum_type: ChecksumType) -> None:
        if chunk_size < 1:
            raise ValueError("chunk size must be positive")
        self._reader = reader
        self._chunk_size = chunk_size
        self._checksum_type = ChecksumType(checksum_type)
        self._checksums = b""
        self._pending = b""
        self._packet_length = 0
        self._chunk_index = 0
        self._num_chunks = 0
        self._last_packet = False

    def read(self, size: int) -> bytes:
        """Return up to size verified bytes; an empty result means end of block."""
        if size < 1:
            raise ValueError("read size must be positive")

        # A chunk buffered by an earlier small read is drained first, so that
        # the stream is back on a chunk boundary.
        if self._pending:
            out, self._pending = self._pending[:size], self._pending[size:]
            return out

        while self._chunk_index == self._num_chunks:
            if self._last_packet:
                return b""
            self._start_packet()

        remaining = self._packet_length - self._chunk_index * self._chunk_size

        if size < self._chunk_size:
            chunk = _read_exact(self._reader, min(self._chunk_size, remaining))
            self._validate(chunk)
            self._chunk_index += 1
            out, self._pending = chunk[:size], chunk[size:]
            return out

        # Larger reads are aligned to chunk boundaries.
        if size > remaining:
            chunks_to_read = self._num_chunks - self._chunk_index
            amount = remaining
        else:
            chunks_to_read = size // self._chunk_size
            amount = chunks_to_read * self._chunk_size

        data = _read_exact(self._reader, amount)
        for index in range(chunks_to_read):
            start = index * self._chunk_size
            self._validate(data[start : start + self._chunk_size])
            self._chunk_index += 1
        return data

    def _validate(self, chunk: bytes) -> None:
        offset = _CHECKSUM_SIZE * self._chunk_index
        (expected,) = struct.unpack(">I", self._checksums[offset : offset + _CHECKSUM_SIZE])
        if self._checksum_type.compute(chunk) != expected:
            raise InvalidChecksumError()

    def _start_packet(self) -> None:
        header = self._read_packet_header()
        data_length = header.data_len
        num_chunks = math.ceil(data_length / self._chunk_size)
        self._checksums = _read_exact(self._reader, num_chunks * _CHECKSUM_SIZE)
        self._packet_length = data_length
        self._num_chunks = num_chunks
        self._chunk_index = 0
        self._last_packet = header.last_packet_in_block

    def _read_packet_header(self) -> PacketHeader:
        # The leading total length is not needed.
        _, header_length = _PREFIX.unpack(_read_exact(self._reader, _PREFIX.size))
        header = PacketHeader()
        header.ParseFromString(_read_exact(self._reader, header_length))
        return header