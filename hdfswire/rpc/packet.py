"""Data transfer packet header and pipeline acknowledgement messages."""

from __future__ import annotations

import enum
import struct
from collections.abc import Iterator
from dataclasses import dataclass, field

from hdfswire.rpc.framing import MalformedMessageError, decode_uvarint, encode_uvarint

_VARINT = 0
_FIXED64 = 1
_LENGTH_DELIMITED = 2
_FIXED32 = 5

_UINT64_MASK = 0xFFFFFFFFFFFFFFFF


class Status(enum.IntEnum):
    """Status codes a datanode reports for an operation or a packet."""

    SUCCESS = 0
    ERROR = 1
    ERROR_CHECKSUM = 2
    ERROR_INVALID = 3
    ERROR_EXISTS = 4
    ERROR_ACCESS_TOKEN = 5
    CHECKSUM_OK = 6
    ERROR_UNSUPPORTED = 7
    OOB_RESTART = 8
    OOB_RESERVED1 = 9
    OOB_RESERVED2 = 10
    OOB_RESERVED3 = 11
    IN_PROGRESS = 12


def _status(value: int) -> Status | int:
    try:
        return Status(value)
    except ValueError:
        return value


def _key(field_number: int, wire_type: int) -> bytes:
    return encode_uvarint((field_number << 3) | wire_type)


def _zigzag_encode(value: int) -> int:
    return ((value << 1) ^ (value >> 63)) & _UINT64_MASK


def _zigzag_decode(value: int) -> int:
    return (value >> 1) ^ -(value & 1)


def _take(data: bytes, pos: int, size: int) -> bytes:
    if pos + size > len(data):
        raise MalformedMessageError("truncated message field")
    return data[pos : pos + size]


def _iter_fields(data: bytes) -> Iterator[tuple[int, int, object]]:
    pos = 0
    while pos < len(data):
        key, consumed = decode_uvarint(data[pos : pos + 10])
        pos += consumed
        field_number, wire_type = key >> 3, key & 7
        if field_number == 0:
            raise MalformedMessageError("invalid field number 0")
        value: object
        if wire_type == _VARINT:
            value, consumed = decode_uvarint(data[pos : pos + 10])
            pos += consumed
        elif wire_type == _FIXED64:
            value = _take(data, pos, 8)
            pos += 8
        elif wire_type == _FIXED32:
            value = _take(data, pos, 4)
            pos += 4
        elif wire_type == _LENGTH_DELIMITED:
            length, consumed = decode_uvarint(data[pos : pos + 10])
            pos += consumed
            value = _take(data, pos, length)
            pos += length
        else:
            raise MalformedMessageError(f"unsupported wire type {wire_type}")
        yield field_number, wire_type, value


def _expect(wire_type: int, expected: int, name: str) -> None:
    if wire_type != expected:
        raise MalformedMessageError(f"field {name} has wire type {wire_type}")


def _packed_varints(data: bytes) -> Iterator[int]:
    pos = 0
    while pos < len(data):
        value, consumed = decode_uvarint(data[pos : pos + 10])
        pos += consumed
        yield value


@dataclass
class PacketHeader:
    """Header preceding each packet of block data."""

    offset_in_block: int = 0
    seqno: int = 0
    last_packet_in_block: bool = False
    data_len: int = 0
    sync_block: bool = False

    def SerializeToString(self) -> bytes:
        """Encode the header in protocol buffer wire format."""
        parts = [
            _key(1, _FIXED64) + struct.pack("<q", self.offset_in_block),
            _key(2, _FIXED64) + struct.pack("<q", self.seqno),
            _key(3, _VARINT) + encode_uvarint(int(self.last_packet_in_block)),
            _key(4, _FIXED32) + struct.pack("<i", self.data_len),
        ]
        if self.sync_block:
            parts.append(_key(5, _VARINT) + encode_uvarint(1))
        return b"".join(parts)

    def ParseFromString(self, data: bytes) -> int:
        """Replace this header's contents with those decoded from data."""
        data = bytes(data)
        self.offset_in_block = 0
        self.seqno = 0
        self.last_packet_in_block = False
        self.data_len = 0
        self.sync_block = False
        for number, wire_type, value in _iter_fields(data):
            if number == 1:
                _expect(wire_type, _FIXED64, "offsetInBlock")
                (self.offset_in_block,) = struct.unpack("<q", value)
            elif number == 2:
                _expect(wire_type, _FIXED64, "seqno")
                (self.seqno,) = struct.unpack("<q", value)
            elif number == 3:
                _expect(wire_type, _VARINT, "lastPacketInBlock")
                self.last_packet_in_block = bool(value)
            elif number == 4:
                _expect(wire_type, _FIXED32, "dataLen")
                (self.data_len,) = struct.unpack("<i", value)
            elif number == 5:
                _expect(wire_type, _VARINT, "syncBlock")
                self.sync_block = bool(value)
        return len(data)


@dataclass
class PipelineAck:
    """Acknowledgement of one packet from every datanode in the pipeline."""

    seqno: int = 0
    reply: list[Status | int] = field(default_factory=list)
    downstream_ack_time_nanos: int = 0
    flag: list[int] = field(default_factory=list)

    def SerializeToString(self) -> bytes:
        """Encode the acknowledgement in protocol buffer wire format."""
        parts = [_key(1, _VARINT) + encode_uvarint(_zigzag_encode(self.seqno))]
        parts.extend(_key(2, _VARINT) + encode_uvarint(int(status)) for status in self.reply)
        if self.downstream_ack_time_nanos:
            parts.append(_key(3, _VARINT) + encode_uvarint(self.downstream_ack_time_nanos))
        if self.flag:
            packed = b"".join(encode_uvarint(value) for value in self.flag)
            parts.append(_key(4, _LENGTH_DELIMITED) + encode_uvarint(len(packed)) + packed)
        return b"".join(parts)

    def ParseFromString(self, data: bytes) -> int:
        """Replace this acknowledgement's contents with those decoded from data."""
        data = bytes(data)
        self.seqno = 0
        self.reply = []
        self.downstream_ack_time_nanos = 0
        self.flag = []
        for number, wire_type, value in _iter_fields(data):
            if number == 1:
                _expect(wire_type, _VARINT, "seqno")
                self.seqno = _zigzag_decode(value)
            elif number == 2:
                if wire_type == _LENGTH_DELIMITED:
                    self.reply.extend(_status(v) for v in _packed_varints(value))
                else:
                    _expect(wire_type, _VARINT, "reply")
                    self.reply.append(_status(value))
            elif number == 3:
                _expect(wire_type, _VARINT, "downstreamAckTimeNanos")
                self.downstream_ack_time_nanos = value
            elif number == 4:
                if wire_type == _LENGTH_DELIMITED:
                    self.flag.extend(_packed_varints(value))
                else:
                    _expect(wire_type, _VARINT, "flag")
                    self.flag.append(value)
        return len(data)