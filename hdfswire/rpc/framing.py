"""Wire framing shared by namenode RPC and the datanode data transfer protocol.

Messages are any objects with ``SerializeToString()`` and
``ParseFromString(data)`` methods, as protocol buffer messages have.
"""

from __future__ import annotations

import enum
import secrets
import struct
from dataclasses import dataclass
from typing import BinaryIO, Protocol

DATA_TRANSFER_VERSION = 0x1C

_CLIENT_ID_CHARS = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
_MAX_VARINT_LEN64 = 10
_MAX_VARINT_LEN32 = 5
_LENGTH = struct.Struct(">I")


class BlockOp(enum.IntEnum):
    """Operation codes of the data transfer protocol."""

    WRITE_BLOCK = 0x50
    READ_BLOCK = 0x51
    CHECKSUM_BLOCK = 0x55


class Message(Protocol):
    def SerializeToString(self) -> bytes: ...

    def ParseFromString(self, data: bytes) -> object: ...


class MalformedMessageError(ValueError):
    """Raised when framed data cannot be decoded."""


@dataclass(frozen=True)
class DatanodeId:
    """The addressing part of a datanode's identity."""

    host_name: str
    ip_addr: str
    xfer_port: int


def encode_uvarint(value: int) -> bytes:
    """Encode a non-negative integer as an unsigned base-128 varint."""
    if value < 0:
        raise ValueError("varint value must be non-negative")
    out = bytearray()
    while value >= 0x80:
        out.append((value & 0x7F) | 0x80)
        value >>= 7
    out.append(value)
    return bytes(out)


def decode_uvarint(data: bytes) -> tuple[int, int]:
    """Decode a varint at the start of data, returning (value, bytes consumed)."""
    value = 0
    shift = 0
    for index, byte in enumerate(data):
        if index == _MAX_VARINT_LEN64:
            raise MalformedMessageError("varint overflows 64 bits")
        if byte < 0x80:
            if index == _MAX_VARINT_LEN64 - 1 and byte > 1:
                raise MalformedMessageError("varint overflows 64 bits")
            return value | (byte << shift), index + 1
        value |= (byte & 0x7F) << shift
        shift += 7
    raise MalformedMessageError("truncated varint")


def new_client_id() -> bytes:
    """Return a random 16-character alphanumeric client id."""
    return "".join(secrets.choice(_CLIENT_ID_CHARS) for _ in range(16)).encode("ascii")


def _read_exact(stream: BinaryIO, size: int) -> bytes:
    data = bytearray()
    while len(data) < size:
        chunk = stream.read(size - len(data))
        if not chunk:
            raise EOFError(f"expected {size} bytes, got {len(data)}")
        data += chunk
    return bytes(data)


def make_prefixed_message(message: Message) -> bytes:
    """Serialize message, preceded by its length as a varint."""
    body = message.SerializeToString()
    return encode_uvarint(len(body)) + body


def read_prefixed_message(stream: BinaryIO, message: Message) -> Message:
    """Read one varint-length-prefixed message from stream into message."""
    raw = bytearray()
    while True:
        byte = stream.read(1)
        if not byte:
            raise EOFError("stream ended inside a message length")
        raw += byte
        if byte[0] < 0x80:
            break
        if len(raw) >= _MAX_VARINT_LEN32:
            raise MalformedMessageError("message length prefix too long")
    length, _ = decode_uvarint(bytes(raw))
    message.ParseFromString(_read_exact(stream, length))
    return message


def make_rpc_packet(*args: Message) -> bytes:
    """Build an RPC packet: a 4-byte length followed by each message, prefixed."""
    body = b"".join(make_prefixed_message(message) for message in args)
    return _LENGTH.pack(len(body)) + body


def read_rpc_packet(stream: BinaryIO, *args: Message) -> None:
    """Read one RPC packet from stream, filling the given messages in order.

    Messages missing from the end of the packet are left untouched.
    """
    (length,) = _LENGTH.unpack(_read_exact(stream, _LENGTH.size))
    packet = memoryview(_read_exact(stream, length))

    for message in args:
        if not packet:
            return
        msg_length, consumed = decode_uvarint(bytes(packet[:_MAX_VARINT_LEN64]))
        packet = packet[consumed:]
        if msg_length > len(packet):
            raise MalformedMessageError("message length exceeds packet")
        if msg_length:
            message.ParseFromString(bytes(packet[:msg_length]))
            packet = packet[msg_length:]

    if packet:
        raise MalformedMessageError("unexpected trailing bytes in packet")


def write_block_op_request(stream: BinaryIO, op: int, message: Message) -> None:
    """Write a data transfer request: version, op code and prefixed message."""
    header = bytes([0x00, DATA_TRANSFER_VERSION, int(op)])
    stream.write(header + make_prefixed_message(message))


def datanode_address(datanode: DatanodeId, use_hostname: bool) -> str:
    """Return 'host:port' for the datanode's data transfer port."""
    host = datanode.host_name if use_hostname else datanode.ip_addr
    return f"{host}:{datanode.xfer_port}"