"""Writing block data to a datanode as packets, and reading the acks back."""

from __future__ import annotations

import math
import queue
import struct
import threading
from dataclasses import dataclass
from typing import Protocol

from hdfswire.rpc.checksum import ChecksumType
from hdfswire.rpc.framing import read_prefixed_message
from hdfswire.rpc.packet import PacketHeader, PipelineAck, Status

OUTBOUND_PACKET_SIZE = 65536
OUTBOUND_CHUNK_SIZE = 512
MAX_PACKETS_IN_QUEUE = 5

_PREFIX = struct.Struct(">IH")


class _Connection(Protocol):
    def read(self, size: int = -1) -> bytes: ...

    def write(self, data: bytes) -> object: ...


@dataclass(frozen=True)
class OutboundPacket:
    """A packet sent to the datanode, kept until it is acknowledged."""

    seqno: int
    offset: int
    last: bool
    checksums: bytes
    data: bytes


class AckError(Exception):
    """A datanode in the pipeline reported a failure for a packet."""

    def __init__(self, pipeline_index: int, seqno: int, status: Status | int) -> None:
        super().__init__(pipeline_index, seqno, status)
        self.pipeline_index = pipeline_index
        self.seqno = seqno
        self.status = status

    def __str__(self) -> str:
        name = getattr(self.status, "name", str(self.status))
        return f"Ack error from datanode: {name}"


class InvalidSeqnoError(Exception):
    """An ack arrived for a different packet than expected."""

    def __init__(self) -> None:
        super().__init__("invalid ack sequence number")


class BlockWriteStream:
    """Sends buffered data to a datanode in packets; acks are read in the background."""

    def __init__(self, conn: _Connection, offset: int) -> None:
        self.conn = conn
        self.offset = offset
        self.seqno = 1
        self.buffer = bytearray()
        self.closed = False
        self._packets: queue.Queue[OutboundPacket | None] = queue.Queue(MAX_PACKETS_IN_QUEUE)
        self._ack_error: BaseException | None = None
        self._acks_done = threading.Event()
        self._ack_thread: threading.Thread | None = None

    def write(self, data: bytes) -> int:
        """Buffer data, sending any full packets; returns the number of bytes taken."""
        if self.closed:
            raise ValueError("write to a finished block stream")
        self._raise_ack_error()
        self.buffer += data
        self.flush(False)
        return len(data)

    def finish(self) -> None:
        """Send the rest of the data and the end-of-block packet, then wait for acks."""
        if self.closed:
            return
        self.closed = True
        self._raise_ack_error()
        self.flush(True)

        last = OutboundPacket(self.seqno, self.offset, True, b"", b"")
        self._enqueue(last)
        self.write_packet(last)
        self._packets.put(None)

        self._acks_done.wait()
        self._raise_ack_error()

    def flush(self, force: bool) -> None:
        """Send buffered data as packets: all of it if force, else only full packets."""
        self._raise_ack_error()
        while self.buffer and (force or len(self.buffer) >= OUTBOUND_PACKET_SIZE):
            packet = self.make_packet()
            self._enqueue(packet)
            self.offset += len(packet.data)
            self.seqno += 1
            self.write_packet(packet)

    def make_packet(self) -> OutboundPacket:
        """Take the next packet's worth of data off the buffer and checksum it."""
        length = min(OUTBOUND_PACKET_SIZE, len(self.buffer))

        # Starting from an unaligned offset (as after an append), the datanode
        # requires a small packet that first brings us to a chunk boundary.
        alignment = self.offset % OUTBOUND_CHUNK_SIZE
        if alignment > 0 and length > OUTBOUND_CHUNK_SIZE - alignment:
            length = OUTBOUND_CHUNK_SIZE - alignment

        data = bytes(self.buffer[:length])
        del self.buffer[:length]

        num_chunks = math.ceil(length / OUTBOUND_CHUNK_SIZE)
        checksums = b"".join(
            struct.pack(
                ">I",
                ChecksumType.CRC32.compute(
                    data[i * OUTBOUND_CHUNK_SIZE : (i + 1) * OUTBOUND_CHUNK_SIZE]
                ),
            )
            for i in range(num_chunks)
        )
        return OutboundPacket(self.seqno, self.offset, False, checksums, data)

    def write_packet(self, packet: OutboundPacket) -> None:
        """Write one packet: lengths, header, checksums and data."""
        info = PacketHeader(
            offset_in_block=packet.offset,
            seqno=packet.seqno,
            last_packet_in_block=packet.last,
            data_len=len(packet.data),
        ).SerializeToString()
        # The total length leaves out the header itself.
        total = len(packet.data) + len(packet.checksums) + 4
        self.conn.write(_PREFIX.pack(total, len(info)) + info)
        self.conn.write(packet.checksums)
        self.conn.write(packet.data)

    def _enqueue(self, packet: OutboundPacket) -> None:
        if self._ack_thread is None:
            self._ack_thread = threading.Thread(target=self._ack_packets, daemon=True)
            self._ack_thread.start()
        self._packets.put(packet)

    def _ack_packets(self) -> None:
        try:
            packet = self._packets.get()
            try:
                while packet is not None:
                    ack = read_prefixed_message(self.conn, PipelineAck())
                    for index, status in enumerate(ack.reply):
                        if status != Status.SUCCESS:
                            self._ack_error = AckError(index, ack.seqno, status)
                            break
                    if ack.seqno != packet.seqno:
                        self._ack_error = InvalidSeqnoError()
                        break
                    packet = self._packets.get()
            except Exception as exc:  # any failure to read an ack fails the stream
                self._ack_error = exc

            # Keep taking packets off the queue so the writer never blocks on it.
            while packet is not None:
                packet = self._packets.get()
        finally:
            self._acks_done.set()

    def _raise_ack_error(self) -> None:
        if self._acks_done.is_set() and self._ack_error is not None:
            raise self._ack_error