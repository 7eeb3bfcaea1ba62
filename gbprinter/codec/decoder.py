"""
Streaming decoder for host-to-printer packets.

The decoder is a byte-at-a-time state machine. The transport layer owns
buffering and timing; the decoder only ever sees one byte per feed() call
and keeps its state between calls, so a packet may arrive in any number
of pieces.

States:

    WAIT_SYNC_0 -> WAIT_SYNC_1 -> COMMAND -> COMPRESSION -> LENGTH_LOW
    -> LENGTH_HIGH -> PAYLOAD -> CHECKSUM_LOW -> CHECKSUM_HIGH -> (emit)

Outcomes of a feed() call:

1. **NEED_MORE**: the byte was consumed, no packet is complete yet.
2. **PACKET**: the byte completed a packet. A checksum mismatch is
   reported through Packet.checksum_valid, never as an error.
3. **ERROR**: the byte made the current packet unrecoverable
   (unknown command or compression byte, malformed RLE stream, payload
   over the buffer limit). The partial packet is discarded and the
   decoder waits for the next sync word.

Bytes after the checksum (the device ID/status positions of a captured
host trace) are skipped while waiting for the next sync word.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import Enum, auto

from gbprinter.exceptions import (
    MalformedRLEStreamError,
    PayloadTooLargeError,
    ProtocolError,
    UnrecognizedCommandError,
    UnrecognizedCompressionFlagError,
)
from gbprinter.models.records import Packet
from gbprinter.protocol.checksums import ChecksumAccumulator, decode_checksum
from gbprinter.protocol.constants import (
    COMMAND_CODES,
    Command,
    CompressionFlag,
    ProtocolConstants,
)
from gbprinter.protocol.rle import RLEDecompressor

logger = logging.getLogger(__name__)


class DecoderState(Enum):
    """Position of the decoder within a packet."""

    WAIT_SYNC_0 = auto()
    WAIT_SYNC_1 = auto()
    COMMAND = auto()
    COMPRESSION = auto()
    LENGTH_LOW = auto()
    LENGTH_HIGH = auto()
    PAYLOAD = auto()
    CHECKSUM_LOW = auto()
    CHECKSUM_HIGH = auto()


class DecodeResult(Enum):
    """Outcome of feeding one byte to the decoder."""

    NEED_MORE = auto()
    """Byte consumed, packet not complete yet."""

    PACKET = auto()
    """A packet was completed."""

    ERROR = auto()
    """The current packet was abandoned."""


@dataclass(frozen=True)
class DecodeEvent:
    """
    Result of a decoder step.

    Attributes:
        result: What happened.
        packet: The completed packet for PACKET events.
        error: The protocol error for ERROR events. It is reported, not raised.
    """

    result: DecodeResult
    packet: Packet | None = None
    error: ProtocolError | None = None

    @property
    def is_packet(self) -> bool:
        return self.result is DecodeResult.PACKET

    @property
    def is_error(self) -> bool:
        return self.result is DecodeResult.ERROR

    def __repr__(self) -> str:
        if self.packet is not None:
            return f"DecodeEvent({self.packet!r})"
        if self.error is not None:
            return f"DecodeEvent({type(self.error).__name__}: {self.error})"
        return "DecodeEvent(NEED_MORE)"


NEED_MORE: DecodeEvent = DecodeEvent(DecodeResult.NEED_MORE)
"""Shared event returned whenever more input is required."""


class PacketDecoder:
    """
    Stateful host-to-printer packet decoder.

    Each link needs its own decoder; instances share no state.

    Args:
        strict_compression: Reject compression bytes other than 0x00/0x01.
            When False, unknown values are logged and the payload is
            treated as uncompressed.
        max_payload_size: Upper bound on the logical (decompressed) payload.
            None means unbounded.

    Example:
        >>> decoder = PacketDecoder()
        >>> events = decoder.feed_bytes(b"\\x88\\x33\\x0f\\x00\\x00\\x00\\x0f\\x00")
        >>> events[0].packet.command
        <Command.INQUIRY: 15>
    """

    def __init__(
        self,
        *,
        strict_compression: bool = True,
        max_payload_size: int | None = None,
    ) -> None:
        self._strict_compression = strict_compression
        self._max_payload_size = max_payload_size
        self._checksum = ChecksumAccumulator()
        self._payload = bytearray()
        self._decompressor: RLEDecompressor | None = None
        self._state = DecoderState.WAIT_SYNC_0
        self._command = Command.INIT
        self._compressed = False
        self._length = 0
        self._remaining = 0
        self._checksum_low = 0
        self._position = 0
        self._packet_start = 0

    @property
    def state(self) -> DecoderState:
        """Current decoder state."""
        return self._state

    @property
    def bytes_fed(self) -> int:
        """Total number of bytes fed since construction."""
        return self._position

    @property
    def in_packet(self) -> bool:
        """True while a packet is partially decoded."""
        return self._state not in (DecoderState.WAIT_SYNC_0, DecoderState.WAIT_SYNC_1)

    def reset(self) -> None:
        """Discard any partial packet and wait for the next sync word."""
        self._state = DecoderState.WAIT_SYNC_0
        self._checksum.reset()
        self._payload = bytearray()
        self._decompressor = None
        self._compressed = False
        self._length = 0
        self._remaining = 0
        self._checksum_low = 0

    def feed(self, byte: int) -> DecodeEvent:
        """
        Advance the decoder by one byte.

        Args:
            byte: Next byte from the link (0-255).

        Returns:
            DecodeEvent describing the outcome.
        """
        position = self._position
        self._position += 1
        state = self._state

        if state is DecoderState.WAIT_SYNC_0:
            if byte == ProtocolConstants.SYNC_WORD_0:
                self._state = DecoderState.WAIT_SYNC_1
            return NEED_MORE

        if state is DecoderState.WAIT_SYNC_1:
            if byte == ProtocolConstants.SYNC_WORD_1:
                self._begin_packet(position - 1)
            elif byte != ProtocolConstants.SYNC_WORD_0:
                self._state = DecoderState.WAIT_SYNC_0
            return NEED_MORE

        if state is DecoderState.COMMAND:
            if byte not in COMMAND_CODES:
                return self._fail(UnrecognizedCommandError(byte, position=position))
            self._command = Command(byte)
            self._checksum.update(byte)
            self._state = DecoderState.COMPRESSION
            return NEED_MORE

        if state is DecoderState.COMPRESSION:
            if byte == CompressionFlag.ENABLED:
                self._compressed = True
            elif byte != CompressionFlag.DISABLED:
                if self._strict_compression:
                    return self._fail(UnrecognizedCompressionFlagError(byte, position=position))
                logger.warning(
                    "Unknown compression flag 0x%02X at %d, treating payload as uncompressed",
                    byte,
                    position,
                )
            self._checksum.update(byte)
            self._state = DecoderState.LENGTH_LOW
            return NEED_MORE

        if state is DecoderState.LENGTH_LOW:
            self._length = byte
            self._checksum.update(byte)
            self._state = DecoderState.LENGTH_HIGH
            return NEED_MORE

        if state is DecoderState.LENGTH_HIGH:
            self._length |= byte << 8
            self._remaining = self._length
            self._checksum.update(byte)
            if self._compressed:
                self._decompressor = RLEDecompressor(self._length)
            self._state = DecoderState.PAYLOAD if self._length else DecoderState.CHECKSUM_LOW
            return NEED_MORE

        if state is DecoderState.PAYLOAD:
            return self._feed_payload(byte, position)

        if state is DecoderState.CHECKSUM_LOW:
            self._checksum_low = byte
            self._state = DecoderState.CHECKSUM_HIGH
            return NEED_MORE

        return self._finish_packet(decode_checksum(self._checksum_low, byte))

    def feed_bytes(self, data: bytes | bytearray | memoryview | Iterable[int]) -> list[DecodeEvent]:
        """
        Feed a buffer and collect the PACKET and ERROR events it produces.

        Partial packets at the end of the buffer stay in the decoder.
        """
        return list(self.iter_events(data))

    def iter_events(self, data: bytes | bytearray | memoryview | Iterable[int]) -> Iterator[DecodeEvent]:
        """Lazily feed a buffer, yielding PACKET and ERROR events."""
        for byte in data:
            event = self.feed(byte)
            if event is not NEED_MORE:
                yield event

    def _begin_packet(self, start: int) -> None:
        self.reset()
        self._packet_start = start
        self._state = DecoderState.COMMAND

    def _feed_payload(self, byte: int, position: int) -> DecodeEvent:
        self._checksum.update(byte)
        self._remaining -= 1

        if self._decompressor is not None:
            try:
                self._payload += self._decompressor.feed(byte)
            except MalformedRLEStreamError as e:
                e.position = position
                return self._fail(e)
        else:
            self._payload.append(byte)

        if self._max_payload_size is not None and len(self._payload) > self._max_payload_size:
            return self._fail(PayloadTooLargeError(
                "Payload exceeds buffer limit",
                size=len(self._payload),
                limit=self._max_payload_size,
                position=position,
            ))

        if self._remaining == 0:
            self._state = DecoderState.CHECKSUM_LOW
        return NEED_MORE

    def _finish_packet(self, received: int) -> DecodeEvent:
        calculated = self._checksum.value
        packet = Packet(
            command=self._command,
            compressed=self._compressed,
            payload=bytes(self._payload),
            checksum_valid=self._checksum.matches(received),
            wire_length=self._length,
            received_checksum=received,
            calculated_checksum=calculated,
        )
        if not packet.checksum_valid:
            logger.warning(
                "Checksum mismatch in %s packet at %d: expected 0x%04X, got 0x%04X",
                packet.command.name,
                self._packet_start,
                calculated,
                received,
            )
        if not packet.has_expected_length:
            logger.warning(
                "Unexpected payload length %d for %s packet at %d",
                len(packet.payload),
                packet.command.name,
                self._packet_start,
            )
        logger.debug("Decoded %r", packet)
        self.reset()
        return DecodeEvent(DecodeResult.PACKET, packet=packet)

    def _fail(self, error: ProtocolError) -> DecodeEvent:
        logger.warning("Dropping packet at %d: %s", self._packet_start, error)
        self.reset()
        return DecodeEvent(DecodeResult.ERROR, error=error)

    def __repr__(self) -> str:
        return f"PacketDecoder(state={self._state.name}, bytes_fed={self._position})"


def decode_packets(data: bytes | bytearray | memoryview | Iterable[int], **options: object) -> list[Packet]:
    """
    Decode every complete packet in a buffer with a fresh decoder.

    Decode errors are skipped; use PacketDecoder.feed_bytes() to see them.

    Args:
        data: Captured host-to-printer bytes.
        **options: Keyword options for PacketDecoder.

    Returns:
        Decoded packets in stream order.
    """
    decoder = PacketDecoder(**options)  # type: ignore[arg-type]
    return [event.packet for event in decoder.iter_events(data) if event.packet is not None]
