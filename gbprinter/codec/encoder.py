"""
Host-to-printer packet encoder.

Serializes a command, compression flag and payload into the exact wire
byte sequence:

    [0x88 0x33][CMD][COMP][LEN lo][LEN hi][PAYLOAD...][SUM lo][SUM hi]

When compression is requested the payload is RLE-compressed first and
the length field and checksum describe the compressed bytes.
"""

from __future__ import annotations

import logging

from gbprinter.exceptions import PayloadTooLargeError, UnrecognizedCommandError
from gbprinter.models.records import PrintInstruction
from gbprinter.protocol.checksums import calculate_checksum, encode_checksum
from gbprinter.protocol.constants import (
    COMMAND_CODES,
    Command,
    CompressionFlag,
    ProtocolConstants,
)
from gbprinter.protocol.rle import compress

logger = logging.getLogger(__name__)


class PacketEncoder:
    """
    Packet serializer.

    The encoder is stateless and can be shared freely.

    Example:
        >>> encoder = PacketEncoder()
        >>> encoder.encode_inquiry().hex()
        '88330f0000000f00'
    """

    def encode(
        self,
        command: Command | int,
        compressed: bool = False,
        payload: bytes | bytearray | memoryview = b"",
    ) -> bytes:
        """
        Encode one packet.

        Args:
            command: Command code.
            compressed: RLE-compress the payload on the wire.
            payload: Logical payload bytes.

        Returns:
            Complete packet bytes, sync word through checksum.

        Raises:
            UnrecognizedCommandError: If command is not a known command code.
            PayloadTooLargeError: If the payload (or its compressed form)
                does not fit the 16-bit length field.
        """
        if command not in COMMAND_CODES:
            raise UnrecognizedCommandError(int(command))

        payload = bytes(payload)
        limit = ProtocolConstants.MAX_PAYLOAD_LENGTH
        if len(payload) > limit:
            raise PayloadTooLargeError(size=len(payload), limit=limit)

        wire_payload = compress(payload) if compressed else payload
        if len(wire_payload) > limit:
            raise PayloadTooLargeError(
                "Compressed payload too large", size=len(wire_payload), limit=limit
            )

        length = len(wire_payload)
        flag = CompressionFlag.ENABLED if compressed else CompressionFlag.DISABLED
        header = bytes([int(command), flag, length & 0xFF, length >> 8])
        checksum = calculate_checksum(header) + calculate_checksum(wire_payload)

        logger.debug(
            "Encoding %s packet: %d payload bytes, %d on the wire",
            Command(command).name,
            len(payload),
            length,
        )
        return b"".join((
            ProtocolConstants.SYNC_WORD,
            header,
            wire_payload,
            encode_checksum(checksum & ProtocolConstants.CHECKSUM_MASK),
        ))

    def encode_init(self) -> bytes:
        """Encode an Init packet."""
        return self.encode(Command.INIT)

    def encode_print(self, instruction: PrintInstruction) -> bytes:
        """Encode a Print packet carrying the given instruction."""
        return self.encode(Command.PRINT, payload=instruction.to_payload())

    def encode_data(self, data: bytes | bytearray | memoryview = b"", compressed: bool = False) -> bytes:
        """Encode a Data packet. An empty payload marks the end of the data."""
        return self.encode(Command.DATA, compressed=compressed, payload=data)

    def encode_break(self) -> bytes:
        """Encode a Break packet."""
        return self.encode(Command.BREAK)

    def encode_inquiry(self) -> bytes:
        """Encode an Inquiry packet."""
        return self.encode(Command.INQUIRY)


# Module-level convenience instance
DEFAULT_PACKET_ENCODER: PacketEncoder = PacketEncoder()
"""Default PacketEncoder instance for convenience."""


def encode_packet(
    command: Command | int,
    compressed: bool = False,
    payload: bytes | bytearray | memoryview = b"",
) -> bytes:
    """
    Encode a packet using the default encoder.

    Convenience function that uses the module-level PacketEncoder instance.
    """
    return DEFAULT_PACKET_ENCODER.encode(command, compressed, payload)
