"""
Pydantic models for decoded link protocol records.

Design principles:
- All models are frozen (immutable)
- Field constraints mirror the wire format
- Diagnostics (received/calculated checksum) travel with the packet
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from gbprinter.protocol.constants import (
    EMPTY_PAYLOAD_COMMANDS,
    Command,
    PrintInstructionIndex,
    ProtocolConstants,
)


class PrintInstruction(BaseModel):
    """
    The 4-byte payload of a Print packet.

    Byte layout:
        0: number of sheets (0 means line feed only)
        1: line feeds, high nibble before printing, low nibble after
        2: palette (2 bits per shade, starting from the high bits)
        3: print density

    The manual lists density values 0x00-0x7F, but games also send 0x80
    and above, so the full byte range is accepted.

    Example:
        >>> instruction = PrintInstruction.from_payload(b"\\x01\\x13\\xe4\\x40")
        >>> instruction.linefeed_before, instruction.linefeed_after
        (1, 3)
    """

    model_config = ConfigDict(frozen=True)

    sheets: int = Field(default=1, ge=0, le=0xFF)
    linefeed_before: int = Field(default=0, ge=0, le=0x0F)
    linefeed_after: int = Field(default=0, ge=0, le=0x0F)
    palette: int = Field(default=ProtocolConstants.DEFAULT_PALETTE, ge=0, le=0xFF)
    density: int = Field(default=ProtocolConstants.DEFAULT_DENSITY, ge=0, le=0xFF)

    @classmethod
    def from_payload(cls, payload: bytes | bytearray) -> PrintInstruction:
        """
        Parse a Print packet payload.

        Raises:
            ValueError: If payload is not exactly 4 bytes.
        """
        if len(payload) != ProtocolConstants.PRINT_INSTRUCTION_SIZE:
            raise ValueError(
                f"Print instruction must be {ProtocolConstants.PRINT_INSTRUCTION_SIZE} bytes, "
                f"got {len(payload)}"
            )
        linefeed = payload[PrintInstructionIndex.NUM_OF_LINEFEED]
        return cls(
            sheets=payload[PrintInstructionIndex.NUM_OF_SHEETS],
            linefeed_before=linefeed >> 4,
            linefeed_after=linefeed & 0x0F,
            palette=payload[PrintInstructionIndex.PALETTE_VALUE],
            density=payload[PrintInstructionIndex.PRINT_DENSITY],
        )

    def to_payload(self) -> bytes:
        """Serialize to the 4-byte Print packet payload."""
        return bytes([
            self.sheets,
            (self.linefeed_before << 4) | self.linefeed_after,
            self.palette,
            self.density,
        ])

    @property
    def is_linefeed_only(self) -> bool:
        """True if no sheet is printed, only paper fed."""
        return self.sheets == 0


class Packet(BaseModel):
    """
    One decoded host-to-printer packet.

    payload holds the logical bytes: for compressed packets this is the
    decompressed data, while wire_length is the size declared on the wire.

    A checksum mismatch does not prevent a packet from being produced;
    checksum_valid reports it instead.

    Example:
        >>> packet = Packet(command=Command.INQUIRY)
        >>> packet.has_expected_length
        True
    """

    model_config = ConfigDict(frozen=True)

    command: Command
    compressed: bool = False
    payload: bytes = b""
    checksum_valid: bool = True
    wire_length: int = Field(default=0, ge=0, le=ProtocolConstants.MAX_PAYLOAD_LENGTH)
    received_checksum: int | None = Field(default=None, ge=0, le=ProtocolConstants.CHECKSUM_MASK)
    calculated_checksum: int | None = Field(default=None, ge=0, le=ProtocolConstants.CHECKSUM_MASK)

    @property
    def has_expected_length(self) -> bool:
        """
        Check the payload length against what the command expects.

        Print carries exactly 4 bytes; Init, Break and Inquiry carry none.
        Data may carry any amount.
        """
        if self.command == Command.PRINT:
            return len(self.payload) == ProtocolConstants.PRINT_INSTRUCTION_SIZE
        if self.command in EMPTY_PAYLOAD_COMMANDS:
            return not self.payload
        return True

    @property
    def print_instruction(self) -> PrintInstruction | None:
        """Parsed print instruction for well-formed Print packets, else None."""
        if self.command != Command.PRINT or not self.has_expected_length:
            return None
        return PrintInstruction.from_payload(self.payload)

    @property
    def is_end_of_data(self) -> bool:
        """An empty Data packet marks the end of the image data."""
        return self.command == Command.DATA and not self.payload

    def __repr__(self) -> str:
        flags = []
        if self.compressed:
            flags.append("compressed")
        if not self.checksum_valid:
            flags.append("bad checksum")
        suffix = f", {', '.join(flags)}" if flags else ""
        return f"Packet({self.command.name}, payload={len(self.payload)} bytes{suffix})"


class PrintJob(BaseModel):
    """
    Image data handed to the printing consumer by the emulator.

    image_data is the buffered 2bpp tile data in the order it was received.
    """

    model_config = ConfigDict(frozen=True)

    image_data: bytes
    instruction: PrintInstruction

    @property
    def band_count(self) -> int:
        """Number of complete 640-byte bands."""
        return len(self.image_data) // ProtocolConstants.BAND_SIZE

    @property
    def tile_count(self) -> int:
        """Number of complete 16-byte tiles."""
        return len(self.image_data) // 16
