"""
Game Boy Printer protocol command codes and constants.

Based on the Game Boy Programming Manual (DMG-06-4216-001-A), section on
the pocket printer link protocol.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Final


class Command(IntEnum):
    """
    Packet command codes sent from the console to the printer.

    General sequence: INIT -> DATA -> INQUIRY -> ... -> DATA -> INQUIRY -> ...
    """

    INIT = 0x01
    """Initialize the printer and clear its image buffer."""

    PRINT = 0x02
    """Print the buffered image (4-byte print instruction payload)."""

    DATA = 0x04
    """Image data, typically one 640-byte band. Empty payload ends the data."""

    BREAK = 0x08
    """Forcibly stop printing."""

    INQUIRY = 0x0F
    """Request the current printer status."""


class CompressionFlag(IntEnum):
    """Compression indicator byte."""

    DISABLED = 0x00
    ENABLED = 0x01


class StatusBit(IntEnum):
    """Bit positions in the printer status byte."""

    LOWBAT = 7
    """Battery too low."""

    ER2 = 6
    """Other error."""

    ER1 = 5
    """Paper jam."""

    ER0 = 4
    """Packet error."""

    UNTRAN = 3
    """Unprocessed data in the buffer."""

    FULL = 2
    """Image data full."""

    BUSY = 1
    """Printer busy."""

    SUM = 0
    """Checksum error."""


class PrintInstructionIndex(IntEnum):
    """Byte offsets within the 4-byte print instruction payload."""

    NUM_OF_SHEETS = 0
    NUM_OF_LINEFEED = 1
    PALETTE_VALUE = 2
    PRINT_DENSITY = 3


class ProtocolConstants:
    """
    Link protocol constants.

    Contains framing bytes, field sizes and default session values.
    """

    # ===== Framing =====

    SYNC_WORD_0: Final[int] = 0x88
    """First sync byte."""

    SYNC_WORD_1: Final[int] = 0x33
    """Second sync byte."""

    SYNC_WORD: Final[bytes] = b"\x88\x33"
    """Sync word as sent on the wire."""

    MAX_PAYLOAD_LENGTH: Final[int] = 0xFFFF
    """Largest value of the 16-bit length field."""

    CHECKSUM_MASK: Final[int] = 0xFFFF
    """Checksums wrap around at 16 bits."""

    # ===== Response =====

    DEVICE_ID: Final[int] = 0x81
    """Pocket printer device ID: MSB always set, device number 1."""

    RESPONSE_SIZE: Final[int] = 2
    """Device ID byte followed by the status byte."""

    HOST_PADDING: Final[bytes] = b"\x00\x00"
    """Bytes the host clocks out while the printer sends its trailer."""

    # ===== Print Instruction =====

    PRINT_INSTRUCTION_SIZE: Final[int] = 4
    """Payload size of a Print packet."""

    DEFAULT_PALETTE: Final[int] = 0xE4
    """Identity palette (3, 2, 1, 0 from the high bits)."""

    DEFAULT_DENSITY: Final[int] = 0x40
    """Default print density."""

    # ===== Image Buffer =====

    BAND_SIZE: Final[int] = 0x280
    """One band of 2 tile rows: 20 tiles x 2 rows x 16 bytes = 640 bytes."""

    BANDS_PER_SHEET: Final[int] = 9
    """A full sheet is 9 bands (160 x 144 pixels)."""

    PRINT_BUFFER_SIZE: Final[int] = 0x2000
    """Printer RAM available for image data (8 KiB)."""

    # ===== RLE =====

    RLE_REPEAT_FLAG: Final[int] = 0x80
    """Tag bit selecting a repeat run."""

    RLE_LENGTH_MASK: Final[int] = 0x7F
    """Tag bits holding the run length."""

    RLE_MAX_LITERAL_RUN: Final[int] = 128
    """Longest literal run (length field + 1)."""

    RLE_MAX_REPEAT_RUN: Final[int] = 129
    """Longest repeat run (length field + 2)."""

    # ===== Session Defaults =====

    DEFAULT_BAUD_RATE: Final[int] = 115200
    """Default baud rate of USB link-cable bridges."""

    DEFAULT_RECEIVE_TIMEOUT: Final[float] = 1.0
    """Default receive timeout in seconds."""

    MAX_RETRIES: Final[int] = 3
    """Maximum retry attempts on timeout."""

    BUSY_INQUIRIES: Final[int] = 4
    """Inquiry packets an emulated printer reports busy after printing."""

    MAX_BUSY_POLLS: Final[int] = 32
    """Inquiry polls a host makes while waiting for printing to finish."""


COMMAND_CODES: Final[frozenset[int]] = frozenset(int(c) for c in Command)
"""All valid command byte values."""

EMPTY_PAYLOAD_COMMANDS: Final[frozenset[Command]] = frozenset({
    Command.INIT,
    Command.BREAK,
    Command.INQUIRY,
})
"""Commands that normally carry no payload."""
