"""
16-bit additive checksum calculation and validation.

The link protocol uses a simple additive checksum:
- Sum every header and payload byte as sent on the wire
  (command, compression, length low, length high, payload)
- Keep only the lower 16 bits (modulo 65536)
- Transmit as 2 bytes, little-endian

The sync word is not part of the sum. For compressed packets the sum
covers the compressed wire bytes, not the decompressed data.
"""

from __future__ import annotations

from collections.abc import Iterable

from gbprinter.protocol.constants import ProtocolConstants


def calculate_checksum(data: bytes | bytearray | memoryview | Iterable[int]) -> int:
    """
    Calculate the 16-bit additive checksum over the specified data.

    Args:
        data: Header and payload bytes (excludes sync word and checksum).

    Returns:
        16-bit checksum value (0-65535).

    Example:
        >>> calculate_checksum(b"\\x0f\\x00\\x00\\x00")
        15
    """
    return sum(data) & ProtocolConstants.CHECKSUM_MASK


def encode_checksum(checksum: int) -> bytes:
    """
    Encode a checksum value as 2 little-endian bytes.

    Raises:
        ValueError: If checksum is not in range 0-65535.

    Example:
        >>> encode_checksum(0x0147)
        b'G\\x01'
    """
    if not 0 <= checksum <= ProtocolConstants.CHECKSUM_MASK:
        raise ValueError(f"Checksum must be 0-65535, got {checksum}")
    return bytes([checksum & 0xFF, checksum >> 8])


def decode_checksum(low: int, high: int) -> int:
    """Assemble a checksum from its little-endian wire bytes."""
    return (high << 8) | low


class ChecksumAccumulator:
    """
    Running 16-bit checksum for streaming decode.

    Bytes are added one at a time (or in chunks) as they arrive, and the
    final value is compared against the checksum received on the wire.

    Example:
        >>> acc = ChecksumAccumulator()
        >>> acc.update(b"\\x0f\\x00\\x00\\x00")
        >>> acc.matches(0x000F)
        True
    """

    __slots__ = ("_value",)

    def __init__(self) -> None:
        self._value = 0

    @property
    def value(self) -> int:
        """Current 16-bit sum."""
        return self._value

    def update(self, data: int | bytes | bytearray | memoryview) -> None:
        """
        Add a byte value or a buffer of bytes to the running sum.

        Args:
            data: Single byte value (0-255) or a buffer.
        """
        if isinstance(data, int):
            self._value = (self._value + data) & ProtocolConstants.CHECKSUM_MASK
        else:
            self._value = (self._value + sum(data)) & ProtocolConstants.CHECKSUM_MASK

    def reset(self) -> None:
        """Start a new sum."""
        self._value = 0

    def matches(self, received: int) -> bool:
        """Compare the running sum against a received checksum."""
        return self._value == received

    def __repr__(self) -> str:
        return f"ChecksumAccumulator(0x{self._value:04X})"
