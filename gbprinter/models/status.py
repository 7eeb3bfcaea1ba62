"""
Printer status byte model.

The printer reports its condition as a single byte of eight independent
flags. StatusBitfield is the structured form of that byte; to_byte() and
from_byte() convert losslessly in both directions, and every byte value
is a valid status.

    | Bit | Name   | Field             |
    |-----|--------|-------------------|
    |  7  | LOWBAT | low_battery       |
    |  6  | ER2    | other_error       |
    |  5  | ER1    | paper_jam         |
    |  4  | ER0    | packet_error      |
    |  3  | UNTRAN | unprocessed_data  |
    |  2  | FULL   | print_buffer_full |
    |  1  | BUSY   | printer_busy      |
    |  0  | SUM    | checksum_error    |
"""

from __future__ import annotations

from typing import Final

from pydantic import BaseModel, ConfigDict

from gbprinter.protocol.constants import StatusBit

STATUS_FIELD_BITS: Final[dict[str, StatusBit]] = {
    "low_battery": StatusBit.LOWBAT,
    "other_error": StatusBit.ER2,
    "paper_jam": StatusBit.ER1,
    "packet_error": StatusBit.ER0,
    "unprocessed_data": StatusBit.UNTRAN,
    "print_buffer_full": StatusBit.FULL,
    "printer_busy": StatusBit.BUSY,
    "checksum_error": StatusBit.SUM,
}
"""Field name to bit position, most significant bit first."""

_ERROR_FIELDS: Final[frozenset[str]] = frozenset({
    "low_battery",
    "other_error",
    "paper_jam",
    "packet_error",
})


class StatusBitfield(BaseModel):
    """
    Printer status flags.

    Immutable; use with_flags() to derive an updated status.

    Example:
        >>> status = StatusBitfield(printer_busy=True, unprocessed_data=True)
        >>> hex(status.to_byte())
        '0xa'
        >>> StatusBitfield.from_byte(0x0A) == status
        True
    """

    model_config = ConfigDict(frozen=True)

    low_battery: bool = False
    other_error: bool = False
    paper_jam: bool = False
    packet_error: bool = False
    unprocessed_data: bool = False
    print_buffer_full: bool = False
    printer_busy: bool = False
    checksum_error: bool = False

    def to_byte(self) -> int:
        """
        Pack the flags into the wire status byte.

        Returns:
            Status byte (0-255).
        """
        value = 0
        for name, bit in STATUS_FIELD_BITS.items():
            if getattr(self, name):
                value |= 1 << bit
        return value

    @classmethod
    def from_byte(cls, value: int) -> StatusBitfield:
        """
        Unpack a wire status byte.

        Args:
            value: Status byte (0-255).

        Returns:
            StatusBitfield with one flag per bit.

        Raises:
            ValueError: If value is not in range 0-255.
        """
        if not 0 <= value <= 0xFF:
            raise ValueError(f"Status byte must be 0-255, got {value}")
        return cls(**{name: bool((value >> bit) & 1) for name, bit in STATUS_FIELD_BITS.items()})

    def with_flags(self, **flags: bool) -> StatusBitfield:
        """
        Return a copy with the given flags replaced.

        Raises:
            ValueError: If a flag name is unknown.
        """
        unknown = set(flags) - STATUS_FIELD_BITS.keys()
        if unknown:
            raise ValueError(f"Unknown status flags: {', '.join(sorted(unknown))}")
        return self.model_copy(update={name: bool(flag) for name, flag in flags.items()})

    @property
    def active_flags(self) -> tuple[str, ...]:
        """Names of the flags that are set, most significant bit first."""
        return tuple(name for name in STATUS_FIELD_BITS if getattr(self, name))

    @property
    def is_error(self) -> bool:
        """True if the printer reports a condition that stops printing."""
        return any(getattr(self, name) for name in _ERROR_FIELDS)

    def __repr__(self) -> str:
        flags = ", ".join(self.active_flags)
        if flags:
            return f"StatusBitfield(0x{self.to_byte():02X}: {flags})"
        return "StatusBitfield(0x00)"
