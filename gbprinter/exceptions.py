"""
Exception hierarchy for gbprinter.

All exceptions inherit from GBPrinterError, providing a clean hierarchy
for error handling. The design follows these principles:

1. Protocol errors (framing, RLE, checksum) are distinct from transport errors
2. Decode errors carry the offending value and stream position for debugging
3. The packet decoder reports errors as values; encoders and parsers raise them
4. All exceptions provide meaningful error messages
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gbprinter.models.status import StatusBitfield


class GBPrinterError(Exception):
    """
    Base exception for all gbprinter errors.

    All library-specific exceptions inherit from this class, allowing
    callers to catch all gbprinter errors with a single except clause.
    """

    pass


class ProtocolError(GBPrinterError):
    """
    Protocol-level error.

    Raised (or reported by the decoder) when the link protocol is violated:
    - Unknown command or compression byte
    - Malformed compressed payload
    - Payload that does not fit the length field
    """

    def __init__(
        self,
        message: str,
        *,
        value: int | None = None,
        position: int | None = None,
    ) -> None:
        super().__init__(message)
        self.value = value
        self.position = position

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.value is not None:
            parts.append(f"value=0x{self.value:02X}")
        if self.position is not None:
            parts.append(f"position={self.position}")
        return " ".join(parts) if len(parts) > 1 else parts[0]


class UnrecognizedCommandError(ProtocolError):
    """Command byte is not one of Init, Print, Data, Break or Inquiry."""

    def __init__(
        self,
        value: int,
        *,
        position: int | None = None,
    ) -> None:
        super().__init__("Unrecognized command byte", value=value, position=position)


class UnrecognizedCompressionFlagError(ProtocolError):
    """Compression byte is neither 0x00 nor 0x01."""

    def __init__(
        self,
        value: int,
        *,
        position: int | None = None,
    ) -> None:
        super().__init__("Unrecognized compression flag", value=value, position=position)


class MalformedRLEStreamError(ProtocolError):
    """
    Compressed payload is inconsistent with its declared wire length.

    Raised when a run tag claims more bytes than remain in the length
    budget, or when a stream ends in the middle of a run.
    """

    pass


class PayloadTooLargeError(ProtocolError):
    """
    Payload does not fit the 16-bit length field or the decoder buffer policy.
    """

    def __init__(
        self,
        message: str = "Payload too large",
        *,
        size: int | None = None,
        limit: int | None = None,
        position: int | None = None,
    ) -> None:
        super().__init__(message, position=position)
        self.size = size
        self.limit = limit

    def __str__(self) -> str:
        base = super().__str__()
        if self.size is not None and self.limit is not None:
            return f"{base} ({self.size} bytes, limit {self.limit})"
        return base


class ChecksumError(ProtocolError):
    """
    Checksum validation failure.

    The decoder never raises this: a mismatch is reported through
    Packet.checksum_valid. It is available to callers that want to turn
    a flagged packet into an exception.
    """

    def __init__(
        self,
        message: str = "Checksum validation failed",
        *,
        expected: int | None = None,
        received: int | None = None,
    ) -> None:
        super().__init__(message)
        self.expected = expected
        self.received = received

    def __str__(self) -> str:
        base = super().__str__()
        if self.expected is not None and self.received is not None:
            return f"{base} (expected 0x{self.expected:04X}, got 0x{self.received:04X})"
        return base


class FrameError(ProtocolError):
    """
    Response framing error.

    Raised when a response trailer has the wrong size.
    """

    pass


class DeviceIdMismatchError(FrameError):
    """The device ID byte in a response trailer is not the printer's ID."""

    def __init__(self, value: int, expected: int) -> None:
        super().__init__("Unexpected device ID", value=value)
        self.expected = expected

    def __str__(self) -> str:
        return f"{super().__str__()} (expected 0x{self.expected:02X})"


class PrinterStatusError(GBPrinterError):
    """
    Printer reported an error condition in its status byte.

    The status attribute holds the StatusBitfield that was received.
    """

    def __init__(self, status: StatusBitfield, message: str | None = None) -> None:
        self.status = status
        flags = ", ".join(status.active_flags) or "unknown"
        super().__init__(message or f"Printer reported error: {flags}")


class TimeoutError(GBPrinterError):  # noqa: A001 - intentionally shadows builtin
    """
    Communication timeout.

    Raised when a response is not received within the expected time.
    """

    def __init__(
        self,
        message: str = "Communication timeout",
        *,
        timeout_seconds: float | None = None,
    ) -> None:
        super().__init__(message)
        self.timeout_seconds = timeout_seconds

    def __str__(self) -> str:
        base = super().__str__()
        if self.timeout_seconds is not None:
            return f"{base} (after {self.timeout_seconds:.1f}s)"
        return base


class TransportError(GBPrinterError):
    """
    Transport-level error.

    Raised for low-level transport issues:
    - Serial port errors
    - I/O errors
    - Transport used while closed
    """

    pass
