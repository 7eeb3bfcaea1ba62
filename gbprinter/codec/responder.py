"""
Printer response trailer.

After the checksum of every packet the host clocks out two more bytes,
during which the printer answers with its device ID and status byte:

    [0x81][STATUS]
"""

from __future__ import annotations

from gbprinter.exceptions import DeviceIdMismatchError, FrameError
from gbprinter.models.status import StatusBitfield
from gbprinter.protocol.constants import ProtocolConstants


def response_trailer(status: StatusBitfield) -> bytes:
    """
    Build the printer's response to a packet.

    Args:
        status: Current printer status.

    Returns:
        Device ID byte followed by the status byte.

    Example:
        >>> response_trailer(StatusBitfield(printer_busy=True))
        b'\\x81\\x02'
    """
    return bytes((ProtocolConstants.DEVICE_ID, status.to_byte()))


def parse_response_trailer(data: bytes | bytearray | memoryview) -> StatusBitfield:
    """
    Parse the printer's response as seen by the host.

    Args:
        data: The 2 bytes received after a packet.

    Returns:
        The reported printer status.

    Raises:
        FrameError: If data is not exactly 2 bytes.
        DeviceIdMismatchError: If the first byte is not the printer's ID.
    """
    if len(data) != ProtocolConstants.RESPONSE_SIZE:
        raise FrameError(
            f"Response trailer must be {ProtocolConstants.RESPONSE_SIZE} bytes, got {len(data)}"
        )
    if data[0] != ProtocolConstants.DEVICE_ID:
        raise DeviceIdMismatchError(data[0], ProtocolConstants.DEVICE_ID)
    return StatusBitfield.from_byte(data[1])
