"""
Transport layer for the printer link.

Available transports:
- AsyncSerialTransport: Async serial port using pyserial-asyncio
- MockTransport: Mock transport for testing without hardware

Example:
    >>> from gbprinter.transport import AsyncSerialTransport
    >>> async with AsyncSerialTransport("/dev/ttyACM0") as transport:
    ...     await transport.write(packet)
    ...     trailer = await transport.read(2)

Testing Example:
    >>> from gbprinter.transport import MockTransport
    >>> mock = MockTransport()
    >>> mock.add_response(b"\\x81\\x00")  # device ID, idle status
"""

from gbprinter.transport.abc import AbstractTransport
from gbprinter.transport.mock import MockTransport, ScriptedMockTransport
from gbprinter.transport.serial_async import AsyncSerialTransport

__all__ = [
    "AbstractTransport",
    "AsyncSerialTransport",
    "MockTransport",
    "ScriptedMockTransport",
]
