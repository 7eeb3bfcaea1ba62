"""
Abstract transport interface for the printer link.

Transports carry whole bytes between a host and a printer (or an
emulator of either). Bit-level clocking of the link cable is the job of
the bridge hardware and is not modelled here.

The transport layer is responsible for:
- Opening/closing the physical connection
- Reading and writing raw bytes
- Timeout handling
- Buffer management

Implementations:
- AsyncSerialTransport: pyserial-asyncio based serial port
- MockTransport: in-memory transport for tests
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from types import TracebackType


class AbstractTransport(ABC):
    """
    Abstract base class for link transports.

    Transports support the async context manager protocol for safe
    resource management:

        async with AsyncSerialTransport("/dev/ttyACM0") as transport:
            await transport.write(packet)
            trailer = await transport.read(2)

    Attributes:
        is_open: Whether the transport connection is currently open.
        port_name: Identifier for the transport (e.g., serial port name).
    """

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """
        Check if the transport connection is currently open.

        Returns:
            True if connected and ready for I/O, False otherwise.
        """
        ...

    @property
    @abstractmethod
    def port_name(self) -> str:
        """
        Get the transport identifier.

        Returns:
            Port name or identifier string (e.g., "/dev/ttyACM0", "COM3").
        """
        ...

    @abstractmethod
    async def open(self) -> None:
        """
        Open the transport connection.

        Raises:
            TransportError: If the connection cannot be established.
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """
        Close the transport connection.

        Safe to call multiple times (idempotent). After closing, the
        transport can be reopened with open().
        """
        ...

    @abstractmethod
    async def write(self, data: bytes) -> None:
        """
        Write data to the transport.

        Args:
            data: Bytes to send.

        Raises:
            TransportError: If the transport is not open or write fails.
        """
        ...

    @abstractmethod
    async def read(self, size: int, timeout: float | None = None) -> bytes:
        """
        Read an exact number of bytes from the transport.

        Args:
            size: Number of bytes to read.
            timeout: Read timeout in seconds. None uses transport default.

        Returns:
            Exactly `size` bytes.

        Raises:
            TimeoutError: If timeout expires before all bytes are received.
            TransportError: If the transport is not open or read fails.
        """
        ...

    @abstractmethod
    async def read_byte(self, timeout: float | None = None) -> int:
        """
        Read a single byte from the transport.

        Args:
            timeout: Read timeout in seconds. None uses transport default.

        Returns:
            Single byte value (0-255).

        Raises:
            TimeoutError: If timeout expires.
            TransportError: If the transport is not open or read fails.
        """
        ...

    @abstractmethod
    def discard_buffers(self) -> None:
        """
        Discard any pending data in input and output buffers.

        Useful for resynchronizing after errors.
        """
        ...

    async def __aenter__(self) -> AbstractTransport:
        """Async context manager entry - opens the transport."""
        await self.open()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Async context manager exit - closes the transport."""
        await self.close()
