"""
Printer host client.

This module plays the console's side of the link: it encodes packets,
sends them with the two padding bytes during which the printer answers,
and parses the device ID and status trailer that comes back.

Print sequence used by print_image():
    INIT -> DATA (640-byte bands) ... -> DATA (empty) -> PRINT
    -> INQUIRY ... until the printer is no longer busy

Example:
    >>> from gbprinter import PrinterClient, PrintInstruction
    >>> from gbprinter.transport import AsyncSerialTransport
    >>>
    >>> async def main(tile_data: bytes):
    ...     transport = AsyncSerialTransport("/dev/ttyACM0")
    ...     async with PrinterClient(transport) as client:
    ...         await client.print_image(tile_data, PrintInstruction(linefeed_after=3))
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from gbprinter.codec.encoder import PacketEncoder
from gbprinter.codec.responder import parse_response_trailer
from gbprinter.exceptions import PrinterStatusError, TimeoutError
from gbprinter.models.records import PrintInstruction
from gbprinter.protocol.constants import Command, ProtocolConstants
from gbprinter.protocol.rle import should_compress

if TYPE_CHECKING:
    from types import TracebackType

    from gbprinter.models.status import StatusBitfield
    from gbprinter.transport.abc import AbstractTransport

# Module logger
logger = logging.getLogger(__name__)


class PrinterClient:
    """
    Host-side client for a printer on the link.

    Attributes:
        transport: The underlying transport layer.
        last_status: Status from the most recent response, if any.

    Example:
        >>> client = PrinterClient(transport)
        >>> status = await client.initialize()
        >>> status = await client.send_data(band)
        >>> status = await client.inquiry()
    """

    def __init__(
        self,
        transport: AbstractTransport,
        timeout: float = ProtocolConstants.DEFAULT_RECEIVE_TIMEOUT,
        max_retries: int = ProtocolConstants.MAX_RETRIES,
        *,
        max_busy_polls: int = ProtocolConstants.MAX_BUSY_POLLS,
        retry_delay: float = 0.1,
        encoder: PacketEncoder | None = None,
    ) -> None:
        """
        Initialize the printer client.

        Args:
            transport: Transport layer for communication.
            timeout: Timeout for each response in seconds.
            max_retries: Maximum retry attempts when a response times out.
            max_busy_polls: Inquiry polls made while waiting for printing.
            retry_delay: Pause before each retry in seconds.
            encoder: Packet encoder (default: a new PacketEncoder).
        """
        self._transport = transport
        self._timeout = timeout
        self._max_retries = max_retries
        self._max_busy_polls = max_busy_polls
        self._retry_delay = retry_delay
        self._encoder = encoder or PacketEncoder()
        self._last_status: StatusBitfield | None = None

    @property
    def transport(self) -> AbstractTransport:
        """Get the underlying transport."""
        return self._transport

    @property
    def last_status(self) -> StatusBitfield | None:
        """Status reported in the most recent response."""
        return self._last_status

    async def send(
        self,
        command: Command | int,
        payload: bytes = b"",
        compressed: bool = False,
    ) -> StatusBitfield:
        """
        Send one packet and read the printer's response.

        Opens the transport if needed. Retries up to max_retries times on
        timeout.

        Args:
            command: Packet command, as a Command or its byte value.
            payload: Logical payload bytes.
            compressed: RLE-compress the payload on the wire.

        Returns:
            The status reported by the printer.

        Raises:
            TimeoutError: If no response arrives after all retries.
            FrameError: If the response is not a valid trailer.
            UnrecognizedCommandError: If command is not a known command code.
            PayloadTooLargeError: If the payload does not fit a packet.
        """
        if not self._transport.is_open:
            logger.debug("Opening transport %s", self._transport.port_name)
            await self._transport.open()

        frame = self._encoder.encode(command, compressed, payload) + ProtocolConstants.HOST_PADDING
        command = Command(command)
        last_exception: TimeoutError | None = None

        for attempt in range(self._max_retries + 1):
            try:
                if attempt > 0:
                    logger.debug("Retrying %s (attempt %d/%d)", command.name, attempt + 1, self._max_retries + 1)
                    self._transport.discard_buffers()

                await self._transport.write(frame)
                trailer = await self._transport.read(ProtocolConstants.RESPONSE_SIZE, timeout=self._timeout)
                status = parse_response_trailer(trailer)

            except TimeoutError as e:
                last_exception = e
                logger.warning(
                    "No response to %s (attempt %d/%d)", command.name, attempt + 1, self._max_retries + 1
                )
                if attempt < self._max_retries:
                    await asyncio.sleep(self._retry_delay)
                continue

            self._last_status = status
            if status.checksum_error:
                logger.warning("Printer reported checksum error for %s", command.name)
            logger.debug("%s -> %r", command.name, status)
            return status

        logger.error("%s failed after %d attempts", command.name, self._max_retries + 1)
        raise last_exception or TimeoutError(f"No response to {command.name}")

    async def initialize(self) -> StatusBitfield:
        """Send Init, clearing the printer's buffer."""
        return await self.send(Command.INIT)

    async def inquiry(self) -> StatusBitfield:
        """Ask for the printer status."""
        return await self.send(Command.INQUIRY)

    async def send_data(self, data: bytes, compressed: bool | None = None) -> StatusBitfield:
        """
        Send one Data packet.

        Args:
            data: Image data, normally one 640-byte band.
            compressed: Compress the payload. None compresses only if it
                makes the packet smaller.
        """
        if compressed is None:
            compressed = should_compress(data)
        return await self.send(Command.DATA, data, compressed)

    async def end_data(self) -> StatusBitfield:
        """Send the empty Data packet that ends the image data."""
        return await self.send(Command.DATA)

    async def start_print(self, instruction: PrintInstruction) -> StatusBitfield:
        """Send a Print packet."""
        return await self.send(Command.PRINT, instruction.to_payload())

    async def abort(self) -> StatusBitfield:
        """Send Break, stopping any print in progress."""
        return await self.send(Command.BREAK)

    async def wait_until_idle(self) -> StatusBitfield:
        """
        Poll with Inquiry until the printer is no longer busy.

        Raises:
            PrinterStatusError: If the printer reports an error.
            TimeoutError: If still busy after max_busy_polls inquiries.
        """
        for _ in range(self._max_busy_polls):
            status = self._check(await self.inquiry())
            if not status.printer_busy:
                return status

        raise TimeoutError(f"Printer still busy after {self._max_busy_polls} inquiries")

    async def print_image(
        self,
        image_data: bytes,
        instruction: PrintInstruction | None = None,
        compressed: bool | None = False,
    ) -> StatusBitfield:
        """
        Print a complete image.

        Args:
            image_data: 2bpp tile data, sent in 640-byte bands.
            instruction: Print settings (default: PrintInstruction()).
            compressed: Per-band compression, see send_data().

        Returns:
            The idle status after printing.

        Raises:
            PrinterStatusError: If the printer reports an error at any step.
            TimeoutError: If the printer stops responding.
        """
        instruction = instruction or PrintInstruction()
        band_size = ProtocolConstants.BAND_SIZE

        logger.info("Printing %d bytes of image data", len(image_data))
        self._check(await self.initialize())

        for offset in range(0, len(image_data), band_size):
            self._check(await self.send_data(image_data[offset:offset + band_size], compressed))

        self._check(await self.end_data())
        self._check(await self.start_print(instruction))
        status = await self.wait_until_idle()
        logger.info("Print finished")
        return status

    @staticmethod
    def _check(status: StatusBitfield) -> StatusBitfield:
        if status.is_error or status.checksum_error:
            raise PrinterStatusError(status)
        return status

    async def __aenter__(self) -> PrinterClient:
        """Async context manager entry - opens the transport."""
        if not self._transport.is_open:
            await self._transport.open()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Async context manager exit - closes the transport."""
        await self._transport.close()

    def __repr__(self) -> str:
        return f"PrinterClient({self._transport.port_name!r}, last_status={self._last_status!r})"
