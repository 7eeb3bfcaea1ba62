"""
Printer emulator session.

The emulator stands in for the printer on the link: it decodes the
console's packets, keeps the printer status and image buffer, hands
finished print jobs to a consumer and answers every packet with the
device ID and status trailer.

Packet handling:
    INIT     -> clear buffer and status (low battery is kept)
    DATA     -> append image data; an empty payload ends the data
    PRINT    -> hand the buffered image to on_print, report busy
    BREAK    -> drop the buffered image, stop printing
    INQUIRY  -> report status; counts down the busy period

A packet with a bad checksum is not applied; the checksum error flag is
reported instead. A packet that cannot be decoded at all sets the packet
error flag, reported with the next response.

Example:
    >>> jobs = []
    >>> emulator = PrinterEmulator(on_print=jobs.append)
    >>> transport = AsyncSerialTransport("/dev/ttyACM0")
    >>> async with transport:
    ...     while True:
    ...         await emulator.serve(transport)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable

from gbprinter.codec.decoder import PacketDecoder
from gbprinter.codec.responder import response_trailer
from gbprinter.exceptions import TimeoutError
from gbprinter.models.records import Packet, PrintJob
from gbprinter.models.status import StatusBitfield
from gbprinter.protocol.constants import Command, ProtocolConstants

if TYPE_CHECKING:
    from gbprinter.exceptions import ProtocolError
    from gbprinter.transport.abc import AbstractTransport

# Module logger
logger = logging.getLogger(__name__)

_FULL_SHEET_SIZE = ProtocolConstants.BAND_SIZE * ProtocolConstants.BANDS_PER_SHEET


class PrinterEmulator:
    """
    Emulated printer that answers a host over the link protocol.

    Args:
        on_print: Called with a PrintJob for every accepted Print packet.
        busy_inquiries: Number of Inquiry packets answered with the busy
            flag after printing.
        buffer_size: Image buffer capacity in bytes.
        strict_compression: Passed to the packet decoder.

    Attributes:
        status: Current printer status.
        buffered_data: Image data received since the last Init/Print/Break.
        last_job: The most recent print job, if any.
    """

    def __init__(
        self,
        on_print: Callable[[PrintJob], None] | None = None,
        *,
        busy_inquiries: int = ProtocolConstants.BUSY_INQUIRIES,
        buffer_size: int = ProtocolConstants.PRINT_BUFFER_SIZE,
        strict_compression: bool = True,
    ) -> None:
        self._on_print = on_print
        self._busy_inquiries = busy_inquiries
        self._buffer_size = buffer_size
        self._decoder = PacketDecoder(
            strict_compression=strict_compression,
            max_payload_size=buffer_size,
        )
        self._status = StatusBitfield()
        self._buffer = bytearray()
        self._busy_countdown = 0
        self._last_job: PrintJob | None = None
        self._packets_handled = 0
        self._errors = 0
        self._pending_packet_error = False

    @property
    def status(self) -> StatusBitfield:
        """Current printer status."""
        return self._status

    @property
    def buffered_data(self) -> bytes:
        """Image data waiting to be printed."""
        return bytes(self._buffer)

    @property
    def last_job(self) -> PrintJob | None:
        """Most recent print job."""
        return self._last_job

    @property
    def packets_handled(self) -> int:
        """Number of packets with a valid checksum that were applied."""
        return self._packets_handled

    @property
    def errors(self) -> int:
        """Number of packets dropped by the decoder."""
        return self._errors

    @property
    def decoder(self) -> PacketDecoder:
        """The emulator's packet decoder."""
        return self._decoder

    def set_condition(self, **flags: bool) -> StatusBitfield:
        """
        Force status flags, e.g. to simulate a paper jam or low battery.

        Returns:
            The updated status.
        """
        self._status = self._status.with_flags(**flags)
        return self._status

    def reset(self) -> None:
        """Return to power-on state."""
        self._decoder.reset()
        self._status = StatusBitfield()
        self._buffer.clear()
        self._busy_countdown = 0
        self._last_job = None
        self._pending_packet_error = False

    def handle_packet(self, packet: Packet) -> StatusBitfield:
        """
        Apply a decoded packet to the printer state.

        Args:
            packet: Decoded packet.

        Returns:
            The status to report for this packet.
        """
        if not packet.checksum_valid:
            logger.warning("Ignoring %s packet with bad checksum", packet.command.name)
            self._status = self._status.with_flags(checksum_error=True)
            return self._status

        status = self._status.with_flags(checksum_error=False, packet_error=False)

        if packet.command == Command.INIT:
            status = self._handle_init(status)
        elif packet.command == Command.DATA:
            status = self._handle_data(packet, status)
        elif packet.command == Command.PRINT:
            status = self._handle_print(packet, status)
        elif packet.command == Command.BREAK:
            status = self._handle_break(status)
        else:
            status = self._handle_inquiry(status)

        self._status = status
        self._packets_handled += 1

        # A dropped packet is reported once, with the next response
        if self._pending_packet_error:
            status = status.with_flags(packet_error=True)
            self._pending_packet_error = False

        logger.debug("%s -> %r", packet.command.name, status)
        return status

    def handle_error(self, error: ProtocolError) -> StatusBitfield:
        """
        Record a packet the decoder had to drop.

        Returns:
            The updated status.
        """
        self._errors += 1
        self._pending_packet_error = True
        logger.warning("Packet error: %s", error)
        self._status = self._status.with_flags(packet_error=True)
        return self._status

    def process(self, data: bytes) -> bytes:
        """
        Feed link bytes and collect the responses.

        Args:
            data: Bytes received from the host.

        Returns:
            One response trailer per completed packet, concatenated.
        """
        responses = bytearray()
        for event in self._decoder.iter_events(data):
            if event.packet is not None:
                responses += response_trailer(self.handle_packet(event.packet))
            elif event.error is not None:
                self.handle_error(event.error)
        return bytes(responses)

    async def serve(
        self,
        transport: AbstractTransport,
        *,
        max_packets: int | None = None,
        timeout: float | None = None,
    ) -> int:
        """
        Answer packets arriving on a transport.

        Reads one byte at a time and writes a response trailer after each
        completed packet. Returns when the link is idle for longer than
        the read timeout or after max_packets responses. A packet still
        in progress is kept, so calling serve() again resumes it.

        Args:
            transport: Open transport to the host.
            max_packets: Stop after answering this many packets.
            timeout: Read timeout in seconds. None uses transport default.

        Returns:
            Number of packets answered.
        """
        answered = 0
        logger.info("Serving printer on %s", transport.port_name)

        while max_packets is None or answered < max_packets:
            try:
                byte = await transport.read_byte(timeout)
            except TimeoutError:
                logger.debug("Link idle after %d packets", answered)
                break

            event = self._decoder.feed(byte)
            if event.packet is not None:
                await transport.write(response_trailer(self.handle_packet(event.packet)))
                answered += 1
            elif event.error is not None:
                self.handle_error(event.error)

        return answered

    def _handle_init(self, status: StatusBitfield) -> StatusBitfield:
        self._buffer.clear()
        self._busy_countdown = 0
        return StatusBitfield(low_battery=status.low_battery)

    def _handle_data(self, packet: Packet, status: StatusBitfield) -> StatusBitfield:
        if packet.is_end_of_data:
            logger.debug("End of image data (%d bytes buffered)", len(self._buffer))
            return status

        if len(self._buffer) + len(packet.payload) > self._buffer_size:
            logger.warning(
                "Image buffer overflow: %d + %d exceeds %d bytes",
                len(self._buffer),
                len(packet.payload),
                self._buffer_size,
            )
            return status.with_flags(packet_error=True)

        self._buffer += packet.payload
        return status.with_flags(
            unprocessed_data=True,
            print_buffer_full=len(self._buffer) >= _FULL_SHEET_SIZE,
        )

    def _handle_print(self, packet: Packet, status: StatusBitfield) -> StatusBitfield:
        instruction = packet.print_instruction
        if instruction is None:
            logger.warning("Malformed print instruction: %d bytes", len(packet.payload))
            return status.with_flags(packet_error=True)

        job = PrintJob(image_data=bytes(self._buffer), instruction=instruction)
        self._buffer.clear()
        self._last_job = job
        self._busy_countdown = self._busy_inquiries
        logger.info(
            "Printing %d bands, %d sheet(s), density 0x%02X",
            job.band_count,
            instruction.sheets,
            instruction.density,
        )
        if self._on_print is not None:
            self._on_print(job)

        return status.with_flags(
            unprocessed_data=False,
            print_buffer_full=False,
            printer_busy=self._busy_countdown > 0,
        )

    def _handle_break(self, status: StatusBitfield) -> StatusBitfield:
        logger.info("Break: discarding %d buffered bytes", len(self._buffer))
        self._buffer.clear()
        self._busy_countdown = 0
        return status.with_flags(
            unprocessed_data=False,
            print_buffer_full=False,
            printer_busy=False,
        )

    def _handle_inquiry(self, status: StatusBitfield) -> StatusBitfield:
        busy = self._busy_countdown > 0
        if busy:
            self._busy_countdown -= 1
        return status.with_flags(printer_busy=busy)

    def __repr__(self) -> str:
        return f"PrinterEmulator({self._status!r}, buffered={len(self._buffer)})"
