"""
gbprinter - Python library for the Game Boy Printer link protocol.

This library decodes and encodes the packets a Game Boy sends to its
pocket printer, including checksum validation and the printer's
run-length image compression, and provides async sessions for both
sides of the link.

Example:
    >>> from gbprinter import PacketDecoder, encode_packet, Command
    >>>
    >>> decoder = PacketDecoder()
    >>> for event in decoder.feed_bytes(encode_packet(Command.INQUIRY)):
    ...     print(event.packet.command.name, event.packet.checksum_valid)
    INQUIRY True
"""

from gbprinter.client import PrinterClient
from gbprinter.codec import (
    DecodeEvent,
    DecodeResult,
    DecoderState,
    PacketDecoder,
    PacketEncoder,
    decode_packets,
    encode_packet,
    parse_response_trailer,
    response_trailer,
)
from gbprinter.emulator import PrinterEmulator
from gbprinter.exceptions import (
    ChecksumError,
    DeviceIdMismatchError,
    FrameError,
    GBPrinterError,
    MalformedRLEStreamError,
    PayloadTooLargeError,
    PrinterStatusError,
    ProtocolError,
    TimeoutError,
    TransportError,
    UnrecognizedCommandError,
    UnrecognizedCompressionFlagError,
)
from gbprinter.models import Packet, PrintInstruction, PrintJob, StatusBitfield
from gbprinter.protocol import Command, ProtocolConstants
from gbprinter.transport import AbstractTransport, AsyncSerialTransport

__version__ = "0.1.0"
__all__ = [
    # Sessions
    "PrinterClient",
    "PrinterEmulator",
    # Codec
    "PacketDecoder",
    "DecoderState",
    "DecodeResult",
    "DecodeEvent",
    "decode_packets",
    "PacketEncoder",
    "encode_packet",
    "response_trailer",
    "parse_response_trailer",
    # Models
    "Packet",
    "PrintInstruction",
    "PrintJob",
    "StatusBitfield",
    # Protocol
    "Command",
    "ProtocolConstants",
    # Exceptions
    "GBPrinterError",
    "ProtocolError",
    "UnrecognizedCommandError",
    "UnrecognizedCompressionFlagError",
    "MalformedRLEStreamError",
    "PayloadTooLargeError",
    "ChecksumError",
    "FrameError",
    "DeviceIdMismatchError",
    "PrinterStatusError",
    "TimeoutError",
    "TransportError",
    # Transport
    "AbstractTransport",
    "AsyncSerialTransport",
    # Version
    "__version__",
]
