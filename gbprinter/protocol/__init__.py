"""
Protocol layer for the printer link.

This module contains the low-level protocol handling:
- Command codes, status bit positions and protocol constants
- 16-bit checksum calculation and accumulation
- Run-length compression and streaming decompression
"""

from gbprinter.protocol.checksums import (
    ChecksumAccumulator,
    calculate_checksum,
    decode_checksum,
    encode_checksum,
)
from gbprinter.protocol.constants import (
    COMMAND_CODES,
    Command,
    CompressionFlag,
    PrintInstructionIndex,
    ProtocolConstants,
    StatusBit,
)
from gbprinter.protocol.rle import RLEDecompressor, compress, decompress, should_compress

__all__ = [
    # Constants
    "Command",
    "CompressionFlag",
    "StatusBit",
    "PrintInstructionIndex",
    "ProtocolConstants",
    "COMMAND_CODES",
    # Checksums
    "ChecksumAccumulator",
    "calculate_checksum",
    "encode_checksum",
    "decode_checksum",
    # RLE
    "RLEDecompressor",
    "compress",
    "decompress",
    "should_compress",
]
