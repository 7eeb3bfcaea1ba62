"""
Run-length encoding used for compressed printer image data.

A compressed payload is a sequence of runs, each introduced by a tag byte:

  - Literal run (tag bit 7 clear): (tag & 0x7F) + 1 bytes follow verbatim
  - Repeat run (tag bit 7 set): one byte follows, repeated (tag & 0x7F) + 2 times

Examples:
  0x02 0x41 0x42 0x43 = "ABC" (literal run of 3)
  0x83 0x00           = five 0x00 bytes (repeat run of 3 + 2)

The declared wire length of a packet bounds the compressed stream. A tag
that claims more bytes than remain in that budget is malformed. There is
no bound on the decompressed size.
"""

from __future__ import annotations

from enum import Enum, auto
from typing import Final

from gbprinter.exceptions import MalformedRLEStreamError
from gbprinter.protocol.constants import ProtocolConstants

# Shortest repeat run the encoding can express
MIN_REPEAT_RUN: Final[int] = 2

_REPEAT_FLAG: Final[int] = ProtocolConstants.RLE_REPEAT_FLAG
_LENGTH_MASK: Final[int] = ProtocolConstants.RLE_LENGTH_MASK
_MAX_LITERAL: Final[int] = ProtocolConstants.RLE_MAX_LITERAL_RUN
_MAX_REPEAT: Final[int] = ProtocolConstants.RLE_MAX_REPEAT_RUN


class _RunState(Enum):
    TAG = auto()
    LITERAL = auto()
    REPEAT = auto()


class RLEDecompressor:
    """
    Streaming decompressor driven one wire byte at a time.

    The decompressor is created with the wire length budget of the
    payload and validates every run tag against what remains of it.

    Example:
        >>> decompressor = RLEDecompressor(budget=2)
        >>> decompressor.feed(0x83)
        b''
        >>> decompressor.feed(0x00)
        b'\\x00\\x00\\x00\\x00\\x00'
        >>> decompressor.is_complete
        True
    """

    __slots__ = ("_remaining", "_consumed", "_state", "_run_left")

    def __init__(self, budget: int) -> None:
        if budget < 0:
            raise ValueError(f"Budget must be non-negative, got {budget}")
        self._remaining = budget
        self._consumed = 0
        self._state = _RunState.TAG
        self._run_left = 0

    @property
    def remaining(self) -> int:
        """Wire bytes left in the budget."""
        return self._remaining

    @property
    def consumed(self) -> int:
        """Wire bytes fed so far."""
        return self._consumed

    @property
    def is_complete(self) -> bool:
        """True once the budget is used up at a run boundary."""
        return self._remaining == 0 and self._state is _RunState.TAG

    def feed(self, byte: int) -> bytes:
        """
        Consume one wire byte.

        Args:
            byte: Next compressed byte (0-255).

        Returns:
            Decompressed bytes produced by this wire byte (may be empty).

        Raises:
            MalformedRLEStreamError: If the byte exceeds the budget or a
                run tag claims more bytes than remain.
        """
        position = self._consumed
        if self._remaining <= 0:
            raise MalformedRLEStreamError(
                "RLE stream exceeds declared length", value=byte, position=position
            )
        self._remaining -= 1
        self._consumed += 1

        if self._state is _RunState.TAG:
            if byte & _REPEAT_FLAG:
                self._run_left = (byte & _LENGTH_MASK) + MIN_REPEAT_RUN
                needed = 1
                self._state = _RunState.REPEAT
            else:
                self._run_left = (byte & _LENGTH_MASK) + 1
                needed = self._run_left
                self._state = _RunState.LITERAL
            if needed > self._remaining:
                raise MalformedRLEStreamError(
                    f"Run needs {needed} bytes but only {self._remaining} remain",
                    value=byte,
                    position=position,
                )
            return b""

        if self._state is _RunState.LITERAL:
            self._run_left -= 1
            if self._run_left == 0:
                self._state = _RunState.TAG
            return bytes((byte,))

        self._state = _RunState.TAG
        return bytes((byte,)) * self._run_left


def decompress(data: bytes | bytearray | memoryview) -> bytes:
    """
    Decompress a complete RLE payload.

    Args:
        data: Compressed bytes; their length is the budget.

    Returns:
        Decompressed bytes.

    Raises:
        MalformedRLEStreamError: If the stream is truncated mid-run.
    """
    decompressor = RLEDecompressor(len(data))
    result = bytearray()
    for byte in bytes(data):
        result += decompressor.feed(byte)
    return bytes(result)


def _flush_literal(result: bytearray, literal: bytearray) -> None:
    if literal:
        result.append(len(literal) - 1)
        result += literal
        literal.clear()


def compress(data: bytes | bytearray | memoryview) -> bytes:
    """
    Compress data with greedy run selection.

    Any 2 or more consecutive identical bytes become a repeat run (up to
    129 per run); everything else is gathered into literal runs (up to
    128 per run). The output is not byte-identical to what the console
    produces but decompresses to the same data.

    Args:
        data: Raw bytes to compress.

    Returns:
        RLE-encoded bytes.
    """
    data = bytes(data)
    result = bytearray()
    literal = bytearray()
    src_len = len(data)
    src_pos = 0

    while src_pos < src_len:
        current = data[src_pos]

        run_len = 1
        while (src_pos + run_len < src_len and
               data[src_pos + run_len] == current and
               run_len < _MAX_REPEAT):
            run_len += 1

        if run_len >= MIN_REPEAT_RUN:
            _flush_literal(result, literal)
            result.append(_REPEAT_FLAG | (run_len - MIN_REPEAT_RUN))
            result.append(current)
            src_pos += run_len
        else:
            literal.append(current)
            if len(literal) == _MAX_LITERAL:
                _flush_literal(result, literal)
            src_pos += 1

    _flush_literal(result, literal)
    return bytes(result)


def should_compress(data: bytes | bytearray | memoryview) -> bool:
    """
    Check if compression would shrink the data.

    Args:
        data: Raw bytes to analyze.

    Returns:
        True if the compressed form is strictly smaller.
    """
    return len(compress(data)) < len(data)
