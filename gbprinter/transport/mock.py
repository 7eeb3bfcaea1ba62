"""
In-memory transports for tests.

MockTransport answers reads from a queue of canned link bytes, or from a
callback that sees every write. PrinterEmulator.process() fits that
callback signature, so a PrinterClient can drive an emulated printer
with no serial port involved:

    >>> mock = MockTransport()
    >>> mock.set_response_callback(PrinterEmulator().process)
    >>> async with PrinterClient(mock) as client:
    ...     status = await client.inquiry()

ScriptedMockTransport instead pairs each write with a fixed trailer and
can check the written packet.
"""

from __future__ import annotations

from collections import deque
from typing import Callable

from gbprinter.exceptions import TimeoutError, TransportError
from gbprinter.transport.abc import AbstractTransport

ResponseCallback = Callable[[bytes], bytes | None]


class MockTransport(AbstractTransport):
    """
    Fake printer link.

    Every write is recorded. Bytes become readable either from the
    response queue or from whatever the response callback returns for
    a write; a falsy callback result leaves the queue in charge.

    Example:
        >>> mock = MockTransport()
        >>> mock.add_response(b"\\x81\\x00")
        >>> async with mock:
        ...     await mock.write(encode_packet(Command.INQUIRY))
        ...     assert await mock.read(2) == b"\\x81\\x00"
    """

    def __init__(
        self,
        port_name: str = "mock://test",
        default_timeout: float = 1.0,
    ) -> None:
        self._port_name = port_name
        self._default_timeout = default_timeout
        self._is_open = False
        self._queued: deque[bytes] = deque()
        self._writes: list[bytes] = []
        self._pending = bytearray()
        self._callback: ResponseCallback | None = None

    @property
    def is_open(self) -> bool:
        return self._is_open

    @property
    def port_name(self) -> str:
        return self._port_name

    @property
    def written_data(self) -> list[bytes]:
        """Copy of every write, in order."""
        return list(self._writes)

    @property
    def written_bytes(self) -> bytes:
        """Everything written, as the host-to-printer byte stream."""
        return b"".join(self._writes)

    @property
    def last_written(self) -> bytes | None:
        return self._writes[-1] if self._writes else None

    def add_response(self, response: bytes) -> None:
        """Queue bytes to be read after anything already queued."""
        self._queued.append(bytes(response))

    def add_responses(self, *responses: bytes) -> None:
        self._queued.extend(bytes(r) for r in responses)

    def set_response_callback(self, callback: ResponseCallback | None) -> None:
        """
        Install (or remove, with None) a per-write responder.

        The callback receives each written chunk and returns the bytes
        the far end sends back.
        """
        self._callback = callback

    def clear(self) -> None:
        """Forget recorded writes and all unread bytes."""
        self._writes.clear()
        self._queued.clear()
        self._pending.clear()

    def _require_open(self) -> None:
        if not self._is_open:
            raise TransportError(f"{self._port_name} is not open")

    async def open(self) -> None:
        if self._is_open:
            raise TransportError(f"{self._port_name} is already open")
        self._is_open = True

    async def close(self) -> None:
        self._is_open = False

    async def write(self, data: bytes) -> None:
        self._require_open()
        chunk = bytes(data)
        self._writes.append(chunk)
        self._respond(chunk)

    def _respond(self, chunk: bytes) -> None:
        if self._callback is None:
            return
        reply = self._callback(chunk)
        if reply:
            self._pending += reply

    async def read(self, size: int, timeout: float | None = None) -> bytes:
        """
        Return exactly size bytes.

        Raises:
            TimeoutError: If fewer bytes are available, which stands in
                for a silent printer.
        """
        self._require_open()
        while len(self._pending) < size and self._queued:
            self._pending += self._queued.popleft()

        if len(self._pending) < size:
            raise TimeoutError(
                f"{self._port_name}: wanted {size} bytes, {len(self._pending)} available",
                timeout_seconds=self._default_timeout if timeout is None else timeout,
            )

        data = bytes(self._pending[:size])
        del self._pending[:size]
        return data

    async def read_byte(self, timeout: float | None = None) -> int:
        return (await self.read(1, timeout))[0]

    def discard_buffers(self) -> None:
        """Drop bytes already made readable; the queue is kept."""
        self._pending.clear()

    def assert_written(self, expected: bytes, index: int = -1) -> None:
        """Fail unless write number index (default: the last) equals expected."""
        if not self._writes:
            raise AssertionError(f"Nothing was written to {self._port_name}")
        actual = self._writes[index]
        if actual != expected:
            raise AssertionError(f"Write {index}: expected {expected.hex()}, got {actual.hex()}")

    def assert_write_count(self, expected: int) -> None:
        if len(self._writes) != expected:
            raise AssertionError(f"Expected {expected} writes, got {len(self._writes)}")


class ScriptedMockTransport(MockTransport):
    """
    MockTransport that replays a fixed exchange.

    Each write consumes the next step of the script: the step's trailer
    becomes readable, and if the step names a packet, the write must
    match it. Writes past the end of the script get no answer.

    Example:
        >>> mock = ScriptedMockTransport()
        >>> mock.expect(b"\\x81\\x00", request=encode_packet(Command.INIT) + b"\\x00\\x00")
        >>> mock.expect(b"\\x81\\x08")
    """

    def __init__(self, port_name: str = "mock://scripted") -> None:
        super().__init__(port_name)
        self._steps: list[tuple[bytes | None, bytes]] = []
        self._step = 0

    def expect(self, response: bytes, request: bytes | None = None) -> None:
        """Append a step; request None accepts any write."""
        self._steps.append((request, bytes(response)))

    def _respond(self, chunk: bytes) -> None:
        if self._step >= len(self._steps):
            return
        request, response = self._steps[self._step]
        if request is not None and chunk != request:
            raise AssertionError(
                f"Script mismatch at step {self._step}: expected {request.hex()}, got {chunk.hex()}"
            )
        self._pending += response
        self._step += 1

    def reset_script(self) -> None:
        """Replay the script from its first step."""
        self._step = 0
        self._pending.clear()
