"""Tests for AsyncSerialTransport that need no hardware."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import serial

from gbprinter.exceptions import TimeoutError, TransportError
from gbprinter.transport.serial_async import AsyncSerialTransport


class TestAsyncSerialTransport:
    """Tests for AsyncSerialTransport class."""

    @pytest.fixture
    def transport(self):
        """Create an unopened transport."""
        return AsyncSerialTransport("/dev/null-printer", default_timeout=0.05)

    def test_initial_state(self, transport):
        """Test a new transport is closed."""
        assert transport.is_open is False
        assert transport.port_name == "/dev/null-printer"
        assert transport.baudrate == 115200
        assert "closed" in repr(transport)

    @pytest.mark.asyncio
    async def test_write_when_closed_raises(self, transport):
        """Test writing before open."""
        with pytest.raises(TransportError):
            await transport.write(b"\x88\x33")

    @pytest.mark.asyncio
    async def test_read_when_closed_raises(self, transport):
        """Test reading before open."""
        with pytest.raises(TransportError):
            await transport.read(2)

    @pytest.mark.asyncio
    async def test_open_failure(self, transport):
        """Test a serial error while opening is wrapped."""
        with patch(
            "serial_asyncio.open_serial_connection",
            AsyncMock(side_effect=serial.SerialException("no such port")),
        ):
            with pytest.raises(TransportError) as exc_info:
                await transport.open()
        assert "no such port" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_read_timeout(self, transport):
        """Test a silent port raises TimeoutError."""
        reader = asyncio.StreamReader()
        writer = MagicMock()
        writer.is_closing.return_value = False
        writer.wait_closed = AsyncMock()
        with patch(
            "serial_asyncio.open_serial_connection",
            AsyncMock(return_value=(reader, writer)),
        ):
            await transport.open()

        with pytest.raises(TimeoutError):
            await transport.read(2)

        reader.feed_data(b"\x81\x00")
        assert await transport.read(2) == b"\x81\x00"

        await transport.close()
        assert transport.is_open is False
        writer.close.assert_called_once()
