"""Tests for PrinterClient."""

import pytest

from gbprinter import PrinterClient, PrinterEmulator, PrintInstruction
from gbprinter.codec.decoder import decode_packets
from gbprinter.codec.encoder import encode_packet
from gbprinter.exceptions import (
    DeviceIdMismatchError,
    PrinterStatusError,
    TimeoutError,
    UnrecognizedCommandError,
)
from gbprinter.protocol.constants import Command
from gbprinter.transport.mock import MockTransport, ScriptedMockTransport

IMAGE = bytes(range(256)) * 5  # two bands


class TestPrinterClient:
    """Tests for PrinterClient class."""

    @pytest.fixture
    def mock_transport(self):
        """Create a MockTransport instance."""
        return MockTransport()

    @pytest.fixture
    def client(self, mock_transport):
        """Create a PrinterClient with mock transport."""
        return PrinterClient(mock_transport, timeout=0.1, max_retries=2, retry_delay=0)

    def test_initial_state(self, client, mock_transport):
        """Test client starts with no status."""
        assert client.last_status is None
        assert client.transport is mock_transport

    @pytest.mark.asyncio
    async def test_inquiry(self, client, mock_transport):
        """Test a single Inquiry exchange."""
        mock_transport.add_response(b"\x81\x08")

        status = await client.inquiry()

        assert status.unprocessed_data is True
        assert client.last_status == status
        mock_transport.assert_written(encode_packet(Command.INQUIRY) + b"\x00\x00")

    @pytest.mark.asyncio
    async def test_send_opens_transport(self, client, mock_transport):
        """Test the transport is opened on first use."""
        mock_transport.add_response(b"\x81\x00")
        assert not mock_transport.is_open
        await client.initialize()
        assert mock_transport.is_open

    @pytest.mark.asyncio
    async def test_timeout_with_retry(self, client, mock_transport):
        """Test retries when the printer does not answer."""
        with pytest.raises(TimeoutError):
            await client.inquiry()

        # Should have tried 3 times (initial + 2 retries)
        assert len(mock_transport.written_data) == 3
        assert client.last_status is None

    @pytest.mark.asyncio
    async def test_retry_then_success(self, client, mock_transport):
        """Test that a later attempt can succeed."""
        attempts = []

        def flaky(data: bytes) -> bytes | None:
            attempts.append(data)
            return b"\x81\x00" if len(attempts) > 1 else None

        mock_transport.set_response_callback(flaky)
        status = await client.inquiry()
        assert status.to_byte() == 0x00
        assert len(attempts) == 2

    @pytest.mark.asyncio
    async def test_send_raw_command_byte_with_retry(self, client, mock_transport):
        """Test a plain int command survives the retry path."""
        attempts = []

        def flaky(data: bytes) -> bytes | None:
            attempts.append(data)
            return b"\x81\x00" if len(attempts) > 1 else None

        mock_transport.set_response_callback(flaky)
        status = await client.send(0x0F)
        assert status.to_byte() == 0x00
        assert attempts[0] == encode_packet(Command.INQUIRY) + b"\x00\x00"

    @pytest.mark.asyncio
    async def test_send_unknown_command(self, client):
        """Test an unknown command byte is rejected before sending."""
        with pytest.raises(UnrecognizedCommandError):
            await client.send(0x03)

    @pytest.mark.asyncio
    async def test_no_printer(self, client, mock_transport):
        """Test an idle line instead of the device ID."""
        mock_transport.add_response(b"\x00\x00")
        with pytest.raises(DeviceIdMismatchError):
            await client.inquiry()

    @pytest.mark.asyncio
    async def test_checksum_error_returned(self, client, mock_transport, caplog):
        """Test a checksum error is reported, not raised, by send()."""
        mock_transport.add_response(b"\x81\x01")
        status = await client.inquiry()
        assert status.checksum_error is True
        assert "checksum error" in caplog.text

    @pytest.mark.asyncio
    async def test_send_data_auto_compression(self, client, mock_transport):
        """Test compression is chosen when it shrinks the band."""
        mock_transport.add_responses(b"\x81\x08", b"\x81\x08")

        await client.send_data(b"\x00" * 640)
        await client.send_data(bytes(range(64)))

        compressed, plain = mock_transport.written_data
        assert compressed[3] == 0x01
        assert plain[3] == 0x00

    @pytest.mark.asyncio
    async def test_start_print(self, client, mock_transport):
        """Test the Print packet carries the instruction."""
        mock_transport.add_response(b"\x81\x02")
        instruction = PrintInstruction(sheets=1, linefeed_after=3)

        status = await client.start_print(instruction)

        assert status.printer_busy is True
        (packet,) = decode_packets(mock_transport.last_written)
        assert packet.print_instruction == instruction

    @pytest.mark.asyncio
    async def test_abort(self, client, mock_transport):
        """Test Break."""
        mock_transport.add_response(b"\x81\x00")
        await client.abort()
        mock_transport.assert_written(encode_packet(Command.BREAK) + b"\x00\x00")

    @pytest.mark.asyncio
    async def test_wait_until_idle_times_out(self, mock_transport):
        """Test giving up on a printer that stays busy."""
        mock_transport.set_response_callback(lambda data: b"\x81\x02")
        client = PrinterClient(mock_transport, max_busy_polls=3)

        with pytest.raises(TimeoutError):
            await client.wait_until_idle()
        mock_transport.assert_write_count(3)

    @pytest.mark.asyncio
    async def test_context_manager(self, mock_transport):
        """Test async context manager opens and closes the transport."""
        async with PrinterClient(mock_transport) as client:
            assert client.transport.is_open
        assert not mock_transport.is_open


class TestPrinterClientWithEmulator:
    """Tests running the client against an emulated printer."""

    @pytest.fixture
    def jobs(self):
        """Collected print jobs."""
        return []

    @pytest.fixture
    def emulator(self, jobs):
        """Create a PrinterEmulator that records print jobs."""
        return PrinterEmulator(on_print=jobs.append)

    @pytest.fixture
    def mock_transport(self, emulator):
        """Create a MockTransport answered by the emulator."""
        transport = MockTransport()
        transport.set_response_callback(emulator.process)
        return transport

    @pytest.mark.asyncio
    async def test_print_image(self, mock_transport, jobs):
        """Test a complete print job."""
        instruction = PrintInstruction(linefeed_after=3)

        async with PrinterClient(mock_transport) as client:
            status = await client.print_image(IMAGE, instruction)

        assert status.to_byte() == 0x00
        assert len(jobs) == 1
        assert jobs[0].image_data == IMAGE
        assert jobs[0].instruction == instruction

        commands = [p.command for p in decode_packets(mock_transport.written_bytes)]
        assert commands[:5] == [Command.INIT, Command.DATA, Command.DATA, Command.DATA, Command.PRINT]
        assert set(commands[5:]) == {Command.INQUIRY}

    @pytest.mark.asyncio
    async def test_print_image_compressed(self, mock_transport, jobs):
        """Test a print job sent with compressed bands."""
        image = b"\x00" * 1280
        async with PrinterClient(mock_transport) as client:
            await client.print_image(image, compressed=True)

        assert jobs[0].image_data == image
        packets = decode_packets(mock_transport.written_bytes)
        assert packets[1].compressed is True
        assert packets[1].wire_length < 640

    @pytest.mark.asyncio
    async def test_print_image_paper_jam(self, mock_transport, emulator, jobs):
        """Test an error reported while the printer is busy."""
        client = PrinterClient(mock_transport)
        await client.initialize()
        await client.send_data(IMAGE[:640])
        await client.end_data()
        await client.start_print(PrintInstruction())
        emulator.set_condition(paper_jam=True)

        with pytest.raises(PrinterStatusError) as exc_info:
            await client.wait_until_idle()
        assert exc_info.value.status.paper_jam is True
        assert len(jobs) == 1

    @pytest.mark.asyncio
    async def test_print_image_error_status(self):
        """Test print_image stops at the first error response."""
        transport = ScriptedMockTransport()
        transport.expect(response=b"\x81\x00", request=encode_packet(Command.INIT) + b"\x00\x00")
        transport.expect(response=b"\x81\x80")

        client = PrinterClient(transport)
        with pytest.raises(PrinterStatusError) as exc_info:
            await client.print_image(IMAGE[:640])
        assert "low_battery" in str(exc_info.value)
        transport.assert_write_count(2)
