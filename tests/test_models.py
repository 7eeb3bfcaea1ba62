"""Tests for data models."""

import pytest
from pydantic import ValidationError

from gbprinter.models.records import Packet, PrintInstruction, PrintJob
from gbprinter.models.status import STATUS_FIELD_BITS, StatusBitfield
from gbprinter.protocol.constants import Command


class TestStatusBitfield:
    """Tests for StatusBitfield model."""

    def test_default_is_zero(self):
        """Test that a default status packs to 0x00."""
        assert StatusBitfield().to_byte() == 0x00

    @pytest.mark.parametrize(
        ("field", "bit"),
        [
            ("low_battery", 7),
            ("other_error", 6),
            ("paper_jam", 5),
            ("packet_error", 4),
            ("unprocessed_data", 3),
            ("print_buffer_full", 2),
            ("printer_busy", 1),
            ("checksum_error", 0),
        ],
    )
    def test_bit_positions(self, field, bit):
        """Test each flag maps to its fixed bit."""
        assert StatusBitfield(**{field: True}).to_byte() == 1 << bit
        assert getattr(StatusBitfield.from_byte(1 << bit), field) is True

    def test_byte_round_trip_all_values(self):
        """Test to_byte(from_byte(b)) == b for every byte."""
        for value in range(256):
            assert StatusBitfield.from_byte(value).to_byte() == value

    def test_model_round_trip_all_values(self):
        """Test from_byte(to_byte(s)) == s for every status."""
        for value in range(256):
            status = StatusBitfield.from_byte(value)
            assert StatusBitfield.from_byte(status.to_byte()) == status

    def test_from_byte_out_of_range(self):
        """Test that values outside a byte are rejected."""
        with pytest.raises(ValueError):
            StatusBitfield.from_byte(256)
        with pytest.raises(ValueError):
            StatusBitfield.from_byte(-1)

    def test_immutable(self):
        """Test that the model is frozen."""
        status = StatusBitfield()
        with pytest.raises(ValidationError):
            status.printer_busy = True

    def test_with_flags(self):
        """Test deriving an updated status."""
        status = StatusBitfield(printer_busy=True)
        updated = status.with_flags(printer_busy=False, unprocessed_data=True)
        assert updated.to_byte() == 0x08
        assert status.to_byte() == 0x02

    def test_with_flags_unknown_name(self):
        """Test that unknown flag names are rejected."""
        with pytest.raises(ValueError):
            StatusBitfield().with_flags(on_fire=True)

    def test_active_flags(self):
        """Test listing set flags, most significant first."""
        status = StatusBitfield.from_byte(0x82)
        assert status.active_flags == ("low_battery", "printer_busy")

    def test_is_error(self):
        """Test error classification."""
        assert StatusBitfield(paper_jam=True).is_error is True
        assert StatusBitfield(printer_busy=True, unprocessed_data=True).is_error is False

    def test_field_table_covers_all_bits(self):
        """Test the field table is a bijection onto bits 0-7."""
        assert sorted(STATUS_FIELD_BITS.values()) == list(range(8))
        assert set(STATUS_FIELD_BITS) == set(StatusBitfield.model_fields)

    def test_repr(self):
        """Test readable representation."""
        assert repr(StatusBitfield()) == "StatusBitfield(0x00)"
        assert "printer_busy" in repr(StatusBitfield(printer_busy=True))


class TestPrintInstruction:
    """Tests for PrintInstruction model."""

    def test_from_payload(self):
        """Test parsing the 4-byte payload."""
        instruction = PrintInstruction.from_payload(b"\x01\x13\xe4\x40")
        assert instruction.sheets == 1
        assert instruction.linefeed_before == 1
        assert instruction.linefeed_after == 3
        assert instruction.palette == 0xE4
        assert instruction.density == 0x40

    def test_to_payload(self):
        """Test serializing back to bytes."""
        instruction = PrintInstruction(sheets=2, linefeed_before=0, linefeed_after=3, palette=0x1B, density=0x7F)
        assert instruction.to_payload() == b"\x02\x03\x1b\x7f"

    def test_payload_round_trip(self):
        """Test parse/serialize agreement."""
        payload = b"\x00\xf0\x00\x80"
        assert PrintInstruction.from_payload(payload).to_payload() == payload

    def test_wrong_size(self):
        """Test that payloads other than 4 bytes are rejected."""
        with pytest.raises(ValueError):
            PrintInstruction.from_payload(b"\x01\x00\x00")

    def test_nibble_range(self):
        """Test linefeed nibbles are limited to 4 bits."""
        with pytest.raises(ValidationError):
            PrintInstruction(linefeed_after=16)

    def test_linefeed_only(self):
        """Test zero sheets means paper feed only."""
        assert PrintInstruction(sheets=0).is_linefeed_only is True


class TestPacket:
    """Tests for Packet model."""

    def test_defaults(self):
        """Test a bare Inquiry packet."""
        packet = Packet(command=Command.INQUIRY)
        assert packet.compressed is False
        assert packet.payload == b""
        assert packet.checksum_valid is True
        assert packet.has_expected_length is True

    def test_command_from_int(self):
        """Test command coercion from a raw byte."""
        assert Packet(command=0x04).command is Command.DATA

    def test_invalid_command(self):
        """Test that unknown command values are rejected."""
        with pytest.raises(ValidationError):
            Packet(command=0x03)

    def test_print_length_expectation(self):
        """Test Print packets need exactly 4 bytes."""
        assert Packet(command=Command.PRINT, payload=b"\x01\x00\xe4\x40").has_expected_length is True
        assert Packet(command=Command.PRINT, payload=b"\x01").has_expected_length is False

    def test_empty_command_length_expectation(self):
        """Test Init/Break/Inquiry expect no payload."""
        assert Packet(command=Command.INIT, payload=b"\x00").has_expected_length is False
        assert Packet(command=Command.DATA, payload=b"\x00" * 640).has_expected_length is True

    def test_print_instruction(self):
        """Test parsed instruction access."""
        packet = Packet(command=Command.PRINT, payload=b"\x01\x00\xe4\x40")
        assert packet.print_instruction == PrintInstruction(sheets=1, palette=0xE4, density=0x40)
        assert Packet(command=Command.PRINT, payload=b"").print_instruction is None
        assert Packet(command=Command.DATA).print_instruction is None

    def test_end_of_data(self):
        """Test empty Data packet detection."""
        assert Packet(command=Command.DATA).is_end_of_data is True
        assert Packet(command=Command.DATA, payload=b"\x00").is_end_of_data is False

    def test_repr(self):
        """Test readable representation."""
        packet = Packet(command=Command.DATA, payload=b"\x00" * 3, compressed=True, checksum_valid=False)
        assert repr(packet) == "Packet(DATA, payload=3 bytes, compressed, bad checksum)"


class TestPrintJob:
    """Tests for PrintJob model."""

    def test_counts(self):
        """Test band and tile counts."""
        job = PrintJob(image_data=b"\x00" * 1300, instruction=PrintInstruction())
        assert job.band_count == 2
        assert job.tile_count == 81
