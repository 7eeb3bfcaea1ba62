"""Tests for checksum functions."""

import pytest

from gbprinter.protocol.checksums import (
    ChecksumAccumulator,
    calculate_checksum,
    decode_checksum,
    encode_checksum,
)


class TestChecksums:
    """Tests for checksum calculation and encoding."""

    def test_calculate_checksum_inquiry_header(self):
        """Test checksum of an Inquiry header."""
        assert calculate_checksum(bytes([0x0F, 0x00, 0x00, 0x00])) == 0x000F

    def test_calculate_checksum_print_packet(self):
        """Test checksum of a Print header and instruction."""
        data = bytes([0x02, 0x00, 0x04, 0x00, 0x01, 0x00, 0x00, 0x40])
        assert calculate_checksum(data) == 0x47

    def test_calculate_checksum_empty(self):
        """Test checksum of empty data."""
        assert calculate_checksum(b"") == 0x0000

    def test_calculate_checksum_exceeds_8_bits(self):
        """Test that the sum is not truncated to 8 bits."""
        assert calculate_checksum(bytes([0xFF, 0xFF])) == 0x01FE

    def test_calculate_checksum_wraps_at_16_bits(self):
        """Test 16-bit wraparound."""
        # 258 * 0xFF = 0x101FE -> 0x01FE
        assert calculate_checksum(bytes([0xFF] * 258)) == 0x01FE

    def test_calculate_checksum_accepts_iterable(self):
        """Test checksum over a plain list of ints."""
        assert calculate_checksum([1, 2, 3]) == 6

    def test_encode_checksum_little_endian(self):
        """Test that the low byte is sent first."""
        assert encode_checksum(0x1234) == b"\x34\x12"

    def test_encode_checksum_out_of_range(self):
        """Test that values over 16 bits are rejected."""
        with pytest.raises(ValueError):
            encode_checksum(0x10000)
        with pytest.raises(ValueError):
            encode_checksum(-1)

    def test_decode_checksum(self):
        """Test assembling a checksum from wire bytes."""
        assert decode_checksum(0x34, 0x12) == 0x1234

    def test_encode_decode_agree(self):
        """Test that decode inverts encode."""
        low, high = encode_checksum(0xBEEF)
        assert decode_checksum(low, high) == 0xBEEF


class TestChecksumAccumulator:
    """Tests for the running checksum."""

    def test_starts_at_zero(self):
        """Test initial value."""
        assert ChecksumAccumulator().value == 0

    def test_update_with_bytes_and_ints(self):
        """Test mixing single bytes and buffers."""
        acc = ChecksumAccumulator()
        acc.update(0x02)
        acc.update(b"\x00\x04\x00")
        acc.update(bytearray([0x01, 0x00, 0x00, 0x40]))
        assert acc.value == 0x47

    def test_matches_calculate_checksum(self):
        """Test that streaming and one-shot sums agree."""
        data = bytes(range(256)) * 3
        acc = ChecksumAccumulator()
        for byte in data:
            acc.update(byte)
        assert acc.value == calculate_checksum(data)

    def test_wraparound(self):
        """Test 16-bit wraparound while streaming."""
        acc = ChecksumAccumulator()
        for _ in range(258):
            acc.update(0xFF)
        assert acc.value == 0x01FE

    def test_matches(self):
        """Test comparison against a received checksum."""
        acc = ChecksumAccumulator()
        acc.update(b"\x0f\x00\x00\x00")
        assert acc.matches(0x000F) is True
        assert acc.matches(0x0010) is False

    def test_reset(self):
        """Test starting a new sum."""
        acc = ChecksumAccumulator()
        acc.update(b"\xff")
        acc.reset()
        assert acc.value == 0
