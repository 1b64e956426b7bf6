"""Tests for the binary reader."""

import pytest

from etlcdb.errors import FormatError
from etlcdb.formats import BinaryReader


class TestIntegerReads:
    """Tests for fixed-width integer reads."""

    def test_big_endian_by_default(self):
        reader = BinaryReader(b"\x01\x02\x00\x00\x01\x00")
        assert reader.read_uint16() == 0x0102
        assert reader.read_uint32() == 0x100

    def test_little_endian_on_request(self):
        reader = BinaryReader(b"\x01\x02")
        assert reader.read_uint16("little") == 0x0201

    def test_signed_reads(self):
        reader = BinaryReader(b"\xff\xff\xfe\x80")
        assert reader.read_int16() == -1
        assert reader.read_int8() == -2
        assert reader.read_int8() == -128

    def test_uint8_and_uint64(self):
        reader = BinaryReader(b"\x07" + (1).to_bytes(8, "big"))
        assert reader.read_uint8() == 7
        assert reader.read_uint64() == 1
        assert reader.remaining == 0


class TestCursor:
    """Tests for cursor movement and underflow."""

    def test_skip_advances_offset(self):
        reader = BinaryReader(bytes(10))
        reader.skip(4)
        assert reader.offset == 4
        assert reader.remaining == 6

    def test_underflow_raises_and_keeps_cursor(self):
        """A short read fails without consuming anything."""
        reader = BinaryReader(b"\x00\x01\x02")
        reader.skip(2)

        with pytest.raises(FormatError):
            reader.read_uint16()

        assert reader.offset == 2
        assert reader.read_uint8() == 2

    def test_skip_past_end_raises(self):
        reader = BinaryReader(b"\x00")
        with pytest.raises(FormatError):
            reader.skip(2)

    def test_sub_reader_is_independent(self):
        reader = BinaryReader(b"\x00\x01\x02\x03")
        sub = reader.sub_reader(2)

        assert reader.offset == 2
        assert sub.read_uint16() == 0x0001
        with pytest.raises(FormatError):
            sub.read_uint8()
        assert reader.read_uint16() == 0x0203

    def test_read_bytes_returns_copy(self):
        reader = BinaryReader(bytearray(b"abc"))
        assert reader.read_bytes(3) == b"abc"
