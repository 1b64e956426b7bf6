"""Tests for packed sample unpacking."""

import pytest

from etlcdb.errors import FormatError
from etlcdb.formats import ETL9G, samples_to_array, unpack_samples


class TestUnpackSamples:
    """Tests for unpack_samples()."""

    def test_high_nibble_first(self):
        assert unpack_samples(b"\x1f\x80", 2, 2) == bytes([16, 240, 128, 0])

    def test_brightest_nibble_maps_to_240(self):
        """Nibbles are scaled by 16, so the maximum is 240 rather than 255."""
        assert unpack_samples(b"\xff", 2, 1) == bytes([240, 240])

    def test_output_range_over_all_byte_values(self):
        packed = bytes(range(256))
        out = unpack_samples(packed, 32, 16)

        assert len(out) == 2 * len(packed)
        assert all(v % 16 == 0 for v in out)
        assert max(out) == 240

    def test_full_size_sample(self):
        packed = bytes((i * 13) % 256 for i in range(ETL9G.sample_byte_count))
        out = unpack_samples(packed, ETL9G.sample_width, ETL9G.sample_height)
        assert len(out) == ETL9G.sample_pixel_count

    def test_deterministic(self):
        packed = bytes(range(64))
        assert unpack_samples(packed, 16, 8) == unpack_samples(packed, 16, 8)

    def test_wrong_length_raises(self):
        with pytest.raises(FormatError, match="expected 4"):
            unpack_samples(b"\x00\x00\x00", 4, 2)

    def test_array_view_is_row_major(self):
        out = unpack_samples(b"\x12\x34", 2, 2)
        arr = samples_to_array(out, 2, 2)
        assert arr.shape == (2, 2)
        assert arr[0].tolist() == [16, 32]
        assert arr[1].tolist() == [48, 64]
