"""Tests for record decoding."""

import hashlib
import json

import pytest

from etlcdb.errors import FormatError
from etlcdb.formats import (
    ETL8G,
    ETL9G,
    RecordDecoder,
    image_name,
    jis0208_character,
    read_archive,
    unpack_samples,
)

from archive_builders import encode_record, packed_samples, small_layout, write_archives


class TestDecode:
    """Tests for RecordDecoder.decode()."""

    def test_decodes_metadata_fields(self):
        window = encode_record(
            ETL9G, sheet=2001, code=0x2422, reading=b"A", serial=123456,
            quality_image=1, quality_group=2, gender=2, age=31,
            industry=45, occupation=67, collected=7701, scanned=7712, x=9, y=11,
        )
        record = RecordDecoder(ETL9G).decode(window)

        assert record.serial_sheet_number == 2001
        assert record.jis_character_code == 0x2422
        assert record.jis_typical_reading == "A"
        assert record.serial_data_number == 123456
        assert record.quality_evaluation_of_individual_character_image == 1
        assert record.quality_evaluation_of_character_group == 2
        assert record.gender_of_writer == 2
        assert record.age_of_writer == 31
        assert record.industry_classification_code == 45
        assert record.occupation_classification_code == 67
        assert record.date_of_collection == 7701
        assert record.date_of_scan == 7712
        assert record.x_coordinate_of_sample_on_sheet == 9
        assert record.y_coordinate_of_sample_on_sheet == 11

    def test_derived_fields(self):
        window = encode_record(ETL8G, code=0x3021, seed=3)
        record = RecordDecoder(ETL8G).decode(window)

        pixels = unpack_samples(packed_samples(ETL8G, 3), 128, 127)
        digest = hashlib.sha256(pixels).hexdigest()

        assert record.format.value == "8g"
        assert record.character == "亜"
        assert record.pixels == pixels
        assert record.image_hash == digest
        assert record.image_name == f"ETL8G_0x3021_{digest}.png"
        assert (record.image_width, record.image_height) == (128, 127)

    def test_reading_is_trimmed(self):
        window = encode_record(ETL9G, reading=b"  KA    ")
        record = RecordDecoder(ETL9G).decode(window)
        assert record.jis_typical_reading == "KA"

    def test_reserved_runs_are_ignored(self):
        """Garbage in reserved runs does not change the record."""
        clean = bytearray(encode_record(ETL9G))
        dirty = bytearray(clean)
        dirty[30:64] = b"\xaa" * 34
        dirty[-7:] = b"\x55" * 7

        decoder = RecordDecoder(ETL9G)
        assert decoder.decode(bytes(clean)) == decoder.decode(bytes(dirty))

    def test_decode_is_deterministic(self):
        window = encode_record(ETL9G, seed=11)
        decoder = RecordDecoder(ETL9G)
        first = decoder.decode(window)
        second = decoder.decode(window)
        assert first == second
        assert first.metadata_json() == second.metadata_json()

    def test_custom_lookup(self):
        decoder = RecordDecoder(ETL9G, lookup=lambda code: f"<{code:x}>")
        record = decoder.decode(encode_record(ETL9G, code=0x4B4F))
        assert record.character == "<4b4f>"


class TestTruncatedInput:
    """Tests for windows that do not match the record size."""

    def test_short_window_raises_format_error(self):
        window = encode_record(ETL9G)[:-1]
        with pytest.raises(FormatError) as exc_info:
            RecordDecoder(ETL9G).decode(window, source="ETL9G_01", record_index=4)

        assert exc_info.value.path == "ETL9G_01"
        assert exc_info.value.record_index == 4

    def test_header_only_window(self):
        with pytest.raises(FormatError):
            RecordDecoder(ETL9G).decode(encode_record(ETL9G)[:30])

    def test_long_window_raises_format_error(self):
        with pytest.raises(FormatError):
            RecordDecoder(ETL9G).decode(encode_record(ETL9G) + b"\x00")


class TestDecoderConstruction:
    """Tests for layout checks at construction time."""

    def test_invalid_layout_rejected(self):
        import dataclasses

        with pytest.raises(ValueError, match="Invalid layout"):
            RecordDecoder(dataclasses.replace(ETL9G, record_size=1))


class TestMetadataProjection:
    """Tests for Record serialization."""

    def test_pixels_are_not_serialized(self):
        record = RecordDecoder(ETL9G).decode(encode_record(ETL9G))
        data = json.loads(record.metadata_json())

        assert "pixels" not in data
        assert "image_hash" not in data
        assert list(data)[:5] == ["format", "character", "image_name", "image_width", "image_height"]
        assert data["format"] == "9g"

    def test_release_pixels(self):
        record = RecordDecoder(ETL9G).decode(encode_record(ETL9G))
        before = record.metadata_json()
        record.release_pixels()

        assert record.pixels is None
        assert record.metadata_json() == before


class TestLabels:
    """Tests for the JIS X 0208 lookup."""

    def test_known_characters(self):
        assert jis0208_character(0x3021) == "亜"
        assert jis0208_character(0x2422) == "あ"

    def test_out_of_range_codes(self):
        assert jis0208_character(0x0041) == ""
        assert jis0208_character(0x7F7F) == ""

    def test_image_name_format(self):
        assert image_name("ETL9G", 0x3021, "abc") == "ETL9G_0x3021_abc.png"

    def test_image_name_extension(self):
        assert image_name("ETL9G", 0x3021, "abc", ".bmp") == "ETL9G_0x3021_abc.bmp"


class TestReadArchive:
    """Tests for read_archive()."""

    def test_reads_every_record(self, tmp_path):
        layout = small_layout(ETL9G, file_count=1, records_per_file=4)
        (path,) = write_archives(layout, tmp_path)

        records = read_archive(path, layout)

        assert len(records) == 4
        assert [r.serial_data_number for r in records] == [0, 1, 2, 3]
        assert all(r.pixels is not None for r in records)

    def test_trailing_partial_record(self, tmp_path):
        path = tmp_path / "ETL9G_01"
        path.write_bytes(encode_record(ETL9G) + b"\x00" * 100)

        with pytest.raises(FormatError) as exc_info:
            read_archive(path, ETL9G)

        assert exc_info.value.record_index == 1
        assert exc_info.value.path == str(path)

    def test_missing_file(self, tmp_path):
        from etlcdb.errors import DatasetIOError

        with pytest.raises(DatasetIOError):
            read_archive(tmp_path / "nope", ETL9G)
