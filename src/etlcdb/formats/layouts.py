"""
Static record layouts for the ETL Character Database "G" formats.

A RecordLayout describes one archive variant: how big a record is, where each
field lives inside it, how large the packed sample image is, and how many
records the standard distribution ships per file. Layouts are created once at
import time and never mutated.

Reference:
    ETL8G: http://etlcdb.db.aist.go.jp/?page_id=2461
    ETL9G: http://etlcdb.db.aist.go.jp/?page_id=1711
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal

FieldKind = Literal["uint", "text", "samples", "reserved"]


class ETLFormat(str, Enum):
    """Format tags of the ETL Character Database."""

    ETL1 = "1"
    ETL2 = "2"
    ETL3 = "3"
    ETL4 = "4"
    ETL5 = "5"
    ETL6 = "6"
    ETL7 = "7"
    ETL8B = "8b"
    ETL8G = "8g"
    ETL9B = "9b"
    ETL9G = "9g"


@dataclass(frozen=True)
class FieldSpec:
    """
    One byte run inside a record.

    Attributes:
        name: Field name as it appears in the manifest (unused for reserved runs)
        offset: Byte offset from the start of the record
        width: Number of bytes
        kind: How the bytes are interpreted
    """

    name: str
    offset: int
    width: int
    kind: FieldKind


@dataclass(frozen=True)
class RecordLayout:
    """
    Immutable description of one archive format variant.

    Attributes:
        format: Format tag written to the manifest
        prefix: Archive file name prefix, also used for image names
        record_size: Size of one record in bytes
        sample_width: Width of the sample image in pixels
        sample_height: Height of the sample image in pixels
        file_count: Number of archive files in the distribution
        records_per_file: Records in every file but the last
        last_file_record_count: Records in the last file
        fields: Every byte run of the record, in layout order
    """

    format: ETLFormat
    prefix: str
    record_size: int
    sample_width: int
    sample_height: int
    file_count: int
    records_per_file: int
    last_file_record_count: int
    fields: tuple[FieldSpec, ...]

    @property
    def sample_pixel_count(self) -> int:
        return self.sample_width * self.sample_height

    @property
    def sample_byte_count(self) -> int:
        return self.sample_pixel_count // 2

    @property
    def manifest_name(self) -> str:
        return f"{self.prefix.lower()}.json"

    def metadata_fields(self) -> tuple[FieldSpec, ...]:
        """Fields that end up in the manifest (everything but samples and reserved runs)."""
        return tuple(f for f in self.fields if f.kind in ("uint", "text"))

    def expected_record_total(self, file_count: int | None = None) -> int:
        """
        Number of records a run over `file_count` archives must produce.

        Every file holds `records_per_file` records except the last one, which
        holds `last_file_record_count`.
        """
        n = self.file_count if file_count is None else file_count
        if n <= 0:
            return 0
        return (n - 1) * self.records_per_file + self.last_file_record_count

    def records_in_archive(self, name: str) -> int:
        """
        Number of records the archive file `name` must hold.

        Only the distribution's final file (e.g. ETL8G_33) is short.
        """
        if name == self.archive_name(self.file_count):
            return self.last_file_record_count
        return self.records_per_file

    def archive_name(self, index: int) -> str:
        """File name of the `index`-th archive (1-based), e.g. ETL9G_07."""
        return f"{self.prefix}_{index:02d}"


def _build_fields(header: list[tuple[str, int, FieldKind]]) -> tuple[FieldSpec, ...]:
    fields = []
    offset = 0
    for i, (name, width, kind) in enumerate(header):
        if kind == "reserved" and not name:
            name = f"reserved_{i}"
        fields.append(FieldSpec(name=name, offset=offset, width=width, kind=kind))
        offset += width
    return tuple(fields)


_METADATA_FIELDS: list[tuple[str, int, FieldKind]] = [
    ("serial_sheet_number", 2, "uint"),
    ("jis_character_code", 2, "uint"),
    ("jis_typical_reading", 8, "text"),
    ("serial_data_number", 4, "uint"),
    ("quality_evaluation_of_individual_character_image", 1, "uint"),
    ("quality_evaluation_of_character_group", 1, "uint"),
    ("gender_of_writer", 1, "uint"),
    ("age_of_writer", 1, "uint"),
    ("industry_classification_code", 2, "uint"),
    ("occupation_classification_code", 2, "uint"),
    ("date_of_collection", 2, "uint"),
    ("date_of_scan", 2, "uint"),
    ("x_coordinate_of_sample_on_sheet", 1, "uint"),
    ("y_coordinate_of_sample_on_sheet", 1, "uint"),
]

# 128x127 4-bit samples -> 8128 packed bytes
_G_SAMPLE_BYTES = 128 * 127 // 2


ETL8G = RecordLayout(
    format=ETLFormat.ETL8G,
    prefix="ETL8G",
    record_size=8199,
    sample_width=128,
    sample_height=127,
    file_count=33,
    records_per_file=4780,
    last_file_record_count=956,
    fields=_build_fields(
        _METADATA_FIELDS
        + [
            ("", 30, "reserved"),
            ("samples", _G_SAMPLE_BYTES, "samples"),
            ("", 11, "reserved"),
        ]
    ),
)

ETL9G = RecordLayout(
    format=ETLFormat.ETL9G,
    prefix="ETL9G",
    record_size=8199,
    sample_width=128,
    sample_height=127,
    file_count=50,
    records_per_file=12144,
    last_file_record_count=12144,
    fields=_build_fields(
        _METADATA_FIELDS
        + [
            ("", 34, "reserved"),
            ("samples", _G_SAMPLE_BYTES, "samples"),
            ("", 7, "reserved"),
        ]
    ),
)

LAYOUTS: dict[str, RecordLayout] = {
    "etl8g": ETL8G,
    "etl9g": ETL9G,
}


def get_layout(name: str) -> RecordLayout:
    """
    Look up a built-in layout by name (case-insensitive, e.g. "ETL9G" or "9g").

    Raises:
        ValueError: If no layout with that name exists
    """
    key = name.strip().lower()
    if not key.startswith("etl"):
        key = f"etl{key}"
    try:
        return LAYOUTS[key]
    except KeyError:
        known = ", ".join(sorted(LAYOUTS))
        raise ValueError(f"Unknown archive format {name!r} (known: {known})") from None
