"""
Record decoding.

One decoder handles every archive variant: the RecordLayout says which byte
runs to read and how, the decoder walks them in order. Decoding a record is
all-or-nothing; if any field underflows, FormatError is raised and no Record
is produced.
"""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Any

from etlcdb.errors import FormatError

from .labels import CharacterLookup, jis0208_character
from .layouts import FieldSpec, RecordLayout
from .models import Record, image_name
from .pixels import unpack_samples
from .reader import BinaryReader
from .validation import validate_layout

_DERIVED_FIELDS = {"format", "character", "image_name", "image_width", "image_height", "image_hash", "pixels"}
_RECORD_METADATA = set(Record.model_fields) - _DERIVED_FIELDS


class RecordDecoder:
    """
    Decoder for fixed-size records described by a RecordLayout.

    Example:
        >>> decoder = RecordDecoder(ETL9G)
        >>> record = decoder.decode(data[:ETL9G.record_size])
        >>> record.image_name
        'ETL9G_0x3021_...png'
    """

    def __init__(
        self,
        layout: RecordLayout,
        lookup: CharacterLookup | None = None,
        *,
        extension: str = ".png",
    ) -> None:
        issues = validate_layout(layout)
        if issues:
            details = "; ".join(f"{i.path}: {i.message}" for i in issues)
            raise ValueError(f"Invalid layout {layout.prefix}: {details}")

        names = {f.name for f in layout.metadata_fields()}
        if names != _RECORD_METADATA:
            missing = sorted(_RECORD_METADATA - names)
            extra = sorted(names - _RECORD_METADATA)
            raise ValueError(
                f"Layout {layout.prefix} fields do not match Record "
                f"(missing: {missing}, unexpected: {extra})"
            )

        self.layout = layout
        self.lookup = lookup or jis0208_character
        self.extension = extension

    @property
    def record_size(self) -> int:
        return self.layout.record_size

    def decode(
        self,
        window: bytes | memoryview,
        *,
        source: Path | str | None = None,
        record_index: int | None = None,
    ) -> Record:
        """
        Decode exactly one record-sized byte window.

        Parameters:
            window: Bytes of one record
            source: Archive path, used in error messages
            record_index: Position of the record in its archive

        Raises:
            FormatError: If the window is not exactly record_size bytes
        """
        if len(window) != self.layout.record_size:
            raise FormatError(
                f"Record window is {len(window)} bytes, expected {self.layout.record_size}",
                path=source,
                record_index=record_index,
            )
        try:
            return self.decode_stream(BinaryReader(window))
        except FormatError as e:
            raise e.at(path=source, record_index=record_index) from e

    def decode_stream(self, reader: BinaryReader) -> Record:
        """
        Decode the next record from a reader.

        The reader only advances when a full record is available.
        """
        body = reader.sub_reader(self.layout.record_size)

        values: dict[str, Any] = {}
        pixels = b""
        for field in self.layout.fields:
            if field.kind == "reserved":
                body.skip(field.width)
            elif field.kind == "samples":
                pixels = unpack_samples(
                    body.read_bytes(field.width),
                    self.layout.sample_width,
                    self.layout.sample_height,
                )
            else:
                values[field.name] = _read_field(body, field)

        code = values["jis_character_code"]
        digest = hashlib.sha256(pixels).hexdigest()
        return Record(
            format=self.layout.format,
            character=self.lookup(code),
            image_name=image_name(self.layout.prefix, code, digest, self.extension),
            image_width=self.layout.sample_width,
            image_height=self.layout.sample_height,
            image_hash=digest,
            pixels=pixels,
            **values,
        )


def _read_field(reader: BinaryReader, field: FieldSpec) -> int | str:
    if field.kind == "uint":
        return reader.read_uint(field.width)
    # text
    raw = reader.read_bytes(field.width)
    return raw.decode("ascii", errors="replace").strip()
