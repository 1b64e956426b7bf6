"""
Pydantic model for decoded archive records.

A Record holds one sample's metadata plus, transiently, its unpacked pixel
buffer. Only metadata is serialized: the pixel buffer and content hash are
excluded, so `metadata_json()` is exactly what gets staged and written to the
manifest.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from .layouts import ETLFormat


def image_name(prefix: str, character_code: int, image_hash: str, extension: str = ".png") -> str:
    """
    Deterministic image file name for a sample.

    `extension` follows the image codec that writes the file.

    Example:
        >>> image_name("ETL9G", 0x3021, "ab12")
        'ETL9G_0x3021_ab12.png'
    """
    return f"{prefix}_0x{character_code:x}_{image_hash}{extension}"


class Record(BaseModel):
    """
    One decoded handwriting sample.

    Field order is the manifest's key order.
    """

    model_config = ConfigDict(extra="forbid")

    format: ETLFormat
    character: str
    image_name: str
    image_width: int
    image_height: int

    serial_sheet_number: int
    jis_character_code: int
    jis_typical_reading: str
    serial_data_number: int
    quality_evaluation_of_individual_character_image: int
    quality_evaluation_of_character_group: int
    gender_of_writer: int
    age_of_writer: int
    industry_classification_code: int
    occupation_classification_code: int
    date_of_collection: int
    date_of_scan: int
    x_coordinate_of_sample_on_sheet: int
    y_coordinate_of_sample_on_sheet: int

    image_hash: str = Field(exclude=True, repr=False)
    pixels: bytes | None = Field(default=None, exclude=True, repr=False)

    @property
    def key(self) -> str:
        """Staging key, unique across all records of a run."""
        return self.image_name

    def release_pixels(self) -> None:
        """Drop the pixel buffer once the image has been written."""
        self.pixels = None

    def metadata_json(self) -> str:
        """Metadata-only projection as compact JSON."""
        return self.model_dump_json()
