"""
ETL Character Database archive formats.

This package describes the binary layouts of the ETL "G" archives and decodes
their records into pydantic models.

Basic usage:
    >>> from etlcdb.formats import ETL9G, RecordDecoder
    >>>
    >>> decoder = RecordDecoder(ETL9G)
    >>> record = decoder.decode(window)
    >>> print(record.character, record.image_name)

Reading a whole archive:
    >>> from etlcdb.formats import read_archive
    >>>
    >>> for record in read_archive("ETL9G/ETL9G_01", ETL9G):
    ...     print(record.jis_typical_reading)
"""

from .layouts import (
    ETLFormat,
    FieldSpec,
    RecordLayout,
    ETL8G,
    ETL9G,
    LAYOUTS,
    get_layout,
)
from .validation import LayoutIssue, validate_layout
from .reader import BinaryReader
from .pixels import unpack_samples, samples_to_array, NIBBLE_SCALE
from .labels import CharacterLookup, jis0208_character
from .models import Record, image_name
from .decoder import RecordDecoder
from .archive import read_archive, iter_windows

__all__ = [
    # Layouts
    "ETLFormat",
    "FieldSpec",
    "RecordLayout",
    "ETL8G",
    "ETL9G",
    "LAYOUTS",
    "get_layout",
    # Validation
    "LayoutIssue",
    "validate_layout",
    # Decoding
    "BinaryReader",
    "unpack_samples",
    "samples_to_array",
    "NIBBLE_SCALE",
    "CharacterLookup",
    "jis0208_character",
    "Record",
    "image_name",
    "RecordDecoder",
    # Archives
    "read_archive",
    "iter_windows",
]
