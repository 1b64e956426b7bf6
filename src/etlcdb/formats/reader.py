"""
Cursor-based reader over an in-memory byte buffer.

Every read is all-or-nothing: when fewer bytes remain than requested, the
reader raises FormatError and the cursor stays where it was.
"""

from __future__ import annotations

import struct
from typing import Literal

from etlcdb.errors import FormatError

ByteOrder = Literal["big", "little"]

_INT_CODES = {1: "b", 2: "h", 4: "i", 8: "q"}


class BinaryReader:
    """Sequential reader for fixed-width binary data."""

    def __init__(self, data: bytes | bytearray | memoryview) -> None:
        self._data = memoryview(data)
        self._offset = 0

    def __len__(self) -> int:
        return len(self._data)

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def remaining(self) -> int:
        return len(self._data) - self._offset

    def _take(self, size: int) -> memoryview:
        if size < 0:
            raise ValueError(f"Cannot read a negative number of bytes ({size})")
        if size > self.remaining:
            raise FormatError(
                f"Unexpected end of data at offset {self._offset}: "
                f"need {size} byte(s), {self.remaining} available"
            )
        chunk = self._data[self._offset : self._offset + size]
        self._offset += size
        return chunk

    def read_bytes(self, size: int) -> bytes:
        return self._take(size).tobytes()

    def skip(self, size: int) -> None:
        """Consume `size` bytes without decoding them."""
        self._take(size)

    def sub_reader(self, size: int) -> BinaryReader:
        """Carve the next `size` bytes into an independent reader."""
        return BinaryReader(self._take(size))

    def read_uint(self, size: int, byteorder: ByteOrder = "big") -> int:
        return int.from_bytes(self._take(size), byteorder, signed=False)

    def read_int(self, size: int, byteorder: ByteOrder = "big") -> int:
        if size not in _INT_CODES:
            raise ValueError(f"Unsupported integer width: {size}")
        prefix = ">" if byteorder == "big" else "<"
        return struct.unpack(prefix + _INT_CODES[size], self._take(size))[0]

    def read_uint8(self) -> int:
        return self.read_uint(1)

    def read_uint16(self, byteorder: ByteOrder = "big") -> int:
        return self.read_uint(2, byteorder)

    def read_uint32(self, byteorder: ByteOrder = "big") -> int:
        return self.read_uint(4, byteorder)

    def read_uint64(self, byteorder: ByteOrder = "big") -> int:
        return self.read_uint(8, byteorder)

    def read_int8(self) -> int:
        return self.read_int(1)

    def read_int16(self, byteorder: ByteOrder = "big") -> int:
        return self.read_int(2, byteorder)

    def read_int32(self, byteorder: ByteOrder = "big") -> int:
        return self.read_int(4, byteorder)

    def read_int64(self, byteorder: ByteOrder = "big") -> int:
        return self.read_int(8, byteorder)
