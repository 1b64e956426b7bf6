"""Packed 4-bit grayscale sample unpacking."""

from __future__ import annotations

import numpy as np

from etlcdb.errors import FormatError

# 4-bit -> 8-bit scale factor (256 / 16); brightest nibble maps to 240, not 255
NIBBLE_SCALE = 16


def unpack_samples(packed: bytes, width: int, height: int) -> bytes:
    """
    Expand packed 4-bit samples into one byte per pixel.

    Each input byte holds two pixels, high nibble first. Nibble values are
    scaled by 16, so the output only contains multiples of 16 in [0, 240].

    Parameters:
        packed: Exactly width*height/2 packed bytes
        width: Image width in pixels
        height: Image height in pixels

    Returns:
        width*height grayscale bytes, row-major

    Raises:
        FormatError: If the packed buffer has the wrong length

    Example:
        >>> unpack_samples(b"\\x1f", 2, 1)
        b'\\x10\\xf0'
    """
    expected = (width * height) // 2
    if len(packed) != expected:
        raise FormatError(
            f"Packed sample buffer is {len(packed)} bytes, expected {expected} "
            f"for a {width}x{height} image"
        )

    src = np.frombuffer(packed, dtype=np.uint8)
    out = np.empty(src.size * 2, dtype=np.uint8)
    out[0::2] = src >> 4
    out[1::2] = src & 0x0F
    out *= NIBBLE_SCALE
    return out.tobytes()


def samples_to_array(pixels: bytes, width: int, height: int) -> np.ndarray:
    """View an unpacked pixel buffer as a (height, width) uint8 array."""
    return np.frombuffer(pixels, dtype=np.uint8).reshape(height, width)
