"""
Sample image encoding.

Turns unpacked grayscale sample buffers into image files through a pluggable
codec. PNG via Pillow is the default.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from PIL import Image

from etlcdb.errors import EncodeError
from etlcdb.formats.pixels import samples_to_array

LOGGER = logging.getLogger("etlcdb.imaging")


class ImageCodec(Protocol):
    """Minimal interface for a lossless image encoder."""

    name: str
    extension: str

    def encode(self, image: Image.Image) -> bytes:
        ...


@dataclass
class PngCodec:
    """PNG encoder backed by Pillow.

    Compression level 9 is zlib's best compression; PNG is lossless at every
    level, so this only trades encode time for file size.
    """

    name: str = "png"
    extension: str = ".png"
    compress_level: int = 9

    def encode(self, image: Image.Image) -> bytes:
        buf = io.BytesIO()
        image.save(buf, format="PNG", compress_level=self.compress_level)
        return buf.getvalue()


def materialize_image(
    pixels: bytes,
    *,
    name: str,
    size: tuple[int, int],
    output_dir: Path,
    output_size: tuple[int, int] | None = None,
    codec: ImageCodec | None = None,
) -> Path:
    """Encode a grayscale pixel buffer and write it to `output_dir/name`.

    `size` is the buffer's native (width, height). When `output_size` differs
    from it the image is resized with a Lanczos filter first.

    Raises:
        EncodeError: If encoding fails or the file cannot be written
    """
    codec = codec or PngCodec()
    width, height = size
    target = output_size or size
    out_path = output_dir / name

    try:
        image = Image.fromarray(samples_to_array(pixels, width, height))
        if target != size:
            image = image.resize(target, Image.Resampling.LANCZOS)
        data = codec.encode(image)
    except (OSError, ValueError) as e:
        raise EncodeError(f"Cannot encode {name} as {codec.name}: {e}", path=out_path) from e

    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        out_path.write_bytes(data)
    except OSError as e:
        raise EncodeError(f"Cannot write image: {e.strerror or e}", path=out_path) from e

    LOGGER.debug("image_written", extra={"image_path": str(out_path), "bytes": len(data)})
    return out_path
