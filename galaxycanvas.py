"""
galaxycanvas.py
===============
Conversion between the project's canvas blob and pixel data.

The canvas is stored as opaque encoded image bytes (PNG by default).  The
generator only ever sees it through ``convert_blob_to_image_data``, which
decodes the blob, scales it to the canvas size and returns an immutable
``(height, width, 4)`` uint8 RGBA snapshot.  Decoding is deterministic for a
fixed input blob.
"""

from __future__ import annotations

import io
from typing import Union

import numpy as np
from PIL import Image

from galaxymodel import CANVAS_HEIGHT, CANVAS_WIDTH


def make_blank_image(width: int = CANVAS_WIDTH, height: int = CANVAS_HEIGHT) -> bytes:
    """A fully transparent PNG of the given size."""
    img = Image.new("RGBA", (width, height), (0, 0, 0, 0))
    return encode_image(img)


def encode_image(img: Image.Image, fmt: str = "PNG") -> bytes:
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


def image_from_array(rgba: np.ndarray) -> bytes:
    """Encode an ``(h, w, 4)`` or ``(h, w)`` uint8 array as a PNG blob."""
    arr = np.ascontiguousarray(rgba, dtype=np.uint8)
    return encode_image(Image.fromarray(arr))


def _open_scaled(blob: bytes, width: int, height: int) -> Image.Image:
    img = Image.open(io.BytesIO(blob))
    img.load()
    img = img.convert("RGBA")
    if img.size != (width, height):
        img = img.resize((width, height), Image.Resampling.BILINEAR)
    return img


def normalize_image(
    source: Union[str, bytes],
    width: int = CANVAS_WIDTH,
    height: int = CANVAS_HEIGHT,
) -> bytes:
    """Turn any image (path or bytes) into a grayscale density canvas.

    The result is scaled to the canvas size and fully opaque, so pixel
    brightness alone carries the density.
    """
    if isinstance(source, str):
        with open(source, "rb") as f:
            source = f.read()
    img = _open_scaled(source, width, height)
    background = Image.new("RGBA", img.size, (0, 0, 0, 255))
    gray = Image.alpha_composite(background, img).convert("L")
    return encode_image(gray)


def convert_blob_to_image_data(
    blob: bytes,
    width: int = CANVAS_WIDTH,
    height: int = CANVAS_HEIGHT,
) -> np.ndarray:
    """Decode *blob* into a read-only ``(height, width, 4)`` uint8 RGBA array."""
    rgba = np.array(_open_scaled(blob, width, height), dtype=np.uint8)
    rgba.setflags(write=False)
    return rgba
