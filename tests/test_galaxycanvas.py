"""Tests for canvas blob encoding and decoding."""

import io

import numpy as np
import pytest
from PIL import Image

from galaxycanvas import (
    convert_blob_to_image_data,
    encode_image,
    image_from_array,
    make_blank_image,
    normalize_image,
)


def decode(blob):
    return Image.open(io.BytesIO(blob))


class TestCanvasBlobs:

    def test_blank_image(self):
        img = decode(make_blank_image(40, 30))
        assert img.size == (40, 30)
        assert img.mode == "RGBA"
        assert img.getextrema()[3] == (0, 0)

    def test_image_from_array(self):
        gray = np.full((4, 6), 200, dtype=np.uint8)
        img = decode(image_from_array(gray))
        assert img.mode == "L"
        assert img.size == (6, 4)

    def test_decode_shape_and_readonly(self, square_canvas):
        rgba = convert_blob_to_image_data(square_canvas)
        assert rgba.shape == (1000, 1000, 4)
        assert rgba.dtype == np.uint8
        assert rgba[500, 500].tolist() == [255, 255, 255, 255]
        assert rgba[10, 10].tolist() == [0, 0, 0, 255]
        with pytest.raises(ValueError):
            rgba[0, 0, 0] = 1

    def test_decode_scales_to_canvas(self):
        small = image_from_array(np.full((10, 20), 255, dtype=np.uint8))
        rgba = convert_blob_to_image_data(small, width=100, height=50)
        assert rgba.shape == (50, 100, 4)
        assert np.all(rgba[..., :3] == 255)

    def test_decode_is_deterministic(self, square_canvas):
        np.testing.assert_array_equal(
            convert_blob_to_image_data(square_canvas),
            convert_blob_to_image_data(square_canvas),
        )

    def test_decode_other_formats(self):
        blob = encode_image(Image.new("RGB", (8, 8), (10, 20, 30)), fmt="BMP")
        rgba = convert_blob_to_image_data(blob, width=8, height=8)
        assert rgba[0, 0].tolist() == [10, 20, 30, 255]

    def test_garbage_blob(self):
        with pytest.raises(OSError):
            convert_blob_to_image_data(b"not an image")


class TestNormalizeImage:
    """Test turning arbitrary pictures into opaque grayscale canvases."""

    def test_transparency_becomes_black(self):
        rgba = np.zeros((10, 10, 4), dtype=np.uint8)
        rgba[:5] = [255, 255, 255, 255]
        img = decode(normalize_image(image_from_array(rgba), width=10, height=10))
        assert img.mode == "L"
        arr = np.array(img)
        assert np.all(arr[:5] == 255)
        assert np.all(arr[5:] == 0)

    def test_reads_from_path(self, tmp_path):
        path = tmp_path / "density.png"
        Image.new("RGB", (20, 20), (255, 255, 255)).save(path)
        img = decode(normalize_image(str(path), width=50, height=40))
        assert img.size == (50, 40)
        assert np.all(np.array(img) == 255)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            normalize_image(str(tmp_path / "missing.png"))
