"""Buffer validation, grayscale reduction and image loading."""
from __future__ import annotations

from io import BytesIO

import numpy as np
import pytest
from PIL import Image

from photo_to_cad.errors import InvalidBufferError, PhotoToCADError
from photo_to_cad.image_processor import ImageProcessor, to_grayscale, validate_buffer

from conftest import rgba


class TestValidateBuffer:
    def test_accepts_rgba_uint8(self):
        buffer = rgba(4, 6)
        assert validate_buffer(buffer) is buffer

    def test_none_rejected(self):
        with pytest.raises(InvalidBufferError):
            validate_buffer(None)

    def test_rgb_rejected(self):
        with pytest.raises(InvalidBufferError):
            validate_buffer(np.zeros((4, 4, 3), dtype=np.uint8))

    def test_float_rejected(self):
        with pytest.raises(InvalidBufferError):
            validate_buffer(np.zeros((4, 4, 4), dtype=np.float64))

    def test_list_rejected(self):
        with pytest.raises(InvalidBufferError):
            validate_buffer([[0, 0, 0, 255]])

    def test_error_is_a_value_error(self):
        with pytest.raises(ValueError):
            validate_buffer(np.zeros((4, 4), dtype=np.uint8))
        assert issubclass(InvalidBufferError, PhotoToCADError)


class TestGrayscale:
    def test_primary_colors(self):
        buffer = rgba(1, 3)
        buffer[0, 0, :3] = (255, 0, 0)
        buffer[0, 1, :3] = (0, 255, 0)
        buffer[0, 2, :3] = (0, 0, 255)

        gray = to_grayscale(buffer)

        assert gray[0, :, 0].tolist() == [76, 150, 29]

    def test_channels_equal_luma(self):
        rng = np.random.default_rng(7)
        buffer = rng.integers(0, 256, size=(16, 16, 4), dtype=np.uint8)

        gray = to_grayscale(buffer)

        rgb = buffer[..., :3].astype(np.float64)
        expected = np.rint(0.299 * rgb[..., 0] + 0.587 * rgb[..., 1] + 0.114 * rgb[..., 2])
        assert np.array_equal(gray[..., 0], expected.astype(np.uint8))
        assert np.array_equal(gray[..., 0], gray[..., 1])
        assert np.array_equal(gray[..., 0], gray[..., 2])

    def test_alpha_preserved(self):
        buffer = rgba(3, 3, value=120, alpha=17)
        assert np.all(to_grayscale(buffer)[..., 3] == 17)

    def test_idempotent(self):
        rng = np.random.default_rng(11)
        buffer = rng.integers(0, 256, size=(8, 8, 4), dtype=np.uint8)
        once = to_grayscale(buffer)
        assert np.array_equal(to_grayscale(once), once)

    def test_input_not_modified(self):
        buffer = rgba(2, 2)
        buffer[0, 0, :3] = (10, 200, 30)
        before = buffer.copy()
        to_grayscale(buffer)
        assert np.array_equal(buffer, before)


def _png_bytes(width: int, height: int, mode: str = "RGB") -> bytes:
    out = BytesIO()
    Image.new(mode, (width, height), color="white").save(out, format="PNG")
    return out.getvalue()


class TestImageProcessor:
    def test_small_image_scaled_up_to_canvas(self):
        loaded = ImageProcessor.load_from_bytes(_png_bytes(100, 50))
        assert (loaded.width, loaded.height) == (500, 250)
        assert (loaded.original_width, loaded.original_height) == (100, 50)

    def test_large_image_scaled_down_to_canvas(self):
        loaded = ImageProcessor.load_from_bytes(_png_bytes(1000, 1000))
        assert (loaded.width, loaded.height) == (400, 400)

    def test_buffer_is_rgba(self):
        loaded = ImageProcessor.load_from_upload(BytesIO(_png_bytes(50, 40, mode="L")))
        assert loaded.buffer.shape == (400, 500, 4)
        assert loaded.buffer.dtype == np.uint8
        assert np.all(loaded.buffer[..., 3] == 255)

    def test_load_from_path(self, tmp_path):
        path = tmp_path / "photo.png"
        path.write_bytes(_png_bytes(250, 200))
        loaded = ImageProcessor.load_from_path(str(path))
        assert (loaded.width, loaded.height) == (500, 400)

    def test_to_image_round_trip(self):
        buffer = rgba(5, 7, value=42)
        image = ImageProcessor.to_image(buffer)
        assert image.size == (7, 5)
        assert np.array_equal(ImageProcessor.to_pixel_buffer(image), buffer)

    def test_to_bytes_is_png(self):
        data = ImageProcessor.to_bytes(Image.new("RGB", (4, 4)))
        assert data.startswith(b"\x89PNG")

    def test_buffer_to_png_bytes(self):
        buffer = rgba(6, 8, value=255)
        buffer[0, :, :] = 0
        data = ImageProcessor.to_bytes(ImageProcessor.to_image(buffer))
        loaded = Image.open(BytesIO(data))
        assert loaded.mode == "RGBA"
        assert np.array_equal(np.array(loaded), buffer)

    def test_uploads_always_fit_canvas(self):
        loaded = ImageProcessor.load_from_upload(BytesIO(_png_bytes(40, 40)))
        assert (loaded.width, loaded.height) == (400, 400)
