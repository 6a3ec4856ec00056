"""Tests for image export.

Tests cover:
- PNG writing through Pillow
- Input validation for save_png
- Encoding linear color to 8 bits
- RMSE comparison
"""

import numpy as np
import pytest
from PIL import Image


class TestSavePng:
    """Tests for save_png."""

    def test_round_trip(self, tmp_path):
        from pathtracer.preview import save_png

        pixels = np.zeros((4, 6, 3), dtype=np.uint8)
        pixels[0, :, 2] = 255  # blue top row
        pixels[3, 5] = (10, 20, 30)

        path = tmp_path / "image.png"
        save_png(pixels, path)

        with Image.open(path) as img:
            assert img.format == "PNG"
            assert img.mode == "RGB"
            assert img.size == (6, 4)
            loaded = np.asarray(img)
        np.testing.assert_array_equal(loaded, pixels)

    def test_accepts_string_path(self, tmp_path):
        from pathtracer.preview import save_png

        path = str(tmp_path / "image.png")
        save_png(np.full((2, 2, 3), 128, dtype=np.uint8), path)
        with Image.open(path) as img:
            assert img.size == (2, 2)

    @pytest.mark.parametrize("shape", [(4, 4), (4, 4, 4), (4, 4, 1)])
    def test_rejects_bad_shape(self, tmp_path, shape):
        from pathtracer.preview import save_png

        with pytest.raises(ValueError):
            save_png(np.zeros(shape, dtype=np.uint8), tmp_path / "bad.png")

    def test_rejects_float_image(self, tmp_path):
        from pathtracer.preview import save_png

        with pytest.raises(ValueError):
            save_png(np.zeros((4, 4, 3), dtype=np.float64), tmp_path / "bad.png")


class TestImageToUint8:
    """Tests for image_to_uint8."""

    def test_gamma_and_scaling(self):
        from pathtracer.preview import image_to_uint8

        linear = np.array([[[0.0, 0.25, 1.0], [4.0, 0.0, 0.01]]])
        encoded = image_to_uint8(linear)
        assert encoded.dtype == np.uint8
        # sqrt(0.25) * 255.99 = 127.995; 1.0 and above clamp to 0.999
        np.testing.assert_array_equal(encoded, [[[0, 127, 255], [255, 0, 25]]])

    def test_rejects_bad_shape(self):
        from pathtracer.preview import image_to_uint8

        with pytest.raises(ValueError):
            image_to_uint8(np.zeros((3, 3)))


class TestComputeRmse:
    """Tests for compute_rmse."""

    def test_identical_images(self):
        from pathtracer.preview import compute_rmse

        image = np.random.default_rng(0).integers(0, 256, size=(5, 5, 3), dtype=np.uint8)
        assert compute_rmse(image, image) == 0.0

    def test_uint8_does_not_wrap(self):
        from pathtracer.preview import compute_rmse

        a = np.zeros((2, 2, 3), dtype=np.uint8)
        b = np.full((2, 2, 3), 10, dtype=np.uint8)
        assert compute_rmse(a, b) == pytest.approx(10.0)

    def test_shape_mismatch(self):
        from pathtracer.preview import compute_rmse

        with pytest.raises(ValueError):
            compute_rmse(np.zeros((2, 2, 3)), np.zeros((2, 3, 3)))


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
