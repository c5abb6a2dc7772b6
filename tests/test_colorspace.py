"""
Tests for color space helpers and the pixel buffer.
"""

import pytest
import numpy as np

from framegrade.errors import BufferShapeError
from framegrade.processing.buffer import PixelBuffer, mask_to_buffer, quantize
from framegrade.processing.color.colorspace import (
    srgb_to_linear, linear_to_srgb, smoothstep, luminance, rgb_to_hsl, hsl_to_rgb,
    temperature_to_rgb, color_distance, MAX_RGB_DISTANCE
)


class TestTransferFunctions:
    """sRGB encode/decode."""

    def test_linear_segment(self):
        assert float(srgb_to_linear(0.04)) == pytest.approx(0.04 / 12.92)

    def test_power_segment(self):
        assert float(srgb_to_linear(0.5)) == pytest.approx(((0.5 + 0.055) / 1.055) ** 2.4)

    def test_round_trip_is_stable(self):
        values = np.linspace(0, 1, 101)
        np.testing.assert_allclose(linear_to_srgb(srgb_to_linear(values)), values, atol=1e-9)

    def test_endpoints(self):
        assert float(srgb_to_linear(0.0)) == 0.0
        assert float(srgb_to_linear(1.0)) == pytest.approx(1.0)


class TestSmoothstep:

    def test_clamps_outside_edges(self):
        assert float(smoothstep(0.2, 0.8, 0.0)) == 0.0
        assert float(smoothstep(0.2, 0.8, 1.0)) == 1.0

    def test_midpoint(self):
        assert float(smoothstep(0.0, 1.0, 0.5)) == pytest.approx(0.5)

    def test_hermite_shape(self):
        assert float(smoothstep(0.0, 1.0, 0.25)) == pytest.approx(0.25 ** 2 * (3 - 0.5))


class TestHSL:
    """RGB <-> HSL conversion."""

    def test_achromatic_has_zero_hue_and_saturation(self):
        h, s, l = rgb_to_hsl(0.4, 0.4, 0.4)
        assert float(h) == 0.0
        assert float(s) == 0.0
        assert float(l) == pytest.approx(0.4)

    def test_primaries(self):
        assert float(rgb_to_hsl(1.0, 0.0, 0.0)[0]) == pytest.approx(0.0)
        assert float(rgb_to_hsl(0.0, 1.0, 0.0)[0]) == pytest.approx(1 / 3)
        assert float(rgb_to_hsl(0.0, 0.0, 1.0)[0]) == pytest.approx(2 / 3)

    def test_round_trip(self):
        rng = np.random.default_rng(0)
        rgb = rng.random((200, 3))
        h, s, l = rgb_to_hsl(rgb[:, 0], rgb[:, 1], rgb[:, 2])
        r, g, b = hsl_to_rgb(h, s, l)
        np.testing.assert_allclose(np.stack([r, g, b], axis=-1), rgb, atol=1e-9)


class TestMisc:

    def test_luminance_weights(self):
        assert luminance(255, 255, 255) == pytest.approx(255.0)
        assert luminance(100, 0, 0) == pytest.approx(29.9)

    def test_color_distance_max(self):
        rgb = np.array([[[255, 255, 255]]], dtype=np.uint8)
        assert float(color_distance(rgb, (0, 0, 0))[0, 0]) == pytest.approx(MAX_RGB_DISTANCE, rel=1e-6)
        assert MAX_RGB_DISTANCE == pytest.approx(441.67, abs=0.01)

    def test_temperature_is_warm_below_6600(self):
        r, g, b = temperature_to_rgb(3000)
        assert r == 1.0
        assert b < g < r

    def test_temperature_is_cool_above_6600(self):
        r, g, b = temperature_to_rgb(10000)
        assert b == 1.0
        assert r < 1.0


class TestPixelBuffer:
    """Buffer construction and surface management."""

    def test_rejects_wrong_shape(self):
        with pytest.raises(BufferShapeError):
            PixelBuffer(np.zeros((4, 4, 3), dtype=np.uint8))

    def test_rejects_wrong_dtype(self):
        with pytest.raises(BufferShapeError):
            PixelBuffer(np.zeros((4, 4, 4), dtype=np.float32))

    def test_from_rgb_array_adds_opaque_alpha(self):
        buf = PixelBuffer.from_array(np.full((3, 5, 3), 7, dtype=np.uint8))
        assert (buf.width, buf.height) == (5, 3)
        assert np.all(buf.alpha == 255)
        assert np.all(buf.pixels[:, :, :3] == 7)

    def test_from_gray_and_float(self):
        buf = PixelBuffer.from_array(np.full((2, 2), 0.5, dtype=np.float32))
        assert np.all(buf.pixels[:, :, :3] == 128)

    def test_from_uint16(self):
        buf = PixelBuffer.from_array(np.full((2, 2, 3), 65535, dtype=np.uint16))
        assert np.all(buf.pixels[:, :, :3] == 255)

    def test_with_rgb_keeps_alpha_and_input(self, random_image):
        original = random_image.pixels.copy()
        out = random_image.with_rgb(np.zeros(random_image.shape + (3,), dtype=np.float32))
        assert out is not random_image
        np.testing.assert_array_equal(out.alpha, random_image.alpha)
        np.testing.assert_array_equal(random_image.pixels, original)
        assert np.all(out.pixels[:, :, :3] == 0)

    def test_resize_and_clear(self):
        buf = PixelBuffer.blank(2, 2, (1, 2, 3, 4))
        buf.resize(6, 3)
        assert buf.shape == (3, 6)
        assert not buf.pixels.any()
        buf.clear((9, 9, 9, 9))
        assert np.all(buf.pixels == 9)

    def test_quantize_rounds_and_clamps(self):
        np.testing.assert_array_equal(quantize(np.array([-3.0, 1.4, 1.6, 300.0])),
                                      np.array([0, 1, 2, 255], dtype=np.uint8))

    def test_mask_to_buffer(self):
        raster = mask_to_buffer(np.array([[0.0, 0.5, 1.0]], dtype=np.float32))
        np.testing.assert_array_equal(raster.pixels[0, :, 0], [0, 128, 255])
        np.testing.assert_array_equal(raster.pixels[0, :, 1], raster.pixels[0, :, 2])
        assert np.all(raster.alpha == 255)


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
