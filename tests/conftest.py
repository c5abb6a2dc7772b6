"""
Shared fixtures for FrameGrade tests.
"""

import pytest
import numpy as np

from framegrade.processing.buffer import PixelBuffer


def buffer_from_rgb(rgb, alpha=255) -> PixelBuffer:
    """Build a buffer from an (H, W, 3) nested list or array."""
    rgb = np.asarray(rgb, dtype=np.uint8)
    pixels = np.empty(rgb.shape[:2] + (4,), dtype=np.uint8)
    pixels[:, :, :3] = rgb
    pixels[:, :, 3] = alpha
    return PixelBuffer(pixels)


@pytest.fixture
def random_image():
    """64x48 frame of random colors with random alpha."""
    rng = np.random.default_rng(42)
    pixels = rng.integers(0, 256, size=(48, 64, 4), dtype=np.uint8)
    return PixelBuffer(pixels)


@pytest.fixture
def gray_ramp():
    """1x256 frame stepping through every gray level."""
    levels = np.arange(256, dtype=np.uint8)
    rgb = np.stack([levels, levels, levels], axis=-1)[np.newaxis, :, :]
    return buffer_from_rgb(rgb)
