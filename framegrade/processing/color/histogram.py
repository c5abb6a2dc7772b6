"""
Histogram generation for UI feedback.
"""

import numpy as np

from ..buffer import PixelBuffer
from .colorspace import luminance
from .models import Histogram


def build_histogram(image: PixelBuffer) -> Histogram:
    """
    Count 8-bit levels per channel and for rounded luminance.

    Args:
        image: Frame to analyze (alpha is ignored)

    Returns:
        Histogram with four 256-bin int64 arrays
    """
    pixels = image.pixels
    red = np.bincount(pixels[:, :, 0].ravel(), minlength=256)
    green = np.bincount(pixels[:, :, 1].ravel(), minlength=256)
    blue = np.bincount(pixels[:, :, 2].ravel(), minlength=256)

    rgb = pixels[:, :, :3].astype(np.float32)
    lum = np.clip(np.rint(luminance(rgb[:, :, 0], rgb[:, :, 1], rgb[:, :, 2])), 0, 255)
    lum_counts = np.bincount(lum.astype(np.int64).ravel(), minlength=256)

    return Histogram(red=red, green=green, blue=blue, luminance=lum_counts)
