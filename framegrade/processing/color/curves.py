"""
Tone curves: lookup-table construction and RGB / HSL curve application.
"""

import logging
from typing import Optional, Sequence

import numpy as np

from ..buffer import PixelBuffer
from .colorspace import luminance, rgb_to_hsl, hsl_to_rgb
from .models import RGBCurves, HSLCurves

logger = logging.getLogger(__name__)

CURVE_SIZE = 256


def build_curve_lut(points: Sequence[float]) -> np.ndarray:
    """
    Resample a control sequence to a 256-entry lookup table.

    The control values are spread evenly over the 0-255 input range and
    linearly interpolated; positions past the last control value clamp to it.

    Args:
        points: Output levels, at least one

    Returns:
        float64 array of 256 output levels
    """
    control = np.asarray(points, dtype=np.float64)
    if control.ndim != 1 or control.size == 0:
        raise ValueError("Curve needs at least one control value")
    if control.size == 1:
        return np.full(CURVE_SIZE, control[0])

    index = np.arange(CURVE_SIZE, dtype=np.float64) / (CURVE_SIZE - 1) * (control.size - 1)
    lower = np.floor(index).astype(np.int64)
    upper = np.minimum(np.ceil(index).astype(np.int64), control.size - 1)
    fraction = index - lower

    return control[lower] * (1.0 - fraction) + control[upper] * fraction


def _curve_or_identity(points: Optional[Sequence[float]]) -> Optional[np.ndarray]:
    return None if points is None else build_curve_lut(points)


def _lookup(lut: np.ndarray, levels: np.ndarray) -> np.ndarray:
    index = np.clip(np.rint(levels), 0, CURVE_SIZE - 1).astype(np.int64)
    return lut[index]


def apply_rgb_curves_rgb(rgb: np.ndarray, curves: RGBCurves) -> np.ndarray:
    """
    Apply RGB curves to an (H, W, 3) 0-255 float array.

    Each channel goes through its own table; the master table is then looked
    up at the luminance of the curved pixel and R, G, B are scaled by
    adjusted/original luminance. Black pixels are left unscaled.
    """
    result = rgb.astype(np.float64, copy=True)

    for channel, points in enumerate((curves.red, curves.green, curves.blue)):
        lut = _curve_or_identity(points)
        if lut is not None:
            result[..., channel] = _lookup(lut, result[..., channel])

    master = _curve_or_identity(curves.master)
    if master is not None:
        lum = luminance(result[..., 0], result[..., 1], result[..., 2])
        adjusted = _lookup(master, lum)
        black = lum <= 0
        factor = np.where(black, 1.0, adjusted / np.where(black, 1.0, lum))
        result = result * factor[..., np.newaxis]

    return np.clip(result, 0, 255).astype(np.float32)


def apply_rgb_curves(image: PixelBuffer, curves: RGBCurves) -> PixelBuffer:
    """
    Apply per-channel and master curves to a frame

    Args:
        image: Input frame (not modified)
        curves: Curves; channels left as None are identity

    Returns:
        New frame with the original alpha
    """
    if curves.is_identity():
        return image.copy()
    return image.with_rgb(apply_rgb_curves_rgb(image.rgb_float(), curves))


def apply_hsl_curves_rgb(rgb: np.ndarray, curves: HSLCurves) -> np.ndarray:
    """Apply HSL curves to an (H, W, 3) 0-255 float array."""
    h, s, l = rgb_to_hsl(rgb[..., 0] / 255.0, rgb[..., 1] / 255.0, rgb[..., 2] / 255.0)

    components = []
    for values, points in ((h, curves.hue), (s, curves.saturation), (l, curves.luminance)):
        lut = _curve_or_identity(points)
        if lut is None:
            components.append(values)
        else:
            components.append(np.clip(_lookup(lut, values * 255.0) / 255.0, 0.0, 1.0))

    # Hue 1.0 and 0.0 are the same angle
    hue = np.mod(components[0], 1.0)
    r, g, b = hsl_to_rgb(hue, components[1], components[2])
    return np.clip(np.stack([r, g, b], axis=-1) * 255.0, 0, 255).astype(np.float32)


def apply_hsl_curves(image: PixelBuffer, curves: HSLCurves) -> PixelBuffer:
    """
    Apply hue / saturation / luminance curves to a frame

    Args:
        image: Input frame (not modified)
        curves: Curves over 0-255 scaled HSL components

    Returns:
        New frame with the original alpha
    """
    if curves.is_identity():
        return image.copy()
    return image.with_rgb(apply_hsl_curves_rgb(image.rgb_float(), curves))
