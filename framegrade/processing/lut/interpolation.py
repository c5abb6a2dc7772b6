"""
Apply lookup tables to frames.

3D tables are sampled with trilinear interpolation over the eight lattice
points surrounding each color; 1D tables are interpolated per channel.
"""

import logging
from typing import Union

import numpy as np

from ...errors import FormatError
from ..buffer import PixelBuffer
from ..color.colorspace import rgb_luminance
from .models import LUTData, LUTBlendMode

logger = logging.getLogger(__name__)

LUMINANCE_EPSILON = 1e-6


def _grid_coordinates(rgb: np.ndarray, lut: LUTData) -> np.ndarray:
    """Map 0-255 samples to fractional lattice coordinates through the LUT domain."""
    low = np.asarray(lut.domain_min, dtype=np.float64) * 255.0
    span = (np.asarray(lut.domain_max, dtype=np.float64) -
            np.asarray(lut.domain_min, dtype=np.float64)) * 255.0

    # Multiply before dividing so lattice-aligned 8-bit levels land on exact integers
    coords = (rgb.astype(np.float64) - low) * (lut.size - 1) / span
    return np.clip(coords, 0.0, lut.size - 1)


def trilinear_sample(lut: LUTData, coords: np.ndarray) -> np.ndarray:
    """
    Trilinear interpolation in a 3D table.

    Args:
        lut: 3D lookup table
        coords: (..., 3) red/green/blue lattice coordinates in [0, N-1]

    Returns:
        (..., 3) interpolated samples in the table's output range
    """
    table = lut.table()  # [b, g, r]
    top = lut.size - 1

    low = np.floor(coords).astype(np.int64)
    high = np.minimum(low + 1, top)
    frac = coords - low

    r0, g0, b0 = low[..., 0], low[..., 1], low[..., 2]
    r1, g1, b1 = high[..., 0], high[..., 1], high[..., 2]
    fr, fg, fb = frac[..., 0:1], frac[..., 1:2], frac[..., 2:3]

    c000 = table[b0, g0, r0]
    c100 = table[b0, g0, r1]
    c010 = table[b0, g1, r0]
    c110 = table[b0, g1, r1]
    c001 = table[b1, g0, r0]
    c101 = table[b1, g0, r1]
    c011 = table[b1, g1, r0]
    c111 = table[b1, g1, r1]

    c00 = c000 * (1 - fr) + c100 * fr
    c10 = c010 * (1 - fr) + c110 * fr
    c01 = c001 * (1 - fr) + c101 * fr
    c11 = c011 * (1 - fr) + c111 * fr

    c0 = c00 * (1 - fg) + c10 * fg
    c1 = c01 * (1 - fg) + c11 * fg

    return c0 * (1 - fb) + c1 * fb


def linear_sample(lut: LUTData, coords: np.ndarray) -> np.ndarray:
    """Per-channel interpolation in a 1D table."""
    table = lut.table().astype(np.float64)
    positions = np.arange(lut.size, dtype=np.float64)

    out = np.empty(coords.shape, dtype=np.float64)
    for channel in range(3):
        out[..., channel] = np.interp(coords[..., channel], positions, table[:, channel])
    return out


def blend_lut_result(source: np.ndarray, graded: np.ndarray,
                     blend_mode: LUTBlendMode) -> np.ndarray:
    """
    Combine a LUT result with its source, both normalized 0-1.

    Luminosity keeps the source color at the graded luminance; color keeps
    the graded color at the source luminance.
    """
    if blend_mode == LUTBlendMode.NORMAL:
        return graded

    if blend_mode == LUTBlendMode.MULTIPLY:
        return source * graded

    if blend_mode == LUTBlendMode.SCREEN:
        return 1.0 - (1.0 - source) * (1.0 - graded)

    base_lum = rgb_luminance(source)
    graded_lum = rgb_luminance(graded)

    if blend_mode == LUTBlendMode.LUMINOSITY:
        dark = base_lum <= LUMINANCE_EPSILON
        factor = np.where(dark, 1.0, graded_lum / np.where(dark, 1.0, base_lum))
        return source * factor[..., np.newaxis]

    if blend_mode == LUTBlendMode.COLOR:
        dark = graded_lum <= LUMINANCE_EPSILON
        factor = np.where(dark, 1.0, base_lum / np.where(dark, 1.0, graded_lum))
        return graded * factor[..., np.newaxis]

    raise ValueError(f"Unknown blend mode: {blend_mode}")


def apply_lut_rgb(rgb: np.ndarray, lut: LUTData, strength: float = 100.0,
                  blend_mode: LUTBlendMode = LUTBlendMode.NORMAL) -> np.ndarray:
    """
    Apply a LUT to an (H, W, 3) float array in the 0-255 range.

    Returns:
        New float32 array in the 0-255 range
    """
    coords = _grid_coordinates(rgb, lut)

    if lut.is_3d:
        graded = trilinear_sample(lut, coords)
    else:
        graded = linear_sample(lut, coords)

    source = rgb.astype(np.float64) / 255.0
    result = blend_lut_result(source, np.clip(graded, 0.0, 1.0), blend_mode)

    factor = min(max(float(strength), 0.0), 100.0) / 100.0
    if factor < 1.0:
        result = result * factor + source * (1.0 - factor)

    return np.clip(result * 255.0, 0, 255).astype(np.float32)


def apply_lut(image: PixelBuffer, lut: LUTData, strength: float = 100.0,
              blend_mode: Union[LUTBlendMode, str] = LUTBlendMode.NORMAL) -> PixelBuffer:
    """
    Apply a 1D or 3D LUT to a frame

    Args:
        image: Input frame (not modified)
        lut: Lookup table
        strength: 0-100 mix between source (0) and LUT result (100)
        blend_mode: How the LUT result combines with the source

    Returns:
        New frame with the original alpha
    """
    blend_mode = LUTBlendMode(blend_mode)
    if strength <= 0:
        return image.copy()

    rgb = apply_lut_rgb(image.rgb_float(), lut, strength, blend_mode)
    logger.debug(f"Applied {lut.dimension.value} LUT '{lut.name}' "
                 f"(strength {strength}, {blend_mode.value})")
    return image.with_rgb(rgb)


def apply_3d_lut(image: PixelBuffer, lut: LUTData) -> PixelBuffer:
    """Apply a 3D LUT at full strength."""
    if not lut.is_3d:
        raise FormatError(f"LUT '{lut.name}' is not a 3D LUT")
    return apply_lut(image, lut)
