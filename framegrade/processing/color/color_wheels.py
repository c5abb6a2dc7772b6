"""
Three-way color wheels (lift / gamma / gain) for FrameGrade.
"""

import logging
from typing import Tuple

import numpy as np

from ..buffer import PixelBuffer
from .colorspace import smoothstep, luminance
from .models import ColorWheelAdjustment, LiftGammaGain

logger = logging.getLogger(__name__)


def apply_lift_gamma_gain(value, params: LiftGammaGain):
    """
    Lift, then gamma, then gain a 0-1 value.

    Values pushed below zero by a negative lift are floored before the power
    so the gamma stage never produces NaN.
    """
    v = np.asarray(value, dtype=np.float64)
    v = v + params.lift * (1.0 - v)

    if params.gamma != 1.0:
        v = np.power(np.maximum(v, 0.0), 1.0 / params.gamma)

    v = v * params.gain
    return np.clip(v, 0.0, 1.0)


def tonal_range_masks(lum: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Shadow, midtone and highlight weights for 0-1 luminance.

    The ranges overlap; they are blend weights, not a partition.
    """
    shadow_mask = smoothstep(0.0, 0.33, 1.0 - lum)
    midtone_mask = 1.0 - np.abs(lum - 0.5) * 2.0
    highlight_mask = smoothstep(0.66, 1.0, lum)
    return shadow_mask, midtone_mask, highlight_mask


def apply_color_wheels_rgb(rgb: np.ndarray, adjustment: ColorWheelAdjustment) -> np.ndarray:
    """
    Apply color wheels to an (H, W, 3) float array in the 0-255 range.

    Returns:
        New float32 array in the 0-255 range
    """
    values = rgb.astype(np.float64) / 255.0
    lum = luminance(values[..., 0], values[..., 1], values[..., 2])
    shadow_mask, midtone_mask, highlight_mask = tonal_range_masks(lum)

    for params, mask in ((adjustment.shadows, shadow_mask),
                         (adjustment.midtones, midtone_mask),
                         (adjustment.highlights, highlight_mask)):
        if params.is_identity():
            continue
        weight = mask[..., np.newaxis]
        values = apply_lift_gamma_gain(values, params) * weight + values * (1.0 - weight)

    if not adjustment.master.is_identity():
        values = apply_lift_gamma_gain(values, adjustment.master)

    return np.clip(values * 255.0, 0, 255).astype(np.float32)


def apply_color_wheels(image: PixelBuffer, adjustment: ColorWheelAdjustment) -> PixelBuffer:
    """
    Apply lift/gamma/gain color wheels to a frame

    Args:
        image: Input frame (not modified)
        adjustment: Wheel settings for each tonal range

    Returns:
        New graded frame with the original alpha
    """
    if adjustment.is_identity():
        return image.copy()

    return image.with_rgb(apply_color_wheels_rgb(image.rgb_float(), adjustment))
