"""
Bake a grade into a portable 3D LUT.
"""

import logging
from typing import Optional

import numpy as np

from ..color.color_grading import ColorGrader
from ..color.color_wheels import apply_color_wheels_rgb
from ..color.curves import apply_rgb_curves_rgb, apply_hsl_curves_rgb
from ..color.models import ColorGradingOptions, ColorWheelAdjustment, RGBCurves, HSLCurves
from .models import LUTData, identity_lut

logger = logging.getLogger(__name__)


def export_grade_as_lut(size: int = 33,
                        options: Optional[ColorGradingOptions] = None,
                        wheels: Optional[ColorWheelAdjustment] = None,
                        curves: Optional[RGBCurves] = None,
                        hsl_curves: Optional[HSLCurves] = None,
                        name: str = "FrameGrade Export") -> LUTData:
    """
    Sample the identity lattice through the adjustment stack.

    The lattice is processed in float without 8-bit rounding, so the
    exported table is as precise as the pipeline itself. Clarity depends on
    neighbouring pixels and cannot be expressed in a LUT; it is skipped.

    Args:
        size: Lattice edge length
        options: Tonal adjustments
        wheels: Color wheel adjustment
        curves: RGB curves
        hsl_curves: HSL curves
        name: Name and title of the new LUT

    Returns:
        3D LUTData of the given size
    """
    grid = identity_lut(size).table()  # (b, g, r, rgb)
    rgb = grid.reshape(1, -1, 3).astype(np.float32) * 255.0

    if options is not None and not options.is_neutral():
        rgb = ColorGrader().grade_rgb(rgb, options, spatial=False)

    if wheels is not None and not wheels.is_identity():
        rgb = apply_color_wheels_rgb(rgb, wheels)

    if curves is not None and not curves.is_identity():
        rgb = apply_rgb_curves_rgb(rgb, curves)

    if hsl_curves is not None and not hsl_curves.is_identity():
        rgb = apply_hsl_curves_rgb(rgb, hsl_curves)

    data = np.clip(rgb.reshape(-1, 3) / 255.0, 0.0, 1.0)
    logger.debug(f"Exported grade as {size}^3 LUT")

    return LUTData(
        name=name,
        size=size,
        data=data,
        title=name,
        comments=["Generated by FrameGrade"],
    )
