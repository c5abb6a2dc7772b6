"""
Color processing modules for FrameGrade

Includes the tonal pipeline, color wheels, curves and histograms.
"""

from .models import (
    ColorGradingOptions, LiftGammaGain, ColorWheelAdjustment,
    RGBCurves, HSLCurves, Histogram, GradingResult, identity_curve
)
from .color_grading import ColorGrader, apply_color_grading
from .color_wheels import apply_color_wheels, apply_lift_gamma_gain
from .curves import build_curve_lut, apply_rgb_curves, apply_hsl_curves
from .histogram import build_histogram

__all__ = [
    "ColorGradingOptions",
    "LiftGammaGain",
    "ColorWheelAdjustment",
    "RGBCurves",
    "HSLCurves",
    "Histogram",
    "GradingResult",
    "identity_curve",
    "ColorGrader",
    "apply_color_grading",
    "apply_color_wheels",
    "apply_lift_gamma_gain",
    "build_curve_lut",
    "apply_rgb_curves",
    "apply_hsl_curves",
    "build_histogram",
]
