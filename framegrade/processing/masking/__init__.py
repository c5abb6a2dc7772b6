"""
Masking framework for FrameGrade

Vector, luminance, color key and gradient masks, combined into a single
mask by multiplicative compositing.
"""

from .models import (
    MaskKind, PathVertexKind, PathVertex, VectorMask, LuminanceMask, ColorMask,
    GradientKind, GradientStop, GradientMask, MaskLayer, CompositingResult
)
from .mask_generator import MaskGenerator, generate_mask
from .compositor import (
    combine_masks, composite_masks, apply_mask, composite_with_target,
    export_mask_png, import_mask
)
from .layer_stack import MaskLayerStack

__all__ = [
    "MaskKind",
    "PathVertexKind",
    "PathVertex",
    "VectorMask",
    "LuminanceMask",
    "ColorMask",
    "GradientKind",
    "GradientStop",
    "GradientMask",
    "MaskLayer",
    "CompositingResult",
    "MaskGenerator",
    "generate_mask",
    "combine_masks",
    "composite_masks",
    "apply_mask",
    "composite_with_target",
    "export_mask_png",
    "import_mask",
    "MaskLayerStack",
]
