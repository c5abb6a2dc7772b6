"""
FrameGrade: color grading and mask compositing for image and video frames

Tonal adjustments, color wheels, curves and 3D LUTs, plus layered
vector, luminance, color key and gradient masks.
"""

__version__ = "0.1.0"

from .config import load_config
from .errors import (
    FrameGradeError, FormatError, BufferShapeError, MaskNotFoundError, MaskLockedError
)
from .processing.buffer import PixelBuffer

__all__ = [
    "load_config",
    "FrameGradeError",
    "FormatError",
    "BufferShapeError",
    "MaskNotFoundError",
    "MaskLockedError",
    "PixelBuffer",
]
