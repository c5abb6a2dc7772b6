"""
Command line interface modules for FrameGrade
"""

from .grade_commands import grade, grade_dir, histogram
from .lut_commands import lut
from .mask_commands import mask

__all__ = [
    "grade",
    "grade_dir",
    "histogram",
    "lut",
    "mask",
]
