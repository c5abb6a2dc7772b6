"""
Pixel processing modules for FrameGrade

Includes the pixel buffer, tonal and color grading, LUTs and masking.
"""

from .buffer import PixelBuffer, mask_to_buffer

__all__ = [
    "PixelBuffer",
    "mask_to_buffer",
]
