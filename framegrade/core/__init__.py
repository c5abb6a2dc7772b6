"""
Core orchestration for FrameGrade
"""

from .engine import ColorGradingEngine

__all__ = [
    "ColorGradingEngine",
]
