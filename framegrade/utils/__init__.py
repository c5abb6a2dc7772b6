"""
Utility modules for FrameGrade
"""

from .logging import StructuredLogger, FrameStats, setup_console_logging

__all__ = [
    "StructuredLogger",
    "FrameStats",
    "setup_console_logging",
]
