"""
Exception hierarchy for FrameGrade.
"""


class FrameGradeError(Exception):
    """Base exception for engine operations."""
    pass


class FormatError(FrameGradeError, ValueError):
    """Raised when a LUT file cannot be parsed."""
    pass


class BufferShapeError(FrameGradeError, ValueError):
    """Raised when a pixel array has the wrong shape or buffers disagree in size."""
    pass


class MaskNotFoundError(FrameGradeError, KeyError):
    """Raised when a mask id is not present in a layer stack."""

    def __init__(self, mask_id: str):
        super().__init__(mask_id)
        self.mask_id = mask_id

    def __str__(self) -> str:
        return f"Mask not found: {self.mask_id}"


class MaskLockedError(FrameGradeError):
    """Raised when attempting to modify a locked mask layer."""

    def __init__(self, mask_id: str):
        super().__init__(f"Mask is locked: {mask_id}")
        self.mask_id = mask_id
