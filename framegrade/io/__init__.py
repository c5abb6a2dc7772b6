"""
Image file input and output
"""

from .images import load_image, save_image, list_frames, IMAGE_EXTENSIONS

__all__ = [
    "load_image",
    "save_image",
    "list_frames",
    "IMAGE_EXTENSIONS",
]
