"""
Frame file I/O with OpenCV.
"""

import logging
from pathlib import Path
from typing import Union

import numpy as np
import cv2

from ..errors import FrameGradeError
from ..processing.buffer import PixelBuffer

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = ('.png', '.jpg', '.jpeg', '.tif', '.tiff', '.bmp', '.webp')
ALPHA_FORMATS = ('.png', '.tif', '.tiff', '.webp')


def load_image(path: Union[str, Path]) -> PixelBuffer:
    """
    Load an image file as an RGBA frame.

    16-bit files are reduced to 8 bits; missing alpha becomes opaque.
    """
    path = Path(path)
    data = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
    if data is None:
        raise FrameGradeError(f"Could not read image: {path}")

    if data.ndim == 3:
        if data.shape[2] == 4:
            data = cv2.cvtColor(data, cv2.COLOR_BGRA2RGBA)
        else:
            data = cv2.cvtColor(data, cv2.COLOR_BGR2RGB)

    logger.debug(f"Loaded {path} ({data.shape[1]}x{data.shape[0]}, {data.dtype})")
    return PixelBuffer.from_array(data)


def save_image(image: PixelBuffer, path: Union[str, Path], quality: int = 95) -> Path:
    """
    Write a frame to disk; the format follows the file suffix.

    Formats without alpha support get the RGB channels only.
    """
    path = Path(path)
    suffix = path.suffix.lower()
    path.parent.mkdir(parents=True, exist_ok=True)

    if suffix in ALPHA_FORMATS:
        bgr = cv2.cvtColor(image.pixels, cv2.COLOR_RGBA2BGRA)
    else:
        bgr = cv2.cvtColor(np.ascontiguousarray(image.pixels[:, :, :3]), cv2.COLOR_RGB2BGR)

    if suffix in ('.jpg', '.jpeg'):
        ok = cv2.imwrite(str(path), bgr, [cv2.IMWRITE_JPEG_QUALITY, quality])
    elif suffix == '.png':
        ok = cv2.imwrite(str(path), bgr, [cv2.IMWRITE_PNG_COMPRESSION, 9])
    else:
        ok = cv2.imwrite(str(path), bgr)

    if not ok:
        raise FrameGradeError(f"Could not write image: {path}")

    logger.debug(f"Saved {path}")
    return path


def list_frames(directory: Union[str, Path]):
    """Image files in a directory, sorted by name."""
    directory = Path(directory)
    return sorted(p for p in directory.iterdir()
                  if p.is_file() and p.suffix.lower() in IMAGE_EXTENSIONS)
