"""
Pixel buffer abstraction shared by the grading and masking paths.

A PixelBuffer owns a contiguous (height, width, 4) uint8 RGBA array.
Public operations never mutate their input; they return new buffers.
"""

from dataclasses import dataclass
from typing import Tuple
import logging

import numpy as np

from ..errors import BufferShapeError

logger = logging.getLogger(__name__)


@dataclass
class PixelBuffer:
    """8-bit RGBA frame, row-major, top-left origin."""
    pixels: np.ndarray

    def __post_init__(self):
        if self.pixels.ndim != 3 or self.pixels.shape[2] != 4:
            raise BufferShapeError(
                f"Expected (height, width, 4) array, got shape {self.pixels.shape}"
            )
        if self.pixels.dtype != np.uint8:
            raise BufferShapeError(f"Expected uint8 samples, got {self.pixels.dtype}")
        self.pixels = np.ascontiguousarray(self.pixels)

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @property
    def shape(self) -> Tuple[int, int]:
        """(height, width) of the frame."""
        return self.pixels.shape[:2]

    @property
    def alpha(self) -> np.ndarray:
        return self.pixels[:, :, 3]

    @classmethod
    def blank(cls, width: int, height: int,
              fill: Tuple[int, int, int, int] = (0, 0, 0, 0)) -> 'PixelBuffer':
        """Create a buffer filled with a single RGBA value."""
        pixels = np.empty((height, width, 4), dtype=np.uint8)
        pixels[:, :] = fill
        return cls(pixels)

    @classmethod
    def from_array(cls, image: np.ndarray) -> 'PixelBuffer':
        """
        Build a buffer from an arbitrary image array.

        Args:
            image: HxW, HxWx3 or HxWx4 array. uint8 is used as-is, uint16 is
                scaled down, floats are treated as 0-1.

        Returns:
            New PixelBuffer (alpha defaults to 255 when absent)
        """
        if image.dtype == np.uint8:
            data = image
        elif image.dtype == np.uint16:
            data = np.rint(image.astype(np.float32) / 257.0).astype(np.uint8)
        else:
            data = np.rint(np.clip(image.astype(np.float32), 0, 1) * 255).astype(np.uint8)

        if data.ndim == 2:
            data = np.stack([data] * 3, axis=-1)
        if data.ndim != 3 or data.shape[2] not in (3, 4):
            raise BufferShapeError(f"Unsupported image shape {image.shape}")

        if data.shape[2] == 3:
            alpha = np.full(data.shape[:2] + (1,), 255, dtype=np.uint8)
            data = np.concatenate([data, alpha], axis=2)

        return cls(data.copy())

    def copy(self) -> 'PixelBuffer':
        return PixelBuffer(self.pixels.copy())

    def rgb_float(self) -> np.ndarray:
        """RGB channels as a float32 copy in the 0-255 range."""
        return self.pixels[:, :, :3].astype(np.float32)

    def with_rgb(self, rgb: np.ndarray) -> 'PixelBuffer':
        """Return a new buffer with the given RGB (0-255 floats) and this alpha."""
        if rgb.shape[:2] != self.shape:
            raise BufferShapeError(
                f"RGB shape {rgb.shape[:2]} does not match buffer {self.shape}"
            )
        out = np.empty_like(self.pixels)
        out[:, :, :3] = quantize(rgb)
        out[:, :, 3] = self.pixels[:, :, 3]
        return PixelBuffer(out)

    def same_shape(self, other: 'PixelBuffer') -> bool:
        return self.shape == other.shape

    def resize(self, width: int, height: int):
        """Reallocate the surface in place. Contents are cleared."""
        self.pixels = np.zeros((height, width, 4), dtype=np.uint8)

    def clear(self, fill: Tuple[int, int, int, int] = (0, 0, 0, 0)):
        """Fill the whole surface in place."""
        self.pixels[:, :] = fill


def quantize(values: np.ndarray) -> np.ndarray:
    """Round and clamp 0-255 floats to uint8."""
    return np.clip(np.rint(values), 0, 255).astype(np.uint8)


def mask_to_buffer(mask: np.ndarray) -> PixelBuffer:
    """
    Render a 0-1 float mask as an 8-bit raster.

    Alpha is duplicated into R, G and B; the raster itself is opaque.
    """
    if mask.ndim != 2:
        raise BufferShapeError(f"Mask must be 2-D, got shape {mask.shape}")
    gray = quantize(np.clip(mask, 0, 1) * 255.0)
    pixels = np.empty(mask.shape + (4,), dtype=np.uint8)
    pixels[:, :, 0] = gray
    pixels[:, :, 1] = gray
    pixels[:, :, 2] = gray
    pixels[:, :, 3] = 255
    return PixelBuffer(pixels)
