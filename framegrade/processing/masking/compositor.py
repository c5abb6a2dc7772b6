"""
Combine mask layers and apply the result to frames.
"""

import io
import time
import logging
from typing import Iterable, Optional, Union

import numpy as np
from PIL import Image

from ...errors import BufferShapeError
from ..buffer import PixelBuffer, quantize
from .mask_generator import MaskGenerator
from .models import MaskLayer, LuminanceMask, CompositingResult

logger = logging.getLogger(__name__)

DEFAULT_IMPORT_SOFTNESS = 10.0


def combine_masks(masks: Iterable[np.ndarray], opacities: Iterable[float],
                  shape) -> np.ndarray:
    """
    Multiply masks into a fully covered starting mask.

    Each mask is drawn with a global alpha of opacity/100, so a layer can
    only reduce coverage and an opacity of 0 leaves it without effect.

    Args:
        masks: float masks (0-1)
        opacities: Layer opacity per mask (0-100)
        shape: (height, width) of the result

    Returns:
        Combined float32 mask
    """
    running = np.ones(shape, dtype=np.float32)
    for mask, opacity in zip(masks, opacities):
        strength = min(max(float(opacity), 0.0), 100.0) / 100.0
        running *= (1.0 - strength) + strength * mask
    return np.clip(running, 0.0, 1.0)


def apply_mask(source: PixelBuffer, mask: np.ndarray) -> PixelBuffer:
    """Scale source alpha by the mask; RGB is unchanged."""
    if mask.shape != source.shape:
        raise BufferShapeError(f"Mask shape {mask.shape} does not match frame {source.shape}")
    out = source.pixels.copy()
    out[:, :, 3] = quantize(source.alpha.astype(np.float32) * mask)
    return PixelBuffer(out)


def composite_with_target(source: PixelBuffer, target: PixelBuffer,
                          mask: np.ndarray) -> PixelBuffer:
    """Blend source over target through the mask; the result is opaque."""
    if not source.same_shape(target):
        raise BufferShapeError(
            f"Target size {target.width}x{target.height} does not match "
            f"source {source.width}x{source.height}"
        )
    if mask.shape != source.shape:
        raise BufferShapeError(f"Mask shape {mask.shape} does not match frame {source.shape}")

    weight = mask[:, :, np.newaxis]
    rgb = source.rgb_float() * weight + target.rgb_float() * (1.0 - weight)

    out = np.empty_like(source.pixels)
    out[:, :, :3] = quantize(rgb)
    out[:, :, 3] = 255
    return PixelBuffer(out)


def composite_masks(layers: Iterable[MaskLayer], source: PixelBuffer,
                    target: Optional[PixelBuffer] = None,
                    generator: Optional[MaskGenerator] = None) -> CompositingResult:
    """
    Generate and combine every visible layer, then apply the combined mask

    Args:
        layers: Mask layers in stacking order
        source: Frame the masks are built from
        target: Optional frame to blend the source over
        generator: Mask generator to use (defaults to a new one)

    Returns:
        CompositingResult with the new frame and the combined mask
    """
    start = time.perf_counter()
    generator = generator or MaskGenerator()

    if target is not None and not source.same_shape(target):
        raise BufferShapeError(
            f"Target size {target.width}x{target.height} does not match "
            f"source {source.width}x{source.height}"
        )

    applied = [layer for layer in layers if layer.visible]
    masks = (generator.generate(layer, source) for layer in applied)
    combined = combine_masks(masks, [layer.opacity for layer in applied], source.shape)

    if target is not None:
        image = composite_with_target(source, target, combined)
    else:
        image = apply_mask(source, combined)

    elapsed_ms = (time.perf_counter() - start) * 1000.0
    logger.debug(f"Composited {len(applied)} mask layers in {elapsed_ms:.1f}ms")

    return CompositingResult(
        image=image,
        mask=combined,
        applied_layers=applied,
        elapsed_ms=elapsed_ms
    )


def export_mask_png(mask: np.ndarray) -> bytes:
    """Encode a mask as a lossless 8-bit RGB PNG (alpha duplicated into R, G, B)."""
    if mask.ndim != 2:
        raise BufferShapeError(f"Mask must be 2-D, got shape {mask.shape}")
    gray = quantize(np.clip(mask, 0.0, 1.0) * 255.0)
    rgb = np.stack([gray, gray, gray], axis=-1)

    buffer = io.BytesIO()
    Image.fromarray(rgb).save(buffer, format='PNG')
    return buffer.getvalue()


def import_mask(name: str, image_data: Union[bytes, str],
                softness: float = DEFAULT_IMPORT_SOFTNESS) -> MaskLayer:
    """
    Create a luminance mask layer from a raster image.

    The image is validated by decoding it; the layer selects the full
    0-255 luminance range with the given softness.
    """
    source = io.BytesIO(image_data) if isinstance(image_data, bytes) else image_data
    with Image.open(source) as img:
        img.load()
        logger.debug(f"Imported mask image {img.size[0]}x{img.size[1]} ({img.mode})")

    return MaskLayer(
        name=name,
        shape=LuminanceMask(min_luminance=0.0, max_luminance=255.0, softness=softness)
    )
