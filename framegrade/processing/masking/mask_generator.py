"""
Mask generation strategies for the masking system.
"""

import logging
from typing import List, Tuple

import numpy as np
import cv2
from scipy.ndimage import gaussian_filter

from ..buffer import PixelBuffer
from ..color.colorspace import rgb_luminance, color_distance, MAX_RGB_DISTANCE
from .models import (
    MaskLayer, VectorMask, LuminanceMask, ColorMask, GradientMask,
    GradientKind, PathVertexKind, Point
)

logger = logging.getLogger(__name__)

DEFAULT_CURVE_SEGMENTS = 16
FEATHER_TRUNCATE = 3.0


def cubic_bezier(p0: Point, p1: Point, p2: Point, p3: Point,
                 segments: int = DEFAULT_CURVE_SEGMENTS) -> np.ndarray:
    """Flatten a cubic bezier into `segments` line segments (p0 excluded)."""
    t = np.linspace(0.0, 1.0, segments + 1)[1:, np.newaxis]
    mt = 1.0 - t
    pts = np.asarray([p0, p1, p2, p3], dtype=np.float64)
    return (mt ** 3 * pts[0] + 3 * mt ** 2 * t * pts[1] +
            3 * mt * t ** 2 * pts[2] + t ** 3 * pts[3])


def flatten_path(mask: VectorMask, segments: int = DEFAULT_CURVE_SEGMENTS) -> List[np.ndarray]:
    """
    Convert path vertices into polylines, one per subpath.

    The first vertex always starts a subpath. Curve vertices missing a
    control point contribute nothing.
    """
    subpaths = []
    current: List[Point] = []

    for i, vertex in enumerate(mask.points):
        if vertex.kind == PathVertexKind.MOVE or i == 0:
            if current:
                subpaths.append(current)
            current = [vertex.point]
        elif vertex.kind == PathVertexKind.LINE:
            current.append(vertex.point)
        elif vertex.control1 is not None and vertex.control2 is not None:
            curve = cubic_bezier(current[-1], vertex.control1, vertex.control2,
                                 vertex.point, segments)
            current.extend(tuple(p) for p in curve)

    if current:
        subpaths.append(current)

    return [np.asarray(path, dtype=np.float64) for path in subpaths]


def feather_mask(mask: np.ndarray, radius: float) -> np.ndarray:
    """Gaussian feather with sigma radius/3; edge pixels are replicated."""
    if radius <= 0:
        return mask
    return gaussian_filter(mask.astype(np.float32), sigma=radius / 3.0,
                           mode='nearest', truncate=FEATHER_TRUNCATE)


class MaskGenerator:
    """Generates single-layer masks from mask definitions."""

    def __init__(self, curve_segments: int = DEFAULT_CURVE_SEGMENTS):
        self.curve_segments = curve_segments

    def generate(self, layer: MaskLayer, source: PixelBuffer) -> np.ndarray:
        """
        Generate the mask of one layer.

        Opacity is not applied here; the compositor handles it.

        Args:
            layer: Mask layer
            source: Frame the mask is built for (size and pixel data)

        Returns:
            Grayscale mask as float32 array (0-1)
        """
        shape = layer.shape

        if isinstance(shape, VectorMask):
            mask = self._generate_vector_mask(source.shape, shape)
        elif isinstance(shape, LuminanceMask):
            mask = self._generate_luminance_mask(source, shape)
        elif isinstance(shape, ColorMask):
            mask = self._generate_color_mask(source, shape)
        elif isinstance(shape, GradientMask):
            mask = self._generate_gradient_mask(source.shape, shape)
        else:
            raise ValueError(f"Unsupported mask type: {type(shape).__name__}")

        if layer.inverted:
            mask = 1.0 - mask

        return np.clip(mask, 0.0, 1.0).astype(np.float32)

    def _generate_vector_mask(self, shape: Tuple[int, int], params: VectorMask) -> np.ndarray:
        """
        Fill every subpath of a path.

        Open subpaths are closed implicitly by the fill, so `closed` only
        matters to callers that stroke the outline. Subpaths with fewer than
        three vertices enclose no area.
        """
        canvas = np.zeros(shape, dtype=np.uint8)
        polygons = [np.rint(p).astype(np.int32)
                    for p in flatten_path(params, self.curve_segments) if len(p) >= 3]

        if polygons:
            cv2.fillPoly(canvas, polygons, 255)

        mask = canvas.astype(np.float32) / 255.0
        return feather_mask(mask, params.feather)

    @staticmethod
    def _generate_luminance_mask(source: PixelBuffer, params: LuminanceMask) -> np.ndarray:
        """Select a luminance band, ramping in from each boundary when soft."""
        lum = rgb_luminance(source.rgb_float())
        low, high = params.min_luminance, params.max_luminance

        inside = (lum >= low) & (lum <= high)
        soft_range = (high - low) * params.softness / 100.0

        if params.softness > 0 and soft_range > 0:
            edge_distance = np.minimum(lum - low, high - lum)
            ramp = np.minimum(edge_distance / soft_range, 1.0)
            mask = np.where(inside, ramp, 0.0)
        else:
            mask = inside.astype(np.float32)

        return mask.astype(np.float32)

    @staticmethod
    def _generate_color_mask(source: PixelBuffer, params: ColorMask) -> np.ndarray:
        """Select pixels within a Euclidean RGB distance of the target."""
        distance = color_distance(source.rgb_float(), params.target)
        threshold = params.tolerance / 100.0 * MAX_RGB_DISTANCE
        soft_range = threshold * params.softness / 100.0

        inside = distance <= threshold
        if soft_range > 0:
            ramp = np.where(distance > threshold - soft_range,
                            (threshold - distance) / soft_range, 1.0)
            mask = np.where(inside, ramp, 0.0)
        else:
            mask = inside.astype(np.float32)

        return mask.astype(np.float32)

    @staticmethod
    def _generate_gradient_mask(shape: Tuple[int, int], params: GradientMask) -> np.ndarray:
        """Evaluate the stop list along a linear or radial parameter."""
        height, width = shape
        x1, y1 = params.start
        x2, y2 = params.end
        dx = x2 - x1
        dy = y2 - y1
        length_sq = dx * dx + dy * dy

        if length_sq < 1e-12 or not params.stops:
            # Degenerate case: nothing is painted
            return np.zeros(shape, dtype=np.float32)

        y, x = np.ogrid[:height, :width]

        if params.kind == GradientKind.RADIAL:
            t = np.sqrt((x - x1) ** 2 + (y - y1) ** 2) / np.sqrt(length_sq)
        else:
            if params.kind == GradientKind.ANGULAR:
                logger.debug("Angular gradient rendered as a linear gradient")
            t = ((x - x1) * dx + (y - y1) * dy) / length_sq

        # Stable sort keeps the order of stops sharing a position
        stops = sorted(params.stops, key=lambda s: s.position)
        positions = np.asarray([s.position for s in stops], dtype=np.float64)
        alphas = np.asarray([s.alpha for s in stops], dtype=np.float64)

        mask = np.interp(np.broadcast_to(t, shape), positions, alphas)
        return mask.astype(np.float32)


def generate_mask(layer: MaskLayer, source: PixelBuffer) -> np.ndarray:
    """Generate one layer's mask with default settings."""
    return MaskGenerator().generate(layer, source)
