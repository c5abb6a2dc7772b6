"""
Ordered, editable collection of mask layers.
"""

import logging
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

from ...errors import MaskNotFoundError, MaskLockedError
from ..buffer import PixelBuffer
from .compositor import composite_masks
from .mask_generator import MaskGenerator
from .models import (
    MaskLayer, MaskShape, VectorMask, LuminanceMask, ColorMask, GradientMask,
    GradientKind, GradientStop, PathVertex, CompositingResult, Point, default_stops
)

logger = logging.getLogger(__name__)


class MaskLayerStack:
    """
    Layer collection used by the masking tools.

    Layers composite in list order. Lookups by an unknown id raise
    MaskNotFoundError before anything is changed. Editing the shape,
    opacity or inversion of a locked layer, or removing it, raises
    MaskLockedError.
    """

    def __init__(self, generator: Optional[MaskGenerator] = None):
        self._layers: List[MaskLayer] = []
        self._selected: Optional[str] = None
        self.generator = generator or MaskGenerator()

    def __len__(self) -> int:
        return len(self._layers)

    def __iter__(self):
        return iter(list(self._layers))

    def __contains__(self, mask_id: str) -> bool:
        return any(layer.id == mask_id for layer in self._layers)

    @property
    def layers(self) -> List[MaskLayer]:
        """Shallow copy of the layer list."""
        return list(self._layers)

    def _add(self, name: str, shape: MaskShape, opacity: float, inverted: bool) -> str:
        layer = MaskLayer(name=name, shape=shape, opacity=opacity, inverted=inverted)
        self._layers.append(layer)
        logger.debug(f"Added {layer.kind.value} mask '{name}' ({layer.id})")
        return layer.id

    def add_layer(self, layer: MaskLayer) -> str:
        """Append an existing layer."""
        self._layers.append(layer)
        return layer.id

    def add_vector_mask(self, name: str, points: Sequence[PathVertex],
                        closed: bool = True, feather: float = 0.0,
                        opacity: float = 100.0, inverted: bool = False) -> str:
        shape = VectorMask(points=list(points), closed=closed, feather=feather)
        return self._add(name, shape, opacity, inverted)

    def add_luminance_mask(self, name: str, min_luminance: float, max_luminance: float,
                           softness: float = 0.0, opacity: float = 100.0,
                           inverted: bool = False) -> str:
        shape = LuminanceMask(min_luminance=min_luminance, max_luminance=max_luminance,
                              softness=softness)
        return self._add(name, shape, opacity, inverted)

    def add_color_mask(self, name: str, target: Tuple[int, int, int], tolerance: float,
                       softness: float = 0.0, opacity: float = 100.0,
                       inverted: bool = False) -> str:
        shape = ColorMask(target=target, tolerance=tolerance, softness=softness)
        return self._add(name, shape, opacity, inverted)

    def add_gradient_mask(self, name: str, kind: GradientKind, start: Point, end: Point,
                          stops: Optional[Iterable[GradientStop]] = None,
                          opacity: float = 100.0, inverted: bool = False) -> str:
        shape = GradientMask(kind=kind, start=start, end=end,
                             stops=list(stops) if stops is not None else default_stops())
        return self._add(name, shape, opacity, inverted)

    def get(self, mask_id: str) -> MaskLayer:
        for layer in self._layers:
            if layer.id == mask_id:
                return layer
        raise MaskNotFoundError(mask_id)

    def _editable(self, mask_id: str) -> MaskLayer:
        layer = self.get(mask_id)
        if layer.locked:
            raise MaskLockedError(mask_id)
        return layer

    def update_vector_points(self, mask_id: str, points: Sequence[PathVertex]):
        """Replace the path of a vector layer."""
        layer = self._editable(mask_id)
        if not isinstance(layer.shape, VectorMask):
            raise TypeError(f"Mask {mask_id} is a {layer.kind.value} mask, not a vector mask")
        layer.shape.points = list(points)

    def set_opacity(self, mask_id: str, opacity: float):
        """Set layer opacity, clamped to 0-100."""
        layer = self._editable(mask_id)
        layer.opacity = min(max(float(opacity), 0.0), 100.0)

    def toggle_inversion(self, mask_id: str) -> bool:
        layer = self._editable(mask_id)
        layer.inverted = not layer.inverted
        return layer.inverted

    def toggle_visibility(self, mask_id: str) -> bool:
        layer = self.get(mask_id)
        layer.visible = not layer.visible
        return layer.visible

    def toggle_lock(self, mask_id: str) -> bool:
        layer = self.get(mask_id)
        layer.locked = not layer.locked
        return layer.locked

    def remove(self, mask_id: str):
        layer = self._editable(mask_id)
        self._layers.remove(layer)
        if self._selected == mask_id:
            self._selected = None
        logger.debug(f"Removed mask {mask_id}")

    def duplicate(self, mask_id: str) -> str:
        """Append a copy named '<name> Copy' and return its id."""
        copy = self.get(mask_id).duplicate()
        self._layers.append(copy)
        return copy.id

    def reorder(self, from_index: int, to_index: int):
        """Move a layer; out-of-range indices are ignored."""
        count = len(self._layers)
        if 0 <= from_index < count and 0 <= to_index < count:
            layer = self._layers.pop(from_index)
            self._layers.insert(to_index, layer)

    def select(self, mask_id: str):
        self.get(mask_id)
        self._selected = mask_id

    @property
    def selected(self) -> Optional[MaskLayer]:
        if self._selected is None:
            return None
        return self.get(self._selected)

    def clear(self):
        self._layers.clear()
        self._selected = None

    def mask_for(self, mask_id: str, source: PixelBuffer) -> np.ndarray:
        """Mask of a single layer, ignoring visibility and opacity."""
        return self.generator.generate(self.get(mask_id), source)

    def composite(self, source: PixelBuffer,
                  target: Optional[PixelBuffer] = None) -> CompositingResult:
        """Composite the visible layers over a frame."""
        return composite_masks(self._layers, source, target, self.generator)
