"""
Long-lived grading engine owning configuration and the LUT cache.
"""

import time
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Union

from ..config import get_default_config, get_config_value
from ..processing.buffer import PixelBuffer
from ..processing.color import (
    ColorGrader, ColorGradingOptions, ColorWheelAdjustment, RGBCurves, HSLCurves,
    GradingResult, build_histogram
)
from ..processing.color.color_wheels import apply_color_wheels_rgb
from ..processing.color.curves import apply_rgb_curves_rgb, apply_hsl_curves_rgb
from ..processing.lut import (
    LUTData, LUTFormat, LUTBlendMode, LUTCache, cache_key, load_lut, load_lut_file,
    save_lut, export_grade_as_lut, BuiltinLUT, builtin_lut, resolve_builtin
)
from ..processing.lut.interpolation import apply_lut_rgb
from ..processing.masking import (
    MaskGenerator, MaskLayer, MaskLayerStack, CompositingResult, composite_masks, import_mask
)
from ..utils.logging import StructuredLogger

logger = logging.getLogger(__name__)


class ColorGradingEngine:
    """
    Runs the full grading stack and manages LUTs.

    Stage order: tonal pipeline, color wheels, RGB curves, HSL curves, LUT.
    Intermediate results stay in float and are quantized once at the end.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = config or get_default_config()
        self.grader = ColorGrader(
            clarity_radius=get_config_value(self.config, 'grading.clarity_radius', 5)
        )
        self.lut_cache = LUTCache(
            max_items=get_config_value(self.config, 'lut_cache.max_items', 16)
        )
        self.mask_generator = MaskGenerator(
            curve_segments=get_config_value(self.config, 'masks.curve_segments', 16)
        )
        self.log = StructuredLogger(__name__)

    def load_lut_file(self, path: Union[str, Path]) -> LUTData:
        """Load a LUT file, reusing the cached parse when available."""
        path = Path(path)
        return self.lut_cache.get_or_load(cache_key(path), lambda: load_lut_file(path))

    def load_lut(self, content: Union[bytes, str], key: str,
                 name: Optional[str] = None) -> LUTData:
        """Parse LUT contents under a caller-chosen cache key."""
        return self.lut_cache.get_or_load(key, lambda: load_lut(content, name=name))

    def load_builtin_lut(self, name: Union[BuiltinLUT, str], size: int = 33) -> LUTData:
        """Generate a built-in look, cached per name and lattice size."""
        preset = resolve_builtin(name)
        return self.lut_cache.get_or_load(f"builtin:{preset.value}:{size}",
                                          lambda: builtin_lut(preset, size))

    def grade(self, image: PixelBuffer,
              options: Optional[ColorGradingOptions] = None,
              wheels: Optional[ColorWheelAdjustment] = None,
              curves: Optional[RGBCurves] = None,
              hsl_curves: Optional[HSLCurves] = None,
              lut: Optional[LUTData] = None,
              lut_strength: float = 100.0,
              lut_blend: LUTBlendMode = LUTBlendMode.NORMAL) -> GradingResult:
        """
        Grade a frame through every configured stage

        Args:
            image: Input frame (not modified)
            options: Tonal adjustments
            wheels: Color wheel adjustment
            curves: RGB curves
            hsl_curves: HSL curves
            lut: LUT applied last
            lut_strength: LUT mix (0-100)
            lut_blend: LUT blend mode

        Returns:
            GradingResult for the final frame
        """
        start = time.perf_counter()
        options = options or ColorGradingOptions()
        rgb = image.rgb_float()

        if not options.is_neutral():
            rgb = self.grader.grade_rgb(rgb, options)

        if wheels is not None and not wheels.is_identity():
            rgb = apply_color_wheels_rgb(rgb, wheels)

        if curves is not None and not curves.is_identity():
            rgb = apply_rgb_curves_rgb(rgb, curves)

        if hsl_curves is not None and not hsl_curves.is_identity():
            rgb = apply_hsl_curves_rgb(rgb, hsl_curves)

        if lut is not None and lut_strength > 0:
            rgb = apply_lut_rgb(rgb, lut, lut_strength, LUTBlendMode(lut_blend))

        graded = image.with_rgb(rgb)
        histogram = build_histogram(graded)
        elapsed_ms = (time.perf_counter() - start) * 1000.0

        self.log.debug("Graded frame", width=image.width, height=image.height,
                       elapsed_ms=round(elapsed_ms, 2), lut=lut.name if lut else None)

        return GradingResult(image=graded, histogram=histogram,
                             elapsed_ms=elapsed_ms, applied=options)

    def export_lut(self, path: Union[str, Path], size: Optional[int] = None,
                   fmt: Optional[LUTFormat] = None,
                   options: Optional[ColorGradingOptions] = None,
                   wheels: Optional[ColorWheelAdjustment] = None,
                   curves: Optional[RGBCurves] = None,
                   hsl_curves: Optional[HSLCurves] = None) -> LUTData:
        """Bake the given adjustments into a LUT file."""
        size = size or get_config_value(self.config, 'grading.lut_export_size', 33)
        path = Path(path)

        lut = export_grade_as_lut(size, options, wheels, curves, hsl_curves, name=path.stem)
        save_lut(lut, path, fmt)
        self.log.info("Exported LUT", path=str(path), size=size)
        return lut

    def new_mask_stack(self) -> MaskLayerStack:
        return MaskLayerStack(self.mask_generator)

    def composite(self, layers: Iterable[MaskLayer], source: PixelBuffer,
                  target: Optional[PixelBuffer] = None) -> CompositingResult:
        return composite_masks(layers, source, target, self.mask_generator)

    def import_mask(self, name: str, image_data: bytes) -> MaskLayer:
        softness = get_config_value(self.config, 'masks.import_softness', 10.0)
        return import_mask(name, image_data, softness=softness)
