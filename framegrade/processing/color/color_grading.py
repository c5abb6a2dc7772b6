"""
Tonal adjustment pipeline for FrameGrade

Applies exposure, contrast, highlights/shadows, whites/blacks,
temperature/tint, clarity, vibrance/saturation and hue in a fixed order.
"""

import time
import logging
from typing import Optional, Tuple

import numpy as np
import cv2

from ..buffer import PixelBuffer
from .colorspace import (
    srgb_to_linear, linear_to_srgb, smoothstep, luminance,
    rgb_to_hsl, hsl_to_rgb, temperature_to_rgb
)
from .histogram import build_histogram
from .models import ColorGradingOptions, GradingResult, NEUTRAL_TEMPERATURE

logger = logging.getLogger(__name__)

DEFAULT_CLARITY_RADIUS = 5
LUMINANCE_EPSILON = 1e-6


class ColorGrader:
    """
    Tonal grading engine

    Stages run in this order, each skipped when its parameter is neutral:
    - Exposure (in linear light)
    - Contrast
    - Highlights / shadows
    - Whites / blacks
    - Temperature / tint
    - Clarity (luminance unsharp mask)
    - Vibrance / saturation
    - Hue rotation

    Alpha is never touched. The input buffer is never modified.
    """

    def __init__(self, clarity_radius: int = DEFAULT_CLARITY_RADIUS):
        """Initialize color grader"""
        self.clarity_radius = clarity_radius

    def apply_color_grading(self, image: PixelBuffer,
                            options: Optional[ColorGradingOptions] = None) -> GradingResult:
        """
        Apply tonal grading to a frame

        Args:
            image: Input frame
            options: Grading options; None means defaults

        Returns:
            GradingResult with the new frame, its histogram and timing
        """
        start = time.perf_counter()
        options = options or ColorGradingOptions()

        if options.is_neutral():
            graded = image.copy()
        else:
            rgb = self.grade_rgb(image.rgb_float(), options)
            graded = image.with_rgb(rgb)

        histogram = build_histogram(graded)
        elapsed_ms = (time.perf_counter() - start) * 1000.0
        logger.debug(f"Color grading of {image.width}x{image.height} frame took {elapsed_ms:.1f}ms")

        return GradingResult(
            image=graded,
            histogram=histogram,
            elapsed_ms=elapsed_ms,
            applied=options
        )

    def grade_rgb(self, rgb: np.ndarray, options: ColorGradingOptions,
                  spatial: bool = True) -> np.ndarray:
        """
        Run the pipeline on an RGB float array in the 0-255 range.

        Args:
            rgb: (H, W, 3) float array; not modified
            options: Grading options
            spatial: False skips clarity, which depends on neighbouring pixels

        Returns:
            New (H, W, 3) float32 array, clamped to 0-255
        """
        img = rgb.astype(np.float32, copy=True)

        if options.exposure != 0:
            img = self._apply_exposure(img, options.exposure)

        if options.contrast != 0:
            img = self._apply_contrast(img, options.contrast)

        if options.highlights != 0 or options.shadows != 0:
            img = self._apply_highlights_shadows(img, options.highlights, options.shadows)

        if options.whites != 0 or options.blacks != 0:
            img = self._apply_whites_blacks(img, options.whites, options.blacks)

        if options.temperature != NEUTRAL_TEMPERATURE or options.tint != 0:
            img = self._apply_temperature_tint(img, options.temperature, options.tint)

        if options.clarity != 0:
            if spatial:
                img = self._apply_clarity(img, options.clarity)
            else:
                logger.warning("Clarity is a spatial adjustment and was skipped")

        if options.vibrance != 0 or options.saturation != 0:
            img = self._apply_vibrance_saturation(img, options.vibrance, options.saturation)

        if options.hue != 0:
            img = self._apply_hue_shift(img, options.hue)

        return img

    def _apply_exposure(self, img: np.ndarray, exposure: float) -> np.ndarray:
        """Scale linear light by 2^exposure"""
        multiplier = 2.0 ** exposure
        linear = srgb_to_linear(img / 255.0) * multiplier
        return np.clip(linear_to_srgb(linear) * 255.0, 0, 255).astype(np.float32)

    def _apply_contrast(self, img: np.ndarray, contrast: float) -> np.ndarray:
        """Classic contrast curve pivoting on 128"""
        factor = contrast_factor(contrast)
        return np.clip(factor * (img - 128.0) + 128.0, 0, 255)

    def _apply_highlights_shadows(self, img: np.ndarray,
                                  highlights: float, shadows: float) -> np.ndarray:
        """Recover highlights and lift shadows using luminance masks"""
        highlight_factor = 1.0 - highlights / 100.0
        shadow_factor = 1.0 + shadows / 100.0

        lum = luminance(img[:, :, 0], img[:, :, 1], img[:, :, 2]) / 255.0
        highlight_mask = smoothstep(0.5, 1.0, lum)
        shadow_mask = smoothstep(0.0, 0.5, 1.0 - lum)

        scale = ((1.0 + (highlight_factor - 1.0) * highlight_mask) *
                 (1.0 + (shadow_factor - 1.0) * shadow_mask))

        return np.clip(img * scale[:, :, np.newaxis], 0, 255).astype(np.float32)

    def _apply_whites_blacks(self, img: np.ndarray, whites: float, blacks: float) -> np.ndarray:
        """Move the white point, then floor at the black point"""
        white_point = 255.0 + whites * 2.55
        black_point = blacks * 2.55

        result = np.clip(img * (white_point / 255.0), 0, 255)
        return np.maximum(result, black_point).astype(np.float32)

    def _apply_temperature_tint(self, img: np.ndarray,
                                temperature: float, tint: float) -> np.ndarray:
        """White balance shift along the Planckian locus plus green/magenta tint"""
        multipliers = temperature_multipliers(temperature)
        result = img * np.asarray(multipliers, dtype=np.float32)

        tint_factor = tint / 100.0
        if tint_factor > 0:
            # Magenta: pull green down
            result[:, :, 1] *= (1.0 - tint_factor * 0.3)
        elif tint_factor < 0:
            # Green: pull red and blue down
            result[:, :, 0] *= (1.0 + tint_factor * 0.3)
            result[:, :, 2] *= (1.0 + tint_factor * 0.3)

        return np.clip(result, 0, 255)

    def _apply_clarity(self, img: np.ndarray, clarity: float) -> np.ndarray:
        """Unsharp mask on luminance, applied proportionally to RGB"""
        lum = (luminance(img[:, :, 0], img[:, :, 1], img[:, :, 2]) / 255.0).astype(np.float32)
        blurred = gaussian_blur(lum, self.clarity_radius)

        enhanced = lum + (lum - blurred) * (clarity / 100.0)
        dark = lum <= LUMINANCE_EPSILON
        factor = np.where(dark, 1.0, enhanced / np.where(dark, 1.0, lum))

        return np.clip(img * factor[:, :, np.newaxis], 0, 255).astype(np.float32)

    def _apply_vibrance_saturation(self, img: np.ndarray,
                                   vibrance: float, saturation: float) -> np.ndarray:
        """Scale saturation, then boost weakly saturated pixels"""
        h, s, l = rgb_to_hsl(img[:, :, 0] / 255.0, img[:, :, 1] / 255.0, img[:, :, 2] / 255.0)

        s = s * (1.0 + saturation / 100.0)
        s = s + (vibrance / 100.0) * (1.0 - s)
        s = np.clip(s, 0.0, 1.0)

        return _stack_rgb(*hsl_to_rgb(h, s, l))

    def _apply_hue_shift(self, img: np.ndarray, hue: float) -> np.ndarray:
        """Rotate hue by the given number of degrees"""
        h, s, l = rgb_to_hsl(img[:, :, 0] / 255.0, img[:, :, 1] / 255.0, img[:, :, 2] / 255.0)
        h = np.mod(h + hue / 360.0, 1.0)
        return _stack_rgb(*hsl_to_rgb(h, s, l))


def contrast_factor(contrast: float) -> float:
    """Multiplier used by the contrast stage"""
    return (259.0 * (contrast + 255.0)) / (255.0 * (259.0 - contrast))


def temperature_multipliers(temperature: float) -> Tuple[float, float, float]:
    """
    RGB multipliers for a white balance temperature.

    Normalised by the 6500 K reference white so that 6500 K is an identity.
    """
    target = temperature_to_rgb(temperature)
    reference = temperature_to_rgb(NEUTRAL_TEMPERATURE)
    return tuple(t / r for t, r in zip(target, reference))


def gaussian_blur(channel: np.ndarray, radius: int) -> np.ndarray:
    """Gaussian blur with a (2r+1)^2 kernel, sigma r/3, replicated edges"""
    ksize = 2 * int(radius) + 1
    return cv2.GaussianBlur(channel.astype(np.float32), (ksize, ksize),
                            sigmaX=radius / 3.0, borderType=cv2.BORDER_REPLICATE)


def _stack_rgb(r, g, b) -> np.ndarray:
    return np.clip(np.stack([r, g, b], axis=-1) * 255.0, 0, 255).astype(np.float32)


def apply_color_grading(image: PixelBuffer,
                        options: Optional[ColorGradingOptions] = None) -> GradingResult:
    """Grade a frame with a default-configured ColorGrader."""
    return ColorGrader().apply_color_grading(image, options)
