"""
Color space helpers used throughout the grading and masking code.

All functions accept Python scalars or numpy arrays and broadcast.
RGB and HSL components are normalized to 0-1 unless noted otherwise.
"""

import numpy as np
from typing import Tuple

# Rec.601 luma weights
LUMA_WEIGHTS = (0.299, 0.587, 0.114)

# Largest Euclidean distance between two 8-bit RGB colors
MAX_RGB_DISTANCE = float(np.sqrt(255.0 ** 2 * 3))


def srgb_to_linear(value):
    """Decode sRGB transfer function."""
    v = np.asarray(value, dtype=np.float64)
    return np.where(v <= 0.04045, v / 12.92, np.power((np.maximum(v, 0) + 0.055) / 1.055, 2.4))


def linear_to_srgb(value):
    """Encode linear light with the sRGB transfer function."""
    v = np.asarray(value, dtype=np.float64)
    return np.where(v <= 0.0031308, v * 12.92,
                    1.055 * np.power(np.maximum(v, 0), 1 / 2.4) - 0.055)


def smoothstep(edge0: float, edge1: float, x):
    """Hermite interpolation between two edges, clamped to [0, 1]."""
    t = np.clip((np.asarray(x, dtype=np.float64) - edge0) / (edge1 - edge0), 0.0, 1.0)
    return t * t * (3.0 - 2.0 * t)


def luminance(r, g, b):
    """Perceptual luminance; the result has the scale of the inputs."""
    return LUMA_WEIGHTS[0] * r + LUMA_WEIGHTS[1] * g + LUMA_WEIGHTS[2] * b


def rgb_luminance(rgb: np.ndarray) -> np.ndarray:
    """Luminance of an (..., 3) array."""
    return luminance(rgb[..., 0], rgb[..., 1], rgb[..., 2])


def color_distance(rgb: np.ndarray, target: Tuple[float, float, float]) -> np.ndarray:
    """Euclidean distance of every (..., 3) sample to a target color."""
    diff = rgb.astype(np.float32) - np.asarray(target, dtype=np.float32)
    return np.sqrt(np.sum(diff * diff, axis=-1))


def rgb_to_hsl(r, g, b):
    """
    Convert RGB to HSL.

    Hue is returned in 0-1 turns. Achromatic pixels (max == min) get hue 0
    and saturation 0.
    """
    r = np.asarray(r, dtype=np.float64)
    g = np.asarray(g, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)

    cmax = np.maximum(np.maximum(r, g), b)
    cmin = np.minimum(np.minimum(r, g), b)
    diff = cmax - cmin
    add = cmax + cmin
    lightness = add * 0.5

    chromatic = diff != 0
    safe_diff = np.where(chromatic, diff, 1.0)

    denom = np.where(lightness < 0.5, add, 2.0 - add)
    saturation = np.where(chromatic, diff / np.where(denom == 0, 1.0, denom), 0.0)

    # Ties resolve in r, g, b order
    hue = np.select(
        [cmax == r, cmax == g],
        [(g - b) / safe_diff + np.where(g < b, 6.0, 0.0),
         (b - r) / safe_diff + 2.0],
        default=(r - g) / safe_diff + 4.0,
    )
    hue = np.where(chromatic, hue / 6.0, 0.0)

    return hue, saturation, lightness


def _hue_to_channel(p, q, t):
    t = np.where(t < 0, t + 1.0, t)
    t = np.where(t > 1, t - 1.0, t)
    return np.select(
        [t < 1 / 6, t < 1 / 2, t < 2 / 3],
        [p + (q - p) * 6.0 * t, q, p + (q - p) * (2 / 3 - t) * 6.0],
        default=p,
    )


def hsl_to_rgb(h, s, l):
    """Convert HSL (hue in 0-1 turns) back to RGB."""
    h = np.asarray(h, dtype=np.float64)
    s = np.asarray(s, dtype=np.float64)
    l = np.asarray(l, dtype=np.float64)

    q = np.where(l < 0.5, l * (1 + s), l + s - l * s)
    p = 2 * l - q

    r = _hue_to_channel(p, q, h + 1 / 3)
    g = _hue_to_channel(p, q, h)
    b = _hue_to_channel(p, q, h - 1 / 3)

    gray = s == 0
    return np.where(gray, l, r), np.where(gray, l, g), np.where(gray, l, b)


def temperature_to_rgb(kelvin: float) -> Tuple[float, float, float]:
    """
    Approximate the RGB color of a black body at the given temperature.

    Uses the piecewise Planckian-locus fit, branching at 6600 K.

    Returns:
        (r, g, b) in 0-1
    """
    temp = kelvin / 100.0

    if temp <= 66:
        r = 255.0
        g = 0.0 if temp <= 19 else 99.4708025861 * np.log(temp - 10) - 161.1195681661
        b = 0.0 if temp <= 19 else 138.5177312231 * np.log(temp - 10) - 305.0447927307
    else:
        r = 329.698727446 * np.power(temp - 60, -0.1332047592)
        g = 288.1221695283 * np.power(temp - 60, -0.0755148492)
        b = 255.0

    return tuple(float(np.clip(c, 0, 255)) / 255.0 for c in (r, g, b))
