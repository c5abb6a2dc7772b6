"""
Built-in look LUTs generated from per-color transforms.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Tuple, Union

import numpy as np

from .models import LUTData

logger = logging.getLogger(__name__)

DEFAULT_BUILTIN_SIZE = 33

Channels = Tuple[np.ndarray, np.ndarray, np.ndarray]


class BuiltinLUT(Enum):
    """Looks that ship with FrameGrade"""
    REC709_TO_SRGB = "rec709_to_srgb"
    ORANGE_TEAL = "cinematic_orange_teal"
    VINTAGE_FILM = "vintage_film"
    PORTRAIT = "portrait_enhancer"
    LANDSCAPE_VIVID = "landscape_vivid"


def _luma(r, g, b):
    return 0.299 * r + 0.587 * g + 0.114 * b


def _rec709_to_srgb(r, g, b) -> Channels:
    return r ** (1 / 2.4), g ** (1 / 2.4), b ** (1 / 2.4)


def _orange_teal(r, g, b) -> Channels:
    # Warm colors get more red, cool colors more blue
    orange = np.maximum(0.0, r + g - b)
    teal = np.maximum(0.0, g + b - r)
    return np.minimum(1.0, r + orange * 0.2), g, np.minimum(1.0, b + teal * 0.3)


def _vintage_film(r, g, b) -> Channels:
    return (np.minimum(1.0, r * 1.1 + 0.05),
            np.minimum(1.0, g * 1.05 + 0.03),
            np.minimum(1.0, b * 0.9))


def _portrait(r, g, b) -> Channels:
    skin = np.where((r > 0.4) & (g > 0.3) & (b > 0.2), 1.1, 1.0)
    return (np.minimum(1.0, r * skin),
            np.minimum(1.0, g * skin * 0.95),
            np.minimum(1.0, b * skin * 0.9))


def _landscape_vivid(r, g, b, saturation: float = 1.3) -> Channels:
    gray = _luma(r, g, b)
    return tuple(gray + (c - gray) * saturation for c in (r, g, b))


@dataclass(frozen=True)
class BuiltinLUTInfo:
    title: str
    category: str
    description: str
    transform: Callable[..., Channels]


BUILTIN_LUTS: Dict[BuiltinLUT, BuiltinLUTInfo] = {
    BuiltinLUT.REC709_TO_SRGB: BuiltinLUTInfo(
        "Rec709 to sRGB", "technical", "Standard Rec.709 to sRGB conversion", _rec709_to_srgb),
    BuiltinLUT.ORANGE_TEAL: BuiltinLUTInfo(
        "Cinematic Orange Teal", "cinematic", "Popular orange and teal color scheme", _orange_teal),
    BuiltinLUT.VINTAGE_FILM: BuiltinLUTInfo(
        "Vintage Film", "vintage", "Classic film emulation with warm tones", _vintage_film),
    BuiltinLUT.PORTRAIT: BuiltinLUTInfo(
        "Portrait Enhancer", "portrait", "Enhances skin tones and warmth", _portrait),
    BuiltinLUT.LANDSCAPE_VIVID: BuiltinLUTInfo(
        "Landscape Vivid", "landscape", "Enhanced saturation for nature shots", _landscape_vivid),
}


def resolve_builtin(name: Union[BuiltinLUT, str]) -> BuiltinLUT:
    """
    Find a built-in look by enum, key ("vintage_film") or title ("Vintage Film").

    Raises:
        ValueError: no built-in LUT has that name
    """
    if isinstance(name, BuiltinLUT):
        return name

    wanted = name.strip().lower()
    for preset, info in BUILTIN_LUTS.items():
        if wanted in (preset.value, info.title.lower()):
            return preset

    available = ", ".join(preset.value for preset in BuiltinLUT)
    raise ValueError(f"Unknown built-in LUT '{name}'. Available: {available}")


def list_builtin_luts() -> List[Dict[str, str]]:
    return [
        {'key': preset.value, 'name': info.title, 'category': info.category,
         'description': info.description}
        for preset, info in BUILTIN_LUTS.items()
    ]


def builtin_lut(name: Union[BuiltinLUT, str], size: int = DEFAULT_BUILTIN_SIZE) -> LUTData:
    """
    Generate a built-in look as a 3D LUT.

    Every lattice color is passed through the look's transform; results are
    clipped to 0-1.

    Args:
        name: BuiltinLUT, its key or its title
        size: Lattice edge length

    Returns:
        3D LUTData titled after the look
    """
    preset = resolve_builtin(name)
    info = BUILTIN_LUTS[preset]

    ramp = np.linspace(0.0, 1.0, size, dtype=np.float64)
    b, g, r = np.meshgrid(ramp, ramp, ramp, indexing='ij')
    out = np.stack(info.transform(r, g, b), axis=-1)

    logger.debug(f"Generated built-in LUT '{info.title}' ({size}^3)")
    return LUTData(
        name=info.title,
        size=size,
        data=np.clip(out, 0.0, 1.0),
        title=info.title,
        comments=[info.description, f"Category: {info.category}"],
    )
