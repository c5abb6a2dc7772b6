"""
Data models for the color grading pipeline.
"""

from dataclasses import dataclass, field, fields, asdict
from typing import Dict, Any, List, Optional, Sequence
import logging

import numpy as np

from ..buffer import PixelBuffer

logger = logging.getLogger(__name__)

NEUTRAL_TEMPERATURE = 6500.0
MIN_GAMMA = 1e-3


def _clamp(name: str, value: float, low: float, high: float) -> float:
    clamped = min(max(float(value), low), high)
    if clamped != value:
        logger.debug(f"Clamped {name} from {value} to {clamped}")
    return clamped


@dataclass
class ColorGradingOptions:
    """Global tonal and color adjustments. Defaults are an identity."""
    exposure: float = 0.0  # -3 to +3 stops
    contrast: float = 0.0  # -100 to +100
    highlights: float = 0.0  # -100 to +100
    shadows: float = 0.0  # -100 to +100
    whites: float = 0.0  # -100 to +100
    blacks: float = 0.0  # -100 to +100
    clarity: float = 0.0  # -100 to +100
    vibrance: float = 0.0  # -100 to +100
    saturation: float = 0.0  # -100 to +100
    temperature: float = NEUTRAL_TEMPERATURE  # 2000K to 11000K
    tint: float = 0.0  # -100 (green) to +100 (magenta)
    hue: float = 0.0  # -180 to +180 degrees

    # (min, max) per field
    RANGES = {
        'exposure': (-3.0, 3.0),
        'contrast': (-100.0, 100.0),
        'highlights': (-100.0, 100.0),
        'shadows': (-100.0, 100.0),
        'whites': (-100.0, 100.0),
        'blacks': (-100.0, 100.0),
        'clarity': (-100.0, 100.0),
        'vibrance': (-100.0, 100.0),
        'saturation': (-100.0, 100.0),
        'temperature': (2000.0, 11000.0),
        'tint': (-100.0, 100.0),
        'hue': (-180.0, 180.0),
    }

    def __post_init__(self):
        for name, (low, high) in self.RANGES.items():
            setattr(self, name, _clamp(name, getattr(self, name), low, high))

    def is_neutral(self) -> bool:
        """True when applying these options would not change a frame."""
        return self == ColorGradingOptions()

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ColorGradingOptions':
        """Build options from a partial mapping; unknown keys are ignored."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: float(v) for k, v in data.items() if k in known})


@dataclass
class LiftGammaGain:
    """Three-point tonal control for one range."""
    lift: float = 0.0  # -1 to +1
    gamma: float = 1.0  # > 0, 1 is identity
    gain: float = 1.0  # multiplier, 1 is identity

    def __post_init__(self):
        self.lift = _clamp('lift', self.lift, -1.0, 1.0)
        self.gamma = max(float(self.gamma), MIN_GAMMA)
        self.gain = _clamp('gain', self.gain, 0.0, 2.0)

    def is_identity(self) -> bool:
        return self.lift == 0.0 and self.gamma == 1.0 and self.gain == 1.0


@dataclass
class ColorWheelAdjustment:
    """Lift/gamma/gain for shadows, midtones, highlights and the whole frame."""
    shadows: LiftGammaGain = field(default_factory=LiftGammaGain)
    midtones: LiftGammaGain = field(default_factory=LiftGammaGain)
    highlights: LiftGammaGain = field(default_factory=LiftGammaGain)
    master: LiftGammaGain = field(default_factory=LiftGammaGain)

    def is_identity(self) -> bool:
        return all(getattr(self, name).is_identity()
                   for name in ('shadows', 'midtones', 'highlights', 'master'))

    @classmethod
    def from_dict(cls, data: Dict[str, Dict[str, float]]) -> 'ColorWheelAdjustment':
        return cls(**{name: LiftGammaGain(**values) for name, values in data.items()})


def identity_curve() -> List[float]:
    """Linear curve mapping every level to itself."""
    return [float(i) for i in range(256)]


@dataclass
class RGBCurves:
    """Per-channel curves plus a master curve applied to luminance."""
    red: Optional[Sequence[float]] = None
    green: Optional[Sequence[float]] = None
    blue: Optional[Sequence[float]] = None
    master: Optional[Sequence[float]] = None

    def is_identity(self) -> bool:
        return all(c is None for c in (self.red, self.green, self.blue, self.master))


@dataclass
class HSLCurves:
    """Curves over hue, saturation and luminance (each 0-255 scaled)."""
    hue: Optional[Sequence[float]] = None
    saturation: Optional[Sequence[float]] = None
    luminance: Optional[Sequence[float]] = None

    def is_identity(self) -> bool:
        return all(c is None for c in (self.hue, self.saturation, self.luminance))


@dataclass
class Histogram:
    """256-bin frequency tables."""
    red: np.ndarray
    green: np.ndarray
    blue: np.ndarray
    luminance: np.ndarray

    def to_dict(self) -> Dict[str, List[int]]:
        return {
            'red': self.red.tolist(),
            'green': self.green.tolist(),
            'blue': self.blue.tolist(),
            'luminance': self.luminance.tolist(),
        }


@dataclass
class GradingResult:
    """Output of a tonal grading pass."""
    image: PixelBuffer
    histogram: Histogram
    elapsed_ms: float
    applied: ColorGradingOptions
