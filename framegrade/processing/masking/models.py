"""
Data models for the masking system.
"""

from dataclasses import dataclass, field, replace
from typing import Dict, Any, Tuple, Optional, List, Union
from enum import Enum
import copy
import logging
import uuid

import numpy as np

from ..buffer import PixelBuffer, mask_to_buffer

logger = logging.getLogger(__name__)

Point = Tuple[float, float]


def _clamp(value: float, low: float, high: float) -> float:
    return min(max(float(value), low), high)


class MaskKind(Enum):
    """Available mask generation strategies."""
    VECTOR = "vector"
    LUMINANCE = "luminance"
    COLOR = "color"
    GRADIENT = "gradient"


class PathVertexKind(Enum):
    """Segment type ending at a path vertex."""
    MOVE = "move"
    LINE = "line"
    CURVE = "curve"  # Cubic bezier, needs both control points


class GradientKind(Enum):
    """Gradient geometry."""
    LINEAR = "linear"
    RADIAL = "radial"
    ANGULAR = "angular"  # Rendered as linear


@dataclass
class PathVertex:
    """A vertex of a vector mask path, in pixel coordinates."""
    x: float
    y: float
    kind: PathVertexKind = PathVertexKind.LINE
    control1: Optional[Point] = None
    control2: Optional[Point] = None

    def __post_init__(self):
        self.kind = PathVertexKind(self.kind)

    @property
    def point(self) -> Point:
        return (self.x, self.y)

    def to_dict(self) -> Dict[str, Any]:
        result = {'x': self.x, 'y': self.y, 'kind': self.kind.value}
        if self.control1 is not None:
            result['control1'] = list(self.control1)
        if self.control2 is not None:
            result['control2'] = list(self.control2)
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PathVertex':
        return cls(
            x=float(data['x']),
            y=float(data['y']),
            kind=PathVertexKind(data.get('kind', 'line')),
            control1=tuple(data['control1']) if data.get('control1') is not None else None,
            control2=tuple(data['control2']) if data.get('control2') is not None else None,
        )


@dataclass
class VectorMask:
    """Parameters for path-based masks."""
    points: List[PathVertex] = field(default_factory=list)
    closed: bool = True
    feather: float = 0.0  # Gaussian feather radius in pixels

    def __post_init__(self):
        self.feather = max(float(self.feather), 0.0)


@dataclass
class LuminanceMask:
    """Parameters for luminance range masks."""
    min_luminance: float = 0.0  # 0-255
    max_luminance: float = 255.0  # 0-255
    softness: float = 0.0  # 0-100, percent of the range

    def __post_init__(self):
        self.min_luminance = _clamp(self.min_luminance, 0.0, 255.0)
        self.max_luminance = _clamp(self.max_luminance, 0.0, 255.0)
        if self.min_luminance > self.max_luminance:
            self.min_luminance, self.max_luminance = self.max_luminance, self.min_luminance
        self.softness = _clamp(self.softness, 0.0, 100.0)


@dataclass
class ColorMask:
    """Parameters for color key masks."""
    target: Tuple[int, int, int] = (0, 0, 0)
    tolerance: float = 20.0  # 0-100, percent of the largest RGB distance
    softness: float = 0.0  # 0-100, percent of the tolerance threshold

    def __post_init__(self):
        self.target = tuple(int(round(_clamp(c, 0, 255))) for c in self.target)
        if len(self.target) != 3:
            raise ValueError(f"Target color needs 3 components, got {len(self.target)}")
        self.tolerance = _clamp(self.tolerance, 0.0, 100.0)
        self.softness = _clamp(self.softness, 0.0, 100.0)


@dataclass
class GradientStop:
    """Alpha at a position along a gradient."""
    position: float  # 0-1
    alpha: float  # 0-1

    def __post_init__(self):
        self.position = _clamp(self.position, 0.0, 1.0)
        self.alpha = _clamp(self.alpha, 0.0, 1.0)


def default_stops() -> List[GradientStop]:
    return [GradientStop(0.0, 1.0), GradientStop(1.0, 0.0)]


@dataclass
class GradientMask:
    """Parameters for gradient masks, in pixel coordinates."""
    kind: GradientKind = GradientKind.LINEAR
    start: Point = (0.0, 0.0)
    end: Point = (0.0, 0.0)
    stops: List[GradientStop] = field(default_factory=default_stops)

    def __post_init__(self):
        self.kind = GradientKind(self.kind)
        self.start = (float(self.start[0]), float(self.start[1]))
        self.end = (float(self.end[0]), float(self.end[1]))
        self.stops = [s if isinstance(s, GradientStop) else GradientStop(*s)
                      for s in self.stops]


MaskShape = Union[VectorMask, LuminanceMask, ColorMask, GradientMask]

_SHAPE_KINDS = {
    VectorMask: MaskKind.VECTOR,
    LuminanceMask: MaskKind.LUMINANCE,
    ColorMask: MaskKind.COLOR,
    GradientMask: MaskKind.GRADIENT,
}


def generate_mask_id() -> str:
    return f"mask_{uuid.uuid4().hex[:12]}"


@dataclass
class MaskLayer:
    """A mask definition plus the layer properties shared by all kinds."""
    name: str
    shape: MaskShape
    id: str = field(default_factory=generate_mask_id)
    visible: bool = True
    locked: bool = False
    opacity: float = 100.0  # 0-100
    inverted: bool = False

    def __post_init__(self):
        if type(self.shape) not in _SHAPE_KINDS:
            raise TypeError(f"Unsupported mask shape: {type(self.shape).__name__}")
        self.opacity = _clamp(self.opacity, 0.0, 100.0)

    @property
    def kind(self) -> MaskKind:
        return _SHAPE_KINDS[type(self.shape)]

    def duplicate(self, name: Optional[str] = None) -> 'MaskLayer':
        """Deep copy with a fresh id, visible and unlocked."""
        return replace(
            self,
            name=name if name is not None else f"{self.name} Copy",
            shape=copy.deepcopy(self.shape),
            id=generate_mask_id(),
            visible=True,
            locked=False,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for YAML/JSON serialization."""
        shape = self.shape
        if isinstance(shape, VectorMask):
            params = {
                'points': [p.to_dict() for p in shape.points],
                'closed': shape.closed,
                'feather': shape.feather,
            }
        elif isinstance(shape, LuminanceMask):
            params = {
                'min': shape.min_luminance,
                'max': shape.max_luminance,
                'softness': shape.softness,
            }
        elif isinstance(shape, ColorMask):
            params = {
                'target': list(shape.target),
                'tolerance': shape.tolerance,
                'softness': shape.softness,
            }
        else:
            params = {
                'kind': shape.kind.value,
                'start': list(shape.start),
                'end': list(shape.end),
                'stops': [[s.position, s.alpha] for s in shape.stops],
            }

        return {
            'id': self.id,
            'name': self.name,
            'type': self.kind.value,
            'visible': self.visible,
            'locked': self.locked,
            'opacity': self.opacity,
            'inverted': self.inverted,
            'parameters': params,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MaskLayer':
        """Create from dictionary (YAML/JSON deserialization)."""
        kind = MaskKind(data['type'])
        params = data.get('parameters', {})

        if kind == MaskKind.VECTOR:
            shape = VectorMask(
                points=[PathVertex.from_dict(p) for p in params.get('points', [])],
                closed=params.get('closed', True),
                feather=params.get('feather', 0.0),
            )
        elif kind == MaskKind.LUMINANCE:
            shape = LuminanceMask(
                min_luminance=params.get('min', 0.0),
                max_luminance=params.get('max', 255.0),
                softness=params.get('softness', 0.0),
            )
        elif kind == MaskKind.COLOR:
            shape = ColorMask(
                target=tuple(params.get('target', (0, 0, 0))),
                tolerance=params.get('tolerance', 20.0),
                softness=params.get('softness', 0.0),
            )
        else:
            stops = params.get('stops')
            shape = GradientMask(
                kind=GradientKind(params.get('kind', 'linear')),
                start=tuple(params.get('start', (0.0, 0.0))),
                end=tuple(params.get('end', (0.0, 0.0))),
                stops=[GradientStop(**s) if isinstance(s, dict) else GradientStop(*s)
                       for s in stops] if stops else default_stops(),
            )

        layer = cls(
            name=data.get('name', kind.value.title()),
            shape=shape,
            visible=data.get('visible', True),
            locked=data.get('locked', False),
            opacity=data.get('opacity', 100.0),
            inverted=data.get('inverted', False),
        )
        if data.get('id'):
            layer.id = data['id']
        return layer


@dataclass
class CompositingResult:
    """Output of compositing a layer stack over a frame."""
    image: PixelBuffer
    mask: np.ndarray  # float32 (H, W), 0-1
    applied_layers: List[MaskLayer]
    elapsed_ms: float

    @property
    def mask_buffer(self) -> PixelBuffer:
        """The combined mask as an 8-bit raster."""
        return mask_to_buffer(self.mask)
