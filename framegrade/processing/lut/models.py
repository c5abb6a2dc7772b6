"""
Data models for lookup tables.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

import numpy as np

from ...errors import FormatError


class LUTDimension(Enum):
    """Lookup table dimensionality."""
    ONE_D = "1D"
    THREE_D = "3D"


class LUTFormat(Enum):
    """Supported text formats."""
    CUBE = "cube"
    THREEDL = "3dl"


class LUTBlendMode(Enum):
    """How a LUT result is combined with the source pixel."""
    NORMAL = "normal"
    MULTIPLY = "multiply"
    SCREEN = "screen"
    LUMINOSITY = "luminosity"
    COLOR = "color"


@dataclass
class LUTData:
    """
    A parsed or generated lookup table.

    For 3D tables `data` holds N*N*N RGB triples in the order
    `(b*N*N + g*N + r)*3`, i.e. red varies fastest. For 1D tables it holds
    N RGB triples.
    """
    name: str
    size: int
    data: np.ndarray
    dimension: LUTDimension = LUTDimension.THREE_D
    source_format: LUTFormat = LUTFormat.CUBE
    title: Optional[str] = None
    comments: List[str] = field(default_factory=list)
    domain_min: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    domain_max: Tuple[float, float, float] = (1.0, 1.0, 1.0)

    def __post_init__(self):
        self.data = np.ascontiguousarray(self.data, dtype=np.float32).ravel()
        if self.size < 2:
            raise FormatError(f"LUT size must be at least 2, got {self.size}")
        if self.data.size != self.expected_samples():
            raise FormatError(
                f"Invalid LUT data size. Expected {self.expected_samples()}, got {self.data.size}"
            )

    def expected_samples(self) -> int:
        if self.dimension == LUTDimension.ONE_D:
            return self.size * 3
        return self.size ** 3 * 3

    @property
    def is_3d(self) -> bool:
        return self.dimension == LUTDimension.THREE_D

    def table(self) -> np.ndarray:
        """
        Structured view of the samples.

        Returns:
            (N, N, N, 3) array indexed [b, g, r] for 3D tables,
            (N, 3) array for 1D tables
        """
        if self.is_3d:
            return self.data.reshape(self.size, self.size, self.size, 3)
        return self.data.reshape(self.size, 3)

    def lookup(self, r: int, g: int, b: int) -> Tuple[float, float, float]:
        """Sample stored at an exact grid position."""
        index = (b * self.size * self.size + g * self.size + r) * 3
        return tuple(float(v) for v in self.data[index:index + 3])


def identity_lut(size: int = 33, name: str = "Identity") -> LUTData:
    """3D table that maps every color to itself."""
    ramp = np.linspace(0.0, 1.0, size, dtype=np.float32)
    b, g, r = np.meshgrid(ramp, ramp, ramp, indexing='ij')
    data = np.stack([r, g, b], axis=-1)
    return LUTData(name=name, size=size, data=data)
