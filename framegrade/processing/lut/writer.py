"""
Serialize lookup tables to .cube and .3dl text.
"""

import logging
from pathlib import Path
from typing import Optional, Union

import numpy as np

from ...errors import FormatError
from .models import LUTData, LUTDimension, LUTFormat

logger = logging.getLogger(__name__)

THREEDL_OUTPUT_BITS = 12
THREEDL_OUTPUT_MAX = 2 ** THREEDL_OUTPUT_BITS - 1
THREEDL_SHAPER_MAX = 1023


def write_cube(lut: LUTData) -> str:
    """Write .cube format."""
    lines = [f'TITLE "{lut.title or lut.name}"']

    for comment in lut.comments:
        lines.append(f"# {comment}")

    if lut.is_3d:
        lines.append(f"LUT_3D_SIZE {lut.size}")
    else:
        lines.append(f"LUT_1D_SIZE {lut.size}")

    lines.append("DOMAIN_MIN {:.6f} {:.6f} {:.6f}".format(*lut.domain_min))
    lines.append("DOMAIN_MAX {:.6f} {:.6f} {:.6f}".format(*lut.domain_max))
    lines.append("")

    for r, g, b in lut.data.reshape(-1, 3):
        lines.append(f"{r:.6f} {g:.6f} {b:.6f}")

    return "\n".join(lines) + "\n"


def write_3dl(lut: LUTData) -> str:
    """
    Write .3dl format with a 10-bit shaper and 12-bit output.

    A Mesh header records the output depth so readers need not infer it
    from the samples. Rows are emitted with blue fastest, the inverse of
    the cube ordering.
    """
    if lut.dimension != LUTDimension.THREE_D:
        raise FormatError("Only 3D LUTs can be written as .3dl")

    size = lut.size
    mesh_bits = max(int(np.ceil(np.log2(size - 1))), 1)
    shaper = np.rint(np.linspace(0, THREEDL_SHAPER_MAX, size)).astype(int)
    lines = [
        f"Mesh {mesh_bits} {THREEDL_OUTPUT_BITS}",
        " ".join(str(v) for v in shaper),
    ]

    # [b, g, r] -> [r, g, b]
    grid = lut.table().transpose(2, 1, 0, 3).reshape(-1, 3)
    quantized = np.clip(np.rint(grid * THREEDL_OUTPUT_MAX), 0, THREEDL_OUTPUT_MAX).astype(int)

    for r, g, b in quantized:
        lines.append(f"{r} {g} {b}")

    return "\n".join(lines) + "\n"


def save_lut(lut: LUTData, path: Union[str, Path], fmt: Optional[LUTFormat] = None) -> None:
    """Write a LUT to disk; the format defaults to the file suffix."""
    path = Path(path)
    if fmt is None:
        fmt = LUTFormat.THREEDL if path.suffix.lower() == '.3dl' else LUTFormat.CUBE

    content = write_cube(lut) if fmt == LUTFormat.CUBE else write_3dl(lut)
    path.write_text(content, encoding="utf-8")
    logger.info(f"Written LUT to {path}")
