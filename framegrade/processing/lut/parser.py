"""
Parsers for .cube and .3dl lookup table files.
"""

import re
import logging
from pathlib import Path
from typing import List, Optional, Tuple, Union

import numpy as np

from ...errors import FormatError
from .models import LUTData, LUTDimension, LUTFormat

logger = logging.getLogger(__name__)

MAX_LUT_SIZE = 256
MAX_1D_LUT_SIZE = 65536

CUBE_KEYWORDS = ('TITLE', 'LUT_3D_SIZE', 'LUT_1D_SIZE', 'DOMAIN_MIN', 'DOMAIN_MAX',
                 'LUT_3D_INPUT_RANGE', 'LUT_1D_INPUT_RANGE')

_KEYWORD_RE = re.compile(r'^[A-Za-z_]')


def _decode(content: Union[bytes, str]) -> str:
    if isinstance(content, bytes):
        return content.decode('utf-8-sig', errors='replace')
    return content[1:] if content.startswith('\ufeff') else content


def _parse_size(line: str, line_no: int, limit: int = MAX_LUT_SIZE) -> int:
    parts = line.split()
    if len(parts) != 2:
        raise FormatError(f"Line {line_no}: malformed size declaration '{line}'")
    try:
        size = int(parts[1])
    except ValueError:
        raise FormatError(f"Line {line_no}: invalid LUT size '{parts[1]}'")
    if not 2 <= size <= limit:
        raise FormatError(f"Line {line_no}: LUT size {size} outside 2-{limit}")
    return size


def _parse_floats(parts: List[str], line_no: int, count: int) -> Tuple[float, ...]:
    if len(parts) != count:
        raise FormatError(f"Line {line_no}: expected {count} values, got {len(parts)}")
    try:
        return tuple(float(p) for p in parts)
    except ValueError:
        raise FormatError(f"Line {line_no}: non-numeric sample '{' '.join(parts)}'")


def detect_format(text: str) -> LUTFormat:
    """Guess the format from the first keyword or numeric line."""
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith('#'):
            continue
        keyword = line.split()[0].upper()
        if keyword in CUBE_KEYWORDS:
            return LUTFormat.CUBE
        if keyword == 'MESH' or len(line.split()) != 3:
            return LUTFormat.THREEDL
        if _KEYWORD_RE.match(line):
            raise FormatError(f"Unsupported LUT format: unrecognized header '{keyword}'")
        # A three-entry shaper is integer code values; cube samples are normalized
        if all(part.isdigit() for part in line.split()) and max(int(p) for p in line.split()) > 1:
            return LUTFormat.THREEDL
        return LUTFormat.CUBE
    raise FormatError("Empty LUT file")


def parse_cube(content: Union[bytes, str], name: Optional[str] = None) -> LUTData:
    """
    Parse .cube format (Resolve/Adobe).

    Samples are stored exactly in file order, which the format defines as
    red fastest, then green, then blue.
    """
    text = _decode(content)

    title = None
    comments = []
    size_1d = None
    size_3d = None
    domain_min = (0.0, 0.0, 0.0)
    domain_max = (1.0, 1.0, 1.0)
    samples = []

    for line_no, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line:
            continue

        if line.startswith('#'):
            comments.append(line[1:].strip())
            continue

        if _KEYWORD_RE.match(line):
            keyword = line.split()[0].upper()

            if keyword == 'TITLE':
                match = re.match(r'TITLE\s+"?([^"]*)"?', line, re.IGNORECASE)
                title = match.group(1).strip() if match else ''
            elif keyword == 'LUT_3D_SIZE':
                size_3d = _parse_size(line, line_no)
            elif keyword == 'LUT_1D_SIZE':
                size_1d = _parse_size(line, line_no, MAX_1D_LUT_SIZE)
            elif keyword == 'DOMAIN_MIN':
                domain_min = _parse_floats(line.split()[1:], line_no, 3)
            elif keyword == 'DOMAIN_MAX':
                domain_max = _parse_floats(line.split()[1:], line_no, 3)
            elif keyword in ('LUT_3D_INPUT_RANGE', 'LUT_1D_INPUT_RANGE'):
                low, high = _parse_floats(line.split()[1:], line_no, 2)
                domain_min = (low, low, low)
                domain_max = (high, high, high)
            else:
                raise FormatError(f"Line {line_no}: unrecognized header '{keyword}'")
            continue

        samples.append(_parse_floats(line.split(), line_no, 3))

    if size_1d is not None and size_3d is not None:
        raise FormatError("LUT declares both LUT_1D_SIZE and LUT_3D_SIZE")
    if size_1d is None and size_3d is None:
        raise FormatError("Missing LUT_3D_SIZE declaration")

    if any(high <= low for low, high in zip(domain_min, domain_max)):
        raise FormatError(f"Invalid domain {domain_min} - {domain_max}")

    dimension = LUTDimension.THREE_D if size_3d is not None else LUTDimension.ONE_D
    size = size_3d if size_3d is not None else size_1d
    expected = size ** 3 if dimension == LUTDimension.THREE_D else size

    if len(samples) != expected:
        raise FormatError(
            f"Invalid LUT data size. Expected {expected} samples, got {len(samples)}"
        )

    return LUTData(
        name=title or name or 'Cube LUT',
        size=size,
        data=np.asarray(samples, dtype=np.float32),
        dimension=dimension,
        source_format=LUTFormat.CUBE,
        title=title,
        comments=comments,
        domain_min=tuple(domain_min),
        domain_max=tuple(domain_max),
    )


def parse_3dl(content: Union[bytes, str], name: Optional[str] = None) -> LUTData:
    """
    Parse .3dl format (Autodesk/Lustre).

    The first numeric line is the input shaper whose length gives the grid
    size. Sample rows run with blue fastest and red slowest; they are
    reordered into the red-fastest layout used everywhere else.
    """
    text = _decode(content)

    comments = []
    shaper = None
    output_max = None
    rows = []

    for line_no, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line:
            continue
        if line.startswith('#'):
            comments.append(line[1:].strip())
            continue

        parts = line.split()
        if _KEYWORD_RE.match(line):
            if parts[0].upper() != 'MESH':
                raise FormatError(f"Line {line_no}: unrecognized header '{parts[0]}'")
            # "Mesh <input bits> <output bits>"
            if len(parts) == 3:
                try:
                    output_max = float(2 ** int(parts[2]) - 1)
                except ValueError:
                    raise FormatError(f"Line {line_no}: malformed Mesh line '{line}'")
            continue

        try:
            values = [int(p) for p in parts]
        except ValueError:
            raise FormatError(f"Line {line_no}: non-integer sample '{line}'")

        if shaper is None:
            shaper = values
            continue

        if len(values) != 3:
            raise FormatError(f"Line {line_no}: expected 3 values, got {len(values)}")
        rows.append(values)

    if shaper is None:
        raise FormatError("Missing 3DL shaper line")

    size = len(shaper)
    if not 2 <= size <= MAX_LUT_SIZE:
        raise FormatError(f"3DL shaper defines unsupported size {size}")
    if len(rows) != size ** 3:
        raise FormatError(
            f"Invalid LUT data size. Expected {size ** 3} samples, got {len(rows)}"
        )

    samples = np.asarray(rows, dtype=np.float32)
    if output_max is None:
        output_max = infer_bit_depth_max(float(samples.max()))

    # [r, g, b] -> [b, g, r]
    grid = samples.reshape(size, size, size, 3).transpose(2, 1, 0, 3) / output_max

    return LUTData(
        name=name or '3DL LUT',
        size=size,
        data=grid,
        dimension=LUTDimension.THREE_D,
        source_format=LUTFormat.THREEDL,
        comments=comments,
    )


def infer_bit_depth_max(peak: float) -> float:
    """Smallest of the common 10/12/16-bit ranges that holds the peak sample."""
    for depth_max in (1023.0, 4095.0, 65535.0):
        if peak <= depth_max:
            return depth_max
    raise FormatError(f"3DL sample {peak} exceeds 16-bit range")


def load_lut(content: Union[bytes, str], name: Optional[str] = None,
             fmt: Optional[LUTFormat] = None) -> LUTData:
    """
    Parse a LUT from raw file contents.

    Args:
        content: File bytes or text
        name: Fallback name when the file carries no title
        fmt: Force a format instead of detecting it

    Returns:
        Parsed LUTData

    Raises:
        FormatError: the contents are not a valid LUT
    """
    text = _decode(content)
    fmt = fmt or detect_format(text)

    if fmt == LUTFormat.CUBE:
        lut = parse_cube(text, name)
    else:
        lut = parse_3dl(text, name)

    logger.debug(f"Parsed {lut.dimension.value} LUT '{lut.name}' (size {lut.size}, {fmt.value})")
    return lut


def load_lut_file(path: Union[str, Path]) -> LUTData:
    """Read and parse a LUT file, choosing the format from its suffix."""
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix == '.cube':
        fmt = LUTFormat.CUBE
    elif suffix == '.3dl':
        fmt = LUTFormat.THREEDL
    else:
        raise FormatError(f"Unsupported LUT format: {suffix}")

    lut = load_lut(path.read_bytes(), name=path.stem, fmt=fmt)
    logger.info(f"Loaded LUT {path} (size {lut.size})")
    return lut
