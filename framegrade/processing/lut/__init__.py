"""
3D LUT engine for FrameGrade

Parses .cube/.3dl files, applies tables with trilinear interpolation,
writes tables back out, bakes grades into LUTs and generates the
built-in looks.
"""

from .models import LUTData, LUTDimension, LUTFormat, LUTBlendMode, identity_lut
from .parser import load_lut, load_lut_file, parse_cube, parse_3dl, detect_format
from .writer import write_cube, write_3dl, save_lut
from .interpolation import apply_lut, apply_3d_lut
from .cache import LUTCache, cache_key
from .export import export_grade_as_lut
from .builtin import BuiltinLUT, builtin_lut, list_builtin_luts, resolve_builtin

__all__ = [
    "LUTData",
    "LUTDimension",
    "LUTFormat",
    "LUTBlendMode",
    "identity_lut",
    "load_lut",
    "load_lut_file",
    "parse_cube",
    "parse_3dl",
    "detect_format",
    "write_cube",
    "write_3dl",
    "save_lut",
    "apply_lut",
    "apply_3d_lut",
    "LUTCache",
    "cache_key",
    "export_grade_as_lut",
    "BuiltinLUT",
    "builtin_lut",
    "list_builtin_luts",
    "resolve_builtin",
]
