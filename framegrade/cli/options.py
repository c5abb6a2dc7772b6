"""
Shared click options and grade-file loading for the CLI commands.
"""

from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import click
import yaml

from ..core.engine import ColorGradingEngine
from ..processing.color import ColorGradingOptions, ColorWheelAdjustment, RGBCurves, HSLCurves
from ..processing.lut import LUTBlendMode

GRADING_FIELDS = (
    ('exposure', 'Exposure in stops (-3 to 3)'),
    ('contrast', 'Contrast (-100 to 100)'),
    ('highlights', 'Highlights (-100 to 100)'),
    ('shadows', 'Shadows (-100 to 100)'),
    ('whites', 'Whites (-100 to 100)'),
    ('blacks', 'Blacks (-100 to 100)'),
    ('clarity', 'Clarity (-100 to 100)'),
    ('vibrance', 'Vibrance (-100 to 100)'),
    ('saturation', 'Saturation (-100 to 100)'),
    ('temperature', 'White balance in Kelvin (2000 to 11000)'),
    ('tint', 'Tint, green to magenta (-100 to 100)'),
    ('hue', 'Hue rotation in degrees (-180 to 180)'),
)

BLEND_CHOICES = [mode.value for mode in LUTBlendMode]


def grading_options(func):
    """Add one option per ColorGradingOptions field plus --grade-file."""
    func = click.option('--grade-file', type=click.Path(exists=True, dir_okay=False, path_type=Path),
                        help='YAML file with options, wheels, curves and hsl_curves sections')(func)
    for name, help_text in reversed(GRADING_FIELDS):
        func = click.option(f'--{name}', type=float, default=None, help=help_text)(func)
    return func


def lut_options(func):
    """Add --lut, --lut-strength and --lut-blend."""
    func = click.option('--lut-blend', type=click.Choice(BLEND_CHOICES), default='normal',
                        help='How the LUT result combines with the frame')(func)
    func = click.option('--lut-strength', type=click.FloatRange(0, 100), default=100.0,
                        help='LUT mix in percent')(func)
    func = click.option('--lut', 'lut_path', type=click.Path(exists=True, dir_okay=False, path_type=Path),
                        help='.cube or .3dl LUT applied after grading')(func)
    return func


def load_grade_file(path: Optional[Path]) -> Dict[str, Any]:
    """Read a grade YAML file; a missing path gives an empty grade."""
    if path is None:
        return {}
    with open(path, 'r') as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise click.BadParameter(f"{path} is not valid YAML: {e}", param_hint='--grade-file')
    if not isinstance(data, dict):
        raise click.BadParameter(f"{path} must contain a mapping", param_hint='--grade-file')
    return data


def build_grade(kwargs: Dict[str, Any]) -> Tuple[ColorGradingOptions, Optional[ColorWheelAdjustment],
                                                  Optional[RGBCurves], Optional[HSLCurves]]:
    """
    Combine the grade file with command line flags.

    Flags given on the command line override the file's options section.
    Consumed keys are removed from kwargs.
    """
    grade = load_grade_file(kwargs.pop('grade_file', None))

    flags = {name: kwargs.pop(name, None) for name, _ in GRADING_FIELDS}

    try:
        values = dict(grade.get('options') or {})
        values.update({name: value for name, value in flags.items() if value is not None})
        options = ColorGradingOptions.from_dict(values)
        wheels = ColorWheelAdjustment.from_dict(grade['wheels']) if grade.get('wheels') else None
        curves = RGBCurves(**grade['curves']) if grade.get('curves') else None
        hsl_curves = HSLCurves(**grade['hsl_curves']) if grade.get('hsl_curves') else None
    except (AttributeError, TypeError, ValueError) as e:
        raise click.BadParameter(f"invalid grade: {e}", param_hint='--grade-file')

    return options, wheels, curves, hsl_curves


def get_engine(ctx: click.Context) -> ColorGradingEngine:
    """Engine shared by the commands of one invocation."""
    ctx.ensure_object(dict)
    if 'engine' not in ctx.obj:
        ctx.obj['engine'] = ColorGradingEngine(ctx.obj.get('config') or None)
    return ctx.obj['engine']
