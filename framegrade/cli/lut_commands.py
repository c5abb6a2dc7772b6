"""
LUT CLI commands for FrameGrade

Inspect, apply and export .cube / .3dl lookup tables, and write the
built-in looks.
"""

import sys
import logging
from pathlib import Path

import click

from ..errors import FrameGradeError
from ..io import load_image, save_image
from ..processing.lut import LUTFormat, apply_lut, save_lut, list_builtin_luts
from .options import grading_options, build_grade, get_engine, BLEND_CHOICES

logger = logging.getLogger(__name__)


@click.group()
def lut():
    """Lookup table commands"""
    pass


@lut.command()
@click.argument('lut_path', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def info(ctx, lut_path):
    """Show LUT metadata

    LUT_PATH: .cube or .3dl file
    """
    try:
        table = get_engine(ctx).load_lut_file(lut_path)
    except (FrameGradeError, OSError) as e:
        click.echo(f"✗ {e}", err=True)
        sys.exit(1)

    data = table.data.reshape(-1, 3)
    click.echo(f"Name:       {table.name}")
    click.echo(f"Format:     {table.source_format.value}")
    click.echo(f"Dimension:  {table.dimension.value}")
    click.echo(f"Size:       {table.size}")
    click.echo(f"Domain:     {table.domain_min} - {table.domain_max}")
    click.echo(f"Range:      {data.min():.4f} - {data.max():.4f}")
    for comment in table.comments:
        click.echo(f"  # {comment}")


@lut.command('apply')
@click.argument('lut_path', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument('input_path', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument('output_path', type=click.Path(dir_okay=False, path_type=Path))
@click.option('--strength', type=click.FloatRange(0, 100), default=100.0, help='LUT mix in percent')
@click.option('--blend', type=click.Choice(BLEND_CHOICES), default='normal', help='Blend mode')
@click.pass_context
def apply_command(ctx, lut_path, input_path, output_path, strength, blend):
    """Apply a LUT to a frame

    LUT_PATH: .cube or .3dl file
    INPUT_PATH: Image to grade
    OUTPUT_PATH: Where to write the result
    """
    try:
        table = get_engine(ctx).load_lut_file(lut_path)
        image = load_image(input_path)
        save_image(apply_lut(image, table, strength, blend), output_path)
    except (FrameGradeError, OSError) as e:
        logger.error(f"Applying LUT failed: {e}")
        click.echo(f"✗ {e}", err=True)
        sys.exit(1)

    if not ctx.obj.get('quiet', False):
        click.echo(f"✓ Applied {table.name} -> {output_path}")


@lut.command()
@click.argument('output_path', type=click.Path(dir_okay=False, path_type=Path))
@click.option('--size', type=click.IntRange(2, 129), default=None,
              help='Lattice size (default from config)')
@click.option('--format', 'fmt', type=click.Choice([f.value for f in LUTFormat]), default=None,
              help='Output format (default from file extension)')
@grading_options
@click.pass_context
def export(ctx, output_path, size, fmt, **kwargs):
    """Bake grading adjustments into a 3D LUT

    OUTPUT_PATH: .cube or .3dl file to write
    """
    engine = get_engine(ctx)
    try:
        options, wheels, curves, hsl_curves = build_grade(kwargs)
        table = engine.export_lut(output_path, size, LUTFormat(fmt) if fmt else None,
                                  options, wheels, curves, hsl_curves)
    except (FrameGradeError, OSError) as e:
        click.echo(f"✗ {e}", err=True)
        sys.exit(1)

    if not ctx.obj.get('quiet', False):
        click.echo(f"✓ Exported {table.size}³ LUT to {output_path}")


@lut.command()
def builtins():
    """List the built-in looks"""
    for entry in list_builtin_luts():
        click.echo(f"{entry['key']:<24} {entry['name']:<24} [{entry['category']}] "
                   f"{entry['description']}")


@lut.command()
@click.argument('name')
@click.argument('output_path', type=click.Path(dir_okay=False, path_type=Path))
@click.option('--size', type=click.IntRange(2, 129), default=33, help='Lattice size')
@click.option('--format', 'fmt', type=click.Choice([f.value for f in LUTFormat]), default=None,
              help='Output format (default from file extension)')
@click.pass_context
def builtin(ctx, name, output_path, size, fmt):
    """Write a built-in look as a LUT file

    NAME: Look key or title, see `framegrade lut builtins`
    OUTPUT_PATH: .cube or .3dl file to write
    """
    try:
        table = get_engine(ctx).load_builtin_lut(name, size)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint='NAME')

    try:
        save_lut(table, output_path, LUTFormat(fmt) if fmt else None)
    except (FrameGradeError, OSError) as e:
        click.echo(f"✗ {e}", err=True)
        sys.exit(1)

    if not ctx.obj.get('quiet', False):
        click.echo(f"✓ Wrote {table.name} ({table.size}³) to {output_path}")
