"""
Mask CLI commands for FrameGrade

Generate single masks as PNG rasters and composite layer stacks.
"""

import sys
import logging
from pathlib import Path

import click
import yaml

from ..errors import FrameGradeError
from ..io import load_image, save_image
from ..processing.masking import (
    MaskLayer, LuminanceMask, ColorMask, GradientMask, GradientKind, GradientStop,
    export_mask_png
)
from .options import get_engine

logger = logging.getLogger(__name__)


def _write_single_mask(ctx, layer: MaskLayer, input_path: Path, output_path: Path):
    engine = get_engine(ctx)
    try:
        image = load_image(input_path)
        mask = engine.mask_generator.generate(layer, image)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(export_mask_png(mask))
    except (FrameGradeError, OSError) as e:
        logger.error(f"Mask generation failed: {e}")
        click.echo(f"✗ {e}", err=True)
        sys.exit(1)

    if not ctx.obj.get('quiet', False):
        click.echo(f"✓ {layer.kind.value.title()} mask covers {mask.mean() * 100:.1f}% -> {output_path}")


def _parse_point(value: str):
    try:
        x, y = (float(v) for v in value.split(','))
    except ValueError:
        raise click.BadParameter(f"expected X,Y, got '{value}'")
    return (x, y)


def _parse_stop(value: str) -> GradientStop:
    position, alpha = _parse_point(value)
    return GradientStop(position, alpha)


@click.group()
def mask():
    """Mask generation and compositing commands"""
    pass


@mask.command()
@click.argument('input_path', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument('output_path', type=click.Path(dir_okay=False, path_type=Path))
@click.option('--min', 'min_luminance', type=click.FloatRange(0, 255), default=0.0)
@click.option('--max', 'max_luminance', type=click.FloatRange(0, 255), default=255.0)
@click.option('--softness', type=click.FloatRange(0, 100), default=0.0)
@click.option('--invert', is_flag=True, help='Select outside the range')
@click.pass_context
def luminance(ctx, input_path, output_path, min_luminance, max_luminance, softness, invert):
    """Select a luminance range and write the mask as PNG"""
    layer = MaskLayer(
        name='Luminance',
        shape=LuminanceMask(min_luminance, max_luminance, softness),
        inverted=invert
    )
    _write_single_mask(ctx, layer, input_path, output_path)


@mask.command()
@click.argument('input_path', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument('output_path', type=click.Path(dir_okay=False, path_type=Path))
@click.option('--target', nargs=3, type=click.IntRange(0, 255), required=True,
              help='Key color as R G B')
@click.option('--tolerance', type=click.FloatRange(0, 100), default=20.0)
@click.option('--softness', type=click.FloatRange(0, 100), default=0.0)
@click.option('--invert', is_flag=True, help='Select everything but the key color')
@click.pass_context
def color(ctx, input_path, output_path, target, tolerance, softness, invert):
    """Key a color and write the mask as PNG"""
    layer = MaskLayer(
        name='Color',
        shape=ColorMask(tuple(target), tolerance, softness),
        inverted=invert
    )
    _write_single_mask(ctx, layer, input_path, output_path)


@mask.command()
@click.argument('input_path', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument('output_path', type=click.Path(dir_okay=False, path_type=Path))
@click.option('--kind', type=click.Choice([k.value for k in GradientKind]), default='linear')
@click.option('--start', required=True, help='Start point as X,Y in pixels')
@click.option('--end', required=True, help='End point as X,Y in pixels')
@click.option('--stop', 'stops', multiple=True,
              help='POSITION,ALPHA stop (repeatable; default 0,1 and 1,0)')
@click.option('--invert', is_flag=True)
@click.pass_context
def gradient(ctx, input_path, output_path, kind, start, end, stops, invert):
    """Render a gradient mask over the frame and write it as PNG"""
    shape = GradientMask(kind=GradientKind(kind), start=_parse_point(start), end=_parse_point(end))
    if stops:
        shape.stops = [_parse_stop(s) for s in stops]
    layer = MaskLayer(name='Gradient', shape=shape, inverted=invert)
    _write_single_mask(ctx, layer, input_path, output_path)


@mask.command()
@click.argument('input_path', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument('output_path', type=click.Path(dir_okay=False, path_type=Path))
@click.option('--mask-spec', type=click.Path(exists=True, dir_okay=False, path_type=Path),
              required=True, help='YAML file with a list of mask layers')
@click.option('--target', 'target_path', type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help='Image to blend the input over')
@click.option('--save-mask', type=click.Path(dir_okay=False, path_type=Path),
              help='Also write the combined mask as PNG')
@click.pass_context
def composite(ctx, input_path, output_path, mask_spec, target_path, save_mask):
    """Composite a stack of mask layers over a frame"""
    engine = get_engine(ctx)

    try:
        with open(mask_spec, 'r') as f:
            spec = yaml.safe_load(f) or []
        if isinstance(spec, dict):
            spec = spec.get('layers', [])
        if not isinstance(spec, list) or not all(isinstance(entry, dict) for entry in spec):
            raise ValueError("expected a list of layer mappings")
        layers = [MaskLayer.from_dict(entry) for entry in spec]
    except (OSError, yaml.YAMLError, AttributeError, KeyError, TypeError, ValueError) as e:
        click.echo(f"✗ Invalid mask spec {mask_spec}: {e}", err=True)
        sys.exit(1)

    try:
        source = load_image(input_path)
        target = load_image(target_path) if target_path else None
        result = engine.composite(layers, source, target)
        save_image(result.image, output_path)
        if save_mask:
            save_mask.write_bytes(export_mask_png(result.mask))
    except (FrameGradeError, OSError) as e:
        logger.error(f"Compositing failed: {e}")
        click.echo(f"✗ {e}", err=True)
        sys.exit(1)

    if not ctx.obj.get('quiet', False):
        click.echo(f"✓ Composited {len(result.applied_layers)} of {len(layers)} layers "
                   f"-> {output_path} ({result.elapsed_ms:.1f}ms)")
