"""
Grading CLI commands for FrameGrade

Grade single frames or whole frame sequences and inspect histograms.
"""

import sys
import time
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path

import click
import numpy as np
from tqdm import tqdm

from ..errors import FrameGradeError
from ..io import load_image, save_image, list_frames
from ..processing.color import build_histogram
from ..utils.logging import FrameStats
from .options import grading_options, lut_options, build_grade, get_engine

logger = logging.getLogger(__name__)


def _grade_one(engine, source: Path, destination: Path, grade, lut, lut_strength, lut_blend):
    options, wheels, curves, hsl_curves = grade
    image = load_image(source)
    result = engine.grade(image, options, wheels, curves, hsl_curves,
                          lut=lut, lut_strength=lut_strength, lut_blend=lut_blend)
    save_image(result.image, destination)
    return result


@click.command()
@click.argument('input_path', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument('output_path', type=click.Path(dir_okay=False, path_type=Path))
@grading_options
@lut_options
@click.pass_context
def grade(ctx, input_path, output_path, lut_path, lut_strength, lut_blend, **kwargs):
    """Grade a single frame

    INPUT_PATH: Image to grade
    OUTPUT_PATH: Where to write the graded image
    """
    engine = get_engine(ctx)
    quiet = ctx.obj.get('quiet', False)

    try:
        grade_spec = build_grade(kwargs)
        lut = engine.load_lut_file(lut_path) if lut_path else None
        result = _grade_one(engine, input_path, output_path, grade_spec,
                            lut, lut_strength, lut_blend)
    except (FrameGradeError, OSError) as e:
        logger.error(f"Grading failed: {e}")
        click.echo(f"✗ {e}", err=True)
        sys.exit(1)

    if not quiet:
        click.echo(f"✓ Graded {input_path.name} -> {output_path} ({result.elapsed_ms:.1f}ms)")


@click.command('grade-dir')
@click.argument('input_dir', type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.argument('output_dir', type=click.Path(file_okay=False, path_type=Path))
@grading_options
@lut_options
@click.option('--workers', '-w', type=click.IntRange(1, 64), default=1,
              help='Frames graded in parallel')
@click.option('--suffix', default=None, help='Output extension, e.g. .png (default: keep)')
@click.pass_context
def grade_dir(ctx, input_dir, output_dir, lut_path, lut_strength, lut_blend,
              workers, suffix, **kwargs):
    """Grade every frame of an image sequence

    INPUT_DIR: Directory with frames
    OUTPUT_DIR: Directory for graded frames (same file names)
    """
    engine = get_engine(ctx)
    quiet = ctx.obj.get('quiet', False)

    try:
        grade_spec = build_grade(kwargs)
        lut = engine.load_lut_file(lut_path) if lut_path else None
    except (FrameGradeError, OSError) as e:
        click.echo(f"✗ {e}", err=True)
        sys.exit(1)

    frames = list_frames(input_dir)
    if not frames:
        click.echo("✗ No frames found in directory", err=True)
        sys.exit(1)

    output_dir.mkdir(parents=True, exist_ok=True)
    stats = FrameStats(len(frames))

    def destination(frame: Path) -> Path:
        return output_dir / (frame.stem + suffix if suffix else frame.name)

    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = {
            executor.submit(_grade_one, engine, frame, destination(frame), grade_spec,
                            lut, lut_strength, lut_blend): frame
            for frame in frames
        }

        for future in tqdm(as_completed(futures), total=len(futures),
                           desc="Grading frames", disable=quiet):
            frame = futures[future]
            try:
                result = future.result()
                stats.add_result(frame.name, result.elapsed_ms)
            except (FrameGradeError, OSError) as e:
                logger.error(f"Error grading {frame}: {e}")
                stats.add_error(frame.name, str(e))

    if not quiet:
        stats.print_summary()
    if stats.failed_frames:
        sys.exit(1)


@click.command()
@click.argument('input_path', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('--bins', type=click.IntRange(1, 256), default=16,
              help='Buckets shown per channel')
@click.pass_context
def histogram(ctx, input_path, bins):
    """Print a histogram summary of a frame

    INPUT_PATH: Image to analyze
    """
    try:
        image = load_image(input_path)
    except FrameGradeError as e:
        click.echo(f"✗ {e}", err=True)
        sys.exit(1)

    start = time.perf_counter()
    hist = build_histogram(image)
    elapsed_ms = (time.perf_counter() - start) * 1000.0

    click.echo(f"{input_path.name}: {image.width}x{image.height} ({elapsed_ms:.1f}ms)")
    click.echo("=" * 60)

    levels = np.arange(256)
    for label, counts in (('Red', hist.red), ('Green', hist.green),
                          ('Blue', hist.blue), ('Luminance', hist.luminance)):
        total = counts.sum()
        mean = float((levels * counts).sum() / total) if total else 0.0
        buckets = np.array_split(counts, bins)
        peak = max(int(b.sum()) for b in buckets) or 1
        bars = "".join(" ▁▂▃▄▅▆▇█"[round(b.sum() / peak * 8)] for b in buckets)
        click.echo(f"{label:<10} mean {mean:6.1f}  clip low {counts[0]:>7}  "
                   f"clip high {counts[255]:>7}  {bars}")
