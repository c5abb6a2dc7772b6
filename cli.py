#!/usr/bin/env python3
"""
FrameGrade Command Line Interface

Main CLI entry point for grading frames, working with LUTs and building masks.
"""

import click
import logging
from typing import Optional

from framegrade import __version__
from framegrade.config import load_config, get_config_value
from framegrade.cli import grade, grade_dir, histogram, lut, mask
from framegrade.utils.logging import setup_console_logging

logger = logging.getLogger(__name__)


@click.group()
@click.option('--config', '-c', type=click.Path(exists=True),
              help='Configuration file path')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.option('--quiet', '-q', is_flag=True, help='Suppress non-error output')
@click.pass_context
def main(ctx, config: Optional[str] = None, verbose: bool = False, quiet: bool = False):
    """
    FrameGrade - Color grading and mask compositing for frames

    Grade images and frame sequences with tonal adjustments, color wheels,
    curves and 3D LUTs, and build layered masks over them.
    """

    # Ensure context object exists
    if ctx.obj is None:
        ctx.obj = {}

    # Load configuration
    ctx.obj['config'] = load_config(config)

    # Configure logging level
    if verbose:
        level = 'DEBUG'
    elif quiet:
        level = 'ERROR'
    else:
        level = get_config_value(ctx.obj['config'], 'logging.level', 'INFO')

    root_logger = logging.getLogger()
    if not root_logger.handlers:
        setup_console_logging(level, fmt=get_config_value(
            ctx.obj['config'], 'logging.format',
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
    else:
        root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Store CLI options in context
    ctx.obj['verbose'] = verbose
    ctx.obj['quiet'] = quiet


main.add_command(grade)
main.add_command(grade_dir)
main.add_command(histogram)
main.add_command(lut)
main.add_command(mask)


@main.command()
def version():
    """Show FrameGrade version information."""
    click.echo(f"FrameGrade v{__version__}")
    click.echo("Color grading and mask compositing engine")


if __name__ == '__main__':
    main()
