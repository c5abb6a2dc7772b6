"""
Logging utilities for FrameGrade
Provides structured logging and batch statistics
"""

import logging
import sys
from typing import Optional, Dict, Any, List
import time
import json

logger = logging.getLogger(__name__)

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class StructuredLogger:
    """
    Logger wrapper that appends keyword metadata as JSON

    `log.info("Graded frame", frame=3)` emits `Graded frame | {"frame": 3}`.
    """

    def __init__(self, name: str, metadata: Optional[Dict[str, Any]] = None):
        self.logger = logging.getLogger(name)
        self.metadata = dict(metadata or {})

    def bind(self, **kwargs) -> 'StructuredLogger':
        """New logger with extra default metadata"""
        return StructuredLogger(self.logger.name, {**self.metadata, **kwargs})

    def log(self, level: int, message: str, **kwargs):
        if not self.logger.isEnabledFor(level):
            return
        data = {**self.metadata, **kwargs}
        if data:
            message = f"{message} | {json.dumps(data, default=str)}"
        self.logger.log(level, message)

    def debug(self, message: str, **kwargs):
        self.log(logging.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs):
        self.log(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs):
        self.log(logging.WARNING, message, **kwargs)

    def error(self, message: str, **kwargs):
        self.log(logging.ERROR, message, **kwargs)


class FrameStats:
    """Per-frame timings and failures of a grade-dir batch"""

    def __init__(self, total_frames: int = 0):
        self.started = time.perf_counter()
        self.total_frames = total_frames
        self.timings: Dict[str, float] = {}
        self.errors: List[Dict[str, str]] = []

    @property
    def processed_frames(self) -> int:
        return len(self.timings)

    @property
    def failed_frames(self) -> int:
        return len(self.errors)

    def add_result(self, frame: str, elapsed_ms: float):
        self.timings[frame] = elapsed_ms

    def add_error(self, frame: str, error: str):
        self.errors.append({'frame': frame, 'error': error})

    def get_summary(self) -> Dict[str, Any]:
        elapsed = time.perf_counter() - self.started
        slowest = max(self.timings, key=self.timings.get) if self.timings else None
        average = sum(self.timings.values()) / len(self.timings) if self.timings else 0.0

        return {
            'total_frames': self.total_frames,
            'processed_frames': self.processed_frames,
            'failed_frames': self.failed_frames,
            'elapsed_time': elapsed,
            'average_ms_per_frame': average,
            'slowest_frame': slowest,
            'frames_per_second': self.processed_frames / elapsed if elapsed > 0 else 0.0,
        }

    def print_summary(self, max_errors: int = 10):
        """Print the batch summary to stdout"""
        summary = self.get_summary()

        print("\n" + "=" * 60)
        print("GRADING SUMMARY")
        print("=" * 60)
        print(f"Frames:           {summary['processed_frames']}/{summary['total_frames']} graded, "
              f"{summary['failed_frames']} failed")
        print(f"Elapsed time:     {summary['elapsed_time']:.1f}s "
              f"({summary['frames_per_second']:.1f} frames/s)")
        print(f"Avg time/frame:   {summary['average_ms_per_frame']:.1f}ms")
        if summary['slowest_frame']:
            slowest = summary['slowest_frame']
            print(f"Slowest frame:    {slowest} ({self.timings[slowest]:.1f}ms)")
        print("=" * 60)

        for error in self.errors[:max_errors]:
            print(f"  ✗ {error['frame']}: {error['error']}")
        if len(self.errors) > max_errors:
            print(f"  ... and {len(self.errors) - max_errors} more errors")


LOG_COLORS = {
    'DEBUG': 'cyan',
    'INFO': 'green',
    'WARNING': 'yellow',
    'ERROR': 'red',
    'CRITICAL': 'red,bg_white',
}


def _console_formatter(fmt: str, color: bool) -> logging.Formatter:
    if color and sys.stderr.isatty():
        try:
            import colorlog
        except ImportError:
            return logging.Formatter(fmt)
        return colorlog.ColoredFormatter(
            '%(log_color)s' + fmt.replace('%(message)s', '%(reset)s%(message)s'),
            log_colors=LOG_COLORS,
        )
    return logging.Formatter(fmt)


def setup_console_logging(level: str = "INFO", color: bool = True,
                          fmt: str = DEFAULT_FORMAT) -> logging.Handler:
    """
    Send log records to stderr, colored when colorlog is installed

    Args:
        level: Logging level name
        color: Whether to use colored output on a terminal
        fmt: Record format

    Returns:
        The handler added to the root logger
    """
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(_console_formatter(fmt, color))

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.addHandler(console_handler)
    return console_handler
