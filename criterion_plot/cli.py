"""Bulk plotter for Criterion benchmark data."""
from __future__ import annotations

import argparse
import re
import sys
from pathlib import Path
from typing import Optional, Sequence

from . import __version__
from .criterion import read_all
from .errors import CriterionPlotError, EmptySelection, format_chain, stage
from .plot import PlotConfig, apply_style, draw
from .trace import Traces


def _regex(value: str) -> re.Pattern:
    try:
        return re.compile(value)
    except re.error as exc:
        raise argparse.ArgumentTypeError(f'invalid regex {value!r}: {exc}') from None


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f'expected an integer, got {value!r}') from None
    if number <= 0:
        raise argparse.ArgumentTypeError(f'expected a positive integer, got {number}')
    return number


def _positive_float(value: str) -> float:
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f'expected a number, got {value!r}') from None
    # log axis
    if not number > 0:
        raise argparse.ArgumentTypeError(f'expected a positive number, got {value}')
    return number


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog='criterion-plot',
        description='Plot throughput vs. problem size from Criterion benchmark data.',
    )
    p.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    p.add_argument(
        '-i',
        '--input-path',
        type=Path,
        default=Path('.'),
        help='Root of the Rust project where Criterion data was acquired',
    )
    p.add_argument(
        '-o',
        '--output-path',
        type=Path,
        default=Path('./output.svg'),
        help='Output image; .svg gives a vector image, other extensions a raster image',
    )
    p.add_argument('--width', type=_positive_int, default=1280, help='Image width in pixels')
    p.add_argument('--height', type=_positive_int, default=720, help='Image height in pixels')
    p.add_argument('--title', default='', help='Plot title')
    p.add_argument('-x', '--x-label', default='Problem size', help='Horizontal axis label')
    p.add_argument(
        '-t',
        '--throughput-name',
        default='FLOP',
        help='Unit of element throughput, displayed as <name>/s',
    )
    p.add_argument('--y-min', type=_positive_float, default=None, help='Force the vertical axis minimum')
    p.add_argument('--y-max', type=_positive_float, default=None, help='Force the vertical axis maximum')
    p.add_argument('regex', type=_regex, help='Regex matching the traces to be plotted')
    return p


def run(args: argparse.Namespace) -> Path:
    with stage('loading data from benchmark results'):
        data = read_all(args.input_path, args.regex)

    with stage('rearranging data into plot traces'):
        traces = Traces.from_benchmarks(data)
    if traces.is_empty():
        raise EmptySelection('Specified regex does not select any trace')

    config = PlotConfig(
        output_path=args.output_path,
        width=args.width,
        height=args.height,
        title=args.title,
        x_label=args.x_label,
        element_unit=args.throughput_name,
        y_min=args.y_min,
        y_max=args.y_max,
    )
    with stage('drawing the performance plot'):
        apply_style()
        return draw(config, traces)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.y_min is not None and args.y_max is not None and args.y_min >= args.y_max:
        parser.error(f'--y-min {args.y_min:g} must be below --y-max {args.y_max:g}')
    try:
        out = run(args)
    except CriterionPlotError as exc:
        print(format_chain(exc), file=sys.stderr)
        return 1
    print('Wrote', out)
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
