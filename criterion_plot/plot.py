"""Where traces get drawn into a plot."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import matplotlib

matplotlib.use('Agg')
import matplotlib.pyplot as plt
import matplotlib.ticker as mticker
from matplotlib.figure import Figure
from PIL import Image

from .criterion import ThroughputType
from .errors import RenderError
from .trace import Traces

DPI = 100
# raster formats matplotlib's Agg canvas writes directly
AGG_FORMATS = ('png', 'jpg', 'jpeg', 'tif', 'tiff', 'webp', 'raw', 'rgba')
BINARY_PREFIXES = ('', 'Ki', 'Mi', 'Gi', 'Ti', 'Pi', 'Ei')
COLORMAP = 'hsv'


@dataclass(frozen=True)
class PlotConfig:
    output_path: Path
    width: int = 1280
    height: int = 720
    title: str = ''
    x_label: str = 'Problem size'
    element_unit: str = 'FLOP'
    y_min: Optional[float] = None
    y_max: Optional[float] = None

    def pixels_to_points(self, fraction_of_height: float) -> float:
        return fraction_of_height * self.height * 72 / DPI


def apply_style() -> None:
    plt.rcParams.update(
        {
            'font.family': 'sans-serif',
            'figure.facecolor': 'white',
            'axes.facecolor': 'white',
            'axes.edgecolor': 'black',
            'grid.color': '#B0B0B0',
            'legend.edgecolor': 'black',
            'legend.facecolor': 'white',
            'legend.framealpha': 1.0,
            'savefig.facecolor': 'white',
            # keep labels as searchable <text> elements
            'svg.fonttype': 'none',
        }
    )


def y_axis_label(throughput_type: Optional[ThroughputType], element_unit: str) -> str:
    if throughput_type is None:
        return 's'
    if throughput_type is ThroughputType.ELEMENTS:
        return f'{element_unit}/s'
    return 'B/s'


def format_binary(value: float, _pos=None) -> str:
    """Tick label with a binary prefix, e.g. ``1.5Gi``."""
    if value <= 0:
        return '0'
    exponent = 0
    while value >= 1024 and exponent < len(BINARY_PREFIXES) - 1:
        value /= 1024
        exponent += 1
    return f'{value:.3g}{BINARY_PREFIXES[exponent]}'


def y_tick_formatter(throughput_type: Optional[ThroughputType]) -> mticker.Formatter:
    if throughput_type is ThroughputType.BYTES:
        return mticker.FuncFormatter(format_binary)
    if throughput_type is None:
        return mticker.LogFormatterSciNotation()
    return mticker.EngFormatter(sep='')


def trace_colors(count: int) -> list[tuple[float, float, float, float]]:
    """Evenly spaced colors around a cyclic colormap."""
    cmap = matplotlib.colormaps[COLORMAP]
    return [cmap(i / count) for i in range(count)]


def image_format(output_path: Path) -> str:
    suffix = Path(output_path).suffix.lower().lstrip('.')
    if not suffix:
        raise RenderError(f'need a file extension to pick the image format of {output_path}')
    if suffix == 'svg' or suffix in AGG_FORMATS:
        return suffix
    if '.' + suffix not in Image.registered_extensions():
        raise RenderError(f'unsupported raster image format {suffix!r}')
    return suffix


def y_limits(config: PlotConfig, traces: Traces) -> tuple[float, float]:
    _, (y_lo, y_hi) = traces.xy_range()
    if config.y_min is not None:
        y_lo = config.y_min
    if config.y_max is not None:
        y_hi = config.y_max
    forced = config.y_min is not None or config.y_max is not None
    if forced and not y_lo < y_hi:
        raise RenderError(f'vertical axis range [{y_lo:g}, {y_hi:g}] is empty')
    return y_lo, y_hi


def build_figure(config: PlotConfig, traces: Traces) -> Figure:
    """Lay out the chart of ``traces``, which must not be empty."""
    (x_lo, x_hi), _ = traces.xy_range()
    y_lo, y_hi = y_limits(config, traces)

    fig, ax = plt.subplots(figsize=(config.width / DPI, config.height / DPI), dpi=DPI)
    if config.title:
        ax.set_title(config.title, fontsize=config.pixels_to_points(0.05))

    ax.set_xscale('log')
    ax.set_yscale('log')
    if x_lo < x_hi:
        ax.set_xlim(x_lo, x_hi)
    if y_lo < y_hi:
        ax.set_ylim(y_lo, y_hi)
    ax.yaxis.set_major_locator(mticker.LogLocator(base=10, subs=(1.0, 2.0, 5.0)))
    ax.yaxis.set_major_formatter(y_tick_formatter(traces.throughput_type))
    ax.yaxis.set_minor_formatter(mticker.NullFormatter())
    ax.set_xlabel(config.x_label)
    ax.set_ylabel(y_axis_label(traces.throughput_type, config.element_unit))
    label_size = config.pixels_to_points(0.02)
    ax.tick_params(labelsize=label_size)
    ax.xaxis.label.set_size(label_size)
    ax.yaxis.label.set_size(label_size)
    ax.grid(True, which='both', ls='--', alpha=0.4)

    for trace, color in zip(traces, trace_colors(len(traces))):
        xs = [float(size) for size, _ in trace.data]
        ys = [meas.point_estimate for _, meas in trace.data]
        yerr = [
            [meas.point_estimate - meas.lower_bound for _, meas in trace.data],
            [meas.upper_bound - meas.point_estimate for _, meas in trace.data],
        ]
        ax.errorbar(
            xs,
            ys,
            yerr=yerr,
            color=color,
            label=trace.name,
            capsize=config.pixels_to_points(0.004),
        )

    ax.legend(loc='lower right', fontsize=config.pixels_to_points(legend_size(len(traces))), fancybox=False)
    return fig


def legend_size(trace_count: int) -> float:
    """Legend font size as a fraction of the image height."""
    return min(0.0225, 0.5 / trace_count)


def _save_with_pillow(fig: Figure, output_path: Path) -> None:
    # formats the Agg canvas cannot write itself, e.g. bmp or gif
    fig.canvas.draw()
    width, height = fig.canvas.get_width_height()
    image = Image.frombuffer('RGBA', (width, height), fig.canvas.buffer_rgba(), 'raw', 'RGBA', 0, 1)
    image.convert('RGB').save(output_path)


def draw(config: PlotConfig, traces: Traces) -> Path:
    """Render ``traces`` to ``config.output_path``; ``traces`` must not be empty."""
    fmt = image_format(config.output_path)
    output_path = Path(config.output_path)
    fig = None
    try:
        fig = build_figure(config, traces)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        if fmt == 'svg' or fmt in AGG_FORMATS:
            fig.savefig(output_path, format=fmt, dpi=DPI)
        else:
            _save_with_pillow(fig, output_path)
    except (OSError, ValueError, KeyError, RuntimeError) as exc:
        raise RenderError(f'failed to write the plot to {output_path}') from exc
    finally:
        if fig is not None:
            plt.close(fig)
    return output_path
