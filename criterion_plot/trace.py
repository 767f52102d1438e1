"""Benchmark traces suitable for plotting."""
from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional

from .criterion import BenchmarkInfo, Estimate, ThroughputType, split_throughput
from .errors import PreconditionViolation

CONFIDENCE_LEVEL = 0.95

_PROBLEM_SIZE = re.compile(r'[0-9]+')
_RUNS = re.compile(r'[0-9]+|[^0-9]+')

# run kinds, text sorts before numbers
_TEXT = 0
_NUMBER = 1


def parse_problem_size(value_str: str) -> int:
    # Criterion accepts any string here, but the X axis needs a number
    if not _PROBLEM_SIZE.fullmatch(value_str):
        raise PreconditionViolation(
            f'expected a non-negative integer benchmark value, got {value_str!r}'
        )
    return int(value_str)


def natural_key(name: str) -> tuple:
    """Sort key ordering ``trace2`` before ``trace10``, segment by segment."""
    segments = []
    for segment in name.split('/'):
        runs = []
        for run in _RUNS.findall(segment):
            if '0' <= run[0] <= '9':
                runs.append((_NUMBER, int(run)))
            else:
                runs.append((_TEXT, run))
        segments.append(tuple(runs))
    return tuple(segments)


@dataclass(frozen=True)
class MeasurementDisplay:
    """Central value and 95% bounds of one plotted point."""

    point_estimate: float
    lower_bound: float
    upper_bound: float

    @classmethod
    def from_estimate(cls, estimate: Estimate) -> MeasurementDisplay:
        interval = estimate.confidence_interval
        if interval.confidence_level != CONFIDENCE_LEVEL:
            raise PreconditionViolation(
                f'expected standard 95% confidence intervals from Criterion, '
                f'got confidence level {interval.confidence_level}'
            )
        return cls(
            point_estimate=estimate.point_estimate,
            lower_bound=interval.lower_bound,
            upper_bound=interval.upper_bound,
        )

    def time_to_throughput(self, untyped_throughput: int) -> MeasurementDisplay:
        """Turn a timing in ns into a rate per second.

        The bounds swap because a shorter time is a higher throughput.
        """
        if min(self.point_estimate, self.lower_bound, self.upper_bound) <= 0:
            raise PreconditionViolation(f'cannot compute a throughput from non-positive timing {self}')
        count = float(untyped_throughput)
        return MeasurementDisplay(
            point_estimate=count / (self.point_estimate * 1e-9),
            lower_bound=count / (self.upper_bound * 1e-9),
            upper_bound=count / (self.lower_bound * 1e-9),
        )


@dataclass(frozen=True)
class Trace:
    name: str
    # (problem size, measurement), sorted by problem size
    data: tuple[tuple[int, MeasurementDisplay], ...]


def _total_order(value: float) -> tuple[bool, float]:
    return math.isnan(value), value


@dataclass(frozen=True)
class Traces:
    throughput_type: Optional[ThroughputType]
    per_trace_data: tuple[Trace, ...]

    @classmethod
    def from_benchmarks(cls, infos: Iterable[BenchmarkInfo]) -> Traces:
        name_to_points: dict[str, dict[int, MeasurementDisplay]] = {}
        common_type: Optional[ThroughputType] = None
        for info in infos:
            value = parse_problem_size(info.value_str)
            throughput_type, untyped_throughput = split_throughput(info.throughput)
            if common_type is None:
                common_type = throughput_type
            elif throughput_type != common_type:
                raise PreconditionViolation(
                    f'expected all traces to use throughput type {common_type.value}, '
                    f'but {info.group_id!r} uses {throughput_type.value}'
                )
            measurement = MeasurementDisplay.from_estimate(info.median).time_to_throughput(untyped_throughput)

            points = name_to_points.setdefault(info.group_id, {})
            if value in points:
                raise PreconditionViolation(
                    f'trace {info.group_id!r} has more than one data point for value {value}'
                )
            points[value] = measurement

        traces = tuple(
            Trace(name=name, data=tuple(sorted(points.items(), key=lambda p: p[0])))
            for name, points in sorted(name_to_points.items(), key=lambda item: (natural_key(item[0]), item[0]))
        )
        return cls(throughput_type=common_type, per_trace_data=traces)

    def __len__(self) -> int:
        return len(self.per_trace_data)

    def __iter__(self) -> Iterator[Trace]:
        return iter(self.per_trace_data)

    def is_empty(self) -> bool:
        return not self.per_trace_data

    def xy_range(self) -> tuple[tuple[float, float], tuple[float, float]]:
        """Plotting range covering every point and error bar.

        Only meaningful when there is at least one trace.
        """
        if self.is_empty():
            raise ValueError('cannot compute the range of an empty set of traces')
        x_range = (
            float(min(trace.data[0][0] for trace in self)),
            float(max(trace.data[-1][0] for trace in self)),
        )
        measurements = [meas for trace in self for _, meas in trace.data]
        y_range = (
            min((meas.lower_bound for meas in measurements), key=_total_order),
            max((meas.upper_bound for meas in measurements), key=_total_order),
        )
        return x_range, y_range
