"""Raw benchmark data from a Criterion result tree.

Criterion stores one directory per benchmark group under
``target/criterion``, laid out as::

    <group_dir>/<value_dir>/new/benchmark.json
    <group_dir>/<value_dir>/new/estimates.json

where ``group_dir`` is the group ID with every ``/`` replaced by ``_``.
"""
from __future__ import annotations

import enum
import json
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator

from .errors import (
    ConventionViolation,
    DataIoError,
    DecodeError,
    EncodingError,
    NoResultTree,
)

DATA_DEPTH = 4
U64_MAX = 2**64 - 1


class ThroughputType(enum.Enum):
    """Throughput unit, without a value."""

    # bytes/second, binary prefixes (KiB, MiB...)
    BYTES = 'Bytes'
    # bytes/second, decimal prefixes (kB, MB...)
    BYTES_DECIMAL = 'BytesDecimal'
    # elements/second, the element unit is chosen on the command line
    ELEMENTS = 'Elements'


@dataclass(frozen=True)
class Throughput:
    kind: ThroughputType
    # bytes or elements processed by one iteration
    value: int


def split_throughput(throughput: Throughput) -> tuple[ThroughputType, int]:
    return throughput.kind, throughput.value


@dataclass(frozen=True)
class ConfidenceInterval:
    confidence_level: float
    lower_bound: float
    upper_bound: float


@dataclass(frozen=True)
class Estimate:
    point_estimate: float
    standard_error: float
    confidence_interval: ConfidenceInterval


@dataclass(frozen=True)
class Benchmark:
    """Contents of ``benchmark.json``."""

    group_id: str
    value_str: str
    throughput: Throughput


@dataclass(frozen=True)
class Estimates:
    """Contents of ``estimates.json``; times are in ns per iteration."""

    median: Estimate


@dataclass(frozen=True)
class BenchmarkInfo:
    group_id: str
    value_str: str
    throughput: Throughput
    median: Estimate


# JSON schema decoding

def _field(obj: Any, key: str, where: str) -> Any:
    if not isinstance(obj, dict):
        raise DecodeError(f'{where}: expected a JSON object, got {type(obj).__name__}')
    try:
        return obj[key]
    except KeyError:
        raise DecodeError(f'{where}: missing field {key!r}') from None


def _string(obj: Any, key: str, where: str) -> str:
    value = _field(obj, key, where)
    if not isinstance(value, str):
        raise DecodeError(f'{where}.{key}: expected a string, got {value!r}')
    return value


def _number(obj: Any, key: str, where: str) -> float:
    value = _field(obj, key, where)
    # bool is an int subclass
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DecodeError(f'{where}.{key}: expected a number, got {value!r}')
    try:
        return float(value)
    except OverflowError:
        raise DecodeError(f'{where}.{key}: number too large for a float') from None


def parse_throughput(payload: Any) -> Throughput:
    if not isinstance(payload, dict) or len(payload) != 1:
        raise DecodeError(
            f'throughput: expected an object with exactly one variant, got {payload!r}'
        )
    (variant, value), = payload.items()
    try:
        kind = ThroughputType(variant)
    except ValueError:
        raise DecodeError(f'throughput: unknown variant {variant!r}') from None
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= U64_MAX:
        raise DecodeError(f'throughput.{variant}: expected an unsigned 64-bit integer, got {value!r}')
    return Throughput(kind, value)


def parse_benchmark(payload: Any) -> Benchmark:
    where = 'benchmark'
    return Benchmark(
        group_id=_string(payload, 'group_id', where),
        value_str=_string(payload, 'value_str', where),
        throughput=parse_throughput(_field(payload, 'throughput', where)),
    )


def _parse_estimate(payload: Any, where: str) -> Estimate:
    interval = _field(payload, 'confidence_interval', where)
    interval_where = where + '.confidence_interval'
    return Estimate(
        point_estimate=_number(payload, 'point_estimate', where),
        standard_error=_number(payload, 'standard_error', where),
        confidence_interval=ConfidenceInterval(
            confidence_level=_number(interval, 'confidence_level', interval_where),
            lower_bound=_number(interval, 'lower_bound', interval_where),
            upper_bound=_number(interval, 'upper_bound', interval_where),
        ),
    )


def parse_estimates(payload: Any) -> Estimates:
    return Estimates(median=_parse_estimate(_field(payload, 'median', 'estimates'), 'estimates.median'))


# Directory walk

def criterion_dir(input_path: Path) -> Path:
    return Path(input_path) / 'target' / 'criterion'


def _check_unicode(name: str) -> str:
    # os.walk smuggles undecodable bytes through as lone surrogates
    try:
        name.encode('utf-8')
    except UnicodeEncodeError:
        raise EncodingError(f'path component {name!r} is not valid UTF-8') from None
    return name


def guess_benchmark_name(group_dir_name: str) -> str:
    """Reverse-engineer a group ID from its directory name.

    Criterion writes ``a/b`` as ``a_b``, so a group ID that contains a literal
    ``_`` comes back with a ``/`` in its place.
    """
    return _check_unicode(group_dir_name).replace('_', '/')


def keep_entry(relative_parts: tuple[str, ...], regex: re.Pattern) -> bool:
    """Whether a walked entry is benchmark output or a parent thereof."""
    for part in relative_parts:
        _check_unicode(part)
    if not relative_parts:
        return True

    group_dir = relative_parts[0]
    if group_dir == 'report':
        return False
    if not regex.search(guess_benchmark_name(group_dir)):
        return False
    if len(relative_parts) < 2:
        return True

    # input size / iteration count
    if relative_parts[1] == 'report':
        return False
    if len(relative_parts) < 3:
        return True

    # only the newest dataset
    if relative_parts[2] != 'new':
        return False
    if len(relative_parts) < 4:
        return True

    data_file = relative_parts[3]
    if not data_file.endswith('.json'):
        return False
    return data_file[:-len('.json')] in ('benchmark', 'estimates')


def _walk_error(err: OSError) -> None:
    raise DataIoError(f'failed to list {err.filename}') from err


def iter_data_files(root: Path, regex: re.Pattern) -> Iterator[Path]:
    """Yield the data files under ``root`` that belong to selected groups."""
    root = Path(root)
    for dirpath, dirnames, filenames in os.walk(root, onerror=_walk_error):
        parent_parts = Path(dirpath).relative_to(root).parts
        dirnames[:] = sorted(d for d in dirnames if keep_entry(parent_parts + (d,), regex))
        if len(parent_parts) + 1 < DATA_DEPTH:
            continue
        if dirnames:
            raise ConventionViolation(
                f'expected only data files in {dirpath}, found directory {dirnames[0]!r}'
            )
        for name in sorted(filenames):
            if keep_entry(parent_parts + (name,), regex):
                yield Path(dirpath, name)


def _reject_constant(name: str) -> Any:
    raise ValueError(f'non-standard JSON constant {name}')


def _load_json(path: Path) -> Any:
    try:
        raw = path.read_bytes()
    except OSError as exc:
        raise DataIoError(f'failed to read data file {path}') from exc
    try:
        return json.loads(raw, parse_constant=_reject_constant)
    except ValueError as exc:
        raise DecodeError(f'failed to decode JSON from {path}') from exc


def read_all(input_path: Path, regex: re.Pattern) -> list[BenchmarkInfo]:
    """Read every selected benchmark below ``input_path/target/criterion``."""
    root = criterion_dir(input_path)
    if not root.is_dir():
        raise NoResultTree(f'No benchmark data found in {root}. Have you run the benchmark yet?')

    benchmarks: dict[Path, Benchmark] = {}
    estimates: dict[Path, Estimates] = {}
    for path in iter_data_files(root, regex):
        relative_path = path.relative_to(root)
        parent_dir = relative_path.parent
        payload = _load_json(path)
        if path.stem == 'benchmark':
            try:
                benchmark = parse_benchmark(payload)
            except DecodeError as exc:
                raise DecodeError(f'failed to decode benchmark metadata {relative_path}') from exc
            if not regex.search(benchmark.group_id):
                raise ConventionViolation(
                    f'group ID {benchmark.group_id!r} in {relative_path} does not match the '
                    f'selection regex although its directory name does'
                )
            benchmarks[parent_dir] = benchmark
        else:
            try:
                estimates[parent_dir] = parse_estimates(payload)
            except DecodeError as exc:
                raise DecodeError(f'failed to decode benchmark estimates {relative_path}') from exc

    result = []
    for parent_dir in sorted(benchmarks.keys() | estimates.keys()):
        if parent_dir not in estimates:
            raise ConventionViolation(f'{parent_dir} has benchmark.json but no estimates.json')
        if parent_dir not in benchmarks:
            raise ConventionViolation(f'{parent_dir} has estimates.json but no benchmark.json')
        benchmark = benchmarks[parent_dir]
        expected_name = guess_benchmark_name(parent_dir.parts[0])
        if expected_name != benchmark.group_id:
            raise ConventionViolation(
                f'directory {parent_dir.parts[0]!r} does not follow the group naming convention '
                f'(expected group ID {expected_name!r}, found {benchmark.group_id!r})'
            )
        result.append(BenchmarkInfo(
            group_id=benchmark.group_id,
            value_str=benchmark.value_str,
            throughput=benchmark.throughput,
            median=estimates[parent_dir].median,
        ))
    return result
