"""
Pytest fixtures that lay out Criterion result trees under tmp_path
"""

import json

import pytest


def write_benchmark(root, group_id, value_str, throughput=None, median=None,
                    benchmark=True, estimates=True, dataset='new', group_dir=None):
    """Write one benchmark's data files below <root>/target/criterion."""
    if throughput is None:
        throughput = {'Bytes': 1024}
    if median is None:
        median = make_estimate(512.0, 500.0, 520.0)
    group_dir = group_dir or group_id.replace('/', '_')
    data_dir = root / 'target' / 'criterion' / group_dir / value_str / dataset
    data_dir.mkdir(parents=True, exist_ok=True)
    if benchmark:
        (data_dir / 'benchmark.json').write_text(json.dumps({
            'group_id': group_id,
            'function_id': None,
            'value_str': value_str,
            'throughput': throughput,
            'full_id': f'{group_id}/{value_str}',
            'directory_name': f'{group_dir}/{value_str}',
            'title': f'{group_id}/{value_str}',
        }), encoding='utf-8')
    if estimates:
        (data_dir / 'estimates.json').write_text(json.dumps({
            'mean': make_estimate(600.0, 590.0, 610.0),
            'median': median,
        }), encoding='utf-8')
    return data_dir


def make_estimate(point, lower, upper, level=0.95, standard_error=1.5):
    return {
        'confidence_interval': {
            'confidence_level': level,
            'lower_bound': lower,
            'upper_bound': upper,
        },
        'point_estimate': point,
        'standard_error': standard_error,
    }


@pytest.fixture
def project(tmp_path):
    """An empty Rust project with a Criterion results directory."""
    (tmp_path / 'target' / 'criterion').mkdir(parents=True)
    return tmp_path


@pytest.fixture
def fast_slow_project(project):
    for value in ('100', '200'):
        write_benchmark(project, 'fast', value, throughput={'Elements': 1000},
                        median=make_estimate(10.0, 9.0, 11.0))
        write_benchmark(project, 'slow', value, throughput={'Elements': 1000},
                        median=make_estimate(100.0, 90.0, 110.0))
    return project
