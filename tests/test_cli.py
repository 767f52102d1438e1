import pytest

from conftest import make_estimate, write_benchmark

from criterion_plot.cli import build_parser, main


def test_defaults():
    args = build_parser().parse_args(['.*'])
    assert str(args.input_path) == '.'
    assert args.output_path.name == 'output.svg'
    assert args.throughput_name == 'FLOP'
    assert args.y_min is None and args.y_max is None
    assert args.regex.pattern == '.*'


@pytest.mark.parametrize('argv', [
    ['('],
    ['--width', '0', '.*'],
    ['--y-min', '-1', '.*'],
    [],
])
def test_usage_errors(argv):
    with pytest.raises(SystemExit) as excinfo:
        build_parser().parse_args(argv)
    assert excinfo.value.code == 2


def test_plot_selected_traces(fast_slow_project, capsys):
    output = fast_slow_project / 'plot.svg'
    code = main(['-i', str(fast_slow_project), '-o', str(output), '--title', 'demo', '-t', 'op', '.*'])
    assert code == 0
    assert output.exists()
    assert 'Wrote' in capsys.readouterr().out
    svg = output.read_text(encoding='utf-8')
    assert 'fast' in svg and 'slow' in svg


def test_raster_output(fast_slow_project):
    output = fast_slow_project / 'plot.png'
    assert main(['-i', str(fast_slow_project), '-o', str(output), '^fast$']) == 0
    assert output.read_bytes().startswith(b'\x89PNG')


def test_empty_selection(fast_slow_project, capsys):
    output = fast_slow_project / 'plot.svg'
    code = main(['-i', str(fast_slow_project), '-o', str(output), '^nonexistent$'])
    assert code != 0
    assert 'Specified regex does not select any trace' in capsys.readouterr().err
    assert not output.exists()


def test_no_result_tree(tmp_path, capsys):
    assert main(['-i', str(tmp_path), '-o', str(tmp_path / 'plot.svg'), '.*']) == 1
    err = capsys.readouterr().err
    assert 'loading data from benchmark results' in err
    assert 'Have you run the benchmark yet?' in err


def test_mixed_throughput_types(project, capsys):
    write_benchmark(project, 'bytes', '1', throughput={'Bytes': 1024})
    write_benchmark(project, 'elements', '1', throughput={'Elements': 10})
    assert main(['-i', str(project), '-o', str(project / 'plot.svg'), '.*']) == 1
    err = capsys.readouterr().err
    assert 'rearranging data into plot traces' in err
    assert 'Bytes' in err and 'Elements' in err


def test_confidence_level(project, capsys):
    write_benchmark(project, 'foo', '1', median=make_estimate(10.0, 9.0, 11.0, level=0.9))
    assert main(['-i', str(project), '-o', str(project / 'plot.svg'), '.*']) == 1
    assert '95%' in capsys.readouterr().err


def test_missing_estimates(project, capsys):
    write_benchmark(project, 'foo', '1', estimates=False)
    assert main(['-i', str(project), '-o', str(project / 'plot.svg'), '.*']) == 1
    assert 'estimates.json' in capsys.readouterr().err


@pytest.mark.parametrize('bounds', [['--y-min', '10', '--y-max', '1'], ['--y-min', '5', '--y-max', '5']])
def test_y_bounds_out_of_order(fast_slow_project, bounds):
    with pytest.raises(SystemExit) as excinfo:
        main(['-i', str(fast_slow_project), *bounds, '.*'])
    assert excinfo.value.code == 2


def test_forced_bound_outside_data(fast_slow_project, capsys):
    output = fast_slow_project / 'plot.svg'
    assert main(['-i', str(fast_slow_project), '-o', str(output), '--y-max', '1', '.*']) == 1
    err = capsys.readouterr().err
    assert 'drawing the performance plot' in err
    assert not output.exists()


def test_bmp_output(fast_slow_project):
    output = fast_slow_project / 'plot.bmp'
    assert main(['-i', str(fast_slow_project), '-o', str(output), '.*']) == 0
    assert output.read_bytes().startswith(b'BM')
