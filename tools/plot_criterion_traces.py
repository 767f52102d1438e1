# Plot throughput vs. problem size for the Criterion groups matching a regex.
# Needs the package installed first (pip install -e .), then:
#
#   python tools/plot_criterion_traces.py -o docs/bench_results/throughput.svg '^parse/'
from criterion_plot.cli import main

raise SystemExit(main())
