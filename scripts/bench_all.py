"""
Run the deploy benchmark over every size x hosting option x action and
print the average total time of each combination.

No invocations are made. The update runs reuse whichever function
ListFunctions returns first, so run at least one create beforehand (the
default action order does that).

Usage: python scripts/bench_all.py [--runs 5] [--sizes small medium] \
           [--hosted locally] [--actions create update]
"""
import argparse
import itertools
import logging
import sys
from statistics import mean

from bench_cli import choice_of
from bench_config import Action, CloudConfig, HostedOption, PackageSize, RunOptions
from bench_errors import BenchError
from run_bench import run_benchmark

logger = logging.getLogger(__name__)

SEPARATOR = '-' * 52


def benchmark_matrix(config, sizes, hosted_options, actions, runs=5, scf=None, cos=None):
    """Yield (options, [seconds per run]) for every combination."""
    for size, hosted, action in itertools.product(sizes, hosted_options, actions):
        options = RunOptions(action=action, hosted=hosted, size=size)
        times = [run_benchmark(config, options, scf=scf, cos=cos) for _ in range(runs)]
        yield options, times


def report(options, times, out=None):
    out = out or sys.stdout
    print(f'Args: {options.action}, {options.hosted}, {options.size}', file=out)
    print(f'Avg time: {mean(times) * 1000.0:.3f}ms', file=out)
    print(SEPARATOR, file=out)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description='Benchmark SCF create/update across all options')
    parser.add_argument('--runs', type=int, default=5)
    parser.add_argument('--sizes', nargs='+', type=choice_of(PackageSize),
                        choices=list(PackageSize), default=list(PackageSize))
    parser.add_argument('--hosted', nargs='+', type=choice_of(HostedOption),
                        choices=list(HostedOption), default=list(HostedOption))
    parser.add_argument('--actions', nargs='+', type=choice_of(Action),
                        choices=list(Action), default=list(Action))
    parser.add_argument('--log-level', default='WARNING',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'])
    args = parser.parse_args(argv)
    if args.runs < 1:
        parser.error('--runs must be >= 1')
    logging.basicConfig(level=args.log_level, format='%(message)s')

    try:
        config = CloudConfig.from_env()
        for options, times in benchmark_matrix(config, args.sizes, args.hosted, args.actions, args.runs):
            report(options, times)
    except BenchError:
        logger.exception('Benchmark failed')
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
