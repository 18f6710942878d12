"""
Command-line entry point: deploy one SCF function and report timings.

Example:
  python scripts/bench_cli.py --size medium --hosted cos --action create \
      --invoke --numInvocations 3

Credentials come from the environment or .secrets/tencent.env (see
bench_config). Missing or invalid flags print usage and exit with 2;
errors during the run are logged with their traceback and exit with 1.
"""
import argparse
import logging
import sys

import bench_config
from bench_config import Action, CloudConfig, HostedOption, PackageSize, RunOptions
from bench_errors import BenchError, ConfigError
from run_bench import run_benchmark

logger = logging.getLogger(__name__)


def parse_bool(value: str) -> bool:
    try:
        return bench_config.parse_bool(value)
    except ConfigError as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def positive_int(value: str) -> int:
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f'expected an integer, got {value!r}') from None
    if n < 1:
        raise argparse.ArgumentTypeError(f'must be >= 1, got {n}')
    return n


def choice_of(enum_cls):
    def convert(value):
        try:
            return enum_cls.parse(value)
        except ConfigError as e:
            raise argparse.ArgumentTypeError(str(e)) from None
    convert.__name__ = enum_cls.__name__
    return convert


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Deploy an SCF function and time each step')
    parser.add_argument('--size', required=True, type=choice_of(PackageSize), choices=list(PackageSize),
                        help='Package size')
    parser.add_argument('--hosted', required=True, type=choice_of(HostedOption), choices=list(HostedOption),
                        help='Upload the package inline (locally) or via COS')
    parser.add_argument('--action', required=True, type=choice_of(Action), choices=list(Action),
                        help='Create a new function or update an existing one')
    parser.add_argument('--invoke', nargs='?', const=True, default=False, type=parse_bool,
                        help='Invoke the function after creating/updating it')
    parser.add_argument('--numInvocations', '--num-invocations', dest='num_invocations',
                        type=positive_int, default=1, help='Number of times to invoke the function')
    parser.add_argument('--log-level', default='INFO',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'])
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level, format='%(message)s')
    try:
        options = RunOptions(
            action=args.action,
            hosted=args.hosted,
            size=args.size,
            invoke=args.invoke,
            num_invocations=args.num_invocations,
        )
        config = CloudConfig.from_env()
        run_benchmark(config, options)
    except BenchError:
        logger.exception('Benchmark failed')
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
