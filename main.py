import argparse
import logging
import sys
import time
from dataclasses import replace

import numpy as np

from loadgen.config import Config, ConfigError
from loadgen.db import create_pool
from loadgen.driver import Supervisor, build_drivers
from loadgen.loader import Loader
from loadgen.schema import access_log_table

logger = logging.getLogger("loadgen")


def setup_logging(level):
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(threadName)s] %(message)s",
        stream=sys.stderr,
    )


def print_summary(drivers, elapsed):
    elapsed = max(elapsed, 1e-6)
    total_batches = sum(d.stats.batches for d in drivers)
    total_rows = sum(d.stats.rows for d in drivers)
    total_errors = sum(d.stats.errors for d in drivers)

    print(f"\nResults after {elapsed:.1f}s:")
    print(f"Batches: {total_batches} ({total_batches / elapsed:.2f}/s)")
    print(f"Rows: {total_rows} ({total_rows / elapsed:.0f}/s)")
    print(f"Errors: {total_errors}")

    print("\nWrite latency (ms) p50 / p95 / p99:")
    for d in drivers:
        if not d.stats.latencies:
            print(f"  {d.name:<20}: no successful writes")
            continue
        a = np.array(d.stats.latencies) * 1000  # to ms
        p50 = np.percentile(a, 50)
        p95 = np.percentile(a, 95)
        p99 = np.percentile(a, 99)
        print(f"  {d.name:<20}: {p50:.2f} / {p95:.2f} / {p99:.2f}  ({d.stats.burst_batches}/{d.stats.batches} in burst)")


def cmd_run(config, args):
    overrides = {}
    if args.rate is not None:
        overrides["rate"] = args.rate
    if args.tables is not None:
        overrides["table_num"] = args.tables
    if overrides:
        config = replace(config, **overrides).validated()

    logger.info("Connecting to %s:%s as %s", config.db_host, config.db_port, config.db_user)
    loader = Loader(create_pool(config))

    drivers = build_drivers(config, loader)
    logger.info("Writing to %d tables at %.2f batches/s each", len(drivers), config.rate)

    start = time.time()
    Supervisor(drivers).run(duration=args.duration)
    print_summary(drivers, time.time() - start)


def cmd_schema(config, args):
    for i in range(config.table_num):
        print(access_log_table(config.table_name(i)).create_sql() + ";\n")


def cmd_init(config, args):
    loader = Loader(create_pool(config))
    for i in range(config.table_num):
        loader.ensure_table(access_log_table(config.table_name(i)))
    print(f"Created {config.table_num} tables.")


def cmd_stats(config, args):
    loader = Loader(create_pool(config))
    total = 0
    print(f"{'Table':<25} | {'Rows':<12}")
    print("-" * 40)
    for i in range(config.table_num):
        name = config.table_name(i)
        try:
            count = loader.count_rows(name)
        except Exception as e:
            print(f"{name:<25} | error: {e}")
            continue
        total += count
        print(f"{name:<25} | {count:<12}")
    print("-" * 40)
    print(f"{'Total':<25} | {total:<12}")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Access log load generator for GreptimeDB")
    subparsers = parser.add_subparsers(dest='command')

    # Run command
    p_run = subparsers.add_parser('run', help='Stream generated rows into every table')
    p_run.add_argument('--duration', type=float, default=None, help='Stop after this many seconds (default: run forever)')
    p_run.add_argument('--rate', type=float, default=None, help='Override RATE')
    p_run.add_argument('--tables', type=int, default=None, help='Override TABLE_NUM')

    subparsers.add_parser('schema', help='Print CREATE TABLE statements')
    subparsers.add_parser('init', help='Create every table')
    subparsers.add_parser('stats', help='Print row counts per table')

    args = parser.parse_args(argv)
    if args.command is None:
        args = parser.parse_args(['run'])

    try:
        config = Config.from_env()
    except ConfigError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    setup_logging(config.log_level)

    commands = {
        'run': cmd_run,
        'schema': cmd_schema,
        'init': cmd_init,
        'stats': cmd_stats,
    }
    try:
        commands[args.command](config, args)
    except ConfigError as e:
        logger.error("Invalid configuration: %s", e)
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
