#!/usr/bin/env python3
"""Run the taskhub queue worker from a checkout.

Examples:
    python scripts/run_workers.py --once
    python scripts/run_workers.py --loop --interval 10
    python scripts/run_workers.py --loop --max-iterations 5 -v

Reads DATABASE_URL and the WORKER_* settings from the environment (or .env).
"""

import argparse
import logging
import sys
from pathlib import Path

# Allow running without installing the package
sys.path.insert(0, str(Path(__file__).parent.parent))

from taskhub.workers import (
    RunnerResult,
    configure_worker_logging,
    run_worker_loop,
    run_worker_once,
)

logger = logging.getLogger("taskhub.scripts.run_workers")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Execute due jobs from the queued_jobs table",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    mode = parser.add_mutually_exclusive_group(required=True)
    mode.add_argument("--once", action="store_true", help="Run a single pass and exit")
    mode.add_argument("--loop", action="store_true", help="Keep polling until interrupted")

    parser.add_argument("--interval", type=int, help="Idle sleep between passes in loop mode")
    parser.add_argument("--max-iterations", type=int, help="Stop the loop after N passes")
    parser.add_argument("--batch-size", type=int, help="Jobs fetched per pass")
    parser.add_argument("--retry-delay", type=float, help="Base retry backoff in seconds")

    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="DEBUG logging")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="WARNING logging")
    return parser


def print_summary(result: RunnerResult) -> None:
    print("\nQueue pass summary")
    print(f"  processed: {result.total_processed}")
    print(f"  failed:    {result.total_failed}")
    for name, worker_result in result.worker_results.items():
        print(f"  {name}: {worker_result.status.value} in {worker_result.duration_ms:.0f} ms")
    for error in result.errors:
        print(f"  error: {error}")


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.WARNING
    else:
        level = logging.INFO
    configure_worker_logging(level)

    try:
        if args.once:
            result = run_worker_once(
                batch_size=args.batch_size,
                retry_delay_seconds=args.retry_delay,
            )
            print_summary(result)
            return 1 if result.errors else 0

        run_worker_loop(
            interval_seconds=args.interval,
            max_iterations=args.max_iterations,
            batch_size=args.batch_size,
            retry_delay_seconds=args.retry_delay,
        )
        return 0
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 0
    except Exception as e:
        logger.error(f"Worker crashed: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
