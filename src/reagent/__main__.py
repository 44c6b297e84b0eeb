"""Run a linear game of life in the terminal.

    python -m reagent --cells 40 --iterations 20 --pattern '-------------------*'

Each committed generation is printed as one '*'/'-' line.
"""

from __future__ import annotations

import argparse
import logging
import sys
import threading

from reagent import pool as _pool
from reagent.automaton import LinearAutomaton
from reagent.errors import ReagentError
from reagent.rules import format_states

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="reagent", description=__doc__.splitlines()[0])
    parser.add_argument("--cells", type=int, default=None, help="line length (default: pattern length)")
    parser.add_argument("--iterations", type=int, default=20, help="generations to print, including the first")
    parser.add_argument("--pattern", default="*-*", help="initial line, '*' alive and '-' dead")
    parser.add_argument("--period", type=float, default=0.5, help="seconds between ticks")
    parser.add_argument("--delay", type=float, default=0.0, help="seconds before the first tick")
    parser.add_argument("--pool", choices=_pool.POOLS, default=_pool.CACHED)
    parser.add_argument("--workers", type=int, default=None, help="worker count for a fixed pool")
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default="WARNING",
        help="one of %(choices)s, case-insensitive",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if args.iterations < 1:
        print("--iterations must be at least 1", file=sys.stderr)
        return 2

    done = threading.Event()
    printed = [0]
    line: LinearAutomaton | None = None

    def on_commit(generation: int, states: tuple) -> None:
        if printed[0] >= args.iterations:
            return
        print(format_states(states), flush=True)
        printed[0] += 1
        if printed[0] == args.iterations:
            if line is not None:
                line.stop()
            done.set()

    try:
        line = LinearAutomaton.life(
            args.pattern,
            args.cells,
            period=args.period,
            delay=args.delay,
            on_commit=on_commit,
            on_error=lambda error: done.set(),
            pool=args.pool,
            workers=args.workers,
        )
        line.init()
    except (ReagentError, ValueError) as exc:
        print(f"reagent: {exc}", file=sys.stderr)
        return 1

    try:
        done.wait()
    except KeyboardInterrupt:
        pass
    finally:
        line.shutdown(wait=False)
    return 0


if __name__ == "__main__":
    sys.exit(main())
