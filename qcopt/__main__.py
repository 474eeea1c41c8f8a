"""Command line interface applying optimisation passes to a program file.

Example::

    python -m qcopt circuit.json --passes cancel_cnots,remove_identities -v
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Sequence

from . import config
from .dag import construct_dag, print_dag
from .errors import CircuitOptimizerError
from .optimizer import CircuitOptimizer
from .program import Program

LOGGER = logging.getLogger(__name__)


def _configure_logging(verbosity: int) -> None:
    """Initialise logging for CLI usage."""

    level = logging.WARNING
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def _parse_passes(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def main(argv: Sequence[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="qcopt",
        description="Optimise a quantum program stored as JSON",
    )
    parser.add_argument("input", help="Path of the program JSON file.")
    parser.add_argument(
        "-o",
        "--output",
        help="Write the optimised program to this file instead of stdout.",
    )
    parser.add_argument(
        "-p",
        "--passes",
        type=_parse_passes,
        default=None,
        help=(
            "Comma separated list of passes to run "
            f"(default: {','.join(config.DEFAULT.passes)})."
        ),
    )
    parser.add_argument(
        "--max-block-size",
        type=int,
        default=config.DEFAULT.max_block_size,
        help=f"Qubit cap for collect_blocks (default: {config.DEFAULT.max_block_size}).",
    )
    parser.add_argument(
        "--directed",
        action="store_true",
        default=config.DEFAULT.directed_architecture,
        help="Decompose SWAP gates for a directed architecture.",
    )
    parser.add_argument(
        "--print-dag",
        action="store_true",
        help="Print the dependency DAG of the result to stderr.",
    )
    parser.add_argument(
        "--list-passes",
        action="store_true",
        help="List the available passes and exit.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase logging verbosity (use -vv for debug output).",
    )
    args = parser.parse_args(argv)

    _configure_logging(args.verbose)
    if args.list_passes:
        print("\n".join(CircuitOptimizer.available_passes()))
        return
    if args.max_block_size < 1:
        parser.error("--max-block-size must be at least 1")

    try:
        optimizer = CircuitOptimizer(
            args.passes,
            max_block_size=args.max_block_size,
            directed_architecture=args.directed,
        )
    except ValueError as exc:
        parser.error(str(exc))

    try:
        program = Program.from_json(args.input)
        optimizer.run(program)
    except (OSError, ValueError, CircuitOptimizerError) as exc:
        LOGGER.debug("optimisation failed", exc_info=True)
        parser.exit(1, f"qcopt: error: {exc}\n")

    if args.print_dag:
        print_dag(program, construct_dag(program), file=sys.stderr)

    if args.output:
        program.to_json(args.output, indent=2)
        LOGGER.info("Wrote %d operations to %s", len(program.ops), args.output)
    else:
        print(program.to_json(indent=2))


if __name__ == "__main__":
    main()
