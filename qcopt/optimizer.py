from __future__ import annotations

import logging
from functools import partial
from typing import Callable, Dict, List, Sequence

from . import config
from .blocks import collect_blocks
from .cleanup import flatten_operations, remove_identities
from .elimination import remove_diagonal_gates_before_measure, remove_final_measurements
from .fusion import single_qubit_gate_fusion
from .layout import backpropagate_output_permutation
from .measurements import defer_measurements, eliminate_resets
from .program import Program
from .reorder import reorder_operations
from .two_qubit import cancel_cnots, decompose_swap, replace_mcx_with_mcz, swap_reconstruction

LOGGER = logging.getLogger(__name__)

Pass = Callable[[Program], None]

# Passes that take no options beyond the program.
PASSES: Dict[str, Pass] = {
    "remove_identities": remove_identities,
    "flatten_operations": flatten_operations,
    "swap_reconstruction": swap_reconstruction,
    "cancel_cnots": cancel_cnots,
    "replace_mcx_with_mcz": replace_mcx_with_mcz,
    "single_qubit_gate_fusion": single_qubit_gate_fusion,
    "remove_diagonal_gates_before_measure": remove_diagonal_gates_before_measure,
    "remove_final_measurements": remove_final_measurements,
    "defer_measurements": defer_measurements,
    "eliminate_resets": eliminate_resets,
    "reorder_operations": reorder_operations,
    "backpropagate_output_permutation": backpropagate_output_permutation,
}

# Passes configured from the optimizer's options.
CONFIGURABLE_PASSES = ("decompose_swap", "collect_blocks")


class CircuitOptimizer:
    """Apply a sequence of optimisation passes to programs.

    Parameters
    ----------
    passes:
        Names of the passes to run, in order.  Defaults to
        ``config.DEFAULT.passes``.
    max_block_size:
        Qubit cap used by ``collect_blocks``.
    directed_architecture:
        Whether ``decompose_swap`` must keep CNOT orientation fixed.

    Raises
    ------
    ValueError
        If a pass name is unknown or ``max_block_size`` is not positive.
    """

    def __init__(
        self,
        passes: Sequence[str] | None = None,
        *,
        max_block_size: int = config.DEFAULT.max_block_size,
        directed_architecture: bool = config.DEFAULT.directed_architecture,
    ):
        if passes is None:
            passes = config.DEFAULT.passes
        self.passes: List[str] = [name.strip() for name in passes]
        unknown = [n for n in self.passes if n not in PASSES and n not in CONFIGURABLE_PASSES]
        if unknown:
            raise ValueError(
                f"Unknown optimisation pass(es): {', '.join(unknown)}. "
                f"Available: {', '.join(self.available_passes())}"
            )
        if int(max_block_size) < 1:
            raise ValueError("max_block_size must be at least 1")
        self.max_block_size = int(max_block_size)
        self.directed_architecture = bool(directed_architecture)

    @staticmethod
    def available_passes() -> List[str]:
        return sorted([*PASSES, *CONFIGURABLE_PASSES])

    def _resolve(self, name: str) -> Pass:
        if name == "decompose_swap":
            return partial(decompose_swap, directed_architecture=self.directed_architecture)
        if name == "collect_blocks":
            return partial(collect_blocks, max_block_size=self.max_block_size)
        return PASSES[name]

    def run(self, program: Program) -> Program:
        """Apply the configured passes to ``program`` in place and return it."""

        for name in self.passes:
            before = len(program.ops)
            self._resolve(name)(program)
            LOGGER.info("%s: %d -> %d operations", name, before, len(program.ops))
        return program


__all__ = ["CircuitOptimizer", "PASSES", "CONFIGURABLE_PASSES"]
