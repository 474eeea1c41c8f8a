"""Derivation of an initial layout from the output permutation."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Dict, List, Set

from .errors import CircuitOptimizerError
from .operations import Operation, OpType

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .program import Program


LOGGER = logging.getLogger(__name__)


def _take(missing: Set[int], preferred: int) -> int:
    """Remove and return ``preferred`` from ``missing``, else its smallest entry."""

    if preferred in missing:
        missing.remove(preferred)
        return preferred
    if not missing:
        raise CircuitOptimizerError(
            "Output permutation is inconsistent: no unused logical qubit is left"
        )
    logical = min(missing)
    missing.remove(logical)
    return logical


def _backpropagate(ops: List[Operation], permutation: Dict[int, int], missing: Set[int]) -> None:
    for op in reversed(ops):
        if op.is_compound():
            _backpropagate(op.ops, permutation, missing)
            continue
        if not (
            op.is_standard()
            and op.kind is OpType.SWAP
            and not op.is_controlled()
            and len(op.targets) == 2
        ):
            continue
        a, b = op.targets
        if a in permutation and b in permutation:
            permutation[a], permutation[b] = permutation[b], permutation[a]
        elif a in permutation:
            permutation[b] = permutation[a]
            permutation[a] = _take(missing, a)
        elif b in permutation:
            permutation[a] = permutation[b]
            permutation[b] = _take(missing, b)


def backpropagate_output_permutation(program: "Program") -> None:
    """Set the initial layout by pushing the output permutation back through SWAPs.

    Walking the program backwards, each uncontrolled SWAP exchanges the
    logical qubits assigned to its targets.  A target without an assignment
    takes a logical qubit absent from the output permutation, preferring its
    own index.  Physical qubits still unassigned at the end are mapped the
    same way.
    """

    permutation = dict(program.output_permutation)
    used = set(permutation.values())
    missing = {q for q in range(program.nqubits) if q not in used}

    _backpropagate(program.ops, permutation, missing)

    for physical in range(program.nqubits):
        if physical not in permutation:
            permutation[physical] = _take(missing, physical)
    program.initial_layout = dict(sorted(permutation.items()))
    LOGGER.debug("backpropagate_output_permutation: initial layout %s", program.initial_layout)


__all__ = ["backpropagate_output_permutation"]
