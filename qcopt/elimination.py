"""Backward eliminations: diagonal gates before measurements and final measurements.

Both passes walk the program from the end while keeping one reverse cursor
per qubit into the DAG.  An operation can only be eliminated when it is the
next entry on *every* qubit it is indexed under; otherwise those qubits are
blocked.  Inside compound operations members are tested from the back and
a member that stays behind blocks its qubits for the members before it.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, List, Optional, Set

from .cleanup import remove_identities
from .dag import DAG, construct_dag, dag_qubits
from .operations import ControlType, Operation, OpType

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .program import Program


LOGGER = logging.getLogger(__name__)

DIAGONAL_GATES = frozenset(
    {OpType.I, OpType.Z, OpType.S, OpType.SDG, OpType.T, OpType.TDG, OpType.P, OpType.RZ}
)

Cursors = List[Optional[int]]


def _is_removable_diagonal(op: Operation) -> bool:
    if op.is_classic_controlled():
        op = op.operation
    if not op.is_standard() or op.kind not in DIAGONAL_GATES:
        return False
    return all(c.type is ControlType.POS for c in op.controls)


def _is_removable_final(op: Operation) -> bool:
    if op.is_non_unitary() and not op.is_compound():
        return op.kind in (OpType.MEASURE, OpType.BARRIER)
    return op.is_standard() and op.kind is OpType.I


def _eliminate(op: Operation, clear: Set[int], removable: Callable[[Operation], bool]) -> bool:
    """Return whether ``op`` can be dropped entirely.

    Qubits of operations that stay are removed from ``clear``.  Compound
    members are pruned in place.
    """

    if op.is_compound():
        kept = [m for m in reversed(op.ops) if not _eliminate(m, clear, removable)]
        kept.reverse()
        op.ops = kept
        return op.empty()
    qubits = set(dag_qubits(op))
    if qubits <= clear and removable(op):
        return True
    clear.difference_update(qubits)
    return False


def _backward_sweep(
    program: "Program",
    dag: DAG,
    cursors: Cursors,
    removable: Callable[[Operation], bool],
) -> int:
    removed: Set[int] = set()
    for slot in range(len(program.ops) - 1, -1, -1):
        op = program.ops[slot]
        qubits = dag_qubits(op)
        ready = [q for q in qubits if cursors[q] is not None and dag[q][cursors[q]] == slot]
        if not ready:
            continue
        if len(ready) != len(qubits):
            for q in ready:
                cursors[q] = None
            continue

        clear = set(ready)
        if _eliminate(op, clear, removable):
            removed.add(slot)
        for q in ready:
            if q in clear and cursors[q] > 0:
                cursors[q] -= 1
            else:
                cursors[q] = None

    program.ops = [op for i, op in enumerate(program.ops) if i not in removed]
    return len(removed)


def remove_diagonal_gates_before_measure(program: "Program") -> None:
    """Remove diagonal gates that are only followed by measurements.

    A diagonal gate (:data:`DIAGONAL_GATES`, possibly controlled or
    classically controlled) does not change computational-basis
    measurement statistics.  Gates with negative controls are kept.  Only
    qubits whose last operation is a measurement are considered.
    """

    dag = construct_dag(program)
    cursors: Cursors = []
    for entries in dag:
        if len(entries) >= 2 and program.ops[entries[-1]].kind is OpType.MEASURE:
            cursors.append(len(entries) - 2)
        else:
            cursors.append(None)
    removed = _backward_sweep(program, dag, cursors, _is_removable_diagonal)
    LOGGER.debug("remove_diagonal_gates_before_measure: %d operations removed", removed)
    remove_identities(program)


def remove_final_measurements(program: "Program") -> None:
    """Strip trailing measurements and barriers from every qubit.

    A multi-qubit measurement or barrier is removed only if it is trailing
    on all of its qubits.
    """

    dag = construct_dag(program)
    cursors: Cursors = [len(entries) - 1 if entries else None for entries in dag]
    removed = _backward_sweep(program, dag, cursors, _is_removable_final)
    LOGGER.debug("remove_final_measurements: %d operations removed", removed)
    remove_identities(program)


__all__ = ["DIAGONAL_GATES", "remove_diagonal_gates_before_measure", "remove_final_measurements"]
