"""Canonical topological reordering of a program."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List

from . import config
from .dag import construct_dag, dag_qubits
from .operations import Operation

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .program import Program


LOGGER = logging.getLogger(__name__)


def _has_classic_control(ops: List[Operation]) -> bool:
    return any(
        _has_classic_control(op.ops) if op.is_compound() else op.is_classic_controlled()
        for op in ops
    )


def reorder_operations(program: "Program") -> None:
    """Reorder ``program`` into a canonical topological order.

    Qubits are scanned from the highest index to the lowest; an operation
    is scheduled once it is the next pending operation on all of its
    qubits.  Scans repeat until every qubit is exhausted, so the result does
    not depend on how commuting operations were interleaved.  Operations
    touching no qubit keep their relative order and are appended last.
    """

    if config.DEFAULT.warn_classic_reorder and _has_classic_control(program.ops):
        LOGGER.warning(
            "Reordering operations might not preserve semantics if the program "
            "contains classically controlled operations"
        )

    dag = construct_dag(program)
    cursors = [0] * len(dag)
    order: List[int] = []
    pending = True
    while pending:
        pending = False
        for q in range(len(dag) - 1, -1, -1):
            if cursors[q] == len(dag[q]):
                continue
            pending = True
            slot = dag[q][cursors[q]]
            qubits = dag_qubits(program.ops[slot])
            if any(dag[p][cursors[p]] != slot for p in qubits):
                continue
            order.append(slot)
            for p in qubits:
                cursors[p] += 1

    scheduled = set(order)
    order.extend(i for i in range(len(program.ops)) if i not in scheduled)
    program.ops = [program.ops[i] for i in order]
    LOGGER.debug("reorder_operations: %d operations scheduled", len(order))


__all__ = ["reorder_operations"]
