"""Fusion of runs of single-qubit gates into compound operations."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Dict

from .cleanup import remove_identities
from .dag import add_to_dag, empty_dag
from .operations import CompoundOperation, Operation, OpType

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .program import Program


LOGGER = logging.getLogger(__name__)

# Gate kind -> kind of its inverse.
INVERSE_GATES: Dict[OpType, OpType] = {
    OpType.I: OpType.I,
    OpType.X: OpType.X,
    OpType.Y: OpType.Y,
    OpType.Z: OpType.Z,
    OpType.H: OpType.H,
    OpType.S: OpType.SDG,
    OpType.SDG: OpType.S,
    OpType.T: OpType.TDG,
    OpType.TDG: OpType.T,
    OpType.SX: OpType.SXDG,
    OpType.SXDG: OpType.SX,
    OpType.BARRIER: OpType.BARRIER,
}


def _is_single_qubit_gate(op: Operation) -> bool:
    return op.is_standard() and not op.controls and len(op.targets) == 1


def _cancels(previous: Operation, op: Operation) -> bool:
    return INVERSE_GATES.get(previous.kind) is op.kind


def single_qubit_gate_fusion(program: "Program") -> None:
    """Collect runs of uncontrolled single-qubit gates into compounds.

    The first gate of a run is replaced by a :class:`CompoundOperation`
    holding the whole run; later members are marked as identity and swept
    at the end.  A gate directly followed by its inverse (see
    :data:`INVERSE_GATES`) is cancelled instead of being appended.
    Controlled, multi-target and non-standard operations end a run.
    """

    dag = empty_dag(program)
    fused = cancelled = 0
    for index, op in enumerate(program.ops):
        if not _is_single_qubit_gate(op):
            add_to_dag(dag, program, index)
            continue

        target = op.targets[0]
        if not dag[target]:
            add_to_dag(dag, program, index)
            continue

        prev_index = dag[target][-1]
        prev = program.ops[prev_index]

        if prev.is_compound():
            if len(prev.used_qubits()) > 1:
                add_to_dag(dag, program, index)
                continue
            if not prev.empty() and _cancels(prev[-1], op):
                prev.pop()
                cancelled += 1
            else:
                prev.append(op.clone())
                fused += 1
            op.set_gate(OpType.I)
            continue

        if not _is_single_qubit_gate(prev):
            add_to_dag(dag, program, index)
            continue

        if _cancels(prev, op):
            prev.set_gate(OpType.I)
            op.set_gate(OpType.I)
            dag[target].pop()
            cancelled += 1
        else:
            program.ops[prev_index] = CompoundOperation([prev, op.clone()])
            op.set_gate(OpType.I)
            fused += 1

    LOGGER.debug("single_qubit_gate_fusion: %d fused, %d cancelled", fused, cancelled)
    remove_identities(program)


__all__ = ["INVERSE_GATES", "single_qubit_gate_fusion"]
