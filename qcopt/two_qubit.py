"""Local rewrites of CNOT, SWAP and multi-controlled X gates."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List, Tuple

from .cleanup import remove_identities
from .dag import add_to_dag, empty_dag
from .decompositions import decompose_swap_gate, mcx_to_mcz
from .operations import Control, ControlType, Operation, OpType

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .program import Program


LOGGER = logging.getLogger(__name__)


def _is_cnot(op: Operation) -> bool:
    return (
        op.is_standard()
        and op.kind is OpType.X
        and len(op.controls) == 1
        and op.controls[0].type is ControlType.POS
        and len(op.targets) == 1
    )


def _is_swap(op: Operation) -> bool:
    return (
        op.is_standard()
        and op.kind is OpType.SWAP
        and not op.controls
        and len(op.targets) == 2
    )


def _cnot_qubits(op: Operation) -> Tuple[int, int]:
    """Return ``(control, target)`` of a CNOT."""

    return op.controls[0].qubit, op.targets[0]


def _cancel(*ops: Operation) -> None:
    for op in ops:
        op.set_gate(OpType.I)
        op.clear_controls()


def _make_swap(op: Operation, a: int, b: int) -> None:
    op.set_gate(OpType.SWAP)
    op.clear_controls()
    op.set_targets(sorted((a, b)))


def _make_cnot(op: Operation, control: int, target: int) -> None:
    op.set_gate(OpType.X)
    op.set_controls([Control(control)])
    op.set_targets([target])


def swap_reconstruction(program: "Program") -> None:
    """Cancel or merge pairs of CNOTs on the same qubit pair.

    Two identical adjacent CNOTs cancel.  ``CX(b, a)`` directly followed by
    ``CX(a, b)`` is replaced by ``SWAP`` followed by ``CX(b, a)``.
    """

    dag = empty_dag(program)
    cancelled = swaps = 0
    for index, op in enumerate(program.ops):
        if not _is_cnot(op):
            add_to_dag(dag, program, index)
            continue

        control, target = _cnot_qubits(op)
        if not dag[control] or not dag[target]:
            add_to_dag(dag, program, index)
            continue

        prev_index = dag[control][-1]
        prev = program.ops[prev_index]
        if dag[target][-1] != prev_index or not _is_cnot(prev):
            add_to_dag(dag, program, index)
            continue

        prev_control, prev_target = _cnot_qubits(prev)
        if (control, target) == (prev_control, prev_target):
            dag[control].pop()
            dag[target].pop()
            _cancel(prev, op)
            cancelled += 1
        elif (control, target) == (prev_target, prev_control):
            dag[control].pop()
            dag[target].pop()
            _make_swap(prev, control, target)
            add_to_dag(dag, program, prev_index)
            _make_cnot(op, target, control)
            add_to_dag(dag, program, index)
            swaps += 1
        else:  # pragma: no cover - a CNOT on both qubits shares the pair
            add_to_dag(dag, program, index)

    LOGGER.debug("swap_reconstruction: %d cancelled, %d swaps", cancelled, swaps)
    remove_identities(program)


def _pair(op: Operation) -> Tuple[int, int]:
    """Return ``(q0, q1)``: target and control of a CNOT or both SWAP targets."""

    if _is_swap(op):
        return op.targets[0], op.targets[1]
    return op.targets[0], op.controls[0].qubit


def cancel_cnots(program: "Program") -> None:
    """Cancel and merge adjacent CNOT and SWAP gates.

    The previous operation on both qubits of a CNOT or SWAP is inspected:

    * identical CNOTs or SWAPs cancel,
    * ``CX(a, b) CX(b, a) CX(a, b)`` collapses into ``SWAP(a, b)``,
    * a SWAP next to a CNOT on the same pair is rewritten as two CNOTs.

    Operations are marked as identity while the DAG is live and removed at
    the end of the pass.
    """

    dag = empty_dag(program)
    stats = {"cancelled": 0, "swaps": 0, "rewritten": 0}
    for index, op in enumerate(program.ops):
        is_cnot = _is_cnot(op)
        is_swap = _is_swap(op)
        if not is_cnot and not is_swap:
            add_to_dag(dag, program, index)
            continue

        q0, q1 = _pair(op)
        if not dag[q0] or not dag[q1] or dag[q0][-1] != dag[q1][-1]:
            add_to_dag(dag, program, index)
            continue

        prev = program.ops[dag[q0][-1]]
        prev_is_cnot = _is_cnot(prev)
        prev_is_swap = _is_swap(prev)
        if not prev_is_cnot and not prev_is_swap:
            add_to_dag(dag, program, index)
            continue

        prev_q0, prev_q1 = _pair(prev)

        if is_cnot and prev_is_cnot:
            if (q0, q1) == (prev_q0, prev_q1):
                dag[q0].pop()
                dag[q1].pop()
                _cancel(prev, op)
                stats["cancelled"] += 1
            elif _collapse_to_swap(program, dag, op, prev, q0, q1):
                stats["swaps"] += 1
            else:
                add_to_dag(dag, program, index)
            continue

        if is_swap and prev_is_swap:
            if {q0, q1} == {prev_q0, prev_q1}:
                dag[q0].pop()
                dag[q1].pop()
                _cancel(prev, op)
                stats["cancelled"] += 1
            else:  # pragma: no cover - a SWAP on both qubits shares the pair
                add_to_dag(dag, program, index)
            continue

        if is_cnot and prev_is_swap:
            # SWAP followed by a CNOT is equivalent to two CNOTs
            _make_cnot(prev, q1, q0)
            _make_cnot(op, q0, q1)
        else:
            # CNOT followed by a SWAP is equivalent to two CNOTs
            _make_cnot(prev, prev_q0, prev_q1)
            _make_cnot(op, prev_q1, prev_q0)
        add_to_dag(dag, program, index)
        stats["rewritten"] += 1

    LOGGER.debug(
        "cancel_cnots: %d cancelled, %d swaps, %d rewritten",
        stats["cancelled"],
        stats["swaps"],
        stats["rewritten"],
    )
    remove_identities(program)


def _collapse_to_swap(
    program: "Program",
    dag: List[List[int]],
    op: Operation,
    prev: Operation,
    q0: int,
    q1: int,
) -> bool:
    """Turn ``CX CX' CX`` on one pair into a single SWAP if possible."""

    if len(dag[q0]) < 2 or len(dag[q1]) < 2:
        return False
    first_index = dag[q0][-2]
    if dag[q1][-2] != first_index:
        return False
    first = program.ops[first_index]
    if not _is_cnot(first) or _pair(first) != (q0, q1):
        return False
    _make_swap(first, q0, q1)
    _cancel(prev, op)
    dag[q0].pop()
    dag[q1].pop()
    return True


def _decompose_swaps(ops: List[Operation], directed: bool) -> List[Operation]:
    result: List[Operation] = []
    for op in ops:
        if op.is_standard() and op.kind is OpType.SWAP:
            first, second = op.targets
            result.extend(decompose_swap_gate(first, second, directed=directed))
        elif op.is_compound():
            op.ops = _decompose_swaps(op.ops, directed)
            result.append(op)
        else:
            result.append(op)
    return result


def decompose_swap(program: "Program", directed_architecture: bool = False) -> None:
    """Replace every SWAP gate by three CNOTs.

    With ``directed_architecture`` the middle CNOT is reversed by Hadamard
    gates so that all CNOTs share the orientation of the first target.
    """

    program.ops = _decompose_swaps(program.ops, directed_architecture)


def _replace_mcx(ops: List[Operation]) -> List[Operation]:
    result: List[Operation] = []
    for op in ops:
        if op.is_standard() and op.kind is OpType.X and op.controls:
            (target,) = op.targets
            result.extend(mcx_to_mcz(op.controls, target))
        elif op.is_compound():
            op.ops = _replace_mcx(op.ops)
            result.append(op)
        else:
            result.append(op)
    return result


def replace_mcx_with_mcz(program: "Program") -> None:
    """Rewrite every (multi-)controlled X as ``H · controlled-Z · H``."""

    program.ops = _replace_mcx(program.ops)


__all__ = ["swap_reconstruction", "cancel_cnots", "decompose_swap", "replace_mcx_with_mcz"]
