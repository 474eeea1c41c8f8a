"""Gate decomposition utilities for qcopt.

This module provides the replacement sequences used by the two-qubit
rewrite passes.  Currently the ``SWAP`` gate (optionally respecting a
directed coupling) and the multi-controlled X gate are implemented.
"""

from __future__ import annotations

from typing import List, Sequence

from .operations import Control, OpType, StandardOperation


def _cx(control: int, target: int) -> StandardOperation:
    return StandardOperation(OpType.X, [target], [Control(control)])


def _h(target: int) -> StandardOperation:
    return StandardOperation(OpType.H, [target])


def decompose_swap_gate(
    first: int, second: int, *, directed: bool = False
) -> List[StandardOperation]:
    """Return a decomposition of ``SWAP(first, second)`` into CNOTs.

    The standard decomposition uses three alternating CNOT gates.  On a
    directed architecture only ``first`` may act as control, so the middle
    CNOT is reversed by conjugating it with Hadamard gates on both qubits.

    Parameters
    ----------
    first, second:
        The two targets of the ``SWAP`` gate.
    directed:
        Keep every CNOT oriented ``first -> second``.
    """

    if not directed:
        return [_cx(first, second), _cx(second, first), _cx(first, second)]
    return [
        _cx(first, second),
        _h(second),
        _h(first),
        _cx(first, second),
        _h(second),
        _h(first),
        _cx(first, second),
    ]


def mcx_to_mcz(controls: Sequence[Control], target: int) -> List[StandardOperation]:
    r"""Return a multi-controlled X gate rewritten around a multi-controlled Z.

    The implementation follows the standard relation

    .. math:: C^nX = H_t \cdot C^nZ \cdot H_t,

    keeping the polarity of every control.
    """

    return [
        _h(target),
        StandardOperation(OpType.Z, [target], list(controls)),
        _h(target),
    ]


__all__ = ["decompose_swap_gate", "mcx_to_mcz"]
