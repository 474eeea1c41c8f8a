"""Tests for the CNOT, SWAP and multi-controlled X rewrites."""

from __future__ import annotations

import itertools

import numpy as np
from qiskit.quantum_info import Operator

from qcopt.operations import (
    ClassicControlledOperation,
    CompoundOperation,
    Control,
    ControlType,
    OpType,
    StandardOperation,
)
from qcopt.program import Program
from qcopt.two_qubit import (
    cancel_cnots,
    decompose_swap,
    replace_mcx_with_mcz,
    swap_reconstruction,
)


def _cx(control, target):
    return StandardOperation(OpType.X, [target], [Control(control)])


def _swap(a, b):
    return StandardOperation(OpType.SWAP, [a, b])


def _unitary(program):
    return Operator(program.to_qiskit()).data


def _assert_equivalent(before, after):
    assert np.allclose(_unitary(before), _unitary(after))


def test_identical_cnots_cancel():
    program = Program(2, [_cx(0, 1), _cx(0, 1)])
    cancel_cnots(program)
    assert program.ops == []


def test_three_alternating_cnots_become_swap():
    program = Program(2, [_cx(0, 1), _cx(1, 0), _cx(0, 1)])
    cancel_cnots(program)
    assert program.ops == [_swap(0, 1)]


def test_swap_collapse_sorts_targets():
    program = Program(2, [_cx(1, 0), _cx(0, 1), _cx(1, 0)])
    cancel_cnots(program)
    assert program.ops == [_swap(0, 1)]


def test_identical_swaps_cancel():
    program = Program(3, [_swap(2, 0), _swap(0, 2)])
    cancel_cnots(program)
    assert program.ops == []


def test_swap_followed_by_cnot_is_rewritten():
    program = Program(2, [StandardOperation(OpType.H, [0]), _swap(0, 1), _cx(0, 1)])
    original = program.copy()
    cancel_cnots(program)
    assert [op.kind for op in program.ops] == [OpType.H, OpType.X, OpType.X]
    _assert_equivalent(original, program)


def test_cnot_followed_by_swap_is_rewritten():
    program = Program(2, [StandardOperation(OpType.H, [1]), _cx(1, 0), _swap(0, 1)])
    original = program.copy()
    cancel_cnots(program)
    assert all(op.kind is not OpType.SWAP for op in program.ops)
    _assert_equivalent(original, program)


def test_cnots_separated_by_gate_are_kept():
    program = Program(2, [_cx(0, 1), StandardOperation(OpType.H, [1]), _cx(0, 1)])
    cancel_cnots(program)
    assert len(program.ops) == 3


def test_negative_control_is_not_a_cnot():
    negated = StandardOperation(OpType.X, [1], [Control(0, ControlType.NEG)])
    program = Program(2, [negated, negated.clone()])
    cancel_cnots(program)
    assert len(program.ops) == 2


def test_cancel_cnots_preserves_random_sequences():
    rng = np.random.default_rng(7)
    gates = [_cx(0, 1), _cx(1, 0), _swap(0, 1), _cx(1, 2), _swap(1, 2)]
    for _ in range(20):
        ops = [gates[i].clone() for i in rng.integers(0, len(gates), size=8)]
        program = Program(3, ops)
        original = program.copy()
        cancel_cnots(program)
        _assert_equivalent(original, program)


def test_swap_reconstruction_cancels_pairs():
    program = Program(2, [_cx(1, 0), _cx(1, 0), StandardOperation(OpType.Z, [0])])
    swap_reconstruction(program)
    assert program.ops == [StandardOperation(OpType.Z, [0])]


def test_swap_reconstruction_introduces_swap():
    program = Program(2, [_cx(1, 0), _cx(0, 1)])
    original = program.copy()
    swap_reconstruction(program)
    assert program.ops == [_swap(0, 1), _cx(1, 0)]
    _assert_equivalent(original, program)


def _apply_classically(ops, bits):
    bits = list(bits)
    for op in ops:
        if op.kind is OpType.X and all(bits[c.qubit] for c in op.controls):
            bits[op.targets[0]] ^= 1
    return bits


def test_swap_decomposition_permutes_basis_states():
    program = Program(3, [_swap(0, 2)])
    decompose_swap(program)
    assert len(program.ops) == 3
    assert all(op.kind is OpType.X and len(op.controls) == 1 for op in program.ops)
    for bits in itertools.product([0, 1], repeat=3):
        assert _apply_classically(program.ops, bits) == [bits[2], bits[1], bits[0]]


def test_directed_swap_decomposition_keeps_orientation():
    program = Program(2, [_swap(1, 0)])
    original = program.copy()
    decompose_swap(program, directed_architecture=True)
    cnots = [op for op in program.ops if op.kind is OpType.X]
    assert len(program.ops) == 7
    assert all(op.controls == [Control(1)] and op.targets == [0] for op in cnots)
    _assert_equivalent(original, program)


def test_decompose_swap_recurses_into_compounds():
    program = Program(2, [CompoundOperation([StandardOperation(OpType.H, [0]), _swap(0, 1)])])
    decompose_swap(program)
    (compound,) = program.ops
    assert [op.kind for op in compound.ops] == [OpType.H, OpType.X, OpType.X, OpType.X]


def test_mcx_is_rewritten_around_mcz():
    mcx = StandardOperation(OpType.X, [2], [Control(0), Control(1, ControlType.NEG)])
    program = Program(
        3,
        [StandardOperation(OpType.H, [0]), mcx, CompoundOperation([_cx(2, 0)]), StandardOperation(OpType.X, [1])],
    )
    original = program.copy()
    replace_mcx_with_mcz(program)
    kinds = [op.kind for op in program.ops]
    assert kinds == [OpType.H, OpType.H, OpType.Z, OpType.H, OpType.COMPOUND, OpType.X]
    assert program.ops[2].controls == mcx.controls
    assert [op.kind for op in program.ops[4].ops] == [OpType.H, OpType.Z, OpType.H]
    _assert_equivalent(original, program)


def test_conditioned_compound_separates_cnots():
    conditioned = ClassicControlledOperation(CompoundOperation([StandardOperation(OpType.Z, [1])]), (0, 1))
    program = Program(2, [_cx(0, 1), conditioned, _cx(0, 1)])
    cancel_cnots(program)
    assert program.ops == [_cx(0, 1), conditioned, _cx(0, 1)]


def test_conditioned_compound_separates_swap_reconstruction():
    conditioned = ClassicControlledOperation(CompoundOperation([StandardOperation(OpType.Z, [0])]), (0, 1))
    program = Program(2, [_cx(1, 0), conditioned, _cx(1, 0)])
    swap_reconstruction(program)
    assert len(program.ops) == 3
