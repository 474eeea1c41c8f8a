from qcopt.elimination import remove_diagonal_gates_before_measure, remove_final_measurements
from qcopt.operations import (
    ClassicControlledOperation,
    CompoundOperation,
    Control,
    ControlType,
    NonUnitaryOperation,
    OpType,
    StandardOperation,
)
from qcopt.program import Program


def _gate(kind, target, controls=()):
    return StandardOperation(kind, [target], list(controls))


def _measure(qubit, clbit):
    return NonUnitaryOperation(OpType.MEASURE, [qubit], [clbit])


def test_diagonal_gates_before_measurement_are_removed():
    program = Program(
        1,
        [_gate(OpType.H, 0), _gate(OpType.T, 0), _gate(OpType.Z, 0), _gate(OpType.S, 0), _measure(0, 0)],
    )
    remove_diagonal_gates_before_measure(program)
    assert [op.kind for op in program.ops] == [OpType.H, OpType.MEASURE]


def test_non_diagonal_gate_blocks_the_walk():
    program = Program(1, [_gate(OpType.T, 0), _gate(OpType.H, 0), _gate(OpType.Z, 0), _measure(0, 0)])
    remove_diagonal_gates_before_measure(program)
    assert [op.kind for op in program.ops] == [OpType.T, OpType.H, OpType.MEASURE]


def test_unmeasured_qubits_are_untouched():
    program = Program(2, [_gate(OpType.Z, 0), _gate(OpType.Z, 1), _measure(1, 0)])
    remove_diagonal_gates_before_measure(program)
    assert [op.targets for op in program.ops] == [[0], [1]]


def test_controlled_diagonal_needs_all_qubits_measured():
    cz = _gate(OpType.Z, 1, [Control(0)])
    program = Program(2, [cz, _measure(0, 0), _measure(1, 1)])
    remove_diagonal_gates_before_measure(program)
    assert [op.kind for op in program.ops] == [OpType.MEASURE, OpType.MEASURE]

    blocked = Program(2, [cz.clone(), _gate(OpType.H, 1), _measure(0, 0), _measure(1, 1)])
    remove_diagonal_gates_before_measure(blocked)
    assert len(blocked.ops) == 4


def test_negative_controls_are_kept():
    ncz = _gate(OpType.Z, 1, [Control(0, ControlType.NEG)])
    program = Program(2, [ncz, _measure(0, 0), _measure(1, 1)])
    remove_diagonal_gates_before_measure(program)
    assert program.ops[0] == ncz


def test_compound_members_are_pruned_from_the_back():
    compound = CompoundOperation([_gate(OpType.H, 0), _gate(OpType.T, 0), _gate(OpType.RZ, 1)])
    program = Program(2, [compound, _measure(0, 0), _measure(1, 1)])
    remove_diagonal_gates_before_measure(program)
    assert program.ops[0] == _gate(OpType.H, 0)
    assert len(program.ops) == 3


def test_classic_controlled_diagonal_is_removed():
    program = Program(
        2,
        [
            _measure(1, 0),
            ClassicControlledOperation(_gate(OpType.S, 0), (0, 1)),
            _measure(0, 1),
        ],
    )
    remove_diagonal_gates_before_measure(program)
    assert [op.kind for op in program.ops] == [OpType.MEASURE, OpType.MEASURE]


def test_long_programs_do_not_recurse():
    ops = [_gate(OpType.H, 0)] + [_gate(OpType.T, 0) for _ in range(5000)] + [_measure(0, 0)]
    program = Program(1, ops)
    remove_diagonal_gates_before_measure(program)
    assert len(program.ops) == 2


def test_final_measurements_are_removed():
    program = Program(2, [_gate(OpType.H, 0), _measure(0, 0), _measure(1, 1)])
    program.barrier(0, 1)
    program.ops.append(_measure(0, 2))
    remove_final_measurements(program)
    assert program.ops == [_gate(OpType.H, 0)]


def test_mid_circuit_measurements_are_kept():
    program = Program(1, [_measure(0, 0), _gate(OpType.X, 0), _measure(0, 1)])
    remove_final_measurements(program)
    assert [op.kind for op in program.ops] == [OpType.MEASURE, OpType.X]


def test_multi_qubit_measurement_needs_all_qubits_trailing():
    joint = NonUnitaryOperation(OpType.MEASURE, [0, 1], [0, 1])
    program = Program(2, [joint, _gate(OpType.X, 1)])
    remove_final_measurements(program)
    assert program.ops[0] == joint

    trailing = Program(2, [_gate(OpType.H, 1), joint.clone()])
    remove_final_measurements(trailing)
    assert trailing.ops == [_gate(OpType.H, 1)]


def test_final_measurements_inside_compounds():
    compound = CompoundOperation([_gate(OpType.H, 0), _measure(0, 0), _measure(1, 1)])
    program = Program(2, [_gate(OpType.X, 1), compound])
    remove_final_measurements(program)
    assert program.ops == [_gate(OpType.X, 1), _gate(OpType.H, 0)]


def test_conditioned_compound_blocks_diagonal_removal():
    conditioned = ClassicControlledOperation(CompoundOperation([_gate(OpType.H, 0)]), (1, 1))
    program = Program(1, [_gate(OpType.Z, 0), conditioned, _measure(0, 0)])
    remove_diagonal_gates_before_measure(program)
    assert program.ops[0] == _gate(OpType.Z, 0)
    assert len(program.ops) == 3
