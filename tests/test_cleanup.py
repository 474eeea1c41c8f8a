from qcopt.cleanup import flatten_operations, remove_identities
from qcopt.operations import (
    ClassicControlledOperation,
    CompoundOperation,
    OpType,
    StandardOperation,
)
from qcopt.program import Program


def _gate(kind, target):
    return StandardOperation(kind, [target])


def _program():
    return Program(
        2,
        [
            _gate(OpType.I, 0),
            _gate(OpType.H, 0),
            CompoundOperation([_gate(OpType.I, 1), _gate(OpType.X, 1)]),
            CompoundOperation([_gate(OpType.I, 0), CompoundOperation([_gate(OpType.I, 1)])]),
            ClassicControlledOperation(_gate(OpType.I, 1), (0, 1)),
            _gate(OpType.Z, 1),
        ],
    )


def test_remove_identities_sweeps_nested_structures():
    program = _program()
    remove_identities(program)
    assert program.ops == [_gate(OpType.H, 0), _gate(OpType.X, 1), _gate(OpType.Z, 1)]


def test_remove_identities_is_idempotent():
    once = _program()
    remove_identities(once)
    twice = _program()
    remove_identities(twice)
    remove_identities(twice)
    assert once.to_dict() == twice.to_dict()


def test_remove_identities_keeps_larger_compounds():
    compound = CompoundOperation([_gate(OpType.H, 0), _gate(OpType.I, 0), _gate(OpType.T, 0)])
    program = Program(1, [compound])
    remove_identities(program)
    assert program.ops == [CompoundOperation([_gate(OpType.H, 0), _gate(OpType.T, 0)])]


def test_flatten_operations_inlines_recursively():
    program = Program(
        2,
        [
            _gate(OpType.H, 0),
            CompoundOperation(
                [_gate(OpType.X, 1), CompoundOperation([_gate(OpType.Y, 0), _gate(OpType.Z, 1)])]
            ),
            _gate(OpType.S, 1),
        ],
    )
    flatten_operations(program)
    assert [op.kind for op in program.ops] == [OpType.H, OpType.X, OpType.Y, OpType.Z, OpType.S]
    assert not any(op.is_compound() for op in program.ops)
