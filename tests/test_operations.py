import pytest

from qcopt.operations import (
    ClassicControlledOperation,
    CompoundOperation,
    Control,
    ControlType,
    NonUnitaryOperation,
    OpType,
    StandardOperation,
    operation_from_dict,
)


def test_optype_from_name_accepts_aliases():
    assert OpType.from_name("Sdg") is OpType.SDG
    assert OpType.from_name("id") is OpType.I
    assert OpType.from_name("phase") is OpType.P
    with pytest.raises(ValueError):
        OpType.from_name("toffoli")


def test_controls_are_sorted_and_validated():
    op = StandardOperation(OpType.X, [0], [Control(3), Control(1, ControlType.NEG)])
    assert [c.qubit for c in op.controls] == [1, 3]
    assert op.used_qubits() == [0, 1, 3]
    assert op.is_controlled()

    with pytest.raises(ValueError):
        StandardOperation(OpType.X, [0], [Control(1), Control(1)])
    with pytest.raises(ValueError):
        StandardOperation(OpType.X, [0], [Control(0)])
    with pytest.raises(ValueError):
        StandardOperation(OpType.MEASURE, [0])


def test_compound_predicates_follow_members():
    unitary = CompoundOperation([StandardOperation(OpType.H, [0]), StandardOperation(OpType.X, [2])])
    assert unitary.is_unitary()
    assert not unitary.is_non_unitary()
    assert unitary.used_qubits() == [0, 2]
    assert unitary.acts_on(2) and not unitary.acts_on(1)

    mixed = CompoundOperation(
        [StandardOperation(OpType.H, [0]), NonUnitaryOperation(OpType.MEASURE, [0], [0])]
    )
    assert not mixed.is_unitary()
    assert mixed.is_non_unitary()


def test_compound_merge_and_collapse():
    first = CompoundOperation([StandardOperation(OpType.H, [0])])
    second = CompoundOperation([StandardOperation(OpType.Z, [1])])
    first.merge(second)
    assert len(first) == 2
    assert second.empty()

    single = CompoundOperation([StandardOperation(OpType.T, [4])])
    assert single.is_convertible_to_single_operation()
    assert single.collapse_to_single_operation() == StandardOperation(OpType.T, [4])
    with pytest.raises(ValueError):
        first.collapse_to_single_operation()


def test_measure_requires_matching_sizes():
    with pytest.raises(ValueError):
        NonUnitaryOperation(OpType.MEASURE, [0, 1], [0])
    barrier = NonUnitaryOperation(OpType.BARRIER, [0, 2])
    assert barrier.acts_on(2)
    assert not barrier.is_unitary()


def test_classic_controlled_delegates_to_wrapped_operation():
    inner = StandardOperation(OpType.X, [1], [Control(2)])
    op = ClassicControlledOperation(inner, (0, 1), 1)
    assert op.get_targets() == [1]
    assert op.used_qubits() == [1, 2]
    assert op.acts_on(2)
    assert not op.is_unitary()

    with pytest.raises(ValueError):
        ClassicControlledOperation(NonUnitaryOperation(OpType.RESET, [0]), (0, 1))


def test_clone_is_independent():
    op = StandardOperation(OpType.RZ, [0], params=[0.5])
    copy = op.clone()
    copy.set_gate(OpType.I)
    assert op.kind is OpType.RZ


@pytest.mark.parametrize(
    "data, kind, targets, controls",
    [
        ({"gate": "H", "qubits": [2]}, OpType.H, [2], []),
        ({"gate": "CX", "qubits": [0, 1]}, OpType.X, [1], [0]),
        ({"gate": "CCZ", "qubits": [0, 1, 2]}, OpType.Z, [2], [0, 1]),
        ({"gate": "MCX", "qubits": [3, 1, 0, 2]}, OpType.X, [2], [0, 1, 3]),
        ({"gate": "CSWAP", "qubits": [0, 1, 2]}, OpType.SWAP, [1, 2], [0]),
        ({"gate": "x", "targets": [1], "controls": [0]}, OpType.X, [1], [0]),
    ],
)
def test_operation_from_dict_gates(data, kind, targets, controls):
    op = operation_from_dict(data)
    assert op.kind is kind
    assert op.targets == targets
    assert [c.qubit for c in op.controls] == controls


def test_operation_from_dict_nested_forms():
    op = operation_from_dict(
        {
            "gate": "compound",
            "ops": [
                {"gate": "measure", "qubits": [0], "clbits": [1]},
                {"gate": "if", "register": [1, 1], "value": 0, "op": {"gate": "Z", "qubits": [2]}},
                {"gate": "CX", "qubits": [0, 1], "neg_controls": [0]},
            ],
        }
    )
    assert op.is_compound()
    measure, conditional, cx = op.ops
    assert measure.classics == [1]
    assert conditional.control_register == (1, 1)
    assert conditional.expected_value == 0
    assert cx.controls == [Control(0, ControlType.NEG)]
    assert operation_from_dict(op.to_dict()) == op


def test_operation_from_dict_rejects_bad_arity():
    with pytest.raises(ValueError):
        operation_from_dict({"gate": "CX", "qubits": [0]})
    with pytest.raises(ValueError):
        operation_from_dict({"gate": "CX", "qubits": [0, 1], "neg_controls": [1]})
