"""Passes dealing with mid-circuit measurements and resets."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Dict, Iterator, List

from .errors import CircuitOptimizerError, UnsupportedOperationError
from .operations import Control, ControlType, Operation, OpType, StandardOperation

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .program import Program


LOGGER = logging.getLogger(__name__)


def _is_kind(op: Operation, kind: OpType) -> bool:
    return not op.is_compound() and op.kind is kind


def _leaves(ops: List[Operation]) -> Iterator[Operation]:
    for op in ops:
        if op.is_compound():
            yield from _leaves(op.ops)
        else:
            yield op


# ----------------------------------------------------------------------
# Measurement deferral
# ----------------------------------------------------------------------
def _register_covers(op: Operation, bit: int) -> bool:
    start, width = op.control_register
    return start <= bit < start + width


def _controlled_replacement(op: Operation, qubit: int, bit: int) -> StandardOperation:
    """Return ``op`` with its classical predicate on ``bit`` turned into a quantum control."""

    if op.expected_value not in (0, 1):
        raise UnsupportedOperationError(
            f"Expected value {op.expected_value} is not valid for single-bit register {bit}"
        )
    inner = op.operation
    if not inner.is_standard():
        raise CircuitOptimizerError(
            f"Underlying operation of classic-controlled operation is not a standard operation: {inner!r}"
        )
    if qubit in inner.targets:
        raise UnsupportedOperationError(
            f"Implicit reset detected: qubit {qubit} is measured and then targeted by a "
            "classic-controlled operation on the measured bit."
        )
    if any(c.qubit == qubit for c in inner.controls):
        raise UnsupportedOperationError(
            f"Qubit {qubit} is measured and then used as a control of a "
            "classic-controlled operation on the measured bit."
        )
    polarity = ControlType.POS if op.expected_value == 1 else ControlType.NEG
    return StandardOperation(
        inner.kind,
        list(inner.targets),
        list(inner.controls) + [Control(qubit, polarity)],
        list(inner.params),
    )


def _contains_condition_on(op: Operation, bit: int) -> bool:
    return any(
        leaf.is_classic_controlled() and _register_covers(leaf, bit) for leaf in _leaves(op.ops)
    )


def _modifies(op: Operation, qubit: int) -> bool:
    """Return whether ``op`` may change the computational-basis value of ``qubit``."""

    if op.is_classic_controlled():
        op = op.operation
    if op.is_standard():
        return qubit in op.targets
    return op.acts_on(qubit)


def _defer_from(ops: List[Operation], start: int, qubit: int, bit: int) -> int:
    """Rewrite the classical conditions on ``bit`` following ``ops[start]``.

    The measurement of ``qubit`` into ``bit`` has already been removed.
    ``insertion`` is the latest position at which ``qubit`` still holds
    its measured value; it stops moving at the first operation that may
    modify ``qubit``.  Returns the number of rewritten operations.
    """

    rewritten = 0
    cursor = insertion = start
    while cursor < len(ops):
        op = ops[cursor]

        if _is_kind(op, OpType.RESET):
            raise UnsupportedOperationError(
                "Reset encountered while deferring measurements; run "
                "eliminate_resets before defer_measurements."
            )
        if _is_kind(op, OpType.MEASURE) and bit in op.classics:
            # the bit is overwritten from here on
            break
        if op.is_compound() and _contains_condition_on(op, bit):
            raise UnsupportedOperationError(
                f"Compound operation at position {cursor} contains a condition on "
                f"measured bit {bit}; flatten the program before deferring measurements."
            )

        if op.is_classic_controlled() and op.control_register[1] != 1:
            start, width = op.control_register
            raise UnsupportedOperationError(
                f"Classic-controlled operation on register ({start}, {width}) found while "
                f"deferring the measurement of qubit {qubit}; predicates on more than one "
                "bit are not supported. Decompose the operation into single-bit conditions first."
            )
        if op.is_classic_controlled() and _register_covers(op, bit):
            replacement = _controlled_replacement(op, qubit, bit)
            if insertion < cursor:
                blocking = set(op.operation.used_qubits())
                if any(set(o.used_qubits()) & blocking for o in ops[insertion:cursor]):
                    raise UnsupportedOperationError(
                        f"Qubit {qubit} is reused before the classic-controlled operation "
                        f"at position {cursor}; the operation cannot be deferred."
                    )
            del ops[cursor]
            ops.insert(insertion, replacement)
            rewritten += 1
            insertion += 1
            cursor += 1
            continue

        if insertion == cursor and not _modifies(op, qubit):
            insertion += 1
        cursor += 1
    return rewritten


def defer_measurements(program: "Program") -> None:
    """Move every mid-circuit measurement to the end of the program.

    Classic-controlled operations conditioned on a measured bit are
    replaced by the equivalent quantum-controlled operation: an expected
    value of 1 becomes a positive control, 0 a negative control.  The
    deferred measurements are appended sorted by qubit and the I/O mapping
    is recomputed.

    Raises
    ------
    UnsupportedOperationError
        For multi-qubit measurements, repeated measurements of one qubit,
        conditions on more than one bit, implicit resets, or a reset that is
        still present.
    CircuitOptimizerError
        If a classic-controlled operation wraps a non-standard operation.
    """

    ops = program.ops
    deferred: Dict[int, int] = {}
    rewritten = 0
    i = 0
    while i < len(ops):
        op = ops[i]
        if not _is_kind(op, OpType.MEASURE):
            i += 1
            continue
        if len(op.targets) != 1:
            raise UnsupportedOperationError(
                "Deferring measurements with more than one target is not supported. "
                "Decompose the measurement into single-qubit measurements first."
            )
        qubit, bit = op.targets[0], op.classics[0]
        if qubit in deferred:
            raise UnsupportedOperationError(
                f"Qubit {qubit} is measured again after its measurement into bit "
                f"{deferred[qubit]} was deferred; repeated measurements of one "
                "qubit cannot be deferred."
            )
        if i == len(ops) - 1:
            break

        deferred[qubit] = bit
        del ops[i]
        rewritten += _defer_from(ops, i, qubit, bit)

    if not deferred:
        return
    program.output_permutation.clear()
    for qubit in sorted(deferred):
        program.measure(qubit, deferred[qubit])
    program.initialize_io_mapping()
    LOGGER.debug(
        "defer_measurements: %d measurements deferred, %d operations rewritten",
        len(deferred),
        rewritten,
    )


# ----------------------------------------------------------------------
# Reset elimination
# ----------------------------------------------------------------------
def _relabel(op: Operation, mapping: Dict[int, int]) -> None:
    if op.is_classic_controlled():
        _relabel(op.operation, mapping)
    elif op.is_compound():
        for member in op.ops:
            _relabel(member, mapping)
    elif op.is_standard():
        op.set_targets([mapping.get(t, t) for t in op.targets])
        op.set_controls([Control(mapping.get(c.qubit, c.qubit), c.type) for c in op.controls])
    elif op.is_non_unitary():
        op.targets = [mapping.get(t, t) for t in op.targets]


def _eliminate_resets(
    ops: List[Operation], program: "Program", mapping: Dict[int, int]
) -> List[Operation]:
    result: List[Operation] = []
    for op in ops:
        if _is_kind(op, OpType.RESET):
            for target in op.targets:
                fresh = program.nqubits
                program.add_qubit(fresh, fresh, fresh)
                mapping[target] = fresh
            continue
        if op.is_compound():
            op.ops = _eliminate_resets(op.ops, program, mapping)
            if op.empty():
                continue
        elif mapping:
            _relabel(op, mapping)
        result.append(op)
    return result


def eliminate_resets(program: "Program") -> None:
    """Replace every reset by a fresh qubit.

    Each reset target is relabelled to a newly added qubit for the rest of
    the program, so that the qubit is never reused after a measurement.
    """

    before = program.nqubits
    program.ops = _eliminate_resets(program.ops, program, {})
    LOGGER.debug("eliminate_resets: %d qubits added", program.nqubits - before)


# ----------------------------------------------------------------------
# Dynamic circuit detection
# ----------------------------------------------------------------------
def is_dynamic_circuit(program: "Program") -> bool:
    """Return whether ``program`` depends on mid-circuit measurement outcomes.

    A program is dynamic if it contains a reset, a classic-controlled
    operation, or a gate acting on a qubit after that qubit was measured.
    """

    measured = set()
    for op in _leaves(program.ops):
        if op.is_classic_controlled() or _is_kind(op, OpType.RESET):
            return True
        if _is_kind(op, OpType.MEASURE):
            measured.update(op.targets)
        elif op.is_unitary() and measured.intersection(op.used_qubits()):
            return True
    return False


__all__ = ["defer_measurements", "eliminate_resets", "is_dynamic_circuit"]
