"""Program container and loading utilities for qcopt."""

from __future__ import annotations

import copy
import json
import os
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Sequence

from qiskit.circuit import QuantumCircuit
from qiskit.circuit.library import (
    HGate,
    IGate,
    PhaseGate,
    RXGate,
    RYGate,
    RZGate,
    SdgGate,
    SGate,
    SwapGate,
    SXdgGate,
    SXGate,
    TdgGate,
    TGate,
    UGate,
    XGate,
    YGate,
    ZGate,
)

from .operations import (
    ClassicControlledOperation,
    Control,
    ControlType,
    NonUnitaryOperation,
    Operation,
    OpType,
    StandardOperation,
    operation_from_dict,
)


Permutation = Dict[int, int]

_FROM_QISKIT = {
    "id": OpType.I,
    "h": OpType.H,
    "x": OpType.X,
    "y": OpType.Y,
    "z": OpType.Z,
    "s": OpType.S,
    "sdg": OpType.SDG,
    "t": OpType.T,
    "tdg": OpType.TDG,
    "sx": OpType.SX,
    "sxdg": OpType.SXDG,
    "p": OpType.P,
    "rx": OpType.RX,
    "ry": OpType.RY,
    "rz": OpType.RZ,
    "u": OpType.U,
    "swap": OpType.SWAP,
}

_TO_QISKIT = {
    OpType.I: IGate,
    OpType.H: HGate,
    OpType.X: XGate,
    OpType.Y: YGate,
    OpType.Z: ZGate,
    OpType.S: SGate,
    OpType.SDG: SdgGate,
    OpType.T: TGate,
    OpType.TDG: TdgGate,
    OpType.SX: SXGate,
    OpType.SXDG: SXdgGate,
    OpType.P: PhaseGate,
    OpType.RX: RXGate,
    OpType.RY: RYGate,
    OpType.RZ: RZGate,
    OpType.U: UGate,
    OpType.SWAP: SwapGate,
}


def _referenced_qubits(op: Operation) -> List[int]:
    return op.used_qubits()


def _referenced_clbits(op: Operation) -> List[int]:
    if op.is_compound():
        return [c for sub in op.ops for c in _referenced_clbits(sub)]
    if op.is_classic_controlled():
        start, width = op.control_register
        return list(range(start, start + width))
    if op.is_non_unitary():
        return list(op.classics)
    return []


class Program:
    """Owned, ordered instruction stream plus qubit layout metadata.

    Parameters
    ----------
    nqubits:
        Number of physical qubits.  The value grows automatically to cover
        every qubit referenced by ``ops``.
    ops:
        Iterable of :class:`~qcopt.operations.Operation` instances or gate
        dictionaries (see :func:`~qcopt.operations.operation_from_dict`).
    nclassics:
        Number of classical bits; grows to cover referenced bits.
    initial_layout, output_permutation:
        Physical to logical qubit maps.  Both default to the identity.
    """

    def __init__(
        self,
        nqubits: int = 0,
        ops: Iterable[Operation | Mapping[str, Any]] = (),
        *,
        nclassics: int = 0,
        initial_layout: Mapping[int, int] | None = None,
        output_permutation: Mapping[int, int] | None = None,
    ):
        self.ops: List[Operation] = [
            op if isinstance(op, Operation) else operation_from_dict(op) for op in ops
        ]
        max_qubit = max((q for op in self.ops for q in _referenced_qubits(op)), default=-1)
        max_clbit = max((c for op in self.ops for c in _referenced_clbits(op)), default=-1)
        self.nqubits = max(int(nqubits), max_qubit + 1)
        self.nclassics = max(int(nclassics), max_clbit + 1)
        if initial_layout is None:
            self.initial_layout: Permutation = {q: q for q in range(self.nqubits)}
        else:
            self.initial_layout = {int(p): int(l) for p, l in initial_layout.items()}
        if output_permutation is None:
            self.output_permutation: Permutation = {q: q for q in range(self.nqubits)}
        else:
            self.output_permutation = {int(p): int(l) for p, l in output_permutation.items()}

    # ------------------------------------------------------------------
    # Container protocol
    # ------------------------------------------------------------------
    def __len__(self) -> int:
        return len(self.ops)

    def __iter__(self) -> Iterator[Operation]:
        return iter(self.ops)

    def __getitem__(self, index: int) -> Operation:
        return self.ops[index]

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"Program(nqubits={self.nqubits}, ops={self.ops!r})"

    def get_nqubits(self) -> int:
        return self.nqubits

    def highest_physical_qubit(self) -> int:
        """Return the largest physical qubit index known to the program."""

        candidates = list(self.initial_layout)
        candidates.extend(q for op in self.ops for q in _referenced_qubits(op))
        return max(candidates, default=0)

    # ------------------------------------------------------------------
    # Builders
    # ------------------------------------------------------------------
    def append(self, op: Operation) -> Operation:
        for q in _referenced_qubits(op):
            if q >= self.nqubits:
                raise ValueError(f"Qubit {q} out of range for {self.nqubits} qubits")
        self.ops.append(op)
        self.nclassics = max([self.nclassics] + [c + 1 for c in _referenced_clbits(op)])
        return op

    def gate(
        self,
        kind: OpType | str,
        targets: Sequence[int],
        controls: Iterable[Control | int] = (),
        params: Sequence[float] = (),
    ) -> StandardOperation:
        """Append a standard gate and return it."""

        if isinstance(kind, str):
            kind = OpType.from_name(kind)
        op = StandardOperation(kind, list(targets), list(controls), list(params))
        self.append(op)
        return op

    def measure(self, qubit: int, clbit: int) -> NonUnitaryOperation:
        op = NonUnitaryOperation(OpType.MEASURE, [qubit], [clbit])
        self.append(op)
        return op

    def reset(self, *qubits: int) -> NonUnitaryOperation:
        op = NonUnitaryOperation(OpType.RESET, list(qubits))
        self.append(op)
        return op

    def barrier(self, *qubits: int) -> NonUnitaryOperation:
        op = NonUnitaryOperation(OpType.BARRIER, list(qubits))
        self.append(op)
        return op

    def add_qubit(self, physical: int, logical: int, output: int | None = None) -> None:
        """Register an additional physical qubit mapped to ``logical``."""

        if physical in self.initial_layout:
            raise ValueError(f"Physical qubit {physical} already exists")
        self.nqubits += 1
        self.initial_layout[physical] = logical
        if output is not None:
            self.output_permutation[physical] = output

    def initialize_io_mapping(self) -> None:
        """Recompute the output permutation from the program's measurements.

        Every measured qubit maps to the classical bit it is measured into.
        Without measurements the output permutation mirrors the initial
        layout.
        """

        permutation: Permutation = {}
        for op in self.ops:
            if op.is_non_unitary() and op.kind is OpType.MEASURE:
                for qubit, clbit in zip(op.targets, op.classics):
                    permutation[qubit] = clbit
        if not permutation:
            permutation = dict(self.initial_layout)
        self.output_permutation = permutation

    def copy(self) -> "Program":
        return copy.deepcopy(self)

    # ------------------------------------------------------------------
    # JSON serialisation helpers
    # ------------------------------------------------------------------
    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-serialisable representation of the program."""

        return {
            "nqubits": self.nqubits,
            "nclassics": self.nclassics,
            "initial_layout": sorted([p, l] for p, l in self.initial_layout.items()),
            "output_permutation": sorted([p, l] for p, l in self.output_permutation.items()),
            "ops": [op.to_dict() for op in self.ops],
        }

    def to_json(
        self,
        path: str | os.PathLike[str] | None = None,
        **json_kwargs: Any,
    ) -> str:
        """Serialise the program to JSON and optionally write it to ``path``."""

        text = json.dumps(self.to_dict(), **json_kwargs)
        if path is not None:
            with open(os.fspath(path), "w", encoding="utf8") as fh:
                fh.write(text)
        return text

    @classmethod
    def from_dict(cls, data: Iterable[Mapping[str, Any]] | Mapping[str, Any]) -> "Program":
        """Build a program from a list of gate dictionaries or a mapping."""

        if not isinstance(data, Mapping):
            return cls(0, list(data))
        ops_data = data.get("ops")
        if ops_data is None:
            raise ValueError("Program dictionary must contain an 'ops' entry")
        layout = data.get("initial_layout")
        output = data.get("output_permutation")
        return cls(
            int(data.get("nqubits", 0)),
            list(ops_data),
            nclassics=int(data.get("nclassics", 0)),
            initial_layout=None if layout is None else dict(layout),
            output_permutation=None if output is None else dict(output),
        )

    @classmethod
    def from_json(cls, path: str | os.PathLike[str]) -> "Program":
        """Load a program from a JSON file."""

        with open(os.fspath(path), "r", encoding="utf8") as fh:
            data = json.load(fh)
        return cls.from_dict(data)

    # ------------------------------------------------------------------
    # Qiskit interoperability
    # ------------------------------------------------------------------
    @classmethod
    def from_qiskit(cls, circuit: QuantumCircuit) -> "Program":
        """Build a :class:`Program` from a Qiskit ``QuantumCircuit``.

        Supports standard and controlled gates, measurements, resets,
        barriers and ``if_test`` blocks holding a single gate.
        """

        ops = []
        for instruction in circuit.data:
            qubits = [circuit.find_bit(q).index for q in instruction.qubits]
            clbits = [circuit.find_bit(c).index for c in instruction.clbits]
            ops.append(_from_qiskit_operation(circuit, instruction.operation, qubits, clbits))
        return cls(circuit.num_qubits, ops, nclassics=circuit.num_clbits)

    def to_qiskit(self) -> QuantumCircuit:
        """Return an equivalent Qiskit ``QuantumCircuit``.

        Compound operations are inlined.  Classic-controlled operations,
        snapshots and probability dumps have no counterpart and raise
        :class:`ValueError`.
        """

        circuit = QuantumCircuit(self.nqubits, self.nclassics)
        for op in self.ops:
            _append_to_qiskit(circuit, op)
        return circuit


def _qiskit_params(op: Any) -> List[float]:
    params = []
    for value in getattr(op, "params", []):
        try:
            params.append(float(value))
        except TypeError:
            raise ValueError(f"Unbound parameter {value!r} in {op.name}") from None
    return params


def _from_qiskit_operation(
    circuit: QuantumCircuit, op: Any, qubits: List[int], clbits: List[int]
) -> Operation:
    name = op.name
    if name == "measure":
        return NonUnitaryOperation(OpType.MEASURE, qubits, clbits)
    if name == "reset":
        return NonUnitaryOperation(OpType.RESET, qubits)
    if name == "barrier":
        return NonUnitaryOperation(OpType.BARRIER, qubits)
    if name == "if_else":
        return _from_qiskit_if_else(circuit, op, qubits)

    num_controls = getattr(op, "num_ctrl_qubits", 0)
    if num_controls:
        base = op.base_gate
        kind = _FROM_QISKIT.get(base.name)
        if kind is None:
            raise ValueError(f"Unsupported controlled gate: {name}")
        state = op.ctrl_state
        controls = [
            Control(qubits[i], ControlType.POS if (state >> i) & 1 else ControlType.NEG)
            for i in range(num_controls)
        ]
        return StandardOperation(kind, qubits[num_controls:], controls, _qiskit_params(base))

    kind = _FROM_QISKIT.get(name)
    if kind is None:
        raise ValueError(f"Unsupported gate: {name}")
    return StandardOperation(kind, qubits, [], _qiskit_params(op))


def _from_qiskit_if_else(circuit: QuantumCircuit, op: Any, qubits: List[int]) -> Operation:
    true_body = op.blocks[0]
    false_body = op.blocks[1] if len(op.blocks) > 1 else None
    if false_body is not None and len(false_body.data) > 0:
        raise ValueError("if_else blocks with an else branch are not supported")
    if len(true_body.data) != 1:
        raise ValueError("if_else blocks must contain exactly one operation")

    target, value = op.condition
    if hasattr(target, "size"):
        register = (circuit.find_bit(target[0]).index, target.size)
    else:
        register = (circuit.find_bit(target).index, 1)

    inner = true_body.data[0]
    inner_qubits = [qubits[true_body.find_bit(q).index] for q in inner.qubits]
    wrapped = _from_qiskit_operation(true_body, inner.operation, inner_qubits, [])
    return ClassicControlledOperation(wrapped, register, int(value))


def _append_to_qiskit(circuit: QuantumCircuit, op: Operation) -> None:
    if op.is_compound():
        for sub in op.ops:
            _append_to_qiskit(circuit, sub)
        return
    if op.is_classic_controlled():
        raise ValueError("Classic-controlled operations cannot be exported to Qiskit")
    if op.is_non_unitary():
        if op.kind is OpType.MEASURE:
            circuit.measure(op.targets, op.classics)
        elif op.kind is OpType.RESET:
            for qubit in op.targets:
                circuit.reset(qubit)
        elif op.kind is OpType.BARRIER:
            circuit.barrier(*op.targets)
        else:
            raise ValueError(f"{op.kind.value} has no Qiskit counterpart")
        return

    if op.kind is OpType.I:
        for qubit in op.targets:
            circuit.id(qubit)
        return
    gate = _TO_QISKIT[op.kind](*op.params)
    if op.controls:
        state = sum(1 << i for i, c in enumerate(op.controls) if c.type is ControlType.POS)
        gate = gate.control(len(op.controls), ctrl_state=state)
    circuit.append(gate, [c.qubit for c in op.controls] + list(op.targets))


__all__ = ["Program", "Permutation"]
