"""Operation model consumed by the optimisation passes.

The passes only need to know an operation's kind, the qubits it touches,
its parameters and a handful of capability predicates.  Four variants
cover every instruction a :class:`~qcopt.program.Program` may hold:

``StandardOperation``
    A (possibly controlled) gate from :class:`OpType`.
``CompoundOperation``
    An ordered group of operations treated as one unit.
``NonUnitaryOperation``
    Measurements, resets, barriers and other non-unitary statements.
``ClassicControlledOperation``
    A unitary operation executed only if a classical register holds an
    expected value.
"""

from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Sequence, Tuple


class OpType(Enum):
    """Kinds of operations understood by the passes."""

    I = "i"
    H = "h"
    X = "x"
    Y = "y"
    Z = "z"
    S = "s"
    SDG = "sdg"
    T = "t"
    TDG = "tdg"
    SX = "sx"
    SXDG = "sxdg"
    P = "p"
    RX = "rx"
    RY = "ry"
    RZ = "rz"
    U = "u"
    SWAP = "swap"
    COMPOUND = "compound"
    MEASURE = "measure"
    RESET = "reset"
    BARRIER = "barrier"
    SNAPSHOT = "snapshot"
    SHOW_PROBABILITIES = "show_probabilities"
    CLASSIC_CONTROLLED = "classic_controlled"

    @classmethod
    def from_name(cls, name: str) -> "OpType":
        """Return the :class:`OpType` for a case-insensitive gate ``name``."""

        key = name.strip().lower()
        key = _ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"Unknown operation name: {name!r}") from None


_ALIASES = {
    "id": "i",
    "phase": "p",
    "u3": "u",
    "sdag": "sdg",
    "tdag": "tdg",
    "sxdag": "sxdg",
    "measurement": "measure",
}

STANDARD_TYPES = frozenset(
    {
        OpType.I,
        OpType.H,
        OpType.X,
        OpType.Y,
        OpType.Z,
        OpType.S,
        OpType.SDG,
        OpType.T,
        OpType.TDG,
        OpType.SX,
        OpType.SXDG,
        OpType.P,
        OpType.RX,
        OpType.RY,
        OpType.RZ,
        OpType.U,
        OpType.SWAP,
    }
)

NON_UNITARY_TYPES = frozenset(
    {
        OpType.MEASURE,
        OpType.RESET,
        OpType.BARRIER,
        OpType.SNAPSHOT,
        OpType.SHOW_PROBABILITIES,
    }
)

# Number of target qubits for gates acting on more than one qubit.
_TARGET_ARITY = {OpType.SWAP: 2}


class ControlType(Enum):
    """Polarity of a control qubit."""

    POS = "pos"
    NEG = "neg"


@dataclass(frozen=True)
class Control:
    """Control qubit with its polarity."""

    qubit: int
    type: ControlType = ControlType.POS


def _normalise_controls(controls: Iterable[Control | int]) -> List[Control]:
    result: Dict[int, Control] = {}
    for control in controls:
        if not isinstance(control, Control):
            control = Control(int(control))
        if control.qubit in result:
            raise ValueError(f"Duplicate control qubit {control.qubit}")
        result[control.qubit] = control
    return [result[q] for q in sorted(result)]


class Operation(ABC):
    """Common interface of all operation variants."""

    kind: OpType

    def is_standard(self) -> bool:
        return False

    def is_compound(self) -> bool:
        return False

    def is_non_unitary(self) -> bool:
        return False

    def is_classic_controlled(self) -> bool:
        return False

    def is_unitary(self) -> bool:
        return True

    def is_controlled(self) -> bool:
        return bool(self.get_controls())

    def get_targets(self) -> List[int]:
        return []

    def get_controls(self) -> List[Control]:
        return []

    def used_qubits(self) -> List[int]:
        """Return the sorted union of target and control qubits."""

        qubits = set(self.get_targets())
        qubits.update(c.qubit for c in self.get_controls())
        return sorted(qubits)

    def acts_on(self, qubit: int) -> bool:
        return qubit in self.used_qubits()

    def set_gate(self, kind: OpType) -> None:
        """Replace the operation kind in place."""

        self.kind = kind

    def clone(self) -> "Operation":
        return copy.deepcopy(self)

    @abstractmethod
    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-serialisable representation."""


@dataclass
class StandardOperation(Operation):
    """Gate with optional positive or negative controls.

    ``targets`` is ordered (``SWAP`` has two targets); controls are kept
    sorted by qubit index.
    """

    kind: OpType
    targets: List[int]
    controls: List[Control] = field(default_factory=list)
    params: List[float] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.kind not in STANDARD_TYPES:
            raise ValueError(f"{self.kind} is not a standard gate")
        self.targets = [int(t) for t in self.targets]
        self.controls = _normalise_controls(self.controls)
        self.params = [float(p) for p in self.params]
        overlap = set(self.targets) & {c.qubit for c in self.controls}
        if overlap:
            raise ValueError(f"Qubits {sorted(overlap)} used as control and target")

    def is_standard(self) -> bool:
        return True

    def get_targets(self) -> List[int]:
        return self.targets

    def get_controls(self) -> List[Control]:
        return self.controls

    def set_targets(self, targets: Sequence[int]) -> None:
        self.targets = [int(t) for t in targets]

    def set_controls(self, controls: Iterable[Control | int]) -> None:
        self.controls = _normalise_controls(controls)

    def clear_controls(self) -> None:
        self.controls = []

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "gate": self.kind.value.upper(),
            "targets": list(self.targets),
        }
        if self.controls:
            data["controls"] = [c.qubit for c in self.controls]
            negative = [c.qubit for c in self.controls if c.type is ControlType.NEG]
            if negative:
                data["neg_controls"] = negative
        if self.params:
            data["params"] = list(self.params)
        return data


@dataclass
class CompoundOperation(Operation):
    """Ordered group of operations handled as a single unit."""

    ops: List[Operation] = field(default_factory=list)
    kind: OpType = field(default=OpType.COMPOUND, init=False)

    def __len__(self) -> int:
        return len(self.ops)

    def __iter__(self) -> Iterator[Operation]:
        return iter(self.ops)

    def __getitem__(self, index: int) -> Operation:
        return self.ops[index]

    def is_compound(self) -> bool:
        return True

    def is_unitary(self) -> bool:
        return all(op.is_unitary() for op in self.ops)

    def is_non_unitary(self) -> bool:
        return any(op.is_non_unitary() for op in self.ops)

    def used_qubits(self) -> List[int]:
        qubits: set[int] = set()
        for op in self.ops:
            qubits.update(op.used_qubits())
        return sorted(qubits)

    def acts_on(self, qubit: int) -> bool:
        return any(op.acts_on(qubit) for op in self.ops)

    def empty(self) -> bool:
        return not self.ops

    def append(self, op: Operation) -> None:
        self.ops.append(op)

    def pop(self, index: int = -1) -> Operation:
        return self.ops.pop(index)

    def merge(self, other: "CompoundOperation") -> None:
        """Move all operations of ``other`` to the end of this compound."""

        self.ops.extend(other.ops)
        other.ops = []

    def is_convertible_to_single_operation(self) -> bool:
        return len(self.ops) == 1

    def collapse_to_single_operation(self) -> Operation:
        if not self.is_convertible_to_single_operation():
            raise ValueError("Only compounds with exactly one operation can be collapsed")
        return self.ops[0]

    def to_dict(self) -> Dict[str, Any]:
        return {"gate": "compound", "ops": [op.to_dict() for op in self.ops]}


@dataclass
class NonUnitaryOperation(Operation):
    """Measurement, reset, barrier, snapshot or probability dump.

    For measurements ``targets[i]`` is measured into ``classics[i]``.
    """

    kind: OpType
    targets: List[int] = field(default_factory=list)
    classics: List[int] = field(default_factory=list)
    params: List[float] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.kind not in NON_UNITARY_TYPES:
            raise ValueError(f"{self.kind} is not a non-unitary operation")
        self.targets = [int(t) for t in self.targets]
        self.classics = [int(c) for c in self.classics]
        self.params = [float(p) for p in self.params]
        if self.kind is OpType.MEASURE and len(self.targets) != len(self.classics):
            raise ValueError("Sizes of qubit register and classical register do not match.")

    def is_non_unitary(self) -> bool:
        return True

    def is_unitary(self) -> bool:
        return False

    def get_targets(self) -> List[int]:
        return self.targets

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"gate": self.kind.value, "qubits": list(self.targets)}
        if self.kind is OpType.MEASURE:
            data["clbits"] = list(self.classics)
        if self.params:
            data["params"] = list(self.params)
        return data


@dataclass
class ClassicControlledOperation(Operation):
    """Unitary operation conditioned on a classical register value.

    ``control_register`` holds ``(start_bit, width)``; the wrapped operation
    fires only if the register equals ``expected_value``.
    """

    operation: Operation
    control_register: Tuple[int, int]
    expected_value: int = 1
    kind: OpType = field(default=OpType.CLASSIC_CONTROLLED, init=False)

    def __post_init__(self) -> None:
        if not self.operation.is_unitary():
            raise ValueError("Classic-controlled operations must wrap a unitary operation")
        start, width = self.control_register
        self.control_register = (int(start), int(width))
        self.expected_value = int(self.expected_value)

    def is_classic_controlled(self) -> bool:
        return True

    def is_unitary(self) -> bool:
        return False

    def get_targets(self) -> List[int]:
        return self.operation.get_targets()

    def get_controls(self) -> List[Control]:
        return self.operation.get_controls()

    def used_qubits(self) -> List[int]:
        return self.operation.used_qubits()

    def acts_on(self, qubit: int) -> bool:
        return self.operation.acts_on(qubit)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "gate": "if",
            "register": list(self.control_register),
            "value": self.expected_value,
            "op": self.operation.to_dict(),
        }


def _parse_params(raw: Any) -> List[float]:
    if raw is None:
        return []
    if isinstance(raw, Mapping):
        return [float(v) for v in raw.values()]
    return [float(v) for v in raw]


def _split_controlled_name(name: str, num_qubits: int) -> Tuple[OpType, int]:
    """Return the base gate and number of controls encoded in ``name``.

    ``CX``/``CCX`` count leading ``C`` characters while the ``MC`` prefix
    takes every qubit but the base gate's targets as a control.
    """

    upper = name.strip().upper()
    if upper.startswith("MC") and len(upper) > 2:
        kind = OpType.from_name(upper[2:])
        return kind, num_qubits - _TARGET_ARITY.get(kind, 1)
    stripped = upper.lstrip("C")
    if stripped and stripped != upper:
        try:
            kind = OpType.from_name(stripped)
        except ValueError:
            kind = None
        if kind is not None and kind in STANDARD_TYPES:
            return kind, len(upper) - len(stripped)
    return OpType.from_name(upper), 0


def operation_from_dict(data: Mapping[str, Any]) -> Operation:
    """Create an operation from its dictionary representation.

    Gates may be given either explicitly (``targets``/``controls``) or in
    the compact ``{"gate": "CX", "qubits": [0, 1]}`` form where leading
    ``C`` characters denote controls on the first qubits.
    """

    name = str(data["gate"])
    lowered = name.strip().lower()
    if lowered == "compound":
        return CompoundOperation([operation_from_dict(op) for op in data.get("ops", [])])
    if lowered == "if":
        start, width = data["register"]
        return ClassicControlledOperation(
            operation_from_dict(data["op"]),
            (start, width),
            int(data.get("value", 1)),
        )

    params = _parse_params(data.get("params"))
    if "targets" in data:
        kind = OpType.from_name(name)
        targets = list(data["targets"])
        control_qubits = list(data.get("controls", []))
    else:
        qubits = list(data.get("qubits", []))
        kind, num_controls = _split_controlled_name(name, len(qubits))
        if kind in NON_UNITARY_TYPES:
            return NonUnitaryOperation(kind, qubits, list(data.get("clbits", [])), params)
        if num_controls < 0 or len(qubits) - num_controls != _TARGET_ARITY.get(kind, 1):
            raise ValueError(f"Gate {name!r} cannot act on {len(qubits)} qubit(s)")
        control_qubits = qubits[:num_controls]
        targets = qubits[num_controls:]

    if kind in NON_UNITARY_TYPES:
        return NonUnitaryOperation(kind, targets, list(data.get("clbits", [])), params)
    negative = set(data.get("neg_controls", []))
    unknown = negative - set(control_qubits)
    if unknown:
        raise ValueError(f"Negative controls {sorted(unknown)} are not controls of {name!r}")
    controls = [
        Control(q, ControlType.NEG if q in negative else ControlType.POS) for q in control_qubits
    ]
    return StandardOperation(kind, targets, controls, params)


__all__ = [
    "OpType",
    "STANDARD_TYPES",
    "NON_UNITARY_TYPES",
    "ControlType",
    "Control",
    "Operation",
    "StandardOperation",
    "CompoundOperation",
    "NonUnitaryOperation",
    "ClassicControlledOperation",
    "operation_from_dict",
]
