"""Per-qubit dependency index over a program's instruction stream.

The DAG is a list indexed by physical qubit.  Each entry lists, in program
order, the slot indices of the operations in ``program.ops`` that touch the
qubit.  Slot indices are stable handles: passes may replace the content of
a slot (``program.ops[i] = ...``) or mutate an operation in place while the
DAG is live, but structural edits to ``program.ops`` require rebuilding it.
"""

from __future__ import annotations

import importlib
from typing import TYPE_CHECKING, List, Sequence, TextIO

from .errors import CircuitOptimizerError
from .operations import Operation

if TYPE_CHECKING:  # pragma: no cover - typing only
    import networkx as _nx
    from .program import Program


DAG = List[List[int]]


def _require_networkx() -> "_nx":
    """Return the :mod:`networkx` module if available."""

    try:
        return importlib.import_module("networkx")
    except ModuleNotFoundError as exc:  # pragma: no cover - exercised via tests
        raise RuntimeError(
            "networkx is required for dag_to_networkx(); install it to "
            "export dependency graphs."
        ) from exc


def dag_qubits(op: Operation) -> List[int]:
    """Return the qubits ``op`` is indexed under, without duplicates."""

    if op.is_compound():
        return op.used_qubits()
    if op.is_classic_controlled():
        return dag_qubits(op.operation)
    if op.is_non_unitary():
        return list(dict.fromkeys(op.get_targets()))
    if op.is_standard():
        qubits = [c.qubit for c in op.get_controls()]
        qubits.extend(op.get_targets())
        return list(dict.fromkeys(qubits))
    raise CircuitOptimizerError(f"Unexpected operation encountered: {op!r}")


def empty_dag(program: "Program") -> DAG:
    return [[] for _ in range(program.highest_physical_qubit() + 1)]


def add_to_dag(dag: DAG, program: "Program", index: int) -> None:
    """Record slot ``index`` on every qubit its operation touches."""

    for q in dag_qubits(program.ops[index]):
        dag[q].append(index)


def construct_dag(program: "Program") -> DAG:
    """Build a fresh DAG for ``program``."""

    dag = empty_dag(program)
    for index in range(len(program.ops)):
        add_to_dag(dag, program, index)
    return dag


def print_dag(
    program: "Program",
    dag: DAG,
    cursors: Sequence[int | None] | None = None,
    file: TextIO | None = None,
) -> str:
    """Return a qubit-ordered text listing of the DAG.

    Each line shows the slot index and kind of every operation on one qubit.
    When ``cursors`` is given only entries from each qubit's cursor onwards
    are listed; a ``None`` cursor lists nothing.
    """

    lines = []
    for q, entries in enumerate(dag):
        start = 0
        if cursors is not None:
            start = len(entries) if cursors[q] is None else cursors[q]
        parts = [f"{i}({program.ops[i].kind.value})" for i in entries[start:]]
        lines.append(" - " + "".join(f"{p} - " for p in parts))
    text = "\n".join(lines)
    if file is not None:
        print(text, file=file)
    return text


def dag_to_networkx(program: "Program", dag: DAG) -> "_nx.MultiDiGraph":
    """Return a :class:`networkx.MultiDiGraph` view of the DAG.

    Nodes are slot indices labelled with the operation ``kind`` and the
    ``qubits`` it is indexed under; every pair of consecutive operations on
    a qubit is joined by an edge carrying that ``qubit``.

    Raises
    ------
    RuntimeError
        If :mod:`networkx` is not installed.
    """

    nx = _require_networkx()
    graph = nx.MultiDiGraph()
    for q, entries in enumerate(dag):
        for index in entries:
            if index not in graph:
                op = program.ops[index]
                graph.add_node(index, kind=op.kind.value, qubits=tuple(dag_qubits(op)))
        for src, dst in zip(entries, entries[1:]):
            graph.add_edge(src, dst, qubit=q)
    return graph


__all__ = [
    "DAG",
    "dag_qubits",
    "empty_dag",
    "add_to_dag",
    "construct_dag",
    "print_dag",
    "dag_to_networkx",
]
