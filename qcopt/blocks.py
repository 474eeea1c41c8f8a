"""Clustering of unitary operations into size-bounded blocks."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence

from .cleanup import remove_identities
from .measurements import defer_measurements
from .operations import CompoundOperation, Operation, OpType, StandardOperation
from .reorder import reorder_operations

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .program import Program


LOGGER = logging.getLogger(__name__)


def _placeholder() -> Operation:
    return StandardOperation(OpType.I, [0])


class BlockUnion:
    """Union-find over qubits where every set owns a block of operations.

    Each root keeps the qubits of its block, the accumulated
    :class:`CompoundOperation` and the program slot the block is written
    back to.  The slot is the position of the block's most recent
    operation; slots that lose their operation hold an identity placeholder
    until the program is swept.
    """

    def __init__(self, program: "Program", max_block_size: int):
        self.program = program
        self.max_block_size = max_block_size
        self.parent: Dict[int, int] = {}
        self.members: Dict[int, List[int]] = {}
        self.slot: Dict[int, Optional[int]] = {}
        self.blocks: Dict[int, CompoundOperation] = {}
        self.finalized = 0

    def _reset(self, qubit: int) -> None:
        self.parent[qubit] = qubit
        self.members[qubit] = [qubit]
        self.slot[qubit] = None
        self.blocks[qubit] = CompoundOperation()

    def find(self, qubit: int) -> int:
        if qubit not in self.parent:
            self._reset(qubit)
        while self.parent[qubit] != qubit:
            self.parent[qubit] = self.parent[self.parent[qubit]]
            qubit = self.parent[qubit]
        return qubit

    def size(self, qubit: int) -> int:
        return len(self.members[self.find(qubit)])

    def is_empty(self, qubit: int) -> bool:
        return self.slot[self.find(qubit)] is None

    def union(self, a: int, b: int) -> int:
        """Merge the blocks of ``a`` and ``b`` and return the new root.

        The block with fewer operations is merged into the other one.
        """

        ra, rb = self.find(a), self.find(b)
        if ra == rb:
            return ra
        if len(self.blocks[ra]) < len(self.blocks[rb]):
            ra, rb = rb, ra
        self.parent[rb] = ra
        self.blocks[ra].merge(self.blocks[rb])
        self.members[ra].extend(self.members[rb])
        slots = [s for s in (self.slot[ra], self.slot[rb]) if s is not None]
        if len(slots) == 2:
            self.program.ops[min(slots)] = _placeholder()
        self.slot[ra] = max(slots, default=None)
        self.slot[rb] = None
        self.members[rb] = []
        return ra

    def add(self, qubit: int, index: int) -> None:
        """Move the operation at ``index`` into the block of ``qubit``."""

        root = self.find(qubit)
        if self.slot[root] is not None:
            self.program.ops[self.slot[root]] = _placeholder()
        self.slot[root] = index
        self.blocks[root].append(self.program.ops[index])

    def finalize(self, qubit: int) -> None:
        """Write the block of ``qubit`` back to its slot and dissolve it."""

        root = self.find(qubit)
        index = self.slot[root]
        if index is None:
            return
        block = self.blocks[root]
        if block.is_convertible_to_single_operation():
            self.program.ops[index] = block.collapse_to_single_operation()
        else:
            self.program.ops[index] = block
        self.finalized += 1
        for member in self.members[root]:
            self._reset(member)

    def finalize_all(self) -> None:
        for qubit in list(self.parent):
            if self.parent[qubit] == qubit:
                self.finalize(qubit)

    def pack(self, qubits: Sequence[int]) -> None:
        """Finalize the blocks touched by an operation larger than the cap.

        Blocks are visited largest first and filled up with smaller blocks
        while they stay within the cap.
        """

        sizes: Dict[int, int] = {}
        for q in qubits:
            root = self.find(q)
            if root in sizes or self.is_empty(root):
                continue
            sizes[root] = self.size(root)
        ordered = sorted(sizes.items(), key=lambda item: item[1], reverse=True)
        while ordered:
            root, size = ordered.pop(0)
            rest = []
            for other, other_size in ordered:
                if size + other_size <= self.max_block_size:
                    root = self.union(root, other)
                    size += other_size
                else:
                    rest.append((other, other_size))
            ordered = rest
            self.finalize(root)

    def free_space(self, qubits: Sequence[int]) -> None:
        """Finalize touched blocks until the operation's block fits the cap.

        Blocks freeing the most qubits are finalized first.
        """

        savings: Dict[int, int] = {}
        total = 0
        for q in qubits:
            root = self.find(q)
            if root in savings:
                savings[root] -= 1
            else:
                savings[root] = self.size(root) - 1
                total += self.size(root)
        needed = total - self.max_block_size
        for root, saving in sorted(savings.items(), key=lambda item: item[1], reverse=True):
            if needed <= 0:
                break
            needed -= saving
            self.finalize(root)


def collect_blocks(program: "Program", max_block_size: int) -> None:
    """Group unitary operations into compound blocks of at most ``max_block_size`` qubits.

    The program is reordered canonically and its measurements are deferred
    first.  Non-unitary operations close every block on their qubits and
    operations wider than ``max_block_size`` are left untouched.

    Raises
    ------
    ValueError
        If ``max_block_size`` is smaller than one.
    """

    if max_block_size < 1:
        raise ValueError("max_block_size must be at least 1")
    if len(program.ops) <= 1:
        return

    reorder_operations(program)
    defer_measurements(program)

    blocks = BlockUnion(program, max_block_size)
    for index in range(len(program.ops)):
        op = program.ops[index]
        qubits = op.used_qubits()
        if not op.is_unitary():
            for q in qubits:
                blocks.finalize(q)
            continue
        if not qubits:
            continue

        roots = {blocks.find(q) for q in qubits}
        if sum(blocks.size(r) for r in roots) > max_block_size:
            if len(qubits) > max_block_size:
                blocks.pack(qubits)
            else:
                blocks.free_space(qubits)
        if len(qubits) > max_block_size:
            continue

        for a, b in zip(qubits, qubits[1:]):
            blocks.union(a, b)
        blocks.add(qubits[-1], index)

    blocks.finalize_all()
    LOGGER.debug("collect_blocks: %d blocks formed", blocks.finalized)
    remove_identities(program)


__all__ = ["BlockUnion", "collect_blocks"]
