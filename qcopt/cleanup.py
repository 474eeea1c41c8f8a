"""Structural clean-up passes: identity sweep and flattening."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List

from .operations import Operation, OpType

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .program import Program


LOGGER = logging.getLogger(__name__)


def _is_identity(op: Operation) -> bool:
    if op.is_classic_controlled():
        return _is_identity(op.operation)
    return not op.is_compound() and op.kind is OpType.I


def _sweep(ops: List[Operation]) -> List[Operation]:
    result: List[Operation] = []
    for op in ops:
        if _is_identity(op):
            continue
        if op.is_compound():
            op.ops = _sweep(op.ops)
            if op.empty():
                continue
            if op.is_convertible_to_single_operation():
                # compound degraded to a single operation
                op = op.collapse_to_single_operation()
        result.append(op)
    return result


def remove_identities(program: "Program") -> None:
    """Delete identity operations from ``program``.

    Compound operations are swept recursively; a compound left empty is
    removed and one holding a single operation is replaced by it.
    Classic-controlled wrappers around an identity are removed as well.
    """

    before = len(program.ops)
    program.ops = _sweep(program.ops)
    LOGGER.debug("remove_identities: %d -> %d operations", before, len(program.ops))


def _flatten(ops: List[Operation]) -> List[Operation]:
    result: List[Operation] = []
    for op in ops:
        if op.is_compound():
            result.extend(_flatten(op.ops))
        else:
            result.append(op)
    return result


def flatten_operations(program: "Program") -> None:
    """Inline every (nested) compound operation into the top-level stream."""

    program.ops = _flatten(program.ops)


__all__ = ["remove_identities", "flatten_operations"]
