"""Exceptions raised by the optimisation passes."""

from __future__ import annotations


class CircuitOptimizerError(RuntimeError):
    """Raised when a pass encounters malformed input.

    Examples are operation types a pass has no handling for or a
    classic-controlled wrapper whose payload cannot be rewritten.
    """


class UnsupportedOperationError(CircuitOptimizerError):
    """Raised when a pass meets a construct it deliberately does not support.

    The program is left in a partially transformed state; callers are
    expected to apply a different preprocessing order (e.g. run
    :func:`qcopt.measurements.eliminate_resets` before deferring
    measurements) or to decompose the offending operation first.
    """


__all__ = ["CircuitOptimizerError", "UnsupportedOperationError"]
