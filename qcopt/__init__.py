"""Python API for qcopt."""

from .operations import (
    OpType,
    ControlType,
    Control,
    Operation,
    StandardOperation,
    CompoundOperation,
    NonUnitaryOperation,
    ClassicControlledOperation,
    operation_from_dict,
)
from .program import Program
from .errors import CircuitOptimizerError, UnsupportedOperationError
from .dag import construct_dag, print_dag, dag_to_networkx
from .cleanup import remove_identities, flatten_operations
from .two_qubit import (
    swap_reconstruction,
    cancel_cnots,
    decompose_swap,
    replace_mcx_with_mcz,
)
from .fusion import single_qubit_gate_fusion
from .elimination import remove_diagonal_gates_before_measure, remove_final_measurements
from .measurements import defer_measurements, eliminate_resets, is_dynamic_circuit
from .reorder import reorder_operations
from .blocks import collect_blocks
from .layout import backpropagate_output_permutation
from .optimizer import CircuitOptimizer

__all__ = [
    "OpType",
    "ControlType",
    "Control",
    "Operation",
    "StandardOperation",
    "CompoundOperation",
    "NonUnitaryOperation",
    "ClassicControlledOperation",
    "operation_from_dict",
    "Program",
    "CircuitOptimizerError",
    "UnsupportedOperationError",
    "construct_dag",
    "print_dag",
    "dag_to_networkx",
    "remove_identities",
    "flatten_operations",
    "swap_reconstruction",
    "cancel_cnots",
    "decompose_swap",
    "replace_mcx_with_mcz",
    "single_qubit_gate_fusion",
    "remove_diagonal_gates_before_measure",
    "remove_final_measurements",
    "defer_measurements",
    "eliminate_resets",
    "is_dynamic_circuit",
    "reorder_operations",
    "collect_blocks",
    "backpropagate_output_permutation",
    "CircuitOptimizer",
]
