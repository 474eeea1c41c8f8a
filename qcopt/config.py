import os
from dataclasses import dataclass, field
from typing import List

DEFAULT_PASSES: List[str] = [
    "swap_reconstruction",
    "single_qubit_gate_fusion",
    "cancel_cnots",
    "remove_diagonal_gates_before_measure",
    "remove_identities",
]


def _int_from_env(name: str, default: int) -> int:
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    try:
        return int(val)
    except ValueError:
        return default


def _bool_from_env(name: str, default: bool) -> bool:
    """Return a boolean value parsed from the environment."""

    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    val = val.strip().lower()
    if val in {"1", "true", "yes", "on"}:
        return True
    if val in {"0", "false", "no", "off"}:
        return False
    return default


def _passes_from_env(name: str, default: List[str]) -> List[str]:
    """Return the comma-separated pass names of ``name``."""

    val = os.getenv(name)
    if val is None or not val.strip():
        return list(default)
    passes = [item.strip().lower() for item in val.split(",") if item.strip()]
    return passes or list(default)


@dataclass
class Config:
    """Runtime configuration defaults for qcopt.

    Values may be overridden via environment variables or by supplying
    explicit arguments to :class:`~qcopt.optimizer.CircuitOptimizer`.
    """

    max_block_size: int = _int_from_env("QCOPT_MAX_BLOCK_SIZE", 2)
    directed_architecture: bool = _bool_from_env("QCOPT_DIRECTED_ARCHITECTURE", False)
    passes: List[str] = field(
        default_factory=lambda: _passes_from_env("QCOPT_PASSES", DEFAULT_PASSES)
    )
    warn_classic_reorder: bool = _bool_from_env("QCOPT_WARN_CLASSIC_REORDER", True)


# Global configuration instance used when modules import ``qcopt.config``.
DEFAULT = Config()
