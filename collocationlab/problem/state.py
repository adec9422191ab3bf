"""
Data containers for problem definition: variable metadata and bound tiers.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from ..cl_types import BoundInput, FloatArray, NodeEvaluator, EndpointEvaluator


def _resolve_bound(bound: BoundInput) -> tuple[float, float]:
    """Convert a bound specification to a (lower, upper) pair with infinities."""
    if bound is None:
        return -np.inf, np.inf
    if isinstance(bound, int | float):
        return float(bound), float(bound)
    lower, upper = bound
    return (
        -np.inf if lower is None else float(lower),
        np.inf if upper is None else float(upper),
    )


@dataclass(frozen=True)
class VariableInfo:
    """Name and bound tiers of a single state or control."""

    name: str
    boundary: BoundInput = None
    initial: BoundInput = None
    final: BoundInput = None

    def default_bounds(self) -> tuple[float, float]:
        return _resolve_bound(self.boundary)

    def initial_bounds(self) -> tuple[float, float]:
        # An unset override falls back to the default tier
        if self.initial is None:
            return self.default_bounds()
        return _resolve_bound(self.initial)

    def final_bounds(self) -> tuple[float, float]:
        if self.final is None:
            return self.default_bounds()
        return _resolve_bound(self.final)


@dataclass(frozen=True)
class BoundsTiers:
    """
    Per-variable bounds in three tiers.

    The default tier applies to every node. The initial tier replaces it at
    node 0 and the final tier replaces it at the last node.
    """

    lower: FloatArray
    upper: FloatArray
    initial_lower: FloatArray
    initial_upper: FloatArray
    final_lower: FloatArray
    final_upper: FloatArray

    @classmethod
    def from_infos(cls, infos: list[VariableInfo]) -> BoundsTiers:
        default = np.array([info.default_bounds() for info in infos], dtype=np.float64)
        initial = np.array([info.initial_bounds() for info in infos], dtype=np.float64)
        final = np.array([info.final_bounds() for info in infos], dtype=np.float64)
        if not infos:
            default = initial = final = np.zeros((0, 2), dtype=np.float64)
        return cls(
            lower=default[:, 0],
            upper=default[:, 1],
            initial_lower=initial[:, 0],
            initial_upper=initial[:, 1],
            final_lower=final[:, 0],
            final_upper=final[:, 1],
        )

    @property
    def size(self) -> int:
        return len(self.lower)

    def for_nodes(self, num_nodes: int) -> tuple[FloatArray, FloatArray]:
        """Expand the tiers to (size, num_nodes) lower and upper bound matrices."""
        lower = np.tile(self.lower.reshape(-1, 1), (1, num_nodes))
        upper = np.tile(self.upper.reshape(-1, 1), (1, num_nodes))
        lower[:, 0] = self.initial_lower
        upper[:, 0] = self.initial_upper
        lower[:, -1] = self.final_lower
        upper[:, -1] = self.final_upper
        return lower, upper


@dataclass
class PathConstraintInfo:
    """Path constraint evaluator with per-output bounds and kinematic subset."""

    function: NodeEvaluator
    lower: FloatArray
    upper: FloatArray
    kinematic_indices: list[int] = field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.lower)


@dataclass
class ProblemState:
    """Mutable definition state held by a Problem while it is being built."""

    initial_time: float | None = None
    final_time: float | None = None
    states: list[VariableInfo] = field(default_factory=list)
    controls: list[VariableInfo] = field(default_factory=list)
    parameters: list[VariableInfo] = field(default_factory=list)
    dynamics_function: NodeEvaluator | None = None
    implicit_residual_function: NodeEvaluator | None = None
    num_residuals: int = 0
    path_constraints: PathConstraintInfo | None = None
    integral_cost_function: NodeEvaluator | None = None
    endpoint_cost_function: EndpointEvaluator | None = None

    def all_names(self) -> set[str]:
        return {info.name for info in self.states + self.controls + self.parameters}
