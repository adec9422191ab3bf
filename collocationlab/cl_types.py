# collocationlab/cl_types.py
"""
Core type definitions for the CollocationLab transcription engine.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol, TypeAlias

import numpy as np
from numpy.typing import NDArray


if TYPE_CHECKING:
    from .problem.state import BoundsTiers


# --- NUMERICAL TYPES ---
FloatArray: TypeAlias = NDArray[np.float64]
IntArray: TypeAlias = NDArray[np.int64]
NumericArrayLike: TypeAlias = (
    NDArray[np.floating[Any]]
    | NDArray[np.integer[Any]]
    | Sequence[float]
    | Sequence[int]
    | list[float]
    | list[int]
)

# --- USER API TYPES ---
BoundInput: TypeAlias = float | int | tuple[float | int | None, float | int | None] | None
"""
Type alias for bound specification.

Supported input types:
- float/int: Fixed value (lower == upper)
- tuple(lower, upper): Range with None for unbounded sides
- None: Not specified
"""

NodeEvaluator: TypeAlias = Callable[[Any, Any, Any, Any], Any]
"""Pure function f(t, x, u, p) evaluated at a single grid point."""

EndpointEvaluator: TypeAlias = Callable[[Any, Any, Any], Any]
"""Pure function E(t_f, x_f, p) evaluated at the final mesh node."""


class SolutionStatus(str, Enum):
    """Terminal outcome of one NLP solve."""

    CONVERGED = "Converged"
    ITERATION_LIMIT = "IterationLimit"
    INFEASIBLE = "Infeasible"
    FAILED = "Failed"


class ODESolverResult(Protocol):
    """Protocol for the result of ODE solvers like solve_ivp."""

    y: FloatArray
    t: FloatArray
    success: bool
    message: str


ODESolverCallable: TypeAlias = Callable[..., ODESolverResult]


class ProblemProtocol(Protocol):
    """Read-only interface a Transcription consumes from a problem."""

    name: str
    enforce_constraint_derivatives: bool

    @property
    def num_states(self) -> int: ...

    @property
    def num_controls(self) -> int: ...

    @property
    def num_parameters(self) -> int: ...

    @property
    def num_path_constraints(self) -> int: ...

    @property
    def num_residuals(self) -> int: ...

    def get_state_names(self) -> list[str]: ...

    def get_control_names(self) -> list[str]: ...

    def get_parameter_names(self) -> list[str]: ...

    def get_time_bounds(self) -> tuple[float, float]: ...

    def get_state_bounds(self) -> BoundsTiers: ...

    def get_control_bounds(self) -> BoundsTiers: ...

    def get_parameter_bounds(self) -> tuple[FloatArray, FloatArray]: ...

    def get_path_constraint_bounds(self) -> tuple[FloatArray, FloatArray]: ...

    def get_kinematic_constraint_indices(self) -> list[int]: ...

    def get_dynamics_function(self) -> NodeEvaluator: ...

    def get_implicit_residual_function(self) -> NodeEvaluator | None: ...

    def get_path_constraints_function(self) -> NodeEvaluator | None: ...

    def get_integral_cost_function(self) -> NodeEvaluator | None: ...

    def get_endpoint_cost_function(self) -> EndpointEvaluator | None: ...

    def has_integral_cost(self) -> bool: ...

    def validate_configuration(self) -> None: ...
