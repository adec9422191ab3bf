from typing import TypeAlias


_Tolerance: TypeAlias = float
_Duration: TypeAlias = float
_Factor: TypeAlias = float

MESH_TOLERANCE: _Tolerance = 1e-9
"""Minimum spacing required between normalized mesh points."""

MINIMUM_TIME_INTERVAL: _Duration = 1e-6
"""Minimum allowed horizon length for optimal control problems."""

MINIMUM_MESH_POINTS: int = 2
"""A mesh needs at least one interval."""

DEFAULT_NUM_MESH_POINTS: int = 100
"""Default number of mesh points used by the solver."""

# ODE Solver Defaults used by forward simulation
DEFAULT_ODE_RTOL: _Tolerance = 1e-7
"""Default relative tolerance for ODE solvers."""

DEFAULT_ODE_ATOL_FACTOR: _Factor = 1e-2
"""Factor for computing absolute tolerance from relative tolerance (atol = rtol * factor)."""

DEFAULT_ODE_METHOD: str = "RK45"
"""Default ODE integration method."""

DEFAULT_ODE_MAX_STEP: float = float("inf")
"""Default maximum step size for ODE solver (inf = no limit)."""

# IPOPT return statuses grouped by outcome
IPOPT_CONVERGED_STATUSES: frozenset[str] = frozenset(
    {"Solve_Succeeded", "Solved_To_Acceptable_Level"}
)
IPOPT_ITERATION_LIMIT_STATUSES: frozenset[str] = frozenset(
    {"Maximum_Iterations_Exceeded", "Maximum_CpuTime_Exceeded", "Maximum_WallTime_Exceeded"}
)
IPOPT_INFEASIBLE_STATUSES: frozenset[str] = frozenset({"Infeasible_Problem_Detected"})
