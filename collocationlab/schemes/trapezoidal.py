"""
Trapezoidal transcription.

The differential equations are enforced with the trapezoidal (second order)
rule between consecutive mesh nodes, and the integral cost is approximated by
trapezoidal quadrature. Grid points coincide with mesh points.
"""

import logging

import numpy as np

from ..cl_types import FloatArray, IntArray, ProblemProtocol
from ..exceptions import UnsupportedFeatureError
from .base import (
    ConstraintBlock,
    NodeData,
    SchemeStrategy,
    TranscriptionScheme,
    VariableLayout,
)


logger = logging.getLogger(__name__)


def validate_trapezoidal_problem(
    problem: ProblemProtocol, enforce_constraint_derivatives: bool
) -> None:
    """Reject constraint-derivative enforcement; there is no point to enforce it at."""
    if enforce_constraint_derivatives:
        raise UnsupportedFeatureError(
            "Enforcing kinematic constraint derivatives not supported with "
            "trapezoidal transcription.",
            f"problem '{problem.name}'",
        )


def create_trapezoidal_quadrature_coefficients(grid_times: FloatArray) -> FloatArray:
    """
    Trapezoidal rule weights for possibly non-uniform nodes.

    ``w_0 = h_0/2``, ``w_{N-1} = h_{N-2}/2`` and ``w_k = (h_{k-1} + h_k)/2``
    for interior nodes, with ``h_k = t_{k+1} - t_k``.
    """
    widths = np.diff(np.asarray(grid_times, dtype=np.float64))
    weights = np.zeros(len(grid_times), dtype=np.float64)
    weights[:-1] += 0.5 * widths
    weights[1:] += 0.5 * widths
    return weights


def create_trapezoidal_kinematic_constraint_indices(num_grid_points: int) -> IntArray:
    """Kinematic constraints are enforced at every mesh node."""
    return np.ones(num_grid_points, dtype=np.int64)


def create_trapezoidal_variable_layout(num_mesh_points: int) -> VariableLayout:
    return VariableLayout(num_mesh_points=num_mesh_points)


def compute_trapezoidal_defects(
    states, state_derivatives, grid_times: FloatArray
) -> list:
    """
    Defect of every mesh interval.

    ``x_{k+1} - x_k - h_k/2 (xdot_k + xdot_{k+1})`` for k = 0..N-2. Works on
    CasADi matrices and numpy arrays alike.
    """
    widths = np.diff(np.asarray(grid_times, dtype=np.float64))
    defects = []
    for k, h in enumerate(widths):
        defects.append(
            states[:, k + 1]
            - states[:, k]
            - 0.5 * float(h) * (state_derivatives[:, k] + state_derivatives[:, k + 1])
        )
    return defects


def apply_trapezoidal_constraints(node_data: NodeData) -> list[ConstraintBlock]:
    """
    Assemble the ordered constraint blocks.

    Order: all defects, then for every node its implicit residual, kinematic
    errors (where the mask selects the node) and remaining path constraints.
    """
    num_states = node_data.num_states
    zeros = np.zeros(num_states, dtype=np.float64)
    blocks: list[ConstraintBlock] = []

    defects = compute_trapezoidal_defects(
        node_data.states, node_data.state_derivatives, node_data.grid_times
    )
    for k, defect in enumerate(defects):
        blocks.append(ConstraintBlock("defect", k, defect, zeros.copy(), zeros.copy()))

    num_residuals = int(node_data.residuals.shape[0])
    kinematic_lower, kinematic_upper = node_data.kinematic_bounds
    path_lower, path_upper = node_data.path_bounds

    for k in range(node_data.num_grid_points):
        if num_residuals > 0:
            blocks.append(
                ConstraintBlock(
                    "residual",
                    k,
                    node_data.residuals[:, k],
                    np.zeros(num_residuals),
                    np.zeros(num_residuals),
                )
            )
        if len(kinematic_lower) > 0 and node_data.kinematic_mask[k]:
            blocks.append(
                ConstraintBlock(
                    "kinematic",
                    k,
                    node_data.kinematic_errors[:, k],
                    kinematic_lower.copy(),
                    kinematic_upper.copy(),
                )
            )
        if len(path_lower) > 0:
            blocks.append(
                ConstraintBlock(
                    "path", k, node_data.path_values[:, k], path_lower.copy(), path_upper.copy()
                )
            )

    logger.debug(
        "Trapezoidal constraints: %d blocks over %d nodes", len(blocks), node_data.num_grid_points
    )
    return blocks


TRAPEZOIDAL_STRATEGY = SchemeStrategy(
    scheme=TranscriptionScheme.TRAPEZOIDAL,
    validate_problem=validate_trapezoidal_problem,
    create_quadrature_coefficients=create_trapezoidal_quadrature_coefficients,
    create_kinematic_constraint_indices=create_trapezoidal_kinematic_constraint_indices,
    create_variable_layout=create_trapezoidal_variable_layout,
    apply_constraints=apply_trapezoidal_constraints,
    description="Trapezoidal rule defects and quadrature at the mesh nodes",
)
