"""
Integral cost quadrature and objective assembly.
"""

import logging

import casadi as ca

from ..cl_types import FloatArray
from .constraints_transcription import map_over_grid
from .types_transcription import ConstraintLayout, ProblemEvaluators, TranscriptionVariables


logger = logging.getLogger(__name__)


def compute_quadrature_sum(
    evaluators: ProblemEvaluators,
    variables: TranscriptionVariables,
    grid_times: FloatArray,
    quadrature_coefficients: FloatArray,
) -> ca.MX:
    """``sum_k w_k L(t_k, x_k, u_k, p)`` over all grid points."""
    integrand_values = map_over_grid(
        evaluators.integral_cost,
        grid_times,
        variables.states,
        variables.controls,
        variables.parameters,
    )
    return ca.mtimes(integrand_values, ca.DM(quadrature_coefficients))


def apply_integral_constraint(
    opti: ca.Opti,
    evaluators: ProblemEvaluators,
    variables: TranscriptionVariables,
    grid_times: FloatArray,
    quadrature_coefficients: FloatArray,
    layout: ConstraintLayout,
) -> None:
    """
    Tie the integral variable to the quadrature sum.

    Does nothing when the problem has no integral cost.
    """
    if evaluators.integral_cost is None or variables.integral is None:
        return

    quadrature_sum = compute_quadrature_sum(
        evaluators, variables, grid_times, quadrature_coefficients
    )
    opti.subject_to(variables.integral == quadrature_sum)
    layout.record("integral", 1)
    logger.debug("Integral cost quadrature over %d points", len(grid_times))


def build_objective(
    evaluators: ProblemEvaluators,
    variables: TranscriptionVariables,
    final_time: float,
) -> ca.MX:
    """Objective = endpoint cost + integral variable (zero when a term is absent)."""
    objective = ca.MX(0)

    if evaluators.endpoint_cost is not None:
        final_state = variables.states[:, variables.states.shape[1] - 1]
        objective = objective + evaluators.endpoint_cost(
            final_time, final_state, variables.parameters
        )

    if variables.integral is not None:
        objective = objective + variables.integral

    return objective
