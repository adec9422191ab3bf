"""
Unpacking of the NLP primal result into a Solution.
"""

import logging
from typing import Any

import casadi as ca
import numpy as np

from ..cl_types import FloatArray, ProblemProtocol, SolutionStatus
from ..exceptions import SolutionExtractionError
from ..solution import Solution
from ..utils.constants import (
    IPOPT_CONVERGED_STATUSES,
    IPOPT_INFEASIBLE_STATUSES,
    IPOPT_ITERATION_LIMIT_STATUSES,
)
from .types_transcription import TranscriptionVariables


logger = logging.getLogger(__name__)


def map_return_status(return_status: str, success: bool) -> SolutionStatus:
    """Translate an IPOPT return status into a SolutionStatus."""
    if return_status in IPOPT_CONVERGED_STATUSES:
        return SolutionStatus.CONVERGED
    if return_status in IPOPT_ITERATION_LIMIT_STATUSES:
        return SolutionStatus.ITERATION_LIMIT
    if return_status in IPOPT_INFEASIBLE_STATUSES:
        return SolutionStatus.INFEASIBLE
    if success:
        return SolutionStatus.CONVERGED
    return SolutionStatus.FAILED


def _extract_matrix(source: Any, expression: ca.MX) -> FloatArray:
    """Numeric value of an MX expression with its shape preserved."""
    rows, cols = expression.shape
    if rows * cols == 0:
        return np.zeros((rows, cols), dtype=np.float64)
    return np.asarray(source.value(expression), dtype=np.float64).reshape(rows, cols)


def _extract_scalar(source: Any, expression: ca.MX) -> float:
    return float(np.asarray(source.value(expression), dtype=np.float64).reshape(-1)[0])


def extract_solution(
    source: Any,
    variables: TranscriptionVariables,
    objective_expression: ca.MX,
    grid_times: FloatArray,
    mesh_indices: np.ndarray,
    problem: ProblemProtocol,
    status: SolutionStatus,
    message: str,
    stats: dict[str, Any],
    scheme_name: str,
) -> Solution:
    """
    Build the Solution from a solved (or debug) Opti object.

    Args:
        source: ``OptiSol`` after success or ``opti.debug`` after a failure
        variables: Decision variables of the transcription
        objective_expression: Objective that was minimized
        grid_times: Time of every grid point
        mesh_indices: Grid index of each mesh node
        problem: Problem providing variable names
        status: Mapped solver outcome
        message: Diagnostic message
        stats: Solver statistics dictionary
        scheme_name: Transcription scheme name

    Raises:
        SolutionExtractionError: If the solver values cannot be read.
    """
    try:
        states = _extract_matrix(source, variables.states)[:, mesh_indices]
        controls = _extract_matrix(source, variables.controls)[:, mesh_indices]
        parameters = _extract_matrix(source, variables.parameters).flatten()
        objective = _extract_scalar(source, objective_expression)
        integral = (
            _extract_scalar(source, variables.integral) if variables.integral is not None else None
        )
    except (RuntimeError, ValueError) as e:
        raise SolutionExtractionError(
            f"Failed to read NLP values: {e}", "CollocationLab solution processing error"
        ) from e

    iterations = stats.get("iter_count")

    solution = Solution(
        time=grid_times[mesh_indices],
        states=states.T,
        controls=controls.T,
        parameters=parameters,
        objective=objective,
        status=status,
        message=message,
        state_names=tuple(problem.get_state_names()),
        control_names=tuple(problem.get_control_names()),
        parameter_names=tuple(problem.get_parameter_names()),
        integral=integral,
        num_iterations=int(iterations) if iterations is not None else None,
        solver_return_status=str(stats.get("return_status", "")),
        transcription_scheme=scheme_name,
        problem_name=problem.name,
    )
    logger.debug("Extracted solution: %r", solution)
    return solution
