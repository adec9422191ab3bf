"""
Decision variable creation, bound assignment and initial guesses.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import casadi as ca
import numpy as np

from ..cl_types import FloatArray, ProblemProtocol
from ..exceptions import ConfigurationError
from .types_transcription import TranscriptionVariables


if TYPE_CHECKING:
    from ..solution import Solution


logger = logging.getLogger(__name__)


def _apply_row_bounds(opti: ca.Opti, variable: ca.MX, lower: FloatArray, upper: FloatArray) -> None:
    """Bound each row of a (rows, nodes) variable; fully unbounded rows emit nothing."""
    for row in range(lower.shape[0]):
        row_lower = lower[row, :]
        row_upper = upper[row, :]
        if not (np.any(np.isfinite(row_lower)) or np.any(np.isfinite(row_upper))):
            continue

        if np.all(row_lower == row_upper):
            opti.subject_to(variable[row, :] == ca.DM(row_lower).T)
        else:
            opti.subject_to(
                opti.bounded(ca.DM(row_lower).T, variable[row, :], ca.DM(row_upper).T)
            )


def _create_variable(opti: ca.Opti, rows: int, cols: int) -> ca.MX:
    # Empty blocks stay out of the NLP
    if rows == 0:
        return ca.MX(0, cols)
    return opti.variable(rows, cols)


def create_variables_and_set_bounds(
    opti: ca.Opti, problem: ProblemProtocol, num_grid_points: int
) -> TranscriptionVariables:
    """
    Allocate the NLP variables and assign their bounds.

    States and controls are (n, num_grid_points) matrices. The initial tier of
    their bounds applies to column 0 only and the final tier to the last column
    only; all other columns use the default tier. Parameters form one column and
    the integral variable exists only when the problem has an integral cost.
    """
    num_states = problem.num_states
    num_controls = problem.num_controls
    num_parameters = problem.num_parameters

    states = opti.variable(num_states, num_grid_points)
    controls = _create_variable(opti, num_controls, num_grid_points)
    parameters = _create_variable(opti, num_parameters, 1)
    integral = opti.variable() if problem.has_integral_cost() else None

    state_lower, state_upper = problem.get_state_bounds().for_nodes(num_grid_points)
    control_lower, control_upper = problem.get_control_bounds().for_nodes(num_grid_points)
    parameter_lower, parameter_upper = problem.get_parameter_bounds()

    _apply_row_bounds(opti, states, state_lower, state_upper)
    _apply_row_bounds(opti, controls, control_lower, control_upper)
    _apply_row_bounds(
        opti, parameters, parameter_lower.reshape(-1, 1), parameter_upper.reshape(-1, 1)
    )

    variables = TranscriptionVariables(
        states=states,
        controls=controls,
        parameters=parameters,
        integral=integral,
        state_lower=state_lower,
        state_upper=state_upper,
        control_lower=control_lower,
        control_upper=control_upper,
        parameter_lower=parameter_lower,
        parameter_upper=parameter_upper,
    )

    logger.debug(
        "Created %d variables: states=%dx%d, controls=%dx%d, parameters=%d, integral=%s",
        variables.num_variables,
        num_states,
        num_grid_points,
        num_controls,
        num_grid_points,
        num_parameters,
        integral is not None,
    )
    return variables


def compute_bounds_midpoint(lower: FloatArray, upper: FloatArray) -> FloatArray:
    """Midpoint of finite bounds, the finite side of half-bounded entries, zero otherwise."""
    guess = np.zeros_like(lower, dtype=np.float64)
    both = np.isfinite(lower) & np.isfinite(upper)
    only_lower = np.isfinite(lower) & ~np.isfinite(upper)
    only_upper = ~np.isfinite(lower) & np.isfinite(upper)
    guess[both] = 0.5 * (lower[both] + upper[both])
    guess[only_lower] = lower[only_lower]
    guess[only_upper] = upper[only_upper]
    return guess


def apply_initial_guess(
    opti: ca.Opti,
    variables: TranscriptionVariables,
    grid_times: FloatArray,
    guess: Solution | None = None,
) -> None:
    """Seed the NLP from bound midpoints, or from a prior solution resampled on the grid."""
    state_guess = compute_bounds_midpoint(variables.state_lower, variables.state_upper)
    control_guess = compute_bounds_midpoint(variables.control_lower, variables.control_upper)
    parameter_guess = compute_bounds_midpoint(variables.parameter_lower, variables.parameter_upper)

    if guess is not None:
        if guess.states.shape[1] != state_guess.shape[0]:
            raise ConfigurationError(
                f"Initial guess has {guess.states.shape[1]} states, "
                f"problem has {state_guess.shape[0]}"
            )
        if guess.controls.shape[1] != control_guess.shape[0]:
            raise ConfigurationError(
                f"Initial guess has {guess.controls.shape[1]} controls, "
                f"problem has {control_guess.shape[0]}"
            )
        state_guess = guess.interpolate_states(grid_times).T
        control_guess = guess.interpolate_controls(grid_times).T
        if guess.parameters.size == parameter_guess.size:
            parameter_guess = guess.parameters.copy()
        logger.debug("Initial guess resampled from prior solution on %d points", len(grid_times))

    if state_guess.size:
        opti.set_initial(variables.states, state_guess)
    if control_guess.size:
        opti.set_initial(variables.controls, control_guess)
    if parameter_guess.size:
        opti.set_initial(variables.parameters, parameter_guess)
