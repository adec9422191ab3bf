"""
Forward simulation of a problem's dynamics under a solution's controls.

The transcribed state trajectory only satisfies the dynamics in the
discretized (collocation) sense. Integrating the continuous dynamics with an
adaptive ODE solver, driven by the linearly interpolated controls, shows how
far the transcription is from the true trajectory.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import casadi as ca
import numpy as np
from scipy.integrate import solve_ivp

from .cl_types import FloatArray, ODESolverCallable, ProblemProtocol
from .exceptions import ConfigurationError, DataIntegrityError
from .input_validation import validate_positive_number
from .solution import Solution
from .transcription.evaluators_transcription import build_node_evaluator
from .utils.constants import (
    DEFAULT_ODE_ATOL_FACTOR,
    DEFAULT_ODE_MAX_STEP,
    DEFAULT_ODE_METHOD,
    DEFAULT_ODE_RTOL,
)


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SimulationResult:
    """
    Outcome of a forward simulation.

    Attributes:
        time: Evaluation times (the solution's mesh), shape (N,)
        states: Simulated states, shape (N, num_states); NaN when integration failed
        success: Whether the ODE solver reached the final time
        message: ODE solver message
        max_state_error: Largest absolute difference to the transcribed states per state
    """

    time: FloatArray
    states: FloatArray
    success: bool
    message: str
    max_state_error: FloatArray


def simulate(
    problem: ProblemProtocol,
    solution: Solution,
    rtol: float = DEFAULT_ODE_RTOL,
    atol_factor: float = DEFAULT_ODE_ATOL_FACTOR,
    method: str = DEFAULT_ODE_METHOD,
    max_step: float = DEFAULT_ODE_MAX_STEP,
    ode_solver: ODESolverCallable = solve_ivp,
) -> SimulationResult:
    """
    Integrate the dynamics from the solution's initial state.

    Args:
        problem: Problem whose dynamics are integrated
        solution: Solution supplying the initial state, controls and parameters
        rtol: Relative tolerance of the ODE solver
        atol_factor: Absolute tolerance as a fraction of ``rtol``
        method: Integration method name understood by ``ode_solver``
        max_step: Maximum ODE step size
        ode_solver: ``solve_ivp``-compatible callable

    Returns:
        SimulationResult evaluated at the solution's mesh times.

    Raises:
        ConfigurationError: If the solution does not match the problem.
    """
    validate_positive_number(rtol, "ODE relative tolerance")
    validate_positive_number(atol_factor, "ODE absolute tolerance factor")

    num_states = problem.num_states
    if solution.states.shape[1] != num_states:
        raise ConfigurationError(
            f"Solution has {solution.states.shape[1]} states, problem has {num_states}"
        )
    if solution.controls.shape[1] != problem.num_controls:
        raise ConfigurationError(
            f"Solution has {solution.controls.shape[1]} controls, "
            f"problem has {problem.num_controls}"
        )
    if not np.all(np.isfinite(solution.states[0])):
        raise DataIntegrityError("Solution initial state contains non-finite values")

    dynamics = build_node_evaluator(
        problem, "dynamics", problem.get_dynamics_function(), num_states
    )
    parameters = ca.DM(solution.parameters.reshape(-1, 1))

    def dynamics_rhs(t: float, state: FloatArray) -> FloatArray:
        control = solution.interpolate_controls([t])[0]
        state_deriv = dynamics(
            t, ca.DM(state.reshape(-1, 1)), ca.DM(control.reshape(-1, 1)), parameters
        )
        return np.asarray(state_deriv.full(), dtype=np.float64).flatten()

    t_eval = solution.time
    logger.debug(
        "Simulating '%s' over [%g, %g] with %s (rtol=%.1e)",
        problem.name,
        t_eval[0],
        t_eval[-1],
        method,
        rtol,
    )

    sim = ode_solver(
        dynamics_rhs,
        t_span=(t_eval[0], t_eval[-1]),
        y0=np.array(solution.states[0], dtype=np.float64),
        t_eval=t_eval,
        method=method,
        rtol=rtol,
        atol=rtol * atol_factor,
        max_step=max_step,
    )

    if sim.success:
        states = np.asarray(sim.y, dtype=np.float64).T
        max_state_error = np.max(np.abs(states - solution.states), axis=0)
    else:
        logger.warning("Forward simulation failed: %s", sim.message)
        states = np.full((len(t_eval), num_states), np.nan, dtype=np.float64)
        max_state_error = np.full(num_states, np.nan, dtype=np.float64)

    return SimulationResult(
        time=np.array(t_eval, dtype=np.float64),
        states=states,
        success=bool(sim.success),
        message=str(sim.message),
        max_state_error=max_state_error,
    )
