"""
Forward simulation of the dynamics under a solution's controls.
"""

import casadi as ca
import numpy as np
import pytest

from collocationlab import (
    ConfigurationError,
    Problem,
    SimulationResult,
    Solution,
    SolutionStatus,
    simulate,
    solve,
)


def _oscillator_problem():
    problem = Problem("Oscillator")
    problem.time(initial=0.0, final=2.0)
    problem.state("x", initial=1.0)
    problem.state("v", initial=0.0)
    problem.control("u", boundary=(-1.0, 1.0))
    problem.dynamics(lambda t, x, u, p: ca.vertcat(x[1], -x[0] + u[0]))
    problem.integral_cost(lambda t, x, u, p: x[0] ** 2 + u[0] ** 2)
    return problem


def _manual_solution(time, states, controls, parameters=()):
    return Solution(
        time=time,
        states=states,
        controls=controls,
        parameters=np.asarray(parameters, dtype=np.float64),
        objective=0.0,
        status=SolutionStatus.CONVERGED,
    )


class TestForwardSimulation:
    """simulate() integrates the continuous dynamics."""

    def test_exact_trajectory_has_no_error(self):
        problem = Problem("Rotation")
        problem.time(initial=0.0, final=1.0)
        problem.state("s")
        problem.state("c")
        problem.dynamics(lambda t, x, u, p: ca.vertcat(x[1], -x[0]))

        time = np.linspace(0.0, 1.0, 21)
        states = np.column_stack([np.sin(time), np.cos(time)])
        solution = _manual_solution(time, states, np.zeros((21, 0)))

        result = simulate(problem, solution, rtol=1e-10)

        assert isinstance(result, SimulationResult)
        assert result.success
        assert result.states.shape == (21, 2)
        np.testing.assert_allclose(result.time, time)
        assert np.all(result.max_state_error < 1e-6)

    def test_parameters_and_interpolated_controls(self):
        problem = Problem("Ramp")
        problem.time(initial=0.0, final=1.0)
        problem.state("x")
        problem.control("u")
        problem.parameter("gain")
        problem.dynamics(lambda t, x, u, p: p[0] * u[0])

        time = np.linspace(0.0, 1.0, 11)
        # u = t, gain = 2  ->  x = t^2
        solution = _manual_solution(
            time, time.reshape(-1, 1) ** 2, time.reshape(-1, 1), parameters=[2.0]
        )

        result = simulate(problem, solution)

        assert result.success
        np.testing.assert_allclose(result.states[:, 0], time**2, atol=1e-5)

    def test_trapezoidal_solution_close_to_simulation(self):
        problem = _oscillator_problem()
        solution = solve(problem, num_mesh_points=81, show_summary=False)
        assert solution.success, f"Solver failed: {solution.message}"

        result = simulate(problem, solution)

        assert result.success
        assert np.all(result.max_state_error < 5e-3), f"Errors {result.max_state_error}"

    def test_error_decreases_with_mesh_refinement(self):
        problem = _oscillator_problem()
        errors = []
        for num_points in [11, 41]:
            solution = solve(problem, num_mesh_points=num_points, show_summary=False)
            assert solution.success
            errors.append(np.max(simulate(problem, solution, rtol=1e-10).max_state_error))

        assert errors[1] < errors[0], f"Refinement did not reduce error: {errors}"

    def test_failed_integration_reported(self):
        class _FailedResult:
            success = False
            message = "step size too small"
            y = np.zeros((1, 0))
            t = np.zeros(0)

        def failing_solver(*args, **kwargs):
            return _FailedResult()

        problem = Problem("Decay")
        problem.time(initial=0.0, final=1.0)
        problem.state("x")
        problem.dynamics(lambda t, x, u, p: -x[0])
        time = np.linspace(0.0, 1.0, 5)
        solution = _manual_solution(time, np.exp(-time).reshape(-1, 1), np.zeros((5, 0)))

        result = simulate(problem, solution, ode_solver=failing_solver)

        assert not result.success
        assert result.message == "step size too small"
        assert np.all(np.isnan(result.states))

    def test_mismatched_solution_rejected(self):
        problem = _oscillator_problem()
        time = np.linspace(0.0, 2.0, 4)
        solution = _manual_solution(time, np.zeros((4, 1)), np.zeros((4, 1)))

        with pytest.raises(ConfigurationError):
            simulate(problem, solution)
