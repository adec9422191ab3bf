"""
Solver configuration, scheme selection and lifecycle tests.
"""

import casadi as ca
import pytest

import collocationlab.solver as solver_module
from collocationlab import (
    ConfigurationError,
    Problem,
    Solver,
    SolverConfig,
    SolverState,
    UnsupportedFeatureError,
    solve,
)
from collocationlab.config import DEFAULT_NLP_OPTIONS
from collocationlab.schemes import TranscriptionScheme, get_scheme_strategy


def _integrator_problem():
    problem = Problem("Integrator")
    problem.time(initial=0.0, final=1.0)
    problem.state("x", initial=0.0, final=1.0)
    problem.control("u", boundary=(-10.0, 10.0))
    problem.dynamics(lambda t, x, u, p: u[0])
    problem.integral_cost(lambda t, x, u, p: u[0] ** 2)
    return problem


class _RecordingTranscription:
    """Stands in for the engine to observe whether it was constructed."""

    calls: list = []

    def __init__(self, *args, **kwargs):
        _RecordingTranscription.calls.append(args)
        raise AssertionError("Transcription should not be constructed")


@pytest.fixture
def recording_transcription(monkeypatch):
    _RecordingTranscription.calls = []
    monkeypatch.setattr(solver_module, "Transcription", _RecordingTranscription)
    return _RecordingTranscription


class TestSchemeSelection:
    """Scheme lookup by name."""

    @pytest.mark.parametrize("name", ["hermite-simpson", "Trapezoidal", "", "trapezoid"])
    def test_unknown_scheme_rejected_before_transcription(self, name, recording_transcription):
        config = SolverConfig(transcription_scheme=name, show_summary=False)
        solver = Solver(_integrator_problem(), config)

        with pytest.raises(ConfigurationError) as exc_info:
            solver.solve()

        assert f"'{name}'" in str(exc_info.value)
        assert recording_transcription.calls == []
        assert solver.state is SolverState.FAILED
        assert solver.failure_reason is not None

    def test_unknown_scheme_via_convenience_function(self, recording_transcription):
        with pytest.raises(ConfigurationError, match="Unknown transcription scheme 'euler'"):
            solve(_integrator_problem(), transcription_scheme="euler", show_summary=False)
        assert recording_transcription.calls == []

    def test_lookup_returns_strategy(self):
        strategy = get_scheme_strategy("trapezoidal")
        assert strategy.scheme is TranscriptionScheme.TRAPEZOIDAL
        assert TranscriptionScheme("trapezoidal").value == "trapezoidal"


class TestSolverConfig:
    """Validation and option mapping of SolverConfig."""

    @pytest.mark.parametrize("num_points", [0, 1, -3])
    def test_too_few_mesh_points(self, num_points):
        with pytest.raises(ConfigurationError):
            SolverConfig(num_mesh_points=num_points).validate()

    def test_non_integer_mesh_points(self):
        with pytest.raises(ConfigurationError):
            SolverConfig(num_mesh_points=10.0).validate()
        with pytest.raises(ConfigurationError):
            SolverConfig(num_mesh_points=True).validate()

    def test_invalid_normalized_mesh_rejected_by_solver(self):
        problem = _integrator_problem()
        with pytest.raises(ConfigurationError):
            solve(problem, num_mesh_points=4, normalized_mesh=[0.0, 0.6, 0.4, 1.0])
        with pytest.raises(ConfigurationError):
            solve(problem, num_mesh_points=4, normalized_mesh=[0.0, 0.5, 1.0])

    def test_unknown_option_keyword(self):
        with pytest.raises(ConfigurationError):
            solve(_integrator_problem(), num_mesh_pts=10)

    def test_nlp_options_merge(self):
        config = SolverConfig(
            nlp_options={"ipopt.tol": 1e-10, "ipopt.print_level": 5},
            max_iterations=7,
            max_wall_time=2.5,
        )
        options = config.build_nlp_options()

        assert options["ipopt.tol"] == 1e-10
        assert options["ipopt.print_level"] == 5
        assert options["ipopt.max_iter"] == 7
        assert options["ipopt.max_wall_time"] == 2.5
        assert options["ipopt.sb"] == "yes"
        assert DEFAULT_NLP_OPTIONS["ipopt.print_level"] == 0, "Defaults must not be mutated"

    def test_unknown_ipopt_option_raises_configuration_error(self):
        solver = Solver(
            _integrator_problem(),
            SolverConfig(
                num_mesh_points=5,
                show_summary=False,
                nlp_options={"ipopt.not_an_option": 1},
            ),
        )

        with pytest.raises(ConfigurationError) as exc_info:
            solver.solve()
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert solver.state is SolverState.FAILED
        assert solver.solution is None

    def test_invalid_limits(self):
        with pytest.raises(ConfigurationError):
            SolverConfig(max_iterations=-1).validate()
        with pytest.raises(ConfigurationError):
            SolverConfig(max_wall_time=0.0).validate()

    def test_enforce_flag_resolution(self):
        problem = _integrator_problem()
        assert SolverConfig().resolve_enforce_constraint_derivatives(problem) is False

        problem.enforce_constraint_derivatives = True
        assert SolverConfig().resolve_enforce_constraint_derivatives(problem) is True
        config = SolverConfig(enforce_constraint_derivatives=False)
        assert config.resolve_enforce_constraint_derivatives(problem) is False


class TestSolverLifecycle:
    """State machine of a Solver."""

    def test_successful_solve_reaches_solution_ready(self):
        solver = Solver(_integrator_problem(), SolverConfig(num_mesh_points=5, show_summary=False))
        assert solver.state is SolverState.UNCONFIGURED

        solution = solver.solve()

        assert solution.success
        assert solver.state is SolverState.SOLUTION_READY
        assert solver.solution is solution
        assert solver.failure_reason is None

    def test_solver_runs_once(self):
        solver = Solver(_integrator_problem(), SolverConfig(num_mesh_points=3, show_summary=False))
        solver.solve()

        with pytest.raises(ConfigurationError):
            solver.solve()

    def test_unsupported_feature_marks_failed(self):
        problem = _integrator_problem()
        problem.enforce_constraint_derivatives = True
        solver = Solver(problem, SolverConfig(num_mesh_points=5, show_summary=False))

        with pytest.raises(UnsupportedFeatureError):
            solver.solve()
        assert solver.state is SolverState.FAILED
        assert solver.transcription is None

    def test_incomplete_problem_rejected(self):
        problem = Problem("No dynamics")
        problem.time(initial=0.0, final=1.0)
        problem.state("x")

        with pytest.raises(ConfigurationError):
            solve(problem, num_mesh_points=5, show_summary=False)

    def test_missing_horizon_rejected(self):
        problem = Problem("No horizon")
        problem.state("x")
        problem.dynamics(lambda t, x, u, p: ca.MX(0))

        with pytest.raises(ConfigurationError):
            solve(problem, num_mesh_points=5, show_summary=False)
