import logging
from enum import Enum
from typing import Any, cast

from .cl_types import ProblemProtocol
from .config import DEFAULT_NLP_OPTIONS, SolverConfig
from .exceptions import ConfigurationError
from .problem import Problem
from .schemes import SchemeStrategy, get_scheme_strategy
from .solution import Solution
from .transcription import Transcription


logger = logging.getLogger(__name__)

__all__ = ["DEFAULT_NLP_OPTIONS", "Solver", "SolverState", "solve"]


class SolverState(str, Enum):
    """Lifecycle of a Solver; each Solver runs once."""

    UNCONFIGURED = "unconfigured"
    SCHEME_SELECTED = "scheme_selected"
    TRANSCRIPTION_BUILT = "transcription_built"
    NLP_SOLVED = "nlp_solved"
    SOLUTION_READY = "solution_ready"
    FAILED = "failed"


class Solver:
    """
    Selects a transcription scheme by name and solves a problem with it.

    Args:
        problem: Problem to solve; never modified
        config: Solver settings, defaults to ``SolverConfig()``
    """

    def __init__(self, problem: Problem | ProblemProtocol, config: SolverConfig | None = None):
        self.problem = cast(ProblemProtocol, problem)
        self.config = config if config is not None else SolverConfig()
        self.state = SolverState.UNCONFIGURED
        self.failure_reason: str | None = None
        self.solution: Solution | None = None
        self.transcription: Transcription | None = None

    def _select_scheme(self) -> SchemeStrategy:
        strategy = get_scheme_strategy(self.config.transcription_scheme)
        self.state = SolverState.SCHEME_SELECTED
        logger.debug("Selected transcription scheme: %s", strategy.scheme.value)
        return strategy

    def solve(self) -> Solution:
        """
        Transcribe and solve the problem once.

        Returns:
            Solution whose status reports convergence; a non-converged NLP still
            returns a Solution (state FAILED) rather than raising.

        Raises:
            ConfigurationError: Unknown scheme name or invalid settings.
            UnsupportedFeatureError: The scheme cannot represent the problem.
            DataIntegrityError: Evaluator or construction failures.
        """
        if self.state is not SolverState.UNCONFIGURED:
            raise ConfigurationError(
                f"Solver has already run (state: {self.state.value})",
                "Create a new Solver for another solve",
            )

        logger.info(
            "Starting solve: problem='%s', scheme=%s, mesh_points=%s",
            self.problem.name,
            self.config.transcription_scheme,
            self.config.num_mesh_points,
        )

        try:
            strategy = self._select_scheme()
            self.config.validate()
            self.problem.validate_configuration()

            num_mesh_points = self.config.num_mesh_points
            num_grid_points = strategy.create_variable_layout(num_mesh_points).num_grid_points
            self.transcription = Transcription(
                self.config, self.problem, strategy, num_mesh_points, num_grid_points
            )
            self.state = SolverState.TRANSCRIPTION_BUILT

            solution = self.transcription.solve()
            self.state = SolverState.NLP_SOLVED
        except Exception as e:
            self.state = SolverState.FAILED
            self.failure_reason = str(e)
            raise

        self.solution = solution
        if solution.success:
            self.state = SolverState.SOLUTION_READY
            logger.info(
                "Solve completed: objective=%.6e, iterations=%s",
                solution.objective,
                solution.num_iterations,
            )
        else:
            self.state = SolverState.FAILED
            self.failure_reason = solution.message
            logger.warning("Solve did not converge (%s): %s", solution.status.value, solution.message)

        if self.config.show_summary:
            solution.summary()

        return solution


def solve(
    problem: Problem,
    transcription_scheme: str = "trapezoidal",
    num_mesh_points: int | None = None,
    **config_options: Any,
) -> Solution:
    """
    Solve an optimal control problem by direct collocation.

    Args:
        problem: Problem with horizon, variables, dynamics and costs defined
        transcription_scheme: Scheme name (default: "trapezoidal")
        num_mesh_points: Number of mesh nodes (default: SolverConfig default)
        **config_options: Remaining SolverConfig fields, e.g. ``max_iterations``,
            ``nlp_options``, ``normalized_mesh``, ``initial_guess``, ``show_summary``

    Returns:
        Solution object with trajectories, objective and solver status.

    Examples:
        >>> problem = Problem("Double Integrator")
        >>> problem.time(initial=0.0, final=1.0)
        >>> problem.state("x", initial=0.0, final=1.0)
        >>> problem.state("v", initial=0.0, final=0.0)
        >>> problem.control("a", boundary=(-10.0, 10.0))
        >>> problem.dynamics(lambda t, x, u, p: ca.vertcat(x[1], u[0]))
        >>> problem.integral_cost(lambda t, x, u, p: u[0] ** 2)
        >>> solution = solve(problem, num_mesh_points=40)
    """
    if num_mesh_points is not None:
        config_options["num_mesh_points"] = num_mesh_points
    try:
        config = SolverConfig(transcription_scheme=transcription_scheme, **config_options)
    except TypeError as e:
        raise ConfigurationError(f"Invalid solver option: {e}") from e
    return Solver(problem, config).solve()
