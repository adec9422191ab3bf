"""
The transcription engine: builds one NLP from a problem and a scheme strategy,
solves it with IPOPT and unpacks the result.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, final

import casadi as ca
import numpy as np

from ..cl_types import FloatArray, IntArray, ProblemProtocol, SolutionStatus
from ..exceptions import (
    CollocationLabBaseError,
    ConfigurationError,
    DataIntegrityError,
    SolutionExtractionError,
)
from ..input_validation import validate_num_mesh_points
from ..mesh import create_mesh
from ..schemes import SchemeStrategy, VariableLayout
from .constraints_transcription import apply_constraint_blocks, evaluate_node_data
from .evaluators_transcription import build_problem_evaluators
from .extraction_transcription import extract_solution, map_return_status
from .integrals_transcription import apply_integral_constraint, build_objective
from .types_transcription import ConstraintLayout, TranscriptionVariables
from .variables_transcription import apply_initial_guess, create_variables_and_set_bounds


if TYPE_CHECKING:
    from ..config import SolverConfig
    from ..solution import Solution


logger = logging.getLogger(__name__)


class Transcription:
    """
    Direct collocation transcription of one problem on one mesh.

    Construction checks that the scheme can represent the problem, then
    allocates the decision variables and their bounds. ``solve()`` assembles
    the rest of the NLP, runs IPOPT once and returns a Solution. An instance
    owns a single ``casadi.Opti`` and can be solved only once.

    Args:
        config: Solver configuration
        problem: Problem to transcribe; read only
        strategy: Scheme-specific hooks
        num_mesh_points: Number of mesh nodes N
        num_grid_points: Number of points where variables live; equals N for
            schemes without intermediate collocation points
    """

    def __init__(
        self,
        config: SolverConfig,
        problem: ProblemProtocol,
        strategy: SchemeStrategy,
        num_mesh_points: int,
        num_grid_points: int,
    ) -> None:
        self._config = config
        self._problem = problem
        self._strategy = strategy

        # Refuse unrepresentable feature combinations before allocating anything
        strategy.validate_problem(problem, config.resolve_enforce_constraint_derivatives(problem))

        validate_num_mesh_points(num_mesh_points)
        problem.validate_configuration()

        self._layout: VariableLayout = strategy.create_variable_layout(num_mesh_points)
        if self._layout.num_grid_points != num_grid_points:
            raise DataIntegrityError(
                f"Scheme '{strategy.scheme.value}' places {self._layout.num_grid_points} grid "
                f"points on {num_mesh_points} mesh points, got {num_grid_points}",
                "Transcription construction",
            )

        self.num_mesh_points = num_mesh_points
        self.num_grid_points = num_grid_points

        initial_time, final_time = problem.get_time_bounds()
        self.mesh_times: FloatArray = create_mesh(
            initial_time, final_time, num_mesh_points, config.normalized_mesh
        )
        self.grid_times: FloatArray = self._layout.grid_times(self.mesh_times)

        self.opti = ca.Opti()
        self.constraint_layout = ConstraintLayout()
        self.objective_expression: ca.MX | None = None
        self._nlp_built = False
        self._solved = False

        self.variables: TranscriptionVariables = self.create_variables_and_set_bounds()

    @property
    def scheme_name(self) -> str:
        return self._strategy.scheme.value

    @property
    def mesh_indices(self) -> IntArray:
        return self._layout.mesh_indices

    @property
    def num_variables(self) -> int:
        return self.variables.num_variables

    def create_variables_and_set_bounds(self) -> TranscriptionVariables:
        return create_variables_and_set_bounds(self.opti, self._problem, self.num_grid_points)

    def create_quadrature_coefficients(self) -> FloatArray:
        coefficients = np.asarray(
            self._strategy.create_quadrature_coefficients(self.grid_times), dtype=np.float64
        )
        if coefficients.shape != (self.num_grid_points,):
            raise DataIntegrityError(
                f"Quadrature coefficients have shape {coefficients.shape}, "
                f"expected ({self.num_grid_points},)"
            )
        return coefficients

    def create_kinematic_constraint_indices(self) -> IntArray:
        mask = np.asarray(
            self._strategy.create_kinematic_constraint_indices(self.num_grid_points),
            dtype=np.int64,
        )
        if mask.shape != (self.num_grid_points,):
            raise DataIntegrityError(
                f"Kinematic constraint mask has shape {mask.shape}, "
                f"expected ({self.num_grid_points},)"
            )
        return mask

    def build_nlp(self) -> None:
        """Add constraints, objective, initial guess and solver options to the Opti stack."""
        if self._nlp_built:
            return

        logger.debug(
            "Building NLP for '%s': scheme=%s, mesh_points=%d, grid_points=%d",
            self._problem.name,
            self.scheme_name,
            self.num_mesh_points,
            self.num_grid_points,
        )

        try:
            evaluators = build_problem_evaluators(self._problem)

            node_data = evaluate_node_data(
                self._problem,
                evaluators,
                self.variables,
                self.grid_times,
                self.create_kinematic_constraint_indices(),
            )
            blocks = self._strategy.apply_constraints(node_data)
            apply_constraint_blocks(self.opti, blocks, self.constraint_layout)

            apply_integral_constraint(
                self.opti,
                evaluators,
                self.variables,
                self.grid_times,
                self.create_quadrature_coefficients(),
                self.constraint_layout,
            )

            self.objective_expression = build_objective(
                evaluators, self.variables, float(self.grid_times[-1])
            )
            self.opti.minimize(self.objective_expression)

            apply_initial_guess(
                self.opti, self.variables, self.grid_times, self._config.initial_guess
            )

        except CollocationLabBaseError:
            raise
        except Exception as e:
            logger.error("Failed to build NLP: %s", str(e))
            raise DataIntegrityError(
                f"Failed to set up optimization problem: {e}",
                "CollocationLab problem construction error",
            ) from e

        try:
            self.opti.solver("ipopt", self._config.build_nlp_options())
        except Exception as e:
            raise ConfigurationError(
                f"Failed to configure solver: {e}", "Invalid solver options"
            ) from e

        self._nlp_built = True
        logger.debug(
            "NLP built: %d variables, %d constraint rows",
            self.num_variables,
            self.constraint_layout.total,
        )

    @final
    def solve(self) -> Solution:
        """Build the NLP, run IPOPT once (blocking) and unpack the result."""
        if self._solved:
            raise DataIntegrityError(
                "Transcription has already been solved",
                "Construct a new transcription for another solve",
            )
        self._solved = True

        self.build_nlp()
        return self._execute_solve()

    def _execute_solve(self) -> Solution:
        logger.debug("Executing NLP solve")
        solver_error: RuntimeError | None = None

        try:
            source = self.opti.solve()
            stats = dict(source.stats())
        except RuntimeError as e:
            logger.warning("NLP solver failed: %s", str(e))
            solver_error = e
            try:
                stats = dict(self.opti.stats())
                source = self.opti.debug
            except RuntimeError:
                # IPOPT never started, so there is no iterate to report
                raise ConfigurationError(
                    f"NLP solver could not start: {e}",
                    "Check nlp_options and the solver installation",
                ) from e

        return_status = str(stats.get("return_status", "unknown"))
        status = map_return_status(return_status, bool(stats.get("success", False)))
        if solver_error is not None and status is SolutionStatus.CONVERGED:
            status = SolutionStatus.FAILED

        if status is SolutionStatus.CONVERGED:
            message = f"Optimal solution found ({return_status})"
        elif solver_error is not None:
            message = f"NLP solver did not converge ({return_status}): {solver_error}"
        else:
            message = f"NLP solver did not converge ({return_status})"

        if self.objective_expression is None:
            raise DataIntegrityError(
                "Objective expression missing after NLP build", "Transcription solve"
            )
        try:
            return extract_solution(
                source,
                self.variables,
                self.objective_expression,
                self.grid_times,
                self.mesh_indices,
                self._problem,
                status,
                message,
                stats,
                self.scheme_name,
            )
        except SolutionExtractionError:
            logger.error("Solution extraction failed (solver status: %s)", return_status)
            raise
