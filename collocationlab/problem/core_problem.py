import logging
from collections.abc import Sequence

import numpy as np

from ..cl_types import (
    BoundInput,
    EndpointEvaluator,
    FloatArray,
    NodeEvaluator,
    NumericArrayLike,
)
from ..exceptions import ConfigurationError
from ..input_validation import (
    validate_bound_arrays,
    validate_positive_integer,
    validate_problem_dimensions,
    validate_string_not_empty,
    validate_time_horizon,
)
from . import variables_problem
from .state import BoundsTiers, PathConstraintInfo, ProblemState


logger = logging.getLogger(__name__)


def _as_bound_array(values: float | NumericArrayLike, size: int, name: str) -> FloatArray:
    array = np.asarray(values, dtype=np.float64)
    if array.ndim == 0:
        return np.full(size, float(array), dtype=np.float64)
    array = array.flatten()
    if array.size != size:
        raise ConfigurationError(f"{name} has {array.size} entries, expected {size}")
    return array


class Problem:
    """
    Continuous-time optimal control problem on a fixed horizon.

    A Problem declares named states, controls and parameters with their bounds,
    and the pure evaluators that describe the system. Every evaluator receives
    ``(t, x, u, p)`` where ``x``, ``u`` and ``p`` are CasADi column vectors
    (symbolic while the NLP is built, numeric during forward simulation) and
    must return plain CasADi-compatible values.

    Examples:
        >>> problem = Problem("Cart")
        >>> problem.time(initial=0.0, final=1.0)
        >>> problem.state("position", initial=0.0, final=1.0)
        >>> problem.state("speed", initial=0.0, final=0.0)
        >>> problem.control("force", boundary=(-10.0, 10.0))
        >>> problem.dynamics(lambda t, x, u, p: ca.vertcat(x[1], u[0]))
        >>> problem.integral_cost(lambda t, x, u, p: u[0] ** 2)
    """

    def __init__(self, name: str = "Optimal Control Problem") -> None:
        validate_string_not_empty(name, "Problem name")
        self.name = name
        self.enforce_constraint_derivatives = False
        self._state = ProblemState()
        logger.debug("Created problem '%s'", name)

    # ------------------------------------------------------------------
    # Definition API
    # ------------------------------------------------------------------

    def time(self, initial: float = 0.0, final: float = 1.0) -> None:
        """Fix the horizon [initial, final]."""
        validate_time_horizon(initial, final)
        self._state.initial_time = float(initial)
        self._state.final_time = float(final)
        logger.debug("Problem '%s' horizon: [%g, %g]", self.name, initial, final)

    def state(
        self,
        name: str,
        boundary: BoundInput = None,
        initial: BoundInput = None,
        final: BoundInput = None,
    ) -> int:
        """
        Declare a state variable.

        Args:
            name: Unique variable name
            boundary: Bounds applied at every mesh node
            initial: Bounds replacing ``boundary`` at the first node
            final: Bounds replacing ``boundary`` at the last node

        Returns:
            Index of the state within the state vector ``x``.
        """
        return variables_problem.add_state(self._state, name, boundary, initial, final)

    def control(
        self,
        name: str,
        boundary: BoundInput = None,
        initial: BoundInput = None,
        final: BoundInput = None,
    ) -> int:
        """Declare a control variable. Bound tiers behave as for states."""
        return variables_problem.add_control(self._state, name, boundary, initial, final)

    def parameter(self, name: str, boundary: BoundInput = None) -> int:
        """Declare a time-invariant parameter optimized alongside the trajectory."""
        return variables_problem.add_parameter(self._state, name, boundary)

    def dynamics(self, function: NodeEvaluator) -> None:
        """Set the explicit dynamics ``f(t, x, u, p) -> xdot``."""
        if not callable(function):
            raise ConfigurationError("Dynamics must be callable")
        self._state.dynamics_function = function

    def implicit_residual(self, function: NodeEvaluator, size: int) -> None:
        """Set a residual ``r(t, x, u, p)`` of ``size`` entries held at zero at every node."""
        if not callable(function):
            raise ConfigurationError("Implicit residual must be callable")
        validate_positive_integer(size, "implicit residual size")
        self._state.implicit_residual_function = function
        self._state.num_residuals = size

    def path_constraints(
        self,
        function: NodeEvaluator,
        lower: float | NumericArrayLike = 0.0,
        upper: float | NumericArrayLike = 0.0,
        kinematic_indices: Sequence[int] = (),
        size: int | None = None,
    ) -> None:
        """
        Set the path constraint evaluator ``g(t, x, u, p)``.

        Args:
            function: Evaluator returning the constraint vector
            lower: Lower bound per output (scalar broadcasts)
            upper: Upper bound per output (scalar broadcasts)
            kinematic_indices: Outputs that are position-level kinematic constraints
            size: Number of outputs; inferred from array bounds when omitted
        """
        if not callable(function):
            raise ConfigurationError("Path constraints must be callable")

        if size is None:
            sizes = {np.asarray(b).size for b in (lower, upper) if np.asarray(b).ndim > 0}
            if len(sizes) != 1:
                raise ConfigurationError(
                    "Path constraint size must be given or implied by array bounds"
                )
            size = sizes.pop()
        validate_positive_integer(size, "path constraint size")

        lower_array = _as_bound_array(lower, size, "Path constraint lower bounds")
        upper_array = _as_bound_array(upper, size, "Path constraint upper bounds")
        validate_bound_arrays(lower_array, upper_array, "Path constraint")

        indices = sorted({int(i) for i in kinematic_indices})
        for index in indices:
            if index < 0 or index >= size:
                raise ConfigurationError(
                    f"Kinematic constraint index {index} outside path constraint outputs [0, {size})"
                )

        self._state.path_constraints = PathConstraintInfo(
            function=function,
            lower=lower_array,
            upper=upper_array,
            kinematic_indices=indices,
        )
        logger.debug(
            "Problem '%s' path constraints: size=%d, kinematic=%s", self.name, size, indices
        )

    def integral_cost(self, function: NodeEvaluator) -> None:
        """Set the running cost integrand ``L(t, x, u, p) -> scalar``."""
        if not callable(function):
            raise ConfigurationError("Integral cost integrand must be callable")
        self._state.integral_cost_function = function

    def endpoint_cost(self, function: EndpointEvaluator) -> None:
        """Set the terminal cost ``E(t_f, x_f, p) -> scalar``."""
        if not callable(function):
            raise ConfigurationError("Endpoint cost must be callable")
        self._state.endpoint_cost_function = function

    # ------------------------------------------------------------------
    # Read-only interface consumed by the transcription
    # ------------------------------------------------------------------

    @property
    def num_states(self) -> int:
        return len(self._state.states)

    @property
    def num_controls(self) -> int:
        return len(self._state.controls)

    @property
    def num_parameters(self) -> int:
        return len(self._state.parameters)

    @property
    def num_path_constraints(self) -> int:
        path = self._state.path_constraints
        return 0 if path is None else path.size

    @property
    def num_residuals(self) -> int:
        return self._state.num_residuals

    def get_state_names(self) -> list[str]:
        return [info.name for info in self._state.states]

    def get_control_names(self) -> list[str]:
        return [info.name for info in self._state.controls]

    def get_parameter_names(self) -> list[str]:
        return [info.name for info in self._state.parameters]

    def get_time_bounds(self) -> tuple[float, float]:
        if self._state.initial_time is None or self._state.final_time is None:
            raise ConfigurationError(
                f"Problem '{self.name}' horizon must be defined - call problem.time()"
            )
        return self._state.initial_time, self._state.final_time

    def get_state_bounds(self) -> BoundsTiers:
        return BoundsTiers.from_infos(self._state.states)

    def get_control_bounds(self) -> BoundsTiers:
        return BoundsTiers.from_infos(self._state.controls)

    def get_parameter_bounds(self) -> tuple[FloatArray, FloatArray]:
        tiers = BoundsTiers.from_infos(self._state.parameters)
        return tiers.lower, tiers.upper

    def get_path_constraint_bounds(self) -> tuple[FloatArray, FloatArray]:
        path = self._state.path_constraints
        if path is None:
            empty = np.zeros(0, dtype=np.float64)
            return empty, empty.copy()
        return path.lower.copy(), path.upper.copy()

    def get_kinematic_constraint_indices(self) -> list[int]:
        path = self._state.path_constraints
        return [] if path is None else list(path.kinematic_indices)

    def get_dynamics_function(self) -> NodeEvaluator:
        if self._state.dynamics_function is None:
            raise ConfigurationError(
                f"Problem '{self.name}' dynamics must be defined - call problem.dynamics()"
            )
        return self._state.dynamics_function

    def get_implicit_residual_function(self) -> NodeEvaluator | None:
        return self._state.implicit_residual_function

    def get_path_constraints_function(self) -> NodeEvaluator | None:
        path = self._state.path_constraints
        return None if path is None else path.function

    def get_integral_cost_function(self) -> NodeEvaluator | None:
        return self._state.integral_cost_function

    def get_endpoint_cost_function(self) -> EndpointEvaluator | None:
        return self._state.endpoint_cost_function

    def has_integral_cost(self) -> bool:
        return self._state.integral_cost_function is not None

    def validate_configuration(self) -> None:
        """Check the problem is complete enough to be transcribed."""
        validate_problem_dimensions(self.num_states, self.num_controls, self.num_parameters)
        self.get_time_bounds()
        if self.num_states == 0:
            raise ConfigurationError(f"Problem '{self.name}' must have at least one state")
        self.get_dynamics_function()

        for tiers, name in [
            (self.get_state_bounds(), "State"),
            (self.get_control_bounds(), "Control"),
        ]:
            validate_bound_arrays(tiers.lower, tiers.upper, f"{name} default")
            validate_bound_arrays(tiers.initial_lower, tiers.initial_upper, f"{name} initial")
            validate_bound_arrays(tiers.final_lower, tiers.final_upper, f"{name} final")

        if (
            self._state.integral_cost_function is None
            and self._state.endpoint_cost_function is None
        ):
            logger.debug("Problem '%s' has no cost; solving a feasibility problem", self.name)

    def __repr__(self) -> str:
        return (
            f"Problem(name={self.name!r}, states={self.num_states}, "
            f"controls={self.num_controls}, parameters={self.num_parameters})"
        )
