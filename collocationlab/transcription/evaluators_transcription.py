"""
Wrapping of problem callables into CasADi functions.

Each user callable is invoked exactly once, on fresh MX symbols, and the result
is frozen into a ``casadi.Function``. This is the first invocation of the
evaluator, so output size problems surface here as DimensionMismatchError.
"""

import logging
from collections.abc import Callable
from typing import Any

import casadi as ca

from ..cl_types import ProblemProtocol
from ..exceptions import CollocationLabBaseError, DataIntegrityError
from ..input_validation import validate_evaluator_output
from .types_transcription import ProblemEvaluators


logger = logging.getLogger(__name__)

_NODE_INPUT_NAMES = ["t", "x", "u", "p"]
_ENDPOINT_INPUT_NAMES = ["tf", "xf", "p"]


def _create_node_symbols(problem: ProblemProtocol) -> list[ca.MX]:
    return [
        ca.MX.sym("t"),
        ca.MX.sym("x", problem.num_states),
        ca.MX.sym("u", problem.num_controls),
        ca.MX.sym("p", problem.num_parameters),
    ]


def _wrap_callable(
    name: str,
    function: Callable[..., Any],
    symbols: list[ca.MX],
    input_names: list[str],
    expected_size: int,
) -> ca.Function:
    try:
        raw_output = function(*symbols)
    except CollocationLabBaseError:
        raise
    except Exception as e:
        raise DataIntegrityError(
            f"Evaluating {name} on symbolic inputs failed: {e}",
            "Evaluators must accept CasADi MX arguments",
        ) from e

    output = validate_evaluator_output(raw_output, expected_size, name)

    try:
        wrapped = ca.Function(name.replace(" ", "_"), symbols, [output], input_names, ["out"])
    except RuntimeError as e:
        raise DataIntegrityError(
            f"Could not build CasADi function for {name}: {e}",
            "Evaluators must be pure functions of (t, x, u, p)",
        ) from e

    logger.debug("Wrapped %s: %d output(s)", name, expected_size)
    return wrapped


def build_node_evaluator(
    problem: ProblemProtocol, name: str, function: Callable[..., Any], expected_size: int
) -> ca.Function:
    """Wrap ``function(t, x, u, p)`` returning ``expected_size`` entries."""
    return _wrap_callable(
        name, function, _create_node_symbols(problem), _NODE_INPUT_NAMES, expected_size
    )


def build_endpoint_evaluator(
    problem: ProblemProtocol, function: Callable[..., Any]
) -> ca.Function:
    """Wrap ``function(t_f, x_f, p)`` returning a scalar."""
    symbols = [
        ca.MX.sym("tf"),
        ca.MX.sym("xf", problem.num_states),
        ca.MX.sym("p", problem.num_parameters),
    ]
    return _wrap_callable("endpoint cost", function, symbols, _ENDPOINT_INPUT_NAMES, 1)


def build_problem_evaluators(problem: ProblemProtocol) -> ProblemEvaluators:
    """Wrap every evaluator the problem supplies."""
    evaluators = ProblemEvaluators(
        dynamics=build_node_evaluator(
            problem, "dynamics", problem.get_dynamics_function(), problem.num_states
        )
    )

    residual_function = problem.get_implicit_residual_function()
    if residual_function is not None:
        evaluators.implicit_residual = build_node_evaluator(
            problem, "implicit residual", residual_function, problem.num_residuals
        )

    path_function = problem.get_path_constraints_function()
    if path_function is not None:
        evaluators.path_constraints = build_node_evaluator(
            problem, "path constraints", path_function, problem.num_path_constraints
        )

    integrand_function = problem.get_integral_cost_function()
    if integrand_function is not None:
        evaluators.integral_cost = build_node_evaluator(
            problem, "integral cost integrand", integrand_function, 1
        )

    endpoint_function = problem.get_endpoint_cost_function()
    if endpoint_function is not None:
        evaluators.endpoint_cost = build_endpoint_evaluator(problem, endpoint_function)

    return evaluators
