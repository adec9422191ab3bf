"""
Variable declaration helpers for the Problem builder.
"""

import logging

from ..exceptions import ConfigurationError
from ..cl_types import BoundInput
from ..input_validation import validate_bound_input_format, validate_string_not_empty
from .state import ProblemState, VariableInfo


logger = logging.getLogger(__name__)


def _validate_unique_name(state: ProblemState, name: str) -> None:
    if name in state.all_names():
        raise ConfigurationError(f"Variable name '{name}' is already in use")


def _validate_variable_inputs(
    name: str, boundary: BoundInput, initial: BoundInput, final: BoundInput, context: str
) -> None:
    validate_string_not_empty(name, f"{context} name")
    validate_bound_input_format(boundary, f"{context} '{name}' boundary")
    validate_bound_input_format(initial, f"{context} '{name}' initial")
    validate_bound_input_format(final, f"{context} '{name}' final")


def add_state(
    state: ProblemState,
    name: str,
    boundary: BoundInput = None,
    initial: BoundInput = None,
    final: BoundInput = None,
) -> int:
    """Declare a state variable and return its index."""
    _validate_variable_inputs(name, boundary, initial, final, "State")
    _validate_unique_name(state, name)

    state.states.append(VariableInfo(name, boundary, initial, final))
    logger.debug(
        "Added state '%s': boundary=%s, initial=%s, final=%s", name, boundary, initial, final
    )
    return len(state.states) - 1


def add_control(
    state: ProblemState,
    name: str,
    boundary: BoundInput = None,
    initial: BoundInput = None,
    final: BoundInput = None,
) -> int:
    """Declare a control variable and return its index."""
    _validate_variable_inputs(name, boundary, initial, final, "Control")
    _validate_unique_name(state, name)

    state.controls.append(VariableInfo(name, boundary, initial, final))
    logger.debug(
        "Added control '%s': boundary=%s, initial=%s, final=%s", name, boundary, initial, final
    )
    return len(state.controls) - 1


def add_parameter(state: ProblemState, name: str, boundary: BoundInput = None) -> int:
    """Declare a time-invariant parameter and return its index."""
    _validate_variable_inputs(name, boundary, None, None, "Parameter")
    _validate_unique_name(state, name)

    state.parameters.append(VariableInfo(name, boundary))
    logger.debug("Added parameter '%s': boundary=%s", name, boundary)
    return len(state.parameters) - 1
